"""Backend utility functions for the SiteSense API."""
from contextlib import contextmanager
from flask import current_app, jsonify, request
from pydantic import ValidationError as PydanticValidationError
from shared.validation import ValidationError, format_pydantic_errors
from .models import db, Job, Subcontractor, BidPackage, SubcontractorBid, BidPackageInvite, now
import logging


logger = logging.getLogger(__name__)


def api_success(data=None, status_code=200, message=None):
    """Standard success envelope: ``{"success": true, "data": ...}``."""
    body = {'success': True, 'data': data}
    if message:
        body['message'] = message
    return jsonify(body), status_code


def api_error(message, status_code=400, log_level='warning', details=None):
    """
    Standardized API error response with consistent logging.

    Args:
        message (str): Error message for the client
        status_code (int): HTTP status code
        log_level (str): Logging level ('debug', 'info', 'warning', 'error', 'critical')
        details (dict, optional): Additional details for logging

    Returns:
        Flask response: JSON error response
    """
    log_func = getattr(logger, log_level, logger.warning)
    if details:
        log_func(f"API Error ({status_code}): {message} - Details: {details}")
    else:
        log_func(f"API Error ({status_code}): {message}")

    return jsonify({'success': False, 'error': message}), status_code


def handle_api_exception(e, operation="operation", status_code=500):
    """
    Handle exceptions in API endpoints with consistent logging and responses.

    The session is rolled back and the raw error message is returned to the
    caller. Storage errors are not classified as transient or permanent.

    Args:
        e (Exception): The exception that occurred
        operation (str): Description of the operation being performed
        status_code (int): HTTP status code to return

    Returns:
        Flask response: JSON error response
    """
    logger.error(f"Exception during {operation}: {str(e)}", exc_info=True)
    db.session.rollback()
    return api_error(str(e), status_code, 'error')


@contextmanager
def safe_db_transaction(operation="database operation"):
    """Run a block of statements as one unit of work.

    Commits once at the end; any exception rolls the whole block back and is
    re-raised. Works as a ``with`` block or as a decorator.
    """
    try:
        yield db.session
        db.session.commit()
    except Exception:
        logger.warning(f"Rolling back transaction for {operation}")
        db.session.rollback()
        raise


def get_clock():
    """Return the injected clock callable (``CLOCK`` config, defaults to ``now``)."""
    return current_app.config.get('CLOCK') or now


def current_time():
    """Current instant according to the injected clock."""
    return get_clock()()


def get_json_data():
    """Get and validate JSON object from the request body.

    Raises:
        ValidationError: If JSON is invalid or not a dict
    """
    data = request.get_json(silent=True)
    if data is None:
        raise ValidationError('Request body must contain valid JSON')
    if not isinstance(data, dict):
        raise ValidationError('Request data must be a JSON object')
    return data


def validate_schema(schema, data):
    """Validate ``data`` against a pydantic schema, raising ValidationError."""
    try:
        return schema(**data)
    except PydanticValidationError as e:
        raise ValidationError(format_pydantic_errors(e))


def validate_foreign_key(table_name, column_name, value):
    """
    Validate that a foreign key reference exists.

    Args:
        table_name (str): Name of the table being referenced
        column_name (str): Name of the column being referenced
        value: The value to check for existence

    Returns:
        bool: True if reference exists or value is None, False otherwise
    """
    if value is None:
        return True  # Allow NULL values for optional FKs

    models = {
        'jobs': Job,
        'subcontractors': Subcontractor,
        'bid_packages': BidPackage,
        'subcontractor_bids': SubcontractorBid,
        'bid_package_invites': BidPackageInvite,
    }
    model = models.get(table_name)
    if model is None:
        logger.warning(f"Unknown table for FK validation: {table_name}")
        return False
    return db.session.get(model, value) is not None
