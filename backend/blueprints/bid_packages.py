"""Bid packages blueprint: packages, invites, bids and RFIs."""
from flask import Blueprint, request
from shared.enums import BidPackageStatus
from shared.schemas import BidPackageCreate, BidPackageUpdate, InviteCreate, BidCreate, BidUpdate, RFICreate
from shared.validation import Validator, ValidationError
from ..services import bid_package_service, invite_service, bid_service
from ..utils import (
    api_success, api_error, handle_api_exception, current_time, get_json_data,
    validate_schema, validate_foreign_key
)

bp = Blueprint('bid_packages', __name__, url_prefix='/api')


def _require_package(package_id):
    package = bid_package_service.get_package(package_id)
    if package is None:
        return None, api_error('Bid package not found', 404)
    return package, None


@bp.route('/bid-packages', methods=['GET'])
def get_bid_packages():
    """List a user's bid packages, optionally filtered by job and status."""
    user_id = request.args.get('user_id')
    job_id = request.args.get('job_id')
    status = request.args.get('status')

    if not user_id:
        return api_error('User ID is required')

    try:
        if status:
            Validator.validate_choice(status, 'status', [s.value for s in BidPackageStatus])
        return api_success(bid_package_service.list_packages(user_id, job_id=job_id, status=status))
    except ValidationError as e:
        return api_error(str(e))
    except Exception as e:
        return handle_api_exception(e, 'fetch bid packages')


@bp.route('/bid-packages/<string:package_id>', methods=['GET'])
def get_bid_package(package_id):
    """Get a single bid package."""
    try:
        package, error = _require_package(package_id)
        if error:
            return error
        return api_success(bid_package_service.serialize_package(package))
    except Exception as e:
        return handle_api_exception(e, 'fetch bid package')


@bp.route('/bid-packages', methods=['POST'])
def create_bid_package():
    """Create a draft bid package, numbering it BP-NNN within the job if needed."""
    try:
        data = get_json_data()
        Validator.validate_required_fields(data, ['user_id', 'job_id', 'name'])
        payload = validate_schema(BidPackageCreate, data)

        if not validate_foreign_key('jobs', 'id', payload.job_id):
            raise ValidationError(f'Job with ID {payload.job_id} does not exist')

        package = bid_package_service.create_package(payload, current_time())
        return api_success(bid_package_service.serialize_package(package), 201)
    except ValidationError as e:
        return api_error(str(e))
    except Exception as e:
        return handle_api_exception(e, 'create bid package')


@bp.route('/bid-packages', methods=['PUT'])
def update_bid_package():
    """Partially update a bid package. The body carries ``id``."""
    try:
        data = get_json_data()
        if Validator.is_blank(data.get('id')):
            raise ValidationError('Bid package ID is required')
        payload = validate_schema(BidPackageUpdate, data)
        if not payload.changes(exclude={'id'}):
            raise ValidationError('No valid fields to update')

        package = bid_package_service.update_package(payload, current_time())
        return api_success(bid_package_service.serialize_package(package) if package else None)
    except ValidationError as e:
        return api_error(str(e))
    except Exception as e:
        return handle_api_exception(e, 'update bid package')


@bp.route('/bid-packages', methods=['DELETE'])
def delete_bid_package():
    """Delete a bid package with its RFIs, bids and invites."""
    package_id = request.args.get('id')
    if not package_id:
        return api_error('Bid package ID is required')

    try:
        summary = bid_package_service.delete_package(package_id)
        return api_success({'summary': summary}, message='Bid package deleted')
    except Exception as e:
        return handle_api_exception(e, 'delete bid package')


@bp.route('/bid-packages/<string:package_id>/invites', methods=['GET'])
def get_invites(package_id):
    """List invites for a package with subcontractor details."""
    try:
        return api_success(invite_service.list_invites(package_id))
    except Exception as e:
        return handle_api_exception(e, 'fetch invites')


@bp.route('/bid-packages/<string:package_id>/invites', methods=['POST'])
def create_invites(package_id):
    """Invite subcontractors in bulk; already invited ones are skipped."""
    try:
        data = get_json_data()
        subcontractor_ids = data.get('subcontractor_ids')
        if not isinstance(subcontractor_ids, list) or not subcontractor_ids:
            raise ValidationError('subcontractor_ids array is required')
        payload = validate_schema(InviteCreate, data)

        package, error = _require_package(package_id)
        if error:
            return error

        created = invite_service.create_invites(package, payload, current_time())
        return api_success({'invites_created': created}, message=f'{created} invite(s) sent')
    except ValidationError as e:
        return api_error(str(e))
    except Exception as e:
        return handle_api_exception(e, 'create invites')


@bp.route('/bid-packages/<string:package_id>/invites', methods=['DELETE'])
def delete_invite(package_id):
    """Remove a single invite."""
    invite_id = request.args.get('invite_id')
    if not invite_id:
        return api_error('invite_id is required')

    try:
        invite_service.delete_invite(invite_id)
        return api_success(None, message='Invite removed')
    except Exception as e:
        return handle_api_exception(e, 'delete invite')


@bp.route('/bid-packages/<string:package_id>/bids', methods=['GET'])
def get_bids(package_id):
    """List bids for a package, lowest base bid first."""
    try:
        return api_success(bid_service.list_bids(package_id))
    except Exception as e:
        return handle_api_exception(e, 'fetch bids')


@bp.route('/bid-packages/<string:package_id>/bids', methods=['POST'])
def submit_bid(package_id):
    """Submit a subcontractor bid."""
    try:
        data = get_json_data()
        Validator.validate_required_fields(data, ['subcontractor_id', 'base_bid'])
        payload = validate_schema(BidCreate, data)

        package, error = _require_package(package_id)
        if error:
            return error
        if not validate_foreign_key('subcontractors', 'id', payload.subcontractor_id):
            raise ValidationError(f'Subcontractor with ID {payload.subcontractor_id} does not exist')

        bid = bid_service.submit_bid(package, payload, current_time())
        return api_success(bid_service.serialize_bid(bid), 201)
    except ValidationError as e:
        return api_error(str(e))
    except Exception as e:
        return handle_api_exception(e, 'create bid')


@bp.route('/bid-packages/<string:package_id>/bids', methods=['PUT'])
def update_bid(package_id):
    """Score, annotate or change the status of a bid. Selecting a bid awards the package."""
    try:
        data = get_json_data()
        if Validator.is_blank(data.get('bid_id')):
            raise ValidationError('bid_id is required')
        payload = validate_schema(BidUpdate, data)
        if not payload.changes(exclude={'bid_id'}):
            raise ValidationError('No fields to update')

        bid = bid_service.update_bid(payload, current_time())
        return api_success(bid_service.serialize_bid(bid) if bid else None)
    except ValidationError as e:
        return api_error(str(e))
    except Exception as e:
        return handle_api_exception(e, 'update bid')


@bp.route('/bid-packages/<string:package_id>/rfis', methods=['GET'])
def get_rfis(package_id):
    """List RFIs raised on a package."""
    try:
        return api_success(bid_package_service.list_rfis(package_id))
    except Exception as e:
        return handle_api_exception(e, 'fetch RFIs')


@bp.route('/bid-packages/<string:package_id>/rfis', methods=['POST'])
def create_rfi(package_id):
    """Raise an RFI on a package."""
    try:
        data = get_json_data()
        Validator.validate_required_fields(data, ['question'])
        payload = validate_schema(RFICreate, data)

        package, error = _require_package(package_id)
        if error:
            return error

        rfi = bid_package_service.create_rfi(package, payload, current_time())
        return api_success(bid_package_service.serialize_rfi(rfi), 201)
    except ValidationError as e:
        return api_error(str(e))
    except Exception as e:
        return handle_api_exception(e, 'create RFI')
