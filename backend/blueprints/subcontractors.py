"""Subcontractors blueprint: directory CRUD and the compliance report."""
import logging
from flask import Blueprint, current_app, request
from shared.compliance import build_compliance_report, EXPIRING_WINDOW_DAYS
from shared.schemas import SubcontractorCreate, SubcontractorUpdate, SubcontractorResponse
from ..models import Subcontractor
from ..base.generic_crud import GenericCRUD, register_crud_routes
from ..utils import api_success, api_error, handle_api_exception, current_time

bp = Blueprint('subcontractors', __name__, url_prefix='/api')
logger = logging.getLogger(__name__)

FALSE_VALUES = ('false', '0', 'no')


def filter_subcontractors(query, args):
    """Active subcontractors only unless ``active_only=false``; optional trade match."""
    if args.get('active_only', 'true').lower() not in FALSE_VALUES:
        query = query.filter(Subcontractor.is_active.is_(True))
    trade = args.get('trade')
    if trade:
        query = query.filter(Subcontractor.primary_trade == trade)
    return query


subcontractor_crud = GenericCRUD(
    model=Subcontractor,
    create_schema=SubcontractorCreate,
    update_schema=SubcontractorUpdate,
    response_schema=SubcontractorResponse,
    label='Subcontractor',
    order_by=Subcontractor.company_name.asc(),
    required_fields=['user_id', 'company_name'],
    list_filter_hook=filter_subcontractors,
)

register_crud_routes(bp, subcontractor_crud, 'subcontractors')


@bp.route('/reports/subcontractors', methods=['GET'])
def subcontractor_report():
    """Compliance report across every subcontractor a user has on file."""
    user_id = request.args.get('user_id')
    if not user_id:
        return api_error('User ID is required')

    try:
        subcontractors = (
            Subcontractor.query
            .filter_by(user_id=user_id)
            .order_by(Subcontractor.company_name.asc())
            .all()
        )
        window_days = current_app.config.get('COMPLIANCE_EXPIRING_DAYS', EXPIRING_WINDOW_DAYS)
        report = build_compliance_report(subcontractors, current_time(), window_days)
        logger.info(
            f"Compliance report for user {user_id}: {report['summary']['total_subs']} subcontractor(s), "
            f"{report['summary']['fully_compliant']} fully compliant"
        )
        return api_success(report)
    except Exception as e:
        return handle_api_exception(e, 'build subcontractor report')
