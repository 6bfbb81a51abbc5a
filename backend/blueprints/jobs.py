"""Jobs blueprint for Flask API."""
from flask import Blueprint
from shared.enums import JobStatus
from shared.schemas import JobCreate, JobUpdate, JobResponse
from shared.validation import Validator
from ..models import Job
from ..base.generic_crud import GenericCRUD, register_crud_routes
from ..services.bid_package_service import cascade_delete_job_packages

bp = Blueprint('jobs', __name__, url_prefix='/api')


def filter_jobs(query, args):
    status = args.get('status')
    if status:
        Validator.validate_choice(status, 'status', [s.value for s in JobStatus])
        query = query.filter(Job.status == JobStatus(status))
    return query


job_crud = GenericCRUD(
    model=Job,
    create_schema=JobCreate,
    update_schema=JobUpdate,
    response_schema=JobResponse,
    label='Job',
    order_by=Job.created_at.desc(),
    required_fields=['user_id', 'name'],
    list_filter_hook=filter_jobs,
    cascade_delete_func=cascade_delete_job_packages,
)

register_crud_routes(bp, job_crud, 'jobs')
