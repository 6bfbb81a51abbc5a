"""Bid package persistence: listing, creation, partial updates and cascade delete."""
import logging
from sqlalchemy import func, select
from shared.enums import BidPackageStatus, RFIStatus
from shared.schemas import BidPackageResponse, RFIResponse
from ..models import db, BidPackage, BidPackageInvite, SubcontractorBid, BidRFI, Job, Subcontractor
from ..utils import safe_db_transaction
from . import state_machine

logger = logging.getLogger(__name__)

PACKAGE_NUMBER_PREFIX = 'BP'


def serialize_package(package, **extras):
    result = BidPackageResponse.model_validate(package).model_dump(mode='json')
    result['attachments'] = result.get('attachments') or []
    result.update(extras)
    return result


def next_package_number(job_id):
    """Return the next ``BP-NNN`` number for a job.

    The sequence is the count of the job's existing packages plus one.
    """
    count = db.session.query(func.count(BidPackage.id)).filter(BidPackage.job_id == job_id).scalar() or 0
    return f"{PACKAGE_NUMBER_PREFIX}-{count + 1:03d}"


def list_packages(user_id, job_id=None, status=None):
    """List a user's packages newest first with job name, vendor name and counts."""
    invite_count = (
        select(func.count(BidPackageInvite.id))
        .where(BidPackageInvite.bid_package_id == BidPackage.id)
        .correlate(BidPackage)
        .scalar_subquery()
        .label('invite_count')
    )
    bid_count = (
        select(func.count(SubcontractorBid.id))
        .where(SubcontractorBid.bid_package_id == BidPackage.id)
        .correlate(BidPackage)
        .scalar_subquery()
        .label('bid_count')
    )

    query = (
        db.session.query(
            BidPackage,
            Job.name.label('job_name'),
            Subcontractor.company_name.label('awarded_to_name'),
            invite_count,
            bid_count,
        )
        .outerjoin(Job, BidPackage.job_id == Job.id)
        .outerjoin(Subcontractor, BidPackage.awarded_to == Subcontractor.id)
        .filter(BidPackage.user_id == user_id)
    )
    if job_id:
        query = query.filter(BidPackage.job_id == job_id)
    if status:
        query = query.filter(BidPackage.status == BidPackageStatus(status))

    rows = query.order_by(BidPackage.created_at.desc()).all()
    return [
        serialize_package(
            package,
            job_name=job_name,
            awarded_to_name=awarded_to_name,
            invite_count=int(invites or 0),
            bid_count=int(bids or 0),
        )
        for package, job_name, awarded_to_name, invites, bids in rows
    ]


def get_package(package_id):
    return db.session.get(BidPackage, package_id)


def create_package(payload, at):
    """Create a draft package from a validated ``BidPackageCreate``."""
    data = payload.model_dump()
    if not data.get('package_number'):
        data['package_number'] = next_package_number(data['job_id'])

    with safe_db_transaction("create bid package"):
        package = BidPackage(**data, status=BidPackageStatus.DRAFT, created_at=at, updated_at=at)
        db.session.add(package)

    logger.info(f"Created bid package {package.id} ({package.package_number}) for job {package.job_id}")
    return package


def update_package(payload, at):
    """Apply a validated ``BidPackageUpdate``.

    Only the fields the caller sent are written; updated_at is always bumped.
    A missing package is a no-op and returns None.
    An awarded package cannot be moved out of ``awarded`` (ValidationError).
    """
    changes = payload.changes(exclude={'id'})
    package = db.session.get(BidPackage, payload.id)
    if package is None:
        logger.info(f"Update of missing bid package {payload.id} ignored")
        return None

    state_machine.check_direct_update(package, changes)

    with safe_db_transaction(f"update bid package {package.id}"):
        for key, value in changes.items():
            setattr(package, key, value)
        package.updated_at = at

    logger.info(f"Updated bid package {package.id}: {sorted(changes)}")
    return package


def delete_package_rows(package_ids):
    """Bulk delete packages and their RFIs, bids and invites without committing.

    Returns:
        dict: Number of rows deleted per table
    """
    package_ids = list(package_ids)
    if not package_ids:
        return {'rfis': 0, 'bids': 0, 'invites': 0, 'bid_packages': 0}
    return {
        'rfis': BidRFI.query.filter(BidRFI.bid_package_id.in_(package_ids)).delete(synchronize_session=False),
        'bids': SubcontractorBid.query.filter(SubcontractorBid.bid_package_id.in_(package_ids)).delete(synchronize_session=False),
        'invites': BidPackageInvite.query.filter(BidPackageInvite.bid_package_id.in_(package_ids)).delete(synchronize_session=False),
        'bid_packages': BidPackage.query.filter(BidPackage.id.in_(package_ids)).delete(synchronize_session=False),
    }


def delete_package(package_id):
    """Delete a package with its RFIs, bids and invites in one transaction."""
    with safe_db_transaction(f"delete bid package {package_id}"):
        summary = delete_package_rows([package_id])

    db.session.expire_all()
    logger.info(f"Cascading delete completed for bid package {package_id}: {summary}")
    return summary


def cascade_delete_job_packages(job_id):
    """Remove every bid package under a job. The caller commits."""
    package_ids = [row.id for row in db.session.query(BidPackage.id).filter(BidPackage.job_id == job_id)]
    summary = delete_package_rows(package_ids)
    logger.info(f"Removed {summary['bid_packages']} bid package(s) under job {job_id}: {summary}")
    return summary


def serialize_rfi(rfi):
    return RFIResponse.model_validate(rfi).model_dump(mode='json')


def list_rfis(package_id):
    rfis = BidRFI.query.filter_by(bid_package_id=package_id).order_by(BidRFI.created_at.desc()).all()
    return [serialize_rfi(rfi) for rfi in rfis]


def create_rfi(package, payload, at):
    with safe_db_transaction(f"create RFI on bid package {package.id}"):
        rfi = BidRFI(
            bid_package_id=package.id,
            subcontractor_id=payload.subcontractor_id,
            question=payload.question,
            status=RFIStatus.OPEN,
            created_at=at,
        )
        db.session.add(rfi)

    logger.info(f"Created RFI {rfi.id} on bid package {package.id}")
    return rfi
