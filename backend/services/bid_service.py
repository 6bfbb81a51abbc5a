"""Bid intake and award reconciliation."""
import logging
from shared.compliance import bid_compliance_snapshot
from shared.enums import BidStatus
from shared.schemas import BidResponse
from ..models import db, BidPackage, SubcontractorBid, Subcontractor
from ..utils import safe_db_transaction
from . import state_machine
from .invite_service import mark_submitted

logger = logging.getLogger(__name__)


def serialize_bid(bid, **extras):
    result = BidResponse.model_validate(bid).model_dump(mode='json')
    result['alternates'] = result.get('alternates') or []
    result['attachments'] = result.get('attachments') or []
    result.update(extras)
    return result


def list_bids(package_id):
    """Bids for a package with the bidder's compliance fields, cheapest first."""
    rows = (
        db.session.query(SubcontractorBid, Subcontractor)
        .join(Subcontractor, SubcontractorBid.subcontractor_id == Subcontractor.id)
        .filter(SubcontractorBid.bid_package_id == package_id)
        .order_by(SubcontractorBid.base_bid.asc())
        .all()
    )
    return [
        serialize_bid(
            bid,
            company_name=sub.company_name,
            contact_name=sub.contact_name,
            email=sub.email,
            phone=sub.phone,
            primary_trade=sub.primary_trade,
            rating=sub.rating,
            projects_completed=sub.projects_completed or 0,
            license_verified=bool(sub.license_verified),
            coi_on_file=bool(sub.coi_on_file),
            w9_on_file=bool(sub.w9_on_file),
            insurance_expiry=sub.insurance_expiry.isoformat() if sub.insurance_expiry else None,
        )
        for bid, sub in rows
    ]


def submit_bid(package, payload, at):
    """Record a subcontractor's bid against ``package``.

    In one transaction: snapshot compliance from the subcontractor's current
    on-file flags, store the bid as submitted, mark their invite submitted
    and move the package from open to reviewing.
    """
    subcontractor = db.session.get(Subcontractor, payload.subcontractor_id)
    compliance_verified = bid_compliance_snapshot(subcontractor)

    with safe_db_transaction(f"submit bid on bid package {package.id}"):
        bid = SubcontractorBid(
            bid_package_id=package.id,
            status=BidStatus.SUBMITTED,
            compliance_verified=compliance_verified,
            submitted_at=at,
            **payload.model_dump(),
        )
        db.session.add(bid)
        mark_submitted(package.id, payload.subcontractor_id, at)
        state_machine.begin_review(package, at)

    logger.info(
        f"Bid {bid.id} submitted on {package.id} by {bid.subcontractor_id}: "
        f"{bid.base_bid} (compliance_verified={compliance_verified})"
    )
    return bid


def reconcile_award(bid, at):
    """Award the bid's package to it and reject every sibling bid.

    Must run inside the caller's transaction. Returns the number of bids rejected.
    """
    package = db.session.get(BidPackage, bid.bid_package_id)
    if package is not None:
        state_machine.award(package, bid, at)
    else:
        logger.warning(f"Bid {bid.id} selected but bid package {bid.bid_package_id} does not exist")

    siblings = SubcontractorBid.query.filter(
        SubcontractorBid.bid_package_id == bid.bid_package_id,
        SubcontractorBid.id != bid.id,
    ).all()
    for sibling in siblings:
        sibling.status = BidStatus.REJECTED
        sibling.reviewed_at = at

    logger.info(f"Rejected {len(siblings)} sibling bid(s) after selecting bid {bid.id}")
    return len(siblings)


def update_bid(payload, at):
    """Apply score/status/evaluator_notes from a validated ``BidUpdate``.

    Selecting a bid runs the award cascade in the same transaction. Any other
    status is a plain field update. A missing bid is a no-op returning None.
    """
    changes = payload.changes(exclude={'bid_id'})
    bid = db.session.get(SubcontractorBid, payload.bid_id)
    if bid is None:
        logger.info(f"Update of missing bid {payload.bid_id} ignored")
        return None

    with safe_db_transaction(f"update bid {bid.id}"):
        for key, value in changes.items():
            setattr(bid, key, value)
        bid.reviewed_at = at

        if changes.get('status') == BidStatus.SELECTED:
            reconcile_award(bid, at)

    logger.info(f"Updated bid {bid.id}: {sorted(changes)}")
    return bid
