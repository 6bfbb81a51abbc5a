"""Invite tracking for bid packages."""
import logging
from shared.enums import InviteStatus
from shared.schemas import InviteResponse
from ..models import db, BidPackageInvite, Subcontractor
from ..utils import safe_db_transaction
from . import state_machine

logger = logging.getLogger(__name__)


def list_invites(package_id):
    """Invites for a package joined with the subcontractor profile, newest first."""
    rows = (
        db.session.query(BidPackageInvite, Subcontractor)
        .join(Subcontractor, BidPackageInvite.subcontractor_id == Subcontractor.id)
        .filter(BidPackageInvite.bid_package_id == package_id)
        .order_by(BidPackageInvite.invited_at.desc())
        .all()
    )

    invites = []
    for invite, sub in rows:
        item = InviteResponse.model_validate(invite).model_dump(mode='json')
        item.update({
            'company_name': sub.company_name,
            'contact_name': sub.contact_name,
            'email': sub.email,
            'phone': sub.phone,
            'primary_trade': sub.primary_trade,
            'license_verified': bool(sub.license_verified),
            'coi_on_file': bool(sub.coi_on_file),
            'w9_on_file': bool(sub.w9_on_file),
            'insurance_expiry': sub.insurance_expiry.isoformat() if sub.insurance_expiry else None,
        })
        invites.append(item)
    return invites


def create_invites(package, payload, at):
    """Invite each subcontractor not already invited, then open the package.

    Existing (package, subcontractor) pairs and repeats within the request
    are skipped silently. The package only opens when at least one invite
    was created.

    Returns:
        int: Number of invites created
    """
    created = 0
    seen = set()

    with safe_db_transaction(f"invite subcontractors to bid package {package.id}"):
        for subcontractor_id in payload.subcontractor_ids:
            if subcontractor_id in seen:
                continue
            seen.add(subcontractor_id)

            existing = BidPackageInvite.query.filter_by(
                bid_package_id=package.id,
                subcontractor_id=subcontractor_id,
            ).first()
            if existing:
                logger.debug(f"Subcontractor {subcontractor_id} already invited to {package.id}")
                continue

            db.session.add(BidPackageInvite(
                bid_package_id=package.id,
                subcontractor_id=subcontractor_id,
                invited_via=payload.invited_via,
                status=InviteStatus.PENDING,
                invited_at=at,
            ))
            created += 1

        if created:
            state_machine.open_for_bidding(package, at)

    logger.info(f"Created {created} invite(s) for bid package {package.id}")
    return created


def mark_submitted(package_id, subcontractor_id, at):
    """Flag the matching invite as submitted. No-op when there is none."""
    invite = BidPackageInvite.query.filter_by(
        bid_package_id=package_id,
        subcontractor_id=subcontractor_id,
    ).first()
    if invite is None:
        logger.debug(f"No invite for subcontractor {subcontractor_id} on {package_id}")
        return False

    invite.status = InviteStatus.SUBMITTED
    invite.responded_at = at
    return True


def delete_invite(invite_id):
    """Remove one invite. Bids submitted under it are left alone."""
    with safe_db_transaction(f"delete invite {invite_id}"):
        deleted = BidPackageInvite.query.filter_by(id=invite_id).delete(synchronize_session=False)

    db.session.expire_all()
    logger.info(f"Deleted invite {invite_id} ({deleted} row)")
    return deleted
