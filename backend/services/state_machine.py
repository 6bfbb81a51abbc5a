"""Bid package state machine.

Every status change a bid package can go through is a named function here.
Handlers call them after the insert or update that triggers the transition,
inside the same transaction.

    draft --(first invite)--> open --(first bid)--> reviewing --(bid selected)--> awarded

Awarding is accepted from any state. Nothing leaves ``awarded``.
"""
import logging
from shared.enums import BidPackageStatus
from shared.validation import ValidationError

logger = logging.getLogger(__name__)


def _transition(package, from_status, to_status, at):
    if package.status != from_status:
        logger.debug(
            f"Bid package {package.id} stays {BidPackageStatus(package.status).value}; "
            f"{from_status.value} -> {to_status.value} not applicable"
        )
        return False

    package.status = to_status
    package.updated_at = at
    logger.info(f"Bid package {package.id}: {from_status.value} -> {to_status.value}")
    return True


def open_for_bidding(package, at):
    """draft -> open, once invites exist. No effect from any other state.

    Returns:
        bool: True if the status changed
    """
    return _transition(package, BidPackageStatus.DRAFT, BidPackageStatus.OPEN, at)


def begin_review(package, at):
    """open -> reviewing, when the first bid arrives. No effect from any other state.

    Returns:
        bool: True if the status changed
    """
    return _transition(package, BidPackageStatus.OPEN, BidPackageStatus.REVIEWING, at)


def award(package, bid, at):
    """Mark the package awarded to ``bid``'s subcontractor.

    Stamps awarded_to, awarded_amount and awarded_at together. Applies from
    any state, including an already awarded package (last award wins).
    """
    previous = BidPackageStatus(package.status)
    package.status = BidPackageStatus.AWARDED
    package.awarded_to = bid.subcontractor_id
    package.awarded_amount = bid.base_bid
    package.awarded_at = at
    package.updated_at = at
    logger.info(
        f"Bid package {package.id}: {previous.value} -> awarded "
        f"(subcontractor {bid.subcontractor_id}, amount {bid.base_bid})"
    )
    return True


def check_direct_update(package, changes):
    """Validate a generic field update against the lifecycle rules.

    ``PUT /bid-packages`` may still write ``status`` and the award fields.
    An awarded package can neither leave ``awarded`` nor drop its award
    fields that way.

    Raises:
        ValidationError: If the update would reverse an award
    """
    if BidPackageStatus(package.status) != BidPackageStatus.AWARDED:
        return

    if 'status' in changes and BidPackageStatus(changes['status']) != BidPackageStatus.AWARDED:
        logger.warning(f"Rejected status change of awarded bid package {package.id} to {changes['status']}")
        raise ValidationError(f"Bid package is awarded; status cannot change to {BidPackageStatus(changes['status']).value}")

    if changes.get('awarded_to', package.awarded_to) is None:
        logger.warning(f"Rejected clearing award fields of awarded bid package {package.id}")
        raise ValidationError('Bid package is awarded; award fields cannot be cleared')
