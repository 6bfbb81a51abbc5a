import click
import logging
from flask.cli import with_appcontext
from sqlalchemy import func
from shared.enums import BidPackageStatus, BidStatus
from .models import db, BidPackage, SubcontractorBid

logger = logging.getLogger(__name__)

AWARD_FIELDS = ('awarded_to', 'awarded_amount', 'awarded_at')


@click.command('init-db')
@with_appcontext
def init_db_command():
    """Create all tables."""
    logger.info("Starting database initialization")
    db.create_all()
    logger.info("Database tables created successfully")
    click.echo('Initialized the database.')


def find_award_issues(package_id=None):
    """Collect award consistency problems.

    A package must have all award fields set or none of them, the fields
    must be set exactly when it is awarded, and at most one of its bids may
    be selected.

    Returns:
        dict: package id -> list of issue descriptions
    """
    issues = {}

    packages = BidPackage.query
    if package_id:
        packages = packages.filter(BidPackage.id == package_id)
    for package in packages.order_by(BidPackage.created_at).all():
        set_fields = [name for name in AWARD_FIELDS if getattr(package, name) is not None]
        if set_fields and len(set_fields) != len(AWARD_FIELDS):
            missing = [name for name in AWARD_FIELDS if name not in set_fields]
            issues.setdefault(package.id, []).append(
                f"award fields partially set: {', '.join(set_fields)} set, {', '.join(missing)} missing"
            )
        status = BidPackageStatus(package.status)
        if set_fields and status != BidPackageStatus.AWARDED:
            issues.setdefault(package.id, []).append(f"status is {status.value} but award fields are set")
        elif not set_fields and status == BidPackageStatus.AWARDED:
            issues.setdefault(package.id, []).append("status is awarded but award fields are empty")

    selected = (
        db.session.query(SubcontractorBid.bid_package_id, func.count(SubcontractorBid.id))
        .filter(SubcontractorBid.status == BidStatus.SELECTED)
        .group_by(SubcontractorBid.bid_package_id)
        .having(func.count(SubcontractorBid.id) > 1)
    )
    if package_id:
        selected = selected.filter(SubcontractorBid.bid_package_id == package_id)
    for bid_package_id, count in selected.all():
        issues.setdefault(bid_package_id, []).append(f"{count} bids selected")

    return issues


@click.command('check-bid-packages')
@click.option('--package', 'package_id', help='Check a single bid package by ID')
@with_appcontext
def check_bid_packages_command(package_id):
    """Report bid packages whose award state is inconsistent."""
    logger.info(f"Checking bid package awards (package={package_id or 'all'})")
    issues = find_award_issues(package_id)

    if not issues:
        click.echo("All bid packages passed award checks")
        return

    click.echo(f"Found award issues in {len(issues)} bid package(s):")
    for issue_package_id, descriptions in issues.items():
        for description in descriptions:
            click.echo(f"  Bid package {issue_package_id}: {description}")
    logger.warning(f"Award issues found in {len(issues)} bid package(s)")
