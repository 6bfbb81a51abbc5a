"""Tests for Flask CLI commands."""
from backend.models import db, BidPackage, SubcontractorBid, BidStatus, BidPackageStatus


def test_init_db_command(runner):
    result = runner.invoke(args=['init-db'])
    assert result.exit_code == 0
    assert 'Initialized the database.' in result.output


def test_check_bid_packages_clean(runner, client, create_package, make_subcontractor):
    package = create_package()
    sub_id = make_subcontractor()
    bid = client.post(
        f"/api/bid-packages/{package['id']}/bids", json={'subcontractor_id': sub_id, 'base_bid': 1000}
    ).get_json()['data']
    client.put(f"/api/bid-packages/{package['id']}/bids", json={'bid_id': bid['id'], 'status': 'selected'})

    result = runner.invoke(args=['check-bid-packages'])
    assert result.exit_code == 0
    assert 'All bid packages passed award checks' in result.output


def test_check_bid_packages_reports_issues(runner, app, create_package, make_subcontractor):
    broken = create_package('Partially Awarded')
    doubled = create_package('Double Selected')
    sub_a = make_subcontractor('Acme Electric')
    sub_b = make_subcontractor('Bolt Electric')

    with app.app_context():
        db.session.get(BidPackage, broken['id']).awarded_to = sub_a
        for sub_id in (sub_a, sub_b):
            db.session.add(SubcontractorBid(
                bid_package_id=doubled['id'], subcontractor_id=sub_id, base_bid=1000, status=BidStatus.SELECTED,
            ))
        db.session.commit()

    result = runner.invoke(args=['check-bid-packages'])
    assert result.exit_code == 0
    assert 'Found award issues in 2 bid package(s)' in result.output
    assert f"Bid package {broken['id']}: award fields partially set: awarded_to set" in result.output
    assert f"Bid package {doubled['id']}: 2 bids selected" in result.output

    result = runner.invoke(args=['check-bid-packages', '--package', doubled['id']])
    assert 'Found award issues in 1 bid package(s)' in result.output
    assert broken['id'] not in result.output


def test_check_bid_packages_reports_status_mismatch(runner, app, create_package, make_subcontractor, clock):
    reverted = create_package('Reverted Award')
    empty = create_package('Empty Award')
    sub_id = make_subcontractor()

    with app.app_context():
        package = db.session.get(BidPackage, reverted['id'])
        package.awarded_to = sub_id
        package.awarded_amount = 1000
        package.awarded_at = clock()
        db.session.get(BidPackage, empty['id']).status = BidPackageStatus.AWARDED
        db.session.commit()

    result = runner.invoke(args=['check-bid-packages'])
    assert f"Bid package {reverted['id']}: status is draft but award fields are set" in result.output
    assert f"Bid package {empty['id']}: status is awarded but award fields are empty" in result.output
