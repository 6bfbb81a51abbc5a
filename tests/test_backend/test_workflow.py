"""End-to-end bid package workflow: create, invite, bid, award, report, delete."""
from datetime import date


def test_bid_package_award_workflow(client, user_id, job_id, make_subcontractor, clock):
    subs = {
        'Acme Electric': make_subcontractor('Acme Electric'),
        'Bolt Electric': make_subcontractor('Bolt Electric', w9_on_file=False),
        'Current Electric': make_subcontractor('Current Electric', insurance_expiry=date(2025, 6, 20)),
    }

    # Draft
    response = client.post('/api/bid-packages', json={
        'user_id': user_id,
        'job_id': job_id,
        'name': 'Electrical Rough-In',
        'csi_division': '26',
        'bid_due_date': '2025-06-16',
    })
    package = response.get_json()['data']
    assert package['package_number'] == 'BP-001'
    assert package['status'] == 'draft'

    # Invite all three, one of them twice
    clock.advance(hours=1)
    response = client.post(
        f"/api/bid-packages/{package['id']}/invites",
        json={'subcontractor_ids': list(subs.values()) + [subs['Acme Electric']]},
    )
    assert response.get_json()['data']['invites_created'] == 3
    assert client.get(f"/api/bid-packages/{package['id']}").get_json()['data']['status'] == 'open'

    # Bids arrive
    amounts = {'Acme Electric': 52000, 'Bolt Electric': 48000, 'Current Electric': 61000}
    bid_ids = {}
    for name, amount in amounts.items():
        clock.advance(days=1)
        response = client.post(
            f"/api/bid-packages/{package['id']}/bids",
            json={'subcontractor_id': subs[name], 'base_bid': amount},
        )
        assert response.status_code == 201
        bid_ids[name] = response.get_json()['data']['id']

    bids = client.get(f"/api/bid-packages/{package['id']}/bids").get_json()['data']
    assert [b['company_name'] for b in bids] == ['Bolt Electric', 'Acme Electric', 'Current Electric']
    assert {b['company_name']: b['compliance_verified'] for b in bids} == {
        'Bolt Electric': False,
        'Acme Electric': True,
        'Current Electric': True,
    }

    invites = client.get(f"/api/bid-packages/{package['id']}/invites").get_json()['data']
    assert {i['status'] for i in invites} == {'submitted'}

    listing = client.get(f'/api/bid-packages?user_id={user_id}').get_json()['data']
    assert listing[0]['status'] == 'reviewing'
    assert listing[0]['invite_count'] == 3
    assert listing[0]['bid_count'] == 3

    # Award the compliant low bidder
    clock.advance(days=1)
    response = client.put(
        f"/api/bid-packages/{package['id']}/bids",
        json={'bid_id': bid_ids['Acme Electric'], 'status': 'selected', 'score': 92},
    )
    assert response.status_code == 200

    package = client.get(f"/api/bid-packages/{package['id']}").get_json()['data']
    assert package['status'] == 'awarded'
    assert package['awarded_to'] == subs['Acme Electric']
    assert package['awarded_amount'] == 52000
    assert package['awarded_at'] == '2025-06-06T13:00:00'

    bids = {b['company_name']: b for b in client.get(f"/api/bid-packages/{package['id']}/bids").get_json()['data']}
    assert bids['Acme Electric']['status'] == 'selected'
    assert bids['Acme Electric']['score'] == 92
    assert bids['Bolt Electric']['status'] == 'rejected'
    assert bids['Current Electric']['status'] == 'rejected'

    # Compliance report reflects live expiry state, not the bid snapshot
    report = client.get(f'/api/reports/subcontractors?user_id={user_id}').get_json()['data']
    scores = {item['company_name']: item['overall_score'] for item in report['compliance_items']}
    assert scores == {'Acme Electric': 100, 'Bolt Electric': 88, 'Current Electric': 90}
    assert report['summary']['fully_compliant'] == 1
    assert report['summary']['expiring_soon'] == 1

    # Clean up
    response = client.delete(f"/api/bid-packages?id={package['id']}")
    assert response.get_json()['data']['summary'] == {'rfis': 0, 'bids': 3, 'invites': 3, 'bid_packages': 1}
    assert client.get(f'/api/bid-packages?user_id={user_id}').get_json()['data'] == []
