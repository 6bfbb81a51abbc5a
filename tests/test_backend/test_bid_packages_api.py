"""Tests for the bid package endpoints."""
from backend.models import db, BidPackage, BidPackageInvite, SubcontractorBid, BidRFI


def test_create_numbers_packages_per_job(client, create_package, clock):
    first = create_package('Electrical Rough-In')
    clock.advance(minutes=1)
    second = create_package('Plumbing')

    assert first['package_number'] == 'BP-001'
    assert second['package_number'] == 'BP-002'
    assert first['status'] == 'draft'
    assert first['attachments'] == []
    assert first['awarded_to'] is None


def test_create_keeps_explicit_package_number(create_package):
    package = create_package('Sitework', package_number='SW-7')
    assert package['package_number'] == 'SW-7'


def test_create_requires_fields(client, user_id):
    response = client.post('/api/bid-packages', json={'user_id': user_id})
    assert response.status_code == 400
    body = response.get_json()
    assert body['success'] is False
    assert body['error'] == 'job_id and name are required'

    response = client.post('/api/bid-packages', json={})
    assert response.get_json()['error'] == 'user_id, job_id, and name are required'


def test_create_rejects_unknown_job(client, user_id):
    response = client.post('/api/bid-packages', json={'user_id': user_id, 'job_id': 'nope', 'name': 'Paint'})
    assert response.status_code == 400
    assert 'does not exist' in response.get_json()['error']


def test_create_rejects_non_json_body(client):
    response = client.post('/api/bid-packages', data='not json', content_type='text/plain')
    assert response.status_code == 400
    assert response.get_json()['success'] is False


def test_list_requires_user_id(client):
    response = client.get('/api/bid-packages')
    assert response.status_code == 400
    assert response.get_json()['error'] == 'User ID is required'


def test_list_newest_first_with_counts(client, user_id, create_package, make_subcontractor, clock):
    older = create_package('Electrical Rough-In')
    clock.advance(hours=1)
    newer = create_package('Plumbing')

    sub_a = make_subcontractor('Acme Electric')
    sub_b = make_subcontractor('Bolt Electric')
    client.post(f"/api/bid-packages/{older['id']}/invites", json={'subcontractor_ids': [sub_a, sub_b]})
    client.post(f"/api/bid-packages/{older['id']}/bids", json={'subcontractor_id': sub_a, 'base_bid': 42000})

    response = client.get(f'/api/bid-packages?user_id={user_id}')
    assert response.status_code == 200
    data = response.get_json()['data']

    assert [p['id'] for p in data] == [newer['id'], older['id']]
    assert data[0]['invite_count'] == 0
    assert data[0]['bid_count'] == 0
    assert data[1]['invite_count'] == 2
    assert data[1]['bid_count'] == 1
    assert data[1]['job_name'] == 'Riverside Clinic Fit-Out'
    assert data[1]['awarded_to_name'] is None


def test_list_filters(client, user_id, job_id, create_package, make_subcontractor):
    draft = create_package('Drywall')
    opened = create_package('Paint')
    client.post(f"/api/bid-packages/{opened['id']}/invites", json={'subcontractor_ids': [make_subcontractor()]})

    response = client.get(f'/api/bid-packages?user_id={user_id}&status=open')
    assert [p['id'] for p in response.get_json()['data']] == [opened['id']]

    response = client.get(f'/api/bid-packages?user_id={user_id}&job_id={job_id}&status=draft')
    assert [p['id'] for p in response.get_json()['data']] == [draft['id']]

    response = client.get(f'/api/bid-packages?user_id={user_id}&job_id=other-job')
    assert response.get_json()['data'] == []

    response = client.get(f'/api/bid-packages?user_id=someone-else')
    assert response.get_json()['data'] == []

    response = client.get(f'/api/bid-packages?user_id={user_id}&status=closed')
    assert response.status_code == 400


def test_get_single_package(client, create_package):
    package = create_package()
    response = client.get(f"/api/bid-packages/{package['id']}")
    assert response.status_code == 200
    assert response.get_json()['data']['name'] == 'Electrical Rough-In'

    response = client.get('/api/bid-packages/missing')
    assert response.status_code == 404
    assert response.get_json() == {'success': False, 'error': 'Bid package not found'}


def test_update_applies_sent_fields_and_bumps_updated_at(client, create_package, clock):
    package = create_package(notes='Original notes')
    clock.advance(days=1)

    response = client.put('/api/bid-packages', json={
        'id': package['id'],
        'name': 'Electrical Rough-In and Trim',
        'budget_estimate': 85000,
    })
    assert response.status_code == 200
    data = response.get_json()['data']
    assert data['name'] == 'Electrical Rough-In and Trim'
    assert data['budget_estimate'] == 85000
    assert data['notes'] == 'Original notes'
    assert data['updated_at'] > package['updated_at']


def test_update_validation(client, create_package):
    package = create_package()

    response = client.put('/api/bid-packages', json={'name': 'x'})
    assert response.get_json()['error'] == 'Bid package ID is required'

    response = client.put('/api/bid-packages', json={'id': package['id']})
    assert response.get_json()['error'] == 'No valid fields to update'

    response = client.put('/api/bid-packages', json={'id': package['id'], 'status': 'closed'})
    assert response.status_code == 400

    response = client.put('/api/bid-packages', json={'id': package['id'], 'awarded_to': 'someone'})
    assert response.status_code == 400
    assert 'must be updated together' in response.get_json()['error']


def test_update_ignores_unknown_fields(client, create_package):
    package = create_package()
    response = client.put('/api/bid-packages', json={'id': package['id'], 'user_id': 'hijack'})
    assert response.get_json()['error'] == 'No valid fields to update'


def test_update_missing_package_is_noop(client):
    response = client.put('/api/bid-packages', json={'id': 'missing', 'name': 'Paint'})
    assert response.status_code == 200
    assert response.get_json() == {'success': True, 'data': None}


def test_delete_cascades(client, app, create_package, make_subcontractor):
    package = create_package()
    keep = create_package('Keep Me')
    sub_id = make_subcontractor()

    client.post(f"/api/bid-packages/{package['id']}/invites", json={'subcontractor_ids': [sub_id]})
    client.post(f"/api/bid-packages/{package['id']}/bids", json={'subcontractor_id': sub_id, 'base_bid': 1000})
    client.post(f"/api/bid-packages/{package['id']}/rfis", json={'question': 'Who supplies fixtures?'})
    client.post(f"/api/bid-packages/{keep['id']}/invites", json={'subcontractor_ids': [sub_id]})

    response = client.delete(f"/api/bid-packages?id={package['id']}")
    assert response.status_code == 200
    body = response.get_json()
    assert body['message'] == 'Bid package deleted'
    assert body['data']['summary'] == {'rfis': 1, 'bids': 1, 'invites': 1, 'bid_packages': 1}

    with app.app_context():
        assert db.session.get(BidPackage, package['id']) is None
        assert BidPackageInvite.query.filter_by(bid_package_id=package['id']).count() == 0
        assert SubcontractorBid.query.filter_by(bid_package_id=package['id']).count() == 0
        assert BidRFI.query.filter_by(bid_package_id=package['id']).count() == 0
        assert BidPackageInvite.query.filter_by(bid_package_id=keep['id']).count() == 1


def test_delete_requires_id(client):
    response = client.delete('/api/bid-packages')
    assert response.status_code == 400
    assert response.get_json()['error'] == 'Bid package ID is required'


def test_rfis(client, create_package, make_subcontractor, clock):
    package = create_package()
    sub_id = make_subcontractor()

    response = client.post(f"/api/bid-packages/{package['id']}/rfis", json={})
    assert response.status_code == 400
    assert response.get_json()['error'] == 'question is required'

    response = client.post(
        f"/api/bid-packages/{package['id']}/rfis",
        json={'question': 'Is temporary power in scope?', 'subcontractor_id': sub_id},
    )
    assert response.status_code == 201
    first = response.get_json()['data']
    assert first['status'] == 'open'
    assert first['subcontractor_id'] == sub_id

    clock.advance(minutes=5)
    client.post(f"/api/bid-packages/{package['id']}/rfis", json={'question': 'Any as-built drawings?'})

    response = client.get(f"/api/bid-packages/{package['id']}/rfis")
    questions = [r['question'] for r in response.get_json()['data']]
    assert questions == ['Any as-built drawings?', 'Is temporary power in scope?']

    response = client.post('/api/bid-packages/missing/rfis', json={'question': 'Hello?'})
    assert response.status_code == 404


def test_awarded_package_cannot_leave_awarded(client, create_package, make_subcontractor):
    package = create_package()
    sub_id = make_subcontractor()
    client.post(f"/api/bid-packages/{package['id']}/invites", json={'subcontractor_ids': [sub_id]})
    bid = client.post(
        f"/api/bid-packages/{package['id']}/bids", json={'subcontractor_id': sub_id, 'base_bid': 1000}
    ).get_json()['data']
    client.put(f"/api/bid-packages/{package['id']}/bids", json={'bid_id': bid['id'], 'status': 'selected'})

    response = client.put('/api/bid-packages', json={'id': package['id'], 'status': 'draft'})
    assert response.status_code == 400
    assert 'cannot change to draft' in response.get_json()['error']

    response = client.put('/api/bid-packages', json={
        'id': package['id'], 'awarded_to': None, 'awarded_amount': None, 'awarded_at': None,
    })
    assert response.status_code == 400
    assert 'cannot be cleared' in response.get_json()['error']

    response = client.put('/api/bid-packages', json={'id': package['id'], 'status': 'awarded', 'notes': 'Signed'})
    assert response.status_code == 200

    data = client.get(f"/api/bid-packages/{package['id']}").get_json()['data']
    assert data['status'] == 'awarded'
    assert data['awarded_to'] == sub_id
    assert data['awarded_amount'] == 1000
    assert data['notes'] == 'Signed'


def test_direct_status_edit_before_award(client, create_package):
    package = create_package()
    response = client.put('/api/bid-packages', json={'id': package['id'], 'status': 'open'})
    assert response.status_code == 200
    assert response.get_json()['data']['status'] == 'open'
