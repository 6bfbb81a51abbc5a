"""Pytest configuration and fixtures for SiteSense tests."""
import pytest
import tempfile
import os
from datetime import date, datetime, timedelta
from backend.app import create_app
from backend.models import db, User, Job, Subcontractor
from shared.models import APP_TIMEZONE

FIXED_NOW = datetime(2025, 6, 2, 12, 0, tzinfo=APP_TIMEZONE)


class FakeClock:
    """Injectable clock that only moves when a test advances it."""

    def __init__(self, start=FIXED_NOW):
        self.current = start

    def __call__(self):
        return self.current

    def advance(self, **kwargs):
        self.current = self.current + timedelta(**kwargs)
        return self.current


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def app(clock, tmp_path, monkeypatch):
    """Create and configure a test app instance."""
    monkeypatch.setenv('LOG_DIR', str(tmp_path / 'logs'))
    # Create temporary database for testing
    db_fd, db_path = tempfile.mkstemp()

    test_config = {
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f'sqlite:///{db_path}',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'CLOCK': clock,
    }

    app = create_app(test_config)

    with app.app_context():
        db.create_all()

    yield app

    # Cleanup
    with app.app_context():
        db.session.remove()
        db.engine.dispose()
    os.close(db_fd)
    os.unlink(db_path)


@pytest.fixture
def client(app):
    """A test client for the app."""
    return app.test_client()


@pytest.fixture
def runner(app):
    """A test runner for the app's Click commands."""
    return app.test_cli_runner()


@pytest.fixture
def user_id(app):
    with app.app_context():
        user = User(email='estimator@example.com', full_name='Pat Estimator')
        db.session.add(user)
        db.session.commit()
        return user.id


@pytest.fixture
def job_id(app, user_id):
    with app.app_context():
        job = Job(user_id=user_id, name='Riverside Clinic Fit-Out', client_name='Riverside Health')
        db.session.add(job)
        db.session.commit()
        return job.id


@pytest.fixture
def make_subcontractor(app, user_id):
    """Factory creating a subcontractor row and returning its ID.

    Defaults describe a fully compliant bidder.
    """
    def _make(company_name='Acme Electric', **overrides):
        fields = {
            'user_id': user_id,
            'company_name': company_name,
            'primary_trade': 'Electrical',
            'license_verified': True,
            'coi_on_file': True,
            'w9_on_file': True,
            'insurance_expiry': date(2026, 1, 1),
            'license_expiry': date(2026, 1, 1),
            'workers_comp_expiry': date(2026, 1, 1),
        }
        fields.update(overrides)
        with app.app_context():
            sub = Subcontractor(**fields)
            db.session.add(sub)
            db.session.commit()
            return sub.id

    return _make


@pytest.fixture
def create_package(client, user_id, job_id):
    """Create a bid package through the API and return its JSON data."""
    def _create(name='Electrical Rough-In', **extra):
        payload = {'user_id': user_id, 'job_id': job_id, 'name': name}
        payload.update(extra)
        response = client.post('/api/bid-packages', json=payload)
        assert response.status_code == 201, response.get_json()
        return response.get_json()['data']

    return _create
