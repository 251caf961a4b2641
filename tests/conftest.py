import os

# Must be set before campusvote is imported: the engine and limiter are built at import time.
os.environ['DATABASE_URL'] = 'sqlite:///:memory:'
os.environ['RATELIMIT_ENABLED'] = 'false'
os.environ.pop('GEMINI_API_KEY', None)

import pytest

from campusvote.election.models import VoterIdentity
from campusvote.election.state_machine import Election
from campusvote.storage.kv_store import MemoryKeyValueStore
from campusvote.storage.stores import BallotStore, CandidateStore


@pytest.fixture
def kv():
    return MemoryKeyValueStore()


@pytest.fixture
def voter():
    return VoterIdentity(
        name='Test Student',
        roll_number='R23CS001',
        student_id='R23CS001',
        email='test.student@reva.edu.in',
        phone='9876543210',
    )


@pytest.fixture
def other_voter():
    return VoterIdentity(
        name='Meera Rao',
        roll_number='R24ME055',
        student_id='R24ME055',
        email='meera.rao@reva.edu.in',
        phone='9123456780',
    )


@pytest.fixture
def make_election(kv):
    """Build elections that share one backing store, like two sessions on one device."""
    def _make(identity=None):
        election = Election(CandidateStore(kv), BallotStore(kv))
        if identity is not None:
            election.initialize(identity)
        return election
    return _make


@pytest.fixture
def election(make_election, voter):
    return make_election(voter)


@pytest.fixture
def app():
    from campusvote import app, db
    app.config['TESTING'] = True
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client
