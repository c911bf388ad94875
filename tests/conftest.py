import mongomock
import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from evote.database.connection import ensure_indexes
from evote.dependencies import get_db
from evote.lifecycle import create_election
from evote.main import app
from evote.models.election_model import CandidateIn, ElectionCreate
from evote.models.user_model import Caller, Role
from evote.rate_limit import limiter
from evote.security import create_access_token
from evote.storage_mongo import BallotLedger, ElectionRepository
from evote.timeutils import utcnow


@pytest.fixture
def db():
    database = mongomock.MongoClient().evote_test
    ensure_indexes(database)
    return database


@pytest.fixture
def repo(db):
    return ElectionRepository(db)


@pytest.fixture
def ledger(db):
    return BallotLedger(db)


def make_caller(role, organization_id=None):
    return Caller(id=str(ObjectId()), role=role, organization_id=organization_id)


@pytest.fixture
def manager():
    return make_caller(Role.MANAGER)


@pytest.fixture
def admin():
    return make_caller(Role.ADMIN)


@pytest.fixture
def voter():
    return make_caller(Role.VOTER)


def new_election(repo, caller, names=("A", "B"), title="Budget Vote", end_at=None):
    payload = ElectionCreate(title=title, candidates=[CandidateIn(name=n) for n in names], end_at=end_at)
    return create_election(repo, caller, payload)


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    limiter.reset()
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def account(db):
    """Insert an approved account and return the Authorization header for it."""

    def _account(role, organization_id=None, email=None):
        oid = ObjectId()
        db.users.insert_one(
            {
                "_id": oid,
                "email": email or f"{oid}@evote.org",
                "name": f"{role.value} {oid}",
                "password_hash": "unused",
                "role": role.value,
                "organization_id": organization_id,
                "created_at": utcnow(),
            }
        )
        return {"Authorization": f"Bearer {create_access_token(str(oid))}"}

    return _account
