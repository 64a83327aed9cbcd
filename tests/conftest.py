import mongomock
import pytest
from fastapi.testclient import TestClient

from auth import create_jwt
from database import USERS, ensure_indexes, get_db
from main import app

ADMIN_EMAIL = "admin@x.com"
USER_EMAIL = "u@x.com"


@pytest.fixture
def db():
    database = mongomock.MongoClient()["luminaStore_test"]
    ensure_indexes(database)
    return database


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_headers():
    def _make(email):
        return {"Authorization": f"Bearer {create_jwt({'email': email})}"}
    return _make


@pytest.fixture
def admin_headers(db, make_headers):
    db[USERS].insert_one({"email": ADMIN_EMAIL, "role": "admin"})
    return make_headers(ADMIN_EMAIL)


@pytest.fixture
def user_headers(db, make_headers):
    db[USERS].insert_one({"email": USER_EMAIL, "role": "user"})
    return make_headers(USER_EMAIL)
