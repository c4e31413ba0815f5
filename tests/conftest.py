import mongomock
import pytest
from fastapi.testclient import TestClient

from koodi_api.config import Settings
from koodi_api.db import Store
from koodi_api.main import create_app


@pytest.fixture
def settings():
    return Settings(mongodb_uri="mongodb://localhost:27017/koodi_test")


@pytest.fixture
def store():
    """In-memory database standing in for MongoDB."""
    return Store(mongomock.MongoClient()["koodi_test"])


@pytest.fixture
def app(settings, store):
    return create_app(settings, store=store)


@pytest.fixture
def client(app):
    # context manager runs the lifespan, which creates the unique indexes
    with TestClient(app) as c:
        yield c


@pytest.fixture
def new_user():
    return {
        "name": "Amina K",
        "email": "amina@example.com",
        "phone": "+256700000001",
        "password": "s3cret",
    }


@pytest.fixture
def new_order():
    return {
        "customerName": "Amina K",
        "customerPhone": "+256700000001",
        "items": [
            {"name": "Rolex", "quantity": 2, "price": 5000},
            {"name": "Passion Juice", "quantity": 1, "price": 3000},
        ],
        "total": 13000,
    }
