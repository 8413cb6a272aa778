import os

os.environ.setdefault("ENV", "test")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("PASSWORD_HASH_ITERATIONS", "1000")

from datetime import datetime, timedelta, timezone  # noqa: E402

import mongomock  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from auth import hash_password, issue_token  # noqa: E402
from database import ensure_indexes, get_db  # noqa: E402
from main import app  # noqa: E402

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)

ADDRESS = {
    "street": "12 Temple Road",
    "city": "Chennai",
    "state": "Tamil Nadu",
    "zip_code": "600001",
    "country": "India",
}


@pytest.fixture()
def db():
    database = mongomock.MongoClient().storefront
    ensure_indexes(database)
    return database


@pytest.fixture()
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def make_user(db):
    def _make(name="Shopper", email=None, role="user", password="secret123", is_active=True):
        email = email or f"{name.lower().replace(' ', '.')}@shop.com"
        doc = {
            "name": name,
            "email": email,
            "password_hash": hash_password(password),
            "role": role,
            "is_active": is_active,
            "created_at": BASE_TIME,
            "updated_at": BASE_TIME,
        }
        doc["_id"] = db["user"].insert_one(doc).inserted_id
        return doc, {"Authorization": f"Bearer {issue_token(doc)}"}

    return _make


@pytest.fixture()
def shopper(make_user):
    user, headers = make_user("Shopper", role="user")
    return {"user": user, "headers": headers}


@pytest.fixture()
def other_shopper(make_user):
    user, headers = make_user("Other Shopper", role="user")
    return {"user": user, "headers": headers}


@pytest.fixture()
def admin(make_user):
    user, headers = make_user("Admin", role="admin")
    return {"user": user, "headers": headers}


@pytest.fixture()
def make_category(db):
    def _make(name, description=""):
        doc = {"name": name, "name_key": name.lower(), "description": description, "created_at": BASE_TIME}
        doc["_id"] = db["category"].insert_one(doc).inserted_id
        return doc

    return _make


@pytest.fixture()
def make_product(db):
    counter = {"n": 0}

    def _make(category, name=None, price=100.0, stock=10, description="Homemade goodness", is_active=True):
        counter["n"] += 1
        doc = {
            "name": name or f"Product {counter['n']}",
            "description": description,
            "price": price,
            "stock": stock,
            "image": "/images/placeholder.jpg",
            "category_id": category["_id"],
            "is_active": is_active,
            "created_at": BASE_TIME + timedelta(minutes=counter["n"]),
            "updated_at": BASE_TIME + timedelta(minutes=counter["n"]),
        }
        doc["_id"] = db["product"].insert_one(doc).inserted_id
        return doc

    return _make


@pytest.fixture()
def masala(make_category):
    return make_category("Masala Items", "Traditional spice blends")


@pytest.fixture()
def dairy(make_category):
    return make_category("Milk Products", "Fresh dairy")
