from datetime import datetime

import mongomock
import pytest
from fastapi.testclient import TestClient

from auth import Identity, hash_password, token_for
from database import ensure_indexes, get_db
from main import app
from payments import FakeGateway, set_gateway


@pytest.fixture()
def db():
    database = mongomock.MongoClient()["store_test"]
    ensure_indexes(database)
    return database


@pytest.fixture(autouse=True)
def gateway():
    fake = FakeGateway()
    set_gateway(fake)
    yield fake
    set_gateway(None)


@pytest.fixture()
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


def _insert_user(db, name, email, password="secret123", is_admin=False):
    res = db["user"].insert_one({
        "name": name,
        "email": email,
        "password_hash": hash_password(password),
        "is_admin": is_admin,
    })
    return db["user"].find_one({"_id": res.inserted_id})


@pytest.fixture()
def customer(db):
    return _insert_user(db, "Asha Rao", "asha@mail.com")


@pytest.fixture()
def other_customer(db):
    return _insert_user(db, "Vikram Shah", "vikram@mail.com")


@pytest.fixture()
def admin(db):
    return _insert_user(db, "Admin", "admin@mail.com", password="admin123", is_admin=True)


def _identity(user):
    return Identity(id=str(user["_id"]), name=user["name"], email=user["email"], is_admin=user["is_admin"])


@pytest.fixture()
def identity(customer):
    return _identity(customer)


@pytest.fixture()
def admin_identity(admin):
    return _identity(admin)


@pytest.fixture()
def auth_headers(customer):
    return {"Authorization": f"Bearer {token_for(customer)}"}


@pytest.fixture()
def admin_headers(admin):
    return {"Authorization": f"Bearer {token_for(admin)}"}


@pytest.fixture()
def checkout_payload():
    return {
        "customer_info": {"full_name": "Asha Rao", "email": "asha@mail.com", "phone": "9876543210"},
        "shipping_address": {
            "full_name": "Asha Rao",
            "address_line1": "12 MG Road",
            "address_line2": "Flat 4B",
            "city": "Bengaluru",
            "state": "Karnataka",
            "zip_code": "560001",
            "phone_number": "9876543210",
        },
        "payment_method": "cash-on-delivery",
        "items": [
            {
                "product_id": "prod-001",
                "product_name": "ThinkPad X1 Carbon",
                "product_price": 119999,
                "product_image": "https://img.example.com/x1.jpg",
                "quantity": 1,
            }
        ],
        "subtotal": 119999,
        "shipping": 0,
        "grand_total": 119999,
    }


@pytest.fixture()
def make_order(db):
    """Insert an order document directly, bypassing checkout."""
    counter = {"n": 0}

    def _make(user_id="user-1", status="pending", grand_total=1000.0, payment_method="upi",
              order_date=None, full_name="Asha Rao", email="asha@mail.com"):
        counter["n"] += 1
        doc = {
            "order_id": f"ORD-1700000000000-TEST{counter['n']:04d}",
            "user_id": user_id,
            "order_date": order_date or datetime(2024, 5, 1, 12, 0, 0),
            "customer_info": {"full_name": full_name, "email": email, "phone": "9876543210"},
            "shipping_address": {
                "full_name": full_name,
                "address_line1": "12 MG Road",
                "city": "Bengaluru",
                "state": "Karnataka",
                "zip_code": "560001",
                "phone_number": "9876543210",
            },
            "payment_method": payment_method,
            "items": [{"product_id": "prod-001", "product_name": "Laptop", "product_price": grand_total, "quantity": 1}],
            "subtotal": grand_total,
            "shipping": 0,
            "grand_total": grand_total,
            "status": status,
        }
        db["order"].insert_one(doc)
        return doc

    return _make
