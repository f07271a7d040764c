import mongomock
import pytest
from fastapi.testclient import TestClient

import database
import main


@pytest.fixture
def mongo(monkeypatch):
    test_db = mongomock.MongoClient(tz_aware=True)["canteen_test"]
    monkeypatch.setattr(database, "db", test_db)
    monkeypatch.setattr(main, "db", test_db)
    return test_db


@pytest.fixture
def client(mongo):
    with TestClient(main.app) as c:
        yield c


def login(client, password, email=None, college_id=None):
    res = client.post("/api/auth/login", json={"email": email, "college_id": college_id, "password": password})
    assert res.status_code == 200, res.json()
    return {"Authorization": f"Bearer {res.json()['token']}"}


def register(client, name, email, college_id, role="student", password="secret123"):
    res = client.post("/api/auth/register", json={
        "name": name,
        "email": email,
        "college_id": college_id,
        "password": password,
        "phone": "9123456789",
        "department": "CSE",
        "role": role,
    })
    assert res.status_code == 201, res.json()
    return res.json()["data"]


@pytest.fixture
def admin_headers(client):
    return login(client, main.ADMIN_PASSWORD, email=main.ADMIN_EMAIL)


@pytest.fixture
def make_student(client, admin_headers):
    def _make(name="Raj Kumar", email="raj@student.com", college_id="STU001"):
        profile = register(client, name, email, college_id)
        res = client.put(f"/api/admin/users/{profile['id']}/approve", headers=admin_headers)
        assert res.status_code == 200
        return login(client, "secret123", email=email)
    return _make


@pytest.fixture
def student_headers(make_student):
    return make_student()


@pytest.fixture
def make_food(client, admin_headers):
    def _make(name="Samosa", price=20, quantity_total=10, category="snacks"):
        res = client.post("/api/food", headers=admin_headers, json={
            "name": name,
            "description": f"Fresh {name.lower()}",
            "price": price,
            "category": category,
            "quantity_total": quantity_total,
        })
        assert res.status_code == 201, res.json()
        return res.json()["data"]
    return _make


@pytest.fixture
def place_order(client):
    def _place(headers, *lines):
        return client.post("/api/orders", headers=headers, json={
            "items": [{"food_item_id": food_id, "quantity": qty} for food_id, qty in lines],
            "payment_method": "cash",
            "pickup_time": "2026-10-19T12:30:00+00:00",
        })
    return _place
