import os
import tempfile
import uuid
from datetime import date, timedelta

_db_dir = tempfile.mkdtemp(prefix="evm_dealer_tests_")
os.environ["SQLITE_DATABASE_URI"] = f"sqlite:///{os.path.join(_db_dir, 'test.db')}"
os.environ["QUOTATION_EXPIRE_JOB_ENABLED"] = "false"
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ["LOG_TO_FILE"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from evm_dealer.core.config import settings
from evm_dealer.core.deps import get_db
from evm_dealer.db.session import async_database_uri
from evm_dealer.main import app

API = settings.API_V1_STR
PASSWORD = "secret123"

test_engine = create_async_engine(async_database_uri(settings.SQLITE_DATABASE_URI), poolclass=NullPool)
TestSession = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


async def override_get_db():
    async with TestSession() as session:
        yield session


@pytest.fixture
async def db(client):
    """Session on the test database for driving services directly"""
    async with TestSession() as session:
        yield session


def unique(prefix: str = "") -> str:
    return f"{prefix}{uuid.uuid4().hex[:10]}"


def bearer(client: TestClient, username: str, password: str) -> dict:
    response = client.post(f"{API}/auth/login", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture(scope="session")
def client():
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture(scope="session")
def admin_headers(client):
    return bearer(client, settings.FIRST_ADMIN_USERNAME, settings.FIRST_ADMIN_PASSWORD)


@pytest.fixture(scope="session")
def brand(client, admin_headers):
    response = client.post(f"{API}/brands/", json={"brand_name": unique("Brand ")}, headers=admin_headers)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture(scope="session")
def make_dealer(client, admin_headers, brand):
    def _make(**overrides):
        payload = {
            "dealer_name": unique("Dealer "),
            "address": "12 Charging Street",
            "brand_id": brand["id"],
        }
        payload.update(overrides)
        response = client.post(f"{API}/dealers/", json=payload, headers=admin_headers)
        assert response.status_code == 201, response.text
        return response.json()
    return _make


@pytest.fixture(scope="session")
def dealer(make_dealer):
    return make_dealer()


@pytest.fixture(scope="session")
def make_user(client, admin_headers, dealer):
    """Create a user with the given role and return (user, auth headers)"""
    def _make(role_name, dealer_id=dealer["id"], **overrides):
        username = unique(role_name.lower()[:8] + "_")
        payload = {
            "username": username,
            "password": PASSWORD,
            "role_name": role_name,
            "full_name": f"{role_name.title()} {username[-4:]}",
            "dealer_id": dealer_id,
        }
        payload.update(overrides)
        response = client.post(f"{API}/users/", json=payload, headers=admin_headers)
        assert response.status_code == 201, response.text
        return response.json(), bearer(client, username, PASSWORD)
    return _make


@pytest.fixture(scope="session")
def sales_person(make_user):
    return make_user("SALES_PERSON")


@pytest.fixture(scope="session")
def sales_headers(sales_person):
    return sales_person[1]


@pytest.fixture(scope="session")
def brand_manager_headers(make_user, brand):
    return make_user("BRAND_MANAGER", dealer_id=None, brand_id=brand["id"])[1]


@pytest.fixture(scope="session")
def dealer_manager_headers(make_user):
    return make_user("DEALER_MANAGER")[1]


@pytest.fixture(scope="session")
def warehouse_headers(make_user):
    return make_user("WAREHOUSE_STAFF", dealer_id=None)[1]


@pytest.fixture(scope="session")
def support_headers(make_user):
    return make_user("SUPPORT_STAFF")[1]


@pytest.fixture(scope="session")
def customer_role_headers(make_user):
    return make_user("CUSTOMER", dealer_id=None)[1]


@pytest.fixture
def make_product(client, admin_headers, brand):
    def _make(msrp=1000000, **overrides):
        payload = {
            "product_name": unique("Model "),
            "version": "Standard",
            "msrp": msrp,
            "brand_id": brand["id"],
            "technical_specs": {"battery_capacity": "60 kWh", "product_range": "420 km"},
            "variants": [{"color": "White", "available_quantity": 3}],
        }
        payload.update(overrides)
        response = client.post(f"{API}/products/", json=payload, headers=admin_headers)
        assert response.status_code == 201, response.text
        return response.json()
    return _make


@pytest.fixture
def product(make_product):
    return make_product()


@pytest.fixture
def make_vehicle(client, admin_headers, dealer):
    def _make(product_id, dealer_id=dealer["id"], **overrides):
        payload = {
            "id": unique("VH-"),
            "vin": unique("VIN").upper(),
            "color": "White",
            "product_id": product_id,
            "dealer_id": dealer_id,
        }
        payload.update(overrides)
        response = client.post(f"{API}/vehicles/", json=payload, headers=admin_headers)
        assert response.status_code == 201, response.text
        return response.json()
    return _make


@pytest.fixture
def make_customer(client, admin_headers):
    def _make(**overrides):
        payload = {
            "full_name": unique("Customer "),
            "phone_number": "09" + str(uuid.uuid4().int)[:8],
        }
        payload.update(overrides)
        response = client.post(f"{API}/customers/", json=payload, headers=admin_headers)
        assert response.status_code == 201, response.text
        return response.json()
    return _make


@pytest.fixture
def customer(make_customer):
    return make_customer()


@pytest.fixture
def make_promotion(client, admin_headers):
    def _make(discount_type="PERCENTAGE", discount_value=10, **overrides):
        today = date.today()
        payload = {
            "promotion_code": unique("PROMO").upper(),
            "promotion_name": "Launch offer",
            "discount_type": discount_type,
            "discount_value": discount_value,
            "start_date": (today - timedelta(days=5)).isoformat(),
            "end_date": (today + timedelta(days=25)).isoformat(),
        }
        payload.update(overrides)
        response = client.post(f"{API}/promotions/", json=payload, headers=admin_headers)
        assert response.status_code == 201, response.text
        return response.json()
    return _make


@pytest.fixture
def make_order(client, sales_headers):
    def _make(customer_id, **overrides):
        payload = {"customer_id": customer_id}
        payload.update(overrides)
        response = client.post(f"{API}/sales-orders/", json=payload, headers=sales_headers)
        assert response.status_code == 201, response.text
        return response.json()
    return _make
