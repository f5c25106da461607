import os
import tempfile

# Must be set before the application modules are imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["ADMIN_PASSWORD"] = "admin123"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="candleshop-uploads-")

from decimal import Decimal

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from candleshop.database import Base, get_db
from candleshop.main import app
from candleshop.models.product import Product
from candleshop.seed import seed
from candleshop.storefront.api import ShopApiClient

engine = create_engine(
    "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db

# Seeded ids, see candleshop.seed
JAR_ID = 1          # scents Lavender (1) and Vanilla (2), price 14.90, stock 25
PILLAR_ID = 2       # color White (1), price 9.50, stock 40
LAVENDER_ID = 1
VANILLA_ID = 2
SANDALWOOD_ID = 3
WHITE_ID = 1
IVORY_ID = 2

CUSTOMER = {"username": "jane", "email": "jane@example.com", "password": "secret123"}
OTHER_CUSTOMER = {"username": "mark", "email": "mark@example.com", "password": "secret456"}


@pytest.fixture(autouse=True)
def db_session():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    seed(db)
    yield db
    db.close()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


def login(client, username, password):
    response = client.post("/api/login", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


def register(client, user):
    response = client.post("/api/register", json=user)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def admin_headers(client):
    return login(client, "admin", "admin123")


@pytest.fixture
def customer_headers(client):
    register(client, CUSTOMER)
    return login(client, CUSTOMER["username"], CUSTOMER["password"])


@pytest.fixture
def other_headers(client):
    register(client, OTHER_CUSTOMER)
    return login(client, OTHER_CUSTOMER["username"], OTHER_CUSTOMER["password"])


@pytest.fixture
def customer_token(customer_headers):
    return customer_headers["Authorization"].split(" ", 1)[1]


@pytest.fixture
def admin_token(admin_headers):
    return admin_headers["Authorization"].split(" ", 1)[1]


@pytest.fixture
def plain_product(db_session):
    """A product without any scent or color choices."""
    product = Product(name="Tea light set", description="Twelve unscented tea lights",
                      price=Decimal("4.99"), stock=3, category_id=3)
    db_session.add(product)
    db_session.commit()
    db_session.refresh(product)
    return product


def set_product(db_session, product_id, **values):
    db_session.expire_all()
    product = db_session.get(Product, product_id)
    for key, value in values.items():
        setattr(product, key, value)
    db_session.commit()


def make_api(token=None) -> ShopApiClient:
    return ShopApiClient(
        base_url="http://testserver", token=token, transport=httpx.ASGITransport(app=app)
    )


CHECKOUT_DATA = {
    "payment_method": "bank_transfer",
    "shipping_address": "Main street 1",
    "shipping_city": "Berlin",
    "shipping_postal_code": "10115",
    "shipping_country": "Germany",
}
