"""Shared fixtures: in-memory database, authenticated clients, sample data."""

import os
import time

from cryptography.fernet import Fernet

# Configuration is read at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["AUTH_JWT_SECRET"] = "test-jwt-secret"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["ADMIN_EMAILS"] = "admin@example.com"
os.environ["SETTINGS_ENCRYPTION_KEY"] = Fernet.generate_key().decode()
os.environ["WEBHOOK_SIGNING_SECRET"] = "whsec-test"
os.environ["PUBLIC_API_URL"] = "https://api.example.com"
os.environ["FRONTEND_URL"] = "https://app.example.com"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"
os.environ.pop("CARDCOM_TERMINAL_NUMBER", None)
os.environ.pop("GO_HIGH_LEVEL_API_KEY", None)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from jose import jwt  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from backoffice import jobs  # noqa: E402
from backoffice.database import Base, get_db  # noqa: E402
from backoffice.main import app  # noqa: E402
from backoffice.models import (  # noqa: E402
    Business,
    BusinessSettings,
    BusinessStaff,
    Customer,
    CustomerOrder,
    OrderItem,
    Product,
    TeamMember,
    User,
)
from backoffice.rate_limiter import cardcom_webhook_limiter, payment_callback_limiter  # noqa: E402

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def make_token(sub: str, email: str, expires_in: int = 3600) -> str:
    """Issue an access token the way the auth provider does"""
    now = int(time.time())
    claims = {
        "sub": sub,
        "email": email,
        "aud": "authenticated",
        "iat": now,
        "exp": now + expires_in,
    }
    return jwt.encode(claims, "test-jwt-secret", algorithm="HS256")


@pytest.fixture
def db():
    """Fresh schema per test"""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def enqueued(monkeypatch):
    """Record job enqueues instead of talking to Redis"""
    calls = []

    async def fake_enqueue(queue_ids):
        calls.append(list(queue_ids))
        return len(queue_ids)

    monkeypatch.setattr(jobs, "enqueue_webhook_deliveries", fake_enqueue)
    return calls


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    async def no_limit():
        return None

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[cardcom_webhook_limiter] = no_limit
    app.dependency_overrides[payment_callback_limiter] = no_limit
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def owner(db):
    user = User(auth_uid="owner-uid", email="owner@example.com", full_name="Dana Owner")
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def business(db, owner):
    business = Business(name="Coffee Corner", status="active", owner_id=owner.id, monthly_sales_target=0)
    db.add(business)
    db.commit()
    db.add(BusinessStaff(user_id=owner.id, business_id=business.id, role="admin", status="active"))
    db.commit()
    db.refresh(business)
    return business


@pytest.fixture
def auth_headers(owner, business):
    return {"Authorization": f"Bearer {make_token(owner.auth_uid, owner.email)}"}


@pytest.fixture
def admin_headers(db):
    return {"Authorization": f"Bearer {make_token('admin-uid', 'admin@example.com')}"}


@pytest.fixture
def cardcom_settings(db, business):
    settings = BusinessSettings(
        business_id=business.id, cardcom_terminal="1000", cardcom_api_name="coffee-api"
    )
    db.add(settings)
    db.commit()
    return settings


@pytest.fixture
def customer(db, business):
    customer = Customer(
        business_id=business.id,
        name="Noa Levi",
        email="noa@example.com",
        phone="+972501234567",
        contact_id="crm-contact-1",
    )
    db.add(customer)
    db.commit()
    db.refresh(customer)
    return customer


@pytest.fixture
def products(db, business):
    beans = Product(business_id=business.id, name="Espresso beans", sku="BEAN-1", price=45.5, stock=10)
    mug = Product(business_id=business.id, name="Mug", sku="MUG-1", price=30, stock=2)
    db.add_all([beans, mug])
    db.commit()
    db.refresh(beans)
    db.refresh(mug)
    return beans, mug


@pytest.fixture
def staff_member(db, business):
    member = TeamMember(business_id=business.id, name="Yossi")
    db.add(member)
    db.commit()
    db.refresh(member)
    return member


@pytest.fixture
def make_order(db, business, customer, products):
    """Build a pending order directly in the database"""

    def _make(lines=None, staff_id=None, status="pending"):
        beans, mug = products
        lines = lines or [(beans, 2), (mug, 1)]
        items = [
            OrderItem(product_id=p.id, quantity=qty, price_at_time=p.price, currency="ILS") for p, qty in lines
        ]
        order = CustomerOrder(
            business_id=business.id,
            customer_id=customer.id,
            staff_id=staff_id,
            total_amount=round(sum(p.price * qty for p, qty in lines), 2),
            currency="ILS",
            status=status,
            items=items,
        )
        db.add(order)
        db.commit()
        db.refresh(order)
        return order

    return _make
