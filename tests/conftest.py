"""Pytest fixtures for the coffee commerce API tests."""

import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, get_db, import_models
from main import app
from models.customer import Customer
from models.product import Product
from models.users import User
from utils.tokenJWT import create_access_token


@pytest.fixture
def engine():
    """In-memory SQLite database shared by the test session and the app."""
    import_models()
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(engine):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    yield session
    session.close()


@pytest.fixture
def client(engine):
    """TestClient wired to the test database. No lifespan, tables already exist."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        db = TestingSession()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session):
    """Create a user. Staff are role ADMIN with a sub_role, shoppers role USER."""
    def _make(sub_role=None, role="ADMIN", email=None, name=None):
        if role == "USER":
            sub_role = None
        user = User(
            email=email or f"{(sub_role or role).lower()}-{uuid.uuid4().hex[:6]}@icoffee.ng",
            password_hash="unused",
            role=role,
            sub_role=sub_role,
            name=name or (sub_role or role).title(),
            is_active=True,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


@pytest.fixture
def auth():
    """Build bearer headers for a user."""
    def _headers(user):
        token = create_access_token({"sub": user.email, "role": user.role, "sub_role": user.sub_role})
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def make_product(db_session):
    def _make(**overrides):
        data = {
            "sku": f"SKU-{uuid.uuid4().hex[:8].upper()}",
            "name": "House Blend 250g",
            "product_type": "COFFEE_BEANS",
            "price": 5000.0,
            "btc_price": 0.0,
            "btb_price": 0.0,
            "price_3weeks_delivery": 0.0,
            "price_5weeks_delivery": 0.0,
            "discount": 0.0,
            "stock": 0,
        }
        data.update(overrides)
        product = Product(**data)
        db_session.add(product)
        db_session.commit()
        db_session.refresh(product)
        return product

    return _make


@pytest.fixture
def override_product(make_product):
    """Product under warehouse manual override with final 10, online 4, offline 6."""
    def _make(final=10, online=4, offline=6, **overrides):
        return make_product(
            warehouse_enabled=True,
            warehouse_stock_on_arrival=final,
            warehouse_final_stock=final,
            warehouse_online_stock=online,
            warehouse_offline_stock=offline,
            stock=final,
            stock_source="WAREHOUSE_MANUAL",
            **overrides,
        )

    return _make


@pytest.fixture
def make_customer(db_session):
    def _make(created_by=None, **overrides):
        data = {
            "name": "Chidi Okafor",
            "email": f"customer-{uuid.uuid4().hex[:6]}@buyers.ng",
            "street": "12 Allen Avenue",
            "city": "Ikeja",
            "state": "Lagos",
            "customer_type": "BTC",
            "customer_mode": "OFFLINE",
            "created_by": created_by.id if created_by is not None else None,
            "is_website_customer": False,
        }
        data.update(overrides)
        customer = Customer(**data)
        db_session.add(customer)
        db_session.commit()
        db_session.refresh(customer)
        return customer

    return _make
