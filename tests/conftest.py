import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")

import jwt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from order_service.config import settings
from order_service.database import Base, get_db
from order_service.main import app
from order_service.models import Order, OrderItem, Product, User


def order_payload(**overrides):
    """Camel-case POST /orders body for user 1 buying two of product 7"""
    payload = {
        "userId": 1,
        "items": [
            {"productId": 7, "quantity": 2, "unitPrice": 10.0, "totalPrice": 20.0},
        ],
        "totalAmount": 20.0,
        "shippingAddress": "12 Market Street",
    }
    payload.update(overrides)
    return payload


def row_counts(db):
    """(orders, order_items) row counts"""
    return db.query(Order).count(), db.query(OrderItem).count()


def make_token(user_id=1, email="alice@example.com", role=None, **claims):
    payload = {"id": user_id, "email": email, **claims}
    if role:
        payload["role"] = role
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    _seed(session)
    yield session
    session.close()


def _seed(session):
    session.add_all([
        User(id=1, email="alice@example.com", password="x", name="Alice", phone="555-0101"),
        User(id=2, email="bob@example.com", password="x", name="Bob"),
        Product(id=7, name="Espresso Beans", description="1kg bag", price=10.0,
                category="coffee", image_url="/img/beans.png"),
        Product(id=8, name="Grinder", price=45.5, category="equipment"),
    ])
    session.commit()


@pytest.fixture()
def client(db, session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def auth_headers():
    return {"Authorization": f"Bearer {make_token()}"}


@pytest.fixture()
def admin_headers():
    return {"Authorization": f"Bearer {make_token(user_id=99, email='admin@example.com', role='admin')}"}
