"""
Pytest configuration and fixtures for backend tests.
"""

import os

# Must be set before settings are imported anywhere
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("ENVIRONMENT", "test")

import itertools

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from rest_api.main import app
from rest_api.models import (
    Base, User, Category, Destination, Item, Mod, ModGroup, Discount,
)
from rest_api.services.domain import CheckService, OrderService
from shared.config.constants import DestinationName, Role
from shared.infrastructure.db import get_db
from shared.security.auth import sign_user_token
from shared.security.password import hash_password
from shared.security.rate_limit import limiter
from shared.utils.schemas import OrderLine


_id_counter = itertools.count(1000)


# SQLite in-memory database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

TEST_PASSWORD = "testpass123"


def next_id():
    """Unique suffix for names that must not collide within a test."""
    return next(_id_counter)


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    Uses SQLite in-memory for isolation.
    """
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """
    Create a test client with database session override.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def reset_rate_limits():
    """Login limits are per process; start every test with a clean window."""
    limiter.reset()
    yield


# =============================================================================
# Staff
# =============================================================================


def make_user(db_session, role: Role, username: str | None = None) -> User:
    user = User(
        username=username or f"{role.value}-{next_id()}",
        password_hash=hash_password(TEST_PASSWORD),
        first_name="Test",
        last_name=role.value.title(),
        role=role,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


def headers_for(user: User) -> dict[str, str]:
    """Bearer headers for a user without a login round trip."""
    token = sign_user_token(user.id, user.username, user.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def server(db_session):
    return make_user(db_session, Role.SERVER, username="server")


@pytest.fixture
def other_server(db_session):
    return make_user(db_session, Role.SERVER, username="other-server")


@pytest.fixture
def manager(db_session):
    return make_user(db_session, Role.MANAGER, username="manager")


@pytest.fixture
def cook(db_session):
    return make_user(db_session, Role.COOK, username="cook")


@pytest.fixture
def trainee(db_session):
    return make_user(db_session, Role.TRAINEE, username="trainee")


@pytest.fixture
def server_headers(server):
    return headers_for(server)


@pytest.fixture
def other_server_headers(other_server):
    return headers_for(other_server)


@pytest.fixture
def manager_headers(manager):
    return headers_for(manager)


@pytest.fixture
def cook_headers(cook):
    return headers_for(cook)


@pytest.fixture
def trainee_headers(trainee):
    return headers_for(trainee)


# =============================================================================
# Catalog
# =============================================================================


@pytest.fixture
def catalog(db_session):
    """
    A minimal menu:
    wings $10.00, burger $15.00, steak $32.00, an inactive special,
    one mod group with two mods, and two discounts.
    """
    kitchen = Destination(name=DestinationName.KITCHEN_HOT)
    bar = Destination(name=DestinationName.BAR)
    entrees = Category(name="Entrees")
    apps = Category(name="Appetizers")
    db_session.add_all([kitchen, bar, entrees, apps])
    db_session.flush()

    wings = Item(name="Wings", price_cents=1000, category_id=apps.id, destination_id=kitchen.id)
    burger = Item(name="Burger", price_cents=1500, category_id=entrees.id, destination_id=kitchen.id)
    steak = Item(name="Steak", price_cents=3200, category_id=entrees.id, destination_id=kitchen.id)
    special = Item(
        name="Old Special", price_cents=2000, category_id=entrees.id,
        destination_id=kitchen.id, is_active=False,
    )
    temps = ModGroup(name="Steak Temp", num_choices=1, is_required=True)
    rare = Mod(name="Rare")
    bacon = Mod(name="Add Bacon", mod_price_cents=200)
    ten_off = Discount(name="Ten Percent", percent_bps=1000)
    five_off = Discount(name="Five Dollars", amount_cents=500)
    db_session.add_all([wings, burger, steak, special, temps, rare, bacon, ten_off, five_off])
    db_session.commit()

    return {
        "wings": wings,
        "burger": burger,
        "steak": steak,
        "special": special,
        "temps": temps,
        "rare": rare,
        "bacon": bacon,
        "ten_off": ten_off,
        "five_off": five_off,
    }


# =============================================================================
# Checks and orders
# =============================================================================


@pytest.fixture
def open_check(db_session, server):
    """An open table check owned by `server`."""
    return CheckService(db_session).open_check(server.id, num_guests=2, table_num=12)


@pytest.fixture
def wings_and_burger(db_session, server, open_check, catalog):
    """Wings + burger sent on one order: subtotal 2500."""
    order = OrderService(db_session).send_order(
        server.id,
        open_check.id,
        [OrderLine(item_id=catalog["wings"].id), OrderLine(item_id=catalog["burger"].id)],
    )
    db_session.refresh(open_check)
    return order
