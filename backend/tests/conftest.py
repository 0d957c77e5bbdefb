"""
Pytest fixtures for the custody ledger tests.

Provides an in-memory database, a per-test clean slate, an initialized role
registry, a controllable command clock, and the test client / CLI runner.
"""

from datetime import timedelta

import pytest

from supplychain import create_app
from supplychain.extensions import db
from supplychain.lifecycle import TRANSITIONS
from supplychain.services import command_service, notification_service, query_service, role_service, transition_service
from supplychain.time_utils import from_epoch_seconds


OWNER = "0xaaaa000000000000000000000000000000000001"
MANUFACTURER = "0xbbbb000000000000000000000000000000000002"
DISTRIBUTOR = "0xcccc000000000000000000000000000000000003"
RETAILER = "0xdddd000000000000000000000000000000000004"
STRANGER = "0xeeee000000000000000000000000000000000005"

# 2023-11-14T22:13:20Z
T0 = 1_700_000_000


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'COMMAND_RETRY_ATTEMPTS': 1,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def runner(app):
    """Create CLI runner."""
    return app.test_cli_runner()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()
        notification_service.clear_subscribers()

        yield db.session

        # Cleanup after test
        db.session.rollback()
        notification_service.clear_subscribers()


@pytest.fixture(scope='function')
def registry(db_session):
    """Role registry with the owner fixed and no workflow roles yet."""
    return role_service.initialize_registry(OWNER)


@pytest.fixture(scope='function')
def ledger(registry):
    """Role registry with all four roles assigned to distinct identities."""
    role_service.set_addresses(
        caller=OWNER,
        manufacturer=MANUFACTURER,
        distributor=DISTRIBUTOR,
        retailer=RETAILER,
    )
    return registry


class FakeClock:
    """Stands in for command_service.utcnow; every command reads it once."""

    def __init__(self, start):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture(scope='function')
def clock(monkeypatch):
    fake = FakeClock(from_epoch_seconds(T0))
    monkeypatch.setattr(command_service, "utcnow", fake)
    return fake


@pytest.fixture(scope='function')
def widget(ledger):
    """Product 1, "Widget" priced 100, in Created."""
    return transition_service.create_product(
        caller=MANUFACTURER, name="Widget", description="A widget", price=100
    )


def advance_to(product_id: int, operation: str):
    """
    Run the transitions from the product's current status up to and
    including operation.
    """
    chain = [
        ("send_by_manufacturer", MANUFACTURER),
        ("receive_by_distributor", DISTRIBUTOR),
        ("send_by_distributor", DISTRIBUTOR),
        ("receive_by_retailer", RETAILER),
    ]
    ops = [op for op, _ in chain]
    if operation not in ops:
        raise ValueError(f"unknown operation {operation}")

    status = query_service.get_product(product_id).status
    pending = [
        (op, caller) for op, caller in chain[: ops.index(operation) + 1]
        if TRANSITIONS[op].from_status.ordinal >= status.ordinal
    ]
    for op, caller in pending:
        transition_service.apply_transition(op, product_id, caller=caller)


def caller_headers(identity: str) -> dict:
    """Helper to create the caller identity header."""
    return {'X-Caller-Identity': identity}
