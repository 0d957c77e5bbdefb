"""
Concurrency tests: commands from many threads against one file-backed database.

Verifies:
- Concurrent creates get distinct, gap-free ids
- Racing identical transitions: exactly one wins, the rest see InvalidState
"""

import threading

import pytest

from supplychain import create_app
from supplychain.errors import InvalidStateError
from supplychain.extensions import db
from supplychain.lifecycle import ProductStatus
from supplychain.services import maintenance_service, notification_service, query_service, role_service, transition_service

from conftest import DISTRIBUTOR, MANUFACTURER, OWNER, RETAILER


@pytest.fixture
def file_app(tmp_path):
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'concurrency.db'}",
    })
    with app.app_context():
        db.create_all()
        role_service.initialize_registry(OWNER)
        role_service.set_addresses(
            caller=OWNER, manufacturer=MANUFACTURER, distributor=DISTRIBUTOR, retailer=RETAILER
        )
        db.session.remove()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


def run_workers(app, target, count):
    results = []
    lock = threading.Lock()

    def worker():
        with app.app_context():
            try:
                outcome = target()
            except Exception as exc:
                outcome = exc
            finally:
                db.session.remove()
            with lock:
                results.append(outcome)

    threads = [threading.Thread(target=worker) for _ in range(count)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return results


def test_concurrent_creates_get_distinct_ids(file_app):
    def create():
        return transition_service.create_product(
            caller=MANUFACTURER, name="Concurrent", description="", price=10
        ).id

    ids = run_workers(file_app, create, 10)

    assert sorted(ids) == list(range(1, 11))
    with file_app.app_context():
        assert query_service.get_product_count() == 10
        assert sorted(query_service.get_products_by_status(ProductStatus.CREATED)) == list(range(1, 11))
        assert maintenance_service.verify_ledger().ok


def test_racing_transition_applies_once(file_app):
    with file_app.app_context():
        transition_service.create_product(caller=MANUFACTURER, name="Contested", description="", price=10)
        db.session.remove()

    def send():
        return transition_service.send_by_manufacturer(1, caller=MANUFACTURER).id

    results = run_workers(file_app, send, 5)

    assert results.count(1) == 1
    assert sum(isinstance(r, InvalidStateError) for r in results) == 4
    with file_app.app_context():
        assert len(query_service.get_product_transactions(1)) == 2
        assert query_service.get_products_by_status(ProductStatus.SENT_BY_MANUFACTURER) == [1]


def test_subscribers_see_commands_in_sequence_order(file_app):
    seen = []

    def record(event):
        seen.append(event["command_seq"])

    notification_service.subscribe(record)
    try:
        run_workers(
            file_app,
            lambda: transition_service.create_product(
                caller=MANUFACTURER, name="Ordered", description="", price=10
            ).id,
            8,
        )
    finally:
        notification_service.unsubscribe(record)

    assert len(seen) == 8 * 4
    assert seen == sorted(seen)
