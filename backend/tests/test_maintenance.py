"""
Ledger audit tests.

The audit reads raw tables, so each test corrupts one of them directly and
expects exactly that problem to be reported.
"""

from supplychain.lifecycle import ProductStatus
from supplychain.models import Product, ProductTransaction, StageIndexEntry
from supplychain.services import maintenance_service, transition_service

from conftest import MANUFACTURER, advance_to


def test_clean_ledger(widget):
    advance_to(1, "receive_by_retailer")
    transition_service.create_product(caller=MANUFACTURER, name="Second", description="", price=5)

    audit = maintenance_service.verify_ledger()
    assert audit.ok, audit.problems
    assert audit.products_checked == 2


def test_empty_ledger(db_session):
    audit = maintenance_service.verify_ledger()
    assert audit.to_dict() == {"ok": True, "products_checked": 0, "problems": []}


def test_detects_status_bucket_mismatch(widget, db_session):
    product = db_session.get(Product, 1)
    product.status = ProductStatus.SENT_BY_MANUFACTURER
    product.sent_by_manufacturer_at = product.created_at
    db_session.commit()

    audit = maintenance_service.verify_ledger()
    assert not audit.ok
    assert any("stage bucket Created" in p for p in audit.problems)


def test_detects_missing_timestamp(widget, db_session):
    advance_to(1, "send_by_manufacturer")
    db_session.get(Product, 1).sent_by_manufacturer_at = None
    db_session.commit()

    audit = maintenance_service.verify_ledger()
    assert any("sent_by_manufacturer_at unset" in p for p in audit.problems)


def test_detects_sparse_positions(widget, db_session):
    entry = db_session.query(StageIndexEntry).filter_by(product_id=1).one()
    entry.position = 3
    db_session.commit()

    audit = maintenance_service.verify_ledger()
    assert any("not dense" in p for p in audit.problems)


def test_detects_log_gap(widget, db_session):
    advance_to(1, "send_by_manufacturer")
    tx = db_session.query(ProductTransaction).filter_by(product_id=1, sequence=2).one()
    tx.sequence = 5
    db_session.commit()

    audit = maintenance_service.verify_ledger()
    assert any("log sequence has gaps" in p for p in audit.problems)


def test_return_requested_skips_bucket_check(widget, db_session):
    advance_to(1, "receive_by_retailer")
    db_session.get(Product, 1).status = ProductStatus.RETURN_REQUESTED
    db_session.commit()

    assert maintenance_service.verify_ledger().ok
