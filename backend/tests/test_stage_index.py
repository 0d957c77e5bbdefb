"""
Stage index tests.

Verifies:
- Every product sits in exactly one bucket, the one matching its status
- Removal is swap-and-pop: the bucket's last id fills the freed slot
- Positions stay dense 0..n-1
"""

import pytest

from supplychain.lifecycle import ProductStatus
from supplychain.models import StageIndexEntry
from supplychain.services import products_service, query_service, stage_index_service, transition_service

from conftest import MANUFACTURER, advance_to


@pytest.fixture
def three_products(ledger):
    for name in ("A", "B", "C"):
        transition_service.create_product(caller=MANUFACTURER, name=name, description="", price=10)


def positions(db_session, status):
    return sorted(
        e.position for e in db_session.query(StageIndexEntry).filter_by(status=status).all()
    )


def test_creation_appends_in_order(three_products):
    assert query_service.get_products_by_status(ProductStatus.CREATED) == [1, 2, 3]


def test_removal_moves_last_into_freed_slot(three_products, db_session):
    transition_service.send_by_manufacturer(1, caller=MANUFACTURER)

    assert query_service.get_products_by_status(ProductStatus.CREATED) == [3, 2]
    assert query_service.get_products_by_status(ProductStatus.SENT_BY_MANUFACTURER) == [1]
    assert positions(db_session, ProductStatus.CREATED) == [0, 1]


def test_removing_last_entry_needs_no_swap(three_products, db_session):
    transition_service.send_by_manufacturer(3, caller=MANUFACTURER)

    assert query_service.get_products_by_status(ProductStatus.CREATED) == [1, 2]
    assert positions(db_session, ProductStatus.CREATED) == [0, 1]


def test_bucket_emptied_and_refilled(three_products, db_session):
    for product_id in (2, 1, 3):
        transition_service.send_by_manufacturer(product_id, caller=MANUFACTURER)

    assert query_service.get_products_by_status(ProductStatus.CREATED) == []
    assert query_service.get_products_by_status(ProductStatus.SENT_BY_MANUFACTURER) == [2, 1, 3]
    assert positions(db_session, ProductStatus.SENT_BY_MANUFACTURER) == [0, 1, 2]

    transition_service.create_product(caller=MANUFACTURER, name="D", description="", price=10)
    assert query_service.get_products_by_status(ProductStatus.CREATED) == [4]


def test_each_product_in_exactly_one_bucket(three_products, db_session):
    advance_to(1, "receive_by_retailer")
    advance_to(2, "receive_by_distributor")

    for product in products_service.list_products():
        entries = db_session.query(StageIndexEntry).filter_by(product_id=product.id).all()
        assert len(entries) == 1
        assert entries[0].status == product.status
        assert stage_index_service.stage_of(product.id) == product.status


def test_listing_returns_full_records_in_bucket_order(three_products):
    transition_service.send_by_manufacturer(1, caller=MANUFACTURER)
    products = query_service.get_products_created()
    assert [p.name for p in products] == ["C", "B"]


def test_remove_from_wrong_bucket_is_an_invariant_breach(three_products):
    with pytest.raises(stage_index_service.StageIndexError):
        stage_index_service.remove_from_stage(1, ProductStatus.SENT_BY_MANUFACTURER)


def test_status_accepts_name_or_code(three_products):
    assert query_service.get_products_by_status("Created") == [1, 2, 3]
    assert query_service.get_products_by_status(0) == [1, 2, 3]
    assert query_service.get_products_by_status("1") == []
