"""
Query engine tests.

Verifies:
- Date range queries are inclusive and validated
- The retailer-received listing hides ReturnRequested products
- History, trace and user lookups reflect committed state only
"""

import pytest

from supplychain.errors import InvalidArgumentError, UnknownProductError
from supplychain.lifecycle import ProductStatus
from supplychain.services import query_service, transition_service
from supplychain.time_utils import from_epoch_seconds
from supplychain.validation import ZERO_ADDRESS

from conftest import DISTRIBUTOR, MANUFACTURER, RETAILER, STRANGER, T0, advance_to


DAY = 86400


@pytest.fixture
def spaced_products(clock, ledger):
    """Products 1, 2, 3 created at T0, T0 + 1 day, T0 + 2 days."""
    for i, name in enumerate(("First", "Second", "Third")):
        if i:
            clock.advance(days=1)
        transition_service.create_product(caller=MANUFACTURER, name=name, description="", price=10)


# =============================================================================
# DATE RANGE
# =============================================================================


class TestDateRange:

    def test_middle_product_only(self, spaced_products):
        ids = query_service.get_products_by_date_range(
            from_epoch_seconds(T0 + 1), from_epoch_seconds(T0 + 2 * DAY - 1)
        )
        assert ids == [2]

    def test_bounds_are_inclusive(self, spaced_products):
        ids = query_service.get_products_by_date_range(
            from_epoch_seconds(T0), from_epoch_seconds(T0 + 2 * DAY)
        )
        assert ids == [1, 2, 3]

    def test_single_instant(self, spaced_products):
        ts = from_epoch_seconds(T0 + DAY)
        assert query_service.get_products_by_date_range(ts, ts) == [2]

    def test_empty_range(self, spaced_products):
        ids = query_service.get_products_by_date_range(
            from_epoch_seconds(T0 - 10), from_epoch_seconds(T0 - 1)
        )
        assert ids == []

    def test_start_after_end_rejected(self, spaced_products):
        with pytest.raises(InvalidArgumentError):
            query_service.get_products_by_date_range(from_epoch_seconds(T0 + 1), from_epoch_seconds(T0))

    def test_missing_bound_rejected(self, spaced_products):
        with pytest.raises(InvalidArgumentError):
            query_service.get_products_by_date_range(None, from_epoch_seconds(T0))

    def test_real_clock_created_at_matches_its_own_range(self, widget):
        created_at = query_service.get_product(1).created_at
        assert created_at.microsecond == 0
        assert query_service.get_products_by_date_range(created_at, created_at) == [1]


# =============================================================================
# STAGE LISTINGS
# =============================================================================


class TestStageListings:

    def test_named_listings(self, widget):
        assert [p.id for p in query_service.get_products_created()] == [1]
        advance_to(1, "send_by_manufacturer")
        assert [p.id for p in query_service.get_products_sent_by_manufacturer()] == [1]
        advance_to(1, "receive_by_distributor")
        assert [p.id for p in query_service.get_products_received_by_distributor()] == [1]
        advance_to(1, "send_by_distributor")
        assert [p.id for p in query_service.get_products_sent_by_distributor()] == [1]
        advance_to(1, "receive_by_retailer")
        assert [p.id for p in query_service.get_products_received_by_retailer()] == [1]

    def test_return_requested_excluded_from_retailer_listing(self, ledger, db_session):
        for name in ("Kept", "Returned"):
            product = transition_service.create_product(caller=MANUFACTURER, name=name, description="", price=10)
            transition_service.send_by_manufacturer(product.id, caller=MANUFACTURER)
            transition_service.receive_by_distributor(product.id, caller=DISTRIBUTOR)
            transition_service.send_by_distributor(product.id, caller=DISTRIBUTOR)
            transition_service.receive_by_retailer(product.id, caller=RETAILER)

        # A return flow changes status without touching the bucket
        returned = query_service.get_product(2)
        returned.status = ProductStatus.RETURN_REQUESTED
        db_session.commit()

        assert [p.id for p in query_service.get_products_received_by_retailer()] == [1]
        assert query_service.get_products_by_status(ProductStatus.RECEIVED_BY_RETAILER) == [1, 2]

    def test_invalid_status(self, ledger):
        with pytest.raises(InvalidArgumentError):
            query_service.get_products_by_status("Lost")
        with pytest.raises(InvalidArgumentError):
            query_service.get_products_by_status(9)


# =============================================================================
# PRODUCT LOOKUPS
# =============================================================================


class TestProductLookups:

    def test_unknown_product(self, widget):
        with pytest.raises(UnknownProductError):
            query_service.get_product(2)
        with pytest.raises(UnknownProductError):
            query_service.get_product_history(0)
        with pytest.raises(UnknownProductError):
            query_service.get_product_transactions(2)

    def test_count_before_init(self, db_session):
        assert query_service.get_product_count() == 0
        with pytest.raises(UnknownProductError):
            query_service.get_product(1)

    def test_trace(self, clock, widget):
        clock.advance(minutes=5)
        advance_to(1, "send_by_manufacturer")

        trace = query_service.get_product_trace(1)
        assert trace["product"].id == 1
        assert [tx.transaction_type for tx in trace["transactions"]] == ["Product Created", "Sent by Manufacturer"]
        assert trace["history"] == [
            {"step": "created_at", "at": from_epoch_seconds(T0)},
            {"step": "sent_by_manufacturer_at", "at": from_epoch_seconds(T0 + 300)},
        ]
        assert trace["stage"] == ProductStatus.SENT_BY_MANUFACTURER

    def test_user_products(self, ledger):
        for name in ("A", "B"):
            transition_service.create_product(caller=MANUFACTURER, name=name, description="", price=10)
        advance_to(2, "receive_by_distributor")

        assert query_service.get_user_products(MANUFACTURER) == [1, 2]
        assert query_service.get_user_products(DISTRIBUTOR.upper().replace("0X", "0x")) == [2]
        assert query_service.get_user_products(STRANGER) == []

    @pytest.mark.parametrize("identity", [None, "", ZERO_ADDRESS])
    def test_null_identity_has_no_products(self, widget, identity):
        assert query_service.get_user_products(identity) == []
