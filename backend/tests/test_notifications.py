"""
Notification tests.

Verifies:
- Each command persists its notifications in order, tagged with its command_seq
- Subscribers are called only after the commit
- A rejected command emits nothing
- A failing subscriber cannot undo a committed command
"""

import pytest

from supplychain.errors import UnauthorizedCallerError
from supplychain.lifecycle import ProductStatus
from supplychain.models import LedgerState, Notification
from supplychain.services import notification_service, query_service, transition_service

from conftest import DISTRIBUTOR, MANUFACTURER, RETAILER, advance_to


def events_of_last_command(db_session):
    seq = db_session.query(LedgerState).one().command_seq
    rows = (
        db_session.query(Notification)
        .filter_by(command_seq=seq)
        .order_by(Notification.id.asc())
        .all()
    )
    return rows


@pytest.fixture
def received(db_session):
    events = []
    notification_service.subscribe(events.append)
    return events


# =============================================================================
# PERSISTED OUTBOX
# =============================================================================


class TestOutbox:

    def test_create_notifications(self, widget, db_session):
        rows = events_of_last_command(db_session)
        assert [r.event_type for r in rows] == [
            "ProductCreated",
            "StatusChanged",
            "StageUpdated",
            "TransactionPerformed",
        ]
        created, status, stage, tx = rows
        assert created.payload["manufacturer"] == MANUFACTURER
        assert status.payload["old_status"] is None
        assert status.payload["new_status"] == "Created"
        assert stage.payload["added_to"] == "Created"
        assert tx.payload["transaction_type"] == "Product Created"
        assert all(r.product_id == 1 for r in rows)

    def test_send_names_recipient(self, widget, db_session):
        transition_service.send_by_manufacturer(1, caller=MANUFACTURER)
        rows = events_of_last_command(db_session)
        assert [r.event_type for r in rows] == [
            "StatusChanged",
            "StageUpdated",
            "ProductSent",
            "TransactionPerformed",
        ]
        sent = rows[2].payload
        assert (sent["sender"], sent["recipient"]) == (MANUFACTURER, DISTRIBUTOR)
        assert rows[1].payload["removed_from"] == "Created"
        assert rows[1].payload["added_to"] == "SentByManufacturer"

    def test_receive_names_receiver(self, widget, db_session):
        advance_to(1, "send_by_distributor")
        transition_service.receive_by_retailer(1, caller=RETAILER)
        rows = events_of_last_command(db_session)
        received = [r for r in rows if r.event_type == "ProductReceived"]
        assert len(received) == 1
        assert received[0].payload["receiver"] == RETAILER

    def test_feed_is_newest_first_with_filters(self, widget):
        transition_service.send_by_manufacturer(1, caller=MANUFACTURER)

        feed = notification_service.list_notifications(product_id=1)
        assert feed[0].event_type == "TransactionPerformed"
        assert [r.id for r in feed] == sorted((r.id for r in feed), reverse=True)

        sent = notification_service.list_notifications(event_type="ProductSent")
        assert len(sent) == 1

        page = notification_service.list_notifications(limit=2)
        older = notification_service.list_notifications(before_id=page[-1].id, limit=2)
        assert all(r.id < page[-1].id for r in older)

    def test_unknown_event_type_rejected_by_buffer(self):
        buffer = notification_service.NotificationBuffer()
        with pytest.raises(ValueError):
            buffer.emit("ProductLost", occurred_at=None)
        assert len(buffer) == 0


# =============================================================================
# SUBSCRIBERS
# =============================================================================


class TestSubscribers:

    def test_subscriber_gets_committed_events(self, widget, received):
        transition_service.send_by_manufacturer(1, caller=MANUFACTURER)
        assert [e["event_type"] for e in received] == [
            "StatusChanged",
            "StageUpdated",
            "ProductSent",
            "TransactionPerformed",
        ]
        assert received[0]["payload"]["new_status"] == "SentByManufacturer"

    def test_subscriber_sees_committed_state(self, widget):
        seen = []

        @notification_service.subscribe
        def check(event):
            if event["event_type"] == "StatusChanged":
                seen.append(query_service.get_product(event["product_id"]).status)

        transition_service.send_by_manufacturer(1, caller=MANUFACTURER)
        assert seen == [ProductStatus.SENT_BY_MANUFACTURER]

    def test_rejected_command_emits_nothing(self, widget, db_session, received):
        before = db_session.query(Notification).count()
        with pytest.raises(UnauthorizedCallerError):
            transition_service.send_by_manufacturer(1, caller=DISTRIBUTOR)
        assert received == []
        assert db_session.query(Notification).count() == before

    def test_failing_subscriber_does_not_undo_command(self, widget, received):
        def broken(event):
            raise RuntimeError("subscriber down")

        notification_service.subscribe(broken)
        product = transition_service.send_by_manufacturer(1, caller=MANUFACTURER)

        assert product.status == ProductStatus.SENT_BY_MANUFACTURER
        assert query_service.get_product(1).status == ProductStatus.SENT_BY_MANUFACTURER
        assert len(received) == 4

    def test_unsubscribe(self, widget, received):
        notification_service.unsubscribe(received.append)
        transition_service.send_by_manufacturer(1, caller=MANUFACTURER)
        assert received == []
