# Overview: Product status enum and the authoritative custody transition table.

"""
Custody lifecycle

STATE MACHINE:
    Created -> SentByManufacturer -> ReceivedByDistributor
            -> SentByDistributor -> ReceivedByRetailer

RULES:
1. Cannot skip states (Created -> ReceivedByDistributor is forbidden)
2. Cannot reverse states
3. Each transition is gated by exactly one role
4. ReturnRequested exists so listings can filter it out; no transition
   in this table produces or consumes it

Adding or auditing a transition is an edit to TRANSITIONS below.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .errors import InvalidArgumentError
from .roles import Role


class ProductStatus(str, Enum):
    CREATED = "Created"
    SENT_BY_MANUFACTURER = "SentByManufacturer"
    RECEIVED_BY_DISTRIBUTOR = "ReceivedByDistributor"
    SENT_BY_DISTRIBUTOR = "SentByDistributor"
    RECEIVED_BY_RETAILER = "ReceivedByRetailer"
    RETURN_REQUESTED = "ReturnRequested"

    @property
    def ordinal(self) -> int:
        """Numeric status code (0..5), accepted wherever a status is."""
        return _ORDER.index(self)

    @property
    def label(self) -> str:
        return STATUS_LABELS[self]

    @classmethod
    def parse(cls, value) -> "ProductStatus":
        """Accept a status, its name ("Created"), or its ordinal (0 or "0")."""
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            raise InvalidArgumentError(f"Invalid status {value!r}")
        if isinstance(value, int) or (isinstance(value, str) and value.strip().isdigit()):
            idx = int(value)
            if 0 <= idx < len(_ORDER):
                return _ORDER[idx]
            raise InvalidArgumentError(f"Invalid status code {idx}")
        if isinstance(value, str):
            s = value.strip()
            for status in cls:
                if s == status.value or s.upper() == status.name:
                    return status
        raise InvalidArgumentError(
            f"Invalid status {value!r}. Must be one of: {', '.join(s.value for s in cls)}"
        )


_ORDER = [
    ProductStatus.CREATED,
    ProductStatus.SENT_BY_MANUFACTURER,
    ProductStatus.RECEIVED_BY_DISTRIBUTOR,
    ProductStatus.SENT_BY_DISTRIBUTOR,
    ProductStatus.RECEIVED_BY_RETAILER,
    ProductStatus.RETURN_REQUESTED,
]

STATUS_LABELS = {
    ProductStatus.CREATED: "Created",
    ProductStatus.SENT_BY_MANUFACTURER: "Sent by Manufacturer",
    ProductStatus.RECEIVED_BY_DISTRIBUTOR: "Received by Distributor",
    ProductStatus.SENT_BY_DISTRIBUTOR: "Sent by Distributor",
    ProductStatus.RECEIVED_BY_RETAILER: "Received by Retailer",
    ProductStatus.RETURN_REQUESTED: "Return Requested",
}

# Product timestamp columns in lifecycle order (getProductHistory shape)
HISTORY_FIELDS = (
    "created_at",
    "sent_by_manufacturer_at",
    "received_by_distributor_at",
    "sent_by_distributor_at",
    "received_by_retailer_at",
)

CREATED_LABEL = "Product Created"
DETAILS_UPDATED_LABEL = "Product Details Updated"

# Notification kinds for the type-specific transition event
SENT = "sent"
RECEIVED = "received"


@dataclass(frozen=True)
class Transition:
    operation: str
    role: str
    from_status: ProductStatus
    to_status: ProductStatus
    timestamp_field: str
    label: str
    kind: str
    # Role of the party a "sent" transition hands custody to
    recipient_role: Optional[str] = None
    # Receipts add the product to the acting caller's user index
    records_user_product: bool = False


TRANSITIONS = {
    t.operation: t
    for t in (
        Transition(
            operation="send_by_manufacturer",
            role=Role.MANUFACTURER,
            from_status=ProductStatus.CREATED,
            to_status=ProductStatus.SENT_BY_MANUFACTURER,
            timestamp_field="sent_by_manufacturer_at",
            label="Sent by Manufacturer",
            kind=SENT,
            recipient_role=Role.DISTRIBUTOR,
        ),
        Transition(
            operation="receive_by_distributor",
            role=Role.DISTRIBUTOR,
            from_status=ProductStatus.SENT_BY_MANUFACTURER,
            to_status=ProductStatus.RECEIVED_BY_DISTRIBUTOR,
            timestamp_field="received_by_distributor_at",
            label="Received by Distributor",
            kind=RECEIVED,
            records_user_product=True,
        ),
        Transition(
            operation="send_by_distributor",
            role=Role.DISTRIBUTOR,
            from_status=ProductStatus.RECEIVED_BY_DISTRIBUTOR,
            to_status=ProductStatus.SENT_BY_DISTRIBUTOR,
            timestamp_field="sent_by_distributor_at",
            label="Sent by Distributor",
            kind=SENT,
            recipient_role=Role.RETAILER,
        ),
        Transition(
            operation="receive_by_retailer",
            role=Role.RETAILER,
            from_status=ProductStatus.SENT_BY_DISTRIBUTOR,
            to_status=ProductStatus.RECEIVED_BY_RETAILER,
            timestamp_field="received_by_retailer_at",
            label="Received by Retailer",
            kind=RECEIVED,
            records_user_product=True,
        ),
    )
}

# to_status -> the only status it may be entered from
ALLOWED_PREDECESSOR = {t.to_status: t.from_status for t in TRANSITIONS.values()}


def can_transition(from_status: ProductStatus, to_status: ProductStatus) -> bool:
    """
    Check a status move against the allowed-predecessor table.

    Same-state moves are rejected; the engine never records no-op transitions.
    """
    return ALLOWED_PREDECESSOR.get(to_status) == from_status


def get_transition(operation: str) -> Transition:
    try:
        return TRANSITIONS[operation]
    except KeyError:
        raise InvalidArgumentError(f"Unknown transition '{operation}'") from None
