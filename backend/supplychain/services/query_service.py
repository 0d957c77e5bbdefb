# Overview: Read-only queries over the committed ledger state.

"""
Query Engine

Pure reads: nothing here takes the command lock or writes. No role
restriction applies to any of these.
"""

from __future__ import annotations

from datetime import datetime

from ..extensions import db
from ..lifecycle import HISTORY_FIELDS, ProductStatus
from ..models import Product, ProductTransaction
from ..validation import validate_date_range
from . import products_service, role_service, stage_index_service, transaction_log_service, user_index_service


def get_product(product_id) -> Product:
    return products_service.get_product(product_id)


def get_product_count() -> int:
    return products_service.product_count()


def get_roles() -> dict:
    return role_service.get_roles()


def get_user_products(identity) -> list[int]:
    return user_index_service.get_user_product_ids(identity)


def get_products_by_status(status) -> list[int]:
    """Raw stage bucket: ids in bucket order."""
    return stage_index_service.list_by_stage(ProductStatus.parse(status))


def get_products_in_stage(status) -> list[Product]:
    return stage_index_service.list_products_by_stage(ProductStatus.parse(status))


def get_products_created() -> list[Product]:
    return get_products_in_stage(ProductStatus.CREATED)


def get_products_sent_by_manufacturer() -> list[Product]:
    return get_products_in_stage(ProductStatus.SENT_BY_MANUFACTURER)


def get_products_received_by_distributor() -> list[Product]:
    return get_products_in_stage(ProductStatus.RECEIVED_BY_DISTRIBUTOR)


def get_products_sent_by_distributor() -> list[Product]:
    return get_products_in_stage(ProductStatus.SENT_BY_DISTRIBUTOR)


def get_products_received_by_retailer() -> list[Product]:
    """
    The ReceivedByRetailer bucket minus anything whose status is now
    ReturnRequested. A return flow outside this engine can change status
    without moving the bucket entry.
    """
    return [
        p for p in get_products_in_stage(ProductStatus.RECEIVED_BY_RETAILER)
        if p.status != ProductStatus.RETURN_REQUESTED
    ]


def get_products_by_date_range(start: datetime, end: datetime) -> list[int]:
    """
    Ids whose created_at falls in [start, end] (inclusive), ascending.

    Raises:
        InvalidArgumentError: start > end, or either bound missing
    """
    validate_date_range(start, end)
    rows = (
        db.session.query(Product.id)
        .filter(Product.created_at >= start, Product.created_at <= end)
        .order_by(Product.id.asc())
        .all()
    )
    return [r[0] for r in rows]


def get_product_history(product_id) -> list[datetime | None]:
    """
    [created_at, sent_by_manufacturer_at, received_by_distributor_at,
     sent_by_distributor_at, received_by_retailer_at]; None = not reached.
    """
    return get_product(product_id).history()


def get_product_transactions(product_id) -> list[ProductTransaction]:
    product = get_product(product_id)
    return transaction_log_service.get_transactions(product.id)


def get_product_trace(product_id) -> dict:
    """
    Everything a tracking page shows for one product. "stage" is the bucket
    the index holds it in, which differs from status only for ReturnRequested.
    """
    product = get_product(product_id)
    reached = [
        {"step": field, "at": value}
        for field, value in zip(HISTORY_FIELDS, product.history())
        if value is not None
    ]
    return {
        "product": product,
        "transactions": transaction_log_service.get_transactions(product.id),
        "history": reached,
        "stage": stage_index_service.stage_of(product.id),
    }
