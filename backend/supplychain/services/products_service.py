# backend/supplychain/services/products_service.py
"""
Product Store

Owns the canonical product records. No role checks here: the transition
engine gates every write and calls in only after its preconditions pass.

ID ASSIGNMENT:
ids come from LedgerState.product_count, incremented inside the creating
command. The counter is the upper bound for lookups: an id outside
[1, product_count] is unknown.
"""
from __future__ import annotations

from datetime import datetime

from ..errors import UnknownProductError
from ..extensions import db
from ..lifecycle import ProductStatus
from ..models import LedgerState, Product
from ..validation import validate_description, validate_name, validate_price, validate_product_id
from . import command_service
from .concurrency import lock_for_update


def product_count(state: LedgerState | None = None) -> int:
    if state is None:
        state = command_service.load_state()
    return state.product_count if state is not None else 0


def get_product(product_id, *, state: LedgerState | None = None, for_update: bool = False) -> Product:
    """
    Fetch a product by id.

    Raises:
        InvalidArgumentError: product_id is not an integer
        UnknownProductError: product_id is outside [1, product_count]
    """
    product_id = validate_product_id(product_id)
    count = product_count(state)
    if product_id < 1 or product_id > count:
        raise UnknownProductError(f"Product {product_id} not found")

    q = db.session.query(Product).filter_by(id=product_id)
    if for_update:
        q = lock_for_update(q)
    product = q.first()
    if product is None:
        # Counter says it exists but the row is missing: corrupted store
        raise UnknownProductError(f"Product {product_id} not found")
    return product


def validate_details(*, name, description, price) -> dict:
    """Shared create/update validation. Returns the cleaned values."""
    return {
        "name": validate_name(name),
        "description": validate_description(description),
        "price": validate_price(price),
    }


def create_record(state: LedgerState, *, details: dict, performer: str, now: datetime) -> Product:
    """
    Store a new product in Created status with the next id.

    details must already be validated (validate_details).
    """
    state.product_count = state.product_count + 1
    product = Product(
        id=state.product_count,
        name=details["name"],
        description=details["description"],
        price=details["price"],
        status=ProductStatus.CREATED,
        created_by=performer,
        created_at=now,
    )
    db.session.add(product)
    db.session.flush()
    return product


def apply_details(product: Product, details: dict) -> None:
    """Overwrite name/description/price. Status and timestamps are untouched."""
    product.name = details["name"]
    product.description = details["description"]
    product.price = details["price"]


def list_products(*, limit: int | None = None, offset: int = 0) -> list[Product]:
    q = db.session.query(Product).order_by(Product.id.asc()).offset(offset)
    if limit is not None:
        q = q.limit(limit)
    return q.all()
