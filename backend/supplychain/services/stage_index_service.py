# Overview: Per-status buckets of product ids, kept in lock-step with Product.status.

"""
Stage Index

Each status has a bucket: a dense list of product ids at positions
0..n-1 (stage_index_entries). The transition engine moves an id between
buckets in the same command that changes the product's status.

COST:
- add: O(1), append at position n
- remove: swap-and-pop. The entry is found through the unique product_id
  index (no bucket scan), the bucket's last entry takes the freed slot,
  the bucket shrinks by one. Order is not preserved after a removal.
"""

from __future__ import annotations

from sqlalchemy import func

from ..extensions import db
from ..lifecycle import ProductStatus
from ..models import Product, StageIndexEntry


class StageIndexError(RuntimeError):
    """
    The index disagrees with the caller about where a product sits.

    The engine only removes ids it knows are present, so this is an
    invariant breach, never a user error. The command is rolled back.
    """


def bucket_size(status: ProductStatus) -> int:
    return (
        db.session.query(func.count(StageIndexEntry.id))
        .filter(StageIndexEntry.status == status)
        .scalar()
    ) or 0


def add_to_stage(product_id: int, status: ProductStatus) -> StageIndexEntry:
    entry = StageIndexEntry(status=status, position=bucket_size(status), product_id=product_id)
    db.session.add(entry)
    db.session.flush()
    return entry


def remove_from_stage(product_id: int, status: ProductStatus) -> None:
    entry = db.session.query(StageIndexEntry).filter_by(product_id=product_id).first()
    if entry is None or entry.status != status:
        found = entry.status.value if entry is not None else None
        raise StageIndexError(
            f"Product {product_id} is not in stage {status.value} (found in {found})"
        )

    last = (
        db.session.query(StageIndexEntry)
        .filter(StageIndexEntry.status == status)
        .order_by(StageIndexEntry.position.desc())
        .first()
    )
    freed = entry.position
    swap = last is not None and last.id != entry.id

    # Delete first: the (status, position) slot must be free before the move
    db.session.delete(entry)
    db.session.flush()

    if swap:
        last.position = freed
        db.session.flush()


def move_stage(product_id: int, from_status: ProductStatus, to_status: ProductStatus) -> StageIndexEntry:
    remove_from_stage(product_id, from_status)
    return add_to_stage(product_id, to_status)


def stage_of(product_id: int) -> ProductStatus | None:
    entry = db.session.query(StageIndexEntry).filter_by(product_id=product_id).first()
    return entry.status if entry is not None else None


def list_by_stage(status: ProductStatus) -> list[int]:
    rows = (
        db.session.query(StageIndexEntry.product_id)
        .filter(StageIndexEntry.status == status)
        .order_by(StageIndexEntry.position.asc())
        .all()
    )
    return [r[0] for r in rows]


def list_products_by_stage(status: ProductStatus) -> list[Product]:
    return (
        db.session.query(Product)
        .join(StageIndexEntry, StageIndexEntry.product_id == Product.id)
        .filter(StageIndexEntry.status == status)
        .order_by(StageIndexEntry.position.asc())
        .all()
    )
