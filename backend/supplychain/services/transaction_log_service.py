# Overview: Append-only per-product transaction log.

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func

from ..extensions import db
from ..models import ProductTransaction
"""
Transaction Log Invariants (authoritative)

- Append-only: no updates or deletes of existing entries.
- Entries are written inside the same DB transaction as the operation they record.
- sequence is 1-based and contiguous per product; entry 1 is always "Product Created".
- Read order is sequence order, which is the order operations were applied.
"""


def append_transaction(
    *,
    product_id: int,
    transaction_type: str,
    performer: str,
    occurred_at: datetime,
) -> ProductTransaction:
    """
    Append one entry to a product's log.

    - No domain logic here.
    - Caller has already validated the operation it records.
    """
    last_seq = (
        db.session.query(func.max(ProductTransaction.sequence))
        .filter(ProductTransaction.product_id == product_id)
        .scalar()
    ) or 0

    tx = ProductTransaction(
        product_id=product_id,
        sequence=last_seq + 1,
        transaction_type=transaction_type,
        performer=performer,
        occurred_at=occurred_at,
    )
    db.session.add(tx)
    db.session.flush()  # ensures tx.id is assigned without committing
    return tx


def get_transactions(product_id: int) -> list[ProductTransaction]:
    return (
        db.session.query(ProductTransaction)
        .filter(ProductTransaction.product_id == product_id)
        .order_by(ProductTransaction.sequence.asc())
        .all()
    )

