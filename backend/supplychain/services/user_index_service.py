# Overview: Per-identity lookup of products the identity created or received.

from __future__ import annotations

from datetime import datetime

from ..extensions import db
from ..models import UserProduct
from ..validation import normalize_identity

CREATED = "created"
RECEIVED = "received"


def record_user_product(*, identity: str, product_id: int, reason: str, added_at: datetime) -> UserProduct:
    row = UserProduct(identity=identity, product_id=product_id, reason=reason, added_at=added_at)
    db.session.add(row)
    return row


def get_user_product_ids(identity) -> list[int]:
    """Ids in the order they were added. The null identity has none."""
    identity = normalize_identity(identity)
    if identity is None:
        return []
    rows = (
        db.session.query(UserProduct.product_id)
        .filter(UserProduct.identity == identity)
        .order_by(UserProduct.id.asc())
        .all()
    )
    return [r[0] for r in rows]
