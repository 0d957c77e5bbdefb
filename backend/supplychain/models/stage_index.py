from __future__ import annotations

from ..extensions import db
from .products import ProductStatusType


class StageIndexEntry(db.Model):
    """
    One product id inside one stage bucket.

    A bucket is the dense list of entries sharing a status, ordered by
    position 0..n-1. Removal is swap-and-pop, so order is insertion order
    only until the first removal.

    INVARIANTS (enforced by constraints):
    - product_id unique: a product sits in exactly one bucket. The unique
      index doubles as the id -> (bucket, position) lookup.
    - (status, position) unique: no two ids share a slot.
    """
    __tablename__ = "stage_index_entries"
    __table_args__ = (
        db.UniqueConstraint("product_id", name="uq_stage_index_product"),
        db.UniqueConstraint("status", "position", name="uq_stage_index_slot"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    status = db.Column(ProductStatusType(), nullable=False)
    position = db.Column(db.Integer, nullable=False)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)

    def __repr__(self) -> str:
        return f"<StageIndexEntry {self.status.value}[{self.position}]={self.product_id}>"
