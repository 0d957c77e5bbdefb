from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class ProductTransaction(db.Model):
    """
    Per-product audit log entry.

    IMMUTABLE: Never update or delete. Append-only for audit integrity.
    sequence is 1-based and contiguous within a product, so the log for a
    product is exactly the ordered list of operations applied to it.
    """
    __tablename__ = "product_transactions"
    __table_args__ = (
        db.UniqueConstraint("product_id", "sequence", name="uq_product_transactions_seq"),
        db.Index("ix_product_transactions_performer", "performer"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    sequence = db.Column(db.Integer, nullable=False)

    transaction_type = db.Column(db.String(64), nullable=False)  # "Product Created", "Sent by Manufacturer", ...
    performer = db.Column(db.String(255), nullable=False)

    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "sequence": self.sequence,
            "transaction_type": self.transaction_type,
            "performer": self.performer,
            "timestamp": to_utc_z(self.occurred_at),
        }
