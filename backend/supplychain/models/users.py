from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class UserProduct(db.Model):
    """
    Lookup index: product ids an identity has touched (created or received).

    Append-only and not deduplicated. Used for lookups only; nothing
    consistency-critical reads it.
    """
    __tablename__ = "user_products"
    __table_args__ = (
        db.Index("ix_user_products_identity_id", "identity", "id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    identity = db.Column(db.String(255), nullable=False)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    reason = db.Column(db.String(16), nullable=False)  # created, received

    added_at = db.Column(db.DateTime(timezone=True), nullable=False)

    def to_dict(self) -> dict:
        return {
            "identity": self.identity,
            "product_id": self.product_id,
            "reason": self.reason,
            "added_at": to_utc_z(self.added_at),
        }
