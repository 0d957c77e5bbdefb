from __future__ import annotations

from ..extensions import db
from ..lifecycle import ProductStatus, HISTORY_FIELDS
from ..time_utils import to_utc_z


def ProductStatusType():
    """Status column type: stored as the enum value string, loaded as ProductStatus."""
    return db.Enum(
        ProductStatus,
        name="product_status",
        native_enum=False,
        validate_strings=True,
        values_callable=lambda enum_cls: [m.value for m in enum_cls],
    )


class Product(db.Model):
    """
    Canonical product record.

    MUTATION RULES:
    - Created once by a manufacturer
    - status and the four transition timestamps change only through the
      transition engine
    - name/description/price change only through the owner's
      update-details operation
    - Never deleted

    id is assigned explicitly from LedgerState.product_count, not by the
    database, so the 1, 2, 3, ... sequence is part of the committed state.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_status_id", "status", "id"),
    )

    id = db.Column(db.Integer, primary_key=True, autoincrement=False)

    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False, default="")

    # Smallest unit of account; descriptive metadata only
    price = db.Column(db.Integer, nullable=False)

    status = db.Column(ProductStatusType(), nullable=False, index=True)

    created_by = db.Column(db.String(255), nullable=False, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)
    sent_by_manufacturer_at = db.Column(db.DateTime(timezone=True), nullable=True)
    received_by_distributor_at = db.Column(db.DateTime(timezone=True), nullable=True)
    sent_by_distributor_at = db.Column(db.DateTime(timezone=True), nullable=True)
    received_by_retailer_at = db.Column(db.DateTime(timezone=True), nullable=True)

    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} status={self.status.value}>"

    def history(self) -> list:
        """The five lifecycle timestamps in order; None means not yet reached."""
        return [getattr(self, field) for field in HISTORY_FIELDS]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "status": self.status.value,
            "status_code": self.status.ordinal,
            "status_label": self.status.label,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
            "sent_by_manufacturer_at": to_utc_z(self.sent_by_manufacturer_at),
            "received_by_distributor_at": to_utc_z(self.received_by_distributor_at),
            "sent_by_distributor_at": to_utc_z(self.sent_by_distributor_at),
            "received_by_retailer_at": to_utc_z(self.received_by_retailer_at),
        }
