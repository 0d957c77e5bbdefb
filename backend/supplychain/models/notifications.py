from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class Notification(db.Model):
    """
    Outbound notification outbox.

    Rows are written in the same DB transaction as the command that produced
    them, and only for commands that commit. Subscribers are called after the
    commit. The table also backs the activity feed.
    """
    __tablename__ = "notifications"
    __table_args__ = (
        db.Index("ix_notifications_type_id", "event_type", "id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # ProductCreated, ProductSent, ProductReceived, StatusChanged, ...
    event_type = db.Column(db.String(64), nullable=False, index=True)
    product_id = db.Column(db.Integer, nullable=True, index=True)

    payload = db.Column(db.JSON, nullable=False, default=dict)

    command_seq = db.Column(db.Integer, nullable=False, index=True)
    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "event_type": self.event_type,
            "product_id": self.product_id,
            "payload": self.payload,
            "command_seq": self.command_seq,
            "occurred_at": to_utc_z(self.occurred_at),
        }
