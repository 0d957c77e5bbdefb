from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


LEDGER_STATE_ID = 1


class LedgerState(db.Model):
    """
    Single-row state aggregate: the role registry plus the global counters.

    WHY ONE ROW:
    - One global instance of the roles (not multi-tenant)
    - product_count is the id counter; ids are assigned as product_count + 1
      inside the same command, so ids are never reused and never skip
    - command_seq is bumped by every committed command. It is the optimistic
      version column, so two writers racing from different processes cannot
      both commit against the same ledger state (the loser gets StaleDataError
      and its command is re-run).
    """
    __tablename__ = "ledger_state"

    id = db.Column(db.Integer, primary_key=True, default=LEDGER_STATE_ID)

    owner = db.Column(db.String(255), nullable=False)
    manufacturer = db.Column(db.String(255), nullable=True)
    distributor = db.Column(db.String(255), nullable=True)
    retailer = db.Column(db.String(255), nullable=True)

    product_count = db.Column(db.Integer, nullable=False, default=0)
    command_seq = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    # Bumped explicitly once per command; the UPDATE still checks the old value
    __mapper_args__ = {"version_id_col": command_seq, "version_id_generator": False}

    def __repr__(self) -> str:
        return f"<LedgerState owner={self.owner!r} products={self.product_count} seq={self.command_seq}>"

    def roles_dict(self) -> dict:
        return {
            "owner": self.owner,
            "manufacturer": self.manufacturer,
            "distributor": self.distributor,
            "retailer": self.retailer,
        }

    def to_dict(self) -> dict:
        return {
            **self.roles_dict(),
            "product_count": self.product_count,
            "command_seq": self.command_seq,
            "updated_at": to_utc_z(self.updated_at),
        }
