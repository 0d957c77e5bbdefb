# Overview: Consistency audit of the persisted ledger against its invariants.

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field

from ..extensions import db
from ..lifecycle import CREATED_LABEL, HISTORY_FIELDS, ProductStatus
from ..models import Product, ProductTransaction, StageIndexEntry
from . import command_service


# Status -> the timestamp fields that must be set once it is reached
_REQUIRED_TIMESTAMPS = {
    ProductStatus.CREATED: HISTORY_FIELDS[:1],
    ProductStatus.SENT_BY_MANUFACTURER: HISTORY_FIELDS[:2],
    ProductStatus.RECEIVED_BY_DISTRIBUTOR: HISTORY_FIELDS[:3],
    ProductStatus.SENT_BY_DISTRIBUTOR: HISTORY_FIELDS[:4],
    ProductStatus.RECEIVED_BY_RETAILER: HISTORY_FIELDS[:5],
}


@dataclass
class LedgerAudit:
    products_checked: int = 0
    problems: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.problems

    def to_dict(self) -> dict:
        return {"ok": self.ok, "products_checked": self.products_checked, "problems": list(self.problems)}


def verify_ledger() -> LedgerAudit:
    """
    Check every invariant against what is stored.

    - product ids are exactly 1..product_count
    - each product is in exactly one stage bucket, the one matching its status
    - bucket positions are dense 0..n-1
    - each product's log is sequence 1..n starting with the creation entry
    - timestamps are set exactly for the steps the status has reached

    ReturnRequested products are skipped for the bucket and timestamp checks;
    the flow that sets that status is not part of this engine.
    """
    audit = LedgerAudit()
    state = command_service.load_state()
    expected_count = state.product_count if state is not None else 0

    products = db.session.query(Product).order_by(Product.id.asc()).all()
    audit.products_checked = len(products)

    ids = [p.id for p in products]
    if ids != list(range(1, expected_count + 1)):
        audit.problems.append(
            f"product ids {ids[:5]}... do not match counter 1..{expected_count}"
        )

    entries_by_product = defaultdict(list)
    positions_by_status = defaultdict(list)
    for entry in db.session.query(StageIndexEntry).all():
        entries_by_product[entry.product_id].append(entry)
        positions_by_status[entry.status].append(entry.position)

    for status, positions in positions_by_status.items():
        if sorted(positions) != list(range(len(positions))):
            audit.problems.append(f"stage {status.value} positions are not dense: {sorted(positions)}")

    logs = defaultdict(list)
    for tx in db.session.query(ProductTransaction).order_by(ProductTransaction.sequence.asc()).all():
        logs[tx.product_id].append(tx)

    for product in products:
        entries = entries_by_product.get(product.id, [])
        if product.status != ProductStatus.RETURN_REQUESTED:
            if len(entries) != 1:
                audit.problems.append(f"product {product.id} is in {len(entries)} stage buckets")
            elif entries[0].status != product.status:
                audit.problems.append(
                    f"product {product.id} status {product.status.value} "
                    f"but stage bucket {entries[0].status.value}"
                )

            required = set(_REQUIRED_TIMESTAMPS[product.status])
            for field_name in HISTORY_FIELDS:
                is_set = getattr(product, field_name) is not None
                if is_set != (field_name in required):
                    audit.problems.append(
                        f"product {product.id} {field_name} {'set' if is_set else 'unset'} "
                        f"in status {product.status.value}"
                    )

        log = logs.get(product.id, [])
        sequences = [tx.sequence for tx in log]
        if sequences != list(range(1, len(log) + 1)):
            audit.problems.append(f"product {product.id} log sequence has gaps: {sequences}")
        if not log or log[0].transaction_type != CREATED_LABEL:
            audit.problems.append(f"product {product.id} log does not start with '{CREATED_LABEL}'")

    for product_id in set(entries_by_product) - set(ids):
        audit.problems.append(f"stage index references missing product {product_id}")

    return audit

