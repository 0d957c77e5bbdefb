# backend/supplychain/routes/lifecycle.py
"""
Custody Transition API Routes

These routes move a product one step along the custody chain:
- POST /api/lifecycle/<id>/send-by-manufacturer      (manufacturer)
- POST /api/lifecycle/<id>/receive-by-distributor    (distributor)
- POST /api/lifecycle/<id>/send-by-distributor       (distributor)
- POST /api/lifecycle/<id>/receive-by-retailer       (retailer)

WHY SEPARATE ROUTES:
- Transitions are distinct from record edits (create, update details)
- One URL per table row keeps the audit of who may call what readable

SECURITY:
- The performer is the caller identity from the request header,
  NOT from the request body, so the audit trail cannot be spoofed by payload
- Role and current-state checks happen inside the engine's command

Error responses:
    401: No caller identity
    403: Caller lacks the transition's role
    404: Unknown product
    409: Product is not in the required status
"""

from flask import Blueprint, g, current_app

from ..decorators import require_caller
from ..errors import LedgerError
from ..lifecycle import TRANSITIONS
from ..services import transition_service


lifecycle_bp = Blueprint("lifecycle", __name__, url_prefix="/api/lifecycle")


def _run_transition(operation: str, product_id: int):
    try:
        product = transition_service.apply_transition(operation, product_id, caller=g.caller)
    except LedgerError as e:
        return e.to_dict(), e.http_status
    except Exception:
        current_app.logger.exception("Failed to %s product %s", operation, product_id)
        return {"error": "Internal server error"}, 500

    return {
        "product": product.to_dict(),
        "message": f"Product {product_id} {TRANSITIONS[operation].label.lower()}",
    }, 200


@lifecycle_bp.post("/<int:product_id>/send-by-manufacturer")
@require_caller
def send_by_manufacturer_route(product_id: int):
    """Created -> SentByManufacturer."""
    return _run_transition("send_by_manufacturer", product_id)


@lifecycle_bp.post("/<int:product_id>/receive-by-distributor")
@require_caller
def receive_by_distributor_route(product_id: int):
    """SentByManufacturer -> ReceivedByDistributor."""
    return _run_transition("receive_by_distributor", product_id)


@lifecycle_bp.post("/<int:product_id>/send-by-distributor")
@require_caller
def send_by_distributor_route(product_id: int):
    """ReceivedByDistributor -> SentByDistributor."""
    return _run_transition("send_by_distributor", product_id)


@lifecycle_bp.post("/<int:product_id>/receive-by-retailer")
@require_caller
def receive_by_retailer_route(product_id: int):
    """SentByDistributor -> ReceivedByRetailer."""
    return _run_transition("receive_by_retailer", product_id)


@lifecycle_bp.get("/transitions")
def list_transitions_route():
    """The transition table, for clients that render the custody chain."""
    return {
        "transitions": [
            {
                "operation": t.operation,
                "role": t.role,
                "from_status": t.from_status.value,
                "to_status": t.to_status.value,
                "label": t.label,
            }
            for t in TRANSITIONS.values()
        ]
    }
