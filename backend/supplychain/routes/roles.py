# Overview: Flask API routes for the role registry.

from flask import Blueprint, request, g, current_app

from ..decorators import require_caller
from ..errors import LedgerError
from ..services import role_service

roles_bp = Blueprint("roles", __name__, url_prefix="/api/roles")


@roles_bp.get("")
def get_roles_route():
    """The four role identities (null where unassigned)."""
    return role_service.get_roles()


@roles_bp.get("/<identity>")
def roles_of_identity_route(identity: str):
    """Which roles an identity holds right now."""
    try:
        roles = role_service.roles_of(identity)
    except LedgerError as e:
        return e.to_dict(), e.http_status
    return {"identity": identity.strip().lower(), "roles": roles}


@roles_bp.put("/addresses")
@require_caller
def set_addresses_route():
    """
    Assign manufacturer, distributor and retailer (owner only).

    Body: {"manufacturer": str, "distributor": str, "retailer": str}
    All three are required and overwritten together.
    """
    payload = request.get_json(silent=True) or {}

    try:
        state = role_service.set_addresses(
            caller=g.caller,
            manufacturer=payload.get("manufacturer"),
            distributor=payload.get("distributor"),
            retailer=payload.get("retailer"),
        )
    except LedgerError as e:
        return e.to_dict(), e.http_status
    except Exception:
        current_app.logger.exception("Failed to set role addresses")
        return {"error": "Internal server error"}, 500

    return state.roles_dict(), 200


@roles_bp.post("/ownership")
@require_caller
def transfer_ownership_route():
    """
    Transfer the owner role (owner only). Effective immediately.

    Body: {"new_owner": str}
    """
    payload = request.get_json(silent=True) or {}

    try:
        state = role_service.transfer_ownership(caller=g.caller, new_owner=payload.get("new_owner"))
    except LedgerError as e:
        return e.to_dict(), e.http_status
    except Exception:
        current_app.logger.exception("Failed to transfer ownership")
        return {"error": "Internal server error"}, 500

    return state.roles_dict(), 200
