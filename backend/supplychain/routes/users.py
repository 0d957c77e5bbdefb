# Overview: Flask API routes for per-identity product lookups.

from flask import Blueprint

from ..services import query_service

users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("/<identity>/products")
def user_products_route(identity: str):
    """Ids the identity created or received, in the order it touched them."""
    ids = query_service.get_user_products(identity)
    return {"identity": identity.strip().lower(), "product_ids": ids, "count": len(ids)}
