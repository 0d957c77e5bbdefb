# Overview: Flask API routes for products; parses input and returns JSON responses.

# backend/supplychain/routes/products.py
"""
Product routes.

- Reads (get, count, by status, by date range, history, transactions,
  trace) need no identity and no role.
- Writes (create, update details) need a caller identity; the role is
  checked by the transition engine.
"""
from flask import Blueprint, request, g, current_app

from ..decorators import require_caller
from ..errors import LedgerError
from ..services import products_service, query_service, transition_service
from ..time_utils import parse_timestamp, to_epoch_seconds, to_utc_z

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.post("")
@require_caller
def create_product_route():
    """
    Create a product (manufacturer only).

    Body: {"name": str, "description": str, "price": int}

    Error responses:
        401: No caller identity
        403: Caller is not the manufacturer
        400: Blank name / non-positive price
    """
    payload = request.get_json(silent=True) or {}

    try:
        product = transition_service.create_product(
            caller=g.caller,
            name=payload.get("name"),
            description=payload.get("description", ""),
            price=payload.get("price"),
        )
    except LedgerError as e:
        return e.to_dict(), e.http_status
    except Exception:
        current_app.logger.exception("Failed to create product")
        return {"error": "Internal server error"}, 500

    return product.to_dict(), 201


@products_bp.patch("/<int:product_id>")
@require_caller
def update_product_route(product_id: int):
    """
    Update name/description/price (owner only). All three are required;
    this is a full replacement of the descriptive fields.
    """
    payload = request.get_json(silent=True) or {}

    try:
        product = transition_service.update_product_details(
            product_id,
            caller=g.caller,
            name=payload.get("name"),
            description=payload.get("description", ""),
            price=payload.get("price"),
        )
    except LedgerError as e:
        return e.to_dict(), e.http_status
    except Exception:
        current_app.logger.exception("Failed to update product")
        return {"error": "Internal server error"}, 500

    return product.to_dict(), 200


@products_bp.get("")
def list_products_route():
    """
    Product ids by stage, or every product record when no status is given.

    Query params:
    - status: status name ("Created") or code (0..5)
    - limit, offset: paging for the unfiltered listing (id order)
    """
    status = request.args.get("status")
    if status is None:
        limit = request.args.get("limit", default=100, type=int)
        offset = request.args.get("offset", default=0, type=int)
        if limit < 1 or offset < 0:
            return {"error": "limit must be >= 1 and offset >= 0", "kind": "InvalidArgument"}, 400
        products = products_service.list_products(limit=limit, offset=offset)
        return {"items": [p.to_dict() for p in products], "count": len(products), "limit": limit, "offset": offset}

    try:
        ids = query_service.get_products_by_status(status)
    except LedgerError as e:
        return e.to_dict(), e.http_status

    return {"status": status, "product_ids": ids, "count": len(ids)}


@products_bp.get("/count")
def product_count_route():
    return {"count": query_service.get_product_count()}


@products_bp.get("/range")
def products_by_date_range_route():
    """
    Ids created in [start, end], inclusive, ascending.

    Query params: start, end as unix seconds or ISO-8601.
    """
    try:
        start = parse_timestamp(request.args.get("start"))
        end = parse_timestamp(request.args.get("end"))
    except (ValueError, OverflowError, OSError):
        return {"error": "start and end must be unix seconds or ISO-8601 datetimes", "kind": "InvalidArgument"}, 400

    try:
        ids = query_service.get_products_by_date_range(start, end)
    except LedgerError as e:
        return e.to_dict(), e.http_status

    return {"product_ids": ids, "count": len(ids)}


@products_bp.get("/<int:product_id>")
def get_product_route(product_id: int):
    try:
        product = query_service.get_product(product_id)
    except LedgerError as e:
        return e.to_dict(), e.http_status
    return product.to_dict()


@products_bp.get("/<int:product_id>/history")
def product_history_route(product_id: int):
    """
    Lifecycle timestamps in order. "history" holds ISO strings (null = not
    reached); "epoch" holds unix seconds (0 = not reached).
    """
    try:
        history = query_service.get_product_history(product_id)
    except LedgerError as e:
        return e.to_dict(), e.http_status

    return {
        "product_id": product_id,
        "history": [to_utc_z(ts) for ts in history],
        "epoch": [to_epoch_seconds(ts) for ts in history],
    }


@products_bp.get("/<int:product_id>/transactions")
def product_transactions_route(product_id: int):
    try:
        transactions = query_service.get_product_transactions(product_id)
    except LedgerError as e:
        return e.to_dict(), e.http_status

    return {
        "product_id": product_id,
        "transactions": [tx.to_dict() for tx in transactions],
        "count": len(transactions),
    }


@products_bp.get("/<int:product_id>/trace")
def product_trace_route(product_id: int):
    """Record + log + reached steps + which transitions are possible next."""
    try:
        trace = query_service.get_product_trace(product_id)
    except LedgerError as e:
        return e.to_dict(), e.http_status

    product = trace["product"]
    return {
        "product": product.to_dict(),
        "transactions": [tx.to_dict() for tx in trace["transactions"]],
        "history": [{"step": h["step"], "at": to_utc_z(h["at"])} for h in trace["history"]],
        "stage": trace["stage"].value if trace["stage"] is not None else None,
        "available_operations": transition_service.available_operations(product),
    }
