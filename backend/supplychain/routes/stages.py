# Overview: Flask API routes for stage listings (full records per bucket).

from flask import Blueprint

from ..errors import LedgerError
from ..lifecycle import ProductStatus
from ..services import query_service

stages_bp = Blueprint("stages", __name__, url_prefix="/api/stages")

# Named convenience listings, one per workflow stage
STAGE_QUERIES = {
    "created": query_service.get_products_created,
    "sent-by-manufacturer": query_service.get_products_sent_by_manufacturer,
    "received-by-distributor": query_service.get_products_received_by_distributor,
    "sent-by-distributor": query_service.get_products_sent_by_distributor,
    "received-by-retailer": query_service.get_products_received_by_retailer,
}


@stages_bp.get("")
def list_stages_route():
    return {
        "stages": [
            {"status": s.value, "code": s.ordinal, "label": s.label}
            for s in ProductStatus
        ]
    }


@stages_bp.get("/<stage>")
def stage_products_route(stage: str):
    """
    Full product records in one stage.

    stage is a slug from STAGE_QUERIES, a status name, or a status code.
    The received-by-retailer slug excludes ReturnRequested products.
    """
    try:
        query = STAGE_QUERIES.get(stage)
        if query is not None:
            products = query()
        else:
            products = query_service.get_products_in_stage(stage)
    except LedgerError as e:
        return e.to_dict(), e.http_status

    return {
        "stage": stage,
        "items": [p.to_dict() for p in products],
        "count": len(products),
    }
