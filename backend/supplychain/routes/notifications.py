# Overview: Flask API route for the notification activity feed.

from flask import Blueprint, request, current_app

from ..services import notification_service

"""
Feed semantics:
- Newest first (descending id).
- cursor is the id of the last item of the previous page; the next page
  holds strictly older notifications.
"""

notifications_bp = Blueprint("notifications", __name__, url_prefix="/api/notifications")


@notifications_bp.get("")
def list_notifications_route():
    max_limit = current_app.config.get("ACTIVITY_FEED_MAX_LIMIT", 500)
    limit = request.args.get("limit", default=100, type=int)
    limit = max(1, min(limit, max_limit))

    event_type = request.args.get("event_type")
    if event_type and event_type not in notification_service.EVENT_TYPES:
        return {"error": f"Unknown event_type '{event_type}'", "kind": "InvalidArgument"}, 400

    product_id = request.args.get("product_id", type=int)
    cursor = request.args.get("cursor", type=int)

    rows = notification_service.list_notifications(
        event_type=event_type,
        product_id=product_id,
        before_id=cursor,
        limit=limit,
    )

    next_cursor = rows[-1].id if len(rows) == limit else None
    return {
        "items": [r.to_dict() for r in rows],
        "next_cursor": next_cursor,
        "limit": limit,
    }, 200
