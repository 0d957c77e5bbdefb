# Overview: Request decorators for API routes.

from functools import wraps
from flask import request, jsonify, g, current_app

from .validation import normalize_identity


def require_caller(f):
    """
    Resolve the caller identity for a mutating route.

    Identity mechanics (wallets, sessions, signatures) live outside this
    service: whatever sits in front of it resolves the caller and forwards
    the identity in the configured header (default X-Caller-Identity).

    Sets g.caller to the normalized identity.

    SECURITY: Returns 401 if the header is missing or holds the null identity.
    Role checks are NOT done here; the ledger engine checks the role inside
    the same command that writes, against the role registry it has locked.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        header = current_app.config.get("CALLER_IDENTITY_HEADER", "X-Caller-Identity")
        raw = request.headers.get(header)

        try:
            caller = normalize_identity(raw)
        except ValueError:
            caller = None

        if caller is None:
            return jsonify({"error": "Caller identity required", "kind": "UnauthorizedCaller"}), 401

        g.caller = caller
        return f(*args, **kwargs)

    return decorated_function
