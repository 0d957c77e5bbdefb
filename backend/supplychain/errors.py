# Overview: Domain error kinds raised by the ledger engine.

"""
Ledger error kinds.

Every public ledger operation validates role, argument and state
preconditions before touching the session. When a precondition fails it
raises one of these and nothing is written: no record change, no stage
move, no transaction log entry, no notification.

Each kind carries the HTTP status the API layer answers with, so routes
translate errors the same way everywhere.
"""


class LedgerError(ValueError):
    """
    Base class for synchronous ledger rejections.

    This is a domain error, not a technical error. The caller must
    resubmit the operation if it is still wanted; the engine never retries it.
    """
    kind = "LedgerError"
    http_status = 400

    def to_dict(self) -> dict:
        return {"error": str(self), "kind": self.kind}


class UnauthorizedCallerError(LedgerError):
    """Caller identity does not hold the role the operation requires."""
    kind = "UnauthorizedCaller"
    http_status = 403


class UnknownProductError(LedgerError):
    """Product id is zero, negative, or greater than the current counter."""
    kind = "UnknownProduct"
    http_status = 404


class InvalidStateError(LedgerError):
    """The product's current status is not the one the transition requires."""
    kind = "InvalidState"
    http_status = 409


class InvalidArgumentError(LedgerError):
    """Empty name, non-positive price, null identity, or start date after end date."""
    kind = "InvalidArgument"
    http_status = 400
