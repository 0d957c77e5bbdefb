# Overview: Role registry: the four fixed identities and the single role check.

"""
Role Registry

WHY: Every mutating ledger operation is gated by exactly one role. All
handlers call check_role / require_role at the top, so guard logic lives
in one place and cannot drift between operations.

RULES:
- The owner is fixed when the registry is initialized
- Only the owner sets manufacturer/distributor/retailer (all three at once)
- Only the owner transfers ownership, effective immediately
- The null identity can never be assigned to a role
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from flask import current_app

from ..errors import InvalidArgumentError, UnauthorizedCallerError
from ..extensions import db
from ..models import LedgerState
from ..models.ledger import LEDGER_STATE_ID
from ..roles import ALL_ROLES, ASSIGNABLE_ROLES, Role
from ..validation import normalize_identity, require_identity
from . import command_service
from . import notification_service as notes


@dataclass(frozen=True)
class RoleCheck:
    granted: bool
    role: str
    identity: Optional[str]
    reason: Optional[str] = None


def get_state() -> LedgerState | None:
    return command_service.load_state()


def initialize_registry(owner: str) -> LedgerState:
    """
    Create the ledger state row with the owner fixed.

    Idempotent for the same owner. A registry that already has a different
    owner is left alone and the call is rejected; ownership only moves
    through transfer_ownership.
    """
    owner_identity = require_identity(owner, "owner")

    with command_service.command_lock():
        state = command_service.load_state()
        if state is not None:
            if state.owner != owner_identity:
                raise UnauthorizedCallerError(
                    "Role registry already initialized with a different owner"
                )
            return state

        state = LedgerState(
            id=LEDGER_STATE_ID,
            owner=owner_identity,
            product_count=0,
            command_seq=0,
        )
        db.session.add(state)
        try:
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

    current_app.logger.info("Initialized role registry (owner=%s)", owner_identity)
    return state


def get_roles() -> dict:
    """The four role identities; None where unassigned or uninitialized."""
    state = get_state()
    if state is None:
        return {role: None for role in ALL_ROLES}
    return state.roles_dict()


def role_identity(state: LedgerState | None, role: str) -> Optional[str]:
    if role not in ALL_ROLES:
        raise InvalidArgumentError(f"Unknown role '{role}'")
    if state is None:
        return None
    return getattr(state, role)


def check_role(identity, role: str, *, state: LedgerState | None = None) -> RoleCheck:
    """
    The permission check. Pure: no logging, no writes.

    Pass state when already inside a command so the check sees the locked row.
    """
    if state is None:
        state = get_state()
    holder = role_identity(state, role)
    caller = normalize_identity(identity)

    if caller is None:
        return RoleCheck(False, role, None, "Caller identity is required")
    if holder is None:
        return RoleCheck(False, role, caller, f"No {role} is assigned")
    if caller != holder:
        return RoleCheck(False, role, caller, f"Caller is not the {role}")
    return RoleCheck(True, role, caller)


def has_role(identity, role: str, *, state: LedgerState | None = None) -> bool:
    return check_role(identity, role, state=state).granted


def require_role(identity, role: str, *, state: LedgerState | None = None) -> str:
    """
    Raise UnauthorizedCallerError unless identity holds role.

    Returns the normalized caller identity for use as the performer.
    """
    result = check_role(identity, role, state=state)
    if not result.granted:
        raise UnauthorizedCallerError(result.reason)
    return result.identity


def roles_of(identity, *, state: LedgerState | None = None) -> list[str]:
    """Every role the identity currently holds (one identity may hold several)."""
    if state is None:
        state = get_state()
    return [role for role in ALL_ROLES if has_role(identity, role, state=state)]


def set_addresses(*, caller, manufacturer, distributor, retailer) -> LedgerState:
    """
    Assign manufacturer, distributor and retailer in one command.

    Raises:
        UnauthorizedCallerError: caller is not the owner
        InvalidArgumentError: any identity is null
    """
    def _handler(ctx: command_service.CommandContext) -> LedgerState:
        owner = require_role(caller, Role.OWNER, state=ctx.state)
        submitted = zip(ASSIGNABLE_ROLES, (manufacturer, distributor, retailer))
        new_values = {role: require_identity(value, role) for role, value in submitted}

        state = ctx.state
        old_values = {role: getattr(state, role) for role in new_values}
        for role, identity in new_values.items():
            setattr(state, role, identity)

        ctx.notifications.emit(
            notes.ADDRESSES_SET,
            occurred_at=ctx.now,
            performer=owner,
            old=old_values,
            new=new_values,
        )
        return state

    return command_service.execute_command("set_addresses", _handler)


def transfer_ownership(*, caller, new_owner) -> LedgerState:
    """
    Hand the owner role to new_owner.

    Raises:
        UnauthorizedCallerError: caller is not the owner
        InvalidArgumentError: new_owner is null
    """
    def _handler(ctx: command_service.CommandContext) -> LedgerState:
        previous = require_role(caller, Role.OWNER, state=ctx.state)
        target = require_identity(new_owner, "new_owner")

        ctx.state.owner = target
        ctx.notifications.emit(
            notes.OWNERSHIP_TRANSFERRED,
            occurred_at=ctx.now,
            previous_owner=previous,
            new_owner=target,
        )
        return ctx.state

    return command_service.execute_command("transfer_ownership", _handler)
