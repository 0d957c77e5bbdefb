# Overview: The custody state machine; role-gated transitions committed atomically.

"""
Custody Transition Engine

================================================================================
PURPOSE: Move products along the fixed custody chain, one role per step
================================================================================

STATE MACHINE (see lifecycle.TRANSITIONS):
    Created -> SentByManufacturer -> ReceivedByDistributor
            -> SentByDistributor -> ReceivedByRetailer

EVERY WRITE IS ONE COMMAND (command_service.execute_command):
    1. role check (role_service.require_role)
    2. product lookup and current-state check
    3. only then: product status + timestamp, stage index move,
       transaction log append, user index append, notifications

RULES (NON-NEGOTIABLE):
1. Any failed precondition raises before step 3; nothing is written
2. Status only moves forward, one step, along the table
3. The transaction log gets exactly one entry per successful operation
4. Notifications leave the engine only after the commit

================================================================================
"""

from __future__ import annotations

from ..errors import InvalidStateError
from ..lifecycle import (
    CREATED_LABEL,
    DETAILS_UPDATED_LABEL,
    RECEIVED,
    SENT,
    TRANSITIONS,
    ProductStatus,
    can_transition,
    get_transition,
)
from ..models import Product
from ..roles import Role
from . import (
    command_service,
    products_service,
    role_service,
    stage_index_service,
    transaction_log_service,
    user_index_service,
)
from . import notification_service as notes
from .command_service import CommandContext


def create_product(*, caller, name, description, price) -> Product:
    """
    Create a product in Created status (manufacturer only).

    Returns:
        The new product; its id is the previous product count + 1

    Raises:
        UnauthorizedCallerError: caller is not the manufacturer
        InvalidArgumentError: blank name or non-positive price
    """
    def _handler(ctx: CommandContext) -> Product:
        performer = role_service.require_role(caller, Role.MANUFACTURER, state=ctx.state)
        details = products_service.validate_details(name=name, description=description, price=price)

        product = products_service.create_record(ctx.state, details=details, performer=performer, now=ctx.now)
        stage_index_service.add_to_stage(product.id, ProductStatus.CREATED)
        tx = transaction_log_service.append_transaction(
            product_id=product.id,
            transaction_type=CREATED_LABEL,
            performer=performer,
            occurred_at=ctx.now,
        )
        user_index_service.record_user_product(
            identity=performer,
            product_id=product.id,
            reason=user_index_service.CREATED,
            added_at=ctx.now,
        )

        ctx.notifications.emit(
            notes.PRODUCT_CREATED,
            occurred_at=ctx.now,
            product_id=product.id,
            manufacturer=performer,
            name=product.name,
        )
        _emit_status_change(ctx, product.id, None, ProductStatus.CREATED)
        _emit_transaction(ctx, tx)
        return product

    return command_service.execute_command("create_product", _handler)


def apply_transition(operation: str, product_id, *, caller) -> Product:
    """
    Run one row of the transition table against a product.

    Raises:
        UnauthorizedCallerError: caller does not hold the transition's role
        UnknownProductError: product_id outside [1, product_count]
        InvalidStateError: product is not in the transition's from-status
    """
    transition = get_transition(operation)

    def _handler(ctx: CommandContext) -> Product:
        performer = role_service.require_role(caller, transition.role, state=ctx.state)
        product = products_service.get_product(product_id, state=ctx.state, for_update=True)

        old_status = product.status
        if not can_transition(old_status, transition.to_status):
            raise InvalidStateError(
                f"Cannot {operation.replace('_', ' ')} product {product.id}: "
                f"current status is '{old_status.value}', must be '{transition.from_status.value}'"
            )

        product.status = transition.to_status
        setattr(product, transition.timestamp_field, ctx.now)
        stage_index_service.move_stage(product.id, old_status, transition.to_status)
        tx = transaction_log_service.append_transaction(
            product_id=product.id,
            transaction_type=transition.label,
            performer=performer,
            occurred_at=ctx.now,
        )
        if transition.records_user_product:
            user_index_service.record_user_product(
                identity=performer,
                product_id=product.id,
                reason=user_index_service.RECEIVED,
                added_at=ctx.now,
            )

        _emit_status_change(ctx, product.id, old_status, transition.to_status)
        if transition.kind == SENT:
            ctx.notifications.emit(
                notes.PRODUCT_SENT,
                occurred_at=ctx.now,
                product_id=product.id,
                sender=performer,
                recipient=role_service.role_identity(ctx.state, transition.recipient_role),
            )
        elif transition.kind == RECEIVED:
            ctx.notifications.emit(
                notes.PRODUCT_RECEIVED,
                occurred_at=ctx.now,
                product_id=product.id,
                receiver=performer,
            )
        _emit_transaction(ctx, tx)
        return product

    return command_service.execute_command(operation, _handler)


def send_by_manufacturer(product_id, *, caller) -> Product:
    """Created -> SentByManufacturer (manufacturer only)."""
    return apply_transition("send_by_manufacturer", product_id, caller=caller)


def receive_by_distributor(product_id, *, caller) -> Product:
    """SentByManufacturer -> ReceivedByDistributor (distributor only)."""
    return apply_transition("receive_by_distributor", product_id, caller=caller)


def send_by_distributor(product_id, *, caller) -> Product:
    """ReceivedByDistributor -> SentByDistributor (distributor only)."""
    return apply_transition("send_by_distributor", product_id, caller=caller)


def receive_by_retailer(product_id, *, caller) -> Product:
    """SentByDistributor -> ReceivedByRetailer (retailer only)."""
    return apply_transition("receive_by_retailer", product_id, caller=caller)


def update_product_details(product_id, *, caller, name, description, price) -> Product:
    """
    Owner correction of name/description/price.

    Status, timestamps and stage membership are untouched. The edit is still
    an operation on the product, so it gets a transaction log entry.

    Raises:
        UnauthorizedCallerError: caller is not the owner
        UnknownProductError: product_id outside [1, product_count]
        InvalidArgumentError: blank name or non-positive price
    """
    def _handler(ctx: CommandContext) -> Product:
        performer = role_service.require_role(caller, Role.OWNER, state=ctx.state)
        product = products_service.get_product(product_id, state=ctx.state, for_update=True)
        details = products_service.validate_details(name=name, description=description, price=price)

        products_service.apply_details(product, details)
        tx = transaction_log_service.append_transaction(
            product_id=product.id,
            transaction_type=DETAILS_UPDATED_LABEL,
            performer=performer,
            occurred_at=ctx.now,
        )
        _emit_transaction(ctx, tx)
        return product

    return command_service.execute_command("update_product_details", _handler)


def available_operations(product: Product) -> list[str]:
    """Transitions whose from-status matches the product right now."""
    return [op for op, t in TRANSITIONS.items() if t.from_status == product.status]


def _emit_status_change(ctx: CommandContext, product_id: int, old, new: ProductStatus) -> None:
    ctx.notifications.emit(
        notes.STATUS_CHANGED,
        occurred_at=ctx.now,
        product_id=product_id,
        old_status=old,
        new_status=new,
    )
    ctx.notifications.emit(
        notes.STAGE_UPDATED,
        occurred_at=ctx.now,
        product_id=product_id,
        removed_from=old,
        added_to=new,
    )


def _emit_transaction(ctx: CommandContext, tx) -> None:
    ctx.notifications.emit(
        notes.TRANSACTION_PERFORMED,
        occurred_at=ctx.now,
        product_id=tx.product_id,
        transaction_type=tx.transaction_type,
        performer=tx.performer,
        sequence=tx.sequence,
    )
