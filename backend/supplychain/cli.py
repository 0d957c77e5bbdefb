# Overview: Flask CLI command groups for ledger bootstrap and audit, roles, and product lookup.

# backend/supplychain/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# Ledger bootstrap/audit:
# - python -m flask ledger init --owner 0xOWNER
#   Create tables (if missing) and fix the owner identity. Idempotent for the same owner.
#   --owner defaults to OWNER_IDENTITY from the environment.
# - python -m flask ledger check
#   Verify stage index, transaction log and timestamp invariants. Exit code 1 on problems.
# - python -m flask ledger reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Role administration:
# - python -m flask roles show
#   Print the four role identities.
# - python -m flask roles set-addresses --caller 0xOWNER --manufacturer 0xM --distributor 0xD --retailer 0xR
#   Assign the three workflow roles (caller must be the owner).
# - python -m flask roles transfer-ownership --caller 0xOWNER --new-owner 0xNEW
#   Hand the owner role to another identity.
#
# Product inspection:
# - python -m flask products list [--status SentByManufacturer]
#   List products, optionally one stage.
# - python -m flask products show 1
#   Print a product record and its transaction log.
# - python -m flask products history 1
#   Print the lifecycle timestamps of one product.

import click
from flask import current_app
from flask.cli import with_appcontext

from .errors import LedgerError
from .extensions import db
from .lifecycle import HISTORY_FIELDS
from .services import maintenance_service, products_service, query_service, role_service
from .time_utils import to_utc_z


@click.group('ledger')
def ledger_group():
    """Ledger bootstrap and audit commands."""


@ledger_group.command('init')
@click.option('--owner', default=None, help='Owner identity (defaults to OWNER_IDENTITY)')
@with_appcontext
def init_ledger(owner):
    """
    Create the schema and the role registry.

    The owner is fixed here; afterwards it only changes through
    `roles transfer-ownership`.
    """
    owner = owner or current_app.config.get("OWNER_IDENTITY")
    if not owner:
        raise click.UsageError("--owner is required when OWNER_IDENTITY is not set")

    click.echo("START Initializing ledger...")
    db.create_all()
    click.echo("PASS Schema ready")

    try:
        state = role_service.initialize_registry(owner)
    except LedgerError as e:
        raise click.ClickException(str(e))

    click.echo(f"PASS Role registry ready (owner: {state.owner}, products: {state.product_count})")


@ledger_group.command('check')
@with_appcontext
def check_ledger():
    """Verify every ledger invariant against the stored data."""
    audit = maintenance_service.verify_ledger()
    click.echo(f"Checked {audit.products_checked} products")
    if audit.ok:
        click.echo("PASS Ledger is consistent")
        return
    for problem in audit.problems:
        click.echo(f"FAIL {problem}")
    raise SystemExit(1)


@ledger_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA, including the role registry.
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()
    click.echo("BUILD  Creating all tables...")
    db.create_all()
    click.echo("PASS Database reset. Run `flask ledger init --owner ...` next.")


@click.group('roles')
def roles_group():
    """Role registry commands."""


@roles_group.command('show')
@with_appcontext
def show_roles():
    """Print the four role identities."""
    for role, identity in role_service.get_roles().items():
        click.echo(f"{role:<13} {identity or '-'}")


@roles_group.command('set-addresses')
@click.option('--caller', required=True, help='Owner identity performing the change')
@click.option('--manufacturer', required=True)
@click.option('--distributor', required=True)
@click.option('--retailer', required=True)
@with_appcontext
def set_addresses(caller, manufacturer, distributor, retailer):
    """Assign manufacturer, distributor and retailer together."""
    try:
        state = role_service.set_addresses(
            caller=caller,
            manufacturer=manufacturer,
            distributor=distributor,
            retailer=retailer,
        )
    except LedgerError as e:
        raise click.ClickException(f"{e.kind}: {e}")

    click.echo("PASS Roles updated")
    for role, identity in state.roles_dict().items():
        click.echo(f"{role:<13} {identity or '-'}")


@roles_group.command('transfer-ownership')
@click.option('--caller', required=True, help='Current owner identity')
@click.option('--new-owner', required=True)
@with_appcontext
def transfer_ownership(caller, new_owner):
    """Hand the owner role to another identity."""
    try:
        state = role_service.transfer_ownership(caller=caller, new_owner=new_owner)
    except LedgerError as e:
        raise click.ClickException(f"{e.kind}: {e}")
    click.echo(f"PASS Ownership transferred to {state.owner}")


@click.group('products')
def products_group():
    """Product inspection commands."""


@products_group.command('list')
@click.option('--status', default=None, help='Status name or code (0..5)')
@with_appcontext
def list_products(status):
    """List products, oldest first, or one stage in bucket order."""
    try:
        if status is not None:
            products = query_service.get_products_in_stage(status)
        else:
            products = products_service.list_products()
    except LedgerError as e:
        raise click.ClickException(f"{e.kind}: {e}")

    if not products:
        click.echo("No products found.")
        return

    click.echo(f"{'ID':<6} {'Status':<22} {'Price':>12}  Name")
    click.echo("-" * 60)
    for p in products:
        click.echo(f"{p.id:<6} {p.status.value:<22} {p.price:>12}  {p.name}")


@products_group.command('show')
@click.argument('product_id', type=int)
@with_appcontext
def show_product(product_id):
    """Print a product record and its transaction log."""
    try:
        product = query_service.get_product(product_id)
        transactions = query_service.get_product_transactions(product_id)
    except LedgerError as e:
        raise click.ClickException(f"{e.kind}: {e}")

    click.echo(f"Product {product.id}: {product.name}")
    click.echo(f"  description: {product.description or '-'}")
    click.echo(f"  price:       {product.price}")
    click.echo(f"  status:      {product.status.value} ({product.status.label})")
    click.echo("  log:")
    for tx in transactions:
        click.echo(f"    {tx.sequence:>3}. {to_utc_z(tx.occurred_at)}  {tx.transaction_type:<24} {tx.performer}")


@products_group.command('history')
@click.argument('product_id', type=int)
@with_appcontext
def product_history(product_id):
    """Print the five lifecycle timestamps (- = not reached)."""
    try:
        history = query_service.get_product_history(product_id)
    except LedgerError as e:
        raise click.ClickException(f"{e.kind}: {e}")

    for field_name, ts in zip(HISTORY_FIELDS, history):
        click.echo(f"{field_name:<28} {to_utc_z(ts) or '-'}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(ledger_group)
    app.cli.add_command(roles_group)
    app.cli.add_command(products_group)
