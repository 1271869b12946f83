# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/redimi/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create any missing tables (idempotent; use migrations for upgrades).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Vendor (tenant) management:
# - python -m flask vendors create --username acme --email owner@acme.test
#   Register a vendor and print its API key. The key is shown only once.
# - python -m flask vendors list
#   List all vendors.
#
# Ledger inspection:
# - python -m flask ledger reconcile --vendor-id 1
#   Compare each customer's balance with the sum of their ledger rows.
#   Exits with status 1 when any customer is out of balance.
#
# Event log:
# - python -m flask events list --vendor-id 1 --limit 20
#   Show the most recent events (simulated WhatsApp messages, system changes).

import click
from flask.cli import with_appcontext

from .extensions import db
from .services import event_service, ledger_service, vendor_service
from .validation import ConflictError, ValidationError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database tables ready.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask vendors create' to add a vendor.")


# =============================================================================
# VENDORS
# =============================================================================

@click.group('vendors')
def vendors_group():
    """Vendor (tenant) management commands."""


@vendors_group.command('create')
@click.option('--username', required=True, help='Unique vendor username')
@click.option('--email', required=True, help='Unique contact email')
@with_appcontext
def create_vendor_cli(username, email):
    """Register a vendor and print its API key."""
    try:
        vendor, api_key = vendor_service.create_vendor(username=username, email=email)
    except (ValidationError, ConflictError) as exc:
        click.echo(f"FAIL {exc}")
        raise SystemExit(1)

    click.echo(f"PASS Created vendor: {vendor.username} (ID: {vendor.id})")
    click.echo(f"API key (store it now, it cannot be shown again): {api_key}")


@vendors_group.command('list')
@with_appcontext
def list_vendors_cli():
    """List all vendors."""
    vendors = vendor_service.list_vendors()

    if not vendors:
        click.echo("No vendors found.")
        return

    click.echo("\n" + "="*70)
    click.echo(f"{'ID':<5} {'Username':<25} {'Email':<30} {'Active'}")
    click.echo("="*70)

    for vendor in vendors:
        active_str = "Yes" if vendor.is_active else "No"
        click.echo(f"{vendor.id:<5} {vendor.username:<25} {vendor.email:<30} {active_str}")

    click.echo("="*70 + "\n")


# =============================================================================
# LEDGER
# =============================================================================

@click.group('ledger')
def ledger_group():
    """Points ledger inspection commands."""


@ledger_group.command('reconcile')
@click.option('--vendor-id', type=int, required=True, help='Vendor ID')
@with_appcontext
def reconcile_cli(vendor_id):
    """Check balance == earned - redeemed for every customer of a vendor."""
    checks = ledger_service.reconcile(vendor_id)

    if not checks:
        click.echo("No customers found.")
        return

    mismatches = [c for c in checks if not c.is_consistent]
    for check in mismatches:
        click.echo(
            f"FAIL customer {check.customer_id}: balance={check.balance} "
            f"expected={check.expected_balance} (earned={check.earned}, redeemed={check.redeemed})"
        )

    if mismatches:
        click.echo(f"FAIL {len(mismatches)} of {len(checks)} customers out of balance")
        raise SystemExit(1)

    click.echo(f"PASS {len(checks)} customers reconciled")


# =============================================================================
# EVENTS
# =============================================================================

@click.group('events')
def events_group():
    """Event log inspection commands."""


@events_group.command('list')
@click.option('--vendor-id', type=int, required=True, help='Vendor ID')
@click.option('--limit', type=int, default=20, show_default=True, help='Max events to show')
@with_appcontext
def list_events_cli(vendor_id, limit):
    """Show the most recent events for a vendor."""
    try:
        events = event_service.list_events(vendor_id, limit=limit)
    except ValidationError as exc:
        click.echo(f"FAIL {exc}")
        raise SystemExit(1)

    if not events:
        click.echo("No events found.")
        return

    for event in events:
        click.echo(f"{event.created_at}  {event.kind:<9} {event.message}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(vendors_group)
    app.cli.add_command(ledger_group)
    app.cli.add_command(events_group)
