# Overview: Flask CLI command groups for bootstrap and inspection.

# backend/vendorpos/cli.py
# Commands Legend (run from the repository root):
# Prereqs:
# - pip install -e .
# - Set FLASK_APP (PowerShell: $env:FLASK_APP="vendorpos:create_app").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init-db
#   Create all tables (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Vendor (tenant) management:
# - python -m flask vendors create --name "Glow Cosmetics" --email owner@glow.local --password "Password123"
# - python -m flask vendors list
#
# Stock inspection:
# - python -m flask stocks list --vendor-id 1 [--low-only]

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .models import Vendor
from .domain.stock import StockSnapshot, stock_status
from .services.auth_service import create_vendor, PasswordValidationError
from .services.inventory_service import list_stock_items
from .validation import ConflictError


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database tables created")


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
    db.create_all()
    click.echo("PASS Schema recreated")


@click.group('vendors')
def vendors_group():
    """Vendor (tenant) management."""


@vendors_group.command('create')
@click.option('--name', prompt=True)
@click.option('--email', prompt=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@click.option('--tax-rate-bps', type=int, default=None, help='Override POS_TAX_RATE_BPS for this vendor')
@with_appcontext
def create_vendor_command(name, email, password, tax_rate_bps):
    """Create a vendor account."""
    try:
        vendor = create_vendor(name=name, email=email, password=password, tax_rate_bps=tax_rate_bps)
    except (PasswordValidationError, ConflictError, ValueError) as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Created vendor {vendor.name} (ID: {vendor.id}, email: {vendor.email})")


@vendors_group.command('list')
@with_appcontext
def list_vendors():
    """List all vendors."""
    vendors = db.session.query(Vendor).order_by(Vendor.id.asc()).all()
    if not vendors:
        click.echo("No vendors found")
        return
    for v in vendors:
        status = "active" if v.is_active else "inactive"
        click.echo(f"{v.id:>4}  {v.name:<30} {v.email:<30} {status}")


@click.group('stocks')
def stocks_group():
    """Stock inspection."""


@stocks_group.command('list')
@click.option('--vendor-id', type=int, required=True)
@click.option('--low-only', is_flag=True, help='Only show low and out-of-stock items')
@with_appcontext
def list_stocks(vendor_id, low_only):
    """List a vendor's stock with status."""
    default_threshold = current_app.config["POS_DEFAULT_LOW_STOCK_THRESHOLD"]
    for item in list_stock_items(vendor_id):
        status = stock_status(StockSnapshot.from_model(item), default_threshold)
        if low_only and status == "IN_STOCK":
            continue
        click.echo(f"{item.id:>4}  {item.name:<30} qty={item.quantity:<6} {status}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(vendors_group)
    app.cli.add_command(stocks_group)
