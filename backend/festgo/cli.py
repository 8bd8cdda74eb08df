# Overview: Flask CLI command groups for bootstrap, seeding, and dev tokens.

# backend/festgo/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create any missing tables (use "flask db upgrade" for migrated databases).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Catalog seeding:
# - python -m flask catalog add-event --name "Fiesta Sabado"
# - python -m flask catalog add-bar --event-id 1 --name "Barra Norte" [--printer "EPSON-1"]
# - python -m flask catalog add-product --code CCC --name "Coca Cola" --price 10.00 [--event-id 1] [--unit lata]
# - python -m flask catalog list
#
# Dev tokens (the real auth provider issues these in production):
# - python -m flask auth issue-token --sub u-1 --role bartender --name "Juan"

import click
from flask.cli import with_appcontext

from .extensions import db
from .errors import ValidationError
from .models import Bar, Event, Product
from .money import to_cents
from .services import auth_service
from .services.catalog_service import normalize_code
from .time_utils import parse_iso_datetime


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet. Safe to re-run."""
    db.create_all()
    click.echo("PASS Tables created.")


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

    click.echo("PASS Database reset complete.")


@click.group('catalog')
def catalog_group():
    """Seed events, bars and products."""


@catalog_group.command('add-event')
@click.option('--name', required=True, help='Event name')
@click.option('--starts-at', default=None, help='ISO-8601 start time')
@click.option('--status', type=click.Choice(['active', 'inactive', 'closed']), default='active')
@with_appcontext
def add_event(name, starts_at, status):
    """Create an event."""
    try:
        starts = parse_iso_datetime(starts_at) if starts_at else None
    except ValueError:
        raise click.BadParameter("must be ISO-8601", param_hint="--starts-at")

    event = Event(name=name, status=status, starts_at=starts)
    db.session.add(event)
    db.session.commit()
    click.echo(f"PASS Created event: {event.name} (ID: {event.id})")


@catalog_group.command('add-bar')
@click.option('--event-id', type=int, required=True, help='Owning event ID')
@click.option('--name', required=True, help='Bar name')
@click.option('--printer', default=None, help='Printer name')
@with_appcontext
def add_bar(event_id, name, printer):
    """Create a bar inside an event."""
    event = db.session.get(Event, event_id)
    if not event:
        click.echo(f"FAIL Event {event_id} not found")
        raise SystemExit(1)

    bar = Bar(event_id=event.id, name=name, printer=printer)
    db.session.add(bar)
    db.session.commit()
    click.echo(f"PASS Created bar: {bar.name} (ID: {bar.id}, Event: {event.name})")


@catalog_group.command('add-product')
@click.option('--code', required=True, help='2-3 letter product code')
@click.option('--name', required=True, help='Product name')
@click.option('--price', required=True, help='Unit price, e.g. 10.50')
@click.option('--unit', default=None, help='Unit label (lata, vaso, botella)')
@click.option('--category', default=None, help='Category')
@click.option('--event-id', type=int, default=None, help='Bind to an event (CATALOG_SCOPE=event)')
@with_appcontext
def add_product(code, name, price, unit, category, event_id):
    """Create a product."""
    try:
        code = normalize_code(code)
    except ValidationError as e:
        raise click.BadParameter(e.message, param_hint="--code")
    try:
        price_cents = to_cents(price)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--price")
    if price_cents < 0:
        raise click.BadParameter("must be >= 0", param_hint="--price")

    if db.session.query(Product).filter_by(code=code).first():
        click.echo(f"WARN  Product code '{code}' already exists, skipping...")
        return

    product = Product(
        code=code,
        name=name,
        price_cents=price_cents,
        unit=unit,
        category=category,
        event_id=event_id,
    )
    db.session.add(product)
    db.session.commit()
    click.echo(f"PASS Created product: {product.code} {product.name} (ID: {product.id})")


@catalog_group.command('list')
@with_appcontext
def list_catalog():
    """List events, bars and products."""
    events = db.session.query(Event).order_by(Event.id).all()
    click.echo(f"\nEvents ({len(events)}):")
    for event in events:
        click.echo(f"  [{event.id}] {event.name} ({event.status})")
        for bar in sorted(event.bars, key=lambda b: b.id):
            click.echo(f"      bar [{bar.id}] {bar.name}")

    products = db.session.query(Product).order_by(Product.code).all()
    click.echo(f"\nProducts ({len(products)}):")
    for product in products:
        flag = "" if product.is_active else " (inactive)"
        click.echo(f"  [{product.id}] {product.code:<3} {product.name} {product.price_cents / 100:.2f}{flag}")


@click.group('auth')
def auth_group():
    """Development token helpers."""


@auth_group.command('issue-token')
@click.option('--sub', required=True, help='Principal ID')
@click.option('--role', type=click.Choice(sorted(auth_service.KNOWN_ROLES)), required=True)
@click.option('--name', default=None, help='Display name')
@click.option('--minutes', type=int, default=None, help='Lifetime in minutes')
@with_appcontext
def issue_token(sub, role, name, minutes):
    """Sign a bearer token with JWT_SECRET."""
    click.echo(auth_service.issue_token(sub, role, name=name, expires_minutes=minutes))


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(catalog_group)
    app.cli.add_command(auth_group)
