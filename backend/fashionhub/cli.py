# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/fashionhub/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create any missing tables (prefer `flask db upgrade` for real deployments).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system seed
#   Idempotent: default admin + salesPerson accounts and two sample suppliers.
#
# User inspection/bootstrap:
# - python -m flask users list
# - python -m flask users create --name "Asha" --email asha@fashionhub.com --phone "+91 90000 00000" --role salesPerson
#   Create a user (prompts if options are omitted).
#
# Inventory:
# - python -m flask inventory low-stock
#   Products at or below their reorder threshold.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User, Supplier
from .models.auth import ROLE_ADMIN, ROLE_SALES_PERSON
from .services.auth_service import create_user, PasswordValidationError, UserValidationError
from .services.stock_service import list_low_stock
from .validation import ConflictError


DEFAULT_USERS = [
    {
        "name": "Admin",
        "email": "admin@fashionhub.com",
        "phone": "+91 99999 99999",
        "password": "admin123",
        "role": ROLE_ADMIN,
    },
    {
        "name": "Sales Person",
        "email": "sales@fashionhub.com",
        "phone": "+91 98765 43210",
        "password": "sales123",
        "role": ROLE_SALES_PERSON,
    },
]

SAMPLE_SUPPLIERS = [
    {
        "name": "Fashion Textiles Ltd",
        "email": "contact@fashiontextiles.com",
        "phone": "+91 98765 11111",
        "address": "123 Textile Market",
        "city": "Mumbai",
        "state": "Maharashtra",
        "pincode": "400001",
        "gstin": "27AABCU9603R1ZM",
        "contact_person": "Rajesh Kumar",
    },
    {
        "name": "Global Garments Supply",
        "email": "info@globalgarments.com",
        "phone": "+91 98765 22222",
        "address": "456 Trade Center",
        "city": "Delhi",
        "state": "Delhi",
        "pincode": "110001",
        "gstin": "07AABCU9603R1ZN",
        "contact_person": "Priya Sharma",
    },
]


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database tables created.")


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

    click.echo("PASS Database reset complete. Run 'python -m flask system seed' to add default users.")


@system_group.command('seed')
@with_appcontext
def seed():
    """
    Seed default users and sample suppliers. Safe to run repeatedly.

    SECURITY: Change the default passwords immediately in production!
    """
    click.echo("USERS Creating default users...")
    for account in DEFAULT_USERS:
        existing = db.session.query(User).filter_by(email=account["email"]).first()
        if existing:
            click.echo(f"WARN  User '{account['email']}' already exists, skipping...")
            continue
        try:
            create_user(**account)
            click.echo(f"PASS Created user: {account['email']} with role '{account['role']}'")
        except (PasswordValidationError, UserValidationError, ConflictError) as e:
            click.echo(f"FAIL Failed to create user '{account['email']}': {e}")

    click.echo("\nSUPPLIERS Creating sample suppliers...")
    for fields in SAMPLE_SUPPLIERS:
        if db.session.query(Supplier).filter_by(name=fields["name"]).first():
            click.echo(f"WARN  Supplier '{fields['name']}' already exists, skipping...")
            continue
        db.session.add(Supplier(**fields))
        db.session.commit()
        click.echo(f"PASS Created supplier: {fields['name']}")

    click.echo("\nDefault Credentials (CHANGE IN PRODUCTION!):")
    click.echo("   Admin -> admin@fashionhub.com / admin123")
    click.echo("   Sales -> sales@fashionhub.com / sales123")


# =============================================================================
# USER MANAGEMENT COMMANDS
# =============================================================================

@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--name', prompt=True, help='Display name')
@click.option('--email', prompt=True, help='Email address')
@click.option('--phone', prompt=True, help='Phone number')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice([ROLE_ADMIN, ROLE_SALES_PERSON]), prompt=True, help='Role')
@with_appcontext
def create_user_cli(name, email, phone, password, role):
    """Create a new user interactively."""
    try:
        user = create_user(name=name, email=email, phone=phone, password=password, role=role)
    except (PasswordValidationError, UserValidationError, ConflictError) as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)

    click.echo(f"PASS Created user: {user.email} (ID: {user.id}) with role '{user.role}'")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their roles."""
    users = db.session.query(User).order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<5} {'Name':<20} {'Email':<32} {'Role':<12} {'Status'}")
    click.echo("="*90)

    for user in users:
        click.echo(f"{user.id:<5} {user.name:<20} {user.email:<32} {user.role:<12} {user.status}")

    click.echo("="*90 + "\n")


# =============================================================================
# INVENTORY COMMANDS
# =============================================================================

@click.group('inventory')
def inventory_group():
    """Inventory inspection commands."""


@inventory_group.command('low-stock')
@with_appcontext
def low_stock():
    """List products at or below their reorder threshold."""
    products = list_low_stock()

    if not products:
        click.echo("PASS No low-stock products.")
        return

    click.echo(f"{'ID':<5} {'Barcode':<16} {'Name':<30} {'Stock':>6} {'Min':>6}")
    for p in products:
        click.echo(f"{p.id:<5} {p.barcode:<16} {p.name[:30]:<30} {p.stock:>6} {p.min_stock:>6}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(inventory_group)
