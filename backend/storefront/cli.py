# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/storefront/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv and set JWT_SIGNING_KEY.
# - Use: flask --app wsgi <group> <command> [options]
#
# System bootstrap:
# - flask --app wsgi system init [--admin-username admin] [--admin-password "Admin123"]
#   Create tables, seed the built-in roles, create the first Admin user. Idempotent.
# - flask --app wsgi system seed-roles
#   Insert any missing built-in role (ids 1-6).
#
# User inspection/bootstrap:
# - flask --app wsgi users list [--all]
#   List users with role and active status.
# - flask --app wsgi users create --username alice --password "Secret123" --role "Order Manager"
#   Create a user with any role (prompts if options are omitted).
# - flask --app wsgi users deactivate alice
#   Soft-delete a user.
#
# Permission inspection:
# - flask --app wsgi perms show "Product Manager"
#   Show a role's grants.
# - flask --app wsgi perms check Shipper orders.view
#   Check whether a role is authorized for a permission.

import click
from flask import current_app
from flask.cli import with_appcontext
from sqlalchemy import func

from .errors import ApiError
from .extensions import db
from .models import Role, User
from .permissions import ADMIN, DEFAULT_ROLES, authorize, is_known_role, permissions_for
from .services import auth_service, role_service


def _fail(message: str):
    raise click.ClickException(f"FAIL {message}")


def _role_by_name(name: str) -> Role | None:
    return role_service.get_role_by_name(name)


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init')
@click.option('--admin-username', default='admin', show_default=True, help='Username of the first Admin')
@click.option('--admin-password', default=None, help='Password of the first Admin (prompted if omitted)')
@click.option('--admin-email', default=None, help='Email of the first Admin')
@with_appcontext
def init_system(admin_username, admin_password, admin_email):
    """
    Create tables, seed roles and create the first Admin.

    Safe to re-run: existing roles and an existing admin username are left alone.

    SECURITY: There is no default password; pass one or answer the prompt.
    """
    click.echo("START Initializing storefront...")

    db.create_all()
    click.echo("PASS Tables created")

    created = role_service.seed_default_roles()
    click.echo(f"PASS Roles seeded ({len(created)} new, {len(DEFAULT_ROLES)} built-in)")

    existing = db.session.query(User).filter(func.lower(User.username) == admin_username.lower()).first()
    if existing:
        click.echo(f"WARN  User '{admin_username}' already exists, skipping...")
        return

    if admin_password is None:
        admin_password = click.prompt("Admin password", hide_input=True, confirmation_prompt=True)

    admin_role = _role_by_name(ADMIN)
    try:
        user = auth_service.create_user(admin_username, admin_password, admin_email, None, admin_role.id, True)
    except ApiError as e:
        _fail(f"Could not create admin: {e.message} {e.errors or ''}".strip())

    click.echo(f"PASS Created admin user: {user.username} (ID: {user.id})")
    click.echo("DONE Storefront initialized")


@system_group.command('seed-roles')
@with_appcontext
def seed_roles():
    """Insert any missing built-in role."""
    created = role_service.seed_default_roles()
    if created:
        click.echo(f"PASS Created roles: {', '.join(r.name for r in created)}")
    else:
        click.echo("PASS All built-in roles already present")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('list')
@click.option('--all', 'show_all', is_flag=True, help='Include deactivated users')
@with_appcontext
def list_users(show_all):
    """List users with role and active status."""
    users = auth_service.list_users_query(include_inactive=show_all).all()
    if not users:
        click.echo("No users found")
        return
    roles = {r.id: r.name for r in role_service.list_roles()}
    for user in users:
        status = "active" if user.is_active else "INACTIVE"
        click.echo(f"{user.id:>5}  {user.username:<30} {roles.get(user.role_id, '-'):<18} {status}")


@users_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', 'role_name', prompt=True, help='Role name, e.g. "Customer" or "Order Manager"')
@click.option('--email', default=None, help='Email address')
@with_appcontext
def create_user_cli(username, password, role_name, email):
    """
    Create a user with any role.

    Password must be 6-100 characters with an uppercase letter,
    a lowercase letter and a digit.
    """
    role = _role_by_name(role_name)
    if role is None:
        _fail(f"Role '{role_name}' not found. Run 'flask system seed-roles' first.")
    try:
        user = auth_service.create_user(username, password, email, None, role.id, True)
    except ApiError as e:
        _fail(f"{e.message} {e.errors or ''}".strip())
    click.echo(f"PASS Created user: {user.username} (ID: {user.id}) with role '{role.name}'")


@users_group.command('deactivate')
@click.argument('username')
@with_appcontext
def deactivate_user_cli(username):
    """Soft-delete a user; their orders and reviews are kept."""
    user = db.session.query(User).filter(func.lower(User.username) == username.lower()).first()
    if user is None:
        _fail(f"User '{username}' not found")
    auth_service.deactivate_user(user.id)
    current_app.logger.info("User deactivated from CLI: id=%s", user.id)
    click.echo(f"PASS Deactivated user '{user.username}'")


@click.group('perms')
def perms_group():
    """Permission inspection commands."""


@perms_group.command('show')
@click.argument('role_name')
def show_permissions_cli(role_name):
    """Show the grants derived from a role name."""
    if not is_known_role(role_name):
        _fail(f"Unknown role '{role_name}'")
    for grant in sorted(permissions_for(role_name)):
        click.echo(f"  {grant}")


@perms_group.command('check')
@click.argument('role_name')
@click.argument('permission_code')
def check_permission_cli(role_name, permission_code):
    """Check whether a role is authorized for a permission."""
    if authorize(role_name, permission_code):
        click.echo(f"PASS Role '{role_name}' HAS permission '{permission_code}'")
    else:
        click.echo(f"FAIL Role '{role_name}' DOES NOT HAVE permission '{permission_code}'")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(perms_group)
