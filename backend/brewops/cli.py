# Overview: Flask CLI command groups for bootstrap and inspection.

# backend/brewops/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv and export JWT_SECRET.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables, the fixed roles and a default admin.
# - python -m flask system init-roles
#   Create the fixed roles only (admin, manager, supplier, staff).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users list
#   List all users with role and active status.
# - python -m flask users create --username admin --email admin@brewops.local --password "Password123" --role admin
#   Create a user (prompts if options are omitted).

import click
from flask.cli import with_appcontext

from .errors import ApiError
from .extensions import db
from .models import Role, User
from .permissions import RoleName
from .services.auth_service import create_default_roles, create_user, get_role_by_name


ROLE_CHOICES = [role.value for role in RoleName]


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--admin-username', default='admin', help='Username of the default admin')
@click.option('--admin-email', default='admin@brewops.local', help='Email of the default admin')
@click.option('--admin-password', default='Password123', help='Password of the default admin')
@with_appcontext
def init_system(admin_username, admin_email, admin_password):
    """
    Initialize BrewOps: schema, roles and a default admin account.

    SECURITY: Change the default password immediately in production!
    """
    click.echo("START Initializing BrewOps...")

    db.create_all()

    click.echo("LIST Creating roles...")
    create_default_roles()
    roles = db.session.query(Role).order_by(Role.id).all()
    click.echo(f"PASS Roles: {', '.join(r.name for r in roles)}")

    existing = db.session.query(User).filter_by(username=admin_username).first()
    if existing:
        click.echo(f"WARN  User '{admin_username}' already exists, skipping...")
    else:
        try:
            admin_role = get_role_by_name(RoleName.ADMIN)
            create_user(
                username=admin_username,
                email=admin_email,
                password=admin_password,
                first_name="System",
                last_name="Administrator",
                role_id=admin_role.id,
            )
            click.echo(f"PASS Created admin: {admin_username} ({admin_email})")
        except ApiError as e:
            click.echo(f"FAIL Failed to create admin '{admin_username}': {e.message}")

    click.echo("DONE BrewOps initialized.")


@system_group.command('init-roles')
@with_appcontext
def init_roles():
    """Create the fixed roles (admin, manager, supplier, staff)."""
    click.echo("LIST Creating default roles...")
    create_default_roles()
    roles = db.session.query(Role).order_by(Role.id).all()
    click.echo(f"PASS Roles: {', '.join(f'{r.id}={r.name}' for r in roles)}")


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

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


# =============================================================================
# USER COMMANDS
# =============================================================================

@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--first-name', default=None, help='First name')
@click.option('--last-name', default=None, help='Last name')
@click.option('--role', type=click.Choice(ROLE_CHOICES), prompt=True, help='Role')
@with_appcontext
def create_user_cli(username, email, password, first_name, last_name, role):
    """Create a new user interactively."""
    try:
        role_row = get_role_by_name(RoleName(role))
        user = create_user(
            username=username,
            email=email.lower(),
            password=password,
            first_name=first_name,
            last_name=last_name,
            role_id=role_row.id,
        )
        click.echo(f"PASS Created user: {user.username} ({user.email}) with role '{role}'")
    except ApiError as e:
        click.echo(f"FAIL Failed to create user: {e.message}")
    except ValueError as e:
        click.echo(f"FAIL {e}")


@users_group.command('list')
@click.option('--role', type=click.Choice(ROLE_CHOICES), default=None, help='Filter by role')
@with_appcontext
def list_users(role):
    """List all users with their role."""
    query = db.session.query(User).join(Role, User.role_id == Role.id)
    if role:
        query = query.filter(Role.name == role)

    users = query.order_by(User.id).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<5} {'Username':<20} {'Email':<35} {'Active':<8} {'Role'}")
    click.echo("="*90)

    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.username:<20} {user.email:<35} {active_str:<8} {user.role.name}")

    click.echo("="*90 + "\n")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
