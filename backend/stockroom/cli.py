# Overview: Flask CLI command groups for bootstrap and index maintenance.

# backend/stockroom/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# Schema:
# - python -m flask db upgrade
#   Apply all migrations (tables and indexes).
#
# User inspection/bootstrap:
# - python -m flask users create --name "Owner" --email owner@stockroom.local --password "admin123" --role super_admin
#   Create a user (prompts if options are omitted). The first account must be created this way.
# - python -m flask users change-password --email owner@stockroom.local
#   Set a new password and revoke the user's sessions.
# - python -m flask users list
#   List all users with roles.
#
# Index inspection/repair:
# - python -m flask db-indexes list
#   Show every declared index and whether the database has it.
# - python -m flask db-indexes ensure
#   Create missing declared indexes. Safe to rerun.

import click
from flask.cli import with_appcontext

from .errors import StockroomError
from .extensions import db
from .indexes import describe_indexes, ensure_indexes
from .models import User
from .permissions import ROLES
from .schemas import MIN_PASSWORD_LENGTH
from .services import persistence
from .services.auth_service import set_password
from .services.session_service import revoke_user_sessions
from .services.user_service import create_user_record


def _check_password(password: str) -> bool:
    if len(password) < MIN_PASSWORD_LENGTH:
        click.echo(f"FAIL Password must be at least {MIN_PASSWORD_LENGTH} characters")
        return False
    return True


# =============================================================================
# USER MANAGEMENT COMMANDS
# =============================================================================

@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--name', prompt=True, help='Display name')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(list(ROLES)), default='user', show_default=True, help='Role')
@with_appcontext
def create_user_cli(name, email, password, role):
    """
    Create a new user.

    The HTTP API never creates super admins and every API route needs a
    session, so the first super_admin account is created here.
    """
    if not _check_password(password):
        return
    try:
        user = create_user_record(name=name, email=email, password=password, role=role)
        persistence.commit()
    except StockroomError as e:
        click.echo(f"FAIL Failed to create user: {e.message}")
        return

    click.echo(f"PASS Created user: {user.name} ({user.email}) with role '{user.role}'")
    click.echo(f"     User ID: {user.id}")
    click.echo("SECURITY Password securely hashed with bcrypt")


@users_group.command('change-password')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='New password')
@with_appcontext
def change_password_cli(email, password):
    """Set a user's password without the current one. Revokes all sessions."""
    if not _check_password(password):
        return
    user = db.session.query(User).filter_by(email=email.strip().lower()).first()
    if not user:
        click.echo(f"FAIL User '{email}' not found")
        return

    set_password(user, password)
    revoked = revoke_user_sessions(user.id, "Password reset by operator")
    try:
        persistence.commit()
    except StockroomError as e:
        click.echo(f"FAIL Failed to change password: {e.message}")
        return

    click.echo(f"PASS Password changed for {user.email}")
    click.echo(f"     Revoked {revoked} session(s)")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users."""
    users = db.session.query(User).order_by(User.id).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<5} {'Name':<25} {'Email':<35} {'Role'}")
    click.echo("="*90)
    for user in users:
        click.echo(f"{user.id:<5} {user.name:<25} {user.email:<35} {user.role}")
    click.echo("="*90 + "\n")


# =============================================================================
# INDEX COMMANDS
# =============================================================================

@click.group('db-indexes')
def indexes_group():
    """Index inspection and repair commands."""


@indexes_group.command('ensure')
@with_appcontext
def ensure_indexes_cli():
    """Create any declared index the database is missing."""
    with db.engine.begin() as conn:
        created = ensure_indexes(conn)

    if not created:
        click.echo("PASS All indexes present")
        return
    for name in created:
        click.echo(f"PASS Created index {name}")


@indexes_group.command('list')
@with_appcontext
def list_indexes_cli():
    """List declared indexes and whether each exists."""
    with db.engine.connect() as conn:
        rows = describe_indexes(conn)

    click.echo("\n" + "="*90)
    click.echo(f"{'Table':<18} {'Index':<38} {'Unique':<7} {'Present':<8} {'Columns'}")
    click.echo("="*90)
    for row in rows:
        click.echo(
            f"{row['table']:<18} {row['name']:<38} {('yes' if row['unique'] else 'no'):<7} "
            f"{('yes' if row['present'] else 'MISSING'):<8} {', '.join(row['columns'])}"
        )
    click.echo("="*90 + "\n")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(users_group)
    app.cli.add_command(indexes_group)
