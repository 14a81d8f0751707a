import click
import logging
from flask import current_app
from flask.cli import with_appcontext
from shared.validation import ValidationError
from .document_store import get_document_store
from .models import db
from .services.user_service import UserService

logger = logging.getLogger(__name__)


def _user_service():
    return UserService(get_document_store(), current_app.extensions['settings'])


@click.command('init-db')
@click.option('--username', default=None, help='Super admin username (defaults to the configured one)')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True,
              help='Password for the super admin account')
@with_appcontext
def init_db_command(username, password):
    """Create the document tables and the super admin account."""
    logger.info("Starting database initialization")
    db.create_all()
    logger.info("Database tables created successfully")

    try:
        user, created = _user_service().ensure_super_admin(password, username)
    except ValidationError as e:
        raise click.BadParameter(str(e), param_hint='--password')

    if created:
        click.echo(f"Created super admin '{user.username}'.")
    else:
        click.echo(f"Super admin '{user.username}' already exists.")
    logger.info("Database initialization completed successfully")
    click.echo('Initialized the database.')


@click.command('create-user')
@click.argument('username')
@click.option('--display-name', required=True, help='Name shown in the admin interface')
@click.option('--role', type=click.Choice(['admin', 'staff']), default='staff', show_default=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@with_appcontext
def create_user_command(username, display_name, role, password):
    """Create an admin or staff user with no feature permissions."""
    try:
        user = _user_service().create_user({
            'username': username,
            'displayName': display_name,
            'role': role,
            'password': password,
        })
    except ValidationError as e:
        raise click.ClickException(str(e))
    click.echo(f"Created {user.role} user '{user.username}' ({user.id}).")
