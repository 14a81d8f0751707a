"""Flask application factory for the Store Survey backend."""
from flask import Flask
import logging
from pathlib import Path
from sqlalchemy.orm import sessionmaker
from .config import Settings
from .document_store import DocumentStore
from .models import db
from .blueprints import (
    auth, users, categories, questions, groups, stores, results, analytics, questionnaires, public,
)
from .cli import init_db_command, create_user_command
from .logging_config import setup_logging
from .utils import register_error_handlers

logger = logging.getLogger(__name__)

BLUEPRINTS = (auth, users, categories, questions, groups, stores, results, analytics, questionnaires, public)


def create_app(test_config=None):
    """Flask application factory for the Store Survey backend.

    Creates and configures a Flask application instance with:
    - Settings from STORESURVEY_* environment variables
    - SQLAlchemy database integration and the document store on top of it
    - Blueprint registration for API endpoints
    - CLI command registration
    - Logging configuration

    Args:
        test_config (dict, optional): Configuration overrides for testing.
            A ``SETTINGS`` mapping overrides individual settings.

    Returns:
        Flask: Configured Flask application instance
    """
    overrides = dict((test_config or {}).get('SETTINGS', {}))
    settings = Settings(**overrides)

    # Setup logging first
    setup_logging(settings)
    logger.info("Starting Flask application initialization")

    app = Flask(__name__, instance_relative_config=True)
    logger.debug(f"Flask app created with instance path: {app.instance_path}")

    if test_config is None:
        # Load the instance config, if it exists, when not testing
        config_loaded = app.config.from_pyfile('config.py', silent=True)
        if config_loaded:
            logger.info("Loaded configuration from instance/config.py")
        else:
            logger.debug("No instance config file found, using defaults")
    else:
        app.config.from_mapping(test_config)
        logger.info("Loaded test configuration")

    try:
        Path(app.instance_path).mkdir(parents=True, exist_ok=True)
    except OSError:
        logger.debug(f"Instance directory already exists: {app.instance_path}")

    # Only set the database URI from settings if not already set (e.g., by tests)
    if 'SQLALCHEMY_DATABASE_URI' not in app.config:
        app.config['SQLALCHEMY_DATABASE_URI'] = settings.database_uri
    logger.info(f"Using database URI: {app.config['SQLALCHEMY_DATABASE_URI']}")
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False

    db.init_app(app)
    app.extensions['settings'] = settings
    with app.app_context():
        app.extensions['document_store'] = DocumentStore(sessionmaker(bind=db.engine))
    logger.info("SQLAlchemy database and document store initialized")

    logger.info("Registering API blueprints")
    for module in BLUEPRINTS:
        app.register_blueprint(module.bp)
        logger.debug(f"Registered {module.bp.name} blueprint")

    auth.init_auth(app)
    register_error_handlers(app)
    logger.info("Authentication and error handlers initialized")

    app.cli.add_command(init_db_command)
    app.cli.add_command(create_user_command)
    logger.info("CLI commands registered: init-db, create-user")

    logger.info("Flask application initialization completed successfully")
    return app


if __name__ == '__main__':
    app = create_app()
    app.run(debug=True)
