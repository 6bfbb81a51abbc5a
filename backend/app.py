"""Flask application factory for the SiteSense backend."""
from flask import Flask
import os
import logging
from pathlib import Path
from shared.compliance import EXPIRING_WINDOW_DAYS
from .models import db, now
from .blueprints import bid_packages, subcontractors, jobs
from .cli import init_db_command, check_bid_packages_command
from .logging_config import setup_logging

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URI = 'sqlite:///sitesense.db'


def create_app(test_config=None):
    """Flask application factory for the SiteSense backend.

    Creates and configures a Flask application instance with:
    - SQLAlchemy database integration
    - The injected clock used for every timestamp
    - Blueprint registration for API endpoints
    - CLI command registration

    Args:
        test_config (dict, optional): Configuration overrides for testing

    Returns:
        Flask: Configured Flask application instance
    """
    # Setup logging first
    setup_logging()
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
        logger.debug(f"Could not create instance directory: {app.instance_path}")

    # Only set default database URI if not already set (e.g., by tests)
    if 'SQLALCHEMY_DATABASE_URI' not in app.config:
        app.config['SQLALCHEMY_DATABASE_URI'] = os.getenv('DATABASE_URL', DEFAULT_DATABASE_URI)
        logger.info(f"Configured database URI: {app.config['SQLALCHEMY_DATABASE_URI']}")
    else:
        logger.info(f"Using existing database URI: {app.config['SQLALCHEMY_DATABASE_URI']}")
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False

    app.config.setdefault('CLOCK', now)
    app.config.setdefault('COMPLIANCE_EXPIRING_DAYS', EXPIRING_WINDOW_DAYS)

    db.init_app(app)
    logger.info("SQLAlchemy database initialized")

    logger.info("Registering API blueprints")
    app.register_blueprint(bid_packages.bp)
    app.register_blueprint(subcontractors.bp)
    app.register_blueprint(jobs.bp)
    logger.info("All API blueprints registered successfully")

    app.cli.add_command(init_db_command)
    app.cli.add_command(check_bid_packages_command)
    logger.info("CLI commands registered: init-db, check-bid-packages")

    logger.info("Flask application initialization completed successfully")
    return app


if __name__ == '__main__':
    app = create_app()
    app.run(debug=True)
