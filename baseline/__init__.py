"""
Baseline Analytics Investor Portal - Application Factory
"""
import logging
import os
from datetime import datetime, timezone

from flask import Flask, jsonify
from flask_login import LoginManager
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

from config import config

db = SQLAlchemy()
migrate = Migrate()
login_manager = LoginManager()


def _configure_logging(app):
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app.logger.setLevel(level)
    logging.getLogger("baseline").setLevel(level)


def create_app(config_name='default'):
    app = Flask(__name__)
    app.config.from_object(config[config_name])

    _configure_logging(app)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)

    from baseline.rate_limit import RateLimiter, store_from_url
    from baseline.services.storage_service import ObjectStorage

    app.extensions["object_storage"] = ObjectStorage.from_config(app.config)
    app.extensions["login_rate_limiter"] = RateLimiter(store_from_url(app.config.get("RATELIMIT_STORAGE_URL")))

    # Register blueprints
    from baseline.auth import auth_bp
    from baseline.documents import documents_bp
    from baseline.investors import investors_bp
    from baseline.partnerships import partnerships_bp
    from baseline.pitch_deck import pitch_deck_bp
    from baseline.schedule import schedule_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(documents_bp)
    app.register_blueprint(pitch_deck_bp)
    app.register_blueprint(schedule_bp)
    app.register_blueprint(partnerships_bp)
    app.register_blueprint(investors_bp)

    @app.errorhandler(413)
    def too_large(_error):
        from baseline.errors import FILE_UPLOAD_ERRORS, json_error
        return json_error(FILE_UPLOAD_ERRORS["TOO_LARGE"], 413)

    # Health check endpoint
    @app.route('/healthz')
    def healthz():
        """Health check for load balancers and monitoring"""
        try:
            from sqlalchemy import text
            db.session.execute(text('SELECT 1'))
            db_status = "ok"
        except Exception as e:
            db_status = f"error: {e}"

        return jsonify({
            "status": "ok" if db_status == "ok" else "degraded",
            "version": app.config["APP_VERSION"],
            "database": db_status,
            "timestamp": datetime.now(timezone.utc).isoformat()
        })

    # Version endpoint
    @app.route('/version')
    def version():
        """Version and build info"""
        return jsonify({
            "version": app.config["APP_VERSION"],
            "build_time": app.config["BUILD_TIME"],
            "git_commit": app.config["GIT_COMMIT"],
            "features": {
                "pdf_slide_extraction": True,
                "shared_rate_limit": not str(app.config.get("RATELIMIT_STORAGE_URL", "")).startswith("memory://"),
                "update_schedule": True,
                "partner_network": True,
            }
        })

    # Handle database initialization
    with app.app_context():
        from sqlalchemy import inspect

        from baseline import models  # noqa: F401

        if os.getenv('RESET_DB', '').strip() in ('1', 'true', 'yes'):
            app.logger.warning('RESET_DB is set - dropping all tables...')
            db.drop_all()
            db.create_all()
            app.logger.warning('Fresh tables created')
        else:
            # Only create tables if they don't exist (safe for existing DB)
            inspector = inspect(db.engine)
            if not inspector.get_table_names():
                app.logger.info('No tables found, creating...')
                db.create_all()

    return app
