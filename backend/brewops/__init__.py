# backend/brewops/__init__.py
import logging

from flask import Flask, request
from sqlalchemy import text
from werkzeug.exceptions import HTTPException

from .config import Config
from .extensions import TOKEN_SERVICE_KEY, db, migrate
from .responses import error_response
from .services.token_service import TokenService


def create_app(config_class: type = Config) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_class)

    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))

    if not app.config.get("JWT_SECRET"):
        raise RuntimeError("JWT_SECRET is not configured; refusing to start")

    # Built once; read-only for the lifetime of the process
    app.extensions[TOKEN_SERVICE_KEY] = TokenService(
        secret_key=app.config["JWT_SECRET"],
        expire_hours=app.config["JWT_EXPIRES_HOURS"],
    )

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.users import users_bp
    from .routes.suppliers import suppliers_bp
    from .routes.deliveries import deliveries_bp
    from .routes.reports import reports_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(suppliers_bp)
    app.register_blueprint(deliveries_bp)
    app.register_blueprint(reports_bp)

    @app.errorhandler(404)
    def not_found(_error):
        return error_response("API endpoint not found", 404)

    @app.errorhandler(HTTPException)
    def http_error(error):
        return error_response(error.description or error.name, error.code or 500)

    @app.errorhandler(Exception)
    def unexpected_error(_error):
        app.logger.exception("Unhandled error on %s %s", request.method, request.path)
        return error_response("Internal server error", 500)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allowed_origins = {app.config["FRONTEND_URL"]}
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Credentials"] = "true"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app


def verify_database_connection(app: Flask) -> bool:
    """Startup probe: True if the credential store answers a trivial query."""
    with app.app_context():
        try:
            db.session.execute(text("SELECT 1"))
            return True
        except Exception:
            app.logger.exception("Cannot reach the database at %s", app.config["SQLALCHEMY_DATABASE_URI"])
            return False
        finally:
            db.session.remove()
