# backend/redimi/__init__.py
import logging
from typing import Any, Mapping, Optional

from flask import Flask, request

from .config import Config
from .extensions import db, migrate


def create_app(config: Optional[Mapping[str, Any]] = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    # Overrides must land before db.init_app: the engine is built there.
    if config:
        app.config.update(config)

    logging.getLogger("redimi").setLevel(str(app.config.get("LOG_LEVEL", "INFO")).upper())

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    from .stores import init_store
    init_store(app)

    # Register blueprints
    from .routes.system import system_bp
    from .routes.vendor import vendor_bp
    from .routes.customers import customers_bp
    from .routes.transactions import transactions_bp
    from .routes.settings import settings_bp
    from .routes.events import events_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(vendor_bp)
    app.register_blueprint(customers_bp)
    app.register_blueprint(transactions_bp)
    app.register_blueprint(settings_bp)
    app.register_blueprint(events_bp)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allowed_origins = {
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:4173",
            "http://127.0.0.1:4173",
        }
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
