from flask import Flask, current_app
from sqlalchemy import text
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.pool import StaticPool

from .extensions import db, login_manager
from .routes import (
    auth,
    collaborators,
    dashboard,
    errors,
    functions,
    inventory,
    settings,
    storage,
    users,
)
from .settings_service import SettingsStore, ensure_default_settings
from .utils.logging import configure_logging
from config import Config
from . import models  # ensure models are registered with SQLAlchemy


def _ping_database() -> None:
    """Raise :class:`OperationalError` when the configured database is unreachable."""

    with db.engine.connect() as connection:
        connection.execute(text("SELECT 1"))


def create_app(config_override=None):
    app = Flask(__name__)

    # load configuration from environment variables
    app.config.from_object(Config)
    if config_override:
        app.config.update(config_override)

    configure_logging(app)

    database_uri = app.config.get("SQLALCHEMY_DATABASE_URI", "")
    if database_uri.startswith("sqlite:///:memory:"):
        engine_options = app.config.setdefault("SQLALCHEMY_ENGINE_OPTIONS", {})
        connect_args = engine_options.setdefault("connect_args", {})
        connect_args.setdefault("check_same_thread", False)
        engine_options.setdefault("poolclass", StaticPool)

    db.init_app(app)
    login_manager.init_app(app)
    login_manager.login_view = "auth.login"
    login_manager.login_message_category = "warning"

    @login_manager.user_loader
    def load_user(user_id: str):
        if not user_id:
            return None
        try:
            return db.session.get(models.AuthUser, int(user_id))
        except (TypeError, ValueError):
            return None
        except OperationalError:
            current_app.logger.warning(
                "Skipped user lookup because the database is unavailable."
            )
            return None

    settings_store = SettingsStore()
    app.extensions["settings_store"] = settings_store

    with app.app_context():
        try:
            _ping_database()
        except OperationalError as exc:
            details = str(getattr(exc, "orig", exc)).strip()
            current_app.logger.error(
                "Database connection unavailable during startup: %s",
                details,
                exc_info=current_app.debug,
            )
            db.session.remove()
        else:
            try:
                db.create_all()
                created_keys = ensure_default_settings()
                if created_keys:
                    current_app.logger.info(
                        "Provisioned default settings: %s", ", ".join(created_keys)
                    )
                settings_store.refresh()
            except SQLAlchemyError:
                current_app.logger.exception("Database initialization error")
                db.session.remove()

    @app.before_request
    def load_system_settings():
        settings_store.refresh()

    @app.context_processor
    def inject_settings():
        return {
            "system_settings": settings_store.settings,
            "settings_loading": settings_store.loading,
            "theme_variables": settings_store.theme,
        }

    app.register_blueprint(auth.bp)
    app.register_blueprint(dashboard.bp)
    app.register_blueprint(inventory.bp)
    app.register_blueprint(collaborators.bp)
    app.register_blueprint(users.bp)
    app.register_blueprint(settings.bp)
    app.register_blueprint(functions.bp)
    app.register_blueprint(storage.bp)
    app.register_blueprint(errors.bp)

    return app
