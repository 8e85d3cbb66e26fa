import os

from flask import Flask, current_app, jsonify, request
from werkzeug.exceptions import HTTPException

from texlink.config import Config
from texlink.db import close_db, get_db, init_db
from texlink.db_migrations import register_db_cli
from texlink.observability import configure_json_logging, ensure_request_id


EVENT_BUS_KEY = "texlink.event_bus"
ORDERS_SERVICE_KEY = "texlink.orders_service"
PERMISSIONS_SERVICE_KEY = "texlink.permissions_service"


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)
    configure_json_logging(app)

    _ensure_database_dir(app)
    _register_error_handlers(app)
    _register_services(app)
    _register_health(app)
    register_db_cli(app)
    _maybe_init_schema(app)

    app.teardown_appcontext(close_db)
    return app


def _ensure_database_dir(app: Flask) -> None:
    database_dir = app.config.get("DATABASE_DIR")
    if database_dir:
        os.makedirs(database_dir, exist_ok=True)


def _maybe_init_schema(app: Flask) -> None:
    auto_init = bool(app.config.get("DB_AUTO_INIT", False))
    if app.testing:
        auto_init = True
    if not auto_init:
        return

    flask_env = (os.environ.get("FLASK_ENV", "development") or "development").strip().lower()
    if not app.testing and flask_env != "development":
        app.logger.warning("DB_AUTO_INIT ignorado fora de development.")
        return

    with app.app_context():
        init_db()


def _register_services(app: Flask) -> None:
    from texlink.application.orders_service import OrdersService
    from texlink.application.permissions_service import PermissionsService
    from texlink.core import EventBus

    event_bus = EventBus()
    app.extensions[EVENT_BUS_KEY] = event_bus
    app.extensions[ORDERS_SERVICE_KEY] = OrdersService.from_config(app.config, event_bus=event_bus)
    app.extensions[PERMISSIONS_SERVICE_KEY] = PermissionsService()


def get_event_bus():
    return current_app.extensions[EVENT_BUS_KEY]


def get_orders_service():
    return current_app.extensions[ORDERS_SERVICE_KEY]


def get_permissions_service():
    return current_app.extensions[PERMISSIONS_SERVICE_KEY]


def _register_error_handlers(app: Flask) -> None:
    from texlink.errors import AppError, SystemError

    @app.before_request
    def _ensure_request_id() -> None:
        ensure_request_id()

    @app.after_request
    def _append_request_id(response):
        response.headers["X-Request-Id"] = ensure_request_id()
        return response

    def _log_error(error: AppError, request_id: str) -> None:
        log_method = app.logger.error if error.critical else app.logger.warning
        log_method(
            "application_error",
            extra={
                "request_id": request_id,
                "error_code": error.code,
                "http_status": error.http_status,
                "message_key": error.message_key,
                "details": error.details,
                "request_path": request.path,
                "http_method": request.method,
            },
            exc_info=error.critical,
        )

    @app.errorhandler(AppError)
    def _handle_app_error(exc: AppError):
        request_id = ensure_request_id()
        _log_error(exc, request_id)
        return jsonify(exc.to_response_payload(request_id)), exc.http_status

    @app.errorhandler(Exception)
    def _handle_unexpected(exc: Exception):
        if isinstance(exc, HTTPException):
            return exc

        request_id = ensure_request_id()
        mapped = SystemError(
            code="unexpected_error",
            message_key="unexpected_error",
            http_status=500,
            critical=True,
            details=str(exc),
        )
        app.logger.exception(
            "unexpected_exception",
            extra={
                "request_id": request_id,
                "error_code": mapped.code,
                "request_path": request.path,
                "http_method": request.method,
            },
        )
        return jsonify(mapped.to_response_payload(request_id)), mapped.http_status


def _register_health(app: Flask) -> None:
    @app.route("/health")
    def health():
        db_path = app.config.get("DB_PATH") or "unknown"
        backend = "postgres" if str(db_path).startswith("postgres") else "sqlite"
        payload = {
            "status": "ok",
            "db": backend,
            "env": app.config.get("ENV", "unknown"),
        }
        try:
            get_db().execute("SELECT 1").fetchone()
        except Exception:  # noqa: BLE001
            app.logger.warning("health_db_unavailable", exc_info=True)
            payload["status"] = "degraded"
        return payload, 200
