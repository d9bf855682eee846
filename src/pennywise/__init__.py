"""Pennywise application factory."""

from __future__ import annotations

from importlib import import_module
from typing import Iterable

from flask import Flask, jsonify

from . import cli as _cli
from .config import BaseConfig, DevConfig, TestConfig
from .context import AppContext, create_app_context
from .errors import PennywiseError
from .logging_config import get_logger, setup_logging

_CONFIG_MAP = {
    "development": DevConfig,
    "testing": TestConfig,
    "default": BaseConfig,
}

logger = get_logger(__name__)


def _resolve_config(name: str | None) -> type[BaseConfig]:
    """Return the config class for the provided environment name."""

    if not name:
        return BaseConfig
    return _CONFIG_MAP.get(name.lower(), BaseConfig)


def _blueprint_paths() -> Iterable[str]:
    yield "pennywise.blueprints.budgets"
    yield "pennywise.blueprints.goals"


def create_app(config_name: str | None = None, *, config: BaseConfig | None = None) -> Flask:
    """Create and configure the Flask application instance."""

    app = Flask(__name__, instance_relative_config=True)
    config_obj = config or _resolve_config(config_name)()
    app.config.from_object(config_obj)
    app.config["PENNYWISE_CONFIG"] = config_obj

    setup_logging(config_obj)
    ctx = create_app_context(config_obj)
    app.extensions["pennywise"] = ctx

    _register_blueprints(app)
    _register_error_handlers(app)
    _cli.init_app(app)

    if config_obj.SCHEDULER_ENABLED and not config_obj.TESTING:
        from .scheduler import create_scheduler

        app.extensions["pennywise_scheduler"] = create_scheduler(ctx, auto_start=True)

    logger.info("Application created", extra={"database_url": config_obj.DATABASE_URL})
    return app


def _register_blueprints(app: Flask) -> None:
    """Import and register all blueprints declared in `_blueprint_paths`."""

    for dotted_path in _blueprint_paths():
        module = import_module(dotted_path)
        blueprint = getattr(module, "bp")
        app.register_blueprint(blueprint)


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(PennywiseError)
    def _handle_domain_error(error: PennywiseError):
        logger.warning(
            "Request rejected",
            extra={"error": type(error).__name__, "detail": error.message},
        )
        return jsonify(error.to_dict()), error.status_code


__all__ = ["AppContext", "BaseConfig", "DevConfig", "TestConfig", "create_app", "create_app_context"]
