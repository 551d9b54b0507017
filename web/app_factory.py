"""Flask application factory and service wiring."""
from __future__ import annotations

import logging
import logging.config
import os
from pathlib import Path
from typing import Callable

from flask import Flask

from config import LOG_FILE
from library.service import GameService
from routes.games import SERVICE_EXTENSION_KEY, games_blueprint

logger = logging.getLogger(__name__)


def _determine_log_level(flask_app: Flask) -> int:
    if flask_app.debug:
        return logging.DEBUG
    if os.environ.get('FLASK_DEBUG', '').lower() in {'1', 'true', 'yes', 'on'}:
        return logging.DEBUG
    return logging.INFO


def configure_logging(flask_app: Flask, log_file: str | os.PathLike[str] = LOG_FILE) -> None:
    log_level = _determine_log_level(flask_app)
    log_path = Path(log_file)
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError:
        logger.warning("Could not create log directory %s", log_path.parent)

    for handler in list(flask_app.logger.handlers):
        flask_app.logger.removeHandler(handler)

    logging.config.dictConfig(
        {
            'version': 1,
            'disable_existing_loggers': False,
            'formatters': {
                'standard': {
                    'format': '%(asctime)s %(levelname)s [%(name)s] %(message)s',
                    'datefmt': '%Y-%m-%d %H:%M:%S',
                }
            },
            'handlers': {
                'console': {
                    'class': 'logging.StreamHandler',
                    'formatter': 'standard',
                    'level': log_level,
                    'stream': 'ext://sys.stdout',
                },
                'file': {
                    'class': 'logging.handlers.RotatingFileHandler',
                    'formatter': 'standard',
                    'level': logging.DEBUG,
                    'filename': os.fspath(log_path),
                    'maxBytes': 5 * 1024 * 1024,
                    'backupCount': 5,
                    'encoding': 'utf-8',
                },
            },
            'root': {
                'level': log_level,
                'handlers': ['console', 'file'],
            },
        }
    )

    flask_app.logger = logging.getLogger(flask_app.import_name)
    flask_app.logger.setLevel(log_level)


def create_app(
    service: GameService | None = None,
    *,
    service_factory: Callable[[], GameService] | None = None,
    setup_logging: bool = True,
) -> Flask:
    """Return a configured Flask application instance.

    ``service`` is used as-is when given; otherwise ``service_factory``
    (defaulting to :func:`init.initialize_app`) builds it.
    """

    flask_app = Flask(__name__)

    if setup_logging:
        configure_logging(flask_app)

    if service is None:
        if service_factory is None:
            from init import initialize_app as service_factory
        service = service_factory()

    flask_app.extensions[SERVICE_EXTENSION_KEY] = service
    flask_app.register_blueprint(games_blueprint)
    return flask_app


__all__ = ["configure_logging", "create_app"]
