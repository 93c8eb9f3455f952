"""
Ghost - Destiny manifest and content access backend
Application factory and initialization
"""
import logging
import os
import sys

import structlog
from flask import Flask

from ghost.db import db, init_db
from ghost.exceptions import register_exception_handlers
from ghost.services import GhostServices
from ghost.settings import load_settings
from ghost.utils import ColoredFormatter

logger = structlog.get_logger('main')


def configure_logging(level=logging.INFO):
    """Console logging for the stdlib 'main' logger plus structlog"""
    formatter = ColoredFormatter(
        '[%(asctime)s.%(msecs)03d] %(levelname)s (%(module)s) %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    logging.basicConfig(
        level=level,
        handlers=[handler]
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if os.environ.get('LOG_FORMAT') == 'json' else structlog.dev.ConsoleRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def create_app(settings=None, session=None):
    """Application factory"""
    configure_logging()
    settings = settings or load_settings()

    app = Flask(__name__)
    app.config["SQLALCHEMY_DATABASE_URI"] = settings["database"]["uri"]
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config["GHOST_SETTINGS"] = settings

    db.init_app(app)
    init_db(app)

    register_exception_handlers(app)

    GhostServices(settings, session=session).init_app(app)

    logger.info('Ghost application created', content_locale=settings["content"]["locale"])
    return app
