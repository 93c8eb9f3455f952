from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import event, inspect
import logging
import sqlite3

# Retrieve main logger
logger = logging.getLogger("main")

db = SQLAlchemy()


def init_db(app):
    with app.app_context():
        # Ensure WAL mode and timeout are set when connection is opened
        @event.listens_for(db.engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            if not isinstance(dbapi_connection, sqlite3.Connection):
                return

            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL;")
            cursor.execute("PRAGMA busy_timeout=30000;")
            cursor.close()

        # Register models before creating tables
        from ghost import models  # noqa: F401

        inspector = inspect(db.engine)
        if not inspector.has_table("destiny_manifest_definition"):
            logger.info("Initializing database tables...")
        db.create_all()


__all__ = ["db", "init_db"]
