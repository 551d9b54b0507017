"""Creation and additive migrations for the ``games`` table."""

from __future__ import annotations

import logging
from contextlib import suppress

from sqlalchemy import inspect, text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

from db.utils import DatabaseEngine

logger = logging.getLogger(__name__)

GAMES_TABLE = "games"

_MYSQL_DIALECTS = {"mysql", "mariadb"}

# Columns added after the first schema version, in the order they were introduced.
SOURCE_COLUMNS: tuple[tuple[str, str, str], ...] = (
    ("source", "TEXT", "VARCHAR(32)"),
    ("source_id", "TEXT", "VARCHAR(255)"),
    ("install_path", "TEXT", "TEXT"),
)


def _games_table_definition(dialect: str) -> str:
    if dialect in _MYSQL_DIALECTS:
        return """
            id INTEGER PRIMARY KEY AUTO_INCREMENT,
            title VARCHAR(255) NOT NULL,
            platform VARCHAR(64) NOT NULL,
            status VARCHAR(32) NOT NULL DEFAULT 'Backlog',
            description LONGTEXT,
            genre VARCHAR(255),
            release_year INTEGER,
            icon_path TEXT,
            cover_url TEXT,
            rawg_id INTEGER,
            exe_path TEXT,
            playtime_hours DOUBLE NOT NULL DEFAULT 0,
            rating INTEGER,
            added_date DATETIME(6) DEFAULT CURRENT_TIMESTAMP(6),
            last_played DATETIME(6),
            source VARCHAR(32),
            source_id VARCHAR(255),
            install_path TEXT
        """
    return """
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        title TEXT NOT NULL,
        platform TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'Backlog',
        description TEXT,
        genre TEXT,
        release_year INTEGER,
        icon_path TEXT,
        cover_url TEXT,
        rawg_id INTEGER,
        exe_path TEXT,
        playtime_hours REAL NOT NULL DEFAULT 0,
        rating INTEGER,
        added_date DATETIME DEFAULT (strftime('%Y-%m-%d %H:%M:%f', 'now')),
        last_played DATETIME,
        source TEXT,
        source_id TEXT,
        install_path TEXT
    """


def _index_statements(db: DatabaseEngine) -> list[tuple[tuple[str, ...], str]]:
    table = db.quote(GAMES_TABLE)
    if_not_exists = "" if db.dialect_name in _MYSQL_DIALECTS else "IF NOT EXISTS "
    return [
        (("status",), f"CREATE INDEX {if_not_exists}idx_games_status ON {table} (status)"),
        (("platform",), f"CREATE INDEX {if_not_exists}idx_games_platform ON {table} (platform)"),
        (("source",), f"CREATE INDEX {if_not_exists}idx_games_source ON {table} (source)"),
        (
            ("source", "source_id"),
            f"CREATE UNIQUE INDEX {if_not_exists}idx_games_source_id "
            f"ON {table} (source, source_id)",
        ),
    ]


def _existing_columns(conn: Connection) -> set[str]:
    inspector = inspect(conn)
    return {col["name"] for col in inspector.get_columns(GAMES_TABLE)}


def _add_missing_source_columns(conn: Connection, db: DatabaseEngine) -> list[str]:
    """Bring a first-version ``games`` table up to the current column set."""

    columns = _existing_columns(conn)
    added: list[str] = []
    for name, sqlite_type, mysql_type in SOURCE_COLUMNS:
        if name in columns:
            continue
        column_type = mysql_type if db.dialect_name in _MYSQL_DIALECTS else sqlite_type
        conn.execute(
            text(
                f"ALTER TABLE {db.quote(GAMES_TABLE)} "
                f"ADD COLUMN {db.quote(name)} {column_type}"
            )
        )
        added.append(name)
    return added


def init_db(db: DatabaseEngine, *, run_migrations: bool = True) -> None:
    """Create the ``games`` table when missing and apply additive migrations."""

    create_statement = text(
        f"""
        CREATE TABLE IF NOT EXISTS {db.quote(GAMES_TABLE)} (
            {_games_table_definition(db.dialect_name)}
        )
        """
    )

    with db.begin() as conn:
        conn.execute(create_statement)
        if run_migrations:
            added = _add_missing_source_columns(conn, db)
            if added:
                logger.info("Added columns to %s: %s", GAMES_TABLE, ", ".join(added))
        columns = _existing_columns(conn)

    for required, statement in _index_statements(db):
        if not set(required) <= columns:
            logger.warning(
                "Skipping index on %s: column missing (migrations disabled)",
                ", ".join(required),
            )
            continue
        if db.dialect_name in _MYSQL_DIALECTS:
            # MySQL has no IF NOT EXISTS for indexes; an existing index raises.
            with suppress(SQLAlchemyError):
                with db.begin() as conn:
                    conn.execute(text(statement))
        else:
            with db.begin() as conn:
                conn.execute(text(statement))


__all__ = ["GAMES_TABLE", "SOURCE_COLUMNS", "init_db"]
