"""Query helpers for the ``games`` table.

Each helper runs a single parameterised statement (the source upsert runs a
follow-up ``SELECT`` to resolve the affected id) and leaves business rules to
:mod:`library.service`.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import text

from db.schema import GAMES_TABLE
from db.utils import DatabaseEngine
from errors import GameNotFoundError
from helpers import utc_timestamp
from library.models import Game

_INSERT_COLUMNS: tuple[str, ...] = (
    "title",
    "platform",
    "status",
    "description",
    "genre",
    "release_year",
    "icon_path",
    "cover_url",
    "rawg_id",
    "exe_path",
    "playtime_hours",
    "rating",
    "source",
    "source_id",
    "install_path",
)

# Columns refreshed when a launcher re-reports a game it already reported.
UPSERT_REFRESH_COLUMNS: tuple[str, ...] = ("install_path", "exe_path", "title")


def _table(db: DatabaseEngine) -> str:
    return db.quote(GAMES_TABLE)


def _insert_params(game: Game) -> dict[str, Any]:
    params = {column: getattr(game, column) for column in _INSERT_COLUMNS}
    if params["playtime_hours"] is None:
        params["playtime_hours"] = 0.0
    return params


def _insert_sql(db: DatabaseEngine) -> str:
    columns = ", ".join(_INSERT_COLUMNS)
    values = ", ".join(f":{column}" for column in _INSERT_COLUMNS)
    return f"INSERT INTO {_table(db)} ({columns}) VALUES ({values})"


def _rows_to_games(rows: Any) -> list[Game]:
    return [Game.from_row(row) for row in rows]


def get_all_games(db: DatabaseEngine) -> list[Game]:
    """Fetch all games, most recently added first."""

    with db.connect() as conn:
        rows = conn.execute(
            text(f"SELECT * FROM {_table(db)} ORDER BY added_date DESC, id DESC")
        ).mappings()
        return _rows_to_games(rows)


def get_game_by_id(db: DatabaseEngine, game_id: int) -> Game:
    """Fetch a single game; raises :class:`GameNotFoundError` when absent."""

    with db.connect() as conn:
        row = (
            conn.execute(
                text(f"SELECT * FROM {_table(db)} WHERE id = :game_id"),
                {"game_id": game_id},
            )
            .mappings()
            .first()
        )
    if row is None:
        raise GameNotFoundError(game_id)
    return Game.from_row(row)


def get_games_by_status(db: DatabaseEngine, status: str) -> list[Game]:
    """Fetch games matching ``status``, most recently played first."""

    with db.connect() as conn:
        rows = conn.execute(
            text(
                f"SELECT * FROM {_table(db)} WHERE status = :status "
                "ORDER BY last_played DESC"
            ),
            {"status": status},
        ).mappings()
        return _rows_to_games(rows)


def insert_game(db: DatabaseEngine, game: Game) -> int:
    """Insert ``game`` and return the id assigned by the database."""

    with db.begin() as conn:
        result = conn.execute(text(_insert_sql(db)), _insert_params(game))
        return int(result.lastrowid)


def _upsert_sql(db: DatabaseEngine) -> str:
    if db.dialect_name in {"mysql", "mariadb"}:
        assignments = ", ".join(
            f"{column} = VALUES({column})" for column in UPSERT_REFRESH_COLUMNS
        )
        return f"{_insert_sql(db)} ON DUPLICATE KEY UPDATE {assignments}"
    assignments = ", ".join(
        f"{column} = excluded.{column}" for column in UPSERT_REFRESH_COLUMNS
    )
    return (
        f"{_insert_sql(db)} "
        f"ON CONFLICT(source, source_id) DO UPDATE SET {assignments}"
    )


def upsert_game_by_source(db: DatabaseEngine, game: Game) -> int:
    """Insert ``game`` or refresh the row sharing its ``(source, source_id)``.

    Only the title, install path and executable path of an existing row are
    overwritten; enrichment, status and playtime fields are left untouched.
    The write is a single ``INSERT ... ON CONFLICT`` statement so concurrent
    index runs cannot create duplicate rows for the same key.
    """

    if not game.source or not game.source_id:
        raise ValueError("source and source_id are required for an upsert")

    with db.begin() as conn:
        conn.execute(text(_upsert_sql(db)), _insert_params(game))
        row = conn.execute(
            text(
                f"SELECT id FROM {_table(db)} "
                "WHERE source = :source AND source_id = :source_id"
            ),
            {"source": game.source, "source_id": game.source_id},
        ).first()
    if row is None:  # pragma: no cover - the statement above guarantees a row
        raise GameNotFoundError(
            message=f"Upsert of {game.source}:{game.source_id} left no row."
        )
    return int(row[0])


def update_game_status(
    db: DatabaseEngine, game_id: int, status: str, *, played_at: str | None = None
) -> int:
    """Set ``status`` and stamp ``last_played``; returns the affected row count."""

    with db.begin() as conn:
        result = conn.execute(
            text(
                f"UPDATE {_table(db)} SET status = :status, last_played = :played_at "
                "WHERE id = :game_id"
            ),
            {
                "status": status,
                "played_at": played_at or utc_timestamp(),
                "game_id": game_id,
            },
        )
        return int(result.rowcount or 0)


def delete_game(db: DatabaseEngine, game_id: int) -> int:
    """Delete a game by id; returns the affected row count."""

    with db.begin() as conn:
        result = conn.execute(
            text(f"DELETE FROM {_table(db)} WHERE id = :game_id"),
            {"game_id": game_id},
        )
        return int(result.rowcount or 0)


def search_games(db: DatabaseEngine, query: str) -> list[Game]:
    """Return games whose title or genre contains ``query`` (``LIKE`` semantics)."""

    pattern = f"%{query}%"
    with db.connect() as conn:
        rows = conn.execute(
            text(
                f"SELECT * FROM {_table(db)} "
                "WHERE title LIKE :pattern OR genre LIKE :pattern ORDER BY title"
            ),
            {"pattern": pattern},
        ).mappings()
        return _rows_to_games(rows)


def count_games(db: DatabaseEngine) -> int:
    with db.connect() as conn:
        value = conn.execute(text(f"SELECT COUNT(*) FROM {_table(db)}")).scalar_one()
    return int(value or 0)


def _count_grouped(db: DatabaseEngine, column: str) -> list[tuple[str, int]]:
    with db.connect() as conn:
        rows = conn.execute(
            text(
                f"SELECT {column} AS label, COUNT(*) AS count FROM {_table(db)} "
                f"GROUP BY {column} ORDER BY {column}"
            )
        ).all()
    return [(str(label), int(count)) for label, count in rows]


def count_by_platform(db: DatabaseEngine) -> list[tuple[str, int]]:
    return _count_grouped(db, "platform")


def count_by_status(db: DatabaseEngine) -> list[tuple[str, int]]:
    return _count_grouped(db, "status")


def total_playtime(db: DatabaseEngine) -> float:
    """Sum of all ``playtime_hours``; ``0.0`` for an empty library."""

    with db.connect() as conn:
        value = conn.execute(
            text(f"SELECT COALESCE(SUM(playtime_hours), 0) FROM {_table(db)}")
        ).scalar_one()
    return float(value or 0.0)


__all__ = [
    "UPSERT_REFRESH_COLUMNS",
    "count_by_platform",
    "count_by_status",
    "count_games",
    "delete_game",
    "get_all_games",
    "get_game_by_id",
    "get_games_by_status",
    "insert_game",
    "search_games",
    "total_playtime",
    "update_game_status",
    "upsert_game_by_source",
]
