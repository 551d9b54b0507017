"""Library orchestration: enrichment on create, launcher indexing and stats."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable, Iterable

import pandas as pd
from sqlalchemy.exc import SQLAlchemyError

from catalog.client import RawgClient
from db import games as games_db
from db.utils import DatabaseEngine
from errors import AssetError, CatalogError, GameTrackerError
from helpers import icon_filename_for_title, release_year_from_date
from launchers.epic import scan_epic_games
from launchers.steam import scan_steam_games
from library.models import (
    GAME_COLUMNS,
    MANUAL_SOURCE,
    CatalogEntry,
    CreateGameInput,
    DiscoveredGame,
    Game,
    GameStats,
    IndexResult,
)
from media.covers import cover_path_for_catalog_id, download_cover
from media.icons import IconExtractor, select_icon_extractor

logger = logging.getLogger(__name__)

Scanner = Callable[[], Iterable[DiscoveredGame]]


class GameService:
    """Coordinates storage, the RAWG catalog, asset downloads and launchers.

    One instance is built at startup and shared by every request handler.
    Each operation opens its own pooled connection, so calls may run
    concurrently without extra locking.
    """

    def __init__(
        self,
        db: DatabaseEngine,
        catalog_client: RawgClient,
        icons_dir: str | os.PathLike[str],
        *,
        icon_extractor: IconExtractor | None = None,
        cover_downloader: Callable[..., Path] = download_cover,
        steam_scanner: Scanner = scan_steam_games,
        epic_scanner: Scanner = scan_epic_games,
    ) -> None:
        self.db = db
        self.catalog = catalog_client
        self.icons_dir = Path(icons_dir)
        self.icon_extractor = icon_extractor or select_icon_extractor()
        self._download_cover = cover_downloader
        self._scanners: tuple[tuple[str, Scanner], ...] = (
            ("steam", steam_scanner),
            ("epic", epic_scanner),
        )

    # Queries ---------------------------------------------------------------

    def list_games(self) -> list[Game]:
        return games_db.get_all_games(self.db)

    def get_game(self, game_id: int) -> Game:
        return games_db.get_game_by_id(self.db, game_id)

    def search_games(self, query: str) -> list[Game]:
        return games_db.search_games(self.db, query)

    def filter_games(self, status: str | None) -> list[Game]:
        """Return games with ``status``; a blank status returns the whole library."""

        if not status:
            return self.list_games()
        return games_db.get_games_by_status(self.db, status)

    def get_stats(self) -> GameStats:
        return GameStats(
            total_games=games_db.count_games(self.db),
            by_platform=games_db.count_by_platform(self.db),
            by_status=games_db.count_by_status(self.db),
            total_playtime=games_db.total_playtime(self.db),
        )

    def search_catalog(self, query: str) -> list[CatalogEntry]:
        return self.catalog.search_game(query)

    # Mutations -------------------------------------------------------------

    def create_game(self, data: CreateGameInput) -> Game:
        """Insert a game, enriching it from RAWG and its executable first.

        Catalog, cover and icon failures are logged and leave the affected
        fields empty; only a storage failure propagates.
        """

        game = Game(
            title=data.title,
            platform=data.platform,
            status=data.status,
            source=data.source or MANUAL_SOURCE,
            source_id=data.source_id,
            install_path=data.install_path,
        )

        if data.rawg_id is not None:
            self._apply_catalog_details(game, data.rawg_id)

        if game.icon_path is None and data.exe_path:
            self._apply_executable_icon(game, data.exe_path)

        game_id = games_db.insert_game(self.db, game)
        logger.info("Added game %s (%s) as id %s", game.title, game.platform, game_id)
        return games_db.get_game_by_id(self.db, game_id)

    def _apply_catalog_details(self, game: Game, rawg_id: int) -> None:
        try:
            details = self.catalog.get_game_details(rawg_id)
        except CatalogError as exc:
            logger.warning("RAWG lookup for %s failed: %s", rawg_id, exc)
            return

        game.description = details.description_raw
        game.genre = details.first_genre
        game.cover_url = details.cover_url
        game.rawg_id = rawg_id
        game.release_year = release_year_from_date(details.released)

        if not details.cover_url:
            return
        destination = cover_path_for_catalog_id(self.icons_dir, rawg_id)
        try:
            saved = self._download_cover(details.cover_url, destination)
        except AssetError as exc:
            logger.warning("Cover download for %s failed: %s", game.title, exc)
            return
        game.icon_path = os.fspath(saved)

    def _apply_executable_icon(self, game: Game, exe_path: str) -> None:
        destination = self.icons_dir / icon_filename_for_title(game.title)
        try:
            saved = self.icon_extractor.extract(exe_path, destination)
        except AssetError as exc:
            logger.info("No icon extracted for %s: %s", game.title, exc)
            return
        game.icon_path = os.fspath(saved)
        game.exe_path = exe_path

    def update_game_status(self, game_id: int, status: str) -> None:
        """Set ``status`` and stamp ``last_played``; unknown ids are ignored."""

        updated = games_db.update_game_status(self.db, game_id, status)
        if not updated:
            logger.debug("Status update for missing game %s ignored", game_id)

    def delete_game(self, game_id: int) -> None:
        deleted = games_db.delete_game(self.db, game_id)
        if deleted:
            logger.info("Deleted game %s", game_id)

    # Indexing --------------------------------------------------------------

    def index_all(self) -> IndexResult:
        """Scan Steam then Epic and upsert every discovered game.

        A launcher that cannot be scanned is logged and skipped. Entries
        that fail to store are logged and not counted as upserted.
        """

        result = IndexResult()
        for name, scanner in self._scanners:
            try:
                discovered = list(scanner())
            except (GameTrackerError, OSError) as exc:
                logger.warning("Skipping %s scan: %s", name, exc)
                continue

            result.discovered += len(discovered)
            for entry in discovered:
                try:
                    games_db.upsert_game_by_source(self.db, entry.to_game())
                except (SQLAlchemyError, ValueError) as exc:
                    logger.error(
                        "Failed to store %s game %s (%s): %s",
                        entry.source,
                        entry.title,
                        entry.source_id,
                        exc,
                    )
                    continue
                result.upserted += 1

        logger.info(
            "Indexing finished: %d discovered, %d upserted",
            result.discovered,
            result.upserted,
        )
        return result

    def export_library(self, path: str | os.PathLike[str]) -> int:
        """Write the library to ``path`` as CSV and return the row count."""

        games = self.list_games()
        frame = pd.DataFrame(
            [game.to_dict() for game in games], columns=list(GAME_COLUMNS)
        )
        destination = Path(path)
        destination.parent.mkdir(parents=True, exist_ok=True)
        frame.to_csv(destination, index=False)
        return len(frame)


__all__ = ["GameService"]
