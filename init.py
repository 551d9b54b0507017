"""Application startup orchestration helpers."""

from __future__ import annotations

import logging
import os
from functools import partial
from pathlib import Path

from catalog.client import RawgClient
from config import (
    DB_DSN,
    DB_TIMEOUT_SECONDS,
    EPIC_MANIFESTS_DIR,
    ICONS_DIR_PATH,
    RAWG_API_KEY,
    RAWG_BASE_URL,
    RAWG_TIMEOUT_SECONDS,
    RUN_DB_MIGRATIONS,
    STEAM_PATH,
    USER_AGENT,
    validate_rawg_credentials,
)
from db import utils as db_utils
from db.schema import init_db
from launchers.epic import scan_epic_games
from launchers.steam import scan_steam_games
from library.service import GameService
from media.icons import IconExtractor, select_icon_extractor

logger = logging.getLogger(__name__)


def initialize_app(
    *,
    db_dsn: str = DB_DSN,
    icons_dir: str | os.PathLike[str] = ICONS_DIR_PATH,
    steam_path: str | os.PathLike[str] | None = STEAM_PATH,
    epic_manifests_dir: str | os.PathLike[str] = EPIC_MANIFESTS_DIR,
    run_migrations: bool = RUN_DB_MIGRATIONS,
    catalog_client: RawgClient | None = None,
    icon_extractor: IconExtractor | None = None,
) -> GameService:
    """Perform the core startup tasks and return the shared :class:`GameService`.

    The initializer ensures the icons directory exists, opens the database
    engine, creates or migrates the ``games`` table and wires the catalog
    client and launcher scanners into the service.
    """

    icons_path = Path(icons_dir)
    icons_path.mkdir(parents=True, exist_ok=True)

    db = db_utils.build_engine_from_dsn(db_dsn, timeout=DB_TIMEOUT_SECONDS)
    try:
        init_db(db, run_migrations=run_migrations)
    except Exception:
        logger.exception("Failed to prepare the games database")
        db.dispose()
        raise

    if catalog_client is None:
        validate_rawg_credentials(RAWG_API_KEY)
        catalog_client = RawgClient(
            RAWG_API_KEY,
            base_url=RAWG_BASE_URL,
            user_agent=USER_AGENT,
            timeout=RAWG_TIMEOUT_SECONDS,
        )

    service = GameService(
        db,
        catalog_client,
        icons_path,
        icon_extractor=icon_extractor or select_icon_extractor(),
        steam_scanner=partial(scan_steam_games, steam_path),
        epic_scanner=partial(scan_epic_games, epic_manifests_dir),
    )
    logger.info("Game library ready (%s, icons in %s)", db.dialect_name, icons_path)
    return service


__all__ = ["initialize_app"]
