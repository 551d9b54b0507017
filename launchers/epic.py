"""Epic Games Store launcher scanner.

The launcher keeps one JSON manifest per installed item (``*.item``) in
``C:\\ProgramData\\Epic\\EpicGamesLauncher\\Data\\Manifests``.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Mapping

import config
from errors import ManifestDecodeError
from library.models import DEFAULT_PLATFORM, DiscoveredGame

logger = logging.getLogger(__name__)

SOURCE = "epic"
MANIFEST_SUFFIX = ".item"


def _text_field(manifest: Mapping[str, Any], key: str) -> str:
    value = manifest.get(key)
    if not isinstance(value, str):
        return ""
    return value.strip()


def parse_manifest(path: str | os.PathLike[str]) -> DiscoveredGame | None:
    """Return the game described by one ``.item`` manifest.

    ``None`` means the manifest is not a playable title (DLC, engine
    components, tools) or lacks a display or app name. Unreadable files and
    invalid JSON raise :class:`ManifestDecodeError`.
    """

    manifest_path = Path(path)
    try:
        with manifest_path.open("r", encoding="utf-8-sig") as handle:
            manifest = json.load(handle)
    except (OSError, UnicodeDecodeError, ValueError) as exc:
        raise ManifestDecodeError(f"{manifest_path}: {exc}") from exc

    if not isinstance(manifest, Mapping):
        raise ManifestDecodeError(f"{manifest_path}: manifest is not a JSON object")

    if manifest.get("bIsApplication") is not True:
        return None

    title = _text_field(manifest, "DisplayName")
    app_name = _text_field(manifest, "AppName")
    if not title or not app_name:
        return None

    install_location = _text_field(manifest, "InstallLocation") or None
    launch_executable = _text_field(manifest, "LaunchExecutable") or None

    exe_path: str | None = None
    if install_location and launch_executable:
        candidate = os.path.join(install_location, launch_executable)
        if os.path.exists(candidate):
            exe_path = candidate

    return DiscoveredGame(
        title=title,
        platform=DEFAULT_PLATFORM,
        exe_path=exe_path,
        install_path=install_location,
        source=SOURCE,
        source_id=app_name,
    )


def scan_epic_games(
    manifests_dir: str | os.PathLike[str] | None = None,
) -> list[DiscoveredGame]:
    """Scan Epic manifests and return the installed games.

    A missing manifest directory yields an empty list. Malformed manifests
    are logged and skipped.
    """

    directory = Path(manifests_dir) if manifests_dir is not None else config.EPIC_MANIFESTS_DIR
    games: list[DiscoveredGame] = []

    if not directory.is_dir():
        logger.warning("Epic manifests directory not found: %s", directory)
        return games

    for path in sorted(directory.iterdir()):
        if path.suffix != MANIFEST_SUFFIX or not path.is_file():
            continue
        try:
            game = parse_manifest(path)
        except ManifestDecodeError as exc:
            logger.warning("Failed to parse Epic manifest %s: %s", path, exc)
            continue
        if game is not None:
            games.append(game)

    logger.info("Epic scan found %d games in %s", len(games), directory)
    return games


__all__ = ["MANIFEST_SUFFIX", "SOURCE", "parse_manifest", "scan_epic_games"]
