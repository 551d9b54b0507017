"""Steam launcher scanner.

Installed games are read from the ``appmanifest_<appid>.acf`` files kept in
every Steam library folder. Library folders are listed in
``steamapps/libraryfolders.vdf`` under the Steam root.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Any, Iterator, Mapping

import vdf

import config
from errors import LauncherNotFoundError, ManifestDecodeError
from library.models import DEFAULT_PLATFORM, DiscoveredGame

logger = logging.getLogger(__name__)

SOURCE = "steam"

EXE_EXCLUDE_SUBSTRINGS: tuple[str, ...] = (
    "unins",
    "redist",
    "setup",
    "crash",
    "ue4prereq",
    "dxsetup",
)

_WINDOWS_REGISTRY_KEYS = (
    ("HKEY_CURRENT_USER", r"Software\Valve\Steam", "SteamPath"),
    ("HKEY_LOCAL_MACHINE", r"SOFTWARE\Wow6432Node\Valve\Steam", "InstallPath"),
    ("HKEY_LOCAL_MACHINE", r"SOFTWARE\Valve\Steam", "InstallPath"),
)


def _ci_get(mapping: Mapping[str, Any], key: str) -> Any:
    """Case-insensitive lookup; Valve files are inconsistent about key case."""

    if key in mapping:
        return mapping[key]
    lowered = key.lower()
    for candidate, value in mapping.items():
        if isinstance(candidate, str) and candidate.lower() == lowered:
            return value
    return None


def _registry_steam_paths() -> list[Path]:
    try:
        import winreg
    except ImportError:
        return []

    paths: list[Path] = []
    for hive_name, subkey, value_name in _WINDOWS_REGISTRY_KEYS:
        hive = getattr(winreg, hive_name)
        try:
            with winreg.OpenKey(hive, subkey) as key:
                value, _ = winreg.QueryValueEx(key, value_name)
        except OSError:
            continue
        if value:
            paths.append(Path(value))
    return paths


def _default_steam_paths(platform: str) -> list[Path]:
    home = Path.home()
    if platform == "win32":
        return [
            Path(r"C:\Program Files (x86)\Steam"),
            Path(r"C:\Program Files\Steam"),
        ]
    if platform == "darwin":
        return [home / "Library" / "Application Support" / "Steam"]
    return [
        home / ".steam" / "steam",
        home / ".local" / "share" / "Steam",
        home / ".var" / "app" / "com.valvesoftware.Steam" / "data" / "Steam",
    ]


def _is_steam_root(path: Path) -> bool:
    return (path / "steamapps").is_dir()


def locate_steam_root(
    steam_path: str | os.PathLike[str] | None = None,
    *,
    platform: str | None = None,
) -> Path:
    """Return the Steam installation directory.

    An explicit ``steam_path`` (or the ``STEAM_PATH`` setting) is used as-is
    and must contain ``steamapps``. Otherwise the Windows registry and the
    usual per-platform install locations are probed in turn.
    """

    explicit = Path(steam_path) if steam_path is not None else config.STEAM_PATH
    if explicit is not None:
        explicit = explicit.expanduser()
        if _is_steam_root(explicit):
            return explicit
        raise LauncherNotFoundError(f"Steam directory not found at {explicit}")

    current = platform or sys.platform
    candidates: list[Path] = []
    if current == "win32":
        candidates.extend(_registry_steam_paths())
    candidates.extend(_default_steam_paths(current))

    for candidate in candidates:
        if _is_steam_root(candidate):
            logger.debug("Using Steam root %s", candidate)
            return candidate

    raise LauncherNotFoundError("Steam installation not found")


def _load_vdf(path: Path) -> Mapping[str, Any]:
    try:
        with path.open("r", encoding="utf-8", errors="replace") as handle:
            data = vdf.load(handle)
    except (OSError, SyntaxError, ValueError) as exc:
        raise ManifestDecodeError(f"{path}: {exc}") from exc
    if not isinstance(data, Mapping):
        raise ManifestDecodeError(f"{path}: not a VDF document")
    return data


def library_folders(root: str | os.PathLike[str]) -> list[Path]:
    """Return every Steam library folder, starting with ``root`` itself.

    Both the current ``{"path": ...}`` entries and the older
    ``"1" "D:\\SteamLibrary"`` layout of ``libraryfolders.vdf`` are read.
    """

    root_path = Path(root)
    folders: list[Path] = [root_path]
    vdf_path = root_path / "steamapps" / "libraryfolders.vdf"
    if not vdf_path.is_file():
        return folders

    try:
        data = _load_vdf(vdf_path)
    except ManifestDecodeError as exc:
        logger.warning("Could not read Steam library folders: %s", exc)
        return folders

    section = _ci_get(data, "libraryfolders")
    if not isinstance(section, Mapping):
        return folders

    for key, entry in section.items():
        if not str(key).isdigit():
            continue
        if isinstance(entry, Mapping):
            raw_path = _ci_get(entry, "path")
        else:
            raw_path = entry
        if not isinstance(raw_path, str) or not raw_path.strip():
            continue
        folder = Path(raw_path.strip())
        if folder not in folders:
            folders.append(folder)
    return folders


def iter_app_manifests(library: str | os.PathLike[str]) -> Iterator[Path]:
    steamapps = Path(library) / "steamapps"
    if not steamapps.is_dir():
        return
    for path in sorted(steamapps.glob("appmanifest_*.acf")):
        if path.is_file():
            yield path


def find_main_exe(install_dir: str | os.PathLike[str]) -> Path | None:
    """Pick the first top-level ``.exe`` that is not an installer or helper."""

    directory = Path(install_dir)
    if not directory.is_dir():
        return None
    try:
        entries = sorted(directory.iterdir(), key=lambda item: item.name.lower())
    except OSError as exc:
        logger.debug("Cannot list install directory %s: %s", directory, exc)
        return None
    for entry in entries:
        if not entry.is_file() or entry.suffix.lower() != ".exe":
            continue
        name = entry.name.lower()
        if any(marker in name for marker in EXE_EXCLUDE_SUBSTRINGS):
            continue
        return entry
    return None


def parse_app_manifest(path: Path, library: Path) -> DiscoveredGame | None:
    """Return the game an ``appmanifest`` describes, or ``None`` when incomplete."""

    data = _load_vdf(path)
    state = _ci_get(data, "AppState")
    if not isinstance(state, Mapping):
        raise ManifestDecodeError(f"{path}: missing AppState section")

    app_id = str(_ci_get(state, "appid") or "").strip()
    name = str(_ci_get(state, "name") or "").strip()
    install_dir = str(_ci_get(state, "installdir") or "").strip()
    if not app_id or not name:
        return None

    install_path: Path | None = None
    exe_path: Path | None = None
    if install_dir:
        install_path = library / "steamapps" / "common" / install_dir
        exe_path = find_main_exe(install_path)

    return DiscoveredGame(
        title=name,
        platform=DEFAULT_PLATFORM,
        exe_path=os.fspath(exe_path) if exe_path else None,
        install_path=os.fspath(install_path) if install_path else None,
        source=SOURCE,
        source_id=app_id,
    )


def scan_steam_games(
    steam_path: str | os.PathLike[str] | None = None,
) -> list[DiscoveredGame]:
    """Return every installed Steam game across all library folders.

    Raises :class:`LauncherNotFoundError` when no Steam root is found.
    Unreadable manifests are logged and skipped.
    """

    root = locate_steam_root(steam_path)
    games: list[DiscoveredGame] = []
    seen: set[str] = set()

    for library in library_folders(root):
        for manifest in iter_app_manifests(library):
            try:
                game = parse_app_manifest(manifest, library)
            except ManifestDecodeError as exc:
                logger.warning("Skipping Steam manifest: %s", exc)
                continue
            if game is None or game.source_id in seen:
                continue
            seen.add(game.source_id)
            games.append(game)

    logger.info("Steam scan found %d games under %s", len(games), root)
    return games


__all__ = [
    "EXE_EXCLUDE_SUBSTRINGS",
    "SOURCE",
    "find_main_exe",
    "iter_app_manifests",
    "library_folders",
    "locate_steam_root",
    "parse_app_manifest",
    "scan_steam_games",
]
