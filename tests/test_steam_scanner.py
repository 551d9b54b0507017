from __future__ import annotations

import os
from pathlib import Path

import pytest

import config
from errors import LauncherNotFoundError
from launchers import steam

from tests.app_helpers import deny_listing, write_app_manifest, write_vdf


def _make_root(tmp_path: Path) -> Path:
    root = tmp_path / "Steam"
    (root / "steamapps").mkdir(parents=True)
    return root


def test_find_main_exe_skips_helpers(tmp_path):
    install = tmp_path / "Game"
    install.mkdir()
    for name in (
        "unins000.exe",
        "CrashReporter.exe",
        "UE4PrereqSetup_x64.exe",
        "readme.txt",
        "Game.EXE",
        "zz_launcher.exe",
    ):
        (install / name).write_bytes(b"MZ")

    assert steam.find_main_exe(install) == install / "Game.EXE"


def test_find_main_exe_returns_none_without_candidates(tmp_path):
    install = tmp_path / "Tool"
    install.mkdir()
    (install / "vcredist_x64.exe").write_bytes(b"MZ")
    (install / "DXSETUP.exe").write_bytes(b"MZ")

    assert steam.find_main_exe(install) is None
    assert steam.find_main_exe(tmp_path / "missing") is None


def test_locate_steam_root_uses_explicit_path(tmp_path):
    root = _make_root(tmp_path)

    assert steam.locate_steam_root(root) == root

    with pytest.raises(LauncherNotFoundError):
        steam.locate_steam_root(tmp_path / "nowhere")


def test_locate_steam_root_probes_home_directories(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "STEAM_PATH", None)
    monkeypatch.setattr(steam.Path, "home", classmethod(lambda cls: tmp_path))

    with pytest.raises(LauncherNotFoundError):
        steam.locate_steam_root(platform="linux")

    (tmp_path / ".local" / "share" / "Steam" / "steamapps").mkdir(parents=True)

    assert steam.locate_steam_root(platform="linux") == tmp_path / ".local" / "share" / "Steam"


def test_library_folders_reads_current_and_legacy_layouts(tmp_path):
    root = _make_root(tmp_path)
    second = tmp_path / "SteamLibrary"
    write_vdf(
        root / "steamapps" / "libraryfolders.vdf",
        {
            "libraryfolders": {
                "contentstatsid": "123",
                "0": {"path": os.fspath(root), "label": ""},
                "1": {"path": os.fspath(second)},
            }
        },
    )

    assert steam.library_folders(root) == [root, second]

    legacy_root = _make_root(tmp_path / "legacy")
    write_vdf(
        legacy_root / "steamapps" / "libraryfolders.vdf",
        {"LibraryFolders": {"TimeNextStatsReport": "0", "1": os.fspath(second)}},
    )

    assert steam.library_folders(legacy_root) == [legacy_root, second]


def test_scan_steam_games_across_libraries(tmp_path):
    root = _make_root(tmp_path)
    second = tmp_path / "SteamLibrary"
    write_vdf(
        root / "steamapps" / "libraryfolders.vdf",
        {"libraryfolders": {"0": {"path": os.fspath(root)}, "1": {"path": os.fspath(second)}}},
    )

    write_app_manifest(root, "10", "Counter-Strike", "Half-Life")
    game_dir = root / "steamapps" / "common" / "Half-Life"
    game_dir.mkdir(parents=True)
    (game_dir / "hl.exe").write_bytes(b"MZ")

    write_app_manifest(second, "20", "Portal 2", "Portal 2")
    write_app_manifest(second, "30", "", "Unnamed")
    broken = second / "steamapps" / "appmanifest_40.acf"
    broken.write_text('"AppState"\n{\n\t"appid"\t\t"40"\n', encoding="utf-8")

    games = steam.scan_steam_games(root)

    assert [game.source_id for game in games] == ["10", "20"]
    counter_strike, portal = games
    assert counter_strike.source == "steam"
    assert counter_strike.platform == "PC"
    assert counter_strike.exe_path == os.fspath(game_dir / "hl.exe")
    assert counter_strike.install_path == os.fspath(game_dir)
    assert portal.title == "Portal 2"
    assert portal.exe_path is None
    assert portal.install_path == os.fspath(second / "steamapps" / "common" / "Portal 2")


def test_scan_steam_games_raises_when_root_missing(tmp_path):
    with pytest.raises(LauncherNotFoundError):
        steam.scan_steam_games(tmp_path / "no-steam")


def test_unreadable_install_dir_has_no_exe_but_is_still_indexed(tmp_path, monkeypatch):
    root = _make_root(tmp_path)
    write_app_manifest(root, "10", "Counter-Strike", "Half-Life")
    game_dir = root / "steamapps" / "common" / "Half-Life"
    game_dir.mkdir(parents=True)
    (game_dir / "hl.exe").write_bytes(b"MZ")
    write_app_manifest(root, "20", "Locked Game", "locked")
    locked_dir = root / "steamapps" / "common" / "locked"
    locked_dir.mkdir(parents=True)
    (locked_dir / "locked.exe").write_bytes(b"MZ")
    deny_listing(monkeypatch, "locked")

    assert steam.find_main_exe(locked_dir) is None

    games = steam.scan_steam_games(root)

    assert [game.source_id for game in games] == ["10", "20"]
    assert games[0].exe_path == os.fspath(game_dir / "hl.exe")
    assert games[1].exe_path is None
    assert games[1].install_path == os.fspath(locked_dir)
