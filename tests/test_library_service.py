from __future__ import annotations

import functools
import logging

import pandas as pd

from errors import CatalogRequestError, LauncherNotFoundError
from launchers.steam import scan_steam_games
from library.models import CreateGameInput

from tests.app_helpers import (
    FakeCatalog,
    FakeIconExtractor,
    build_service,
    deny_listing,
    discovered,
    failing_cover_downloader,
    failing_icon_extractor,
    witcher_entry,
    write_app_manifest,
)


def _input(**overrides):
    data = {"title": "The Witcher 3", "platform": "PC", "status": "Playing"}
    data.update(overrides)
    return CreateGameInput(**data)


def test_create_without_catalog_or_exe_skips_enrichment(service, catalog):
    game = service.create_game(_input(status="Wishlist"))

    assert game.id is not None
    assert game.status == "Wishlist"
    assert game.source == "manual"
    assert game.icon_path is None
    assert game.cover_url is None
    assert game.exe_path is None
    assert game.added_date
    assert catalog.detail_calls == []
    assert service.icon_extractor.calls == []


def test_create_copies_catalog_details_and_downloads_cover(engine, icons_dir):
    catalog = FakeCatalog([witcher_entry()])
    service = build_service(engine, catalog, icons_dir)

    game = service.create_game(_input(rawg_id=3328, exe_path=r"C:\Games\witcher3.exe"))

    assert catalog.detail_calls == [3328]
    assert game.rawg_id == 3328
    assert game.genre == "Action"
    assert game.description == "Geralt hunts monsters."
    assert game.release_year == 2015
    assert game.cover_url == "https://media.rawg.io/media/games/618/witcher3.jpg"
    assert game.icon_path == str(icons_dir / "3328.jpg")
    assert (icons_dir / "3328.jpg").exists()
    # The cover doubles as the icon, so the executable is not consulted.
    assert service.icon_extractor.calls == []
    assert game.exe_path is None


def test_create_with_failed_cover_download_keeps_cover_url(engine, icons_dir):
    catalog = FakeCatalog([witcher_entry()])
    service = build_service(
        engine,
        catalog,
        icons_dir,
        cover_downloader=failing_cover_downloader,
        icon_extractor=failing_icon_extractor(),
    )

    game = service.create_game(_input(rawg_id=3328))

    assert game.cover_url == "https://media.rawg.io/media/games/618/witcher3.jpg"
    assert game.icon_path is None
    assert game.genre == "Action"


def test_create_survives_catalog_failure(engine, icons_dir, caplog):
    catalog = FakeCatalog(error=CatalogRequestError("RAWG search failed: 500"))
    service = build_service(engine, catalog, icons_dir)

    with caplog.at_level(logging.WARNING, logger="library.service"):
        game = service.create_game(_input(rawg_id=1))

    assert game.id is not None
    assert game.rawg_id is None
    assert game.description is None
    assert game.cover_url is None
    assert "RAWG lookup for 1 failed" in caplog.text


def test_create_extracts_icon_from_executable(service, icons_dir):
    game = service.create_game(
        _input(title="Hollow Knight Silksong", exe_path=r"D:\Games\Silksong.exe")
    )

    expected = icons_dir / "Hollow_Knight_Silksong.ico"
    assert service.icon_extractor.calls == [(r"D:\Games\Silksong.exe", expected)]
    assert game.icon_path == str(expected)
    assert game.exe_path == r"D:\Games\Silksong.exe"


def test_create_with_failed_icon_extraction_leaves_exe_unset(engine, catalog, icons_dir):
    service = build_service(engine, catalog, icons_dir, icon_extractor=failing_icon_extractor())

    game = service.create_game(_input(exe_path=r"D:\Games\game.exe"))

    assert game.icon_path is None
    assert game.exe_path is None


def test_filter_search_and_stats(service):
    service.create_game(_input(title="Celeste", platform="Switch", status="Completed"))
    service.create_game(_input(title="Hades", status="Playing"))

    assert [g.title for g in service.filter_games("Completed")] == ["Celeste"]
    assert {g.title for g in service.filter_games(None)} == {"Celeste", "Hades"}
    assert [g.title for g in service.search_games("had")] == ["Hades"]

    stats = service.get_stats()
    assert stats.total_games == 2
    assert stats.by_platform == [("PC", 1), ("Switch", 1)]
    assert stats.by_status == [("Completed", 1), ("Playing", 1)]
    assert stats.total_playtime == 0.0


def test_update_status_and_delete(service):
    game = service.create_game(_input(status="Backlog"))

    service.update_game_status(game.id, "Completed")
    updated = service.get_game(game.id)
    assert updated.status == "Completed"
    assert updated.last_played is not None

    service.update_game_status(9999, "Completed")
    service.delete_game(game.id)
    service.delete_game(game.id)
    assert service.list_games() == []


def test_index_all_continues_after_launcher_failure(engine, catalog, icons_dir):
    def missing_steam():
        raise LauncherNotFoundError("Steam installation not found")

    epic_games = [
        discovered("Test Game One", "epic", "TestGameOne123", install_path=r"C:\Games\TestGameOne"),
        discovered("Another Great Game", "epic", "AnotherGreat"),
    ]
    service = build_service(
        engine,
        catalog,
        icons_dir,
        steam_scanner=missing_steam,
        epic_scanner=lambda: list(epic_games),
    )

    first = service.index_all()
    second = service.index_all()

    assert first.to_dict() == {"discovered": 2, "upserted": 2}
    assert second.to_dict() == {"discovered": 2, "upserted": 2}
    games = service.list_games()
    assert len(games) == 2
    assert {game.status for game in games} == {"Backlog"}
    assert {game.source for game in games} == {"epic"}


def test_index_all_counts_only_stored_entries(engine, catalog, icons_dir):
    service = build_service(
        engine,
        catalog,
        icons_dir,
        steam_scanner=lambda: [
            discovered("Portal", "steam", "400"),
            discovered("Broken", "steam", ""),
        ],
        epic_scanner=lambda: [],
    )

    result = service.index_all()

    assert result.discovered == 2
    assert result.upserted == 1
    assert [game.title for game in service.list_games()] == ["Portal"]


def test_index_all_keeps_user_edits(engine, catalog, icons_dir):
    scans = [[discovered("Portal", "steam", "400")], [discovered("Portal: Still Alive", "steam", "400")]]
    service = build_service(
        engine, catalog, icons_dir, steam_scanner=lambda: scans.pop(0)
    )

    service.index_all()
    game = service.list_games()[0]
    service.update_game_status(game.id, "Completed")
    service.index_all()

    refreshed = service.get_game(game.id)
    assert refreshed.title == "Portal: Still Alive"
    assert refreshed.status == "Completed"


def test_search_catalog_delegates_to_client(engine, icons_dir):
    catalog = FakeCatalog(search_results=[witcher_entry()])
    service = build_service(engine, catalog, icons_dir, icon_extractor=FakeIconExtractor())

    results = service.search_catalog("witcher")

    assert [entry.id for entry in results] == [3328]
    assert catalog.search_calls == ["witcher"]


def test_export_library_writes_csv(service, tmp_path):
    service.create_game(_input(title="Celeste"))
    service.create_game(_input(title="Hades"))
    destination = tmp_path / "exports" / "games.csv"

    rows = service.export_library(destination)

    assert rows == 2
    frame = pd.read_csv(destination)
    assert set(frame["title"]) == {"Celeste", "Hades"}
    assert "source_id" in frame.columns


def test_create_uses_requested_catalog_id_for_cover(engine, icons_dir):
    catalog = FakeCatalog()
    catalog.details[42] = witcher_entry()
    service = build_service(engine, catalog, icons_dir)

    game = service.create_game(_input(rawg_id=42))

    assert catalog.detail_calls == [42]
    assert game.rawg_id == 42
    assert game.icon_path == str(icons_dir / "42.jpg")
    assert not (icons_dir / "3328.jpg").exists()


def test_create_keeps_extracted_icon_inside_icons_dir(service, icons_dir):
    game = service.create_game(_input(title="../../outside", exe_path="C:/g.exe"))

    output_path = service.icon_extractor.calls[0][1]
    assert output_path.parent == icons_dir
    assert output_path.name == ".._.._outside.ico"
    assert game.icon_path == str(output_path)
    assert not (icons_dir.parent.parent / "outside.ico").exists()


def test_index_all_keeps_steam_games_from_unreadable_install_dirs(
    engine, catalog, icons_dir, tmp_path, monkeypatch
):
    root = tmp_path / "Steam"
    write_app_manifest(root, "10", "Counter-Strike", "Half-Life")
    write_app_manifest(root, "20", "Locked Game", "locked")
    (root / "steamapps" / "common" / "Half-Life").mkdir(parents=True)
    (root / "steamapps" / "common" / "locked").mkdir(parents=True)
    deny_listing(monkeypatch, "locked")
    service = build_service(
        engine,
        catalog,
        icons_dir,
        steam_scanner=functools.partial(scan_steam_games, root),
        epic_scanner=lambda: [discovered("Alan Wake", "epic", "AlanWake")],
    )

    result = service.index_all()

    assert result.to_dict() == {"discovered": 3, "upserted": 3}
    assert {game.source for game in service.list_games()} == {"steam", "epic"}
