from __future__ import annotations

import io
from urllib.error import HTTPError, URLError

import pytest

import config
from catalog.client import RawgClient, parse_catalog_entry
from errors import CatalogDecodeError, CatalogRequestError

from tests.app_helpers import RecordingOpener


def _game_payload(game_id: int, name: str, **extra):
    payload = {
        "id": game_id,
        "name": name,
        "background_image": f"https://media.rawg.io/{game_id}.jpg",
        "released": "2015-05-18",
        "genres": [{"id": 4, "name": "Action"}, {"id": 5, "name": "RPG"}],
    }
    payload.update(extra)
    return payload


def test_search_encodes_query_and_limits_results():
    opener = RecordingOpener(
        {"count": 6, "results": [_game_payload(i, f"Witcher {i}") for i in range(1, 7)]}
    )
    client = RawgClient("secret", opener=opener, user_agent="TrackerTests/1.0")

    results = client.search_game("The Witcher 3")

    assert len(results) == 5
    assert results[0].name == "Witcher 1"
    assert results[0].genres == ["Action", "RPG"]
    request = opener.requests[0]
    assert request.full_url == (
        "https://api.rawg.io/api/games?key=secret&search=The%20Witcher%203&page_size=5"
    )
    assert request.get_header("User-agent") == "TrackerTests/1.0"


def test_client_defaults_to_configured_user_agent():
    opener = RecordingOpener({"results": []})
    client = RawgClient("  secret  ", opener=opener)

    client.search_game("Hades")

    request = opener.requests[0]
    assert request.get_header("User-agent") == config.USER_AGENT
    assert "key=secret&" in request.full_url


def test_get_game_details_returns_entry():
    opener = RecordingOpener(
        _game_payload(3328, "The Witcher 3: Wild Hunt", description_raw="Monsters.")
    )
    client = RawgClient("secret", base_url="https://rawg.test/api/", opener=opener, timeout=3)

    entry = client.get_game_details(3328)

    assert entry.id == 3328
    assert entry.description_raw == "Monsters."
    assert entry.first_genre == "Action"
    assert entry.cover_url == "https://media.rawg.io/3328.jpg"
    assert opener.requests[0].full_url == "https://rawg.test/api/games/3328?key=secret"
    assert opener.timeouts == [3]


def test_http_error_raises_request_error():
    error = HTTPError(
        "https://api.rawg.io/api/games/1", 401, "Unauthorized", hdrs=None,
        fp=io.BytesIO(b'{"error": "The key parameter is not provided"}'),
    )
    client = RawgClient("", opener=RecordingOpener(error=error))

    with pytest.raises(CatalogRequestError) as excinfo:
        client.get_game_details(1)

    assert "401" in str(excinfo.value)


def test_network_error_raises_request_error():
    client = RawgClient("secret", opener=RecordingOpener(error=URLError("timed out")))

    with pytest.raises(CatalogRequestError):
        client.search_game("portal")


@pytest.mark.parametrize(
    "body",
    [b"<html>not json</html>", b'{"count": 0}', b'{"results": "nope"}'],
)
def test_unexpected_search_payload_raises_decode_error(body):
    client = RawgClient("secret", opener=RecordingOpener(body))

    with pytest.raises(CatalogDecodeError):
        client.search_game("portal")


def test_parse_catalog_entry_rejects_malformed_items():
    with pytest.raises(CatalogDecodeError):
        parse_catalog_entry({"name": "No id"})
    with pytest.raises(CatalogDecodeError):
        parse_catalog_entry({"id": 1})
    with pytest.raises(CatalogDecodeError):
        parse_catalog_entry({"id": 1, "name": "Bad genres", "genres": "Action"})

    entry = parse_catalog_entry({"id": "7", "name": " Celeste ", "genres": None})
    assert entry.id == 7
    assert entry.name == "Celeste"
    assert entry.genres == []
    assert entry.background_image is None
