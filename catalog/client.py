"""RAWG video game catalog client."""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Mapping

from urllib.error import HTTPError
from urllib.parse import quote, urlencode
from urllib.request import Request, urlopen

from config import DEFAULT_RAWG_BASE_URL, USER_AGENT
from errors import CatalogDecodeError, CatalogRequestError
from helpers import _clean_optional_text, _coerce_optional_int, _parse_iterable
from library.models import CatalogEntry

logger = logging.getLogger(__name__)


__all__ = [
    "RawgClient",
    "SEARCH_PAGE_SIZE",
    "parse_catalog_entry",
]

SEARCH_PAGE_SIZE = 5


def parse_catalog_entry(item: Any) -> CatalogEntry:
    """Return a :class:`CatalogEntry` for a RAWG game payload.

    Raises :class:`CatalogDecodeError` when ``item`` lacks a numeric ``id``, a
    ``name`` or carries a non-list ``genres`` value.
    """

    if not isinstance(item, Mapping):
        raise CatalogDecodeError("RAWG game payload is not an object")

    game_id = _coerce_optional_int(item.get("id"))
    if game_id is None:
        raise CatalogDecodeError(f"RAWG game payload has invalid id {item.get('id')!r}")

    name = item.get("name")
    if not isinstance(name, str):
        raise CatalogDecodeError(f"RAWG game {game_id} has no name")

    genres_value = item.get("genres")
    if genres_value is None:
        genres_value = []
    if not isinstance(genres_value, list):
        raise CatalogDecodeError(f"RAWG game {game_id} has malformed genres")

    return CatalogEntry(
        id=game_id,
        name=name.strip(),
        background_image=_clean_optional_text(item.get("background_image")),
        released=_clean_optional_text(item.get("released")),
        genres=_parse_iterable(genres_value),
        description_raw=_clean_optional_text(item.get("description_raw")),
    )


class RawgClient:
    """Thin client for the RAWG search and details endpoints.

    Requests go through ``urllib``; ``request_factory`` and ``opener`` can be
    replaced to run without network access. There is no retry: transport and
    decode failures surface to the caller as :class:`CatalogRequestError` and
    :class:`CatalogDecodeError`.
    """

    BASE_URL = DEFAULT_RAWG_BASE_URL

    def __init__(
        self,
        api_key: str | None = None,
        *,
        base_url: str | None = None,
        user_agent: str | None = None,
        timeout: float | None = None,
        request_factory: Callable[..., Any] | None = None,
        opener: Callable[..., Any] | None = None,
    ) -> None:
        self._api_key = (api_key or "").strip()
        self._base_url = (base_url or self.BASE_URL).rstrip("/")
        self.user_agent = (user_agent or "").strip() or USER_AGENT
        self._timeout = timeout
        self._request_factory = request_factory
        self._opener = opener

    def search_game(self, query: str) -> list[CatalogEntry]:
        """Search RAWG by title and return up to five candidate matches."""

        params = urlencode(
            {"key": self._api_key, "search": query, "page_size": SEARCH_PAGE_SIZE},
            quote_via=quote,
        )
        payload = self._get_json(
            f"{self._base_url}/games?{params}",
            error_prefix="RAWG search failed",
        )

        if not isinstance(payload, Mapping) or not isinstance(
            payload.get("results"), list
        ):
            raise CatalogDecodeError("RAWG search response has no results list")

        results = [parse_catalog_entry(item) for item in payload["results"]]
        return results[:SEARCH_PAGE_SIZE]

    def get_game_details(self, game_id: int) -> CatalogEntry:
        """Fetch complete details for a RAWG game id."""

        params = urlencode({"key": self._api_key}, quote_via=quote)
        payload = self._get_json(
            f"{self._base_url}/games/{int(game_id)}?{params}",
            error_prefix=f"RAWG details request for {game_id} failed",
        )
        return parse_catalog_entry(payload)

    def _resolve_request_factory(self) -> Callable[..., Any]:
        return self._request_factory or Request

    def _resolve_opener(self) -> Callable[..., Any]:
        return self._opener or urlopen

    def _get_json(self, url: str, *, error_prefix: str) -> Any:
        request = self._resolve_request_factory()(url, method="GET")
        request.add_header("Accept", "application/json")
        request.add_header("User-Agent", self.user_agent)
        open_request = self._resolve_opener()

        try:
            if self._timeout is not None:
                response_cm = open_request(request, timeout=self._timeout)
            else:
                response_cm = open_request(request)
            with response_cm as response:
                body = response.read()
        except HTTPError as exc:
            raise CatalogRequestError(_format_http_error(error_prefix, exc)) from exc
        except Exception as exc:
            raise CatalogRequestError(f"{error_prefix}: {exc}") from exc

        try:
            text = body.decode("utf-8") if body else ""
            return json.loads(text)
        except (UnicodeDecodeError, ValueError) as exc:
            raise CatalogDecodeError("invalid JSON response from RAWG") from exc


def _format_http_error(prefix: str, error: HTTPError) -> str:
    message = f"{prefix}: {error.code}"
    error_message = ""
    try:
        error_body = error.read()
    except Exception:  # pragma: no cover - best effort to capture error body
        error_body = b""
    if error_body:
        error_message = error_body.decode("utf-8", errors="replace").strip()
    if not error_message and error.reason:
        error_message = str(error.reason)
    if error_message:
        message = f"{message} {error_message}"
    return message
