"""Cover image downloads."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Callable

from urllib.request import Request, urlopen

from config import USER_AGENT
from errors import AssetDownloadError

logger = logging.getLogger(__name__)


def cover_path_for_catalog_id(icons_dir: str | os.PathLike[str], rawg_id: int) -> Path:
    """Return the file a RAWG cover is stored under."""

    return Path(icons_dir) / f"{rawg_id}.jpg"


def download_cover(
    url: str,
    dest_path: str | os.PathLike[str],
    *,
    user_agent: str = USER_AGENT,
    timeout: float | None = None,
    opener: Callable[..., Any] | None = None,
) -> Path:
    """Download ``url`` and write the full response body to ``dest_path``.

    Parent directories are created first. Raises :class:`AssetDownloadError`
    when the request or the write fails.
    """

    destination = Path(dest_path)
    request = Request(url, method="GET")
    request.add_header("User-Agent", user_agent)
    open_request = opener or urlopen

    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        response_cm = (
            open_request(request, timeout=timeout)
            if timeout is not None
            else open_request(request)
        )
        with response_cm as response:
            body = response.read()
        destination.write_bytes(body)
    except Exception as exc:
        raise AssetDownloadError(f"failed to download {url}: {exc}") from exc

    logger.debug("Downloaded %s (%d bytes) to %s", url, len(body), destination)
    return destination


__all__ = ["cover_path_for_catalog_id", "download_cover"]
