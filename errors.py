"""Exception types raised by the library, catalog, media and launcher layers."""

from __future__ import annotations


class GameTrackerError(Exception):
    """Base class for errors raised by the game tracker."""

    message: str = "An unexpected error occurred."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)
        self.message = message or self.message


class GameNotFoundError(GameTrackerError):
    message = "Game not found."

    def __init__(self, game_id: int | None = None, message: str | None = None) -> None:
        if message is None and game_id is not None:
            message = f"Game {game_id} not found."
        super().__init__(message)
        self.game_id = game_id


class CatalogError(GameTrackerError):
    message = "Catalog request failed."


class CatalogRequestError(CatalogError):
    """The catalog API could not be reached or answered with an HTTP error."""

    message = "Catalog API unavailable."


class CatalogDecodeError(CatalogError):
    """The catalog API answered with JSON that does not match the expected shape."""

    message = "Invalid response from catalog API."


class AssetError(GameTrackerError):
    message = "Asset operation failed."


class AssetDownloadError(AssetError):
    message = "Failed to download asset."


class IconExtractionError(AssetError):
    message = "Failed to extract executable icon."


class IconExtractionUnsupportedError(IconExtractionError):
    message = "Icon extraction is only supported on Windows."


class LauncherError(GameTrackerError):
    message = "Launcher scan failed."


class LauncherNotFoundError(LauncherError):
    message = "Launcher installation not found."


class ManifestDecodeError(LauncherError):
    message = "Launcher manifest could not be parsed."


__all__ = [
    "AssetDownloadError",
    "AssetError",
    "CatalogDecodeError",
    "CatalogError",
    "CatalogRequestError",
    "GameNotFoundError",
    "GameTrackerError",
    "IconExtractionError",
    "IconExtractionUnsupportedError",
    "LauncherError",
    "LauncherNotFoundError",
    "ManifestDecodeError",
]
