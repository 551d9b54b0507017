"""Records shared by the persistence, launcher, catalog and service layers."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Mapping

from helpers import _clean_optional_text, _coerce_optional_int

DEFAULT_STATUS = "Backlog"
DEFAULT_PLATFORM = "PC"
MANUAL_SOURCE = "manual"

GAME_COLUMNS: tuple[str, ...] = (
    "id",
    "title",
    "platform",
    "status",
    "description",
    "genre",
    "release_year",
    "icon_path",
    "cover_url",
    "rawg_id",
    "exe_path",
    "playtime_hours",
    "rating",
    "added_date",
    "last_played",
    "source",
    "source_id",
    "install_path",
)


def _coerce_float(value: Any, default: float = 0.0) -> float:
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _coerce_timestamp(value: Any) -> str | None:
    if value is None:
        return None
    if hasattr(value, "isoformat"):
        return value.isoformat(sep=" ") if hasattr(value, "hour") else value.isoformat()
    return _clean_optional_text(value)


@dataclass
class Game:
    """A game stored in the ``games`` table."""

    title: str
    platform: str
    status: str = DEFAULT_STATUS
    id: int | None = None
    description: str | None = None
    genre: str | None = None
    release_year: int | None = None
    icon_path: str | None = None
    cover_url: str | None = None
    rawg_id: int | None = None
    exe_path: str | None = None
    playtime_hours: float = 0.0
    rating: int | None = None
    added_date: str | None = None
    last_played: str | None = None
    source: str | None = None
    source_id: str | None = None
    install_path: str | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Game":
        return cls(
            id=_coerce_optional_int(row.get("id")),
            title=str(row.get("title") or ""),
            platform=str(row.get("platform") or ""),
            status=str(row.get("status") or DEFAULT_STATUS),
            description=row.get("description"),
            genre=row.get("genre"),
            release_year=_coerce_optional_int(row.get("release_year")),
            icon_path=row.get("icon_path"),
            cover_url=row.get("cover_url"),
            rawg_id=_coerce_optional_int(row.get("rawg_id")),
            exe_path=row.get("exe_path"),
            playtime_hours=_coerce_float(row.get("playtime_hours")),
            rating=_coerce_optional_int(row.get("rating")),
            added_date=_coerce_timestamp(row.get("added_date")),
            last_played=_coerce_timestamp(row.get("last_played")),
            source=row.get("source"),
            source_id=_clean_optional_text(row.get("source_id")),
            install_path=row.get("install_path"),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class DiscoveredGame:
    """A game found by a launcher scanner, not yet reconciled with storage."""

    title: str
    source: str
    source_id: str
    platform: str = DEFAULT_PLATFORM
    exe_path: str | None = None
    install_path: str | None = None

    def to_game(self) -> Game:
        """Return the minimal ``Backlog`` record used for source upserts."""

        return Game(
            title=self.title,
            platform=self.platform,
            status=DEFAULT_STATUS,
            exe_path=self.exe_path,
            install_path=self.install_path,
            source=self.source,
            source_id=self.source_id,
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class CatalogEntry:
    """Game metadata returned by the RAWG catalog API."""

    id: int
    name: str
    background_image: str | None = None
    released: str | None = None
    genres: list[str] = field(default_factory=list)
    description_raw: str | None = None

    @property
    def cover_url(self) -> str | None:
        return self.background_image

    @property
    def first_genre(self) -> str | None:
        return self.genres[0] if self.genres else None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["genres"] = [{"name": name} for name in self.genres]
        return data


@dataclass
class CreateGameInput:
    """Fields accepted when a game is added manually or from a discovery."""

    title: str
    platform: str
    status: str
    rawg_id: int | None = None
    exe_path: str | None = None
    source: str | None = None
    source_id: str | None = None
    install_path: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "CreateGameInput":
        """Build an input from a request payload; raises ``ValueError`` on bad fields."""

        missing = [
            name
            for name in ("title", "platform", "status")
            if not _clean_optional_text(data.get(name))
        ]
        if missing:
            raise ValueError(f"missing required fields: {', '.join(missing)}")

        raw_rawg_id = data.get("rawg_id")
        rawg_id = _coerce_optional_int(raw_rawg_id)
        if rawg_id is None and _clean_optional_text(raw_rawg_id) is not None:
            raise ValueError("invalid rawg_id")

        return cls(
            title=str(data["title"]).strip(),
            platform=str(data["platform"]).strip(),
            status=str(data["status"]).strip(),
            rawg_id=rawg_id,
            exe_path=_clean_optional_text(data.get("exe_path")),
            source=_clean_optional_text(data.get("source")),
            source_id=_clean_optional_text(data.get("source_id")),
            install_path=_clean_optional_text(data.get("install_path")),
        )


@dataclass
class GameStats:
    total_games: int = 0
    by_platform: list[tuple[str, int]] = field(default_factory=list)
    by_status: list[tuple[str, int]] = field(default_factory=list)
    total_playtime: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_games": self.total_games,
            "by_platform": [list(pair) for pair in self.by_platform],
            "by_status": [list(pair) for pair in self.by_status],
            "total_playtime": self.total_playtime,
        }


@dataclass
class IndexResult:
    """Summary of an indexing pass."""

    discovered: int = 0
    upserted: int = 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


__all__ = [
    "CatalogEntry",
    "CreateGameInput",
    "DEFAULT_PLATFORM",
    "DEFAULT_STATUS",
    "DiscoveredGame",
    "GAME_COLUMNS",
    "Game",
    "GameStats",
    "IndexResult",
    "MANUAL_SOURCE",
]
