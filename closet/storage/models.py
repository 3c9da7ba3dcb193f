"""Wardrobe records and their JSON representation."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional


class Season(str, Enum):
    """Season a piece is best suited for."""

    SPRING = "Spring"
    SUMMER = "Summer"
    AUTUMN = "Autumn"
    WINTER = "Winter"
    ALL = "All"

    @classmethod
    def for_month(cls, month: int) -> "Season":
        """Return the season for a calendar month (1-12)."""

        if 3 <= month <= 5:
            return cls.SPRING
        if 6 <= month <= 8:
            return cls.SUMMER
        if 9 <= month <= 11:
            return cls.AUTUMN
        return cls.WINTER


class ItemKind(str, Enum):
    """Kind of record a wear event is logged against."""

    PIECE = "piece"
    OUTFIT = "outfit"


def utc_now_iso() -> str:
    """Current UTC time as ISO-8601 with millisecond precision and ``Z`` suffix."""

    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    """Parse a stored ISO-8601 timestamp into an aware datetime."""

    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(slots=True, frozen=True)
class WearLog:
    """A single immutable record that an item was worn."""

    id: str
    date: str
    notes: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"id": self.id, "date": self.date}
        if self.notes is not None:
            payload["notes"] = self.notes
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "WearLog":
        return cls(id=str(payload["id"]), date=str(payload["date"]), notes=payload.get("notes"))


@dataclass(slots=True)
class Piece:
    """A single catalogued clothing item."""

    id: str
    title: str
    brand: str = ""
    color: str = ""
    size: str = ""
    season: Season = Season.ALL
    style: str = ""
    tags: List[str] = field(default_factory=list)
    images: List[str] = field(default_factory=list)
    wear_history: List[WearLog] = field(default_factory=list)
    created_at: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "brand": self.brand,
            "color": self.color,
            "size": self.size,
            "season": self.season.value,
            "style": self.style,
            "tags": list(self.tags),
            "images": list(self.images),
            "wearHistory": [log.to_dict() for log in self.wear_history],
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Piece":
        return cls(
            id=str(payload["id"]),
            title=str(payload.get("title", "")),
            brand=str(payload.get("brand", "")),
            color=str(payload.get("color", "")),
            size=str(payload.get("size", "")),
            season=Season(payload.get("season", Season.ALL.value)),
            style=str(payload.get("style", "")),
            tags=[str(tag) for tag in payload.get("tags", [])],
            images=[str(image) for image in payload.get("images", [])],
            wear_history=[WearLog.from_dict(log) for log in payload.get("wearHistory", [])],
            created_at=str(payload["createdAt"]),
        )


@dataclass(slots=True)
class Outfit:
    """A named grouping of piece references."""

    id: str
    title: str
    piece_ids: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    images: List[str] = field(default_factory=list)
    wear_history: List[WearLog] = field(default_factory=list)
    notes: Optional[str] = None
    created_at: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "pieceIds": list(self.piece_ids),
            "tags": list(self.tags),
            "images": list(self.images),
            "wearHistory": [log.to_dict() for log in self.wear_history],
        }
        if self.notes is not None:
            payload["notes"] = self.notes
        payload["createdAt"] = self.created_at
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Outfit":
        return cls(
            id=str(payload["id"]),
            title=str(payload.get("title", "")),
            piece_ids=[str(piece_id) for piece_id in payload.get("pieceIds", [])],
            tags=[str(tag) for tag in payload.get("tags", [])],
            images=[str(image) for image in payload.get("images", [])],
            wear_history=[WearLog.from_dict(log) for log in payload.get("wearHistory", [])],
            notes=payload.get("notes"),
            created_at=str(payload["createdAt"]),
        )


__all__ = ["ItemKind", "Outfit", "Piece", "Season", "WearLog", "parse_timestamp", "utc_now_iso"]
