"""Editable drafts of pieces and outfits, validated before they reach the store."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Iterable, List, Optional

from closet.analysis.schemas import AnalysisResult
from closet.errors import ValidationError
from closet.storage.models import Outfit, Piece, Season
from closet.storage.repository import WardrobeStore


def split_tags(text: str) -> List[str]:
    """Turn comma separated tag text into a clean list."""

    return _clean_tags(text.split(","))


def join_tags(tags: Iterable[str]) -> str:
    return ", ".join(tags)


def _clean_tags(tags: Iterable[str]) -> List[str]:
    return [tag.strip() for tag in tags if tag.strip()]


@dataclass(slots=True)
class PieceDraft:
    """Form state for creating or editing a piece."""

    title: str = ""
    brand: str = ""
    color: str = ""
    size: str = ""
    season: Season = Season.ALL
    style: str = ""
    tags: List[str] = field(default_factory=list)
    images: List[str] = field(default_factory=list)

    @classmethod
    def from_piece(cls, piece: Piece) -> "PieceDraft":
        return cls(
            title=piece.title,
            brand=piece.brand,
            color=piece.color,
            size=piece.size,
            season=piece.season,
            style=piece.style,
            tags=list(piece.tags),
            images=list(piece.images),
        )

    def apply_analysis(self, result: AnalysisResult) -> None:
        """Fill the fields a photo can tell; brand and size are kept."""

        self.title = result.title or ""
        self.color = result.color or ""
        self.season = result.season or Season.ALL
        self.style = result.style or ""
        self.tags = list(result.tags or [])

    def tag_list(self) -> List[str]:
        return _clean_tags(self.tags)

    @property
    def tag_text(self) -> str:
        """Tags as the comma separated text shown in the form."""

        return join_tags(self.tags)

    @tag_text.setter
    def tag_text(self, text: str) -> None:
        self.tags = split_tags(text)

    def validate(self, *, creating: bool) -> None:
        if not self.title.strip():
            raise ValidationError("Title is required.")
        if creating and not self.images:
            raise ValidationError("An image is required.")

    def fields(self) -> dict:
        return {
            "title": self.title,
            "brand": self.brand,
            "color": self.color,
            "size": self.size,
            "season": self.season,
            "style": self.style,
            "tags": self.tag_list(),
        }

    async def save(self, store: WardrobeStore, existing: Optional[Piece] = None) -> Optional[Piece]:
        """Create a new piece or replace ``existing`` with the draft's values."""

        self.validate(creating=existing is None)
        if existing is None:
            return await store.add_piece(self.fields(), self.images)
        return await store.update_piece(replace(existing, images=list(self.images), **self.fields()))


@dataclass(slots=True)
class OutfitDraft:
    """Form state for creating or editing an outfit."""

    title: str = ""
    notes: str = ""
    tags: List[str] = field(default_factory=list)
    piece_ids: List[str] = field(default_factory=list)
    images: List[str] = field(default_factory=list)

    @classmethod
    def from_outfit(cls, outfit: Outfit) -> "OutfitDraft":
        return cls(
            title=outfit.title,
            notes=outfit.notes or "",
            tags=list(outfit.tags),
            piece_ids=list(outfit.piece_ids),
            images=list(outfit.images),
        )

    def toggle_piece(self, piece_id: str) -> None:
        if piece_id in self.piece_ids:
            self.piece_ids.remove(piece_id)
        else:
            self.piece_ids.append(piece_id)

    def tag_list(self) -> List[str]:
        return _clean_tags(self.tags)

    @property
    def tag_text(self) -> str:
        """Tags as the comma separated text shown in the form."""

        return join_tags(self.tags)

    @tag_text.setter
    def tag_text(self, text: str) -> None:
        self.tags = split_tags(text)

    def validate(self, *, creating: bool) -> None:
        if not self.title.strip() or not self.piece_ids:
            raise ValidationError("Title and at least one piece are required.")
        if creating and not self.images:
            raise ValidationError("An image is required.")

    def fields(self) -> dict:
        return {
            "title": self.title,
            "notes": self.notes,
            "piece_ids": list(dict.fromkeys(self.piece_ids)),
            "tags": self.tag_list(),
        }

    async def save(self, store: WardrobeStore, existing: Optional[Outfit] = None) -> Optional[Outfit]:
        """Create a new outfit or replace ``existing`` with the draft's values."""

        self.validate(creating=existing is None)
        if existing is None:
            return await store.add_outfit(self.fields(), self.images)
        return await store.update_outfit(replace(existing, images=list(self.images), **self.fields()))


__all__ = ["OutfitDraft", "PieceDraft", "join_tags", "split_tags"]
