"""Request bodies accepted by the HTTP API."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from closet.services.forms import OutfitDraft, PieceDraft
from closet.storage.models import Season
from closet.storage.preferences import ProviderName


class PieceIn(BaseModel):
    title: str = ""
    brand: str = ""
    color: str = ""
    size: str = ""
    season: Season = Season.ALL
    style: str = ""
    tags: list[str] = Field(default_factory=list)
    images: list[str] = Field(default_factory=list)

    def to_draft(self) -> PieceDraft:
        return PieceDraft(
            title=self.title,
            brand=self.brand,
            color=self.color,
            size=self.size,
            season=self.season,
            style=self.style,
            tags=list(self.tags),
            images=list(self.images),
        )


class OutfitIn(BaseModel):
    title: str = ""
    notes: str = ""
    piece_ids: list[str] = Field(default_factory=list, alias="pieceIds")
    tags: list[str] = Field(default_factory=list)
    images: list[str] = Field(default_factory=list)

    model_config = {"populate_by_name": True}

    def to_draft(self) -> OutfitDraft:
        return OutfitDraft(
            title=self.title,
            notes=self.notes,
            tags=list(self.tags),
            piece_ids=list(self.piece_ids),
            images=list(self.images),
        )


class WearIn(BaseModel):
    notes: Optional[str] = None


class ImageIn(BaseModel):
    """A base64 payload or a full data URL; the type is detected when omitted."""

    image: str
    mime_type: Optional[str] = Field(default=None, alias="mimeType")

    model_config = {"populate_by_name": True}


class ProviderSettingsIn(BaseModel):
    api_key: Optional[str] = Field(default=None, alias="apiKey")
    provider: Optional[ProviderName] = None

    model_config = {"populate_by_name": True}


class AutofillIn(ImageIn):
    """A photo plus the piece form state it should fill."""

    draft: PieceIn = Field(default_factory=PieceIn)
