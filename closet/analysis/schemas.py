"""Prompts, reply schema and result types shared by the providers."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ValidationError, field_validator

from closet.errors import ProviderError
from closet.imgproc.encode import to_data_url
from closet.storage.models import Season

logger = logging.getLogger(__name__)

ANALYSIS_INSTRUCTION = "Analyze this image of a clothing item. Describe it in JSON format."

JSON_SHAPE_INSTRUCTION = (
    f"{ANALYSIS_INSTRUCTION} The JSON object must conform to this schema: "
    '{ "title": "A short, descriptive title", "color": "The primary color", '
    '"style": "The style category (e.g., Casual, Formal)", '
    '"season": "The most appropriate season (Spring, Summer, Autumn, Winter, or All)", '
    '"tags": ["array", "of", "relevant", "keywords"] }.'
)

BACKGROUND_REMOVAL_INSTRUCTION = (
    "Remove the background from this photo. Isolate the clothing item exactly as it is "
    "and place it on a solid white background. Do not change the item's shape, color or details."
)

ANALYSIS_FAILED_MESSAGE = "Failed to analyze image. Please check your API key and try again."
BACKGROUND_FAILED_MESSAGE = "Failed to remove the background. Please check your API key and try again."

# Gemini's structured-output schema for the analysis reply.
ANALYSIS_RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "title": {
            "type": "STRING",
            "description": 'A short, descriptive title for the clothing item. e.g., "Blue Denim Jacket".',
        },
        "color": {"type": "STRING", "description": "The primary color of the item."},
        "style": {
            "type": "STRING",
            "description": 'The style category of the item. e.g., "Casual", "Formal", "Streetwear".',
        },
        "season": {
            "type": "STRING",
            "description": 'The most appropriate season for this item: "Spring", "Summer", "Autumn", "Winter", or "All".',
            "enum": [season.value for season in Season],
        },
        "tags": {
            "type": "ARRAY",
            "items": {"type": "STRING"},
            "description": 'An array of relevant keywords or tags for the item. e.g., ["denim", "jacket", "outerwear"]',
        },
    },
    "required": ["title", "color", "style", "season", "tags"],
}

_SEASON_ALIASES = {
    "spring": Season.SPRING,
    "summer": Season.SUMMER,
    "autumn": Season.AUTUMN,
    "fall": Season.AUTUMN,
    "winter": Season.WINTER,
    "all": Season.ALL,
}


class AnalysisResult(BaseModel):
    """Structured description of a clothing photo."""

    title: str
    color: str
    style: str
    season: Season
    tags: list[str]

    @field_validator("season", mode="before")
    @classmethod
    def _normalise_season(cls, value: Any) -> Any:
        if isinstance(value, str):
            return _SEASON_ALIASES.get(value.strip().lower(), value)
        return value

    @field_validator("tags", mode="before")
    @classmethod
    def _split_tags(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [tag.strip() for tag in value.split(",") if tag.strip()]
        return value


@dataclass(slots=True, frozen=True)
class EditedImage:
    """Image returned by an editing request, base64 encoded."""

    image: str
    mime_type: str

    def to_data_url(self) -> str:
        return to_data_url(self.image, self.mime_type)


def parse_analysis(content: str | None) -> AnalysisResult:
    """Validate a provider's JSON reply, raising :class:`ProviderError` on mismatch."""

    if not content:
        raise ProviderError(ANALYSIS_FAILED_MESSAGE)
    try:
        return AnalysisResult.model_validate(json.loads(content))
    except (json.JSONDecodeError, ValidationError) as exc:
        logger.warning("Failed to parse analysis JSON: %s", content)
        raise ProviderError(ANALYSIS_FAILED_MESSAGE) from exc


__all__ = [
    "ANALYSIS_FAILED_MESSAGE",
    "ANALYSIS_INSTRUCTION",
    "ANALYSIS_RESPONSE_SCHEMA",
    "AnalysisResult",
    "BACKGROUND_FAILED_MESSAGE",
    "BACKGROUND_REMOVAL_INSTRUCTION",
    "EditedImage",
    "JSON_SHAPE_INSTRUCTION",
    "parse_analysis",
]
