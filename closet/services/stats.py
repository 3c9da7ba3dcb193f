"""Aggregate views over the wardrobe: wear statistics, suggestions and search."""

from __future__ import annotations

import calendar
import random
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from closet.storage.models import ItemKind, Outfit, Piece, Season, parse_timestamp


@dataclass(slots=True)
class MonthlyWears:
    month: str
    wears: int


@dataclass(slots=True)
class WornItem:
    """One wear event together with the record it belongs to."""

    kind: ItemKind
    item: Piece | Outfit
    worn_at: str


def wears_by_month(pieces: Sequence[Piece], outfits: Sequence[Outfit]) -> List[MonthlyWears]:
    """Count wear events of all pieces and outfits per calendar month."""

    counts = [0] * 12
    for item in [*pieces, *outfits]:
        for log in item.wear_history:
            counts[parse_timestamp(log.date).month - 1] += 1
    return [MonthlyWears(month=calendar.month_abbr[index + 1], wears=count) for index, count in enumerate(counts)]


def total_wears(pieces: Sequence[Piece]) -> int:
    return sum(len(piece.wear_history) for piece in pieces)


def most_worn_piece(pieces: Sequence[Piece]) -> Optional[Piece]:
    if not pieces:
        return None
    return max(pieces, key=lambda piece: len(piece.wear_history))


def most_worn_outfit(outfits: Sequence[Outfit]) -> Optional[Outfit]:
    if not outfits:
        return None
    return max(outfits, key=lambda outfit: len(outfit.wear_history))


def recently_worn(pieces: Sequence[Piece], outfits: Sequence[Outfit], limit: int = 4) -> List[WornItem]:
    """Return the latest wear events, newest first."""

    events = [WornItem(ItemKind.PIECE, piece, log.date) for piece in pieces for log in piece.wear_history]
    events += [WornItem(ItemKind.OUTFIT, outfit, log.date) for outfit in outfits for log in outfit.wear_history]
    events.sort(key=lambda event: parse_timestamp(event.worn_at), reverse=True)
    return events[:limit]


def seasonal_suggestions(
    pieces: Sequence[Piece],
    *,
    now: Optional[datetime] = None,
    limit: int = 4,
    rng: Optional[random.Random] = None,
) -> List[Piece]:
    """Pick up to ``limit`` random pieces for the current season."""

    season = Season.for_month((now or datetime.now(timezone.utc)).month)
    candidates = [piece for piece in pieces if piece.season in (season, Season.ALL)]
    return (rng or random).sample(candidates, min(limit, len(candidates)))


def search_pieces(pieces: Sequence[Piece], term: str) -> List[Piece]:
    """Case-insensitive match on title, brand or tags, newest first."""

    needle = term.lower()
    matches = [
        piece
        for piece in pieces
        if needle in piece.title.lower()
        or needle in piece.brand.lower()
        or any(needle in tag.lower() for tag in piece.tags)
    ]
    return sorted(matches, key=lambda piece: parse_timestamp(piece.created_at), reverse=True)


def search_outfits(outfits: Sequence[Outfit], term: str) -> List[Outfit]:
    """Case-insensitive match on title or tags, newest first."""

    needle = term.lower()
    matches = [
        outfit
        for outfit in outfits
        if needle in outfit.title.lower() or any(needle in tag.lower() for tag in outfit.tags)
    ]
    return sorted(matches, key=lambda outfit: parse_timestamp(outfit.created_at), reverse=True)


def outfit_pieces(outfit: Outfit, pieces: Sequence[Piece]) -> List[Piece]:
    """Resolve an outfit's piece ids in order, skipping ids that no longer exist."""

    by_id = {piece.id: piece for piece in pieces}
    return [by_id[piece_id] for piece_id in outfit.piece_ids if piece_id in by_id]


__all__ = [
    "MonthlyWears",
    "WornItem",
    "most_worn_outfit",
    "most_worn_piece",
    "outfit_pieces",
    "recently_worn",
    "search_outfits",
    "search_pieces",
    "seasonal_suggestions",
    "total_wears",
    "wears_by_month",
]
