"""Starter wardrobe used when nothing has been stored yet."""

from __future__ import annotations

from typing import List

from closet.storage.models import Outfit, Piece, Season


def initial_pieces() -> List[Piece]:
    return [
        Piece(
            id="p1",
            title="Blue Denim Jacket",
            brand="Levi's",
            color="Blue",
            size="M",
            season=Season.ALL,
            style="Casual",
            tags=["denim", "jacket", "outerwear"],
            images=["https://picsum.photos/seed/p1/400/600"],
            created_at="2023-01-15T12:00:00.000Z",
        ),
        Piece(
            id="p2",
            title="White Crewneck T-Shirt",
            brand="Uniqlo",
            color="White",
            size="M",
            season=Season.ALL,
            style="Basics",
            tags=["t-shirt", "basic", "top"],
            images=["https://picsum.photos/seed/p2/400/600"],
            created_at="2023-03-20T12:00:00.000Z",
        ),
        Piece(
            id="p3",
            title="Black Skinny Jeans",
            brand="Topshop",
            color="Black",
            size="W28/L32",
            season=Season.ALL,
            style="Casual",
            tags=["jeans", "denim", "bottoms"],
            images=["https://picsum.photos/seed/p3/400/600"],
            created_at="2023-02-10T12:00:00.000Z",
        ),
        Piece(
            id="p4",
            title="Floral Summer Dress",
            brand="Zara",
            color="Multicolor",
            size="S",
            season=Season.SUMMER,
            style="Boho",
            tags=["dress", "summer", "floral"],
            images=["https://picsum.photos/seed/p4/400/600"],
            created_at="2023-06-01T12:00:00.000Z",
        ),
    ]


def initial_outfits() -> List[Outfit]:
    return [
        Outfit(
            id="o1",
            title="Classic Casual",
            piece_ids=["p1", "p2", "p3"],
            tags=["everyday", "casual", "classic"],
            images=["https://picsum.photos/seed/o1/600/400"],
            notes="My go-to outfit for errands.",
            created_at="2023-04-01T12:00:00.000Z",
        ),
    ]
