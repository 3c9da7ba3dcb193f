"""In-memory wardrobe collections mirrored to the key-value backend."""

from __future__ import annotations

import asyncio
import copy
import json
import logging
import uuid
from dataclasses import replace
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from closet.metrics.prometheus_exporter import wear_logs_total
from closet.storage.backend import StorageBackend
from closet.storage.models import ItemKind, Outfit, Piece, Season, WearLog, utc_now_iso
from closet.storage.seed import initial_outfits, initial_pieces

logger = logging.getLogger(__name__)

PIECES_KEY = "wardrobe_pieces"
OUTFITS_KEY = "wardrobe_outfits"

_PIECE_FIELDS = ("title", "brand", "color", "size", "season", "style", "tags")
_OUTFIT_FIELDS = ("title", "piece_ids", "tags", "notes")


def dump_collection(records: Iterable[Piece | Outfit]) -> str:
    """Serialise a collection to the JSON text stored under its key."""

    return json.dumps([record.to_dict() for record in records], ensure_ascii=False, indent=2)


def _new_id(prefix: str, taken: Iterable[str]) -> str:
    existing = set(taken)
    while True:
        candidate = f"{prefix}{uuid.uuid4().hex[:12]}"
        if candidate not in existing:
            return candidate


class WardrobeStore:
    """Owns the piece and outfit collections for a single user.

    Call :meth:`load` before use and :meth:`close` on shutdown. Every mutation
    writes the changed collection(s) to the backend before swapping the
    in-memory copy, so a failed write leaves the previous state in place.
    Records handed in and out are copies; change a record by passing the
    modified copy to ``update_piece`` / ``update_outfit``.
    """

    def __init__(self, backend: StorageBackend) -> None:
        self._backend = backend
        self._pieces: List[Piece] = []
        self._outfits: List[Outfit] = []
        self._lock = asyncio.Lock()
        self._loaded = False

    @property
    def pieces(self) -> List[Piece]:
        return copy.deepcopy(self._pieces)

    @property
    def outfits(self) -> List[Outfit]:
        return copy.deepcopy(self._outfits)

    async def load(self) -> None:
        """Read both collections, falling back to the seed wardrobe."""

        async with self._lock:
            seeded = False
            try:
                raw_pieces = await self._backend.get(PIECES_KEY)
                raw_outfits = await self._backend.get(OUTFITS_KEY)
                if raw_pieces is None:
                    pieces = initial_pieces()
                    seeded = True
                else:
                    pieces = [Piece.from_dict(item) for item in json.loads(raw_pieces)]
                if raw_outfits is None:
                    outfits = initial_outfits()
                    seeded = True
                else:
                    outfits = [Outfit.from_dict(item) for item in json.loads(raw_outfits)]
            except (ValueError, KeyError, TypeError) as exc:
                logger.warning("Stored wardrobe could not be parsed, using seed data: %s", exc)
                pieces = initial_pieces()
                outfits = initial_outfits()
                seeded = True

            if seeded:
                await self._write(pieces=pieces, outfits=outfits)
            self._pieces = pieces
            self._outfits = outfits
            self._loaded = True
            logger.info("Loaded %d pieces and %d outfits", len(pieces), len(outfits))

    async def close(self) -> None:
        """Flush both collections."""

        async with self._lock:
            if self._loaded:
                await self._write(pieces=self._pieces, outfits=self._outfits)

    async def _write(
        self,
        *,
        pieces: Optional[Sequence[Piece]] = None,
        outfits: Optional[Sequence[Outfit]] = None,
    ) -> None:
        if outfits is not None:
            await self._backend.set(OUTFITS_KEY, dump_collection(outfits))
        if pieces is None:
            return
        try:
            await self._backend.set(PIECES_KEY, dump_collection(pieces))
        except OSError:
            # Outfits already hit the disk; put back what memory still holds.
            if outfits is not None and self._loaded:
                logger.error("Writing %s failed, restoring %s", PIECES_KEY, OUTFITS_KEY)
                await self._backend.set(OUTFITS_KEY, dump_collection(self._outfits))
            raise

    async def _commit(
        self,
        *,
        pieces: Optional[List[Piece]] = None,
        outfits: Optional[List[Outfit]] = None,
    ) -> None:
        await self._write(pieces=pieces, outfits=outfits)
        if pieces is not None:
            self._pieces = pieces
        if outfits is not None:
            self._outfits = outfits

    # Pieces

    async def add_piece(self, data: Mapping[str, Any], images: Sequence[str]) -> Piece:
        """Create a piece from its editable fields and images."""

        fields = {key: copy.deepcopy(data[key]) for key in _PIECE_FIELDS if key in data}
        if "season" in fields:
            fields["season"] = Season(fields["season"])
        async with self._lock:
            piece = Piece(
                id=_new_id("p", (p.id for p in self._pieces)),
                images=list(images),
                wear_history=[],
                created_at=utc_now_iso(),
                **fields,
            )
            await self._commit(pieces=[*self._pieces, piece])
        logger.info("Added piece %s", piece.id)
        return copy.deepcopy(piece)

    async def update_piece(self, piece: Piece) -> Optional[Piece]:
        """Replace the stored piece with the same id; ``None`` when absent."""

        async with self._lock:
            if not any(p.id == piece.id for p in self._pieces):
                return None
            stored = copy.deepcopy(piece)
            await self._commit(pieces=[stored if p.id == piece.id else p for p in self._pieces])
        return copy.deepcopy(stored)

    async def delete_piece(self, piece_id: str) -> bool:
        """Remove a piece and drop its id from every outfit."""

        async with self._lock:
            if not any(p.id == piece_id for p in self._pieces):
                return False
            pieces = [p for p in self._pieces if p.id != piece_id]
            outfits = [
                replace(o, piece_ids=[pid for pid in o.piece_ids if pid != piece_id])
                if piece_id in o.piece_ids
                else o
                for o in self._outfits
            ]
            await self._commit(pieces=pieces, outfits=outfits)
        logger.info("Deleted piece %s", piece_id)
        return True

    def get_piece(self, piece_id: str) -> Optional[Piece]:
        for piece in self._pieces:
            if piece.id == piece_id:
                return copy.deepcopy(piece)
        return None

    # Outfits

    async def add_outfit(self, data: Mapping[str, Any], images: Sequence[str]) -> Outfit:
        """Create an outfit from its editable fields and images."""

        fields = {key: copy.deepcopy(data[key]) for key in _OUTFIT_FIELDS if key in data}
        async with self._lock:
            outfit = Outfit(
                id=_new_id("o", (o.id for o in self._outfits)),
                images=list(images),
                wear_history=[],
                created_at=utc_now_iso(),
                **fields,
            )
            await self._commit(outfits=[*self._outfits, outfit])
        logger.info("Added outfit %s", outfit.id)
        return copy.deepcopy(outfit)

    async def update_outfit(self, outfit: Outfit) -> Optional[Outfit]:
        """Replace the stored outfit with the same id; ``None`` when absent."""

        async with self._lock:
            if not any(o.id == outfit.id for o in self._outfits):
                return None
            stored = copy.deepcopy(outfit)
            await self._commit(outfits=[stored if o.id == outfit.id else o for o in self._outfits])
        return copy.deepcopy(stored)

    async def delete_outfit(self, outfit_id: str) -> bool:
        async with self._lock:
            if not any(o.id == outfit_id for o in self._outfits):
                return False
            await self._commit(outfits=[o for o in self._outfits if o.id != outfit_id])
        logger.info("Deleted outfit %s", outfit_id)
        return True

    def get_outfit(self, outfit_id: str) -> Optional[Outfit]:
        for outfit in self._outfits:
            if outfit.id == outfit_id:
                return copy.deepcopy(outfit)
        return None

    # Wear events

    async def log_wear(
        self,
        item_id: str,
        kind: ItemKind | str,
        notes: Optional[str] = None,
    ) -> Optional[WearLog]:
        """Record that an item was worn now.

        Logging an outfit appends the same entry to the outfit and to every
        piece listed in its ``piece_ids`` at this moment. Returns ``None`` when
        the item does not exist.
        """

        kind = ItemKind(kind)
        async with self._lock:
            taken = [log.id for p in self._pieces for log in p.wear_history]
            taken += [log.id for o in self._outfits for log in o.wear_history]
            entry = WearLog(id=_new_id("w", taken), date=utc_now_iso(), notes=notes)

            if kind is ItemKind.PIECE:
                if not any(p.id == item_id for p in self._pieces):
                    return None
                await self._commit(pieces=self._append_to_pieces({item_id}, entry))
            else:
                outfit = next((o for o in self._outfits if o.id == item_id), None)
                if outfit is None:
                    return None
                members = set(outfit.piece_ids)
                outfits = [
                    replace(o, wear_history=[*o.wear_history, entry]) if o.id == item_id else o
                    for o in self._outfits
                ]
                await self._commit(pieces=self._append_to_pieces(members, entry), outfits=outfits)

        wear_logs_total.labels(kind=kind.value).inc()
        logger.info("Logged wear %s for %s %s", entry.id, kind.value, item_id)
        return entry

    def _append_to_pieces(self, piece_ids: set[str], entry: WearLog) -> List[Piece]:
        return [
            replace(p, wear_history=[*p.wear_history, entry]) if p.id in piece_ids else p
            for p in self._pieces
        ]


__all__ = ["OUTFITS_KEY", "PIECES_KEY", "WardrobeStore", "dump_collection"]
