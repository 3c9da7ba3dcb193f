"""FastAPI entrypoint and HTTP routes."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator

from fastapi import Depends, FastAPI, Request, Response, status
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from closet.analysis.service import analyze_image, remove_background, supports_background_removal
from closet.api.schemas import AutofillIn, ImageIn, OutfitIn, PieceIn, ProviderSettingsIn, WearIn
from closet.config.settings import Settings, get_settings
from closet.errors import (
    AnalysisError,
    ConfigurationError,
    NotFoundError,
    ProviderError,
    UnsupportedOperationError,
    ValidationError,
)
from closet.monitoring.logging import configure_logging
from closet.services import stats
from closet.services.forms import OutfitDraft
from closet.storage import (
    ItemKind,
    Outfit,
    Piece,
    PreferencesStorage,
    StorageBackend,
    WardrobeStore,
)

logger = logging.getLogger(__name__)


def get_store(request: Request) -> WardrobeStore:
    return request.app.state.store


def get_preferences(request: Request) -> PreferencesStorage:
    return request.app.state.preferences


def _require_piece(store: WardrobeStore, piece_id: str) -> Piece:
    piece = store.get_piece(piece_id)
    if piece is None:
        raise NotFoundError("piece", piece_id)
    return piece


def _require_outfit(store: WardrobeStore, outfit_id: str) -> Outfit:
    outfit = store.get_outfit(outfit_id)
    if outfit is None:
        raise NotFoundError("outfit", outfit_id)
    return outfit


def _error_response(status_code: int):
    async def handler(_: Request, exc: Exception) -> JSONResponse:
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    return handler


def create_app(settings: Settings | None = None) -> FastAPI:
    """Initialise the FastAPI application."""

    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging(settings)
        backend = StorageBackend(Path(settings.storage_root))
        store = WardrobeStore(backend)
        await store.load()
        app.state.store = store
        app.state.preferences = PreferencesStorage(backend)
        try:
            yield
        finally:
            await store.close()
            logger.info("Wardrobe flushed to %s", backend.root)

    app = FastAPI(
        title="Closet API",
        version="0.1.0",
        docs_url="/docs" if settings.environment != "prod" else None,
        redoc_url="/redoc" if settings.environment != "prod" else None,
        lifespan=lifespan,
    )
    app.add_exception_handler(ValidationError, _error_response(422))
    app.add_exception_handler(NotFoundError, _error_response(status.HTTP_404_NOT_FOUND))
    app.add_exception_handler(ConfigurationError, _error_response(status.HTTP_400_BAD_REQUEST))
    app.add_exception_handler(UnsupportedOperationError, _error_response(status.HTTP_400_BAD_REQUEST))
    app.add_exception_handler(ProviderError, _error_response(status.HTTP_502_BAD_GATEWAY))
    app.add_exception_handler(AnalysisError, _error_response(status.HTTP_400_BAD_REQUEST))

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Simple health endpoint used for readiness probes."""

        return {"status": "ok"}

    @app.get("/metrics", tags=["system"])
    async def metrics() -> Response:
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Pieces

    @app.get("/pieces", tags=["pieces"])
    async def list_pieces(q: str = "", store: WardrobeStore = Depends(get_store)) -> list[dict[str, Any]]:
        return [piece.to_dict() for piece in stats.search_pieces(store.pieces, q)]

    @app.post("/pieces", tags=["pieces"], status_code=status.HTTP_201_CREATED)
    async def create_piece(body: PieceIn, store: WardrobeStore = Depends(get_store)) -> dict[str, Any]:
        piece = await body.to_draft().save(store)
        return piece.to_dict()

    @app.get("/pieces/{piece_id}", tags=["pieces"])
    async def read_piece(piece_id: str, store: WardrobeStore = Depends(get_store)) -> dict[str, Any]:
        return _require_piece(store, piece_id).to_dict()

    @app.put("/pieces/{piece_id}", tags=["pieces"])
    async def edit_piece(piece_id: str, body: PieceIn, store: WardrobeStore = Depends(get_store)) -> dict[str, Any]:
        existing = _require_piece(store, piece_id)
        draft = body.to_draft()
        draft.images = draft.images or list(existing.images)
        piece = await draft.save(store, existing)
        if piece is None:
            raise NotFoundError("piece", piece_id)
        return piece.to_dict()

    @app.delete("/pieces/{piece_id}", tags=["pieces"], status_code=status.HTTP_204_NO_CONTENT)
    async def remove_piece(piece_id: str, store: WardrobeStore = Depends(get_store)) -> Response:
        if not await store.delete_piece(piece_id):
            raise NotFoundError("piece", piece_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @app.post("/pieces/{piece_id}/wear", tags=["pieces"], status_code=status.HTTP_201_CREATED)
    async def wear_piece(
        piece_id: str,
        body: WearIn | None = None,
        store: WardrobeStore = Depends(get_store),
    ) -> dict[str, Any]:
        entry = await store.log_wear(piece_id, ItemKind.PIECE, body.notes if body else None)
        if entry is None:
            raise NotFoundError("piece", piece_id)
        return entry.to_dict()

    # Outfits

    @app.get("/outfits", tags=["outfits"])
    async def list_outfits(q: str = "", store: WardrobeStore = Depends(get_store)) -> list[dict[str, Any]]:
        return [outfit.to_dict() for outfit in stats.search_outfits(store.outfits, q)]

    @app.post("/outfits", tags=["outfits"], status_code=status.HTTP_201_CREATED)
    async def create_outfit(body: OutfitIn, store: WardrobeStore = Depends(get_store)) -> dict[str, Any]:
        outfit = await body.to_draft().save(store)
        return outfit.to_dict()

    @app.get("/outfits/{outfit_id}", tags=["outfits"])
    async def read_outfit(outfit_id: str, store: WardrobeStore = Depends(get_store)) -> dict[str, Any]:
        return _require_outfit(store, outfit_id).to_dict()

    @app.get("/outfits/{outfit_id}/pieces", tags=["outfits"])
    async def read_outfit_pieces(outfit_id: str, store: WardrobeStore = Depends(get_store)) -> list[dict[str, Any]]:
        outfit = _require_outfit(store, outfit_id)
        return [piece.to_dict() for piece in stats.outfit_pieces(outfit, store.pieces)]

    @app.post("/outfits/{outfit_id}/pieces/{piece_id}", tags=["outfits"])
    async def toggle_outfit_piece(
        outfit_id: str,
        piece_id: str,
        store: WardrobeStore = Depends(get_store),
    ) -> dict[str, Any]:
        """Add the piece to the outfit, or drop it when already a member."""

        existing = _require_outfit(store, outfit_id)
        draft = OutfitDraft.from_outfit(existing)
        if piece_id not in draft.piece_ids:
            _require_piece(store, piece_id)
        draft.toggle_piece(piece_id)
        outfit = await draft.save(store, existing)
        if outfit is None:
            raise NotFoundError("outfit", outfit_id)
        return outfit.to_dict()

    @app.put("/outfits/{outfit_id}", tags=["outfits"])
    async def edit_outfit(outfit_id: str, body: OutfitIn, store: WardrobeStore = Depends(get_store)) -> dict[str, Any]:
        existing = _require_outfit(store, outfit_id)
        draft = body.to_draft()
        draft.images = draft.images or list(existing.images)
        outfit = await draft.save(store, existing)
        if outfit is None:
            raise NotFoundError("outfit", outfit_id)
        return outfit.to_dict()

    @app.delete("/outfits/{outfit_id}", tags=["outfits"], status_code=status.HTTP_204_NO_CONTENT)
    async def remove_outfit(outfit_id: str, store: WardrobeStore = Depends(get_store)) -> Response:
        if not await store.delete_outfit(outfit_id):
            raise NotFoundError("outfit", outfit_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @app.post("/outfits/{outfit_id}/wear", tags=["outfits"], status_code=status.HTTP_201_CREATED)
    async def wear_outfit(
        outfit_id: str,
        body: WearIn | None = None,
        store: WardrobeStore = Depends(get_store),
    ) -> dict[str, Any]:
        entry = await store.log_wear(outfit_id, ItemKind.OUTFIT, body.notes if body else None)
        if entry is None:
            raise NotFoundError("outfit", outfit_id)
        return entry.to_dict()

    # Statistics

    @app.get("/stats", tags=["stats"])
    async def read_stats(store: WardrobeStore = Depends(get_store)) -> dict[str, Any]:
        pieces, outfits = store.pieces, store.outfits
        top_piece = stats.most_worn_piece(pieces)
        top_outfit = stats.most_worn_outfit(outfits)
        return {
            "totalPieces": len(pieces),
            "totalOutfits": len(outfits),
            "totalWears": stats.total_wears(pieces),
            "mostWornPiece": top_piece.to_dict() if top_piece else None,
            "mostWornOutfit": top_outfit.to_dict() if top_outfit else None,
            "wearsByMonth": [{"name": row.month, "wears": row.wears} for row in stats.wears_by_month(pieces, outfits)],
            "recentlyWorn": [
                {"type": event.kind.value, "id": event.item.id, "title": event.item.title, "wearDate": event.worn_at}
                for event in stats.recently_worn(pieces, outfits)
            ],
        }

    @app.get("/suggestions", tags=["stats"])
    async def read_suggestions(store: WardrobeStore = Depends(get_store)) -> list[dict[str, Any]]:
        return [piece.to_dict() for piece in stats.seasonal_suggestions(store.pieces)]

    # Provider settings and photo auto-fill

    @app.get("/settings", tags=["settings"])
    async def read_settings(preferences: PreferencesStorage = Depends(get_preferences)) -> dict[str, Any]:
        current = await preferences.load()
        return {
            "provider": current.provider.value,
            "hasApiKey": bool(current.api_key),
            "supportsBackgroundRemoval": supports_background_removal(current.provider),
        }

    @app.put("/settings", tags=["settings"])
    async def update_settings(
        body: ProviderSettingsIn,
        preferences: PreferencesStorage = Depends(get_preferences),
    ) -> dict[str, Any]:
        if body.api_key is not None:
            await preferences.set_api_key(body.api_key)
        if body.provider is not None:
            await preferences.set_provider(body.provider)
        return await read_settings(preferences)

    @app.post("/analysis", tags=["analysis"])
    async def analyze(body: ImageIn, preferences: PreferencesStorage = Depends(get_preferences)) -> dict[str, Any]:
        current = await preferences.load()
        result = await analyze_image(current.api_key, current.provider, body.image, body.mime_type, settings=settings)
        return result.model_dump(mode="json")

    @app.post("/pieces/autofill", tags=["analysis"])
    async def autofill_piece(
        body: AutofillIn,
        preferences: PreferencesStorage = Depends(get_preferences),
    ) -> dict[str, Any]:
        """Analyze a photo and merge the result into the submitted piece form."""

        current = await preferences.load()
        result = await analyze_image(current.api_key, current.provider, body.image, body.mime_type, settings=settings)
        draft = body.draft.to_draft()
        draft.apply_analysis(result)
        return {**draft.fields(), "tagText": draft.tag_text, "images": draft.images}

    @app.post("/analysis/background", tags=["analysis"])
    async def strip_background(
        body: ImageIn,
        preferences: PreferencesStorage = Depends(get_preferences),
    ) -> dict[str, Any]:
        current = await preferences.load()
        edited = await remove_background(current.api_key, current.provider, body.image, body.mime_type, settings=settings)
        return {"image": edited.image, "mimeType": edited.mime_type, "dataUrl": edited.to_data_url()}

    return app


app = create_app()
