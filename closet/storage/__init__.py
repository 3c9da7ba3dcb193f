"""Wardrobe persistence layer."""

from .backend import StorageBackend
from .models import ItemKind, Outfit, Piece, Season, WearLog
from .preferences import PreferencesStorage, ProviderName, ProviderPreferences
from .repository import WardrobeStore

__all__ = [
    "ItemKind",
    "Outfit",
    "Piece",
    "PreferencesStorage",
    "ProviderName",
    "ProviderPreferences",
    "Season",
    "StorageBackend",
    "WardrobeStore",
    "WearLog",
]
