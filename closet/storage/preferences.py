"""Persisted provider settings: API key and selected provider."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from closet.storage.backend import StorageBackend

logger = logging.getLogger(__name__)

API_KEY_KEY = "ai_apiKey"
PROVIDER_KEY = "ai_apiProvider"


class ProviderName(str, Enum):
    """Image-understanding vendors the user can pick from."""

    GEMINI = "gemini"
    OPENAI = "openai"


@dataclass(slots=True)
class ProviderPreferences:
    """The user's provider configuration."""

    api_key: str = ""
    provider: ProviderName = ProviderName.GEMINI


class PreferencesStorage:
    """Reads and writes :class:`ProviderPreferences` through the backend."""

    def __init__(self, backend: StorageBackend) -> None:
        self._backend = backend

    async def load(self) -> ProviderPreferences:
        """Return stored preferences; unknown provider names are ignored."""

        preferences = ProviderPreferences()
        api_key = await self._backend.get(API_KEY_KEY)
        if api_key:
            preferences.api_key = api_key
        provider = await self._backend.get(PROVIDER_KEY)
        if provider:
            try:
                preferences.provider = ProviderName(provider.strip())
            except ValueError:
                logger.warning("Ignoring unknown stored provider %r", provider)
        return preferences

    async def set_api_key(self, api_key: str) -> None:
        """Store ``api_key``; a blank key clears the stored one."""

        api_key = api_key.strip()
        if api_key:
            await self._backend.set(API_KEY_KEY, api_key)
        else:
            await self._backend.delete(API_KEY_KEY)

    async def set_provider(self, provider: ProviderName | str) -> None:
        await self._backend.set(PROVIDER_KEY, ProviderName(provider).value)

    async def save(self, preferences: ProviderPreferences) -> None:
        """Persist both values."""

        await self.set_api_key(preferences.api_key)
        await self.set_provider(preferences.provider)


__all__ = ["PreferencesStorage", "ProviderName", "ProviderPreferences"]
