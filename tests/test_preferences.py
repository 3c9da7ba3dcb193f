"""Tests for the key-value backend and provider preferences."""

from __future__ import annotations

from pathlib import Path

import pytest

from closet.storage import PreferencesStorage, ProviderName, ProviderPreferences, StorageBackend
from closet.storage.preferences import API_KEY_KEY, PROVIDER_KEY


@pytest.mark.asyncio
async def test_backend_get_set_delete(tmp_path: Path) -> None:
    backend = StorageBackend(tmp_path / "kv")

    assert await backend.get("missing") is None
    await backend.set("greeting", "hello")
    assert await backend.get("greeting") == "hello"
    await backend.delete("greeting")
    assert await backend.get("greeting") is None


def test_backend_rejects_path_like_keys(tmp_path: Path) -> None:
    backend = StorageBackend(tmp_path)

    with pytest.raises(ValueError):
        backend._path_for("../escape")


@pytest.mark.asyncio
async def test_preferences_default_to_gemini(tmp_path: Path) -> None:
    preferences = PreferencesStorage(StorageBackend(tmp_path))

    current = await preferences.load()

    assert current.api_key == ""
    assert current.provider is ProviderName.GEMINI


@pytest.mark.asyncio
async def test_preferences_round_trip(tmp_path: Path) -> None:
    preferences = PreferencesStorage(StorageBackend(tmp_path))

    await preferences.save(ProviderPreferences(api_key="sk-test", provider=ProviderName.OPENAI))
    current = await preferences.load()

    assert current.api_key == "sk-test"
    assert current.provider is ProviderName.OPENAI


@pytest.mark.asyncio
async def test_unknown_stored_provider_is_ignored(tmp_path: Path) -> None:
    backend = StorageBackend(tmp_path)
    await backend.set(PROVIDER_KEY, "anthropic")

    current = await PreferencesStorage(backend).load()

    assert current.provider is ProviderName.GEMINI


@pytest.mark.asyncio
async def test_set_provider_rejects_unknown_name(tmp_path: Path) -> None:
    preferences = PreferencesStorage(StorageBackend(tmp_path))

    with pytest.raises(ValueError):
        await preferences.set_provider("unknown")


@pytest.mark.asyncio
async def test_blank_api_key_clears_stored_key(tmp_path: Path) -> None:
    backend = StorageBackend(tmp_path)
    preferences = PreferencesStorage(backend)
    await preferences.set_api_key(" sk-test ")
    assert await backend.get(API_KEY_KEY) == "sk-test"

    await preferences.set_api_key("  ")

    assert await backend.get(API_KEY_KEY) is None
    assert (await preferences.load()).api_key == ""
