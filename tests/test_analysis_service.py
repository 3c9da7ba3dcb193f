"""Tests for provider dispatch."""

from __future__ import annotations

import base64
from io import BytesIO
from typing import Any

import pytest
import pytest_mock
from PIL import Image

from closet.analysis import service
from closet.analysis.base import ImageAnalysisProvider
from closet.analysis.schemas import AnalysisResult, EditedImage
from closet.config.settings import Settings
from closet.errors import ConfigurationError, UnsupportedOperationError, ValidationError
from closet.storage import ProviderName, Season


class _RecordingProvider(ImageAnalysisProvider):
    name = ProviderName.GEMINI
    label = "Recording"
    supports_background_removal = True
    calls: list[tuple[str, str, str]] = []
    closed = 0

    async def analyze(self, image: str, mime_type: str) -> AnalysisResult:
        type(self).calls.append(("analyze", image, mime_type))
        return AnalysisResult(title="Scarf", color="Red", style="Casual", season=Season.WINTER, tags=["wool"])

    async def remove_background(self, image: str, mime_type: str) -> EditedImage:
        type(self).calls.append(("remove_background", image, mime_type))
        return EditedImage(image="UE5H", mime_type="image/png")

    async def close(self) -> None:
        type(self).closed += 1


@pytest.fixture(autouse=True)
def _reset_recording() -> Any:
    _RecordingProvider.calls = []
    _RecordingProvider.closed = 0
    yield


@pytest.mark.asyncio
async def test_analyze_dispatches_to_selected_provider(mocker: pytest_mock.MockerFixture) -> None:
    mocker.patch.dict(service.PROVIDERS, {ProviderName.GEMINI: _RecordingProvider})

    result = await service.analyze_image("key", "gemini", "QUJD", "image/jpeg", settings=Settings())

    assert result.title == "Scarf"
    assert _RecordingProvider.calls == [("analyze", "QUJD", "image/jpeg")]
    assert _RecordingProvider.closed == 1


@pytest.mark.asyncio
async def test_analyze_accepts_data_url(mocker: pytest_mock.MockerFixture) -> None:
    mocker.patch.dict(service.PROVIDERS, {ProviderName.GEMINI: _RecordingProvider})

    await service.analyze_image("key", ProviderName.GEMINI, "data:image/webp;base64,QUJD", "image/jpeg", settings=Settings())

    assert _RecordingProvider.calls == [("analyze", "QUJD", "image/webp")]


@pytest.mark.asyncio
async def test_analyze_detects_mime_type_of_bare_payload(mocker: pytest_mock.MockerFixture) -> None:
    mocker.patch.dict(service.PROVIDERS, {ProviderName.GEMINI: _RecordingProvider})
    buffer = BytesIO()
    Image.new("RGB", (2, 2)).save(buffer, format="PNG")
    payload = base64.b64encode(buffer.getvalue()).decode("ascii")

    await service.analyze_image("key", "gemini", payload, None, settings=Settings())

    assert _RecordingProvider.calls == [("analyze", payload, "image/png")]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("image", "mime_type"),
    [
        ("data:image/png,abc", "image/png"),
        ("data:image/png;base64,%%%", "image/png"),
        ("not base64!", None),
        ("QUJD", None),
    ],
)
async def test_analyze_rejects_malformed_image(
    image: str,
    mime_type: str | None,
    mocker: pytest_mock.MockerFixture,
) -> None:
    provider_cls = mocker.Mock(name="provider")
    mocker.patch.dict(service.PROVIDERS, {ProviderName.GEMINI: provider_cls})

    with pytest.raises(ValidationError):
        await service.analyze_image("key", "gemini", image, mime_type, settings=Settings())

    provider_cls.assert_not_called()


@pytest.mark.asyncio
async def test_analyze_with_empty_key_makes_no_network_call(mocker: pytest_mock.MockerFixture) -> None:
    client_cls = mocker.patch("closet.analysis.gemini_client.httpx.AsyncClient")

    with pytest.raises(ConfigurationError):
        await service.analyze_image("", "gemini", "QUJD", "image/jpeg", settings=Settings())

    client_cls.assert_not_called()


@pytest.mark.asyncio
async def test_analyze_with_unknown_provider_fails() -> None:
    with pytest.raises(ConfigurationError):
        await service.analyze_image("key", "claude", "QUJD", "image/jpeg", settings=Settings())


@pytest.mark.asyncio
async def test_remove_background_unsupported_provider_makes_no_call(mocker: pytest_mock.MockerFixture) -> None:
    provider_cls = mocker.Mock(supports_background_removal=False, label="OpenAI")
    mocker.patch.dict(service.PROVIDERS, {ProviderName.OPENAI: provider_cls})

    with pytest.raises(UnsupportedOperationError):
        await service.remove_background("key", "openai", "QUJD", "image/jpeg", settings=Settings())

    provider_cls.assert_not_called()


@pytest.mark.asyncio
async def test_remove_background_dispatches_to_gemini(mocker: pytest_mock.MockerFixture) -> None:
    mocker.patch.dict(service.PROVIDERS, {ProviderName.GEMINI: _RecordingProvider})

    edited = await service.remove_background("key", "gemini", "QUJD", "image/jpeg", settings=Settings())

    assert edited.mime_type == "image/png"
    assert _RecordingProvider.calls == [("remove_background", "QUJD", "image/jpeg")]
    assert _RecordingProvider.closed == 1


def test_background_support_by_provider() -> None:
    assert service.supports_background_removal("gemini") is True
    assert service.supports_background_removal(ProviderName.OPENAI) is False
