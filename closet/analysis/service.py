"""Provider-independent entry points for photo auto-fill."""

from __future__ import annotations

import base64
import logging

from closet.analysis.base import ImageAnalysisProvider
from closet.analysis.gemini_client import GeminiProvider
from closet.analysis.openai_client import OpenAIProvider
from closet.analysis.schemas import AnalysisResult, EditedImage
from closet.config.settings import Settings, get_settings
from closet.errors import AnalysisError, ConfigurationError, UnsupportedOperationError, ValidationError
from closet.imgproc.encode import decode_data_url, detect_mime_type
from closet.metrics.prometheus_exporter import image_analysis_requests_total
from closet.storage.preferences import ProviderName

logger = logging.getLogger(__name__)

PROVIDERS: dict[ProviderName, type[ImageAnalysisProvider]] = {
    ProviderName.GEMINI: GeminiProvider,
    ProviderName.OPENAI: OpenAIProvider,
}


def resolve_provider(provider: ProviderName | str) -> type[ImageAnalysisProvider]:
    """Return the provider class registered under ``provider``."""

    try:
        return PROVIDERS[ProviderName(provider)]
    except (ValueError, KeyError) as exc:
        raise ConfigurationError(f"Unsupported API provider: {provider}") from exc


def supports_background_removal(provider: ProviderName | str) -> bool:
    return resolve_provider(provider).supports_background_removal


def _split_image(image: str, mime_type: str | None) -> tuple[str, str]:
    """Return the base64 payload and its MIME type.

    Data URLs carry their own type. A bare payload without one is decoded and
    identified with Pillow.
    """

    try:
        if image.startswith("data:"):
            _, mime_type = decode_data_url(image)
            return image.split(",", 1)[1], mime_type
        if not mime_type:
            mime_type = detect_mime_type(base64.b64decode(image, validate=True))
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc
    return image, mime_type


async def analyze_image(
    api_key: str,
    provider: ProviderName | str,
    image: str,
    mime_type: str | None = None,
    *,
    settings: Settings | None = None,
) -> AnalysisResult:
    """Describe a clothing photo with the selected provider.

    ``image`` is a base64 payload or a full data URL, in which case its own
    MIME type wins over ``mime_type``.
    """

    provider_cls = resolve_provider(provider)
    payload, mime_type = _split_image(image, mime_type)
    client = provider_cls(api_key, settings or get_settings())
    try:
        result = await client.analyze(payload, mime_type)
    except AnalysisError:
        image_analysis_requests_total.labels(provider_cls.name.value, "analyze", "error").inc()
        raise
    finally:
        await client.close()
    image_analysis_requests_total.labels(provider_cls.name.value, "analyze", "success").inc()
    logger.info("Analyzed image with %s: %s", provider_cls.name.value, result.title)
    return result


async def remove_background(
    api_key: str,
    provider: ProviderName | str,
    image: str,
    mime_type: str | None = None,
    *,
    settings: Settings | None = None,
) -> EditedImage:
    """Isolate the photographed item on a white background."""

    provider_cls = resolve_provider(provider)
    if not provider_cls.supports_background_removal:
        raise UnsupportedOperationError(
            f"Background removal is not supported by the {provider_cls.label} provider. "
            "Switch to Gemini in settings to use it.",
        )
    payload, mime_type = _split_image(image, mime_type)
    client = provider_cls(api_key, settings or get_settings())
    try:
        result = await client.remove_background(payload, mime_type)
    except AnalysisError:
        image_analysis_requests_total.labels(provider_cls.name.value, "remove_background", "error").inc()
        raise
    finally:
        await client.close()
    image_analysis_requests_total.labels(provider_cls.name.value, "remove_background", "success").inc()
    return result


__all__ = [
    "PROVIDERS",
    "analyze_image",
    "remove_background",
    "resolve_provider",
    "supports_background_removal",
]
