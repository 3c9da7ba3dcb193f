"""Gemini ``generateContent`` adapter."""

from __future__ import annotations

import logging
from typing import Any, Mapping

import httpx

from closet.analysis.base import ImageAnalysisProvider
from closet.analysis.schemas import (
    ANALYSIS_FAILED_MESSAGE,
    ANALYSIS_INSTRUCTION,
    ANALYSIS_RESPONSE_SCHEMA,
    BACKGROUND_FAILED_MESSAGE,
    BACKGROUND_REMOVAL_INSTRUCTION,
    AnalysisResult,
    EditedImage,
    parse_analysis,
)
from closet.config.settings import Settings
from closet.errors import ProviderError
from closet.storage.preferences import ProviderName

logger = logging.getLogger(__name__)


class GeminiProvider(ImageAnalysisProvider):
    """Talks to the Gemini REST API with structured multi-part requests."""

    name = ProviderName.GEMINI
    label = "Gemini"
    supports_background_removal = True

    def __init__(
        self,
        api_key: str,
        settings: Settings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(api_key, settings, transport=transport)
        self._client = httpx.AsyncClient(
            base_url=settings.gemini_base_url.rstrip("/"),
            timeout=settings.request_timeout,
            headers={"x-goog-api-key": self._api_key},
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def _generate_content(
        self,
        model: str,
        payload: Mapping[str, Any],
        failure_message: str,
    ) -> Any:
        try:
            response = await self._client.post(f"/models/{model}:generateContent", json=payload)
            response.raise_for_status()
            return response.json()
        except httpx.TimeoutException as exc:
            logger.error("Gemini request to %s timed out", model)
            raise ProviderError(failure_message) from exc
        except httpx.HTTPStatusError as exc:
            logger.error("Gemini returned %s: %s", exc.response.status_code, exc.response.text)
            raise ProviderError(failure_message, status_code=exc.response.status_code) from exc
        except httpx.HTTPError as exc:
            logger.error("Gemini request failed: %s", exc)
            raise ProviderError(failure_message) from exc
        except ValueError as exc:
            logger.error("Gemini returned a non-JSON body")
            raise ProviderError(failure_message) from exc

    @staticmethod
    def _first_parts(payload: Any, failure_message: str) -> list[Mapping[str, Any]]:
        """Return the parts of the first candidate; a malformed envelope is a provider error."""

        if not isinstance(payload, Mapping):
            logger.error("Gemini returned an unexpected body: %r", payload)
            raise ProviderError(failure_message)
        candidates = payload.get("candidates") or []
        if not isinstance(candidates, list):
            logger.error("Gemini returned malformed candidates: %r", candidates)
            raise ProviderError(failure_message)
        if not candidates:
            return []
        first = candidates[0]
        if not isinstance(first, Mapping):
            logger.error("Gemini returned a malformed candidate: %r", first)
            raise ProviderError(failure_message)
        content = first.get("content") or {}
        parts = (content.get("parts") or []) if isinstance(content, Mapping) else None
        if not isinstance(parts, list):
            logger.error("Gemini returned malformed content: %r", content)
            raise ProviderError(failure_message)
        return [part for part in parts if isinstance(part, Mapping)]

    async def analyze(self, image: str, mime_type: str) -> AnalysisResult:
        payload = {
            "contents": [
                {
                    "parts": [
                        {"inlineData": {"mimeType": mime_type, "data": image}},
                        {"text": ANALYSIS_INSTRUCTION},
                    ],
                },
            ],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": ANALYSIS_RESPONSE_SCHEMA,
            },
        }
        result = await self._generate_content(
            self._settings.gemini_analysis_model,
            payload,
            ANALYSIS_FAILED_MESSAGE,
        )
        text = "".join(str(part.get("text", "")) for part in self._first_parts(result, ANALYSIS_FAILED_MESSAGE))
        return parse_analysis(text)

    async def remove_background(self, image: str, mime_type: str) -> EditedImage:
        payload = {
            "contents": [
                {
                    "parts": [
                        {"inlineData": {"mimeType": mime_type, "data": image}},
                        {"text": BACKGROUND_REMOVAL_INSTRUCTION},
                    ],
                },
            ],
            "generationConfig": {"responseModalities": ["TEXT", "IMAGE"]},
        }
        result = await self._generate_content(
            self._settings.gemini_image_model,
            payload,
            BACKGROUND_FAILED_MESSAGE,
        )
        for part in self._first_parts(result, BACKGROUND_FAILED_MESSAGE):
            inline = part.get("inlineData") or part.get("inline_data")
            if isinstance(inline, Mapping) and inline.get("data"):
                return EditedImage(
                    image=str(inline["data"]),
                    mime_type=str(inline.get("mimeType") or inline.get("mime_type") or "image/png"),
                )
        logger.warning("Gemini image response contains no inline image data: %s", result)
        raise ProviderError(BACKGROUND_FAILED_MESSAGE)
