"""OpenAI chat-completions adapter."""

from __future__ import annotations

import logging

import httpx
from openai import APIError, APIStatusError, AsyncOpenAI

from closet.analysis.base import ImageAnalysisProvider
from closet.analysis.schemas import (
    ANALYSIS_FAILED_MESSAGE,
    JSON_SHAPE_INSTRUCTION,
    AnalysisResult,
    parse_analysis,
)
from closet.config.settings import Settings
from closet.errors import ProviderError
from closet.storage.preferences import ProviderName

logger = logging.getLogger(__name__)


class OpenAIProvider(ImageAnalysisProvider):
    """Sends the photo as an embedded data URL in a chat completion."""

    name = ProviderName.OPENAI
    label = "OpenAI"

    def __init__(
        self,
        api_key: str,
        settings: Settings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(api_key, settings, transport=transport)
        http_client = None
        if transport is not None:
            http_client = httpx.AsyncClient(transport=transport, timeout=settings.request_timeout)
        self._client = AsyncOpenAI(
            api_key=self._api_key,
            base_url=settings.openai_base_url.rstrip("/"),
            timeout=settings.request_timeout,
            max_retries=0,
            http_client=http_client,
        )

    async def close(self) -> None:
        await self._client.close()

    async def analyze(self, image: str, mime_type: str) -> AnalysisResult:
        try:
            response = await self._client.chat.completions.create(
                model=self._settings.openai_chat_model,
                response_format={"type": "json_object"},
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": JSON_SHAPE_INSTRUCTION},
                            {
                                "type": "image_url",
                                "image_url": {"url": f"data:{mime_type};base64,{image}"},
                            },
                        ],
                    },
                ],
                max_tokens=self._settings.openai_max_tokens,
            )
        except APIStatusError as exc:
            logger.error("OpenAI API error %s: %s", exc.status_code, exc.message)
            raise ProviderError(ANALYSIS_FAILED_MESSAGE, status_code=exc.status_code) from exc
        except APIError as exc:
            logger.error("OpenAI request failed: %s", exc)
            raise ProviderError(ANALYSIS_FAILED_MESSAGE) from exc

        if not response.choices:
            logger.warning("OpenAI response has no choices")
            raise ProviderError(ANALYSIS_FAILED_MESSAGE)
        return parse_analysis(response.choices[0].message.content)
