"""Common interface for image-understanding providers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import ClassVar

import httpx

from closet.analysis.schemas import AnalysisResult, EditedImage
from closet.config.settings import Settings
from closet.errors import ConfigurationError, UnsupportedOperationError
from closet.storage.preferences import ProviderName


class ImageAnalysisProvider(ABC):
    """One vendor's request format and reply parsing.

    ``image`` arguments are base64 payloads without the ``data:`` prefix.
    """

    name: ClassVar[ProviderName]
    label: ClassVar[str]
    supports_background_removal: ClassVar[bool] = False

    def __init__(
        self,
        api_key: str,
        settings: Settings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not api_key or not api_key.strip():
            raise ConfigurationError(f"{self.label} API key is not configured. Please add it in settings.")
        self._api_key = api_key.strip()
        self._settings = settings
        self._transport = transport

    @abstractmethod
    async def analyze(self, image: str, mime_type: str) -> AnalysisResult:
        """Describe the clothing item shown in ``image``."""

    async def remove_background(self, image: str, mime_type: str) -> EditedImage:
        """Return ``image`` with the subject isolated on a white background."""

        raise UnsupportedOperationError(
            f"Background removal is not supported by the {self.label} provider.",
        )

    @abstractmethod
    async def close(self) -> None:
        """Release HTTP resources."""

    async def __aenter__(self) -> "ImageAnalysisProvider":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
