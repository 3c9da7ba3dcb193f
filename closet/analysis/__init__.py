"""Photo auto-fill through external image-understanding providers."""

from .base import ImageAnalysisProvider
from .schemas import AnalysisResult, EditedImage
from .service import PROVIDERS, analyze_image, remove_background, supports_background_removal

__all__ = [
    "AnalysisResult",
    "EditedImage",
    "ImageAnalysisProvider",
    "PROVIDERS",
    "analyze_image",
    "remove_background",
    "supports_background_removal",
]
