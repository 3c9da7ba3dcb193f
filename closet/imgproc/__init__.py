"""Image encoding helpers."""

from .encode import decode_data_url, detect_mime_type, split_data_url, to_data_url

__all__ = ["decode_data_url", "detect_mime_type", "split_data_url", "to_data_url"]
