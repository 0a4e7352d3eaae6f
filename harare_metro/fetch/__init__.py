"""
Feed fetching, parsing and image extraction.
"""

from .fetcher import build_client, fetch_source
from .images import extract_image, is_image_url, is_trusted_host
from .parser import clean_html, clean_text, decode_entities, parse_feed

__all__ = [
    "build_client",
    "clean_html",
    "clean_text",
    "decode_entities",
    "extract_image",
    "fetch_source",
    "is_image_url",
    "is_trusted_host",
    "parse_feed",
]
