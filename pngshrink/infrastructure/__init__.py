"""Infrastructure helpers for PNG coding and source loading."""

from .codec import PNG_SIGNATURE, decode_png, encode_png
from .network import FETCHER, SourceFetcher, is_remote

__all__ = [
    "PNG_SIGNATURE",
    "decode_png",
    "encode_png",
    "FETCHER",
    "SourceFetcher",
    "is_remote",
]
