"""Encoding-selection stages: colour reduction, palette indexing, filter search."""

from .filters import SEARCH_ORDER, FilterStrategy, filter_scanlines
from .layout import ChannelLayout, PixelView, Raster
from .palette import build_palette
from .pipeline import OptimizationResult, optimize_png, optimize_raster, reduce_raster, verify_roundtrip
from .reduce import reduce_color_model
from .search import EncodingCandidate, find_best_encoding, search_encodings

__all__ = [
    "SEARCH_ORDER",
    "FilterStrategy",
    "filter_scanlines",
    "ChannelLayout",
    "PixelView",
    "Raster",
    "build_palette",
    "OptimizationResult",
    "optimize_png",
    "optimize_raster",
    "reduce_raster",
    "verify_roundtrip",
    "reduce_color_model",
    "EncodingCandidate",
    "find_best_encoding",
    "search_encodings",
]
