from __future__ import annotations

import logging
from typing import Optional, Tuple

import numpy as np

from ..config import SETTINGS, OptimizerSettings
from .layout import ChannelLayout, Palette, PixelView, RGBTriple

LOGGER = logging.getLogger(__name__)


def _color_keys(view: PixelView) -> np.ndarray:
    pixels = view.pixels.astype(np.uint32)
    return (pixels[:, 0] << 16) | (pixels[:, 1] << 8) | pixels[:, 2]


def _unpack(key: int) -> RGBTriple:
    return (key >> 16) & 0xFF, (key >> 8) & 0xFF, key & 0xFF


def build_palette(
    data: bytes,
    layout: ChannelLayout,
    settings: OptimizerSettings = SETTINGS,
) -> Tuple[bytes, Optional[Palette], ChannelLayout]:
    """Replace an RGB buffer by palette indices when it has few enough colours.

    Indices are assigned by descending pixel count; colours with equal counts
    keep the order in which they first appear in the buffer. Anything that is
    not RGB, or RGB with more than ``settings.palette_limit`` colours, comes
    back unchanged with no palette.
    """

    if layout is not ChannelLayout.RGB:
        return data, None, layout

    keys = _color_keys(PixelView(data, 3))
    colors, first_seen, inverse, counts = np.unique(
        keys, return_index=True, return_inverse=True, return_counts=True
    )
    LOGGER.info("colors=%d", len(colors))
    if len(colors) > settings.palette_limit:
        return data, None, layout

    order = np.lexsort((first_seen, -counts))
    rank = np.empty(len(colors), dtype=np.uint8)
    rank[order] = np.arange(len(colors))
    indexed = rank[inverse.reshape(-1)].tobytes()
    palette = tuple(_unpack(int(colors[i])) for i in order)
    return indexed, palette, ChannelLayout.INDEXED
