from __future__ import annotations

import logging
from typing import Tuple

import numpy as np

from ..errors import RasterError
from .layout import ChannelLayout, PixelView

LOGGER = logging.getLogger(__name__)

OPAQUE = 0xFF


def _is_opaque(alpha: np.ndarray) -> bool:
    return bool(np.all(alpha == OPAQUE))


def _is_neutral(view: PixelView) -> bool:
    red, green, blue = view.channel(0), view.channel(1), view.channel(2)
    return bool(np.all(red == green) and np.all(red == blue))


def reduce_color_model(data: bytes, layout: ChannelLayout) -> Tuple[bytes, ChannelLayout]:
    """Rewrite ``data`` into the cheapest layout that keeps every pixel value.

    Each check scans the whole buffer before anything is emitted; when a check
    fails the original buffer and layout are returned untouched.
    """

    if layout is ChannelLayout.GRAY:
        return data, layout
    if layout is ChannelLayout.INDEXED:
        raise RasterError("indexed buffers must be expanded before colour reduction")

    view = PixelView(data, layout.channels)

    if layout is ChannelLayout.RGB:
        if _is_neutral(view):
            LOGGER.debug("RGB -> gray: every pixel has r == g == b")
            return view.channel(0).tobytes(), ChannelLayout.GRAY
        return data, layout

    if layout is ChannelLayout.GRAY_ALPHA:
        if _is_opaque(view.channel(1)):
            LOGGER.debug("gray+alpha -> gray: alpha is fully opaque")
            return view.channel(0).tobytes(), ChannelLayout.GRAY
        return data, layout

    # RGBA: the alpha channel may only go when it is uniformly opaque.
    if not _is_opaque(view.channel(3)):
        return data, layout
    if _is_neutral(view):
        LOGGER.debug("RGBA -> gray: opaque and every pixel has r == g == b")
        return view.channel(0).tobytes(), ChannelLayout.GRAY
    LOGGER.debug("RGBA -> RGB: alpha is fully opaque")
    return view.pixels[:, :3].tobytes(), ChannelLayout.RGB
