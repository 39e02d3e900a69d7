from __future__ import annotations

import logging
from typing import Callable, NamedTuple, Optional

from ..config import SETTINGS, OptimizerSettings
from .filters import SEARCH_ORDER, FilterStrategy
from .layout import ChannelLayout, Palette

LOGGER = logging.getLogger(__name__)

Encoder = Callable[..., bytes]


class EncodingCandidate(NamedTuple):
    strategy: FilterStrategy
    size: int
    data: bytes


def _default_encoder() -> Encoder:
    from ..infrastructure.codec import encode_png

    return encode_png


def search_encodings(
    data: bytes,
    width: int,
    height: int,
    layout: ChannelLayout,
    palette: Optional[Palette],
    bit_depth: int = 8,
    *,
    encoder: Encoder | None = None,
    settings: OptimizerSettings = SETTINGS,
) -> EncodingCandidate:
    """Encode once per filter strategy and keep the strictly smallest output.

    Trials run in :data:`SEARCH_ORDER`, so the earliest strategy wins a tie.
    Only the current best candidate is held between trials. An encoder error
    propagates immediately and abandons the search.
    """

    encode = encoder or _default_encoder()

    def trial(strategy: FilterStrategy) -> EncodingCandidate:
        out = encode(
            data,
            width,
            height,
            layout,
            palette,
            bit_depth,
            strategy,
            compress_level=settings.compress_level,
        )
        LOGGER.info("filter=%s size=%d", strategy.name, len(out))
        return EncodingCandidate(strategy, len(out), out)

    first, *rest = SEARCH_ORDER
    best = trial(first)
    for strategy in rest:
        candidate = trial(strategy)
        if candidate.size < best.size:
            best = candidate

    LOGGER.info("best filter=%s size=%d", best.strategy.name, best.size)
    return best


def find_best_encoding(
    data: bytes,
    width: int,
    height: int,
    layout: ChannelLayout,
    palette: Optional[Palette],
    bit_depth: int = 8,
    *,
    encoder: Encoder | None = None,
    settings: OptimizerSettings = SETTINGS,
) -> bytes:
    return search_encodings(
        data, width, height, layout, palette, bit_depth, encoder=encoder, settings=settings
    ).data
