from __future__ import annotations

import io
import logging
from dataclasses import dataclass

from PIL import Image

from ..config import SETTINGS, OptimizerSettings
from ..errors import VerificationError
from .layout import ChannelLayout, Raster
from .palette import build_palette
from .reduce import reduce_color_model
from .search import EncodingCandidate, Encoder, search_encodings

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class OptimizationResult:
    source: Raster
    reduced: Raster
    candidate: EncodingCandidate

    @property
    def data(self) -> bytes:
        return self.candidate.data

    @property
    def layout(self) -> ChannelLayout:
        return self.reduced.layout


def verify_roundtrip(original: Raster, encoded: bytes) -> None:
    """Decode ``encoded`` back into the original layout and compare every byte."""

    with Image.open(io.BytesIO(encoded)) as image:
        restored = image.convert(original.layout.mode)
        if restored.size != (original.width, original.height) or restored.tobytes() != original.data:
            raise VerificationError(
                f"{original.layout.name} pixels changed after re-encoding as {image.mode}"
            )


def reduce_raster(raster: Raster, settings: OptimizerSettings = SETTINGS) -> Raster:
    """Run colour-model reduction then palette construction on ``raster``."""

    data, layout = reduce_color_model(raster.data, raster.layout)
    data, palette, layout = build_palette(data, layout, settings=settings)
    if layout is not raster.layout:
        LOGGER.info("layout %s -> %s", raster.layout.name, layout.name)
    return raster.with_data(data, layout, palette).validate()


def optimize_raster(
    raster: Raster,
    settings: OptimizerSettings = SETTINGS,
    encoder: Encoder | None = None,
) -> OptimizationResult:
    raster.validate()
    reduced = reduce_raster(raster, settings=settings)
    candidate = search_encodings(
        reduced.data,
        reduced.width,
        reduced.height,
        reduced.layout,
        reduced.palette,
        encoder=encoder,
        settings=settings,
    )
    if settings.verify_roundtrip:
        verify_roundtrip(raster, candidate.data)
    return OptimizationResult(source=raster, reduced=reduced, candidate=candidate)


def optimize_png(source: bytes, settings: OptimizerSettings = SETTINGS) -> OptimizationResult:
    from ..infrastructure.codec import decode_png

    return optimize_raster(decode_png(source), settings=settings)
