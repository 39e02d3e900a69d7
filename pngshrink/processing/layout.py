"""Pixel buffer types shared by every pipeline stage."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterator, Optional, Tuple

import numpy as np

from ..config import MAX_PALETTE_SIZE
from ..errors import RasterError

RGBTriple = Tuple[int, int, int]
Palette = Tuple[RGBTriple, ...]


class ChannelLayout(Enum):
    """How bytes group into a pixel: PNG colour type, bytes per pixel, Pillow mode."""

    GRAY = (0, 1, "L")
    RGB = (2, 3, "RGB")
    INDEXED = (3, 1, "P")
    GRAY_ALPHA = (4, 2, "LA")
    RGBA = (6, 4, "RGBA")

    def __init__(self, color_type: int, channels: int, mode: str) -> None:
        self.color_type = color_type
        self.channels = channels
        self.mode = mode

    @classmethod
    def from_mode(cls, mode: str) -> "ChannelLayout":
        for layout in cls:
            if layout.mode == mode:
                return layout
        raise ValueError(f"No channel layout for image mode {mode!r}")


class PixelView:
    """Read-only view of a flat byte buffer as fixed-width pixels.

    Nothing is copied: ``pixels`` is a ``(count, channels)`` array sharing
    memory with the source buffer, and ``channel(k)`` is a strided slice of it.
    """

    def __init__(self, data: bytes, channels: int) -> None:
        if channels < 1:
            raise ValueError("channels must be positive")
        if len(data) % channels:
            raise ValueError(f"buffer of {len(data)} bytes is not a whole number of {channels}-byte pixels")
        self.channels = channels
        self.pixels = np.frombuffer(data, dtype=np.uint8).reshape(-1, channels)

    def __len__(self) -> int:
        return self.pixels.shape[0]

    def __getitem__(self, index: int) -> Tuple[int, ...]:
        return tuple(int(value) for value in self.pixels[index])

    def __iter__(self) -> Iterator[Tuple[int, ...]]:
        for pixel in self.pixels:
            yield tuple(int(value) for value in pixel)

    def channel(self, index: int) -> np.ndarray:
        return self.pixels[:, index]


@dataclass(frozen=True)
class Raster:
    width: int
    height: int
    layout: ChannelLayout
    data: bytes
    palette: Optional[Palette] = None

    @property
    def channels(self) -> int:
        return self.layout.channels

    def view(self) -> PixelView:
        return PixelView(self.data, self.layout.channels)

    def with_data(self, data: bytes, layout: ChannelLayout, palette: Optional[Palette] = None) -> "Raster":
        return replace(self, data=data, layout=layout, palette=palette)

    def validate(self) -> "Raster":
        expected = self.width * self.height * self.layout.channels
        if self.width < 1 or self.height < 1:
            raise RasterError(f"invalid dimensions {self.width}x{self.height}")
        if len(self.data) != expected:
            raise RasterError(
                f"{self.layout.name} buffer holds {len(self.data)} bytes, expected {expected}"
            )
        if self.layout is ChannelLayout.INDEXED:
            if not self.palette:
                raise RasterError("indexed raster has no palette")
            if len(self.palette) > MAX_PALETTE_SIZE:
                raise RasterError(f"palette has {len(self.palette)} entries")
            if self.data and max(self.data) >= len(self.palette):
                raise RasterError("index byte out of palette range")
        elif self.palette is not None:
            raise RasterError(f"{self.layout.name} raster must not carry a palette")
        return self
