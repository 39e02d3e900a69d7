"""PNG decoding via Pillow and a minimal PNG writer with a fixed scan-line filter.

Pillow always chooses its own filters when saving, so the encoder assembles
the chunks itself: signature, IHDR, optional PLTE, a single IDAT, IEND.
"""

from __future__ import annotations

import io
import logging
import struct
import zlib
from typing import Optional

import numpy as np
from PIL import Image

from ..errors import DecodeError, EncodeError, RasterError
from ..processing.filters import FilterStrategy, filter_scanlines
from ..processing.layout import ChannelLayout, Palette, Raster

LOGGER = logging.getLogger(__name__)

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
# Signature, IHDR length and type, width and height precede the bit depth byte.
_IHDR_BIT_DEPTH_OFFSET = 24
_IHDR_COLOR_TYPE_OFFSET = 25
SUPPORTED_BIT_DEPTH = 8


def _expand(image: Image.Image) -> Image.Image:
    """Expand an opened image to plain 8-bit channels, turning tRNS into alpha."""

    has_transparency = image.info.get("transparency") is not None
    if image.mode == "RGB" and has_transparency:
        return image.convert("RGBA")
    if image.mode == "1":
        return image.convert("L")
    if image.mode == "P":
        return image.convert("RGBA" if has_transparency else "RGB")
    if image.mode == "PA":
        return image.convert("RGBA")
    return image


def _gray_transparent_sample(data: bytes) -> Optional[int]:
    """Return the raw tRNS sample of a grayscale PNG, if it declares one."""

    offset = len(PNG_SIGNATURE)
    while offset + 8 <= len(data):
        length, chunk_type = struct.unpack(">I4s", data[offset:offset + 8])
        if chunk_type in (b"IDAT", b"IEND"):
            return None
        if chunk_type == b"tRNS" and length >= 2:
            (sample,) = struct.unpack(">H", data[offset + 8:offset + 10])
            return sample
        offset += 12 + length
    return None


def _keyed_gray(image: Image.Image, sample: int, bit_depth: int) -> Image.Image:
    """Build gray+alpha from a gray image whose tRNS names one transparent sample.

    Pillow scales sub-byte samples up to 0..255, so the raw key is scaled the
    same way before matching.
    """

    key = sample * (0xFF // ((1 << bit_depth) - 1))
    gray = np.asarray(image.convert("L"), dtype=np.uint8)
    if key > 0xFF:
        alpha = np.full_like(gray, 0xFF)
    else:
        alpha = np.where(gray == key, 0, 0xFF).astype(np.uint8)
    return Image.frombytes("LA", image.size, np.stack([gray, alpha], axis=-1).tobytes())


def decode_png(data: bytes) -> Raster:
    if not data.startswith(PNG_SIGNATURE):
        raise DecodeError("not a PNG file")
    if len(data) <= _IHDR_COLOR_TYPE_OFFSET:
        raise DecodeError("truncated PNG header")
    bit_depth = data[_IHDR_BIT_DEPTH_OFFSET]
    if bit_depth > SUPPORTED_BIT_DEPTH:
        raise DecodeError(f"unsupported bit depth {bit_depth}")
    color_type = data[_IHDR_COLOR_TYPE_OFFSET]

    try:
        with Image.open(io.BytesIO(data)) as source:
            source.load()
            source_mode = source.mode
            gray_key = None
            if color_type == ChannelLayout.GRAY.color_type:
                gray_key = _gray_transparent_sample(data)
            if gray_key is not None:
                image = _keyed_gray(source, gray_key, bit_depth)
            else:
                image = _expand(source)
            pixels = image.tobytes()
    except (OSError, SyntaxError, ValueError, EOFError, struct.error, Image.DecompressionBombError) as exc:
        raise DecodeError(f"malformed PNG: {exc}") from exc

    try:
        layout = ChannelLayout.from_mode(image.mode)
    except ValueError as exc:
        raise DecodeError(f"unsupported image mode {image.mode}") from exc

    raster = Raster(image.width, image.height, layout, pixels)
    LOGGER.info(
        "decoded width=%d height=%d bit_depth=%d source_mode=%s layout=%s bytes=%d",
        raster.width,
        raster.height,
        bit_depth,
        source_mode,
        layout.name,
        len(pixels),
    )
    return raster


def _chunk(chunk_type: bytes, payload: bytes) -> bytes:
    crc = zlib.crc32(chunk_type + payload) & 0xFFFFFFFF
    return struct.pack(">I", len(payload)) + chunk_type + payload + struct.pack(">I", crc)


def encode_png(
    data: bytes,
    width: int,
    height: int,
    layout: ChannelLayout,
    palette: Optional[Palette],
    bit_depth: int,
    filter_strategy: FilterStrategy,
    compress_level: int = 9,
) -> bytes:
    """Encode one candidate PNG; invalid parameters raise :class:`EncodeError`."""

    if bit_depth != SUPPORTED_BIT_DEPTH:
        raise EncodeError(f"unsupported bit depth {bit_depth}")
    try:
        Raster(width, height, layout, data, palette).validate()
        scanlines = filter_scanlines(data, width, height, layout.channels, filter_strategy)
        compressed = zlib.compress(scanlines, compress_level)
    except (RasterError, ValueError, zlib.error) as exc:
        raise EncodeError(str(exc)) from exc

    header = struct.pack(">IIBBBBB", width, height, bit_depth, layout.color_type, 0, 0, 0)
    parts = [PNG_SIGNATURE, _chunk(b"IHDR", header)]
    if palette is not None:
        parts.append(_chunk(b"PLTE", bytes(channel for rgb in palette for channel in rgb)))
    parts.append(_chunk(b"IDAT", compressed))
    parts.append(_chunk(b"IEND", b""))
    return b"".join(parts)
