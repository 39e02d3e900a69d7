import io
import struct
import zlib
from dataclasses import replace

import pytest
import requests
from PIL import Image

from pngshrink.config import SETTINGS


def png_bytes(image: Image.Image, **params) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, "PNG", **params)
    return buffer.getvalue()


def decode_as(data: bytes, mode: str) -> bytes:
    with Image.open(io.BytesIO(data)) as image:
        return image.convert(mode).tobytes()


@pytest.fixture
def settings():
    return replace(SETTINGS, verify_roundtrip=True, compress_level=9, palette_limit=256)


def _png_chunk(chunk_type: bytes, payload: bytes) -> bytes:
    crc = zlib.crc32(chunk_type + payload) & 0xFFFFFFFF
    return struct.pack(">I", len(payload)) + chunk_type + payload + struct.pack(">I", crc)


def gray_png(bit_depth, rows, transparent=None) -> bytes:
    """Write a grayscale PNG by hand so sub-byte depths and tRNS are exact."""

    height, width = len(rows), len(rows[0])
    scanlines = bytearray()
    for row in rows:
        packed, used, current = bytearray(), 0, 0
        for sample in row:
            current = (current << bit_depth) | sample
            used += bit_depth
            if used == 8:
                packed.append(current)
                used, current = 0, 0
        if used:
            packed.append(current << (8 - used))
        scanlines += b"\x00" + packed

    chunks = [_png_chunk(b"IHDR", struct.pack(">IIBBBBB", width, height, bit_depth, 0, 0, 0, 0))]
    if transparent is not None:
        chunks.append(_png_chunk(b"tRNS", struct.pack(">H", transparent)))
    chunks.append(_png_chunk(b"IDAT", zlib.compress(bytes(scanlines))))
    chunks.append(_png_chunk(b"IEND", b""))
    return b"\x89PNG\r\n\x1a\n" + b"".join(chunks)


# (bit depth, sample rows, tRNS sample, expanded 8-bit bytes: L, or LA when tRNS is present)
GRAY_SOURCES = [
    (1, [[0, 1], [1, 0]], None, [0, 255, 255, 0]),
    (2, [[0, 1], [2, 3]], None, [0, 85, 170, 255]),
    (4, [[0, 5], [10, 15]], None, [0, 85, 170, 255]),
    (1, [[0, 1], [1, 0]], 1, [0, 255, 255, 0, 255, 0, 0, 255]),
    (2, [[0, 3], [2, 3]], 3, [0, 255, 255, 0, 170, 255, 255, 0]),
    (4, [[0, 15], [5, 15]], 15, [0, 255, 255, 0, 85, 255, 255, 0]),
    (8, [[7, 200], [7, 9]], 7, [7, 0, 200, 255, 7, 0, 9, 255]),
]


class FakeResponse:
    def __init__(self, status_code=200, content=b""):
        self.status_code = status_code
        self.content = content

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


class FakeSession:
    def __init__(self, responses):
        self.headers = {}
        self.responses = list(responses)
        self.requests = []

    def get(self, url, timeout):
        self.requests.append((url, timeout))
        outcome = self.responses.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome
