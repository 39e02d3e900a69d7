import io
import random
import struct
import zlib

import pytest
from PIL import Image

from pngshrink.errors import DecodeError, EncodeError
from pngshrink.infrastructure.codec import PNG_SIGNATURE, decode_png, encode_png
from pngshrink.processing.filters import SEARCH_ORDER, FilterStrategy
from pngshrink.processing.layout import ChannelLayout

from conftest import GRAY_SOURCES, gray_png, png_bytes


def _chunks(data):
    offset = len(PNG_SIGNATURE)
    while offset < len(data):
        (length,) = struct.unpack(">I", data[offset:offset + 4])
        chunk_type = data[offset + 4:offset + 8]
        yield chunk_type, data[offset + 8:offset + 8 + length]
        offset += 12 + length


def _noise(size, seed=7):
    rng = random.Random(seed)
    return bytes(rng.randrange(256) for _ in range(size))


@pytest.mark.parametrize("strategy", SEARCH_ORDER)
@pytest.mark.parametrize(
    "layout", [ChannelLayout.GRAY, ChannelLayout.GRAY_ALPHA, ChannelLayout.RGB, ChannelLayout.RGBA]
)
def test_encoded_pixels_decode_unchanged(layout, strategy):
    data = _noise(5 * 4 * layout.channels)

    encoded = encode_png(data, 5, 4, layout, None, 8, strategy)

    with Image.open(io.BytesIO(encoded)) as image:
        assert image.mode == layout.mode
        assert image.size == (5, 4)
        assert image.tobytes() == data


def test_indexed_encoding_writes_palette():
    palette = ((255, 0, 0), (0, 255, 0), (0, 0, 255))
    data = bytes([0, 1, 2, 2, 1, 0])

    encoded = encode_png(data, 3, 2, ChannelLayout.INDEXED, palette, 8, FilterStrategy.PAETH)

    with Image.open(io.BytesIO(encoded)) as image:
        assert image.mode == "P"
        assert image.tobytes() == data
        assert image.convert("RGB").getpixel((0, 0)) == (255, 0, 0)
        assert image.convert("RGB").getpixel((2, 0)) == (0, 0, 255)


def test_chunk_layout_and_filter_bytes():
    data = bytes(range(12))

    encoded = encode_png(data, 4, 3, ChannelLayout.GRAY, None, 8, FilterStrategy.AVERAGE)
    chunks = list(_chunks(encoded))

    assert encoded.startswith(PNG_SIGNATURE)
    assert [chunk_type for chunk_type, _ in chunks] == [b"IHDR", b"IDAT", b"IEND"]
    assert chunks[0][1] == struct.pack(">IIBBBBB", 4, 3, 8, 0, 0, 0, 0)
    scanlines = zlib.decompress(chunks[1][1])
    assert [scanlines[row * 5] for row in range(3)] == [3, 3, 3]


def test_unsupported_bit_depth_is_an_encode_error():
    with pytest.raises(EncodeError):
        encode_png(bytes(4), 2, 2, ChannelLayout.GRAY, None, 16, FilterStrategy.NONE)


def test_wrong_buffer_length_is_an_encode_error():
    with pytest.raises(EncodeError):
        encode_png(bytes(5), 2, 2, ChannelLayout.GRAY, None, 8, FilterStrategy.NONE)


def test_index_outside_palette_is_an_encode_error():
    with pytest.raises(EncodeError):
        encode_png(bytes([0, 3]), 2, 1, ChannelLayout.INDEXED, ((0, 0, 0), (1, 1, 1)), 8, FilterStrategy.NONE)


def test_invalid_compression_level_is_an_encode_error():
    with pytest.raises(EncodeError):
        encode_png(bytes(4), 2, 2, ChannelLayout.GRAY, None, 8, FilterStrategy.NONE, compress_level=12)


@pytest.mark.parametrize(
    "mode, color, layout",
    [
        ("L", 77, ChannelLayout.GRAY),
        ("LA", (77, 10), ChannelLayout.GRAY_ALPHA),
        ("RGB", (1, 2, 3), ChannelLayout.RGB),
        ("RGBA", (1, 2, 3, 4), ChannelLayout.RGBA),
    ],
)
def test_decode_maps_modes_to_layouts(mode, color, layout):
    raster = decode_png(png_bytes(Image.new(mode, (3, 2), color)))

    assert raster.layout is layout
    assert (raster.width, raster.height) == (3, 2)
    assert len(raster.data) == 3 * 2 * layout.channels


def test_decode_expands_palette_images_to_rgb():
    image = Image.new("P", (2, 1))
    image.putpalette([0, 0, 0, 200, 100, 50])
    image.putpixel((1, 0), 1)
    source = png_bytes(image)

    raster = decode_png(source)

    assert raster.layout is ChannelLayout.RGB
    assert raster.data == bytes([0, 0, 0, 200, 100, 50])


def test_decode_turns_palette_transparency_into_alpha():
    image = Image.new("P", (2, 1))
    image.putpalette([0, 0, 0, 255, 255, 255])
    image.putpixel((1, 0), 1)

    raster = decode_png(png_bytes(image, transparency=0))

    assert raster.layout is ChannelLayout.RGBA
    assert raster.data == bytes([0, 0, 0, 0, 255, 255, 255, 255])


def test_decode_turns_rgb_transparency_into_alpha():
    image = Image.new("RGB", (2, 1), (1, 2, 3))
    image.putpixel((1, 0), (9, 9, 9))

    raster = decode_png(png_bytes(image, transparency=(1, 2, 3)))

    assert raster.layout is ChannelLayout.RGBA
    assert raster.data == bytes([1, 2, 3, 0, 9, 9, 9, 255])


def test_decode_expands_bilevel_images_to_gray():
    image = Image.new("1", (2, 1))
    image.putpixel((1, 0), 1)

    raster = decode_png(png_bytes(image))

    assert raster.layout is ChannelLayout.GRAY
    assert raster.data == bytes([0, 255])


def test_decode_rejects_sixteen_bit_images():
    with pytest.raises(DecodeError):
        decode_png(png_bytes(Image.new("I;16", (2, 2), 1000)))


def test_decode_rejects_non_png_input():
    with pytest.raises(DecodeError):
        decode_png(b"GIF89a not a png")


def test_decode_rejects_truncated_stream():
    source = png_bytes(Image.frombytes("RGB", (64, 64), _noise(64 * 64 * 3)))

    with pytest.raises(DecodeError):
        decode_png(source[: len(source) // 2])


@pytest.mark.parametrize("bit_depth, rows, transparent, expected", GRAY_SOURCES)
def test_decode_expands_gray_depths_and_transparent_key(bit_depth, rows, transparent, expected):
    raster = decode_png(gray_png(bit_depth, rows, transparent))

    assert (raster.width, raster.height) == (2, 2)
    assert raster.layout is (ChannelLayout.GRAY if transparent is None else ChannelLayout.GRAY_ALPHA)
    assert list(raster.data) == expected
