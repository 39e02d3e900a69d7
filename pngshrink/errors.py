"""Exception hierarchy shared by the pipeline and its surfaces."""

from __future__ import annotations


class PngShrinkError(Exception):
    """Base class for every failure the optimizer reports."""


class SourceError(PngShrinkError):
    """The source image could not be read or fetched."""


class DecodeError(PngShrinkError):
    """The source bytes are not a PNG this optimizer can expand to 8-bit channels."""


class EncodeError(PngShrinkError):
    """A trial encode failed; the whole search is aborted."""


class RasterError(ValueError, PngShrinkError):
    """A raster's buffer, layout and palette disagree with each other."""


class VerificationError(PngShrinkError):
    """The optimized output does not decode to the original pixels."""
