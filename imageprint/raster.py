"""
Raster capabilities consumed by the fingerprint builder.

A resampler is any callable ``(image, width, height) -> image`` that returns a new
raster of exactly that size, and a grayscale transform is any callable
``(image) -> image`` returning a raster of equal size whose first channel holds the
luminance. The Pillow-backed versions below are the defaults; tests swap in fakes.
"""

from contextlib import contextmanager, ExitStack

from imageprint import defaults
from imageprint.errors import DimensionError, InvalidInputError


class PillowResampler:
    def __init__(self, resample=None):
        if resample is None:
            resample = defaults.resample
        self.resample = resample

    def __call__(self, image, width, height):
        if image is None:
            raise InvalidInputError("Cannot resample a missing image")
        if width < 1:
            raise DimensionError(f"Cannot scale an image to a width of {width}")
        if height < 1:
            raise DimensionError(f"Cannot scale an image to a height of {height}")
        # palette and bilevel modes only resample with NEAREST
        if image.mode in ("1", "P", "PA"):
            with image.convert("RGBA") as converted:
                return converted.resize((width, height), self.resample)
        return image.resize((width, height), self.resample)

    def __repr__(self):
        return f"PillowResampler(resample={self.resample!r})"


class PillowGrayscale:
    """
    Color-matrix grayscale: L = r*R + g*G + b*B, using Pillow's matrix conversion.
    """

    def __init__(self, weights=None):
        if weights is None:
            weights = defaults.luma_weights
        if len(weights) != 3:
            raise InvalidInputError(f"Expected three luma weights, got {weights!r}")
        self.weights = tuple(float(w) for w in weights)

    @property
    def matrix(self):
        return self.weights + (0.0,)

    def __call__(self, image):
        if image is None:
            raise InvalidInputError("Cannot convert a missing image to grayscale")
        if image.mode == "RGB":
            return image.convert("L", self.matrix)
        with image.convert("RGB") as rgb:
            return rgb.convert("L", self.matrix)

    def __repr__(self):
        return f"PillowGrayscale(weights={self.weights!r})"


default_resampler = PillowResampler()
default_grayscale = PillowGrayscale()


@contextmanager
def scoped_rasters():
    """
    Yields a function that registers intermediate rasters for release.

    Every registered raster is closed when the block exits, including on error.

    Examples:
        >>> with scoped_rasters() as keep:
        ...     thumbnail = keep(image.resize((8, 8)))
    """
    with ExitStack() as stack:

        def keep(raster):
            if raster is None:
                raise InvalidInputError("Raster collaborator returned nothing")
            stack.callback(_release, raster)
            return raster

        yield keep


def _release(raster):
    close = getattr(raster, "close", None)
    if close is not None:
        close()


def raster_size(raster):
    return int(raster.width), int(raster.height)


def luminance(pixel):
    """
    First channel of a pixel value (grayscale rasters store luminance in every channel).
    """
    if isinstance(pixel, (tuple, list)):
        pixel = pixel[0]
    return int(pixel)

