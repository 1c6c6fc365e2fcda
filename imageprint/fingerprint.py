"""
Perceptual image fingerprinting (average hash)

Example:

>>> from PIL import Image
>>> fingerprint = build_fingerprint(Image.open('test.png'))
>>> print(fingerprint)
3c7e7e7e3c180000
"""

import logging

import numpy

from imageprint import defaults
from imageprint.compare import as_byte_array, from_hex, hamming_distance, to_hex
from imageprint.errors import DimensionError, InvalidInputError, LengthMismatchError
from imageprint.raster import default_grayscale, default_resampler, luminance, raster_size, scoped_rasters

"""
You may copy this file, if you keep the copyright information below:


Copyright (c) 2013-2022, Johannes Buchner
https://github.com/JohannesBuchner/imagehash

All rights reserved.

Redistribution and use in source and binary forms, with or without
modification, are permitted provided that the following conditions are
met:

Redistributions of source code must retain the above copyright
notice, this list of conditions and the following disclaimer.

Redistributions in binary form must reproduce the above copyright
notice, this list of conditions and the following disclaimer in the
documentation and/or other materials provided with the distribution.

THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS
IS" AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED
TO, THE IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A
PARTICULAR PURPOSE ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT
HOLDER OR CONTRIBUTORS BE LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL,
SPECIAL, EXEMPLARY, OR CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT
LIMITED TO, PROCUREMENT OF SUBSTITUTE GOODS OR SERVICES; LOSS OF USE,
DATA, OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER CAUSED AND ON ANY
THEORY OF LIABILITY, WHETHER IN CONTRACT, STRICT LIABILITY, OR TORT
(INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT OF THE USE
OF THIS SOFTWARE, EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE.

"""


log = logging.getLogger(__name__)

GRID_SIZE = defaults.grid_size
SAMPLE_COUNT = GRID_SIZE * GRID_SIZE
FINGERPRINT_LENGTH = SAMPLE_COUNT // 8


class Fingerprint:
    """
    Fingerprint encapsulation. Can be used for dictionary keys and comparisons.

    ``a - b`` is the byte-level Hamming distance between two fingerprints.
    """

    def __init__(self, data):
        data = bytes(as_byte_array(data, "data"))
        if len(data) != FINGERPRINT_LENGTH:
            raise LengthMismatchError(f"Fingerprints are {FINGERPRINT_LENGTH} bytes, got {len(data)}")
        self.data = data

    @classmethod
    def from_bytes(cls, data):
        return cls(data)

    @classmethod
    def from_hex(cls, text):
        return cls(from_hex(text))

    @property
    def value(self):
        """
        The fingerprint as a 64-bit integer (bit i set means sample i was above the mean).
        """
        return int.from_bytes(self.data, defaults.byte_order)

    @property
    def bits(self):
        """
        The 8x8 boolean grid, row-major.
        """
        value = self.value
        bits = [bool((value >> i) & 1) for i in range(SAMPLE_COUNT)]
        return numpy.array(bits, dtype=bool).reshape(GRID_SIZE, GRID_SIZE)

    def __bytes__(self):
        return self.data

    def __len__(self):
        return len(self.data)

    def __str__(self):
        return to_hex(self.data)

    def __repr__(self):
        return f"Fingerprint({str(self)!r})"

    def __sub__(self, other):
        if other is None:
            raise InvalidInputError("Other fingerprint must not be None.")
        return hamming_distance(self.data, other)

    def __eq__(self, other):
        if isinstance(other, Fingerprint):
            return self.data == other.data
        if isinstance(other, (bytes, bytearray)):
            return self.data == bytes(other)
        return NotImplemented

    def __hash__(self):
        return hash(self.data)


def build_fingerprint(image, resampler=None, grayscale=None):
    """
    Average-hash computation.

    Implementation follows https://www.hackerfactor.com/blog/index.php?/archives/432-Looks-Like-It.html

    The image is squashed to an 8x8 grid (aspect ratio discarded), converted to
    grayscale, and each cell becomes one bit: set if its luminance is strictly
    greater than the floored mean of all 64 cells.

    Args:
        image (PIL.Image.Image): Source raster. Any size >= 1x1.
        resampler (callable, optional): ``(image, width, height) -> image``. Defaults to Pillow bicubic.
        grayscale (callable, optional): ``(image) -> image``. Defaults to the 0.30/0.59/0.11 color matrix.

    Returns:
        Fingerprint: always 8 bytes, little-endian.

    Raises:
        InvalidInputError: If ``image`` is None.
        DimensionError: If a collaborator returns a raster that isn't 8x8.
    """
    if image is None:
        raise InvalidInputError("Cannot fingerprint a missing image")
    if resampler is None:
        resampler = default_resampler
    if grayscale is None:
        grayscale = default_grayscale

    with scoped_rasters() as keep:
        thumbnail = keep(resampler(image, GRID_SIZE, GRID_SIZE))
        gray = keep(grayscale(thumbnail))
        samples = _luminance_samples(gray)

    data = _threshold_bits(samples)
    fingerprint = Fingerprint(data)
    log.debug(f"Built fingerprint {fingerprint}")
    return fingerprint


def _luminance_samples(gray):
    size = raster_size(gray)
    if size != (GRID_SIZE, GRID_SIZE):
        raise DimensionError(f"Expected a {GRID_SIZE}x{GRID_SIZE} grayscale thumbnail, got {size[0]}x{size[1]}")
    samples = [luminance(gray.getpixel((i % GRID_SIZE, i // GRID_SIZE))) for i in range(SAMPLE_COUNT)]
    return numpy.array(samples, dtype=numpy.int64)


def _threshold_bits(samples):
    # floored mean, strict comparison: ties stay 0
    mean = int(samples.sum()) // SAMPLE_COUNT
    value = 0
    for i in numpy.flatnonzero(samples > mean):
        value |= 1 << int(i)
    return value.to_bytes(FINGERPRINT_LENGTH, defaults.byte_order)
