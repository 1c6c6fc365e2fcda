"""
Distance metrics and hex rendering for fingerprints (or any equal-length byte sequences).
"""

import binascii

import numpy

from imageprint.errors import InvalidInputError, LengthMismatchError


def as_byte_array(data, name="data"):
    """
    Coerce bytes-like input into a uint8 numpy array.

    Accepts bytes, bytearray, memoryview, anything implementing ``__bytes__`` (e.g. a Fingerprint),
    or a sequence of ints in 0..255.

    Raises:
        InvalidInputError: If ``data`` is None, empty, or not byte-valued.
    """
    if data is None:
        raise InvalidInputError(f"{name} must not be None")
    if isinstance(data, str):
        raise InvalidInputError(f"{name} must be bytes, not str")
    if isinstance(data, (bytes, bytearray, memoryview)) or hasattr(data, "__bytes__"):
        data = bytes(data)
    else:
        try:
            data = bytes(list(data))
        except (TypeError, ValueError) as e:
            raise InvalidInputError(f"{name} is not a sequence of byte values: {e}") from e
    if not data:
        raise InvalidInputError(f"{name} must not be empty")
    return numpy.frombuffer(data, dtype=numpy.uint8)


def _pair(a, b):
    a = as_byte_array(a, "a")
    b = as_byte_array(b, "b")
    if a.size != b.size:
        raise LengthMismatchError(f"Arrays are unequal lengths ({a.size} != {b.size})")
    return a, b


def hamming_distance(a, b):
    """
    Number of byte positions at which ``a`` and ``b`` differ.

    This counts differing *bytes*, not bits: two 8-byte fingerprints score 0-8.
    Use ``bit_distance`` for the bitwise count.
    """
    a, b = _pair(a, b)
    return int(numpy.count_nonzero(a != b))


def sum_byte_distance(a, b):
    """
    Sum of absolute per-byte differences, each byte read as unsigned 0-255.
    """
    a, b = _pair(a, b)
    return int(numpy.abs(a.astype(numpy.int32) - b.astype(numpy.int32)).sum())


def bit_distance(a, b):
    """
    Number of differing bits (popcount of ``a XOR b``). Two fingerprints score 0-64.
    """
    a, b = _pair(a, b)
    return int(numpy.unpackbits(numpy.bitwise_xor(a, b)).sum())


def to_hex(data):
    """
    Lowercase hex, two characters per byte, no separators.

    Examples:
        >>> to_hex(b"\\xde\\xad\\xbe\\xef")
        'deadbeef'
    """
    return as_byte_array(data).tobytes().hex()


def from_hex(text):
    """
    Inverse of ``to_hex``. Case-insensitive.
    """
    if text is None:
        raise InvalidInputError("Hex string must not be None")
    text = str(text).strip()
    if not text:
        raise InvalidInputError("Hex string must not be empty")
    try:
        return binascii.unhexlify(text)
    except (binascii.Error, ValueError) as e:
        raise InvalidInputError(f"Invalid hex string {text!r}: {e}") from e
