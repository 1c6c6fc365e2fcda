# set multiprocess start method to spawn
import multiprocessing

try:
    multiprocessing.set_start_method("spawn")
except RuntimeError:
    pass

from imageprint import bitmap
from imageprint.batch import Fingerprinter
from imageprint.imagefile import ImageFile
from imageprint.fingerprint import Fingerprint, build_fingerprint
from imageprint.compare import bit_distance, from_hex, hamming_distance, sum_byte_distance, to_hex
from imageprint.errors import DimensionError, ImagePrintError, InvalidInputError, LengthMismatchError

__all__ = [
    "bitmap",
    "Fingerprint",
    "Fingerprinter",
    "ImageFile",
    "build_fingerprint",
    "hamming_distance",
    "sum_byte_distance",
    "bit_distance",
    "to_hex",
    "from_hex",
    "ImagePrintError",
    "InvalidInputError",
    "LengthMismatchError",
    "DimensionError",
]
