from pathlib import Path

from PIL import Image

from imageprint import bitmap
from imageprint.base import ImagePrintBase
from imageprint.compare import to_hex
from imageprint.errors import ImagePrintError, InvalidInputError
from imageprint.fingerprint import build_fingerprint


class ImageFile(ImagePrintBase):
    """
    An image paired with the file it was loaded from (or will be saved to).

    The fingerprint is computed lazily and cached until the image changes.
    """

    def __init__(self, filename=None, image=None):
        super().__init__()
        self.filename = Path(filename) if filename is not None else None
        self._image = image
        self._fingerprint = None
        if image is None and self.filename is not None:
            self.load()

    @property
    def image(self):
        if self._image is None:
            raise ImagePrintError("Image not yet loaded")
        return self._image

    @image.setter
    def image(self, image):
        if image is None:
            raise InvalidInputError("image must not be None")
        self._replace(image)

    @property
    def width(self):
        return self.image.width

    @property
    def height(self):
        return self.image.height

    @property
    def fingerprint(self):
        if self._fingerprint is None:
            self._fingerprint = build_fingerprint(self.image)
        return self._fingerprint

    def load(self):
        if self.filename is None:
            raise InvalidInputError("No filename to load from")
        with Image.open(self.filename) as image:
            image.load()
            self._replace(image.copy())
            self._image.format = image.format
        self.log.debug(f"Loaded {self.filename} ({self.width}x{self.height})")
        return self

    def save(self, filename=None, image_format=None):
        if filename is not None:
            self.filename = Path(filename)
        if self.filename is None:
            raise InvalidInputError("No filename to save to")
        if image_format is None:
            image_format = self.filename.suffix or self.image.format or None
        # encode before touching the destination so a failure leaves it intact
        data = bitmap.save_bytes(self.image, image_format)
        self.filename.parent.mkdir(parents=True, exist_ok=True)
        with open(self.filename, "wb") as f:
            f.write(data)
        self.log.debug(f"Saved {self.filename}")
        return self

    def resize(self, width, height):
        self._replace(bitmap.resize_image(self.image, width, height))
        return self

    def scale(self, scale_factor):
        if scale_factor != 1:
            self._replace(bitmap.scale_image(self.image, scale_factor))
        return self

    def scale_to_max_size(self, max_width, max_height):
        self._replace(bitmap.resize_to_max_size(self.image, max_width, max_height))
        return self

    def close(self):
        if self._image is not None:
            self._image.close()
            self._image = None
        self._fingerprint = None

    def _replace(self, image):
        if self._image is not None and self._image is not image:
            self._image.close()
        self._image = image
        self._fingerprint = None

    def json(self):
        return {
            "filename": str(self.filename) if self.filename is not None else None,
            "width": self.width,
            "height": self.height,
            "fingerprint": to_hex(self.fingerprint),
        }

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def __str__(self):
        return f"ImageFile(filename={repr(str(self.filename))}, fingerprint={self.fingerprint})"

    def __repr__(self):
        return str(self)
