import random
import pytest
import shutil
import logging
import tempfile
from pathlib import Path

from PIL import Image, ImageDraw


log = logging.getLogger("imageprint.tests")


@pytest.fixture
def temp_dir():
    tempdir = Path(tempfile.gettempdir()) / ".imageprint-test"
    tempdir.mkdir(parents=True, exist_ok=True)
    yield tempdir
    shutil.rmtree(tempdir, ignore_errors=True)


@pytest.fixture
def solid_image():
    image = Image.new("RGB", (200, 200), (120, 40, 200))
    yield image
    image.close()


@pytest.fixture
def pattern_image():
    image = make_pattern(320, 240)
    yield image
    image.close()


def make_pattern(width, height, offset=0):
    """
    Dark background with a bright rectangle on the left and a bright ellipse bottom right.
    """
    image = Image.new("RGB", (width, height), (30 + offset, 30 + offset, 30 + offset))
    draw = ImageDraw.Draw(image)
    draw.rectangle((0, 0, width // 3, height // 2), fill=(220 + offset // 4, 220 + offset // 4, 220 + offset // 4))
    draw.ellipse((width // 2, height // 2, width - 1, height - 1), fill=(200, 180 + offset // 4, 160))
    return image


def make_noise(width, height, seed):
    rng = random.Random(seed)
    data = bytes(rng.randrange(256) for _ in range(width * height * 3))
    return Image.frombytes("RGB", (width, height), data)


def brighten(image, amount):
    return image.point(lambda value: min(255, value + amount))


class FakeRaster:
    """
    Minimal raster: a 2D grid of gray values with close() tracking.
    """

    def __init__(self, rows):
        self.rows = [list(row) for row in rows]
        self.closed = False

    @property
    def width(self):
        return len(self.rows[0])

    @property
    def height(self):
        return len(self.rows)

    def getpixel(self, xy):
        x, y = xy
        value = self.rows[y][x]
        return (value, value, value)

    def close(self):
        self.closed = True


class FakeResampler:
    """
    Ignores the source and returns a fixed grid; remembers what it produced.
    """

    def __init__(self, rows):
        self.rows = rows
        self.produced = []
        self.requests = []

    def __call__(self, image, width, height):
        self.requests.append((width, height))
        raster = FakeRaster(self.rows)
        self.produced.append(raster)
        return raster


class FakeGrayscale:
    def __init__(self, fail=False):
        self.fail = fail
        self.produced = []

    def __call__(self, image):
        if self.fail:
            raise RuntimeError("grayscale backend exploded")
        raster = FakeRaster(image.rows)
        self.produced.append(raster)
        return raster


def gradient_rows(size=8):
    return [[(y * size + x) * 4 for x in range(size)] for y in range(size)]


def write_image(path, image, image_format="PNG"):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    image.save(path, format=image_format)
    return path
