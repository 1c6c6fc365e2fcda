import pytest
from PIL import Image

from imageprint.test.helpers import *
from imageprint.imagefile import ImageFile
from imageprint.batch import Fingerprinter, fingerprint_path
from imageprint.fingerprint import build_fingerprint
from imageprint.errors import ImagePrintError, InvalidInputError


def test_image_file(temp_dir, pattern_image):
    path = write_image(temp_dir / "pattern.png", pattern_image)

    with ImageFile(path) as image_file:
        assert (image_file.width, image_file.height) == (320, 240)
        assert image_file.image.format == "PNG"
        fingerprint = image_file.fingerprint
        assert fingerprint == build_fingerprint(pattern_image)
        assert image_file.json() == {
            "filename": str(path),
            "width": 320,
            "height": 240,
            "fingerprint": str(fingerprint),
        }

        # resizing replaces the image and drops the cached fingerprint
        image_file.scale_to_max_size(100, 100)
        assert (image_file.width, image_file.height) == (100, 75)
        assert image_file._fingerprint is None
        image_file.resize(50, 20)
        assert (image_file.width, image_file.height) == (50, 20)
        image_file.scale(2)
        assert (image_file.width, image_file.height) == (100, 40)
        image_file.scale(1)
        assert (image_file.width, image_file.height) == (100, 40)

        out_path = temp_dir / "out" / "resized.jpg"
        image_file.save(out_path)
        assert image_file.filename == out_path

    with Image.open(out_path) as saved:
        assert saved.format == "JPEG"
        assert saved.size == (100, 40)


def test_image_file_errors(temp_dir):
    image_file = ImageFile()
    with pytest.raises(ImagePrintError):
        image_file.image
    with pytest.raises(InvalidInputError):
        image_file.load()
    with pytest.raises(InvalidInputError):
        image_file.image = None

    image_file.image = Image.new("RGB", (4, 4))
    with pytest.raises(InvalidInputError):
        image_file.save()
    image_file.close()

    with pytest.raises(FileNotFoundError):
        ImageFile(temp_dir / "missing.png")


def test_image_file_save_formats(temp_dir, pattern_image):
    image_file = ImageFile(image=pattern_image.copy())

    # suffixes are resolved through pillow's extension registry
    for suffix, image_format in ((".tif", "TIFF"), (".jfif", "JPEG"), (".jpe", "JPEG"), (".PNG", "PNG")):
        path = temp_dir / f"out{suffix}"
        image_file.save(path)
        with Image.open(path) as saved:
            assert saved.format == image_format
            assert saved.size == (320, 240)

    # a failed save leaves an existing file untouched
    keep = temp_dir / "keep.png"
    with open(keep, "wb") as f:
        f.write(b"precious contents")
    with pytest.raises(InvalidInputError):
        image_file.save(keep, image_format="NOPE")
    with open(keep, "rb") as f:
        assert f.read() == b"precious contents"

    with pytest.raises(InvalidInputError):
        image_file.save(temp_dir / "out.notanimage")
    assert not (temp_dir / "out.notanimage").exists()
    image_file.close()


def test_fingerprint_path(temp_dir, solid_image):
    path = write_image(temp_dir / "solid.png", solid_image)
    assert fingerprint_path(path) == {
        "filename": str(path),
        "width": 200,
        "height": 200,
        "fingerprint": "0000000000000000",
    }


@pytest.mark.asyncio
async def test_fingerprinter(temp_dir, pattern_image, solid_image):
    paths = [
        write_image(temp_dir / "pattern.png", pattern_image),
        write_image(temp_dir / "solid.png", solid_image),
        write_image(temp_dir / "pattern2.bmp", pattern_image, "BMP"),
    ]
    bogus = temp_dir / "bogus.png"
    with open(bogus, "w") as f:
        f.write("not an image")
    paths.append(bogus)

    results = {}
    async with Fingerprinter(threads=2, processes=2) as fingerprinter:
        async for path, result in fingerprinter.fingerprint_files(paths):
            results[path] = result

    assert sorted(results) == sorted(paths)
    assert results[bogus] is None
    assert results[paths[1]]["fingerprint"] == "0000000000000000"
    assert results[paths[0]]["fingerprint"] == str(build_fingerprint(pattern_image))
    assert results[paths[0]]["fingerprint"] == results[paths[2]]["fingerprint"]

    with pytest.raises(InvalidInputError):
        Fingerprinter(threads=0)
