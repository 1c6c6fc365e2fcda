"""
Bitmap utilities: thin wrappers around Pillow for resizing, color transforms, compositing and text.

Functions taking an image return a new image unless noted. Functions suffixed ``_bytes``
take and return encoded image bytes.
"""

import io

import numpy

from PIL import Image, ImageDraw, ImageFont, ImageOps

from imageprint import defaults
from imageprint.errors import DimensionError, InvalidInputError
from imageprint.raster import PillowGrayscale, PillowResampler


# (matrix rows are output R, G, B)
sepia_matrix = (
    0.393, 0.769, 0.189, 0,
    0.349, 0.686, 0.168, 0,
    0.272, 0.534, 0.131, 0,
)  # fmt: skip
monochrome_weights = (0.299, 0.587, 0.114)


def _require_image(image, name="image"):
    if image is None:
        raise InvalidInputError(f"{name} must not be None")
    return image


def _require_bytes(image_bytes):
    if not image_bytes:
        raise InvalidInputError("Image bytes cannot be None or empty")
    return image_bytes


def open_bytes(image_bytes):
    _require_bytes(image_bytes)
    image = Image.open(io.BytesIO(image_bytes))
    image.load()
    return image


def save_bytes(image, image_format=None):
    if image_format is None:
        image_format = defaults.output_format
    image_format = _normalize_format(image_format)
    if image_format == "JPEG" and image.mode not in ("RGB", "L", "CMYK"):
        image = image.convert("RGB")
    with io.BytesIO() as buffer:
        image.save(buffer, format=image_format)
        return buffer.getvalue()


def _normalize_format(image_format):
    if not image_format:
        raise InvalidInputError("Image format cannot be None")
    image_format = str(image_format).strip()
    extension = "." + image_format.lower().lstrip(".")
    # accepts a format name ("PNG") or a file suffix (".tif", "jpg")
    image_format = Image.registered_extensions().get(extension, image_format.upper().lstrip("."))
    if image_format not in Image.SAVE:
        raise InvalidInputError(f"Unsupported image format: {image_format}")
    return image_format


### SIZE ###


def resize_image(image, width, height, resample=None):
    """
    Resize without preserving aspect ratio.
    """
    _require_image(image)
    return PillowResampler(resample)(image, width, height)


def resize_image_bytes(image_bytes, width, height, image_format="PNG"):
    with open_bytes(image_bytes) as image, resize_image(image, width, height) as output:
        return save_bytes(output, image_format)


def resize_to_max_size(image, max_width, max_height):
    """
    Resize to fit inside ``max_width`` x ``max_height`` while keeping the aspect ratio.
    """
    _require_image(image)
    if max_width < 1:
        raise DimensionError(f"Cannot scale an image to a width of {max_width}")
    if max_height < 1:
        raise DimensionError(f"Cannot scale an image to a height of {max_height}")
    ratio = min(max_width / image.width, max_height / image.height)
    width = max(1, round(image.width * ratio))
    height = max(1, round(image.height * ratio))
    return resize_image(image, width, height)


def scale_image(image, scale_factor):
    """
    Scale both dimensions by ``scale_factor``. A factor of 1 returns a copy.
    """
    _require_image(image)
    if scale_factor == 1:
        return image.copy()
    if scale_factor <= 0:
        raise DimensionError(f"Cannot scale an image by {scale_factor}")
    width = round(scale_factor * image.width)
    height = round(scale_factor * image.height)
    return resize_image(image, width, height)


def scale_image_bytes(image_bytes, scale_factor, image_format="PNG"):
    with open_bytes(image_bytes) as image, scale_image(image, scale_factor) as output:
        return save_bytes(output, image_format)


### COLOR ###


def convert_to_grayscale(image, weights=None):
    """
    Color-matrix grayscale, returned as RGB so it composes with the other helpers.
    """
    _require_image(image)
    with PillowGrayscale(weights)(image) as gray:
        output = gray.convert("RGB")
    if "A" in image.getbands():
        output.putalpha(image.getchannel("A"))
    return output


def convert_to_monochrome(image):
    return convert_to_grayscale(image, monochrome_weights)


def convert_to_negative(image):
    _require_image(image)
    if "A" in image.getbands():
        with image.convert("RGBA") as rgba:
            r, g, b, a = rgba.split()
        output = ImageOps.invert(Image.merge("RGB", (r, g, b)))
        output.putalpha(a)
        return output
    with image.convert("RGB") as rgb:
        return ImageOps.invert(rgb)


def convert_to_sepia(image):
    _require_image(image)
    # Pillow clips each channel to 255
    with image.convert("RGB") as rgb:
        return rgb.convert("RGB", sepia_matrix)


def alter_opacity(image, opacity):
    """
    Scale the alpha channel by ``opacity`` (0 to 1 inclusive).
    """
    _require_image(image)
    if opacity < 0:
        raise InvalidInputError("Image opacity cannot be less than 0")
    if opacity > 1:
        raise InvalidInputError("Image opacity cannot be greater than 1")
    output = image.convert("RGBA")
    alpha = output.getchannel("A").point(lambda value: int(round(value * opacity)))
    output.putalpha(alpha)
    return output


def make_transparent(image, color):
    """
    Make every pixel matching ``color`` fully transparent.
    """
    _require_image(image)
    with image.convert("RGBA") as rgba:
        pixels = numpy.array(rgba)
    matches = numpy.all(pixels[..., :3] == tuple(color)[:3], axis=-1)
    pixels[matches, 3] = 0
    return Image.fromarray(pixels)


def flatten_transparent(image, background_color):
    """
    Composite an image with transparency over a solid background.
    """
    _require_image(image)
    with image.convert("RGBA") as rgba:
        output = Image.new("RGBA", rgba.size, background_color)
        output.alpha_composite(rgba)
    flattened = output.convert("RGB")
    output.close()
    return flattened


def flatten_transparent_bytes(image_bytes, background_color):
    with open_bytes(image_bytes) as image, flatten_transparent(image, background_color) as output:
        return save_bytes(output, image.format or defaults.output_format)


def flood_fill(image, color):
    """
    Fill the entire image with one color, in place.
    """
    _require_image(image)
    image.paste(color, (0, 0, image.width, image.height))
    return image


### COMPOSITING ###


def overlay_image(background, overlay, position=None):
    """
    Draw ``overlay`` on top of ``background`` in place. Centered unless ``position`` is given.
    """
    _require_image(background, "background")
    _require_image(overlay, "overlay")
    if position is None:
        position = ((background.width - overlay.width) // 2, (background.height - overlay.height) // 2)
    mask = overlay.getchannel("A") if "A" in overlay.getbands() else None
    background.paste(overlay, tuple(position), mask)
    return background


def draw_border(image, border_width, border_color):
    """
    Returns a new image grown by ``border_width`` on every side.
    """
    _require_image(image)
    if border_width < 1:
        raise InvalidInputError("Border width cannot be less than 1")
    return ImageOps.expand(image, border=border_width, fill=border_color)


### FORMAT ###


def convert_format(image, image_format):
    """
    Re-encode an image in memory and return it decoded in the new format.
    """
    _require_image(image)
    image_format = _normalize_format(image_format)
    if image.format == image_format:
        output = image.copy()
        output.format = image.format
        return output
    return open_bytes(save_bytes(image, image_format))


def convert_format_bytes(image_bytes, image_format):
    with open_bytes(image_bytes) as image:
        return save_bytes(image, image_format)


### TEXT ###


def load_font(font_name=None, font_size=None):
    """
    Load a TrueType font by name or path. ``None`` loads Pillow's built-in font.
    """
    if font_size is None:
        font_size = defaults.font_size
    if font_size <= 0:
        raise InvalidInputError("Font size must be greater than 0")
    if font_name is None:
        return ImageFont.load_default(font_size)
    try:
        return ImageFont.truetype(font_name, font_size)
    except OSError as e:
        raise InvalidInputError(f"Cannot load font {font_name!r}: {e}") from e


def estimate_text_size(font, text):
    if font is None:
        raise InvalidInputError("font must not be None")
    if not text or not text.strip():
        raise InvalidInputError("Cannot render a None or empty string")
    with Image.new("L", (1, 1)) as buffer:
        left, top, right, bottom = ImageDraw.Draw(buffer).textbbox((0, 0), text, font=font)
    return max(1, right), max(1, bottom)


def write_text(image, text, font=None, color=None, position=(0, 0)):
    """
    Draw text onto an existing image, in place.
    """
    _require_image(image)
    if not text or not text.strip():
        raise InvalidInputError("Cannot render a None or empty string")
    if font is None:
        font = load_font()
    if color is None:
        color = defaults.text_color
    ImageDraw.Draw(image).text(tuple(position), text, font=font, fill=color)
    return image


def render_text(text, font=None, color=None, background_color=None, transparent=False):
    """
    Create a new image sized to fit ``text``.
    """
    if font is None:
        font = load_font()
    if color is None:
        color = defaults.text_color
    if background_color is None:
        background_color = defaults.background_color
    width, height = estimate_text_size(font, text)
    output = Image.new("RGB", (width, height), background_color)
    write_text(output, text, font=font, color=color)
    if transparent:
        transparent_output = make_transparent(output, background_color)
        output.close()
        return transparent_output
    return output


def render_character_set(characters, font=None, color=None, background_color=None, transparent=False):
    """
    Render each distinct character to its own image. Returns ``{char: image}``.
    """
    if not characters:
        raise InvalidInputError("Cannot render a None or empty character set")
    output = {}
    for character in characters:
        if character not in output and character.strip():
            output[character] = render_text(
                character, font=font, color=color, background_color=background_color, transparent=transparent
            )
    return output
