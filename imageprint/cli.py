#!/usr/bin/env python3

import sys
import orjson
import uvloop
import logging
from pathlib import Path
from typing import Annotated
from rich.console import Console

import typer

from imageprint import defaults
from imageprint.batch import Fingerprinter
from imageprint.imagefile import ImageFile
from imageprint.errors import ImagePrintError
from imageprint.fingerprint import FINGERPRINT_LENGTH, SAMPLE_COUNT
from imageprint.compare import bit_distance, hamming_distance, sum_byte_distance
from imageprint.helpers import str_or_file_list, is_cancellation, color_distance


stdout = Console()
stderr = Console(stderr=True)
log = logging.getLogger(__name__)


app = typer.Typer(help="Perceptual image fingerprints and bitmap utilities")
global_options = {
    "silent": False,
    "debug": False,
    "color": False,
}


@app.callback()
def _global_options(
    silent: bool = False,
    debug: bool = False,
    color: bool = True,
):
    global_options["silent"] = silent
    global_options["debug"] = debug
    global_options["color"] = color

    # enable debugging if requested
    if debug:
        root_logger = logging.getLogger("imageprint")
        root_logger.setLevel(logging.DEBUG)


@app.command(name="hash", help="Fingerprint image files")
def hash_files(
    files: Annotated[
        list[str],
        typer.Argument(help="Image file(s), directories, or .txt files listing image paths", metavar="FILES"),
    ],
    json: Annotated[bool, typer.Option("-j", "--json", help="Output JSON")] = False,
    threads: Annotated[
        int, typer.Option("-t", "--threads", help="Number of files to process at once", rich_help_panel="Performance")
    ] = defaults.threads,
):
    paths = str_or_file_list(files)
    log.debug(f"Fingerprinting {len(paths):,} file(s) with {threads} threads")
    failed = 0

    async def _hash():
        nonlocal failed
        async with Fingerprinter(threads=threads) as fingerprinter:
            async for path, result in fingerprinter.fingerprint_files(paths):
                if result is None:
                    failed += 1
                    if not global_options["silent"]:
                        stderr.print(f"Could not fingerprint {path}", highlight=False)
                    continue
                if json:
                    output = orjson.dumps(result).decode()
                else:
                    output = f"{result['fingerprint']}\t{path}"
                stdout.print(output, markup=False, highlight=False, soft_wrap=True)

    uvloop.run(_hash())
    if failed:
        raise typer.Exit(code=1)


@app.command(help="Compare the fingerprints of two images")
def compare(
    first: Annotated[Path, typer.Argument(help="First image", metavar="IMAGE_A")],
    second: Annotated[Path, typer.Argument(help="Second image", metavar="IMAGE_B")],
    json: Annotated[bool, typer.Option("-j", "--json", help="Output JSON")] = False,
):
    with ImageFile(first) as image_a, ImageFile(second) as image_b:
        fingerprint_a = image_a.fingerprint
        fingerprint_b = image_b.fingerprint

    result = {
        "a": {"filename": str(first), "fingerprint": str(fingerprint_a)},
        "b": {"filename": str(second), "fingerprint": str(fingerprint_b)},
        "hamming_distance": hamming_distance(fingerprint_a, fingerprint_b),
        "sum_byte_distance": sum_byte_distance(fingerprint_a, fingerprint_b),
        "bit_distance": bit_distance(fingerprint_a, fingerprint_b),
    }

    if json:
        stdout.print(orjson.dumps(result).decode(), markup=False, highlight=False, soft_wrap=True)
        return

    hamming = result["hamming_distance"]
    bits = result["bit_distance"]
    if global_options["color"]:
        hamming = color_distance(hamming, FINGERPRINT_LENGTH)
        bits = color_distance(bits, SAMPLE_COUNT)
    stdout.print(f"{fingerprint_a}\t{first}", highlight=False)
    stdout.print(f"{fingerprint_b}\t{second}", highlight=False)
    stdout.print(f"The two images differ by {hamming} of {FINGERPRINT_LENGTH} bytes", highlight=False)
    stdout.print(f"Sum byte distance: {result['sum_byte_distance']}", highlight=False)
    stdout.print(f"Bit distance: {bits} of {SAMPLE_COUNT} bits", highlight=False)


@app.command(help="Resize an image")
def resize(
    source: Annotated[Path, typer.Argument(help="Image to resize", metavar="SOURCE")],
    destination: Annotated[Path, typer.Argument(help="Where to write the result", metavar="DESTINATION")],
    width: Annotated[int, typer.Option("-W", "--width", help="Exact width (ignores aspect ratio)")] = None,
    height: Annotated[int, typer.Option("-H", "--height", help="Exact height (ignores aspect ratio)")] = None,
    max_width: Annotated[int, typer.Option("--max-width", help="Fit within this width")] = None,
    max_height: Annotated[int, typer.Option("--max-height", help="Fit within this height")] = None,
    scale: Annotated[float, typer.Option("-s", "--scale", help="Scale factor")] = None,
):
    modes = [width is not None or height is not None, max_width is not None or max_height is not None, scale is not None]
    if sum(modes) != 1:
        raise typer.BadParameter("Use exactly one of --width/--height, --max-width/--max-height, or --scale")

    with ImageFile(source) as image_file:
        if scale is not None:
            image_file.scale(scale)
        elif max_width is not None or max_height is not None:
            if max_width is None or max_height is None:
                raise typer.BadParameter("--max-width and --max-height must be used together")
            image_file.scale_to_max_size(max_width, max_height)
        else:
            if width is None or height is None:
                raise typer.BadParameter("--width and --height must be used together")
            image_file.resize(width, height)
        image_file.save(destination)
        if not global_options["silent"]:
            stderr.print(f"Wrote {image_file.width}x{image_file.height} image to {destination}", highlight=False)


def main():
    try:
        app()
    except BaseException as e:
        if is_cancellation(e):
            sys.exit(1)
        elif isinstance(e, SystemExit):
            raise
        elif isinstance(e, (ImagePrintError, OSError)):
            stderr.print(f"{e}", markup=False, highlight=False, soft_wrap=True)
            sys.exit(1)
        else:
            stderr.print_exception(show_locals=True)
            sys.exit(1)


if __name__ == "__main__":
    main()
