import time
import pytest
import asyncio
from pathlib import Path

from imageprint.test.helpers import *


@pytest.mark.asyncio
async def test_helpers(temp_dir):
    # str_or_file_list
    from imageprint.helpers import str_or_file_list

    tempfile = Path(temp_dir) / "images.txt"
    with open(tempfile, "w") as f:
        f.write("/images/a.png\n\n/images/b.png")
    assert str_or_file_list(["/other/c.png", str(tempfile), "/other/d.png", "/images/a.png"]) == [
        "/other/c.png",
        "/images/a.png",
        "/images/b.png",
        "/other/d.png",
    ]
    assert str_or_file_list(tempfile) == [
        "/images/a.png",
        "/images/b.png",
    ]
    tempfile.unlink()
    assert str_or_file_list("/images/a.png") == ["/images/a.png"]

    # directories expand to the files inside them
    image_dir = Path(temp_dir) / "dir"
    (image_dir / "nested").mkdir(parents=True, exist_ok=True)
    for name in ("b.png", "a.png"):
        (image_dir / name).write_bytes(b"")
    assert str_or_file_list(image_dir) == [str(image_dir / "a.png"), str(image_dir / "b.png")]

    # task_pool
    from imageprint.helpers import task_pool

    async def test_fn(arg):
        await asyncio.sleep(1)
        return arg

    results = []
    start_time = time.time()
    async for result in task_pool(test_fn, list(range(30))):
        results.append(result)
    elapsed = time.time() - start_time
    assert 2.5 < elapsed < 3.5
    assert len(results) == 30
    assert sorted(results) == list((i, i) for i in range(30))


def test_exception_chain():
    from imageprint.helpers import get_exception_chain, in_exception_chain, is_cancellation
    from imageprint.errors import InvalidInputError, ImagePrintError

    try:
        try:
            raise KeyboardInterrupt
        except KeyboardInterrupt:
            raise InvalidInputError("wrapped")
    except InvalidInputError as e:
        chain = get_exception_chain(e)
        assert [type(_) for _ in chain] == [InvalidInputError, KeyboardInterrupt]
        assert in_exception_chain(e, (ImagePrintError,))
        assert is_cancellation(e)

    assert not is_cancellation(ValueError("nope"))


def test_color_distance():
    from imageprint.helpers import color_distance

    assert color_distance(0, 8) == "[bold bright_green]0[/bold bright_green]"
    assert color_distance(2, 8) == "[bold green]2[/bold green]"
    assert color_distance(4, 8) == "[bold orange1]4[/bold orange1]"
    assert color_distance(40, 64) == "[bold red]40[/bold red]"
