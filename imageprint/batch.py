import asyncio
from pathlib import Path
from concurrent.futures import ProcessPoolExecutor

from imageprint import defaults
from imageprint.base import ImagePrintBase
from imageprint.errors import ImagePrintError, InvalidInputError
from imageprint.helpers import task_pool
from imageprint.imagefile import ImageFile


def fingerprint_path(path):
    """
    Load, fingerprint and summarize one image file. Runs inside a worker process.
    """
    with ImageFile(path) as image_file:
        return image_file.json()


class Fingerprinter(ImagePrintBase):
    """
    Fingerprints many image files concurrently.

    Decoding and hashing happen in a process pool; at most ``threads`` files are in flight.
    Files that can't be read or decoded are logged and yielded with a result of ``None``.

    Examples:
        >>> async with Fingerprinter() as fingerprinter:
        ...     async for path, result in fingerprinter.fingerprint_files(["a.png", "b.png"]):
        ...         print(result["fingerprint"], path)
    """

    def __init__(self, threads=defaults.threads, processes=None):
        super().__init__()
        if threads < 1:
            raise InvalidInputError(f"threads must be at least 1, got {threads}")
        self.threads = threads
        self.processes = processes
        self._process_pool = None
        self._closed = False

    @property
    def process_pool(self):
        if self._process_pool is None:
            self._process_pool = ProcessPoolExecutor(max_workers=self.processes)
        return self._process_pool

    async def fingerprint_files(self, paths):
        async for path, result in task_pool(self.fingerprint_file, paths, threads=self.threads):
            yield path, result

    async def fingerprint_file(self, path):
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(self.process_pool, fingerprint_path, str(Path(path)))
        except (ImagePrintError, OSError) as e:
            self.log.warning(f"Failed to fingerprint {path}: {e}")
            return None

    async def stop(self):
        if not self._closed:
            self.log.debug("Shutting down process pool")
            if self._process_pool is not None:
                self._process_pool.shutdown(wait=True, cancel_futures=True)
        self._closed = True

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.stop()
