import asyncio
import logging
from pathlib import Path
from contextlib import suppress


log = logging.getLogger(__name__)

list_suffixes = {".txt", ".lst"}


async def task_pool(fn, all_args, threads=10, global_kwargs=None):
    if global_kwargs is None:
        global_kwargs = {}

    tasks = {}
    try:
        all_args = list(all_args)

        def new_task():
            with suppress(IndexError):
                arg = all_args.pop(0)
                task = asyncio.create_task(fn(arg, **global_kwargs))
                tasks[task] = arg

        for _ in range(threads):  # Start initial batch of tasks
            new_task()

        while tasks:  # While there are tasks pending
            # Wait for the first task to complete
            done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
            for task in done:
                arg = tasks.pop(task)
                result = task.result()
                yield arg, result
                new_task()
    except (KeyboardInterrupt, asyncio.CancelledError):
        for task in tasks:
            task.cancel()
            with suppress(asyncio.CancelledError):
                await asyncio.wait_for(task, timeout=0.01)


def str_or_file_list(l):
    """
    Chains together list elements into a unified list of image paths.

    Elements that are text files (.txt, .lst) are read as one path per line, and
    directories are expanded to the files directly inside them. Duplicates are dropped,
    order is preserved.
    """
    if not isinstance(l, (list, tuple, set)):
        l = [l]
    final_list = {}
    for entry in l:
        f = str(entry).strip()
        if not f:
            continue
        f_path = Path(f)
        if f_path.is_dir():
            for child in sorted(f_path.iterdir()):
                if child.is_file():
                    final_list[str(child)] = None
        elif f_path.is_file() and f_path.suffix.lower() in list_suffixes:
            log.debug(f"Reading image paths from {f_path}")
            with open(f_path, "r") as f:
                for line in f:
                    line = line.strip()
                    if line:
                        final_list[line] = None
        else:
            final_list[f] = None

    return list(final_list)


def get_exception_chain(e):
    """
    Retrieves the full chain of exceptions leading to the given exception.

    Args:
        e (BaseException): The exception for which to get the chain.

    Returns:
        list[BaseException]: List of exceptions in the chain, from the given exception back to the root cause.

    Examples:
        >>> try:
        ...     raise ValueError("This is a value error")
        ... except ValueError as e:
        ...     exc_chain = get_exception_chain(e)
        ...     for exc in exc_chain:
        ...         print(exc)
        This is a value error
    """
    exception_chain = []
    current_exception = e
    while current_exception is not None:
        exception_chain.append(current_exception)
        current_exception = getattr(current_exception, "__context__", None)
    return exception_chain


def in_exception_chain(e, exc_types):
    """
    Given an Exception and a list of Exception types, returns whether any of the specified types are contained anywhere in the Exception chain.

    Args:
        e (BaseException): The exception to check
        exc_types (list[Exception]): Exception types to look for

    Returns:
        bool: Whether any exception in the chain is one of ``exc_types``
    """
    return any(isinstance(_, exc_types) for _ in get_exception_chain(e))


def is_cancellation(e):
    return in_exception_chain(e, (KeyboardInterrupt, asyncio.CancelledError))


def color_distance(distance, maximum):
    """
    Rich markup for a distance score: green when identical, red when nothing matches.
    """
    if distance == 0:
        color = "bright_green"
    elif distance <= maximum // 4:
        color = "green"
    elif distance <= maximum // 2:
        color = "orange1"
    else:
        color = "red"
    return f"[bold {color}]{distance}[/bold {color}]"
