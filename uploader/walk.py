"""Lazy recursive file listing for directory uploads."""

import os
from pathlib import Path
from typing import Iterator, Tuple, Union


def iter_files(root: Union[str, Path]) -> Iterator[Tuple[Path, str]]:
    """
    Yield every regular file under root.

    A plain file yields itself once, named by its basename. Directory entries
    are visited in sorted order so repeated walks yield the same sequence.

    Args:
        root: File or directory path

    Yields:
        Tuples of (absolute path, path relative to root using '/' separators)
    """
    root = Path(root)
    if not root.is_dir():
        yield root.resolve(), root.name
        return

    base = root.resolve()
    yield from _walk(base, base)


def _walk(directory: Path, base: Path) -> Iterator[Tuple[Path, str]]:
    with os.scandir(directory) as it:
        entries = sorted(it, key=lambda entry: entry.name)

    for entry in entries:
        path = Path(entry.path)
        if entry.is_dir(follow_symlinks=False):
            yield from _walk(path, base)
        elif entry.is_file():
            yield path, path.relative_to(base).as_posix()
