"""Find input files: recursive directory scan or an explicit file list."""
import logging
import os
from pathlib import Path
from typing import Callable, Iterable, Iterator, Optional

from optimizer.errors import RootNotFound, SubtreeUnreadable

logger = logging.getLogger("optimizer.scanner")


def scan_tree(
    root: Path,
    allowed_extensions: Iterable[str],
    on_error: Optional[Callable[[SubtreeUnreadable], None]] = None,
) -> Iterator[Path]:
    """
    Yield absolute paths of files under root whose lowercase extension is allowed.
    Depth-first, entries in name order. Symlinked directories are not descended.
    An unreadable subdirectory is logged and skipped; its siblings are still scanned.
    Raises RootNotFound if root is not an existing directory or cannot be listed.
    """
    root = Path(root).absolute()
    if not root.is_dir():
        raise RootNotFound(root)
    try:
        entries = _list_dir(root)
    except OSError as e:
        raise RootNotFound(root, f"Cannot read directory {root}: {e.strerror or e}") from e
    allowed = frozenset(ext.lower() for ext in allowed_extensions)
    return _walk(root, entries, allowed, on_error)


def _list_dir(directory: Path) -> list:
    with os.scandir(directory) as it:
        return sorted(it, key=lambda e: e.name)


def _walk(
    directory: Path,
    entries: list,
    allowed: frozenset[str],
    on_error: Optional[Callable[[SubtreeUnreadable], None]],
) -> Iterator[Path]:
    for entry in entries:
        path = directory / entry.name
        try:
            if entry.is_dir(follow_symlinks=False):
                try:
                    children = _list_dir(path)
                except OSError as e:
                    err = SubtreeUnreadable(path, e)
                    logger.error("%s", err)
                    if on_error:
                        on_error(err)
                    continue
                yield from _walk(path, children, allowed, on_error)
            elif entry.is_file() and path.suffix.lower() in allowed:
                yield path
        except OSError as e:
            logger.warning("Could not stat %s: %s", path, e)


def collect_files(paths: Iterable[Path], allowed_extensions: Iterable[str]) -> list[Path]:
    """
    Explicit-file mode. Missing files and unsupported extensions are dropped
    with a warning. Raises RootNotFound when files were requested but none remain.
    """
    allowed = frozenset(ext.lower() for ext in allowed_extensions)
    requested = [Path(p) for p in paths]
    found: list[Path] = []
    for p in requested:
        if not p.is_file():
            logger.warning("File not found: %s", p)
            continue
        if p.suffix.lower() not in allowed:
            logger.warning("Skipping unsupported file: %s", p)
            continue
        found.append(p.absolute())
    if requested and not found:
        raise RootNotFound(None, "None of the requested files exist or are supported")
    return found
