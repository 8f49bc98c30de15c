"""File discovery and reading for PHP sources."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from ..exceptions import FileAccessError, InvalidPathError
from ..logging_config import get_logger
from .models import SourceFile

logger = get_logger(__name__)

PHP_EXTENSION = ".php"


def discover_php_files(root: Path, exclude_dirs: Iterable[str] = ()) -> list[str]:
    """List ``*.php`` files under ``root`` as sorted POSIX paths relative to it.

    Hidden directories and any directory whose name is in ``exclude_dirs``
    are skipped.

    Raises:
        InvalidPathError: If ``root`` is not a directory
    """
    if not root.is_dir():
        raise InvalidPathError(root, "not a directory")

    excluded = set(exclude_dirs)
    found: list[str] = []
    for filepath in root.rglob(f"*{PHP_EXTENSION}"):
        relative = filepath.relative_to(root)
        if any(part in excluded or part.startswith(".") for part in relative.parts[:-1]):
            continue
        if filepath.is_file():
            found.append(relative.as_posix())

    found.sort()
    logger.debug(f"Discovered {len(found)} PHP files under {root}")
    return found


def read_source_file(root: Path, path: str) -> SourceFile:
    """Read one file relative to ``root``.

    Raises:
        FileAccessError: If the file is missing, unreadable or not UTF-8
    """
    full_path = root / path
    try:
        content = full_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise FileAccessError(path, "not found")
    except UnicodeDecodeError as e:
        raise FileAccessError(path, f"not valid UTF-8: {e.reason}")
    except OSError as e:
        raise FileAccessError(path, e.strerror or str(e))
    return SourceFile(path=path, content=content)
