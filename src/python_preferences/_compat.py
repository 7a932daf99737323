"""Platform compatibility utilities for interpreter and library probing."""

from __future__ import annotations

import functools
import logging
import os
import pathlib
import sys
import tempfile
from typing import Final

_LOGGER: Final[logging.Logger] = logging.getLogger(__name__)
IS_WIN: Final[bool] = sys.platform == "win32"


@functools.lru_cache(maxsize=1)
def fs_is_case_sensitive() -> bool:
    with tempfile.NamedTemporaryFile(prefix="TmP") as tmp_file:
        result = not pathlib.Path(tmp_file.name.lower()).exists()
    _LOGGER.debug("filesystem is %scase-sensitive", "" if result else "not ")
    return result


def fs_path_id(path: str) -> str:
    return path.casefold() if not fs_is_case_sensitive() else path


def same_directory(first: str | os.PathLike[str], second: str | os.PathLike[str]) -> bool:
    """``True`` if both paths name the same directory once made absolute (symlinks are not followed)."""
    return fs_path_id(os.path.abspath(first)) == fs_path_id(os.path.abspath(second))


def dlopen_flags() -> int:
    """Lazy, deep and global binding; flags the platform lacks are left out."""
    flags = 0
    for name in ("RTLD_LAZY", "RTLD_DEEPBIND", "RTLD_GLOBAL"):
        flags |= getattr(os, name, 0)
    return flags


__all__ = [
    "IS_WIN",
    "dlopen_flags",
    "fs_is_case_sensitive",
    "fs_path_id",
    "same_directory",
]
