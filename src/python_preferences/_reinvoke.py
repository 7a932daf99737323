"""Re-run an entry point of this package in a fresh interpreter of the hosting runtime."""

from __future__ import annotations

import logging
import subprocess  # noqa: S404
import sys
from typing import TYPE_CHECKING, Final

from ._preferences import DiskPreferenceStore

if TYPE_CHECKING:
    from ._preferences import PreferenceStore

_LOGGER: Final[logging.Logger] = logging.getLogger(__name__)

ENTRY_POINTS: Final[dict[str, str]] = {
    "assert_configured": "from python_preferences._resolve import main_assert_configured as entry_point",
    "status": "from python_preferences._status import status_inprocess as entry_point",
}


def include_stdin_cmd() -> list[str]:
    """A host interpreter without user site customization that executes the program read from stdin."""
    return [sys.executable, "-s", "-c", "import sys; exec(compile(sys.stdin.read(), '<stdin>', 'exec'))"]


def store_code(store: PreferenceStore) -> str:
    if isinstance(store, DiskPreferenceStore):
        return f"DiskPreferenceStore({str(store.path)!r})"
    return f"MemoryPreferenceStore({store.read()!r})"


def entry_point_code(entry_point: str, store: PreferenceStore) -> str:
    """Program that makes this package importable as it is here, then calls *entry_point* on *store*."""
    return "\n".join((
        "import sys",
        f"sys.path[:0] = {[p for p in sys.path if p]!r}",
        "from python_preferences._preferences import DiskPreferenceStore, MemoryPreferenceStore",
        ENTRY_POINTS[entry_point],
        f"entry_point(store={store_code(store)})",
        "",
    ))


def run_entry_point(entry_point: str, store: PreferenceStore) -> int:
    """Call *entry_point* in a fresh interpreter that reloads the preferences from *store*, output passes through."""
    cmd = include_stdin_cmd()
    code = entry_point_code(entry_point, store)
    _LOGGER.debug("run %s in fresh interpreter %s", entry_point, cmd[0])
    process = subprocess.run(  # noqa: S603
        cmd,
        input=code,
        encoding="utf-8",
        check=False,
    )
    return process.returncode


__all__ = [
    "entry_point_code",
    "include_stdin_cmd",
    "run_entry_point",
]
