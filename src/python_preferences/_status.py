"""Print the effective configuration for diagnostics."""

from __future__ import annotations

import sys
from typing import IO, TYPE_CHECKING, Final

from ._preferences import default_store
from ._reinvoke import run_entry_point
from ._resolve import resolve_effective_config

if TYPE_CHECKING:
    from ._preferences import PreferenceStore
    from ._resolve import ResolvedPythonConfig

LABELS: Final[tuple[tuple[str, str], ...]] = (
    ("python", "python"),
    ("inprocess", "inprocess"),
    ("conda", "conda"),
    ("python_fullpath", "python_fullpath"),
    ("libpython", "libpython"),
    ("python_version", "python_version"),
    ("PYTHONHOME", "python_home"),
)
_WIDTH: Final[int] = max(len(label) for label, _ in LABELS)


def format_status(config: ResolvedPythonConfig) -> str:
    return "".join(f"{label:<{_WIDTH}}: {getattr(config, name)}\n" for label, name in LABELS)


def status_inprocess(
    config: ResolvedPythonConfig | None = None,
    store: PreferenceStore | None = None,
    file: IO[str] | None = None,
) -> None:
    """Print *config*, or the configuration resolved in this process from *store*."""
    config = resolve_effective_config(store) if config is None else config
    (sys.stdout if file is None else file).write(format_status(config))


def status(store: PreferenceStore | None = None) -> None:
    """Print the configuration a fresh interpreter resolves from the stored preferences."""
    run_entry_point("status", default_store() if store is None else store)


__all__ = [
    "LABELS",
    "format_status",
    "status",
    "status_inprocess",
]
