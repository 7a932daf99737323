"""Build the process environment used to run a target Python interpreter."""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Final

from ._compat import IS_WIN, same_directory
from ._errors import PreconditionError
from ._settings import conda_root

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

_DC_KW = {"frozen": True, "kw_only": True, "slots": True} if sys.version_info >= (3, 10) else {"frozen": True}

_LOGGER: Final[logging.Logger] = logging.getLogger(__name__)
_LEAKING_PREFIXES: Final[tuple[str, ...]] = ("CONDA", "PYTHON")


@dataclass(**_DC_KW)
class Command:
    """A program invocation; ``env`` of ``None`` means the environment was not decided yet."""

    args: tuple[str, ...]
    env: Mapping[str, str] | None = None

    @classmethod
    def of(cls, *args: str | os.PathLike[str]) -> Command:
        return cls(args=tuple(os.fspath(arg) for arg in args))

    @property
    def executable(self) -> str:
        return self.args[0]


def conda_python_dir(env: Mapping[str, str] | None = None) -> Path:
    """Directory holding the managed Conda interpreter (the root on Windows, ``bin`` elsewhere)."""
    root = conda_root(env)
    return root if IS_WIN else root / "bin"


def conda_python_fullpath(env: Mapping[str, str] | None = None) -> str:
    return os.path.abspath(conda_python_dir(env) / ("python.exe" if IS_WIN else "python"))


def python_env(cmd: Command, env: Mapping[str, str] | None = None) -> Command:
    """
    Return *cmd* with an environment fit for running the interpreter it names.

    Starts from a copy of *env* (default :data:`os.environ`). When the executable lives in the managed Conda
    installation, every ``CONDA*`` and ``PYTHON*`` variable is dropped so the interpreter does not pick up another
    installation's settings. ``PYTHONIOENCODING`` is always forced to UTF-8.
    """
    if cmd.env is not None:
        msg = f"command already carries an environment: {cmd.args!r}"
        raise PreconditionError(msg)
    base = os.environ if env is None else env
    result = dict(base)
    if same_directory(os.path.dirname(cmd.executable), conda_python_dir(base)):
        dropped = sorted(name for name in result if name.startswith(_LEAKING_PREFIXES))
        for name in dropped:
            del result[name]
        _LOGGER.debug("dropped %s from environment of conda python %s", ", ".join(dropped), cmd.executable)
    result["PYTHONIOENCODING"] = "UTF-8"
    return replace(cmd, env=result)


__all__ = [
    "Command",
    "conda_python_dir",
    "conda_python_fullpath",
    "python_env",
]
