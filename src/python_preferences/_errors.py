"""Error kinds raised while resolving and validating the Python configuration."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence


class PythonPreferencesError(Exception):
    """Base class of every error raised by this package."""


class SubprocessError(PythonPreferencesError):
    """An interpreter could not be started, exited with an error, or did not finish in time."""

    def __init__(
        self,
        msg: str,
        cmd: Sequence[str] = (),
        returncode: int | None = None,
        stderr: str | None = None,
    ) -> None:
        super().__init__(msg)
        self.cmd = tuple(cmd)
        self.returncode = returncode
        self.stderr = stderr


class ParseError(PythonPreferencesError, ValueError):
    """Interpreter output could not be parsed."""


class LibraryLoadError(PythonPreferencesError, OSError):
    """A single libpython candidate failed to load."""

    def __init__(self, candidate: str, reason: str) -> None:
        super().__init__(f"failed to load {candidate}: {reason}")
        self.candidate = candidate


class ConfigurationError(PythonPreferencesError):
    """The effective configuration is incomplete; the message explains how to fix it."""


class PreconditionError(PythonPreferencesError, ValueError):
    """The caller passed arguments this package does not support."""


__all__ = [
    "ConfigurationError",
    "LibraryLoadError",
    "ParseError",
    "PreconditionError",
    "PythonPreferencesError",
    "SubprocessError",
]
