"""Ask an arbitrary Python interpreter about itself by running short scripts in a subprocess."""

from __future__ import annotations

import logging
import subprocess  # noqa: S404
from shlex import quote
from subprocess import Popen  # noqa: S404
from typing import TYPE_CHECKING, Final, TypeVar

from ._compat import IS_WIN
from ._env import Command, python_env
from ._errors import SubprocessError
from ._settings import subprocess_timeout
from ._version import PythonVersion

if TYPE_CHECKING:
    from collections.abc import Mapping

_LOGGER: Final[logging.Logger] = logging.getLogger(__name__)
_T = TypeVar("_T")

# PYTHONHOME replaces both prefixes at once; on Windows they are documented to always be equal and passing both breaks
# start up. venv does not copy the standard library, so the base prefixes must win over the activated ones.
_HOME_SCRIPT_WINDOWS: Final[str] = """\
import sys
if hasattr(sys, "base_exec_prefix"):
    sys.stdout.write(sys.base_exec_prefix)
else:
    sys.stdout.write(sys.exec_prefix)
"""
_HOME_SCRIPT_POSIX: Final[str] = """\
import sys
if hasattr(sys, "base_exec_prefix"):
    sys.stdout.write(sys.base_prefix)
    sys.stdout.write(":")
    sys.stdout.write(sys.base_exec_prefix)
else:
    sys.stdout.write(sys.prefix)
    sys.stdout.write(":")
    sys.stdout.write(sys.exec_prefix)
"""


class LogCmd:
    def __init__(self, cmd: Command) -> None:
        self.cmd = cmd

    def __repr__(self) -> str:
        return " ".join(quote(str(c)) for c in self.cmd.args)


def run_python(
    cmd: Command,
    env: Mapping[str, str] | None = None,
    *,
    timeout: float | None = None,
) -> str:
    """
    Run *cmd* in the sanitized environment and return its standard output.

    :param cmd: the invocation, without an environment
    :param env: the ambient environment to start from, :data:`os.environ` by default
    :param timeout: seconds to wait, falls back to ``PYTHON_PREFERENCES_TIMEOUT``; ``None`` waits forever
    :raises SubprocessError: the interpreter could not be started, failed, or timed out
    """
    cmd = python_env(cmd, env)
    if timeout is None:
        timeout = subprocess_timeout(env)
    _LOGGER.debug("run interpreter via cmd: %s", LogCmd(cmd))
    try:
        process = Popen(  # noqa: S603
            list(cmd.args),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            env=cmd.env,
            encoding="utf-8",
            errors="backslashreplace",
        )
    except OSError as os_error:
        msg = f"failed to start {cmd.executable}: {os_error.strerror or os_error}"
        raise SubprocessError(msg, cmd.args, os_error.errno) from os_error
    try:
        out, err = process.communicate(timeout=timeout)
    except subprocess.TimeoutExpired as exc:
        process.kill()
        process.communicate()
        msg = f"{cmd.executable} did not finish within {timeout}s"
        raise SubprocessError(msg, cmd.args) from exc
    if process.returncode != 0:
        msg = f"{LogCmd(cmd)!r} failed with code {process.returncode}{f' err: {err!r}' if err else ''}"
        raise SubprocessError(msg, cmd.args, process.returncode, err)
    return out


def query_variable(python: str, module: str, expression: str, env: Mapping[str, str] | None = None) -> str:
    """Print ``<module>.<expression>`` inside *python* and return the text without trailing whitespace."""
    script = f"import {module}; print({module}.{expression})"
    return run_python(Command.of(python, "-c", script), env).rstrip()


def config_variable(
    python: str,
    name: str,
    default: _T | None = None,
    env: Mapping[str, str] | None = None,
) -> str | _T | None:
    """Build configuration variable *name* of *python*, *default* when it is not defined."""
    value = query_variable(python, "sysconfig", f"get_config_var({name!r})", env)
    return default if value == "None" else value


def version_of(python: str, env: Mapping[str, str] | None = None) -> PythonVersion:
    return PythonVersion.from_string(query_variable(python, "platform", "python_version()", env))


def home_directories_of(python: str, env: Mapping[str, str] | None = None) -> str:
    """
    The value ``PYTHONHOME`` must take to start *python* embedded.

    One prefix on Windows, ``prefix:exec_prefix`` elsewhere, both taken from the base installation when the interpreter
    runs inside a virtual environment.
    """
    script = _HOME_SCRIPT_WINDOWS if IS_WIN else _HOME_SCRIPT_POSIX
    return run_python(Command.of(python, "-c", script), env)


__all__ = [
    "LogCmd",
    "config_variable",
    "home_directories_of",
    "query_variable",
    "run_python",
    "version_of",
]
