"""Find and load the libpython belonging to a given interpreter."""

from __future__ import annotations

import ctypes
import ctypes.util
import logging
import os
import pkgutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Final, Protocol

from ._compat import IS_WIN, dlopen_flags
from ._env import Command
from ._errors import LibraryLoadError, PythonPreferencesError
from ._introspect import run_python

if TYPE_CHECKING:
    from collections.abc import Generator, Mapping

_LOGGER: Final[logging.Logger] = logging.getLogger(__name__)
_HELPER: Final[str] = "_find_libpython.py"


class DLOpen(Protocol):
    def __call__(self, path: str, flags: int) -> ctypes.CDLL: ...


def load_library(path: str, flags: int) -> ctypes.CDLL:
    """Load the shared library at *path* (or a bare name resolved by the system loader)."""
    try:
        return ctypes.CDLL(path, mode=flags)
    except OSError as exc:
        error = exc
    # bare names carry no file suffix, let the platform search fill it in
    if not os.path.dirname(path) and (found := _find_system_library(path)) is not None:
        _LOGGER.debug("system library search resolved %s to %s", path, found)
        try:
            return ctypes.CDLL(found, mode=flags)
        except OSError as exc:
            error = exc
    raise LibraryLoadError(path, str(error)) from error


def _find_system_library(name: str) -> str | None:
    if not IS_WIN and name.startswith("lib"):
        name = name[3:]
    return ctypes.util.find_library(name)


def library_path(handle: ctypes.CDLL) -> str:
    """Real file system path of the loaded libpython *handle*."""
    if IS_WIN:  # pragma: win32 cover
        buffer = ctypes.create_unicode_buffer(32768)
        size = ctypes.windll.kernel32.GetModuleFileNameW(ctypes.c_void_p(handle._handle), buffer, len(buffer))  # noqa: SLF001
        if not size:
            msg = f"cannot determine the path of {handle._name}"  # noqa: SLF001
            raise LibraryLoadError(handle._name, msg)  # noqa: SLF001
        return buffer.value[:size]

    class DlInfo(ctypes.Structure):
        _fields_ = [  # noqa: RUF012
            ("dli_fname", ctypes.c_char_p),
            ("dli_fbase", ctypes.c_void_p),
            ("dli_sname", ctypes.c_char_p),
            ("dli_saddr", ctypes.c_void_p),
        ]

    dladdr = ctypes.CDLL(None).dladdr
    dladdr.argtypes = [ctypes.c_void_p, ctypes.POINTER(DlInfo)]
    dladdr.restype = ctypes.c_int
    info = DlInfo()
    address = ctypes.cast(handle.Py_GetVersion, ctypes.c_void_p).value
    if not dladdr(address, ctypes.byref(info)) or not info.dli_fname:
        msg = "dladdr found no image exporting Py_GetVersion"
        raise LibraryLoadError(handle._name, msg)  # noqa: SLF001
    return os.path.realpath(os.fsdecode(info.dli_fname))


@contextmanager
def _resolve_helper_script() -> Generator[Path]:
    helper = Path(Path(__file__).resolve()).parent / _HELPER
    if helper.is_file():
        yield helper
    else:
        data = pkgutil.get_data(__package__ or __name__, _HELPER)
        if data is None:
            msg = f"cannot locate {_HELPER} for libpython discovery"
            raise FileNotFoundError(msg)
        fd, tmp = tempfile.mkstemp(suffix=".py")
        try:
            os.write(fd, data)
            os.close(fd)
            yield Path(tmp)
        finally:
            Path(tmp).unlink()


def exec_find_libpython(
    python: str,
    option: str,
    *,
    verbose: bool = False,
    env: Mapping[str, str] | None = None,
) -> list[str]:
    """Run the candidate finder with *option* (``--list-all`` or ``--candidate-names``) inside *python*."""
    with _resolve_helper_script() as helper:
        cmd = Command.of(python, helper, option, *(("--verbose",) if verbose else ()))
        out = run_python(cmd, env)
    return [line for line in out.splitlines() if line.strip()]


def find_libpython(
    python: str,
    *,
    verbose: bool = False,
    dlopen: DLOpen = load_library,
    env: Mapping[str, str] | None = None,
) -> tuple[str, ctypes.CDLL] | tuple[None, None]:
    """
    Load the libpython of *python* and return its path together with the handle.

    Full candidate paths reported by the interpreter are tried first. The bare candidate names are a last resort
    because the system search path may hold a library of another installation with the same name.

    :returns: ``(path, handle)`` of the first library that loads, ``(None, None)`` when none does
    """
    flags = dlopen_flags()
    for lib in exec_find_libpython(python, "--list-all", verbose=verbose, env=env):
        try:
            return lib, dlopen(lib, flags)
        except OSError:
            _LOGGER.warning("failed to dlopen %s", lib, exc_info=True)
    _LOGGER.warning("%s found no loadable libpython for %s, falling back to the system library search", _HELPER, python)

    for name in exec_find_libpython(python, "--candidate-names", verbose=verbose, env=env):
        lib = os.path.splitext(name)[0]
        try:
            handle = dlopen(lib, flags)
        except OSError:
            _LOGGER.debug("failed to dlopen %s", lib, exc_info=True)
            continue
        try:
            return library_path(handle), handle
        except (OSError, AttributeError, PythonPreferencesError):
            _LOGGER.debug("loaded %s but cannot tell its path", lib, exc_info=True)
    return None, None


__all__ = [
    "exec_find_libpython",
    "find_libpython",
    "library_path",
    "load_library",
]
