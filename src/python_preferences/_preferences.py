"""Persist the interpreter preference record and read it back."""

from __future__ import annotations

import json
import logging
import os
import sys
import tempfile
from contextlib import contextmanager, suppress
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Final, Protocol, runtime_checkable

from ._errors import PreconditionError
from ._settings import preferences_file

if TYPE_CHECKING:
    from collections.abc import Generator, Mapping

_DC_KW = {"frozen": True, "kw_only": True, "slots": True} if sys.version_info >= (3, 10) else {"frozen": True}

_LOGGER: Final[logging.Logger] = logging.getLogger(__name__)


@dataclass(**_DC_KW)
class PythonPreferences:
    """
    The user's choice of interpreter.

    :param python: interpreter name or path, ``None`` for the default lookup
    :param inprocess: the host already runs an interpreter, skip discovery
    :param conda: use the managed Conda interpreter, wins over *python*
    """

    python: str | None = None
    inprocess: bool = False
    conda: bool = False

    def to_dict(self) -> dict[str, object]:
        """Minimal record: absent and false fields are left out."""
        raw: dict[str, object] = {}
        if self.python is not None:
            raw["python"] = self.python
        if self.inprocess:
            raw["inprocess"] = True
        if self.conda:
            raw["conda"] = True
        return raw

    @classmethod
    def from_dict(cls, raw: Mapping[str, object]) -> PythonPreferences:
        python = raw.get("python")
        return cls(
            python=None if python is None else str(python),
            inprocess=raw.get("inprocess") is True,
            conda=raw.get("conda") is True,
        )


@runtime_checkable
class PreferenceStore(Protocol):
    """Durable key-value record holding the preferences; ``write`` replaces the whole record."""

    def exists(self) -> bool: ...

    def read(self) -> dict | None: ...

    def write(self, content: dict) -> None: ...

    def remove(self) -> None: ...

    @contextmanager
    def locked(self) -> Generator[None]: ...


class DiskPreferenceStore:
    """JSON file based store, guarded by a file lock and replaced atomically."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({str(self.path)!r})"

    @property
    def _lock_file(self) -> Path:
        return self.path.with_name(f"{self.path.name}.lock")

    def exists(self) -> bool:
        return self.path.exists()

    def read(self) -> dict | None:
        data, bad_format = None, False
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except ValueError:
            bad_format = True
        except OSError:
            _LOGGER.debug("failed to read %s", self.path, exc_info=True)
        else:
            if isinstance(data, dict):
                _LOGGER.debug("got preferences from %s", self.path)
                return data
            bad_format = True
        if bad_format:
            _LOGGER.warning("discard malformed preferences at %s", self.path)
            with suppress(OSError):
                self.remove()
        return None

    def write(self, content: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as file_handler:
                json.dump(content, file_handler, sort_keys=True, indent=2)
            os.replace(tmp, self.path)
        except BaseException:
            with suppress(OSError):
                Path(tmp).unlink()
            raise
        _LOGGER.debug("wrote preferences at %s", self.path)

    def remove(self) -> None:
        with suppress(OSError):
            self.path.unlink()
        _LOGGER.debug("removed preferences at %s", self.path)

    @contextmanager
    def locked(self) -> Generator[None]:
        from filelock import FileLock  # noqa: PLC0415

        self._lock_file.parent.mkdir(parents=True, exist_ok=True)
        with FileLock(str(self._lock_file)):
            yield


class MemoryPreferenceStore:
    """Store living in process memory, for hosts that persist the record themselves."""

    def __init__(self, content: dict | None = None) -> None:
        self._content = None if content is None else dict(content)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._content!r})"

    def exists(self) -> bool:
        return self._content is not None

    def read(self) -> dict | None:
        return None if self._content is None else dict(self._content)

    def write(self, content: dict) -> None:
        self._content = dict(content)

    def remove(self) -> None:
        self._content = None

    @contextmanager
    def locked(self) -> Generator[None]:  # noqa: PLR6301
        yield


def default_store(env: Mapping[str, str] | None = None) -> DiskPreferenceStore:
    return DiskPreferenceStore(preferences_file(env))


def load_preferences(store: PreferenceStore | None = None) -> PythonPreferences | None:
    """The stored preferences, ``None`` when nothing was ever stored."""
    store = default_store() if store is None else store
    with store.locked():
        raw = store.read() if store.exists() else None
    if not raw:
        return None
    return PythonPreferences.from_dict(raw)


def set_preferences(
    prefs: PythonPreferences | None = None,
    store: PreferenceStore | None = None,
    *,
    python: str | None = None,
    inprocess: bool = False,
    conda: bool = False,
    revalidate: bool = True,
) -> PythonPreferences:
    """
    Replace the stored record with *prefs* (or one built from the keyword arguments).

    When *revalidate* is set a fresh interpreter reloads the record and checks the resulting configuration; a failing
    check is reported as a warning, the record stays written.

    :raises PreconditionError: *prefs* and keyword values were both given
    """
    if prefs is None:
        prefs = PythonPreferences(python=python, inprocess=inprocess, conda=conda)
    elif python is not None or inprocess or conda:
        msg = "pass either a PythonPreferences or the python, inprocess and conda keywords, not both"
        raise PreconditionError(msg)
    store = default_store() if store is None else store
    with store.locked():
        store.write(prefs.to_dict())
    _LOGGER.info("saved python preferences %r in %r", prefs, store)
    if revalidate:
        from ._reinvoke import run_entry_point  # noqa: PLC0415

        if (code := run_entry_point("assert_configured", store)) != 0:
            _LOGGER.warning("python preferences saved in %r are not usable (exit code %d)", store, code)
    return prefs


def use_system(python: str = "python3", store: PreferenceStore | None = None) -> PythonPreferences:
    return set_preferences(store=store, python=python)


def use_conda(store: PreferenceStore | None = None) -> PythonPreferences:
    return set_preferences(store=store, conda=True)


def use_inprocess(store: PreferenceStore | None = None) -> PythonPreferences:
    return set_preferences(store=store, inprocess=True)


__all__ = [
    "DiskPreferenceStore",
    "MemoryPreferenceStore",
    "PreferenceStore",
    "PythonPreferences",
    "default_store",
    "load_preferences",
    "set_preferences",
    "use_conda",
    "use_inprocess",
    "use_system",
]
