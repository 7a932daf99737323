"""Combine preferences, interpreter introspection and libpython loading into the effective configuration."""

from __future__ import annotations

import logging
import os
import shutil
import sys
from dataclasses import dataclass, fields
from typing import TYPE_CHECKING, Final

from ._env import conda_python_fullpath
from ._errors import ConfigurationError
from ._introspect import home_directories_of, version_of
from ._libpython import find_libpython
from ._preferences import PythonPreferences, default_store, load_preferences

if TYPE_CHECKING:
    from collections.abc import Mapping

    from ._preferences import PreferenceStore
    from ._version import PythonVersion

_DC_KW = {"frozen": True, "kw_only": True, "slots": True} if sys.version_info >= (3, 10) else {"frozen": True}

_LOGGER: Final[logging.Logger] = logging.getLogger(__name__)
DEFAULT_PYTHON: Final[str] = "python3"
REQUIRED_FIELDS: Final[tuple[str, ...]] = ("python", "python_fullpath", "libpython", "python_version", "python_home")


@dataclass(**_DC_KW)
class ResolvedPythonConfig:
    """The interpreter a host should bind to; fields the resolution could not determine are ``None``."""

    python: str | None = None
    inprocess: bool = False
    conda: bool = False
    python_fullpath: str | None = None
    libpython: str | None = None
    python_version: PythonVersion | None = None
    python_home: str | None = None

    def missing_fields(self) -> list[str]:
        return [name for name in REQUIRED_FIELDS if getattr(self, name) is None]

    def to_dict(self) -> dict[str, object]:
        return {field.name: getattr(self, field.name) for field in fields(self)}


def resolve_effective_config(
    store: PreferenceStore | None = None,
    env: Mapping[str, str] | None = None,
) -> ResolvedPythonConfig:
    """
    Resolve the configuration from the stored preferences; never raises.

    In-process mode skips discovery. Otherwise the interpreter is the managed Conda one, the preferred one, or
    ``python3`` in this order. Failures while probing it are logged and leave the remaining fields unset.
    """
    env = os.environ if env is None else env
    try:
        prefs = load_preferences(default_store(env) if store is None else store)
    except Exception:
        _LOGGER.exception("failed to load python preferences from %r", store)
        prefs = None
    if prefs is None:
        prefs = PythonPreferences()
    if prefs.inprocess:
        _LOGGER.debug("in-process python, skip discovery")
        return ResolvedPythonConfig(python=prefs.python, inprocess=True, conda=prefs.conda)

    python_fullpath = libpython = python_version = python_home = None
    if prefs.conda:
        python = python_fullpath = conda_python_fullpath(env)
    else:
        python = prefs.python if prefs.python is not None else DEFAULT_PYTHON
    try:
        python_fullpath = shutil.which(python, path=env.get("PATH"))
        if python_fullpath is not None:
            libpython, _ = find_libpython(python_fullpath, env=env)
            python_version = version_of(python_fullpath, env)
            python_home = home_directories_of(python_fullpath, env)
        else:
            _LOGGER.warning("cannot find %s on PATH", python)
    except Exception:
        _LOGGER.exception("failed to configure for %s", python)

    return ResolvedPythonConfig(
        python=python or python_fullpath,
        inprocess=False,
        conda=prefs.conda,
        python_fullpath=python_fullpath,
        libpython=libpython,
        python_version=python_version,
        python_home=python_home,
    )


def instruction_message() -> str:
    return """\
python-preferences is not configured properly. Choose the interpreter to use with one of:
    python_preferences.use_system("/path/to/python3")
    python_preferences.use_conda()
    python_preferences.use_inprocess()
then check the result with:
    python_preferences.status()
"""


def assert_configured(config: ResolvedPythonConfig | None = None, store: PreferenceStore | None = None) -> None:
    """Raise :class:`ConfigurationError` when any required field of *config* (resolved now if not given) is unset."""
    config = resolve_effective_config(store) if config is None else config
    if missing := config.missing_fields():
        _LOGGER.debug("configuration misses %s", ", ".join(missing))
        raise ConfigurationError(instruction_message())


def main_assert_configured(store: PreferenceStore | None = None) -> None:
    """Process entry point: report a broken configuration as instructions and exit code 1."""
    try:
        assert_configured(store=store)
    except ConfigurationError as exc:
        sys.stderr.write(str(exc))
        sys.exit(1)


__all__ = [
    "DEFAULT_PYTHON",
    "REQUIRED_FIELDS",
    "ResolvedPythonConfig",
    "assert_configured",
    "conda_python_fullpath",
    "instruction_message",
    "main_assert_configured",
    "resolve_effective_config",
]
