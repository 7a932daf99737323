"""Discover, persist and validate the Python interpreter and libpython a host process binds to."""

from __future__ import annotations

from importlib.metadata import version

from ._env import Command, conda_python_fullpath, python_env
from ._errors import (
    ConfigurationError,
    LibraryLoadError,
    ParseError,
    PreconditionError,
    PythonPreferencesError,
    SubprocessError,
)
from ._introspect import config_variable, home_directories_of, query_variable, version_of
from ._libpython import find_libpython
from ._preferences import (
    DiskPreferenceStore,
    MemoryPreferenceStore,
    PreferenceStore,
    PythonPreferences,
    load_preferences,
    set_preferences,
    use_conda,
    use_inprocess,
    use_system,
)
from ._resolve import ResolvedPythonConfig, assert_configured, instruction_message, resolve_effective_config
from ._status import status, status_inprocess
from ._version import PythonVersion

__version__ = version("python-preferences")

__all__ = [
    "Command",
    "ConfigurationError",
    "DiskPreferenceStore",
    "LibraryLoadError",
    "MemoryPreferenceStore",
    "ParseError",
    "PreconditionError",
    "PreferenceStore",
    "PythonPreferences",
    "PythonPreferencesError",
    "PythonVersion",
    "ResolvedPythonConfig",
    "SubprocessError",
    "__version__",
    "assert_configured",
    "conda_python_fullpath",
    "config_variable",
    "find_libpython",
    "home_directories_of",
    "instruction_message",
    "load_preferences",
    "python_env",
    "query_variable",
    "resolve_effective_config",
    "set_preferences",
    "status",
    "status_inprocess",
    "use_conda",
    "use_inprocess",
    "use_system",
    "version_of",
]
