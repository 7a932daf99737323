"""Environment driven settings with :mod:`platformdirs` defaults."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING, Final

from platformdirs import user_config_path, user_data_path

from ._errors import PreconditionError

if TYPE_CHECKING:
    from collections.abc import Mapping

_LOGGER: Final[logging.Logger] = logging.getLogger(__name__)

APP_NAME: Final[str] = "python-preferences"
PREFERENCES_FILE_ENV: Final[str] = "PYTHON_PREFERENCES_FILE"
CONDA_ROOT_ENV: Final[str] = "PYTHON_PREFERENCES_CONDA_ROOT"
TIMEOUT_ENV: Final[str] = "PYTHON_PREFERENCES_TIMEOUT"


def preferences_file(env: Mapping[str, str] | None = None) -> Path:
    """Location of the persisted preference record."""
    env = os.environ if env is None else env
    if value := env.get(PREFERENCES_FILE_ENV):
        return Path(value).expanduser()
    return user_config_path(APP_NAME) / "preferences.json"


def conda_root(env: Mapping[str, str] | None = None) -> Path:
    """Root directory of the managed Conda installation."""
    env = os.environ if env is None else env
    if value := env.get(CONDA_ROOT_ENV):
        return Path(value).expanduser()
    return user_data_path(APP_NAME) / "conda"


def subprocess_timeout(env: Mapping[str, str] | None = None) -> float | None:
    """Seconds an interpreter subprocess may run; ``None`` waits forever."""
    env = os.environ if env is None else env
    raw = env.get(TIMEOUT_ENV, "").strip()
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        msg = f"{TIMEOUT_ENV} must be a number of seconds, got {raw!r}"
        raise PreconditionError(msg) from None
    if value < 0:
        msg = f"{TIMEOUT_ENV} must not be negative, got {raw!r}"
        raise PreconditionError(msg)
    if value == 0:
        return None
    _LOGGER.debug("interpreter subprocess timeout is %ss", value)
    return value


__all__ = [
    "APP_NAME",
    "CONDA_ROOT_ENV",
    "PREFERENCES_FILE_ENV",
    "TIMEOUT_ENV",
    "conda_root",
    "preferences_file",
    "subprocess_timeout",
]
