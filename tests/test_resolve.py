from __future__ import annotations

import inspect
import json
import logging
import os
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from python_preferences import (
    ConfigurationError,
    MemoryPreferenceStore,
    PythonVersion,
    ResolvedPythonConfig,
    SubprocessError,
    assert_configured,
    conda_python_fullpath,
    instruction_message,
    resolve_effective_config,
)
from python_preferences._compat import IS_WIN
from python_preferences._resolve import REQUIRED_FIELDS, main_assert_configured
from python_preferences._settings import CONDA_ROOT_ENV, PREFERENCES_FILE_ENV

if TYPE_CHECKING:
    from unittest.mock import MagicMock

    from pytest_mock import MockerFixture

COMPLETE = ResolvedPythonConfig(
    python="python3",
    python_fullpath="/usr/bin/python3",
    libpython="/usr/lib/libpython3.11.so",
    python_version=PythonVersion.from_string("3.11.4"),
    python_home="/usr:/usr",
)


@pytest.fixture
def probes(mocker: MockerFixture) -> dict[str, MagicMock]:
    return {
        "find_libpython": mocker.patch(
            "python_preferences._resolve.find_libpython",
            return_value=("/usr/lib/libpython3.9.so", object()),
        ),
        "version_of": mocker.patch(
            "python_preferences._resolve.version_of",
            return_value=PythonVersion.from_string("3.9.18"),
        ),
        "home_directories_of": mocker.patch(
            "python_preferences._resolve.home_directories_of",
            return_value="/usr:/usr",
        ),
    }


def _exe_name(name: str) -> str:
    return f"{name}.exe" if IS_WIN else name


def test_inprocess_skips_discovery(mocker: MockerFixture, probes: dict[str, MagicMock]) -> None:
    popen = mocker.patch("python_preferences._introspect.Popen")
    which = mocker.patch("python_preferences._resolve.shutil.which")
    store = MemoryPreferenceStore({"inprocess": True, "python": "/usr/bin/python3"})

    config = resolve_effective_config(store)

    assert config == ResolvedPythonConfig(python="/usr/bin/python3", inprocess=True)
    assert config.missing_fields() == ["python_fullpath", "libpython", "python_version", "python_home"]
    popen.assert_not_called()
    which.assert_not_called()
    for probe in probes.values():
        probe.assert_not_called()


def test_conda_overrides_explicit_python(
    tmp_path: Path,
    make_exe: object,
    probes: dict[str, MagicMock],
    empty_path_env: dict[str, str],
) -> None:
    env = {**empty_path_env, CONDA_ROOT_ENV: str(tmp_path / "conda")}
    conda_python = conda_python_fullpath(env)
    make_exe(tmp_path / "conda" / ("" if IS_WIN else "bin") / _exe_name("python"))  # type: ignore[operator]
    store = MemoryPreferenceStore({"conda": True, "python": "/usr/bin/python3.9"})

    config = resolve_effective_config(store, env)

    assert config.conda is True
    assert config.python == conda_python
    assert config.python_fullpath == conda_python
    probes["find_libpython"].assert_called_once_with(conda_python, env=env)


def test_explicit_python_resolves(
    tmp_path: Path,
    make_exe: object,
    probes: dict[str, MagicMock],
    empty_path_env: dict[str, str],
) -> None:
    python = str(make_exe(tmp_path / "bin" / _exe_name("python3.9")))  # type: ignore[operator]
    store = MemoryPreferenceStore({"python": python})

    config = resolve_effective_config(store, empty_path_env)

    assert config == ResolvedPythonConfig(
        python=python,
        python_fullpath=python,
        libpython="/usr/lib/libpython3.9.so",
        python_version=PythonVersion.from_string("3.9.18"),
        python_home="/usr:/usr",
    )
    assert config.missing_fields() == []
    probes["version_of"].assert_called_once_with(python, empty_path_env)
    probes["home_directories_of"].assert_called_once_with(python, empty_path_env)
    assert_configured(config)


def test_default_python_found_on_path(
    tmp_path: Path,
    make_exe: object,
    probes: dict[str, MagicMock],
    empty_path_env: dict[str, str],
) -> None:
    python = make_exe(tmp_path / "bin" / _exe_name("python3"))  # type: ignore[operator]
    env = {**empty_path_env, "PATH": str(python.parent)}

    config = resolve_effective_config(MemoryPreferenceStore(), env)

    assert config.python == "python3"
    assert config.python_fullpath == str(python)
    assert config.libpython == "/usr/lib/libpython3.9.so"


def test_no_python3_on_path(
    store: object,
    empty_path_env: dict[str, str],
    probes: dict[str, MagicMock],
    caplog: pytest.LogCaptureFixture,
) -> None:
    caplog.set_level(logging.WARNING)

    config = resolve_effective_config(store, empty_path_env)  # type: ignore[arg-type]

    assert config == ResolvedPythonConfig(python="python3")
    assert "cannot find python3 on PATH" in caplog.text
    probes["find_libpython"].assert_not_called()
    with pytest.raises(ConfigurationError) as exc_info:
        assert_configured(config)
    assert str(exc_info.value) == instruction_message()


def test_introspection_failure_leaves_fields_unset(
    tmp_path: Path,
    make_exe: object,
    probes: dict[str, MagicMock],
    empty_path_env: dict[str, str],
    caplog: pytest.LogCaptureFixture,
) -> None:
    python = str(make_exe(tmp_path / _exe_name("python3")))  # type: ignore[operator]
    probes["version_of"].side_effect = SubprocessError("failed with code 1")
    caplog.set_level(logging.ERROR)

    config = resolve_effective_config(MemoryPreferenceStore({"python": python}), empty_path_env)

    assert config.python_fullpath == python
    assert config.libpython == "/usr/lib/libpython3.9.so"
    assert config.python_version is None
    assert config.python_home is None
    probes["home_directories_of"].assert_not_called()
    assert f"failed to configure for {python}" in caplog.text


def test_libpython_not_found(
    tmp_path: Path,
    make_exe: object,
    probes: dict[str, MagicMock],
    empty_path_env: dict[str, str],
) -> None:
    python = str(make_exe(tmp_path / _exe_name("python3")))  # type: ignore[operator]
    probes["find_libpython"].return_value = (None, None)

    config = resolve_effective_config(MemoryPreferenceStore({"python": python}), empty_path_env)

    assert config.libpython is None
    assert config.python_version == PythonVersion.from_string("3.9.18")
    assert config.missing_fields() == ["libpython"]


def test_broken_store_degrades_to_defaults(
    empty_path_env: dict[str, str],
    caplog: pytest.LogCaptureFixture,
) -> None:
    class BrokenStore(MemoryPreferenceStore):
        def read(self) -> dict | None:
            msg = "permission denied"
            raise OSError(msg)

    caplog.set_level(logging.ERROR)
    config = resolve_effective_config(BrokenStore({"python": "x"}), empty_path_env)
    assert config == ResolvedPythonConfig(python="python3")
    assert "failed to load python preferences" in caplog.text


def test_default_store_follows_env_mapping(tmp_path: Path, empty_path_env: dict[str, str]) -> None:
    prefs_file = tmp_path / "elsewhere.json"
    prefs_file.write_text(json.dumps({"inprocess": True}), encoding="utf-8")
    env = {**empty_path_env, PREFERENCES_FILE_ENV: str(prefs_file)}

    Path(os.environ[PREFERENCES_FILE_ENV]).write_text(json.dumps({"python": "ignored"}), encoding="utf-8")

    assert resolve_effective_config(env=env) == ResolvedPythonConfig(inprocess=True)


def test_resolve_running_interpreter(mocker: MockerFixture, empty_path_env: dict[str, str]) -> None:
    mocker.patch("python_preferences._resolve.find_libpython", return_value=(None, None))
    config = resolve_effective_config(MemoryPreferenceStore({"python": sys.executable}), empty_path_env)
    assert config.python == sys.executable
    assert config.python_fullpath is not None
    assert config.python_version is not None
    assert config.python_version.major == 3
    assert config.python_home


@pytest.mark.parametrize("missing", REQUIRED_FIELDS)
def test_assert_configured_any_missing_field(missing: str) -> None:
    config = ResolvedPythonConfig(**{**COMPLETE.to_dict(), missing: None})
    with pytest.raises(ConfigurationError, match="not configured properly"):
        assert_configured(config)


def test_assert_configured_complete() -> None:
    assert_configured(COMPLETE)


def test_assert_configured_resolves_from_store() -> None:
    with pytest.raises(ConfigurationError):
        assert_configured(store=MemoryPreferenceStore({"inprocess": True}))


def test_main_assert_configured_exits(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc_info:
        main_assert_configured(MemoryPreferenceStore({"inprocess": True}))
    assert exc_info.value.code == 1
    assert capsys.readouterr().err == instruction_message()


def test_main_assert_configured_ok(mocker: MockerFixture) -> None:
    mocker.patch("python_preferences._resolve.resolve_effective_config", return_value=COMPLETE)
    main_assert_configured(MemoryPreferenceStore())


def test_instruction_message_names_setters() -> None:
    message = instruction_message()
    for setter in ("use_system", "use_conda", "use_inprocess", "status"):
        assert setter in message


def test_resolve_effective_config_signature() -> None:
    parameters = inspect.signature(resolve_effective_config).parameters
    assert list(parameters) == ["store", "env"]
    assert all(param.default is None for param in parameters.values())
