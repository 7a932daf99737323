"""Semantic version of an interpreter as reported by :func:`platform.python_version`."""

from __future__ import annotations

import re
import sys
from dataclasses import dataclass
from typing import Final

from ._errors import ParseError

_DC_KW = {"frozen": True, "kw_only": True, "slots": True} if sys.version_info >= (3, 10) else {"frozen": True}

_VERSION_RE: Final[re.Pattern[str]] = re.compile(
    r"""
    ^
    (\d+)               # major
    (?:\.(\d+))?        # optional minor
    (?:\.(\d+))?        # optional micro
    (?:(a|b|rc)(\d+))?  # optional pre-release suffix
    (\+.*)?             # optional local marker of builds from a source checkout
    $
    """,
    re.VERBOSE,
)
_PRE_ORDER: Final[dict[str, int]] = {"a": 1, "b": 2, "rc": 3}


@dataclass(**_DC_KW)
class PythonVersion:
    """Parsed ``major.minor.micro[{a|b|rc}N][+]`` interpreter version."""

    version_str: str
    major: int
    minor: int
    micro: int
    pre_type: str | None
    pre_num: int | None
    local: str | None

    @classmethod
    def from_string(cls, version_str: str) -> PythonVersion:
        stripped = version_str.strip()
        if not (match := _VERSION_RE.match(stripped)):
            msg = f"invalid Python version: {version_str!r}"
            raise ParseError(msg)
        return cls(
            version_str=stripped,
            major=int(match.group(1)),
            minor=int(match.group(2)) if match.group(2) else 0,
            micro=int(match.group(3)) if match.group(3) else 0,
            pre_type=match.group(4),
            pre_num=int(match.group(5)) if match.group(5) else None,
            local=match.group(6),
        )

    @property
    def release(self) -> tuple[int, int, int]:
        return self.major, self.minor, self.micro

    def _key(self) -> tuple[tuple[int, int, int], int, int]:
        # final releases sort after every pre-release of the same release
        pre = _PRE_ORDER[self.pre_type] if self.pre_type is not None else len(_PRE_ORDER) + 1
        return self.release, pre, self.pre_num or 0

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PythonVersion):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, PythonVersion):
            return NotImplemented
        return self._key() < other._key()

    def __le__(self, other: object) -> bool:
        if not isinstance(other, PythonVersion):
            return NotImplemented
        return self._key() <= other._key()

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, PythonVersion):
            return NotImplemented
        return self._key() > other._key()

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, PythonVersion):
            return NotImplemented
        return self._key() >= other._key()

    def __str__(self) -> str:
        return self.version_str

    def __repr__(self) -> str:
        return f"PythonVersion('{self.version_str}')"


__all__ = [
    "PythonVersion",
]
