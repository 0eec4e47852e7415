"""Version values for Hex-style packages.

Versions are ``semantic_version.Version`` instances: ``major.minor.patch``
with an optional ``-prerelease`` label and ``+build`` metadata. A prerelease
sorts below the release sharing its numeric triple.
"""

from __future__ import annotations

import re
from typing import Optional, Tuple

import semantic_version

from .errors import InvalidVersionError

Version = semantic_version.Version

# Operand of a requirement: one to three numeric parts, optional pre/build.
_OPERAND_RE = re.compile(
    r"^(\d+)(?:\.(\d+))?(?:\.(\d+))?"
    r"(?:-([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)

ROOT_VERSION = Version("0.0.0")


def parse_version(text: str) -> Version:
    """Parse a full ``major.minor.patch[-pre][+build]`` version.

    Raises:
        InvalidVersionError: If the text is not a strict semantic version.
    """
    if not isinstance(text, str):
        raise InvalidVersionError(f"Invalid version: {text!r}")
    try:
        return Version(text.strip())
    except ValueError as exc:
        raise InvalidVersionError(f"Invalid version: '{text}'") from exc


def parse_operand(text: str) -> Tuple[Version, int]:
    """Parse a possibly partial version used inside a requirement.

    Returns the version (missing parts default to 0) and how many numeric
    parts were written, which ``~>`` needs to pick its upper bound.
    """
    match = _OPERAND_RE.match(text.strip())
    if not match:
        raise InvalidVersionError(f"Invalid version: '{text}'")
    major, minor, patch, pre, build = match.groups()
    parts = 1 + (minor is not None) + (patch is not None)
    try:
        version = Version(
            major=int(major),
            minor=int(minor or 0),
            patch=int(patch or 0),
            prerelease=tuple(pre.split(".")) if pre else (),
            build=tuple(build.split(".")) if build else (),
        )
    except ValueError as exc:
        raise InvalidVersionError(f"Invalid version: '{text}'") from exc
    return version, parts


def is_prerelease(version: Version) -> bool:
    """Return True if the version carries a prerelease label."""
    return bool(version.prerelease)


def try_parse_version(text: Optional[str]) -> Optional[Version]:
    """Parse a version, returning None instead of raising."""
    if text is None:
        return None
    try:
        return parse_version(text)
    except InvalidVersionError:
        return None
