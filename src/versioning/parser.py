"""Token parsing utilities for requirements and locks."""

from typing import Optional, Tuple

from .errors import InvalidRequirementError, InvalidVersionError
from .models import PackageRequest
from .ranges import Range
from .version import Version, parse_version, try_parse_version


def tokenize_rightmost_colon(s: str) -> Tuple[str, Optional[str]]:
    """Return (identifier, spec or None) using the rightmost-colon rule."""
    s = s.strip()
    if ':' not in s:
        return s, None
    parts = s.rsplit(':', 1)
    identifier = parts[0].strip()
    spec_part = parts[1].strip() if len(parts) > 1 else ''
    spec = spec_part if spec_part else None
    return identifier, spec


def parse_exact_version(requirement: str) -> Optional[Version]:
    """Return the version if the raw requirement pins exactly one version.

    A requirement is exact when it starts with ``==`` or with a digit. This
    must run on the raw text: once normalized into a version set the
    distinction between ``1.0.0`` and a compatible range is gone.
    """
    text = requirement.strip()
    first = text[:1]
    if not (text.startswith("==") or (first.isascii() and first.isdigit())):
        return None
    return try_parse_version(text.replace("==", "").strip())


def parse_cli_token(token: str) -> PackageRequest:
    """Parse a ``name[:requirement]`` token into a PackageRequest.

    A missing requirement means any version.

    Raises:
        InvalidRequirementError: If the name is empty or the requirement is invalid.
    """
    name, spec = tokenize_rightmost_colon(token)
    if not name:
        raise InvalidRequirementError(f"Missing package name in '{token}'")
    requirement = Range(spec if spec is not None else "*")
    requirement.to_version_set()
    return PackageRequest(
        name=name,
        requirement=requirement,
    )


def parse_lock_token(token: str) -> Tuple[str, Version]:
    """Parse a ``name:version`` lock token.

    Raises:
        InvalidVersionError: If the version part is missing or not a full version.
    """
    name, spec = tokenize_rightmost_colon(token)
    if not name or spec is None:
        raise InvalidVersionError(f"Expected NAME:VERSION, got '{token}'")
    return name, parse_version(spec)
