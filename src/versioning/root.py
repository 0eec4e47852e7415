"""Merge locked versions and explicit requirements into root dependencies."""

from __future__ import annotations

from typing import Dict, Iterable, Mapping, Tuple

from .errors import InvalidRequirementError, LockConflict, ResolutionFailure
from .models import Dependency
from .ranges import Range
from .version import Version


def root_dependencies(
    requirements: Iterable[Tuple[str, Range]],
    locked: Mapping[str, Version],
) -> Dict[str, Dependency]:
    """Build the root package's requirement map.

    Every locked package starts out pinned to its locked version. An
    explicit requirement replaces the entry for an unlocked package; for a
    locked package it must admit the locked version.

    Raises:
        LockConflict: If a locked version does not satisfy its explicit requirement.
        ResolutionFailure: If a requirement cannot be parsed.
    """
    dependencies: Dict[str, Dependency] = {
        name: Dependency(requirement=Range.exact(version)) for name, version in locked.items()
    }

    for name, requirement in requirements:
        try:
            versions = requirement.to_version_set()
        except InvalidRequirementError as exc:
            raise ResolutionFailure(f"Failed to parse range {requirement}: {exc}") from exc

        locked_version = locked.get(name)
        if locked_version is None:
            dependencies[name] = Dependency(requirement=requirement)
        elif not versions.contains(locked_version):
            raise LockConflict(name, requirement.raw, locked_version)

    return dependencies
