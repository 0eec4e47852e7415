"""Data models for packages, releases and requirements."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from .ranges import Range
from .version import Version, is_prerelease


class RetirementReason(Enum):
    """Why a release was retired by its publisher."""
    OTHER = "other"
    INVALID = "invalid"
    SECURITY = "security"
    DEPRECATED = "deprecated"
    RENAMED = "renamed"

    @classmethod
    def from_value(cls, value: Optional[str]) -> "RetirementReason":
        """Map a registry string onto a reason; unknown values become OTHER."""
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.OTHER


@dataclass(frozen=True)
class RetirementStatus:
    """Marks a release as unfit for new selection."""
    reason: RetirementReason
    message: str = ""


@dataclass
class Dependency:
    """A requirement on another package, as declared by a release or the root."""
    requirement: Range
    optional: bool = False
    app: Optional[str] = None
    repository: Optional[str] = None


@dataclass
class Release:
    """One published version of a package."""
    version: Version
    requirements: Dict[str, Dependency] = field(default_factory=dict)
    retirement_status: Optional[RetirementStatus] = None
    outer_checksum: bytes = b""

    def is_retired(self) -> bool:
        return self.retirement_status is not None

    def is_prerelease(self) -> bool:
        return is_prerelease(self.version)


@dataclass
class Package:
    """A named package and its known releases."""
    name: str
    releases: List[Release] = field(default_factory=list)
    repository: str = "hexpm"

    def get_release(self, version: Version) -> Optional[Release]:
        for release in self.releases:
            if release.version == version:
                return release
        return None


@dataclass
class PackageRequest:
    """A root requirement collected from the command line or a caller."""
    name: str
    requirement: Range
