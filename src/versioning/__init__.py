"""Version resolution package.

- version.py / ranges.py: version values and the requirement language
- models.py: packages, releases and dependencies
- parser.py: exact-pin detection and CLI token parsing
- cache.py, provider.py, root.py: metadata cache and resolution policy
- solver/: the PubGrub version solver
- service.py: resolve_versions(), the public entry point
"""

from .errors import (  # noqa: F401
    FetchError,
    InvalidRequirementError,
    InvalidVersionError,
    LockConflict,
    PackageNotFoundError,
    ProviderFailure,
    ResolutionError,
    ResolutionFailure,
)
from .models import Dependency, Package, Release, RetirementReason, RetirementStatus  # noqa: F401
from .ranges import Range, VersionSet  # noqa: F401
from .version import Version, parse_version  # noqa: F401
from .service import resolve_versions  # noqa: F401

__all__ = [
    # Errors
    "FetchError",
    "InvalidRequirementError",
    "InvalidVersionError",
    "LockConflict",
    "PackageNotFoundError",
    "ProviderFailure",
    "ResolutionError",
    "ResolutionFailure",
    # Models
    "Dependency",
    "Package",
    "Release",
    "RetirementReason",
    "RetirementStatus",
    "Range",
    "Version",
    "VersionSet",
    "parse_version",
    # Entry point
    "resolve_versions",
]
