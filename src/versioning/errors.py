"""Error types raised while resolving package versions."""

from __future__ import annotations

from typing import Any, Optional


class InvalidVersionError(ValueError):
    """Raised when a version string cannot be parsed."""


class InvalidRequirementError(ValueError):
    """Raised when a requirement string cannot be parsed."""


class FetchError(Exception):
    """Raised by a package fetcher when package metadata cannot be retrieved."""


class PackageNotFoundError(FetchError):
    """Raised by a package fetcher when the registry has no such package."""

    def __init__(self, package: str):
        self.package = package
        super().__init__(f"Package '{package}' not found")


class ResolutionError(Exception):
    """Base class for every error a resolve call can raise."""


class LockConflict(ResolutionError):
    """A locked version does not satisfy an explicit root requirement."""

    def __init__(self, package: str, requirement: str, version: Any):
        self.package = package
        self.requirement = requirement
        self.version = version
        super().__init__(
            f"{package} is specified with the requirement `{requirement}`, "
            f"but it is locked to {version}, which is incompatible."
        )


class ResolutionFailure(ResolutionError):
    """No assignment of versions satisfies the requirements.

    When raised by the solver, ``incompatibility`` holds the terminal
    incompatibility the explanation was derived from.
    """

    def __init__(self, message: str, incompatibility: Optional[Any] = None):
        self.incompatibility = incompatibility
        super().__init__(message)


class ProviderFailure(ResolutionError):
    """The package fetcher failed; the resolution was aborted."""

    def __init__(self, package: str, reason: str):
        self.package = package
        self.reason = reason
        super().__init__(f"Failed to fetch package '{package}': {reason}")
