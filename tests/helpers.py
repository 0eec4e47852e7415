"""Builders for packages and registries used across the test suite."""

from typing import Dict, Optional

from registry.local import LocalPackageFetcher
from versioning.models import (
    Dependency,
    Package,
    Release,
    RetirementReason,
    RetirementStatus,
)
from versioning.ranges import Range
from versioning.version import parse_version


def make_release(version: str, requirements: Optional[Dict[str, str]] = None, retired: Optional[str] = None) -> Release:
    """Build a release; ``retired`` is the retirement message (reason: security)."""
    return Release(
        version=parse_version(version),
        requirements={
            name: Dependency(requirement=Range(raw))
            for name, raw in (requirements or {}).items()
        },
        retirement_status=(
            RetirementStatus(RetirementReason.SECURITY, retired) if retired else None
        ),
    )


def make_package(name: str, *releases: Release) -> Package:
    return Package(name=name, releases=list(releases))


def make_fetcher(spec: Dict[str, Dict[str, Optional[Dict[str, str]]]]) -> LocalPackageFetcher:
    """Build a fetcher from ``{package: {version: requirements-or-None}}``."""
    return LocalPackageFetcher(
        {
            name: make_package(
                name, *(make_release(v, reqs) for v, reqs in versions.items())
            )
            for name, versions in spec.items()
        }
    )


def gleam_registry() -> LocalPackageFetcher:
    """The small remote registry used by most resolution tests."""
    return LocalPackageFetcher(
        {
            "gleam_stdlib": make_package(
                "gleam_stdlib",
                make_release("0.1.0"),
                make_release("0.2.0"),
                make_release("0.2.2"),
                make_release("0.3.0"),
            ),
            "gleam_otp": make_package(
                "gleam_otp",
                make_release("0.1.0", {"gleam_stdlib": ">= 0.1.0"}),
                make_release("0.2.0", {"gleam_stdlib": ">= 0.1.0"}),
                make_release("0.3.0-rc1", {"gleam_stdlib": ">= 0.1.0"}),
                make_release("0.3.0-rc2", {"gleam_stdlib": ">= 0.1.0"}),
            ),
            "package_with_retired": make_package(
                "package_with_retired",
                make_release("0.1.0"),
                make_release("0.2.0", retired="It's bad"),
            ),
        }
    )
