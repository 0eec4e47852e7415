"""In-memory and file-backed package registries.

Useful for offline resolution and as a test fixture. A registry file is YAML
(or JSON, which YAML accepts) shaped like::

    packages:
      gleam_stdlib:
        releases:
          - version: 0.1.0
          - version: 0.2.0
            requirements:
              gleam_erlang: ">= 0.1.0"
            retired:
              reason: security
              message: It's bad
"""
from __future__ import annotations

import copy
import logging
from typing import Any, Dict, Mapping, Optional

import yaml

from common.logging_utils import extra_context, is_debug_enabled
from versioning.errors import FetchError, PackageNotFoundError
from versioning.models import (
    Dependency,
    Package,
    Release,
    RetirementReason,
    RetirementStatus,
)
from versioning.ranges import Range
from versioning.version import parse_version

logger = logging.getLogger(__name__)


class LocalPackageFetcher:
    """Serve packages from a mapping of name to Package."""

    def __init__(self, packages: Optional[Mapping[str, Package]] = None):
        self._packages: Dict[str, Package] = dict(packages or {})
        self.fetch_count = 0

    def add(self, package: Package) -> None:
        self._packages[package.name] = package

    def fetch(self, name: str) -> Package:
        self.fetch_count += 1
        package = self._packages.get(name)
        if is_debug_enabled(logger):
            logger.debug(
                "Local registry lookup",
                extra=extra_context(
                    event="fetch",
                    component="local_registry",
                    action="fetch",
                    outcome="hit" if package is not None else "not_found",
                    package=name,
                ),
            )
        if package is None:
            raise PackageNotFoundError(name)
        return copy.deepcopy(package)


def _parse_dependency(name: str, value: Any) -> Dependency:
    if isinstance(value, str):
        return Dependency(requirement=Range(value))
    if isinstance(value, dict) and "requirement" in value:
        return Dependency(
            requirement=Range(str(value["requirement"])),
            optional=bool(value.get("optional", False)),
            app=value.get("app"),
            repository=value.get("repository"),
        )
    raise FetchError(f"Invalid requirement for dependency '{name}': {value!r}")


def _parse_release(package: str, data: Any) -> Release:
    if not isinstance(data, dict) or "version" not in data:
        raise FetchError(f"Invalid release entry for '{package}': {data!r}")
    try:
        version = parse_version(str(data["version"]))
    except ValueError as exc:
        raise FetchError(f"Invalid release of '{package}': {exc}") from exc

    requirements = {
        dep: _parse_dependency(dep, value)
        for dep, value in (data.get("requirements") or {}).items()
    }

    retirement = None
    retired = data.get("retired")
    if retired:
        if isinstance(retired, dict):
            retirement = RetirementStatus(
                reason=RetirementReason.from_value(retired.get("reason")),
                message=str(retired.get("message", "")),
            )
        else:
            retirement = RetirementStatus(reason=RetirementReason.OTHER)

    checksum = data.get("checksum") or ""
    try:
        outer_checksum = bytes.fromhex(str(checksum))
    except ValueError as exc:
        raise FetchError(f"Invalid checksum for '{package}' {version}") from exc

    return Release(
        version=version,
        requirements=requirements,
        retirement_status=retirement,
        outer_checksum=outer_checksum,
    )


def parse_registry(document: Any) -> Dict[str, Package]:
    """Build packages from a parsed registry document.

    Raises:
        FetchError: If the document does not have the expected shape.
    """
    if not isinstance(document, dict) or not isinstance(document.get("packages"), dict):
        raise FetchError("Registry document must contain a 'packages' mapping")
    packages: Dict[str, Package] = {}
    for name, body in document["packages"].items():
        releases = (body or {}).get("releases") or []
        packages[name] = Package(
            name=name,
            releases=[_parse_release(name, r) for r in releases],
            repository="local",
        )
    return packages


def load_registry_file(path: str) -> LocalPackageFetcher:
    """Load a YAML/JSON registry file into a LocalPackageFetcher.

    Raises:
        OSError: If the file cannot be read.
        FetchError: If the content is not a valid registry document.
    """
    with open(path, encoding="utf-8") as fh:
        try:
            document = yaml.safe_load(fh)
        except yaml.YAMLError as exc:
            raise FetchError(f"Registry file {path} is not valid YAML/JSON: {exc}") from exc
    packages = parse_registry(document)
    logger.info("Loaded %d packages from registry file %s", len(packages), path)
    return LocalPackageFetcher(packages)
