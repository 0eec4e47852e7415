"""Lazily filled package metadata cache used during a single resolution."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, Iterable, List, Optional

from common.logging_utils import Timer, extra_context, is_debug_enabled
from registry.fetcher import PackageFetcher

from .errors import FetchError, PackageNotFoundError, ProviderFailure
from .models import Package, Release

logger = logging.getLogger(__name__)


def order_releases(releases: Iterable[Release]) -> List[Release]:
    """Return releases newest first with every prerelease moved to the end.

    Relative order within the stable and prerelease groups is preserved, so
    "first matching version" always prefers a stable release.
    """
    ordered = sorted(releases, key=lambda r: r.version, reverse=True)
    return [r for r in ordered if not r.is_prerelease()] + [
        r for r in ordered if r.is_prerelease()
    ]


class PackageCache:
    """Package name to Package store, filled on demand through a fetcher.

    Owned by one resolution call; not safe to share between concurrent
    resolutions.
    """

    def __init__(self, fetcher: PackageFetcher, packages: Optional[Dict[str, Package]] = None):
        """Initialize the cache.

        Args:
            fetcher: Capability used for names not yet cached.
            packages: Pre-supplied packages that bypass the fetcher.
        """
        self._fetcher = fetcher
        self._packages: Dict[str, Package] = {}
        for package in (packages or {}).values():
            self.insert(package)

    def __contains__(self, name: str) -> bool:
        return name in self._packages

    def get(self, name: str) -> Optional[Package]:
        return self._packages.get(name)

    def insert(self, package: Package) -> None:
        """Store a package with its releases ordered and de-duplicated."""
        seen = set()
        unique: List[Release] = []
        for release in package.releases:
            # Build metadata does not affect precedence.
            version = release.version
            key = (version.major, version.minor, version.patch, version.prerelease)
            if key in seen:
                logger.warning(
                    "Ignoring duplicate release %s of %s", release.version, package.name
                )
                continue
            seen.add(key)
            unique.append(release)
        self._packages[package.name] = replace(package, releases=order_releases(unique))

    def ensure_fetched(self, name: str) -> Package:
        """Fetch and cache ``name`` unless it is already cached.

        Raises:
            PackageNotFoundError: If the fetcher does not know the package.
            ProviderFailure: If the fetcher fails for any other reason. The
                cache is left unchanged so a later call may retry.
        """
        package = self._packages.get(name)
        if package is not None:
            return package

        with Timer() as timer:
            try:
                package = self._fetcher.fetch(name)
            except PackageNotFoundError:
                # Unknown packages are the provider's concern, not a fetch failure.
                raise
            except FetchError as exc:
                raise ProviderFailure(name, str(exc)) from exc

        if package.name != name:
            raise ProviderFailure(name, f"registry returned package '{package.name}'")
        self.insert(package)
        package = self._packages[name]
        if is_debug_enabled(logger):
            logger.debug(
                "Fetched package metadata",
                extra=extra_context(
                    event="fetch",
                    component="package_cache",
                    action="ensure_fetched",
                    outcome="success",
                    package=name,
                    releases=len(package.releases),
                    duration_ms=timer.duration_ms(),
                ),
            )
        return package
