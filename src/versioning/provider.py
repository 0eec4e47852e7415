"""Policy layer between the solver and the package metadata cache.

Decides which package to resolve next and which of its versions to try,
hides retired releases that are not locked, and enforces exact pins.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Optional, Set, Tuple

from common.logging_utils import extra_context, is_debug_enabled

from .cache import PackageCache
from .errors import InvalidRequirementError, PackageNotFoundError, ResolutionFailure
from .models import Dependency, Package
from .ranges import VersionSet
from .version import Version

logger = logging.getLogger(__name__)


class DependencyProvider:
    """Answers the solver's version and dependency questions.

    Args:
        cache: Metadata cache; must already hold the root package.
        root: Name of the synthetic root package.
        root_dependencies: Merged root requirements.
        locked: Locked versions supplied by the caller.
        exact_deps: Requirements whose raw text pins a single version.
    """

    def __init__(
        self,
        cache: PackageCache,
        root: str,
        root_dependencies: Mapping[str, Dependency],
        locked: Optional[Mapping[str, Version]] = None,
        exact_deps: Optional[Mapping[str, Version]] = None,
    ):
        self._cache = cache
        self._root = root
        self._root_dependencies = dict(root_dependencies)
        self._locked = dict(locked or {})
        self._exact_deps = dict(exact_deps or {})
        self._missing: Set[str] = set()

    @property
    def missing(self) -> Set[str]:
        """Names the fetcher reported as unknown during this resolution."""
        return set(self._missing)

    def _package(self, name: str) -> Optional[Package]:
        if name in self._missing:
            return None
        try:
            return self._cache.ensure_fetched(name)
        except PackageNotFoundError:
            logger.info("Package %s was not found in the registry", name)
            self._missing.add(name)
            return None

    def permitted_versions(self, name: str, allowed: VersionSet) -> List[Version]:
        """Versions the solver may choose for ``name``, in preference order."""
        package = self._package(name)
        if package is None:
            return []
        exact = self._exact_deps.get(name)
        return [
            release.version
            for release in package.releases
            if allowed.contains(release.version)
            and (exact is None or release.version == exact)
        ]

    def choose_package_version(
        self, candidates: List[Tuple[str, VersionSet]]
    ) -> Tuple[str, Optional[Version]]:
        """Pick the candidate with the fewest permitted versions.

        Ties go to the lexically smallest package name so results do not
        depend on the order the solver lists its candidates.
        """
        if not candidates:
            raise ValueError("No candidate packages to choose from")

        # Fetch everything first so a provider failure aborts before deciding.
        for name, _ in candidates:
            self._package(name)

        best: Optional[Tuple[int, str, List[Version]]] = None
        for name, allowed in candidates:
            versions = self.permitted_versions(name, allowed)
            key = (len(versions), name, versions)
            if best is None or key[:2] < best[:2]:
                best = key

        _, name, versions = best
        chosen = versions[0] if versions else None
        if is_debug_enabled(logger):
            logger.debug(
                "Chose next package",
                extra=extra_context(
                    event="choose_version",
                    component="dependency_provider",
                    package=name,
                    version=str(chosen) if chosen is not None else None,
                    permitted=len(versions),
                ),
            )
        return name, chosen

    def get_dependencies(self, name: str, version: Version) -> Optional[Dict[str, VersionSet]]:
        """Return the dependencies of ``name`` at ``version``.

        Returns None when the version is unknown or retired without a lock
        on exactly that version.

        Raises:
            ResolutionFailure: If a declared requirement cannot be parsed.
        """
        if name == self._root:
            requirements = self._root_dependencies
        else:
            package = self._package(name)
            release = package.get_release(version) if package is not None else None
            if release is None:
                return None
            if release.is_retired() and self._locked.get(name) != version:
                if is_debug_enabled(logger):
                    logger.debug(
                        "Skipping retired release",
                        extra=extra_context(
                            event="retired",
                            component="dependency_provider",
                            package=name,
                            version=str(version),
                            reason=release.retirement_status.reason.value,
                        ),
                    )
                return None
            requirements = release.requirements

        dependencies: Dict[str, VersionSet] = {}
        for dependency, spec in requirements.items():
            try:
                dependencies[dependency] = spec.requirement.to_version_set()
            except InvalidRequirementError as exc:
                raise ResolutionFailure(
                    f"Failed to parse range {spec.requirement} for {dependency} "
                    f"required by {name} {version}: {exc}"
                ) from exc
        return dependencies
