"""Public entry point for resolving package versions."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Mapping, Optional, Tuple

from common.logging_utils import Timer, extra_context
from registry.fetcher import PackageFetcher

from .cache import PackageCache
from .errors import ResolutionFailure
from .models import Package, Release
from .parser import parse_exact_version
from .provider import DependencyProvider
from .ranges import Range
from .root import root_dependencies
from .solver import VersionSolver
from .version import ROOT_VERSION, Version

logger = logging.getLogger(__name__)


def resolve_versions(
    fetcher: PackageFetcher,
    provided_packages: Optional[Mapping[str, Package]],
    root_name: str,
    dependencies: Iterable[Tuple[str, Range]],
    locked: Optional[Mapping[str, Version]] = None,
) -> Dict[str, Version]:
    """Resolve root requirements into one consistent version per package.

    Args:
        fetcher: Capability used to retrieve packages not in ``provided_packages``.
        provided_packages: Packages that bypass the fetcher (e.g. local paths).
        root_name: Name of the synthetic root package.
        dependencies: Explicit root requirements as (name, Range) pairs.
        locked: Versions from a previous resolution to preserve.

    Returns:
        Mapping of package name to selected version, without the root.

    Raises:
        LockConflict: If a locked version contradicts an explicit requirement.
        ResolutionFailure: If no assignment satisfies the requirements.
        ProviderFailure: If the fetcher fails.
    """
    locked = dict(locked or {})
    logger.info(
        "resolving_versions",
        extra=extra_context(
            event="resolving_versions",
            component="resolver",
            action="resolve",
            root=root_name,
            locked=len(locked),
        ),
    )

    requirements = root_dependencies(dependencies, locked)

    # Must run on the raw text: normalization loses the exact/compatible distinction.
    exact_deps: Dict[str, Version] = {}
    for name, dependency in requirements.items():
        version = parse_exact_version(dependency.requirement.raw)
        if version is not None:
            exact_deps[name] = version

    root = Package(
        name=root_name,
        releases=[Release(version=ROOT_VERSION, requirements=requirements)],
        repository="local",
    )
    packages = dict(provided_packages or {})
    packages[root_name] = root

    cache = PackageCache(fetcher, packages)
    provider = DependencyProvider(cache, root_name, requirements, locked, exact_deps)

    with Timer() as timer:
        try:
            solution = VersionSolver(root_name, ROOT_VERSION, provider).solve()
        except ResolutionFailure:
            missing = provider.missing
            if missing:
                logger.warning(
                    "Packages not found in the registry: %s",
                    ", ".join(sorted(missing)),
                    extra=extra_context(
                        event="resolution_failed",
                        component="resolver",
                        action="resolve",
                        outcome="missing_packages",
                        missing=len(missing),
                    ),
                )
            raise
    solution.pop(root_name, None)

    logger.info(
        "Resolved %d packages",
        len(solution),
        extra=extra_context(
            event="resolved_versions",
            component="resolver",
            action="resolve",
            outcome="success",
            packages=len(solution),
            duration_ms=timer.duration_ms(),
        ),
    )
    return solution
