"""Conflict-driven version solver (PubGrub).

See https://github.com/dart-lang/pub/tree/master/doc/solver.md for a
description of the algorithm.
"""

from __future__ import annotations

import collections
import logging
import time
from typing import Dict, List, Optional, Protocol, Set, Tuple

from common.logging_utils import extra_context, is_debug_enabled

from ..errors import ResolutionFailure
from ..ranges import VersionSet
from ..version import Version
from .failure import SolveFailure
from .incompatibility import (
    ConflictCause,
    Incompatibility,
    NoVersionsCause,
    RootCause,
    UnavailableCause,
)
from .partial_solution import PartialSolution
from .term import SetRelation, Term

logger = logging.getLogger(__name__)

_conflict = object()


class SolverProvider(Protocol):
    """What the solver asks of its environment."""

    def choose_package_version(
        self, candidates: List[Tuple[str, VersionSet]]
    ) -> Tuple[str, Optional[Version]]:
        """Pick the next package to decide and the version to try.

        Returns the package name and None when no version is permitted.
        """
        ...

    def get_dependencies(self, package: str, version: Version) -> Optional[Dict[str, VersionSet]]:
        """Return the dependencies of a version, or None if it is unavailable."""
        ...


class VersionSolver:
    """
    Finds a set of package versions that satisfies the root package's
    dependencies, or raises SolveFailure explaining why none exists.
    """

    def __init__(self, root: str, root_version: Version, provider: SolverProvider):
        self._root = root
        self._root_version = root_version
        self._provider = provider
        self._incompatibilities: Dict[str, List[Incompatibility]] = {}
        self._contradicted_incompatibilities: Set[Incompatibility] = set()
        self._contradicted_incompatibilities_by_level: Dict[int, Set[Incompatibility]] = (
            collections.defaultdict(set)
        )
        self._solution = PartialSolution()

    def solve(self) -> Dict[str, Version]:
        """Return the selected version of every package, the root included."""
        start = time.time()

        self._add_incompatibility(
            Incompatibility(
                [Term(self._root, VersionSet.exact(self._root_version), False)],
                RootCause(),
                root=self._root,
            )
        )

        try:
            next_package: Optional[str] = self._root
            while next_package is not None:
                self._propagate(next_package)
                next_package = self._choose_package_version()

            return self._solution.decisions
        finally:
            if is_debug_enabled(logger):
                logger.debug(
                    "Version solving took %.3f seconds, tried %d solutions",
                    time.time() - start,
                    self._solution.attempted_solutions,
                    extra=extra_context(
                        event="solve_complete",
                        component="version_solver",
                        action="solve",
                        attempts=self._solution.attempted_solutions,
                    ),
                )

    def _propagate(self, package: str) -> None:
        """Unit-propagate the incompatibilities transitively related to ``package``."""
        changed = {package}
        while changed:
            package = changed.pop()

            # Newer incompatibilities are more general, so look at them first.
            for incompatibility in reversed(self._incompatibilities.get(package, [])):
                if incompatibility in self._contradicted_incompatibilities:
                    continue

                result = self._propagate_incompatibility(incompatibility)

                if result is _conflict:
                    root_cause = self._resolve_conflict(incompatibility)

                    # Backjumping erased the assignments that produced [changed].
                    changed.clear()
                    result = self._propagate_incompatibility(root_cause)
                    assert result is not None
                    assert result is not _conflict
                    changed.add(result)
                    break

                if result is not None:
                    changed.add(result)

    def _propagate_incompatibility(self, incompatibility: Incompatibility):
        """
        Derive the negation of the only unsatisfied term, if there is one.

        Returns _conflict when the solution satisfies every term, the name of
        the derived package when exactly one term was inconclusive and None
        otherwise.
        """
        unsatisfied: Optional[Term] = None

        for term in incompatibility.terms:
            relation = self._solution.relation(term)

            if relation == SetRelation.DISJOINT:
                self._contradicted_incompatibilities.add(incompatibility)
                self._contradicted_incompatibilities_by_level[
                    self._solution.decision_level
                ].add(incompatibility)
                return None
            if relation == SetRelation.OVERLAPPING:
                if unsatisfied is not None:
                    return None
                unsatisfied = term

        if unsatisfied is None:
            return _conflict

        self._contradicted_incompatibilities.add(incompatibility)
        self._contradicted_incompatibilities_by_level[
            self._solution.decision_level
        ].add(incompatibility)

        adverb = "not " if unsatisfied.positive else ""
        self._log(f"derived: {adverb}{unsatisfied.package} {unsatisfied.versions}", "derived")

        self._solution.derive(
            unsatisfied.package, unsatisfied.versions, not unsatisfied.positive, incompatibility
        )
        return unsatisfied.package

    def _resolve_conflict(self, incompatibility: Incompatibility) -> Incompatibility:
        """
        Build the root cause of a satisfied incompatibility and backjump.

        Returns an incompatibility that, after backtracking, lets
        _propagate() derive a new assignment avoiding the conflict.
        """
        self._log(f"conflict: {incompatibility}", "conflict")

        new_incompatibility = False
        while not incompatibility.is_failure():
            most_recent_term: Optional[Term] = None
            most_recent_satisfier = None
            difference: Optional[Term] = None

            # Level 1 is where the root was selected; stopping there keeps
            # root references close to the final conclusion.
            previous_satisfier_level = 1

            for term in incompatibility.terms:
                satisfier = self._solution.satisfier(term)

                if most_recent_satisfier is None:
                    most_recent_term = term
                    most_recent_satisfier = satisfier
                elif most_recent_satisfier.index < satisfier.index:
                    previous_satisfier_level = max(
                        previous_satisfier_level, most_recent_satisfier.decision_level
                    )
                    most_recent_term = term
                    most_recent_satisfier = satisfier
                    difference = None
                else:
                    previous_satisfier_level = max(
                        previous_satisfier_level, satisfier.decision_level
                    )

                if most_recent_term is term:
                    # The satisfier may only cover part of the term; the rest
                    # was satisfied by an earlier assignment.
                    difference = most_recent_satisfier.difference(most_recent_term)
                    if difference is not None:
                        previous_satisfier_level = max(
                            previous_satisfier_level,
                            self._solution.satisfier(difference.inverse).decision_level,
                        )

            assert most_recent_satisfier is not None
            if (
                previous_satisfier_level < most_recent_satisfier.decision_level
                or most_recent_satisfier.cause is None
            ):
                for level in range(self._solution.decision_level, previous_satisfier_level, -1):
                    if level in self._contradicted_incompatibilities_by_level:
                        self._contradicted_incompatibilities.difference_update(
                            self._contradicted_incompatibilities_by_level.pop(level)
                        )

                self._solution.backtrack(previous_satisfier_level)
                if new_incompatibility:
                    self._add_incompatibility(incompatibility)

                return incompatibility

            # Combine with the incompatibility that caused the satisfier.
            new_terms = [term for term in incompatibility.terms if term is not most_recent_term]
            for term in most_recent_satisfier.cause.terms:
                if term.package != most_recent_satisfier.package:
                    new_terms.append(term)

            # The part of the satisfier outside the term is still a premise.
            if difference is not None:
                new_terms.append(difference.inverse)

            incompatibility = Incompatibility(
                new_terms,
                ConflictCause(incompatibility, most_recent_satisfier.cause),
                root=self._root,
            )
            new_incompatibility = True

            partially = "" if difference is None else " partially"
            self._log(
                f"! {most_recent_term} is{partially} satisfied by {most_recent_satisfier}",
                "conflict",
            )
            self._log(f'! which is caused by "{most_recent_satisfier.cause}"', "conflict")
            self._log(f"! thus: {incompatibility}", "conflict")

        raise SolveFailure(incompatibility)

    def _choose_package_version(self) -> Optional[str]:
        """
        Try to select a version of a required package.

        Returns the name of the package whose incompatibilities should be
        propagated next, or None when every required package is decided.
        """
        unsatisfied = self._solution.unsatisfied
        if not unsatisfied:
            return None

        package, version = self._provider.choose_package_version(
            [(term.package, term.versions) for term in unsatisfied]
        )
        allowed = next(term.versions for term in unsatisfied if term.package == package)

        if version is None:
            self._add_incompatibility(
                Incompatibility([Term(package, allowed, True)], NoVersionsCause(), root=self._root)
            )
            return package

        dependencies = self._provider.get_dependencies(package, version)
        if dependencies is None:
            self._add_incompatibility(
                Incompatibility(
                    [Term(package, VersionSet.exact(version), True)],
                    UnavailableCause(),
                    root=self._root,
                )
            )
            return package

        if package in dependencies:
            raise ResolutionFailure(f"Package '{package}' {version} depends on itself.")

        conflict = False
        for dependency, requirement in dependencies.items():
            incompatibility = Incompatibility.for_dependency(
                package, version, dependency, requirement, root=self._root
            )
            self._add_incompatibility(incompatibility)

            # Selecting this version would already violate the dependency.
            # Keep adding facts and let propagation pick a better version.
            conflict = conflict or all(
                term.package == package or self._solution.satisfies(term)
                for term in incompatibility.terms
            )

        if not conflict:
            self._solution.decide(package, version)
            self._log(f"selecting {package} ({version})", "selecting")

        return package

    def _add_incompatibility(self, incompatibility: Incompatibility) -> None:
        self._log(f"fact: {incompatibility}", "fact")

        for term in incompatibility.terms:
            bucket = self._incompatibilities.setdefault(term.package, [])
            if incompatibility not in bucket:
                bucket.append(incompatibility)

    def _log(self, text: str, event: str) -> None:
        if is_debug_enabled(logger):
            logger.debug(
                text,
                extra=extra_context(
                    event=event,
                    component="version_solver",
                    attempt=self._solution.attempted_solutions,
                ),
            )
