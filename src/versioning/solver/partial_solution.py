"""The solver's current, partial assignment of package versions."""

from __future__ import annotations

from typing import Dict, List, Optional

from ..ranges import VersionSet
from ..version import Version
from .incompatibility import Incompatibility
from .term import SetRelation, Term


class Assignment(Term):
    """A term in the partial solution, with the bookkeeping conflict resolution needs."""

    def __init__(
        self,
        package: str,
        versions: VersionSet,
        positive: bool,
        decision_level: int,
        index: int,
        cause: Optional[Incompatibility] = None,
    ):
        super().__init__(package, versions, positive)
        self.decision_level = decision_level
        self.index = index
        self.cause = cause

    @classmethod
    def decision(cls, package: str, version: Version, decision_level: int, index: int) -> "Assignment":
        return cls(package, VersionSet.exact(version), True, decision_level, index)

    @classmethod
    def derivation(
        cls,
        package: str,
        versions: VersionSet,
        positive: bool,
        cause: Incompatibility,
        decision_level: int,
        index: int,
    ) -> "Assignment":
        return cls(package, versions, positive, decision_level, index, cause)

    def is_decision(self) -> bool:
        return self.cause is None


class PartialSolution:
    """
    A list of assignments that are either decisions or derivations.

    Decisions pick a single version for a package; derivations are terms
    implied by the incompatibilities and earlier assignments. The partial
    solution also keeps the intersection of all assignments per package,
    so relations can be answered without walking the list.
    """

    def __init__(self):
        self._assignments: List[Assignment] = []
        self._decisions: Dict[str, Version] = {}
        self._positive: Dict[str, Term] = {}
        self._negative: Dict[str, Term] = {}
        self._attempted_solutions = 1
        self._backtracking = False

    @property
    def decisions(self) -> Dict[str, Version]:
        return dict(self._decisions)

    @property
    def decision_level(self) -> int:
        return len(self._decisions)

    @property
    def attempted_solutions(self) -> int:
        return self._attempted_solutions

    @property
    def unsatisfied(self) -> List[Term]:
        """Positive terms for packages that have no decision yet."""
        return [
            term for term in self._positive.values() if term.package not in self._decisions
        ]

    def decide(self, package: str, version: Version) -> None:
        """Add a decision selecting ``version`` of ``package``."""
        # Only the first decision after a backtrack counts as a new attempt.
        if self._backtracking:
            self._attempted_solutions += 1
        self._backtracking = False
        self._decisions[package] = version

        self._assign(
            Assignment.decision(package, version, self.decision_level, len(self._assignments))
        )

    def derive(self, package: str, versions: VersionSet, positive: bool, cause: Incompatibility) -> None:
        """Add a derivation caused by ``cause``."""
        self._assign(
            Assignment.derivation(
                package, versions, positive, cause, self.decision_level, len(self._assignments)
            )
        )

    def _assign(self, assignment: Assignment) -> None:
        self._assignments.append(assignment)
        self._register(assignment)

    def backtrack(self, decision_level: int) -> None:
        """Drop every assignment made above ``decision_level``."""
        self._backtracking = True

        packages = set()
        while self._assignments[-1].decision_level > decision_level:
            removed = self._assignments.pop()
            packages.add(removed.package)
            if removed.is_decision():
                del self._decisions[removed.package]

        # Re-compute the summary terms for the packages that lost assignments.
        for package in packages:
            self._positive.pop(package, None)
            self._negative.pop(package, None)

        for assignment in self._assignments:
            if assignment.package in packages:
                self._register(assignment)

    def _register(self, assignment: Assignment) -> None:
        name = assignment.package
        old_positive = self._positive.get(name)
        if old_positive is not None:
            value = old_positive.intersect(assignment)
            assert value is not None
            self._positive[name] = value
            return

        old_negative = self._negative.get(name)
        term = assignment if old_negative is None else assignment.intersect(old_negative)
        assert term is not None

        if term.positive:
            self._negative.pop(name, None)
            self._positive[name] = term
        else:
            self._negative[name] = term

    def satisfier(self, term: Term) -> Assignment:
        """Return the first assignment after which ``term`` is satisfied."""
        assigned_term: Optional[Term] = None

        for assignment in self._assignments:
            if assignment.package != term.package:
                continue

            if assigned_term is None:
                assigned_term = assignment
            else:
                assigned_term = assigned_term.intersect(assignment)

            if assigned_term is not None and assigned_term.satisfies(term):
                return assignment

        raise RuntimeError(f"[BUG] {term} is not satisfied.")

    def satisfies(self, term: Term) -> bool:
        return self.relation(term) == SetRelation.SUBSET

    def relation(self, term: Term) -> SetRelation:
        positive = self._positive.get(term.package)
        if positive is not None:
            return positive.relation(term)

        negative = self._negative.get(term.package)
        if negative is None:
            return SetRelation.OVERLAPPING

        return negative.relation(term)
