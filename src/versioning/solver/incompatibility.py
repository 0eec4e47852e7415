"""Incompatibilities: sets of terms that must never all be true at once."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from ..errors import ResolutionFailure
from ..ranges import VersionSet
from ..version import Version
from .term import Term


class IncompatibilityCause:
    """Base class for the reason an incompatibility exists."""


class RootCause(IncompatibilityCause):
    """The root package must be selected."""


class NoVersionsCause(IncompatibilityCause):
    """No known version of the package matches the allowed set."""


class UnavailableCause(IncompatibilityCause):
    """A version exists but cannot be used (missing metadata or retired)."""


class DependencyCause(IncompatibilityCause):
    """A package version depends on a range of another package."""

    def __init__(self, dependency: str, requirement: VersionSet):
        self.dependency = dependency
        self.requirement = requirement


class ConflictCause(IncompatibilityCause):
    """Derived during conflict resolution from two earlier incompatibilities."""

    def __init__(self, conflict: "Incompatibility", other: "Incompatibility"):
        self.conflict = conflict
        self.other = other


class Incompatibility:
    """A set of terms that cannot all be satisfied by a valid solution.

    ``root`` names the root package. It is used to drop positive root terms
    from derived incompatibilities and to recognise the terminal failure.
    """

    def __init__(
        self,
        terms: Iterable[Term],
        cause: IncompatibilityCause,
        root: Optional[str] = None,
    ):
        terms = list(terms)
        self.root = root

        # Remove the root package from generated incompatibilities, since it
        # will always be satisfied.
        if (
            len(terms) != 1
            and isinstance(cause, ConflictCause)
            and any(t.positive and t.package == root for t in terms)
        ):
            terms = [t for t in terms if not t.positive or t.package != root]

        if len(terms) != 1 and not (
            len(terms) == 2 and terms[0].package != terms[-1].package
        ):
            # Coalesce multiple terms about the same package.
            by_name: Dict[str, Term] = {}
            for term in terms:
                existing = by_name.get(term.package)
                if existing is None:
                    by_name[term.package] = term
                    continue
                merged = existing.intersect(term)
                if merged is None:
                    raise ResolutionFailure(
                        f"Package '{term.package}' is listed as a dependency of itself."
                    )
                by_name[term.package] = merged
            terms = list(by_name.values())

        self.terms: List[Term] = terms
        self.cause = cause

    @classmethod
    def for_dependency(
        cls,
        package: str,
        version: Version,
        dependency: str,
        requirement: VersionSet,
        root: Optional[str] = None,
    ) -> "Incompatibility":
        """``package == version`` requires ``dependency`` within ``requirement``."""
        terms = [Term(package, VersionSet.exact(version), True)]
        # "not in the empty set" always holds, so it adds nothing.
        if not requirement.is_empty():
            terms.append(Term(dependency, requirement, False))
        return cls(terms, DependencyCause(dependency, requirement), root=root)

    def is_failure(self) -> bool:
        return not self.terms or (
            len(self.terms) == 1
            and self.terms[0].positive
            and self.terms[0].package == self.root
        )

    def _terse(self, term: Term) -> str:
        if term.package == self.root:
            return term.package
        if term.versions.is_any():
            return f"every version of {term.package}"
        return f"{term.package} {term.versions}"

    def __str__(self) -> str:
        cause = self.cause
        if isinstance(cause, RootCause):
            return f"{self.terms[0].package} is {self.terms[0].versions}"
        if isinstance(cause, DependencyCause):
            depender = self._terse(self.terms[0])
            if cause.requirement.is_empty():
                return f"{depender} depends on {cause.dependency} with an empty requirement"
            return f"{depender} depends on {cause.dependency} {cause.requirement}"
        if isinstance(cause, NoVersionsCause):
            term = self.terms[0]
            return f"no versions of {term.package} match {term.versions}"
        if isinstance(cause, UnavailableCause):
            return f"{self._terse(self.terms[0])} is unavailable"

        if self.is_failure():
            return "version solving failed"

        if len(self.terms) == 1:
            term = self.terms[0]
            verb = "is forbidden" if term.positive else "is required"
            return f"{self._terse(term)} {verb}"

        if len(self.terms) == 2:
            first, second = self.terms
            if first.positive and second.positive:
                return f"{self._terse(first)} is incompatible with {self._terse(second)}"
            if not first.positive and not second.positive:
                return f"either {self._terse(first)} or {self._terse(second)}"
            positive, negative = (first, second) if first.positive else (second, first)
            return f"{self._terse(positive)} requires {self._terse(negative)}"

        positives = [self._terse(t) for t in self.terms if t.positive]
        negatives = [self._terse(t) for t in self.terms if not t.positive]
        if not positives:
            return f"one of {' or '.join(negatives)} must be selected"
        if negatives:
            return f"if {' and '.join(positives)} then {' or '.join(negatives)}"
        return f"one of {' or '.join(positives)} must be false"

    def __repr__(self) -> str:
        return f"<Incompatibility {self!s}>"
