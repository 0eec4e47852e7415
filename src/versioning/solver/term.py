"""Terms: statements about which versions of a package may be selected."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from ..ranges import VersionSet


class SetRelation(Enum):
    """How the versions allowed by one term relate to another's."""
    SUBSET = "subset"
    DISJOINT = "disjoint"
    OVERLAPPING = "overlapping"


class Term:
    """A positive or negative statement about a package's selected version.

    A positive term ``foo >= 1.0.0`` means "some version of foo in that set is
    selected". A negative term ``not foo >= 1.0.0`` means "no version of foo
    in that set is selected", which is also satisfied when foo is not
    selected at all.
    """

    def __init__(self, package: str, versions: VersionSet, positive: bool = True):
        self.package = package
        self.versions = versions
        self.positive = positive

    @property
    def inverse(self) -> "Term":
        return Term(self.package, self.versions, not self.positive)

    def satisfies(self, other: "Term") -> bool:
        """True if this term satisfies ``other``."""
        return self.package == other.package and self.relation(other) == SetRelation.SUBSET

    def relation(self, other: "Term") -> SetRelation:
        """Return the relationship between versions allowed here and by ``other``."""
        if self.package != other.package:
            raise ValueError(f"{other} should refer to {self.package}")

        if other.positive:
            if self.positive:
                if other.versions.allows_all(self.versions):
                    return SetRelation.SUBSET
                if not self.versions.allows_any(other.versions):
                    return SetRelation.DISJOINT
                return SetRelation.OVERLAPPING

            # not S excludes every version of a positive term it fully covers
            if self.versions.allows_all(other.versions):
                return SetRelation.DISJOINT
            return SetRelation.OVERLAPPING

        if self.positive:
            if not other.versions.allows_any(self.versions):
                return SetRelation.SUBSET
            if other.versions.allows_all(self.versions):
                return SetRelation.DISJOINT
            return SetRelation.OVERLAPPING

        # Two negative terms both allow the package to be absent.
        if self.versions.allows_all(other.versions):
            return SetRelation.SUBSET
        return SetRelation.OVERLAPPING

    def intersect(self, other: "Term") -> Optional["Term"]:
        """Return a term allowed by both terms, or None if nothing is."""
        if self.package != other.package:
            raise ValueError(f"{other} should refer to {self.package}")

        if self.positive != other.positive:
            positive, negative = (self, other) if self.positive else (other, self)
            return self._non_empty_term(
                positive.versions.difference(negative.versions), True
            )
        if self.positive:
            return self._non_empty_term(self.versions.intersect(other.versions), True)
        return self._non_empty_term(self.versions.union(other.versions), False)

    def difference(self, other: "Term") -> Optional["Term"]:
        """Return a term allowed by this term but not by ``other``."""
        return self.intersect(other.inverse)

    def _non_empty_term(self, versions: VersionSet, positive: bool) -> Optional["Term"]:
        if versions.is_empty():
            return None
        return Term(self.package, versions, positive)

    def __str__(self) -> str:
        prefix = "" if self.positive else "not "
        return f"{prefix}{self.package} {self.versions}"

    def __repr__(self) -> str:
        return f"<Term {self!s}>"
