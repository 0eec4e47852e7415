"""Version requirements and the interval sets they normalize into.

A ``Range`` keeps the requirement exactly as written (``~> 1.2``,
``>= 1.0.0 and < 2.0.0``, ``0.3.0-rc1``...) and converts it on demand into a
``VersionSet``: a normalized union of disjoint intervals that supports the
set algebra the solver needs (intersection, union, complement, containment).
"""

from __future__ import annotations

import functools
import re
from typing import Iterable, List, Optional, Tuple

from .errors import InvalidRequirementError, InvalidVersionError
from .version import Version, parse_operand

# (lower, lower_inclusive, upper, upper_inclusive); None means unbounded.
Segment = Tuple[Optional[Version], bool, Optional[Version], bool]

_COMPARISON_RE = re.compile(r"^(==|!=|>=|<=|~>|>|<)?\s*(\S+)$")
_OR_RE = re.compile(r"\s+or\s+")
_AND_RE = re.compile(r"\s+and\s+")


def _cmp(a: Version, b: Version) -> int:
    """Compare by precedence only; build metadata is ignored."""
    if a < b:
        return -1
    if b < a:
        return 1
    return 0


def _cmp_lower(a: Segment, b: Segment) -> int:
    """Order segments by where they start."""
    if a[0] is None or b[0] is None:
        return (a[0] is not None) - (b[0] is not None)
    c = _cmp(a[0], b[0])
    if c:
        return c
    return (not a[1]) - (not b[1])


def _cmp_upper(a: Segment, b: Segment) -> int:
    """Order segments by where they end."""
    if a[2] is None or b[2] is None:
        return (a[2] is None) - (b[2] is None)
    c = _cmp(a[2], b[2])
    if c:
        return c
    return a[3] - b[3]


def _is_valid(segment: Segment) -> bool:
    lower, lower_inc, upper, upper_inc = segment
    if lower is None or upper is None:
        return True
    c = _cmp(lower, upper)
    return c < 0 or (c == 0 and lower_inc and upper_inc)


def _touches(first: Segment, second: Segment) -> bool:
    """True if ``second`` (starting no earlier than ``first``) overlaps or abuts it."""
    upper, upper_inc = first[2], first[3]
    lower, lower_inc = second[0], second[1]
    if upper is None or lower is None:
        return True
    c = _cmp(lower, upper)
    return c < 0 or (c == 0 and (upper_inc or lower_inc))


def _normalize(segments: Iterable[Segment]) -> Tuple[Segment, ...]:
    ordered = sorted(
        (s for s in segments if _is_valid(s)), key=functools.cmp_to_key(_cmp_lower)
    )
    merged: List[Segment] = []
    for segment in ordered:
        if merged and _touches(merged[-1], segment):
            last = merged[-1]
            if _cmp_upper(last, segment) >= 0:
                continue
            merged[-1] = (last[0], last[1], segment[2], segment[3])
        else:
            merged.append(segment)
    return tuple(merged)


def _intersect_segments(a: Segment, b: Segment) -> Segment:
    lower = a if _cmp_lower(a, b) >= 0 else b
    upper = a if _cmp_upper(a, b) <= 0 else b
    return (lower[0], lower[1], upper[2], upper[3])


class VersionSet:
    """An immutable set of versions stored as sorted, disjoint intervals."""

    __slots__ = ("_segments",)

    def __init__(self, segments: Iterable[Segment] = ()):
        self._segments = _normalize(segments)

    @classmethod
    def any(cls) -> "VersionSet":
        return cls([(None, False, None, False)])

    @classmethod
    def empty(cls) -> "VersionSet":
        return cls()

    @classmethod
    def exact(cls, version: Version) -> "VersionSet":
        return cls([(version, True, version, True)])

    @classmethod
    def higher_than(cls, version: Version) -> "VersionSet":
        """``>= version``"""
        return cls([(version, True, None, False)])

    @classmethod
    def strictly_higher_than(cls, version: Version) -> "VersionSet":
        """``> version``"""
        return cls([(version, False, None, False)])

    @classmethod
    def lower_than(cls, version: Version) -> "VersionSet":
        """``< version``"""
        return cls([(None, False, version, False)])

    @classmethod
    def lower_or_equal(cls, version: Version) -> "VersionSet":
        """``<= version``"""
        return cls([(None, False, version, True)])

    @classmethod
    def between(cls, lower: Version, upper: Version) -> "VersionSet":
        """``>= lower and < upper``"""
        return cls([(lower, True, upper, False)])

    @property
    def segments(self) -> Tuple[Segment, ...]:
        return self._segments

    def is_empty(self) -> bool:
        return not self._segments

    def is_any(self) -> bool:
        return self._segments == ((None, False, None, False),)

    def contains(self, version: Version) -> bool:
        for lower, lower_inc, upper, upper_inc in self._segments:
            if lower is not None:
                c = _cmp(version, lower)
                if c < 0 or (c == 0 and not lower_inc):
                    continue
            if upper is not None:
                c = _cmp(version, upper)
                if c > 0 or (c == 0 and not upper_inc):
                    continue
            return True
        return False

    def __contains__(self, version: Version) -> bool:
        return self.contains(version)

    def complement(self) -> "VersionSet":
        result: List[Segment] = []
        cursor: Optional[Version] = None
        cursor_inc = False
        for lower, lower_inc, upper, upper_inc in self._segments:
            if lower is not None:
                result.append((cursor, cursor_inc, lower, not lower_inc))
            if upper is None:
                return VersionSet(result)
            cursor, cursor_inc = upper, not upper_inc
        result.append((cursor, cursor_inc, None, False))
        return VersionSet(result)

    def intersect(self, other: "VersionSet") -> "VersionSet":
        return VersionSet(
            _intersect_segments(a, b) for a in self._segments for b in other._segments
        )

    def union(self, other: "VersionSet") -> "VersionSet":
        return VersionSet(self._segments + other._segments)

    def difference(self, other: "VersionSet") -> "VersionSet":
        return self.intersect(other.complement())

    def allows_all(self, other: "VersionSet") -> bool:
        """True if every version in ``other`` is also in this set."""
        return other.difference(self).is_empty()

    def allows_any(self, other: "VersionSet") -> bool:
        """True if this set and ``other`` share at least one version."""
        return not self.intersect(other).is_empty()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VersionSet):
            return NotImplemented
        return self._segments == other._segments

    def __hash__(self) -> int:
        return hash(self._segments)

    def __str__(self) -> str:
        if not self._segments:
            return "no versions"
        return " or ".join(_format_segment(s) for s in self._segments)

    def __repr__(self) -> str:
        return f"VersionSet({str(self)!r})"


def _format_segment(segment: Segment) -> str:
    lower, lower_inc, upper, upper_inc = segment
    if lower is None and upper is None:
        return "*"
    if lower is not None and upper is not None and _cmp(lower, upper) == 0:
        return f"== {lower}"
    parts = []
    if lower is not None:
        parts.append(f"{'>=' if lower_inc else '>'} {lower}")
    if upper is not None:
        parts.append(f"{'<=' if upper_inc else '<'} {upper}")
    return " and ".join(parts)


def _parse_comparison(text: str, requirement: str) -> VersionSet:
    match = _COMPARISON_RE.match(text.strip())
    if not match:
        raise InvalidRequirementError(f"Invalid requirement: '{requirement}'")
    operator, operand = match.groups()
    if operand == "*" and operator is None:
        return VersionSet.any()
    try:
        version, parts = parse_operand(operand)
    except InvalidVersionError as exc:
        raise InvalidRequirementError(f"Invalid requirement: '{requirement}'") from exc

    if operator is None or operator == "==":
        return VersionSet.exact(version)
    if operator == "!=":
        return VersionSet.exact(version).complement()
    if operator == ">=":
        return VersionSet.higher_than(version)
    if operator == ">":
        return VersionSet.strictly_higher_than(version)
    if operator == "<=":
        return VersionSet.lower_or_equal(version)
    if operator == "<":
        return VersionSet.lower_than(version)

    # ~> 1.2 allows up to the next major, ~> 1.2.3 up to the next minor
    if parts < 2:
        raise InvalidRequirementError(
            f"Invalid requirement: '{requirement}' (~> needs at least major.minor)"
        )
    if parts == 2:
        upper = Version(major=version.major + 1, minor=0, patch=0)
    else:
        upper = Version(major=version.major, minor=version.minor + 1, patch=0)
    return VersionSet.between(version, upper)


def parse_requirement(text: str) -> VersionSet:
    """Parse requirement text into a ``VersionSet``.

    ``and`` binds tighter than ``or``.

    Raises:
        InvalidRequirementError: If the text is not a valid requirement.
    """
    if not isinstance(text, str) or not text.strip():
        raise InvalidRequirementError(f"Invalid requirement: {text!r}")
    result = VersionSet.empty()
    for clause in _OR_RE.split(text.strip()):
        clause_set = VersionSet.any()
        for comparison in _AND_RE.split(clause.strip()):
            clause_set = clause_set.intersect(_parse_comparison(comparison, text))
        result = result.union(clause_set)
    return result


class Range:
    """A version requirement as written in a manifest or release metadata."""

    __slots__ = ("_raw", "_version_set")

    def __init__(self, raw: str):
        self._raw = raw
        self._version_set: Optional[VersionSet] = None

    @classmethod
    def exact(cls, version: Version) -> "Range":
        return cls(str(version))

    @property
    def raw(self) -> str:
        return self._raw

    def to_version_set(self) -> VersionSet:
        """Normalize into a ``VersionSet``; raises ``InvalidRequirementError``."""
        if self._version_set is None:
            self._version_set = parse_requirement(self._raw)
        return self._version_set

    def contains(self, version: Version) -> bool:
        return self.to_version_set().contains(version)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Range):
            return NotImplemented
        return self._raw == other._raw

    def __hash__(self) -> int:
        return hash(self._raw)

    def __str__(self) -> str:
        return self._raw

    def __repr__(self) -> str:
        return f"Range({self._raw!r})"
