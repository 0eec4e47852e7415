"""Human readable explanation of why version solving failed."""

from __future__ import annotations

from typing import Dict, List, Set

from ..errors import ResolutionFailure
from .incompatibility import ConflictCause, Incompatibility


class SolveFailure(ResolutionFailure):
    """Raised by the solver when the root requirements cannot be satisfied."""

    def __init__(self, incompatibility: Incompatibility):
        super().__init__(_FailureWriter(incompatibility).write(), incompatibility)


class _FailureWriter:
    """Walks the derivation graph of the terminal incompatibility.

    Every derived incompatibility becomes one ``Because A and B, C.`` line,
    written after the lines it depends on. Lines that are referenced again
    later carry a number so the reference can point back to them.
    """

    def __init__(self, root: Incompatibility):
        self._root = root
        self._lines: List[str] = []
        self._line_numbers: Dict[Incompatibility, int] = {}
        self._referenced: Set[int] = set()

    def write(self) -> str:
        if not isinstance(self._root.cause, ConflictCause):
            return f"Because {self._root}, version solving failed."

        self._visit(self._root)
        output = []
        for number, line in enumerate(self._lines, start=1):
            output.append(f"{line} ({number})" if number in self._referenced else line)
        return "\n".join(output)

    def _visit(self, incompatibility: Incompatibility) -> None:
        cause = incompatibility.cause
        assert isinstance(cause, ConflictCause)

        for child in (cause.conflict, cause.other):
            if isinstance(child.cause, ConflictCause) and child not in self._line_numbers:
                self._visit(child)

        self._lines.append(
            f"Because {self._reference(cause.conflict)} and "
            f"{self._reference(cause.other)}, {incompatibility}."
        )
        self._line_numbers[incompatibility] = len(self._lines)

    def _reference(self, incompatibility: Incompatibility) -> str:
        number = self._line_numbers.get(incompatibility)
        if number is None:
            return str(incompatibility)
        self._referenced.add(number)
        return f"{incompatibility} ({number})"
