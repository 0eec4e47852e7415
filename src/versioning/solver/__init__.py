"""PubGrub version solving over package names and version sets."""

from .failure import SolveFailure
from .incompatibility import Incompatibility
from .term import SetRelation, Term
from .version_solver import SolverProvider, VersionSolver

__all__ = [
    "Incompatibility",
    "SetRelation",
    "SolveFailure",
    "SolverProvider",
    "Term",
    "VersionSolver",
]
