"""
Problem definition package for optimal control problems.
"""

from .core_problem import Problem
from .state import BoundsTiers, PathConstraintInfo, VariableInfo


__all__ = [
    "BoundsTiers",
    "PathConstraintInfo",
    "Problem",
    "VariableInfo",
]
