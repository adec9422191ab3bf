"""
CollocationLab: direct collocation transcription of optimal control problems

This package converts a fixed-horizon, continuous-time optimal control problem
into a nonlinear program using a CasADi Opti stack, solves it with IPOPT and
returns the time-indexed trajectory as an immutable Solution.

Logging:
By default, CollocationLab reports solve start and end at INFO. To change it::

    import logging
    logging.getLogger('collocationlab').setLevel(logging.WARNING)  # Quiet
    logging.getLogger('collocationlab').setLevel(logging.DEBUG)  # Detailed debugging
"""

import logging

from collocationlab.cl_types import SolutionStatus
from collocationlab.config import SolverConfig
from collocationlab.exceptions import (
    CollocationLabBaseError,
    ConfigurationError,
    DataIntegrityError,
    DimensionMismatchError,
    SolutionExtractionError,
    UnsupportedFeatureError,
)
from collocationlab.problem import Problem
from collocationlab.schemes import TranscriptionScheme
from collocationlab.simulation import SimulationResult, simulate
from collocationlab.solution import Solution
from collocationlab.solver import Solver, SolverState, solve


__all__ = [
    "CollocationLabBaseError",
    "ConfigurationError",
    "DataIntegrityError",
    "DimensionMismatchError",
    "Problem",
    "SimulationResult",
    "Solution",
    "SolutionExtractionError",
    "SolutionStatus",
    "Solver",
    "SolverConfig",
    "SolverState",
    "TranscriptionScheme",
    "UnsupportedFeatureError",
    "simulate",
    "solve",
]

__version__ = "0.1.0"


logging.basicConfig(
    format="%(name)s  - %(message)s",
    handlers=[logging.StreamHandler()],
)
logging.getLogger(__name__).setLevel(logging.INFO)
