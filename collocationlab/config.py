# collocationlab/config.py
"""
Solver configuration.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .cl_types import NumericArrayLike, ProblemProtocol
from .exceptions import ConfigurationError
from .input_validation import (
    validate_num_mesh_points,
    validate_positive_integer,
    validate_positive_number,
)
from .schemes import TranscriptionScheme
from .utils.constants import DEFAULT_NUM_MESH_POINTS


if TYPE_CHECKING:
    from .solution import Solution


logger = logging.getLogger(__name__)

# Default solver options
DEFAULT_NLP_OPTIONS: dict[str, object] = {
    "ipopt.print_level": 0,
    "ipopt.sb": "yes",
    "print_time": 0,
}


@dataclass
class SolverConfig:
    """
    Settings consumed by the Solver for one solve.

    Attributes:
        transcription_scheme: Name of the scheme, one of TranscriptionScheme values
        num_mesh_points: Number of mesh nodes N (at least 2)
        normalized_mesh: Optional strictly increasing mesh on [0, 1] with N entries
        enforce_constraint_derivatives: Overrides the problem's flag when not None
        nlp_options: Extra CasADi/IPOPT options merged over DEFAULT_NLP_OPTIONS
        max_iterations: Passed to IPOPT as ``max_iter``
        max_wall_time: Passed to IPOPT as ``max_wall_time`` (seconds)
        initial_guess: Prior solution resampled onto the new mesh
        show_summary: Print a solution summary after solving
    """

    transcription_scheme: str = TranscriptionScheme.TRAPEZOIDAL.value
    num_mesh_points: int = DEFAULT_NUM_MESH_POINTS
    normalized_mesh: NumericArrayLike | None = None
    enforce_constraint_derivatives: bool | None = None
    nlp_options: dict[str, object] | None = None
    max_iterations: int | None = None
    max_wall_time: float | None = None
    initial_guess: Solution | None = None
    show_summary: bool = True

    def validate(self) -> None:
        validate_num_mesh_points(self.num_mesh_points)
        if self.max_iterations is not None:
            validate_positive_integer(self.max_iterations, "max iterations", min_value=0)
        if self.max_wall_time is not None:
            validate_positive_number(self.max_wall_time, "max wall time")
        if self.nlp_options is not None and not isinstance(self.nlp_options, dict):
            raise ConfigurationError(
                f"NLP options must be a dict, got {type(self.nlp_options)}"
            )

    def resolve_enforce_constraint_derivatives(self, problem: ProblemProtocol) -> bool:
        """The configured flag wins over the problem's own flag; the problem is not modified."""
        if self.enforce_constraint_derivatives is not None:
            return bool(self.enforce_constraint_derivatives)
        return bool(problem.enforce_constraint_derivatives)

    def build_nlp_options(self) -> dict[str, object]:
        options: dict[str, object] = dict(DEFAULT_NLP_OPTIONS)
        if self.nlp_options:
            options.update(self.nlp_options)
        if self.max_iterations is not None:
            options["ipopt.max_iter"] = self.max_iterations
        if self.max_wall_time is not None:
            options["ipopt.max_wall_time"] = float(self.max_wall_time)
        logger.debug("NLP solver options: %s", options)
        return options
