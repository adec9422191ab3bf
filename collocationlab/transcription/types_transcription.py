"""
Type definitions and data containers for the transcription engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import casadi as ca

from ..cl_types import FloatArray


@dataclass
class ProblemEvaluators:
    """Problem callables wrapped once into CasADi functions for one transcription."""

    dynamics: ca.Function
    implicit_residual: ca.Function | None = None
    path_constraints: ca.Function | None = None
    integral_cost: ca.Function | None = None
    endpoint_cost: ca.Function | None = None


@dataclass
class TranscriptionVariables:
    """Decision variables of one NLP with the bounds assigned to them."""

    states: ca.MX
    controls: ca.MX
    parameters: ca.MX
    integral: ca.MX | None
    state_lower: FloatArray
    state_upper: FloatArray
    control_lower: FloatArray
    control_upper: FloatArray
    parameter_lower: FloatArray
    parameter_upper: FloatArray

    @property
    def num_variables(self) -> int:
        count = self.states.numel() + self.controls.numel() + self.parameters.numel()
        return count + (1 if self.integral is not None else 0)


@dataclass
class ConstraintLayout:
    """Counts of scalar constraints emitted, by kind, in emission order."""

    num_defects: int = 0
    num_residuals: int = 0
    num_kinematic: int = 0
    num_path: int = 0
    num_integral: int = 0
    blocks_per_kind: dict[str, int] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return (
            self.num_defects
            + self.num_residuals
            + self.num_kinematic
            + self.num_path
            + self.num_integral
        )

    def record(self, kind: str, size: int) -> None:
        attribute = {
            "defect": "num_defects",
            "residual": "num_residuals",
            "kinematic": "num_kinematic",
            "path": "num_path",
            "integral": "num_integral",
        }[kind]
        setattr(self, attribute, getattr(self, attribute) + size)
        self.blocks_per_kind[kind] = self.blocks_per_kind.get(kind, 0) + 1
