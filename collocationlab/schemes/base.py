"""
Strategy bundle shared by all transcription schemes.

A scheme is not a subclass of the engine. It is an entry in a closed table that
maps a TranscriptionScheme to a SchemeStrategy: a frozen bundle of pure
functions producing the scheme-specific artifacts of a transcription.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal, TypeAlias

import numpy as np

from ..cl_types import FloatArray, IntArray, ProblemProtocol


class TranscriptionScheme(str, Enum):
    """Closed set of supported transcription schemes."""

    TRAPEZOIDAL = "trapezoidal"


ConstraintKind: TypeAlias = Literal["defect", "residual", "kinematic", "path"]


@dataclass(frozen=True)
class VariableLayout:
    """
    Placement of grid points (where variables and constraints live) on a mesh.

    ``interval_fractions`` lists the normalized positions in (0, 1) of grid
    points inserted inside every mesh interval. Schemes without intermediate
    collocation points leave it empty, so grid and mesh coincide.
    """

    num_mesh_points: int
    interval_fractions: tuple[float, ...] = ()

    @property
    def points_per_interval(self) -> int:
        return len(self.interval_fractions) + 1

    @property
    def num_grid_points(self) -> int:
        return (self.num_mesh_points - 1) * self.points_per_interval + 1

    @property
    def mesh_indices(self) -> IntArray:
        """Grid index of every mesh point."""
        return np.arange(self.num_mesh_points, dtype=np.int64) * self.points_per_interval

    def grid_times(self, mesh_times: FloatArray) -> FloatArray:
        """Physical times of all grid points for the given mesh."""
        if not self.interval_fractions:
            return np.asarray(mesh_times, dtype=np.float64).copy()

        starts = mesh_times[:-1]
        widths = np.diff(mesh_times)
        fractions = np.concatenate(([0.0], np.asarray(self.interval_fractions)))
        interior = (starts[:, None] + widths[:, None] * fractions[None, :]).flatten()
        return np.append(interior, mesh_times[-1])


@dataclass
class NodeData:
    """
    Quantities evaluated at every grid point, passed to a scheme's constraint assembly.

    Matrices are (rows, num_grid_points); entries may be CasADi expressions while
    the NLP is built, or numpy arrays when a scheme is evaluated numerically.
    """

    grid_times: FloatArray
    states: Any
    controls: Any
    state_derivatives: Any
    residuals: Any
    kinematic_errors: Any
    path_values: Any
    kinematic_bounds: tuple[FloatArray, FloatArray]
    path_bounds: tuple[FloatArray, FloatArray]
    kinematic_mask: IntArray

    @property
    def num_grid_points(self) -> int:
        return len(self.grid_times)

    @property
    def num_states(self) -> int:
        return int(self.states.shape[0])


@dataclass
class ConstraintBlock:
    """One vector constraint ``lower <= expression <= upper`` of the NLP."""

    kind: ConstraintKind
    index: int
    expression: Any
    lower: FloatArray
    upper: FloatArray

    @property
    def size(self) -> int:
        return len(self.lower)

    @property
    def is_equality(self) -> bool:
        return bool(np.all(self.lower == self.upper))


@dataclass(frozen=True)
class SchemeStrategy:
    """
    The four scheme-specific hooks of a transcription plus its feature check.

    Attributes:
        scheme: Table key this strategy is registered under
        validate_problem: Raises if the scheme cannot represent the problem
        create_quadrature_coefficients: Grid times -> integral weight per grid point
        create_kinematic_constraint_indices: Number of grid points -> 0/1 enforcement mask
        create_variable_layout: Number of mesh points -> VariableLayout
        apply_constraints: NodeData -> ordered constraint blocks
    """

    scheme: TranscriptionScheme
    validate_problem: Callable[[ProblemProtocol, bool], None]
    create_quadrature_coefficients: Callable[[FloatArray], FloatArray]
    create_kinematic_constraint_indices: Callable[[int], IntArray]
    create_variable_layout: Callable[[int], VariableLayout]
    apply_constraints: Callable[[NodeData], list[ConstraintBlock]]
    description: str = ""
