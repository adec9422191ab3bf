"""
Solution value for transcribed optimal control problems.

A Solution is created once by the transcription engine and never changes
afterwards: the dataclass is frozen and every array is read-only.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import numpy as np
import pandas as pd

from .cl_types import FloatArray, SolutionStatus
from .exceptions import ConfigurationError, DataIntegrityError
from .input_validation import validate_array_shape


logger = logging.getLogger(__name__)


def _frozen_vector(values) -> FloatArray:
    array = np.array(values, dtype=np.float64, copy=True).flatten()
    array.setflags(write=False)
    return array


def _frozen_matrix(values, num_rows: int) -> FloatArray:
    array = np.array(values, dtype=np.float64, copy=True)
    if array.size == 0:
        array = np.zeros((num_rows, 0), dtype=np.float64)
    else:
        array = array.reshape(num_rows, -1)
    array.setflags(write=False)
    return array


@dataclass(frozen=True, eq=False)
class Solution:
    """
    Unpacked result of one NLP solve.

    Attributes:
        time: Mesh times, shape (N,)
        states: State trajectory, shape (N, num_states)
        controls: Control trajectory, shape (N, num_controls)
        parameters: Parameter values, shape (num_parameters,)
        objective: Objective value (NaN when unavailable)
        status: Terminal solver outcome
        message: Solver diagnostic
        state_names: Column names of ``states``
        control_names: Column names of ``controls``
        parameter_names: Names of ``parameters``
        integral: Value of the integral cost, if the problem has one
        num_iterations: Solver iterations, if reported
        solver_return_status: Raw return status string of the NLP solver
        transcription_scheme: Scheme that produced the solution
        problem_name: Name of the solved problem
    """

    time: FloatArray
    states: FloatArray
    controls: FloatArray
    parameters: FloatArray
    objective: float
    status: SolutionStatus
    message: str = ""
    state_names: tuple[str, ...] = ()
    control_names: tuple[str, ...] = ()
    parameter_names: tuple[str, ...] = ()
    integral: float | None = None
    num_iterations: int | None = None
    solver_return_status: str = ""
    transcription_scheme: str = ""
    problem_name: str = ""

    def __post_init__(self) -> None:
        time = _frozen_vector(self.time)
        num_nodes = len(time)
        states = _frozen_matrix(self.states, num_nodes)
        controls = _frozen_matrix(self.controls, num_nodes)
        parameters = _frozen_vector(self.parameters)

        object.__setattr__(self, "time", time)
        object.__setattr__(self, "states", states)
        object.__setattr__(self, "controls", controls)
        object.__setattr__(self, "parameters", parameters)
        object.__setattr__(self, "status", SolutionStatus(self.status))
        object.__setattr__(self, "objective", float(self.objective))
        object.__setattr__(self, "state_names", tuple(self.state_names))
        object.__setattr__(self, "control_names", tuple(self.control_names))
        object.__setattr__(self, "parameter_names", tuple(self.parameter_names))

        if self.state_names:
            validate_array_shape(
                states, (num_nodes, len(self.state_names)), "states", "solution"
            )
        if self.control_names:
            validate_array_shape(
                controls, (num_nodes, len(self.control_names)), "controls", "solution"
            )
        if self.parameter_names and len(parameters) != len(self.parameter_names):
            raise DataIntegrityError(
                f"Solution has {len(parameters)} parameters but {len(self.parameter_names)} names"
            )

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    @property
    def success(self) -> bool:
        return self.status is SolutionStatus.CONVERGED

    @property
    def num_mesh_points(self) -> int:
        return len(self.time)

    @property
    def initial_time(self) -> float:
        return float(self.time[0])

    @property
    def final_time(self) -> float:
        return float(self.time[-1])

    # ------------------------------------------------------------------
    # Named access
    # ------------------------------------------------------------------

    def _column_names(self) -> list[str]:
        if self.state_names or not self.states.shape[1]:
            state_names = list(self.state_names)
        else:
            state_names = [f"state_{i}" for i in range(self.states.shape[1])]
        if self.control_names or not self.controls.shape[1]:
            control_names = list(self.control_names)
        else:
            control_names = [f"control_{i}" for i in range(self.controls.shape[1])]
        return state_names + control_names

    def get_state(self, name: str) -> FloatArray:
        if name not in self.state_names:
            raise KeyError(f"State '{name}' not found. Available: {list(self.state_names)}")
        return self.states[:, self.state_names.index(name)]

    def get_control(self, name: str) -> FloatArray:
        if name not in self.control_names:
            raise KeyError(f"Control '{name}' not found. Available: {list(self.control_names)}")
        return self.controls[:, self.control_names.index(name)]

    def get_parameter(self, name: str) -> float:
        if name not in self.parameter_names:
            raise KeyError(
                f"Parameter '{name}' not found. Available: {list(self.parameter_names)}"
            )
        return float(self.parameters[self.parameter_names.index(name)])

    def __getitem__(self, name: str) -> FloatArray:
        """Trajectory of a state or control by name; ``"time"`` returns the mesh."""
        if name == "time":
            return self.time
        if name in self.state_names:
            return self.get_state(name)
        if name in self.control_names:
            return self.get_control(name)
        raise KeyError(f"Variable '{name}' not found in solution")

    # ------------------------------------------------------------------
    # Resampling
    # ------------------------------------------------------------------

    def _interpolate(self, values: FloatArray, times) -> FloatArray:
        query = np.asarray(times, dtype=np.float64)
        if values.shape[1] == 0:
            return np.zeros((len(query), 0), dtype=np.float64)
        return np.column_stack(
            [np.interp(query, self.time, values[:, i]) for i in range(values.shape[1])]
        )

    def interpolate_states(self, times) -> FloatArray:
        """Linearly interpolated states at ``times``, shape (len(times), num_states)."""
        return self._interpolate(self.states, times)

    def interpolate_controls(self, times) -> FloatArray:
        """Linearly interpolated controls at ``times``, shape (len(times), num_controls)."""
        return self._interpolate(self.controls, times)

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def to_dataframe(self) -> pd.DataFrame:
        """Table with a ``time`` column followed by one column per state and control."""
        data = np.column_stack([self.time, self.states, self.controls])
        return pd.DataFrame(data, columns=["time", *self._column_names()])

    def _storage_header(self, num_rows: int, num_columns: int) -> str:
        name = self.problem_name or "collocationlab_solution"
        return "\n".join(
            [
                name,
                "version=1",
                f"nRows={num_rows}",
                f"nColumns={num_columns}",
                "inDegrees=no",
                f"status={self.status.value}",
                f"objective={self.objective!r}",
                "endheader",
                "",
            ]
        )

    def write(self, path: str | Path, delimiter: str | None = None) -> Path:
        """
        Write the trajectory table to ``path``.

        The format follows the extension: ``.sto`` writes a Storage header block
        ending in ``endheader`` followed by a tab separated table, ``.tsv`` and
        ``.txt`` write tab separated values and anything else comma separated
        values. One header row names the columns and one row follows per mesh node.

        Returns:
            The path written.
        """
        output_path = Path(path)
        suffix = output_path.suffix.lower()
        if delimiter is None:
            delimiter = "\t" if suffix in {".sto", ".tsv", ".txt"} else ","
        if not delimiter:
            raise ConfigurationError("Delimiter cannot be empty")

        table = self.to_dataframe()
        with output_path.open("w", newline="") as stream:
            if suffix == ".sto":
                stream.write(self._storage_header(len(table), len(table.columns)))
            table.to_csv(stream, sep=delimiter, index=False, float_format="%.12g")

        logger.info("Wrote solution with %d rows to %s", len(table), output_path)
        return output_path

    def summary(self) -> None:
        """Print a factual summary of the solution."""
        from .summary import print_solution_summary

        print_solution_summary(self)

    def __repr__(self) -> str:
        return (
            f"Solution(status={self.status.value}, objective={self.objective:.6g}, "
            f"num_mesh_points={self.num_mesh_points}, states={self.states.shape[1]}, "
            f"controls={self.controls.shape[1]})"
        )
