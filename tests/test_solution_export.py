"""
Tests for the Solution value: immutability, named access and tabular export.
"""

import dataclasses

import numpy as np
import pandas as pd
import pytest

from collocationlab import (
    ConfigurationError,
    DimensionMismatchError,
    Solution,
    SolutionStatus,
)


@pytest.fixture
def solution():
    time = np.linspace(0.0, 1.0, 5)
    return Solution(
        time=time,
        states=np.column_stack([time, time**2]),
        controls=np.column_stack([2.0 * time]),
        parameters=np.array([0.75]),
        objective=1.25,
        status=SolutionStatus.CONVERGED,
        message="Optimal solution found (Solve_Succeeded)",
        state_names=("q", "qdot"),
        control_names=("tau",),
        parameter_names=("mass",),
        integral=1.25,
        num_iterations=12,
        solver_return_status="Solve_Succeeded",
        transcription_scheme="trapezoidal",
        problem_name="Export Test",
    )


class TestSolutionValue:
    """Solutions are immutable values."""

    def test_fields_cannot_be_reassigned(self, solution):
        with pytest.raises(dataclasses.FrozenInstanceError):
            solution.objective = 0.0
        with pytest.raises(dataclasses.FrozenInstanceError):
            solution.status = SolutionStatus.FAILED

    def test_arrays_are_read_only(self, solution):
        for array in [solution.time, solution.states, solution.controls, solution.parameters]:
            with pytest.raises(ValueError):
                array[0] = 42.0

    def test_input_arrays_are_copied(self):
        time = np.linspace(0.0, 1.0, 3)
        states = np.zeros((3, 1))
        result = Solution(time, states, np.zeros((3, 0)), np.zeros(0), 0.0, "Converged")

        states[0, 0] = 5.0
        assert result.states[0, 0] == 0.0
        assert result.status is SolutionStatus.CONVERGED
        assert result.controls.shape == (3, 0)

    def test_shape_validated_against_names(self):
        with pytest.raises(DimensionMismatchError):
            Solution(
                time=np.linspace(0.0, 1.0, 4),
                states=np.zeros((4, 2)),
                controls=np.zeros((4, 1)),
                parameters=np.zeros(0),
                objective=0.0,
                status=SolutionStatus.CONVERGED,
                state_names=("a", "b", "c"),
            )

    def test_status_properties(self, solution):
        assert solution.success
        assert solution.num_mesh_points == 5
        assert solution.initial_time == 0.0
        assert solution.final_time == 1.0

        failed = dataclasses.replace(solution, status=SolutionStatus.INFEASIBLE)
        assert not failed.success
        assert failed.status.value == "Infeasible"

    def test_named_access(self, solution):
        np.testing.assert_array_equal(solution["q"], solution.time)
        np.testing.assert_array_equal(solution["tau"], 2.0 * solution.time)
        np.testing.assert_array_equal(solution["time"], solution.time)
        assert solution.get_parameter("mass") == 0.75

        with pytest.raises(KeyError):
            solution["missing"]
        with pytest.raises(KeyError):
            solution.get_state("tau")

    def test_interpolation(self, solution):
        states = solution.interpolate_states([0.125, 0.5])
        assert states.shape == (2, 2)
        np.testing.assert_allclose(states[:, 0], [0.125, 0.5])

        controls = solution.interpolate_controls(np.array([0.3]))
        np.testing.assert_allclose(controls, [[0.6]])


class TestSolutionExport:
    """Tabular export with a header row and one row per node."""

    def test_dataframe_columns(self, solution):
        frame = solution.to_dataframe()

        assert list(frame.columns) == ["time", "q", "qdot", "tau"]
        assert len(frame) == 5
        np.testing.assert_allclose(frame["qdot"].to_numpy(), solution.time**2)

    def test_write_csv(self, solution, tmp_path):
        path = solution.write(tmp_path / "trajectory.csv")

        frame = pd.read_csv(path)
        assert list(frame.columns) == ["time", "q", "qdot", "tau"]
        assert len(frame) == solution.num_mesh_points
        np.testing.assert_allclose(frame["tau"].to_numpy(), solution["tau"], rtol=1e-11)

    def test_write_storage_file(self, solution, tmp_path):
        path = solution.write(tmp_path / "trajectory.sto")
        lines = path.read_text().splitlines()

        assert lines[0] == "Export Test"
        header_end = lines.index("endheader")
        assert "nRows=5" in lines[:header_end]
        assert "nColumns=4" in lines[:header_end]
        assert "status=Converged" in lines[:header_end]
        assert lines[header_end + 1].split("\t") == ["time", "q", "qdot", "tau"]

        frame = pd.read_csv(path, sep="\t", skiprows=header_end + 1)
        assert len(frame) == 5
        np.testing.assert_allclose(frame["q"].to_numpy(), solution["q"], rtol=1e-11)

    def test_write_tab_separated(self, solution, tmp_path):
        path = solution.write(tmp_path / "trajectory.tsv")
        assert path.read_text().splitlines()[0] == "time\tq\tqdot\ttau"

    def test_empty_delimiter_rejected(self, solution, tmp_path):
        with pytest.raises(ConfigurationError):
            solution.write(tmp_path / "trajectory.csv", delimiter="")

    def test_summary_output(self, solution, capsys):
        solution.summary()
        captured = capsys.readouterr().out

        assert "COLLOCATIONLAB SOLUTION DATA" in captured
        assert "Status: Converged" in captured
        assert "Mesh Points: 5" in captured
        assert "mass" in captured
