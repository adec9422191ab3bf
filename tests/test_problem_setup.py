"""
Tests for problem definition: variables, bound tiers, evaluators and meshes.
"""

import casadi as ca
import numpy as np
import pytest

from collocationlab import ConfigurationError, DataIntegrityError, DimensionMismatchError, Problem
from collocationlab.input_validation import validate_evaluator_output
from collocationlab.mesh import create_mesh, create_normalized_mesh


class TestVariableDefinition:
    """Variables are declared with unique names and three bound tiers."""

    def test_indices_follow_declaration_order(self):
        problem = Problem("Indices")
        assert problem.state("a") == 0
        assert problem.state("b") == 1
        assert problem.control("u") == 0
        assert problem.parameter("k") == 0

        assert problem.get_state_names() == ["a", "b"]
        assert problem.get_control_names() == ["u"]
        assert problem.get_parameter_names() == ["k"]
        assert problem.num_states == 2

    def test_duplicate_names_rejected(self):
        problem = Problem("Duplicates")
        problem.state("x")
        with pytest.raises(ConfigurationError):
            problem.control("x")
        with pytest.raises(ConfigurationError):
            problem.parameter("x")

    @pytest.mark.parametrize(
        "boundary",
        [(1.0, 0.0), (0.0, 1.0, 2.0), "wide", [0.0, 1.0], float("nan"), True],
    )
    def test_invalid_bounds_rejected(self, boundary):
        problem = Problem("Bounds")
        with pytest.raises(ConfigurationError):
            problem.state("x", boundary=boundary)

    def test_bound_tiers(self):
        problem = Problem("Tiers")
        problem.state("x", boundary=(-1.0, 1.0), initial=0.5)
        problem.state("y", final=(None, 2.0))
        problem.state("z", boundary=3.0)

        tiers = problem.get_state_bounds()
        np.testing.assert_array_equal(tiers.lower, [-1.0, -np.inf, 3.0])
        np.testing.assert_array_equal(tiers.upper, [1.0, np.inf, 3.0])
        np.testing.assert_array_equal(tiers.initial_lower, [0.5, -np.inf, 3.0])
        np.testing.assert_array_equal(tiers.final_upper, [1.0, 2.0, 3.0])

        lower, upper = tiers.for_nodes(4)
        assert lower.shape == (3, 4)
        np.testing.assert_array_equal(lower[0], [0.5, -1.0, -1.0, -1.0])
        np.testing.assert_array_equal(upper[1], [np.inf, np.inf, np.inf, 2.0])

    def test_time_horizon(self):
        problem = Problem("Horizon")
        problem.time(initial=1.0, final=4.0)
        assert problem.get_time_bounds() == (1.0, 4.0)

        with pytest.raises(ConfigurationError):
            problem.time(initial=2.0, final=2.0)
        with pytest.raises(ConfigurationError):
            problem.time(initial=0.0, final=float("inf"))


class TestPathConstraintDefinition:
    """Path constraint bounds and kinematic subset."""

    def test_default_bounds_are_equality_at_zero(self):
        problem = Problem("Path")
        problem.path_constraints(lambda t, x, u, p: x[0], size=2)

        lower, upper = problem.get_path_constraint_bounds()
        np.testing.assert_array_equal(lower, [0.0, 0.0])
        np.testing.assert_array_equal(upper, [0.0, 0.0])
        assert problem.get_kinematic_constraint_indices() == []

    def test_size_inferred_from_bounds(self):
        problem = Problem("Path")
        problem.path_constraints(
            lambda t, x, u, p: x[0], lower=[-1.0, 0.0, -np.inf], upper=1.0,
            kinematic_indices=[2, 0],
        )

        assert problem.num_path_constraints == 3
        assert problem.get_kinematic_constraint_indices() == [0, 2]

    def test_size_required_for_scalar_bounds(self):
        problem = Problem("Path")
        with pytest.raises(ConfigurationError):
            problem.path_constraints(lambda t, x, u, p: x[0], lower=-1.0, upper=1.0)

    def test_kinematic_index_out_of_range(self):
        problem = Problem("Path")
        with pytest.raises(ConfigurationError):
            problem.path_constraints(lambda t, x, u, p: x[0], size=2, kinematic_indices=[2])

    def test_inconsistent_bounds(self):
        problem = Problem("Path")
        with pytest.raises(ConfigurationError):
            problem.path_constraints(lambda t, x, u, p: x[0], lower=[1.0, 0.0], upper=[0.0, 0.0])

    def test_non_callable_evaluators_rejected(self):
        problem = Problem("Callables")
        with pytest.raises(ConfigurationError):
            problem.dynamics("x' = u")
        with pytest.raises(ConfigurationError):
            problem.integral_cost(None)
        with pytest.raises(ConfigurationError):
            problem.implicit_residual(lambda t, x, u, p: x, size=0)


class TestEvaluatorOutput:
    """Conversion of evaluator return values to CasADi columns."""

    def test_row_vector_transposed(self):
        x = ca.MX.sym("x", 3)
        result = validate_evaluator_output(x.T, 3, "dynamics")
        assert result.shape == (3, 1)

    def test_numbers_and_sequences(self):
        x = ca.MX.sym("x", 2)
        assert validate_evaluator_output(1.5, 1, "integrand").shape == (1, 1)
        assert validate_evaluator_output([x[0], 2.0], 2, "dynamics").shape == (2, 1)
        assert validate_evaluator_output(np.array([1.0, 2.0]), 2, "dynamics").shape == (2, 1)

    def test_sequence_of_vectors_and_scalars(self):
        x = ca.MX.sym("x", 3)
        result = validate_evaluator_output([ca.vertcat(x[0], x[1]), x[2]], 3, "dynamics")
        assert result.shape == (3, 1)

        result = validate_evaluator_output([x[0], ca.horzcat(x[1], x[2]), 1.0], 4, "dynamics")
        assert result.shape == (4, 1)

        with pytest.raises(DimensionMismatchError):
            validate_evaluator_output([ca.vertcat(x[0], x[1]), x[2]], 2, "dynamics")
        with pytest.raises(DimensionMismatchError):
            validate_evaluator_output([ca.MX.sym("m", 2, 2)], 4, "dynamics")

    def test_size_mismatch(self):
        x = ca.MX.sym("x", 2)
        with pytest.raises(DimensionMismatchError):
            validate_evaluator_output(x, 3, "dynamics")
        with pytest.raises(DimensionMismatchError):
            validate_evaluator_output(ca.MX.sym("m", 2, 2), 4, "dynamics")

    def test_unsupported_outputs(self):
        with pytest.raises(DataIntegrityError):
            validate_evaluator_output(None, 1, "integrand")
        with pytest.raises(DataIntegrityError):
            validate_evaluator_output(ca.SX.sym("s"), 1, "integrand")
        with pytest.raises(DataIntegrityError):
            validate_evaluator_output({"x": 1.0}, 1, "integrand")


class TestMeshConstruction:
    """Uniform and user supplied meshes."""

    def test_uniform_mesh(self):
        mesh = create_mesh(1.0, 3.0, 5)
        np.testing.assert_allclose(mesh, [1.0, 1.5, 2.0, 2.5, 3.0])

    def test_endpoints_exact(self):
        mesh = create_mesh(0.1, 0.7, 7, normalized_mesh=[0.0, 0.1, 0.3, 0.35, 0.6, 0.9, 1.0])
        assert mesh[0] == 0.1
        assert mesh[-1] == 0.7
        assert np.all(np.diff(mesh) > 0)

    @pytest.mark.parametrize(
        "normalized_mesh",
        [
            [0.1, 0.5, 1.0],
            [0.0, 0.5, 0.9],
            [0.0, 0.5, 0.5, 1.0],
            [0.0, 0.7, 0.3, 1.0],
            [[0.0, 1.0]],
        ],
    )
    def test_invalid_normalized_mesh(self, normalized_mesh):
        size = np.asarray(normalized_mesh).size
        with pytest.raises(ConfigurationError):
            create_normalized_mesh(size, normalized_mesh)

    def test_too_few_points(self):
        with pytest.raises(ConfigurationError):
            create_normalized_mesh(1)
