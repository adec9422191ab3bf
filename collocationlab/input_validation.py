import logging
import math
from collections.abc import Sequence
from typing import Any

import casadi as ca
import numpy as np

from .exceptions import ConfigurationError, DataIntegrityError, DimensionMismatchError
from .cl_types import FloatArray
from .utils.constants import MESH_TOLERANCE, MINIMUM_MESH_POINTS, MINIMUM_TIME_INTERVAL


logger = logging.getLogger(__name__)


# ============================================================================
# CORE VALIDATION PRIMITIVES
# ============================================================================


def validate_positive_integer(value: Any, name: str, min_value: int = 1) -> None:
    """Single source for positive integer validation."""
    if isinstance(value, bool) or not isinstance(value, int | np.integer):
        raise ConfigurationError(f"{name} must be integer, got {type(value)}")
    if value < min_value:
        raise ConfigurationError(f"{name} must be >= {min_value}, got {value}")


def validate_positive_number(value: Any, name: str) -> None:
    """Single source for positive number validation."""
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise ConfigurationError(f"{name} must be numeric, got {type(value)}")
    if math.isnan(value) or math.isinf(value):
        raise ConfigurationError(f"{name} cannot be NaN or infinite, got {value}")
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {value}")


def validate_string_not_empty(value: Any, name: str) -> None:
    """Single source for non-empty string validation."""
    if not isinstance(value, str):
        raise ConfigurationError(f"{name} must be string, got {type(value)}")
    if not value.strip():
        raise ConfigurationError(f"{name} cannot be empty")


def validate_array_numerical_integrity(
    array: FloatArray, name: str, context: str = "validation"
) -> None:
    """Single source for NaN/Inf validation."""
    if np.any(np.isnan(array)) or np.any(np.isinf(array)):
        raise DataIntegrityError(
            f"{name} contains NaN or Inf values", f"Numerical corruption in {context}"
        )


def validate_array_shape(
    array: FloatArray, expected_shape: tuple[int, ...], name: str, context: str = "validation"
) -> None:
    """Single source for shape validation."""
    if array.shape != expected_shape:
        raise DimensionMismatchError(
            f"{name} has shape {array.shape}, expected {expected_shape}",
            f"Shape mismatch in {context}",
        )


# ============================================================================
# BOUND VALIDATION
# ============================================================================


def validate_bound_input_format(bound_input: Any, context: str) -> None:
    """Single source for bound specification validation."""
    if bound_input is None:
        return

    if isinstance(bound_input, bool):
        raise ConfigurationError(f"Invalid bound type: {type(bound_input)}", context)

    if isinstance(bound_input, int | float):
        if math.isnan(bound_input) or math.isinf(bound_input):
            raise ConfigurationError(f"Fixed bound cannot be NaN/infinite: {bound_input}", context)
        return

    if not isinstance(bound_input, tuple):
        raise ConfigurationError(f"Invalid bound type: {type(bound_input)}", context)

    if len(bound_input) != 2:
        raise ConfigurationError(
            f"Bound tuple must have 2 elements, got {len(bound_input)}", context
        )

    lower, upper = bound_input
    for i, val in enumerate([lower, upper]):
        if val is None:
            continue
        if isinstance(val, bool) or not isinstance(val, int | float):
            raise ConfigurationError(f"Bound {i} must be numeric/None, got {type(val)}", context)
        if math.isnan(val):
            raise ConfigurationError(f"Bound {i} cannot be NaN", context)

    if lower is not None and upper is not None and lower > upper:
        raise ConfigurationError(f"Lower bound ({lower}) > upper bound ({upper})", context)


def validate_bound_arrays(lower: FloatArray, upper: FloatArray, name: str) -> None:
    """Check paired lower/upper arrays are consistent."""
    if lower.shape != upper.shape:
        raise DimensionMismatchError(
            f"{name} lower bounds shape {lower.shape} != upper bounds shape {upper.shape}"
        )
    if np.any(np.isnan(lower)) or np.any(np.isnan(upper)):
        raise ConfigurationError(f"{name} bounds cannot be NaN")
    if np.any(lower > upper):
        index = int(np.argmax(lower > upper))
        raise ConfigurationError(
            f"{name} lower bound ({lower[index]}) > upper bound ({upper[index]}) at index {index}"
        )


# ============================================================================
# MESH VALIDATION
# ============================================================================


def validate_time_horizon(initial_time: float, final_time: float) -> None:
    """Single source for fixed horizon validation."""
    for value, name in [(initial_time, "initial time"), (final_time, "final time")]:
        if isinstance(value, bool) or not isinstance(value, int | float):
            raise ConfigurationError(f"{name} must be numeric, got {type(value)}")
        if math.isnan(value) or math.isinf(value):
            raise ConfigurationError(f"{name} cannot be NaN or infinite, got {value}")

    if final_time - initial_time < MINIMUM_TIME_INTERVAL:
        raise ConfigurationError(
            f"Final time ({final_time}) must exceed initial time ({initial_time}) "
            f"by at least {MINIMUM_TIME_INTERVAL}"
        )


def validate_num_mesh_points(num_mesh_points: Any) -> None:
    """Single source for mesh size validation."""
    validate_positive_integer(num_mesh_points, "number of mesh points", MINIMUM_MESH_POINTS)


def validate_normalized_mesh(normalized_mesh: FloatArray, num_mesh_points: int) -> None:
    """Check a user supplied mesh on [0, 1]."""
    if normalized_mesh.ndim != 1:
        raise ConfigurationError(
            f"Normalized mesh must be one dimensional, got shape {normalized_mesh.shape}"
        )
    if len(normalized_mesh) != num_mesh_points:
        raise ConfigurationError(
            f"Normalized mesh has {len(normalized_mesh)} points, expected {num_mesh_points}"
        )
    validate_array_numerical_integrity(normalized_mesh, "normalized mesh", "mesh configuration")

    if not np.isclose(normalized_mesh[0], 0.0, atol=MESH_TOLERANCE):
        raise ConfigurationError(f"First mesh point must be 0.0, got {normalized_mesh[0]}")
    if not np.isclose(normalized_mesh[-1], 1.0, atol=MESH_TOLERANCE):
        raise ConfigurationError(f"Last mesh point must be 1.0, got {normalized_mesh[-1]}")

    if not np.all(np.diff(normalized_mesh) > MESH_TOLERANCE):
        raise ConfigurationError(
            f"Mesh points must be strictly increasing with min spacing {MESH_TOLERANCE}"
        )


def validate_time_grid(time_grid: FloatArray) -> None:
    """A physical mesh must be strictly increasing."""
    if len(time_grid) < MINIMUM_MESH_POINTS:
        raise ConfigurationError(
            f"Mesh needs at least {MINIMUM_MESH_POINTS} points, got {len(time_grid)}"
        )
    if not np.all(np.diff(time_grid) > 0.0):
        raise ConfigurationError("Mesh times must be strictly increasing")


# ============================================================================
# EVALUATOR OUTPUT VALIDATION
# ============================================================================


def _evaluator_item_column(item: Any, name: str) -> ca.MX:
    """One entry of a list-valued output as an MX column of any length."""
    if isinstance(item, ca.MX | ca.DM):
        rows, cols = item.shape
        if rows != 1 and cols != 1:
            raise DimensionMismatchError(
                f"{name} list entry has matrix shape ({rows}, {cols})", "Evaluator output size"
            )
        column = ca.MX(item) if isinstance(item, ca.DM) else item
        return column.T if rows == 1 and cols != 1 else column
    return validate_evaluator_output(item, 1, name)


def validate_evaluator_output(output: Any, expected_size: int, name: str) -> ca.MX:
    """
    Convert an evaluator's return value to an MX column of the expected size.

    Accepts CasADi matrices, lists or tuples of scalar expressions, numpy arrays
    and plain numbers. Row vectors are transposed.

    Raises:
        DimensionMismatchError: If the output does not hold exactly expected_size entries.
    """
    if output is None:
        raise DataIntegrityError(f"{name} returned None", "Evaluator output error")

    if isinstance(output, ca.SX):
        raise DataIntegrityError(
            f"{name} returned an SX expression; evaluators receive MX symbols",
            "Evaluator type error",
        )

    if isinstance(output, ca.MX):
        result = output
    elif isinstance(output, ca.DM):
        result = ca.MX(output)
    elif isinstance(output, np.ndarray):
        if output.dtype == object:
            result = ca.vertcat(*output.flatten().tolist()) if output.size else ca.MX(0, 1)
        else:
            result = ca.MX(ca.DM(np.asarray(output, dtype=np.float64).reshape(-1, 1)))
    elif isinstance(output, int | float):
        result = ca.MX(float(output))
    elif isinstance(output, Sequence) and not isinstance(output, str):
        items = [_evaluator_item_column(item, name) for item in output]
        result = ca.vertcat(*items) if items else ca.MX(0, 1)
    else:
        raise DataIntegrityError(
            f"Unsupported {name} output type: {type(output)}", "Evaluator type error"
        )

    rows, cols = result.shape
    if rows * cols != expected_size or (rows != 1 and cols != 1 and expected_size > 0):
        raise DimensionMismatchError(
            f"{name} returned shape ({rows}, {cols}), expected {expected_size} entries",
            "Evaluator output size",
        )
    if cols != 1 and rows == 1:
        result = result.T
    if expected_size == 0:
        return ca.MX(0, 1)
    return result


def validate_problem_dimensions(
    num_states: int, num_controls: int, num_parameters: int, context: str = "problem"
) -> None:
    """Single source for problem dimension validation."""
    for count, name in [
        (num_states, "states"),
        (num_controls, "controls"),
        (num_parameters, "parameters"),
    ]:
        if not isinstance(count, int) or count < 0:
            raise ConfigurationError(
                f"Number of {name} must be non-negative integer, got {count}", context
            )
