# collocationlab/mesh.py
"""
Mesh construction on a fixed horizon.
"""

import logging

import numpy as np

from .cl_types import FloatArray, NumericArrayLike
from .input_validation import (
    validate_normalized_mesh,
    validate_num_mesh_points,
    validate_time_grid,
    validate_time_horizon,
)


logger = logging.getLogger(__name__)


def create_normalized_mesh(
    num_mesh_points: int, normalized_mesh: NumericArrayLike | None = None
) -> FloatArray:
    """Uniform mesh on [0, 1], or the validated user mesh."""
    validate_num_mesh_points(num_mesh_points)

    if normalized_mesh is None:
        return np.linspace(0.0, 1.0, num_mesh_points)

    mesh_array = np.asarray(normalized_mesh, dtype=np.float64)
    validate_normalized_mesh(mesh_array, num_mesh_points)
    # Snap endpoints so the horizon is reproduced exactly
    mesh_array = mesh_array.copy()
    mesh_array[0], mesh_array[-1] = 0.0, 1.0
    return mesh_array


def create_mesh(
    initial_time: float,
    final_time: float,
    num_mesh_points: int,
    normalized_mesh: NumericArrayLike | None = None,
) -> FloatArray:
    """
    Physical mesh times spanning [initial_time, final_time].

    Args:
        initial_time: Start of the horizon
        final_time: End of the horizon
        num_mesh_points: Number of nodes N (at least 2)
        normalized_mesh: Optional strictly increasing nodes on [0, 1]

    Returns:
        Array of N strictly increasing times; the first equals initial_time and
        the last equals final_time.
    """
    validate_time_horizon(initial_time, final_time)
    fractions = create_normalized_mesh(num_mesh_points, normalized_mesh)

    mesh_times = initial_time + (final_time - initial_time) * fractions
    mesh_times[0], mesh_times[-1] = initial_time, final_time
    validate_time_grid(mesh_times)

    logger.debug(
        "Created mesh: %d points on [%g, %g], uniform=%s",
        num_mesh_points,
        initial_time,
        final_time,
        normalized_mesh is None,
    )
    return mesh_times
