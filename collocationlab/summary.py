from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np


if TYPE_CHECKING:
    from .solution import Solution


logger = logging.getLogger(__name__)


def print_solution_summary(solution: Solution) -> None:
    """
    Present factual solution data without analysis or interpretation.

    Args:
        solution: Solution returned by a solve
    """
    print("\n" + "=" * 80)
    print("COLLOCATIONLAB SOLUTION DATA")
    print("=" * 80)

    _print_problem_structure_section(solution)
    _print_solution_status_section(solution)
    _print_trajectory_section(solution)
    _print_parameters_section(solution)
    _print_mesh_section(solution)

    print("=" * 80)
    print("END SOLUTION DATA")
    print("=" * 80 + "\n")


def _print_problem_structure_section(solution: Solution) -> None:
    print("\n┌─ PROBLEM STRUCTURE")
    print("│")
    print(f"│  Name: {solution.problem_name or 'Not available'}")
    print(f"│  State Variables ({solution.states.shape[1]}): {list(solution.state_names)}")
    print(f"│  Control Variables ({solution.controls.shape[1]}): {list(solution.control_names)}")
    print(f"│  Parameters: {len(solution.parameters)}")
    print("│")


def _print_solution_status_section(solution: Solution) -> None:
    print("┌─ SOLUTION STATUS")
    print("│")
    print(f"│  Status: {solution.status.value}")
    print(f"│  Solver Return Status: {solution.solver_return_status or 'Not available'}")
    print(f"│  Message: {solution.message}")

    if np.isfinite(solution.objective):
        print(f"│  Objective: {solution.objective:.12e}")
    else:
        print("│  Objective: Not available")

    if solution.integral is not None:
        print(f"│  Integral: {solution.integral:.12e}")

    if solution.num_iterations is not None:
        print(f"│  Iterations: {solution.num_iterations}")
    print("│")


def _print_trajectory_section(solution: Solution) -> None:
    print("┌─ TRAJECTORY RANGES")
    print("│")
    for names, values in [
        (solution.state_names, solution.states),
        (solution.control_names, solution.controls),
    ]:
        for i, name in enumerate(names):
            column = values[:, i]
            print(f"│  {name}: min={np.min(column):.6e}, max={np.max(column):.6e}")
    print("│")


def _print_parameters_section(solution: Solution) -> None:
    if len(solution.parameters) == 0:
        return

    print("┌─ PARAMETERS")
    print("│")
    for i, value in enumerate(solution.parameters):
        name = solution.parameter_names[i] if i < len(solution.parameter_names) else f"param_{i}"
        print(f"│  {name}: {value:.12e}")
    print("│")


def _print_mesh_section(solution: Solution) -> None:
    print("┌─ MESH CONFIGURATION")
    print("│")
    print(f"│  Scheme: {solution.transcription_scheme or 'Not available'}")
    print(f"│  Mesh Points: {solution.num_mesh_points}")
    print(f"│  Time Span: [{solution.initial_time:.6e}, {solution.final_time:.6e}]")
    if solution.num_mesh_points > 1:
        steps = np.diff(solution.time)
        print(f"│  Step Size: min={np.min(steps):.6e}, max={np.max(steps):.6e}")
    print("│")
