"""
Evaluation of problem functions at the grid points and emission of constraint blocks.
"""

import logging

import casadi as ca
import numpy as np

from ..cl_types import FloatArray, IntArray, ProblemProtocol
from ..schemes import ConstraintBlock, NodeData
from .types_transcription import ConstraintLayout, ProblemEvaluators, TranscriptionVariables


logger = logging.getLogger(__name__)


def map_over_grid(
    function: ca.Function,
    grid_times: FloatArray,
    states: ca.MX,
    controls: ca.MX,
    parameters: ca.MX,
) -> ca.MX:
    """Evaluate a node function at every grid point; returns (outputs, num_grid_points)."""
    num_grid_points = len(grid_times)
    mapped = function.map(num_grid_points)
    return mapped(
        ca.DM(grid_times).T,
        states,
        controls,
        ca.repmat(parameters, 1, num_grid_points),
    )


def _split_path_bounds(
    problem: ProblemProtocol,
) -> tuple[list[int], list[int], tuple[FloatArray, FloatArray], tuple[FloatArray, FloatArray]]:
    lower, upper = problem.get_path_constraint_bounds()
    kinematic = problem.get_kinematic_constraint_indices()
    others = [i for i in range(problem.num_path_constraints) if i not in kinematic]
    return (
        kinematic,
        others,
        (lower[kinematic], upper[kinematic]),
        (lower[others], upper[others]),
    )


def evaluate_node_data(
    problem: ProblemProtocol,
    evaluators: ProblemEvaluators,
    variables: TranscriptionVariables,
    grid_times: FloatArray,
    kinematic_mask: IntArray,
) -> NodeData:
    """Collect everything a scheme needs to assemble its constraints."""
    num_grid_points = len(grid_times)
    args = (grid_times, variables.states, variables.controls, variables.parameters)

    state_derivatives = map_over_grid(evaluators.dynamics, *args)

    if evaluators.implicit_residual is not None:
        residuals = map_over_grid(evaluators.implicit_residual, *args)
    else:
        residuals = ca.MX(0, num_grid_points)

    kinematic, others, kinematic_bounds, path_bounds = _split_path_bounds(problem)
    if evaluators.path_constraints is not None:
        path_outputs = map_over_grid(evaluators.path_constraints, *args)
        kinematic_errors = path_outputs[kinematic, :] if kinematic else ca.MX(0, num_grid_points)
        path_values = path_outputs[others, :] if others else ca.MX(0, num_grid_points)
    else:
        kinematic_errors = ca.MX(0, num_grid_points)
        path_values = ca.MX(0, num_grid_points)

    return NodeData(
        grid_times=grid_times,
        states=variables.states,
        controls=variables.controls,
        state_derivatives=state_derivatives,
        residuals=residuals,
        kinematic_errors=kinematic_errors,
        path_values=path_values,
        kinematic_bounds=kinematic_bounds,
        path_bounds=path_bounds,
        kinematic_mask=kinematic_mask,
    )


def apply_constraint_block(opti: ca.Opti, block: ConstraintBlock) -> bool:
    """Add one block to the NLP. Returns False when the block is unbounded and skipped."""
    if block.is_equality:
        opti.subject_to(block.expression == ca.DM(block.lower))
        return True

    if not (np.any(np.isfinite(block.lower)) or np.any(np.isfinite(block.upper))):
        return False

    opti.subject_to(opti.bounded(ca.DM(block.lower), block.expression, ca.DM(block.upper)))
    return True


def apply_constraint_blocks(
    opti: ca.Opti, blocks: list[ConstraintBlock], layout: ConstraintLayout
) -> None:
    """Emit blocks in the order given, recording their sizes."""
    for block in blocks:
        if apply_constraint_block(opti, block):
            layout.record(block.kind, block.size)

    logger.debug(
        "Applied constraints: defects=%d, residuals=%d, kinematic=%d, path=%d",
        layout.num_defects,
        layout.num_residuals,
        layout.num_kinematic,
        layout.num_path,
    )
