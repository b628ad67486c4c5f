"""The DET detection measure: the AOGM restricted to vertex operations.
"""
from typing import Mapping, Tuple

from ..errors import ComputationPreconditionError
from .aogm import (
    EditOperations, count_vertex_operations, normalize_aogm,
    FALSE_NEGATIVE_VERTEX, FALSE_POSITIVE_VERTEX, SPLIT_OPERATION,
)
from .config import PenaltyConfig
from .label_matching import FrameMatching

VERTEX_OPERATIONS = (SPLIT_OPERATION, FALSE_NEGATIVE_VERTEX, FALSE_POSITIVE_VERTEX)
"""@private
"""


def compute_det(
    levels: Mapping[int, FrameMatching],
    penalty: PenaltyConfig = PenaltyConfig(),
) -> Tuple[float, EditOperations]:
    """Compute the DET measure.

    DET = 1 - min(AOGM-D, AOGM-D_empty) / AOGM-D_empty, where AOGM-D is the weighted
    number of split, false negative and false positive operations and AOGM-D_empty
    the value for an empty result, i.e. all ground-truth objects missing.

    Args:
        levels: The frame matchings.
        penalty: The penalties, only the vertex penalties are used.

    Returns:
        The DET value in [0, 1], higher is better.
        The vertex operations.
    """
    operations = count_vertex_operations(levels)
    n_gt_objects = sum(len(level.gt_sizes) for level in levels.values())
    if n_gt_objects == 0:
        raise ComputationPreconditionError("No ground-truth object was found, DET is not defined")
    aogm_d = operations.cost(penalty)
    empty = penalty.false_negative * n_gt_objects
    return normalize_aogm(aogm_d, empty), operations
