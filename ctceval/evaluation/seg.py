"""The SEG segmentation measure: the mean jaccard index of the ground-truth objects.
"""
from typing import List, Sequence, Tuple

import numpy as np

from ..errors import ComputationPreconditionError
from .label_matching import FrameMatching


def _frame_name(matching, z):
    return f"T={matching.frame}" if z is None else f"T={matching.frame} Z={z}"


def compute_seg(
    matchings: Sequence[FrameMatching],
    slices: Sequence = None,
    report_result_labels: bool = False,
) -> Tuple[float, List[str]]:
    """Compute the SEG measure.

    Each ground-truth object is matched with the result object that covers more than half of it.
    Its score is the jaccard index of the two objects, or zero if no result object covers it.
    SEG is the mean score over all ground-truth objects.

    Args:
        matchings: The matchings of the segmentation ground-truth images.
        slices: The annotated slice for each matching, None for full frames. Only used for the report.
        report_result_labels: Whether to also report the result objects.

    Returns:
        The SEG value in [0, 1], higher is better.
        The report, one line per ground-truth object (and result object if requested).
    """
    slices = [None] * len(matchings) if slices is None else slices
    assert len(slices) == len(matchings)

    scores, report = [], []
    for matching, z in zip(matchings, slices):
        name = _frame_name(matching, z)
        for gt_id in matching.gt_labels:
            score = matching.jaccard(gt_id)
            scores.append(score)
            res_id = matching.gt_match[gt_id]
            if res_id == 0:
                report.append(f"GT_label={gt_id} {name} J=0 (no matching RES label)")
            else:
                report.append(f"GT_label={gt_id} {name} J={score:.6f} (RES_label={res_id})")

        if report_result_labels:
            for res_id in matching.res_labels:
                gt_ids = matching.res_match[res_id]
                if gt_ids:
                    gt_str = ",".join(str(gt_id) for gt_id in gt_ids)
                    report.append(f"RES_label={res_id} {name} matches GT_label(s) {gt_str}")
                else:
                    report.append(f"RES_label={res_id} {name} matches no GT label")

    if len(scores) == 0:
        raise ComputationPreconditionError("No ground-truth object was found, SEG is not defined")
    return float(np.mean(scores)), report
