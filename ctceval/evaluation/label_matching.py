"""Correspondence between the objects of a ground-truth and a result label image of the same frame.

The label values of ground-truth and result are independent, so the correspondence is
derived from pixel overlap only: an object `a` covers an object `b` if they share more than
half of the pixels of `b`. Hence every object is covered by at most one object of the other image.
"""
from typing import Dict, List, NamedTuple, Optional, Tuple

import numpy as np

from ..errors import InputFormatError
from .util import jaccard_index, label_overlaps

MATCH = "match"
SPLIT = "split"
MERGE = "merge"
FALSE_NEGATIVE = "false_negative"
FALSE_POSITIVE = "false_positive"
CATEGORIES = (MATCH, SPLIT, MERGE, FALSE_NEGATIVE, FALSE_POSITIVE)
"""@private
"""


class Correspondence(NamedTuple):
    """Classified relation between ground-truth and result objects in one frame.
    """
    category: str
    frame: int
    gt_labels: Tuple[int, ...]
    res_labels: Tuple[int, ...]


def covers(overlap: int, size: int) -> bool:
    """Check whether an overlap is larger than half of the object size.

    Args:
        overlap: The number of shared pixels.
        size: The size of the covered object.

    Returns:
        Whether the object is covered.
    """
    return 2 * overlap > size


class FrameMatching:
    """The classification of the ground-truth and result objects of one frame.

    This record is retained for the whole sequence instead of the label images.

    Args:
        frame: The frame index.
        gt_sizes: The sizes of the ground-truth objects.
        res_sizes: The sizes of the result objects.
        overlaps: The number of shared pixels for each pair of (ground-truth, result) objects
            with non-zero overlap.
    """
    def __init__(
        self,
        frame: int,
        gt_sizes: Dict[int, int],
        res_sizes: Dict[int, int],
        overlaps: Dict[Tuple[int, int], int],
    ):
        self.frame = frame
        self.gt_sizes = gt_sizes
        self.res_sizes = res_sizes
        self.overlaps = overlaps

        # gt_match: the result object covering each ground-truth object (0 if none)
        # res_match: the ground-truth objects covered by each result object
        # res_owner: the ground-truth object covering each result object (0 if none)
        self.gt_match = {gt_id: 0 for gt_id in gt_sizes}
        res_match = {res_id: [] for res_id in res_sizes}
        self.res_owner = {res_id: 0 for res_id in res_sizes}
        for (gt_id, res_id), overlap in overlaps.items():
            if covers(overlap, gt_sizes[gt_id]):
                self.gt_match[gt_id] = res_id
                res_match[res_id].append(gt_id)
            if covers(overlap, res_sizes[res_id]):
                self.res_owner[res_id] = gt_id
        self.res_match = {res_id: tuple(sorted(gt_ids)) for res_id, gt_ids in res_match.items()}

    @property
    def gt_labels(self) -> List[int]:
        return sorted(self.gt_sizes)

    @property
    def res_labels(self) -> List[int]:
        return sorted(self.res_sizes)

    @property
    def gt_empty(self) -> bool:
        return len(self.gt_sizes) == 0

    @property
    def res_empty(self) -> bool:
        return len(self.res_sizes) == 0

    @property
    def false_negatives(self) -> List[int]:
        """The ground-truth objects that are not covered by any result object.
        """
        return [gt_id for gt_id in self.gt_labels if self.gt_match[gt_id] == 0]

    @property
    def false_positives(self) -> List[int]:
        """The result objects that do not cover any ground-truth object.
        """
        return [res_id for res_id in self.res_labels if len(self.res_match[res_id]) == 0]

    @property
    def merged(self) -> Dict[int, Tuple[int, ...]]:
        """The result objects that cover more than one ground-truth object.
        """
        return {res_id: gt_ids for res_id, gt_ids in sorted(self.res_match.items()) if len(gt_ids) > 1}

    @property
    def n_split_operations(self) -> int:
        """The number of operations needed to split the merged result objects.
        """
        return sum(len(gt_ids) - 1 for gt_ids in self.merged.values())

    def unique_match(self, gt_id: int) -> int:
        """Get the result object that covers this and only this ground-truth object.

        Args:
            gt_id: The ground-truth label.

        Returns:
            The result label, 0 if there is no such result object.
        """
        res_id = self.gt_match.get(gt_id, 0)
        if res_id == 0 or len(self.res_match[res_id]) != 1:
            return 0
        return res_id

    def jaccard(self, gt_id: int) -> float:
        """Get the jaccard index of a ground-truth object with the result object that covers it.

        Args:
            gt_id: The ground-truth label.

        Returns:
            The jaccard index, 0 if no result object covers the ground-truth object.
        """
        res_id = self.gt_match[gt_id]
        if res_id == 0:
            return 0.0
        return jaccard_index(self.overlaps[(gt_id, res_id)], self.gt_sizes[gt_id], self.res_sizes[res_id])

    def fragments(self, gt_id: int) -> Tuple[int, ...]:
        """Get the result objects that are covered by a ground-truth object.
        """
        return tuple(res_id for res_id in self.res_labels if self.res_owner[res_id] == gt_id)

    def correspondences(self) -> List[Correspondence]:
        """Classify the objects of this frame.

        Returns:
            The correspondences, one per classified object group.
        """
        result = []
        split_fragments = set()
        for gt_id in self.gt_labels:
            res_id = self.gt_match[gt_id]
            if res_id != 0:
                continue
            fragments = self.fragments(gt_id)
            if len(fragments) > 1:
                result.append(Correspondence(SPLIT, self.frame, (gt_id,), fragments))
                split_fragments.update(fragments)
            else:
                result.append(Correspondence(FALSE_NEGATIVE, self.frame, (gt_id,), ()))

        for res_id in self.res_labels:
            gt_ids = self.res_match[res_id]
            if len(gt_ids) == 1:
                result.append(Correspondence(MATCH, self.frame, gt_ids, (res_id,)))
            elif len(gt_ids) > 1:
                result.append(Correspondence(MERGE, self.frame, gt_ids, (res_id,)))
            elif res_id not in split_fragments:
                result.append(Correspondence(FALSE_POSITIVE, self.frame, (), (res_id,)))

        order = {category: i for i, category in enumerate(CATEGORIES)}
        return sorted(result, key=lambda corr: (order[corr.category], corr.gt_labels, corr.res_labels))

    def matching_report(self) -> List[str]:
        """Describe which ground-truth object is covered by which result object.
        """
        lines = []
        for gt_id in self.gt_labels:
            res_id = self.gt_match[gt_id]
            if res_id == 0:
                lines.append(f"T={self.frame} GT_label={gt_id} matches no RES label")
            else:
                lines.append(f"T={self.frame} GT_label={gt_id} matches RES_label={res_id}")
        for res_id in self.false_positives:
            lines.append(f"T={self.frame} RES_label={res_id} matches no GT label")
        return lines


def match_frame(
    gt_image: np.ndarray,
    res_image: np.ndarray,
    frame: int = 0,
    gt_path: Optional[str] = None,
    res_path: Optional[str] = None,
) -> FrameMatching:
    """Classify the objects of a ground-truth and a result label image of the same frame.

    Args:
        gt_image: The ground-truth label image.
        res_image: The result label image.
        frame: The frame index.
        gt_path: The path of the ground-truth image, used for the error message.
        res_path: The path of the result image, used for the error message.

    Returns:
        The frame matching. The images are not referenced by it.
    """
    if gt_image.shape != res_image.shape:
        gt_name = gt_path or "ground-truth image"
        res_name = res_path or "result image"
        raise InputFormatError(
            f"T={frame}: {gt_name} and {res_name} have different shapes: {gt_image.shape}, {res_image.shape}"
        )
    gt_sizes, res_sizes, overlaps = label_overlaps(gt_image, res_image)
    return FrameMatching(frame, gt_sizes, res_sizes, overlaps)

