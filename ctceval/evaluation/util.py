from typing import Dict, Tuple

import numpy as np


def contingency_table(
    seg_a: np.ndarray,
    seg_b: np.ndarray,
) -> Tuple[Dict[int, int], Dict[int, int], np.ndarray, np.ndarray]:
    """Compute the pairs and counts in the contingency table for two segmentations.

    The contingency table counts the number of pixels that are shared between
    objects from seg_a and seg_b.

    Args:
        seg_a: the first segmentation.
        seg_b: the second segmentation.

    Returns:
        Dictionary that maps ids in seg_a to count.
        Dictionary that maps ids in seg_b to count.
        The pairs in the contigency table, giving first the id in seg_a and then the one in seg_b.
        The overlap count in the contigency table.
    """
    if seg_a.shape != seg_b.shape:
        raise ValueError(f"Segmentations have different shapes: {seg_a.shape}, {seg_b.shape}")

    # flatten first, the shape of the inverse index returned by unique differs between numpy versions
    seg_a, seg_b = seg_a.ravel(), seg_b.ravel()
    a_ids, a_inverse, a_counts = np.unique(seg_a, return_inverse=True, return_counts=True)
    b_ids, b_inverse, b_counts = np.unique(seg_b, return_inverse=True, return_counts=True)
    a_dict = {int(ida): int(count) for ida, count in zip(a_ids, a_counts)}
    b_dict = {int(idb): int(count) for idb, count in zip(b_ids, b_counts)}

    n_b = len(b_ids)
    if n_b == 0:
        return a_dict, b_dict, np.zeros((0, 2), dtype="uint64"), np.zeros(0, dtype="uint64")

    # encode the index pairs into a single key, so that we can count them with a 1d unique.
    # we use the continuous indices instead of the ids so that the keys cannot overflow
    keys = a_inverse.astype("int64") * n_b + b_inverse.astype("int64")
    p_keys, p_counts = np.unique(keys, return_counts=True)
    p_ids = np.stack([a_ids[p_keys // n_b], b_ids[p_keys % n_b]], axis=1).astype("uint64")
    assert len(p_ids) == len(p_counts)

    return a_dict, b_dict, p_ids, p_counts.astype("uint64")


def label_overlaps(
    seg_a: np.ndarray,
    seg_b: np.ndarray,
    ignore_label: int = 0,
) -> Tuple[Dict[int, int], Dict[int, int], Dict[Tuple[int, int], int]]:
    """Compute the object sizes and the pairwise overlaps of the objects in two label images.

    Args:
        seg_a: the first segmentation.
        seg_b: the second segmentation.
        ignore_label: label that is not treated as object in either segmentation.

    Returns:
        Dictionary that maps ids in seg_a to their size.
        Dictionary that maps ids in seg_b to their size.
        Dictionary that maps pairs of ids (id in seg_a, id in seg_b) to the number of shared pixels.
            Only pairs with non-zero overlap are contained.
    """
    a_dict, b_dict, p_ids, p_counts = contingency_table(seg_a, seg_b)
    a_dict.pop(ignore_label, None)
    b_dict.pop(ignore_label, None)
    overlaps = {
        (int(ida), int(idb)): int(count) for (ida, idb), count in zip(p_ids, p_counts)
        if ida != ignore_label and idb != ignore_label
    }
    return a_dict, b_dict, overlaps


def jaccard_index(overlap: int, size_a: int, size_b: int) -> float:
    """Compute the jaccard index (intersection over union) of two objects.

    Args:
        overlap: the number of shared pixels.
        size_a: the size of the first object.
        size_b: the size of the second object.

    Returns:
        The jaccard index.
    """
    union = size_a + size_b - overlap
    return float(overlap) / float(union) if union > 0 else 0.0
