"""Biologically inspired tracking measures: CT, TF, BC(i) and CCA.

They reuse the frame matchings and track files of the tracking measures.
A ground-truth object is considered as reconstructed by a result object if the result object
covers it and no other ground-truth object.

Reference:
Ulman V, Maška M, Magnusson KEG, ..., Ortiz-de-Solórzano C.
An objective comparison of cell-tracking algorithms. Nature Methods. 2017.
"""
from typing import Dict, List, Mapping, Tuple

import numpy as np

from ..errors import ComputationPreconditionError
from ..io.track_file import Track
from ..tracking.lineage import divisions
from .label_matching import FrameMatching


def _loaded_frames(track, frames):
    return [frame for frame in frames if track.covers(frame)]


def compute_ct(
    levels: Mapping[int, FrameMatching],
    gt_tracks: Dict[int, Track],
    res_tracks: Dict[int, Track],
) -> float:
    """Compute the complete tracks measure.

    CT = 2 * T_rc / (T_gt + T_res), where T_rc is the number of ground-truth tracks that are
    reconstructed completely by a single result track with the same frame range.

    Args:
        levels: The frame matchings.
        gt_tracks: The ground-truth tracks.
        res_tracks: The result tracks.

    Returns:
        The CT value in [0, 1], higher is better.
    """
    frames = sorted(levels)
    gt_frames = {tid: _loaded_frames(track, frames) for tid, track in gt_tracks.items()}
    res_frames = {tid: _loaded_frames(track, frames) for tid, track in res_tracks.items()}
    gt_frames = {tid: fr for tid, fr in gt_frames.items() if fr}
    res_frames = {tid: fr for tid, fr in res_frames.items() if fr}
    if len(gt_frames) == 0:
        raise ComputationPreconditionError("No ground-truth track was found, CT is not defined")

    n_complete = 0
    for gt_id, track_frames in gt_frames.items():
        res_ids = {levels[frame].unique_match(gt_id) for frame in track_frames}
        if len(res_ids) != 1:
            continue
        res_id = res_ids.pop()
        if res_id != 0 and res_frames.get(res_id) == track_frames:
            n_complete += 1

    return 2.0 * n_complete / (len(gt_frames) + len(res_frames))


def track_fractions(
    levels: Mapping[int, FrameMatching],
    gt_tracks: Dict[int, Track],
) -> Dict[int, float]:
    """Compute the longest fraction of each ground-truth track that is followed by a single result track.

    Args:
        levels: The frame matchings.
        gt_tracks: The ground-truth tracks.

    Returns:
        The fraction for each ground-truth track with at least one loaded frame.
    """
    frames = sorted(levels)
    fractions = {}
    for gt_id, track in sorted(gt_tracks.items()):
        track_frames = _loaded_frames(track, frames)
        if not track_frames:
            continue
        longest, current, previous = 0, 0, 0
        for frame in track_frames:
            res_id = levels[frame].unique_match(gt_id)
            if res_id == 0:
                current = 0
            elif res_id == previous:
                current += 1
            else:
                current = 1
            previous = res_id
            longest = max(longest, current)
        fractions[gt_id] = longest / len(track_frames)
    return fractions


def compute_tf(
    levels: Mapping[int, FrameMatching],
    gt_tracks: Dict[int, Track],
) -> float:
    """Compute the track fractions measure.

    TF is the mean of the longest correctly followed fraction over all ground-truth tracks
    that are detected in at least one frame.

    Args:
        levels: The frame matchings.
        gt_tracks: The ground-truth tracks.

    Returns:
        The TF value in [0, 1], higher is better.
    """
    fractions = track_fractions(levels, gt_tracks)
    if len(fractions) == 0:
        raise ComputationPreconditionError("No ground-truth track was found, TF is not defined")
    detected = [fraction for fraction in fractions.values() if fraction > 0]
    return float(np.mean(detected)) if detected else 0.0


def _division_events(tracks):
    # division time is the first frame of the daughters
    events = []
    for mother, daughters in divisions(tracks):
        events.append((mother, daughters, min(tracks[daughter].start_frame for daughter in daughters)))
    return events


def _divisions_match(levels, gt_division, res_division):
    gt_mother, gt_daughters, gt_time = gt_division
    res_mother, res_daughters, res_time = res_division
    mother_frame, daughter_frame = min(gt_time, res_time) - 1, max(gt_time, res_time)
    if mother_frame not in levels or daughter_frame not in levels:
        return False
    if len(gt_daughters) != len(res_daughters):
        return False
    if levels[mother_frame].unique_match(gt_mother) != res_mother:
        return False
    matched = {levels[daughter_frame].unique_match(daughter) for daughter in gt_daughters}
    return matched == set(res_daughters)


def match_divisions(
    levels: Mapping[int, FrameMatching],
    gt_tracks: Dict[int, Track],
    res_tracks: Dict[int, Track],
    tolerance: int = 0,
) -> Tuple[int, int, int]:
    """Match the division events of ground-truth and result.

    A result division matches a ground-truth division if the daughters appear at most `tolerance` frames apart,
    the result mother reconstructs the ground-truth mother before both divisions and the result daughters
    reconstruct the ground-truth daughters after both divisions. Each division is matched at most once,
    preferring the smallest time difference.

    Args:
        levels: The frame matchings.
        gt_tracks: The ground-truth tracks.
        res_tracks: The result tracks.
        tolerance: The maximal time difference of matching divisions.

    Returns:
        The number of matched divisions.
        The number of ground-truth divisions.
        The number of result divisions.
    """
    gt_events, res_events = _division_events(gt_tracks), _division_events(res_tracks)
    used = set()
    n_matched = 0
    for gt_division in gt_events:
        candidates = sorted(
            (abs(gt_division[2] - res_division[2]), res_division[0], i)
            for i, res_division in enumerate(res_events)
            if i not in used and abs(gt_division[2] - res_division[2]) <= tolerance
        )
        for _, _, i in candidates:
            if _divisions_match(levels, gt_division, res_events[i]):
                used.add(i)
                n_matched += 1
                break
    return n_matched, len(gt_events), len(res_events)


def compute_bci(
    levels: Mapping[int, FrameMatching],
    gt_tracks: Dict[int, Track],
    res_tracks: Dict[int, Track],
    i: int = 2,
) -> float:
    """Compute the branching correctness measure BC(i).

    BC(i) is the F-measure of the division events matched with a tolerance of `i` frames.

    Args:
        levels: The frame matchings.
        gt_tracks: The ground-truth tracks.
        res_tracks: The result tracks.
        i: The tolerance in frames.

    Returns:
        The BC(i) value in [0, 1], higher is better.
    """
    if i < 0:
        raise ValueError(f"The tolerance must be non-negative, got {i}")
    n_matched, n_gt, n_res = match_divisions(levels, gt_tracks, res_tracks, tolerance=i)
    if n_gt == 0:
        raise ComputationPreconditionError("No division was found in the ground-truth, BC(i) is not defined")
    return 2.0 * n_matched / (n_gt + n_res)


def cell_cycle_lengths(tracks: Dict[int, Track]) -> List[int]:
    """Get the lengths of the complete cell cycles: tracks that begin with a division and end with a division.

    Args:
        tracks: The tracks.

    Returns:
        The cycle lengths in frames.
    """
    mothers = {mother for mother, _ in divisions(tracks)}
    return [
        track.length for tid, track in sorted(tracks.items())
        if tid in mothers and not track.is_root and track.parent_id in mothers
    ]


def compute_cca(gt_tracks: Dict[int, Track], res_tracks: Dict[int, Track]) -> float:
    """Compute the cell cycle accuracy.

    CCA = 1 - max |CDF_gt - CDF_res|, the complement of the largest distance between
    the cumulative histograms of the cell cycle lengths.

    Args:
        gt_tracks: The ground-truth tracks.
        res_tracks: The result tracks.

    Returns:
        The CCA value in [0, 1], higher is better.
    """
    gt_lengths, res_lengths = cell_cycle_lengths(gt_tracks), cell_cycle_lengths(res_tracks)
    if len(gt_lengths) == 0:
        raise ComputationPreconditionError("No complete cell cycle was found in the ground-truth, CCA is not defined")
    if len(res_lengths) == 0:
        return 0.0

    n_bins = max(max(gt_lengths), max(res_lengths)) + 1
    gt_hist = np.bincount(gt_lengths, minlength=n_bins) / len(gt_lengths)
    res_hist = np.bincount(res_lengths, minlength=n_bins) / len(res_lengths)
    distance = np.max(np.abs(np.cumsum(gt_hist) - np.cumsum(res_hist)))
    return float(1.0 - distance)
