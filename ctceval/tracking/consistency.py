"""Structural validation of a track file against the label images of the same dataset.

All violations are collected instead of stopping at the first one. Whether an inconsistent
dataset may still be scored is decided by the caller.
"""
import logging
from collections import Counter
from itertools import combinations
from typing import Collection, Dict, Iterable, List, Mapping, Optional

from .. import errors
from ..errors import Violation
from ..io.track_file import Track

logger = logging.getLogger(__name__)


class ConsistencyReport:
    """The result of a consistency check.

    Args:
        name: The name of the checked dataset, used in messages.
        violations: The violations found.
    """
    def __init__(self, name: str, violations: Iterable[Violation] = ()):
        self.name = name
        self.violations = list(violations)

    @property
    def consistent(self) -> bool:
        return len(self.violations) == 0

    def counts(self) -> Counter:
        """The number of violations per category.
        """
        return Counter(violation.category for violation in self.violations)

    def extend(self, other: "ConsistencyReport") -> None:
        self.violations.extend(other.violations)

    def report(self) -> str:
        """Describe the violations, organized by category.
        """
        if self.consistent:
            return f"The {self.name} data is consistent."
        lines = [f"The {self.name} data is inconsistent, found {len(self.violations)} violation(s):"]
        for category, count in sorted(self.counts().items()):
            lines.append(f"----------{category} ({count})----------")
            lines.extend(
                violation.message for violation in self.violations if violation.category == category
            )
        return "\n".join(lines)

    def raise_if_inconsistent(self) -> None:
        """Raise the matching `ConsistencyError` if any violation was found.
        """
        if not self.consistent:
            raise errors.consistency_error(
                f"Inconsistent {self.name} data: {len(self.violations)} violation(s), "
                f"first: {self.violations[0].message}",
                self.violations,
            )


def _check_tracks(tracks: List[Track]) -> List[Violation]:
    violations = []
    by_id: Dict[int, List[Track]] = {}
    for track in tracks:
        by_id.setdefault(track.track_id, []).append(track)

    for track in tracks:
        tid = track.track_id
        if track.start_frame > track.end_frame:
            violations.append(Violation(
                errors.INVALID_RANGE,
                f"Track {tid} begins at {track.start_frame} after its end at {track.end_frame}", tid
            ))

        if track.is_root:
            continue
        if track.parent_id == tid:
            violations.append(Violation(errors.SELF_PARENT, f"Track {tid} is its own parent", tid))
            continue
        parents = by_id.get(track.parent_id)
        if parents is None:
            violations.append(Violation(
                errors.MISSING_PARENT, f"Parent {track.parent_id} of track {tid} does not exist", tid
            ))
            continue
        for parent in parents:
            if parent.end_frame >= track.start_frame:
                violations.append(Violation(
                    errors.PARENT_ORDER,
                    f"Parent {parent.track_id} of track {tid} ends at {parent.end_frame}, "
                    f"which is not before the track begins at {track.start_frame}", tid
                ))

    # a track id is unique within the dataset, even for disjoint frame ranges
    for tid, records in sorted(by_id.items()):
        for first, second in combinations(records, 2):
            begin = max(first.start_frame, second.start_frame)
            end = min(first.end_frame, second.end_frame)
            if begin <= end:
                message = f"Label {tid} is claimed by two tracks in frames {begin}-{end}"
            else:
                begin = min(first.start_frame, second.start_frame)
                message = (
                    f"Track {tid} is listed more than once, in frames {first.start_frame}-{first.end_frame} "
                    f"and {second.start_frame}-{second.end_frame}"
                )
            violations.append(Violation(errors.DUPLICATE_LABEL, message, tid, begin))

    # sibling tracks must not start with the same label at the same frame
    siblings: Dict[tuple, List[Track]] = {}
    for track in tracks:
        if not track.is_root:
            siblings.setdefault((track.parent_id, track.start_frame, track.track_id), []).append(track)
    for (parent_id, start_frame, tid), records in sorted(siblings.items()):
        if len(records) > 1:
            violations.append(Violation(
                errors.SIBLING_CONFLICT,
                f"{len(records)} children of track {parent_id} begin with label {tid} at T={start_frame}",
                tid, start_frame
            ))

    return violations


def _check_labels(tracks: List[Track], frame_labels: Mapping[int, Collection[int]]) -> List[Violation]:
    violations = []
    by_id: Dict[int, List[Track]] = {}
    for track in tracks:
        by_id.setdefault(track.track_id, []).append(track)

    for frame in sorted(frame_labels):
        for label in sorted(frame_labels[frame]):
            records = by_id.get(label)
            if records is None:
                violations.append(Violation(
                    errors.UNKNOWN_LABEL, f"[T={frame}] Label {label} has no record in the track file", label, frame
                ))
            elif not any(track.covers(frame) for track in records):
                violations.append(Violation(
                    errors.LABEL_OUTSIDE_TRACK,
                    f"[T={frame}] Label {label} is present outside of the frame range of its track", label, frame
                ))

    for track in tracks:
        for frame in range(track.start_frame, track.end_frame + 1):
            # frames that were not loaded cannot be checked
            if frame in frame_labels and track.track_id not in frame_labels[frame]:
                violations.append(Violation(
                    errors.MISSING_LABEL,
                    f"[T={frame}] Label {track.track_id} of track {track.track_id} is missing in the image",
                    track.track_id, frame
                ))
    return violations


def check_track_consistency(
    tracks: Iterable[Track],
    frame_labels: Mapping[int, Collection[int]],
    check_empty_images: bool = False,
    name: str = "result",
    empty_frames: Optional[Iterable[int]] = None,
) -> ConsistencyReport:
    """Check the consistency of a track file with the label images of the same dataset.

    The checks are:
    - every track begins before it ends;
    - every parent exists, is not the track itself and ends before the track begins;
    - no track id is listed more than once;
    - no two sibling tracks begin with the same label at the same frame;
    - every label in an image has a track record whose frame range contains the frame;
    - every track's label is present in all loaded frames of its range;
    - optionally, no frame is entirely background.

    Args:
        tracks: The tracks, in file order, duplicates included.
        frame_labels: The labels present in each loaded frame.
        check_empty_images: Whether to report frames without any label.
        name: The name of the dataset, used in messages.
        empty_frames: The frames to report as empty. By default, these are derived from `frame_labels`.

    Returns:
        The report with all violations.
    """
    tracks = list(tracks)
    violations = _check_tracks(tracks)
    violations.extend(_check_labels(tracks, frame_labels))

    if check_empty_images:
        if empty_frames is None:
            empty_frames = [frame for frame, labels in frame_labels.items() if len(labels) == 0]
        violations.extend(
            Violation(errors.EMPTY_IMAGE, f"[T={frame}] The {name} image is empty", 0, frame)
            for frame in sorted(empty_frames)
        )

    report = ConsistencyReport(name, violations)
    if not report.consistent:
        logger.debug("Found %i violations in the %s data", len(violations), name)
    return report
