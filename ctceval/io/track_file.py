import os
from typing import Dict, Iterable, List, NamedTuple, Union

from ..errors import ComputationPreconditionError, DuplicateLabelError, InputFormatError, Violation, DUPLICATE_LABEL


class Track(NamedTuple):
    """One line of a track file.

    The objects of this track carry `track_id` as their pixel value in the label images
    from `start_frame` to `end_frame` (both included).
    """
    track_id: int
    parent_id: int
    start_frame: int
    end_frame: int

    @property
    def is_root(self) -> bool:
        return self.parent_id == 0

    @property
    def length(self) -> int:
        return self.end_frame - self.start_frame + 1

    def covers(self, frame: int) -> bool:
        return self.start_frame <= frame <= self.end_frame


def parse_track_line(line: str, line_number: int = 0, path: str = "") -> Track:
    """Parse a single line of a track file.

    Args:
        line: The line, containing four non-negative integers separated by whitespace.
        line_number: The line number, used for the error message.
        path: The file path, used for the error message.

    Returns:
        The track.
    """
    values = line.split()
    if len(values) != 4:
        raise InputFormatError(
            f"{path}:{line_number}: Expected 4 values (id parent begin end), got {len(values)}: '{line.strip()}'"
        )
    try:
        values = [int(val) for val in values]
    except ValueError:
        raise InputFormatError(f"{path}:{line_number}: Non-integer value in '{line.strip()}'")
    if any(val < 0 for val in values):
        raise InputFormatError(f"{path}:{line_number}: Negative value in '{line.strip()}'")
    if values[0] == 0:
        raise InputFormatError(f"{path}:{line_number}: Track id 0 is reserved for the background")
    return Track(*values)


def read_track_file(path: Union[str, os.PathLike]) -> List[Track]:
    """Read all tracks from a track file.

    The tracks are returned in file order and duplicated ids are kept,
    so that they can be reported by the consistency check.

    Args:
        path: The path to the track file, e.g. 'res_track.txt' or 'TRA/man_track.txt'.

    Returns:
        The tracks.
    """
    if not os.path.isfile(path):
        raise ComputationPreconditionError(f"Track file {path} does not exist")

    try:
        with open(path) as f:
            lines = f.readlines()
    except (OSError, UnicodeDecodeError) as e:
        raise InputFormatError(f"Could not read track file {path}: {e}")

    tracks = [
        parse_track_line(line, line_number, str(path))
        for line_number, line in enumerate(lines, 1) if line.strip()
    ]
    return tracks


def write_track_file(path: Union[str, os.PathLike], tracks: Iterable[Track]) -> None:
    """Write tracks to a track file.

    Args:
        path: The output path.
        tracks: The tracks.
    """
    with open(path, "w") as f:
        for track in tracks:
            f.write(f"{track.track_id} {track.parent_id} {track.start_frame} {track.end_frame}\n")


def tracks_to_dict(tracks: Iterable[Track]) -> Dict[int, Track]:
    """Map the track ids to the tracks.

    Args:
        tracks: The tracks.

    Returns:
        The mapping of track id to track.
    """
    track_dict = {}
    for track in tracks:
        if track.track_id in track_dict:
            msg = f"Track {track.track_id} is listed more than once"
            raise DuplicateLabelError(msg, [Violation(DUPLICATE_LABEL, msg, track.track_id)])
        track_dict[track.track_id] = track
    return track_dict
