"""Lineage graphs built from a track file and the labels present in each frame.
"""
from typing import Collection, Dict, Iterable, List, Mapping, Tuple, Union

import networkx as nx

from ..errors import ParentError, Violation, MISSING_PARENT, PARENT_ORDER, SELF_PARENT, INVALID_RANGE
from ..io.track_file import Track, tracks_to_dict

TEMPORAL = "temporal"
PARENTAL = "parental"

Node = Tuple[int, int]
"""A node of the lineage graph: (frame, label).
"""


def _check_parent(track, tracks):
    if track.start_frame > track.end_frame:
        msg = f"Track {track.track_id} begins at {track.start_frame} after its end at {track.end_frame}"
        raise ParentError(msg, [Violation(INVALID_RANGE, msg, track.track_id)])
    if track.is_root:
        return
    if track.parent_id == track.track_id:
        msg = f"Track {track.track_id} is its own parent"
        raise ParentError(msg, [Violation(SELF_PARENT, msg, track.track_id)])
    parent = tracks.get(track.parent_id)
    if parent is None:
        msg = f"Parent {track.parent_id} of track {track.track_id} does not exist"
        raise ParentError(msg, [Violation(MISSING_PARENT, msg, track.track_id)])
    if parent.end_frame >= track.start_frame:
        msg = (f"Parent {parent.track_id} of track {track.track_id} ends at {parent.end_frame}, "
               f"which is not before the track begins at {track.start_frame}")
        raise ParentError(msg, [Violation(PARENT_ORDER, msg, track.track_id)])


def track_nodes(track: Track, frame_labels: Mapping[int, Collection[int]]) -> List[Node]:
    """Get the nodes of a track, i.e. the frames in its range where its label is present.

    Args:
        track: The track.
        frame_labels: The labels present in each frame.

    Returns:
        The nodes, sorted by frame.
    """
    return [
        (frame, track.track_id) for frame in sorted(frame_labels)
        if track.covers(frame) and track.track_id in frame_labels[frame]
    ]


def build_lineage_graph(
    tracks: Union[Iterable[Track], Dict[int, Track]],
    frame_labels: Mapping[int, Collection[int]],
) -> nx.DiGraph:
    """Build the lineage graph of a dataset.

    Every labeled object in the given frames becomes a node `(frame, label)`.
    Temporal edges connect the consecutive occurrences of a track's label within the track's frame range.
    Parental edges connect the last node of a parent track to the first node of each of its child tracks.

    Args:
        tracks: The tracks of the dataset.
        frame_labels: The labels present in each frame. Only these frames become part of the graph.

    Returns:
        The lineage graph. Edges have the attribute `kind`, which is either 'temporal' or 'parental'.
    """
    if not isinstance(tracks, dict):
        tracks = tracks_to_dict(tracks)

    # validate all parents before building anything
    for track in tracks.values():
        _check_parent(track, tracks)

    graph = nx.DiGraph()
    for frame in sorted(frame_labels):
        graph.add_nodes_from((frame, int(label)) for label in sorted(frame_labels[frame]))

    nodes_per_track = {track_id: track_nodes(track, frame_labels) for track_id, track in tracks.items()}

    for track_id, nodes in nodes_per_track.items():
        for u, v in zip(nodes[:-1], nodes[1:]):
            graph.add_edge(u, v, kind=TEMPORAL)

    for track_id, track in tracks.items():
        if track.is_root:
            continue
        parent_nodes, child_nodes = nodes_per_track[track.parent_id], nodes_per_track[track_id]
        if parent_nodes and child_nodes:
            graph.add_edge(parent_nodes[-1], child_nodes[0], kind=PARENTAL)

    graph.graph["tracks"] = tracks
    return graph


def divisions(tracks: Dict[int, Track]) -> List[Tuple[int, Tuple[int, ...]]]:
    """Find the division events, i.e. tracks with at least two child tracks.

    Args:
        tracks: The tracks.

    Returns:
        The divisions, given as mother track id and the daughter track ids, sorted by mother id.
    """
    children = {}
    for track_id, track in sorted(tracks.items()):
        if not track.is_root and track.parent_id in tracks:
            children.setdefault(track.parent_id, []).append(track_id)
    return [(mother, tuple(daughters)) for mother, daughters in sorted(children.items()) if len(daughters) > 1]
