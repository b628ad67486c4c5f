"""The AOGM tracking measure and its normalization TRA.

AOGM is the weighted number of graph operations needed to transform the lineage graph of the
result into the lineage graph of the ground-truth. It is computed by a single deterministic pass
over the per-frame matchings and the edges of both graphs.

Reference:
Matula P, Maška M, Sorokin DV, Matula P, Ortiz-de-Solórzano C, Kozubek M.
Cell tracking accuracy measurement based on comparison of acyclic oriented graphs. PloS one. 2015.
"""
from typing import Dict, List, Mapping, Tuple

import networkx as nx

from ..errors import ComputationPreconditionError
from .config import PenaltyConfig
from .label_matching import FrameMatching

SPLIT_OPERATION = "split"
FALSE_NEGATIVE_VERTEX = "false_negative"
FALSE_POSITIVE_VERTEX = "false_positive"
REDUNDANT_EDGE = "redundant_edge"
MISSING_EDGE = "missing_edge"
WRONG_SEMANTICS_EDGE = "wrong_semantics_edge"
OPERATIONS = (
    SPLIT_OPERATION, FALSE_NEGATIVE_VERTEX, FALSE_POSITIVE_VERTEX,
    REDUNDANT_EDGE, MISSING_EDGE, WRONG_SEMANTICS_EDGE,
)
"""@private
"""

_TITLES = {
    SPLIT_OPERATION: "Splitting Operations",
    FALSE_NEGATIVE_VERTEX: "False Negative Vertices",
    FALSE_POSITIVE_VERTEX: "False Positive Vertices",
    REDUNDANT_EDGE: "Redundant Edges To Be Deleted",
    MISSING_EDGE: "Edges To Be Added",
    WRONG_SEMANTICS_EDGE: "Edges with Wrong Semantics",
}


class EditOperations:
    """The graph edit operations found when comparing result and ground-truth.

    Each operation is recorded with a short description, so that the counts and the
    categorized report are derived from the same data.
    """
    def __init__(self):
        self.records: Dict[str, List[str]] = {operation: [] for operation in OPERATIONS}

    def add(self, operation: str, description: str, count: int = 1) -> None:
        self.records[operation].extend([description] * count)

    def count(self, operation: str) -> int:
        return len(self.records[operation])

    @property
    def split(self) -> int:
        return self.count(SPLIT_OPERATION)

    @property
    def false_negative(self) -> int:
        return self.count(FALSE_NEGATIVE_VERTEX)

    @property
    def false_positive(self) -> int:
        return self.count(FALSE_POSITIVE_VERTEX)

    @property
    def redundant_edge(self) -> int:
        return self.count(REDUNDANT_EDGE)

    @property
    def missing_edge(self) -> int:
        return self.count(MISSING_EDGE)

    @property
    def wrong_semantics_edge(self) -> int:
        return self.count(WRONG_SEMANTICS_EDGE)

    def counts(self) -> Dict[str, int]:
        return {operation: self.count(operation) for operation in OPERATIONS}

    def cost(self, penalty: PenaltyConfig) -> float:
        """The weighted sum of the operations.
        """
        return sum(getattr(penalty, operation) * self.count(operation) for operation in OPERATIONS)

    def report(self, penalty: PenaltyConfig, operations=OPERATIONS) -> str:
        """The operations organized by category.
        """
        lines = []
        for operation in operations:
            lines.append(f"----------{_TITLES[operation]} (Penalty={getattr(penalty, operation):g})----------")
            lines.extend(self.records[operation])
        return "\n".join(lines)


def count_vertex_operations(levels: Mapping[int, FrameMatching], operations: EditOperations = None) -> EditOperations:
    """Find the vertex operations: splits of merged result objects, false negatives and false positives.

    Args:
        levels: The frame matchings.
        operations: Record the operations here. By default a new record is created.

    Returns:
        The vertex operations.
    """
    operations = EditOperations() if operations is None else operations
    for frame in sorted(levels):
        level = levels[frame]
        for res_id, gt_ids in level.merged.items():
            gt_str = ",".join(str(gt_id) for gt_id in gt_ids)
            operations.add(SPLIT_OPERATION, f"[T={frame} Label={res_id}] covers GT labels {gt_str}", len(gt_ids) - 1)
        for gt_id in level.false_negatives:
            operations.add(FALSE_NEGATIVE_VERTEX, f"[T={frame} GT_label={gt_id}]")
        for res_id in level.false_positives:
            operations.add(FALSE_POSITIVE_VERTEX, f"[T={frame} Label={res_id}]")
    return operations


def _edge_str(u, v, kind):
    return f"[T={u[0]} Label={u[1]}] -> [T={v[0]} Label={v[1]}] ({kind})"


def count_edge_operations(
    levels: Mapping[int, FrameMatching],
    gt_graph: nx.DiGraph,
    res_graph: nx.DiGraph,
    operations: EditOperations = None,
) -> EditOperations:
    """Find the edge operations: redundant, missing and wrong semantics edges.

    Every result edge is mapped onto the ground-truth objects that its endpoints cover.
    If one of the endpoints covers no ground-truth object, the edge is redundant.
    Otherwise the first pair of covered ground-truth objects (in ascending label order) that is connected
    in the ground-truth graph is claimed by the result edge; if no such pair exists the edge is redundant,
    and if the claimed edge is of different kind (temporal vs. parental) its semantics are wrong.
    Ground-truth edges that are not claimed by any result edge are missing.

    Args:
        levels: The frame matchings.
        gt_graph: The ground-truth lineage graph.
        res_graph: The result lineage graph.
        operations: Record the operations here. By default a new record is created.

    Returns:
        The edge operations.
    """
    operations = EditOperations() if operations is None else operations
    claimed = set()

    def covered(node):
        frame, label = node
        level = levels.get(frame)
        return () if level is None else level.res_match.get(label, ())

    for u, v, kind in sorted(res_graph.edges(data="kind")):
        gt_sources, gt_targets = covered(u), covered(v)
        gt_edge = None
        for gt_source in gt_sources:
            for gt_target in gt_targets:
                candidate = ((u[0], gt_source), (v[0], gt_target))
                if candidate not in claimed and gt_graph.has_edge(*candidate):
                    gt_edge = candidate
                    break
            if gt_edge is not None:
                break

        if gt_edge is None:
            operations.add(REDUNDANT_EDGE, _edge_str(u, v, kind))
            continue

        claimed.add(gt_edge)
        gt_kind = gt_graph.edges[gt_edge]["kind"]
        if gt_kind != kind:
            operations.add(WRONG_SEMANTICS_EDGE, f"{_edge_str(u, v, kind)} is {gt_kind} in GT")

    for u, v, kind in sorted(gt_graph.edges(data="kind")):
        if (u, v) not in claimed:
            operations.add(MISSING_EDGE, f"[T={u[0]} GT_label={u[1]}] -> [T={v[0]} GT_label={v[1]}] ({kind})")

    return operations


def count_edit_operations(
    levels: Mapping[int, FrameMatching],
    gt_graph: nx.DiGraph,
    res_graph: nx.DiGraph,
) -> EditOperations:
    """Find all graph edit operations needed to transform the result into the ground-truth.

    Args:
        levels: The frame matchings.
        gt_graph: The ground-truth lineage graph.
        res_graph: The result lineage graph.

    Returns:
        The edit operations.
    """
    operations = count_vertex_operations(levels)
    return count_edge_operations(levels, gt_graph, res_graph, operations)


def aogm_empty(n_gt_objects: int, n_gt_edges: int, penalty: PenaltyConfig) -> float:
    """The AOGM of an empty result: all ground-truth objects and edges have to be added.

    Args:
        n_gt_objects: The number of ground-truth objects.
        n_gt_edges: The number of ground-truth edges.
        penalty: The penalties.

    Returns:
        The AOGM of the empty result.
    """
    return penalty.false_negative * n_gt_objects + penalty.missing_edge * n_gt_edges


def normalize_aogm(aogm: float, empty: float) -> float:
    """Normalize an AOGM value: 1 - min(aogm, empty) / empty.

    Args:
        aogm: The AOGM value.
        empty: The AOGM value of the empty result.

    Returns:
        The normalized value in [0, 1], higher is better.
    """
    if empty <= 0:
        raise ComputationPreconditionError(
            "The AOGM of an empty result is zero, the normalization is not defined (no ground-truth objects?)"
        )
    value = 1.0 - min(aogm, empty) / empty
    return min(max(value, 0.0), 1.0)


def compute_aogm(
    levels: Mapping[int, FrameMatching],
    gt_graph: nx.DiGraph,
    res_graph: nx.DiGraph,
    penalty: PenaltyConfig = PenaltyConfig(),
) -> Tuple[float, float, EditOperations]:
    """Compute the AOGM measure.

    Args:
        levels: The frame matchings.
        gt_graph: The ground-truth lineage graph.
        res_graph: The result lineage graph.
        penalty: The penalties.

    Returns:
        The AOGM value.
        The AOGM value of an empty result.
        The edit operations.
    """
    operations = count_edit_operations(levels, gt_graph, res_graph)
    n_gt_objects = sum(len(level.gt_sizes) for level in levels.values())
    empty = aogm_empty(n_gt_objects, gt_graph.number_of_edges(), penalty)
    return operations.cost(penalty), empty, operations


def compute_tra(
    levels: Mapping[int, FrameMatching],
    gt_graph: nx.DiGraph,
    res_graph: nx.DiGraph,
    penalty: PenaltyConfig = PenaltyConfig(),
) -> float:
    """Compute the TRA measure: the AOGM normalized by the AOGM of an empty result.

    Args:
        levels: The frame matchings.
        gt_graph: The ground-truth lineage graph.
        res_graph: The result lineage graph.
        penalty: The penalties.

    Returns:
        The TRA value in [0, 1], higher is better.
    """
    aogm, empty, _ = compute_aogm(levels, gt_graph, res_graph, penalty)
    return normalize_aogm(aogm, empty)
