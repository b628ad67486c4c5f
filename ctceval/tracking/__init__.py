"""Lineage graphs of tracking data and their consistency check.

The lineage graphs are [networkx](https://networkx.org/) directed graphs with nodes `(frame, label)`.
"""

from .consistency import ConsistencyReport, check_track_consistency
from .lineage import PARENTAL, TEMPORAL, build_lineage_graph, divisions, track_nodes
