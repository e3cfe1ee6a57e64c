import logging
import numbers
from functools import partial

import networkx as nx

from .graph import INTERNAL_SINK_NODE, INTERNAL_SOURCE_NODE, Graph

_logger = logging.getLogger("mcfgraph")


def float_to_int(x: numbers.Real, scale: float) -> int:
    return int(float(x) * scale)


def int_to_float(x: int, scale: float) -> float:
    return float(x / scale)


def to_networkx(graph: Graph, cost_scale: float = 1e2, capacity: int = 1) -> nx.DiGraph:
    """Exports the internal graph structure for networkx flow algorithms.

    Nodes are the internal node indices. Each edge carries an integer
    `weight`, the given `capacity` and its `index` in `graph.edges()`.

    Kwargs
    ------
    cost_scale: float
        Conversion factor from float to integer costs.
    capacity: int
        Capacity assigned to every edge.
    """
    f2i = partial(float_to_int, scale=cost_scale)

    nxgraph = nx.DiGraph(
        cost_scale=cost_scale,
        source=INTERNAL_SOURCE_NODE,
        sink=INTERNAL_SINK_NODE,
    )
    nxgraph.add_nodes_from(range(graph.num_nodes()))
    for idx, e in enumerate(graph.edges()):
        if nxgraph.has_edge(e.source_index, e.target_index):
            _logger.warning(
                f"skipping parallel edge {idx} "
                f"({e.source_index}, {e.target_index})"
            )
            continue
        nxgraph.add_edge(
            e.source_index,
            e.target_index,
            weight=f2i(e.cost),
            capacity=capacity,
            index=idx,
        )
    return nxgraph
