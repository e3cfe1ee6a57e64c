"""Directed graph representation of a multiple object tracking problem.

Locations (space-time observations such as detections or bounding boxes)
are registered with an observation cost, usually the negative log-likelihood
ratio of the object process against the clutter process

    -log [b / (1 - b)]

with b being the probability that the location is part of a trajectory.
Transition edges connect plausible successors, usually with cost
-log p(v | u).

Every location is expanded into an entry and an exit node joined by the
observation edge. Location handle ``ST`` is shared by source and sink:
as a link origin it denotes the source, as a link target the sink.

    entry_node(h) = 2 * h       entry_node(ST) == INTERNAL_SINK_NODE
    exit_node(h) = 2 * h + 1    exit_node(ST) == INTERNAL_SOURCE_NODE

References
----------
Zhang, Li, Yuan Li, and Ramakant Nevatia.
"Global data association for multi-object tracking using network flows."
2008 IEEE Conference on Computer Vision and Pattern Recognition. IEEE, 2008.
"""

import logging
import numbers
from collections.abc import Sequence
from dataclasses import dataclass, replace
from typing import List, NewType

_logger = logging.getLogger("mcfgraph")

LocationHandle = NewType("LocationHandle", int)
"""Public identifier of a location, or ST."""
NodeIndex = NewType("NodeIndex", int)
"""Solver-facing internal node identifier."""

ST = LocationHandle(0)
"""One common handle for source and sink."""
INTERNAL_SINK_NODE = NodeIndex(0)
INTERNAL_SOURCE_NODE = NodeIndex(1)
FIRST_NON_SOURCE_SINK_NODE = NodeIndex(2)


def entry_node(handle: LocationHandle) -> NodeIndex:
    """Returns the entry node of a location, the sink for ST."""
    return NodeIndex(2 * handle)


def exit_node(handle: LocationHandle) -> NodeIndex:
    """Returns the exit node of a location, the source for ST."""
    return NodeIndex(2 * handle + 1)


def location_of(node: NodeIndex) -> LocationHandle:
    """Returns the handle of the location owning the given node."""
    return LocationHandle(node // 2)


@dataclass(eq=True, frozen=True)
class Edge:
    """A directed, cost-bearing edge between two internal nodes."""

    source_index: NodeIndex
    target_index: NodeIndex
    cost: float

    def with_cost(self, cost: float) -> "Edge":
        return replace(self, cost=cost)


class EdgeView(Sequence):
    """Read-only view on the edges of a graph. Does not copy."""

    def __init__(self, edges: List[Edge]) -> None:
        self._edges = edges

    def __getitem__(self, index):
        return self._edges[index]

    def __len__(self) -> int:
        return len(self._edges)

    def __repr__(self) -> str:
        return f"EdgeView({self._edges!r})"


class Graph:
    """Holds locations and transitions as an internal node/edge graph.

    Handles returned by `add` start at 1 and increase by one per call.
    Handles passed to `link` are not checked, use `checked_link` when
    the caller cannot guarantee they came from `add` on this instance.
    """

    ST = ST
    INTERNAL_SINK_NODE = INTERNAL_SINK_NODE
    INTERNAL_SOURCE_NODE = INTERNAL_SOURCE_NODE
    FIRST_NON_SOURCE_SINK_NODE = FIRST_NON_SOURCE_SINK_NODE

    def __init__(self) -> None:
        self._edges: List[Edge] = []
        self._num_nodes = int(FIRST_NON_SOURCE_SINK_NODE)
        self._num_locations = 0

    def reserve(self, num_edges: int) -> None:
        """Hint for the expected number of edges.

        Edge storage grows on demand, so this has no effect on the graph.
        """

    def add(self, cost: float) -> LocationHandle:
        """Adds a location and returns its handle.

        Params
        ------
        cost: float
            Observation edge cost, may be negative.
        """
        self._num_locations += 1
        handle = LocationHandle(self._num_locations)
        self._edges.append(Edge(entry_node(handle), exit_node(handle), cost))
        self._num_nodes += 2
        return handle

    def link(self, src: LocationHandle, dst: LocationHandle, cost: float) -> None:
        """Links the exit of `src` to the entry of `dst` with a transition cost."""
        self._edges.append(Edge(exit_node(src), entry_node(dst), cost))

    def checked_link(
        self, src: LocationHandle, dst: LocationHandle, cost: float
    ) -> None:
        """Same as `link`, but rejects handles unknown to this graph."""
        for h in (src, dst):
            if not self.is_valid_handle(h):
                raise ValueError(
                    f"Invalid location handle {h}, "
                    f"expected ST or a value in [1, {self._num_locations}]."
                )
        if src == ST and dst == ST:
            raise ValueError("Cannot link source directly to sink.")
        self.link(src, dst, cost)

    def is_valid_handle(self, handle: LocationHandle) -> bool:
        return (
            isinstance(handle, numbers.Integral)
            and not isinstance(handle, bool)
            and 0 <= handle <= self._num_locations
        )

    def num_locations(self) -> int:
        return self._num_locations

    def edges(self) -> EdgeView:
        """Immutable list of edges referring to the internal graph structure."""
        return EdgeView(self._edges)

    def num_nodes(self) -> int:
        """Total number of internal nodes, including source and sink."""
        return self._num_nodes

    def solver_access(self) -> "SolverAccess":
        """Grants write access to the internal structure. Meant for solvers."""
        return SolverAccess(self)

    def __repr__(self) -> str:
        return (
            f"Graph(locations={self._num_locations}, "
            f"nodes={self._num_nodes}, edges={len(self._edges)})"
        )


class SolverAccess:
    """Privileged access to the internal graph structure.

    Changes made here bypass all bookkeeping of `Graph`. No checks are
    performed to validate the integrity of the graph.
    """

    def __init__(self, graph: Graph) -> None:
        self._graph = graph

    def edges(self) -> EdgeView:
        return self._graph.edges()

    def num_nodes(self) -> int:
        return self._graph.num_nodes()

    def mutable_edges(self) -> List[Edge]:
        """Mutable list of edges. Assign new records, do not insert or remove."""
        return self._graph._edges

    def overwrite_num_nodes(self, num_nodes: int) -> None:
        """Overwrites the number of nodes, including source and sink.

        Only call this after the internal structure has been modified,
        e.g. when auxiliary nodes were introduced.
        """
        _logger.debug(
            f"overwriting number of nodes {self._graph._num_nodes} -> {num_nodes}"
        )
        self._graph._num_nodes = num_nodes
