import logging
import numbers
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Tuple, Union

import numpy as np

from .graph import (
    INTERNAL_SINK_NODE,
    INTERNAL_SOURCE_NODE,
    ST,
    Graph,
    LocationHandle,
    NodeIndex,
    location_of,
)

_logger = logging.getLogger("mcfgraph")


Observation = Any
"""Observation type. Can be virtually any Python object"""
ObservationTimeseries = Union[
    List[List[Observation]], Mapping[int, List[Observation]]
]
"""A timeseries of observations stored as nested list of observations per timestamp,
or as a mapping from time index to observations."""


class EdgeType(Enum):
    """Edge type descriptor."""

    OBS = 1
    ENTER = 2
    EXIT = 3
    TRANSITION = 4


START_NODE = "S"
END_NODE = "T"


@dataclass(eq=True, frozen=True)
class Location:
    """An observation registered with the graph."""

    time_index: int
    obs_index: int
    handle: LocationHandle
    obs: Observation = field(hash=False, compare=False)

    def __str__(self) -> str:
        return f"({self.time_index},{self.obs_index})"

    def __repr__(self) -> str:
        return f"L{self.__str__()}#{self.handle}"


Endpoint = Union[Location, str]
LocationPair = Tuple[Endpoint, Endpoint]
"""The two endpoints of an edge. Source and sink are given by START_NODE and END_NODE."""
GraphCostFn = Callable[[LocationPair, EdgeType], numbers.Real]
"""Graph costs are provided by a function taking an edge, its type and returning a cost."""


class GraphCostDispatch(ABC):
    """A GraphCostFn that dispatches edge types to different methods"""

    def __call__(self, e: LocationPair, et: EdgeType) -> float:
        if et == EdgeType.ENTER:
            return self.enter_cost(e)
        elif et == EdgeType.EXIT:
            return self.exit_cost(e)
        elif et == EdgeType.OBS:
            return self.obs_cost(e)
        elif et == EdgeType.TRANSITION:
            return self.transition_cost(e)
        raise ValueError(f"Unknown edge type {et}")

    @abstractmethod
    def enter_cost(self, e: LocationPair) -> numbers.Real:
        pass

    @abstractmethod
    def exit_cost(self, e: LocationPair) -> numbers.Real:
        pass

    @abstractmethod
    def transition_cost(self, e: LocationPair) -> numbers.Real:
        pass

    @abstractmethod
    def obs_cost(self, e: LocationPair) -> numbers.Real:
        pass


class StandardGraphCosts(GraphCostDispatch):
    """Graph costs as describe in the original publication.

    Appearance costs are constant negative log-probabilities,
    except for observations at the first time frame where it is zero.

    Exit costs are constant negative log-probabilities, except for
    observations at the last time frame where it is zero.

    Likelihood costs for observations are computed from the false-positive
    rate of the detector (beta).

    Transition costs need to be implemented in subclasses.
    """

    def __init__(
        self, penter: float, pexit: float, beta: float, max_obs_time: int
    ) -> None:
        self.penter = penter
        self.pexit = pexit
        self.beta = beta
        self.max_obs_time = max_obs_time
        super().__init__()

    def enter_cost(self, e: LocationPair) -> float:
        return 0.0 if e[1].time_index == 0 else -np.log(self.penter)

    def exit_cost(self, e: LocationPair) -> float:
        return 0.0 if e[0].time_index == self.max_obs_time else -np.log(self.pexit)

    def obs_cost(self, e: LocationPair) -> float:
        return np.log(self.beta / (1 - self.beta))


@dataclass(frozen=True)
class EdgeLabel:
    """Describes what a graph edge stands for."""

    endpoints: LocationPair
    etype: EdgeType


@dataclass
class TrackingGraph:
    """A graph together with the locations and edge labels it was built from.

    `labels[i]` describes `graph.edges()[i]`.
    """

    graph: Graph
    locations: List[List[Location]]
    labels: List[EdgeLabel]

    def location(self, handle: LocationHandle) -> Location:
        # Handles are assigned frame by frame, starting at 1.
        for frame in self.locations:
            if frame and frame[0].handle <= handle <= frame[-1].handle:
                return frame[handle - frame[0].handle]
        raise KeyError(handle)


FlowDict = Dict[NodeIndex, Dict[NodeIndex, int]]
"""Solver output: flow per edge, keyed by internal node indices."""
Trajectories = List[List[LocationHandle]]
"""A list of object trajectories"""


def _frames(obs: ObservationTimeseries) -> List[Tuple[int, List[Observation]]]:
    if isinstance(obs, Mapping):
        return sorted(obs.items(), key=lambda item: item[0])
    return list(enumerate(obs))


def _cost(costs: GraphCostFn, e: LocationPair, et: EdgeType) -> float:
    return float(costs(e, et))


def build_tracking_graph(
    obs: ObservationTimeseries,
    costs: GraphCostFn,
    max_cost: float = 1e4,
    num_skip_layers: int = 0,
) -> TrackingGraph:
    """Builds the min-cost-flow graph representation from observations and costs.

    Kwargs
    ------
    obs: ObservationTimeseries
        List of lists of observations. Semantically a nested list at index t
        contains all observations at time t. A mapping from time index to
        observations is accepted as well and processed in time order.
    costs: GraphCostFn
        Callable to compute costs for different types of graph edges
    max_cost: float
        Skips all enter, exit and transition edges having a cost more than
        the given max_cost value. This leads to sparser graphs.
    num_skip_layers: int
        The number of skip layers. If greater than zero, short-term occlusion can
        be handled. Defaults to zero.
    """
    frames = _frames(obs)
    graph = Graph()
    graph.reserve(_expected_num_edges(frames, num_skip_layers))

    locations: List[List[Location]] = []
    labels: List[EdgeLabel] = []

    # For each timestep...
    for fidx, (tidx, tobs) in enumerate(frames):
        tlocs = []
        # For each observation in timestep...
        for oidx, o in enumerate(tobs):
            # Handles are dense, the next one is known before add().
            next_handle = LocationHandle(graph.num_locations() + 1)
            loc = Location(tidx, oidx, next_handle, o)
            handle = graph.add(_cost(costs, (loc, loc), EdgeType.OBS))
            labels.append(EdgeLabel((loc, loc), EdgeType.OBS))
            tlocs.append(loc)

            if (cost := _cost(costs, (START_NODE, loc), EdgeType.ENTER)) <= max_cost:
                graph.link(ST, handle, cost)
                labels.append(EdgeLabel((START_NODE, loc), EdgeType.ENTER))

            if (cost := _cost(costs, (loc, END_NODE), EdgeType.EXIT)) <= max_cost:
                graph.link(handle, ST, cost)
                labels.append(EdgeLabel((loc, END_NODE), EdgeType.EXIT))

            for pidx in reversed(range(fidx)):
                if frames[pidx][0] < tidx - 1 - num_skip_layers:
                    break
                for prev in locations[pidx]:
                    e = (prev, loc)
                    if (cost := _cost(costs, e, EdgeType.TRANSITION)) <= max_cost:
                        graph.link(prev.handle, handle, cost)
                        labels.append(EdgeLabel(e, EdgeType.TRANSITION))
        locations.append(tlocs)

    _logger.debug(
        f"built tracking graph: frames {len(frames)}, "
        f"locations {graph.num_locations()}, edges {len(graph.edges())}"
    )
    return TrackingGraph(graph, locations, labels)


def _expected_num_edges(
    frames: List[Tuple[int, List[Observation]]], num_skip_layers: int
) -> int:
    sizes = [len(tobs) for _, tobs in frames]
    n = 3 * sum(sizes)
    for fidx, (tidx, _) in enumerate(frames):
        for pidx in range(fidx):
            if frames[pidx][0] >= tidx - 1 - num_skip_layers:
                n += sizes[pidx] * sizes[fidx]
    return n


def update_costs(
    tracking: TrackingGraph,
    costs: GraphCostFn,
    edge_indices: Iterable[int] = None,
) -> None:
    """Updates the edge costs of the given tracking graph.

    This method does not add or remove any edges.

    Params
    ------
    tracking: TrackingGraph
        The graph whose edges are to be updated
    costs: GraphCostFn
        Cost functor providing costs for edges
    edge_indices: Iterable of int
        If given, will update the costs only of the edges at the provided
        positions.
    """
    edges = tracking.graph.solver_access().mutable_edges()
    if edge_indices is None:
        edge_indices = range(len(edges))
    for i in edge_indices:
        label = tracking.labels[i]
        edges[i] = edges[i].with_cost(_cost(costs, label.endpoints, label.etype))


def flow_edges(flowdict: FlowDict) -> List[Tuple[NodeIndex, NodeIndex]]:
    """Returns the list of edges with positive flow"""
    edges = []
    for u, d in flowdict.items():
        for v, f in d.items():
            if f > 0:
                edges.append((u, v))
    return edges


def find_trajectories(flowdict: FlowDict) -> Trajectories:
    """Returns all trajectories from the given flow dictionary.
    A trajectory being defined as a sequence of location handles.

    Decoding requires unit flows, i.e. a graph exported with `capacity=1`.
    Raises ValueError if an edge carries more than one unit of flow.
    """
    for u, d in flowdict.items():
        for v, f in d.items():
            if f > 1:
                raise ValueError(
                    f"Edge ({u}, {v}) carries flow {f}, expected unit flows."
                )

    # Entry nodes have a single outgoing edge, the observation edge. With unit
    # flows no location is shared between two trajectories.
    def _trace(n: NodeIndex):
        while n != INTERNAL_SINK_NODE:
            if n % 2 == 0:
                yield location_of(n)
            # First non zero flow is the next node.
            n = [nn for nn, f in flowdict[n].items() if f > 0][0]

    roots = [
        n
        for n, f in flowdict[INTERNAL_SOURCE_NODE].items()
        if f > 0 and n != INTERNAL_SINK_NODE
    ]
    return [list(_trace(r)) for r in roots]


def label_observations(
    tracking: TrackingGraph, trajectories: Trajectories
) -> List[List[int]]:
    """Returns a nested list of trajectory ids for the observations of the graph.

    Let L be the return value. L[f] refers to observations of the f-th frame.
    L[f][j] is the trajectory id for the j-th observation of that frame.
    This trajectory id might be -1 to signal a non-valid observation.
    """
    frame_of = {
        loc.handle: fidx
        for fidx, frame in enumerate(tracking.locations)
        for loc in frame
    }
    indices = [[-1] * len(frame) for frame in tracking.locations]
    for tidx, t in enumerate(trajectories):
        for h in t:
            indices[frame_of[h]][tracking.location(h).obs_index] = tidx
    return indices
