from .__version__ import __version__
from .graph import (
    ST,
    INTERNAL_SINK_NODE,
    INTERNAL_SOURCE_NODE,
    FIRST_NON_SOURCE_SINK_NODE,
    Edge,
    EdgeView,
    Graph,
    LocationHandle,
    NodeIndex,
    SolverAccess,
    entry_node,
    exit_node,
    location_of,
)
from .mot import (
    build_tracking_graph,
    update_costs,
    find_trajectories,
    label_observations,
    flow_edges,
    START_NODE,
    END_NODE,
    EdgeLabel,
    EdgeType,
    GraphCostDispatch,
    Location,
    LocationPair,
    StandardGraphCosts,
    TrackingGraph,
    Trajectories,
)
from .nx import to_networkx, float_to_int, int_to_float
from . import utils
