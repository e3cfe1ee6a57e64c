import logging

import networkx as nx
import numpy as np
import scipy.stats

import mcfgraph as mg


def main():
    logging.basicConfig(level=logging.DEBUG)

    timeseries = [
        [0.0, 1.0],  # obs. at t=0
        [-0.5, 0.1, 0.5, 1.1],  # obs. at t=1
        [0.2, 0.6, 1.2],  # obs. at t=2
    ]

    # Define the class that provides costs.
    class GraphCosts(mg.StandardGraphCosts):
        def __init__(self) -> None:
            super().__init__(
                penter=1e-3, pexit=1e-3, beta=0.05, max_obs_time=len(timeseries) - 1
            )

        def transition_cost(self, e: mg.LocationPair) -> float:
            x, y = e
            tdiff = y.time_index - x.time_index
            logprob = scipy.stats.norm.logpdf(
                y.obs, loc=x.obs + 0.1 * tdiff, scale=0.5
            ) + np.log(0.1)
            return -logprob

    # Setup the graph
    tracking = mg.build_tracking_graph(timeseries, GraphCosts())
    print(tracking.graph)

    # Hand the graph to networkx and solve for two trajectories
    nxg = mg.to_networkx(tracking.graph, cost_scale=1e2)
    nxg.nodes[mg.INTERNAL_SOURCE_NODE]["demand"] = -2
    nxg.nodes[mg.INTERNAL_SINK_NODE]["demand"] = 2
    flowdict = nx.min_cost_flow(nxg)

    trajectories = mg.find_trajectories(flowdict)
    for tidx, t in enumerate(trajectories):
        print(tidx, [tracking.location(h) for h in t])
    print(mg.label_observations(tracking, trajectories))


if __name__ == "__main__":
    main()
