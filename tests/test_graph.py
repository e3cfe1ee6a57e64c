import logging

import networkx as nx
import numpy as np
import pytest

import mcfgraph as mg


def test_constants():
    assert mg.ST == 0
    assert mg.INTERNAL_SINK_NODE == 0
    assert mg.INTERNAL_SOURCE_NODE == 1
    assert mg.FIRST_NON_SOURCE_SINK_NODE == 2
    assert mg.Graph.ST == mg.ST
    assert mg.Graph.INTERNAL_SOURCE_NODE == mg.INTERNAL_SOURCE_NODE
    assert mg.entry_node(mg.ST) == mg.INTERNAL_SINK_NODE
    assert mg.exit_node(mg.ST) == mg.INTERNAL_SOURCE_NODE


def test_empty_graph():
    g = mg.Graph()
    assert g.num_nodes() == 2
    assert g.num_locations() == 0
    assert len(g.edges()) == 0


def test_add_returns_dense_handles():
    g = mg.Graph()
    for k in range(1, 11):
        nodes = g.num_nodes()
        assert g.add(float(k)) == k
        assert g.num_nodes() == nodes + 2
    assert g.num_locations() == 10


def test_add_creates_observation_edge():
    g = mg.Graph()
    a = g.add(1.0)
    before = list(g.edges())
    b = g.add(-2.5)
    edges = g.edges()
    assert len(edges) == len(before) + 1
    assert list(edges[:-1]) == before
    assert edges[-1] == mg.Edge(mg.entry_node(b), mg.exit_node(b), -2.5)
    assert edges[0] == mg.Edge(2, 3, 1.0)
    assert edges[-1].source_index >= mg.FIRST_NON_SOURCE_SINK_NODE
    assert mg.location_of(edges[-1].source_index) == b
    assert mg.location_of(edges[-1].target_index) == b
    assert a != b


def test_link_source_and_sink():
    g = mg.Graph()
    h = g.add(0.0)
    nodes = g.num_nodes()
    g.link(mg.ST, h, 0.5)
    g.link(h, mg.ST, 0.7)
    assert g.num_nodes() == nodes

    enter, leave = g.edges()[1:]
    assert enter == mg.Edge(mg.INTERNAL_SOURCE_NODE, mg.entry_node(h), 0.5)
    assert leave == mg.Edge(mg.exit_node(h), mg.INTERNAL_SINK_NODE, 0.7)
    assert enter.source_index != leave.target_index


def test_scenario():
    g = mg.Graph()
    assert g.add(1.0) == 1
    assert g.num_nodes() == 4
    assert g.add(2.0) == 2
    assert g.num_nodes() == 6

    g.link(mg.ST, 1, 0.5)
    g.link(1, 2, 0.3)
    g.link(2, mg.ST, 0.5)
    assert len(g.edges()) == 5
    assert list(g.edges()) == [
        mg.Edge(2, 3, 1.0),
        mg.Edge(4, 5, 2.0),
        mg.Edge(1, 2, 0.5),
        mg.Edge(3, 4, 0.3),
        mg.Edge(5, 0, 0.5),
    ]


def test_edge_count_tracks_calls():
    g = mg.Graph()
    calls = 0
    prev = mg.ST
    for i in range(20):
        h = g.add(-1.0)
        calls += 1
        assert len(g.edges()) == calls
        g.link(prev, h, float(i))
        calls += 1
        assert len(g.edges()) == calls
        prev = h
    g.link(prev, mg.ST, 0.0)
    assert len(g.edges()) == calls + 1


def test_reserve_is_idempotent():
    g = mg.Graph()
    g.add(1.0)
    g.link(mg.ST, 1, 0.0)
    edges = list(g.edges())
    for n in [0, -5, 10, 1000, 10, 1]:
        g.reserve(n)
        assert list(g.edges()) == edges
        assert g.num_nodes() == 4


def test_edges_is_readonly_view():
    g = mg.Graph()
    g.add(1.0)
    edges = g.edges()
    assert not hasattr(edges, "append")
    with pytest.raises(TypeError):
        edges[0] = mg.Edge(0, 1, 0.0)
    # View, not a copy
    g.add(2.0)
    assert len(edges) == 2


def test_solver_mutable_edges():
    g = mg.Graph()
    a = g.add(1.0)
    b = g.add(2.0)
    g.link(a, b, 0.3)

    access = g.solver_access()
    edges = access.mutable_edges()
    edges[2] = edges[2].with_cost(-4.0)
    assert g.edges()[2] == mg.Edge(mg.exit_node(a), mg.entry_node(b), -4.0)
    assert g.edges()[2].cost == -4.0
    assert access.edges()[2].cost == -4.0
    assert len(g.edges()) == 3


def test_overwrite_num_nodes():
    g = mg.Graph()
    g.add(1.0)
    access = g.solver_access()
    with mg.utils.log_level(logging.ERROR):
        access.overwrite_num_nodes(7)
    assert g.num_nodes() == 7
    assert access.num_nodes() == 7
    assert len(g.edges()) == 1


def test_checked_link():
    g = mg.Graph()
    a = g.add(1.0)
    b = g.add(1.0)
    g.checked_link(mg.ST, a, 0.0)
    g.checked_link(a, b, 0.0)
    g.checked_link(b, mg.ST, 0.0)
    assert len(g.edges()) == 5

    with pytest.raises(ValueError, match="Invalid location handle 3"):
        g.checked_link(a, 3, 0.0)
    with pytest.raises(ValueError):
        g.checked_link(-1, a, 0.0)
    with pytest.raises(ValueError):
        g.checked_link(mg.ST, mg.ST, 0.0)
    assert len(g.edges()) == 5
    assert g.is_valid_handle(mg.ST)
    assert not g.is_valid_handle(3)


def test_to_networkx():
    g = mg.Graph()
    a = g.add(-1.0)
    b = g.add(-2.0)
    g.link(mg.ST, a, 0.5)
    g.link(a, b, 0.25)
    g.link(b, mg.ST, 0.5)

    nxg = mg.to_networkx(g, cost_scale=1e2)
    assert nxg.number_of_nodes() == g.num_nodes()
    assert nxg.number_of_edges() == len(g.edges())
    assert nxg[2][3]["weight"] == -100
    assert nxg[3][4]["weight"] == 25
    assert nxg[5][0]["index"] == 4
    assert nxg[1][2]["capacity"] == 1

    nxg.nodes[mg.INTERNAL_SOURCE_NODE]["demand"] = -1
    nxg.nodes[mg.INTERNAL_SINK_NODE]["demand"] = 1
    flowdict = nx.min_cost_flow(nxg)
    assert mg.find_trajectories(flowdict) == [[a, b]]


def test_to_networkx_skips_parallel_edges(caplog):
    g = mg.Graph()
    a = g.add(0.0)
    g.link(mg.ST, a, 1.0)
    g.link(mg.ST, a, 2.0)
    with caplog.at_level(logging.WARNING, logger="mcfgraph"):
        nxg = mg.to_networkx(g, cost_scale=1.0)
    assert nxg.number_of_edges() == 2
    assert nxg[1][2]["weight"] == 1
    assert "parallel edge 2" in caplog.text


def test_is_valid_handle_accepts_integral_types():
    g = mg.Graph()
    g.add(1.0)
    g.add(1.0)
    assert g.is_valid_handle(np.int64(2))
    assert g.is_valid_handle(np.int32(0))
    assert not g.is_valid_handle(np.int64(3))
    assert not g.is_valid_handle(True)
    assert not g.is_valid_handle(False)
    assert not g.is_valid_handle(1.0)

    g.checked_link(np.int64(1), np.int64(2), 0.5)
    assert g.edges()[-1] == mg.Edge(3, 4, 0.5)
    with pytest.raises(ValueError):
        g.checked_link(True, 2, 0.5)
