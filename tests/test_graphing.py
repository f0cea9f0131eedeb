"""
Unit tests for the graph representation converter.
"""

import networkx as nx
import numpy as np
import pandas as pd
import pytest

from netlex import (
    Edge, Graph, SparseMatrix, Vertex,
    DimensionMismatchError, MissingAttributeError, ValidationError,
    build_adjacency, co_occurrence_matrix, edges_from_frame, edges_from_records,
    edges_to_graph, graph_to_frames, graph_to_sparse_matrix, incidence_from_frame,
    incidence_from_records, sparse_matrix_to_edges, sparse_matrix_to_graph,
    to_networkx, vertices_from_frame,
)


FRIENDS = [("Anna", "Bob", 10), ("Anna", "Sarah", 20), ("Bob", "Sarah", 5), ("John", "Sarah", 15)]


def _triples(edges):
    return sorted((e.source, e.target, e.weight) for e in edges)


def test_vertices_inferred_from_edges():
    """Without a vertex list, the vertex set is the union of endpoints in first-seen order."""
    g = edges_to_graph(FRIENDS)
    assert g.vertex_names == ["Anna", "Bob", "Sarah", "John"]
    assert g.ecount == 4
    assert not g.directed


def test_isolated_vertex_preserved():
    """Donald has no edges but stays in the graph with degree 0."""
    g = edges_to_graph(FRIENDS, vertices=["Anna", "Bob", "John", "Sarah", "Donald"])
    assert g.vcount == 5
    assert g.degree("Donald") == 0
    assert g.degree("Sarah") == 3

    m = graph_to_sparse_matrix(g)
    assert m.shape == (5, 5)
    assert sparse_matrix_to_graph(m).vcount == 5


def test_edge_to_unknown_vertex_rejected():
    """An explicit vertex set must cover every edge endpoint."""
    with pytest.raises(ValidationError):
        edges_to_graph(FRIENDS, vertices=["Anna", "Bob", "Sarah"])


def test_duplicate_vertex_rejected():
    with pytest.raises(ValidationError):
        edges_to_graph([], vertices=["Anna", "Anna"])


def test_directed_round_trip():
    """Directed edges -> matrix -> edges gives back the same weighted edges."""
    edges = [("a", "b", 1.5), ("b", "a", 2.0), ("b", "c", 3.0), ("c", "c", 4.0)]
    g = edges_to_graph(edges, directed=True)
    m = graph_to_sparse_matrix(g, weight_attribute="weight")
    assert m.nnz == 4
    back = sparse_matrix_to_edges(m, directed=True)
    assert _triples(back) == sorted(edges)


def test_undirected_round_trip_does_not_double_edges():
    """Both (i, j) and (j, i) are stored, but only 4 edges come back out."""
    g = edges_to_graph(FRIENDS, directed=False)
    m = graph_to_sparse_matrix(g, weight_attribute="weight")
    assert m.nnz == 8
    assert m.is_symmetric()
    assert m.get("Sarah", "Anna") == 20
    back = sparse_matrix_to_edges(m, directed=False)
    assert len(back) == 4
    assert {(frozenset((e.source, e.target)), e.weight) for e in back} == \
        {(frozenset((a, b)), float(w)) for a, b, w in FRIENDS}


def test_upper_triangle_only():
    g = edges_to_graph(FRIENDS)
    m = graph_to_sparse_matrix(g, weight_attribute="weight", upper_triangle_only=True)
    assert m.nnz == 4
    assert all(r <= c for r, c, _ in m.entries)
    assert m.get("Sarah", "John") == 15
    assert len(sparse_matrix_to_edges(m)) == 4


def test_upper_triangle_rejected_for_directed():
    g = edges_to_graph(FRIENDS, directed=True)
    with pytest.raises(ValidationError):
        graph_to_sparse_matrix(g, upper_triangle_only=True)


def test_default_cell_value_is_one():
    m = graph_to_sparse_matrix(edges_to_graph(FRIENDS))
    assert set(v for _, _, v in m.entries) == {1.0}


def test_missing_weight_attribute():
    """A named weight attribute must exist on every edge."""
    g = edges_to_graph([Edge("a", "b", attributes={"strength": 2}), Edge("b", "c")])
    with pytest.raises(MissingAttributeError):
        graph_to_sparse_matrix(g, weight_attribute="strength")
    with pytest.raises(MissingAttributeError):
        graph_to_sparse_matrix(g, weight_attribute="weight")


def test_custom_weight_attribute():
    g = edges_to_graph([Edge("a", "b", attributes={"strength": 2}),
                        Edge("b", "c", attributes={"strength": 7})])
    m = graph_to_sparse_matrix(g, weight_attribute="strength")
    assert m.get("c", "b") == 7


def test_non_numeric_and_zero_weights_rejected():
    g = edges_to_graph([Edge("a", "b", attributes={"kind": "friend"})])
    with pytest.raises(ValidationError):
        graph_to_sparse_matrix(g, weight_attribute="kind")
    with pytest.raises(ValidationError):
        graph_to_sparse_matrix(edges_to_graph([("a", "b", 0)]), weight_attribute="weight")


def test_parallel_edges_sum():
    g = edges_to_graph([("a", "b", 1), ("b", "a", 2)])
    m = graph_to_sparse_matrix(g, weight_attribute="weight")
    assert m.get("a", "b") == 3
    assert len(sparse_matrix_to_edges(m)) == 1


def test_asymmetric_matrix_rejected_as_undirected():
    m = SparseMatrix.from_dense([[0, 1], [0, 0]], ["a", "b"])
    with pytest.raises(ValidationError):
        sparse_matrix_to_edges(m, directed=False)
    assert len(sparse_matrix_to_edges(m, directed=True)) == 1


def test_non_square_matrix_rejected():
    with pytest.raises(DimensionMismatchError):
        SparseMatrix.from_dense(np.ones((2, 3)), ["a", "b"])
    with pytest.raises(DimensionMismatchError):
        SparseMatrix.from_dense(np.ones((2, 2)), ["a", "b", "c"])


def test_matrix_rejects_duplicate_labels():
    with pytest.raises(ValidationError):
        SparseMatrix(labels=("a", "a"), entries=())


def test_display_triples_are_one_based():
    """Internal storage is 0-based; display triples are 1-based."""
    m = SparseMatrix(labels=("a", "b", "c"), entries=((0, 2, 5.0),))
    assert m.to_display_triples() == [(1, 3, 5.0)]
    again = SparseMatrix.from_display_triples(m.labels, m.to_display_triples())
    assert again == m
    with pytest.raises(ValidationError):
        SparseMatrix.from_display_triples(("a",), [(0, 1, 1.0)])


def test_matrix_frame_round_trip():
    g = edges_to_graph(FRIENDS)
    m = graph_to_sparse_matrix(g, weight_attribute="weight")
    frame = m.to_frame()
    assert frame.loc["Anna", "Bob"] == 10
    assert SparseMatrix.from_frame(frame) == m


def test_co_occurrence_example():
    """Authors sharing a DOI are linked; counts are the number of shared DOIs."""
    records = [
        {"doi": "1", "author": "Bob"}, {"doi": "1", "author": "Sarah"}, {"doi": "1", "author": "Anna"},
        {"doi": "2", "author": "Sarah"}, {"doi": "2", "author": "Anna"},
        {"doi": "3", "author": "Anna"}, {"doi": "3", "author": "Steve"}, {"doi": "3", "author": "David"},
    ]
    incidence = incidence_from_records(records, "doi", "author")
    assert incidence.shape == (3, 5)
    co = co_occurrence_matrix(incidence, zero_diagonal=True)
    assert co.get("Anna", "Sarah") == 2
    assert co.get("Bob", "Sarah") == 1
    assert co.get("Anna", "Steve") == 1
    assert co.get("Steve", "David") == 1
    assert co.get("Bob", "Anna") == 1
    assert co.get("Bob", "Steve") == 0
    assert all(co.get(a, a) == 0 for a in co.labels)

    edges = sparse_matrix_to_edges(co)
    assert len(edges) == 6


def test_co_occurrence_keeps_diagonal_on_request():
    incidence = incidence_from_frame(
        pd.DataFrame({"doi": ["1", "1", "2"], "author": ["Anna", "Bob", "Anna"]}), "doi", "author")
    co = co_occurrence_matrix(incidence, zero_diagonal=False)
    assert co.get("Anna", "Anna") == 2
    assert co.get("Bob", "Bob") == 1
    assert co.get("Anna", "Bob") == 1


def test_edges_from_frame_with_explicit_weight_column():
    df = pd.DataFrame({"from": ["Anna", "Bob"], "to": ["Bob", "Sarah"],
                       "weight": [10, 5], "since": [2019, 2021]})
    edges = edges_from_frame(df, weight_column="weight")
    assert edges[0].weight == 10
    assert edges[1].attributes == {"since": 2021}
    with pytest.raises(MissingAttributeError):
        edges_from_frame(df, weight_column="strength")


def test_edges_from_records_requires_weight_on_each_row():
    rows = [{"a": "x", "b": "y", "w": 1}, {"a": "y", "b": "z"}]
    with pytest.raises(MissingAttributeError):
        edges_from_records(rows, "a", "b", weight_field="w")


def test_vertex_attributes_and_networkx_export():
    vertices = vertices_from_frame(pd.DataFrame({"name": ["Anna", "Bob", "Donald"], "age": [30, 41, 70]}))
    g = edges_to_graph([("Anna", "Bob", 3)], vertices=vertices)
    assert g.vertex("Donald").attributes == {"age": 70}

    G = to_networkx(g)
    assert isinstance(G, nx.Graph) and not G.is_directed()
    assert G.number_of_nodes() == 3
    assert G.nodes["Bob"]["age"] == 41
    assert G["Anna"]["Bob"]["weight"] == 3

    vdf, edf = graph_to_frames(g)
    assert list(vdf["name"]) == ["Anna", "Bob", "Donald"]
    assert len(edf) == 1


def test_build_adjacency_dense():
    g = edges_to_graph([("a", "b"), ("b", "c")])
    A = build_adjacency(g)
    assert A.tolist() == [[0, 1, 0], [1, 0, 1], [0, 1, 0]]


def test_graph_is_immutable():
    g = Graph(vertices=(Vertex("a"),), edges=())
    with pytest.raises(AttributeError):
        g.directed = True


def test_empty_cells_in_edge_table_are_missing():
    """An empty endpoint or weight cell is reported, not turned into a 'nan' vertex."""
    df = pd.DataFrame({"from": ["Anna", "Bob"], "to": ["Bob", None], "weight": [10, 5]})
    with pytest.raises(MissingAttributeError):
        edges_from_frame(df, weight_column="weight")

    df = pd.DataFrame({"from": ["Anna", "Bob"], "to": ["Bob", "Sarah"], "weight": [10, None]})
    with pytest.raises(MissingAttributeError):
        edges_from_frame(df, weight_column="weight")


def test_nan_weight_on_edge_is_missing():
    g = edges_to_graph([("Bob", "Sarah", float("nan"))])
    with pytest.raises(MissingAttributeError):
        graph_to_sparse_matrix(g, weight_attribute="weight")


def test_empty_cells_in_vertex_and_incidence_tables():
    with pytest.raises(MissingAttributeError):
        vertices_from_frame(pd.DataFrame({"name": ["Anna", None], "age": [30, 41]}))
    with pytest.raises(MissingAttributeError):
        incidence_from_frame(pd.DataFrame({"doi": ["1", np.nan], "author": ["Anna", "Bob"]}), "doi", "author")


def test_parallel_weights_cancelling_to_zero_rejected():
    """Edges are never silently dropped from the matrix."""
    g = edges_to_graph([("a", "b", 5.0), ("a", "b", -5.0)], directed=True)
    with pytest.raises(ValidationError):
        graph_to_sparse_matrix(g, weight_attribute="weight")


def test_neighbors():
    g = edges_to_graph(FRIENDS, vertices=["Anna", "Bob", "John", "Sarah", "Donald"])
    assert g.neighbors("Sarah") == ["Anna", "Bob", "John"]
    assert g.neighbors("Donald") == []
    with pytest.raises(ValidationError):
        g.neighbors("Steve")


def test_directed_degree_modes():
    g = edges_to_graph([("a", "b"), ("a", "c"), ("c", "a")], directed=True)
    assert g.degree("a", mode="out") == 2
    assert g.degree("a", mode="in") == 1
    assert g.degree("a") == 3
    assert g.degree(mode="in") == {"a": 1, "b": 1, "c": 1}
    with pytest.raises(ValidationError):
        g.degree("a", mode="both")


def test_matrix_lookup_and_symmetry():
    m = SparseMatrix(labels=("a", "b", "c"), entries=((0, 1, 2.0), (1, 0, 2.0), (2, 2, 1.0)))
    assert m.get("b", "a") == 2.0
    assert m.get("a", "c") == 0.0
    assert m.is_symmetric()
    with pytest.raises(ValidationError):
        m.get("a", "z")
