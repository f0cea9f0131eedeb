from __future__ import annotations
import logging
from numbers import Number
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import networkx as nx
import numpy as np
import pandas as pd

from .datatypes import Edge, Graph, IncidenceMatrix, SparseMatrix, Vertex
from .errors import MissingAttributeError, ValidationError
from . import settings

logger = logging.getLogger(__name__)

EdgeLike = Union[Edge, Tuple[str, str], Tuple[str, str, float]]
VertexLike = Union[Vertex, str]


def _is_missing(value) -> bool:
    # empty table cells arrive as None, NaN or NaT depending on the column dtype
    return np.ndim(value) == 0 and bool(pd.isna(value))


def _as_edge(item: EdgeLike) -> Edge:
    if isinstance(item, Edge):
        return item
    if isinstance(item, (tuple, list)) and len(item) in (2, 3):
        weight = item[2] if len(item) == 3 else None
        return Edge(source=str(item[0]), target=str(item[1]), weight=weight)
    raise ValidationError(f"Cannot interpret {item!r} as an edge")


def _as_vertex(item: VertexLike) -> Vertex:
    if isinstance(item, Vertex):
        return item
    if isinstance(item, str):
        return Vertex(name=item)
    raise ValidationError(f"Cannot interpret {item!r} as a vertex")


def edges_to_graph(edges: Iterable[EdgeLike], vertices: Optional[Iterable[VertexLike]] = None,
                   directed: bool = False) -> Graph:
    edge_list = [_as_edge(e) for e in edges]
    if vertices is None:
        names: Dict[str, None] = {}
        for e in edge_list:
            names.setdefault(e.source)
            names.setdefault(e.target)
        vertex_list = [Vertex(name=n) for n in names]
    else:
        vertex_list = [_as_vertex(v) for v in vertices]
    graph = Graph(vertices=tuple(vertex_list), edges=tuple(edge_list), directed=directed)
    logger.debug("Built %s graph with %d vertices and %d edges",
                 "directed" if directed else "undirected", graph.vcount, graph.ecount)
    return graph


def _edge_value(edge: Edge, weight_attribute: Optional[str]) -> float:
    if weight_attribute is None:
        return 1.0
    if weight_attribute == settings.WEIGHT_ATTRIBUTE:
        value = edge.weight
    else:
        value = edge.attributes.get(weight_attribute)
    if _is_missing(value):
        raise MissingAttributeError(
            f"Edge ({edge.source!r}, {edge.target!r}) has no {weight_attribute!r} attribute")
    if isinstance(value, bool) or not isinstance(value, Number):
        raise ValidationError(
            f"Edge ({edge.source!r}, {edge.target!r}) has non-numeric {weight_attribute!r}: {value!r}")
    if value == 0:
        raise ValidationError(
            f"Edge ({edge.source!r}, {edge.target!r}) has zero {weight_attribute!r}; "
            "a sparse matrix cannot represent it")
    return float(value)


def graph_to_sparse_matrix(graph: Graph, weight_attribute: Optional[str] = None,
                           upper_triangle_only: bool = False) -> SparseMatrix:
    """
    Adjacency matrix of a graph, keeping only non-zero cells.

    Args:
        graph: source graph
        weight_attribute: None for 0/1 cells, "weight" for Edge.weight,
            any other name for Edge.attributes[name]
        upper_triangle_only: store an undirected graph with row <= col only

    Returns:
        SparseMatrix labelled with the graph's vertex names, in vertex order.
        Parallel edges add up in a single cell; parallel weights that cancel
        to zero raise ValidationError rather than dropping the edges.
    """
    if upper_triangle_only and graph.directed:
        raise ValidationError("upper_triangle_only applies to undirected graphs only")
    cells: Dict[Tuple[int, int], float] = {}
    for e in graph.edges:
        value = _edge_value(e, weight_attribute)
        i, j = graph.index_of(e.source), graph.index_of(e.target)
        if graph.directed:
            targets = [(i, j)]
        elif upper_triangle_only:
            targets = [(min(i, j), max(i, j))]
        else:
            targets = [(i, j)] if i == j else [(i, j), (j, i)]
        for cell in targets:
            cells[cell] = cells.get(cell, 0.0) + value
    for (r, c), v in cells.items():
        if v == 0:
            raise ValidationError(
                f"Parallel edges between {graph.vertices[r].name!r} and {graph.vertices[c].name!r} "
                f"sum to zero {weight_attribute!r}; a sparse matrix cannot represent them")
    entries = tuple((r, c, v) for (r, c), v in cells.items())
    matrix = SparseMatrix(labels=tuple(graph.vertex_names), entries=entries,
                          upper_triangle=upper_triangle_only)
    logger.debug("Graph with %d edges -> %dx%d matrix with %d non-zero cells",
                 graph.ecount, graph.vcount, graph.vcount, matrix.nnz)
    return matrix


def sparse_matrix_to_edges(matrix: SparseMatrix, directed: bool = False) -> List[Edge]:
    if directed:
        if matrix.upper_triangle:
            raise ValidationError("An upper-triangle matrix describes an undirected graph")
        return [Edge(matrix.labels[r], matrix.labels[c], weight=v) for r, c, v in matrix.entries]

    if not matrix.upper_triangle and not matrix.is_symmetric():
        raise ValidationError("Undirected conversion needs a symmetric matrix")
    # each unordered pair once, from the upper triangle (diagonal included)
    edges = [Edge(matrix.labels[r], matrix.labels[c], weight=v)
             for r, c, v in matrix.entries if r <= c]
    logger.debug("Matrix with %d non-zero cells -> %d undirected edges", matrix.nnz, len(edges))
    return edges


def sparse_matrix_to_graph(matrix: SparseMatrix, directed: bool = False) -> Graph:
    return edges_to_graph(sparse_matrix_to_edges(matrix, directed=directed),
                          vertices=list(matrix.labels), directed=directed)


def incidence_from_records(records: Iterable[Mapping[str, Any]], row_field: str,
                           column_field: str) -> IncidenceMatrix:
    """Long-format records (e.g. one row per DOI/author pair) -> 0/1 incidence matrix."""
    rows: Dict[str, int] = {}
    cols: Dict[str, int] = {}
    cells = set()
    for n, rec in enumerate(records):
        for fname in (row_field, column_field):
            if fname not in rec or _is_missing(rec[fname]):
                raise MissingAttributeError(f"Record {n} has no {fname!r} field")
        r = rows.setdefault(str(rec[row_field]), len(rows))
        c = cols.setdefault(str(rec[column_field]), len(cols))
        cells.add((r, c))
    return IncidenceMatrix(row_labels=tuple(rows), column_labels=tuple(cols),
                           entries=tuple((r, c, 1.0) for r, c in cells))


def incidence_from_frame(frame: pd.DataFrame, row_column: str, column_column: str) -> IncidenceMatrix:
    for col in (row_column, column_column):
        if col not in frame.columns:
            raise MissingAttributeError(f"Table has no {col!r} column")
    return incidence_from_records(frame[[row_column, column_column]].to_dict("records"),
                                  row_column, column_column)


def co_occurrence_matrix(incidence: IncidenceMatrix, zero_diagonal: bool = True) -> SparseMatrix:
    """
    Entity-by-entity co-occurrence: B.T @ B over the incidence columns.

    Cell (a, b) counts the rows (documents) in which a and b both appear.
    With zero_diagonal the self co-occurrence counts are dropped.
    """
    b = incidence.to_scipy()
    co = (b.T @ b).tocsr()
    if zero_diagonal:
        co = co.tolil()
        co.setdiag(0)
        co = co.tocsr()
    co.eliminate_zeros()
    logger.debug("Co-occurrence over %d rows and %d entities: %d non-zero cells",
                 incidence.shape[0], incidence.shape[1], co.nnz)
    return SparseMatrix.from_scipy(co, incidence.column_labels)


def _require_columns(frame: pd.DataFrame, columns: Sequence[Optional[str]]) -> None:
    for col in columns:
        if col is not None and col not in frame.columns:
            raise MissingAttributeError(f"Table has no {col!r} column")


def _clean_attrs(rec: Mapping[str, Any], skip: Sequence[Optional[str]]) -> Dict[str, Any]:
    out = {}
    for k, v in rec.items():
        if k in skip:
            continue
        if isinstance(v, np.generic):
            v = v.item()
        out[str(k)] = v
    return out


def edges_from_records(records: Iterable[Mapping[str, Any]], source_field: str, target_field: str,
                       weight_field: Optional[str] = None) -> List[Edge]:
    """
    Edge list from tabular rows.

    The weight column is named explicitly; every row must carry it.
    Any other field becomes an edge attribute.
    """
    edges = []
    for n, rec in enumerate(records):
        for fname in (source_field, target_field, weight_field):
            if fname is not None and (fname not in rec or _is_missing(rec[fname])):
                raise MissingAttributeError(f"Edge record {n} has no {fname!r} field")
        weight = None
        if weight_field is not None:
            weight = rec[weight_field]
            if isinstance(weight, np.generic):
                weight = weight.item()
            if isinstance(weight, bool) or not isinstance(weight, Number):
                raise ValidationError(f"Edge record {n} has non-numeric weight {weight!r}")
        edges.append(Edge(source=str(rec[source_field]), target=str(rec[target_field]), weight=weight,
                          attributes=_clean_attrs(rec, (source_field, target_field, weight_field))))
    return edges


def edges_from_frame(frame: pd.DataFrame, source_column: str = "from", target_column: str = "to",
                     weight_column: Optional[str] = None) -> List[Edge]:
    _require_columns(frame, (source_column, target_column, weight_column))
    return edges_from_records(frame.to_dict("records"), source_column, target_column, weight_column)


def vertices_from_frame(frame: pd.DataFrame, name_column: str = "name") -> List[Vertex]:
    _require_columns(frame, (name_column,))
    vertices = []
    for n, rec in enumerate(frame.to_dict("records")):
        if _is_missing(rec[name_column]):
            raise MissingAttributeError(f"Vertex record {n} has no {name_column!r} value")
        vertices.append(Vertex(name=str(rec[name_column]), attributes=_clean_attrs(rec, (name_column,))))
    return vertices


def to_networkx(graph: Graph) -> nx.Graph:
    # MultiGraph keeps parallel edges apart; GraphML writers accept either
    parallel = len({e.key(graph.directed) for e in graph.edges}) != graph.ecount
    if graph.directed:
        G = nx.MultiDiGraph() if parallel else nx.DiGraph()
    else:
        G = nx.MultiGraph() if parallel else nx.Graph()
    for v in graph.vertices:
        G.add_node(v.name, **dict(v.attributes))
    for e in graph.edges:
        attrs = dict(e.attributes)
        if e.weight is not None:
            attrs[settings.WEIGHT_ATTRIBUTE] = e.weight
        G.add_edge(e.source, e.target, **attrs)
    return G


def graph_to_frames(graph: Graph) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """(vertices, edges) tables, the vertex-list + edge-list layout export formats need."""
    vertices = pd.DataFrame([{"name": v.name, **dict(v.attributes)} for v in graph.vertices],
                            columns=None if graph.vertices else ["name"])
    edges = pd.DataFrame([{"from": e.source, "to": e.target, "weight": e.weight, **dict(e.attributes)}
                          for e in graph.edges],
                         columns=None if graph.edges else ["from", "to", "weight"])
    return vertices, edges


def build_adjacency(graph: Graph) -> np.ndarray:
    n = graph.vcount
    A = np.zeros((n, n), dtype=int)
    for e in graph.edges:
        i, j = graph.index_of(e.source), graph.index_of(e.target)
        A[i, j] = 1
        if not graph.directed:
            A[j, i] = 1
    return A
