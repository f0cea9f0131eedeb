from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Tuple
import math

import numpy as np
import pandas as pd
import scipy.sparse as sp

from .errors import DimensionMismatchError, DivideByZeroPolicy, ValidationError, safe_ratio
from .preprocessing import normalize_word

Scalar = Any  # str, int, float, bool or None
Triple = Tuple[int, int, float]


@dataclass(frozen=True)
class Vertex:
    name: str
    attributes: Mapping[str, Scalar] = field(default_factory=dict, hash=False)


@dataclass(frozen=True)
class Edge:
    source: str
    target: str
    weight: Optional[float] = None
    attributes: Mapping[str, Scalar] = field(default_factory=dict, hash=False)

    def key(self, directed: bool) -> Tuple[str, str]:
        if directed or self.source <= self.target:
            return (self.source, self.target)
        return (self.target, self.source)


@dataclass(frozen=True)
class Graph:
    vertices: Tuple[Vertex, ...]
    edges: Tuple[Edge, ...]  # undirected edges keep the orientation they were given in
    directed: bool = False
    _index: Dict[str, int] = field(init=False, repr=False, compare=False, hash=False)

    def __post_init__(self):
        object.__setattr__(self, "vertices", tuple(self.vertices))
        object.__setattr__(self, "edges", tuple(self.edges))
        index: Dict[str, int] = {}
        for i, v in enumerate(self.vertices):
            if v.name in index:
                raise ValidationError(f"Duplicate vertex id: {v.name!r}")
            index[v.name] = i
        for e in self.edges:
            for end in (e.source, e.target):
                if end not in index:
                    raise ValidationError(
                        f"Edge ({e.source!r}, {e.target!r}) references unknown vertex {end!r}")
        object.__setattr__(self, "_index", index)

    @property
    def vertex_names(self) -> List[str]:
        return [v.name for v in self.vertices]

    @property
    def vcount(self) -> int:
        return len(self.vertices)

    @property
    def ecount(self) -> int:
        return len(self.edges)

    def index_of(self, name: str) -> int:
        try:
            return self._index[name]
        except KeyError:
            raise ValidationError(f"Unknown vertex: {name!r}") from None

    def vertex(self, name: str) -> Vertex:
        return self.vertices[self.index_of(name)]

    def degree(self, name: Optional[str] = None, mode: str = "all"):
        """
        Vertex degree, igraph style.

        mode is "all", "in" or "out" (only meaningful for directed graphs).
        A self-loop adds 2 to the degree in "all" mode.
        Returns an int for one vertex, or a {name: degree} dict for all of them.
        """
        if mode not in ("all", "in", "out"):
            raise ValidationError(f"Unknown degree mode: {mode}")
        deg = {v.name: 0 for v in self.vertices}
        for e in self.edges:
            if not self.directed or mode in ("all", "out"):
                deg[e.source] += 1
            if not self.directed or mode in ("all", "in"):
                deg[e.target] += 1
        if name is not None:
            self.index_of(name)
            return deg[name]
        return deg

    def neighbors(self, name: str) -> List[str]:
        self.index_of(name)
        out: List[str] = []
        for e in self.edges:
            if e.source == name and e.target not in out:
                out.append(e.target)
            if e.target == name and e.source not in out:
                out.append(e.source)
        return out


def _check_square(shape: Tuple[int, ...], labels: Sequence[str]) -> int:
    if len(shape) != 2 or shape[0] != shape[1]:
        raise DimensionMismatchError(f"Adjacency matrix must be square, got shape {tuple(shape)}")
    if len(labels) != shape[0]:
        raise DimensionMismatchError(
            f"Matrix has {shape[0]} rows but {len(labels)} labels were given")
    return shape[0]


@dataclass(frozen=True)
class SparseMatrix:
    """
    Square adjacency matrix indexed by vertex name on both axes.

    Only non-zero cells are stored, as 0-based (row, col, value) triples sorted
    by row then column. When upper_triangle is set, an undirected graph is
    stored with row <= col only.
    """
    labels: Tuple[str, ...]
    entries: Tuple[Triple, ...]
    upper_triangle: bool = False
    _position: Dict[str, int] = field(init=False, repr=False, compare=False, hash=False)
    _cells: Dict[Tuple[int, int], float] = field(init=False, repr=False, compare=False, hash=False)

    def __post_init__(self):
        labels = tuple(self.labels)
        if len(set(labels)) != len(labels):
            raise ValidationError("Duplicate vertex ids in matrix labels")
        n = len(labels)
        seen = set()
        cleaned: List[Triple] = []
        for row, col, value in self.entries:
            row, col = int(row), int(col)
            if not (0 <= row < n and 0 <= col < n):
                raise ValidationError(f"Entry ({row}, {col}) is outside a {n}x{n} matrix")
            if (row, col) in seen:
                raise ValidationError(f"Duplicate entry for cell ({row}, {col})")
            if value == 0:
                raise ValidationError(f"Explicit zero stored at ({row}, {col})")
            if self.upper_triangle and row > col:
                raise ValidationError(f"Entry ({row}, {col}) lies below the diagonal")
            seen.add((row, col))
            cleaned.append((row, col, float(value)))
        cleaned.sort()
        object.__setattr__(self, "labels", labels)
        object.__setattr__(self, "entries", tuple(cleaned))
        object.__setattr__(self, "_position", {lab: i for i, lab in enumerate(labels)})
        object.__setattr__(self, "_cells", {(r, c): v for r, c, v in cleaned})

    @property
    def shape(self) -> Tuple[int, int]:
        return (len(self.labels), len(self.labels))

    @property
    def nnz(self) -> int:
        return len(self.entries)

    def get(self, row_label: str, col_label: str) -> float:
        try:
            r, c = self._position[row_label], self._position[col_label]
        except KeyError:
            raise ValidationError(f"Unknown label in ({row_label!r}, {col_label!r})") from None
        if self.upper_triangle and r > c:
            r, c = c, r
        return self._cells.get((r, c), 0.0)

    def is_symmetric(self) -> bool:
        return all(self._cells.get((c, r)) == v for (r, c), v in self._cells.items())

    def to_scipy(self) -> sp.csr_matrix:
        n = len(self.labels)
        if not self.entries:
            return sp.csr_matrix((n, n), dtype=float)
        rows, cols, vals = zip(*self.entries)
        return sp.coo_matrix((vals, (rows, cols)), shape=(n, n), dtype=float).tocsr()

    def to_dense(self) -> np.ndarray:
        return self.to_scipy().toarray()

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self.to_dense(), index=list(self.labels), columns=list(self.labels))

    def to_display_triples(self) -> List[Triple]:
        # the one place where 0-based storage meets 1-based display
        return [(r + 1, c + 1, v) for r, c, v in self.entries]

    @classmethod
    def from_display_triples(cls, labels: Sequence[str], triples: Iterable[Triple],
                             upper_triangle: bool = False) -> "SparseMatrix":
        entries = []
        for r, c, v in triples:
            if int(r) < 1 or int(c) < 1:
                raise ValidationError(f"Display indices are 1-based, got ({r}, {c})")
            entries.append((int(r) - 1, int(c) - 1, v))
        return cls(labels=tuple(labels), entries=tuple(entries), upper_triangle=upper_triangle)

    @classmethod
    def from_scipy(cls, matrix, labels: Sequence[str], upper_triangle: bool = False) -> "SparseMatrix":
        _check_square(matrix.shape, labels)
        coo = sp.coo_matrix(matrix)
        coo.sum_duplicates()
        coo.eliminate_zeros()
        entries = tuple(zip(coo.row.tolist(), coo.col.tolist(), coo.data.tolist()))
        return cls(labels=tuple(labels), entries=entries, upper_triangle=upper_triangle)

    @classmethod
    def from_dense(cls, array, labels: Sequence[str], upper_triangle: bool = False) -> "SparseMatrix":
        arr = np.asarray(array, dtype=float)
        _check_square(arr.shape, labels)
        return cls.from_scipy(sp.coo_matrix(arr), labels, upper_triangle=upper_triangle)

    @classmethod
    def from_frame(cls, frame: pd.DataFrame, upper_triangle: bool = False) -> "SparseMatrix":
        labels = [str(x) for x in frame.index]
        _check_square(frame.shape, labels)
        if labels != [str(x) for x in frame.columns]:
            raise ValidationError("Row and column labels of the adjacency table differ")
        return cls.from_dense(frame.to_numpy(dtype=float), labels, upper_triangle=upper_triangle)


@dataclass(frozen=True)
class IncidenceMatrix:
    """Rectangular rows x columns 0/1 (or count) matrix, e.g. documents x authors."""
    row_labels: Tuple[str, ...]
    column_labels: Tuple[str, ...]
    entries: Tuple[Triple, ...]

    def __post_init__(self):
        rows, cols = tuple(self.row_labels), tuple(self.column_labels)
        if len(set(rows)) != len(rows) or len(set(cols)) != len(cols):
            raise ValidationError("Duplicate labels in incidence matrix")
        for r, c, v in self.entries:
            if not (0 <= r < len(rows) and 0 <= c < len(cols)):
                raise ValidationError(f"Entry ({r}, {c}) is outside a {len(rows)}x{len(cols)} matrix")
        object.__setattr__(self, "row_labels", rows)
        object.__setattr__(self, "column_labels", cols)
        object.__setattr__(self, "entries", tuple(sorted((int(r), int(c), float(v)) for r, c, v in self.entries)))

    @property
    def shape(self) -> Tuple[int, int]:
        return (len(self.row_labels), len(self.column_labels))

    def to_scipy(self) -> sp.csr_matrix:
        if not self.entries:
            return sp.csr_matrix(self.shape, dtype=float)
        rows, cols, vals = zip(*self.entries)
        return sp.coo_matrix((vals, (rows, cols)), shape=self.shape, dtype=float).tocsr()

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self.to_scipy().toarray(), index=list(self.row_labels),
                            columns=list(self.column_labels))


@dataclass(frozen=True)
class LexiconEntry:
    word: str
    categories: FrozenSet[str] = frozenset()
    score: Optional[float] = None


@dataclass(frozen=True)
class Lexicon:
    entries: Mapping[str, LexiconEntry] = field(hash=False)

    @property
    def categories(self) -> List[str]:
        cats = set()
        for entry in self.entries.values():
            cats.update(entry.categories)
        return sorted(cats)

    @property
    def words(self) -> List[str]:
        return sorted(self.entries)

    @property
    def has_scores(self) -> bool:
        return any(e.score is not None for e in self.entries.values())

    def lookup(self, token: str) -> Optional[LexiconEntry]:
        return self.entries.get(normalize_word(token))

    def words_in(self, category: str) -> List[str]:
        return sorted(w for w, e in self.entries.items() if category in e.categories)

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, token) -> bool:
        return isinstance(token, str) and normalize_word(token) in self.entries


@dataclass(frozen=True)
class DocumentScore:
    document_id: Optional[str]
    counts: Mapping[str, int] = field(hash=False)  # every lexicon category, zero if unmatched
    total_tokens: int = 0
    polarity: float = 0.0  # sum of scores of matched words
    matched_words: Mapping[str, int] = field(default_factory=dict, hash=False)

    def count(self, categories) -> int:
        if isinstance(categories, str):
            categories = (categories,)
        return sum(self.counts.get(c, 0) for c in categories)


@dataclass(frozen=True)
class Bucketing:
    """
    Half-open buckets: labels[0] covers (-inf, t0), labels[i] covers [t(i-1), t(i)),
    labels[-1] covers [t(k-1), +inf). A score equal to a threshold goes up.
    """
    thresholds: Tuple[float, ...]
    labels: Tuple[str, ...]
    undefined_label: Optional[str] = None  # label for NaN/None scores; None means reject them

    def __post_init__(self):
        thresholds = tuple(float(t) for t in self.thresholds)
        labels = tuple(self.labels)
        if any(math.isnan(t) for t in thresholds):
            raise ValidationError("Bucket thresholds must be numbers")
        if any(b <= a for a, b in zip(thresholds, thresholds[1:])):
            raise ValidationError(f"Bucket thresholds must be strictly increasing: {thresholds}")
        if len(labels) != len(thresholds) + 1:
            raise ValidationError(
                f"{len(thresholds)} thresholds need {len(thresholds) + 1} labels, got {len(labels)}")
        object.__setattr__(self, "thresholds", thresholds)
        object.__setattr__(self, "labels", labels)


@dataclass(frozen=True)
class ConfusionMatrix:
    """Rows are manual (actual) labels, columns are predicted labels."""
    labels: Tuple[str, ...]
    counts: np.ndarray = field(hash=False, compare=False)

    @property
    def total(self) -> int:
        return int(self.counts.sum())

    @property
    def correct(self) -> int:
        return int(np.trace(self.counts))

    @property
    def accuracy(self) -> Optional[float]:
        return safe_ratio(self.correct, self.total, DivideByZeroPolicy.NAN)

    def to_frame(self) -> pd.DataFrame:
        frame = pd.DataFrame(self.counts, index=list(self.labels), columns=list(self.labels))
        frame.index.name = "actual"
        frame.columns.name = "predicted"
        return frame
