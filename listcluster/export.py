# listcluster/export.py
from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .config import EDGE_COLUMNS, EdgeOut, GraphResponse
from .errors import PoolError
from .pipeline_types import Edge


def filter_edges(edges: Iterable[Edge], min_similarity: float) -> List[Edge]:
    """Keep edges whose similarity is at least ``min_similarity``."""
    return [e for e in edges if e.similarity >= min_similarity]


def edges_to_frame(edges: Iterable[Edge]) -> pd.DataFrame:
    rows = [(e.source, e.target, e.similarity) for e in edges]
    df = pd.DataFrame(rows, columns=EDGE_COLUMNS)
    return df.sort_values(["source", "target"], kind="stable").reset_index(drop=True)


def similarity_matrix(
    edges: Iterable[Edge],
    labels: Optional[Sequence[str]] = None,
) -> Tuple[np.ndarray, List[str]]:
    """
    Dense symmetric matrix view of an edge list.

    Rows/columns follow ``labels`` (default: first appearance in ``edges``).
    The diagonal is 1.0; pairs with no edge are NaN.
    """
    edges = list(edges)
    if labels is None:
        seen: dict = {}
        for e in edges:
            seen.setdefault(e.source, None)
            seen.setdefault(e.target, None)
        labels = list(seen)
    else:
        labels = list(labels)

    index = {label: i for i, label in enumerate(labels)}
    mat = np.full((len(labels), len(labels)), np.nan, dtype=float)
    np.fill_diagonal(mat, 1.0)
    for e in edges:
        i, j = index.get(e.source), index.get(e.target)
        if i is None or j is None:
            continue
        mat[i, j] = e.similarity
        mat[j, i] = e.similarity
    return mat, labels


def write_edges(edges: Iterable[Edge], path: Path) -> None:
    """
    Write CSV with exact header: source,target,similarity
    """
    df = edges_to_frame(edges)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False, encoding="utf-8")


def edges_to_response(edges: Iterable[Edge], error: Optional[PoolError] = None) -> GraphResponse:
    return GraphResponse(
        edges=[EdgeOut(source=e.source, target=e.target, similarity=e.similarity) for e in edges],
        error=str(error) if error is not None else None,
    )
