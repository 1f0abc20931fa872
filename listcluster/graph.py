from __future__ import annotations

"""
Pairwise similarity graph over a collection of ranked lists.

RBO as computed here is symmetric, so the builder emits one edge per
*unordered* pair: ``n * (n - 1) / 2`` edges for ``n`` lists, with the source
always the earlier list in the input.  Edge order is not meaningful.
"""

from collections import Counter
from threading import Event
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

from loguru import logger

from .config import DEFAULT_CONCURRENCY
from .errors import PoolError
from .pipeline_types import Edge, RankedList, SimilarityTask
from .pool import WorkerPool


def pair_count(n: int) -> int:
    """Number of unordered pairs among ``n`` lists."""
    return n * (n - 1) // 2 if n > 1 else 0


def iter_pairs(lists: Sequence[RankedList]) -> Iterator[Tuple[RankedList, RankedList]]:
    """Yield ``(lists[i], lists[j])`` for every ``i < j``."""
    for i, source in enumerate(lists):
        for target in lists[i + 1:]:
            yield source, target


def build_tasks(p: float, lists: Sequence[RankedList]) -> Iterator[SimilarityTask]:
    for source, target in iter_pairs(lists):
        yield SimilarityTask(source=source, target=target, p=p)


def _warn_duplicate_labels(lists: Sequence[RankedList]) -> None:
    dupes = [label for label, n in Counter(r.label for r in lists).items() if n > 1]
    if dupes:
        logger.warning("Duplicate list labels will produce ambiguous edges: {}", dupes[:10])


def compute_graph(
    p: float,
    lists: Iterable[RankedList],
    concurrency: Optional[int] = None,
    cancel_event: Optional[Event] = None,
) -> Tuple[List[Edge], Optional[PoolError]]:
    """
    Score every unordered pair of ``lists`` and return the weighted edges.

    Parameters
    ----------
    p :
        RBO persistence in ``[0, 1]``.  An out-of-range value fails every pair
        rather than raising.
    lists :
        Ranked lists; read only, never mutated.
    concurrency :
        Worker count.  Defaults to ``DEFAULT_CONCURRENCY`` and is never larger
        than the number of pairs.
    cancel_event :
        Set it from another thread to abandon the batch.

    Returns
    -------
    (edges, error)
        Every edge that was computed, plus the first failure (or ``None``).
        Failed pairs never stop the rest of the batch.
    """
    if concurrency is not None and concurrency < 1:
        raise ValueError(f"concurrency must be >= 1, got {concurrency}")

    lists = list(lists)
    n_pairs = pair_count(len(lists))
    if n_pairs == 0:
        logger.info("Fewer than two lists ({}); nothing to compare", len(lists))
        return [], None

    _warn_duplicate_labels(lists)

    workers = DEFAULT_CONCURRENCY if concurrency is None else concurrency
    workers = min(workers, n_pairs)
    logger.info(
        "Computing RBO graph: lists={} pairs={} p={} workers={}",
        len(lists), n_pairs, p, workers,
    )

    with WorkerPool(workers, cancel_event=cancel_event) as pool:
        for task in build_tasks(p, lists):
            pool.add(task)
        pool.done_adding()
        edges, error = pool.results()
        failed = len(pool.errors())

    if error is not None:
        logger.warning("{} of {} pairs failed; first: {}", failed, n_pairs, error)
    logger.info("RBO graph complete: {} edges", len(edges))
    return edges, error
