from __future__ import annotations

"""
Rank-biased overlap (RBO) between two ranked lists.

RBO is defined in:
Webber, William, Alistair Moffat, and Justin Zobel. "A similarity measure for
indefinite rankings." ACM Transactions on Information Systems (TOIS) 28.4
(2010): 20.  https://dl.acm.org/doi/10.1145/1852102.1852106

Three related quantities are exposed:

* :func:`rbo_min`  - tight lower bound on RBO at the evaluated depth.
* :func:`rbo_res`  - upper bound on the residual mass beyond the observed ranks.
* :func:`rbo_ext`  - point estimate extrapolating the observed overlap forever.

Every function here is pure: no I/O, no shared state, safe to call from any
number of worker threads at once.  The ``(1 - p) / p`` and ``ln(1 - p)``
factors are folded into per-rank weights of the form ``(1 - p) * p**(d - 1)``
so that ``p = 0`` and ``p = 1`` evaluate to their limits instead of NaN.
"""

import math
from threading import Event
from typing import Optional, Tuple

import numpy as np

from .errors import DegenerateInputError, ParameterError, TaskCancelledError
from .pipeline_types import RankedList, RBOResult

# overlap can be fractional; keep ceil() from jumping on float noise
_CEIL_EPS = 1e-9


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------

def _check_p(p: float) -> None:
    # written so NaN fails as well
    if not (0.0 <= p <= 1.0):
        raise ParameterError(f"p must be between 0 and 1, got {p}")


def _check_lists(a: RankedList, b: RankedList) -> None:
    for ranked in (a, b):
        if len(ranked) == 0:
            raise DegenerateInputError(f"ranked list {ranked.label!r} is empty")


def _raise_if_cancelled(cancel_event: Optional[Event]) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise TaskCancelledError("rbo computation cancelled")


def order_by_length(a: RankedList, b: RankedList) -> Tuple[RankedList, RankedList]:
    """Return ``(shorter, longer)``; ties keep the argument order."""
    if len(a) <= len(b):
        return a, b
    return b, a


# ---------------------------------------------------------------------------
# Agreement / overlap
# ---------------------------------------------------------------------------

def agreement(a: RankedList, b: RankedList, depth: int) -> float:
    """
    Proportion of shared members between the top ``depth`` of each list.

    Each prefix is truncated to ``min(depth, len(list))`` and the result is
    ``2 * |A ∩ B| / (|A| + |B|)``.  Members are compared as a set.
    """
    if depth < 1:
        raise ParameterError(f"depth must be >= 1, got {depth}")
    prefix_a = a.members[: min(depth, len(a))]
    prefix_b = b.members[: min(depth, len(b))]
    total = len(prefix_a) + len(prefix_b)
    if total == 0:
        raise DegenerateInputError(
            f"ranked lists {a.label!r} and {b.label!r} are both empty"
        )
    shared = len(set(prefix_a).intersection(prefix_b))
    return 2.0 * shared / total


def overlap(a: RankedList, b: RankedList, depth: int) -> float:
    """Agreement scaled back to a count: ``agreement * min(depth, |a|, |b|)``."""
    return agreement(a, b, depth) * min(depth, len(a), len(b))


def agreement_profile(a: RankedList, b: RankedList, depth: int) -> np.ndarray:
    """
    ``agreement(a, b, d)`` for every ``d`` in ``1..depth``, in a single pass.

    Returns
    -------
    np.ndarray
        Float array of shape ``(depth,)``; index ``d - 1`` holds depth ``d``.
    """
    if depth < 1:
        raise ParameterError(f"depth must be >= 1, got {depth}")

    members_a, members_b = a.members, b.members
    len_a, len_b = len(members_a), len(members_b)
    if len_a + len_b == 0:
        raise DegenerateInputError(
            f"ranked lists {a.label!r} and {b.label!r} are both empty"
        )

    seen_a: set = set()
    seen_b: set = set()
    shared = 0
    out = np.empty(depth, dtype=float)

    for i in range(depth):
        if i < len_a:
            item = members_a[i]
            if item not in seen_a:
                seen_a.add(item)
                if item in seen_b:
                    shared += 1
        if i < len_b:
            item = members_b[i]
            if item not in seen_b:
                seen_b.add(item)
                if item in seen_a:
                    shared += 1
        out[i] = 2.0 * shared / (min(i + 1, len_a) + min(i + 1, len_b))

    return out


def _overlap_profile(a: RankedList, b: RankedList, depth: int) -> Tuple[np.ndarray, np.ndarray]:
    agreements = agreement_profile(a, b, depth)
    depths = np.arange(1, depth + 1, dtype=float)
    overlaps = agreements * np.minimum(depths, min(len(a), len(b)))
    return agreements, overlaps


# ---------------------------------------------------------------------------
# Weights
# ---------------------------------------------------------------------------

def _rank_weights(p: float, depths: np.ndarray) -> np.ndarray:
    """``(1 - p) / p * p**d`` rewritten as ``(1 - p) * p**(d - 1)``."""
    return (1.0 - p) * np.power(p, depths - 1.0)


def _log_weight(p: float) -> float:
    """``(1 - p) / p * ln(1 / (1 - p))`` with its limits at 0 and 1."""
    if p == 0.0:
        return 1.0
    if p == 1.0:
        return 0.0
    return (1.0 - p) / p * -math.log1p(-p)


# ---------------------------------------------------------------------------
# The three RBO quantities
# ---------------------------------------------------------------------------

def _min_from_overlaps(overlaps: np.ndarray, p: float, depth: int) -> float:
    x = overlaps[:depth]
    x_k = float(x[-1])
    depths = np.arange(1, depth + 1, dtype=float)
    sum_term = float(np.sum(_rank_weights(p, depths) / depths * (x - x_k)))
    return sum_term + x_k * _log_weight(p)


def _res_from_overlaps(overlaps: np.ndarray, p: float, s: int, l: int) -> float:
    x_l = float(overlaps[l - 1])
    f = int(math.ceil(l + s - x_l - _CEIL_EPS))

    depths = np.arange(1, f + 1, dtype=float)
    per_rank = _rank_weights(p, depths) / depths
    beyond_s = float(np.sum(per_rank[s:]))
    beyond_l = float(np.sum(per_rank[l:]))
    up_to_f = float(np.sum(per_rank))

    tail = s * beyond_s + l * beyond_l - x_l * up_to_f + x_l * _log_weight(p)
    return p ** s + p ** l - p ** f - tail


def _ext_from_overlaps(
    agreements: np.ndarray, overlaps: np.ndarray, p: float, s: int, l: int
) -> float:
    x_s = float(overlaps[s - 1])
    x_l = float(overlaps[l - 1])

    depths = np.arange(1, l + 1, dtype=float)
    weights = _rank_weights(p, depths)
    observed = float(np.sum(weights * agreements[:l]))

    # ranks past the short list: assume its overlap rate carries on
    tail_depths = depths[s:]
    carried = float(np.sum(weights[s:] * x_s * (tail_depths - s) / (s * tail_depths)))

    return observed + carried + p ** l * ((x_l - x_s) / l + x_s / s)


def rbo_min(a: RankedList, b: RankedList, p: float, depth: Optional[int] = None) -> float:
    """
    Tight lower bound on RBO.

    Parameters
    ----------
    a, b :
        Ranked lists to compare.
    p :
        Persistence in ``[0, 1]``.
    depth :
        Rank after which nothing is considered.  Defaults to the length of the
        shorter list.
    """
    _check_p(p)
    _check_lists(a, b)
    if depth is None:
        depth = min(len(a), len(b))
    if depth < 1:
        raise ParameterError(f"depth must be >= 1, got {depth}")
    _, overlaps = _overlap_profile(a, b, depth)
    return _min_from_overlaps(overlaps, p, depth)


def rbo_res(a: RankedList, b: RankedList, p: float) -> float:
    """Upper bound on the overlap left unaccounted for past the observed ranks."""
    _check_p(p)
    _check_lists(a, b)
    short, long_ = order_by_length(a, b)
    s, l = len(short), len(long_)
    _, overlaps = _overlap_profile(a, b, l)
    return _res_from_overlaps(overlaps, p, s, l)


def rbo_ext(a: RankedList, b: RankedList, p: float) -> float:
    """Point estimate of RBO, extrapolating the observed overlap to infinity."""
    _check_p(p)
    _check_lists(a, b)
    short, long_ = order_by_length(a, b)
    s, l = len(short), len(long_)
    agreements, overlaps = _overlap_profile(a, b, l)
    return _ext_from_overlaps(agreements, overlaps, p, s, l)


def rank_biased_overlap(
    a: RankedList,
    b: RankedList,
    p: float,
    cancel_event: Optional[Event] = None,
) -> RBOResult:
    """
    Compute all three RBO quantities for one pair of lists.

    ``p`` is the probability of looking for overlap at rank ``k + 1`` after
    having examined rank ``k``.  The agreement profile is built once and shared
    by the three estimators.

    Raises
    ------
    ParameterError
        ``p`` is outside ``[0, 1]``.
    DegenerateInputError
        Either list is empty.
    TaskCancelledError
        ``cancel_event`` was set before the computation finished.
    """
    _check_p(p)
    _check_lists(a, b)
    _raise_if_cancelled(cancel_event)

    short, long_ = order_by_length(a, b)
    s, l = len(short), len(long_)
    agreements, overlaps = _overlap_profile(a, b, l)

    lower = _min_from_overlaps(overlaps, p, s)
    _raise_if_cancelled(cancel_event)
    residual = _res_from_overlaps(overlaps, p, s, l)
    _raise_if_cancelled(cancel_event)
    extrapolated = _ext_from_overlaps(agreements, overlaps, p, s, l)

    return RBOResult(lower, residual, extrapolated)
