import math
import threading

import numpy as np
import pytest

from listcluster.errors import DegenerateInputError, ParameterError, TaskCancelledError
from listcluster.pipeline_types import SimpleRankedList
from listcluster.rbo import (
    agreement,
    agreement_profile,
    overlap,
    rank_biased_overlap,
    rbo_ext,
    rbo_min,
    rbo_res,
)


def _rl(label, members):
    return SimpleRankedList(label=label, members=members)


ABCDE = _rl("x", ["a", "b", "c", "d", "e"])
ABCD = _rl("a", ["a", "b", "c", "d"])
CABD = _rl("b", ["c", "a", "b", "d"])
SHORT = _rl("short", ["a", "b", "c"])
LONG = _rl("long", ["a", "x", "b", "y", "c", "z", "q"])
DISJOINT = _rl("disjoint", ["v", "w", "x", "y", "z"])


def test_identical_five_element_lists_extrapolate_to_one():
    other = _rl("y", ["a", "b", "c", "d", "e"])
    _, _, ext = rank_biased_overlap(ABCDE, other, 0.9)
    assert ext == pytest.approx(1.0)


@pytest.mark.parametrize("p", [0.0, 0.1, 0.5, 0.9, 0.99, 1.0])
def test_identity_for_every_valid_p(p):
    assert rbo_ext(ABCDE, ABCDE, p) == pytest.approx(1.0)
    assert rbo_ext(LONG, LONG, p) == pytest.approx(1.0)


@pytest.mark.parametrize("p", [0.0, 0.5, 0.9, 1.0])
def test_min_plus_residual_covers_identical_lists(p):
    lower, residual, _ = rank_biased_overlap(ABCDE, ABCDE, p)
    assert lower + residual == pytest.approx(1.0)


@pytest.mark.parametrize("p", [0.1, 0.5, 0.9, 0.98])
@pytest.mark.parametrize("a,b", [(ABCD, CABD), (SHORT, LONG), (ABCDE, DISJOINT), (SHORT, ABCDE)])
def test_symmetry(a, b, p):
    ab = rank_biased_overlap(a, b, p)
    ba = rank_biased_overlap(b, a, p)
    assert ab.extrapolated == pytest.approx(ba.extrapolated)
    assert ab.min == pytest.approx(ba.min)
    assert ab.residual == pytest.approx(ba.residual)


@pytest.mark.parametrize("p", [-0.1, 1.1, float("nan")])
def test_invalid_p_raises_parameter_error(p):
    with pytest.raises(ParameterError):
        rank_biased_overlap(ABCD, CABD, p)


@pytest.mark.parametrize("p", [0.0, 1.0])
def test_boundary_p_values_are_finite(p):
    result = rank_biased_overlap(ABCD, CABD, p)
    assert all(math.isfinite(v) for v in result)


def test_p_zero_reduces_to_top_rank_agreement():
    # top ranks are {a} vs {c}
    assert rbo_ext(ABCD, CABD, 0.0) == pytest.approx(0.0)
    assert rbo_min(ABCD, CABD, 0.0) == pytest.approx(0.0)
    assert rbo_ext(SHORT, LONG, 0.0) == pytest.approx(1.0)


def test_agreement_scenario_depth_one_and_four():
    assert agreement(ABCD, CABD, 1) == 0.0
    assert agreement(ABCD, CABD, 2) == pytest.approx(0.5)
    assert agreement(ABCD, CABD, 4) == 1.0


def test_agreement_identity_and_bounds():
    for d in range(1, 10):
        assert agreement(LONG, LONG, d) == 1.0
        for a, b in [(ABCD, CABD), (SHORT, LONG), (ABCDE, DISJOINT), (SHORT, ABCDE)]:
            assert 0.0 <= agreement(a, b, d) <= 1.0


def test_agreement_rejects_bad_depth():
    with pytest.raises(ParameterError):
        agreement(ABCD, CABD, 0)


def test_agreement_profile_matches_pointwise_agreement():
    profile = agreement_profile(SHORT, LONG, 9)
    expected = np.array([agreement(SHORT, LONG, d) for d in range(1, 10)])
    assert profile.shape == (9,)
    assert np.allclose(profile, expected)


def test_overlap_scales_agreement_by_evaluated_depth():
    assert overlap(ABCD, CABD, 4) == pytest.approx(4.0)
    assert overlap(ABCD, CABD, 2) == pytest.approx(1.0)
    # depth past the shorter list is capped at its length
    assert overlap(SHORT, ABCDE, 5) == pytest.approx(agreement(SHORT, ABCDE, 5) * 3)


def test_known_value_for_reordered_lists():
    # (1 - p) * (0 + 0.5p + p^2 + p^3) + p^4 at p = 0.9
    assert rbo_ext(ABCD, CABD, 0.9) == pytest.approx(0.855)


def test_disjoint_lists_score_zero():
    lower, _, ext = rank_biased_overlap(ABCDE, DISJOINT, 0.9)
    assert ext == pytest.approx(0.0)
    assert lower == pytest.approx(0.0)


def test_extrapolated_bounds_for_equal_length_lists():
    for p in (0.1, 0.5, 0.9):
        for a, b in [(ABCD, CABD), (ABCDE, DISJOINT)]:
            lower, _, ext = rank_biased_overlap(a, b, p)
            assert 0.0 <= ext <= 1.0 + 1e-12
            assert lower <= ext + 1e-12
        for a, b in [(SHORT, LONG), (SHORT, ABCDE)]:
            assert rbo_ext(a, b, p) >= 0.0


def test_rbo_min_accepts_explicit_depth():
    auto = rbo_min(ABCD, CABD, 0.9)
    explicit = rbo_min(ABCD, CABD, 0.9, depth=4)
    assert auto == pytest.approx(explicit)
    with pytest.raises(ParameterError):
        rbo_min(ABCD, CABD, 0.9, depth=0)


def test_public_functions_agree_with_combined_call():
    result = rank_biased_overlap(SHORT, LONG, 0.8)
    assert result.min == pytest.approx(rbo_min(SHORT, LONG, 0.8))
    assert result.residual == pytest.approx(rbo_res(SHORT, LONG, 0.8))
    assert result.extrapolated == pytest.approx(rbo_ext(SHORT, LONG, 0.8))


def test_empty_list_is_degenerate():
    empty = _rl("empty", [])
    with pytest.raises(DegenerateInputError):
        rank_biased_overlap(empty, ABCD, 0.9)
    with pytest.raises(DegenerateInputError):
        rbo_ext(ABCD, empty, 0.9)
    with pytest.raises(DegenerateInputError):
        agreement(empty, _rl("also-empty", []), 3)


def test_parameter_error_checked_before_degenerate_input():
    with pytest.raises(ParameterError):
        rank_biased_overlap(_rl("empty", []), ABCD, 2.0)


def test_cancelled_event_stops_computation():
    ev = threading.Event()
    ev.set()
    with pytest.raises(TaskCancelledError):
        rank_biased_overlap(ABCD, CABD, 0.9, cancel_event=ev)
