from dataclasses import dataclass

import pytest

from award_sniper.value_engine import (
    beats_threshold,
    best_value,
    bookable_one_ways,
    cents_per_mile,
    net_cents_per_mile,
    value_tier,
)


@pytest.mark.parametrize(
    "price,miles",
    [(612, 22500), (450.0, 30000), (1234.56, 35000), (0, 22500), (99.99, 8000)],
)
def test_cents_per_mile_rounds_to_cents(price, miles):
    assert cents_per_mile(price, miles) == round((price / miles) * 100, 2)


def test_cents_per_mile_missing_inputs_are_zero():
    assert cents_per_mile(612, 0) == 0
    assert cents_per_mile(0, 22500) == 0
    assert cents_per_mile(None, 22500) == 0
    assert cents_per_mile(612, None) == 0


def test_net_cpp_subtracts_fees():
    assert net_cents_per_mile(612, 22500, 112) == pytest.approx(2.22)
    assert net_cents_per_mile(612, 22500) == cents_per_mile(612, 22500)


@pytest.mark.parametrize("fees", [612, 700, 10_000])
def test_net_cpp_never_negative(fees):
    assert net_cents_per_mile(612, 22500, fees) == 0


@pytest.mark.parametrize(
    "cpp,tier",
    [
        (0, "unknown"),
        (-1, "unknown"),
        (0.5, "poor"),
        (0.99, "poor"),
        (1.0, "decent"),
        (1.49, "decent"),
        (1.5, "good"),
        (2.24, "good"),
        (2.25, "excellent"),
        (10, "excellent"),
    ],
)
def test_value_tier_bands(cpp, tier):
    assert value_tier(cpp, 1.5).tier == tier


@pytest.mark.parametrize("threshold", [0.1, 0.8, 1.0, 1.5, 2.0, 3.3])
def test_value_tier_exhaustive_for_any_threshold(threshold):
    allowed = {"poor", "decent", "good", "excellent"}
    for i in range(1, 1000):
        cpp = i / 100
        result = value_tier(cpp, threshold)
        assert result.tier in allowed
        if cpp >= threshold * 1.5:
            assert result.tier == "excellent"
        elif cpp >= threshold:
            assert result.tier == "good"


def test_low_threshold_has_no_decent_band():
    # threshold 0.5: good from 0.5, excellent from 0.75
    assert value_tier(0.4, 0.5).tier == "poor"
    assert value_tier(0.6, 0.5).tier == "good"
    assert value_tier(1.2, 0.5).tier == "excellent"


def test_end_to_end_opo_ord():
    cpp = cents_per_mile(612, 22500)
    assert cpp == 2.72
    tier = value_tier(cpp, 1.5)
    assert tier.tier == "excellent"
    assert tier.label == "Excellent"


def test_beats_threshold_and_bookings():
    assert beats_threshold(1.5, 1.5)
    assert not beats_threshold(1.49, 1.5)
    assert not beats_threshold(0, 0.1)
    assert bookable_one_ways(None, 22500) is None
    assert bookable_one_ways(0, 22500) == 0
    assert bookable_one_ways(50000, 22500) == 2


@dataclass
class Value:
    name: str
    cpp: float
    beats: bool


def test_best_value_picks_highest_beating():
    values = [Value("a", 3.0, False), Value("b", 2.0, True), Value("c", 2.5, True)]
    assert best_value(values).name == "c"
    assert best_value([Value("a", 3.0, False)]) is None
    assert best_value([]) is None
