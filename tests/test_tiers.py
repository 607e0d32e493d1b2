"""Tests for readiness tier classification and gauge segments."""

import pytest

from carbon_readiness.core.tiers import (
    ADVANCED_MIN,
    BASIC_MIN,
    SOLID_MIN,
    Tier,
    classify,
    classify_result,
    gauge_segments,
    segment_label,
)


@pytest.mark.parametrize(
    "score, tier",
    [
        (100, Tier.ADVANCED),
        (85, Tier.ADVANCED),
        (84, Tier.SOLID),
        (65, Tier.SOLID),
        (64, Tier.BASIC),
        (35, Tier.BASIC),
        (34, Tier.URGENT),
        (0, Tier.URGENT),
    ],
)
def test_boundaries_are_inclusive_at_lower_bound(score, tier):
    assert classify(score) is tier


def test_exactly_one_tier_for_every_score():
    bands = {Tier.URGENT: (0, BASIC_MIN), Tier.BASIC: (BASIC_MIN, SOLID_MIN),
             Tier.SOLID: (SOLID_MIN, ADVANCED_MIN), Tier.ADVANCED: (ADVANCED_MIN, 101)}
    for score in range(0, 101):
        matching = [t for t, (lo, hi) in bands.items() if lo <= score < hi]
        assert matching == [classify(score)]


def test_classify_is_total_outside_the_scale():
    assert classify(-5) is Tier.URGENT
    assert classify(250) is Tier.ADVANCED


def test_localized_result_text(en_bundle, fr_bundle):
    assert classify_result(100, en_bundle).result == "Advanced Carbon Credit Readiness"
    assert classify_result(10, en_bundle).result == "Immediate Action Required"
    fr = classify_result(100, fr_bundle)
    assert fr.tier is Tier.ADVANCED
    assert fr.result != "Advanced Carbon Credit Readiness"
    assert fr.suggestion


def test_result_text_without_bundle_uses_literal_defaults():
    result = classify_result(70)
    assert result.result == "Solid Carbon Credit Readiness"
    assert result.suggestion == ""


def test_gauge_segments_follow_thresholds():
    segments = gauge_segments()
    assert [(s.tier, s.start, s.end) for s in segments] == [
        (Tier.URGENT, 0, BASIC_MIN),
        (Tier.BASIC, BASIC_MIN, SOLID_MIN),
        (Tier.SOLID, SOLID_MIN, ADVANCED_MIN),
        (Tier.ADVANCED, ADVANCED_MIN, 100),
    ]
    assert len({s.color for s in segments}) == 4


def test_segment_labels(en_bundle):
    assert segment_label(Tier.URGENT, en_bundle) == "Immediate Action"
    assert segment_label(Tier.ADVANCED, en_bundle) == "Advanced"
