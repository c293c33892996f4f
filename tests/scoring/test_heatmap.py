# ABOUTME: Tests for the attribute heatmap aggregator
# ABOUTME: Validates unweighted per-attribute mismatch averages and empty input

import pytest

from toolpick.scoring.attributes import ATTRIBUTES, Attribute
from toolpick.scoring.errors import ValidationError
from toolpick.scoring.heatmap import calculate_attribute_heatmap, heatmap_to_dict
from toolpick.scoring.models import HeatmapEntry, Scenario, Tool


def create_tool(tool_id: str = "tool", **ratings) -> Tool:
    values = {a.value: 3 for a in ATTRIBUTES}
    values.update(ratings)
    return Tool(id=tool_id, name=tool_id, category="code", ratings=values)


def create_scenario(weights: dict = None, **targets) -> Scenario:
    target_values = {a.value: 3 for a in ATTRIBUTES}
    target_values.update(targets)
    weight_values = {a.value: 1 for a in ATTRIBUTES}
    weight_values.update(weights or {})
    return Scenario(id="scenario", title="", description="", targets=target_values, weights=weight_values)


def test_empty_input_reports_zero_everywhere():
    heatmap = calculate_attribute_heatmap([])

    assert set(heatmap) == set(ATTRIBUTES)
    for entry in heatmap.values():
        assert entry == HeatmapEntry(avg_difference=0.0, count=0)


def test_exact_match_has_no_difference():
    heatmap = calculate_attribute_heatmap([(create_tool(), create_scenario())])

    for entry in heatmap.values():
        assert entry.avg_difference == 0
        assert entry.count == 1


def test_averages_absolute_differences_per_attribute():
    pairs = [
        (create_tool(ease=5), create_scenario(ease=3)),          # ease off by 2
        (create_tool(ease=1, cost=5), create_scenario(ease=2)),  # ease off by 1, cost off by 2
    ]

    heatmap = calculate_attribute_heatmap(pairs)

    assert heatmap[Attribute.EASE].avg_difference == pytest.approx(1.5)
    assert heatmap[Attribute.COST].avg_difference == pytest.approx(1.0)
    assert heatmap[Attribute.PRIVACY].avg_difference == 0


def test_count_is_the_same_for_every_attribute():
    pairs = [(create_tool(), create_scenario())] * 4

    heatmap = calculate_attribute_heatmap(pairs)

    assert {entry.count for entry in heatmap.values()} == {4}


def test_scenario_weights_are_ignored():
    """A zero-weighted attribute still shows its raw mismatch"""
    pair = (create_tool(privacy=1), create_scenario(weights={"privacy": 0}, privacy=5))

    heatmap = calculate_attribute_heatmap([pair])

    assert heatmap[Attribute.PRIVACY].avg_difference == 4


def test_application_uses_raw_scale():
    pair = (create_tool(application=1), create_scenario(application=4))

    heatmap = calculate_attribute_heatmap([pair])

    assert heatmap[Attribute.APPLICATION].avg_difference == 3


def test_accepts_generators():
    pairs = ((create_tool(speed=4), create_scenario()) for _ in range(3))

    heatmap = calculate_attribute_heatmap(pairs)

    assert heatmap[Attribute.SPEED] == HeatmapEntry(avg_difference=1.0, count=3)


def test_malformed_pair_raises():
    bad_tool = create_tool().to_dict()
    bad_tool["ratings"]["ease"] = 0

    with pytest.raises(ValidationError):
        calculate_attribute_heatmap([(bad_tool, create_scenario())])


def test_heatmap_to_dict_uses_wire_names():
    result = heatmap_to_dict(calculate_attribute_heatmap([]))

    assert list(result) == [a.value for a in ATTRIBUTES]
    assert result["a11y"] == {"avgDifference": 0.0, "count": 0}
