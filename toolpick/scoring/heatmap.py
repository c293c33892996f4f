# ABOUTME: Attribute heatmap: where players' picks drift from scenario targets
# ABOUTME: Unweighted per-attribute mean absolute difference across many responses

from typing import Iterable, Tuple

from toolpick.scoring.attributes import ATTRIBUTES, Attribute
from toolpick.scoring.calculator import as_scenario, as_tool, attribute_difference
from toolpick.scoring.models import HeatmapEntry, Scenario, Tool


def calculate_attribute_heatmap(
    pairs: Iterable[Tuple[Tool, Scenario]]
) -> dict[Attribute, HeatmapEntry]:
    """
    Average absolute rating/target difference per attribute.

    Scenario weights are ignored: this is the raw mismatch on each attribute's
    own scale, using the same difference as accuracy scoring.

    Args:
        pairs: (chosen tool, answered scenario) for each response

    Returns:
        {Attribute: HeatmapEntry}; every entry is (0, 0) when pairs is empty
    """
    totals = {attribute: 0.0 for attribute in ATTRIBUTES}
    count = 0

    for tool, scenario in pairs:
        tool = as_tool(tool)
        scenario = as_scenario(scenario)
        for attribute in ATTRIBUTES:
            totals[attribute] += attribute_difference(tool, scenario, attribute)
        count += 1

    if count == 0:
        return {attribute: HeatmapEntry(avg_difference=0.0, count=0) for attribute in ATTRIBUTES}

    return {
        attribute: HeatmapEntry(avg_difference=totals[attribute] / count, count=count)
        for attribute in ATTRIBUTES
    }


def heatmap_to_dict(heatmap: dict[Attribute, HeatmapEntry]) -> dict[str, dict]:
    """Wire shape: {"ease": {"avgDifference": ..., "count": ...}, ...}"""
    return {attribute.value: heatmap[attribute].to_dict() for attribute in ATTRIBUTES}
