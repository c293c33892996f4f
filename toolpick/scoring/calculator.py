# ABOUTME: Core scoring calculation: accuracy, time score and combined score
# ABOUTME: Turns a (tool, scenario, presented/submitted time) triple into a ScoredResponse

import logging
import math
from datetime import datetime, timedelta
from typing import Any, Optional

from toolpick.config import Config
from toolpick.scoring.attributes import ATTRIBUTES, Attribute
from toolpick.scoring.errors import ConfigurationError, InputError, ValidationError
from toolpick.scoring.models import DEFAULT_TMAX_SECONDS, Scenario, ScoredResponse, Tool

log = logging.getLogger(__name__)

DEFAULT_ACCURACY_WEIGHT = 0.7
DEFAULT_SPEED_WEIGHT = 0.3


def as_tool(tool: Any) -> Tool:
    """Return a validated Tool, building one from a wire dict if needed."""
    if isinstance(tool, Tool):
        return tool
    if isinstance(tool, dict):
        return Tool.from_dict(tool)
    raise ValidationError(f"Expected a Tool record, got {type(tool).__name__}")


def as_scenario(scenario: Any) -> Scenario:
    """Return a validated Scenario, building one from a wire dict if needed."""
    if isinstance(scenario, Scenario):
        return scenario
    if isinstance(scenario, dict):
        return Scenario.from_dict(scenario)
    raise ValidationError(f"Expected a Scenario record, got {type(scenario).__name__}")


def attribute_difference(tool: Tool, scenario: Scenario, attribute: Attribute) -> float:
    """Absolute gap between the tool's rating and the scenario's target (raw scale)."""
    return abs(tool.ratings[attribute] - scenario.targets[attribute])


def round2(value: float) -> float:
    """Round half-up to 2 decimal places."""
    return math.floor(value * 100 + 0.5) / 100


def calculate_latency_ms(presented_at: datetime, submitted_at: datetime) -> int:
    """
    Milliseconds between presenting a scenario and receiving the pick.

    Raises:
        InputError: timestamps can't be compared, or the pick predates the scenario
    """
    try:
        delta = submitted_at - presented_at
    except TypeError as e:
        raise InputError(f"Cannot compare presented/submitted timestamps: {e}") from e

    latency_ms = round(delta / timedelta(milliseconds=1))
    if latency_ms < 0:
        raise InputError(
            f"Submitted {submitted_at.isoformat()} before presented {presented_at.isoformat()}"
        )
    return latency_ms


def calculate_accuracy(tool: Tool, scenario: Scenario) -> float:
    """
    Weighted, range-normalized match between tool ratings and scenario targets.

    Each attribute's difference is normalized by its rating range (4 for 1-5
    attributes, 3 for application) and weighted by the scenario.

    Args:
        tool: Chosen tool
        scenario: Scenario being answered

    Returns:
        Accuracy in [0, 1]; 1 means every weighted attribute matches its target

    Raises:
        ValidationError: either record is malformed
        ConfigurationError: every scenario weight is zero
    """
    tool = as_tool(tool)
    scenario = as_scenario(scenario)

    weighted_diff_sum = 0.0
    weighted_range_sum = 0.0
    for attribute in ATTRIBUTES:
        weight = scenario.weights[attribute]
        weighted_diff_sum += weight * attribute_difference(tool, scenario, attribute)
        weighted_range_sum += weight * attribute.range

    if weighted_range_sum == 0:
        raise ConfigurationError(f"Scenario {scenario.id} has no positive weight")

    accuracy = 1 - weighted_diff_sum / weighted_range_sum
    return max(0.0, min(1.0, accuracy))


def calculate_time_score(latency_ms: float, tmax_seconds: float = DEFAULT_TMAX_SECONDS) -> float:
    """
    Linear speed score: 1 for an instant pick, 0 at or beyond tmax.

    Raises:
        InputError: negative latency
        ConfigurationError: tmax is not a positive finite number
    """
    if latency_ms < 0:
        raise InputError(f"Latency must be >= 0 ms, got {latency_ms}")
    if not math.isfinite(tmax_seconds) or tmax_seconds <= 0:
        raise ConfigurationError(f"tmax must be positive and finite, got {tmax_seconds}")

    return max(0.0, 1 - latency_ms / (tmax_seconds * 1000))


def calculate_final_score(
    accuracy: float,
    time_score: float,
    accuracy_weight: float = DEFAULT_ACCURACY_WEIGHT,
    speed_weight: float = DEFAULT_SPEED_WEIGHT
) -> float:
    """Blend accuracy and speed into a 0-100 score, rounded to 2 decimals."""
    return round2(100 * (accuracy_weight * accuracy + speed_weight * time_score))


class ScoreCalculator:
    """Scores picks with a fixed accuracy/speed blend"""

    def __init__(
        self,
        accuracy_weight: Optional[float] = None,
        speed_weight: Optional[float] = None
    ):
        self.accuracy_weight = Config.ACCURACY_WEIGHT if accuracy_weight is None else accuracy_weight
        self.speed_weight = Config.SPEED_WEIGHT if speed_weight is None else speed_weight

    def calculate_accuracy(self, tool: Tool, scenario: Scenario) -> float:
        return calculate_accuracy(tool, scenario)

    def calculate_time_score(self, latency_ms: float, tmax_seconds: float = DEFAULT_TMAX_SECONDS) -> float:
        return calculate_time_score(latency_ms, tmax_seconds)

    def calculate_final_score(self, accuracy: float, time_score: float) -> float:
        return calculate_final_score(accuracy, time_score, self.accuracy_weight, self.speed_weight)

    def score_response(
        self,
        tool: Tool,
        scenario: Scenario,
        presented_at: datetime,
        submitted_at: datetime
    ) -> ScoredResponse:
        """
        Score one pick end to end.

        Latency is computed before accuracy and feeds the time score.

        Args:
            tool: Chosen tool
            scenario: Scenario that was presented
            presented_at: When the scenario was shown
            submitted_at: When the pick arrived

        Returns:
            ScoredResponse with latency, accuracy, time score and final score
        """
        tool = as_tool(tool)
        scenario = as_scenario(scenario)

        latency_ms = calculate_latency_ms(presented_at, submitted_at)
        accuracy = self.calculate_accuracy(tool, scenario)
        time_score = self.calculate_time_score(latency_ms, scenario.tmax)
        score = self.calculate_final_score(accuracy, time_score)

        log.debug(
            f"Scored {tool.id} for {scenario.id}: latency={latency_ms}ms "
            f"accuracy={accuracy:.4f} time={time_score:.4f} score={score}"
        )

        return ScoredResponse(
            latency_ms=latency_ms,
            accuracy=accuracy,
            time_score=time_score,
            score=score,
        )
