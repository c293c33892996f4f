# ABOUTME: Loads and validates the tool deck and scenarios from JSON content files
# ABOUTME: Holds one read-only snapshot per provider with an explicit reload

import json
import logging
import random
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Union

from toolpick.config import Config
from toolpick.scoring.errors import ConfigurationError, ValidationError
from toolpick.scoring.models import Scenario, Tool

log = logging.getLogger(__name__)

TOOLS_FILE = "deck.tools.json"
SCENARIOS_FILE = "scenarios.json"


class ContentLoadError(Exception):
    """Content file is missing, unreadable or not valid JSON"""


@dataclass(frozen=True)
class ContentSnapshot:
    """Validated tools and scenarios, in file order, with id lookups"""
    tools: tuple[Tool, ...]
    scenarios: tuple[Scenario, ...]
    tools_by_id: Mapping[str, Tool]
    scenarios_by_id: Mapping[str, Scenario]

    @classmethod
    def build(cls, tools: Iterable[Tool], scenarios: Iterable[Scenario]) -> "ContentSnapshot":
        """
        Index records by id.

        Raises:
            ValidationError: two records share an id
            ConfigurationError: a scenario has no positive weight
        """
        tools = tuple(tools)
        scenarios = tuple(scenarios)

        tools_by_id = {}
        for tool in tools:
            if tool.id in tools_by_id:
                raise ValidationError(f"Duplicate tool id: {tool.id}")
            tools_by_id[tool.id] = tool

        scenarios_by_id = {}
        for scenario in scenarios:
            if scenario.id in scenarios_by_id:
                raise ValidationError(f"Duplicate scenario id: {scenario.id}")
            if scenario.total_weight == 0:
                raise ConfigurationError(f"Scenario {scenario.id} has no positive weight")
            scenarios_by_id[scenario.id] = scenario

        return cls(
            tools=tools,
            scenarios=scenarios,
            tools_by_id=MappingProxyType(tools_by_id),
            scenarios_by_id=MappingProxyType(scenarios_by_id),
        )


def _reject_constant(name: str):
    raise ValueError(f"non-finite number {name} is not allowed")


def _read_json_list(path: Path) -> list:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f, parse_constant=_reject_constant)
    except (OSError, ValueError) as e:
        log.error(f"Error loading content file {path}: {e}")
        raise ContentLoadError(f"Failed to load {path.name}") from e

    if not isinstance(data, list):
        raise ContentLoadError(f"{path.name} must contain a JSON list, got {type(data).__name__}")
    return data


def load_snapshot(content_dir: Union[str, Path]) -> ContentSnapshot:
    """Read both content files from content_dir and validate every record."""
    content_dir = Path(content_dir)
    tools = [Tool.from_dict(raw) for raw in _read_json_list(content_dir / TOOLS_FILE)]
    scenarios = [Scenario.from_dict(raw) for raw in _read_json_list(content_dir / SCENARIOS_FILE)]
    return ContentSnapshot.build(tools, scenarios)


class ContentProvider:
    """
    Read-only access to tools and scenarios.

    The snapshot is built once at construction and only replaced by reload().
    Records are immutable, so callers may hold on to them.
    """

    def __init__(
        self,
        content_dir: Optional[Union[str, Path]] = None,
        snapshot: Optional[ContentSnapshot] = None
    ):
        self.content_dir = Path(content_dir or Config.CONTENT_DIR)
        if snapshot is None:
            snapshot = load_snapshot(self.content_dir)
            print(
                f"[CONTENT] Loaded {len(snapshot.tools)} tools, "
                f"{len(snapshot.scenarios)} scenarios from {self.content_dir}",
                flush=True
            )
        self._snapshot = snapshot

    @property
    def snapshot(self) -> ContentSnapshot:
        return self._snapshot

    def reload(self) -> ContentSnapshot:
        """
        Re-read content files and swap in the new snapshot.

        The current snapshot stays in place if loading or validation fails.
        """
        snapshot = load_snapshot(self.content_dir)
        self._snapshot = snapshot
        print(
            f"[CONTENT] Reloaded {len(snapshot.tools)} tools, "
            f"{len(snapshot.scenarios)} scenarios",
            flush=True
        )
        return snapshot

    def list_tools(self) -> tuple[Tool, ...]:
        return self._snapshot.tools

    def list_scenarios(self) -> tuple[Scenario, ...]:
        return self._snapshot.scenarios

    def get_tool_by_id(self, tool_id: str) -> Optional[Tool]:
        return self._snapshot.tools_by_id.get(tool_id)

    def get_scenario_by_id(self, scenario_id: str) -> Optional[Scenario]:
        return self._snapshot.scenarios_by_id.get(scenario_id)

    def get_random_scenario(
        self,
        exclude_ids: Iterable[str] = (),
        rng: Optional[random.Random] = None
    ) -> Optional[Scenario]:
        """
        Pick a random scenario not in exclude_ids.

        Returns:
            A scenario, or None when every scenario is excluded
        """
        excluded = set(exclude_ids)
        available = [s for s in self._snapshot.scenarios if s.id not in excluded]
        if not available:
            return None
        return (rng or random).choice(available)
