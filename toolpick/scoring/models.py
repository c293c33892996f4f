# ABOUTME: Data models for tools, scenarios, scored responses and heatmap entries
# ABOUTME: Records validate eagerly so scoring never sees an out-of-domain value

import math
from dataclasses import dataclass
from numbers import Real
from types import MappingProxyType
from typing import Any, Mapping

from toolpick.scoring.attributes import ATTRIBUTES, Attribute
from toolpick.scoring.errors import ValidationError

TOOL_CATEGORIES = ("no-code", "low-code", "vibe-code", "code")

DEFAULT_TMAX_SECONDS = 25


def _is_number(value: Any) -> bool:
    """Finite real number; bools, NaN and infinities are rejected."""
    return isinstance(value, Real) and not isinstance(value, bool) and math.isfinite(value)


def _attribute_map(
    values: Any,
    owner: str,
    label: str,
    in_domain: bool = True
) -> Mapping[Attribute, float]:
    """
    Validate a per-attribute map and return a read-only copy keyed by Attribute.

    Args:
        values: Mapping of attribute (name or member) to number
        owner: Record id, for error messages
        label: "ratings", "targets" or "weights"
        in_domain: Check each value against the attribute's rating domain;
            otherwise only require a non-negative number (weights)

    Raises:
        ValidationError: missing/unknown attribute, non-numeric or out-of-range value
    """
    if not isinstance(values, Mapping):
        raise ValidationError(f"{owner}: {label} must be a mapping, got {type(values).__name__}")

    parsed = {}
    for key, value in values.items():
        attribute = Attribute.parse(key)
        if attribute in parsed:
            raise ValidationError(f"{owner}: duplicate {label} entry for {attribute.value}")
        if not _is_number(value):
            raise ValidationError(f"{owner}: {label}.{attribute.value} must be a number, got {value!r}")
        if in_domain and not attribute.contains(value):
            raise ValidationError(
                f"{owner}: {label}.{attribute.value}={value} outside "
                f"[{attribute.low}, {attribute.high}]"
            )
        if not in_domain and value < 0:
            raise ValidationError(f"{owner}: {label}.{attribute.value} must be >= 0, got {value}")
        parsed[attribute] = value

    missing = [a.value for a in ATTRIBUTES if a not in parsed]
    if missing:
        raise ValidationError(f"{owner}: {label} missing {', '.join(missing)}")

    # Domain order regardless of input order
    return MappingProxyType({a: parsed[a] for a in ATTRIBUTES})


def _attribute_dict(values: Mapping[Attribute, float]) -> dict[str, float]:
    return {a.value: values[a] for a in ATTRIBUTES}


def _require_fields(data: Any, kind: str, names: tuple[str, ...]) -> None:
    if not isinstance(data, Mapping):
        raise ValidationError(f"{kind} record must be a mapping, got {type(data).__name__}")
    missing = [name for name in names if name not in data]
    if missing:
        raise ValidationError(f"{kind} {data.get('id', '?')!r} missing {', '.join(missing)}")


@dataclass(frozen=True)
class Tool:
    """A tool card: a rating on every attribute"""
    id: str
    name: str
    category: str  # one of TOOL_CATEGORIES
    ratings: Mapping[Attribute, float]
    notes: str = ""

    def __post_init__(self):
        if not isinstance(self.id, str) or not self.id:
            raise ValidationError(f"Tool id must be a non-empty string, got {self.id!r}")
        if self.category not in TOOL_CATEGORIES:
            raise ValidationError(f"{self.id}: unknown category {self.category!r}")
        object.__setattr__(self, "ratings", _attribute_map(self.ratings, self.id, "ratings"))

    def __hash__(self):
        return hash(self.id)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Tool":
        _require_fields(data, "Tool", ("id", "name", "category", "ratings"))
        return cls(
            id=data["id"],
            name=data["name"],
            category=data["category"],
            ratings=data["ratings"],
            notes=data.get("notes", ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "ratings": _attribute_dict(self.ratings),
            "notes": self.notes,
        }


@dataclass(frozen=True)
class Scenario:
    """A scenario: target profile, per-attribute weights and a time budget"""
    id: str
    title: str
    description: str
    targets: Mapping[Attribute, float]
    weights: Mapping[Attribute, float]
    tmax: float = DEFAULT_TMAX_SECONDS  # seconds

    def __post_init__(self):
        if not isinstance(self.id, str) or not self.id:
            raise ValidationError(f"Scenario id must be a non-empty string, got {self.id!r}")
        if not _is_number(self.tmax) or self.tmax <= 0:
            raise ValidationError(f"{self.id}: tmax must be a positive number, got {self.tmax!r}")
        object.__setattr__(self, "targets", _attribute_map(self.targets, self.id, "targets"))
        object.__setattr__(
            self, "weights", _attribute_map(self.weights, self.id, "weights", in_domain=False)
        )

    def __hash__(self):
        return hash(self.id)

    @property
    def total_weight(self) -> float:
        return sum(self.weights.values())

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Scenario":
        _require_fields(data, "Scenario", ("id", "title", "description", "targets", "weights"))
        tmax = data.get("tmax")
        return cls(
            id=data["id"],
            title=data["title"],
            description=data["description"],
            targets=data["targets"],
            weights=data["weights"],
            tmax=DEFAULT_TMAX_SECONDS if tmax is None else tmax,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "targets": _attribute_dict(self.targets),
            "weights": _attribute_dict(self.weights),
            "tmax": self.tmax,
        }


@dataclass(frozen=True)
class ScoredResponse:
    """Result of scoring one pick"""
    latency_ms: int
    accuracy: float    # 0-1
    time_score: float  # 0-1
    score: float       # 0-100, 2 decimals

    def to_dict(self) -> dict[str, Any]:
        return {
            "latencyMs": self.latency_ms,
            "accuracy": self.accuracy,
            "timeScore": self.time_score,
            "score": self.score,
        }


@dataclass(frozen=True)
class HeatmapEntry:
    """Average absolute rating/target gap for one attribute"""
    avg_difference: float = 0.0
    count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"avgDifference": self.avg_difference, "count": self.count}
