"""Weighted confidence scoring across detector outputs."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import Optional

from sdk_analyzer.detector.types import HasConfidence

# Component weights; they sum to 1.0. A missing component scores zero and
# the remaining weights are not renormalized.
WEIGHTS: Mapping[str, float] = MappingProxyType({
    "crate_pattern": 0.30,
    "client_type": 0.30,
    "config_crate": 0.15,
    "config_attrs": 0.05,
    "error_categorization": 0.20,
})

HIGH_THRESHOLD = 0.8
MEDIUM_THRESHOLD = 0.6


class ConfidenceLevel(StrEnum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"

    @classmethod
    def for_score(cls, score: float) -> "ConfidenceLevel":
        if score >= HIGH_THRESHOLD:
            return cls.HIGH
        if score >= MEDIUM_THRESHOLD:
            return cls.MEDIUM
        return cls.LOW


@dataclass(frozen=True)
class ConfidenceScore:
    overall: float
    level: ConfidenceLevel
    per_field: Mapping[str, float] = field(default_factory=dict)

    def needs_review(self, field_name: str, threshold: float) -> bool:
        """True when a field scored below the review threshold (or is unknown)."""
        return self.per_field.get(field_name, 0.0) < threshold

    def fields_below(self, threshold: float) -> list[str]:
        return [name for name in self.per_field if self.needs_review(name, threshold)]

    def to_dict(self) -> dict:
        return {
            "overall": round(self.overall, 2),
            "level": str(self.level),
            "per_field": {name: round(value, 2) for name, value in self.per_field.items()},
        }


def score_confidence(
    components: Mapping[str, Optional[HasConfidence | float]],
) -> ConfidenceScore:
    """Combine component confidences into a weighted overall score.

    Components are keyed by the names in WEIGHTS and may be any object
    with a `confidence` attribute, a bare float, or None. Unknown keys are
    ignored. Never raises.
    """
    per_field: dict[str, float] = {}
    for name in WEIGHTS:
        per_field[name] = _component_value(components.get(name))

    overall = sum(WEIGHTS[name] * value for name, value in per_field.items())
    overall = min(1.0, max(0.0, round(overall, 6)))
    return ConfidenceScore(
        overall=overall,
        level=ConfidenceLevel.for_score(overall),
        per_field=MappingProxyType(per_field),
    )


def _component_value(component: Optional[HasConfidence | float]) -> float:
    if component is None:
        return 0.0
    if isinstance(component, HasConfidence):
        value = component.confidence
    else:
        value = component
    try:
        value = float(value)
    except (TypeError, ValueError):
        return 0.0
    if value != value:  # NaN
        return 0.0
    return min(1.0, max(0.0, value))
