"""Shared types for the detector module.

Every detector output is wrapped in DetectionResult, which carries the
detected value along with confidence and evidence. The scorer only needs
the confidence, so it accepts anything matching HasConfidence.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Generic, Optional, Protocol, TypeVar, runtime_checkable

T = TypeVar("T")

SERVICE_PLACEHOLDER = "{service}"


@runtime_checkable
class HasConfidence(Protocol):
    """Anything carrying a 0.0 to 1.0 confidence score."""

    @property
    def confidence(self) -> float: ...


@dataclass(frozen=True)
class DetectionResult(Generic[T]):
    """A detected value with its confidence and supporting evidence.

    Confidence is clamped to [0.0, 1.0] on construction.
    """

    value: T
    confidence: float
    evidence: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "confidence", min(1.0, max(0.0, float(self.confidence))))

    def to_dict(self) -> dict:
        value = self.value
        if hasattr(value, "to_dict"):
            value = value.to_dict()
        return {
            "value": value,
            "confidence": round(self.confidence, 2),
            "evidence": self.evidence,
        }


@dataclass(frozen=True)
class NamingTemplate:
    """A name pattern with a single `{service}` placeholder.

    An empty pattern means no per-service naming exists (monolithic SDK,
    or nothing detected). A pattern without a placeholder is a literal
    that renders to itself.
    """

    pattern: str = ""

    def __post_init__(self) -> None:
        if self.pattern.count(SERVICE_PLACEHOLDER) > 1:
            raise ValueError(f"Template has more than one placeholder: {self.pattern!r}")

    @property
    def is_empty(self) -> bool:
        return not self.pattern

    @property
    def has_placeholder(self) -> bool:
        return SERVICE_PLACEHOLDER in self.pattern

    @property
    def prefix(self) -> str:
        return self.pattern.partition(SERVICE_PLACEHOLDER)[0]

    @property
    def suffix(self) -> str:
        head, sep, tail = self.pattern.partition(SERVICE_PLACEHOLDER)
        return tail if sep else ""

    def render(self, service: str) -> str:
        return self.pattern.replace(SERVICE_PLACEHOLDER, service)

    def service_token(self, name: str) -> Optional[str]:
        """Inverse of render: extract the service part of `name`.

        Returns None when `name` does not fit the template.
        """
        if not self.has_placeholder:
            return None
        prefix, suffix = self.prefix, self.suffix
        if len(name) <= len(prefix) + len(suffix):
            return None
        if not (name.startswith(prefix) and name.endswith(suffix)):
            return None
        return name[len(prefix):len(name) - len(suffix)]

    def __str__(self) -> str:
        return self.pattern

    def to_dict(self) -> dict:
        return {"pattern": self.pattern}


@dataclass(frozen=True)
class ConfigAttribute:
    """A recognized provider configuration attribute.

    setter: Code snippet applying the value, with a `{value}` placeholder.
    extractor: Value extraction expression guessed from the parameter
    type (e.g. "as_str()").
    method: Builder method the attribute was detected on.
    """

    name: str
    description: str
    required: bool = False
    setter: Optional[str] = None
    extractor: Optional[str] = None
    method: str = ""

    def to_dict(self) -> dict:
        data: dict = {
            "name": self.name,
            "description": self.description,
            "required": self.required,
        }
        if self.setter:
            data["setter"] = self.setter
        if self.extractor:
            data["extractor"] = self.extractor
        return data


@dataclass(frozen=True)
class Snippet:
    snippet: str
    var_name: str

    def to_dict(self) -> dict:
        return {"snippet": self.snippet, "var_name": self.var_name}


class PatternKind(StrEnum):
    """How an error pattern literal is matched against a variant name."""

    EXACT = "exact"
    PREFIX_WILDCARD = "prefix_wildcard"
    SUFFIX_WILDCARD = "suffix_wildcard"
    CONTAINS_WILDCARD = "contains_wildcard"


@dataclass(frozen=True)
class ErrorPattern:
    """An error code pattern: "NotFound", "NoSuch*", "*InUse" or "*Limit*"."""

    kind: PatternKind
    literal: str

    def render(self) -> str:
        if self.kind == PatternKind.PREFIX_WILDCARD:
            return f"{self.literal}*"
        if self.kind == PatternKind.SUFFIX_WILDCARD:
            return f"*{self.literal}"
        if self.kind == PatternKind.CONTAINS_WILDCARD:
            return f"*{self.literal}*"
        return self.literal

    def matches(self, variant: str) -> bool:
        if self.kind == PatternKind.PREFIX_WILDCARD:
            return variant.startswith(self.literal)
        if self.kind == PatternKind.SUFFIX_WILDCARD:
            return variant.endswith(self.literal)
        if self.kind == PatternKind.CONTAINS_WILDCARD:
            return self.literal in variant
        return variant == self.literal

    @classmethod
    def parse(cls, text: str) -> "ErrorPattern":
        """Inverse of render."""
        starts, ends = text.startswith("*"), text.endswith("*") and len(text) > 1
        literal = text.strip("*")
        if starts and ends:
            return cls(PatternKind.CONTAINS_WILDCARD, literal)
        if starts:
            return cls(PatternKind.SUFFIX_WILDCARD, literal)
        if ends:
            return cls(PatternKind.PREFIX_WILDCARD, literal)
        return cls(PatternKind.EXACT, literal)

    def __str__(self) -> str:
        return self.render()


@dataclass(frozen=True)
class CategoryBucket:
    """Error patterns grouped by category, plus how many variants each matched.

    Every category is present, possibly with no patterns. Category and
    pattern order are preserved.
    """

    patterns: Mapping[str, tuple[ErrorPattern, ...]]
    matched: Mapping[str, int] = field(default_factory=dict)
    pool_size: int = 0

    def __getitem__(self, category: str) -> tuple[ErrorPattern, ...]:
        return self.patterns[category]

    @property
    def categories(self) -> list[str]:
        return list(self.patterns)

    @property
    def matched_total(self) -> int:
        return sum(self.matched.values())

    @property
    def coverage(self) -> float:
        """Share of the variant pool assigned to any category."""
        if not self.pool_size:
            return 0.0
        return self.matched_total / self.pool_size

    def confidence(self, category: str) -> float:
        if not self.pool_size:
            return 0.0
        return self.matched.get(category, 0) / self.pool_size

    def per_category(self) -> dict[str, float]:
        return {category: self.confidence(category) for category in self.patterns}

    def is_empty(self) -> bool:
        return not any(self.patterns.values())

    def to_dict(self) -> dict[str, list[str]]:
        """Non-empty categories only, patterns rendered."""
        return {
            category: [p.render() for p in patterns]
            for category, patterns in self.patterns.items()
            if patterns
        }
