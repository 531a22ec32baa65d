"""Scoring module for combining detector confidences.

Public API:
    score_confidence(components) -> ConfidenceScore
"""

from sdk_analyzer.scoring.confidence import (
    WEIGHTS,
    ConfidenceLevel,
    ConfidenceScore,
    score_confidence,
)

__all__ = ["score_confidence", "ConfidenceLevel", "ConfidenceScore", "WEIGHTS"]
