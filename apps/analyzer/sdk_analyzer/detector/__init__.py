"""Detector module for inferring SDK conventions from a workspace.

Public API:
    detect_crate_pattern(workspace, provider) -> DetectionResult[NamingTemplate]
    detect_client_type(workspace, crate_pattern, settings) -> ClientDetection
    detect_config(workspace, settings) -> ConfigDetection
    detect_errors(workspace, settings) -> ErrorDetection
"""

from sdk_analyzer.detector.clients import ClientDetection, detect_client_type
from sdk_analyzer.detector.configuration import ConfigDetection, detect_config
from sdk_analyzer.detector.crates import detect_crate_pattern, service_packages
from sdk_analyzer.detector.error_codes import ErrorDetection, detect_errors
from sdk_analyzer.detector.types import (
    CategoryBucket,
    ConfigAttribute,
    DetectionResult,
    ErrorPattern,
    HasConfidence,
    NamingTemplate,
    PatternKind,
    Snippet,
)

__all__ = [
    "detect_crate_pattern",
    "detect_client_type",
    "detect_config",
    "detect_errors",
    "service_packages",
    "CategoryBucket",
    "ClientDetection",
    "ConfigAttribute",
    "ConfigDetection",
    "DetectionResult",
    "ErrorDetection",
    "ErrorPattern",
    "HasConfidence",
    "NamingTemplate",
    "PatternKind",
    "Snippet",
]
