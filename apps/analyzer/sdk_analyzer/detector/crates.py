"""Crate naming pattern detection.

Splits workspace members into infrastructure and service packages, then
infers a single naming template such as "aws-sdk-{service}" from the
service package names. A workspace with a single service package is
reported as a monolithic SDK.
"""

import logging
import re

from sdk_analyzer.detector.defaults import INFRASTRUCTURE_FRAGMENTS
from sdk_analyzer.detector.types import SERVICE_PLACEHOLDER, DetectionResult, NamingTemplate
from sdk_analyzer.workspace.types import PackageInfo, WorkspaceModel

logger = logging.getLogger(__name__)

# Fixed confidence for a single-package SDK: the layout is clear, but
# there is nothing to generalize from.
MONOLITHIC_CONFIDENCE = 0.5

_SEPARATORS = "-_"
_TOKEN_SPLIT = re.compile(r"[-_]")
# A service token is a single identifier: "s3", "dynamodb", "bigquery_v2"
_SERVICE_TOKEN = re.compile(r"^[a-z0-9_]+$", re.IGNORECASE)


def is_infrastructure(name: str) -> bool:
    """True when any name token is a known infrastructure fragment."""
    return any(token in INFRASTRUCTURE_FRAGMENTS for token in _TOKEN_SPLIT.split(name.lower()))


def service_packages(workspace: WorkspaceModel) -> list[PackageInfo]:
    """Workspace members that represent a cloud service, in workspace order."""
    return [p for p in workspace.packages if not is_infrastructure(p.name)]


def detect_crate_pattern(
    workspace: WorkspaceModel,
    provider: str = "",
) -> DetectionResult[NamingTemplate]:
    """Infer the service crate naming template for a workspace.

    Never raises: an empty candidate set yields a zero-confidence result.
    """
    candidates = service_packages(workspace)
    logger.info(
        "Crate pattern: %d service packages of %d members",
        len(candidates),
        len(workspace.packages),
    )
    return infer_naming_template([p.name for p in candidates], provider)


def infer_naming_template(
    names: list[str],
    provider: str = "",
) -> DetectionResult[NamingTemplate]:
    """Build prefix + "{service}" + suffix from the common literal affixes.

    Confidence is the share of names whose service token is a single
    identifier, scaled by a sample factor that reaches 1.0 at five names.
    """
    if not names:
        return DetectionResult(NamingTemplate(), 0.0, "no service packages found")

    if len(names) == 1:
        return DetectionResult(
            NamingTemplate(),
            MONOLITHIC_CONFIDENCE,
            f"single SDK package: {names[0]}",
        )

    template = _build_template(names)
    consistent = [
        name for name in names
        if _SERVICE_TOKEN.match(template.service_token(name) or "")
    ]

    ratio = len(consistent) / len(names)
    confidence = min(1.0, ratio * sample_factor(len(names)))

    evidence = (
        f"{len(consistent)}/{len(names)} service packages match {template.pattern} "
        f"(e.g. {', '.join(names[:3])})"
    )
    if provider and not template.prefix.lower().startswith(provider.lower()):
        evidence += f"; prefix does not start with provider name '{provider}'"

    logger.debug("Crate pattern %s confidence=%.2f", template.pattern, confidence)
    return DetectionResult(template, confidence, evidence)


def sample_factor(count: int) -> float:
    """0.7 for two samples, 0.8 for three, ..., 1.0 from five onward."""
    return min(1.0, (5 + count) / 10)


def common_prefix(strings: list[str]) -> str:
    if not strings:
        return ""
    shortest = min(strings, key=len)
    for i, ch in enumerate(shortest):
        if any(s[i] != ch for s in strings):
            return shortest[:i]
    return shortest


def common_suffix(strings: list[str]) -> str:
    return common_prefix([s[::-1] for s in strings])[::-1]


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _build_template(names: list[str]) -> NamingTemplate:
    prefix = _snap_prefix(common_prefix(names))
    suffix = _snap_suffix(common_suffix(names))

    # Every name must keep a non-empty service token
    shortest = min(len(name) for name in names)
    if len(prefix) + len(suffix) >= shortest:
        suffix = ""
    if len(prefix) >= shortest:
        prefix = ""

    return NamingTemplate(f"{prefix}{SERVICE_PLACEHOLDER}{suffix}")


def _snap_prefix(prefix: str) -> str:
    """Cut a prefix back to its last separator: "aws-sdk-s" -> "aws-sdk-"."""
    cut = max(prefix.rfind(sep) for sep in _SEPARATORS)
    return prefix[:cut + 1] if cut >= 0 else ""


def _snap_suffix(suffix: str) -> str:
    """Cut a suffix forward to its first separator: "s-client" -> "-client"."""
    positions = [suffix.find(sep) for sep in _SEPARATORS if sep in suffix]
    return suffix[min(positions):] if positions else ""
