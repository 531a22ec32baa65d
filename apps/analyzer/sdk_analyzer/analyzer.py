"""Analysis orchestrator.

Loads the workspace once, runs the four detectors concurrently over it,
scores the results and collects every warning into one AnalysisResult.

Public API:
    analyze(path, provider, settings=None) -> AnalysisResult
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum
from pathlib import Path
from typing import Optional

from sdk_analyzer.core.config import AnalyzerSettings, get_settings
from sdk_analyzer.core.logging import bind_analysis_context
from sdk_analyzer.detector import (
    ClientDetection,
    ConfigAttribute,
    ConfigDetection,
    DetectionResult,
    ErrorDetection,
    NamingTemplate,
    detect_client_type,
    detect_config,
    detect_crate_pattern,
    detect_errors,
    service_packages,
)
from sdk_analyzer.detector.defaults import DISPLAY_NAMES
from sdk_analyzer.output import yaml_writer
from sdk_analyzer.scanner import PackageParseWarning
from sdk_analyzer.scoring import ConfidenceScore, score_confidence
from sdk_analyzer.workspace import WorkspaceModel, load_workspace

logger = logging.getLogger(__name__)

# Fields counted by automation_percentage, and the confidence each needs
AUTOMATION_FIELD_COUNT = 9
AUTOMATED_THRESHOLD = 0.7
PARTIAL_ERROR_THRESHOLD = 0.5


class WarningKind(StrEnum):
    LOW_CONFIDENCE = "low_confidence"
    NO_PATTERN = "no_pattern"
    REQUIRES_REVIEW = "requires_review"
    PARSE_FAILURE = "parse_failure"
    SKIPPED_INPUT = "skipped_input"


@dataclass(frozen=True)
class AnalysisWarning:
    """Something a human should look at before using the output."""

    kind: WarningKind
    field: str
    message: str
    score: Optional[float] = None

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"

    def to_dict(self) -> dict:
        data: dict = {"kind": str(self.kind), "field": self.field, "message": self.message}
        if self.score is not None:
            data["score"] = round(self.score, 2)
        return data


@dataclass
class AnalysisResult:
    """Everything one analysis run produced."""

    provider: str
    workspace: WorkspaceModel
    crate_pattern: DetectionResult[NamingTemplate]
    client: ClientDetection
    config: ConfigDetection
    errors: ErrorDetection
    score: ConfidenceScore
    monolithic: bool = False
    warnings: list[AnalysisWarning] = field(default_factory=list)
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def display_name(self) -> str:
        return DISPLAY_NAMES.get(self.provider.lower(), self.provider.capitalize())

    @property
    def client_type(self) -> DetectionResult[NamingTemplate]:
        return self.client.result

    @property
    def config_package(self) -> DetectionResult[Optional[str]]:
        return self.config.package

    @property
    def config_attributes(self) -> list[DetectionResult[ConfigAttribute]]:
        return self.config.attributes

    @property
    def automation_percentage(self) -> int:
        """Share of the generator's fields that need no manual work.

        Crate pattern, client type, config package and attributes count
        one each at 0.7 or above; error categorization counts half at 0.5
        or above.
        """
        per_field = self.score.per_field
        automated = sum(
            1.0
            for name in ("crate_pattern", "client_type", "config_crate", "config_attrs")
            if per_field.get(name, 0.0) >= AUTOMATED_THRESHOLD
        )
        if per_field.get("error_categorization", 0.0) >= PARTIAL_ERROR_THRESHOLD:
            automated += 0.5
        return int(automated / AUTOMATION_FIELD_COUNT * 100)

    def to_dict(self) -> dict:
        return {
            "provider": self.provider,
            "display_name": self.display_name,
            "workspace": self.workspace.to_dict(),
            "monolithic": self.monolithic,
            "crate_pattern": self.crate_pattern.to_dict(),
            "client_type": self.client_type.to_dict(),
            "async_client": self.client.async_client,
            "config_package": self.config.package.to_dict(),
            "config_attributes": [a.to_dict() for a in self.config.attributes],
            "region_attr": self.config.region_attr,
            "error_categorization": self.errors.bucket.to_dict(),
            "error_confidence": {
                name: round(value, 2) for name, value in self.errors.per_category.items()
            },
            "metadata_import": self.errors.metadata_import,
            "confidence": self.score.to_dict(),
            "automation_percentage": self.automation_percentage,
            "warnings": [w.to_dict() for w in self.warnings],
        }

    def to_yaml(self, threshold: Optional[float] = None) -> str:
        return yaml_writer.render_yaml(
            self, threshold if threshold is not None else _default_threshold()
        )

    def write_yaml(self, path: Path | str, threshold: Optional[float] = None) -> Path:
        return yaml_writer.write_yaml(
            self, path, threshold if threshold is not None else _default_threshold()
        )


def analyze(
    path: Path | str,
    provider: str,
    settings: Optional[AnalyzerSettings] = None,
) -> AnalysisResult:
    """Run the full analysis over the workspace containing `path`.

    Raises WorkspaceError when the workspace cannot be loaded. Every
    other anomaly is reported in the result's warnings.
    """
    settings = settings or get_settings()
    bind_analysis_context(provider)

    workspace = load_workspace(Path(path))
    logger.info(
        "Analysis started: %s (%d packages, virtual=%s)",
        workspace.root,
        len(workspace.packages),
        workspace.is_virtual,
    )

    crate_pattern, client, config, errors = run_detectors(workspace, provider, settings)

    monolithic = len(service_packages(workspace)) == 1

    score = score_confidence({
        "crate_pattern": crate_pattern,
        "client_type": client.result,
        "config_crate": config.package,
        "config_attrs": config.attributes_confidence,
        "error_categorization": errors.result,
    })

    warnings = collect_warnings(
        score,
        settings.min_confidence,
        crate_pattern=crate_pattern,
        client=client,
        config=config,
        errors=errors,
        monolithic=monolithic,
        workspace=workspace,
    )
    for warning in warnings:
        logger.warning("%s", warning)

    result = AnalysisResult(
        provider=provider,
        workspace=workspace,
        crate_pattern=crate_pattern,
        client=client,
        config=config,
        errors=errors,
        score=score,
        monolithic=monolithic,
        warnings=warnings,
    )
    logger.info(
        "Analysis complete: overall=%.2f (%s), automation=%d%%, %d warnings",
        score.overall,
        score.level,
        result.automation_percentage,
        len(warnings),
    )
    return result


def run_detectors(
    workspace: WorkspaceModel,
    provider: str,
    settings: AnalyzerSettings,
) -> tuple[
    DetectionResult[NamingTemplate], ClientDetection, ConfigDetection, ErrorDetection
]:
    """Run the four detectors concurrently and join on all of them.

    The client detector needs the crate template, so it is chained after
    the crate pattern detector inside its own task.
    """
    def crate_then_client() -> tuple[DetectionResult[NamingTemplate], ClientDetection]:
        pattern = detect_crate_pattern(workspace, provider)
        return pattern, detect_client_type(workspace, pattern, settings)

    with ThreadPoolExecutor(max_workers=3, thread_name_prefix="detector") as pool:
        crate_client = pool.submit(crate_then_client)
        config = pool.submit(detect_config, workspace, settings)
        errors = pool.submit(detect_errors, workspace, settings)
        crate_pattern, client = crate_client.result()
        return crate_pattern, client, config.result(), errors.result()


def collect_warnings(
    score: ConfidenceScore,
    threshold: float,
    *,
    crate_pattern: DetectionResult[NamingTemplate],
    client: ClientDetection,
    config: ConfigDetection,
    errors: ErrorDetection,
    monolithic: bool = False,
    workspace: Optional[WorkspaceModel] = None,
) -> list[AnalysisWarning]:
    """Build the full warning list in a stable order.

    Low-confidence fields first (scorer order), then fields with nothing
    detected, the standing review notice for error categorization,
    workspace members the loader skipped, and finally per-file parse
    failures and skipped source files.
    """
    warnings: list[AnalysisWarning] = []

    for name, value in score.per_field.items():
        if value < threshold:
            warnings.append(
                AnalysisWarning(
                    WarningKind.LOW_CONFIDENCE,
                    name,
                    f"low confidence ({value:.2f}), needs review",
                    score=value,
                )
            )

    if crate_pattern.value.is_empty and not monolithic:
        warnings.append(
            AnalysisWarning(WarningKind.NO_PATTERN, "crate_pattern", "no pattern detected")
        )
    if client.result.value.is_empty:
        warnings.append(
            AnalysisWarning(WarningKind.NO_PATTERN, "client_type", "no pattern detected")
        )
    if config.package.value is None:
        warnings.append(
            AnalysisWarning(
                WarningKind.NO_PATTERN, "config_crate", "no configuration package detected"
            )
        )
    if errors.bucket.is_empty():
        warnings.append(
            AnalysisWarning(
                WarningKind.NO_PATTERN, "error_categorization", "no error variants categorized"
            )
        )

    warnings.append(
        AnalysisWarning(
            WarningKind.REQUIRES_REVIEW,
            "error_categorization",
            "error categorization always requires manual review and testing",
        )
    )

    if workspace is not None:
        for skipped in workspace.warnings:
            warnings.append(
                AnalysisWarning(
                    WarningKind.SKIPPED_INPUT, "workspace", f"{skipped.path}: {skipped.message}"
                )
            )

    parse_warnings: list[PackageParseWarning] = list(
        dict.fromkeys([*client.warnings, *config.warnings, *errors.warnings])
    )
    for parse_warning in parse_warnings:
        warnings.append(
            AnalysisWarning(
                WarningKind.PARSE_FAILURE,
                parse_warning.package,
                f"{parse_warning.path}: {parse_warning.message}",
            )
        )
    return warnings


def _default_threshold() -> float:
    return get_settings().min_confidence
