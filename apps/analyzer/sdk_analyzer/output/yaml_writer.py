"""Annotated YAML output.

The document is assembled line by line so that header comments and
inline review markers survive; PyYAML only validates the rendered text.
Scalars are emitted as double-quoted strings, which keeps `{service}`
placeholders and `*` wildcards verbatim.
"""

import json
import logging
import os
import tempfile
from datetime import timezone
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import yaml

from sdk_analyzer import __version__
from sdk_analyzer.errors import OutputWriteError

if TYPE_CHECKING:
    from sdk_analyzer.analyzer import AnalysisResult

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1
DEFAULT_THRESHOLD = 0.6
INDENT = "  "


def render_yaml(result: "AnalysisResult", threshold: float = DEFAULT_THRESHOLD) -> str:
    """Render the metadata document for an analysis result.

    Fields whose confidence is below `threshold` carry an inline
    "# REVIEW: low confidence (x.xx)" marker.
    """
    lines: list[str] = []
    lines += _header(result, threshold)
    lines += [f"version: {SCHEMA_VERSION}", ""]
    lines += _provider_section(result)
    lines += _sdk_section(result, threshold)
    lines += _config_section(result, threshold)
    lines += _errors_section(result, threshold)
    return "\n".join(lines) + "\n"


def write_yaml(
    result: "AnalysisResult",
    path: Path | str,
    threshold: float = DEFAULT_THRESHOLD,
) -> Path:
    """Render, validate and atomically write the document to `path`.

    The text goes to a temporary file in the destination directory and is
    renamed over `path`, so a failure leaves no partial file behind.
    Raises OutputWriteError on any failure.
    """
    path = Path(path)
    text = render_yaml(result, threshold)

    try:
        yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise OutputWriteError(path, "rendered document is not valid YAML", e) from e

    tmp_path: Optional[str] = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=path.parent, prefix=f".{path.name}.", suffix=".tmp", text=True
        )
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.replace(tmp_path, path)
    except OSError as e:
        if tmp_path is not None:
            Path(tmp_path).unlink(missing_ok=True)
        raise OutputWriteError(path, str(e), e) from e

    logger.info("Wrote metadata to %s (%d bytes)", path, len(text.encode("utf-8")))
    return path


def review_marker(confidence: float, threshold: float) -> str:
    """Inline comment for a field, or "" when it needs no review."""
    if confidence < threshold:
        return f"  # REVIEW: low confidence ({confidence:.2f})"
    return ""


def quote(value: str) -> str:
    """Double-quoted YAML scalar (JSON string syntax is valid YAML)."""
    return json.dumps(value)


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------

def _header(result: "AnalysisResult", threshold: float) -> list[str]:
    timestamp = result.generated_at.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
    score = result.score
    return [
        "# SDK Analysis Result",
        f"# Generated: {timestamp}",
        f"# Overall Confidence: {score.overall:.2f} ({score.level})",
        f"# Automation: {result.automation_percentage}%",
        f"# Review threshold: {threshold:.2f}",
        f"# Analyzer Version: {__version__}",
        "",
    ]


def _provider_section(result: "AnalysisResult") -> list[str]:
    return [
        "provider:",
        f"{INDENT}name: {quote(result.provider)}",
        f"{INDENT}display_name: {quote(result.display_name)}",
        "",
    ]


def _sdk_section(result: "AnalysisResult", threshold: float) -> list[str]:
    crate = result.crate_pattern
    client = result.client_type
    config_package = result.config_package

    lines = [
        "sdk:",
        f"{INDENT}crate_pattern: {quote(crate.value.pattern)}"
        + review_marker(crate.confidence, threshold),
        f"{INDENT}client_type_pattern: {quote(client.value.pattern)}"
        + review_marker(client.confidence, threshold),
    ]
    if config_package.value is not None:
        lines.append(
            f"{INDENT}config_crate: {quote(config_package.value)}"
            + review_marker(config_package.confidence, threshold)
        )
    else:
        lines.append(f"{INDENT}# REVIEW: no configuration package detected")

    lines.append(f"{INDENT}async_client: {_bool(result.client.async_client)}")
    if result.monolithic:
        lines.append(f"{INDENT}uses_shared_client: true")
    if result.config.region_attr:
        lines.append(f"{INDENT}region_attr: {quote(result.config.region_attr)}")

    dependencies = result.config.dependencies
    if dependencies:
        lines.append(f"{INDENT}dependencies:")
        lines += [f"{INDENT * 2}- {quote(dep)}" for dep in dependencies]
    else:
        lines.append(f"{INDENT}dependencies: []")
    lines.append("")
    return lines


def _config_section(result: "AnalysisResult", threshold: float) -> list[str]:
    config = result.config
    lines = ["config:"]
    for key, snippet in (
        ("initialization", config.initialization),
        ("load", config.load),
        ("client_from_config", config.client_from_config),
    ):
        lines += [
            f"{INDENT}{key}:",
            f"{INDENT * 2}snippet: {quote(snippet.snippet)}",
            f"{INDENT * 2}var_name: {quote(snippet.var_name)}",
        ]

    if not config.attributes:
        lines.append(
            f"{INDENT}attributes: []" + review_marker(config.attributes_confidence, threshold)
        )
        lines.append("")
        return lines

    lines.append(
        f"{INDENT}attributes:" + review_marker(config.attributes_confidence, threshold)
    )
    item = INDENT * 2
    for detected in config.attributes:
        attribute = detected.value
        lines.append(
            f"{item}- name: {quote(attribute.name)}"
            + review_marker(detected.confidence, threshold)
        )
        lines.append(f"{item}  description: {quote(attribute.description)}")
        lines.append(f"{item}  required: {_bool(attribute.required)}")
        if attribute.setter:
            lines.append(f"{item}  setter: {quote(attribute.setter)}")
        if attribute.extractor:
            lines.append(f"{item}  extractor: {quote(attribute.extractor)}")
    lines.append("")
    return lines


def _errors_section(result: "AnalysisResult", threshold: float) -> list[str]:
    errors = result.errors
    lines = ["errors:"]
    if errors.metadata_import:
        lines.append(f"{INDENT}metadata_import: {quote(errors.metadata_import)}")

    categorization = errors.bucket.to_dict()
    marker = review_marker(errors.confidence, threshold)
    if not categorization:
        lines.append(f"{INDENT}categorization: {{}}" + marker)
        return lines

    lines.append(f"{INDENT}categorization:" + marker)
    for category, patterns in categorization.items():
        lines.append(f"{INDENT * 2}{category}:")
        lines += [f"{INDENT * 3}- {quote(pattern)}" for pattern in patterns]
    return lines


def _bool(value: bool) -> str:
    return "true" if value else "false"
