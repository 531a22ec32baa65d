"""Command line entry point: `sdk-analyzer`."""

import json
from pathlib import Path

import click
import structlog

from sdk_analyzer import __version__
from sdk_analyzer.analyzer import analyze
from sdk_analyzer.core.config import get_settings
from sdk_analyzer.core.logging import bind_analysis_context, configure_structlog
from sdk_analyzer.errors import AnalyzerError


@click.command("sdk-analyzer")
@click.argument("path", type=click.Path(exists=True, file_okay=False), default=".")
@click.option("-p", "--provider", required=True, help="Provider short name (e.g. aws, gcp)")
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False),
    help="Write the YAML document here instead of stdout",
)
@click.option(
    "-t",
    "--threshold",
    type=click.FloatRange(0.0, 1.0),
    help="Review marker threshold (default: SDK_ANALYZER_MIN_CONFIDENCE or 0.6)",
)
@click.option("--json", "output_json", is_flag=True, help="Print the result as JSON")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging")
@click.version_option(version=__version__, prog_name="sdk-analyzer")
def main(
    path: str,
    provider: str,
    output: str | None,
    threshold: float | None,
    output_json: bool,
    verbose: bool,
) -> None:
    """Analyze the Cargo workspace at PATH and emit generator metadata.

    Examples:

        sdk-analyzer ./aws-sdk-rust -p aws -o aws.sdk.yaml
        sdk-analyzer ./k8s-openapi -p kubernetes --json
    """
    settings = get_settings()
    configure_structlog(debug=verbose or settings.debug)
    threshold = settings.min_confidence if threshold is None else threshold
    log = structlog.get_logger()

    bind_analysis_context(provider)
    log.info("analysis_started", path=path)
    try:
        result = analyze(path, provider, settings)
    except AnalyzerError as e:
        log.error("analysis_failed", error=str(e))
        click.secho(f"Error: {e}", fg="red", err=True)
        raise SystemExit(1) from e
    log.info(
        "analysis_complete",
        root=str(result.workspace.root),
        overall=round(result.score.overall, 2),
        level=str(result.score.level),
        crate_pattern=result.crate_pattern.value.pattern,
        client_type=result.client_type.value.pattern,
        config_package=result.config_package.value,
        automation=result.automation_percentage,
        warnings=len(result.warnings),
    )

    if output_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
    elif output:
        try:
            written = result.write_yaml(Path(output), threshold)
        except AnalyzerError as e:
            click.secho(f"Error: {e}", fg="red", err=True)
            raise SystemExit(1) from e
        click.secho(f"Wrote {written}", fg="green", err=True)
    else:
        click.echo(result.to_yaml(threshold), nl=False)

    _print_summary(result, threshold)


def _print_summary(result, threshold: float) -> None:
    score = result.score
    echo = click.echo
    echo("", err=True)
    echo(f"Overall confidence: {score.overall:.2f} ({score.level})", err=True)
    echo(
        f"  Crate pattern: {result.crate_pattern.value.pattern or '(none)'} "
        f"({result.crate_pattern.confidence:.2f})",
        err=True,
    )
    echo(
        f"  Client type:   {result.client_type.value.pattern or '(none)'} "
        f"({result.client_type.confidence:.2f})",
        err=True,
    )
    if result.config_package.value:
        echo(f"  Config crate:  {result.config_package.value}", err=True)
    echo(f"  Automation:    {result.automation_percentage}%", err=True)

    if result.warnings:
        echo("", err=True)
        click.secho("Warnings:", fg="yellow", err=True)
        for warning in result.warnings:
            echo(f"  - {warning}", err=True)
    if score.fields_below(threshold):
        echo(
            f"\n{len(score.fields_below(threshold))} field(s) below {threshold:.2f} "
            "are marked # REVIEW in the output",
            err=True,
        )


if __name__ == "__main__":
    main()
