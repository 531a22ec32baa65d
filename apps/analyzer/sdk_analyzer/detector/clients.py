"""Client type detection.

Parses a sample of service packages and looks for the public `Client`
type each one exposes, then generalizes the type paths into a template
such as "aws_sdk_{service}::Client".

Per-package parsing runs on a thread pool. Results come back in sample
order, so the reduction (and therefore the output) does not depend on
scheduling.
"""

import logging
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Optional

from sdk_analyzer.core.config import AnalyzerSettings, get_settings
from sdk_analyzer.detector.crates import service_packages
from sdk_analyzer.detector.types import SERVICE_PLACEHOLDER, DetectionResult, NamingTemplate
from sdk_analyzer.scanner import PackageParseWarning, PackageSources, parse_package
from sdk_analyzer.scanner.rust_ast import (
    exported_names,
    find_public_type,
    function_signatures,
    is_public,
    node_text,
)
from sdk_analyzer.workspace.types import PackageInfo, WorkspaceModel

logger = logging.getLogger(__name__)

CLIENT_TYPE_NAME = "Client"


@dataclass
class ClientDetection:
    """Client type template plus what the sampled sources revealed.

    async_client defaults to True when no source could be scanned, since
    current cloud SDKs are overwhelmingly async.
    """

    result: DetectionResult[NamingTemplate]
    async_client: bool = True
    samples: list[str] = field(default_factory=list)
    warnings: list[PackageParseWarning] = field(default_factory=list)

    @property
    def confidence(self) -> float:
        return self.result.confidence


@dataclass(frozen=True)
class PackageClient:
    """Outcome of inspecting one package."""

    package: str
    parsed: bool
    client_path: Optional[str] = None
    template: Optional[str] = None
    has_async: bool = False
    warnings: tuple[PackageParseWarning, ...] = ()


def detect_client_type(
    workspace: WorkspaceModel,
    crate_pattern: DetectionResult[NamingTemplate],
    settings: Optional[AnalyzerSettings] = None,
) -> ClientDetection:
    """Locate the client type across sampled service packages."""
    settings = settings or get_settings()
    sample = service_packages(workspace)[: settings.client_sample_limit]

    if not sample:
        return ClientDetection(
            result=DetectionResult(NamingTemplate(), 0.0, "no service packages to sample"),
        )

    template = crate_pattern.value
    workers = min(settings.max_workers, len(sample))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="client-scan") as pool:
        outcomes = list(pool.map(lambda p: inspect_package(p, template, settings), sample))

    return reduce_outcomes(outcomes)


def inspect_package(
    package: PackageInfo,
    crate_template: NamingTemplate,
    settings: AnalyzerSettings,
) -> PackageClient:
    """Find the package's public Client type and its type-path template."""
    sources = parse_package(package, settings)
    warnings = tuple(sources.warnings)
    if not sources.root_ok:
        return PackageClient(package=package.name, parsed=False, warnings=warnings)

    has_async = any(
        signature.is_async
        for tree in sources.trees
        for signature in function_signatures(tree.root_node)
    )

    client_path = find_client_path(sources)
    if client_path is None:
        return PackageClient(
            package=package.name, parsed=True, has_async=has_async, warnings=warnings
        )

    token = crate_template.service_token(package.name)
    return PackageClient(
        package=package.name,
        parsed=True,
        client_path=client_path,
        template=client_template(client_path, token),
        has_async=has_async,
        warnings=warnings,
    )


def find_client_path(sources: PackageSources) -> Optional[str]:
    """Type path of the package's public Client, e.g. "aws_sdk_s3::Client".

    The root module is checked first (definition or `pub use` re-export).
    Otherwise the first definition found in a module the root declares
    `pub mod` wins.
    """
    crate = sources.package.crate_name
    root = sources.root
    if root is None:
        return None

    root_node = root.root_node
    module_path = find_public_type(root_node, CLIENT_TYPE_NAME)
    if module_path is not None:
        return "::".join([crate, *module_path, CLIENT_TYPE_NAME])
    if CLIENT_TYPE_NAME in exported_names(root_node):
        return f"{crate}::{CLIENT_TYPE_NAME}"

    public_modules = {
        node_text(child.child_by_field_name("name"))
        for child in root_node.children
        if child.type == "mod_item" and is_public(child)
    }
    for tree in sources.trees:
        if not tree.module_path or tree.module_path[0] not in public_modules:
            continue
        inner = find_public_type(tree.root_node, CLIENT_TYPE_NAME)
        if inner is not None:
            return "::".join([crate, *tree.module_path, *inner, CLIENT_TYPE_NAME])
    return None


def client_template(client_path: str, service_token: Optional[str]) -> str:
    """Replace the service token in the crate segment with "{service}".

    ("aws_sdk_s3::Client", "s3") -> "aws_sdk_{service}::Client". Without a
    token (monolithic SDK) the path is returned as a literal.
    """
    if not service_token:
        return client_path

    crate, sep, rest = client_path.partition("::")
    module_token = service_token.replace("-", "_")
    index = crate.rfind(module_token)
    if index < 0:
        return client_path
    return f"{crate[:index]}{SERVICE_PLACEHOLDER}{crate[index + len(module_token):]}{sep}{rest}"


def reduce_outcomes(outcomes: list[PackageClient]) -> ClientDetection:
    """Merge per-package outcomes into a single detection.

    Confidence is the share of parsed packages agreeing on the most
    common template; packages that failed to parse are not counted.
    Ties go to the template seen first in sample order.
    """
    warnings = [w for outcome in outcomes for w in outcome.warnings]
    parsed = [o for o in outcomes if o.parsed]
    skipped = len(outcomes) - len(parsed)
    found = [o for o in parsed if o.template]
    async_client = any(o.has_async for o in parsed) if parsed else True

    if not found:
        evidence = f"no public {CLIENT_TYPE_NAME} type in {len(parsed)} parsed packages"
        if skipped:
            evidence += f" ({skipped} skipped after parse failures)"
        return ClientDetection(
            result=DetectionResult(NamingTemplate(), 0.0, evidence),
            async_client=async_client,
            warnings=warnings,
        )

    counts = Counter(o.template for o in found)
    best, hits = max(counts.items(), key=lambda item: item[1])
    confidence = hits / len(parsed)

    evidence = f"{hits}/{len(parsed)} parsed packages expose {best}"
    if skipped:
        evidence += f" ({skipped} skipped after parse failures)"

    logger.info("Client pattern %s confidence=%.2f", best, confidence)
    return ClientDetection(
        result=DetectionResult(NamingTemplate(best), confidence, evidence),
        async_client=async_client,
        samples=[o.client_path for o in found if o.client_path][:5],
        warnings=warnings,
    )
