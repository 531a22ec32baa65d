"""Error code categorization.

Collects the variants of every enum whose name contains "Error" across
sampled service packages and all infrastructure packages, then sorts
them into the fixed error categories using the ordered rule table in
`defaults.ERROR_RULES`. The result is always flagged for review: the
rules are vocabulary heuristics, not semantics.
"""

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Optional

from sdk_analyzer.core.config import AnalyzerSettings, get_settings
from sdk_analyzer.detector.crates import is_infrastructure, service_packages
from sdk_analyzer.detector.defaults import ERROR_CATEGORIES, ERROR_RULES
from sdk_analyzer.detector.types import (
    CategoryBucket,
    DetectionResult,
    ErrorPattern,
    PatternKind,
)
from sdk_analyzer.scanner import PackageParseWarning, parse_package
from sdk_analyzer.scanner.rust_ast import enum_variants, public_traits
from sdk_analyzer.workspace.types import PackageInfo, WorkspaceModel

logger = logging.getLogger(__name__)

# Minimum number of patterns sharing a leading word before they are
# merged into one wildcard.
COLLAPSE_THRESHOLD = 2

ERROR_METADATA_SUFFIX = "ErrorMetadata"

# Coverage floor -> categorization confidence. Capped at 0.7: even full
# coverage is a vocabulary guess.
CONFIDENCE_BANDS: tuple[tuple[float, float], ...] = (
    (0.8, 0.7),
    (0.6, 0.6),
    (0.4, 0.5),
    (0.2, 0.4),
)
MIN_BAND_CONFIDENCE = 0.3

_CAMEL_WORD = re.compile(r"[A-Z]+(?![a-z])|[A-Z]?[a-z0-9]+")


@dataclass
class ErrorDetection:
    bucket: CategoryBucket
    confidence: float = 0.0
    evidence: str = ""
    metadata_import: Optional[str] = None
    pool: list[str] = field(default_factory=list)
    packages_scanned: list[str] = field(default_factory=list)
    warnings: list[PackageParseWarning] = field(default_factory=list)

    @property
    def result(self) -> DetectionResult[CategoryBucket]:
        return DetectionResult(self.bucket, self.confidence, self.evidence)

    @property
    def per_category(self) -> dict[str, float]:
        return self.bucket.per_category()


@dataclass(frozen=True)
class PackageErrors:
    """Error enum variants and metadata traits found in one package."""

    package: str
    variants: tuple[str, ...] = ()
    metadata_imports: tuple[str, ...] = ()
    warnings: tuple[PackageParseWarning, ...] = ()


def detect_errors(
    workspace: WorkspaceModel,
    settings: Optional[AnalyzerSettings] = None,
) -> ErrorDetection:
    """Categorize the error variants declared across the workspace."""
    settings = settings or get_settings()

    sampled = {p.name for p in service_packages(workspace)[: settings.error_sample_limit]}
    targets = [
        p for p in workspace.packages
        if p.name in sampled or is_infrastructure(p.name)
    ]

    if not targets:
        return ErrorDetection(
            bucket=classify_variants([]),
            evidence="no packages to scan for error types",
        )

    workers = min(settings.max_workers, len(targets))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="error-scan") as pool:
        scans = list(pool.map(lambda p: scan_package(p, settings), targets))

    variant_pool = list(dict.fromkeys(v for scan in scans for v in scan.variants))
    metadata_import = next(
        (path for scan in scans for path in scan.metadata_imports), None
    )

    bucket = classify_variants(variant_pool)
    confidence = categorization_confidence(bucket)
    evidence = (
        f"{bucket.matched_total}/{len(variant_pool)} error variants categorized "
        f"from {len(targets)} packages"
    )

    logger.info(
        "Error detection: %d variants, %d categorized, confidence=%.2f",
        len(variant_pool),
        bucket.matched_total,
        confidence,
    )
    return ErrorDetection(
        bucket=bucket,
        confidence=confidence,
        evidence=evidence,
        metadata_import=metadata_import,
        pool=variant_pool,
        packages_scanned=[p.name for p in targets],
        warnings=[w for scan in scans for w in scan.warnings],
    )


def scan_package(package: PackageInfo, settings: AnalyzerSettings) -> PackageErrors:
    """Collect error enum variants and `*ErrorMetadata` traits in a package."""
    sources = parse_package(package, settings)
    variants: list[str] = []
    imports: list[str] = []

    for tree in sources.trees:
        root = tree.root_node
        for enum_name, names in enum_variants(root):
            if "Error" in enum_name:
                variants.extend(names)
        for module_path, trait_name in public_traits(root):
            if trait_name.endswith(ERROR_METADATA_SUFFIX):
                parts = [package.crate_name, *tree.module_path, *module_path, trait_name]
                imports.append("::".join(parts))

    return PackageErrors(
        package=package.name,
        variants=tuple(dict.fromkeys(variants)),
        metadata_imports=tuple(imports),
        warnings=tuple(sources.warnings),
    )


def classify_variants(
    variants: list[str],
    rules: tuple[tuple[str, ErrorPattern], ...] = ERROR_RULES,
) -> CategoryBucket:
    """Assign each variant to the category of the first rule it matches.

    Unmatched variants are left out. Matching the same input twice gives
    the same bucket.
    """
    pool = list(dict.fromkeys(variants))
    emitted: dict[str, list[ErrorPattern]] = {c: [] for c in ERROR_CATEGORIES}
    matched: dict[str, int] = {c: 0 for c in ERROR_CATEGORIES}
    floors: dict[ErrorPattern, str] = {}
    assigned: dict[str, str] = {}

    for variant in pool:
        for category, rule in rules:
            if not rule.matches(variant):
                continue
            matched[category] += 1
            assigned[variant] = category
            pattern = emit_pattern(rule, variant)
            if rule.kind == PatternKind.CONTAINS_WILDCARD:
                floors[pattern] = max(floors.get(pattern, ""), rule.literal, key=len)
            if pattern not in emitted[category]:
                emitted[category].append(pattern)
            break

    patterns = {
        c: tuple(
            collapse_patterns(
                emitted[c],
                floors=floors,
                foreign=tuple(v for v in pool if assigned.get(v, c) != c),
            )
        )
        for c in ERROR_CATEGORIES
    }
    return CategoryBucket(
        patterns=MappingProxyType(patterns),
        matched=MappingProxyType(matched),
        pool_size=len(pool),
    )


def emit_pattern(rule: ErrorPattern, variant: str) -> ErrorPattern:
    """The pattern recorded for a variant matched by `rule`.

    Exact rules record the variant itself, prefix and suffix rules record
    themselves, and contains rules record a suffix wildcard starting at
    the keyword: "BucketAlreadyOwnedByYou" -> "*AlreadyOwnedByYou".
    """
    if rule.kind == PatternKind.EXACT:
        return ErrorPattern(PatternKind.EXACT, variant)
    if rule.kind == PatternKind.CONTAINS_WILDCARD:
        index = variant.find(rule.literal)
        return ErrorPattern(PatternKind.SUFFIX_WILDCARD, variant[index:])
    return rule


def collapse_patterns(
    patterns: list[ErrorPattern],
    threshold: int = COLLAPSE_THRESHOLD,
    *,
    floors: Optional[dict[ErrorPattern, str]] = None,
    foreign: tuple[str, ...] = (),
) -> list[ErrorPattern]:
    """Merge patterns that share a leading CamelCase word.

    Exact entries collapse into a prefix wildcard ("AccessDenied",
    "AccessDeniedException" -> "AccessDenied*"), suffix wildcards into a
    contains wildcard ("*AlreadyOwnedByYou", "*AlreadyExists" ->
    "*Already*"). The merged entry takes the place of the first member.

    A group is left as is when the shared prefix is shorter than the
    keyword that produced one of its members (`floors`), or when the
    merged wildcard would match one of the `foreign` variants, i.e.
    variants classified into another category.
    """
    floors = floors or {}
    collapsed = _collapse(
        patterns, PatternKind.EXACT, PatternKind.PREFIX_WILDCARD, threshold, floors, foreign
    )
    collapsed = _collapse(
        collapsed,
        PatternKind.SUFFIX_WILDCARD,
        PatternKind.CONTAINS_WILDCARD,
        threshold,
        floors,
        foreign,
    )
    return list(dict.fromkeys(collapsed))


def categorization_confidence(bucket: CategoryBucket) -> float:
    """Map pool coverage onto the capped confidence bands."""
    if not bucket.pool_size:
        return 0.0
    coverage = bucket.coverage
    for floor, confidence in CONFIDENCE_BANDS:
        if coverage >= floor:
            return confidence
    return MIN_BAND_CONFIDENCE if coverage > 0 else 0.0


def camel_words(name: str) -> list[str]:
    """Split a CamelCase name: "KMSDisabled" -> ["KMS", "Disabled"]."""
    return _CAMEL_WORD.findall(name)


def common_word_prefix(names: list[str]) -> str:
    split = [camel_words(name) for name in names]
    common: list[str] = []
    for words in zip(*split):
        if any(w != words[0] for w in words):
            break
        common.append(words[0])
    return "".join(common)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _collapse(
    patterns: list[ErrorPattern],
    source: PatternKind,
    target: PatternKind,
    threshold: int,
    floors: dict[ErrorPattern, str],
    foreign: tuple[str, ...],
) -> list[ErrorPattern]:
    groups: dict[str, list[ErrorPattern]] = {}
    for pattern in patterns:
        if pattern.kind != source:
            continue
        words = camel_words(pattern.literal)
        if words:
            groups.setdefault(words[0], []).append(pattern)

    replaced: dict[ErrorPattern, Optional[ErrorPattern]] = {}
    for members in groups.values():
        if len(members) < threshold:
            continue
        prefix = common_word_prefix([m.literal for m in members])
        if any(len(floors.get(m, "")) > len(prefix) for m in members):
            continue
        merged = ErrorPattern(target, prefix)
        if any(merged.matches(variant) for variant in foreign):
            logger.debug("Not collapsing into %s: matches another category", merged.render())
            continue
        replaced[members[0]] = merged
        for member in members[1:]:
            replaced[member] = None

    result: list[ErrorPattern] = []
    for pattern in patterns:
        if pattern not in replaced:
            result.append(pattern)
        elif replaced[pattern] is not None:
            result.append(replaced[pattern])
    return result
