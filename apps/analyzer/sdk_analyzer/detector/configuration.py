"""Configuration package and attribute detection.

Finds the package that carries provider configuration (e.g. "aws-config")
and reads its public builder surface for recognized attributes such as
region or profile. Without a configuration package, the primary service
package is scanned instead.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Optional

from sdk_analyzer.core.config import AnalyzerSettings, get_settings
from sdk_analyzer.detector.crates import is_infrastructure, service_packages
from sdk_analyzer.detector.defaults import (
    CONFIG_BUILDER_SUFFIXES,
    CONFIG_ENTRY_FUNCTIONS,
    CONFIG_PACKAGE_KEYWORDS,
    CONFIG_VOCABULARY,
    FLOAT_TYPES,
    REGION_ATTRIBUTES,
    SIGNED_INT_TYPES,
    STRING_TYPES,
    UNSIGNED_INT_TYPES,
)
from sdk_analyzer.detector.types import ConfigAttribute, DetectionResult, Snippet
from sdk_analyzer.scanner import PackageParseWarning, parse_package
from sdk_analyzer.scanner.rust_ast import function_signatures
from sdk_analyzer.scanner.types import FunctionSignature
from sdk_analyzer.workspace.types import PackageInfo, WorkspaceModel

logger = logging.getLogger(__name__)

EXACT_MATCH_CONFIDENCE = 0.9
SUBSTRING_MATCH_CONFIDENCE = 0.6

CONFIG_VAR = "config_loader"
LOADED_CONFIG_VAR = "sdk_config"
CLIENT_VAR = "client"

# impl Into<T>, Option<T>, Box<T>, ... -> T
_WRAPPER = re.compile(r"^(?:[\w:]+::)?(?:Into|AsRef|Option|Box|Arc|Rc|Cow)<(?P<inner>.*)>$")
_LIFETIME = re.compile(r"^'\w+\s*")


@dataclass
class ConfigDetection:
    """Everything the config detector found.

    package: Name of the configuration package, None when there is none.
    attributes: One result per recognized attribute, in detection order.
    """

    package: DetectionResult[Optional[str]]
    attributes: list[DetectionResult[ConfigAttribute]] = field(default_factory=list)
    initialization: Snippet = Snippet("Config::from_env()", CONFIG_VAR)
    load: Snippet = Snippet(f"{CONFIG_VAR}.load().await", LOADED_CONFIG_VAR)
    client_from_config: Snippet = Snippet(
        "{client_type}::new(&" + LOADED_CONFIG_VAR + ")", CLIENT_VAR
    )
    region_attr: Optional[str] = None
    dependencies: list[str] = field(default_factory=list)
    scanned_package: Optional[str] = None
    warnings: list[PackageParseWarning] = field(default_factory=list)

    @property
    def confidence(self) -> float:
        return self.package.confidence

    @property
    def attributes_confidence(self) -> float:
        if not self.attributes:
            return 0.0
        return sum(a.confidence for a in self.attributes) / len(self.attributes)

    @property
    def attributes_result(self) -> DetectionResult[list[ConfigAttribute]]:
        names = ", ".join(a.value.name for a in self.attributes) or "none"
        return DetectionResult(
            [a.value for a in self.attributes],
            self.attributes_confidence,
            f"attributes detected in {self.scanned_package or 'no package'}: {names}",
        )


def detect_config(
    workspace: WorkspaceModel,
    settings: Optional[AnalyzerSettings] = None,
) -> ConfigDetection:
    """Detect the configuration package, its attributes and setup snippets."""
    settings = settings or get_settings()

    found = find_config_package(workspace)
    if found is not None:
        config_package, keyword, confidence = found
        package_result = DetectionResult(
            config_package.name,
            confidence,
            f"package name '{config_package.name}' contains '{keyword}'",
        )
        scanned = config_package
    else:
        config_package = None
        package_result = DetectionResult(None, 0.0, "no configuration package found")
        services = service_packages(workspace)
        scanned = services[0] if services else None

    if scanned is None:
        logger.info("Config detection: nothing to scan")
        return ConfigDetection(package=package_result)

    sources = parse_package(scanned, settings)
    signatures = [
        (tree.module_path, signature)
        for tree in sources.trees
        for signature in function_signatures(tree.root_node)
    ]
    surface = [s for path, s in signatures if _is_config_surface(path, s)]

    attributes = extract_attributes(surface)
    load_is_async = _load_is_async([s for _, s in signatures])

    detection = ConfigDetection(
        package=package_result,
        attributes=attributes,
        initialization=_initialization_snippet(config_package, signatures),
        load=Snippet(
            f"{CONFIG_VAR}.load().await" if load_is_async else f"{CONFIG_VAR}.load()",
            LOADED_CONFIG_VAR,
        ),
        region_attr=_region_attr(attributes),
        dependencies=[dependency_spec(config_package)] if config_package else [],
        scanned_package=scanned.name,
        warnings=list(sources.warnings),
    )
    logger.info(
        "Config detection: package=%s attributes=%d (scanned %s)",
        package_result.value,
        len(attributes),
        scanned.name,
    )
    return detection


def find_config_package(
    workspace: WorkspaceModel,
) -> Optional[tuple[PackageInfo, str, float]]:
    """First package whose name contains a config keyword, by keyword priority.

    Infrastructure packages are searched before service packages, so a
    service named after a keyword ("aws-sdk-appconfig") never shadows the
    real configuration crate ("aws-config").
    """
    infrastructure = [p for p in workspace.packages if is_infrastructure(p.name)]
    for candidates in (infrastructure, service_packages(workspace)):
        for keyword, confidence in CONFIG_PACKAGE_KEYWORDS:
            for package in candidates:
                if keyword in package.name.lower():
                    return package, keyword, confidence
    return None


def extract_attributes(
    signatures: list[FunctionSignature],
) -> list[DetectionResult[ConfigAttribute]]:
    """Match builder methods against the attribute vocabulary.

    Each attribute keeps its most specific match; `required` is False as
    soon as any matching signature takes an Option.
    """
    best: dict[str, tuple[float, FunctionSignature, str]] = {}
    optional: dict[str, bool] = {}
    order: list[str] = []

    for signature in signatures:
        if not signature.parameters or signature.name.startswith("get_"):
            continue
        match = match_vocabulary(signature.name)
        if match is None:
            continue
        name, description, confidence = match
        param_type = signature.parameters[0].type

        if name not in best:
            order.append(name)
            optional[name] = False
        optional[name] = optional[name] or "Option<" in param_type.replace(" ", "")

        current = best.get(name)
        rank = (confidence, not signature.name.startswith("set_"))
        if current is None or rank > (current[0], not current[1].name.startswith("set_")):
            best[name] = (confidence, signature, description)

    results: list[DetectionResult[ConfigAttribute]] = []
    for name in order:
        confidence, signature, description = best[name]
        param_type = signature.parameters[0].type
        extractor = guess_extractor(param_type)
        setter = (
            f"{CONFIG_VAR} = {CONFIG_VAR}.{signature.name}({{value}})" if extractor else None
        )
        kind = "exact" if confidence == EXACT_MATCH_CONFIDENCE else "substring"
        results.append(
            DetectionResult(
                ConfigAttribute(
                    name=name,
                    description=description,
                    required=not optional[name],
                    setter=setter,
                    extractor=extractor,
                    method=signature.name,
                ),
                confidence,
                f"{signature.owner or 'fn'}::{signature.name}({param_type}) {kind} match",
            )
        )
    return results


def match_vocabulary(method_name: str) -> Optional[tuple[str, str, float]]:
    """Map a method name to (attribute, description, confidence).

    "region" and "set_region" are exact matches; "endpoint_url" and
    "profile_name" are substring matches on whole underscore tokens.
    """
    base = method_name[4:] if method_name.startswith("set_") else method_name

    for name, description in CONFIG_VOCABULARY:
        if base == name:
            return name, description, EXACT_MATCH_CONFIDENCE

    padded = f"_{base}_"
    for name, description in CONFIG_VOCABULARY:
        if f"_{name}_" in padded:
            return name, description, SUBSTRING_MATCH_CONFIDENCE
    return None


def guess_extractor(type_text: str) -> Optional[str]:
    """Guess a JSON value extractor from a parameter's primitive type."""
    primitive = unwrap_type(type_text)
    if primitive in STRING_TYPES:
        return "as_str()"
    if primitive in SIGNED_INT_TYPES:
        return "as_i64()"
    if primitive in UNSIGNED_INT_TYPES:
        return "as_u64()"
    if primitive in FLOAT_TYPES:
        return "as_f64()"
    if primitive == "bool":
        return "as_bool()"
    return None


def unwrap_type(type_text: str) -> str:
    """Strip references and wrapper generics down to the inner type name.

    "impl Into<Option<String>>" -> "String", "&'a str" -> "str",
    "Cow<'static, str>" -> "str".
    """
    text = type_text.strip()
    while True:
        text = text.lstrip("&").strip()
        text = _LIFETIME.sub("", text)
        if text.startswith("mut "):
            text = text[4:].strip()
        if text.startswith("impl "):
            text = text[5:].strip()
        match = _WRAPPER.match(text)
        if match is None:
            break
        text = match.group("inner").split(",")[-1].strip()
    return text.split("<", 1)[0].split("::")[-1].strip()


def dependency_spec(package: PackageInfo) -> str:
    """Cargo dependency line pinned to the package's compatible version."""
    parts = package.version.split(".")
    major = parts[0]
    if major == "0" and len(parts) > 1:
        major = f"0.{parts[1]}"
    return f'{package.name} = "{major}"'


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _is_config_surface(file_module: tuple[str, ...], signature: FunctionSignature) -> bool:
    if not signature.is_public:
        return False
    if signature.owner is None:
        return not file_module and not signature.module_path
    return signature.owner.endswith(CONFIG_BUILDER_SUFFIXES)


def _load_is_async(signatures: list[FunctionSignature]) -> bool:
    public = [s for s in signatures if s.is_public]
    loads = [s for s in public if s.name == "load"]
    if loads:
        return any(s.is_async for s in loads)
    if public:
        return any(s.is_async for s in public)
    return True


def _initialization_snippet(
    config_package: Optional[PackageInfo],
    signatures: list[tuple[tuple[str, ...], FunctionSignature]],
) -> Snippet:
    if config_package is None:
        return Snippet("Config::from_env()", CONFIG_VAR)

    root_functions = {
        s.name
        for path, s in signatures
        if not path and not s.module_path and s.owner is None and s.is_public
    }
    entry = next((f for f in CONFIG_ENTRY_FUNCTIONS if f in root_functions), "from_env")
    return Snippet(f"{config_package.crate_name}::{entry}()", CONFIG_VAR)


def _region_attr(attributes: list[DetectionResult[ConfigAttribute]]) -> Optional[str]:
    names = {a.value.name for a in attributes}
    return next((name for name in REGION_ATTRIBUTES if name in names), None)
