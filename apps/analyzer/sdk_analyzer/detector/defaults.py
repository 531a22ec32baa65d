"""Static tables shared by the detectors.

All tables are immutable (frozensets, tuples and mapping proxies) and
loaded once at import time.
"""

from types import MappingProxyType

from sdk_analyzer.detector.types import ErrorPattern, PatternKind

# Package name tokens that mark shared runtime/support crates.
# Matched against the "-"/"_" separated tokens of a package name.
INFRASTRUCTURE_FRAGMENTS: frozenset[str] = frozenset({
    "async",
    "auth",
    "bench",
    "benches",
    "build",
    "checksums",
    "codegen",
    "common",
    "compression",
    "config",
    "credential",
    "credentials",
    "derive",
    "endpoint",
    "eventstream",
    "example",
    "examples",
    "fuzz",
    "http",
    "inlineable",
    "internal",
    "json",
    "macro",
    "macros",
    "mocks",
    "protocol",
    "runtime",
    "sigv4",
    "smithy",
    "test",
    "testing",
    "tests",
    "tls",
    "tool",
    "tools",
    "types",
    "util",
    "utils",
    "xml",
    "xtask",
})

# Keywords identifying a configuration package, in priority order, with
# the confidence assigned when a package name contains them.
CONFIG_PACKAGE_KEYWORDS: tuple[tuple[str, float], ...] = (
    ("config", 0.95),
    ("credentials", 0.85),
    ("identity", 0.85),
    ("auth", 0.85),
)

# Recognized configuration attributes and their descriptions.
CONFIG_VOCABULARY: tuple[tuple[str, str], ...] = (
    ("region", "Region to use for requests"),
    ("zone", "Availability zone to use for requests"),
    ("project", "Project identifier"),
    ("profile", "Named profile to use"),
    ("endpoint", "Custom endpoint URL"),
    ("location", "Location to use for requests"),
    ("namespace", "Namespace for scoped resources"),
    ("credentials", "Authentication credentials"),
    ("timeout", "Request timeout"),
    ("retry", "Retry behavior"),
    ("account", "Account identifier"),
    ("tenant", "Tenant identifier"),
    ("subscription", "Subscription identifier"),
    ("universe_domain", "Universe domain for API endpoints"),
    ("api_key", "API key used for authentication"),
    ("token", "Access token used for authentication"),
)

# Builder-like impl owners whose public methods form the config surface
CONFIG_BUILDER_SUFFIXES: tuple[str, ...] = ("Builder", "Loader", "Config", "Settings", "Options")

# Root functions that start a config chain, in preference order
CONFIG_ENTRY_FUNCTIONS: tuple[str, ...] = ("from_env", "load_from_env", "defaults", "new")

# Value extractors keyed by primitive parameter type
STRING_TYPES: frozenset[str] = frozenset({"str", "String", "Cow"})
SIGNED_INT_TYPES: frozenset[str] = frozenset({"i8", "i16", "i32", "i64", "i128", "isize"})
UNSIGNED_INT_TYPES: frozenset[str] = frozenset({"u8", "u16", "u32", "u64", "u128", "usize"})
FLOAT_TYPES: frozenset[str] = frozenset({"f32", "f64"})

REGION_ATTRIBUTES: tuple[str, ...] = ("region", "location", "zone")

DISPLAY_NAMES = MappingProxyType({
    "aws": "Amazon Web Services",
    "gcp": "Google Cloud Platform",
    "google": "Google Cloud Platform",
    "azure": "Microsoft Azure",
    "kubernetes": "Kubernetes",
    "k8s": "Kubernetes",
    "oci": "Oracle Cloud Infrastructure",
    "digitalocean": "DigitalOcean",
    "cloudflare": "Cloudflare",
})

# Error categories, in output order
ERROR_CATEGORIES: tuple[str, ...] = (
    "not_found",
    "already_exists",
    "permission_denied",
    "validation",
    "failed_precondition",
    "resource_exhausted",
    "unavailable",
    "deadline_exceeded",
    "unimplemented",
)

_E = PatternKind.EXACT
_P = PatternKind.PREFIX_WILDCARD
_S = PatternKind.SUFFIX_WILDCARD
_C = PatternKind.CONTAINS_WILDCARD

# Ordered classification rules. The first rule matching a variant decides
# its category, so specific rules come before broad ones.
ERROR_RULES: tuple[tuple[str, ErrorPattern], ...] = tuple(
    (category, ErrorPattern(kind, literal))
    for category, kind, literal in (
        ("not_found", _E, "NotFound"),
        ("not_found", _P, "NoSuch"),
        ("not_found", _C, "NotFound"),
        ("not_found", _C, "NotExist"),
        ("already_exists", _E, "AlreadyExists"),
        ("already_exists", _E, "Conflict"),
        ("already_exists", _C, "AlreadyExists"),
        ("already_exists", _C, "Already"),
        ("already_exists", _S, "InUse"),
        ("permission_denied", _E, "AccessDenied"),
        ("permission_denied", _E, "AccessDeniedException"),
        ("permission_denied", _E, "Forbidden"),
        ("permission_denied", _E, "PermissionDenied"),
        ("permission_denied", _S, "Unauthorized"),
        ("permission_denied", _C, "AccessDenied"),
        ("permission_denied", _C, "Forbidden"),
        ("permission_denied", _C, "NotAuthorized"),
        ("permission_denied", _P, "Unauthorized"),
        ("validation", _P, "Invalid"),
        ("validation", _P, "Malformed"),
        ("validation", _E, "ValidationException"),
        ("validation", _C, "Validation"),
        ("validation", _P, "Missing"),
        ("validation", _C, "BadRequest"),
        ("failed_precondition", _E, "PreconditionFailed"),
        ("failed_precondition", _C, "Precondition"),
        ("failed_precondition", _E, "ConditionNotMet"),
        ("failed_precondition", _C, "ConditionalCheckFailed"),
        ("resource_exhausted", _E, "LimitExceeded"),
        ("resource_exhausted", _E, "QuotaExceeded"),
        ("resource_exhausted", _P, "TooMany"),
        ("resource_exhausted", _C, "Throttl"),
        ("resource_exhausted", _C, "Limit"),
        ("resource_exhausted", _C, "Quota"),
        ("resource_exhausted", _C, "Exhausted"),
        ("unavailable", _E, "ServiceUnavailable"),
        ("unavailable", _E, "Unavailable"),
        ("unavailable", _S, "Unavailable"),
        ("unavailable", _C, "Unavailable"),
        ("deadline_exceeded", _E, "DeadlineExceeded"),
        ("deadline_exceeded", _E, "Timeout"),
        ("deadline_exceeded", _C, "Timeout"),
        ("deadline_exceeded", _C, "TimedOut"),
        ("unimplemented", _E, "Unimplemented"),
        ("unimplemented", _E, "NotImplemented"),
        ("unimplemented", _C, "NotImplemented"),
        ("unimplemented", _P, "Unsupported"),
        ("unimplemented", _C, "NotSupported"),
    )
)
