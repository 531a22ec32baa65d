from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AnalyzerSettings(BaseSettings):
    """Analyzer settings loaded from environment variables.

    Every field can be overridden with an ``SDK_ANALYZER_`` prefixed
    variable, e.g. ``SDK_ANALYZER_MIN_CONFIDENCE=0.7``. A local ``.env``
    file is read when present.
    """

    model_config = SettingsConfigDict(
        env_prefix="SDK_ANALYZER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Fields below this confidence get a review marker in the YAML output.
    min_confidence: float = 0.6

    # Number of service packages parsed by the client and error detectors.
    # Large SDKs (aws-sdk-rust ships 400+ crates) are sampled, not scanned whole.
    client_sample_limit: int = 15
    error_sample_limit: int = 15

    # Source walking bounds, relative to each package's src/ directory.
    max_source_depth: int = 3
    max_file_size: int = 1024 * 1024

    # Thread pool size for per-package parsing.
    max_workers: int = 8

    debug: bool = False

    @field_validator("min_confidence")
    @classmethod
    def check_confidence_range(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError("min_confidence must be between 0.0 and 1.0")
        return v

    @field_validator(
        "client_sample_limit",
        "error_sample_limit",
        "max_source_depth",
        "max_file_size",
        "max_workers",
    )
    @classmethod
    def check_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be a positive integer")
        return v


def get_settings() -> AnalyzerSettings:
    return AnalyzerSettings()
