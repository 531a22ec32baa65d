"""Tests for detector value types."""

from types import MappingProxyType

import pytest

from sdk_analyzer.detector.types import (
    CategoryBucket,
    DetectionResult,
    ErrorPattern,
    HasConfidence,
    NamingTemplate,
    PatternKind,
)


class TestDetectionResult:
    @pytest.mark.parametrize("raw,expected", [(1.5, 1.0), (-0.2, 0.0), (0.42, 0.42)])
    def test_confidence_clamped(self, raw, expected):
        assert DetectionResult("x", raw).confidence == expected

    def test_satisfies_protocol(self):
        assert isinstance(DetectionResult("x", 0.5), HasConfidence)

    def test_to_dict_unwraps_value(self):
        result = DetectionResult(NamingTemplate("aws-sdk-{service}"), 0.8, "3 packages")
        assert result.to_dict() == {
            "value": {"pattern": "aws-sdk-{service}"},
            "confidence": 0.8,
            "evidence": "3 packages",
        }


class TestNamingTemplate:
    def test_round_trip(self):
        template = NamingTemplate("aws-sdk-{service}")
        assert template.render("s3") == "aws-sdk-s3"
        assert template.service_token("aws-sdk-s3") == "s3"

    def test_suffix_template(self):
        template = NamingTemplate("{service}-client")
        assert template.prefix == ""
        assert template.suffix == "-client"
        assert template.service_token("s3-client") == "s3"

    def test_non_matching_name(self):
        template = NamingTemplate("aws-sdk-{service}")
        assert template.service_token("gcp-sdk-storage") is None
        assert template.service_token("aws-sdk-") is None

    def test_literal_renders_to_itself(self):
        template = NamingTemplate("k8s_openapi::Client")
        assert template.has_placeholder is False
        assert template.render("anything") == "k8s_openapi::Client"
        assert template.service_token("k8s_openapi::Client") is None

    def test_empty(self):
        assert NamingTemplate().is_empty
        assert str(NamingTemplate("a-{service}")) == "a-{service}"

    def test_two_placeholders_rejected(self):
        with pytest.raises(ValueError):
            NamingTemplate("{service}-{service}")


class TestErrorPattern:
    @pytest.mark.parametrize("kind,literal,rendered", [
        (PatternKind.EXACT, "NotFound", "NotFound"),
        (PatternKind.PREFIX_WILDCARD, "NoSuch", "NoSuch*"),
        (PatternKind.SUFFIX_WILDCARD, "InUse", "*InUse"),
        (PatternKind.CONTAINS_WILDCARD, "Limit", "*Limit*"),
    ])
    def test_render_and_parse(self, kind, literal, rendered):
        pattern = ErrorPattern(kind, literal)
        assert pattern.render() == rendered
        assert str(pattern) == rendered
        assert ErrorPattern.parse(rendered) == pattern

    @pytest.mark.parametrize("text,variant,expected", [
        ("NotFound", "NotFound", True),
        ("NotFound", "NotFoundException", False),
        ("NoSuch*", "NoSuchKey", True),
        ("NoSuch*", "KeyNoSuch", False),
        ("*InUse", "ResourceInUse", True),
        ("*InUse", "InUseResource", False),
        ("*Limit*", "RequestLimitExceeded", True),
        ("*Limit*", "Throttled", False),
    ])
    def test_matches(self, text, variant, expected):
        assert ErrorPattern.parse(text).matches(variant) is expected


class TestCategoryBucket:
    def _bucket(self):
        return CategoryBucket(
            patterns=MappingProxyType({
                "not_found": (ErrorPattern(PatternKind.EXACT, "NotFound"),),
                "unavailable": (),
            }),
            matched=MappingProxyType({"not_found": 2, "unavailable": 0}),
            pool_size=4,
        )

    def test_accessors(self):
        bucket = self._bucket()
        assert bucket.categories == ["not_found", "unavailable"]
        assert bucket["not_found"][0].literal == "NotFound"
        assert bucket.matched_total == 2
        assert bucket.coverage == 0.5
        assert bucket.per_category() == {"not_found": 0.5, "unavailable": 0.0}
        assert bucket.is_empty() is False

    def test_to_dict_drops_empty_categories(self):
        assert self._bucket().to_dict() == {"not_found": ["NotFound"]}

    def test_empty_pool(self):
        bucket = CategoryBucket(patterns=MappingProxyType({"not_found": ()}))
        assert bucket.coverage == 0.0
        assert bucket.confidence("not_found") == 0.0
        assert bucket.is_empty()
