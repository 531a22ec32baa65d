"""Tests for configuration package and attribute detection."""

import pytest

from sdk_analyzer.detector.configuration import (
    EXACT_MATCH_CONFIDENCE,
    SUBSTRING_MATCH_CONFIDENCE,
    dependency_spec,
    detect_config,
    extract_attributes,
    find_config_package,
    guess_extractor,
    match_vocabulary,
    unwrap_type,
)
from sdk_analyzer.scanner.types import FunctionSignature, Parameter
from sdk_analyzer.workspace import load_workspace
from sdk_analyzer.workspace.types import PackageInfo

CONFIG_LIB = """\
pub struct ConfigLoader;
pub struct SdkConfig;

pub fn from_env() -> ConfigLoader {
    ConfigLoader
}

impl ConfigLoader {
    pub fn region(mut self, region: impl Into<Option<String>>) -> Self {
        self
    }

    pub fn set_region(&mut self, region: Option<String>) -> &mut Self {
        self
    }

    pub fn profile_name(mut self, profile_name: &str) -> Self {
        self
    }

    pub fn retry_attempts(mut self, attempts: u32) -> Self {
        self
    }

    pub fn get_region(&self) -> Option<&str> {
        None
    }

    pub async fn load(self) -> SdkConfig {
        SdkConfig
    }
}

struct Internal;

impl Internal {
    pub fn region(self, region: String) -> Self {
        self
    }
}
"""


def _sig(name, param_type="String", owner="Builder", is_async=False):
    params = (Parameter("value", param_type),) if param_type is not None else ()
    return FunctionSignature(
        name=name, owner=owner, is_public=True, is_async=is_async, parameters=params
    )


# ---------------------------------------------------------------------------
# Package detection
# ---------------------------------------------------------------------------

class TestFindConfigPackage:
    def test_config_keyword_wins(self, make_workspace):
        root = make_workspace({"aws-credential-types": None, "aws-config": None, "aws-sdk-s3": None})
        package, keyword, confidence = find_config_package(load_workspace(root))
        assert package.name == "aws-config"
        assert keyword == "config"
        assert confidence == 0.95

    def test_auth_keyword_lower_confidence(self, make_workspace):
        root = make_workspace({"google-cloud-auth": None, "google-cloud-storage": None})
        package, keyword, confidence = find_config_package(load_workspace(root))
        assert package.name == "google-cloud-auth"
        assert confidence == 0.85

    def test_none_found(self, make_workspace):
        root = make_workspace({"k8s-openapi": None})
        assert find_config_package(load_workspace(root)) is None

    def test_service_named_after_keyword_does_not_shadow(self, make_workspace):
        root = make_workspace({"aws-sdk-appconfig": None, "aws-config": None, "aws-sdk-s3": None})
        package, keyword, confidence = find_config_package(load_workspace(root))
        assert package.name == "aws-config"
        assert confidence == 0.95

    def test_falls_back_to_service_packages(self, make_workspace):
        root = make_workspace({"aws-sdk-appconfig": None, "aws-sdk-s3": None})
        package, keyword, _ = find_config_package(load_workspace(root))
        assert package.name == "aws-sdk-appconfig"
        assert keyword == "config"


class TestDetectConfig:
    def test_config_package_surface(self, make_workspace, settings):
        root = make_workspace({
            "aws-config": {"src/lib.rs": CONFIG_LIB},
            "aws-sdk-s3": None,
        })
        detection = detect_config(load_workspace(root), settings)

        assert detection.package.value == "aws-config"
        assert detection.package.confidence == 0.95
        names = [a.value.name for a in detection.attributes]
        assert names == ["region", "profile", "retry"]

        region = detection.attributes[0]
        assert region.confidence == EXACT_MATCH_CONFIDENCE
        assert region.value.required is False
        assert region.value.method == "region"
        assert region.value.extractor == "as_str()"
        assert region.value.setter == "config_loader = config_loader.region({value})"

        profile = detection.attributes[1]
        assert profile.confidence == SUBSTRING_MATCH_CONFIDENCE
        assert profile.value.required is True

        retry = detection.attributes[2]
        assert retry.value.extractor == "as_u64()"

    def test_snippets(self, make_workspace, settings):
        root = make_workspace({"aws-config": {"src/lib.rs": CONFIG_LIB}})
        detection = detect_config(load_workspace(root), settings)
        assert detection.initialization.snippet == "aws_config::from_env()"
        assert detection.initialization.var_name == "config_loader"
        assert detection.load.snippet == "config_loader.load().await"
        assert detection.client_from_config.snippet == "{client_type}::new(&sdk_config)"
        assert detection.region_attr == "region"
        assert detection.dependencies == ['aws-config = "0.1"']

    def test_sync_load(self, make_workspace, settings):
        lib = "pub struct Loader;\nimpl Loader {\n    pub fn load(self) {}\n}\n"
        root = make_workspace({"acme-config": {"src/lib.rs": lib}})
        detection = detect_config(load_workspace(root), settings)
        assert detection.load.snippet == "config_loader.load()"

    def test_falls_back_to_primary_service_package(self, tmp_path, crate_writer, settings):
        lib = (
            "pub struct Settings;\n"
            "impl Settings {\n"
            "    pub fn namespace(mut self, namespace: &str) -> Self { self }\n"
            "}\n"
        )
        crate_writer(tmp_path, "k8s-openapi", {"src/lib.rs": lib})
        detection = detect_config(load_workspace(tmp_path), settings)
        assert detection.package.value is None
        assert detection.package.confidence == 0.0
        assert detection.scanned_package == "k8s-openapi"
        assert [a.value.name for a in detection.attributes] == ["namespace"]
        assert detection.initialization.snippet == "Config::from_env()"
        assert detection.dependencies == []

    def test_attributes_confidence_is_mean(self, make_workspace, settings):
        root = make_workspace({"aws-config": {"src/lib.rs": CONFIG_LIB}})
        detection = detect_config(load_workspace(root), settings)
        assert detection.attributes_confidence == pytest.approx((0.9 + 0.6 + 0.6) / 3)

    def test_nothing_to_scan(self, make_workspace, settings):
        root = make_workspace({"aws-smithy-types": None})
        detection = detect_config(load_workspace(root), settings)
        assert detection.attributes == []
        assert detection.attributes_confidence == 0.0


# ---------------------------------------------------------------------------
# Attribute matching
# ---------------------------------------------------------------------------

class TestMatchVocabulary:
    @pytest.mark.parametrize("method,expected", [
        ("region", ("region", EXACT_MATCH_CONFIDENCE)),
        ("set_region", ("region", EXACT_MATCH_CONFIDENCE)),
        ("endpoint_url", ("endpoint", SUBSTRING_MATCH_CONFIDENCE)),
        ("api_key", ("api_key", EXACT_MATCH_CONFIDENCE)),
        ("with_api_key", ("api_key", SUBSTRING_MATCH_CONFIDENCE)),
    ])
    def test_matches(self, method, expected):
        name, _, confidence = match_vocabulary(method)
        assert (name, confidence) == expected

    @pytest.mark.parametrize("method", ["build", "regional_thing_x", "tokenizer", "send"])
    def test_no_match(self, method):
        assert match_vocabulary(method) is None


class TestExtractAttributes:
    def test_optional_anywhere_makes_not_required(self):
        attrs = extract_attributes([
            _sig("region", "String"),
            _sig("set_region", "Option<String>"),
        ])
        assert len(attrs) == 1
        assert attrs[0].value.required is False
        assert attrs[0].value.method == "region"

    def test_exact_beats_substring(self):
        attrs = extract_attributes([_sig("timeout_ms", "u64"), _sig("timeout", "Duration")])
        assert attrs[0].confidence == EXACT_MATCH_CONFIDENCE
        assert attrs[0].value.method == "timeout"
        assert attrs[0].value.extractor is None
        assert attrs[0].value.setter is None

    def test_getters_and_no_arg_methods_skipped(self):
        assert extract_attributes([_sig("get_region"), _sig("region", None)]) == []


class TestTypes:
    @pytest.mark.parametrize("type_text,expected", [
        ("&str", "str"),
        ("&'a str", "str"),
        ("impl Into<String>", "String"),
        ("impl Into<Option<String>>", "String"),
        ("Option<u64>", "u64"),
        ("std::borrow::Cow<'static, str>", "str"),
        ("Box<dyn Provider>", "dyn Provider"),
        ("aws_types::region::Region", "Region"),
    ])
    def test_unwrap_type(self, type_text, expected):
        assert unwrap_type(type_text) == expected

    @pytest.mark.parametrize("type_text,expected", [
        ("&str", "as_str()"),
        ("impl Into<String>", "as_str()"),
        ("i32", "as_i64()"),
        ("Option<u16>", "as_u64()"),
        ("f64", "as_f64()"),
        ("bool", "as_bool()"),
        ("Duration", None),
    ])
    def test_guess_extractor(self, type_text, expected):
        assert guess_extractor(type_text) == expected


class TestDependencySpec:
    def test_major_version(self, tmp_path):
        pkg = PackageInfo(name="aws-config", path=tmp_path, version="1.5.3")
        assert dependency_spec(pkg) == 'aws-config = "1"'

    def test_zero_major_keeps_minor(self, tmp_path):
        pkg = PackageInfo(name="kube-config", path=tmp_path, version="0.22.1")
        assert dependency_spec(pkg) == 'kube-config = "0.22"'
