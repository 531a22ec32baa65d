"""Tests for client type detection."""

import pytest

from sdk_analyzer.detector.clients import (
    PackageClient,
    client_template,
    detect_client_type,
    reduce_outcomes,
)
from sdk_analyzer.detector.crates import detect_crate_pattern
from sdk_analyzer.workspace import load_workspace

REEXPORT_LIB = "pub mod client;\n\npub use crate::client::Client;\n"
CLIENT_RS = """\
pub struct Client {
    inner: u8,
}

impl Client {
    pub async fn send(&self) -> Result<(), ()> {
        Ok(())
    }
}
"""
SYNC_LIB = """\
pub struct Client;

impl Client {
    pub fn send(&self) {}
}
"""


def _detect(root, settings):
    ws = load_workspace(root)
    return detect_client_type(ws, detect_crate_pattern(ws), settings)


# ---------------------------------------------------------------------------
# Workspace detection
# ---------------------------------------------------------------------------

class TestDetectClientType:
    def test_reexported_client(self, make_workspace, settings):
        root = make_workspace({
            "aws-sdk-s3": {"src/lib.rs": REEXPORT_LIB, "src/client.rs": CLIENT_RS},
            "aws-sdk-ec2": {"src/lib.rs": REEXPORT_LIB, "src/client.rs": CLIENT_RS},
            "aws-sdk-dynamodb": {"src/lib.rs": REEXPORT_LIB, "src/client.rs": CLIENT_RS},
        })
        detection = _detect(root, settings)
        assert detection.result.value.pattern == "aws_sdk_{service}::Client"
        assert detection.confidence == 1.0
        assert detection.async_client is True
        assert "aws_sdk_s3::Client" in detection.samples

    def test_client_in_public_module(self, make_workspace, settings):
        lib = "pub mod client;\n"
        root = make_workspace({
            "gcp-sdk-storage": {"src/lib.rs": lib, "src/client.rs": SYNC_LIB},
            "gcp-sdk-pubsub": {"src/lib.rs": lib, "src/client.rs": SYNC_LIB},
        })
        detection = _detect(root, settings)
        assert detection.result.value.pattern == "gcp_sdk_{service}::client::Client"
        assert detection.async_client is False

    def test_private_module_client_not_found(self, make_workspace, settings):
        lib = "mod client;\n"
        root = make_workspace({
            "x-sdk-a": {"src/lib.rs": lib, "src/client.rs": SYNC_LIB},
            "x-sdk-b": {"src/lib.rs": lib, "src/client.rs": SYNC_LIB},
        })
        detection = _detect(root, settings)
        assert detection.result.value.is_empty
        assert detection.confidence == 0.0

    def test_parse_failure_skipped_not_counted(self, make_workspace, settings):
        root = make_workspace({
            "aws-sdk-s3": {"src/lib.rs": SYNC_LIB},
            "aws-sdk-ec2": {"src/lib.rs": SYNC_LIB},
            "aws-sdk-iam": {"src/lib.rs": "pub struct Client {"},
        })
        detection = _detect(root, settings)
        assert detection.result.value.pattern == "aws_sdk_{service}::Client"
        assert detection.confidence == 1.0
        assert len(detection.warnings) == 1
        assert detection.warnings[0].package == "aws-sdk-iam"
        assert "skipped" in detection.result.evidence

    def test_disagreeing_packages_lower_confidence(self, make_workspace, settings):
        root = make_workspace({
            "aws-sdk-s3": {"src/lib.rs": SYNC_LIB},
            "aws-sdk-ec2": {"src/lib.rs": SYNC_LIB},
            "aws-sdk-iam": {"src/lib.rs": "pub struct Other;\n"},
        })
        detection = _detect(root, settings)
        assert detection.confidence == pytest.approx(2 / 3)

    def test_monolithic_literal_path(self, tmp_path, crate_writer, settings):
        crate_writer(tmp_path, "k8s-openapi", {"src/lib.rs": SYNC_LIB})
        detection = _detect(tmp_path, settings)
        assert detection.result.value.pattern == "k8s_openapi::Client"
        assert detection.confidence == 1.0

    def test_no_service_packages(self, make_workspace, settings):
        root = make_workspace({"aws-config": None})
        detection = _detect(root, settings)
        assert detection.confidence == 0.0
        assert detection.async_client is True


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------

class TestClientTemplate:
    def test_replaces_token_in_crate_segment(self):
        assert client_template("aws_sdk_s3::Client", "s3") == "aws_sdk_{service}::Client"

    def test_dashed_token(self):
        assert (
            client_template("google_cloud_bigquery_v2::client::Client", "bigquery-v2")
            == "google_cloud_{service}::client::Client"
        )

    def test_token_only_replaced_in_crate(self):
        assert client_template("sdk_s3::s3::Client", "s3") == "sdk_{service}::s3::Client"

    def test_no_token_keeps_literal(self):
        assert client_template("k8s_openapi::Client", None) == "k8s_openapi::Client"


class TestReduceOutcomes:
    def test_tie_goes_to_first_seen(self):
        outcomes = [
            PackageClient("a", True, "a::Client", "{service}::Client"),
            PackageClient("b", True, "b::api::Client", "{service}::api::Client"),
        ]
        detection = reduce_outcomes(outcomes)
        assert detection.result.value.pattern == "{service}::Client"
        assert detection.confidence == 0.5

    def test_order_of_equal_outcomes_does_not_matter(self):
        one = PackageClient("a", True, "a::Client", "{service}::Client", has_async=True)
        two = PackageClient("b", True, "b::Client", "{service}::Client")
        assert (
            reduce_outcomes([one, two]).result.value
            == reduce_outcomes([two, one]).result.value
        )

    def test_nothing_parsed_defaults_async(self):
        detection = reduce_outcomes([PackageClient("a", False)])
        assert detection.async_client is True
        assert detection.confidence == 0.0
