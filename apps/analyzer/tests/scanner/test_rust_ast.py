"""Tests for the tree-sitter Rust helpers."""

import pytest

from sdk_analyzer.scanner.rust_ast import (
    RustSyntaxError,
    enum_variants,
    exported_names,
    find_public_type,
    function_signatures,
    parse_rust,
    public_traits,
)


def _root(source: str):
    return parse_rust(source.encode("utf-8")).root_node


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

class TestParseRust:
    def test_valid_source_parses(self):
        tree = parse_rust(b"pub struct Client;\n")
        assert tree.root_node.type == "source_file"

    def test_syntax_error_raises_with_line(self):
        with pytest.raises(RustSyntaxError) as exc_info:
            parse_rust(b"pub struct Ok;\n\npub fn broken( {\n")
        assert exc_info.value.line >= 1

    def test_empty_source_is_valid(self):
        assert parse_rust(b"").root_node.child_count == 0


# ---------------------------------------------------------------------------
# Public types and re-exports
# ---------------------------------------------------------------------------

class TestFindPublicType:
    def test_struct_at_root(self):
        assert find_public_type(_root("pub struct Client { inner: u8 }"), "Client") == ()

    def test_type_alias_counts(self):
        assert find_public_type(_root("pub type Client = Inner;"), "Client") == ()

    def test_private_struct_ignored(self):
        assert find_public_type(_root("struct Client;"), "Client") is None

    def test_crate_visibility_is_not_public(self):
        assert find_public_type(_root("pub(crate) struct Client;"), "Client") is None

    def test_inline_public_module(self):
        source = "pub mod client {\n    pub struct Client;\n}\n"
        assert find_public_type(_root(source), "Client") == ("client",)

    def test_inline_private_module_is_unreachable(self):
        source = "mod client {\n    pub struct Client;\n}\n"
        assert find_public_type(_root(source), "Client") is None


class TestExportedNames:
    def test_simple_reexport(self):
        assert "Client" in exported_names(_root("pub use crate::client::Client;"))

    def test_use_list(self):
        names = exported_names(_root("pub use client::{Client, Config};"))
        assert {"Client", "Config"} <= names

    def test_alias(self):
        assert "Client" in exported_names(_root("pub use inner::Handle as Client;"))

    def test_private_use_ignored(self):
        assert exported_names(_root("use crate::client::Client;")) == set()


# ---------------------------------------------------------------------------
# Enums, traits, functions
# ---------------------------------------------------------------------------

class TestEnumVariants:
    def test_variants_in_order(self):
        source = "pub enum Error {\n    NotFound,\n    Throttled { retry: u32 },\n    Other(String),\n}\n"
        assert enum_variants(_root(source)) == [("Error", ["NotFound", "Throttled", "Other"])]

    def test_private_and_nested_enums_included(self):
        source = "enum A { X }\nmod inner {\n    enum BError { Y }\n}\n"
        names = [name for name, _ in enum_variants(_root(source))]
        assert names == ["A", "BError"]


class TestPublicTraits:
    def test_public_trait_with_module_path(self):
        source = "pub mod error {\n    pub trait ProvideErrorMetadata {}\n}\ntrait Hidden {}\n"
        assert public_traits(_root(source)) == [(("error",), "ProvideErrorMetadata")]


class TestFunctionSignatures:
    SOURCE = """\
pub fn from_env() -> Loader {
    Loader
}

pub struct Loader;

impl Loader {
    pub fn region(mut self, region: impl Into<Option<String>>) -> Self {
        self
    }

    pub async fn load(self) -> Config {
        Config
    }

    fn private_helper(&self) {}
}
"""

    def test_free_function(self):
        sigs = function_signatures(_root(self.SOURCE))
        free = [s for s in sigs if s.owner is None]
        assert [s.name for s in free] == ["from_env"]
        assert free[0].is_public is True

    def test_impl_methods_have_owner(self):
        sigs = function_signatures(_root(self.SOURCE))
        methods = {s.name: s for s in sigs if s.owner == "Loader"}
        assert set(methods) == {"region", "load", "private_helper"}
        assert methods["private_helper"].is_public is False

    def test_parameters_skip_self(self):
        sigs = function_signatures(_root(self.SOURCE))
        region = next(s for s in sigs if s.name == "region")
        assert len(region.parameters) == 1
        assert region.parameters[0].pattern == "region"
        assert region.parameters[0].type == "impl Into<Option<String>>"

    def test_async_detected(self):
        sigs = {s.name: s for s in function_signatures(_root(self.SOURCE))}
        assert sigs["load"].is_async is True
        assert sigs["region"].is_async is False

    def test_generic_impl_owner_is_bare_name(self):
        source = "impl<T> crate::config::Builder<T> {\n    pub fn token(self, token: &str) -> Self { self }\n}\n"
        sigs = function_signatures(_root(source))
        assert sigs[0].owner == "Builder"
