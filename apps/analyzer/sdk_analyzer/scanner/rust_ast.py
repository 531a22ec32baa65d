"""AST helpers for Rust sources using tree-sitter.

Parses Rust files and walks the tree for the handful of structural
facts the detectors need: public type definitions, `pub use`
re-exports, enum variants, trait names and function signatures.

This is syntactic only. Macro-generated items are invisible and no
name resolution is attempted.
"""

import logging
from collections.abc import Iterator

import tree_sitter
import tree_sitter_rust as tsrust

from sdk_analyzer.scanner.types import FunctionSignature, Parameter

logger = logging.getLogger(__name__)

# Initialize the language once at module level
RUST_LANG = tree_sitter.Language(tsrust.language())

# Node types that declare a named type
_TYPE_ITEMS = {"struct_item", "type_item", "enum_item"}


class RustSyntaxError(ValueError):
    """Raised when a source file does not parse cleanly."""

    def __init__(self, line: int):
        self.line = line
        super().__init__(f"syntax error near line {line}")


def parse_rust(content: bytes) -> tree_sitter.Tree:
    """Parse Rust source bytes.

    tree-sitter recovers from errors instead of failing, so the tree is
    checked for ERROR/MISSING nodes and RustSyntaxError is raised when
    any are present.
    """
    parser = tree_sitter.Parser(RUST_LANG)
    tree = parser.parse(content)
    if tree.root_node.has_error:
        raise RustSyntaxError(_first_error_line(tree.root_node))
    return tree


def node_text(node: tree_sitter.Node | None) -> str:
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf-8", errors="replace")


def is_public(node: tree_sitter.Node) -> bool:
    """True for items declared plain `pub` (not `pub(crate)` and friends)."""
    for child in node.children:
        if child.type == "visibility_modifier":
            return node_text(child).strip() == "pub"
    return False


def iter_items(
    root: tree_sitter.Node,
) -> Iterator[tuple[tuple[str, ...], bool, tree_sitter.Node]]:
    """Yield (module_path, reachable, item) for every item in a file.

    Recurses into inline `mod name { ... }` blocks. `reachable` is False
    once any enclosing inline module is not public.
    """
    yield from _iter_items(root, (), True)


def find_public_type(root: tree_sitter.Node, name: str) -> tuple[str, ...] | None:
    """Return the module path of a public struct/type/enum called `name`.

    Only definitions reachable through public inline modules count.
    Returns None when the file has no such definition.
    """
    for module_path, reachable, item in iter_items(root):
        if item.type not in _TYPE_ITEMS or not reachable:
            continue
        if node_text(item.child_by_field_name("name")) == name and is_public(item):
            return module_path
    return None


def exported_names(root: tree_sitter.Node) -> set[str]:
    """Names re-exported with `pub use` at the top level of a file.

    `pub use client::Client;`, `pub use a::{Client, Config};` and
    `pub use inner::Handle as Client;` all export "Client".
    """
    names: set[str] = set()
    for child in root.children:
        if child.type == "use_declaration" and is_public(child):
            _collect_use_names(child.child_by_field_name("argument"), names)
    return names


def enum_variants(root: tree_sitter.Node) -> list[tuple[str, list[str]]]:
    """Return (enum name, variant names) for every enum in the file."""
    enums: list[tuple[str, list[str]]] = []
    for _, _, item in iter_items(root):
        if item.type != "enum_item":
            continue
        body = item.child_by_field_name("body")
        variants = []
        if body is not None:
            for child in body.named_children:
                if child.type == "enum_variant":
                    variants.append(node_text(child.child_by_field_name("name")))
        enums.append((node_text(item.child_by_field_name("name")), variants))
    return enums


def public_traits(root: tree_sitter.Node) -> list[tuple[tuple[str, ...], str]]:
    """Return (module path, trait name) for reachable public traits."""
    traits = []
    for module_path, reachable, item in iter_items(root):
        if item.type == "trait_item" and reachable and is_public(item):
            traits.append((module_path, node_text(item.child_by_field_name("name"))))
    return traits


def function_signatures(root: tree_sitter.Node) -> list[FunctionSignature]:
    """Collect free functions and impl methods defined in the file.

    Trait impl methods are included; their visibility is reported as
    written (usually not `pub`).
    """
    signatures: list[FunctionSignature] = []
    for module_path, reachable, item in iter_items(root):
        if item.type == "function_item":
            signatures.append(_signature(item, None, module_path, reachable))
        elif item.type == "impl_item":
            owner = _impl_owner(item)
            body = item.child_by_field_name("body")
            if body is None:
                continue
            for child in body.named_children:
                if child.type == "function_item":
                    signatures.append(_signature(child, owner, module_path, reachable))
    return signatures


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _iter_items(
    node: tree_sitter.Node,
    module_path: tuple[str, ...],
    reachable: bool,
) -> Iterator[tuple[tuple[str, ...], bool, tree_sitter.Node]]:
    for child in node.named_children:
        yield module_path, reachable, child
        if child.type == "mod_item":
            body = child.child_by_field_name("body")
            if body is not None:
                name = node_text(child.child_by_field_name("name"))
                yield from _iter_items(
                    body, module_path + (name,), reachable and is_public(child)
                )


def _collect_use_names(node: tree_sitter.Node | None, names: set[str]) -> None:
    if node is None:
        return
    if node.type == "identifier":
        names.add(node_text(node))
    elif node.type == "scoped_identifier":
        names.add(node_text(node.child_by_field_name("name")))
    elif node.type == "use_as_clause":
        names.add(node_text(node.child_by_field_name("alias")))
    elif node.type == "scoped_use_list":
        _collect_use_names(node.child_by_field_name("list"), names)
    elif node.type == "use_list":
        for child in node.named_children:
            _collect_use_names(child, names)


def _impl_owner(impl_node: tree_sitter.Node) -> str:
    """Bare type name of an impl block: `impl<T> a::Builder<T>` -> "Builder"."""
    text = node_text(impl_node.child_by_field_name("type"))
    return text.split("<", 1)[0].split("::")[-1].strip()


def _signature(
    node: tree_sitter.Node,
    owner: str | None,
    module_path: tuple[str, ...],
    reachable: bool,
) -> FunctionSignature:
    is_async = any(
        child.type == "function_modifiers" and "async" in node_text(child).split()
        for child in node.children
    )

    parameters: list[Parameter] = []
    params_node = node.child_by_field_name("parameters")
    if params_node is not None:
        for child in params_node.named_children:
            if child.type != "parameter":
                continue
            parameters.append(
                Parameter(
                    pattern=node_text(child.child_by_field_name("pattern")),
                    type=node_text(child.child_by_field_name("type")),
                )
            )

    return FunctionSignature(
        name=node_text(node.child_by_field_name("name")),
        owner=owner,
        is_public=reachable and is_public(node),
        is_async=is_async,
        parameters=tuple(parameters),
        return_type=node_text(node.child_by_field_name("return_type")),
        module_path=module_path,
    )


def _first_error_line(node: tree_sitter.Node) -> int:
    if node.is_error or node.is_missing:
        return node.start_point[0] + 1
    for child in node.children:
        if child.has_error or child.is_missing:
            return _first_error_line(child)
    return node.start_point[0] + 1
