"""Derive the submittable snippet from a local solution file.

A solution file is parsed into its top-level units, each unit is classified,
and the scaffolding around the user's code is filtered out:

- the comment block at the top of the file (the problem description),
- an empty ``Solution`` type that only exists so local tooling compiles,
- the local entry point (``fn main``, ``if __name__ == "__main__":``),
- a test-only attribute together with the item it annotates.

Parsing is pluggable per language. Languages without an extractor are
submitted as-is.
"""

import ast
import logging
from dataclasses import dataclass
from typing import Callable, Optional

import tree_sitter_rust
from tree_sitter import Language as TreeSitterLanguage
from tree_sitter import Node, Parser

from lctui.models import Language

logger = logging.getLogger(__name__)

COMMENT = "comment"
MARKER = "marker"
ENTRY_POINT = "entry_point"
TEST_ATTRIBUTE = "test_attribute"
CODE = "code"

MARKER_TYPE_NAME = "Solution"


@dataclass(frozen=True)
class Unit:
    """A top-level unit of a source file with its original text."""

    kind: str
    text: str


Splitter = Callable[[str], Optional[list[Unit]]]

_RUST_LANGUAGE = TreeSitterLanguage(tree_sitter_rust.language())


def _node_text(source: bytes, node: Node) -> str:
    return source[node.start_byte:node.end_byte].decode("utf-8")


def _rust_struct_has_members(node: Node) -> bool:
    body = node.child_by_field_name("body")
    if body is None:
        return False
    return any(
        child.type not in ("line_comment", "block_comment", "attribute_item", "visibility_modifier")
        for child in body.named_children
    )


def _classify_rust(source: bytes, node: Node) -> str:
    kind = node.type
    if kind in ("line_comment", "block_comment"):
        return COMMENT

    name_node = node.child_by_field_name("name")
    name = _node_text(source, name_node) if name_node is not None else None

    if kind == "struct_item" and name == MARKER_TYPE_NAME and not _rust_struct_has_members(node):
        return MARKER
    if kind == "function_item" and name == "main":
        return ENTRY_POINT
    if kind == "attribute_item":
        text = _node_text(source, node)
        if "cfg" in text and "test" in text:
            return TEST_ATTRIBUTE
    return CODE


def split_rust(content: str) -> Optional[list[Unit]]:
    """Split Rust source into top-level units using tree-sitter."""
    source = content.encode("utf-8")
    tree = Parser(_RUST_LANGUAGE).parse(source)
    root = tree.root_node
    if root is None:
        return None
    return [Unit(_classify_rust(source, child), _node_text(source, child)) for child in root.children]


def _is_main_guard(node: ast.stmt) -> bool:
    if not isinstance(node, ast.If) or not isinstance(node.test, ast.Compare):
        return False
    test = node.test
    operands = [test.left, *test.comparators]
    names = [o.id for o in operands if isinstance(o, ast.Name)]
    constants = [o.value for o in operands if isinstance(o, ast.Constant)]
    return names == ["__name__"] and constants == ["__main__"]


def _is_empty_class(node: ast.ClassDef) -> bool:
    for stmt in node.body:
        if isinstance(stmt, ast.Pass):
            continue
        if isinstance(stmt, ast.Expr) and isinstance(stmt.value, ast.Constant):
            continue
        return False
    return True


def _classify_python(node: ast.stmt) -> str:
    if isinstance(node, ast.ClassDef) and node.name == MARKER_TYPE_NAME and _is_empty_class(node):
        return MARKER
    if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)) and node.name == "main":
        return ENTRY_POINT
    if _is_main_guard(node):
        return ENTRY_POINT
    return CODE


def split_python(content: str) -> Optional[list[Unit]]:
    """Split Python source into top-level statements and comment blocks."""
    try:
        module = ast.parse(content)
    except SyntaxError as e:
        logger.debug("Python solution does not parse: %s", e)
        return None

    lines = content.splitlines()
    spans: list[tuple[int, int, str]] = []
    for node in module.body:
        start = min([node.lineno] + [d.lineno for d in getattr(node, "decorator_list", [])])
        end = node.end_lineno or node.lineno
        kind = _classify_python(node)
        if spans and start <= spans[-1][1]:
            # Statements sharing a line (``a; b``) form one unit.
            prev_start, prev_end, prev_kind = spans[-1]
            spans[-1] = (prev_start, max(prev_end, end), prev_kind if prev_kind == kind else CODE)
            continue
        spans.append((start, end, kind))

    units: list[Unit] = []
    comment_block: list[str] = []

    def flush_comments() -> None:
        if comment_block:
            units.append(Unit(COMMENT, "\n".join(comment_block)))
            comment_block.clear()

    line_no = 1
    span_iter = iter(spans)
    next_span = next(span_iter, None)
    while line_no <= len(lines):
        if next_span is not None and line_no == next_span[0]:
            flush_comments()
            start, end, kind = next_span
            units.append(Unit(kind, "\n".join(lines[start - 1:end])))
            line_no = end + 1
            next_span = next(span_iter, None)
            continue
        line = lines[line_no - 1]
        if line.strip().startswith("#"):
            comment_block.append(line)
        else:
            flush_comments()
        line_no += 1
    flush_comments()
    return units


_SPLITTERS: dict[Language, Splitter] = {
    Language.RUST: split_rust,
    Language.PYTHON3: split_python,
}


def filter_units(units: list[Unit]) -> tuple[list[Unit], bool]:
    """Apply the scaffolding rules in source order.

    Returns the kept units and whether anything was dropped.
    """
    kept: list[Unit] = []
    dropped = False
    in_leading_comments = True
    skip_next = False

    for unit in units:
        if skip_next:
            # The annotated item goes with its attribute; comments between them go too.
            dropped = True
            if unit.kind != COMMENT:
                skip_next = False
            continue

        if unit.kind == COMMENT:
            if in_leading_comments:
                dropped = True
                continue
            kept.append(unit)
            continue

        if unit.kind in (MARKER, ENTRY_POINT):
            dropped = True
            continue

        if unit.kind == TEST_ATTRIBUTE:
            dropped = True
            skip_next = True
            continue

        in_leading_comments = False
        kept.append(unit)

    return kept, dropped


def extract_solution(content: str, language: Language) -> str:
    """Return the part of a solution file worth submitting.

    Falls back to the original text when the file can't be parsed or when
    filtering leaves nothing behind.
    """
    splitter = _SPLITTERS.get(language)
    if splitter is None:
        return content

    units = splitter(content)
    if not units:
        return content

    kept, dropped = filter_units(units)
    if not dropped:
        return content

    result = "\n\n".join(unit.text for unit in kept).strip()
    if not result:
        logger.info("Extraction left nothing to submit, sending the file unchanged")
        return content
    return result
