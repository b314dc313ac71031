"""Handler discovery — recover the exported names of a functions source file.

Files are parsed with tree-sitter's TypeScript grammars and never
executed: imports are not resolved and re-exports are not followed.

Recognised export forms::

    export { onRequestGet, helper as onRequestPost }   # ExportSpecifier
    export function onRequest() {}                       # ExportedFunction
    export async function* stream() {}                   # ExportedFunction
    export type Env = {}                                 # ExportedTypeAlias
    export interface Data {}                             # ExportedInterface
    export const onRequestPut = ..., onRequestHead = ... # ExportedVariableStatement

Names come back in document order. Duplicates are kept.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path, PurePath
from typing import TypeAlias

import anyio
import tree_sitter_typescript
from tree_sitter import Language, Node, Parser

from pagesbridge.errors import DiscoveryParseFailure

logger = logging.getLogger("pagesbridge.functions")

# Suffixes parsed with the plain TypeScript grammar; everything else may
# contain JSX and goes through the TSX grammar.
_TYPESCRIPT_SUFFIXES = frozenset({".ts", ".mts", ".cts"})

_FUNCTION_NODES = frozenset({
    "function_declaration",
    "generator_function_declaration",
    "function_signature",
})
_VARIABLE_NODES = frozenset({"lexical_declaration", "variable_declaration"})


# -- Export node variants ----------------------------------------------------


@dataclass(frozen=True, slots=True)
class ExportSpecifier:
    """``export { local as name }`` — records the exported name."""

    name: str


@dataclass(frozen=True, slots=True)
class ExportedFunction:
    name: str


@dataclass(frozen=True, slots=True)
class ExportedTypeAlias:
    name: str


@dataclass(frozen=True, slots=True)
class ExportedInterface:
    name: str


@dataclass(frozen=True, slots=True)
class ExportedVariableStatement:
    """``export const a = 1, b = 2`` — one name per declarator."""

    names: tuple[str, ...]


ExportNode: TypeAlias = (
    ExportSpecifier
    | ExportedFunction
    | ExportedTypeAlias
    | ExportedInterface
    | ExportedVariableStatement
)


@dataclass(frozen=True, slots=True)
class SourceFile:
    """A discovered functions file and its exports."""

    path: Path
    relative_path: str  # POSIX-style, relative to the functions root
    exports: tuple[str, ...]


# -- Parsing -----------------------------------------------------------------


@functools.cache
def _language(tsx: bool) -> Language:
    if tsx:
        return Language(tree_sitter_typescript.language_tsx())
    return Language(tree_sitter_typescript.language_typescript())


def _parser_for(path: str | PurePath) -> Parser:
    suffix = PurePath(path).suffix
    return Parser(_language(suffix not in _TYPESCRIPT_SUFFIXES))


def _text(node: Node) -> str:
    return (node.text or b"").decode("utf-8")


def _name(node: Node) -> str:
    name = node.child_by_field_name("name")
    return _text(name) if name is not None else ""


def _classify_declaration(decl: Node) -> ExportNode | None:
    """Map the declaration of an ``export`` statement onto a variant."""
    if decl.type == "ambient_declaration":
        # export declare function f(): void;
        inner = next(iter(decl.named_children), None)
        if inner is None:
            return None
        decl = inner

    if decl.type in _FUNCTION_NODES:
        name = _name(decl)
        return ExportedFunction(name) if name else None
    if decl.type == "type_alias_declaration":
        return ExportedTypeAlias(_name(decl))
    if decl.type == "interface_declaration":
        return ExportedInterface(_name(decl))
    if decl.type in _VARIABLE_NODES:
        names = tuple(
            _name(child) for child in decl.named_children if child.type == "variable_declarator"
        )
        return ExportedVariableStatement(names)
    return None


def visit_exports(root: Node) -> list[ExportNode]:
    """Walk a syntax tree in document order and collect export nodes."""
    found: list[ExportNode] = []
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "export_specifier":
            exported = node.child_by_field_name("alias") or node.child_by_field_name("name")
            if exported is not None:
                found.append(ExportSpecifier(_text(exported)))
        elif node.type == "export_statement":
            decl = node.child_by_field_name("declaration")
            if decl is not None:
                export = _classify_declaration(decl)
                if export is not None:
                    found.append(export)
        stack.extend(reversed(node.children))
    return found


def export_names(nodes: Iterable[ExportNode]) -> list[str]:
    """Flatten export nodes into their bound names."""
    names: list[str] = []
    for node in nodes:
        match node:
            case ExportedVariableStatement(names=declared):
                names.extend(declared)
            case ExportSpecifier(name=name) | ExportedFunction(name=name):
                names.append(name)
            case ExportedTypeAlias(name=name) | ExportedInterface(name=name):
                names.append(name)
    return names


def _first_error(root: Node) -> Node:
    stack = [root]
    while stack:
        node = stack.pop()
        if node.is_error or node.is_missing:
            return node
        stack.extend(reversed(node.children))
    return root


def parse_exports(source: bytes, path: str | PurePath = "<source>.ts") -> list[str]:
    """Parse source text and return its export names.

    The grammar is chosen from *path*'s suffix.

    Raises:
        DiscoveryParseFailure: If the tree contains syntax errors.
    """
    tree = _parser_for(path).parse(source)
    root = tree.root_node
    if root.has_error:
        row, column = _first_error(root).start_point
        raise DiscoveryParseFailure(path, row + 1, column + 1)
    return export_names(visit_exports(root))


async def discover(path: str | Path) -> list[str]:
    """Read a source file and return its export names in document order."""
    source = await anyio.Path(path).read_bytes()
    return parse_exports(source, path)


# -- File enumeration --------------------------------------------------------


def find_source_files(
    root: str | Path,
    extensions: Iterable[str] = (".js", ".ts"),
) -> list[Path]:
    """Recursively list candidate handler files under *root*.

    Dot-directories and dot-files are skipped. A missing root yields an
    empty list.
    """
    root = Path(root)
    if not root.is_dir():
        logger.warning("Functions directory not found: %s", root)
        return []

    wanted = frozenset(extensions)
    return sorted(
        path
        for path in root.rglob("*")
        if path.is_file()
        and path.suffix in wanted
        and not any(part.startswith(".") for part in path.relative_to(root).parts)
    )


async def discover_source_file(path: Path, root: str | Path) -> SourceFile:
    """Discover one file's exports and record its path relative to *root*."""
    exports = await discover(path)
    relative = path.relative_to(root).as_posix()
    logger.debug("Discovered %s: %s", relative, ", ".join(exports) or "(no exports)")
    return SourceFile(path=path, relative_path=relative, exports=tuple(exports))
