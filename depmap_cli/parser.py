"""Import extractor for JavaScript / TypeScript built on Tree-sitter.

Tree-sitter produces a concrete syntax tree even for broken input, so
extraction keeps working on files with syntax errors. Whether such files are
reported at all is a caller decision (``include_error_files``).

Recognized module references, in source order:

- ``import ... from 'x'`` / ``import 'x'`` / ``import type ... from 'x'``
- ``export ... from 'x'`` / ``export * from 'x'`` / ``export type ... from 'x'``
- ``import('x')`` in any expression position
- ``require('x')`` in any expression position
- ``import x = require('x')`` (TypeScript)

Only plain string literals count; template literals, identifiers and other
computed arguments are skipped because they cannot be resolved statically.
TypeScript type positions (`let x: typeof import("y")`) are not walked.
"""

from __future__ import annotations

import importlib
import logging
import re
import threading
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from tree_sitter import Language, Parser as TSParser

from .errors import ExtractionError
from .models import Diagnostic, ImportKind, ImportRecord, ParsedFile
from .scanner import is_supported_file

logger = logging.getLogger(__name__)


class ScriptKind(str, Enum):
    TS = "ts"
    TSX = "tsx"
    JS = "js"
    JSX = "jsx"

    @property
    def is_typed(self) -> bool:
        return self in (ScriptKind.TS, ScriptKind.TSX)

    @property
    def is_jsx(self) -> bool:
        return self in (ScriptKind.TSX, ScriptKind.JSX)


SCRIPT_KINDS: Dict[str, ScriptKind] = {
    ".ts": ScriptKind.TS,
    ".tsx": ScriptKind.TSX,
    ".js": ScriptKind.JS,
    ".jsx": ScriptKind.JSX,
}

# Script kind -> (grammar module, function returning the Language capsule).
# The javascript grammar accepts JSX, so .js and .jsx share it.
_GRAMMAR_MODULES: Dict[ScriptKind, Tuple[str, str]] = {
    ScriptKind.TS: ("tree_sitter_typescript", "language_typescript"),
    ScriptKind.TSX: ("tree_sitter_typescript", "language_tsx"),
    ScriptKind.JS: ("tree_sitter_javascript", "language"),
    ScriptKind.JSX: ("tree_sitter_javascript", "language"),
}

_languages: Dict[ScriptKind, Language] = {}
_languages_lock = threading.Lock()
# tree-sitter Parser objects are not shared between threads
_thread_state = threading.local()


def script_kind_for(file_name: Union[str, Path]) -> ScriptKind:
    """Map a file name to its script kind by extension (case-insensitive)."""
    ext = Path(str(file_name)).suffix.lower()
    kind = SCRIPT_KINDS.get(ext)
    if kind is None:
        raise ExtractionError(f"Unsupported file type for '{file_name}'")
    return kind


def _coerce_kind(script_kind: Union[ScriptKind, str]) -> ScriptKind:
    if isinstance(script_kind, ScriptKind):
        return script_kind
    try:
        return ScriptKind(script_kind.lower().lstrip("."))
    except ValueError:
        raise ExtractionError(f"Unknown script kind '{script_kind}'") from None


# ===================================================================
# Grammar loading
# ===================================================================

def _language(kind: ScriptKind) -> Language:
    with _languages_lock:
        lang = _languages.get(kind)
        if lang is None:
            mod_name, func_name = _GRAMMAR_MODULES[kind]
            mod = importlib.import_module(mod_name)
            lang = Language(getattr(mod, func_name)())
            _languages[kind] = lang
            logger.debug("Loaded tree-sitter grammar %s.%s for %s", mod_name, func_name, kind.value)
        return lang


def _parser(kind: ScriptKind) -> TSParser:
    parsers: Optional[Dict[ScriptKind, TSParser]] = getattr(_thread_state, "parsers", None)
    if parsers is None:
        parsers = {}
        _thread_state.parsers = parsers
    parser = parsers.get(kind)
    if parser is None:
        parser = TSParser(_language(kind))
        parsers[kind] = parser
    return parser


# ===================================================================
# Extractor
# ===================================================================

class ImportExtractor:
    """Collect module references from source text.

    With ``include_error_files=False`` (the default) a file containing
    syntax errors yields ``None``. With ``True`` it yields a best-effort
    :class:`ParsedFile` whose ``diagnostics`` list is non-empty.
    """

    def __init__(self, include_error_files: bool = False) -> None:
        self.include_error_files = include_error_files

    def is_supported_file(self, file_name: Union[str, Path]) -> bool:
        return is_supported_file(file_name)

    def parse(
        self,
        source: str,
        script_kind: Union[ScriptKind, str],
    ) -> Optional[ParsedFile]:
        kind = _coerce_kind(script_kind)
        tree = _parser(kind).parse(source.encode("utf-8"))
        root = tree.root_node

        diagnostics: List[Diagnostic] = []
        if root.has_error:
            diagnostics = _collect_diagnostics(root)
            if not self.include_error_files:
                return None

        return ParsedFile(records=_collect_imports(root), diagnostics=diagnostics)

    def parse_file(
        self,
        file_path: Union[str, Path],
        script_kind: Optional[Union[ScriptKind, str]] = None,
    ) -> Optional[ParsedFile]:
        path = Path(file_path)
        kind = script_kind if script_kind is not None else script_kind_for(path.name)
        try:
            source = path.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            raise ExtractionError(f"Failed to parse {path}: {exc}") from exc
        return self.parse(source, kind)


def extract_imports(
    source: str,
    script_kind: Union[ScriptKind, str],
    include_error_files: bool = False,
) -> Optional[List[str]]:
    """Return the module specifiers referenced by *source*, in source order."""
    parsed = ImportExtractor(include_error_files).parse(source, script_kind)
    return None if parsed is None else parsed.specifiers


# ===================================================================
# Tree walk
# ===================================================================

# TypeScript type positions. `import("x").T` and `typeof import("x")` inside
# them are type references, not calls, so these subtrees are not walked.
_TYPE_CONTEXTS = frozenset({
    "type_annotation",
    "type_alias_declaration",
    "interface_declaration",
    "type_query",
    "type_arguments",
    "type_parameters",
    "asserts_annotation",
    "type_predicate_annotation",
    "opting_type_annotation",
    "omitting_type_annotation",
    "adding_type_annotation",
})

# `expr as T` / `expr satisfies T`: only the leading expression is runtime code
_CAST_EXPRESSIONS = frozenset({"as_expression", "satisfies_expression"})


def _collect_imports(root: Any) -> List[ImportRecord]:
    """Pre-order, depth-first walk dispatching on node type."""
    records: List[ImportRecord] = []
    stack = [root]
    while stack:
        node = stack.pop()
        node_type = node.type
        if node_type in _TYPE_CONTEXTS:
            continue
        if node_type in _CAST_EXPRESSIONS:
            stack.extend(node.named_children[:1])
            continue
        if node_type == "import_statement":
            record = _from_import_statement(node)
        elif node_type == "export_statement":
            record = _from_export_statement(node)
        elif node_type == "call_expression":
            record = _from_call_expression(node)
        else:
            record = None
        if record is not None:
            records.append(record)
        stack.extend(reversed(node.children))
    return records


def _from_import_statement(node: Any) -> Optional[ImportRecord]:
    source = node.child_by_field_name("source")
    if source is None:
        clause = _child_of_type(node, "import_require_clause")
        if clause is None:
            return None
        source = clause.child_by_field_name("source")
        if source is None or source.type != "string":
            return None
        alias = _child_of_type(clause, "identifier")
        return _record(
            node, source, ImportKind.IMPORT_EQUALS,
            default_import=_text(alias) if alias is not None else None,
        )
    if source.type != "string":
        return None

    default_import: Optional[str] = None
    namespace_import: Optional[str] = None
    named: List[str] = []
    clause = _child_of_type(node, "import_clause")
    if clause is not None:
        for child in clause.named_children:
            if child.type == "identifier":
                default_import = _text(child)
            elif child.type == "named_imports":
                named.extend(_specifier_names(child, "import_specifier"))
            elif child.type == "namespace_import":
                ident = _child_of_type(child, "identifier")
                if ident is not None:
                    namespace_import = _text(ident)

    return _record(
        node, source, ImportKind.IMPORT,
        default_import=default_import,
        named_imports=tuple(named),
        namespace_import=namespace_import,
        type_only=_has_token(node, "type"),
    )


def _from_export_statement(node: Any) -> Optional[ImportRecord]:
    source = node.child_by_field_name("source")
    if source is None or source.type != "string":
        return None

    namespace_import: Optional[str] = None
    named: List[str] = []
    for child in node.children:
        if child.type == "*":
            namespace_import = "*"
        elif child.type == "namespace_export":
            ident = child.named_children[-1] if child.named_children else None
            namespace_import = _text(ident) if ident is not None else "*"
        elif child.type == "export_clause":
            named.extend(_specifier_names(child, "export_specifier"))

    return _record(
        node, source, ImportKind.EXPORT,
        named_imports=tuple(named),
        namespace_import=namespace_import,
        type_only=_has_token(node, "type"),
    )


def _from_call_expression(node: Any) -> Optional[ImportRecord]:
    func = node.child_by_field_name("function")
    if func is None:
        return None
    if func.type == "import":
        kind = ImportKind.DYNAMIC_IMPORT
    elif func.type == "identifier" and _text(func) == "require":
        kind = ImportKind.REQUIRE
    else:
        return None

    args = node.child_by_field_name("arguments")
    if args is None or args.type != "arguments":
        return None
    first = next((c for c in args.named_children if c.type != "comment"), None)
    if first is None or first.type != "string":
        return None
    return _record(node, first, kind)


# ===================================================================
# Diagnostics
# ===================================================================

def _collect_diagnostics(root: Any) -> List[Diagnostic]:
    diagnostics: List[Diagnostic] = []
    stack = [root]
    while stack:
        node = stack.pop()
        line, column = node.start_point[0] + 1, node.start_point[1] + 1
        if node.is_missing:
            diagnostics.append(Diagnostic(line, column, f"Missing '{node.type}'"))
        elif node.type == "ERROR":
            snippet = _text(node).strip().splitlines()
            near = snippet[0][:40] if snippet else ""
            diagnostics.append(Diagnostic(line, column, f"Unexpected syntax near '{near}'"))
        stack.extend(reversed([c for c in node.children if c.has_error or c.is_missing]))

    if not diagnostics:
        diagnostics.append(Diagnostic(1, 1, "Syntax error"))
    return diagnostics


# ===================================================================
# Node helpers
# ===================================================================

_ESCAPE_RE = re.compile(r"\\(u\{[0-9a-fA-F]+\}|u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|\r\n|[\s\S])")
_SIMPLE_ESCAPES = {
    "n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "v": "\v", "0": "\0",
    "\n": "", "\r\n": "", "\r": "",
}


def _unescape(match: "re.Match[str]") -> str:
    seq = match.group(1)
    if seq.startswith("u{"):
        return chr(int(seq[2:-1], 16))
    if len(seq) > 1 and seq[0] in "ux":
        return chr(int(seq[1:], 16))
    return _SIMPLE_ESCAPES.get(seq, seq)


def _string_value(node: Any) -> str:
    raw = _text(node)
    if len(raw) >= 2 and raw[0] in "'\"" and raw[-1] == raw[0]:
        raw = raw[1:-1]
    return _ESCAPE_RE.sub(_unescape, raw)


def _record(node: Any, source: Any, kind: ImportKind, **bindings: Any) -> ImportRecord:
    return ImportRecord(
        specifier=_string_value(source),
        kind=kind,
        line=node.start_point[0] + 1,
        column=node.start_point[1] + 1,
        **bindings,
    )


def _specifier_names(container: Any, specifier_type: str) -> List[str]:
    names: List[str] = []
    for spec in container.named_children:
        if spec.type != specifier_type:
            continue
        name = spec.child_by_field_name("name")
        if name is not None:
            names.append(_string_value(name) if name.type == "string" else _text(name))
    return names


def _child_of_type(node: Any, node_type: str) -> Optional[Any]:
    for child in node.children:
        if child.type == node_type:
            return child
    return None


def _has_token(node: Any, token: str) -> bool:
    return any(not c.is_named and c.type == token for c in node.children)


def _text(node: Any) -> str:
    return node.text.decode("utf-8", errors="replace")
