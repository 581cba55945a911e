"""
parser.py - Rust declaration front end
======================================

Reads Rust source text and produces :class:`~implnew.model.StructDecl`
requests for the generator.

Two entry points:

``parse_struct(text)``
    Parse exactly one item declaration (``struct``, ``enum`` or ``union``,
    with its outer attributes).

``parse_items(text)``
    Scan a whole source file.  Struct, enum and union declarations are
    returned in source order (including those inside inline ``mod``
    blocks); every other item (``fn``, ``impl``, ``use``, ``const``,
    macro invocations, ...) is skipped as a balanced token tree.

Only the parts the generator needs are modelled: names, visibility,
generic parameters with their bounds, where-predicates, field types
(kept as text) and outer attributes (kept as raw payloads).  Comments
are skipped wherever whitespace is allowed.

Usage::

    from implnew.parser import parse_struct

    decl = parse_struct('''
        #[derive(ImplNew)]
        struct User {
            pub name: String,
            #[default(3)]
            retries: u8,
        }
    ''')
    decl.fields[1].annotations[0].tokens   # -> "3"

Depends on:
    - parsimonious (PEG parser)
"""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from typing import Any, List, Tuple

from parsimonious.exceptions import IncompleteParseError, ParseError, VisitationError
from parsimonious.grammar import Grammar
from parsimonious.nodes import Node, NodeVisitor

from implnew.errors import (
    DeclarationSyntaxError,
    ImplNewError,
    InternalError,
    SourceSpan,
)
from implnew.grammar import (
    COMMON_RULES,
    describe_parse_error,
    many,
    node_span,
    normalize_ws,
    optional,
)
from implnew.model import (
    GenericClause,
    GenericKind,
    GenericParam,
    RawAnnotation,
    RawField,
    StructDecl,
    StructShape,
    Visibility,
)

__all__ = ["RUST_GRAMMAR", "DeclarationBuilder", "parse_struct", "parse_items"]

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════
#  PART 1 - DECLARATION GRAMMAR (Parsimonious PEG)
# ═══════════════════════════════════════════════════════════════════

RUST_GRAMMAR = Grammar(r"""
    # ─────────────────────────────────────────────────────────────
    # Top-Level Structure
    # ─────────────────────────────────────────────────────────────

    source_file     = _ inner_attr* item* _
    single          = _ attributed_item _
    item            = _ attributed_item
    attributed_item = (outer_attr _)* (visibility _)? item_kind
    item_kind       = struct_item / union_item / enum_item / module_item / other_item

    inner_attr      = "#" _ "!" _ bracket_tt _
    outer_attr      = "#" _ "[" _ attr_path _ attr_input? _ "]"
    attr_path       = ~r"(?:::\s*)?(?:r#)?[A-Za-z_][A-Za-z0-9_]*(?:\s*::\s*(?:r#)?[A-Za-z_][A-Za-z0-9_]*)*"
    attr_input      = delimited_tt / attr_eq
    attr_eq         = "=" tt+

    visibility      = pub_kw vis_restriction?
    pub_kw          = ~r"pub\b"
    vis_restriction = _ paren_tt

    # ─────────────────────────────────────────────────────────────
    # Declarations
    # ─────────────────────────────────────────────────────────────

    struct_item     = ~r"struct\b" _ identifier _ generic_params? _ struct_rest
    struct_rest     = named_body / tuple_body / unit_body
    named_body      = where_clause? _ "{" _ field_list? _ "}"
    tuple_body      = paren_tt _ where_clause? _ ";"
    unit_body       = where_clause? _ ";"

    union_item      = ~r"union\b" _ identifier _ generic_params? _ where_clause? _ brace_tt
    enum_item       = ~r"enum\b" _ identifier _ generic_params? _ where_clause? _ brace_tt

    module_item     = ~r"mod\b" _ identifier _ "{" _ inner_attr* item* _ "}"

    other_item      = !item_keyword skip_tt* _ (other_braced / ";")
    other_braced    = brace_tt (_ ";")?
    item_keyword    = ~r"(?:struct|enum)\b|union\s+(?:r#)?[A-Za-z_]"
    skip_tt         = _ (paren_tt / bracket_tt / string_lit / char_lit / lifetime / skip_atom)
    skip_atom       = ~r"[^()\[\]{}\"'\s/;]+" / "/"

    # ─────────────────────────────────────────────────────────────
    # Fields
    # ─────────────────────────────────────────────────────────────

    field_list      = field (_ "," _ field)* (_ ",")?
    field           = (outer_attr _)* (visibility _)? identifier _ ":" !":" _ type_expr

    # ─────────────────────────────────────────────────────────────
    # Generics
    # ─────────────────────────────────────────────────────────────

    generic_params  = "<" _ generic_list? _ ">"
    generic_list    = generic_param (_ "," _ generic_param)* (_ ",")?
    generic_param   = (param_attr _)* generic_kind
    param_attr      = "#" _ bracket_tt
    generic_kind    = lifetime_param / const_param / type_param
    lifetime_param  = lifetime (_ ":" _ lifetime_bounds)?
    lifetime_bounds = lifetime (_ "+" _ lifetime)*
    const_param     = ~r"const\b" _ identifier _ ":" _ type_expr (_ "=" _ const_default)?
    const_default   = ~r"-?" (brace_tt / literal / identifier)
    type_param      = identifier (_ ":" _ bounds?)? (_ "=" _ type_expr)?
    bounds          = bound (_ "+" _ bound)* (_ "+")?

    where_clause    = ~r"where\b" _ where_pred (_ "," _ where_pred)* (_ ",")?
    where_pred      = type_expr _ ":" _ bounds?
""" + COMMON_RULES)


_VIS_SPACE_RE = re.compile(r"\s*([()])\s*")
_COMMENT_RE = re.compile(r'("(?:[^"\\]|\\[\s\S])*")|//[^\n]*|/\*[\s\S]*?\*/')


def _clean(text: str) -> str:
    """Drop comments (outside string literals) and collapse whitespace."""
    return normalize_ws(_COMMENT_RE.sub(lambda m: m.group(1) or " ", text))


def _comma_list(first: Any, rest: Any) -> List[Any]:
    """Collect ``first (_ "," _ item)*`` into a flat list."""
    return [first] + [seq[-1] for seq in many(rest)]


# ═══════════════════════════════════════════════════════════════════
#  PART 2 - VISITOR (Parse Tree → StructDecl)
# ═══════════════════════════════════════════════════════════════════

class DeclarationBuilder(NodeVisitor):
    """Transforms a Parsimonious parse tree into ``StructDecl`` requests."""

    unwrapped_exceptions = (ImplNewError,)

    def __init__(self, filename: str = "") -> None:
        self.filename = filename

    def generic_visit(self, node, visited_children):
        return visited_children or node

    def _span(self, node: Node) -> SourceSpan:
        return node_span(node, self.filename)

    # ─────────────────────────────────────────────────────────────
    # Items
    # ─────────────────────────────────────────────────────────────

    def visit_source_file(self, node, visited_children):
        _, _, items, _ = visited_children
        return self._collect(many(items))

    def visit_single(self, node, visited_children):
        _, item, _ = visited_children
        return item

    def visit_item(self, node, visited_children):
        _, item = visited_children
        return item

    def visit_attributed_item(self, node, visited_children):
        attrs, _, item = visited_children
        if not isinstance(item, StructDecl):
            return item
        annotations = [pair[0] for pair in many(attrs)]
        return replace(
            item,
            derives=self._derives(annotations),
            source_start=node.start,
            source_end=node.end,
        )

    def visit_item_kind(self, node, visited_children):
        return visited_children[0]

    def visit_other_item(self, node, visited_children):
        return None

    def visit_module_item(self, node, visited_children):
        items = visited_children[7]
        return self._collect(many(items))

    @staticmethod
    def _collect(items: List[Any]) -> List[StructDecl]:
        decls: List[StructDecl] = []
        for item in items:
            if isinstance(item, StructDecl):
                decls.append(item)
            elif isinstance(item, list):
                decls.extend(item)
        return decls

    @staticmethod
    def _derives(annotations: List[RawAnnotation]) -> Tuple[str, ...]:
        names: List[str] = []
        for ann in annotations:
            if ann.path != "derive" or ann.delimiter != "(":
                continue
            for part in ann.tokens.split(","):
                name = "".join(_clean(part).split())
                if name:
                    names.append(name)
        return tuple(names)

    # ─────────────────────────────────────────────────────────────
    # Attributes & visibility
    # ─────────────────────────────────────────────────────────────

    def visit_outer_attr(self, node, visited_children):
        path = visited_children[4]
        attr_input = optional(visited_children[6])
        delimiter, tokens = attr_input if attr_input else ("", "")
        return RawAnnotation(
            path=path, delimiter=delimiter, tokens=tokens, span=self._span(node)
        )

    def visit_attr_path(self, node, visited_children):
        return "".join(node.text.split())

    def visit_attr_input(self, node, visited_children):
        inner = node.children[0]
        if inner.expr_name == "attr_eq":
            return "=", inner.text[1:].strip()
        text = inner.text
        return text[0], text[1:-1]

    def visit_visibility(self, node, visited_children):
        _, restriction = visited_children
        if optional(restriction) is None:
            return Visibility.PUBLIC, "pub"
        return Visibility.NON_PUBLIC, _VIS_SPACE_RE.sub(r"\1", _clean(node.text))

    # ─────────────────────────────────────────────────────────────
    # Declarations
    # ─────────────────────────────────────────────────────────────

    def visit_struct_item(self, node, visited_children):
        _, _, name, _, generics, _, rest = visited_children
        shape, fields, where = rest
        return StructDecl(
            name=name,
            shape=shape,
            fields=tuple(fields),
            generics=GenericClause(
                params=tuple(optional(generics) or ()), where_predicates=tuple(where)
            ),
            span=self._span(node.children[2]),
        )

    def visit_struct_rest(self, node, visited_children):
        return visited_children[0]

    def visit_named_body(self, node, visited_children):
        where, _, _, _, fields, _, _ = visited_children
        return StructShape.NAMED, optional(fields) or [], optional(where) or []

    def visit_tuple_body(self, node, visited_children):
        _, _, where, _, _ = visited_children
        return StructShape.TUPLE, [], optional(where) or []

    def visit_unit_body(self, node, visited_children):
        where, _, _ = visited_children
        return StructShape.UNIT, [], optional(where) or []

    def visit_union_item(self, node, visited_children):
        return self._opaque(node, visited_children, StructShape.UNION)

    def visit_enum_item(self, node, visited_children):
        return self._opaque(node, visited_children, StructShape.ENUM)

    def _opaque(self, node, visited_children, shape: StructShape) -> StructDecl:
        _, _, name, _, generics, _, where, _, _ = visited_children
        return StructDecl(
            name=name,
            shape=shape,
            generics=GenericClause(
                params=tuple(optional(generics) or ()),
                where_predicates=tuple(optional(where) or ()),
            ),
            span=self._span(node.children[2]),
        )

    # ─────────────────────────────────────────────────────────────
    # Fields
    # ─────────────────────────────────────────────────────────────

    def visit_field_list(self, node, visited_children):
        first, rest, _ = visited_children
        return _comma_list(first, rest)

    def visit_field(self, node, visited_children):
        attrs, vis, name, _, _, _, _, type_expr = visited_children
        vis_pair = optional(vis)
        visibility, vis_text = vis_pair[0] if vis_pair else (Visibility.NON_PUBLIC, "")
        return RawField(
            name=name,
            visibility=visibility,
            type_expr=type_expr,
            annotations=tuple(pair[0] for pair in many(attrs)),
            visibility_text=vis_text,
            span=self._span(node.children[2]),
        )

    # ─────────────────────────────────────────────────────────────
    # Generics
    # ─────────────────────────────────────────────────────────────

    def visit_generic_params(self, node, visited_children):
        _, _, params, _, _ = visited_children
        return optional(params) or []

    def visit_generic_list(self, node, visited_children):
        first, rest, _ = visited_children
        return _comma_list(first, rest)

    def visit_generic_param(self, node, visited_children):
        _, param = visited_children
        return param

    def visit_generic_kind(self, node, visited_children):
        return visited_children[0]

    def visit_lifetime_param(self, node, visited_children):
        name, bounds = visited_children
        seq = optional(bounds)
        return GenericParam(
            kind=GenericKind.LIFETIME,
            name=name,
            bounds=tuple(seq[3]) if seq else (),
        )

    def visit_lifetime_bounds(self, node, visited_children):
        first, rest = visited_children
        return _comma_list(first, rest)

    def visit_const_param(self, node, visited_children):
        _, _, name, _, _, _, const_type, default = visited_children
        seq = optional(default)
        return GenericParam(
            kind=GenericKind.CONST,
            name=name,
            const_type=const_type,
            default=seq[3] if seq else None,
        )

    def visit_const_default(self, node, visited_children):
        return _clean(node.text)

    def visit_type_param(self, node, visited_children):
        name, bounds, default = visited_children
        bounds_seq = optional(bounds)
        default_seq = optional(default)
        return GenericParam(
            kind=GenericKind.TYPE,
            name=name,
            bounds=tuple(optional(bounds_seq[3]) or ()) if bounds_seq else (),
            default=default_seq[3] if default_seq else None,
        )

    def visit_bounds(self, node, visited_children):
        first, rest, _ = visited_children
        return _comma_list(first, rest)

    def visit_where_clause(self, node, visited_children):
        _, _, first, rest, _ = visited_children
        return _comma_list(first, rest)

    def visit_where_pred(self, node, visited_children):
        lhs, _, _, _, bounds = visited_children
        parts = optional(bounds) or []
        if not parts:
            return f"{lhs}:"
        return f"{lhs}: {' + '.join(parts)}"

    # ─────────────────────────────────────────────────────────────
    # Leaves
    # ─────────────────────────────────────────────────────────────

    def visit_identifier(self, node, visited_children):
        return node.text

    def visit_lifetime(self, node, visited_children):
        return node.text

    def visit_type_expr(self, node, visited_children):
        return _clean(node.text)

    def visit_bound(self, node, visited_children):
        return _clean(node.text)


# ═══════════════════════════════════════════════════════════════════
#  PART 3 - PUBLIC API
# ═══════════════════════════════════════════════════════════════════

def _syntax_error(exc: ParseError, filename: str) -> DeclarationSyntaxError:
    text = exc.text or ""
    line, column = exc.line(), exc.column()
    err = DeclarationSyntaxError(
        f"cannot parse declaration: {describe_parse_error(exc)}",
        span=SourceSpan(file=filename, line=line, column=column),
    )
    source_lines = text.splitlines()
    if 0 < line <= len(source_lines):
        err.error_message.with_source(source_lines[line - 1])
    return err


def _visit(node: Node, filename: str) -> Any:
    try:
        return DeclarationBuilder(filename).visit(node)
    except VisitationError as exc:
        raise InternalError(f"declaration visitor failed: {exc}", cause=exc) from exc


def parse_struct(text: str, filename: str = "<string>") -> StructDecl:
    """Parse a single struct, enum or union declaration.

    Raises
    ------
    DeclarationSyntaxError
        *text* is not exactly one such declaration.
    """
    try:
        node = RUST_GRAMMAR["single"].parse(text)
    except ParseError as exc:
        raise _syntax_error(exc, filename) from exc
    decl = _visit(node, filename)
    if not isinstance(decl, StructDecl):
        raise DeclarationSyntaxError(
            "expected a struct, enum or union declaration",
            span=SourceSpan.from_offsets(text, 0, len(text), file=filename),
        )
    return decl


def parse_items(text: str, filename: str = "<string>") -> List[StructDecl]:
    """Parse a source file and return its struct/enum/union declarations."""
    try:
        node = RUST_GRAMMAR.parse(text)
    except IncompleteParseError as exc:
        # The top-level rule stops at the first item it cannot read; match
        # that item alone to report the position where it actually fails.
        try:
            RUST_GRAMMAR["item"].match(text, exc.pos)
        except ParseError as inner:
            raise _syntax_error(inner, filename) from exc
        raise _syntax_error(exc, filename) from exc
    except ParseError as exc:
        raise _syntax_error(exc, filename) from exc
    decls = _visit(node, filename)
    logger.debug("%s: found %d declaration(s)", filename, len(decls))
    return decls

