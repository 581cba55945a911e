"""
grammar.py - Shared Parsimonious rules for Rust surface syntax
===============================================================

Both the declaration front end (:mod:`implnew.parser`) and the override
expression checker (:mod:`implnew.expr`) are PEG grammars built on the
same lexical layer: whitespace and comments, identifiers, literals, raw
token trees and a permissive type-expression sub-grammar.  The rules live
here as text and are appended to each grammar, so each rule name has one
definition.

Types are recognised structurally (balanced ``<>``, ``()``, ``[]`` groups
around words) but never interpreted: the generator only needs to know
where a type starts and ends so it can copy it verbatim.
"""

from __future__ import annotations

from typing import Any, List, Optional

from parsimonious.exceptions import ParseError
from parsimonious.nodes import Node

from implnew.errors import SourceSpan

__all__ = [
    "COMMON_RULES",
    "normalize_ws",
    "node_span",
    "optional",
    "many",
    "describe_parse_error",
]


COMMON_RULES = r"""
    # ─────────────────────────────────────────────────────────────
    # Whitespace & comments (doc comments are plain comments here)
    # ─────────────────────────────────────────────────────────────

    _               = ~r"(?:\s+|//[^\n]*|/\*[\s\S]*?\*/)*"
    __              = ~r"(?:\s+|//[^\n]*|/\*[\s\S]*?\*/)+"

    # ─────────────────────────────────────────────────────────────
    # Lexical atoms
    # ─────────────────────────────────────────────────────────────

    identifier      = ~r"(?:r#)?[A-Za-z_][A-Za-z0-9_]*"
    lifetime        = ~r"'(?:r#)?[A-Za-z_][A-Za-z0-9_]*"
    literal         = string_lit / char_lit / number
    string_lit      = raw_string / plain_string
    raw_string      = ~r"[bc]?r(#*)\"[\s\S]*?\"\1"
    plain_string    = ~r"[bc]?\"(?:[^\"\\]|\\[\s\S])*\""
    char_lit        = ~r"b?'(?:\\(?:x[0-9a-fA-F]{2}|u\{[0-9a-fA-F]{1,6}\}|.)|[^\\'\n])'"
    number          = ~r"(?:0x[0-9a-fA-F_]+|0o[0-7_]+|0b[01_]+|[0-9][0-9_]*(?:\.[0-9][0-9_]*)?(?:[eE][+-]?[0-9_]+)?)(?:[iu](?:8|16|32|64|128|size)|f32|f64)?"

    # ─────────────────────────────────────────────────────────────
    # Token trees (attribute payloads, macro bodies, skipped items)
    # ─────────────────────────────────────────────────────────────

    delimited_tt    = paren_tt / bracket_tt / brace_tt
    paren_tt        = "(" tt* _ ")"
    bracket_tt      = "[" tt* _ "]"
    brace_tt        = "{" tt* _ "}"
    tt              = _ (delimited_tt / string_lit / char_lit / lifetime / tt_atom)
    tt_atom         = ~r"[^()\[\]{}\"'\s/]+" / "/"

    # ─────────────────────────────────────────────────────────────
    # Types (structural only)
    # ─────────────────────────────────────────────────────────────

    type_expr       = type_part (_ type_part)*
    type_part       = angled / parened / bracketed / arrow / "+" / type_word
    bound           = bound_part (_ bound_part)*
    bound_part      = angled / parened / bracketed / arrow / type_word
    angled          = "<" (_ angle_item)* _ ">"
    angle_item      = angled / parened / bracketed / brace_tt / arrow / "," / "=" / "+" / literal / type_word
    parened         = "(" (_ paren_item)* _ ")"
    paren_item      = angled / parened / bracketed / arrow / "," / "+" / type_word
    bracketed       = "[" (_ bracket_item)* (_ ";" array_len)? _ "]"
    bracket_item    = angled / parened / bracketed / brace_tt / arrow / "+" / literal / type_word
    array_len       = tt*
    arrow           = "->"
    type_word       = ~r"(?:[A-Za-z0-9_'&*?!]|::)+"
"""


def normalize_ws(text: str) -> str:
    """Collapse every whitespace run to one space and strip the ends."""
    return " ".join(text.split())


def node_span(node: Node, file: str = "") -> SourceSpan:
    """Return the :class:`SourceSpan` covering *node* in its full text."""
    return SourceSpan.from_offsets(node.full_text, node.start, node.end, file=file)


def optional(value: Any) -> Optional[Any]:
    """Unwrap the visited result of an ``x?`` node (``None`` when absent)."""
    if isinstance(value, list):
        return value[0] if value else None
    return None


def many(value: Any) -> List[Any]:
    """Unwrap the visited result of an ``x*`` node (``[]`` when absent)."""
    return value if isinstance(value, list) else []


def describe_parse_error(exc: ParseError) -> str:
    """Short human description of a parsimonious failure."""
    text = exc.text or ""
    found = text[exc.pos:exc.pos + 20].split("\n", 1)[0]
    if not found:
        return "unexpected end of input"
    return f"unexpected `{found}`"
