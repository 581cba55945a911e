"""
expr.py - Override expression checker
=====================================

``#[default(EXPR)]`` must hold exactly one Rust expression.  The
generator never evaluates or type-checks ``EXPR`` (that is rustc's job
once the code is spliced), but it does reject payloads that are not an
expression at all, such as ``#[default()]``, ``#[default(a, b)]`` or
``#[default(let x = 1)]``.

The grammar below recognises the expression forms that appear as field
defaults in practice: literals, paths (with turbofish and qualified
``<T as Trait>::`` prefixes), calls, method chains, field and tuple
access, indexing, ``?``, unary and binary operators, ranges (including the
bare ``..``), ``as`` casts, struct literals (with ``..base``), tuples,
arrays, closures, ``return``/``break``/``continue``, macro invocations and
block-like expressions (``{}``, ``if``, ``match``, ``unsafe``, ``async``,
``loop``, optionally labelled).  The insides of macro invocations and
blocks are matched as balanced token trees and not checked further.

Usage::

    from implnew.expr import check_expression

    check_expression('"empty_token".to_string()')   # -> the same text
    check_expression("a, b")                         # raises ExpressionError
"""

from __future__ import annotations

import logging

from parsimonious.exceptions import ParseError
from parsimonious.grammar import Grammar

from implnew.grammar import COMMON_RULES, describe_parse_error

__all__ = ["ExpressionError", "check_expression", "EXPR_GRAMMAR"]

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════
#  EXPRESSION GRAMMAR (Parsimonious PEG)
# ═══════════════════════════════════════════════════════════════════

EXPR_GRAMMAR = Grammar(r"""
    root            = _ expression _

    expression      = closure / jump_expr / binary

    # ─────────────────────────────────────────────────────────────
    # Closures
    # ─────────────────────────────────────────────────────────────

    closure         = closure_move? closure_params _ closure_body
    closure_move    = "move" __
    closure_params  = "||" / ("|" _ closure_param_list? _ "|")
    closure_param_list = closure_param (_ "," _ closure_param)* (_ ",")?
    closure_param   = ~r"[^|,]+"
    closure_body    = (arrow _ type_expr _ brace_tt) / expression

    # ─────────────────────────────────────────────────────────────
    # Operators
    # ─────────────────────────────────────────────────────────────

    binary          = (cast (_ binop _ cast)* range_tail?) / range_full
    range_full      = ".." !"="
    range_tail      = _ ".."
    binop           = "..=" / ".." / "||" / "&&" / "==" / "!=" / "<=" / ">="
                    / "<<" / ">>" / "<" / ">" / "|" / "^" / "&" / "+" / "-"
                    / "*" / "/" / "%"
    cast            = unary (__ "as" __ cast_type)*
    cast_type       = cast_ptr? path_type
    cast_ptr        = ("*" _ ("const" / "mut") __) / ("&" _ ("mut" __)?)
    path_type       = ~r"(?:::)?[A-Za-z_][A-Za-z0-9_]*(?:::[A-Za-z_][A-Za-z0-9_]*)*" (_ angled)?
    unary           = prefix* postfix
    prefix          = (ref_mut / "&&" / "&" / "!" / "-" / "*" / "..=" / "..") _
    ref_mut         = "&" _ "mut" __

    # ─────────────────────────────────────────────────────────────
    # Control flow
    # ─────────────────────────────────────────────────────────────

    jump_expr       = jump_kw (_ expression)?
    jump_kw         = ~r"return\b" / (~r"break\b" (_ lifetime)?) / (~r"continue\b" (_ lifetime)?)
    labelled        = lifetime _ ":" !":" _ (keyword_expr / brace_tt)

    # ─────────────────────────────────────────────────────────────
    # Postfix chains
    # ─────────────────────────────────────────────────────────────

    postfix         = primary postfix_op*
    postfix_op      = _ ("?" / dot_access / arg_list / index)
    dot_access      = "." _ (tuple_index / identifier) (_ "::" _ angled)?
    tuple_index     = ~r"[0-9]+"
    arg_list        = "(" _ expr_list? _ ")"
    index           = "[" _ expression _ "]"
    expr_list       = expression (_ "," _ expression)* (_ ",")?

    # ─────────────────────────────────────────────────────────────
    # Primaries
    # ─────────────────────────────────────────────────────────────

    primary         = labelled / float_dot / literal / keyword_expr / macro_call / struct_literal
                    / path_expr / paren_expr / array_expr / brace_tt

    float_dot       = ~r"[0-9][0-9_]*\.(?![.A-Za-z_0-9])"

    keyword_expr    = keyword head_tt* _ brace_tt else_tail?
    keyword         = ~r"(?:if|match|while|for|loop|unsafe|async(?:\s+move)?)\b"
    head_tt         = _ (paren_tt / bracket_tt / string_lit / char_lit / lifetime / head_atom)
    head_atom       = ~r"[^()\[\]{}\"'\s/]+" / "/"
    else_tail       = _ ~r"else\b" _ (keyword_expr / brace_tt)

    macro_call      = path_expr _ "!" _ delimited_tt

    struct_literal  = path_expr _ "{" _ struct_body? _ "}"
    struct_body     = struct_base / (field_init (_ "," _ (struct_base / field_init))* (_ ",")?)
    struct_base     = ".." _ expression
    field_init      = (identifier / tuple_index) (_ ":" !":" _ expression)?

    path_expr       = path_start path_segment*
    path_start      = angled / (("::" _)? identifier)
    path_segment    = _ "::" _ (angled / identifier)

    paren_expr      = "(" _ expr_list? _ ")"
    array_expr      = "[" _ (array_repeat / expr_list)? _ "]"
    array_repeat    = expression _ ";" _ expression
""" + COMMON_RULES)


# ═══════════════════════════════════════════════════════════════════
#  PUBLIC API
# ═══════════════════════════════════════════════════════════════════

class ExpressionError(ValueError):
    """The text is not exactly one Rust expression.

    ``offset`` is the character offset of the failure inside the checked
    text (``-1`` when unknown).
    """

    def __init__(self, reason: str, offset: int = -1) -> None:
        super().__init__(reason)
        self.reason = reason
        self.offset = offset


def _top_level_comma(text: str) -> bool:
    """True when *text* contains a comma outside any bracket or string."""
    depth = 0
    in_string = False
    escaped = False
    for ch in text:
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch in "([{":
            depth += 1
        elif ch in ")]}":
            depth -= 1
        elif ch == "," and depth == 0:
            return True
    return False


def check_expression(text: str) -> str:
    """Validate that *text* is a single expression and return it stripped.

    Raises
    ------
    ExpressionError
        When *text* is empty, a comma-separated list, or not an
        expression.
    """
    stripped = text.strip()
    if not stripped:
        raise ExpressionError("expected an expression, found nothing")
    try:
        EXPR_GRAMMAR.parse(stripped)
    except ParseError as exc:
        logger.debug("expression rejected: %r (%s)", stripped, exc)
        if _top_level_comma(stripped):
            raise ExpressionError(
                "expected a single expression, found a comma-separated list",
                exc.pos,
            ) from exc
        raise ExpressionError(
            f"not a valid expression: {describe_parse_error(exc)} at offset {exc.pos}",
            exc.pos,
        ) from exc
    return stripped
