"""implnew/sexp.py – S-expression request/response codec.

A host-neutral way to ask for a constructor without writing Rust: the
request describes one declaration as nested lists, and the generated
:class:`~implnew.model.ConstructorSpec` can be dumped back the same way.

Design principles
-----------------
* **Head-symbol dispatch** – every list ``(tag ...)`` is dispatched on
  ``tag`` to a dedicated ``_parse_<tag>`` helper.
* **Strict shapes** – anything unexpected raises
  :class:`~implnew.errors.RequestSyntaxError`; nothing is silently ignored.
* Strings and bare symbols are interchangeable wherever a name or a piece
  of Rust text is expected, so ``(field value T pub)`` and
  ``(field value "T" pub)`` mean the same thing.

Request syntax
--------------
::

    (struct <name>
      (generics <param> ...)?
      (where "<predicate>" ...)?
      (field <name> "<type>" [pub | (vis "<text>")] (attr <path> "<tokens>")* ...)*)

    <param> = (type <name> "<bound>" ... [(default "<type>")])
            | (lifetime "'a" "'bound" ...)
            | (const <name> "<type>" [(default "<expr>")])

    (tuple-struct <name> ...) (unit-struct <name>) (enum <name>) (union <name>)

Several requests may appear one after another, or wrapped in
``(structs ...)``.  ``(attr default "5")`` stands for ``#[default(5)]``;
``(attr default)`` is the bare ``#[default]`` form.

Response syntax (``dump_spec``)
-------------------------------
::

    (constructor Wrapper
      (impl "impl<T> Wrapper<T>")
      (fn new pub must-use)
      (params (param value "T"))
      (init (forward value) (default count "Default::default()")))
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import sexpdata
from sexpdata import Quoted, Symbol

from implnew.errors import RequestSyntaxError, SourceSpan
from implnew.generics import extract_generics
from implnew.model import (
    ConstructorSpec,
    GenericClause,
    GenericKind,
    GenericParam,
    InitKind,
    RawAnnotation,
    RawField,
    StructDecl,
    StructShape,
    Visibility,
)

__all__ = ["parse_request", "dump_spec", "dump_specs"]

logger = logging.getLogger(__name__)

Sexp = Any  # Union[list, Symbol, Quoted, str, int, float]


# ═══════════════════════════════════════════════════════════════════════
#  Helpers
# ═══════════════════════════════════════════════════════════════════════

class _Reader:
    """Shape checks bound to one request file (for error spans)."""

    def __init__(self, filename: str) -> None:
        self.span = SourceSpan(file=filename)

    def error(self, message: str) -> RequestSyntaxError:
        return RequestSyntaxError(message, span=self.span)

    def sym_name(self, s: Sexp) -> str:
        if isinstance(s, Symbol):
            return s.value()
        raise self.error(f"expected symbol, got {type(s).__name__}: {s!r}")

    def expect_list(self, s: Sexp, *, min_len: int = 0, tag: str = "") -> list:
        if not isinstance(s, list):
            raise self.error(
                f"expected list{f' ({tag} ...)' if tag else ''}, "
                f"got {type(s).__name__}: {s!r}"
            )
        if len(s) < min_len:
            raise self.error(
                f"({tag or '...'}) needs at least {min_len - 1} argument(s), "
                f"got {len(s) - 1}"
            )
        return s

    def head(self, s: Sexp) -> str:
        form = self.expect_list(s)
        if not form:
            raise self.error("unexpected empty list")
        return self.sym_name(form[0])

    def as_str(self, s: Sexp) -> str:
        """Coerce *s* to text: accepts strings, symbols, numbers and ``'a``."""
        if isinstance(s, Symbol):
            return s.value()
        if isinstance(s, str):
            return s
        if isinstance(s, Quoted):
            return "'" + self.as_str(s.x)
        if isinstance(s, (int, float)) and not isinstance(s, bool):
            return str(s)
        raise self.error(f"expected string or symbol, got {type(s).__name__}: {s!r}")


# ═══════════════════════════════════════════════════════════════════════
#  Request parsers
# ═══════════════════════════════════════════════════════════════════════

_SHAPES: Dict[str, StructShape] = {
    "struct": StructShape.NAMED,
    "tuple-struct": StructShape.TUPLE,
    "unit-struct": StructShape.UNIT,
    "enum": StructShape.ENUM,
    "union": StructShape.UNION,
}


def _parse_decl(r: _Reader, form: list) -> StructDecl:
    tag = r.head(form)
    r.expect_list(form, min_len=2, tag=tag)
    name = r.as_str(form[1])
    shape = _SHAPES[tag]

    params: List[GenericParam] = []
    where: List[str] = []
    fields: List[RawField] = []
    for clause in form[2:]:
        kind = r.head(clause)
        if kind == "generics":
            params.extend(_parse_generic(r, p) for p in clause[1:])
        elif kind == "where":
            where.extend(r.as_str(p) for p in clause[1:])
        elif kind == "field":
            if shape is not StructShape.NAMED:
                raise r.error(f"({tag} {name}) cannot have named fields")
            fields.append(_parse_field(r, clause))
        else:
            raise r.error(f"unknown clause ({kind} ...) in ({tag} {name})")

    return StructDecl(
        name=name,
        shape=shape,
        fields=tuple(fields),
        generics=GenericClause(params=tuple(params), where_predicates=tuple(where)),
        span=r.span,
    )


def _parse_generic(r: _Reader, form: Sexp) -> GenericParam:
    kind = r.head(form)
    r.expect_list(form, min_len=2, tag=kind)
    name = r.as_str(form[1])
    rest, default = _split_default(r, form[2:])

    if kind == "lifetime":
        if default is not None:
            raise r.error(f"lifetime {name} cannot have a default")
        if not name.startswith("'"):
            name = "'" + name
        return GenericParam(
            GenericKind.LIFETIME, name, bounds=tuple(r.as_str(b) for b in rest)
        )
    if kind == "type":
        return GenericParam(
            GenericKind.TYPE,
            name,
            bounds=tuple(r.as_str(b) for b in rest),
            default=default,
        )
    if kind == "const":
        if len(rest) != 1:
            raise r.error(f"(const {name} ...) needs exactly one type")
        return GenericParam(
            GenericKind.CONST, name, const_type=r.as_str(rest[0]), default=default
        )
    raise r.error(f"unknown generic parameter kind ({kind} ...)")


def _split_default(r: _Reader, items: list):
    rest: List[Sexp] = []
    default: Optional[str] = None
    for item in items:
        if isinstance(item, list) and item and r.head(item) == "default":
            r.expect_list(item, min_len=2, tag="default")
            default = r.as_str(item[1])
        else:
            rest.append(item)
    return rest, default


def _parse_field(r: _Reader, form: list) -> RawField:
    r.expect_list(form, min_len=3, tag="field")
    name = r.as_str(form[1])
    type_expr = r.as_str(form[2])
    visibility, vis_text = Visibility.NON_PUBLIC, ""
    annotations: List[RawAnnotation] = []

    for item in form[3:]:
        if isinstance(item, Symbol):
            flag = item.value()
            if flag != "pub":
                raise r.error(f"unknown flag {flag!r} on field {name}")
            visibility, vis_text = Visibility.PUBLIC, "pub"
            continue
        tag = r.head(item)
        if tag == "vis":
            r.expect_list(item, min_len=2, tag="vis")
            vis_text = r.as_str(item[1])
            visibility = (
                Visibility.PUBLIC if vis_text == "pub" else Visibility.NON_PUBLIC
            )
        elif tag == "attr":
            annotations.append(_parse_attr(r, item))
        else:
            raise r.error(f"unknown field clause ({tag} ...) on field {name}")

    return RawField(
        name=name,
        visibility=visibility,
        type_expr=type_expr,
        annotations=tuple(annotations),
        visibility_text=vis_text,
        span=r.span,
    )


def _parse_attr(r: _Reader, form: list) -> RawAnnotation:
    r.expect_list(form, min_len=2, tag="attr")
    path = r.as_str(form[1])
    if len(form) == 2:
        return RawAnnotation(path=path, span=r.span)
    return RawAnnotation(
        path=path,
        delimiter="(",
        tokens=" ".join(r.as_str(t) for t in form[2:]),
        span=r.span,
    )


def parse_request(text: str, filename: str = "<string>") -> List[StructDecl]:
    """Parse one or more S-expression requests into declarations.

    Raises
    ------
    RequestSyntaxError
        The text is not valid S-expression syntax, or a form has the wrong
        shape.
    """
    r = _Reader(filename)
    # sexpdata reads a single form; wrap so several requests may follow
    # each other.  nil/true/false stay plain symbols.
    try:
        forms = sexpdata.loads(f"({text}\n)", nil=None, true=None, false=None)
    except Exception as e:
        raise RequestSyntaxError(
            f"S-expression syntax error: {e}", span=r.span, cause=e
        ) from e

    decls: List[StructDecl] = []
    for form in forms:
        tag = r.head(form)
        if tag == "structs":
            items = form[1:]
        else:
            items = [form]
        for item in items:
            kind = r.head(item)
            if kind not in _SHAPES:
                raise r.error(f"unknown request form ({kind} ...)")
            decls.append(_parse_decl(r, item))

    logger.debug("%s: %d request(s)", filename, len(decls))
    return decls


# ═══════════════════════════════════════════════════════════════════════
#  Response rendering
# ═══════════════════════════════════════════════════════════════════════

_INIT_TAGS: Dict[InitKind, str] = {
    InitKind.FORWARD: "forward",
    InitKind.OVERRIDE: "override",
    InitKind.DEFAULT: "default",
}


def _spec_to_sexp(spec: ConstructorSpec) -> list:
    signature = extract_generics(spec.generics)
    fn_form: List[Sexp] = [Symbol("fn"), Symbol(spec.fn_name)]
    if spec.fn_visibility:
        fn_form.append(spec.fn_visibility)
    if spec.must_use:
        fn_form.append(Symbol("must-use"))

    inits: List[Sexp] = [Symbol("init")]
    for init in spec.initializers:
        entry: List[Sexp] = [Symbol(_INIT_TAGS[init.kind]), Symbol(init.field_name)]
        if init.kind is not InitKind.FORWARD:
            entry.append(init.expression)
        inits.append(entry)

    return [
        Symbol("constructor"),
        Symbol(spec.type_name),
        [Symbol("impl"), signature.impl_header(spec.type_name)],
        fn_form,
        [Symbol("params")]
        + [[Symbol("param"), Symbol(p.name), p.type_expr] for p in spec.parameters],
        inits,
    ]


def dump_spec(spec: ConstructorSpec) -> str:
    """Render *spec* as a single-line S-expression."""
    return sexpdata.dumps(_spec_to_sexp(spec))


def dump_specs(specs: List[ConstructorSpec]) -> str:
    """One :func:`dump_spec` line per spec."""
    return "\n".join(dump_spec(s) for s in specs)
