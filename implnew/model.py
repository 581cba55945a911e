"""implnew/model.py – Data model for constructor generation.

The front ends (:mod:`implnew.parser` for Rust text, :mod:`implnew.sexp` for
S-expression requests) produce a :class:`StructDecl`.  The core turns it into
:class:`FieldDescriptor` s, a :class:`ClassifiedFields` partition and finally
a :class:`ConstructorSpec`, which :mod:`implnew.codegen` renders.  The driver
wraps the outcome in an :class:`Expansion`.

Design invariants
-----------------
* Every node is a frozen dataclass (immutable after construction).
* Sequences are tuples, never lists.
* Type expressions, bounds and override expressions are opaque strings;
  they are passed through to the generated code and never interpreted.
* Field order is declaration order everywhere it is observable.

Module layout
-------------
§1  Raw front-end input (annotations, fields, generics, declarations)
§2  Resolved fields and their classification
§3  Synthesis result and expansion response
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional, Tuple

from implnew.errors import ErrorMessage, SourceSpan

__all__ = [
    "Visibility",
    "RawAnnotation",
    "RawField",
    "GenericKind",
    "GenericParam",
    "GenericClause",
    "StructShape",
    "StructDecl",
    "FieldDescriptor",
    "ClassifiedFields",
    "InitKind",
    "Initializer",
    "Parameter",
    "ConstructorSpec",
    "Expansion",
]

#: Span used for nodes that were not read from a source text.
NO_SPAN = SourceSpan()


# ════════════════════════════════════════════════════════════════════════
# §1  Raw front-end input
# ════════════════════════════════════════════════════════════════════════


class Visibility(Enum):
    """Only a bare ``pub`` is PUBLIC; restricted visibilities are not."""

    PUBLIC = auto()
    NON_PUBLIC = auto()


@dataclass(frozen=True, slots=True)
class RawAnnotation:
    """One outer attribute attached to a field, e.g. ``#[default(5)]``.

    ``delimiter`` is ``"("``, ``"["``, ``"{"``, ``"="`` or ``""`` when the
    attribute has no arguments; ``tokens`` is the raw text between the
    delimiters (or after ``=``).
    """

    path: str
    delimiter: str = ""
    tokens: str = ""
    span: SourceSpan = field(default=NO_SPAN, repr=False)

    def pretty(self) -> str:
        if self.delimiter == "":
            return f"#[{self.path}]"
        if self.delimiter == "=":
            return f"#[{self.path} = {self.tokens}]"
        closing = {"(": ")", "[": "]", "{": "}"}[self.delimiter]
        return f"#[{self.path}{self.delimiter}{self.tokens}{closing}]"


@dataclass(frozen=True, slots=True)
class RawField:
    """A named field as written in the declaration."""

    name: str
    visibility: Visibility
    type_expr: str
    annotations: Tuple[RawAnnotation, ...] = ()
    visibility_text: str = ""
    span: SourceSpan = field(default=NO_SPAN, repr=False)


class GenericKind(Enum):
    LIFETIME = auto()
    TYPE = auto()
    CONST = auto()


@dataclass(frozen=True, slots=True)
class GenericParam:
    """One generic parameter of the struct.

    ``name`` includes the leading apostrophe for lifetimes (``'a``).
    ``default`` is kept for fidelity of the model but never emitted on
    the ``impl`` header.
    """

    kind: GenericKind
    name: str
    bounds: Tuple[str, ...] = ()
    const_type: str = ""
    default: Optional[str] = None

    def declaration(self) -> str:
        """Render the parameter as it appears in ``impl<...>``."""
        if self.kind is GenericKind.CONST:
            return f"const {self.name}: {self.const_type}"
        if self.bounds:
            return f"{self.name}: {' + '.join(self.bounds)}"
        return self.name


@dataclass(frozen=True, slots=True)
class GenericClause:
    """Struct-level generic parameters plus where-predicates, in order."""

    params: Tuple[GenericParam, ...] = ()
    where_predicates: Tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.params and not self.where_predicates


class StructShape(Enum):
    NAMED = "struct with named fields"
    TUPLE = "tuple struct"
    UNIT = "unit struct"
    ENUM = "enum"
    UNION = "union"


@dataclass(frozen=True, slots=True)
class StructDecl:
    """A type declaration handed to the generator.

    ``fields`` is only populated for ``StructShape.NAMED``.
    ``source_start``/``source_end`` are character offsets of the whole
    item (attributes included) when it was read from Rust text, and ``-1``
    otherwise.
    """

    name: str
    shape: StructShape = StructShape.NAMED
    fields: Tuple[RawField, ...] = ()
    generics: GenericClause = field(default_factory=GenericClause)
    derives: Tuple[str, ...] = ()
    span: SourceSpan = field(default=NO_SPAN, repr=False)
    source_start: int = field(default=-1, repr=False)
    source_end: int = field(default=-1, repr=False)

    def derives_trait(self, name: str) -> bool:
        """True when ``#[derive(...)]`` lists *name* (by last path segment)."""
        return any(d.rsplit("::", 1)[-1] == name for d in self.derives)


# ════════════════════════════════════════════════════════════════════════
# §2  Resolved fields
# ════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class FieldDescriptor:
    """Normalized field: ``default_override`` is only set on non-public fields."""

    name: str
    visibility: Visibility
    type_expr: str
    default_override: Optional[str] = None
    span: SourceSpan = field(default=NO_SPAN, repr=False)

    @property
    def is_public(self) -> bool:
        return self.visibility is Visibility.PUBLIC


@dataclass(frozen=True, slots=True)
class ClassifiedFields:
    """Public fields become parameters; the rest are auto-initialized."""

    parameters: Tuple[FieldDescriptor, ...] = ()
    auto_fields: Tuple[FieldDescriptor, ...] = ()
    order: Tuple[str, ...] = ()

    def merged(self) -> Tuple[FieldDescriptor, ...]:
        """Rebuild the original declaration order from both partitions."""
        by_name = {f.name: f for f in self.parameters + self.auto_fields}
        return tuple(by_name[name] for name in self.order)


# ════════════════════════════════════════════════════════════════════════
# §3  Synthesis result
# ════════════════════════════════════════════════════════════════════════


class InitKind(Enum):
    FORWARD = auto()   # public field, taken from the parameter
    OVERRIDE = auto()  # #[default(EXPR)]
    DEFAULT = auto()   # Default::default()


@dataclass(frozen=True, slots=True)
class Initializer:
    field_name: str
    kind: InitKind
    expression: str = ""

    def render(self) -> str:
        if self.kind is InitKind.FORWARD:
            return self.field_name
        return f"{self.field_name}: {self.expression}"


@dataclass(frozen=True, slots=True)
class Parameter:
    name: str
    type_expr: str

    def render(self) -> str:
        return f"{self.name}: {self.type_expr}"


@dataclass(frozen=True, slots=True)
class ConstructorSpec:
    """Everything needed to render one generated ``impl`` block."""

    type_name: str
    generics: GenericClause
    parameters: Tuple[Parameter, ...]
    initializers: Tuple[Initializer, ...]
    fn_name: str = "new"
    fn_visibility: str = "pub"
    must_use: bool = True


@dataclass(frozen=True)
class Expansion:
    """Response for one declaration: generated code, or a diagnostic."""

    struct_name: str
    spec: Optional[ConstructorSpec] = None
    code: Optional[str] = None
    diagnostic: Optional[ErrorMessage] = None
    decl: Optional[StructDecl] = field(default=None, repr=False)

    @property
    def ok(self) -> bool:
        return self.diagnostic is None and self.code is not None
