"""Generic signature extraction for the generated ``impl`` block.

Mirrors what ``syn::Generics::split_for_impl`` hands to a derive macro:

* ``impl_generics``  – ``<'a: 'b, T: Clone + Debug, const N: usize>``
* ``type_generics``  – ``<'a, T, N>``
* ``where_clause``   – ``where T: Default``

Names, bounds and order are exactly those of the struct, so the ``impl``
is generic over the same parameters with the same constraints.
Defaults (``T = u32``) are dropped because Rust rejects them on ``impl``.
"""

from __future__ import annotations

from dataclasses import dataclass

from implnew.model import GenericClause

__all__ = ["GenericSignature", "extract_generics"]


@dataclass(frozen=True, slots=True)
class GenericSignature:
    impl_generics: str = ""
    type_generics: str = ""
    where_clause: str = ""

    def impl_header(self, type_name: str) -> str:
        """``impl<...> Name<...> where ...`` without the opening brace."""
        header = f"impl{self.impl_generics} {type_name}{self.type_generics}"
        if self.where_clause:
            header = f"{header} {self.where_clause}"
        return header

    def type_reference(self, type_name: str) -> str:
        return f"{type_name}{self.type_generics}"


def extract_generics(clause: GenericClause) -> GenericSignature:
    """Split a struct's :class:`GenericClause` for reuse on the ``impl``."""
    if not clause.params and not clause.where_predicates:
        return GenericSignature()

    impl_generics = ""
    type_generics = ""
    if clause.params:
        impl_generics = "<" + ", ".join(p.declaration() for p in clause.params) + ">"
        type_generics = "<" + ", ".join(p.name for p in clause.params) + ">"

    where_clause = ""
    if clause.where_predicates:
        where_clause = "where " + ", ".join(clause.where_predicates)

    return GenericSignature(
        impl_generics=impl_generics,
        type_generics=type_generics,
        where_clause=where_clause,
    )
