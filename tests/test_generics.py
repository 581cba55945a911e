# tests/test_generics.py
"""Tests for generic signature extraction."""

import pytest

from implnew.generics import GenericSignature, extract_generics
from implnew.model import GenericClause, GenericKind, GenericParam

LT = GenericKind.LIFETIME
TY = GenericKind.TYPE
CONST = GenericKind.CONST


class TestExtractGenerics:

    def test_empty_clause(self):
        sig = extract_generics(GenericClause())
        assert sig == GenericSignature()
        assert sig.impl_header("Plain") == "impl Plain"

    def test_single_type_param(self):
        sig = extract_generics(GenericClause(params=(GenericParam(TY, "T"),)))
        assert sig.impl_generics == "<T>"
        assert sig.type_generics == "<T>"
        assert sig.where_clause == ""
        assert sig.impl_header("Wrapper") == "impl<T> Wrapper<T>"

    def test_bounds_are_kept(self):
        clause = GenericClause(params=(
            GenericParam(LT, "'a"),
            GenericParam(LT, "'b", bounds=("'a",)),
            GenericParam(TY, "T", bounds=("Clone", "Debug")),
        ))
        sig = extract_generics(clause)
        assert sig.impl_generics == "<'a, 'b: 'a, T: Clone + Debug>"
        assert sig.type_generics == "<'a, 'b, T>"

    def test_defaults_are_dropped(self):
        clause = GenericClause(params=(
            GenericParam(TY, "T", default="u8"),
            GenericParam(CONST, "N", const_type="usize", default="16"),
        ))
        sig = extract_generics(clause)
        assert sig.impl_generics == "<T, const N: usize>"
        assert sig.type_generics == "<T, N>"
        assert "=" not in sig.impl_header("Buf")

    def test_where_clause(self):
        clause = GenericClause(
            params=(GenericParam(TY, "T"), GenericParam(TY, "U")),
            where_predicates=("T: Default", "U: Clone"),
        )
        sig = extract_generics(clause)
        assert sig.where_clause == "where T: Default, U: Clone"
        assert sig.impl_header("Pair") == "impl<T, U> Pair<T, U> where T: Default, U: Clone"

    def test_where_without_params(self):
        sig = extract_generics(GenericClause(where_predicates=("String: Clone",)))
        assert sig.impl_header("S") == "impl S where String: Clone"

    @pytest.mark.parametrize("param,decl", [
        (GenericParam(LT, "'a"), "'a"),
        (GenericParam(TY, "T", bounds=("?Sized",)), "T: ?Sized"),
        (GenericParam(CONST, "N", const_type="u8"), "const N: u8"),
    ], ids=["lifetime", "maybe_sized", "const"])
    def test_param_declaration(self, param, decl):
        assert param.declaration() == decl

    def test_type_reference(self):
        sig = extract_generics(GenericClause(params=(GenericParam(TY, "T"),)))
        assert sig.type_reference("Wrapper") == "Wrapper<T>"
