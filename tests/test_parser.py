# tests/test_parser.py
"""
Tests for the Rust declaration front end.
Verifies that source text is turned into the expected StructDecl values.
"""

import pytest

from implnew.errors import DeclarationSyntaxError
from implnew.model import GenericKind, StructShape, Visibility
from implnew.parser import parse_items, parse_struct
from tests.conftest import (
    MIXED_VIS_RS, MULTI_ITEM_RS, PERSON_RS, RICH_GENERICS_RS, SESSION_RS,
    TUPLE_RS, UNIT_RS, WRAPPER_RS,
)


class TestParseStruct:

    def test_named_fields(self):
        decl = parse_struct(PERSON_RS)
        assert decl.name == "Person"
        assert decl.shape is StructShape.NAMED
        assert [(f.name, f.type_expr) for f in decl.fields] == [
            ("name", "String"), ("age", "u32"), ("secret", "String"),
        ]
        assert [f.visibility for f in decl.fields] == [
            Visibility.PUBLIC, Visibility.PUBLIC, Visibility.NON_PUBLIC,
        ]

    def test_derives(self):
        decl = parse_struct(RICH_GENERICS_RS)
        assert decl.derives == ("Debug", "ImplNew")
        assert decl.derives_trait("ImplNew")
        assert not decl.derives_trait("Clone")

    def test_field_annotation_payload(self):
        decl = parse_struct(SESSION_RS)
        token = decl.fields[1]
        assert len(token.annotations) == 1
        ann = token.annotations[0]
        assert ann.path == "default"
        assert ann.delimiter == "("
        assert ann.tokens == '"empty_token".to_string()'

    def test_field_span_points_at_name(self):
        decl = parse_struct(PERSON_RS, filename="person.rs")
        secret = decl.fields[2]
        assert secret.span.file == "person.rs"
        assert (secret.span.line, secret.span.column) == (5, 5)
        assert (decl.span.line, decl.span.column) == (2, 8)

    def test_source_offsets_cover_attributes(self):
        decl = parse_struct(PERSON_RS)
        assert PERSON_RS[decl.source_start:decl.source_end].startswith("#[derive(ImplNew)]")
        assert PERSON_RS[decl.source_start:decl.source_end].endswith("}")

    def test_simple_generic(self):
        decl = parse_struct(WRAPPER_RS)
        (param,) = decl.generics.params
        assert param.kind is GenericKind.TYPE
        assert param.name == "T"
        assert param.bounds == ()

    def test_rich_generics(self):
        decl = parse_struct(RICH_GENERICS_RS)
        params = decl.generics.params
        assert [(p.kind, p.name) for p in params] == [
            (GenericKind.LIFETIME, "'a"),
            (GenericKind.LIFETIME, "'b"),
            (GenericKind.TYPE, "T"),
            (GenericKind.CONST, "N"),
        ]
        assert params[1].bounds == ("'a",)
        assert params[2].bounds == ("Clone", "Send")
        assert params[2].default == "u8"
        assert params[3].const_type == "usize"
        assert params[3].default == "16"
        assert decl.generics.where_predicates == ("T: Default",)

    def test_complex_field_types(self):
        decl = parse_struct(RICH_GENERICS_RS)
        assert [f.type_expr for f in decl.fields] == [
            "&'a [T; N]", "usize", "Option<&'b [T]>",
        ]
        assert decl.fields[2].annotations[0].tokens == "Some(&[])"

    def test_restricted_visibility_is_not_public(self):
        decl = parse_struct(MIXED_VIS_RS)
        vis = {f.name: (f.visibility, f.visibility_text) for f in decl.fields}
        assert vis["host"] == (Visibility.PUBLIC, "pub")
        assert vis["port"] == (Visibility.NON_PUBLIC, "pub(crate)")
        assert vis["retries"] == (Visibility.NON_PUBLIC, "pub(super)")
        assert vis["timeout"] == (Visibility.NON_PUBLIC, "pub(in crate::net)")
        assert vis["verbose"] == (Visibility.NON_PUBLIC, "")

    def test_path_type_kept(self):
        decl = parse_struct(MIXED_VIS_RS)
        assert decl.fields[3].type_expr == "std::time::Duration"

    def test_multiline_type_comments_dropped(self):
        decl = parse_struct(
            "struct S {\n"
            "    map: HashMap<\n"
            "        String, // key\n"
            "        u8,\n"
            "    >,\n"
            "}\n"
        )
        assert decl.fields[0].type_expr == "HashMap< String, u8, >"

    @pytest.mark.parametrize("src,shape", [
        (TUPLE_RS, StructShape.TUPLE),
        (UNIT_RS, StructShape.UNIT),
        ("enum E { A, B(u8) }", StructShape.ENUM),
        ("union U { a: u32, b: f32 }", StructShape.UNION),
        ("struct Empty {}", StructShape.NAMED),
    ], ids=["tuple", "unit", "enum", "union", "empty"])
    def test_shapes(self, src, shape):
        decl = parse_struct(src)
        assert decl.shape is shape
        assert decl.fields == ()

    def test_trailing_comma_optional(self):
        decl = parse_struct("struct P { pub x: i32, pub y: i32 }")
        assert [f.name for f in decl.fields] == ["x", "y"]

    def test_attribute_variants_recorded(self):
        decl = parse_struct(
            "struct S {\n"
            "    #[default]\n"
            "    #[serde(rename = \"b\")]\n"
            "    #[doc = \"docs\"]\n"
            "    a: u8,\n"
            "}\n"
        )
        anns = decl.fields[0].annotations
        assert [(a.path, a.delimiter) for a in anns] == [
            ("default", ""), ("serde", "("), ("doc", "="),
        ]
        assert anns[2].tokens == '"docs"'

    def test_raw_identifier_field(self):
        decl = parse_struct("struct S { pub r#type: u8 }")
        assert decl.fields[0].name == "r#type"

    @pytest.mark.parametrize("type_expr", [
        "[u8; SIZE - 1]",
        "[u8; SIZE / 2]",
        "[u8; SIZE % 4]",
        "[u8; 1 << 4]",
        "[u8; { N + 1 }]",
        "[[u8; N * 2]; M - N]",
        "Option<[u8; mem::size_of::<u64>()]>",
    ], ids=["sub", "div", "rem", "shl", "block", "nested", "call"])
    def test_array_length_expressions(self, type_expr):
        decl = parse_struct(f"struct S {{ pub a: {type_expr}, b: u8 }}")
        assert [f.type_expr for f in decl.fields] == [type_expr, "u8"]


class TestParseStructErrors:

    @pytest.mark.parametrize("src", [
        "struct {}",
        "struct S { a u8 }",
        "struct S { a: u8 = 5 }",
        "struct S { a: u8,, }",
        "struct S<T { a: T }",
    ], ids=["no_name", "no_colon", "field_default", "double_comma", "open_generics"])
    def test_syntax_error(self, src):
        with pytest.raises(DeclarationSyntaxError) as exc_info:
            parse_struct(src, filename="bad.rs")
        err = exc_info.value
        assert err.code == "IMPLNEW-1000"
        assert err.span.file == "bad.rs"
        assert err.span.line == 1

    def test_not_a_type_declaration(self):
        with pytest.raises(DeclarationSyntaxError, match="expected a struct"):
            parse_struct("fn main() {}")

    def test_error_line_and_column(self):
        with pytest.raises(DeclarationSyntaxError) as exc_info:
            parse_struct("struct S {\n    a: u8,\n    b u8,\n}\n")
        assert exc_info.value.span.line == 3


class TestParseItems:

    def test_collects_declarations_in_order(self):
        decls = parse_items(MULTI_ITEM_RS)
        assert [d.name for d in decls] == ["First", "NotDerived", "Broken", "Nested", "Choice"]

    def test_nested_module_derive_path(self):
        nested = [d for d in parse_items(MULTI_ITEM_RS) if d.name == "Nested"][0]
        assert nested.derives == ("impl_new::ImplNew",)
        assert nested.derives_trait("ImplNew")
        assert nested.fields[0].type_expr == "&'static str"

    def test_skips_other_items(self):
        src = (
            "use std::fmt;\n"
            "pub(crate) fn helper(x: &str) -> String { x.to_string() }\n"
            "impl<T> Trait for Vec<T> where T: Clone { fn go(&self) {} }\n"
            "static NAME: &str = \"struct Fake { x: u8 }\";\n"
            "type Alias = Vec<u8>;\n"
            "extern \"C\" { fn abs(x: i32) -> i32; }\n"
            "mod other;\n"
            "trait Shape { fn area(&self) -> f64; }\n"
        )
        assert parse_items(src) == []

    def test_empty_source(self):
        assert parse_items("") == []
        assert parse_items("// only a comment\n") == []

    def test_syntax_error_reports_failing_line(self):
        src = "use a::b;\n\nstruct Ok { a: u8 }\n\nstruct Bad {\n    a u8,\n}\n"
        with pytest.raises(DeclarationSyntaxError) as exc_info:
            parse_items(src, filename="lib.rs")
        assert exc_info.value.span.file == "lib.rs"
        assert exc_info.value.span.line == 6

    def test_unbalanced_brace(self):
        with pytest.raises(DeclarationSyntaxError):
            parse_items("fn f() {\n")
