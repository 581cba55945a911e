# tests/test_codegen.py
"""
Tests for constructor synthesis: StructDecl → Rust impl block.
Covers the parameter list, initializer order and rendering.
"""

import pytest

from implnew.codegen import CodeEmitter, build_constructor, render_constructor, synthesize
from implnew.config import GeneratorConfig
from implnew.errors import DuplicateFieldError, UnsupportedShapeError
from implnew.model import (
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

PUB = Visibility.PUBLIC
PRIV = Visibility.NON_PUBLIC


def _field(name, ty, vis=PRIV, override=None):
    anns = ()
    if override is not None:
        anns = (RawAnnotation("default", "(", override),)
    return RawField(name, vis, ty, annotations=anns)


PERSON = StructDecl("Person", fields=(
    _field("name", "String", PUB),
    _field("age", "u32", PUB),
    _field("secret", "String"),
))


class TestCodeGenScenarios:

    def test_person(self):
        _, code = synthesize(PERSON)
        assert code == (
            "impl Person {\n"
            "    #[must_use]\n"
            "    pub fn new(name: String, age: u32) -> Self {\n"
            "        Self {\n"
            "            name,\n"
            "            age,\n"
            "            secret: Default::default(),\n"
            "        }\n"
            "    }\n"
            "}\n"
        )

    def test_override(self):
        decl = StructDecl("Session", fields=(
            _field("username", "String", PUB),
            _field("token", "String", override='"empty_token".to_string()'),
        ))
        _, code = synthesize(decl)
        assert "pub fn new(username: String) -> Self {" in code
        assert "            username,\n" in code
        assert '            token: "empty_token".to_string(),\n' in code

    def test_generic(self):
        decl = StructDecl(
            "Wrapper",
            fields=(_field("value", "T", PUB), _field("count", "usize")),
            generics=GenericClause(params=(GenericParam(GenericKind.TYPE, "T"),)),
        )
        _, code = synthesize(decl)
        assert code.startswith("impl<T> Wrapper<T> {\n")
        assert "pub fn new(value: T) -> Self {" in code
        assert "            value,\n            count: Default::default(),\n" in code


class TestCodeGenStructure:

    def test_initializers_in_declaration_order(self):
        decl = StructDecl("Mixed", fields=(
            _field("a", "u8"),
            _field("b", "u8", PUB),
            _field("c", "u8", override="7"),
            _field("d", "u8", PUB),
        ))
        spec = build_constructor(decl)
        assert [i.field_name for i in spec.initializers] == ["a", "b", "c", "d"]
        assert [i.kind for i in spec.initializers] == [
            InitKind.DEFAULT, InitKind.FORWARD, InitKind.OVERRIDE, InitKind.FORWARD,
        ]
        assert [p.name for p in spec.parameters] == ["b", "d"]

    def test_every_field_initialized_once(self):
        spec = build_constructor(PERSON)
        names = [i.field_name for i in spec.initializers]
        assert sorted(names) == sorted(f.name for f in PERSON.fields)

    def test_no_fields(self):
        _, code = synthesize(StructDecl("Marker"))
        assert "    pub fn new() -> Self {\n        Self {}\n    }\n" in code

    def test_no_public_fields(self):
        decl = StructDecl("Counter", fields=(_field("hits", "u64"),))
        _, code = synthesize(decl)
        assert "pub fn new() -> Self {" in code
        assert "hits: Default::default()," in code

    def test_where_clause_on_impl_line(self):
        decl = StructDecl(
            "Holder",
            fields=(_field("item", "T", PUB),),
            generics=GenericClause(
                params=(GenericParam(GenericKind.TYPE, "T"),),
                where_predicates=("T: Default",),
            ),
        )
        _, code = synthesize(decl)
        assert code.splitlines()[0] == "impl<T> Holder<T> where T: Default {"

    def test_deterministic(self):
        assert synthesize(PERSON) == synthesize(PERSON)

    def test_config_knobs(self):
        config = GeneratorConfig(
            fn_name="create",
            fn_visibility="pub(crate)",
            must_use=False,
            default_expr="Zero::zero()",
            indent="\t",
        )
        _, code = synthesize(PERSON, config)
        assert "#[must_use]" not in code
        assert "\tpub(crate) fn create(name: String, age: u32) -> Self {\n" in code
        assert "\t\t\tsecret: Zero::zero(),\n" in code

    def test_private_fn(self):
        _, code = synthesize(PERSON, GeneratorConfig(fn_visibility=""))
        assert "    fn new(name: String, age: u32) -> Self {" in code
        assert "pub fn" not in code

    def test_custom_attribute(self):
        decl = StructDecl("S", fields=(
            RawField("x", PRIV, "u8", annotations=(RawAnnotation("init", "(", "9"),)),
        ))
        spec = build_constructor(decl, GeneratorConfig(attribute="init"))
        assert spec.initializers[0].render() == "x: 9"


class TestCodeGenErrors:

    @pytest.mark.parametrize("shape", [
        StructShape.TUPLE, StructShape.UNIT, StructShape.ENUM, StructShape.UNION,
    ], ids=lambda s: s.name.lower())
    def test_unsupported_shape(self, shape):
        with pytest.raises(UnsupportedShapeError) as exc_info:
            synthesize(StructDecl("Thing", shape=shape))
        assert exc_info.value.type_name == "Thing"
        assert exc_info.value.code == "IMPLNEW-2000"

    def test_duplicate_field(self):
        decl = StructDecl("Dup", fields=(_field("x", "u8"), _field("x", "u16")))
        with pytest.raises(DuplicateFieldError) as exc_info:
            build_constructor(decl)
        assert exc_info.value.field_name == "x"


class TestCodeEmitter:

    def test_nested_blocks(self):
        out = CodeEmitter("  ")
        with out.block("outer"):
            out.emit("a;")
            with out.block("inner"):
                out.emit("b;")
        assert out.get_code() == "outer {\n  a;\n  inner {\n    b;\n  }\n}\n"

    def test_blank_lines_not_indented(self):
        out = CodeEmitter()
        out.indent()
        out.emit("")
        out.emit_blank(2)
        assert out.get_code() == "\n\n\n"

    def test_render_constructor_matches_synthesize(self):
        spec, code = synthesize(PERSON)
        assert render_constructor(spec) == code
