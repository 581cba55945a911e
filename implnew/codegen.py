#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
implnew/codegen.py
==================

Constructor synthesizer.

This module turns a :class:`~implnew.model.StructDecl` into a
:class:`~implnew.model.ConstructorSpec` and renders it as a Rust ``impl``
block.  For::

    #[derive(ImplNew)]
    struct Wrapper<T> {
        pub value: T,
        count: usize,
    }

the output is::

    impl<T> Wrapper<T> {
        #[must_use]
        pub fn new(value: T) -> Self {
            Self {
                value,
                count: Default::default(),
            }
        }
    }

Pipeline
--------
1. **Shape check** - only structs with named fields are accepted
2. **Field resolution** - each raw field becomes a ``FieldDescriptor``,
   resolving its ``#[default(EXPR)]`` override (:mod:`implnew.resolver`)
3. **Classification** - public fields become parameters
   (:mod:`implnew.classifier`)
4. **Generics** - the struct's generic clause is split for the ``impl``
   header (:mod:`implnew.generics`)
5. **Rendering** - :class:`CodeEmitter` writes the block

Initializers are emitted in the struct's declaration order, not in
partition order.  Every step is pure; the same declaration and
configuration always render the same text.
"""

from __future__ import annotations

import logging
from io import StringIO
from typing import Any, Dict, Tuple

from implnew.classifier import classify_fields
from implnew.config import DEFAULT_CONFIG, GeneratorConfig
from implnew.errors import DuplicateFieldError, UnsupportedShapeError
from implnew.generics import extract_generics
from implnew.model import (
    ConstructorSpec,
    FieldDescriptor,
    InitKind,
    Initializer,
    Parameter,
    StructDecl,
    StructShape,
)
from implnew.resolver import resolve_field

__all__ = [
    "CodeEmitter",
    "build_constructor",
    "render_constructor",
    "synthesize",
]

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# CODE EMITTER
# ═══════════════════════════════════════════════════════════════════════════

class CodeEmitter:
    """Low-level Rust code emission with indentation management.

    ``block(header)`` emits ``header {``, indents the body and closes it
    with ``}`` on exit.
    """

    def __init__(self, indent_str: str = "    ") -> None:
        self._buffer = StringIO()
        self._indent_str = indent_str
        self._indent_level = 0

    def emit(self, code: str) -> None:
        """Emit a line of code at the current indentation."""
        if code.strip():
            self._buffer.write(self._indent_str * self._indent_level)
            self._buffer.write(code)
        self._buffer.write("\n")

    def emit_blank(self, count: int = 1) -> None:
        """Emit blank lines."""
        for _ in range(count):
            self._buffer.write("\n")

    def indent(self) -> None:
        self._indent_level += 1

    def dedent(self) -> None:
        self._indent_level = max(0, self._indent_level - 1)

    def block(self, header: str) -> "CodeEmitter._BlockContext":
        """Context manager for a braced block."""
        return self._BlockContext(self, header)

    class _BlockContext:
        def __init__(self, emitter: "CodeEmitter", header: str) -> None:
            self._emitter = emitter
            self._header = header

        def __enter__(self) -> "CodeEmitter":
            self._emitter.emit(f"{self._header} {{")
            self._emitter.indent()
            return self._emitter

        def __exit__(self, *args: Any) -> None:
            self._emitter.dedent()
            self._emitter.emit("}")

    def get_code(self) -> str:
        """Get the generated code."""
        return self._buffer.getvalue()


# ═══════════════════════════════════════════════════════════════════════════
# CONSTRUCTOR DESCRIPTION
# ═══════════════════════════════════════════════════════════════════════════

def _check_unique(decl: StructDecl) -> None:
    seen: Dict[str, Any] = {}
    for raw in decl.fields:
        if raw.name in seen:
            raise DuplicateFieldError(raw.name, span=raw.span, first_span=seen[raw.name])
        seen[raw.name] = raw.span


def _initializer(f: FieldDescriptor, default_expr: str) -> Initializer:
    if f.is_public:
        return Initializer(f.name, InitKind.FORWARD)
    if f.default_override is not None:
        return Initializer(f.name, InitKind.OVERRIDE, f.default_override)
    return Initializer(f.name, InitKind.DEFAULT, default_expr)


def build_constructor(
    decl: StructDecl,
    config: GeneratorConfig = DEFAULT_CONFIG,
) -> ConstructorSpec:
    """Resolve, classify and assemble the constructor for *decl*.

    Raises
    ------
    UnsupportedShapeError
        *decl* is not a struct with named fields.
    DuplicateFieldError, AmbiguousOverrideError, MalformedOverrideError,
    MisplacedOverrideError
        Field-level problems; nothing is generated.
    """
    if decl.shape is not StructShape.NAMED:
        raise UnsupportedShapeError(decl.name, decl.shape.value, span=decl.span)
    _check_unique(decl)

    descriptors = [resolve_field(raw, config.attribute) for raw in decl.fields]
    classified = classify_fields(descriptors)
    logger.debug(
        "%s: %d parameter(s), %d auto field(s)",
        decl.name, len(classified.parameters), len(classified.auto_fields),
    )

    return ConstructorSpec(
        type_name=decl.name,
        generics=decl.generics,
        parameters=tuple(Parameter(f.name, f.type_expr) for f in classified.parameters),
        initializers=tuple(_initializer(f, config.default_expr) for f in descriptors),
        fn_name=config.fn_name,
        fn_visibility=config.fn_visibility,
        must_use=config.must_use,
    )


# ═══════════════════════════════════════════════════════════════════════════
# RENDERING
# ═══════════════════════════════════════════════════════════════════════════

def render_constructor(spec: ConstructorSpec, indent: str = "    ") -> str:
    """Render *spec* as a Rust ``impl`` block (trailing newline included)."""
    signature = extract_generics(spec.generics)
    params = ", ".join(p.render() for p in spec.parameters)
    fn_prefix = f"{spec.fn_visibility} fn" if spec.fn_visibility else "fn"

    out = CodeEmitter(indent)
    with out.block(signature.impl_header(spec.type_name)):
        if spec.must_use:
            out.emit("#[must_use]")
        with out.block(f"{fn_prefix} {spec.fn_name}({params}) -> Self"):
            if not spec.initializers:
                out.emit("Self {}")
            else:
                with out.block("Self"):
                    for init in spec.initializers:
                        out.emit(f"{init.render()},")
    return out.get_code()


def synthesize(
    decl: StructDecl,
    config: GeneratorConfig = DEFAULT_CONFIG,
) -> Tuple[ConstructorSpec, str]:
    """Build and render the constructor for *decl*; raises on any error."""
    spec = build_constructor(decl, config)
    return spec, render_constructor(spec, config.indent)
