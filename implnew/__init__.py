"""implnew - `new` constructor generation for Rust structs.

Given a struct that derives ``ImplNew``, generates an inherent ``impl``
block with a ``new`` function: public fields become parameters, every
other field is initialised from its ``#[default(EXPR)]`` override or
from ``Default::default()``.

Submodules
----------
model
    Frozen dataclasses for declarations, fields, generics and the
    generated ``ConstructorSpec``.

parser
    Rust declaration front end (Parsimonious PEG grammar).

sexp
    S-expression request/response codec (``sexpdata``).

resolver, classifier, generics, codegen
    The generation pipeline: override resolution, field classification,
    generic signature extraction, constructor synthesis.

expand
    Per-struct expansion driver that turns errors into diagnostics.

errors
    Error codes (``IMPLNEW-XXXX``), ``SourceSpan``, ``ErrorMessage`` and
    the exception hierarchy.

main
    CLI entry-point with subcommands: ``expand``, ``inspect``,
    ``request``, ``dump-sexp``.

Usage
-----
Command-line::

    python -m implnew expand src/model.rs
    python -m implnew --help

Programmatic::

    from implnew import expand_source

    for exp in expand_source(open("model.rs").read(), "model.rs"):
        print(exp.code if exp.ok else exp.diagnostic)
"""

from __future__ import annotations

from implnew.codegen import build_constructor, render_constructor, synthesize
from implnew.config import GeneratorConfig
from implnew.errors import ImplNewError
from implnew.expand import expand, expand_request, expand_source, splice_source
from implnew.parser import parse_items, parse_struct
from implnew.sexp import dump_spec, parse_request

__version__: str = "0.1.0"
__all__: list[str] = [
    "__version__",
    "GeneratorConfig",
    "ImplNewError",
    "build_constructor",
    "render_constructor",
    "synthesize",
    "expand",
    "expand_source",
    "expand_request",
    "splice_source",
    "parse_struct",
    "parse_items",
    "parse_request",
    "dump_spec",
]
