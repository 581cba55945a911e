"""
implnew/expand.py
=================

Expansion driver: runs the generator over one declaration, a whole Rust
source file, or an S-expression request, and turns core errors into
per-struct diagnostics.

Each struct is expanded independently; a failure produces an
:class:`~implnew.model.Expansion` carrying the diagnostic and no code,
and never stops the other structs.  Only file-level problems (text that
cannot be parsed at all) propagate as exceptions.
"""

from __future__ import annotations

import logging
from typing import List, Tuple

from implnew.codegen import synthesize
from implnew.config import DEFAULT_CONFIG, GeneratorConfig
from implnew.errors import ImplNewError
from implnew.model import Expansion, StructDecl
from implnew.parser import parse_items
from implnew.sexp import parse_request

__all__ = [
    "expand",
    "expand_all",
    "expand_source",
    "expand_request",
    "splice_source",
]

logger = logging.getLogger(__name__)


def expand(decl: StructDecl, config: GeneratorConfig = DEFAULT_CONFIG) -> Expansion:
    """Generate the constructor for *decl*, capturing any core error."""
    try:
        spec, code = synthesize(decl, config)
    except ImplNewError as exc:
        logger.info("%s: no constructor generated: %s", decl.name, exc.message)
        logger.debug("%s", exc.to_gcc_format())
        return Expansion(
            struct_name=decl.name, diagnostic=exc.error_message, decl=decl
        )
    logger.debug("%s: generated %s::%s", decl.name, decl.name, spec.fn_name)
    return Expansion(struct_name=decl.name, spec=spec, code=code, decl=decl)


def expand_all(
    decls: List[StructDecl], config: GeneratorConfig = DEFAULT_CONFIG
) -> List[Expansion]:
    return [expand(d, config) for d in decls]


def expand_source(
    text: str,
    filename: str = "<string>",
    config: GeneratorConfig = DEFAULT_CONFIG,
) -> List[Expansion]:
    """Expand every declaration in *text* that derives ``config.derive``.

    Declarations without the derive are left alone.

    Raises
    ------
    DeclarationSyntaxError
        *text* cannot be parsed as Rust items.
    """
    decls = [d for d in parse_items(text, filename) if d.derives_trait(config.derive)]
    logger.info("%s: %d struct(s) derive %s", filename, len(decls), config.derive)
    return expand_all(decls, config)


def expand_request(
    text: str,
    filename: str = "<string>",
    config: GeneratorConfig = DEFAULT_CONFIG,
) -> List[Expansion]:
    """Expand every declaration of an S-expression request.

    Requests are explicit, so no derive filtering applies.
    """
    return expand_all(parse_request(text, filename), config)


def splice_source(
    text: str,
    filename: str = "<string>",
    config: GeneratorConfig = DEFAULT_CONFIG,
) -> Tuple[str, List[Expansion]]:
    """Return *text* with each generated ``impl`` placed after its struct.

    The original text is kept byte for byte; each successful expansion is
    inserted right after the closing brace of its declaration, separated
    by a blank line.  Failed expansions insert nothing.
    """
    expansions = expand_source(text, filename, config)
    pieces: List[str] = []
    cursor = 0
    for exp in expansions:
        if not exp.ok or exp.decl is None or exp.decl.source_end < 0:
            continue
        end = exp.decl.source_end
        pieces.append(text[cursor:end])
        pieces.append("\n\n" + exp.code.rstrip("\n"))
        cursor = end
    pieces.append(text[cursor:])
    return "".join(pieces), expansions
