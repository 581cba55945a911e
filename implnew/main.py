#!/usr/bin/env python3
"""implnew/main.py - CLI entry-point for the ImplNew constructor generator.

Usage examples
--------------
    # Print the generated impl blocks for every #[derive(ImplNew)] struct
    implnew expand src/model.rs

    # Write the source back with each impl inserted after its struct
    implnew expand src/model.rs --splice -o src/model.expanded.rs

    # Show how each struct's fields were classified
    implnew inspect src/model.rs

    # Generate from an S-expression request instead of Rust source
    implnew request wrapper.sexp

    # Dump the constructor specs as S-expressions
    implnew dump-sexp src/model.rs

    # Show version and exit
    implnew --version

Exit codes
----------
    0   Success (every requested constructor was generated).
    1   One or more diagnostics were emitted.
    2   Infrastructure failure (missing file, unreadable input, bad options).

The module doubles as ``python -m implnew`` via ``implnew/__main__.py``.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import textwrap
from pathlib import Path
from typing import List, Optional, Sequence, TextIO

from implnew import __version__
from implnew.config import GeneratorConfig
from implnew.errors import ConfigError, ErrorMessage, ImplNewError
from implnew.expand import expand_request, expand_source, splice_source
from implnew.model import Expansion, InitKind
from implnew.sexp import dump_spec

_log = logging.getLogger("implnew")

# Exit codes ----------------------------------------------------------------

EXIT_OK: int = 0
EXIT_ERROR: int = 1
EXIT_INFRA: int = 2


# ===========================================================================
# Helpers
# ===========================================================================

def _configure_logging(verbosity: int) -> None:
    """Set up the ``implnew`` logger.

    Parameters
    ----------
    verbosity:
        0 → WARNING, 1 → INFO, 2+ → DEBUG.
    """
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    root = logging.getLogger("implnew")
    root.setLevel(level)
    root.addHandler(handler)


def _resolve_path(raw: str, label: str = "file") -> Path:
    """Resolve *raw* to an absolute ``Path``, raising on missing files."""
    p = Path(raw).expanduser().resolve()
    if not p.is_file():
        _log.error("%s not found: %s", label, p)
        raise SystemExit(EXIT_INFRA)
    return p


def _read_source(raw: str, label: str = "source file") -> str:
    path = _resolve_path(raw, label)
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        _log.error("cannot read %s: %s", path, exc)
        raise SystemExit(EXIT_INFRA)


def _open_output(dest: Optional[str]) -> TextIO:
    """Return a writable text stream.

    *dest* ``None`` or ``"-"`` → ``sys.stdout``; otherwise open the path
    for writing (creating parent directories as needed).
    """
    if dest is None or dest == "-":
        return sys.stdout
    p = Path(dest).expanduser().resolve()
    p.parent.mkdir(parents=True, exist_ok=True)
    return open(p, "w", encoding="utf-8")


def _write_output(dest: Optional[str], text: str) -> None:
    out = _open_output(dest)
    try:
        out.write(text)
    finally:
        if out is not sys.stdout:
            out.close()


def _emit_diagnostics(
    diagnostics: List[ErrorMessage],
    fmt: str,
    stream: TextIO,
) -> int:
    """Write *diagnostics* to *stream* in the chosen format.

    Returns the count of error-severity diagnostics.
    """
    error_count = 0
    for diag in diagnostics:
        if diag.severity is None or diag.severity.is_error():
            error_count += 1
        if fmt == "json":
            stream.write(json.dumps(diag.to_json()) + "\n")
        else:
            stream.write(diag.to_gcc_format() + "\n")
    return error_count


def _config_from_args(args: argparse.Namespace) -> GeneratorConfig:
    return GeneratorConfig.from_mapping(
        {
            "fn_name": args.fn_name,
            "fn_visibility": args.fn_vis,
            "must_use": False if args.no_must_use else None,
            "attribute": args.attribute,
            "derive": args.derive,
            "default_expr": args.default_expr,
        }
    )


def _finish(expansions: List[Expansion], args: argparse.Namespace) -> int:
    diagnostics = [e.diagnostic for e in expansions if e.diagnostic is not None]
    if _emit_diagnostics(diagnostics, args.format, sys.stderr):
        return EXIT_ERROR
    return EXIT_OK


def _render_codes(expansions: List[Expansion]) -> str:
    return "\n".join(e.code for e in expansions if e.ok and e.code)


# ===========================================================================
# Subcommands
# ===========================================================================

def cmd_expand(args: argparse.Namespace) -> int:
    """Generate constructors for a Rust source file."""
    config = _config_from_args(args)
    source = _read_source(args.source_file)

    if args.splice:
        text, expansions = splice_source(source, args.source_file, config)
    else:
        expansions = expand_source(source, args.source_file, config)
        text = _render_codes(expansions)
    if not expansions:
        _log.warning("%s: no struct derives %s", args.source_file, config.derive)

    _write_output(args.output, text)
    return _finish(expansions, args)


def cmd_inspect(args: argparse.Namespace) -> int:
    """Show parameters, auto fields and initializers per struct."""
    config = _config_from_args(args)
    source = _read_source(args.source_file)
    expansions = expand_source(source, args.source_file, config)

    lines: List[str] = []
    for exp in expansions:
        lines.append(f"struct {exp.struct_name}")
        if exp.spec is None:
            lines.append("  (not generated, see diagnostics)")
            continue
        spec = exp.spec
        params = ", ".join(p.render() for p in spec.parameters) or "-"
        auto = [i.field_name for i in spec.initializers if i.kind is not InitKind.FORWARD]
        lines.append(f"  parameters:  {params}")
        lines.append(f"  auto fields: {', '.join(auto) or '-'}")
        lines.append("  initializers:")
        for init in spec.initializers:
            lines.append(f"    {init.render():<40} ({init.kind.name.lower()})")
        if not spec.generics.is_empty:
            params_text = ", ".join(p.declaration() for p in spec.generics.params)
            lines.append(f"  generics:    <{params_text}>")
            if spec.generics.where_predicates:
                lines.append(
                    f"  where:       {', '.join(spec.generics.where_predicates)}"
                )

    _write_output(args.output, "\n".join(lines) + ("\n" if lines else ""))
    return _finish(expansions, args)


def cmd_request(args: argparse.Namespace) -> int:
    """Generate constructors from an S-expression request file."""
    config = _config_from_args(args)
    expansions = expand_request(
        _read_source(args.request_file, "request file"), args.request_file, config
    )
    _write_output(args.output, _render_codes(expansions))
    return _finish(expansions, args)


def cmd_dump_sexp(args: argparse.Namespace) -> int:
    """Dump the constructor specs as S-expressions."""
    config = _config_from_args(args)
    source = _read_source(args.source_file)
    if args.request:
        expansions = expand_request(source, args.source_file, config)
    else:
        expansions = expand_source(source, args.source_file, config)

    lines = [dump_spec(e.spec) for e in expansions if e.spec is not None]
    _write_output(args.output, "\n".join(lines) + ("\n" if lines else ""))
    return _finish(expansions, args)


# ===========================================================================
# Argument parser
# ===========================================================================

def _build_parser() -> argparse.ArgumentParser:
    """Construct the full CLI argument parser with subcommands."""

    parser = argparse.ArgumentParser(
        prog="implnew",
        description=(
            "Generate `new` constructors for Rust structs that derive ImplNew.\n\n"
            "Public fields become constructor parameters; every other field is\n"
            "initialised from its #[default(EXPR)] override or Default::default()."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            examples:
              implnew expand src/model.rs
              implnew expand src/model.rs --splice -o out.rs
              implnew inspect src/model.rs
              implnew request wrapper.sexp
        """),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v info, -vv debug).",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        metavar="<command>",
    )

    # Shared argument groups (reusable) ------------------------------------

    def _add_output_args(p: argparse.ArgumentParser) -> None:
        p.add_argument(
            "-o", "--output",
            default=None,
            metavar="FILE",
            help='Output file ("-" or omit for stdout).',
        )
        p.add_argument(
            "-f", "--format",
            choices=["gcc", "json"],
            default="gcc",
            help="Diagnostic format on stderr (default: gcc).",
        )

    def _add_generator_args(p: argparse.ArgumentParser) -> None:
        g = p.add_argument_group("generator options")
        g.add_argument(
            "--fn-name",
            default=None,
            metavar="NAME",
            help="Name of the generated function (default: new).",
        )
        g.add_argument(
            "--fn-vis",
            default=None,
            metavar="VIS",
            help='Visibility of the generated function (default: pub; "" for private).',
        )
        g.add_argument(
            "--no-must-use",
            action="store_true",
            help="Do not mark the constructor #[must_use].",
        )
        g.add_argument(
            "--attribute",
            default=None,
            metavar="PATH",
            help="Field attribute carrying the override (default: default).",
        )
        g.add_argument(
            "--derive",
            default=None,
            metavar="NAME",
            help="Derive name that selects structs (default: ImplNew).",
        )
        g.add_argument(
            "--default-expr",
            default=None,
            metavar="EXPR",
            help="Initializer for fields without an override "
                 "(default: Default::default()).",
        )

    # --- expand ------------------------------------------------------------
    p_expand = subparsers.add_parser(
        "expand",
        help="Generate impl blocks for a Rust source file.",
    )
    p_expand.add_argument("source_file", metavar="FILE", help="Rust source file.")
    p_expand.add_argument(
        "--splice",
        action="store_true",
        help="Print the whole source with each impl inserted after its struct.",
    )
    _add_output_args(p_expand)
    _add_generator_args(p_expand)
    p_expand.set_defaults(func=cmd_expand)

    # --- inspect -----------------------------------------------------------
    p_inspect = subparsers.add_parser(
        "inspect",
        help="Show per-struct field classification.",
    )
    p_inspect.add_argument("source_file", metavar="FILE", help="Rust source file.")
    _add_output_args(p_inspect)
    _add_generator_args(p_inspect)
    p_inspect.set_defaults(func=cmd_inspect)

    # --- request -----------------------------------------------------------
    p_request = subparsers.add_parser(
        "request",
        help="Generate impl blocks from an S-expression request.",
    )
    p_request.add_argument(
        "request_file", metavar="FILE", help="S-expression request file."
    )
    _add_output_args(p_request)
    _add_generator_args(p_request)
    p_request.set_defaults(func=cmd_request)

    # --- dump-sexp ---------------------------------------------------------
    p_dump = subparsers.add_parser(
        "dump-sexp",
        help="Print the constructor specs as S-expressions.",
    )
    p_dump.add_argument("source_file", metavar="FILE", help="Input file.")
    p_dump.add_argument(
        "--request",
        action="store_true",
        help="Read FILE as an S-expression request instead of Rust source.",
    )
    _add_output_args(p_dump)
    _add_generator_args(p_dump)
    p_dump.set_defaults(func=cmd_dump_sexp)

    return parser


# ===========================================================================
# Main entry point
# ===========================================================================

def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the implnew CLI.

    Parameters
    ----------
    argv:
        Command-line arguments.  ``None`` → ``sys.argv[1:]``.

    Returns
    -------
    int
        Exit code (see module docstring for semantics).
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)

    # No subcommand given → print help.
    if not hasattr(args, "func"):
        parser.print_help(sys.stderr)
        return EXIT_INFRA

    try:
        return args.func(args)
    except ConfigError as exc:
        _log.error("%s", exc.message)
        return EXIT_INFRA
    except ImplNewError as exc:
        # File-level failures (unparsable source or request).
        _emit_diagnostics([exc.error_message], args.format, sys.stderr)
        return EXIT_ERROR
    except KeyboardInterrupt:
        _log.info("Interrupted by user.")
        return 130
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else EXIT_INFRA
    except Exception as exc:
        _log.error("Unhandled exception: %s", exc, exc_info=True)
        return EXIT_INFRA


if __name__ == "__main__":
    raise SystemExit(main())
