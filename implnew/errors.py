# implnew/errors.py
"""
implnew Error Types and Diagnostics

Every failure the generator can detect is raised as a subclass of
:class:`ImplNewError`.  Each error carries a structured :class:`ErrorMessage`
(error code, message, source span, notes, hint) so that the expansion driver
can turn it into a compile-time diagnostic instead of crashing the caller.

Error Hierarchy:
────────────────
┌─────────────────────────────────────────────────────────────────────────────┐
│  ImplNewError (base)                                                        │
│  ├── SyntaxError               - front-end parse failures                   │
│  │   ├── DeclarationSyntaxError  - Rust declaration text                    │
│  │   └── RequestSyntaxError      - S-expression request                     │
│  ├── ExpansionError            - the struct cannot be expanded              │
│  │   ├── UnsupportedShapeError   - tuple/unit struct, enum, union           │
│  │   ├── AmbiguousOverrideError  - more than one #[default(..)]             │
│  │   ├── MalformedOverrideError  - #[default(..)] is not one expression     │
│  │   ├── MisplacedOverrideError  - #[default(..)] on a public field         │
│  │   └── DuplicateFieldError     - two fields share a name                  │
│  └── ConfigError               - invalid generator configuration            │
└─────────────────────────────────────────────────────────────────────────────┘

Error Codes:
────────────
Codes follow the pattern IMPLNEW-NNNN:
  - 1000-1999: Syntax errors
  - 2000-2999: Expansion errors
  - 3000-3999: Configuration errors
  - 9000-9999: Internal errors

Example Usage:
──────────────
    from implnew.errors import AmbiguousOverrideError, SourceSpan

    try:
        code = synthesize(decl)
    except ImplNewError as exc:
        print(exc.to_gcc_format())
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto, unique
from typing import Any, Dict, List, Optional

__all__ = [
    "ErrorSeverity",
    "ErrorPhase",
    "ErrorCategory",
    "ErrorCode",
    "ImplNewErrorCodes",
    "SourceSpan",
    "ErrorNote",
    "ErrorMessage",
    "ImplNewError",
    "SyntaxError",
    "DeclarationSyntaxError",
    "RequestSyntaxError",
    "ExpansionError",
    "UnsupportedShapeError",
    "AmbiguousOverrideError",
    "MalformedOverrideError",
    "MisplacedOverrideError",
    "DuplicateFieldError",
    "ConfigError",
    "InternalError",
]


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR SEVERITY AND CLASSIFICATION
# ═══════════════════════════════════════════════════════════════════════════════

@unique
class ErrorSeverity(Enum):
    """Severity levels for implnew diagnostics."""

    FATAL = "fatal"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"

    def is_error(self) -> bool:
        """Check if this severity represents an error (not warning/info)."""
        return self in (ErrorSeverity.FATAL, ErrorSeverity.ERROR)


@unique
class ErrorPhase(Enum):
    """Pipeline phase where the error occurred."""

    SYNTAX = "syntax"          # Rust / S-expression front end
    EXPANSION = "expansion"    # Classification and synthesis
    CONFIG = "config"          # Generator configuration
    INTERNAL = "internal"      # Generator bugs


@unique
class ErrorCategory(Enum):
    """Fine-grained error categories for filtering and statistics."""

    # Syntax categories
    INVALID_DECLARATION = auto()
    INVALID_REQUEST = auto()

    # Expansion categories
    UNSUPPORTED_SHAPE = auto()
    AMBIGUOUS_OVERRIDE = auto()
    MALFORMED_OVERRIDE = auto()
    MISPLACED_OVERRIDE = auto()
    DUPLICATE_FIELD = auto()

    # Configuration categories
    INVALID_CONFIG = auto()

    # Internal categories
    INTERNAL_ERROR = auto()


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR CODES
# ═══════════════════════════════════════════════════════════════════════════════

class ErrorCode:
    """
    Structured error code of the form ``PREFIX-NNNN``.
    """

    __slots__ = ("prefix", "number", "category", "phase", "default_severity")

    def __init__(
        self,
        prefix: str,
        number: int,
        category: ErrorCategory,
        phase: ErrorPhase,
        default_severity: ErrorSeverity = ErrorSeverity.ERROR,
    ) -> None:
        self.prefix = prefix
        self.number = number
        self.category = category
        self.phase = phase
        self.default_severity = default_severity

    @property
    def code(self) -> str:
        """Get the full error code string."""
        return f"{self.prefix}-{self.number:04d}"

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"ErrorCode({self.code!r}, {self.category.name})"

    def __hash__(self) -> int:
        return hash((self.prefix, self.number))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ErrorCode):
            return self.prefix == other.prefix and self.number == other.number
        if isinstance(other, str):
            return self.code == other
        return False


class ImplNewErrorCodes:
    """Predefined error codes."""

    # ═══════════════════════════════════════════════════════════════════════════
    # SYNTAX ERRORS (1000-1999)
    # ═══════════════════════════════════════════════════════════════════════════

    INVALID_DECLARATION = ErrorCode(
        "IMPLNEW", 1000, ErrorCategory.INVALID_DECLARATION, ErrorPhase.SYNTAX
    )
    INVALID_REQUEST = ErrorCode(
        "IMPLNEW", 1001, ErrorCategory.INVALID_REQUEST, ErrorPhase.SYNTAX
    )

    # ═══════════════════════════════════════════════════════════════════════════
    # EXPANSION ERRORS (2000-2999)
    # ═══════════════════════════════════════════════════════════════════════════

    UNSUPPORTED_SHAPE = ErrorCode(
        "IMPLNEW", 2000, ErrorCategory.UNSUPPORTED_SHAPE, ErrorPhase.EXPANSION
    )
    AMBIGUOUS_OVERRIDE = ErrorCode(
        "IMPLNEW", 2001, ErrorCategory.AMBIGUOUS_OVERRIDE, ErrorPhase.EXPANSION
    )
    MALFORMED_OVERRIDE = ErrorCode(
        "IMPLNEW", 2002, ErrorCategory.MALFORMED_OVERRIDE, ErrorPhase.EXPANSION
    )
    MISPLACED_OVERRIDE = ErrorCode(
        "IMPLNEW", 2003, ErrorCategory.MISPLACED_OVERRIDE, ErrorPhase.EXPANSION
    )
    DUPLICATE_FIELD = ErrorCode(
        "IMPLNEW", 2004, ErrorCategory.DUPLICATE_FIELD, ErrorPhase.EXPANSION
    )

    # ═══════════════════════════════════════════════════════════════════════════
    # CONFIGURATION ERRORS (3000-3999)
    # ═══════════════════════════════════════════════════════════════════════════

    INVALID_CONFIG = ErrorCode(
        "IMPLNEW", 3000, ErrorCategory.INVALID_CONFIG, ErrorPhase.CONFIG
    )

    # ═══════════════════════════════════════════════════════════════════════════
    # INTERNAL ERRORS (9000-9999)
    # ═══════════════════════════════════════════════════════════════════════════

    INTERNAL_ERROR = ErrorCode(
        "IMPLNEW", 9000, ErrorCategory.INTERNAL_ERROR, ErrorPhase.INTERNAL,
        ErrorSeverity.FATAL
    )


# ═══════════════════════════════════════════════════════════════════════════════
# SOURCE LOCATION TYPES
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SourceSpan:
    """
    A span of source code with start and end positions.

    Lines and columns are 1-based; ``0`` means "unknown".
    """

    file: str = ""
    line: int = 0
    column: int = 0
    end_line: int = 0
    end_column: int = 0

    def __post_init__(self) -> None:
        # Normalize: if end not specified, use start
        if self.end_line == 0:
            object.__setattr__(self, "end_line", self.line)
        if self.end_column == 0:
            object.__setattr__(self, "end_column", self.column)

    @classmethod
    def from_offsets(
        cls, text: str, start: int, end: int, file: str = ""
    ) -> "SourceSpan":
        """Build a span from character offsets into *text*."""
        line = text.count("\n", 0, start) + 1
        column = start - (text.rfind("\n", 0, start) + 1) + 1
        end_line = text.count("\n", 0, end) + 1
        end_column = end - (text.rfind("\n", 0, end) + 1) + 1
        return cls(
            file=file,
            line=line,
            column=column,
            end_line=end_line,
            end_column=end_column,
        )

    def __str__(self) -> str:
        if not self.file and self.line == 0:
            return "<unknown location>"

        parts = []
        if self.file:
            parts.append(self.file)
        if self.line > 0:
            parts.append(str(self.line))
            if self.column > 0:
                parts.append(str(self.column))

        return ":".join(parts)


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR MESSAGE FORMATTING
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class ErrorNote:
    """
    Additional note attached to an error, e.g. where the first of two
    conflicting attributes was written.
    """

    message: str
    span: Optional[SourceSpan] = None
    label: str = ""  # e.g., "note", "help"

    def __str__(self) -> str:
        prefix = f"{self.label}: " if self.label else ""
        if self.span:
            return f"{self.span}: {prefix}{self.message}"
        return f"{prefix}{self.message}"


@dataclass
class ErrorMessage:
    """
    A complete diagnostic with all context.

    This is what an :class:`~implnew.model.Expansion` carries in place of
    generated code when expansion fails.
    """

    code: ErrorCode
    message: str
    span: SourceSpan = field(default_factory=SourceSpan)
    severity: Optional[ErrorSeverity] = None  # None means use code's default
    notes: List[ErrorNote] = field(default_factory=list)
    hint: str = ""
    source_line: str = ""  # The actual source code line, if available

    def __post_init__(self) -> None:
        if self.severity is None:
            self.severity = self.code.default_severity

    def add_note(
        self,
        message: str,
        span: Optional[SourceSpan] = None,
        label: str = "note",
    ) -> "ErrorMessage":
        """Add a note to this error message."""
        self.notes.append(ErrorNote(message=message, span=span, label=label))
        return self

    def with_source(self, line: str) -> "ErrorMessage":
        """Add the source line for display."""
        self.source_line = line
        return self

    def to_gcc_format(self) -> str:
        """Format as a GCC-style error message."""
        severity = self.severity.value if self.severity else "error"
        main = f"{self.span}: {severity}: {self.message} [{self.code}]"

        lines = [main]

        # Add source line with caret if available
        if self.source_line:
            lines.append(f"    {self.source_line}")
            if self.span.column > 0:
                caret_pos = self.span.column - 1
                caret_len = 1
                if self.span.end_line == self.span.line:
                    caret_len = max(1, self.span.end_column - self.span.column)
                lines.append(f"    {' ' * caret_pos}{'^' * caret_len}")

        for note in self.notes:
            lines.append(str(note))

        if self.hint:
            lines.append(f"hint: {self.hint}")

        return "\n".join(lines)

    def to_json(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "code": self.code.code,
            "message": self.message,
            "severity": self.severity.value if self.severity else "error",
            "location": {
                "file": self.span.file,
                "line": self.span.line,
                "column": self.span.column,
                "end_line": self.span.end_line,
                "end_column": self.span.end_column,
            },
            "phase": self.code.phase.value,
            "category": self.code.category.name,
            "notes": [
                {
                    "message": note.message,
                    "label": note.label,
                    "location": {
                        "file": note.span.file,
                        "line": note.span.line,
                        "column": note.span.column,
                    } if note.span else None,
                }
                for note in self.notes
            ],
            "hint": self.hint,
        }

    def __str__(self) -> str:
        return self.to_gcc_format()


# ═══════════════════════════════════════════════════════════════════════════════
# EXCEPTION CLASSES
# ═══════════════════════════════════════════════════════════════════════════════

class ImplNewError(Exception):
    """
    Base exception for all implnew errors.

    Carries structured error information that can be converted to a
    diagnostic or pretty-printed.
    """

    default_code: ErrorCode = ImplNewErrorCodes.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        span: Optional[SourceSpan] = None,
        severity: Optional[ErrorSeverity] = None,
        cause: Optional[Exception] = None,
        notes: Optional[List[ErrorNote]] = None,
        hint: str = "",
    ) -> None:
        super().__init__(message)
        self.error_message = ErrorMessage(
            code=code or self.default_code,
            message=message,
            span=span or SourceSpan(),
            severity=severity,
            notes=notes or [],
            hint=hint,
        )
        self.cause = cause

    @property
    def code(self) -> ErrorCode:
        return self.error_message.code

    @property
    def span(self) -> SourceSpan:
        return self.error_message.span

    @property
    def message(self) -> str:
        return self.error_message.message

    @property
    def severity(self) -> ErrorSeverity:
        return self.error_message.severity or ErrorSeverity.ERROR

    def add_note(
        self,
        message: str,
        span: Optional[SourceSpan] = None,
        label: str = "note",
    ) -> "ImplNewError":
        """Add a note to this error."""
        self.error_message.add_note(message, span, label)
        return self

    def to_gcc_format(self) -> str:
        """Format as a GCC-style error message."""
        return self.error_message.to_gcc_format()

    def __str__(self) -> str:
        return self.to_gcc_format()


# ───────────────────────────────────────────────────────────────────────────────
# SYNTAX ERRORS
# ───────────────────────────────────────────────────────────────────────────────

class SyntaxError(ImplNewError):  # noqa: A001
    """Error while reading a declaration or request."""

    default_code = ImplNewErrorCodes.INVALID_DECLARATION


class DeclarationSyntaxError(SyntaxError):
    """Rust declaration text could not be parsed."""

    default_code = ImplNewErrorCodes.INVALID_DECLARATION


class RequestSyntaxError(SyntaxError):
    """An S-expression request does not have the expected shape."""

    default_code = ImplNewErrorCodes.INVALID_REQUEST


# ───────────────────────────────────────────────────────────────────────────────
# EXPANSION ERRORS
# ───────────────────────────────────────────────────────────────────────────────

class ExpansionError(ImplNewError):
    """A declaration was read but no constructor can be generated for it."""

    default_code = ImplNewErrorCodes.INTERNAL_ERROR


class UnsupportedShapeError(ExpansionError):
    """The declaration is not a struct with named fields."""

    default_code = ImplNewErrorCodes.UNSUPPORTED_SHAPE

    def __init__(
        self,
        type_name: str,
        shape: str,
        span: Optional[SourceSpan] = None,
    ) -> None:
        super().__init__(
            f"`ImplNew` can only be derived for structs with named fields; "
            f"`{type_name}` is a {shape}",
            span=span,
        )
        self.type_name = type_name
        self.shape = shape


class AmbiguousOverrideError(ExpansionError):
    """A field carries more than one default-override attribute."""

    default_code = ImplNewErrorCodes.AMBIGUOUS_OVERRIDE

    def __init__(
        self,
        field_name: str,
        count: int,
        span: Optional[SourceSpan] = None,
        attribute: str = "default",
    ) -> None:
        super().__init__(
            f"field `{field_name}` has {count} `#[{attribute}(...)]` "
            f"attributes; at most one is allowed",
            span=span,
            hint=f"keep a single `#[{attribute}(...)]` on `{field_name}`",
        )
        self.field_name = field_name
        self.count = count


class MalformedOverrideError(ExpansionError):
    """A default-override attribute does not hold exactly one expression."""

    default_code = ImplNewErrorCodes.MALFORMED_OVERRIDE

    def __init__(
        self,
        field_name: str,
        reason: str,
        span: Optional[SourceSpan] = None,
        attribute: str = "default",
    ) -> None:
        super().__init__(
            f"invalid `#[{attribute}(...)]` on field `{field_name}`: {reason}",
            span=span,
            hint=f"write `#[{attribute}(EXPR)]` with a single expression",
        )
        self.field_name = field_name
        self.reason = reason


class MisplacedOverrideError(ExpansionError):
    """A default-override attribute was put on a public field."""

    default_code = ImplNewErrorCodes.MISPLACED_OVERRIDE

    def __init__(
        self,
        field_name: str,
        span: Optional[SourceSpan] = None,
        attribute: str = "default",
    ) -> None:
        super().__init__(
            f"public field `{field_name}` cannot have `#[{attribute}(...)]`; "
            f"public fields are constructor parameters",
            span=span,
            hint=f"make `{field_name}` non-public or drop the attribute",
        )
        self.field_name = field_name


class DuplicateFieldError(ExpansionError):
    """Two fields of one struct share a name."""

    default_code = ImplNewErrorCodes.DUPLICATE_FIELD

    def __init__(
        self,
        field_name: str,
        span: Optional[SourceSpan] = None,
        first_span: Optional[SourceSpan] = None,
    ) -> None:
        super().__init__(f"field `{field_name}` is declared more than once", span=span)
        if first_span is not None:
            self.add_note("first declared here", first_span)
        self.field_name = field_name


# ───────────────────────────────────────────────────────────────────────────────
# CONFIGURATION / INTERNAL ERRORS
# ───────────────────────────────────────────────────────────────────────────────

class ConfigError(ImplNewError):
    """The generator configuration is invalid."""

    default_code = ImplNewErrorCodes.INVALID_CONFIG


class InternalError(ImplNewError):
    """Generator bug; should never happen."""

    default_code = ImplNewErrorCodes.INTERNAL_ERROR
