"""Generator configuration."""

from __future__ import annotations

import re
from dataclasses import dataclass, fields
from typing import Any, List, Mapping

from implnew.errors import ConfigError

__all__ = ["GeneratorConfig", "DEFAULT_CONFIG"]

_IDENT_RE = re.compile(r"^(?:r#)?[A-Za-z_][A-Za-z0-9_]*$")
_PATH_RE = re.compile(r"^(?:::)?[A-Za-z_][A-Za-z0-9_]*(?:::[A-Za-z_][A-Za-z0-9_]*)*$")
_VIS_RE = re.compile(r"^(?:|pub|pub\((?:crate|super|self|in [A-Za-z_:][A-Za-z0-9_:]*)\))$")


@dataclass(frozen=True)
class GeneratorConfig:
    """Tuning knobs for constructor generation."""

    fn_name: str = "new"
    fn_visibility: str = "pub"
    must_use: bool = True
    attribute: str = "default"
    derive: str = "ImplNew"
    default_expr: str = "Default::default()"
    indent: str = "    "

    def validate(self) -> List[str]:
        """Return a list of validation problems (empty if valid)."""
        problems: List[str] = []
        if not _IDENT_RE.match(self.fn_name):
            problems.append(f"fn_name {self.fn_name!r} is not a Rust identifier")
        if not _VIS_RE.match(self.fn_visibility):
            problems.append(f"fn_visibility {self.fn_visibility!r} is not a Rust visibility")
        if not _PATH_RE.match(self.attribute):
            problems.append(f"attribute {self.attribute!r} is not an attribute path")
        if not _IDENT_RE.match(self.derive):
            problems.append(f"derive {self.derive!r} is not a Rust identifier")
        if not self.default_expr.strip():
            problems.append("default_expr must not be empty")
        if self.indent.strip(" \t"):
            problems.append("indent may only contain spaces and tabs")
        return problems

    def checked(self) -> "GeneratorConfig":
        """Return ``self`` or raise :class:`ConfigError` listing every problem."""
        problems = self.validate()
        if problems:
            raise ConfigError("invalid generator configuration: " + "; ".join(problems))
        return self

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "GeneratorConfig":
        """Build a config from a mapping, ignoring ``None`` values.

        Unknown keys raise :class:`ConfigError`.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ConfigError(f"unknown configuration option(s): {', '.join(unknown)}")
        kwargs = {k: v for k, v in values.items() if v is not None}
        return cls(**kwargs).checked()


DEFAULT_CONFIG = GeneratorConfig()
