"""Annotation resolver: find a field's ``#[default(EXPR)]`` override."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from implnew.errors import (
    AmbiguousOverrideError,
    MalformedOverrideError,
    MisplacedOverrideError,
)
from implnew.expr import ExpressionError, check_expression
from implnew.model import FieldDescriptor, RawAnnotation, RawField, Visibility

__all__ = ["resolve_override", "resolve_field"]

logger = logging.getLogger(__name__)


def resolve_override(
    field_name: str,
    annotations: Sequence[RawAnnotation],
    attribute: str = "default",
) -> Optional[str]:
    """Return the override expression attached to a field, or ``None``.

    Only annotations whose path equals *attribute* are considered; all
    others belong to other derives and are ignored.

    Raises
    ------
    AmbiguousOverrideError
        More than one matching annotation.
    MalformedOverrideError
        The matching annotation is not ``#[attribute(EXPR)]`` with a single
        expression.
    """
    matching = [a for a in annotations if a.path == attribute]
    if not matching:
        return None
    if len(matching) > 1:
        err = AmbiguousOverrideError(
            field_name, len(matching), span=matching[1].span, attribute=attribute
        )
        err.add_note("first override is here", matching[0].span)
        raise err

    annotation = matching[0]
    if annotation.delimiter != "(":
        raise MalformedOverrideError(
            field_name,
            f"expected `#[{attribute}(EXPR)]`, found `{annotation.pretty()}`",
            span=annotation.span,
            attribute=attribute,
        )
    try:
        expression = check_expression(annotation.tokens)
    except ExpressionError as exc:
        raise MalformedOverrideError(
            field_name, exc.reason, span=annotation.span, attribute=attribute
        ) from exc

    logger.debug("field %s: override %s", field_name, expression)
    return expression


def resolve_field(raw: RawField, attribute: str = "default") -> FieldDescriptor:
    """Turn a front-end field into a :class:`FieldDescriptor`.

    A public field must not carry an override: it is always a constructor
    parameter, so the override could never be used.
    """
    override = resolve_override(raw.name, raw.annotations, attribute)
    if override is not None and raw.visibility is Visibility.PUBLIC:
        span = next(a.span for a in raw.annotations if a.path == attribute)
        raise MisplacedOverrideError(raw.name, span=span, attribute=attribute)
    return FieldDescriptor(
        name=raw.name,
        visibility=raw.visibility,
        type_expr=raw.type_expr,
        default_override=override,
        span=raw.span,
    )
