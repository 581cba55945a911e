"""Field classifier: split fields into constructor parameters and auto fields."""

from __future__ import annotations

from typing import List, Sequence

from implnew.model import ClassifiedFields, FieldDescriptor

__all__ = ["classify_fields"]


def classify_fields(fields: Sequence[FieldDescriptor]) -> ClassifiedFields:
    """Partition *fields* by visibility in a single ordered pass.

    Public fields become parameters, everything else is auto-initialized.
    Relative order inside each partition is declaration order, so the
    generated parameter list is stable.
    """
    parameters: List[FieldDescriptor] = []
    auto_fields: List[FieldDescriptor] = []
    for f in fields:
        if f.is_public:
            parameters.append(f)
        else:
            auto_fields.append(f)
    return ClassifiedFields(
        parameters=tuple(parameters),
        auto_fields=tuple(auto_fields),
        order=tuple(f.name for f in fields),
    )
