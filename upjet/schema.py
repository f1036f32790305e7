"""A minimal resource schema tree and helpers to reshape it."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Union


class ValueType(enum.Enum):
    """Type of a schema field."""

    INVALID = 0
    BOOL = 1
    INT = 2
    FLOAT = 3
    STRING = 4
    LIST = 5
    MAP = 6
    SET = 7


@dataclass
class Schema:
    """Schema of a single field."""

    type: ValueType = ValueType.INVALID
    description: str = ""
    optional: bool = False
    required: bool = False
    computed: bool = False
    sensitive: bool = False
    elem: Optional[Union["Schema", "SchemaResource"]] = None


@dataclass
class SchemaResource:
    """A block of named fields."""

    schema: Dict[str, Optional[Schema]] = field(default_factory=dict)


def get_schema(resource: SchemaResource, fieldpath: str) -> Optional[Schema]:
    """Return the schema at a dotted field path, or None if there is none."""
    *parents, final = fieldpath.split(".")
    current = resource
    for name in parents:
        found = current.schema.get(name)
        if found is None or not isinstance(found.elem, SchemaResource):
            return None
        current = found.elem
    return current.schema.get(final)


def move_to_status(resource: SchemaResource, *fieldpaths: str) -> None:
    """Mark the given fields, and everything under them, as computed only.

    Stops at the first field path that cannot be found.
    """
    for path in fieldpaths:
        found = get_schema(resource, path)
        if found is None:
            return
        found.optional = False
        found.computed = True
        if isinstance(found.elem, SchemaResource):
            move_to_status(found.elem, *found.elem.schema)


def mark_as_required(resource: SchemaResource, *fieldpaths: str) -> None:
    """Clear the optional and computed flags of the given fields."""
    for path in fieldpaths:
        found = get_schema(resource, path)
        if found is not None:
            found.computed = False
            found.optional = False


def manipulate_every_field(
    resource: SchemaResource, op: Callable[[Schema], None]
) -> None:
    """Apply ``op`` to every field of the tree, depth first."""
    for value in resource.schema.values():
        if value is None:
            return
        op(value)
        if isinstance(value.elem, SchemaResource):
            manipulate_every_field(value.elem, op)