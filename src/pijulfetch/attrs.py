"""Descriptor attribute schema, typed accessors, and the consistency merge."""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum

from pijulfetch.errors import AttributeConflictError, ValidationError

Attr = str | int
Attrs = dict[str, Attr]


class AttrName(StrEnum):
    """Recognized descriptor attribute names."""

    TYPE = "type"
    URL = "url"
    CHANNEL = "channel"
    STATE = "state"
    NAR_HASH = "narHash"
    LAST_MODIFIED = "lastModified"


ATTR_SCHEMA: Mapping[AttrName, type] = {
    AttrName.TYPE: str,
    AttrName.URL: str,
    AttrName.CHANNEL: str,
    AttrName.STATE: str,
    AttrName.NAR_HASH: str,
    AttrName.LAST_MODIFIED: int,
}


def maybe_get_str_attr(attrs: Mapping[str, Attr], name: str) -> str | None:
    value = attrs.get(name)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(
            f"Attribute `{name}` must be a string.",
            context={"operation": "get_attr", "attribute": name, "value": repr(value)},
        )
    return value


def get_str_attr(attrs: Mapping[str, Attr], name: str) -> str:
    value = maybe_get_str_attr(attrs, name)
    if value is None:
        raise ValidationError(
            f"Missing required attribute `{name}`.",
            context={"operation": "get_attr", "attribute": name},
        )
    return value


def maybe_get_int_attr(attrs: Mapping[str, Attr], name: str) -> int | None:
    value = attrs.get(name)
    if value is None:
        return None
    # bool is an int subclass but never a valid attribute value
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(
            f"Attribute `{name}` must be an integer.",
            context={"operation": "get_attr", "attribute": name, "value": repr(value)},
        )
    return value


def merge_attrs(dest: Attrs, source: Mapping[str, Attr]) -> Attrs:
    """Merge *source* into *dest* in place, failing on any disagreeing key.

    Keys missing from *dest* are inserted and keys with an equal value are
    left untouched. A key present on both sides with different values raises
    :class:`AttributeConflictError`; *dest* keeps the keys merged before it.
    """
    for key, value in source.items():
        if key not in dest:
            dest[key] = value
            continue
        existing = dest[key]
        if type(existing) is not type(value) or existing != value:
            raise AttributeConflictError(
                f"Value mismatch for attribute `{key}` while merging attributes.",
                hint="The cache may be corrupt or the remote changed underneath a pin.",
                context={
                    "operation": "merge_attrs",
                    "attribute": key,
                    "existing": repr(existing),
                    "incoming": repr(value),
                },
            )
    return dest


__all__ = [
    "ATTR_SCHEMA",
    "Attr",
    "AttrName",
    "Attrs",
    "get_str_attr",
    "maybe_get_int_attr",
    "maybe_get_str_attr",
    "merge_attrs",
]
