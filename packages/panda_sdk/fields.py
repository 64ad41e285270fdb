"""Conversion between plain field values and explicitly typed wire fields."""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict

from packages.panda_sdk.errors import UnsupportedFieldTypeError

# Largest integer a double-precision float represents exactly.
MAX_SAFE_INTEGER = 2**53 - 1


class FieldType(str, Enum):
    """Wire type tags understood by the node."""

    STR = "str"
    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    RELATION = "relation"
    RELATION_LIST = "relation_list"
    PINNED_RELATION = "pinned_relation"
    PINNED_RELATION_LIST = "pinned_relation_list"


class TaggedValue(BaseModel):
    """One field value together with its wire type."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: FieldType
    value: Any


def tag_fields(raw_fields: Mapping[str, Any]) -> dict[str, TaggedValue]:
    """Infer a wire type for every provided field value.

    ``None`` means "not provided" and the field is left out. Python ``float``
    values are always tagged float, even integral ones such as ``3.0``.
    A list of operation id strings is a pinned relation and a list of such
    lists is a pinned relation list.
    """
    tagged: dict[str, TaggedValue] = {}
    for name, value in raw_fields.items():
        if value is None:
            continue
        tagged[name] = TaggedValue(type=_infer_type(name, value), value=value)
    return tagged


def untag_fields(tagged_fields: Mapping[str, Any]) -> dict[str, Any]:
    """Strip wire types, returning plain values.

    Integers beyond ``MAX_SAFE_INTEGER`` come back as decimal strings.
    """
    raw: dict[str, Any] = {}
    for name, item in tagged_fields.items():
        field_type, value = _split_tagged(name, item)
        if field_type is FieldType.INT:
            raw[name] = _untag_int(name, value)
        else:
            raw[name] = value
    return raw


def _infer_type(name: str, value: Any) -> FieldType:
    # bool is a subclass of int
    if isinstance(value, bool):
        return FieldType.BOOL
    if isinstance(value, int):
        return FieldType.INT
    if isinstance(value, float):
        return FieldType.FLOAT
    if isinstance(value, str):
        return FieldType.STR
    if isinstance(value, Mapping):
        if _is_relation(value):
            return FieldType.RELATION
        raise UnsupportedFieldTypeError(
            message=f"Relation field '{name}' requires a 'document' member",
            field_name=name,
        )
    if isinstance(value, (list, tuple)):
        # An empty list cannot be told apart, it stays a relation list.
        if all(isinstance(item, Mapping) and _is_relation(item) for item in value):
            return FieldType.RELATION_LIST
        if _is_view_id(value):
            return FieldType.PINNED_RELATION
        if all(isinstance(item, (list, tuple)) and _is_view_id(item) for item in value):
            return FieldType.PINNED_RELATION_LIST
        raise UnsupportedFieldTypeError(
            message=f"Field '{name}' is a list but not a list of relations",
            field_name=name,
        )
    raise UnsupportedFieldTypeError(
        message=f"Field '{name}' has unsupported type {type(value).__name__}",
        field_name=name,
    )


def _is_relation(value: Mapping[str, Any]) -> bool:
    document = value.get("document")
    return isinstance(document, str) and document != ""


def _is_view_id(value: Any) -> bool:
    """A document view id is a non-empty sequence of operation id strings."""
    return bool(value) and all(isinstance(item, str) and item != "" for item in value)


def _split_tagged(name: str, item: Any) -> tuple[FieldType, Any]:
    if isinstance(item, TaggedValue):
        return item.type, item.value
    if isinstance(item, Mapping) and "type" in item and "value" in item:
        try:
            return FieldType(item["type"]), item["value"]
        except ValueError:
            pass
    raise UnsupportedFieldTypeError(
        message=f"Field '{name}' is not a recognized tagged value: {item!r}",
        field_name=name,
    )


def _untag_int(name: str, value: Any) -> int | str:
    if isinstance(value, bool):
        raise UnsupportedFieldTypeError(
            message=f"Field '{name}' is tagged int but holds a boolean",
            field_name=name,
        )
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise UnsupportedFieldTypeError(
            message=f"Field '{name}' is tagged int but holds {value!r}",
            field_name=name,
        ) from exc
    if abs(number) <= MAX_SAFE_INTEGER:
        return number
    return str(number)
