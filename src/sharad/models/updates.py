"""Typed character sheet updates.

An update names one sheet attribute and carries one operation (Add, Remove
or Modify) with a typed value. Every attribute expects exactly one value
kind, and every value kind has a shape that decides what the three
operations mean:

========  ==========================  ================  ====================
Shape     Add                         Remove            Modify
========  ==========================  ================  ====================
scalar    unsupported                 unsupported       replace
map       insert/overwrite per key    drop listed keys  same as Add
list      append                      drop first match  replace whole list
skills    unsupported                 unsupported       replace all groups
record    unsupported                 unsupported       replace whole value
========  ==========================  ================  ====================

Updates never recompute derived attributes; callers that own the sheet do
that after a successful update.

Example:
    >>> update = CharacterSheetUpdate(
    ...     attribute="body",
    ...     operation=UpdateOperation.modify(U8Value(value=6)),
    ... )
    >>> update.apply_to(sheet)
"""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from sharad.core.exceptions import (
    InvalidValueError,
    TypeMismatchError,
    UnknownAttributeError,
    UnsupportedOperationError,
)
from sharad.core.logging import get_logger
from sharad.models.character import (
    U8,
    CharacterSheet,
    Contact,
    Item,
    MatrixAttributes,
    Nuyen,
    Quality,
    Race,
    SkillMap,
    Skills,
)


logger = get_logger(__name__)


# =============================================================================
# Value Kinds
# =============================================================================


class ValueKind(StrEnum):
    """Discriminator of CharacterValue variants."""

    STRING = "string"
    U8 = "u8"
    OPTIONAL_U8 = "optional_u8"
    NUYEN = "nuyen"
    RACE = "race"
    SKILLS = "skills"
    SKILL_MAP = "skill_map"
    ITEM_MAP = "item_map"
    CONTACT_MAP = "contact_map"
    QUALITY_LIST = "quality_list"
    STRING_LIST = "string_list"
    MATRIX_ATTRIBUTES = "matrix_attributes"


class Shape(StrEnum):
    """How an operation combines a value with the current attribute."""

    SCALAR = "scalar"
    MAP = "map"
    LIST = "list"
    SKILLS = "skills"
    RECORD = "record"


class _Value(BaseModel):
    model_config = ConfigDict(frozen=True)


class StringValue(_Value):
    kind: Literal["string"] = "string"
    value: str


class U8Value(_Value):
    kind: Literal["u8"] = "u8"
    value: U8


class OptionalU8Value(_Value):
    kind: Literal["optional_u8"] = "optional_u8"
    value: U8 | None = None


class NuyenValue(_Value):
    kind: Literal["nuyen"] = "nuyen"
    value: Nuyen


class RaceValue(_Value):
    kind: Literal["race"] = "race"
    value: Race


class SkillsValue(_Value):
    kind: Literal["skills"] = "skills"
    value: Skills


class SkillMapValue(_Value):
    kind: Literal["skill_map"] = "skill_map"
    value: SkillMap = Field(default_factory=dict)


class ItemMapValue(_Value):
    kind: Literal["item_map"] = "item_map"
    value: dict[str, Item] = Field(default_factory=dict)


class ContactMapValue(_Value):
    kind: Literal["contact_map"] = "contact_map"
    value: dict[str, Contact] = Field(default_factory=dict)


class QualityListValue(_Value):
    kind: Literal["quality_list"] = "quality_list"
    value: list[Quality] = Field(default_factory=list)


class StringListValue(_Value):
    kind: Literal["string_list"] = "string_list"
    value: list[str] = Field(default_factory=list)


class MatrixAttributesValue(_Value):
    kind: Literal["matrix_attributes"] = "matrix_attributes"
    value: MatrixAttributes | None = None


CharacterValue = Annotated[
    StringValue
    | U8Value
    | OptionalU8Value
    | NuyenValue
    | RaceValue
    | SkillsValue
    | SkillMapValue
    | ItemMapValue
    | ContactMapValue
    | QualityListValue
    | StringListValue
    | MatrixAttributesValue,
    Field(discriminator="kind"),
]
"""A typed payload for one sheet attribute. Exactly one variant per value."""


_VALUE_ADAPTER: TypeAdapter[Any] = TypeAdapter(CharacterValue)


KIND_SHAPES: dict[ValueKind, Shape] = {
    ValueKind.STRING: Shape.SCALAR,
    ValueKind.U8: Shape.SCALAR,
    ValueKind.OPTIONAL_U8: Shape.SCALAR,
    ValueKind.NUYEN: Shape.SCALAR,
    ValueKind.RACE: Shape.SCALAR,
    ValueKind.SKILLS: Shape.SKILLS,
    ValueKind.SKILL_MAP: Shape.MAP,
    ValueKind.ITEM_MAP: Shape.MAP,
    ValueKind.CONTACT_MAP: Shape.MAP,
    ValueKind.QUALITY_LIST: Shape.LIST,
    ValueKind.STRING_LIST: Shape.LIST,
    ValueKind.MATRIX_ATTRIBUTES: Shape.RECORD,
}

_unshaped = set(ValueKind) - set(KIND_SHAPES)
if _unshaped:
    raise RuntimeError(f"Value kinds without a shape: {sorted(_unshaped)}")


ATTRIBUTE_KINDS: dict[str, ValueKind] = {
    "name": ValueKind.STRING,
    "race": ValueKind.RACE,
    "gender": ValueKind.STRING,
    "backstory": ValueKind.STRING,
    "lifestyle": ValueKind.STRING,
    "body": ValueKind.U8,
    "agility": ValueKind.U8,
    "reaction": ValueKind.U8,
    "strength": ValueKind.U8,
    "willpower": ValueKind.U8,
    "logic": ValueKind.U8,
    "intuition": ValueKind.U8,
    "charisma": ValueKind.U8,
    "edge": ValueKind.U8,
    "magic": ValueKind.OPTIONAL_U8,
    "resonance": ValueKind.OPTIONAL_U8,
    "nuyen": ValueKind.NUYEN,
    "skills": ValueKind.SKILLS,
    "knowledge_skills": ValueKind.SKILL_MAP,
    "inventory": ValueKind.ITEM_MAP,
    "contacts": ValueKind.CONTACT_MAP,
    "qualities": ValueKind.QUALITY_LIST,
    "cyberware": ValueKind.STRING_LIST,
    "bioware": ValueKind.STRING_LIST,
    "matrix_attributes": ValueKind.MATRIX_ATTRIBUTES,
}
"""Expected value kind for every updatable sheet attribute."""


def parse_character_value(attribute: str, raw: Any) -> CharacterValue:
    """Build the typed value an attribute expects from raw JSON data.

    Args:
        attribute: Sheet attribute name.
        raw: Decoded JSON value.

    Returns:
        The CharacterValue variant of the attribute's kind.

    Raises:
        UnknownAttributeError: If the attribute is not updatable.
        InvalidValueError: If the data does not fit the attribute's kind.
    """
    kind = ATTRIBUTE_KINDS.get(attribute)
    if kind is None:
        raise UnknownAttributeError(f"Unknown attribute: {attribute}", attribute=attribute)
    try:
        return _VALUE_ADAPTER.validate_python({"kind": kind.value, "value": raw})
    except PydanticValidationError as exc:
        raise InvalidValueError(
            f"Invalid value for '{attribute}': {exc.errors()[0]['msg']}",
            attribute=attribute,
        ) from exc


# =============================================================================
# Operations
# =============================================================================


class UpdateOperationKind(StrEnum):
    """Operation names as they appear in tool calls (case-sensitive)."""

    ADD = "Add"
    REMOVE = "Remove"
    MODIFY = "Modify"


class UpdateOperation(BaseModel):
    """One operation with its typed value."""

    model_config = ConfigDict(frozen=True)

    kind: UpdateOperationKind
    value: CharacterValue

    @classmethod
    def add(cls, value: Any) -> UpdateOperation:
        return cls(kind=UpdateOperationKind.ADD, value=value)

    @classmethod
    def remove(cls, value: Any) -> UpdateOperation:
        return cls(kind=UpdateOperationKind.REMOVE, value=value)

    @classmethod
    def modify(cls, value: Any) -> UpdateOperation:
        return cls(kind=UpdateOperationKind.MODIFY, value=value)


class CharacterSheetUpdate(BaseModel):
    """A requested change to one attribute of one sheet."""

    model_config = ConfigDict(frozen=True)

    attribute: str
    operation: UpdateOperation

    def check(self) -> None:
        """Validate the update against the attribute table without a sheet.

        Raises:
            UnknownAttributeError: If the attribute is not updatable.
            TypeMismatchError: If the value kind does not match.
            UnsupportedOperationError: If the shape does not support the operation.
        """
        check_update(self.attribute, self.operation)

    def apply_to(self, sheet: CharacterSheet) -> None:
        """Apply this update to a sheet. See apply_update."""
        apply_update(sheet, self.attribute, self.operation)


# =============================================================================
# Algebra
# =============================================================================


def check_update(attribute: str, operation: UpdateOperation) -> Shape:
    """Check an operation against the attribute table.

    Args:
        attribute: Sheet attribute name.
        operation: Operation to check.

    Returns:
        The shape of the attribute.

    Raises:
        UnknownAttributeError: If the attribute is not updatable.
        TypeMismatchError: If the value kind does not match.
        UnsupportedOperationError: If the shape does not support the operation.
    """
    expected = ATTRIBUTE_KINDS.get(attribute)
    if expected is None:
        raise UnknownAttributeError(
            f"Unknown attribute: {attribute}",
            attribute=attribute,
            operation=operation.kind.value,
        )

    actual = ValueKind(operation.value.kind)
    if actual != expected:
        raise TypeMismatchError(
            f"Attribute '{attribute}' expects {expected.value}, got {actual.value}",
            attribute=attribute,
            operation=operation.kind.value,
        )

    shape = KIND_SHAPES[expected]
    if shape in (Shape.SCALAR, Shape.SKILLS, Shape.RECORD) and operation.kind != UpdateOperationKind.MODIFY:
        raise UnsupportedOperationError(
            f"{operation.kind.value} is not supported for '{attribute}'",
            attribute=attribute,
            operation=operation.kind.value,
        )
    return shape


def _combine_map(current: dict[str, Any], payload: dict[str, Any], kind: UpdateOperationKind) -> dict[str, Any]:
    combined = dict(current)
    if kind == UpdateOperationKind.REMOVE:
        for key in payload:
            combined.pop(key, None)
    else:
        combined.update(payload)
    return combined


def _combine_list(current: list[Any], payload: list[Any], kind: UpdateOperationKind) -> list[Any]:
    if kind == UpdateOperationKind.MODIFY:
        return list(payload)
    combined = list(current)
    if kind == UpdateOperationKind.ADD:
        combined.extend(payload)
    else:
        for entry in payload:
            if entry in combined:
                combined.remove(entry)
    return combined


def apply_update(sheet: CharacterSheet, attribute: str, operation: UpdateOperation) -> None:
    """Apply one operation to one attribute of a sheet.

    The new value is computed in full before it is assigned, and the
    assignment is validated, so a failed update leaves the sheet untouched.

    Args:
        sheet: Sheet to update in place.
        attribute: Sheet attribute name.
        operation: Operation and typed value.

    Raises:
        UnknownAttributeError: If the attribute is not updatable.
        TypeMismatchError: If the value kind does not match the attribute.
        UnsupportedOperationError: If the operation is not defined for the shape.
        InvalidValueError: If the resulting value is out of range.
    """
    shape = check_update(attribute, operation)
    payload = operation.value.value

    if shape == Shape.MAP:
        new_value: Any = _combine_map(getattr(sheet, attribute), payload, operation.kind)
    elif shape == Shape.LIST:
        new_value = _combine_list(getattr(sheet, attribute), payload, operation.kind)
    elif shape in (Shape.SKILLS, Shape.RECORD):
        new_value = payload.model_copy(deep=True) if payload is not None else None
    else:
        new_value = payload

    try:
        setattr(sheet, attribute, new_value)
    except PydanticValidationError as exc:
        raise InvalidValueError(
            f"Invalid value for '{attribute}': {exc.errors()[0]['msg']}",
            attribute=attribute,
            operation=operation.kind.value,
        ) from exc

    logger.debug(
        "Character updated",
        character=sheet.name,
        attribute=attribute,
        operation=operation.kind.value,
    )


__all__ = [
    "ValueKind",
    "Shape",
    "StringValue",
    "U8Value",
    "OptionalU8Value",
    "NuyenValue",
    "RaceValue",
    "SkillsValue",
    "SkillMapValue",
    "ItemMapValue",
    "ContactMapValue",
    "QualityListValue",
    "StringListValue",
    "MatrixAttributesValue",
    "CharacterValue",
    "KIND_SHAPES",
    "ATTRIBUTE_KINDS",
    "UpdateOperationKind",
    "UpdateOperation",
    "CharacterSheetUpdate",
    "check_update",
    "parse_character_value",
    "apply_update",
]
