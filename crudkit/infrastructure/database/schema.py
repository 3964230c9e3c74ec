"""Schema introspection for mapped SQLAlchemy models.

The generic controller validates request data without per-model code. It
reads what it needs from ``ModelDescriptor`` objects built here by inspecting
each mapped class once at startup:

- every mapped column becomes a ``scalar`` field
- every relationship becomes an ``object`` field (never validated)
- ``is_required`` mirrors ``NOT NULL``
- ``has_default`` covers Python-side defaults, server defaults and
  autoincrement primary keys
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from sqlalchemy import Column
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import ColumnProperty, Mapper, RelationshipProperty

from crudkit.core.types import FieldMap


class FieldKind(Enum):
    """Whether a field stores a value or references other records."""

    SCALAR = "scalar"
    OBJECT = "object"


@dataclass(frozen=True, slots=True)
class FieldDescriptor:
    """One field of a model, as seen by validation and sorting."""

    name: str
    is_id: bool
    is_required: bool
    has_default: bool
    kind: FieldKind
    type_name: str


@dataclass(frozen=True, slots=True)
class ModelDescriptor:
    """Name and ordered fields of one mapped model."""

    name: str
    fields: tuple[FieldDescriptor, ...]

    @property
    def id_field(self) -> FieldDescriptor:
        """The identifier field; every mapped model has one."""
        return next(field for field in self.fields if field.is_id)

    @property
    def field_names(self) -> frozenset[str]:
        """Names of all scalar fields."""
        return frozenset(
            field.name for field in self.fields if field.kind is FieldKind.SCALAR
        )

    def get_field(self, name: str) -> FieldDescriptor | None:
        """Look up a field by name."""
        return next((field for field in self.fields if field.name == name), None)


def _type_name(column: Column[Any]) -> str:
    """Map a column type onto the coarse names used by validation."""
    try:
        python_type = column.type.python_type
    except NotImplementedError:
        return type(column.type).__name__.lower()

    if issubclass(python_type, bool):
        return "bool"
    if issubclass(python_type, int):
        return "int"
    if issubclass(python_type, float):
        return "float"
    return python_type.__name__


def _has_default(column: Column[Any]) -> bool:
    if column.default is not None or column.server_default is not None:
        return True
    return bool(
        column.primary_key
        and column.autoincrement in (True, "auto")
        and _type_name(column) == "int"
    )


def _describe_column(prop: ColumnProperty[Any]) -> FieldDescriptor:
    column = prop.columns[0]
    return FieldDescriptor(
        name=prop.key,
        is_id=bool(column.primary_key),
        is_required=not column.nullable,
        has_default=_has_default(column),
        kind=FieldKind.SCALAR,
        type_name=_type_name(column),
    )


def _describe_relationship(prop: RelationshipProperty[Any]) -> FieldDescriptor:
    return FieldDescriptor(
        name=prop.key,
        is_id=False,
        is_required=False,
        has_default=False,
        kind=FieldKind.OBJECT,
        type_name=prop.mapper.class_.__name__,
    )


def describe_model(model_class: type[Any]) -> ModelDescriptor:
    """Build the descriptor of a mapped class.

    Args:
        model_class: A SQLAlchemy mapped class.

    Returns:
        ModelDescriptor: Columns first (in mapper order), then relationships.

    Raises:
        ValueError: If the model has no primary key column.
    """
    mapper: Mapper[Any] = sa_inspect(model_class)
    fields = [_describe_column(prop) for prop in mapper.column_attrs]
    fields.extend(_describe_relationship(prop) for prop in mapper.relationships)

    if not any(field.is_id for field in fields):
        msg = f"Model {model_class.__name__} has no primary key"
        raise ValueError(msg)

    return ModelDescriptor(name=model_class.__name__, fields=tuple(fields))


def record_to_dict(record: object) -> FieldMap:
    """Return the column values of a persisted record.

    Relationships are left out so serialization never triggers lazy loads.
    """
    mapper = sa_inspect(record).mapper
    return {attr.key: getattr(record, attr.key) for attr in mapper.column_attrs}
