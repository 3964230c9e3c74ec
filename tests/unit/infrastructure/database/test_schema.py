"""Unit tests for model schema introspection."""

import pytest
import pytest_check
from sqlalchemy import String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from crudkit.infrastructure.database.schema import (
    FieldKind,
    describe_model,
    record_to_dict,
)
from tests.fixtures.models import Category, Widget


class _TextKeyBase(DeclarativeBase):
    pass


class Tag(_TextKeyBase):
    __tablename__ = "tags"

    slug: Mapped[str] = mapped_column(String(40), primary_key=True)
    label: Mapped[str | None] = mapped_column(String(40))


@pytest.mark.unit
class TestDescribeModel:
    """Test descriptors built from mapped classes."""

    def test_name_is_class_name(self) -> None:
        assert describe_model(Widget).name == "Widget"

    def test_identifier_field(self) -> None:
        id_field = describe_model(Widget).id_field

        with pytest_check.check:
            assert id_field.name == "id"
        with pytest_check.check:
            assert id_field.type_name == "int"
        with pytest_check.check:
            assert id_field.has_default

    def test_column_flags(self) -> None:
        descriptor = describe_model(Widget)
        name = descriptor.get_field("name")
        price = descriptor.get_field("price")
        status = descriptor.get_field("status")
        created_at = descriptor.get_field("created_at")
        assert name is not None
        assert price is not None
        assert status is not None
        assert created_at is not None

        with pytest_check.check:
            assert name.is_required and not name.has_default
        with pytest_check.check:
            assert name.type_name == "str"
        with pytest_check.check:
            assert not price.is_required
        with pytest_check.check:
            assert price.type_name == "float"
        with pytest_check.check:
            assert status.has_default
        with pytest_check.check:
            assert created_at.has_default

    def test_relationships_are_object_fields(self) -> None:
        descriptor = describe_model(Widget)
        category = descriptor.get_field("category")
        assert category is not None

        with pytest_check.check:
            assert category.kind is FieldKind.OBJECT
        with pytest_check.check:
            assert category.type_name == "Category"
        with pytest_check.check:
            assert "category" not in descriptor.field_names
        with pytest_check.check:
            assert "category_id" in descriptor.field_names

    def test_relationships_follow_columns(self) -> None:
        kinds = [field.kind for field in describe_model(Category).fields]
        assert kinds[-1] is FieldKind.OBJECT
        assert FieldKind.OBJECT not in kinds[:-1]

    def test_text_primary_key(self) -> None:
        id_field = describe_model(Tag).id_field

        with pytest_check.check:
            assert id_field.name == "slug"
        with pytest_check.check:
            assert id_field.type_name == "str"
        with pytest_check.check:
            assert not id_field.has_default

    def test_unknown_field_lookup(self) -> None:
        assert describe_model(Widget).get_field("colour") is None


@pytest.mark.unit
def test_record_to_dict_has_columns_only() -> None:
    """Relationships are left out of the record map."""
    record = Widget(id=3, name="gear", price=1.5)

    data = record_to_dict(record)

    with pytest_check.check:
        assert data["id"] == 3
    with pytest_check.check:
        assert data["name"] == "gear"
    with pytest_check.check:
        assert data["price"] == 1.5
    with pytest_check.check:
        assert "category" not in data
