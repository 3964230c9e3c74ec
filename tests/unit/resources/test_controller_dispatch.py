"""Unit tests for GenericController request dispatch with a mocked repository."""

from typing import Any

import pytest
import pytest_check
from pytest_mock import MockerFixture, MockType
from sqlalchemy import ColumnElement, true
from sqlalchemy.ext.asyncio import AsyncSession

from crudkit.core.exceptions import ConstraintError
from crudkit.infrastructure.database import ModelCatalog, ModelRepository
from crudkit.infrastructure.database.catalog import CatalogEntry
from crudkit.resources import (
    DtoCriteria,
    DtoMapper,
    Filter,
    FilterCriteria,
    GenericController,
    Registries,
    Reply,
    ResourceRequest,
)
from tests.fixtures.models import Widget


class NameDto(DtoMapper):
    def supports(self, criteria: DtoCriteria) -> bool:
        return criteria.model == "Widget"

    async def to_dto(self, record: Any) -> Any:
        return {"label": record.name}


class AlwaysFilter(Filter):
    def supports(self, criteria: FilterCriteria) -> bool:
        return True

    def get_options(self, criteria: FilterCriteria) -> ColumnElement[bool]:
        return true()


@pytest.fixture
def repository(mocker: MockerFixture) -> MockType:
    """Repository double returned for every catalog entry."""
    repo = mocker.AsyncMock(spec=ModelRepository)
    mocker.patch.object(CatalogEntry, "repository", return_value=repo)
    return repo


@pytest.fixture
def session(mocker: MockerFixture) -> AsyncSession:
    mock: AsyncSession = mocker.AsyncMock(spec=AsyncSession)
    return mock


@pytest.fixture
def controller(catalog: ModelCatalog, registries: Registries) -> GenericController:
    return GenericController(catalog, registries)


def make_request(
    session: AsyncSession,
    method: str,
    entity_id: str | None = None,
    body: dict[str, Any] | None = None,
    query: dict[str, str] | None = None,
) -> ResourceRequest:
    return ResourceRequest(
        method=method,
        session=session,
        id=entity_id,
        body=body or {},
        query=query or {},
    )


def stored_widget(**values: Any) -> Widget:
    return Widget(**{"id": 5, "name": "gear", "status": "draft", **values})


@pytest.mark.unit
@pytest.mark.asyncio
class TestCollection:
    """Test GET without an identifier."""

    async def test_lists_records(
        self, controller: GenericController, repository: MockType, session: AsyncSession
    ) -> None:
        repository.find_many.return_value = [stored_widget(), stored_widget(id=6)]
        reply = Reply()

        await controller.process("Widget", make_request(session, "GET"), reply)

        with pytest_check.check:
            assert reply.status_code == 200
        with pytest_check.check:
            assert [item["id"] for item in reply.body] == [5, 6]
        repository.find_many.assert_awaited_once_with(
            where=None, order_by=[], skip=0, limit=10
        )

    async def test_passes_sorting_and_pagination(
        self, controller: GenericController, repository: MockType, session: AsyncSession
    ) -> None:
        repository.find_many.return_value = []
        request = make_request(
            session, "GET", query={"name": "asc", "page": "2", "limit": "100"}
        )

        await controller.process("Widget", request, Reply())

        repository.find_many.assert_awaited_once_with(
            where=None, order_by=[("name", "asc")], skip=100, limit=30
        )

    async def test_custom_filters_produce_predicate(
        self,
        catalog: ModelCatalog,
        registries: Registries,
        repository: MockType,
        session: AsyncSession,
    ) -> None:
        registries.filters.register(AlwaysFilter())
        registries.filters.register(AlwaysFilter())
        repository.find_many.return_value = []

        await GenericController(catalog, registries).process(
            "Widget", make_request(session, "GET"), Reply()
        )

        assert repository.find_many.await_args.kwargs["where"] is not None

    async def test_dto_list_mapping(
        self,
        catalog: ModelCatalog,
        registries: Registries,
        repository: MockType,
        session: AsyncSession,
    ) -> None:
        registries.dtos.register(NameDto())
        repository.find_many.return_value = [stored_widget()]
        reply = Reply()

        await GenericController(catalog, registries).process(
            "Widget", make_request(session, "GET"), reply
        )

        assert reply.body == [{"label": "gear"}]


@pytest.mark.unit
@pytest.mark.asyncio
class TestItem:
    """Test routes that carry an identifier."""

    async def test_get_existing_record(
        self, controller: GenericController, repository: MockType, session: AsyncSession
    ) -> None:
        repository.get_by_id.return_value = stored_widget()
        reply = Reply()

        await controller.process("Widget", make_request(session, "GET", "5"), reply)

        with pytest_check.check:
            assert reply.status_code == 200
        with pytest_check.check:
            assert reply.body["name"] == "gear"
        repository.get_by_id.assert_awaited_once_with(5)

    async def test_get_missing_record(
        self, controller: GenericController, repository: MockType, session: AsyncSession
    ) -> None:
        repository.get_by_id.return_value = None
        reply = Reply()

        await controller.process("Widget", make_request(session, "GET", "999"), reply)

        with pytest_check.check:
            assert reply.status_code == 404
        with pytest_check.check:
            assert reply.body == {"message": "Not found"}

    @pytest.mark.parametrize("method", ["PUT", "PATCH", "DELETE"])
    async def test_missing_identifier_is_not_found(
        self,
        controller: GenericController,
        repository: MockType,
        session: AsyncSession,
        method: str,
    ) -> None:
        reply = Reply()

        await controller.process("Widget", make_request(session, method), reply)

        with pytest_check.check:
            assert reply.status_code == 404
        repository.get_by_id.assert_not_awaited()

    async def test_unparsable_identifier_is_not_found(
        self, controller: GenericController, repository: MockType, session: AsyncSession
    ) -> None:
        reply = Reply()

        await controller.process("Widget", make_request(session, "PUT", "abc"), reply)

        with pytest_check.check:
            assert reply.status_code == 404
        repository.get_by_id.assert_not_awaited()
        repository.create.assert_not_awaited()

    async def test_get_item_uses_dto(
        self,
        catalog: ModelCatalog,
        registries: Registries,
        repository: MockType,
        session: AsyncSession,
    ) -> None:
        registries.dtos.register(NameDto())
        repository.get_by_id.return_value = stored_widget()
        reply = Reply()

        await GenericController(catalog, registries).process(
            "Widget", make_request(session, "GET", "5"), reply
        )

        assert reply.body == {"label": "gear"}

    async def test_delete(
        self, controller: GenericController, repository: MockType, session: AsyncSession
    ) -> None:
        repository.get_by_id.return_value = stored_widget()
        repository.delete.return_value = True
        reply = Reply()

        await controller.process("Widget", make_request(session, "DELETE", "5"), reply)

        with pytest_check.check:
            assert reply.status_code == 204
        with pytest_check.check:
            assert reply.body is None
        repository.delete.assert_awaited_once_with(5)

    async def test_unsupported_method_is_not_found(
        self, controller: GenericController, repository: MockType, session: AsyncSession
    ) -> None:
        repository.get_by_id.return_value = stored_widget()
        reply = Reply()

        await controller.process("Widget", make_request(session, "HEAD", "5"), reply)

        assert reply.status_code == 404

    async def test_unknown_model_is_not_found(
        self, controller: GenericController, session: AsyncSession
    ) -> None:
        reply = Reply()

        await controller.process("Gadget", make_request(session, "GET"), reply)

        assert reply.status_code == 404


@pytest.mark.unit
@pytest.mark.asyncio
class TestWrites:
    """Test create, replace and partial update."""

    async def test_create(
        self, controller: GenericController, repository: MockType, session: AsyncSession
    ) -> None:
        repository.create.return_value = stored_widget(name="x")
        reply = Reply()

        await controller.process(
            "Widget", make_request(session, "POST", body={"name": "x"}), reply
        )

        with pytest_check.check:
            assert reply.status_code == 201
        with pytest_check.check:
            assert reply.body["name"] == "x"
        repository.create.assert_awaited_once_with({"name": "x"})

    async def test_create_ignores_path_identifier(
        self, controller: GenericController, repository: MockType, session: AsyncSession
    ) -> None:
        repository.create.return_value = stored_widget(name="x")

        await controller.process(
            "Widget", make_request(session, "POST", "77", body={"name": "x"}), Reply()
        )

        repository.get_by_id.assert_not_awaited()
        repository.create.assert_awaited_once_with({"name": "x"})

    async def test_create_passes_explicit_identifier(
        self, controller: GenericController, repository: MockType, session: AsyncSession
    ) -> None:
        repository.create.return_value = stored_widget(id=7, name="x")

        await controller.process(
            "Widget", make_request(session, "POST", body={"id": "7", "name": "x"}), Reply()
        )

        repository.create.assert_awaited_once_with({"name": "x", "id": 7})

    async def test_create_validation_failure_writes_once(
        self, controller: GenericController, repository: MockType, session: AsyncSession
    ) -> None:
        reply = Reply()

        await controller.process("Widget", make_request(session, "POST"), reply)

        with pytest_check.check:
            assert reply.status_code == 400
        with pytest_check.check:
            assert reply.body == {"errors": ["name is required"]}
        repository.create.assert_not_awaited()

    async def test_create_constraint_failure(
        self, controller: GenericController, repository: MockType, session: AsyncSession
    ) -> None:
        repository.create.side_effect = ConstraintError(["name already taken"])
        reply = Reply()

        await controller.process(
            "Widget", make_request(session, "POST", body={"name": "x"}), reply
        )

        with pytest_check.check:
            assert reply.status_code == 400
        with pytest_check.check:
            assert reply.body == {"errors": ["name already taken"]}

    async def test_put_missing_record_creates_with_identifier(
        self, controller: GenericController, repository: MockType, session: AsyncSession
    ) -> None:
        repository.get_by_id.return_value = None
        repository.create.return_value = stored_widget(name="x")
        reply = Reply()

        await controller.process(
            "Widget", make_request(session, "PUT", "5", body={"name": "x"}), reply
        )

        with pytest_check.check:
            assert reply.status_code == 201
        repository.create.assert_awaited_once_with({"name": "x", "id": 5})

    async def test_put_missing_record_validates(
        self, controller: GenericController, repository: MockType, session: AsyncSession
    ) -> None:
        repository.get_by_id.return_value = None
        reply = Reply()

        await controller.process("Widget", make_request(session, "PUT", "5"), reply)

        with pytest_check.check:
            assert reply.status_code == 400
        with pytest_check.check:
            assert reply.body == {"errors": ["name is required"]}
        repository.create.assert_not_awaited()

    async def test_put_existing_record_replaces(
        self, controller: GenericController, repository: MockType, session: AsyncSession
    ) -> None:
        repository.get_by_id.return_value = stored_widget()
        reply = Reply()

        await controller.process(
            "Widget",
            make_request(session, "PUT", "5", body={"name": "new", "price": "2"}),
            reply,
        )

        with pytest_check.check:
            assert reply.status_code == 204
        with pytest_check.check:
            assert reply.body is None
        repository.update.assert_awaited_once_with(5, {"name": "new", "price": 2.0})

    async def test_put_existing_record_requires_full_body(
        self, controller: GenericController, repository: MockType, session: AsyncSession
    ) -> None:
        repository.get_by_id.return_value = stored_widget()
        reply = Reply()

        await controller.process(
            "Widget", make_request(session, "PUT", "5", body={"price": 3}), reply
        )

        with pytest_check.check:
            assert reply.status_code == 400
        repository.update.assert_not_awaited()

    async def test_patch_merges_onto_record(
        self, controller: GenericController, repository: MockType, session: AsyncSession
    ) -> None:
        repository.get_by_id.return_value = stored_widget()
        reply = Reply()

        await controller.process(
            "Widget", make_request(session, "PATCH", "5", body={"price": "12.5"}), reply
        )

        with pytest_check.check:
            assert reply.status_code == 204
        entity_id, data = repository.update.await_args.args
        with pytest_check.check:
            assert entity_id == 5
        with pytest_check.check:
            assert data["price"] == 12.5
        with pytest_check.check:
            assert data["name"] == "gear"
        with pytest_check.check:
            assert "id" not in data
        with pytest_check.check:
            assert "status" not in data

    async def test_patch_cannot_clear_required_field(
        self, controller: GenericController, repository: MockType, session: AsyncSession
    ) -> None:
        repository.get_by_id.return_value = stored_widget()
        reply = Reply()

        await controller.process(
            "Widget", make_request(session, "PATCH", "5", body={"name": None}), reply
        )

        with pytest_check.check:
            assert reply.body == {"errors": ["name is required"]}
        repository.update.assert_not_awaited()
