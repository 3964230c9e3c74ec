"""Model catalog: the explicit map from model name to its persistence seam.

Built once at startup, either from an explicit list of mapped classes or
from every concrete class registered on a declarative base. Each entry
pairs the model's descriptor with a factory for a session-bound repository.
"""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Any

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import DeclarativeBase

from crudkit.infrastructure.database.repository import ModelRepository
from crudkit.infrastructure.database.schema import ModelDescriptor, describe_model


@dataclass(frozen=True, slots=True)
class CatalogEntry:
    """A mapped class and its descriptor."""

    model_class: type[Any]
    descriptor: ModelDescriptor

    @property
    def name(self) -> str:
        """The model name used by routes and registries."""
        return self.descriptor.name

    def repository(self, session: AsyncSession) -> ModelRepository[Any]:
        """Bind a repository for this model to the request's session."""
        return ModelRepository(
            session, self.model_class, id_field=self.descriptor.id_field.name
        )


class ModelCatalog:
    """Ordered, read-only collection of the models exposed over HTTP."""

    def __init__(self, entries: Iterable[CatalogEntry] = ()) -> None:
        self._entries: dict[str, CatalogEntry] = {}
        for entry in entries:
            if entry.name in self._entries:
                msg = f"Duplicate model name in catalog: {entry.name}"
                raise ValueError(msg)
            self._entries[entry.name] = entry

    @classmethod
    def from_models(cls, models: Iterable[type[Any]]) -> "ModelCatalog":
        """Describe each mapped class and collect the results."""
        return cls(
            CatalogEntry(model_class=model, descriptor=describe_model(model))
            for model in models
        )

    @classmethod
    def from_base(cls, base: type[DeclarativeBase]) -> "ModelCatalog":
        """Collect every concrete mapped class registered on a declarative base."""
        models = sorted(
            (mapper.class_ for mapper in base.registry.mappers),
            key=lambda model: model.__name__,
        )
        catalog = cls.from_models(models)
        logger.info("Model catalog built with {} models", len(catalog))
        return catalog

    def get(self, name: str) -> CatalogEntry | None:
        """Look up a model by name."""
        return self._entries.get(name)

    def __getitem__(self, name: str) -> CatalogEntry:
        return self._entries[name]

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __iter__(self) -> Iterator[CatalogEntry]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def names(self) -> list[str]:
        """Model names in catalog order."""
        return list(self._entries)
