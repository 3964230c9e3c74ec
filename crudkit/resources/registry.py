"""Registries holding the per-model overrides of the generic controller.

Every registry is an ordered, append-only list populated at startup and
scanned linearly at request time. They are bundled in ``Registries`` and
passed to the router and controller explicitly.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field

from loguru import logger

from crudkit.resources.contracts import (
    AccessRule,
    DtoCriteria,
    DtoMapper,
    Filter,
    FilterCriteria,
    Processor,
    ProcessorCriteria,
    Validator,
)


class ProcessorRegistry:
    """Processors that replace the generic controller."""

    def __init__(self) -> None:
        self._processors: list[Processor] = []

    def register(self, processor: Processor) -> None:
        """Append a processor."""
        self._processors.append(processor)
        logger.debug("Registered processor {}", type(processor).__name__)

    def get_processor_for(self, criteria: ProcessorCriteria) -> Processor | None:
        """Return the first processor supporting the criteria."""
        return next((p for p in self._processors if p.supports(criteria)), None)


class FilterRegistry:
    """Filters narrowing collection queries."""

    def __init__(self) -> None:
        self._filters: list[Filter] = []

    def register(self, query_filter: Filter) -> None:
        """Append a filter."""
        self._filters.append(query_filter)
        logger.debug("Registered filter {}", type(query_filter).__name__)

    def get_filters_for(self, criteria: FilterCriteria) -> list[Filter]:
        """Return every filter supporting the criteria, in registration order."""
        return [f for f in self._filters if f.supports(criteria)]


class DtoRegistry:
    """Mappers projecting records into response bodies."""

    def __init__(self) -> None:
        self._mappers: list[DtoMapper] = []

    def register(self, mapper: DtoMapper) -> None:
        """Append a DTO mapper."""
        self._mappers.append(mapper)
        logger.debug("Registered DTO mapper {}", type(mapper).__name__)

    def get_dto_for(self, criteria: DtoCriteria) -> DtoMapper | None:
        """Return the first mapper supporting the criteria."""
        return next((m for m in self._mappers if m.supports(criteria)), None)


class AccessControlRegistry:
    """Access rules, accumulated per model."""

    def __init__(self) -> None:
        self._rules: list[AccessRule] = []

    def register(self, rule: AccessRule) -> None:
        """Append one rule."""
        self._rules.append(rule)
        logger.debug(
            "Registered access rule for {}: {}",
            rule.model,
            sorted(method.value for method in rule.methods),
        )

    def register_rules(self, rules: Iterable[AccessRule]) -> None:
        """Append several rules."""
        for rule in rules:
            self.register(rule)

    def get_access_rules_for(self, model: str) -> list[AccessRule]:
        """Return all rules declared for the model."""
        return [rule for rule in self._rules if rule.model == model]


class ValidationRegistry:
    """Custom validators, looked up by exact model name."""

    def __init__(self) -> None:
        self._validators: list[Validator] = []

    def register(self, validator: Validator) -> None:
        """Append a validator."""
        self._validators.append(validator)
        logger.debug("Registered validator for {}", validator.model)

    def get_validation_for(self, model: str) -> Validator | None:
        """Return the first validator declared for exactly this model."""
        return next((v for v in self._validators if v.model == model), None)


@dataclass(slots=True)
class Registries:
    """The five registries consulted by the router and the controller."""

    processors: ProcessorRegistry = field(default_factory=ProcessorRegistry)
    filters: FilterRegistry = field(default_factory=FilterRegistry)
    dtos: DtoRegistry = field(default_factory=DtoRegistry)
    access: AccessControlRegistry = field(default_factory=AccessControlRegistry)
    validators: ValidationRegistry = field(default_factory=ValidationRegistry)
