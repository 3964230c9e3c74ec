"""Generic resource handling: the controller and its extension registries.

- **contracts**: Request/reply types and the capability interfaces that
  call sites implement (processors, filters, DTO mappers, validators)
- **registry**: Lookup tables for those capabilities plus access rules
- **access**: Route-shape permission and hook resolution from access rules
- **controller**: The generic controller serving any cataloged model
"""

from crudkit.resources.contracts import (
    AccessRule,
    DtoCriteria,
    DtoMapper,
    Filter,
    FilterCriteria,
    ModelDto,
    Processor,
    ProcessorCriteria,
    Reply,
    ResourceRequest,
    RouteMethod,
    ValidationResult,
    Validator,
)
from crudkit.resources.controller import GenericController, Pagination
from crudkit.resources.registry import (
    AccessControlRegistry,
    DtoRegistry,
    FilterRegistry,
    ProcessorRegistry,
    Registries,
    ValidationRegistry,
)

__all__ = [
    "AccessControlRegistry",
    "AccessRule",
    "DtoCriteria",
    "DtoMapper",
    "DtoRegistry",
    "Filter",
    "FilterCriteria",
    "FilterRegistry",
    "GenericController",
    "ModelDto",
    "Pagination",
    "Processor",
    "ProcessorCriteria",
    "ProcessorRegistry",
    "Registries",
    "Reply",
    "ResourceRequest",
    "RouteMethod",
    "ValidationRegistry",
    "ValidationResult",
    "Validator",
]
