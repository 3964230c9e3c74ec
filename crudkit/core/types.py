"""Type aliases for dynamic data structures throughout the application.

Request bodies, query strings and record maps cannot be statically typed
because their shape depends on the model being served. These aliases give
those structures a name.
"""

from typing import Any, TypeAlias

# JSON-compatible type that represents any valid JSON value
JsonValue: TypeAlias = (
    dict[str, "JsonValue"] | list["JsonValue"] | str | int | float | bool | None
)

# Field name to value map: request bodies, validated data, record columns
FieldMap: TypeAlias = dict[str, Any]

# Query-string parameters of a collection request
QueryItems: TypeAlias = dict[str, str]

# Sort keys derived from the query string, in request order
SortOptions: TypeAlias = list[tuple[str, str]]
