"""API-related constants."""

# HTTP Headers
CORRELATION_ID_HEADER = "X-Correlation-ID"
REQUEST_ID_HEADER = "X-Request-ID"

# Methods whose body is decoded into ResourceRequest.body
REQUEST_BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})

# Path parameter carrying the record identifier on item routes
ITEM_ID_PARAM = "id"
