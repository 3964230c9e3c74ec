"""Access-rule evaluation for route registration."""

from collections.abc import Sequence

from crudkit.resources.contracts import AccessRule, RequestHook, RouteMethod

# The six route shapes bound per model, in registration order.
ROUTE_SHAPES: tuple[RouteMethod, ...] = (
    RouteMethod.POST,
    RouteMethod.GET_COLLECTION,
    RouteMethod.GET_ITEM,
    RouteMethod.PUT,
    RouteMethod.PATCH,
    RouteMethod.DELETE,
)

_GET_SHAPES = frozenset({RouteMethod.GET_ITEM, RouteMethod.GET_COLLECTION})


def rule_allows(rule: AccessRule, shape: RouteMethod) -> bool:
    """Whether a single rule includes the route shape."""
    if RouteMethod.ALL in rule.methods or shape in rule.methods:
        return True
    return shape in _GET_SHAPES and RouteMethod.GET in rule.methods


def is_suppressed(rules: Sequence[AccessRule]) -> bool:
    """A ``none`` rule hides every route of the model."""
    return any(RouteMethod.NONE in rule.methods for rule in rules)


def should_add_route(rules: Sequence[AccessRule], shape: RouteMethod) -> bool:
    """Decide whether the route shape is bound for a model with these rules.

    Models without rules are open. Otherwise the rules are unioned, and a
    ``none`` anywhere wins over everything else.
    """
    if is_suppressed(rules):
        return False
    if not rules:
        return True
    return any(rule_allows(rule, shape) for rule in rules)


def hooks_for(rules: Sequence[AccessRule], shape: RouteMethod) -> list[RequestHook]:
    """Flatten the hooks of every rule that includes the shape, in order."""
    return [
        hook
        for rule in rules
        if rule_allows(rule, shape)
        for hook in rule.on_request_hooks
    ]
