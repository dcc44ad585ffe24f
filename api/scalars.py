from datetime import datetime
from typing import NewType

import strawberry
from graphql import StringValueNode

from moviegraph.errors import CoercionError
from moviegraph.timestamps import format_instant, parse_instant


def serialize_instant(value) -> str:
    return format_instant(value)


def parse_instant_value(value) -> datetime:
    """Parses an Instant supplied as a variable."""
    if not isinstance(value, str):
        raise CoercionError(f"unsupported value {value!r}")
    return parse_instant(value)


def parse_instant_literal(value_node, variables=None) -> datetime:
    """Parses an Instant written inline in the query document; only string literals qualify."""
    if not isinstance(value_node, StringValueNode):
        raise CoercionError(f"unsupported value {getattr(value_node, 'value', value_node)!r}")
    return parse_instant(value_node.value)


Instant = NewType("Instant", datetime)

INSTANT_SCALAR = strawberry.scalar(
    name="Instant",
    description="A point in time, as an ISO-8601 UTC string such as 2024-05-01T12:00:00Z.",
    serialize=serialize_instant,
    parse_value=parse_instant_value,
    parse_literal=parse_instant_literal,
)

# Registered on the schema through StrawberryConfig(scalar_map=...)
SCALAR_MAP = {Instant: INSTANT_SCALAR}
