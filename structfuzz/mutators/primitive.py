"""Registrations for the primitive element types."""

from __future__ import annotations

from decimal import Decimal

from structfuzz.catalog import MutatorCatalog
from structfuzz.context import EngineContext
from structfuzz.logbook import LogEntry, noop, operation
from structfuzz.model import (
    BooleanType,
    CodeType,
    DateTimeType,
    DateType,
    DecimalType,
    IdType,
    IntegerType,
    StringType,
    UriType,
)
from structfuzz.mutators.common import scalar
from structfuzz.primitives import PrimitiveHint

INTEGER_BOUNDARIES = [0, -1, 2**31 - 1, -(2**31), 2**31, 2**63]


def flip_boolean(ctx: EngineContext, node: BooleanType) -> LogEntry:
    old = node.value
    if old is None:
        old = ctx.randomness().next_boolean()
    node.value = not old
    return operation(f"Flip BooleanType value: {old} -> {node.value}")


def negate_integer(ctx: EngineContext, node: IntegerType) -> LogEntry:
    old = node.value if node.value is not None else ctx.randomness().next_int(1, 2**31 - 1)
    if old == 0:
        return noop("IntegerType value 0 has no negation")
    node.value = -old
    return operation(f"Negate IntegerType value: {old} -> {node.value}")


def integer_boundary(ctx: EngineContext, node: IntegerType) -> LogEntry:
    old = node.value
    node.value = ctx.choose_one([b for b in INTEGER_BOUNDARIES if b != old])
    return operation(f"Set IntegerType to boundary value: {old} -> {node.value}")


def negate_decimal(ctx: EngineContext, node: DecimalType) -> LogEntry:
    old = node.value if node.value is not None else Decimal(ctx.randomness().next_int(1, 10**6))
    node.value = -old
    return operation(f"Negate DecimalType value: {old} -> {node.value}")


def explode_decimal_scale(ctx: EngineContext, node: DecimalType) -> LogEntry:
    old = node.value
    exponent = ctx.randomness().next_int(20, 400) * ctx.choose_one([1, -1])
    node.value = (old if old is not None else Decimal(1)).scaleb(exponent)
    return operation(f"Scale DecimalType value by 10^{exponent}: {old} -> {node.value}")


def register_primitive_mutators(catalog: MutatorCatalog) -> None:
    catalog.register(StringType, [scalar("value", PrimitiveHint.TEXT)])
    catalog.register(UriType, [scalar("value", PrimitiveHint.URI)])
    catalog.register(CodeType, [scalar("value", PrimitiveHint.CODE)])
    catalog.register(IdType, [scalar("value", PrimitiveHint.IDENTIFIER)])
    catalog.register(DateTimeType, [scalar("value", PrimitiveHint.DATE_TIME)])
    catalog.register(DateType, [scalar("value", PrimitiveHint.DATE_TIME)])
    catalog.register(BooleanType, [flip_boolean])
    catalog.register(IntegerType, [negate_integer, integer_boundary])
    catalog.register(DecimalType, [negate_decimal, explode_decimal_scale])
