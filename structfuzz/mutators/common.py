"""
Building blocks for per-type registrations.

Most mutators follow a handful of shapes: recurse into one sub-element,
recurse into one element of a repeated field, recurse into a choice, corrupt a
scalar, swap an enumeration value, drop a field. The factories here build those
closures from a field name so the registration modules stay declarative.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any

from structfuzz.logbook import LogEntry, noop, operation
from structfuzz.primitives import PrimitiveHint

if TYPE_CHECKING:
    from structfuzz.catalog import Mutator
    from structfuzz.context import EngineContext
    from structfuzz.model import Node


def _named(mutator: Any, name: str) -> Any:
    mutator.__name__ = name
    mutator.__qualname__ = name
    return mutator


def child(name: str) -> Mutator:
    """Recurse into the single sub-element `name`, synthesizing it when absent."""

    def mutate(ctx: EngineContext, node: Node) -> LogEntry:
        return ctx.fuzz_child(node, node.has(name), lambda: ctx.ensure(node, name))

    return _named(mutate, f"fuzz_{name}")


def children(name: str, seed: bool = True) -> Mutator:
    """
    Recurse into one element of the repeated field `name`.

    With `seed` an empty collection receives a first, synthesized element;
    otherwise an empty collection is a no-op.
    """

    def mutate(ctx: EngineContext, node: Node) -> LogEntry:
        fallback = (lambda: ctx.add(node, name)) if seed else None
        return ctx.fuzz_child_types(node, getattr(node, name), fallback)

    return _named(mutate, f"fuzz_{name}_items")


def choice_of(name: str) -> Mutator:
    """Recurse into the choice element `name`."""

    def mutate(ctx: EngineContext, node: Node) -> LogEntry:
        return ctx.fuzz_choice(node, getattr(node, name))

    return _named(mutate, f"fuzz_{name}_choice")


def scalar(name: str, hint: PrimitiveHint) -> Mutator:
    """Corrupt the plain string field `name` with the primitive fuzzer."""

    def mutate(ctx: EngineContext, node: Node) -> LogEntry:
        result = ctx.fuzz_primitive_type(
            f"Fuzz {name} of {node.type_name}", hint, getattr(node, name)
        )
        setattr(node, name, result.value)
        return result.entry

    return _named(mutate, f"fuzz_{name}_value")


def enum_field(name: str, enum_cls: type[Enum]) -> Mutator:
    """Replace the enumeration field `name` with a different member."""

    def mutate(ctx: EngineContext, node: Node) -> LogEntry:
        old = getattr(node, name)
        new = ctx.choose_enum(enum_cls, old)
        if new is None or new == old:
            return noop(f"{enum_cls.__name__} offers no alternative to {old}")
        setattr(node, name, new)
        old_value = old.value if old is not None else None
        return operation(f"Change {name} of {node.type_name}: {old_value} -> {new.value}")

    return _named(mutate, f"change_{name}")


def remove(name: str) -> Mutator:
    """Drop the field `name` altogether."""

    def mutate(ctx: EngineContext, node: Node) -> LogEntry:
        if not node.has(name):
            return noop(f"{node.type_name} has no {name} to remove")
        old = getattr(node, name)
        setattr(node, name, [] if isinstance(old, list) else None)
        return operation(f"Remove {name} from {node.type_name}")

    return _named(mutate, f"remove_{name}")


def fuzz_identity(ctx: EngineContext, node: Node) -> LogEntry:
    return ctx.fuzz_id_element(node, node)


fuzz_extensions = children("extension")

ELEMENT_BASE: list[Mutator] = [fuzz_identity, fuzz_extensions]
