"""
The recursive core of the mutation engine.

`EngineContext` is handed to every mutator invocation. It exposes the entry
points registrations are written against (`fuzz_child`, `fuzz_child_types`,
`fuzz_child_resources`, `fuzz_id_element`, `fuzz_primitive_type` and
`fuzz_choice`) and takes care of catalog lookup, random selection, synthesis
of absent sub-elements, failure containment and log composition.

Each entry point touches at most one node of the subtree it is given: it picks
one element, one catalog entry, and invokes it once. A whole-document pass is
built by the session driver in `structfuzz.engine`.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Iterable, Sequence, TypeVar

from structfuzz.catalog import Mutator, MutatorCatalog
from structfuzz.logbook import ErrorEntry, LogEntry, add, noop, parent
from structfuzz.model import Choice, Node
from structfuzz.primitives import PrimitiveFuzzer, PrimitiveHint, PrimitiveResult
from structfuzz.randomness import RandomSource
from structfuzz.synthesis import NodeFactory, SynthesisError

logger = logging.getLogger(__name__)

T = TypeVar("T")
E = TypeVar("E", bound=Enum)

DEFAULT_MAX_DEPTH = 48


def describe(owner: Any) -> str:
    """Name an owner given as a node, a node type or a plain label."""
    if isinstance(owner, type):
        return owner.__name__
    if isinstance(owner, Node):
        return owner.type_name
    return str(owner)


class EngineContext:
    """
    The context passed to every mutator.

    It carries the randomness source plus the collaborators needed to recurse:
    the catalog, the node factory and the primitive fuzzer. Apart from the
    randomness source and the current recursion depth it holds no state.
    """

    def __init__(
        self,
        randomness: RandomSource,
        catalog: MutatorCatalog,
        factory: NodeFactory | None = None,
        primitives: PrimitiveFuzzer | None = None,
        max_depth: int | None = DEFAULT_MAX_DEPTH,
    ):
        """
        Args:
            randomness: The source every random decision is drawn from.
            catalog: Where mutators are looked up by node type.
            factory: Builds missing sub-elements. Defaults to a NodeFactory
                sharing `randomness`.
            primitives: Corrupts scalar values. Defaults to a PrimitiveFuzzer
                sharing `randomness`.
            max_depth: Maximum nesting of mutator invocations; None disables
                the limit.
        """
        if max_depth is not None and max_depth < 1:
            raise ValueError(f"max_depth must be at least 1, got {max_depth}")
        self._randomness = randomness
        self.catalog = catalog
        self.factory = factory or NodeFactory(randomness)
        self.primitives = primitives or PrimitiveFuzzer(randomness)
        self.max_depth = max_depth
        self.depth = 0

    def randomness(self) -> RandomSource:
        return self._randomness

    # -- selection helpers -------------------------------------------------

    def choose_one(self, items: Sequence[T]) -> T | None:
        return self._randomness.pick_one(items)

    def choose_many(self, items: Iterable[T]) -> list[T]:
        return self._randomness.pick_many(items)

    def choose_enum(self, enum_cls: type[E], current: E | None = None) -> E | None:
        """Pick a member of `enum_cls` other than `current` whenever possible."""
        return self._randomness.pick_enum(enum_cls, exclude=current)

    # -- synthesis helpers -------------------------------------------------

    def ensure(self, node: Node, name: str) -> Any:
        """Return `node.<name>`, synthesizing and attaching it when absent."""
        return node.ensure(name, self.factory.create)

    def add(self, node: Node, name: str) -> Any:
        """Append a synthesized element to the repeated field `node.<name>`."""
        return node.add(name, self.factory.create)

    # -- dispatch ----------------------------------------------------------

    def invoke(self, node: Node) -> LogEntry:
        """
        Apply one randomly chosen catalog entry to `node`.

        A type without entries, or a call past the depth limit, yields a NoOp.
        Exceptions raised by the mutator are recorded as an ErrorEntry, except
        for SynthesisError which always propagates.
        """
        node_type = type(node)
        entries = self.catalog.entries_for(node_type)
        if not entries:
            logger.warning(f"[!] No mutators registered for {node_type.__name__}")
            return noop(f"no mutators registered for {node_type.__name__}")

        return self.apply(self._randomness.pick_one(entries), node)

    def apply(self, mutator: Mutator, node: Node) -> LogEntry:
        """Invoke one specific mutator on `node` under the depth limit."""
        node_type = type(node)
        if self.max_depth is not None and self.depth >= self.max_depth:
            logger.debug(f"  -> Depth limit {self.max_depth} reached at {node_type.__name__}")
            return noop(f"recursion depth limit {self.max_depth} reached at {node_type.__name__}")

        name = getattr(mutator, "__name__", repr(mutator))
        logger.debug(f"  -> Calling {name} on {node_type.__name__} (depth {self.depth})")

        self.depth += 1
        try:
            return mutator(self, node)
        except SynthesisError:
            raise
        except Exception as e:
            logger.warning(f"  [!] Mutator {name} failed on {node_type.__name__}: {e}")
            return ErrorEntry.from_exception(e)
        finally:
            self.depth -= 1

    def _fuzz_one(self, owner: Any, child: Node, added: bool, label: str = "") -> LogEntry:
        owner_name = describe(owner)
        entries: list[LogEntry] = []
        if added:
            entries.append(add(f"Add {child.type_name} to {owner_name}"))
        entries.append(self.invoke(child))
        prefix = f"{label} " if label else ""
        return parent(f"Call mutators for {prefix}{child.type_name} in {owner_name}", entries)

    # -- entry points ------------------------------------------------------

    def fuzz_child(
        self,
        owner: Any,
        present: bool | Callable[[], bool],
        accessor: Callable[[], Node | None],
    ) -> LogEntry:
        """
        Mutate a single sub-element of `owner`.

        Args:
            owner: The node (or node type) owning the sub-element.
            present: Whether the sub-element exists, or a predicate telling it.
            accessor: Returns the sub-element, constructing and attaching a
                default instance first when it is absent.

        Returns:
            A Parent entry holding an Add entry (only when the sub-element was
            synthesized) followed by the entry of the invoked mutator.
        """
        was_present = present() if callable(present) else bool(present)
        child = accessor()
        if child is None:
            return noop(f"{describe(owner)} provided no child to fuzz")
        return self._fuzz_one(owner, child, added=not was_present)

    def fuzz_child_types(
        self,
        owner: Any,
        collection: Sequence[Node],
        fallback: Callable[[], Node] | None = None,
    ) -> LogEntry:
        """
        Mutate one element of a repeated sub-element.

        An empty collection is seeded through `fallback` when given; without a
        fallback it is left untouched and a NoOp is returned.
        """
        if not collection:
            if fallback is None:
                return noop(f"no elements to fuzz in {describe(owner)}")
            return self._fuzz_one(owner, fallback(), added=True)
        return self._fuzz_one(owner, self._randomness.pick_one(collection), added=False)

    def fuzz_child_resources(self, owner: Any, contained: Sequence[Node]) -> LogEntry:
        """Mutate one embedded sub-document of `owner`."""
        if not contained:
            return noop(f"no contained resources to fuzz in {describe(owner)}")
        return self._fuzz_one(
            owner, self._randomness.pick_one(contained), added=False, label="contained"
        )

    def fuzz_id_element(self, owner: Any, node: Node | None) -> LogEntry:
        """Corrupt the identity value of `node`, synthesizing one when absent."""
        owner_name = describe(owner)
        if node is None:
            return noop(f"do not fuzz ID-Element for {owner_name} because the object is null")

        entries: list[LogEntry] = []
        if not node.id:
            node.id = self._randomness.uuid()
            entries.append(add(f"Add new ID-Element for {owner_name}", detail=node.id))
        result = self.fuzz_primitive_type(
            f"Fuzz ID-Element of {owner_name}", PrimitiveHint.IDENTIFIER, node.id
        )
        node.id = result.value
        entries.append(result.entry)
        return parent(f"Fuzz ID-Element for {owner_name}", entries)

    def fuzz_primitive_type(
        self, description: str, hint: PrimitiveHint, value: str | None
    ) -> PrimitiveResult:
        """
        Corrupt a scalar value. The caller writes the returned value back.

        The entry is a NoOp when the value came back unchanged.
        """
        result = self.primitives.fuzz(hint, value)
        entry = type(result.entry)(f"{description}: {result.entry.message}")
        return PrimitiveResult(result.value, entry)

    def fuzz_choice(self, owner: Any, slot: Choice) -> LogEntry:
        """
        Mutate a choice element.

        A populated choice is recursed into directly. An empty one gets a
        randomly chosen alternative synthesized and made active first, so that
        exactly one alternative is populated afterwards.
        """
        if slot.is_set:
            return self._fuzz_one(owner, slot.value, added=False, label="choice")
        alternative = self._randomness.pick_one(slot.alternatives)
        value = slot.set(self.factory.create(alternative))
        return self._fuzz_one(owner, value, added=True, label="choice")
