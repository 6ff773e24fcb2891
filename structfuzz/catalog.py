"""
The mutator catalog: a registry from concrete node type to candidate mutators.

Each registered type owns an ordered list of mutator entries. A mutator entry
is a callable `(context, node) -> LogEntry` that performs one specific
corruption in place. Lookup is by exact type; the only inheritance taken into
account is the family base set (resource / domain resource), which is placed
ahead of the type-specific entries when a registration is created.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Iterable

if TYPE_CHECKING:
    from structfuzz.context import EngineContext
    from structfuzz.logbook import LogEntry

logger = logging.getLogger(__name__)

Mutator = Callable[["EngineContext", Any], "LogEntry"]


class FuzzerError(Exception):
    """The fuzzing engine was used in a way it cannot serve."""


class CatalogError(FuzzerError):
    """A mutator registration is inconsistent."""


class MutatorCatalog:
    """Maps concrete node types to their candidate mutators."""

    def __init__(self) -> None:
        self._entries: dict[type, list[Mutator]] = {}
        self._base_sets: dict[type, list[Mutator]] = {}

    def set_base(self, family: type, mutators: Iterable[Mutator]) -> None:
        """
        Declare the base set inherited by every concrete type of `family`.

        Base sets must be declared before the family's types are registered;
        existing registrations are not rewritten.
        """
        self._base_sets[family] = list(mutators)

    def base_set_for(self, node_type: type) -> list[Mutator]:
        """Collect the base sets of every family `node_type` belongs to, most general first."""
        entries: list[Mutator] = []
        for cls in reversed(node_type.__mro__):
            entries.extend(self._base_sets.get(cls, ()))
        return entries

    def register(self, node_type: type, mutators: Iterable[Mutator] = ()) -> None:
        """Create (or extend) the registration of `node_type`."""
        if node_type not in self._entries:
            self._entries[node_type] = self.base_set_for(node_type)
        self._entries[node_type].extend(mutators)
        logger.debug(
            f"  -> Registered {node_type.__name__} with {len(self._entries[node_type])} mutator(s)"
        )

    def register_mutator(self, node_type: type, mutator: Mutator) -> None:
        """Append one mutator to an existing registration."""
        if node_type not in self._entries:
            raise CatalogError(
                f"Cannot add a mutator for {node_type.__name__}: the type is not registered"
            )
        self._entries[node_type].append(mutator)

    def entries_for(self, node_type: type) -> list[Mutator]:
        """
        Return the candidate mutators of `node_type`.

        Unregistered concrete types fall back to their family base set, which
        is empty for types outside any family.
        """
        if node_type in self._entries:
            return list(self._entries[node_type])
        if getattr(node_type, "abstract", False):
            return []
        return self.base_set_for(node_type)

    def registered_types(self) -> list[type]:
        return list(self._entries)

    def __contains__(self, node_type: object) -> bool:
        return node_type in self._entries

    def __len__(self) -> int:
        return len(self._entries)
