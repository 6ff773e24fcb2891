"""
Factories that construct syntactically valid node instances.

The engine uses these whenever an absent sub-element has to exist before it
can be mutated, and the embedding mutators use them to conjure a brand-new,
randomly typed sub-document.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable, TypeVar

from structfuzz.model import (
    ELEMENT_TYPES,
    RESOURCE_TYPES,
    BooleanType,
    CodeType,
    DateTimeType,
    DateType,
    DecimalType,
    Element,
    Extension,
    IdType,
    IntegerType,
    Node,
    Resource,
    StringType,
    SynthesisError,
    UriType,
    create_default,
)
from structfuzz.randomness import RandomSource

__all__ = ["NodeFactory", "SynthesisError"]

N = TypeVar("N", bound=Node)


class NodeFactory:
    """Builds default and random instances from the document model."""

    def __init__(self, randomness: RandomSource):
        self.randomness = randomness

    def create(self, cls: type[N]) -> N:
        """
        Construct a default instance of `cls`.

        Primitive elements receive a well-formed value so the instance is
        usable as-is; complex nodes are returned sparse.

        Raises:
            SynthesisError: `cls` is abstract or not a document node type.
        """
        node = create_default(cls)
        self._seed(node)
        return node

    def _seed(self, node: Node) -> None:
        rnd = self.randomness
        if isinstance(node, StringType):
            node.value = rnd.regex_string("[A-Za-z][A-Za-z ]{0,15}")
        elif isinstance(node, UriType):
            node.value = rnd.url()
        elif isinstance(node, CodeType):
            node.value = rnd.regex_string("[a-z][a-z0-9-]{0,11}")
        elif isinstance(node, IdType):
            node.value = rnd.regex_string("[A-Za-z0-9.-]{1,64}")
        elif isinstance(node, BooleanType):
            node.value = rnd.next_boolean()
        elif isinstance(node, IntegerType):
            node.value = rnd.next_int(-(2**31), 2**31 - 1)
        elif isinstance(node, DecimalType):
            node.value = Decimal(rnd.next_int(-100000, 100000)) / 100
        elif isinstance(node, DateTimeType):
            node.value = rnd.date_time()
        elif isinstance(node, DateType):
            node.value = rnd.date_time()[:10]
        elif isinstance(node, Extension):
            node.url = rnd.url("extension", rnd.regex_string("[a-z]{3,12}"))

    def create_random_resource(self, exclude: Iterable[type[Resource]] = ()) -> Resource:
        """Construct a default instance of a randomly chosen concrete resource type."""
        excluded = set(exclude)
        candidates = [cls for cls in RESOURCE_TYPES.values() if cls not in excluded]
        cls = self.randomness.pick_one(candidates)
        if cls is None:
            raise SynthesisError("No resource type left to synthesize")
        return self.create(cls)

    def create_random_element(self, alternatives: Iterable[type[Element]] | None = None) -> Element:
        """Construct a default instance of a randomly chosen concrete element type."""
        candidates = list(alternatives) if alternatives is not None else list(ELEMENT_TYPES.values())
        cls = self.randomness.pick_one(candidates)
        if cls is None:
            raise SynthesisError("No element type to synthesize")
        return self.create(cls)
