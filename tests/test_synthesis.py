"""
Tests for the node factories (structfuzz/synthesis.py).
"""

import unittest
from decimal import Decimal

from structfuzz.model import (
    ELEMENT_TYPES,
    RESOURCE_TYPES,
    BooleanType,
    Bundle,
    Coding,
    DateType,
    DecimalType,
    DomainResource,
    Extension,
    IntegerType,
    Patient,
    Quantity,
    Resource,
    StringType,
    UriType,
)
from structfuzz.randomness import RandomSource
from structfuzz.synthesis import NodeFactory, SynthesisError


class TestNodeFactory(unittest.TestCase):
    """Tests for NodeFactory."""

    def setUp(self):
        self.factory = NodeFactory(RandomSource(seed=3))

    def test_primitive_elements_are_seeded(self):
        """Test that primitive elements get a value."""
        self.assertTrue(self.factory.create(StringType).value)
        self.assertRegex(self.factory.create(UriType).value, r"^https?://")
        self.assertIsInstance(self.factory.create(BooleanType).value, bool)
        self.assertIsInstance(self.factory.create(IntegerType).value, int)
        self.assertIsInstance(self.factory.create(DecimalType).value, Decimal)
        self.assertRegex(self.factory.create(DateType).value, r"^\d{4}")

    def test_extension_gets_url(self):
        """Test that extensions get a URL."""
        self.assertTrue(self.factory.create(Extension).url)

    def test_complex_nodes_are_sparse(self):
        """Test that complex nodes are created empty."""
        coding = self.factory.create(Coding)
        self.assertEqual(coding, Coding())
        self.assertEqual(self.factory.create(Patient), Patient())

    def test_every_concrete_type_can_be_created(self):
        """Test that every concrete type can be created."""
        for cls in list(ELEMENT_TYPES.values()) + list(RESOURCE_TYPES.values()):
            self.assertIsInstance(self.factory.create(cls), cls)

    def test_abstract_type_raises(self):
        """Test that abstract and foreign types raise SynthesisError."""
        with self.assertRaises(SynthesisError):
            self.factory.create(DomainResource)
        with self.assertRaises(SynthesisError):
            self.factory.create(int)

    def test_random_resource(self):
        """Test that random resources are concrete resource types."""
        for _ in range(20):
            resource = self.factory.create_random_resource()
            self.assertIsInstance(resource, Resource)
            self.assertIn(type(resource), RESOURCE_TYPES.values())

    def test_random_resource_with_exclusions(self):
        """Test exclusions, down to nothing left."""
        excluded = [cls for cls in RESOURCE_TYPES.values() if cls is not Bundle]
        self.assertIsInstance(self.factory.create_random_resource(exclude=excluded), Bundle)
        with self.assertRaises(SynthesisError):
            self.factory.create_random_resource(exclude=RESOURCE_TYPES.values())

    def test_random_element_among_alternatives(self):
        """Test that random elements come from the alternatives."""
        for _ in range(20):
            element = self.factory.create_random_element([Quantity, StringType])
            self.assertIn(type(element), (Quantity, StringType))
        with self.assertRaises(SynthesisError):
            self.factory.create_random_element([])


if __name__ == "__main__":
    unittest.main()
