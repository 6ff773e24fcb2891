"""
Tests for the document model (structfuzz/model.py).
"""

import unittest
from decimal import Decimal

from structfuzz.model import (
    Bundle,
    BooleanType,
    Choice,
    CodeableConcept,
    DateTimeType,
    DecimalType,
    DomainResource,
    Extension,
    HumanName,
    Identifier,
    Meta,
    Observation,
    ObservationStatus,
    Patient,
    Period,
    Quantity,
    Resource,
    StringType,
    SynthesisError,
    UriType,
    create_default,
    field_specs,
    from_dict,
    to_dict,
)


class TestAccessors(unittest.TestCase):
    """Tests for the Node field accessors."""

    def test_fresh_instances_are_sparse(self):
        """Test that new nodes have no fields set."""
        patient = Patient()
        self.assertFalse(patient.has("meta"))
        self.assertFalse(patient.has("name"))
        self.assertFalse(patient.has("deceased"))

    def test_ensure_attaches_default_once(self):
        """Test that ensure() creates the field once and reuses it."""
        patient = Patient()
        meta = patient.ensure("meta")
        self.assertIsInstance(meta, Meta)
        self.assertTrue(patient.has("meta"))
        self.assertIs(patient.ensure("meta"), meta)

    def test_ensure_uses_given_factory(self):
        """Test that ensure() builds through the given factory."""
        patient = Patient()
        text = patient.ensure("birth_date", lambda cls: cls(value="2000-01-01"))
        self.assertEqual(text.value, "2000-01-01")

    def test_ensure_on_repeated_field_returns_list(self):
        """Test that ensure() on a repeated field returns the list."""
        patient = Patient()
        self.assertEqual(patient.ensure("name"), [])

    def test_ensure_on_scalar_field_fails(self):
        """Test that ensure() refuses plain scalar fields."""
        with self.assertRaises(SynthesisError):
            Extension().ensure("url")

    def test_add_appends_default_element(self):
        """Test that add() appends a default element."""
        patient = Patient()
        name = patient.add("name")
        self.assertIsInstance(name, HumanName)
        self.assertEqual(patient.name, [name])

    def test_add_on_single_field_fails(self):
        """Test that add() refuses non-repeated fields."""
        with self.assertRaises(AttributeError):
            Patient().add("meta")

    def test_add_to_abstract_collection_fails(self):
        """Test that add() cannot build abstract element types."""
        with self.assertRaises(SynthesisError):
            Patient().add("contained")

    def test_attach_returns_value(self):
        """Test that attach() sets and returns the value."""
        period = Period()
        start = DateTimeType(value="2020")
        self.assertIs(period.attach("start", start), start)
        self.assertIs(period.start, start)

    def test_unknown_field(self):
        """Test that unknown field names raise AttributeError."""
        with self.assertRaises(AttributeError):
            Patient().spec("nope")


class TestChoice(unittest.TestCase):
    """Tests for Choice fields."""

    def test_set_replaces_active_alternative(self):
        """Test that set() switches the active alternative."""
        slot = Choice(BooleanType, DateTimeType)
        slot.set(BooleanType(value=True))
        self.assertIs(slot.active, BooleanType)
        slot.set(DateTimeType(value="2020"))
        self.assertIs(slot.active, DateTimeType)
        self.assertIsInstance(slot.value, DateTimeType)

    def test_set_rejects_undeclared_type(self):
        """Test that set() rejects types outside the alternatives."""
        slot = Choice(BooleanType, DateTimeType)
        with self.assertRaises(TypeError):
            slot.set(StringType(value="x"))
        self.assertFalse(slot.is_set)

    def test_needs_alternatives(self):
        """Test that a choice needs at least one alternative."""
        with self.assertRaises(ValueError):
            Choice()

    def test_forward_declared_alternatives_resolve(self):
        """Test that alternatives named by string are resolved."""
        self.assertIn(Quantity, Extension().value.alternatives)

    def test_instances_do_not_share_choices(self):
        """Test that each node owns its own Choice."""
        first, second = Patient(), Patient()
        first.deceased.set(BooleanType(value=True))
        self.assertFalse(second.deceased.is_set)


class TestFactoriesAndSpecs(unittest.TestCase):
    """Tests for default factories and field specs."""

    def test_abstract_types_cannot_be_created(self):
        """Test that abstract types cannot be instantiated by default."""
        for cls in (Resource, DomainResource):
            with self.assertRaises(SynthesisError):
                create_default(cls)

    def test_foreign_types_cannot_be_created(self):
        """Test that non-node types cannot be created."""
        with self.assertRaises(SynthesisError):
            create_default(str)

    def test_field_specs(self):
        """Test the field metadata derived from type hints."""
        specs = field_specs(Observation)
        self.assertTrue(specs["identifier"].repeated)
        self.assertIs(specs["identifier"].target, Identifier)
        self.assertTrue(specs["value"].is_choice)
        self.assertIs(specs["code"].target, CodeableConcept)
        self.assertTrue(specs["code"].is_node)
        self.assertIs(specs["status"].target, ObservationStatus)
        self.assertFalse(specs["status"].is_node)


class TestDictConversion(unittest.TestCase):
    """Tests for to_dict and from_dict."""

    def test_to_dict_skips_absent_fields(self):
        """Test that absent fields are left out of the dictionary."""
        self.assertEqual(to_dict(Patient()), {"resourceType": "Patient"})

    def test_nested_document_survives_conversion(self):
        """Test that a nested document converts to a dict and back."""
        observation = Observation(id="obs-1", status=ObservationStatus.FINAL)
        observation.value.set(
            Quantity(value=DecimalType(value=Decimal("1.5")), unit=StringType(value="mg"))
        )
        observation.contained.append(Patient(id="p"))
        observation.extension.append(Extension(url="http://x", id="e"))

        data = to_dict(observation)
        self.assertEqual(data["status"], "final")
        self.assertEqual(
            data["value"], {"Quantity": {"value": {"value": "1.5"}, "unit": {"value": "mg"}}}
        )
        self.assertEqual(data["contained"], [{"resourceType": "Patient", "id": "p"}])

        restored = from_dict(Resource, data)
        self.assertEqual(restored, observation)

    def test_bundle_entries(self):
        """Test that bundle entries keep their resource type."""
        bundle = Bundle(id="b")
        bundle.add_entry(Patient(id="p")).full_url = UriType(value="urn:uuid:1")
        restored = from_dict(Bundle, to_dict(bundle))
        self.assertIsInstance(restored.entry[0].resource, Patient)
        self.assertEqual(restored.entry[0].full_url.value, "urn:uuid:1")

    def test_unknown_resource_type(self):
        """Test that an unknown resourceType raises ValueError."""
        with self.assertRaises(ValueError):
            from_dict(Resource, {"resourceType": "Spaceship"})

    def test_unknown_choice_alternative(self):
        """Test that an undeclared choice alternative raises ValueError."""
        with self.assertRaises(ValueError):
            from_dict(Patient, {"resourceType": "Patient", "deceased": {"Quantity": {}}})


if __name__ == "__main__":
    unittest.main()
