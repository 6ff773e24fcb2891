"""
Tests for the session driver (structfuzz/engine.py).
"""

import unittest

from structfuzz.catalog import MutatorCatalog
from structfuzz.context import EngineContext
from structfuzz.engine import FuzzerError, FuzzingEngine, build_default_engine
from structfuzz.logbook import SessionLogbook, noop, operation
from structfuzz.model import RESOURCE_TYPES, Bundle, Patient, Task, to_dict
from structfuzz.randomness import RandomSource


def make_engine(catalog, max_retries=10, seed=5):
    return FuzzingEngine(EngineContext(RandomSource(seed=seed), catalog), max_retries=max_retries)


class TestFuzzingEngine(unittest.TestCase):
    """Tests for FuzzingEngine sessions and retries."""

    def test_document_type_without_entries_raises(self):
        """A session cannot start when the catalog knows nothing about the document."""
        engine = make_engine(MutatorCatalog())
        with self.assertRaises(FuzzerError):
            engine.fuzz(Patient())
        self.assertEqual(engine.session_history, [])

    def test_last_session_log_before_any_session(self):
        """Test that last_session_log raises before the first session."""
        engine = make_engine(MutatorCatalog())
        with self.assertRaises(FuzzerError):
            engine.last_session_log

    def test_history_is_newest_first(self):
        """Test that session_history lists the newest session first."""
        catalog = MutatorCatalog()
        catalog.register(Patient, [lambda ctx, node: operation("changed")])
        engine = make_engine(catalog)

        first = engine.fuzz(Patient())
        second = engine.fuzz(Patient())

        self.assertIsInstance(first, SessionLogbook)
        self.assertIs(engine.last_session_log, second)
        self.assertEqual(engine.session_history, [second, first])
        self.assertEqual(second.root.message, "Fuzzing session for Patient")

    def test_session_without_changes_is_retried(self):
        """Sessions that only produce no-ops are repeated and merged into one log."""
        calls = []

        def lazy(ctx, node):
            calls.append(node)
            if len(calls) < 3:
                return noop("not yet")
            return operation("finally")

        catalog = MutatorCatalog()
        catalog.register(Patient, [lazy])
        logbook = make_engine(catalog).fuzz(Patient())

        self.assertEqual(len(calls), 3)
        self.assertEqual(len(logbook.root.children), 3)
        self.assertEqual(logbook.mutations, 1)
        self.assertEqual(logbook.noops, 2)

    def test_retries_are_bounded(self):
        """Test that retries stop after max_retries."""
        catalog = MutatorCatalog()
        catalog.register(Patient, [lambda ctx, node: noop("never")])
        logbook = make_engine(catalog, max_retries=3).fuzz(Patient())
        self.assertEqual(len(logbook.root.children), 4)
        self.assertEqual(logbook.changes, 0)

    def test_negative_retries_rejected(self):
        """Test that a negative max_retries is rejected."""
        with self.assertRaises(ValueError):
            make_engine(MutatorCatalog(), max_retries=-1)

    def test_session_applies_registered_entries_only(self):
        """Test that sessions only call registered mutators."""
        seen = []

        def first(ctx, node):
            seen.append("first")
            return operation("first")

        def second(ctx, node):
            seen.append("second")
            return operation("second")

        catalog = MutatorCatalog()
        catalog.register(Task, [first, second])
        engine = make_engine(catalog)
        for _ in range(20):
            engine.fuzz(Task())
        self.assertTrue(seen)
        self.assertTrue(set(seen) <= {"first", "second"})


class TestDefaultEngine(unittest.TestCase):
    """Tests for the engine built with the default registrations."""

    def test_every_resource_type_can_be_fuzzed(self):
        """Test that the default engine handles every resource type."""
        engine = build_default_engine(seed=42)
        for cls in RESOURCE_TYPES.values():
            document = engine.context.factory.create(cls)
            for _ in range(10):
                logbook = engine.fuzz(document)
                self.assertIsNotNone(logbook.root)
            # Still a serializable document of the same type.
            self.assertEqual(to_dict(document)["resourceType"], cls.__name__)

    def test_same_seed_same_result(self):
        """Test that the same seed produces the same document."""
        documents = []
        for _ in range(2):
            engine = build_default_engine(seed=7)
            bundle = Bundle(id="b")
            for _ in range(5):
                engine.fuzz(bundle)
            documents.append(to_dict(bundle))
        self.assertEqual(documents[0], documents[1])

    def test_sessions_change_the_document(self):
        """Test that a default session records at least one change."""
        engine = build_default_engine(seed=11)
        patient = Patient()
        logbook = engine.fuzz(patient)
        self.assertGreater(logbook.changes, 0)


if __name__ == "__main__":
    unittest.main()
