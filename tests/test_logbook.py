"""
Tests for the provenance log (structfuzz/logbook.py).
"""

import dataclasses
import json
import unittest
from datetime import datetime, timezone

from structfuzz.logbook import (
    Add,
    ErrorEntry,
    LogKind,
    NoOp,
    Operation,
    Parent,
    SessionLogbook,
    add,
    noop,
    operation,
    parent,
)


class TestLogEntries(unittest.TestCase):
    """Tests for the log entry types and constructors."""

    def test_noop_is_prefixed(self):
        """Test that NoOp messages carry the "No Operation" prefix."""
        entry = noop("nothing to do")
        self.assertIsInstance(entry, NoOp)
        self.assertEqual(entry.message, "No Operation: nothing to do")
        self.assertEqual(entry.reason, entry.message)

    def test_parent_without_children_gets_a_noop(self):
        """Test that an empty parent gets a placeholder NoOp child."""
        entry = parent("empty", [])
        self.assertEqual(len(entry.children), 1)
        self.assertIsInstance(entry.children[0], NoOp)
        self.assertEqual(entry.children[0].message, "No Operation: no children")

    def test_parent_accepts_single_entry(self):
        """Test that parent() accepts a single entry."""
        entry = parent("one", operation("changed"))
        self.assertEqual(entry.children, (Operation("changed"),))

    def test_entries_are_immutable(self):
        """Test that log entries are frozen."""
        entry = operation("x")
        with self.assertRaises(dataclasses.FrozenInstanceError):
            entry.message = "y"

    def test_counts_are_recursive(self):
        """Test that counts include nested entries."""
        tree = parent(
            "root",
            [
                operation("a"),
                parent("nested", [add("b"), operation("c"), noop("d")]),
                ErrorEntry("boom", "RuntimeError"),
            ],
        )
        self.assertEqual(tree.mutations, 2)
        self.assertEqual(tree.added, 1)
        self.assertEqual(tree.noops, 1)
        self.assertEqual(tree.errors, 1)
        self.assertEqual(tree.changes, 3)

    def test_kinds(self):
        """Test the kind of every entry type."""
        self.assertIs(operation("x").kind, LogKind.OPERATION)
        self.assertIs(parent("x", []).kind, LogKind.PARENT)
        self.assertIs(add("x").kind, LogKind.ADD)
        self.assertIs(noop("x").kind, LogKind.NOOP)
        self.assertIs(ErrorEntry("x").kind, LogKind.ERROR)

    def test_error_entry_from_exception(self):
        """Test building an ErrorEntry from an exception."""
        entry = ErrorEntry.from_exception(KeyError("missing"))
        self.assertEqual(entry.error_type, "KeyError")
        self.assertIn("missing", entry.message)
        self.assertEqual(ErrorEntry.from_exception(RuntimeError()).message, "RuntimeError")

    def test_to_dict(self):
        """Test the dictionary form of a log tree."""
        tree = parent("root", [add("new", detail="Meta"), ErrorEntry("bad", "ValueError")])
        self.assertEqual(
            tree.to_dict(),
            {
                "kind": "parent",
                "message": "root",
                "children": [
                    {"kind": "add", "message": "new", "detail": "Meta"},
                    {"kind": "error", "message": "bad", "error_type": "ValueError"},
                ],
            },
        )

    def test_render_indents_children(self):
        """Test that render() indents children by two spaces."""
        tree = parent("root", [Add("new", "detail"), parent("inner", [operation("op")])])
        self.assertEqual(
            tree.render(),
            "[parent] root\n  [add] new (detail)\n  [parent] inner\n    [operation] op",
        )

    def test_walk_is_depth_first(self):
        """Test that walk() yields entries depth first."""
        tree = Parent("root", (Parent("a", (Operation("a1"),)), Operation("b")))
        self.assertEqual([e.message for e in tree.walk()], ["root", "a", "a1", "b"])


class TestSessionLogbook(unittest.TestCase):
    """Tests for SessionLogbook."""

    def setUp(self):
        self.started = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        self.logbook = SessionLogbook.log_session(
            "session",
            duration=0.5,
            children=[operation("a"), add("b"), noop("c")],
            started=self.started,
        )

    def test_counts(self):
        """Test the aggregated counts of a session."""
        self.assertEqual(self.logbook.mutations, 1)
        self.assertEqual(self.logbook.added, 1)
        self.assertEqual(self.logbook.noops, 1)
        self.assertEqual(self.logbook.errors, 0)
        self.assertEqual(self.logbook.changes, 2)

    def test_empty_session_has_noop_child(self):
        """Test that an empty session holds a NoOp."""
        logbook = SessionLogbook.log_session("empty", duration=0.0, children=[])
        self.assertEqual(logbook.changes, 0)
        self.assertEqual(logbook.noops, 1)

    def test_json_round_trip_of_summary(self):
        """Test the JSON form of a session logbook."""
        data = json.loads(self.logbook.to_json())
        self.assertEqual(data["started"], self.started.isoformat())
        self.assertEqual(data["duration_seconds"], 0.5)
        self.assertEqual(data["mutations"], 1)
        self.assertEqual(data["session_log"]["message"], "session")
        self.assertEqual(len(data["session_log"]["children"]), 3)

    def test_render_has_header(self):
        """Test that the rendered session starts with a summary header."""
        rendered = self.logbook.render()
        self.assertTrue(rendered.startswith("Session 2024-01-02T03:04:05+00:00"))
        self.assertIn("mutated 1 / added 1 / noops 1", rendered)


if __name__ == "__main__":
    unittest.main()
