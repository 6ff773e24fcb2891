"""
The provenance log: an immutable tree describing what a fuzz call did.

Log entries are built bottom-up and returned by value. A mutator that recurses
wraps its children's entries as its own children, so the shape of the tree
mirrors the shape of the call tree that produced it. Nothing here keeps global
or shared state.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, Iterator, Union

from structfuzz.types import LogEntryDict, SessionLogDict


class LogKind(str, Enum):
    OPERATION = "operation"
    PARENT = "parent"
    ADD = "add"
    NOOP = "noop"
    ERROR = "error"


@dataclass(frozen=True)
class _EntryBase:
    message: str

    kind = LogKind.OPERATION

    @property
    def children(self) -> tuple[LogEntry, ...]:
        return ()

    def walk(self) -> Iterator[LogEntry]:
        """Yield this entry and all of its descendants, depth-first."""
        yield self  # type: ignore[misc]
        for child in self.children:
            yield from child.walk()

    def _count(self, kind: LogKind) -> int:
        return sum(1 for entry in self.walk() if entry.kind is kind)

    @property
    def mutations(self) -> int:
        return self._count(LogKind.OPERATION)

    @property
    def added(self) -> int:
        return self._count(LogKind.ADD)

    @property
    def noops(self) -> int:
        return self._count(LogKind.NOOP)

    @property
    def errors(self) -> int:
        return self._count(LogKind.ERROR)

    @property
    def changes(self) -> int:
        return self.mutations + self.added

    def to_dict(self) -> LogEntryDict:
        data: LogEntryDict = {"kind": self.kind.value, "message": self.message}
        if self.children:
            data["children"] = [child.to_dict() for child in self.children]
        return data

    def render(self, indent: str = "  ") -> str:
        """Render the tree as indented, human-readable lines."""
        lines: list[str] = []
        self._render_into(lines, 0, indent)
        return "\n".join(lines)

    def _render_into(self, lines: list[str], depth: int, indent: str) -> None:
        lines.append(f"{indent * depth}[{self.kind.value}] {self.message}")
        for child in self.children:
            child._render_into(lines, depth + 1, indent)


@dataclass(frozen=True)
class Operation(_EntryBase):
    """A single, concrete mutation."""

    kind = LogKind.OPERATION


@dataclass(frozen=True)
class NoOp(_EntryBase):
    """Nothing was changed; `message` says why."""

    kind = LogKind.NOOP

    @property
    def reason(self) -> str:
        return self.message


@dataclass(frozen=True)
class Add(_EntryBase):
    """A previously absent node was synthesized and attached."""

    detail: str = ""

    kind = LogKind.ADD

    def to_dict(self) -> LogEntryDict:
        data = super().to_dict()
        if self.detail:
            data["detail"] = self.detail
        return data

    def _render_into(self, lines: list[str], depth: int, indent: str) -> None:
        suffix = f" ({self.detail})" if self.detail else ""
        lines.append(f"{indent * depth}[{self.kind.value}] {self.message}{suffix}")


@dataclass(frozen=True)
class ErrorEntry(_EntryBase):
    """A mutator raised; the exception was recorded instead of aborting the pass."""

    error_type: str = ""

    kind = LogKind.ERROR

    @classmethod
    def from_exception(cls, exc: BaseException) -> ErrorEntry:
        return cls(message=str(exc) or type(exc).__name__, error_type=type(exc).__name__)

    def to_dict(self) -> LogEntryDict:
        data = super().to_dict()
        data["error_type"] = self.error_type
        return data


@dataclass(frozen=True)
class Parent(_EntryBase):
    """An entry whose effect is described by its children."""

    entries: tuple[LogEntry, ...] = field(default=())

    kind = LogKind.PARENT

    @property
    def children(self) -> tuple[LogEntry, ...]:
        return self.entries


LogEntry = Union[Operation, Parent, Add, NoOp, ErrorEntry]


def operation(message: str) -> Operation:
    return Operation(message)


def noop(reason: str) -> NoOp:
    return NoOp(f"No Operation: {reason}")


def add(message: str, detail: str = "") -> Add:
    return Add(message, detail)


def parent(message: str, children: LogEntry | Iterable[LogEntry]) -> Parent:
    """
    Wrap `children` under a new parent entry.

    A parent always has at least one child: an empty list of children is
    replaced by a single no-op entry.
    """
    if isinstance(children, _EntryBase):
        entries: tuple[LogEntry, ...] = (children,)  # type: ignore[assignment]
    else:
        entries = tuple(children)
    if not entries:
        entries = (noop("no children"),)
    return Parent(message, entries)


@dataclass(frozen=True)
class SessionLogbook:
    """The audit record of one top-level fuzz session."""

    started: datetime
    duration: float
    root: Parent

    @classmethod
    def log_session(
        cls,
        message: str,
        duration: float,
        children: Iterable[LogEntry],
        started: datetime | None = None,
    ) -> SessionLogbook:
        return cls(
            started=started or datetime.now(timezone.utc),
            duration=duration,
            root=parent(message, children),
        )

    @property
    def mutations(self) -> int:
        return self.root.mutations

    @property
    def added(self) -> int:
        return self.root.added

    @property
    def noops(self) -> int:
        return self.root.noops

    @property
    def errors(self) -> int:
        return self.root.errors

    @property
    def changes(self) -> int:
        return self.mutations + self.added

    def to_dict(self) -> SessionLogDict:
        return {
            "started": self.started.isoformat(),
            "duration_seconds": round(self.duration, 6),
            "mutations": self.mutations,
            "added": self.added,
            "noops": self.noops,
            "errors": self.errors,
            "session_log": self.root.to_dict(),
        }

    def to_json(self, indent: int | None = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    def render(self) -> str:
        header = (
            f"Session {self.started.isoformat()} ({self.duration:.4f}s): "
            f"mutated {self.mutations} / added {self.added} / noops {self.noops}"
        )
        return header + "\n" + self.root.render()
