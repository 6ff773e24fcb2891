"""
Corruption strategies for scalar string values.

The `PrimitiveFuzzer` takes a semantic hint describing what a value is meant to
look like (free text, a URI, a code, an identifier, a date/time) and returns a
corrupted version of it together with an `Operation` log entry. The generic
strategies apply to every hint; each hint adds its own shape-aware strategies.

A strategy is a plain function `(randomness, value) -> new_value`. It is
registered under a human-readable name that becomes the prefix of the log
message.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable

from structfuzz.logbook import NoOp, Operation, noop
from structfuzz.randomness import RandomSource

Strategy = Callable[[RandomSource, str], str]

LONG_VALUE_LENGTH = 2048

BRACKETS = ["[]", "{}", "()", "<>", "[[]]", "{{}}", "([{<>}])"]
GARBAGE_TIMEZONES = ["+25:00", "-99:99", "Z+", "UTC", "+1:0", "+0100", "ZZ"]


class PrimitiveHint(str, Enum):
    TEXT = "text"
    URI = "uri"
    CODE = "code"
    IDENTIFIER = "identifier"
    DATE_TIME = "date_time"


@dataclass(frozen=True)
class PrimitiveResult:
    """A corrupted value and the entry describing how it was produced."""

    value: str
    entry: Operation | NoOp


# ---------------------------------------------------------------------------
# Generic strategies
# ---------------------------------------------------------------------------


def insert_characters(randomness: RandomSource, value: str) -> str:
    position = randomness.next_int(0, len(value))
    return value[:position] + randomness.regex_string("[!-~]{1,8}") + value[position:]


def delete_slice(randomness: RandomSource, value: str) -> str:
    if len(value) < 2:
        return value * 2
    count = randomness.next_int(1, len(value) - 1)
    start = randomness.next_int(0, len(value) - count)
    return value[:start] + value[start + count :]


def duplicate(randomness: RandomSource, value: str) -> str:
    return value * randomness.next_int(2, 4)


def invert_case(randomness: RandomSource, value: str) -> str:
    return value.swapcase()


def reverse(randomness: RandomSource, value: str) -> str:
    return value[::-1]


def boundary_length(randomness: RandomSource, value: str) -> str:
    if randomness.next_boolean():
        return value[0]
    repeats = LONG_VALUE_LENGTH // len(value) + 1
    return (value * repeats)[:LONG_VALUE_LENGTH]


def whitespace_only(randomness: RandomSource, value: str) -> str:
    return randomness.regex_string("\\s{1,5}")


# ---------------------------------------------------------------------------
# Shape-aware strategies
# ---------------------------------------------------------------------------


def append_version(randomness: RandomSource, value: str) -> str:
    return f"{value}|{randomness.version()}"


def append_random_string(randomness: RandomSource, value: str) -> str:
    return f"{value}|{randomness.regex_string('[a-zA-Z0-9]{1,12}')}"


def append_brackets(randomness: RandomSource, value: str) -> str:
    return f"{value}|{randomness.pick_one(BRACKETS)}"


def swap_scheme(randomness: RandomSource, value: str) -> str:
    if value.startswith("https://"):
        return "http://" + value[len("https://") :]
    if value.startswith("http://"):
        return "https://" + value[len("http://") :]
    return randomness.url(randomness.regex_string("[a-z]{1,10}"))


def random_code(randomness: RandomSource, value: str) -> str:
    return randomness.regex_string("[a-z][a-z0-9-]{0,15}")


def append_punctuation(randomness: RandomSource, value: str) -> str:
    return value + randomness.regex_string("[ !#$%&*|~]{1,3}")


def replace_identifier_part(randomness: RandomSource, value: str) -> str:
    """
    Replace one part of an identifier.

    `Type/id` references get either their type or their id replaced, URLs get
    their last path segment replaced, anything else becomes a random UUID.
    """
    if "://" in value:
        head, _, _ = value.rstrip("/").rpartition("/")
        return f"{head}/{randomness.regex_string('[A-Za-z0-9.-]{1,64}')}"
    if "/" in value:
        type_part, _, id_part = value.rpartition("/")
        if randomness.next_boolean():
            return f"{randomness.regex_string('[A-Z][a-zA-Z]{2,15}')}/{id_part}"
        return f"{type_part}/{randomness.uuid()}"
    return randomness.uuid()


def random_date_time(randomness: RandomSource, value: str) -> str:
    return randomness.date_time()


def impossible_calendar_value(randomness: RandomSource, value: str) -> str:
    year = randomness.next_int(0, 9999)
    return f"{year:04d}-{randomness.next_int(13, 99):02d}-{randomness.next_int(32, 99):02d}"


def garbage_timezone(randomness: RandomSource, value: str) -> str:
    return value + randomness.pick_one(GARBAGE_TIMEZONES)


GENERIC_STRATEGIES: list[tuple[str, Strategy]] = [
    ("Insert characters", insert_characters),
    ("Delete slice", delete_slice),
    ("Duplicate", duplicate),
    ("Invert case", invert_case),
    ("Reverse", reverse),
    ("Boundary length", boundary_length),
    ("Whitespace only", whitespace_only),
]

HINT_STRATEGIES: dict[PrimitiveHint, list[tuple[str, Strategy]]] = {
    PrimitiveHint.TEXT: [],
    PrimitiveHint.URI: [
        ("Append version", append_version),
        ("Append random string", append_random_string),
        ("Append brackets", append_brackets),
        ("Swap scheme", swap_scheme),
    ],
    PrimitiveHint.CODE: [
        ("Random code", random_code),
        ("Append punctuation", append_punctuation),
    ],
    PrimitiveHint.IDENTIFIER: [
        ("Replace identifier part", replace_identifier_part),
    ],
    PrimitiveHint.DATE_TIME: [
        ("Random date/time", random_date_time),
        ("Impossible calendar value", impossible_calendar_value),
        ("Garbage timezone", garbage_timezone),
    ],
}


class PrimitiveFuzzer:
    """Chooses and applies a corruption strategy for a scalar value."""

    def __init__(self, randomness: RandomSource):
        self.randomness = randomness
        self._strategies: dict[PrimitiveHint, list[tuple[str, Strategy]]] = {
            hint: GENERIC_STRATEGIES + HINT_STRATEGIES[hint] for hint in PrimitiveHint
        }

    def register(self, hint: PrimitiveHint, strategy: Strategy, name: str | None = None) -> None:
        """Add a custom strategy for `hint`."""
        label = name or strategy.__name__.replace("_", " ").capitalize()
        self._strategies[hint].append((label, strategy))

    def strategy_names(self, hint: PrimitiveHint) -> list[str]:
        return [name for name, _ in self._strategies[hint]]

    def synthesize(self, hint: PrimitiveHint) -> str:
        """Produce a fresh, well-formed value shaped for `hint`."""
        rnd = self.randomness
        if hint is PrimitiveHint.URI:
            return rnd.url(rnd.regex_string("[a-z]{1,10}"))
        if hint is PrimitiveHint.CODE:
            return rnd.regex_string("[a-z][a-z0-9-]{0,11}")
        if hint is PrimitiveHint.IDENTIFIER:
            return rnd.uuid()
        if hint is PrimitiveHint.DATE_TIME:
            return rnd.date_time()
        return rnd.regex_string("[A-Za-z][A-Za-z ]{0,15}")

    def fuzz(self, hint: PrimitiveHint, value: str | None = None) -> PrimitiveResult:
        """
        Corrupt `value` with a randomly chosen strategy for `hint`.

        Args:
            hint: What the value is meant to look like.
            value: The current value. Absent or blank values are replaced by a
                synthesized one before the corruption is applied.

        Returns:
            A PrimitiveResult whose value is never None or empty. The entry is
            a NoOp when the chosen strategy left a present value unchanged.
        """
        original = value
        base = str(value) if value is not None else ""
        synthesized = not base.strip()
        if synthesized:
            base = self.synthesize(hint)

        name, strategy = self.randomness.pick_one(self._strategies[hint])
        fuzzed = strategy(self.randomness, base)
        if not fuzzed:
            fuzzed = base
        if fuzzed == base and not synthesized:
            return PrimitiveResult(fuzzed, noop(f"{name} left {original!r} unchanged"))

        message = f"{name}: {original!r} -> {fuzzed!r}"
        if synthesized:
            message += " (synthesized)"
        return PrimitiveResult(fuzzed, Operation(message))
