"""
Seeded randomness primitives shared by every part of a fuzzing run.

A single `RandomSource` is threaded through one fuzz call tree. It is not safe
to share one instance between parallel fuzz passes; give each pass its own.
"""

from __future__ import annotations

import random
import re
import uuid
from enum import Enum
from typing import Iterable, Sequence, TypeVar

import rstr

T = TypeVar("T")
E = TypeVar("E", bound=Enum)

DEFAULT_PROBABILITY = 1.0

URL_SCHEMES = ["http://", "https://"]
TOP_LEVEL_DOMAINS = ["com", "org", "net", "de", "io", "example"]
DATE_TIME_PRECISIONS = ["year", "month", "day", "second", "millisecond"]


class ProbabilityDice:
    """A biased coin: `toss()` is True with the configured probability."""

    def __init__(self, rnd: random.Random, probability: float):
        if not 0.0 <= probability <= 1.0:
            raise ValueError(f"Probability must be within [0.0, 1.0], got {probability}")
        self.rnd = rnd
        self.probability = probability

    def toss(self) -> bool:
        if self.probability >= 1.0:
            return True
        if self.probability <= 0.0:
            return False
        return self.rnd.random() < self.probability

    def choose_many(self, items: Iterable[T]) -> list[T]:
        """Keep each item independently with the dice probability. May be empty."""
        return [item for item in items if self.toss()]


class RandomSource:
    """
    The randomness abstraction used by the engine, the primitive fuzzer and
    every registered mutator.

    All values are drawn from one `random.Random` seeded at construction, so a
    run with a fixed seed is reproducible as long as the same registrations
    are used.
    """

    def __init__(self, seed: int | None = None, probability: float = DEFAULT_PROBABILITY):
        """
        Args:
            seed: Seed for the underlying generator. A random seed is drawn
                (and remembered) when omitted.
            probability: Probability used by the mutator and child dice.
        """
        self.seed = seed if seed is not None else random.SystemRandom().randrange(2**32)
        self.rnd = random.Random(self.seed)
        self.mutator_dice = ProbabilityDice(self.rnd, probability)
        self.child_dice = ProbabilityDice(self.rnd, probability)
        self._xeger = rstr.Rstr(self.rnd)

    def next_int(self, lo: int, hi: int) -> int:
        """Return an integer N with lo <= N <= hi."""
        return self.rnd.randint(lo, hi)

    def next_boolean(self) -> bool:
        return self.rnd.random() < 0.5

    def next_bytes(self, n: int) -> bytes:
        if n <= 0:
            return b""
        return self.rnd.getrandbits(8 * n).to_bytes(n, "little")

    def pick_one(self, seq: Sequence[T]) -> T | None:
        """Uniformly pick one element, or None when `seq` is empty."""
        if not seq:
            return None
        return seq[self.rnd.randrange(len(seq))]

    def pick_enum(self, enum_cls: type[E], exclude: E | Iterable[E] | None = None) -> E | None:
        """
        Pick a random member of `enum_cls`, avoiding the excluded member(s).

        An enumeration with a single member always yields that member, even if
        it is excluded. When every member of a larger enumeration is excluded
        the result is None.
        """
        members = list(enum_cls)
        if len(members) == 1:
            return members[0]

        if exclude is None:
            excluded: set[E] = set()
        elif isinstance(exclude, Enum):
            excluded = {exclude}
        else:
            excluded = set(exclude)

        candidates = [m for m in members if m not in excluded]
        return self.pick_one(candidates)

    def pick_many(self, items: Iterable[T]) -> list[T]:
        """Sample a subset of `items` with the child dice; the subset may be empty."""
        return self.child_dice.choose_many(items)

    def sample(self, items: Sequence[T], k: int) -> list[T]:
        """Pick `k` distinct positions of `items` in random order."""
        return self.rnd.sample(list(items), k)

    def regex_string(self, pattern: str) -> str:
        """
        Generate a string that `re.fullmatch(pattern, ...)` accepts.

        Unbounded repeats (`*`, `+`, `{m,}`) are capped by rstr.

        Raises:
            ValueError: `pattern` is not a valid regular expression.
        """
        try:
            return self._xeger.xeger(pattern)
        except re.error as e:
            raise ValueError(f"Invalid pattern {pattern!r}: {e}") from e

    def uuid(self) -> str:
        return str(uuid.UUID(int=self.rnd.getrandbits(128), version=4))

    def url(self, *path: object) -> str:
        scheme = self.pick_one(URL_SCHEMES)
        host = self.regex_string("[a-z]{3,12}(\\.[a-z]{2,8})?")
        tld = self.pick_one(TOP_LEVEL_DOMAINS)
        base = f"{scheme}{host}.{tld}"
        return "/".join([base, *(str(p) for p in path)])

    def version(self) -> str:
        return f"{self.next_int(0, 20)}.{self.next_int(0, 50)}.{self.next_int(0, 200)}"

    def date_time(self) -> str:
        """A random ISO-8601 date/time rendered at a random precision."""
        year = self.next_int(1, 9999)
        month = self.next_int(1, 12)
        day = self.next_int(1, 28)
        precision = self.pick_one(DATE_TIME_PRECISIONS)
        if precision == "year":
            return f"{year:04d}"
        if precision == "month":
            return f"{year:04d}-{month:02d}"
        if precision == "day":
            return f"{year:04d}-{month:02d}-{day:02d}"

        clock = f"{self.next_int(0, 23):02d}:{self.next_int(0, 59):02d}:{self.next_int(0, 59):02d}"
        if precision == "millisecond":
            clock += f".{self.next_int(0, 999):03d}"
        offset = self.pick_one(["Z", "+01:00", "-05:00", "+14:00"])
        return f"{year:04d}-{month:02d}-{day:02d}T{clock}{offset}"
