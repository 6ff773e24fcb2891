"""
The session driver: runs whole-document fuzzing passes.

A session picks a random subset of the document type's catalog entries and
invokes each of them once through the shared `EngineContext`. The results are
collected into a `SessionLogbook`, which is returned and kept in the session
history (newest first).
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone

from structfuzz.catalog import FuzzerError, Mutator, MutatorCatalog
from structfuzz.context import DEFAULT_MAX_DEPTH, EngineContext
from structfuzz.logbook import LogEntry, SessionLogbook
from structfuzz.model import Node
from structfuzz.mutators import register_default_mutators
from structfuzz.primitives import PrimitiveFuzzer
from structfuzz.randomness import DEFAULT_PROBABILITY, RandomSource
from structfuzz.synthesis import NodeFactory

__all__ = ["DEFAULT_MAX_RETRIES", "FuzzerError", "FuzzingEngine", "build_default_engine"]

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 10


class FuzzingEngine:
    """Drives fuzzing sessions over whole documents and remembers their logs."""

    def __init__(self, context: EngineContext, max_retries: int = DEFAULT_MAX_RETRIES):
        if max_retries < 0:
            raise ValueError(f"max_retries must not be negative, got {max_retries}")
        self.context = context
        self.max_retries = max_retries
        self._history: list[SessionLogbook] = []

    def fuzz(self, document: Node) -> SessionLogbook:
        """
        Run one fuzzing session over `document`, mutating it in place.

        A session that changed nothing is repeated, up to `max_retries` times,
        and the logs of all attempts are merged into one logbook.

        Raises:
            FuzzerError: No mutators are registered for the document's type.
        """
        doc_name = document.type_name
        entries = self.context.catalog.entries_for(type(document))
        if not entries:
            raise FuzzerError(f"No mutators registered for {doc_name}, cannot start a session")

        logger.info(f"[*] Starting fuzzing session for {doc_name}")
        started = datetime.now(timezone.utc)
        start_time = time.monotonic()

        log_entries = self._run_session(document, entries)
        retries = 0
        while sum(entry.changes for entry in log_entries) == 0 and retries < self.max_retries:
            retries += 1
            logger.info(
                f"[~] Session for {doc_name} changed nothing, retrying ({retries}/{self.max_retries})"
            )
            log_entries.extend(self._run_session(document, entries))

        logbook = SessionLogbook.log_session(
            f"Fuzzing session for {doc_name}",
            duration=time.monotonic() - start_time,
            children=log_entries,
            started=started,
        )
        self._history.insert(0, logbook)
        logger.info(
            f"[+] Finished session for {doc_name}: mutated {logbook.mutations} / "
            f"added {logbook.added} in {logbook.duration:.4f}s"
        )
        return logbook

    def _run_session(self, document: Node, entries: list[Mutator]) -> list[LogEntry]:
        rnd = self.context.randomness()
        sampled = rnd.sample(entries, rnd.next_int(1, len(entries)))
        chosen = rnd.mutator_dice.choose_many(sampled) or sampled[:1]
        logger.debug(f"  -> Applying {len(chosen)} of {len(entries)} mutator(s)")
        return [self.context.apply(mutator, document) for mutator in chosen]

    @property
    def last_session_log(self) -> SessionLogbook:
        if not self._history:
            raise FuzzerError("No fuzzing session has been run yet")
        return self._history[0]

    @property
    def session_history(self) -> list[SessionLogbook]:
        """All session logbooks, newest first."""
        return list(self._history)


def build_default_engine(
    probability: float = DEFAULT_PROBABILITY,
    seed: int | None = None,
    max_depth: int | None = DEFAULT_MAX_DEPTH,
    max_retries: int = DEFAULT_MAX_RETRIES,
) -> FuzzingEngine:
    """Wire up an engine with the default registrations for every model type."""
    randomness = RandomSource(seed=seed, probability=probability)
    catalog = MutatorCatalog()
    register_default_mutators(catalog)
    context = EngineContext(
        randomness,
        catalog,
        factory=NodeFactory(randomness),
        primitives=PrimitiveFuzzer(randomness),
        max_depth=max_depth,
    )
    return FuzzingEngine(context, max_retries=max_retries)
