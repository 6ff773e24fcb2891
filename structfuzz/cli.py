"""
Command-line entry point for structfuzz.

Loads a document (or starts from a default instance of a resource type), runs
a number of fuzzing sessions over it and writes the fuzzed document, the
session logbooks and the run metadata to disk.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from structfuzz.catalog import FuzzerError
from structfuzz.context import DEFAULT_MAX_DEPTH
from structfuzz.engine import DEFAULT_MAX_RETRIES, build_default_engine
from structfuzz.metadata import collect_run_metadata, save_run_metadata
from structfuzz.model import RESOURCE_TYPES, Resource, from_dict, to_dict
from structfuzz.randomness import DEFAULT_PROBABILITY
from structfuzz.synthesis import SynthesisError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Structurally fuzz a document and record what was changed."
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--input", type=Path, help="Path to a JSON document to fuzz.")
    source.add_argument(
        "--type",
        choices=sorted(RESOURCE_TYPES),
        help="Start from an empty instance of this resource type.",
    )
    parser.add_argument(
        "--sessions", type=int, default=1, help="Number of fuzzing sessions to run (default: 1)."
    )
    parser.add_argument("--seed", type=int, default=None, help="Seed for reproducible runs.")
    parser.add_argument(
        "--probability",
        type=float,
        default=DEFAULT_PROBABILITY,
        help=f"Probability used by the mutator and child dice (default: {DEFAULT_PROBABILITY}).",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=DEFAULT_MAX_DEPTH,
        help=f"Maximum nesting of mutator calls, 0 disables the limit (default: {DEFAULT_MAX_DEPTH}).",
    )
    parser.add_argument(
        "--max-retries",
        type=int,
        default=DEFAULT_MAX_RETRIES,
        help=f"Repeats of a session that changed nothing (default: {DEFAULT_MAX_RETRIES}).",
    )
    parser.add_argument("--output", type=Path, help="Where to write the fuzzed document (JSON).")
    parser.add_argument("--log", type=Path, help="Where to write the session logbooks (JSON).")
    parser.add_argument("--metadata", type=Path, help="Where to write the run metadata (JSON).")
    parser.add_argument(
        "--render", action="store_true", help="Print the audit tree of every session."
    )
    parser.add_argument(
        "-v", "--verbose", action="count", default=0, help="Increase logging verbosity."
    )
    return parser


def configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def load_document(args: argparse.Namespace) -> Resource:
    if args.type:
        return RESOURCE_TYPES[args.type]()
    with open(args.input, encoding="utf-8") as f:
        data = json.load(f)
    return from_dict(Resource, data)


def main(argv: list[str] | None = None) -> None:
    """Parse arguments, run the fuzzing sessions and write the results."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    if args.sessions < 1:
        parser.error("--sessions must be at least 1")

    try:
        document = load_document(args)
    except (OSError, json.JSONDecodeError, ValueError, TypeError) as e:
        print(f"[!] Error: Could not load document: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        engine = build_default_engine(
            probability=args.probability,
            seed=args.seed,
            max_depth=args.max_depth or None,
            max_retries=args.max_retries,
        )
    except ValueError as e:
        print(f"[!] Error: Invalid configuration: {e}", file=sys.stderr)
        sys.exit(1)

    seed = engine.context.randomness().seed
    print(
        f"[+] Fuzzing {document.type_name} for {args.sessions} session(s) with seed {seed}",
        file=sys.stderr,
    )

    try:
        for number in range(1, args.sessions + 1):
            logbook = engine.fuzz(document)
            print(
                f"    -> Session {number}: mutated {logbook.mutations} / added {logbook.added} "
                f"/ noops {logbook.noops} / errors {logbook.errors}",
                file=sys.stderr,
            )
            if args.render:
                print(logbook.render())
    except (FuzzerError, SynthesisError) as e:
        print(f"[!] Error: Fuzzing aborted: {e}", file=sys.stderr)
        sys.exit(1)

    fuzzed = json.dumps(to_dict(document), indent=2)
    if args.output:
        args.output.write_text(fuzzed, encoding="utf-8")
        print(f"[+] Fuzzed document saved to {args.output}", file=sys.stderr)
    elif not args.render:
        print(fuzzed)

    if args.log:
        # Oldest session first in the written file.
        sessions = [logbook.to_dict() for logbook in reversed(engine.session_history)]
        with open(args.log, "w", encoding="utf-8") as f:
            json.dump(sessions, f, indent=2)
        print(f"[+] Session logbooks saved to {args.log}", file=sys.stderr)

    if args.metadata:
        save_run_metadata(args.metadata, collect_run_metadata(args, seed))


if __name__ == "__main__":
    main()
