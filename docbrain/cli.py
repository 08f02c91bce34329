"""
Command line entry point: run the extraction engine over a local file
"""
import argparse
import random
import sys
from pathlib import Path
from typing import List

from docbrain.config import get_settings
from docbrain.errors import DocBrainError
from docbrain.services.logging import configure_logging
from docbrain.services.nlp.extractor import extract_content
from docbrain.services.parsers import parse_document


def parse_args(argv: List[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="DocBrain study material extractor")
    subparsers = parser.add_subparsers(dest="command", required=True)

    extract = subparsers.add_parser("extract", help="Extract a summary, questions and flashcards from a document.")
    extract.add_argument("path", type=Path, help="PDF, DOCX, TXT or MD file to process.")
    extract.add_argument("--seed", type=int, default=None, help="Seed for multiple-choice option order.")
    extract.add_argument("--output", type=Path, default=None, help="Write the JSON result here instead of stdout.")
    extract.add_argument("--indent", type=int, default=2, help="JSON indentation.")
    extract.add_argument("--log-level", type=str, default="WARNING", help="Log level for engine diagnostics.")

    return parser.parse_args(argv)


def run_extract(args: argparse.Namespace) -> int:
    path: Path = args.path
    if not path.is_file():
        print(f"File not found: {path}", file=sys.stderr)
        return 1

    settings = get_settings()
    try:
        parsed = parse_document(path.read_bytes(), path.name, allowed_kinds=("pdf", "docx", "text"))
    except DocBrainError as e:
        print(str(e), file=sys.stderr)
        return 1

    if len(parsed.text.strip()) < settings.min_text_chars:
        print(f"Could not extract enough text from {path.name}.", file=sys.stderr)
        return 1

    rng = random.Random(args.seed) if args.seed is not None else None
    try:
        result = extract_content(parsed.text, rng=rng)
    except DocBrainError as e:
        print(str(e), file=sys.stderr)
        return 1

    payload = result.model_dump_json(by_alias=True, indent=args.indent)
    if args.output:
        args.output.write_text(payload + "\n", encoding="utf-8")
        print(
            f"Wrote {result.stats.total_questions} questions and "
            f"{result.stats.total_flashcards} flashcards to {args.output}",
            file=sys.stderr,
        )
    else:
        print(payload)
    return 0


def main(argv: List[str] | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    # stdout carries the JSON result
    configure_logging(args.log_level, stream=sys.stderr)
    if args.command == "extract":
        return run_extract(args)
    raise ValueError(f"Unknown command: {args.command}")


if __name__ == "__main__":
    sys.exit(main())
