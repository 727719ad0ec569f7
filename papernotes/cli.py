#!/usr/bin/env python3
import argparse
import json
import logging
import sys

from .dependencies import get_notes_engine, get_qa_engine
from .errors import PaperNotesError
from .pdf_processor import parse_pages_to_delete

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def take_notes_command(args) -> int:
    pages_to_delete = parse_pages_to_delete(args.pages_to_delete)
    notes = get_notes_engine().take_notes(args.paper_url, args.name, pages_to_delete)
    print(json.dumps([note.model_dump(by_alias=True) for note in notes], indent=2, ensure_ascii=False))
    return 0


def qa_command(args) -> int:
    answers = get_qa_engine().answer_question(args.question, args.paper_url)
    print(json.dumps([answer.model_dump(by_alias=True) for answer in answers], indent=2, ensure_ascii=False))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Take notes on academic papers and ask questions about them")
    subparsers = parser.add_subparsers(dest="command", required=True)

    notes_parser = subparsers.add_parser("take-notes", help="Generate notes for a paper and index it")
    notes_parser.add_argument("paper_url", help="URL or local path of the paper PDF")
    notes_parser.add_argument("--name", required=True, help="Display name of the paper")
    notes_parser.add_argument("--pages-to-delete", default=None,
                              help="Comma-separated page numbers to drop, e.g. 1,2,3")
    notes_parser.set_defaults(func=take_notes_command)

    qa_parser = subparsers.add_parser("qa", help="Ask a question about a paper that already has notes")
    qa_parser.add_argument("paper_url", help="URL or local path the paper was ingested with")
    qa_parser.add_argument("question", help="Question to ask")
    qa_parser.set_defaults(func=qa_command)

    return parser


def main(argv=None) -> int:
    """Parse command line arguments and run the requested command."""
    args = build_parser().parse_args(argv)
    try:
        return args.func(args)
    except PaperNotesError as e:
        logger.error(f"{args.command} failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
