from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

from .config import get_settings
from .document import load_path
from .errors import PipelineError
from .extractors import pdf_capability
from .pipeline import PipelineResult, SuggestionPipeline
from .suggestions import SuggestionClient


def parse_args(argv: Optional[list] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Extract text from a PDF, text or Markdown file and suggest ways to boost its social media engagement."
    )
    parser.add_argument("path", type=Path, help="Path to the document to analyze.")
    parser.add_argument(
        "--mime-type",
        help="Declared MIME type of the file (guessed from its name by default).",
    )
    parser.add_argument(
        "--model",
        help="Chat-completion model to use (defaults to OPENAI_MODEL or gpt-4o-mini).",
    )
    parser.add_argument(
        "--indent",
        type=int,
        default=2,
        help="Indentation for JSON output.",
    )
    parser.add_argument(
        "--output",
        type=Path,
        help="Also write the suggestions as a .json download to this path.",
    )
    parser.add_argument(
        "--show-text",
        action="store_true",
        help="Print the extracted text before the suggestions.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    return parser.parse_args(argv)


async def analyze(args: argparse.Namespace) -> PipelineResult:
    await pdf_capability.initialize()
    pipeline = SuggestionPipeline.from_settings(pdf=pdf_capability)
    if args.model:
        settings = get_settings()
        pipeline.client = SuggestionClient(
            base_url=settings.base_url,
            model=args.model,
            timeout_seconds=settings.timeout_seconds,
        )
    document = await load_path(args.path, mime_type=args.mime_type)
    return await pipeline.run(document)


def main(args: Optional[argparse.Namespace] = None) -> None:
    args = args or parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        result = asyncio.run(analyze(args))
    except PipelineError as exc:
        print(f"error ({exc.kind.value}): {exc.message}", file=sys.stderr)
        sys.exit(1)
    except OSError as exc:
        print(f"error: {exc}", file=sys.stderr)
        sys.exit(1)

    if args.show_text:
        print(result.extracted_text)
        print("\n--- Suggestions ---")
    print(result.suggestions_json(indent=args.indent))
    if args.output:
        args.output.write_bytes(result.download_bytes())


if __name__ == "__main__":
    main()
