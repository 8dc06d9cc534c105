#!/usr/bin/env python
"""Run the extraction pipeline on a URL or a local PDF/EPUB file.

Prints the canonical article record as JSON.

Usage:
    # Extract a web article
    uv run python scripts/extract_source.py https://example.com/article

    # Extract a local document
    uv run python scripts/extract_source.py ~/books/novel.epub

    # Only print metadata (drop content/markdown/cover)
    uv run python scripts/extract_source.py paper.pdf --summary

Note: Always use 'uv run python' to ensure dependencies are available.
"""

import argparse
import asyncio
import json
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))

from content_ingest_service.config import settings
from content_ingest_service.extraction import (
    ExtractedArticle,
    ExtractionError,
    ExtractionPipeline,
    PipelineConfig,
)
from content_ingest_service.logging_config import configure_logging

SUMMARY_DROPPED_FIELDS = ("content", "markdown", "cover")


async def run_extraction(source: str) -> ExtractedArticle:
    """Extract a URL or a local file path."""
    pipeline = ExtractionPipeline(PipelineConfig.from_settings(settings))

    if source.startswith(("http://", "https://")):
        return await pipeline.extract_url(source)

    path = Path(source).expanduser()
    return await pipeline.extract_file(path.read_bytes(), path.name)


def to_json(article: ExtractedArticle, summary: bool) -> str:
    record: dict[str, Any] = asdict(article)
    record["source_type"] = article.source_type.value
    if summary:
        for name in SUMMARY_DROPPED_FIELDS:
            record.pop(name, None)
    return json.dumps(record, indent=2, ensure_ascii=False)


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Extract a canonical article from a URL, PDF or EPUB"
    )
    parser.add_argument("source", help="http(s) URL or path to a .pdf/.epub file")
    parser.add_argument(
        "--summary",
        action="store_true",
        help="Omit content, markdown and cover from the output",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        help="Logging level (default: WARNING)",
    )

    args = parser.parse_args()
    configure_logging(log_level=args.log_level)

    is_url = args.source.startswith(("http://", "https://"))
    if not is_url and not Path(args.source).expanduser().exists():
        print(f"Error: File not found: {args.source}")
        sys.exit(1)

    try:
        article = asyncio.run(run_extraction(args.source))
    except KeyboardInterrupt:
        print("\n\nExtraction interrupted by user")
        sys.exit(130)
    except ExtractionError as e:
        print(f"Extraction failed ({type(e).__name__}): {e}")
        sys.exit(1)

    print(to_json(article, args.summary))


if __name__ == "__main__":
    main()
