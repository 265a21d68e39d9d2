#!/usr/bin/env python3
"""
Command-line scraper: fetch every comment of one video and save it as JSON.

Usage:
    python scrape.py --id 7418294751977327878
    python scrape.py --url https://vm.tiktok.com/ZMabcdef/ --output out/
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from config import settings
from scrapers.errors import ScraperError
from scrapers.orchestrator import scrape
from utils.common import clean_error, export_json_bytes

logger = logging.getLogger("scrape")

VERSION = "2.0.0"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="scrape",
        description="Comment Thread Scraper",
    )
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--id", help="TikTok video ID (e.g. 7418294751977327878)")
    target.add_argument("--url", help="Video/post URL or short link")
    parser.add_argument("--output", default=f"{settings.OUTPUT_DIR}/",
                        help="Output directory for data (default: data/)")
    parser.add_argument("--headed", action="store_true", help="Show the browser window")
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    return parser


def output_path(output: str, name: str) -> Path:
    output_dir = output.rstrip("/\\") or settings.OUTPUT_DIR
    return Path(output_dir) / f"{name}.json"


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    settings.configure_logging()

    if args.id is not None and not args.id.isdigit():
        print("Error: id must be numeric. Example: 7418294751977327878", file=sys.stderr)
        return 1

    identifier = args.id or args.url
    logger.info("Starting to scrape comments for %s", identifier)
    try:
        result = asyncio.run(scrape(identifier, progress_callback=logger.info,
                                    headless=not args.headed))
    except ScraperError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        logger.debug("Scrape failed", exc_info=True)
        print(f"Error: {clean_error(e)}", file=sys.stderr)
        return 1

    if result.needs_auth:
        logger.warning(result.auth_message)

    name = args.id or _name_from_result(result, identifier)
    path = output_path(args.output, name)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(export_json_bytes(result))
    logger.info("Saved %d comments for %s to %s", result.total_count, identifier, path)
    return 0


def _name_from_result(result, identifier: str) -> str:
    from utils.platform import detect_platform, extract_content_id

    for url in (result.video_url, identifier):
        if url:
            content_id = extract_content_id(url, detect_platform(url))
            if content_id:
                return content_id
    return "comments"


if __name__ == "__main__":
    sys.exit(main())
