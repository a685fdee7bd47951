"""
Example: post a JSON document to a running index console backend.

Usage:
    python3 post_json_demo.py --schema products --index catalog --file doc.json
    python3 post_json_demo.py --list
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from index_console.submission import ClientConfig, HttpIndexingClient, IndexingPage


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        force=True,
    )


async def run(args) -> int:
    config = ClientConfig.from_env()
    if args.base_url:
        config.base_url = args.base_url
    async with HttpIndexingClient.from_config(config) as client:
        page = IndexingPage(client)
        await page.load_schemas()
        if page.listing_error:
            print(f"Could not load schemas: {page.listing_error}", file=sys.stderr)
            return 1

        if args.list:
            for schema_entry in page.schema_list().entries():
                await page.select_schema(schema_entry.value)
                indexes = ", ".join(e.value for e in page.index_list().entries()) or "(no index)"
                print(f"{schema_entry.value}: {indexes}")
            return 0

        await page.select_schema(args.schema)
        page.select_index(args.index)
        page.set_text(args.file.read_text(encoding="utf-8") if args.file else sys.stdin.read())

        page.controller.subscribe(lambda state: logging.debug("%s: %s", state.phase.value, state.message))
        state = await page.post_json()
        if args.show_canonical and page.buffer.text is not None:
            print(page.buffer.text)
        print(state.message or "")
        return 1 if state.error else 0


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--base-url", default=None, help="Backend URL (defaults to INDEX_CONSOLE_BASE_URL)")
    parser.add_argument("--schema", default=None, help="Target schema")
    parser.add_argument("--index", default=None, help="Target index")
    parser.add_argument("--file", default=None, type=Path, help="JSON document to post (stdin when omitted)")
    parser.add_argument("--list", action="store_true", help="List schemas and indexes, then exit")
    parser.add_argument("--show-canonical", action="store_true", help="Print the re-formatted document")
    parser.add_argument("--verbose", action="store_true", help="Log every phase change")
    args = parser.parse_args()

    setup_logging(args.verbose)
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
