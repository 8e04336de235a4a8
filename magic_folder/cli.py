"""Command line interface.

Usage:
    magic-folder process notes/todo.md notes/ideas.txt
    magic-folder search "quarterly planning" --top-k 3
    magic-folder inspect
    magic-folder watch --include-existing
    magic-folder serve
"""

import argparse
import asyncio
import json
import sys
from collections.abc import Sequence
from pathlib import Path

from magic_folder import __version__
from magic_folder.config import Settings, get_settings
from magic_folder.exceptions import MagicFolderError
from magic_folder.logging_config import get_logger, setup_logging
from magic_folder.pipeline.query import DEFAULT_TOP_K
from magic_folder.services import MagicFolder
from magic_folder.watcher import FolderWatcher, IndexingWorker

logger = get_logger(__name__)


async def process_files(settings: Settings, paths: Sequence[str]) -> int:
    """Index files one after another.

    Returns:
        Number of files that failed.
    """
    failures = 0
    async with MagicFolder.from_settings(settings) as services:
        for path in paths:
            try:
                outcome = await services.indexing.process(path)
            except MagicFolderError as e:
                failures += 1
                print(f"{path}: error {e.code.value}: {e.message}", file=sys.stderr)
                continue
            if outcome.is_skipped:
                print(f"{path}: skipped ({outcome.message})")
            else:
                print(f"{path}: indexed as #{outcome.id}")
    return failures


async def search_files(settings: Settings, query: str, top_k: int, as_json: bool) -> None:
    async with MagicFolder.from_settings(settings) as services:
        hits = await services.query.search(query, top_k)

    if as_json:
        print(json.dumps([hit.model_dump() for hit in hits], indent=2))
        return
    if not hits:
        print("No results.")
    for rank, hit in enumerate(hits, start=1):
        print(f"{rank:>3}. {hit.score:10.4f}  {hit.path}")


async def inspect_stores(settings: Settings) -> dict[str, object]:
    """Summarize both stores."""
    async with MagicFolder.from_settings(settings) as services:
        return {
            "vector_index": {
                "path": str(settings.vector.path),
                "collection": settings.vector.collection_name,
                "dimension": services.vector_index.dimension,
                "rows": await services.vector_index.count(),
            },
            "catalog": {
                "path": str(settings.catalog.path),
                "rows": await services.catalog.count(),
            },
        }


async def watch_folder(settings: Settings, include_existing: bool) -> None:
    settings.watcher.folder.mkdir(parents=True, exist_ok=True)
    queue: asyncio.Queue[Path] = asyncio.Queue(maxsize=settings.watcher.queue_size)

    async with MagicFolder.from_settings(settings) as services:
        watcher = FolderWatcher(settings.watcher, queue, include_existing=include_existing)
        worker = IndexingWorker(services.indexing, queue)
        await asyncio.gather(watcher.run(), worker.run())


def serve(settings: Settings) -> None:
    import uvicorn

    from magic_folder.api.app import create_app

    settings.vector.path.mkdir(parents=True, exist_ok=True)
    uvicorn.run(create_app(settings), host=settings.api_host, port=settings.api_port)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="magic-folder",
        description="Semantic indexing and search over folder contents",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    commands = parser.add_subparsers(dest="command", required=True)

    process = commands.add_parser("process", help="Index one or more files")
    process.add_argument("paths", nargs="+", help="Files to index")

    search = commands.add_parser("search", help="Search indexed files")
    search.add_argument("query", help="Text to search for")
    search.add_argument("--top-k", type=int, default=DEFAULT_TOP_K, help="Number of results")
    search.add_argument("--json", action="store_true", help="Print results as JSON")

    commands.add_parser("inspect", help="Show vector index and catalog statistics")

    watch = commands.add_parser("watch", help="Index files as they change")
    watch.add_argument(
        "--include-existing",
        action="store_true",
        help="Also index files present when watching starts",
    )

    commands.add_parser("serve", help="Run the HTTP API")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    setup_logging(
        level=args.log_level or settings.log_level,
        environment=settings.environment,
    )

    try:
        if args.command == "process":
            return 1 if asyncio.run(process_files(settings, args.paths)) else 0
        if args.command == "search":
            asyncio.run(search_files(settings, args.query, args.top_k, args.json))
        elif args.command == "inspect":
            print(json.dumps(asyncio.run(inspect_stores(settings)), indent=2))
        elif args.command == "watch":
            asyncio.run(watch_folder(settings, args.include_existing))
        elif args.command == "serve":
            serve(settings)
    except MagicFolderError as e:
        logger.error(f"{args.command} failed: {e.message}", extra={"error_code": e.code.value})
        print(f"error {e.code.value}: {e.message}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
