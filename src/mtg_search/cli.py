"""mtg-search command line.

Commands:
  - Build:  `mtg-search build <name> --dataset modern`
  - Delete: `mtg-search delete <name>`
  - Search: `mtg-search search <name> "draw a card" --top-k 5`
  - Serve:  `mtg-search serve <name> --port 8000`

`serve` refuses to start unless <name> has been built. The HTTP app it
starts answers `/indexes/{name}/search` for every index in the index dir.

Every command runs under asyncio.run(); Ctrl-C cancels the in-flight
request immediately. An interrupted build may leave a partially uploaded
namespace behind with no index file; it is not cleaned up.
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Optional, Sequence

from dotenv import load_dotenv

from .config import Settings, get_settings
from .core.errors import MtgSearchError
from .datasets import Dataset
from .service import IndexService
from .turbopuffer.client import TurbopufferError

logger = logging.getLogger("mtg_search.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mtg-search",
        description="Build and search turbopuffer-backed MTG card indexes.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    build = sub.add_parser("build", help="download a set and build an index from it")
    build.add_argument("name", help="index name; the index file is written as <name>.json")
    build.add_argument(
        "--dataset",
        "--set",
        required=True,
        type=Dataset.parse,
        help="mtgjson set to index (" + ", ".join(d.value for d in Dataset) + ")",
    )

    delete = sub.add_parser("delete", help="delete an index from turbopuffer and local disk")
    delete.add_argument("name")

    search = sub.add_parser("search", help="run a single query against an index")
    search.add_argument("name")
    search.add_argument("query")
    search.add_argument("--top-k", type=int, default=10)

    serve = sub.add_parser(
        "serve",
        help="serve indexes over HTTP; NAME must exist, but every index in the index dir is searchable",
    )
    serve.add_argument("name")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)

    return parser


async def _build(service: IndexService, args: argparse.Namespace) -> int:
    existed = service.store.load(args.name) is not None
    metadata = await service.build(args.name, args.dataset)
    if existed:
        print(f"index {args.name!r} already exists (namespace {metadata.namespace}), not overwriting.")
        print(f"to delete it fully (including from turbopuffer), run: mtg-search delete {args.name}")
        return 0

    print(f"created index {metadata.name!r} (namespace {metadata.namespace})")
    print(f"to serve it, run: mtg-search serve {metadata.name}")
    return 0


async def _delete(service: IndexService, args: argparse.Namespace) -> int:
    if await service.delete(args.name):
        print(f"deleted index {args.name!r} (from turbopuffer and local disk)")
    else:
        print(f"index {args.name!r} does not exist, nothing to do")
    return 0


async def _search(service: IndexService, args: argparse.Namespace) -> int:
    rows = await service.search(args.name, args.query, args.top_k)
    print(f"found {len(rows)} results:")
    for i, row in enumerate(rows, start=1):
        print(f"{i}: {row.get('name')} ({row.get('mana_cost') or ''})")
        if row.get("text"):
            print(row["text"])
    return 0


def _serve(service: IndexService, args: argparse.Namespace) -> int:
    import uvicorn

    from .api.dependencies import get_index_service
    from .main import app

    metadata = service.require(args.name)
    app.dependency_overrides[get_index_service] = lambda: service
    print(f"serving index {metadata.name!r} at http://{args.host}:{args.port}/indexes/{metadata.name}/search?q=...")
    uvicorn.run(app, host=args.host, port=args.port)
    return 0


def main(argv: Optional[Sequence[str]] = None, settings: Optional[Settings] = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)

    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    service = IndexService.from_settings(settings)

    try:
        if args.command == "serve":
            return _serve(service, args)

        handler = {
            "build": _build,
            "delete": _delete,
            "search": _search,
        }[args.command]
        return asyncio.run(handler(service, args))
    except (MtgSearchError, TurbopufferError, ValueError) as exc:
        logger.error("%s %s failed: %s", args.command, args.name, exc)
        return 1
    except KeyboardInterrupt:
        logger.warning("%s %s interrupted", args.command, args.name)
        return 130


if __name__ == "__main__":
    sys.exit(main())
