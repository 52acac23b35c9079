"""
scholarimpact CLI - author impact metrics over the semantic scholar graph.
"""

import argparse
import asyncio
import json
import logging
import sys

from .agents.author_resolver import AuthorResolver
from .core.config import ScholarImpactConfig
from .core.errors import ScholarImpactError, user_message
from .core.resilience import setup_logging
from .pipeline import ImpactPipeline

logger = logging.getLogger("scholarimpact.cli")


def cmd_serve(args, config: ScholarImpactConfig) -> int:
    """run the caching gateway."""
    import uvicorn
    from .web.app import create_app

    if args.db_path:
        config.cache.db_path = args.db_path
    port = args.port or config.port

    print(f"scholarimpact gateway on http://{args.host}:{port}/api (cache: {config.cache.db_path})")
    uvicorn.run(create_app(config=config), host=args.host, port=port, log_level="info")
    return 0


async def _search(args, config: ScholarImpactConfig) -> int:
    async with ImpactPipeline.from_config(config) as pipeline:
        candidates = await pipeline.search(args.query)

    if args.affiliation:
        candidates = AuthorResolver.filter_candidates(candidates, args.affiliation)

    if args.json:
        print(json.dumps([c.to_dict() for c in candidates], indent=2))
        return 0

    print(f"{len(candidates)} candidates for '{args.query}':")
    for c in candidates:
        institution = c.affiliation_details[0].institution if c.affiliation_details else "-"
        print(
            f"  [{c.similarity_score:3d}] {c.author_id:>12}  {c.name}  "
            f"papers={c.author.paper_count or 0} citations={c.author.citation_count or 0}  {institution}"
        )
    return 0


async def _analyze(args, config: ScholarImpactConfig) -> int:
    async with ImpactPipeline.from_config(config) as pipeline:
        author_ids = list(args.author_ids)
        if args.name:
            candidates = await pipeline.search(args.name)
            author_ids.extend(c.author_id for c in candidates[:args.top])
        if not author_ids:
            print("Error: give author ids or --name", file=sys.stderr)
            return 2

        report = await pipeline.analyze(author_ids)

    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
    else:
        print("\n".join(report.summary_lines(config.display)))
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        prog="scholarimpact",
        description="Author impact metrics with a caching semantic scholar gateway.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
examples:
  scholarimpact serve --port 3000
  scholarimpact search "A. Turing"
  scholarimpact analyze 1741101 2262347
  scholarimpact analyze --name "Geoffrey Hinton" --top 2 --json
        """
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="debug logging"
    )
    parser.add_argument(
        "--log-file",
        type=str,
        help="also write logs to this file"
    )

    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="run the caching gateway")
    serve.add_argument("--host", default="0.0.0.0", help="bind address (default: 0.0.0.0)")
    serve.add_argument("--port", "-p", type=int, help="port (default: $SCHOLARIMPACT_PORT or 3000)")
    serve.add_argument("--db-path", type=str, help="sqlite cache file")

    search = sub.add_parser("search", help="rank author candidates for a name")
    search.add_argument("query", help="author name")
    search.add_argument("--affiliation", "-a", type=str, help="keep candidates matching this text")
    search.add_argument("--json", action="store_true", help="print JSON")

    analyze = sub.add_parser("analyze", help="impact report for selected authors")
    analyze.add_argument("author_ids", nargs="*", help="semantic scholar author ids")
    analyze.add_argument("--name", type=str, help="search this name and take the top matches")
    analyze.add_argument("--top", type=int, default=1, help="matches to take with --name (default: 1)")
    analyze.add_argument("--json", action="store_true", help="print JSON")

    args = parser.parse_args(argv)

    setup_logging(logging.DEBUG if args.verbose else logging.INFO, args.log_file)
    config = ScholarImpactConfig.from_env()

    if args.command == "serve":
        return cmd_serve(args, config)

    handler = _search if args.command == "search" else _analyze
    try:
        return asyncio.run(handler(args, config))
    except ScholarImpactError as e:
        logger.debug(f"command failed: {e}")
        print(f"Error: {user_message(e)}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
