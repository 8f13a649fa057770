"""
Command-line interface for Newsroll.
"""
import argparse
import asyncio
import json
import logging
import sys
from datetime import datetime, timedelta

from newsroll.config import Config, PipelineSettings, config, load_sources
from newsroll.core.dedup import Deduplicator
from newsroll.core.pipeline import Pipeline
from newsroll.core.store import ArticleStore
from newsroll.fetchers.feed import FeedFetcher
from newsroll.utils.http import HttpClient

logger = logging.getLogger(__name__)


def configure_logging(verbose: bool = False) -> None:
    """
    Log to a dated file and to the console.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(f"newsroll_{datetime.now().strftime('%Y%m%d')}.log"),
            logging.StreamHandler()
        ]
    )


def parse_args(argv=None):
    """
    Parse command-line arguments.

    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(description="Newsroll - fetch, normalize and store news feeds")
    parser.add_argument("--config", help="Path to a YAML or JSON config file")
    parser.add_argument("--sources", help="Path to a YAML or JSON file listing sources")
    parser.add_argument("--db", help="Path to the SQLite database (overrides storage.database)")
    parser.add_argument("--limit", type=int, help="Maximum number of articles to keep (0 = default cap)", default=0)
    parser.add_argument("--persist", action="store_true", help="Deduplicate and store the articles")
    parser.add_argument("--categories-only", action="store_true", help="Only list the categories found")
    parser.add_argument("--no-images", action="store_true", help="Skip OG image fallback fetches")
    parser.add_argument("--purge-expired", action="store_true", help="Delete expired articles before storing")
    parser.add_argument("--output", help="Write the articles as JSON to this file ('-' for stdout)")
    parser.add_argument("--progress", action="store_true", help="Show a progress bar")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def write_output(result, output: str) -> None:
    payload = json.dumps(result.as_dict(), ensure_ascii=False, indent=2)
    if output == '-':
        print(payload)
        return
    with open(output, 'w', encoding='utf-8') as f:
        f.write(payload)
    logger.info(f"Wrote {len(result.articles)} articles to {output}")


async def async_main(args) -> int:
    """
    Run the pipeline once.
    """
    cfg = Config(args.config) if args.config else config
    settings = PipelineSettings.from_config(cfg)
    sources = load_sources(args.sources or cfg)
    if not sources:
        logger.error("No sources configured. Exiting.")
        return 1

    deduplicator = None
    if args.persist or args.purge_expired:
        store = ArticleStore(args.db or cfg.get('storage.database'))
        store.ensure_schema()
        if args.purge_expired:
            days = float(cfg.get('storage.expire_after_days', 2))
            purged = await asyncio.to_thread(store.purge_expired, timedelta(days=days))
            logger.info(f"Purged {purged} expired articles")
        deduplicator = Deduplicator(store)

    async with HttpClient(timeout=settings.fetch_timeout, max_tries=settings.fetch_max_retries,
                          retry_delay=settings.retry_delay) as client:
        pipeline = Pipeline(FeedFetcher(client, settings), deduplicator, settings)
        result = await pipeline.run(
            sources,
            categories_only=args.categories_only,
            fetch_images=not args.no_images,
            persist=args.persist,
            limit=args.limit,
            show_progress=args.progress,
        )

    if args.categories_only:
        print('\n'.join(result.categories))
    elif result.stats is not None:
        print(f"{result.stats.describe()}, Newly added: {result.stats.newly_added_count}")
    else:
        print(f"Fetched {len(result.articles)} articles from {len(sources)} sources")

    if args.output:
        write_output(result, args.output)

    logger.info("Newsroll run completed successfully")
    return 0


def main(argv=None):
    """
    Entry point for the command-line script.
    """
    args = parse_args(argv)
    configure_logging(args.verbose)
    try:
        return asyncio.run(async_main(args))
    except KeyboardInterrupt:
        logger.info("Process interrupted by user")
        return 1
    except Exception as e:
        logger.exception(f"An error occurred: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
