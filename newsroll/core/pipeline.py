"""
Pipeline orchestration for Newsroll.
"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import List, Optional, Sequence

import tqdm

from newsroll.config import PipelineSettings
from newsroll.core.article import ArticleCandidate, ArticleUpdateStats, FetchArticlesResult, NewsSource
from newsroll.core.dedup import Deduplicator
from newsroll.core.extract import parse_date
from newsroll.core.identity import ensure_unique_ids

logger = logging.getLogger(__name__)

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def _sort_key(article: ArticleCandidate) -> datetime:
    parsed = parse_date(article.date)
    if parsed is None:
        return _OLDEST
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def distinct_categories(articles: Sequence[ArticleCandidate]) -> List[str]:
    categories = []
    for article in articles:
        if article.category not in categories:
            categories.append(article.category)
    return categories


class Pipeline:
    """
    Runs the feed fetcher over every source and merges the results.
    """
    def __init__(self, fetcher, deduplicator: Optional[Deduplicator] = None,
                 settings: Optional[PipelineSettings] = None):
        """
        Initialize the Pipeline.

        Args:
            fetcher: A FeedFetcher (anything with a compatible fetch_source coroutine)
            deduplicator: Required for persisting runs
            settings: Pipeline tunables
        """
        self.fetcher = fetcher
        self.deduplicator = deduplicator
        self.settings = settings or PipelineSettings()

    async def _gather(self, sources: Sequence[NewsSource], categories_only: bool,
                      fetch_images: bool, show_progress: bool) -> List[ArticleCandidate]:
        with tqdm.tqdm(total=len(sources), desc="Fetching sources", disable=not show_progress) as pbar:
            async def fetch_one(source: NewsSource) -> List[ArticleCandidate]:
                try:
                    return await self.fetcher.fetch_source(
                        source, categories_only=categories_only, fetch_images=fetch_images
                    )
                finally:
                    pbar.update(1)

            results = await asyncio.gather(
                *(fetch_one(source) for source in sources), return_exceptions=True
            )

        articles = []
        for source, result in zip(sources, results):
            if isinstance(result, BaseException):
                logger.error(f"Failed to fetch from {source.name}: {result!r}")
                continue
            articles.extend(result)
        return articles

    async def run(self, sources: Sequence[NewsSource], *, categories_only: bool = False,
                  fetch_images: bool = True, persist: bool = False, limit: Optional[int] = None,
                  show_progress: bool = False) -> FetchArticlesResult:
        """
        Fetch all sources concurrently and build the final article set.

        Args:
            sources: Sources to fetch
            categories_only: Only collect the distinct display categories
            fetch_images: Allow OG image fallback fetches
            persist: Deduplicate and store the articles
            limit: Maximum number of articles kept (newest first)
            show_progress: Show a progress bar over sources

        Returns:
            FetchArticlesResult with the articles, plus stats when persisting
        """
        if persist and self.deduplicator is None:
            raise ValueError("persist=True requires a deduplicator")

        logger.info(f"Starting fetch from {len(sources)} sources...")
        articles = await self._gather(sources, categories_only, fetch_images, show_progress)

        if categories_only:
            categories = distinct_categories(articles)
            logger.info(f"Found {len(categories)} categories")
            return FetchArticlesResult(categories=categories)

        articles.sort(key=_sort_key, reverse=True)

        cap = limit if limit and limit > 0 else self.settings.default_processing_cap
        articles = ensure_unique_ids(articles[:cap])
        logger.info(f"Processed {len(articles)} articles total")

        stats = None
        if persist:
            if articles:
                stats = await asyncio.to_thread(self.deduplicator.upsert_batch, articles)
            else:
                logger.info("Persisting requested, but there are no articles to save.")
                stats = ArticleUpdateStats()

        return FetchArticlesResult(articles=articles, stats=stats)
