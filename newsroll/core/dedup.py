"""
Deduplicating persistence of article batches.
"""
import logging
import sqlite3
from typing import List, Optional, Sequence, Set, Tuple

from newsroll.core.article import ArticleCandidate, ArticleUpdateStats
from newsroll.core.store import ArticleStore
from newsroll.utils.urls import normalize_source_link_for_dedupe

logger = logging.getLogger(__name__)


def normalize_title(title: Optional[str]) -> str:
    return (title or '').strip().lower()


class Deduplicator:
    """
    Merges candidate batches into an ArticleStore.

    A candidate is skipped when its normalized source link, or failing that
    its normalized title, was already stored or already accepted earlier in
    the same batch. Survivors are upserted by ID.

    The existing keys are read once per batch, so two batches running at the
    same time can both insert the same story under different IDs.
    """
    def __init__(self, store: ArticleStore):
        self.store = store

    def _existing_keys(self) -> Tuple[Set[str], Set[str]]:
        links, titles = set(), set()
        for doc in self.store.find_existing():
            link = normalize_source_link_for_dedupe(doc.get('source_link'))
            if link:
                links.add(link)
            if isinstance(doc.get('title'), str):
                titles.add(normalize_title(doc['title']))
        return links, titles

    def filter_batch(self, candidates: Sequence[ArticleCandidate],
                     existing_links: Set[str], existing_titles: Set[str]
                     ) -> Tuple[List[ArticleCandidate], int, int]:
        """
        Split a batch into survivors and duplicate counts.

        Returns:
            Tuple of (surviving candidates, skipped by link, skipped by title)
        """
        accepted = []
        batch_links: Set[str] = set()
        batch_titles: Set[str] = set()
        skipped_by_link = 0
        skipped_by_title = 0

        for candidate in candidates:
            link = normalize_source_link_for_dedupe(candidate.source_link)
            title = normalize_title(candidate.title)

            if link and (link in existing_links or link in batch_links):
                skipped_by_link += 1
                continue
            if title in existing_titles or title in batch_titles:
                skipped_by_title += 1
                continue

            if link:
                batch_links.add(link)
            batch_titles.add(title)
            accepted.append(candidate)

        return accepted, skipped_by_link, skipped_by_title

    def upsert_batch(self, candidates: Sequence[ArticleCandidate]) -> ArticleUpdateStats:
        """
        Deduplicate a batch and write the survivors.

        Args:
            candidates: Candidates in priority order

        Returns:
            ArticleUpdateStats for the batch
        """
        stats = ArticleUpdateStats()
        if not candidates:
            logger.info("No articles to save.")
            return stats

        logger.info(f"Received {len(candidates)} articles to potentially save/update.")

        try:
            existing_links, existing_titles = self._existing_keys()
            accepted, stats.skipped_by_source_link, stats.skipped_by_title = self.filter_batch(
                candidates, existing_links, existing_titles
            )
            stats.processed_in_batch = len(accepted)

            logger.info(
                f"After deduplication (skipped {stats.skipped_by_source_link} by link, "
                f"{stats.skipped_by_title} by title), {len(accepted)} articles will be written."
            )
            if not accepted:
                return stats

            for candidate in accepted:
                if isinstance(candidate.title, str):
                    candidate.title = candidate.title.strip()

            result = self.store.bulk_upsert(accepted)
            stats.newly_added_count = result.inserted_count + result.upserted_count

            logger.info(
                f"Bulk write: {result.upserted_count} inserted, {result.matched_count} updated."
            )
            if result.write_errors:
                first = result.write_errors[0]
                logger.error(
                    f"Bulk write encountered {len(result.write_errors)} write errors. "
                    f"First error: {first.article_id}: {first.message}"
                )
            return stats
        except (sqlite3.Error, OSError) as e:
            logger.error(f"Critical error saving articles to {self.store.db_path}: {e}")
            return ArticleUpdateStats(processed_in_batch=len(candidates))
