"""
Feed fetcher for Newsroll.
"""
import asyncio
import logging
import socket
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import aiohttp

from newsroll.config import PipelineSettings
from newsroll.core.article import ArticleCandidate, NewsSource
from newsroll.core.classifier import GENERAL, classify
from newsroll.core.extract import (
    NO_LINK, extract_category, extract_content, extract_date, extract_description,
    extract_link, extract_title, to_iso,
)
from newsroll.core.identity import article_path, build_id
from newsroll.core.images import fetch_og_image, remove_duplicate_image, resolve_image
from newsroll.fetchers.xml import FeedParseError, find_items, parse_feed_document
from newsroll.utils.http import FEED_HEADERS, decode_feed_bytes
from newsroll.utils.text import NO_SUMMARY, is_summary_just_title, normalize_and_strip_html, normalize_summary

# Configure logging
logger = logging.getLogger(__name__)

UNTITLED_PLACEHOLDER = 'untitled article'
CATEGORY_ONLY_SUMMARY = 'For category generation'


def _is_dns_failure(error: BaseException) -> bool:
    return isinstance(error, aiohttp.ClientConnectorError) and isinstance(error.os_error, socket.gaierror)


class FeedFetcher:
    """
    Fetches one source's feed and turns its items into article candidates.
    """
    def __init__(self, client, settings: Optional[PipelineSettings] = None, now=None):
        """
        Initialize the FeedFetcher.

        Args:
            client: An HttpClient, or anything with a compatible fetch_bytes coroutine
            settings: Pipeline tunables
            now: Optional callable returning the current UTC datetime
        """
        self.client = client
        self.settings = settings or PipelineSettings()
        self._now = now or (lambda: datetime.now(timezone.utc))

    async def fetch_document(self, source: NewsSource) -> Dict[str, Any]:
        data = await self.client.fetch_bytes(
            source.feed_url,
            headers=FEED_HEADERS,
            timeout=self.settings.fetch_timeout,
            max_tries=self.settings.fetch_max_retries,
        )
        text, encoding = decode_feed_bytes(data)
        if encoding != 'utf-8':
            logger.info(f"Decoded {source.name} feed as {encoding}")
        return parse_feed_document(text)

    async def fetch_source(self, source: NewsSource, *, categories_only: bool = False,
                           fetch_images: bool = True) -> List[ArticleCandidate]:
        """
        Fetch a source and build its candidates.

        Never raises: network, decoding and parse failures are logged and
        yield an empty list.

        Args:
            source: The configured source
            categories_only: Only extract and classify, skipping quality gates
            fetch_images: Allow the OG image fallback for sources that enable it

        Returns:
            Accepted candidates in feed order
        """
        logger.info(f"Starting fetch for {source.name}...")
        try:
            document = await self.fetch_document(source)
        except aiohttp.ClientConnectorError as e:
            if _is_dns_failure(e):
                logger.error(
                    f"DNS lookup failed for {source.name} (host: {e.host}). "
                    f"Unable to resolve {source.feed_url}: {e}"
                )
            else:
                logger.error(f"Connection to {source.name} ({source.feed_url}) failed: {e}")
            return []
        except asyncio.TimeoutError:
            logger.error(f"Request timeout for {source.name} after {self.settings.fetch_timeout}s")
            return []
        except aiohttp.ClientError as e:
            logger.error(f"Error fetching RSS from {source.name} ({source.feed_url}): {e}")
            return []
        except FeedParseError as e:
            logger.error(f"Error parsing RSS from {source.name} ({source.feed_url}): {e}")
            return []
        except Exception as e:
            logger.exception(f"Unexpected error fetching {source.name} ({source.feed_url}): {e}")
            return []

        items = find_items(document)
        if not items:
            logger.warning(f"No items found in feed for {source.name}")
            return []
        logger.info(f"Found {len(items)} items in {source.name} feed")

        candidates = []
        for index, item in enumerate(items):
            try:
                candidate = await self.process_item(
                    item, source, index, categories_only=categories_only, fetch_images=fetch_images
                )
            except Exception as e:
                logger.warning(f"Error processing item {index} from {source.name}: {e!r}")
                continue
            if candidate is not None:
                candidates.append(candidate)

        logger.info(f"Successfully processed {len(candidates)} articles from {source.name}")
        return candidates

    def _rejected(self, source: NewsSource, index: int, reason: str) -> None:
        logger.debug(f"Skipping item {index} from {source.name}: {reason}")

    async def process_item(self, item: Dict[str, Any], source: NewsSource, index: int, *,
                           categories_only: bool = False,
                           fetch_images: bool = True) -> Optional[ArticleCandidate]:
        """
        Build a candidate from one feed item, or None if it fails a quality gate.
        """
        settings = self.settings
        now = self._now()

        title = extract_title(item)
        source_link = extract_link(item)
        date = extract_date(item, now=now)
        article_id = build_id(
            source_link, title, source.name, date, index,
            max_slug_length=settings.max_slug_length,
            max_suffix_length=settings.max_suffix_length,
        )
        category = classify(extract_category(item, source.default_category), title)

        if categories_only:
            if category == GENERAL:
                return None
            return ArticleCandidate(
                id=article_id,
                title=title,
                summary=CATEGORY_ONLY_SUMMARY,
                date=date,
                source=source.name,
                category=category,
                image_url=None,
                link=NO_LINK,
                source_link=source_link,
                fetched_at=to_iso(now),
            )

        if len(title) < settings.min_title_length or title.lower() == UNTITLED_PLACEHOLDER:
            self._rejected(source, index, f"title {title!r}")
            return None

        if source_link == NO_LINK:
            self._rejected(source, index, "no usable link")
            return None

        content = extract_content(item)
        summary = normalize_summary(
            extract_description(item), content, source.name, max_length=settings.max_summary_length
        )

        plain_summary = normalize_and_strip_html(summary)
        if len(plain_summary) < settings.min_summary_length or plain_summary.lower() == NO_SUMMARY.lower():
            self._rejected(source, index, "summary too short")
            return None

        if is_summary_just_title(title, plain_summary, settings.similarity_threshold):
            self._rejected(source, index, "summary repeats the title")
            return None

        image_url = resolve_image(item, source_link)
        if image_url is None and fetch_images and source.enable_image_fallback:
            image_url = await fetch_og_image(
                self.client, source_link,
                timeout=settings.og_timeout, max_tries=settings.og_max_retries,
            )

        if image_url and content:
            content = remove_duplicate_image(content, image_url, source_link)

        if not content or normalize_and_strip_html(content) == plain_summary:
            content = None

        return ArticleCandidate(
            id=article_id,
            title=title,
            summary=summary,
            date=date,
            source=source.name,
            category=category,
            image_url=image_url,
            link=article_path(category, article_id),
            source_link=source_link,
            fetched_at=to_iso(now),
            content=content,
        )
