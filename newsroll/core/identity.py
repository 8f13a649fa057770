"""
Article ID generation for Newsroll.
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from newsroll.core.article import ArticleCandidate
from newsroll.core.extract import parse_date
from newsroll.utils.text import slugify
from newsroll.utils.urls import is_http_url, strip_query_params

logger = logging.getLogger(__name__)

ID_TRACKING_PARAMS = (
    'utm_source', 'utm_medium', 'utm_campaign', 'utm_term', 'utm_content',
    'fbclid', 'gclid', 'msclkid', 'source', 'src', 'ref',
)

MIN_SLUG_LENGTH = 5
UNKNOWN_SOURCE_SLUG = 'unknownsrc'
DUPFIX_SUFFIX = 'dupfix'


def _epoch_millis(date: str) -> int:
    parsed = parse_date(date) or datetime.now(timezone.utc)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp() * 1000)


def _random_token(length: int) -> str:
    return uuid.uuid4().hex[:length]


def build_id(link: Optional[str], title: Optional[str], source_name: str, date: str, index: int,
             max_slug_length: int = 150, max_suffix_length: int = 25) -> str:
    """
    Build a URL-safe article ID.

    The basis is the link without tracking parameters, else the title, else
    a synthetic source/timestamp/index string. The slug is suffixed with the
    source name slug.

    Args:
        link: External article link ('#' when unknown)
        title: Article title
        source_name: Configured source name
        date: ISO-8601 publication date
        index: Position of the item in its feed
        max_slug_length: Cap on the basis slug
        max_suffix_length: Cap on the source suffix

    Returns:
        The article ID
    """
    millis = _epoch_millis(date)

    if is_http_url(link):
        try:
            basis = strip_query_params(link, ID_TRACKING_PARAMS)
        except ValueError:
            basis = link
    elif title:
        basis = title
    else:
        basis = f"fallback-{source_name}-{millis}-{index}"

    slug = slugify(basis)[:max_slug_length]
    if len(slug) < MIN_SLUG_LENGTH:
        slug = slugify(
            f"emptybase-{slugify(source_name)}-{millis}-{index}-{_random_token(3)}"
        )[:max_slug_length]

    source_slug = slugify(source_name)[:max_suffix_length] or UNKNOWN_SOURCE_SLUG
    article_id = f"{slug}-{source_slug}"

    if len(article_id) < len(source_slug) + MIN_SLUG_LENGTH:
        article_id = slugify(f"override-unique-{slugify(source_name)}-{millis}-{index}-{_random_token(5)}")

    return article_id


def article_path(category: str, article_id: str) -> str:
    """Internal site path of an article: /{category-slug}/{id}."""
    return f"/{slugify(category) or 'general'}/{article_id}"


def ensure_unique_ids(articles: List[ArticleCandidate]) -> List[ArticleCandidate]:
    """
    Make IDs unique within a batch by appending -dupfixN to repeats.

    N is a counter shared across the whole batch. Candidates whose ID is
    rewritten also get their internal link rewritten.
    """
    seen = set()
    counter = 0

    for article in articles:
        if not article.id:
            article.id = f"emergency-id-{slugify(article.source or 'unknown')}-" \
                         f"{_epoch_millis(article.fetched_at)}-{_random_token(5)}"
            if article.link != '#':
                article.link = article_path(article.category, article.id)

        if article.id in seen:
            original_id = article.id
            new_id = original_id
            while new_id in seen:
                counter += 1
                new_id = f"{original_id}-{DUPFIX_SUFFIX}{counter}"
            logger.debug(f"Duplicate ID {original_id} renamed to {new_id}")
            article.id = new_id
            if article.link != '#':
                article.link = article_path(article.category, new_id)

        seen.add(article.id)

    return articles
