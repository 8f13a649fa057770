"""
Field extraction from heterogeneous feed items.

Each field is resolved by a chain of small shape-specific extractors tried in
a fixed order; the first one that yields a value wins.
"""
import html
import logging
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Callable, Dict, List, Optional

from newsroll.utils.text import CONTENT_FIELDS, normalize_content
from newsroll.utils.urls import is_http_url

logger = logging.getLogger(__name__)

NO_LINK = '#'
DEFAULT_CATEGORY = 'General'

DATE_FIELDS = ('pubDate', 'published', 'updated', 'dc:date')
CATEGORY_TEXT_KEYS = ('term', '_', '#text', 'label', 'name', '$')

Item = Dict[str, Any]


def _clean_link(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return html.unescape(value.strip())
    return None


def _link_from_string(item: Item) -> Optional[str]:
    return _clean_link(item.get('link')) if isinstance(item.get('link'), str) else None


def _link_from_object(item: Item) -> Optional[str]:
    link = item.get('link')
    if not isinstance(link, dict):
        return None
    return _clean_link(link.get('href')) or _clean_link(link.get('_')) or _clean_link(link.get('#text'))


def _link_from_list(item: Item) -> Optional[str]:
    links = item.get('link')
    if not isinstance(links, list):
        return None

    for entry in links:
        if isinstance(entry, dict) and entry.get('rel') == 'alternate' \
                and entry.get('type') == 'text/html' and entry.get('href'):
            return _clean_link(entry['href'])

    for entry in links:
        if isinstance(entry, dict) and is_http_url(entry.get('href')):
            return _clean_link(entry['href'])
        if isinstance(entry, str) and is_http_url(entry.strip()):
            return _clean_link(entry)

    for entry in links:
        if isinstance(entry, dict) and entry.get('rel') == 'self' and is_http_url(entry.get('href')):
            return _clean_link(entry['href'])
    return None


def _link_from_guid(item: Item) -> Optional[str]:
    guid = item.get('guid')
    if isinstance(guid, dict):
        if str(guid.get('isPermaLink', 'true')).strip().lower() == 'false':
            return None
        guid = guid.get('#text') or guid.get('_')
    if isinstance(guid, str) and is_http_url(guid.strip()):
        return _clean_link(guid)
    return None


def _link_from_atom_id(item: Item) -> Optional[str]:
    entry_id = item.get('id')
    if isinstance(entry_id, str) and is_http_url(entry_id.strip()):
        return _clean_link(entry_id)
    return None


LINK_EXTRACTORS: List[Callable[[Item], Optional[str]]] = [
    _link_from_string,
    _link_from_object,
    _link_from_list,
]

LINK_FALLBACKS: List[Callable[[Item], Optional[str]]] = [
    _link_from_guid,
    _link_from_atom_id,
]


def extract_link(item: Item) -> str:
    """
    Find the canonical external link of an item.

    Returns:
        An absolute http(s) URL, or '#' if none could be found
    """
    link = None
    for extractor in LINK_EXTRACTORS:
        link = extractor(item)
        if link:
            break

    if not is_http_url(link):
        link = None
        for extractor in LINK_FALLBACKS:
            link = extractor(item)
            if link:
                break

    return link if is_http_url(link) else NO_LINK


def to_iso(dt: datetime) -> str:
    """Format as UTC ISO-8601 with millisecond precision and a 'Z' suffix."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def parse_date(value: str) -> Optional[datetime]:
    """
    Parse RFC 822 (RSS) or ISO 8601 (Atom, Dublin Core) dates.
    """
    value = (value or '').strip()
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        pass
    try:
        return parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None


def extract_date(item: Item, now: Optional[datetime] = None) -> str:
    """
    Publication date of an item as ISO-8601, falling back to the current time.
    """
    for field in DATE_FIELDS:
        raw = normalize_content(item.get(field))
        if raw:
            parsed = parse_date(raw)
            if parsed is not None:
                return to_iso(parsed)
            logger.debug(f"Unparseable date {raw!r}, using fetch time")
            break
    return to_iso(now or datetime.now(timezone.utc))


def _category_text(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        for key in CATEGORY_TEXT_KEYS:
            if isinstance(value.get(key), str) and value[key].strip():
                return value[key]
    return None


def extract_category(item: Item, default_category: Optional[str] = None) -> str:
    """
    Raw (feed-provided) category of an item.

    Lists are joined from their distinct values and only the first
    comma-separated segment is kept. Missing categories fall back to the
    source default, then to 'General'.
    """
    fallback = default_category or DEFAULT_CATEGORY
    raw = item.get('category')

    if isinstance(raw, list):
        values = []
        for entry in raw:
            text = _category_text(entry)
            if text and text.strip() and text.strip() not in values:
                values.append(text.strip())
        raw = ', '.join(values)
    else:
        raw = _category_text(raw)

    if not raw or not raw.strip():
        return fallback
    first = raw.strip().split(',')[0].strip()
    return html.unescape(first) if first else fallback


def extract_title(item: Item) -> str:
    return normalize_content(item.get('title')).strip()


def extract_content(item: Item) -> str:
    """Full body of an item from the first populated content field."""
    for field in CONTENT_FIELDS:
        text = normalize_content(item.get(field))
        if text:
            return text
    return ''


def extract_description(item: Item) -> Any:
    """Raw description field, left unnormalized for summary building."""
    return item.get('description') or item.get('summary')
