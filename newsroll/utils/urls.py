"""
URL helpers for link extraction, image resolution and deduplication.
"""
import logging
from typing import Iterable, Optional
from urllib.parse import parse_qsl, urlencode, urljoin, urlparse

logger = logging.getLogger(__name__)

DEDUPE_TRACKING_PARAMS = frozenset({
    'utm_source', 'utm_medium', 'utm_campaign', 'utm_term', 'utm_content',
    'fbclid', 'gclid', 'msclkid', 'mc_eid', 'mc_cid',
    '_ga', 'source', 'src', 'ref', 'spm', 'share_id', 'share_source',
    'feedType', 'feedName', 'rssfeed', 'syndication', 'CMP', 'ncid', 'ICID',
})


def is_http_url(value: Optional[str]) -> bool:
    """True for strings that parse as absolute http(s) URLs with a host."""
    if not value or not isinstance(value, str):
        return False
    try:
        parsed = urlparse(value.strip())
    except ValueError:
        return False
    return parsed.scheme.lower() in ('http', 'https') and bool(parsed.netloc)


def origin(url: str) -> str:
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}"


def resolve_url(candidate: Optional[str], base_url: Optional[str] = None) -> Optional[str]:
    """
    Resolve a possibly relative URL to an absolute http(s) URL.

    Protocol-relative URLs get https. Root-relative paths are joined to the
    base's origin, other relative paths to the full base URL.

    Returns:
        The absolute URL, or None when it cannot be made into one
    """
    if not candidate or not isinstance(candidate, str):
        return None
    src = candidate.strip()
    if src.startswith('//'):
        src = f"https:{src}"

    if not src.lower().startswith('http') and is_http_url(base_url):
        try:
            if src.startswith('/'):
                src = urljoin(origin(base_url), src)
            else:
                src = urljoin(base_url, src)
        except ValueError:
            logger.warning(f"Failed to resolve relative URL: {src}")
            return None

    return src if is_http_url(src) else None


def strip_query_params(url: str, params: Iterable[str]) -> str:
    """
    Remove the given query parameters and rebuild the URL from scheme, host, path and query.
    """
    drop = set(params)
    parsed = urlparse(url)
    kept = [(k, v) for k, v in parse_qsl(parsed.query, keep_blank_values=True) if k not in drop]
    query = urlencode(kept)
    return f"{parsed.scheme}://{parsed.hostname or ''}{parsed.path}{'?' + query if query else ''}"


def normalize_source_link_for_dedupe(link: Optional[str]) -> Optional[str]:
    """
    Canonicalize an article link for duplicate detection.

    - Drop tracking parameters
    - Sort the remaining query parameters by name
    - Drop the fragment, port and a trailing slash on the path

    Returns:
        Canonical link, or None for anything that is not an http(s) link
    """
    if not link or not isinstance(link, str) or not link.startswith('http'):
        return None

    try:
        parsed = urlparse(link.strip())
        kept = [
            (k, v) for k, v in parse_qsl(parsed.query, keep_blank_values=True)
            if k not in DEDUPE_TRACKING_PARAMS
        ]
        kept.sort(key=lambda kv: kv[0])
        query = urlencode(kept)

        path = parsed.path or '/'
        if path != '/' and path.endswith('/'):
            path = path[:-1]

        return f"{parsed.scheme.lower()}://{parsed.hostname or ''}{path}{'?' + query if query else ''}"
    except ValueError as e:
        logger.warning(f"Failed to normalize URL {link}: {e}")
        trimmed = link.strip()
        return trimmed if trimmed.startswith('http') else None
