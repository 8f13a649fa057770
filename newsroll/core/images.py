"""
Representative image resolution for feed items.
"""
import html
import logging
import re
from typing import Any, Callable, Dict, Iterable, List, Optional

from bs4 import BeautifulSoup, NavigableString, Tag

from newsroll.utils.http import PAGE_HEADERS, decode_feed_bytes
from newsroll.utils.text import CONTENT_FIELDS, normalize_content
from newsroll.utils.urls import is_http_url, resolve_url

logger = logging.getLogger(__name__)

# Attribute priority for <img> sources, lazy-loading variants last
IMG_SRC_ATTRS = ('src', 'data-src', 'data-original', 'data-lazy-src')

OG_SELECTORS = (
    'meta[property="og:image"]',
    'meta[name="og:image"]',
    'meta[property="twitter:image"]',
    'meta[name="twitter:image"]',
)

# Only a leading image is treated as the hero duplicate
HERO_IMAGE_WINDOW = 300
IMG_TAG_RE = re.compile(r'<img\b', re.IGNORECASE)
WRAPPER_TAGS = ('a', 'figure')

Item = Dict[str, Any]


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    return value if isinstance(value, list) else [value]


def _is_image_media(entry: Any) -> bool:
    if not isinstance(entry, dict) or not entry.get('url'):
        return False
    return entry.get('medium') == 'image' or str(entry.get('type', '')).startswith('image/')


def _from_media_content(item: Item) -> List[str]:
    return [entry['url'] for entry in _as_list(item.get('media:content')) if _is_image_media(entry)]


def _from_media_group(item: Item) -> List[str]:
    urls = []
    for group in _as_list(item.get('media:group')):
        if isinstance(group, dict):
            urls.extend(entry['url'] for entry in _as_list(group.get('media:content')) if _is_image_media(entry))
    return urls


def _from_enclosure(item: Item) -> List[str]:
    return [
        entry['url'] for entry in _as_list(item.get('enclosure'))
        if isinstance(entry, dict) and entry.get('url') and str(entry.get('type', '')).startswith('image/')
    ]


def _from_media_thumbnail(item: Item) -> List[str]:
    return [
        entry['url'] for entry in _as_list(item.get('media:thumbnail'))
        if isinstance(entry, dict) and entry.get('url')
    ]


def _from_image_field(item: Item) -> List[str]:
    image = item.get('image')
    if isinstance(image, dict) and isinstance(image.get('url'), str):
        return [image['url']]
    if isinstance(image, str) and image.startswith('http'):
        return [image]
    return []


def img_source(img: Tag) -> Optional[str]:
    for attr in IMG_SRC_ATTRS:
        value = img.get(attr)
        if value:
            return value.strip()
    return None


def images_in_html(markup: str) -> List[str]:
    if not markup or not IMG_TAG_RE.search(markup):
        return []
    soup = BeautifulSoup(markup, 'html.parser')
    return [src for src in (img_source(img) for img in soup.find_all('img')) if src]


def _from_embedded_html(item: Item) -> List[str]:
    urls = []
    for field in CONTENT_FIELDS:
        urls.extend(images_in_html(normalize_content(item.get(field))))
    return urls


# Collection order; the first candidate that resolves wins
IMAGE_COLLECTORS: List[Callable[[Item], List[str]]] = [
    _from_media_content,
    _from_media_group,
    _from_enclosure,
    _from_media_thumbnail,
    _from_image_field,
    _from_embedded_html,
]


def collect_image_candidates(item: Item) -> List[str]:
    candidates = []
    for collector in IMAGE_COLLECTORS:
        candidates.extend(src for src in collector(item) if isinstance(src, str))
    return candidates


def first_resolvable(candidates: Iterable[str], article_link: Optional[str]) -> Optional[str]:
    for candidate in candidates:
        resolved = resolve_url(candidate, article_link)
        if resolved:
            return resolved
    return None


def resolve_image(item: Item, article_link: Optional[str] = None) -> Optional[str]:
    """
    Pick the representative image of a feed item.

    Args:
        item: The item dict
        article_link: The item's external link, used to resolve relative URLs

    Returns:
        An absolute http(s) image URL, or None
    """
    try:
        return first_resolvable(collect_image_candidates(item), article_link)
    except (AttributeError, TypeError, ValueError) as e:
        logger.warning(f"Error extracting image URL: {e}")
        return None


def extract_og_image(page_html: str, page_url: str) -> Optional[str]:
    """
    Find the Open Graph (or Twitter card) image of an HTML page.
    """
    soup = BeautifulSoup(page_html, 'html.parser')
    for selector in OG_SELECTORS:
        meta = soup.select_one(selector)
        content = meta.get('content') if meta is not None else None
        if content:
            return resolve_url(html.unescape(content.strip()), page_url)
    return None


async def fetch_og_image(client, page_url: str, timeout: float = 8, max_tries: int = 2) -> Optional[str]:
    """
    Fetch an article page and read its OG image.

    Best effort: every failure is logged and yields None.

    Args:
        client: An HttpClient (anything with a compatible fetch_bytes)
        page_url: The article page
        timeout: Seconds allowed per attempt
        max_tries: Total attempts

    Returns:
        Absolute image URL or None
    """
    if not is_http_url(page_url):
        return None
    try:
        data = await client.fetch_bytes(page_url, headers=PAGE_HEADERS, timeout=timeout, max_tries=max_tries)
        page_html, _ = decode_feed_bytes(data)
        return extract_og_image(page_html, page_url)
    except Exception as e:
        logger.warning(f"Error fetching OG image from {page_url}: {e!r}")
        return None


def _only_child(wrapper: Tag, child: Tag) -> bool:
    for node in wrapper.contents:
        if node is child:
            continue
        if isinstance(node, NavigableString) and not node.strip():
            continue
        return False
    return True


def remove_duplicate_image(content: str, image_url: str, article_link: Optional[str] = None) -> str:
    """
    Drop the leading <img> of the content when it is the chosen hero image.

    The image is removed only if it is the first image of the markup, resolves
    to image_url, and starts within the first HERO_IMAGE_WINDOW characters.
    A wrapping <a> or <figure> holding nothing else goes with it.
    """
    if not content or not image_url:
        return content

    position = IMG_TAG_RE.search(content)
    if position is None or position.start() >= HERO_IMAGE_WINDOW:
        return content

    soup = BeautifulSoup(content, 'html.parser')
    first_img = soup.find('img')
    if first_img is None:
        return content

    if resolve_url(img_source(first_img), article_link) != image_url:
        return content

    target = first_img
    while isinstance(target.parent, Tag) and target.parent.name in WRAPPER_TAGS and _only_child(target.parent, target):
        target = target.parent
    target.decompose()
    return str(soup)
