"""
Text normalization utilities for Newsroll.

Feed field values arrive in many shapes once the XML has been turned into
dictionaries: plain strings, dictionaries carrying attributes next to a text
node, or lists of either. Everything here reduces those to plain strings.
"""
import html
import re
from typing import Any, Optional

# Control characters and U+FFFD left over from broken encodings
CONTROL_CHARS_RE = re.compile(r'[\ufffd\x00-\x08\x0b\x0c\x0e-\x1f\x7f]')

STYLE_BLOCK_RE = re.compile(r'<style[^>]*>.*?</style>', re.IGNORECASE | re.DOTALL)
SCRIPT_BLOCK_RE = re.compile(r'<script[^>]*>.*?</script>', re.IGNORECASE | re.DOTALL)
TAG_RE = re.compile(r'<[^>]+>')
WHITESPACE_RE = re.compile(r'\s+')

# Keys under which parsers park the text node of an element
TEXT_KEYS = ('_', '$t', '#', '#text', '#cdata', 'p', 'span', 'div')

# Well-known feed fields holding body text, in preference order
CONTENT_FIELDS = ('content:encoded', 'content', 'description', 'summary')

REDDIT_BOILERPLATE = (
    re.compile(r'<p>submitted by.*?</p>', re.IGNORECASE | re.DOTALL),
    re.compile(r'<a href="[^"]*">\[comments?\]</a>', re.IGNORECASE),
    re.compile(r'<a href="[^"]*">\[link\]</a>', re.IGNORECASE),
    re.compile(r'<a[^>]*?>\[\d+ comments?\]</a>', re.IGNORECASE),
    re.compile(r'<p><a href="[^"]*">.*?read more.*?</a></p>', re.IGNORECASE | re.DOTALL),
)

NO_SUMMARY = "No summary available."
ELLIPSIS = '...'


def strip_control_chars(text: str) -> str:
    return CONTROL_CHARS_RE.sub('', text)


def _extract_text(value: Any) -> str:
    if value is None:
        return ''
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return ''
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (list, tuple)):
        parts = (normalize_content(segment) for segment in value)
        return ' '.join(part for part in parts if part)
    if isinstance(value, dict):
        for key in TEXT_KEYS:
            if isinstance(value.get(key), str) and value[key]:
                return value[key]
        for key in CONTENT_FIELDS:
            if value.get(key):
                normalized = normalize_content(value[key])
                if normalized.strip():
                    return normalized
    return ''


def normalize_content(value: Any) -> str:
    """
    Reduce an arbitrarily shaped feed field to decoded plain text.

    Args:
        value: A string, a dict with a text-carrying key, or a list of such

    Returns:
        The entity-decoded text with control characters removed, or ''
    """
    if not value:
        return ''
    text = _extract_text(value).strip()
    if not text:
        return ''
    return strip_control_chars(html.unescape(text))


def normalize_and_strip_html(html_string: Any) -> str:
    """
    Turn a fragment of HTML into a single line of plain text.

    Entities are decoded first, so escaped markup is stripped as well.
    <style> and <script> blocks are dropped with their contents, remaining
    tags are replaced by spaces and whitespace runs are collapsed.
    """
    if not html_string or not isinstance(html_string, str):
        return ''
    text = html.unescape(html_string)
    text = STYLE_BLOCK_RE.sub('', text)
    text = SCRIPT_BLOCK_RE.sub('', text)
    text = TAG_RE.sub(' ', text)
    return WHITESPACE_RE.sub(' ', text).strip()


def truncate(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[:max_length] + ELLIPSIS


def clean_reddit_markup(text: str) -> str:
    for pattern in REDDIT_BOILERPLATE:
        text = pattern.sub('', text)
    return text


def normalize_summary(description: Any, full_content: Any = None,
                      source_name: Optional[str] = None, max_length: int = 250) -> str:
    """
    Build the plain-text summary shown for an article.

    The full content is used when it is clearly longer than the description.

    Args:
        description: Raw description/summary field of the item
        full_content: Raw full content field of the item
        source_name: Name of the configured source
        max_length: Characters kept before the ellipsis

    Returns:
        Summary text, or NO_SUMMARY when nothing usable was found
    """
    description_text = normalize_content(description)
    full_text = normalize_content(full_content)

    if full_text and len(full_text) > len(description_text) + 50:
        text_to_summarize = full_text
    else:
        text_to_summarize = description_text or full_text

    if source_name and 'reddit' in source_name.lower():
        text_to_summarize = clean_reddit_markup(text_to_summarize)

    plain_text = normalize_and_strip_html(text_to_summarize)

    if not plain_text and full_text and full_text != text_to_summarize:
        plain_text = normalize_and_strip_html(full_text)

    if not plain_text:
        return NO_SUMMARY
    return truncate(plain_text, max_length)


def is_summary_just_title(title: str, summary: str, similarity_threshold: float = 0.8) -> bool:
    """
    Check whether a summary merely repeats the title.

    True when the summary starts with the title and adds fewer than 30
    characters, or when enough of the title's words (longer than two
    characters) show up in the summary.
    """
    if not title or not summary:
        return False

    normalized_title = normalize_and_strip_html(title).lower()
    normalized_summary = normalize_and_strip_html(summary).lower()
    if not normalized_title or not normalized_summary:
        return False

    if normalized_summary.startswith(normalized_title) and \
            len(normalized_summary) < len(normalized_title) + 30:
        return True

    title_words = {word for word in normalized_title.split() if len(word) > 2}
    if not title_words:
        return False

    common_words = sum(
        1 for word in normalized_summary.split()
        if len(word) > 2 and word in title_words
    )
    return common_words / len(title_words) >= similarity_threshold


def slugify(text: Any) -> str:
    """
    Lowercase, hyphenate whitespace and drop anything that is not [A-Za-z0-9_-].
    """
    if not text:
        return ''
    slug = str(text).lower().strip()
    slug = re.sub(r'\s+', '-', slug)
    slug = re.sub(r'[^\w-]+', '', slug, flags=re.ASCII)
    slug = re.sub(r'--+', '-', slug)
    return slug.strip('-')


def get_nested_value(obj: Any, path: str, default: Any = None) -> Any:
    """
    Follow a dot-separated key path through nested dictionaries.
    """
    current = obj
    for part in path.split('.'):
        if not isinstance(current, dict) or part not in current:
            return default
        current = current[part]
    return default if current is None else current
