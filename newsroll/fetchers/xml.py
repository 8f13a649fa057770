"""
Permissive feed document parsing for Newsroll.

Feeds are parsed with BeautifulSoup's lxml-backed XML parser, which recovers
from most malformed markup, and then flattened into plain dictionaries:

- an element without attributes or children becomes its stripped text
- otherwise it becomes a dict holding its attributes, its children keyed by
  (prefixed) tag name, and its text under '#text'
- repeated children under the same key become a list
"""
import logging
import re
from html.entities import name2codepoint
from typing import Any, Dict, List

from bs4 import BeautifulSoup
from bs4.element import Comment, Declaration, Doctype, NavigableString, ProcessingInstruction, Tag

from newsroll.utils.text import get_nested_value

logger = logging.getLogger(__name__)

XML_DECLARATION_RE = re.compile(r'^\s*<\?xml[^>]*\?>', re.IGNORECASE)

# Named entities other than the five XML predefines are unknown to the parser
ENTITY_RE = re.compile(r'&([A-Za-z][A-Za-z0-9]*);')
XML_ENTITIES = {'amp', 'lt', 'gt', 'quot', 'apos'}

ROOT_TAG_RE = re.compile(r'<([A-Za-z_][\w.:-]*)')
PREFIXED_TAG_RE = re.compile(r'</?([A-Za-z_][\w.-]*):[A-Za-z_]')
PREFIXED_ATTR_RE = re.compile(r'\s([A-Za-z_][\w.-]*):[A-Za-z_][\w.-]*\s*=')
DECLARED_PREFIX_RE = re.compile(r'xmlns:([A-Za-z_][\w.-]*)\s*=')
RESERVED_PREFIXES = {'xml', 'xmlns'}
UNDECLARED_NAMESPACE = 'urn:newsroll:undeclared:{prefix}'

TEXT_KEY = '#text'

# Where each feed flavour keeps its items, tried in order
ITEM_PATHS = (
    'rss.channel.item',
    'feed.entry',
    'rdf:RDF.item',
)

_SKIPPED_STRINGS = (Comment, Declaration, Doctype, ProcessingInstruction)


class FeedParseError(Exception):
    """Raised when a document cannot be turned into a feed tree."""


def tag_key(tag: Tag) -> str:
    if tag.prefix and ':' not in tag.name:
        return f"{tag.prefix}:{tag.name}"
    return tag.name


def _own_text(tag: Tag) -> str:
    return ''.join(
        str(child) for child in tag.children
        if isinstance(child, NavigableString) and not isinstance(child, _SKIPPED_STRINGS)
    ).strip()


def _add_child(node: Dict[str, Any], key: str, value: Any) -> None:
    if key not in node:
        node[key] = value
    elif isinstance(node[key], list):
        node[key].append(value)
    else:
        node[key] = [node[key], value]


def element_to_value(tag: Tag) -> Any:
    """
    Convert an element into a string or a dict, as described in the module docstring.
    """
    children = [child for child in tag.children if isinstance(child, Tag)]
    attrs = {str(k): (' '.join(v) if isinstance(v, list) else v) for k, v in tag.attrs.items()}

    # Atom xhtml content: keep the markup rather than a tree of dicts
    if children and attrs.get('type') == 'xhtml':
        return {**attrs, TEXT_KEY: tag.decode_contents().strip()}

    text = _own_text(tag)
    if not attrs and not children:
        return text

    node: Dict[str, Any] = {}
    for key, value in attrs.items():
        _add_child(node, key, value)
    for child in children:
        _add_child(node, tag_key(child), element_to_value(child))
    if text:
        node[TEXT_KEY] = text
    return node


def replace_html_entities(markup: str) -> str:
    """Rewrite HTML named entities such as &nbsp; as numeric references."""
    def _replace(match):
        name = match.group(1)
        if name in XML_ENTITIES or name not in name2codepoint:
            return match.group(0)
        return f"&#{name2codepoint[name]};"

    return ENTITY_RE.sub(_replace, markup)


def declare_missing_prefixes(markup: str) -> str:
    """
    Declare namespace prefixes that a document uses without declaring them.

    The parser drops undeclared prefixes, which would file <media:content>
    under 'content'. Each missing prefix is bound to a placeholder namespace
    on the root element so the prefixed name survives.
    """
    used = set(PREFIXED_TAG_RE.findall(markup)) | set(PREFIXED_ATTR_RE.findall(markup))
    missing = sorted(used - set(DECLARED_PREFIX_RE.findall(markup)) - RESERVED_PREFIXES)
    if not missing:
        return markup

    root = ROOT_TAG_RE.search(markup)
    if root is None:
        return markup
    logger.debug(f"Declaring undeclared namespace prefixes: {', '.join(missing)}")
    declarations = ''.join(
        f' xmlns:{prefix}="{UNDECLARED_NAMESPACE.format(prefix=prefix)}"' for prefix in missing
    )
    return markup[:root.end()] + declarations + markup[root.end():]


def parse_feed_document(text: str) -> Dict[str, Any]:
    """
    Parse a feed document into nested dictionaries.

    Args:
        text: The decoded document

    Returns:
        A single-key dict mapping the root tag name to its converted value

    Raises:
        FeedParseError: If no root element could be found
    """
    markup = XML_DECLARATION_RE.sub('', text or '', count=1)
    markup = declare_missing_prefixes(replace_html_entities(markup))
    soup = BeautifulSoup(markup, 'xml')
    root = soup.find(True)
    if root is None:
        raise FeedParseError("Document has no root element")
    return {tag_key(root): element_to_value(root)}


def find_items(document: Dict[str, Any]) -> List[Dict[str, Any]]:
    """
    Locate the items of an RSS 2.0, Atom or RDF document.

    Returns:
        The item dicts in document order, or [] if no layout yields items
    """
    for path in ITEM_PATHS:
        items = get_nested_value(document, path)
        if not items:
            continue
        if not isinstance(items, list):
            items = [items]
        items = [item for item in items if isinstance(item, dict)]
        if items:
            return items
    return []
