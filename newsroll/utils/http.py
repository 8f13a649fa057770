"""
HTTP utilities for Newsroll.
"""
import asyncio
import codecs
import logging
from typing import Dict, Optional, Tuple

import aiohttp
import async_timeout
import backoff

from newsroll.utils.text import strip_control_chars

# Configure logging
logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 15  # seconds
MAX_TRIES = 3
RETRY_DELAY = 1.0  # seconds, doubled on every retry

RETRYABLE_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError)

FEED_HEADERS = {
    'User-Agent': 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) '
                  'Chrome/100.0.4896.127 Safari/537.36 Newsroll/1.0 (+https://github.com/newsroll/newsroll)',
    'Accept': 'application/rss+xml,application/xml,application/atom+xml;q=0.9,text/xml;q=0.8,*/*;q=0.7',
}

PAGE_HEADERS = {
    'User-Agent': 'Mozilla/5.0 (compatible; NewsrollBot/1.0; +https://github.com/newsroll/newsroll)',
    'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8',
}

# Redecode as windows-1252 above either limit
REPLACEMENT_CHAR = '\ufffd'
MAX_REPLACEMENT_CHARS = 5
MAX_REPLACEMENT_RATIO = 0.01
FALLBACK_ENCODING = 'windows-1252'


def _log_retry(details: Dict) -> None:
    url = details['args'][0] if details['args'] else '?'
    logger.warning(
        f"Attempt {details['tries']} failed for {url}, "
        f"retrying in {details['wait']:.1f}s"
    )


def decode_feed_bytes(data: bytes) -> Tuple[str, str]:
    """
    Decode a fetched document, recovering from mis-declared legacy encodings.

    UTF-8 is tried first. If that leaves too many replacement characters the
    bytes are decoded as windows-1252 instead. Control characters and any
    remaining replacement characters are stripped either way.

    Args:
        data: Raw response body

    Returns:
        Tuple of (decoded text, encoding used)
    """
    text = data.decode('utf-8-sig', errors='replace')
    encoding = 'utf-8'

    replacement_count = text.count(REPLACEMENT_CHAR)
    if replacement_count > 0 and (
        replacement_count > MAX_REPLACEMENT_CHARS
        or replacement_count / (len(text) or 1) > MAX_REPLACEMENT_RATIO
    ):
        body = data[len(codecs.BOM_UTF8):] if data.startswith(codecs.BOM_UTF8) else data
        text = body.decode(FALLBACK_ENCODING, errors='replace')
        encoding = FALLBACK_ENCODING

    return strip_control_chars(text), encoding


class HttpClient:
    """
    Thin aiohttp wrapper with per-request timeouts and exponential-backoff retries.

    Only transport errors, timeouts and non-2xx responses are retried; a
    successful response is returned as-is whatever its body looks like.
    """
    def __init__(self, timeout: float = REQUEST_TIMEOUT, max_tries: int = MAX_TRIES,
                 retry_delay: float = RETRY_DELAY, headers: Optional[Dict[str, str]] = None):
        self.timeout = timeout
        self.max_tries = max_tries
        self.retry_delay = retry_delay
        self.headers = dict(headers or FEED_HEADERS)
        self._session = None

    @property
    def session(self) -> aiohttp.ClientSession:
        """
        Lazy initialization of aiohttp session.

        Returns:
            aiohttp.ClientSession: The HTTP session
        """
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(headers=self.headers)
        return self._session

    async def close(self):
        """Close aiohttp session."""
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> 'HttpClient':
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    async def _get_bytes(self, url: str, headers: Optional[Dict[str, str]], timeout: float) -> bytes:
        async with async_timeout.timeout(timeout):
            async with self.session.get(url, headers=headers) as response:
                response.raise_for_status()
                return await response.read()

    async def fetch_bytes(self, url: str, *, headers: Optional[Dict[str, str]] = None,
                          timeout: Optional[float] = None, max_tries: Optional[int] = None) -> bytes:
        """
        Fetch a URL's body with retries.

        Args:
            url: The URL to fetch
            headers: Extra headers for this request
            timeout: Seconds allowed per attempt
            max_tries: Total attempts including the first

        Returns:
            The raw response body

        Raises:
            aiohttp.ClientError or asyncio.TimeoutError once every attempt failed
        """
        fetch = backoff.on_exception(
            backoff.expo,
            RETRYABLE_ERRORS,
            max_tries=max_tries or self.max_tries,
            on_backoff=_log_retry,
            logger=None,
            factor=self.retry_delay,
        )(self._get_bytes)
        return await fetch(url, headers, timeout or self.timeout)
