"""URL metadata fetching: best-effort title/description lookup for bookmark creation."""
import asyncio
import ipaddress
import logging
import socket
from dataclasses import dataclass
from typing import Protocol
from urllib.parse import urlparse

import httpx
from bs4 import BeautifulSoup

from core.metadata_cache import MetadataCache
from schemas.bookmark import MAX_TITLE_LENGTH

logger = logging.getLogger(__name__)

USER_AGENT = 'Mozilla/5.0 (compatible; Markshelf/1.0)'
DEFAULT_TIMEOUT = 10.0


class SSRFBlockedError(Exception):
    """Raised when a URL targets a private/internal network address."""

    pass


def is_valid_url(url: str) -> bool:
    """Check that a string is an absolute URL with a scheme and a host."""
    try:
        parsed = urlparse(url)
        # Raises ValueError for a non-numeric or out-of-range port
        parsed.port  # noqa: B018
    except ValueError:
        return False
    return bool(parsed.scheme and parsed.netloc)


def is_private_ip(ip_str: str) -> bool:
    """True unless `ip_str` is a publicly routable address (unparseable counts as private)."""
    try:
        ip = ipaddress.ip_address(ip_str)
    except ValueError:
        return True
    return any((
        ip.is_private,
        ip.is_loopback,
        ip.is_link_local,
        ip.is_multicast,
        ip.is_reserved,
        ip.is_unspecified,
    ))


def validate_url_not_private(url: str) -> None:
    """
    Refuse URLs whose host is localhost or resolves to any non-public address.

    Every resolved address is checked, not just the first.

    Raises:
        SSRFBlockedError: If the host is local or resolves to a private address.
        ValueError: If the URL has no host or the host does not resolve.
    """
    hostname = urlparse(url).hostname
    if not hostname:
        raise ValueError(f"Invalid URL (no hostname): {url}")

    if hostname.lower() in ('localhost', 'localhost.localdomain'):
        raise SSRFBlockedError(f"Blocked request to localhost: {url}")

    try:
        addrinfo = socket.getaddrinfo(hostname, None, socket.AF_UNSPEC, socket.SOCK_STREAM)
    except socket.gaierror as e:
        raise ValueError(f"Could not resolve hostname: {hostname}") from e

    # sockaddr is (ip, port) for IPv4 or (ip, port, flow, scope) for IPv6
    for _, _, _, _, sockaddr in addrinfo:
        ip_str = sockaddr[0]
        if is_private_ip(ip_str):
            raise SSRFBlockedError(
                f"Blocked request to private/internal address: {url} resolves to {ip_str}",
            )


@dataclass(frozen=True)
class UrlMetadata:
    """Title and description used to fill in a bookmark created without a title."""

    title: str
    description: str


@dataclass
class ExtractedMetadata:
    """Title and description found in an HTML document (None when absent)."""

    title: str | None
    description: str | None


@dataclass
class FetchResult:
    """Result of fetching a URL (raw HTML before extraction)."""

    html: str | None
    final_url: str
    status_code: int | None
    content_type: str | None
    error: str | None


async def fetch_url(  # noqa: PLR0911
    url: str,
    timeout: float = DEFAULT_TIMEOUT,  # noqa: ASYNC109
    block_private_hosts: bool = True,
) -> FetchResult:
    """
    Fetch HTML from a URL.

    Best-effort fetch that returns error info on failure rather than raising.
    Follows redirects and captures the final URL.

    Args:
        url:
            The URL to fetch.
        timeout:
            Request timeout in seconds.
        block_private_hosts:
            If True, refuse URLs (and redirect targets) that resolve to
            private/internal addresses.

    Returns:
        FetchResult containing the HTML or error info.
    """
    if not is_valid_url(url):
        return FetchResult(
            html=None, final_url=url, status_code=None, content_type=None,
            error=f"Invalid URL: {url}",
        )

    if block_private_hosts:
        try:
            await asyncio.to_thread(validate_url_not_private, url)
        except (SSRFBlockedError, ValueError) as e:
            return FetchResult(
                html=None, final_url=url, status_code=None, content_type=None, error=str(e),
            )

    try:
        async with httpx.AsyncClient(
            follow_redirects=True,
            timeout=timeout,
            headers={'User-Agent': USER_AGENT},
            http2=True,
        ) as client:
            response = await client.get(url)
    except httpx.TimeoutException:
        return FetchResult(
            html=None, final_url=url, status_code=None, content_type=None,
            error="Request timed out",
        )
    except httpx.RequestError as e:
        return FetchResult(
            html=None, final_url=url, status_code=None, content_type=None,
            error=f"Request failed: {e}",
        )
    except (httpx.InvalidURL, ValueError, OverflowError) as e:
        # Malformed URLs (e.g. a bad port) fail before or during connect
        return FetchResult(
            html=None, final_url=url, status_code=None, content_type=None,
            error=f"Invalid URL: {e}",
        )

    final_url = str(response.url)
    content_type = response.headers.get('content-type', '')

    if block_private_hosts and final_url != url:
        try:
            await asyncio.to_thread(validate_url_not_private, final_url)
        except (SSRFBlockedError, ValueError) as e:
            return FetchResult(
                html=None, final_url=final_url, status_code=response.status_code,
                content_type=None, error=f"Redirect blocked: {e}",
            )

    if not response.is_success:
        return FetchResult(
            html=None, final_url=final_url, status_code=response.status_code,
            content_type=content_type, error=f"HTTP {response.status_code}",
        )

    if 'text/html' not in content_type.lower():
        return FetchResult(
            html=None, final_url=final_url, status_code=response.status_code,
            content_type=content_type, error=f"Non-HTML content type: {content_type}",
        )

    return FetchResult(
        html=response.text, final_url=final_url, status_code=response.status_code,
        content_type=content_type, error=None,
    )


def _meta_content(soup: BeautifulSoup, **attrs: str) -> str | None:
    tag = soup.find('meta', attrs=attrs)
    if tag and tag.get('content'):
        return tag['content'].strip() or None
    return None


def extract_metadata(html: str) -> ExtractedMetadata:
    """
    Extract title and description from HTML.

    Pure function with no I/O. Uses BeautifulSoup for parsing.

    Title priority: `<title>`, then `og:title`.
    Description priority: `<meta name="description">`, then `og:description`.
    """
    soup = BeautifulSoup(html, 'lxml')

    title = None
    title_tag = soup.find('title')
    if title_tag and title_tag.string:
        title = title_tag.string.strip() or None
    if not title:
        title = _meta_content(soup, property='og:title')

    description = _meta_content(soup, name='description')
    if not description:
        description = _meta_content(soup, property='og:description')

    return ExtractedMetadata(title=title, description=description)


class MetadataFetcher(Protocol):
    """Anything that can produce a title/description for a URL."""

    async def fetch(self, url: str) -> UrlMetadata:
        """Return metadata for `url`. Must not raise for unreachable URLs."""
        ...


class UrlMetadataFetcher:
    """
    Fetch a page's title and description, caching successful lookups.

    Failures (network errors, timeouts, non-2xx, non-HTML, blocked hosts)
    never raise: they fall back to the URL as title and an empty description,
    and are not cached so a later request can retry.
    """

    def __init__(
        self,
        cache: MetadataCache,
        timeout: float = DEFAULT_TIMEOUT,
        block_private_hosts: bool = True,
    ) -> None:
        """Initialize with the cache to read from and populate."""
        self.cache = cache
        self.timeout = timeout
        self.block_private_hosts = block_private_hosts

    async def fetch(self, url: str) -> UrlMetadata:
        """Return metadata for `url`, from the cache when present."""
        cached = self.cache.get(url)
        if cached is not None:
            return cached

        result = await fetch_url(url, self.timeout, self.block_private_hosts)
        if result.html is None:
            logger.warning("Failed to fetch metadata for %s: %s", url, result.error)
            return UrlMetadata(title=url[:MAX_TITLE_LENGTH], description='')

        extracted = extract_metadata(result.html)
        metadata = UrlMetadata(
            title=(extracted.title or url)[:MAX_TITLE_LENGTH],
            description=extracted.description or '',
        )
        self.cache.set(url, metadata)
        return metadata
