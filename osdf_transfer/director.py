"""
Origin discovery through the Pelican director.

The director answers a lookup for a federation path with a redirect whose
headers name the candidate origins (``Link``) and the namespace the path
belongs to (``X-Pelican-Namespace``). The redirect itself is never followed;
only its headers are used.
"""

import random
import threading
from collections.abc import Callable

import httpx

from osdf_transfer.exceptions import (
    DiscoveryRequestError,
    HeaderParseError,
    MissingHeaderError,
    NoOriginsAvailableError,
    NotFederationUrlError,
)
from osdf_transfer.logging import get_logger
from osdf_transfer.transport import HTTPTransport
from osdf_transfer.types.transfers import OriginInfo

logger = get_logger("director")

OSDF_URL_PREFIX = "osdf://"
DEFAULT_DIRECTOR_URL = "https://osdf-director.osg-htc.org"
DISCOVERY_PATH = "/api/v1.0/director/origin"

LINK_HEADER = "link"
NAMESPACE_HEADER = "x-pelican-namespace"


def parse_link_header(value: str) -> list[str]:
    """
    Extract origin URLs from a ``Link`` header.

    Each comma-separated entry contributes the text inside its first
    ``<...>`` pair.

    Raises:
        HeaderParseError: If an entry has no ``<`` or no closing ``>``
    """
    urls = []
    for entry in value.split(","):
        _, sep, rest = entry.partition("<")
        if not sep:
            raise HeaderParseError("Link", value)
        url, sep, _ = rest.partition(">")
        if not sep:
            raise HeaderParseError("Link", value)
        urls.append(url)
    return urls


def parse_namespace_header(value: str) -> str:
    """
    Extract the namespace path from an ``X-Pelican-Namespace`` header.

    ``namespace=/ns/path, require-token=true`` yields ``/ns/path``.

    Raises:
        HeaderParseError: If the header has no ``,`` or its first entry has no ``=``
    """
    first, sep, _ = value.partition(",")
    if not sep:
        raise HeaderParseError("X-Pelican-Namespace", value)
    _, sep, namespace = first.partition("=")
    if not sep:
        raise HeaderParseError("X-Pelican-Namespace", value)
    return namespace


def federation_path(url: str) -> str:
    """
    Return the part of an ``osdf://`` URL after the scheme.

    Raises:
        NotFederationUrlError: If ``url`` does not start with ``osdf://``
    """
    if not url.startswith(OSDF_URL_PREFIX):
        raise NotFederationUrlError(url)
    return url[len(OSDF_URL_PREFIX):]


def choose_origin(info: OriginInfo, rng: random.Random | None = None) -> str:
    """
    Pick one of the candidate origins uniformly at random.

    Raises:
        NoOriginsAvailableError: If ``info`` lists no origins
    """
    if not info.origins:
        raise NoOriginsAvailableError(info.namespace_prefix)
    return (rng or random).choice(info.origins)


class DiscoveryCache:
    """
    Director responses memoized per federation path for the process lifetime.

    Concurrent lookups of the same path are serialized so only the first one
    reaches the director; failed lookups are not cached.
    """

    def __init__(self) -> None:
        self._entries: dict[str, httpx.Headers] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def __contains__(self, path: object) -> bool:
        return path in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, path: str) -> httpx.Headers | None:
        return self._entries.get(path)

    def get_or_fetch(self, path: str, fetch: Callable[[str], httpx.Headers]) -> httpx.Headers:
        """Return the cached headers for ``path``, calling ``fetch`` on a miss."""
        cached = self._entries.get(path)
        if cached is not None:
            return cached

        with self._guard:
            lock = self._locks.setdefault(path, threading.Lock())

        with lock:
            cached = self._entries.get(path)
            if cached is None:
                cached = fetch(path)
                self._entries[path] = cached
            return cached

    def clear(self) -> None:
        with self._guard:
            self._entries.clear()
            self._locks.clear()


class DirectorClient:
    """
    Client for resolving federation URLs to origins.

    Example:
        ```python
        with HTTPTransport() as transport:
            director = DirectorClient(transport)
            info = director.resolve("osdf:///icecube/wipac/file.bin")
            origin = choose_origin(info)
        ```
    """

    def __init__(
        self,
        transport: HTTPTransport,
        director_url: str = DEFAULT_DIRECTOR_URL,
        cache: DiscoveryCache | None = None,
    ) -> None:
        """
        Initialize the director client.

        Args:
            transport: HTTP transport for making requests
            director_url: Base URL of the director
            cache: Discovery cache to use (default: a new private cache)
        """
        self.transport = transport
        self.director_url = director_url.rstrip("/")
        self.cache = cache if cache is not None else DiscoveryCache()

    @property
    def discovery_endpoint(self) -> str:
        return f"{self.director_url}{DISCOVERY_PATH}"

    def resolve(self, url: str) -> OriginInfo:
        """
        Resolve a federation URL to its namespace prefix and candidate origins.

        Raises:
            NotFederationUrlError: If ``url`` is not an ``osdf://`` URL
            DiscoveryRequestError: If the director is unreachable or returns an error
            MissingHeaderError: If a required response header is absent
            HeaderParseError: If a response header is malformed
        """
        path = federation_path(url)
        headers = self.cache.get_or_fetch(path, self._fetch)

        link = headers.get(LINK_HEADER)
        if link is None:
            raise MissingHeaderError("Link")
        origins = parse_link_header(link)
        logger.info("origin urls: %s", origins)

        namespace_value = headers.get(NAMESPACE_HEADER)
        if namespace_value is None:
            raise MissingHeaderError("X-Pelican-Namespace")
        namespace = parse_namespace_header(namespace_value)
        logger.info("pelican namespace: %s", namespace)

        return OriginInfo(
            namespace_prefix=f"{OSDF_URL_PREFIX}{namespace}",
            origins=tuple(origins),
        )

    def _fetch(self, path: str) -> httpx.Headers:
        director_url = f"{self.discovery_endpoint}{path}"
        logger.info("Locating origins via %s", director_url)
        try:
            response = self.transport.request("GET", director_url)
        except httpx.TransportError as e:
            raise DiscoveryRequestError(f"Cannot contact Pelican director: {e}") from e

        if response.status_code >= 400:
            body = response.text
            raise DiscoveryRequestError(
                f"Error finding Pelican Origin (status {response.status_code}): {body}",
                status_code=response.status_code,
                body=body,
            )

        return httpx.Headers(response.headers)
