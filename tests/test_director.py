"""
Tests for origin discovery.

Feature: director-client
"""

import random
import threading

import httpx
import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from osdf_transfer.director import (
    DISCOVERY_PATH,
    DirectorClient,
    DiscoveryCache,
    choose_origin,
    federation_path,
    parse_link_header,
    parse_namespace_header,
)
from osdf_transfer.exceptions import (
    DirectoryError,
    DiscoveryRequestError,
    HeaderParseError,
    MissingHeaderError,
    NoOriginsAvailableError,
    NotFederationUrlError,
)
from osdf_transfer.testing import MockFederation
from osdf_transfer.transport import HTTPTransport
from osdf_transfer.types.transfers import OriginInfo

host_strategy = st.text(alphabet="abcdefghij", min_size=1, max_size=10)
origin_strategy = st.builds(lambda h, port: f"https://{h}.test:{port}", host_strategy, st.integers(1, 65535))


def _director(federation: MockFederation, cache: DiscoveryCache | None = None) -> DirectorClient:
    transport = HTTPTransport(transport=federation.transport())
    return DirectorClient(transport, director_url=federation.director_url, cache=cache)


@given(origins=st.lists(origin_strategy, min_size=1, max_size=5))
@settings(max_examples=100)
def test_property_link_header_preserves_order(origins: list[str]) -> None:
    """
    Property 3: Link header parsing

    For any list of origins rendered as ``<url>; rel=...`` entries, the
    parsed list equals the input list in order.
    """
    header = ", ".join(f'<{o}>; rel="duplicate"; pri={i}' for i, o in enumerate(origins))
    assert parse_link_header(header) == origins


class TestParseLinkHeader:
    def test_two_entries(self) -> None:
        assert parse_link_header('<http://a>; rel="x", <http://b>') == ["http://a", "http://b"]

    def test_first_pair_per_entry(self) -> None:
        assert parse_link_header("<http://a>; <http://ignored>") == ["http://a"]

    def test_missing_open_bracket(self) -> None:
        with pytest.raises(HeaderParseError):
            parse_link_header("<http://a>, http://b>")

    def test_missing_close_bracket(self) -> None:
        with pytest.raises(HeaderParseError):
            parse_link_header("<http://a")

    def test_empty(self) -> None:
        with pytest.raises(HeaderParseError):
            parse_link_header("")


class TestParseNamespaceHeader:
    def test_first_entry(self) -> None:
        assert parse_namespace_header("namespace=/ns/path,foo=bar") == "/ns/path"

    def test_pelican_format(self) -> None:
        value = "namespace=/icecube/wipac, require-token=true, collections-url=https://x"
        assert parse_namespace_header(value) == "/icecube/wipac"

    def test_value_returned_verbatim(self) -> None:
        assert parse_namespace_header("namespace= /ns/path ,foo=bar") == " /ns/path "

    def test_splits_on_first_equals(self) -> None:
        assert parse_namespace_header("namespace=/a=b, x=y") == "/a=b"

    def test_missing_comma(self) -> None:
        with pytest.raises(HeaderParseError):
            parse_namespace_header("namespace=/ns/path")

    def test_missing_equals(self) -> None:
        with pytest.raises(HeaderParseError) as exc_info:
            parse_namespace_header("/ns/path,foo=bar")
        assert isinstance(exc_info.value, DirectoryError)


class TestFederationPath:
    def test_strip_scheme(self) -> None:
        assert federation_path("osdf:///icecube/wipac/") == "/icecube/wipac/"

    @pytest.mark.parametrize("url", ["https://host/path", "stash:///path", "/osdf:///path"])
    def test_rejects_other_urls(self, url: str) -> None:
        with pytest.raises(NotFederationUrlError):
            federation_path(url)


class TestChooseOrigin:
    def test_single(self) -> None:
        info = OriginInfo(namespace_prefix="osdf:///ns", origins=("http://a",))
        assert choose_origin(info) == "http://a"

    def test_empty(self) -> None:
        info = OriginInfo(namespace_prefix="osdf:///ns", origins=())
        with pytest.raises(NoOriginsAvailableError):
            choose_origin(info)

    def test_spreads_across_origins(self) -> None:
        info = OriginInfo(namespace_prefix="osdf:///ns", origins=("http://a", "http://b", "http://c"))
        rng = random.Random(1234)
        picked = {choose_origin(info, rng) for _ in range(200)}
        assert picked == set(info.origins)


class TestDirectorClient:
    def test_resolve(self) -> None:
        federation = MockFederation(
            namespace="/icecube/wipac", origins=("https://o1.test:8443", "https://o2.test")
        )
        info = _director(federation).resolve("osdf:///icecube/wipac/file.bin")

        assert info.namespace_prefix == "osdf:///icecube/wipac"
        assert info.origins == ("https://o1.test:8443", "https://o2.test")
        (call,) = federation.director_calls
        assert call.url == f"{federation.director_url}{DISCOVERY_PATH}/icecube/wipac/file.bin"

    def test_redirect_not_followed(self) -> None:
        federation = MockFederation()
        _director(federation).resolve("osdf:///namespace/file")
        assert federation.origin_calls == []

    def test_cache_prevents_second_lookup(self) -> None:
        federation = MockFederation()
        director = _director(federation)
        first = director.resolve("osdf:///namespace/file")
        second = director.resolve("osdf:///namespace/file")
        assert first == second
        assert len(federation.director_calls) == 1
        assert "/namespace/file" in director.cache

    def test_distinct_paths_each_looked_up(self) -> None:
        federation = MockFederation()
        director = _director(federation)
        director.resolve("osdf:///namespace/a")
        director.resolve("osdf:///namespace/b")
        assert len(federation.director_calls) == 2

    def test_shared_cache_across_clients(self) -> None:
        federation = MockFederation()
        cache = DiscoveryCache()
        _director(federation, cache).resolve("osdf:///namespace/file")
        _director(federation, cache).resolve("osdf:///namespace/file")
        assert len(federation.director_calls) == 1

    def test_not_federation_url_makes_no_request(self) -> None:
        federation = MockFederation()
        with pytest.raises(NotFederationUrlError):
            _director(federation).resolve("https://example.org/file")
        assert federation.calls == []

    def test_error_status_raises(self) -> None:
        federation = MockFederation()
        federation.director_status = 404
        with pytest.raises(DiscoveryRequestError) as exc_info:
            _director(federation).resolve("osdf:///namespace/file")
        assert exc_info.value.status_code == 404
        assert "no namespace found" in exc_info.value.body

    def test_failed_lookup_not_cached(self) -> None:
        federation = MockFederation()
        federation.director_status = 500
        director = _director(federation)
        with pytest.raises(DiscoveryRequestError):
            director.resolve("osdf:///namespace/file")
        federation.director_status = 307
        director.resolve("osdf:///namespace/file")
        assert len(federation.director_calls) == 2

    def test_connection_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        director = DirectorClient(HTTPTransport(transport=httpx.MockTransport(handler)))
        with pytest.raises(DiscoveryRequestError, match="Cannot contact"):
            director.resolve("osdf:///namespace/file")

    def test_missing_link_header(self) -> None:
        federation = MockFederation()
        federation.director_headers = {"X-Pelican-Namespace": "namespace=/namespace, a=b"}
        with pytest.raises(MissingHeaderError, match="Link"):
            _director(federation).resolve("osdf:///namespace/file")

    def test_missing_namespace_header(self) -> None:
        federation = MockFederation()
        federation.director_headers = {"Link": "<http://origin.test>"}
        with pytest.raises(MissingHeaderError, match="X-Pelican-Namespace"):
            _director(federation).resolve("osdf:///namespace/file")

    def test_malformed_header_parsed_from_cache(self) -> None:
        federation = MockFederation()
        federation.director_headers = {
            "Link": "http://origin.test",
            "X-Pelican-Namespace": "namespace=/namespace, a=b",
        }
        director = _director(federation)
        for _ in range(2):
            with pytest.raises(HeaderParseError):
                director.resolve("osdf:///namespace/file")
        assert len(federation.director_calls) == 1

    def test_default_director_url(self) -> None:
        director = DirectorClient(HTTPTransport())
        assert director.discovery_endpoint == (
            "https://osdf-director.osg-htc.org/api/v1.0/director/origin"
        )


class TestDiscoveryCache:
    def test_concurrent_lookups_deduplicated(self) -> None:
        cache = DiscoveryCache()
        calls: list[str] = []
        started = threading.Event()
        release = threading.Event()

        def fetch(path: str) -> httpx.Headers:
            calls.append(path)
            started.set()
            release.wait(timeout=5)
            return httpx.Headers({"link": "<http://a>"})

        results: list[httpx.Headers] = []
        threads = [
            threading.Thread(target=lambda: results.append(cache.get_or_fetch("/p", fetch)))
            for _ in range(4)
        ]
        for t in threads:
            t.start()
        started.wait(timeout=5)
        release.set()
        for t in threads:
            t.join(timeout=5)

        assert calls == ["/p"]
        assert len(results) == 4
        assert all(r["link"] == "<http://a>" for r in results)

    def test_clear(self) -> None:
        cache = DiscoveryCache()
        cache.get_or_fetch("/p", lambda path: httpx.Headers({}))
        assert len(cache) == 1
        cache.clear()
        assert "/p" not in cache
        assert cache.get("/p") is None
