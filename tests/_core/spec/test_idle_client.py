"""
Tests for the IdleClient state.

Test Categories:
---------------
1. Transition to CacheMiss state
2. Transition to FromCache state
3. Transition to NeedRevalidation state
4. only-if-cached
"""

from typing import Dict, Optional

import pytest

from shared_http_cache._core._headers import Headers
from shared_http_cache._core._spec import CacheMiss, FromCache, IdleClient, NeedRevalidation
from shared_http_cache._core.models import CacheEntry, Request
from shared_http_cache._exceptions import OnlyIfCachedError

URL = "https://example.com/resource"
STORED_TIME = 1704067200.0


def create_request(method: str = "GET", headers: Optional[Dict[str, str]] = None) -> Request:
    return Request(method=method, url=URL, key=URL, index=0, headers=Headers(headers or {}))


def create_entry(headers: Optional[Dict[str, str]] = None) -> CacheEntry:
    return CacheEntry(
        key=URL,
        headers=Headers(headers or {}),
        stored_time=STORED_TIME,
        integrity="sha512-AAAA",
        size=4,
    )


def advance(seconds: float) -> float:
    return STORED_TIME + seconds


class TestCacheMiss:
    def test_no_stored_entry(self):
        state = IdleClient(request=create_request()).next(None, now=advance(0))

        assert isinstance(state, CacheMiss)
        assert state.entry is None

    def test_entry_with_vary_is_not_used(self):
        """
        Test: a stored response with a Vary header is never served.
        """
        entry = create_entry({"cache-control": "max-age=3600", "vary": "Accept-Encoding"})

        state = IdleClient(request=create_request()).next(entry, now=advance(1))

        assert isinstance(state, CacheMiss)
        assert state.entry is entry

    def test_unsafe_method_skips_the_lookup(self):
        """
        Test: unsafe methods are written through even with a fresh entry.
        """
        idle = IdleClient(request=create_request(method="POST"))

        state = idle.next(create_entry({"cache-control": "max-age=3600"}), now=advance(1))

        assert not idle.needs_lookup
        assert isinstance(state, CacheMiss)
        assert state.entry is None


class TestFromCache:
    def test_fresh_entry(self):
        entry = create_entry({"cache-control": "max-age=3600"})

        state = IdleClient(request=create_request()).next(entry, now=advance(60))

        assert isinstance(state, FromCache)
        assert state.entry is entry

    def test_fresh_entry_for_head(self):
        entry = create_entry({"cache-control": "max-age=3600"})

        state = IdleClient(request=create_request(method="HEAD")).next(entry, now=advance(60))

        assert isinstance(state, FromCache)

    def test_must_revalidate_does_not_apply_while_fresh(self):
        entry = create_entry({"cache-control": "max-age=3600, must-revalidate"})

        state = IdleClient(request=create_request()).next(entry, now=advance(60))

        assert isinstance(state, FromCache)

    def test_stale_entry_accepted_by_max_stale(self):
        entry = create_entry({"cache-control": "max-age=100"})
        request = create_request(headers={"cache-control": "max-stale=60"})

        state = IdleClient(request=request).next(entry, now=advance(150))

        assert isinstance(state, FromCache)

    def test_stale_entry_accepted_by_unbounded_max_stale(self):
        entry = create_entry({"cache-control": "max-age=100"})
        request = create_request(headers={"cache-control": "max-stale"})

        state = IdleClient(request=request).next(entry, now=advance(10**6))

        assert isinstance(state, FromCache)


class TestNeedRevalidation:
    def test_stale_entry_with_etag(self):
        entry = create_entry({"cache-control": "max-age=100", "etag": '"v1"'})
        request = create_request()

        state = IdleClient(request=request).next(entry, now=advance(150))

        assert isinstance(state, NeedRevalidation)
        assert state.request.headers["if-none-match"] == '"v1"'
        assert "if-modified-since" not in state.request.headers
        assert state.original_request is request
        assert "if-none-match" not in state.original_request.headers
        assert state.entry is entry

    def test_stale_entry_with_last_modified(self):
        entry = create_entry({"cache-control": "max-age=100", "last-modified": "Sun, 31 Dec 2023 00:00:00 GMT"})

        state = IdleClient(request=create_request()).next(entry, now=advance(150))

        assert isinstance(state, NeedRevalidation)
        assert state.request.headers["if-modified-since"] == "Sun, 31 Dec 2023 00:00:00 GMT"
        assert "if-none-match" not in state.request.headers

    def test_stale_entry_without_validators(self):
        entry = create_entry({"cache-control": "max-age=100"})

        state = IdleClient(request=create_request()).next(entry, now=advance(150))

        assert isinstance(state, NeedRevalidation)
        assert state.request.headers == state.original_request.headers

    def test_max_stale_is_overridden_by_must_revalidate(self):
        entry = create_entry({"cache-control": "max-age=100, must-revalidate"})
        request = create_request(headers={"cache-control": "max-stale=600"})

        state = IdleClient(request=request).next(entry, now=advance(150))

        assert isinstance(state, NeedRevalidation)

    def test_max_stale_is_overridden_by_proxy_revalidate(self):
        entry = create_entry({"cache-control": "max-age=100, proxy-revalidate"})
        request = create_request(headers={"cache-control": "max-stale"})

        state = IdleClient(request=request).next(entry, now=advance(150))

        assert isinstance(state, NeedRevalidation)

    def test_request_no_cache(self):
        entry = create_entry({"cache-control": "max-age=3600"})
        request = create_request(headers={"Cache-Control": "no-cache"})

        state = IdleClient(request=request).next(entry, now=advance(1))

        assert isinstance(state, NeedRevalidation)

    def test_response_no_cache(self):
        entry = create_entry({"cache-control": "max-age=3600, no-cache"})

        state = IdleClient(request=create_request()).next(entry, now=advance(1))

        assert isinstance(state, NeedRevalidation)

    def test_request_max_age_zero(self):
        entry = create_entry({"cache-control": "max-age=3600"})
        request = create_request(headers={"cache-control": "max-age=0"})

        state = IdleClient(request=request).next(entry, now=advance(1))

        assert isinstance(state, NeedRevalidation)


class TestOnlyIfCached:
    def test_no_entry(self):
        request = create_request(headers={"cache-control": "only-if-cached"})

        with pytest.raises(OnlyIfCachedError) as exc_info:
            IdleClient(request=request).next(None, now=advance(0))

        assert exc_info.value.status_code == 504
        assert str(exc_info.value) == "HTTP error! status: 504 Only-If-Cached"

    def test_stale_entry(self):
        entry = create_entry({"cache-control": "max-age=100", "etag": '"v1"'})
        request = create_request(headers={"cache-control": "only-if-cached"})

        with pytest.raises(OnlyIfCachedError):
            IdleClient(request=request).next(entry, now=advance(150))

    def test_fresh_entry_is_served(self):
        entry = create_entry({"cache-control": "max-age=100"})
        request = create_request(headers={"cache-control": "only-if-cached"})

        state = IdleClient(request=request).next(entry, now=advance(50))

        assert isinstance(state, FromCache)

    def test_stale_entry_accepted_by_max_stale(self):
        entry = create_entry({"cache-control": "max-age=100"})
        request = create_request(headers={"cache-control": "only-if-cached, max-stale=100"})

        state = IdleClient(request=request).next(entry, now=advance(150))

        assert isinstance(state, FromCache)
