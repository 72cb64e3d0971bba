"""
Tests for the header container and the Cache-Control parser.
"""

import pytest

from shared_http_cache._core._headers import Headers, Vary, parse_cache_control, split_directives


class TestHeaders:
    def test_names_are_case_insensitive(self):
        headers = Headers({"Cache-Control": "max-age=60", "ETag": '"v1"'})

        assert headers["cache-control"] == "max-age=60"
        assert headers["CACHE-CONTROL"] == "max-age=60"
        assert "etag" in headers
        assert "Etag" in headers
        assert list(headers) == ["cache-control", "etag"]

    def test_repeated_names_are_joined(self):
        headers = Headers([("Set-Cookie", "a=1"), ("set-cookie", "b=2")])

        assert headers["set-cookie"] == "a=1, b=2"
        assert headers.get_list("Set-Cookie") == ["a=1", "b=2"]
        assert headers.multi_items() == [("set-cookie", "a=1"), ("set-cookie", "b=2")]

    def test_list_values(self):
        headers = Headers({"Link": ["<a>", "<b>"]})

        assert headers.to_dict() == {"link": ["<a>", "<b>"]}

    def test_missing_name(self):
        headers = Headers()

        assert headers.get("etag") is None
        assert headers.get_list("etag") is None
        with pytest.raises(KeyError):
            headers["etag"]

    def test_merge_replaces_every_value_of_a_name(self):
        stored = Headers([("cache-control", "max-age=60"), ("warning", "a"), ("warning", "b"), ("etag", '"v1"')])

        merged = stored.merge({"Cache-Control": "max-age=120", "Warning": "c"})

        assert merged.to_dict() == {
            "cache-control": ["max-age=120"],
            "warning": ["c"],
            "etag": ['"v1"'],
        }
        # The original instance is left untouched.
        assert stored["cache-control"] == "max-age=60"

    def test_without(self):
        headers = Headers({"etag": '"v1"', "date": "today", "age": "3"})

        assert headers.without("Date", "AGE") == Headers({"etag": '"v1"'})

    def test_equality_and_hash(self):
        first = Headers({"A": "1", "b": "2"})
        second = Headers([("a", "1"), ("B", "2")])

        assert first == second
        assert hash(first) == hash(second)
        assert first != Headers({"a": "1"})
        assert first != {"a": "1", "b": "2"}


class TestVary:
    def test_values_are_lower_cased(self):
        vary = Vary.from_value("Accept-Encoding, , User-Agent")

        assert vary.values == ["accept-encoding", "user-agent"]
        assert not vary.is_wildcard

    def test_wildcard(self):
        assert Vary.from_value("*").is_wildcard


class TestParseCacheControl:
    def test_empty_values(self):
        assert parse_cache_control(None) == {}
        assert parse_cache_control("") == {}
        assert parse_cache_control("   ") == {}

    def test_flags_and_numbers(self):
        assert parse_cache_control("public, max-age=3600, must-revalidate") == {
            "public": True,
            "max-age": 3600,
            "must-revalidate": True,
        }

    def test_names_are_lower_cased(self):
        assert parse_cache_control("No-Store, MAX-AGE=10") == {"no-store": True, "max-age": 10}

    def test_first_occurrence_wins(self):
        assert parse_cache_control("max-age=10, max-age=20") == {"max-age": 10}

    def test_quoted_values(self):
        directives = parse_cache_control('private="set-cookie, x-token", max-age="60"')

        assert directives == {"private": "set-cookie, x-token", "max-age": 60}

    def test_fractional_and_invalid_numbers(self):
        assert parse_cache_control("max-age=1.5, s-maxage=abc, max-stale=inf") == {
            "max-age": 1.5,
            "s-maxage": "abc",
            "max-stale": "inf",
        }

    def test_valueless_directive_with_equals(self):
        assert parse_cache_control("max-stale=") == {"max-stale": ""}

    def test_stray_commas(self):
        assert parse_cache_control(",no-cache,,") == {"no-cache": True}


def test_split_directives_respects_quotes():
    assert split_directives('no-cache="a, b", max-age=1') == ['no-cache="a, b"', " max-age=1"]
