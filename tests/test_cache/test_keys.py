"""Tests for cache key derivation."""

from __future__ import annotations

from tiercache import __version__
from tiercache.cache.keys import SEGMENT, build_key
from tiercache.client.context import resolve_url


class TestBuildKey:
    def test_key_is_method_and_url(self) -> None:
        key = build_key("GET", "http://www.example.com/")
        assert key.segment == f"tiercache:{__version__}:body"
        assert key.id == "GET:http://www.example.com/"

    def test_segment_embeds_version(self) -> None:
        assert __version__ in SEGMENT

    def test_method_is_upper_cased(self) -> None:
        assert build_key("get", "http://a/") == build_key("GET", "http://a/")

    def test_different_methods_differ(self) -> None:
        assert build_key("GET", "http://a/") != build_key("HEAD", "http://a/")

    def test_query_values_differ(self) -> None:
        a = build_key("GET", "http://www.example.com/path?d=ank")
        b = build_key("GET", "http://www.example.com/path?d=other")
        assert a != b

    def test_key_is_hashable(self) -> None:
        assert len({build_key("GET", "http://a/"), build_key("GET", "http://a/")}) == 1


class TestResolveUrl:
    def test_inline_and_structured_query_are_identical(self) -> None:
        inline = resolve_url("http://www.example.com/some-cacheable-path?d=ank")
        structured = resolve_url("http://www.example.com/some-cacheable-path", {"d": "ank"})
        assert inline == structured == "http://www.example.com/some-cacheable-path?d=ank"

    def test_params_merge_with_existing_query(self) -> None:
        url = resolve_url("http://www.example.com/path?a=1", {"b": "2"})
        assert url == "http://www.example.com/path?a=1&b=2"

    def test_no_params_keeps_url(self) -> None:
        assert resolve_url("http://www.example.com/") == "http://www.example.com/"

    def test_empty_params_keep_url(self) -> None:
        assert resolve_url("http://www.example.com/p?x=1", {}) == "http://www.example.com/p?x=1"

    def test_bare_host_gets_root_path(self) -> None:
        assert resolve_url("http://www.example.com") == "http://www.example.com/"

    def test_bare_host_and_root_path_share_a_key(self) -> None:
        bare = build_key("GET", resolve_url("http://www.example.com"))
        rooted = build_key("GET", resolve_url("http://www.example.com/"))
        assert bare == rooted

    def test_bare_host_with_params_shares_a_key(self) -> None:
        bare = build_key("GET", resolve_url("http://www.example.com", {"d": "ank"}))
        rooted = build_key("GET", resolve_url("http://www.example.com/?d=ank"))
        assert bare == rooted
        assert bare.id == "GET:http://www.example.com/?d=ank"

    def test_percent_escapes_are_kept(self) -> None:
        url = "http://www.example.com/a%2Fb?q=x%20y"
        assert resolve_url(url) == url
