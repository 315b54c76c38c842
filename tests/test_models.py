"""Tests for the cache data models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from tiercache.models import CacheConfig, CacheEntry, CacheKey, Response, ResponseSnapshot


def _snapshot() -> ResponseSnapshot:
    return ResponseSnapshot(
        body='{"name": "ada"}',
        headers={"cache-control": "max-age=60"},
        status_code=200,
        url="http://www.example.com/",
        elapsed_time=40,
    )


class TestResponse:
    def test_snapshot_is_frozen(self) -> None:
        with pytest.raises(ValidationError):
            _snapshot().body = "changed"

    def test_json(self) -> None:
        assert _snapshot().json() == {"name": "ada"}

    def test_from_entry_carries_ttl(self) -> None:
        entry = CacheEntry(item=_snapshot(), ttl=1234, stored=0)
        res = Response.from_entry(entry)
        assert res.ttl == 1234
        assert res.body == '{"name": "ada"}'
        assert res.elapsed_time == 40

    def test_to_snapshot_drops_ttl(self) -> None:
        res = Response(**_snapshot().model_dump(), ttl=10)
        snapshot = res.to_snapshot()
        assert type(snapshot) is ResponseSnapshot
        assert snapshot == _snapshot()

    def test_snapshot_round_trips_through_json(self) -> None:
        dumped = _snapshot().model_dump(mode="json")
        assert ResponseSnapshot.model_validate(dumped) == _snapshot()


    def test_text_content(self) -> None:
        assert _snapshot().content == b'{"name": "ada"}'

    def test_base64_content(self) -> None:
        snapshot = ResponseSnapshot(
            body="AP8=", body_encoding="base64", status_code=200, url="http://a/"
        )
        assert snapshot.content == b"\x00\xff"

    def test_header_lookup_ignores_case(self) -> None:
        snapshot = ResponseSnapshot(
            headers={"Content-Type": "text/html"}, status_code=200, url="http://a/"
        )
        assert snapshot.header("content-type") == "text/html"
        assert snapshot.header("etag") is None

    def test_unknown_body_encoding_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ResponseSnapshot(body="x", body_encoding="gzip", status_code=200, url="http://a/")


class TestCacheKey:
    def test_equality(self) -> None:
        assert CacheKey(segment="s", id="GET:u") == CacheKey(segment="s", id="GET:u")

    def test_hashable(self) -> None:
        assert len({CacheKey(segment="s", id="a"), CacheKey(segment="s", id="a")}) == 1


class TestCacheConfig:
    def test_defaults(self) -> None:
        config = CacheConfig()
        assert config.timeout is None
        assert config.ignore_cache_errors is False
        assert config.name is None
        assert config.methods == ("GET", "HEAD")

    def test_methods_upper_cased(self) -> None:
        assert CacheConfig(methods=("get", "options")).methods == ("GET", "OPTIONS")

    @pytest.mark.parametrize("options", [{"timeout": 0}, {"timeout": -1}, {"name": ""}, {"ttl": 5}])
    def test_rejected(self, options) -> None:
        with pytest.raises(ValidationError):
            CacheConfig(**options)

    def test_frozen(self) -> None:
        with pytest.raises(ValidationError):
            CacheConfig().timeout = 5
