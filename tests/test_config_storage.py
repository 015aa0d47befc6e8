"""
Tests for rate limit configuration and the key/value stores.
"""

import json
import threading

import pytest

from src.config import RateLimitConfig, gemini_model
from src.constants import DEFAULT_MODEL
from src.storage import JsonFileStore, MemoryStore


# ============================================================================
# Test: RateLimitConfig
# ============================================================================


class TestRateLimitConfig:
    def test_defaults(self):
        cfg = RateLimitConfig()
        assert (cfg.daily_limit, cfg.per_minute_limit, cfg.warning_threshold) == (50, 10, 0.8)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"daily_limit": 0},
            {"per_minute_limit": -1},
            {"warning_threshold": 0},
            {"daily_limit": None},
            {"daily_limit": 1.5},
            {"per_minute_limit": "10"},
            {"daily_limit": True},
            {"warning_threshold": None},
            {"warning_threshold": 1.2},
        ],
    )
    def test_invalid_values_rejected(self, kwargs):
        with pytest.raises(ValueError):
            RateLimitConfig(**kwargs)

    def test_threshold_of_one_allowed(self):
        assert RateLimitConfig(warning_threshold=1).warning_threshold == 1

    def test_from_env(self):
        cfg = RateLimitConfig.from_env(
            {"RADAR_DAILY_LIMIT": "200", "RADAR_PER_MINUTE_LIMIT": "5", "RADAR_WARNING_THRESHOLD": "0.5"}
        )
        assert cfg == RateLimitConfig(200, 5, 0.5)

    def test_from_env_uses_defaults(self):
        assert RateLimitConfig.from_env({}) == RateLimitConfig()

    def test_from_env_rejects_garbage(self):
        with pytest.raises(ValueError, match="Invalid rate limit configuration"):
            RateLimitConfig.from_env({"RADAR_DAILY_LIMIT": "fifty"})


def test_gemini_model_env_override():
    assert gemini_model({}) == DEFAULT_MODEL
    assert gemini_model({"GEMINI_MODEL": "gemini-2.5-pro"}) == "gemini-2.5-pro"


# ============================================================================
# Test: Stores
# ============================================================================


class TestMemoryStore:
    def test_get_set_remove(self):
        store = MemoryStore({"a": "1"})
        store.set("b", 2)
        store.remove("a")
        store.remove("missing")
        assert store.snapshot() == {"b": "2"}
        assert store.get("a") is None


class TestJsonFileStore:
    def test_missing_file_reads_empty(self, tmp_path):
        store = JsonFileStore(tmp_path / "nested" / "state.json")
        assert store.get("x") is None

    def test_values_persist_between_instances(self, tmp_path):
        path = tmp_path / "nested" / "state.json"
        JsonFileStore(path).set("count", "3")

        assert JsonFileStore(path).get("count") == "3"
        assert json.loads(path.read_text(encoding="utf-8")) == {"count": "3"}

    def test_remove(self, tmp_path):
        store = JsonFileStore(tmp_path / "state.json")
        store.set("a", "1")
        store.set("b", "2")
        store.remove("a")
        assert store.snapshot() == {"b": "2"}

    @pytest.mark.parametrize(
        "content",
        [
            b"{not json",
            b"[1, 2]",
            b"",
            b'{"india_radar_daily_api_count": "\xff\xfe"}',
        ],
    )
    def test_corrupt_file_reads_empty(self, tmp_path, content):
        path = tmp_path / "state.json"
        path.write_bytes(content)
        store = JsonFileStore(path)

        assert store.snapshot() == {}
        store.set("a", "1")
        assert store.get("a") == "1"

    def test_write_failure_is_swallowed(self, tmp_path, monkeypatch):
        store = JsonFileStore(tmp_path / "state.json")

        def boom(*args, **kwargs):
            raise PermissionError("read-only")

        monkeypatch.setattr("src.storage.os.replace", boom)
        store.set("a", "1")
        assert store.get("a") is None
        # The temp file is cleaned up.
        assert list(tmp_path.iterdir()) == []

    def test_write_replaces_file_whole(self, tmp_path):
        path = tmp_path / "state.json"
        store = JsonFileStore(path)
        store.set("a", "1")
        store.set("b", "2")

        assert json.loads(path.read_text(encoding="utf-8")) == {"a": "1", "b": "2"}
        assert [p.name for p in tmp_path.iterdir()] == ["state.json"]

    def test_concurrent_writers_lose_nothing(self, tmp_path):
        store = JsonFileStore(tmp_path / "state.json")

        def writer(n):
            for i in range(25):
                store.set(f"w{n}_{i}", str(i))

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(6)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(store.snapshot()) == 150
