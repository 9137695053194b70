"""Tests for agentic_trust.collaborators — protocols and in-memory implementations."""
from __future__ import annotations

import asyncio

import pytest

from agentic_trust.adapters import KeccakAddressDeriver, LocalAccountSigner, PinataContentStore, Web3ChainReader
from agentic_trust.collaborators import (
    AddressDeriver,
    ChainReader,
    ContentStore,
    InMemoryContentStore,
    ProxyCache,
    Signer,
    TTLCache,
    canonical_json,
)

HARDHAT_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


# ---------------------------------------------------------------------------
# InMemoryContentStore
# ---------------------------------------------------------------------------


class TestInMemoryContentStore:
    def test_put_returns_cid_and_uri(self) -> None:
        store = InMemoryContentStore()
        stored = asyncio.run(store.put({"a": 1}))
        assert stored.cid.startswith("sha256-")
        assert stored.uri == f"ipfs://{stored.cid}"
        assert store.get(stored.cid) == {"a": 1}
        assert len(store) == 1

    def test_same_object_same_cid(self) -> None:
        store = InMemoryContentStore()
        first = asyncio.run(store.put({"a": 1, "b": 2}))
        second = asyncio.run(store.put({"b": 2, "a": 1}))
        assert first == second
        assert len(store) == 1

    def test_unknown_cid(self) -> None:
        assert InMemoryContentStore().get("sha256-missing") is None

    def test_canonical_json_sorts_keys(self) -> None:
        assert canonical_json({"b": 1, "a": [1, 2]}) == b'{"a":[1,2],"b":1}'


# ---------------------------------------------------------------------------
# TTLCache
# ---------------------------------------------------------------------------


class TestTTLCache:
    def test_hit_before_expiry(self) -> None:
        clock = FakeClock()
        cache = TTLCache(ttl=10, clock=clock)
        cache.put("k", "v")
        clock.now = 9.9
        assert cache.get("k") == "v"

    def test_miss_after_expiry(self) -> None:
        clock = FakeClock()
        cache = TTLCache(ttl=10, clock=clock)
        cache.put("k", "v")
        clock.now = 10
        assert cache.get("k") is None

    def test_zero_ttl_disables(self) -> None:
        cache = TTLCache(ttl=0)
        cache.put("k", "v")
        assert cache.get("k") is None

    def test_clear(self) -> None:
        cache = TTLCache(ttl=10)
        cache.put("k", "v")
        cache.clear()
        assert cache.get("k") is None


# ---------------------------------------------------------------------------
# Protocol conformance
# ---------------------------------------------------------------------------


class TestProtocols:
    def test_in_memory_implementations(self) -> None:
        assert isinstance(InMemoryContentStore(), ContentStore)
        assert isinstance(TTLCache(), ProxyCache)

    def test_adapters(self) -> None:
        assert isinstance(LocalAccountSigner(HARDHAT_KEY), Signer)
        assert isinstance(KeccakAddressDeriver(), AddressDeriver)
        assert isinstance(PinataContentStore(jwt="jwt"), ContentStore)
        assert isinstance(Web3ChainReader("http://127.0.0.1:8545"), ChainReader)

    def test_plain_object_is_not_a_signer(self) -> None:
        assert not isinstance(object(), Signer)

    def test_web3_reader_requires_url(self) -> None:
        with pytest.raises(ValueError):
            Web3ChainReader()
