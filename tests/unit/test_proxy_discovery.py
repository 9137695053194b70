"""Tests for agentic_trust.associations.proxy — AssociationsStore proxy discovery."""
from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import Any, Optional

import pytest
from eth_utils import to_checksum_address

from agentic_trust.associations.proxy import (
    AssociationsStoreLocator,
    BASE_PROBE_SIGNATURE,
    DELEGATION_CONFIG_SIGNATURES,
    pick_associations_store_proxy,
)
from agentic_trust.collaborators import TTLCache
from agentic_trust.config import Settings
from agentic_trust.errors import ChainReadFailure, ContractCallReverted, NoCompatibleEndpointError

A = "0x" + "a" * 40
B = "0x" + "b" * 40
C = "0x" + "c" * 40
A_SUM = to_checksum_address(A)
B_SUM = to_checksum_address(B)
C_SUM = to_checksum_address(C)

WORD = b"\x00" * 31 + b"\x01"


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeChainReader:
    """Chain reader answering from per-address code and method tables."""

    def __init__(
        self,
        code: Optional[dict[str, bytes]] = None,
        methods: Optional[dict[str, set[str]]] = None,
        broken_methods: Optional[dict[str, set[str]]] = None,
        fail_get_code: Optional[Exception] = None,
    ) -> None:
        self.code = {k.lower(): v for k, v in (code or {}).items()}
        self.methods = {k.lower(): v for k, v in (methods or {}).items()}
        self.broken_methods = {k.lower(): v for k, v in (broken_methods or {}).items()}
        self.fail_get_code = fail_get_code
        self.calls: list[tuple[str, str]] = []

    async def get_code(self, address: str) -> bytes:
        self.calls.append((address, "getCode"))
        if self.fail_get_code is not None:
            raise self.fail_get_code
        return self.code.get(address.lower(), b"")

    async def call(self, address: str, signature: str, args: Sequence[Any] = ()) -> bytes:
        self.calls.append((address, signature))
        if signature in self.broken_methods.get(address.lower(), set()):
            raise RuntimeError("abi decode failure")
        if signature not in self.methods.get(address.lower(), set()):
            raise ContractCallReverted(f"{signature} reverted")
        return WORD


def _pick(reader: FakeChainReader, candidates: Sequence[str], **kwargs: Any) -> str:
    return asyncio.run(pick_associations_store_proxy(reader, candidates, **kwargs))


ALL_METHODS = {BASE_PROBE_SIGNATURE, *DELEGATION_CONFIG_SIGNATURES}


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------


class TestPick:
    def test_skips_no_code_and_incompatible(self) -> None:
        reader = FakeChainReader(
            code={B: b"\x60\x80", C: b"\x60\x80"},
            methods={C: {BASE_PROBE_SIGNATURE}},
        )
        assert _pick(reader, [A, B, C]) == C_SUM

    def test_first_compatible_wins(self) -> None:
        reader = FakeChainReader(
            code={A: b"\x01", B: b"\x01"},
            methods={A: {BASE_PROBE_SIGNATURE}, B: {BASE_PROBE_SIGNATURE}},
        )
        assert _pick(reader, [A, B]) == A_SUM
        assert all(address == A_SUM for address, _ in reader.calls)

    def test_probes_sequentially_in_order(self) -> None:
        reader = FakeChainReader(code={C: b"\x01"}, methods={C: {BASE_PROBE_SIGNATURE}})
        _pick(reader, [A, B, C])
        probed = [address for address, step in reader.calls if step == "getCode"]
        assert probed == [A_SUM, B_SUM, C_SUM]

    def test_requires_delegation_accessors_when_asked(self) -> None:
        reader = FakeChainReader(code={C: b"\x01"}, methods={C: {BASE_PROBE_SIGNATURE}})
        assert _pick(reader, [C]) == C_SUM
        with pytest.raises(NoCompatibleEndpointError):
            _pick(reader, [C], require_delegation_config=True)

    def test_partial_delegation_accessors_rejected(self) -> None:
        reader = FakeChainReader(
            code={C: b"\x01"},
            methods={C: {BASE_PROBE_SIGNATURE, "delegationManager()", "scDelegationEnforcer()"}},
        )
        with pytest.raises(NoCompatibleEndpointError):
            _pick(reader, [C], require_delegation_config=True)

    def test_full_delegation_config_accepted(self) -> None:
        reader = FakeChainReader(
            code={B: b"\x01", C: b"\x01"},
            methods={B: {BASE_PROBE_SIGNATURE}, C: ALL_METHODS},
        )
        assert _pick(reader, [B, C], require_delegation_config=True) == C_SUM

    def test_unexpected_probe_exception_disqualifies_only_that_candidate(self) -> None:
        reader = FakeChainReader(
            code={A: b"\x01", B: b"\x01"},
            methods={B: {BASE_PROBE_SIGNATURE}},
            broken_methods={A: {BASE_PROBE_SIGNATURE}},
        )
        assert _pick(reader, [A, B]) == B_SUM

    def test_bad_addresses_are_skipped(self) -> None:
        reader = FakeChainReader(code={C: b"\x01"}, methods={C: {BASE_PROBE_SIGNATURE}})
        assert _pick(reader, ["0x1234", "", "   ", C]) == C_SUM

    def test_lowercase_candidates_returned_checksummed(self) -> None:
        reader = FakeChainReader(code={C: b"\x01"}, methods={C: {BASE_PROBE_SIGNATURE}})
        assert _pick(reader, [C.lower()]) == C_SUM


# ---------------------------------------------------------------------------
# Failure reporting
# ---------------------------------------------------------------------------


class TestNoCompatibleEndpoint:
    def test_message_lists_every_attempt_in_order(self) -> None:
        reader = FakeChainReader(code={B: b"\x01"})
        with pytest.raises(NoCompatibleEndpointError) as exc_info:
            _pick(reader, [A, "not-an-address", "", B])
        err = exc_info.value
        assert err.attempted == [A_SUM, "not-an-address", B_SUM]
        assert str(err) == (
            f"No compatible AssociationsStore proxy found. Tried: {A_SUM}, not-an-address, {B_SUM}"
        )

    def test_empty_candidate_list(self) -> None:
        with pytest.raises(NoCompatibleEndpointError) as exc_info:
            _pick(FakeChainReader(), [])
        assert exc_info.value.attempted == []
        assert "(none)" in str(exc_info.value)

    def test_custom_label(self) -> None:
        with pytest.raises(NoCompatibleEndpointError, match="No compatible ValidationRegistry proxy"):
            _pick(FakeChainReader(), [A], label="ValidationRegistry")

    def test_get_code_transport_failure_propagates(self) -> None:
        reader = FakeChainReader(fail_get_code=ConnectionError("rpc unreachable"))
        with pytest.raises(ChainReadFailure) as exc_info:
            _pick(reader, [A, B])
        assert isinstance(exc_info.value.__cause__, ConnectionError)


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------


class TestCache:
    def test_hit_skips_probing(self) -> None:
        cache = TTLCache(ttl=60)
        reader = FakeChainReader(code={C: b"\x01"}, methods={C: {BASE_PROBE_SIGNATURE}})
        assert _pick(reader, [A, C], cache=cache) == C_SUM
        reader.calls.clear()
        assert _pick(reader, [A, C], cache=cache) == C_SUM
        assert reader.calls == []

    def test_cache_key_includes_delegation_requirement(self) -> None:
        cache = TTLCache(ttl=60)
        reader = FakeChainReader(code={C: b"\x01"}, methods={C: {BASE_PROBE_SIGNATURE}})
        _pick(reader, [C], cache=cache)
        with pytest.raises(NoCompatibleEndpointError):
            _pick(reader, [C], cache=cache, require_delegation_config=True)

    def test_failures_are_not_cached(self) -> None:
        cache = TTLCache(ttl=60)
        reader = FakeChainReader()
        with pytest.raises(NoCompatibleEndpointError):
            _pick(reader, [C], cache=cache)
        reader.code[C] = b"\x01"
        reader.methods[C] = {BASE_PROBE_SIGNATURE}
        assert _pick(reader, [C], cache=cache) == C_SUM


# ---------------------------------------------------------------------------
# AssociationsStoreLocator
# ---------------------------------------------------------------------------


class TestAssociationsStoreLocator:
    def test_cache_ttl_comes_from_settings(self) -> None:
        locator = AssociationsStoreLocator(FakeChainReader(), Settings(proxy_cache_ttl_seconds=42))
        assert isinstance(locator.cache, TTLCache)
        assert locator.cache.ttl == 42

    def test_repeated_picks_probe_once(self) -> None:
        reader = FakeChainReader(code={A: b"\x60\x80"}, methods={A: {BASE_PROBE_SIGNATURE}})
        locator = AssociationsStoreLocator(reader, Settings(associations_store_candidates=[A]))
        assert asyncio.run(locator.pick()) == A_SUM
        probes = len(reader.calls)
        assert asyncio.run(locator.pick()) == A_SUM
        assert len(reader.calls) == probes

    def test_zero_ttl_probes_every_time(self) -> None:
        reader = FakeChainReader(code={A: b"\x60\x80"}, methods={A: {BASE_PROBE_SIGNATURE}})
        settings = Settings(associations_store_candidates=[A], proxy_cache_ttl_seconds=0)
        locator = AssociationsStoreLocator(reader, settings)
        asyncio.run(locator.pick())
        probes = len(reader.calls)
        asyncio.run(locator.pick())
        assert len(reader.calls) == 2 * probes

    def test_explicit_candidates_override_settings(self) -> None:
        reader = FakeChainReader(code={B: b"\x60\x80"}, methods={B: {BASE_PROBE_SIGNATURE}})
        locator = AssociationsStoreLocator(reader, Settings(associations_store_candidates=[A]))
        assert asyncio.run(locator.pick([B])) == B_SUM

    def test_delegation_requirement_defaults_to_settings(self) -> None:
        reader = FakeChainReader(
            code={A: b"\x60\x80", B: b"\x60\x80"},
            methods={A: {BASE_PROBE_SIGNATURE}, B: ALL_METHODS},
        )
        settings = Settings(associations_store_candidates=[A, B], require_delegation_config=True)
        locator = AssociationsStoreLocator(reader, settings)
        assert asyncio.run(locator.pick()) == B_SUM
        assert asyncio.run(locator.pick(require_delegation_config=False)) == A_SUM
