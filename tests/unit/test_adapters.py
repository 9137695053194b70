"""Tests for agentic_trust.adapters — eth_account signer, deriver, Pinata, web3 reader."""
from __future__ import annotations

import asyncio
import json
from typing import Any

import httpx
import pytest
from eth_account import Account
from eth_utils import function_signature_to_4byte_selector, is_checksum_address
from web3.exceptions import ContractLogicError

from agentic_trust.adapters.ipfs import PinataContentStore
from agentic_trust.adapters.signing import KeccakAddressDeriver, LocalAccountSigner
from agentic_trust.adapters.web3_chain import Web3ChainReader, argument_types, build_calldata
from agentic_trust.associations.delegation import DelegationAssociationBuilder
from agentic_trust.associations.records import KeyType
from agentic_trust.collaborators import InMemoryContentStore
from agentic_trust.config import Settings
from agentic_trust.errors import ChainReadFailure, ContractCallReverted, SigningFailure, StorageFailure

HARDHAT_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
HARDHAT_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
OTHER_KEY = "0x59c6995e998f97a5a0044966f0945389dc9e86dae88c7a8412f4603b6b78690d"


# ---------------------------------------------------------------------------
# LocalAccountSigner
# ---------------------------------------------------------------------------


class TestLocalAccountSigner:
    def test_address(self) -> None:
        assert LocalAccountSigner(HARDHAT_KEY).address == HARDHAT_ADDRESS

    def test_signature_recovers_to_signer(self) -> None:
        digest = bytes(range(32))
        result = asyncio.run(LocalAccountSigner(HARDHAT_KEY).sign(digest))
        assert result.key_type is KeyType.K1
        assert len(result.signature) == 65
        assert Account._recover_hash(digest, signature=result.signature) == HARDHAT_ADDRESS

    def test_rejects_non_digest(self) -> None:
        with pytest.raises(SigningFailure):
            asyncio.run(LocalAccountSigner(HARDHAT_KEY).sign(b"short"))

    def test_invalid_key(self) -> None:
        with pytest.raises(ValueError):
            LocalAccountSigner("0x1234")

    def test_repr_hides_key(self) -> None:
        assert HARDHAT_KEY[2:] not in repr(LocalAccountSigner(HARDHAT_KEY))

    def test_builder_association_id_is_signed_digest(self) -> None:
        builder = DelegationAssociationBuilder(InMemoryContentStore(), LocalAccountSigner(HARDHAT_KEY))
        association = asyncio.run(
            builder.build(
                chain_id=11155111,
                initiator_address="0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed",
                approver_address=HARDHAT_ADDRESS,
                payload_type="erc8092.delegation.v1",
                payload={},
            )
        )
        digest = bytes.fromhex(association.association_id[2:])
        assert Account._recover_hash(digest, signature=association.approver_signature) == HARDHAT_ADDRESS


# ---------------------------------------------------------------------------
# KeccakAddressDeriver
# ---------------------------------------------------------------------------


class TestKeccakAddressDeriver:
    def test_deterministic_checksummed(self) -> None:
        deriver = KeccakAddressDeriver()
        first = deriver.derive("alice", HARDHAT_KEY, 11155111)
        assert first == deriver.derive("alice", HARDHAT_KEY, 11155111)
        assert is_checksum_address(first)

    @pytest.mark.parametrize(
        "args",
        [("bob", HARDHAT_KEY, 11155111), ("alice", OTHER_KEY, 11155111), ("alice", HARDHAT_KEY, 1)],
    )
    def test_depends_on_every_input(self, args: tuple[str, str, int]) -> None:
        deriver = KeccakAddressDeriver()
        assert deriver.derive(*args) != deriver.derive("alice", HARDHAT_KEY, 11155111)

    def test_rejects_short_init_code_hash(self) -> None:
        with pytest.raises(ValueError):
            KeccakAddressDeriver(init_code_hash=b"\x00")


# ---------------------------------------------------------------------------
# PinataContentStore
# ---------------------------------------------------------------------------


class TestPinataContentStore:
    def test_put_posts_json_and_returns_cid(self) -> None:
        seen: dict[str, Any] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers.get("authorization")
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"IpfsHash": "QmPinned", "PinSize": 10})

        store = PinataContentStore(jwt="jwt-token", transport=httpx.MockTransport(handler))
        stored = asyncio.run(store.put({"type": "delegation", "x": 1}))
        assert stored.cid == "QmPinned"
        assert stored.uri == "ipfs://QmPinned"
        assert seen["url"] == "https://api.pinata.cloud/pinning/pinJSONToIPFS"
        assert seen["auth"] == "Bearer jwt-token"
        assert seen["body"]["pinataContent"] == {"type": "delegation", "x": 1}
        assert seen["body"]["pinataMetadata"] == {"name": "delegation.json"}

    def test_http_error_is_storage_failure(self) -> None:
        store = PinataContentStore(
            jwt="jwt-token",
            transport=httpx.MockTransport(lambda request: httpx.Response(401, json={"error": "bad jwt"})),
        )
        with pytest.raises(StorageFailure, match="401") as exc_info:
            asyncio.run(store.put({"a": 1}))
        assert isinstance(exc_info.value.__cause__, httpx.HTTPStatusError)

    def test_transport_error_is_storage_failure(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        store = PinataContentStore(jwt="jwt-token", transport=httpx.MockTransport(handler))
        with pytest.raises(StorageFailure):
            asyncio.run(store.put({"a": 1}))

    def test_missing_cid_is_storage_failure(self) -> None:
        store = PinataContentStore(
            jwt="jwt-token", transport=httpx.MockTransport(lambda request: httpx.Response(200, json={}))
        )
        with pytest.raises(StorageFailure):
            asyncio.run(store.put({"a": 1}))

    def test_from_settings(self) -> None:
        settings = Settings(pinata_jwt="jwt-token", ipfs_gateway_url="https://gw.example/ipfs/")
        store = PinataContentStore.from_settings(settings)
        assert store.gateway_url_for("ipfs://QmX") == "https://gw.example/ipfs/QmX"

    def test_from_settings_requires_jwt(self) -> None:
        with pytest.raises(ValueError):
            PinataContentStore.from_settings(Settings())


# ---------------------------------------------------------------------------
# Web3ChainReader
# ---------------------------------------------------------------------------


class _FakeEth:
    def __init__(self, code: bytes = b"", result: bytes = b"", error: Exception | None = None) -> None:
        self.code = code
        self.result = result
        self.error = error
        self.transactions: list[dict[str, Any]] = []

    async def get_code(self, address: str) -> bytes:
        if self.error is not None:
            raise self.error
        return self.code

    async def call(self, transaction: dict[str, Any]) -> bytes:
        self.transactions.append(transaction)
        if self.error is not None:
            raise self.error
        return self.result


class _FakeWeb3:
    def __init__(self, eth: _FakeEth) -> None:
        self.eth = eth


class TestWeb3ChainReader:
    def test_argument_types(self) -> None:
        assert argument_types("getAssociationsForAccount(bytes)") == ["bytes"]
        assert argument_types("delegationManager()") == []
        assert argument_types("f(address, uint256)") == ["address", "uint256"]

    @pytest.mark.parametrize("signature", ["noparens", "(bytes)", "f((uint8,bytes))"])
    def test_argument_types_rejects(self, signature: str) -> None:
        with pytest.raises(ValueError):
            argument_types(signature)

    def test_calldata(self) -> None:
        calldata = build_calldata("getAssociationsForAccount(bytes)", [b""])
        assert calldata[:4] == function_signature_to_4byte_selector("getAssociationsForAccount(bytes)")
        # offset word + zero-length word
        assert calldata[4:] == (32).to_bytes(32, "big") + (0).to_bytes(32, "big")

    def test_calldata_arity_mismatch(self) -> None:
        with pytest.raises(ValueError):
            build_calldata("delegationManager()", [1])

    def test_call_sends_selector(self) -> None:
        eth = _FakeEth(result=b"\x01" * 32)
        reader = Web3ChainReader(web3=_FakeWeb3(eth))  # type: ignore[arg-type]
        result = asyncio.run(reader.call("0x" + "a" * 40, "delegationManager()"))
        assert result == b"\x01" * 32
        selector = function_signature_to_4byte_selector("delegationManager()")
        assert eth.transactions[0]["data"] == "0x" + selector.hex()

    def test_get_code(self) -> None:
        reader = Web3ChainReader(web3=_FakeWeb3(_FakeEth(code=b"\x60\x80")))  # type: ignore[arg-type]
        assert asyncio.run(reader.get_code("0x" + "a" * 40)) == b"\x60\x80"

    def test_revert_maps_to_contract_call_reverted(self) -> None:
        eth = _FakeEth(error=ContractLogicError("execution reverted"))
        reader = Web3ChainReader(web3=_FakeWeb3(eth))  # type: ignore[arg-type]
        with pytest.raises(ContractCallReverted):
            asyncio.run(reader.call("0x" + "a" * 40, "delegationManager()"))

    def test_transport_error_maps_to_chain_read_failure(self) -> None:
        eth = _FakeEth(error=ConnectionError("refused"))
        reader = Web3ChainReader(web3=_FakeWeb3(eth))  # type: ignore[arg-type]
        with pytest.raises(ChainReadFailure) as exc_info:
            asyncio.run(reader.get_code("0x" + "a" * 40))
        assert not isinstance(exc_info.value, ContractCallReverted)
