"""Web3ChainReader — :class:`~agentic_trust.collaborators.ChainReader` over JSON-RPC.

Calls are described by a Solidity function signature, for example
``"getAssociationsForAccount(bytes)"``. Calldata is the 4-byte selector
followed by the ABI-encoded arguments; the argument types are read from the
signature itself, so no ABI JSON is needed for probe calls. Signatures with
tuple arguments are not supported.
"""
from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any, Optional

from eth_abi import encode
from eth_utils import function_signature_to_4byte_selector
from web3 import AsyncWeb3
from web3.exceptions import ContractLogicError

from agentic_trust.did.identifiers import checksum_account
from agentic_trust.errors import ChainReadFailure, ContractCallReverted

logger = logging.getLogger(__name__)


def argument_types(signature: str) -> list[str]:
    """Return the argument types of a function signature.

    >>> argument_types("transfer(address,uint256)")
    ['address', 'uint256']
    """
    open_paren = signature.find("(")
    if open_paren <= 0 or not signature.endswith(")"):
        raise ValueError(f"Not a function signature: {signature!r}")
    inner = signature[open_paren + 1 : -1].strip()
    if not inner:
        return []
    if "(" in inner:
        raise ValueError(f"Tuple arguments are not supported: {signature!r}")
    return [part.strip() for part in inner.split(",")]


def build_calldata(signature: str, args: Sequence[Any] = ()) -> bytes:
    """Selector plus ABI-encoded *args* for *signature*."""
    types = argument_types(signature)
    if len(types) != len(args):
        raise ValueError(f"{signature} takes {len(types)} argument(s), got {len(args)}")
    selector = function_signature_to_4byte_selector(signature)
    return selector + (encode(types, list(args)) if types else b"")


class Web3ChainReader:
    """Reads contract state through an ``AsyncWeb3`` HTTP provider.

    Parameters
    ----------
    rpc_url:
        JSON-RPC endpoint. Ignored when *web3* is given.
    web3:
        A preconfigured ``AsyncWeb3`` instance.
    """

    def __init__(self, rpc_url: Optional[str] = None, web3: Optional[AsyncWeb3] = None) -> None:
        if web3 is None:
            if not rpc_url:
                raise ValueError("rpc_url is required when no AsyncWeb3 instance is supplied")
            web3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(rpc_url))
        self._w3 = web3

    async def get_code(self, address: str) -> bytes:
        target = checksum_account(address)
        try:
            code = await self._w3.eth.get_code(target)
        except Exception as exc:
            raise ChainReadFailure(f"eth_getCode failed for {target}: {exc}") from exc
        return bytes(code)

    async def call(self, address: str, signature: str, args: Sequence[Any] = ()) -> bytes:
        target = checksum_account(address)
        data = build_calldata(signature, args)
        try:
            result = await self._w3.eth.call({"to": target, "data": "0x" + data.hex()})
        except ContractLogicError as exc:
            raise ContractCallReverted(f"{signature} reverted on {target}: {exc}") from exc
        except Exception as exc:
            raise ChainReadFailure(f"eth_call {signature} failed on {target}: {exc}") from exc
        logger.debug("eth_call %s on %s returned %d bytes", signature, target, len(result))
        return bytes(result)


__all__ = ["Web3ChainReader", "argument_types", "build_calldata"]
