"""agentic_trust.adapters — production collaborator implementations.

web3_chain
    :class:`Web3ChainReader` (``web3.AsyncWeb3``).
signing
    :class:`LocalAccountSigner` and :class:`KeccakAddressDeriver` (``eth_account``).
ipfs
    :class:`PinataContentStore` (``httpx``).
"""
from __future__ import annotations

from agentic_trust.adapters.ipfs import PinataContentStore
from agentic_trust.adapters.signing import KeccakAddressDeriver, LocalAccountSigner
from agentic_trust.adapters.web3_chain import Web3ChainReader

__all__ = [
    "KeccakAddressDeriver",
    "LocalAccountSigner",
    "PinataContentStore",
    "Web3ChainReader",
]
