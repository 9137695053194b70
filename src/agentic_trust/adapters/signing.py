"""Key-based collaborators built on ``eth_account``.

:class:`LocalAccountSigner`
    Signs association digests with a local secp256k1 key (key type ``K1``).
:class:`KeccakAddressDeriver`
    Derives a validator's deterministic account address from its name, the
    validator signing key and the chain id, CREATE2 style.
"""
from __future__ import annotations

import logging

from eth_abi import encode
from eth_account import Account
from eth_utils import keccak, to_checksum_address

from agentic_trust.associations.records import KeyType
from agentic_trust.collaborators import SignatureResult
from agentic_trust.errors import SigningFailure

logger = logging.getLogger(__name__)

VALIDATOR_ACCOUNT_INIT_CODE_HASH: bytes = keccak(text="agentic-trust/validator-account/v1")


class LocalAccountSigner:
    """Signer holding a private key in memory.

    The digest handed to :meth:`sign` is already the EIP-712 hash of the
    record, so it is signed as-is, without any message prefix.
    """

    def __init__(self, private_key: str) -> None:
        try:
            self._account = Account.from_key(private_key)
        except (ValueError, TypeError) as exc:
            raise ValueError(f"Invalid signing key: {type(exc).__name__}") from exc

    @property
    def address(self) -> str:
        return self._account.address

    async def sign(self, digest: bytes) -> SignatureResult:
        if len(digest) != 32:
            raise SigningFailure(f"Expected a 32-byte digest, got {len(digest)} bytes")
        signed = self._account.unsafe_sign_hash(digest)
        logger.debug("Signed digest 0x%s with %s", digest.hex(), self.address)
        return SignatureResult(signature=bytes(signed.signature), key_type=KeyType.K1)

    def __repr__(self) -> str:
        return f"LocalAccountSigner(address={self.address!r})"


class KeccakAddressDeriver:
    """Deterministic validator account addresses.

    ``address = keccak(0xff ++ owner ++ salt ++ initCodeHash)[12:]`` where
    ``owner`` is the account of the signing key and
    ``salt = keccak(abi.encode(name, chainId))``.
    """

    def __init__(self, init_code_hash: bytes = VALIDATOR_ACCOUNT_INIT_CODE_HASH) -> None:
        if len(init_code_hash) != 32:
            raise ValueError("init_code_hash must be 32 bytes")
        self._init_code_hash = init_code_hash

    def derive(self, name: str, key: str, chain_id: int) -> str:
        owner = Account.from_key(key).address
        salt = keccak(encode(["string", "uint256"], [name, chain_id]))
        digest = keccak(b"\xff" + bytes.fromhex(owner[2:]) + salt + self._init_code_hash)
        return to_checksum_address(digest[12:])


__all__ = ["KeccakAddressDeriver", "LocalAccountSigner", "VALIDATOR_ACCOUNT_INIT_CODE_HASH"]
