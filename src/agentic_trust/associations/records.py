"""ERC-8092 association records and their canonical hash.

Structures
----------
``AssociatedAccountRecord``
    ``(bytes initiator, bytes approver, uint40 validAt, uint40 validUntil,
    bytes4 interfaceId, bytes data)``. ``initiator``/``approver`` are ERC-7930
    interoperable addresses (see :func:`format_evm_v1`).
``SignedAssociationRecord`` (SAR)
    The record plus ``revokedAt``, the two ``bytes2`` key types and the two
    signatures.

Canonical hash
--------------
The association id *and* the digest both parties sign is the EIP-712 hash
with domain ``{name: "AssociatedAccounts", version: "1"}`` (no chain id, no
verifying contract)::

    keccak256(0x1901 || domainSeparator || hashStruct(record))

Records are immutable values. Adding a signature or revoking produces a new
record via :meth:`SignedAssociationRecord.with_initiator_signature` and
:meth:`SignedAssociationRecord.revoked`.
"""
from __future__ import annotations

import dataclasses
import enum
import math
from dataclasses import dataclass
from typing import Optional

from eth_abi import encode
from eth_utils import decode_hex, encode_hex, keccak, to_checksum_address

from agentic_trust.did.identifiers import checksum_account
from agentic_trust.errors import ValueOutOfRangeError

UINT40_MAX: int = 2**40 - 1
NO_EXPIRY: int = 0
DELEGATION_INTERFACE_ID: bytes = b"\x00\x00\x00\x00"

DOMAIN_TYPEHASH: bytes = keccak(text="EIP712Domain(string name,string version)")
NAME_HASH: bytes = keccak(text="AssociatedAccounts")
VERSION_HASH: bytes = keccak(text="1")
MESSAGE_TYPEHASH: bytes = keccak(
    text=(
        "AssociatedAccountRecord(bytes initiator,bytes approver,uint40 validAt,"
        "uint40 validUntil,bytes4 interfaceId,bytes data)"
    )
)

_EVM_V1_HEAD: bytes = b"\x00\x01\x00\x00"


class KeyType(str, enum.Enum):
    """``bytes2`` discriminator telling the verifier how a signature authenticates."""

    K1 = "0x0001"  # plain secp256k1 key (EOA)
    ERC1271 = "0x8002"  # smart-contract signature
    SC_DELEGATION = "0x8004"  # smart-contract delegation proof

    def to_bytes(self) -> bytes:
        return decode_hex(self.value)


def clamp_uint40(value: float) -> int:
    """Floor *value* into ``0..2**40-1``; negative or non-finite becomes 0."""
    if not math.isfinite(value) or value < 0:
        return 0
    return min(math.floor(value), UINT40_MAX)


# ------------------------------------------------------------------
# ERC-7930 interoperable addresses
# ------------------------------------------------------------------


def _minimal_big_endian(value: int) -> bytes:
    if value == 0:
        return b"\x00"
    return value.to_bytes((value.bit_length() + 7) // 8, "big")


def format_evm_v1(chain_id: int, address: str) -> bytes:
    """Encode an EVM account as an ERC-7930 v1 interoperable address.

    Layout: ``0x0001`` (version) ``0x0000`` (eip155) ``len(chainRef)``
    ``chainRef`` (minimal big-endian) ``0x14`` ``address``.
    """
    if chain_id < 0:
        raise ValueOutOfRangeError(f"chain id must be non-negative, got {chain_id}")
    account = bytes.fromhex(checksum_account(address)[2:])
    chain_ref = _minimal_big_endian(chain_id)
    return _EVM_V1_HEAD + bytes([len(chain_ref)]) + chain_ref + bytes([len(account)]) + account


@dataclass(frozen=True)
class InteroperableAddress:
    """Result of :func:`try_parse_evm_v1`."""

    chain_id: int
    address: Optional[str] = None


def try_parse_evm_v1(data: bytes) -> Optional[InteroperableAddress]:
    """Parse an ERC-7930 v1 eip155 address, returning ``None`` if it is not one."""
    if len(data) < 6 or data[:4] != _EVM_V1_HEAD:
        return None
    chain_ref_len = data[4]
    chain_ref_end = 5 + chain_ref_len
    if len(data) < chain_ref_end + 1:
        return None
    address_len = data[chain_ref_end]
    address_end = chain_ref_end + 1 + address_len
    if len(data) < address_end:
        return None
    chain_id = int.from_bytes(data[5:chain_ref_end], "big")
    if address_len != 20:
        return InteroperableAddress(chain_id=chain_id)
    raw_address = data[chain_ref_end + 1 : address_end]
    return InteroperableAddress(chain_id=chain_id, address=to_checksum_address("0x" + raw_address.hex()))


# ------------------------------------------------------------------
# Records
# ------------------------------------------------------------------


@dataclass(frozen=True)
class AssociatedAccountRecord:
    """The signed payload of an association.

    Parameters
    ----------
    initiator / approver:
        ERC-7930 interoperable addresses.
    valid_at:
        Unix seconds from which the association holds.
    valid_until:
        Unix seconds after which it lapses; ``0`` means no expiry.
    interface_id:
        ``bytes4`` identifying the relationship interface.
    data:
        ABI-encoded ``(assocType, description)``.
    """

    initiator: bytes
    approver: bytes
    valid_at: int
    valid_until: int = NO_EXPIRY
    interface_id: bytes = DELEGATION_INTERFACE_ID
    data: bytes = b""

    def __post_init__(self) -> None:
        for name in ("valid_at", "valid_until"):
            value = getattr(self, name)
            if not 0 <= value <= UINT40_MAX:
                raise ValueOutOfRangeError(f"{name}={value} does not fit in uint40")
        if len(self.interface_id) != 4:
            raise ValueOutOfRangeError(
                f"interface_id must be 4 bytes, got {len(self.interface_id)}"
            )

    @property
    def expires(self) -> bool:
        """``False`` when ``valid_until`` is the no-expiry marker."""
        return self.valid_until != NO_EXPIRY

    def hash_struct(self) -> bytes:
        """EIP-712 ``hashStruct`` of this record."""
        return keccak(
            encode(
                ["bytes32", "bytes32", "bytes32", "uint40", "uint40", "bytes4", "bytes32"],
                [
                    MESSAGE_TYPEHASH,
                    keccak(self.initiator),
                    keccak(self.approver),
                    self.valid_at,
                    self.valid_until,
                    self.interface_id,
                    keccak(self.data),
                ],
            )
        )

    def to_dict(self) -> dict[str, object]:
        """Serialize with ``0x`` hex strings, using the on-chain field names."""
        return {
            "initiator": encode_hex(self.initiator),
            "approver": encode_hex(self.approver),
            "validAt": self.valid_at,
            "validUntil": self.valid_until,
            "interfaceId": encode_hex(self.interface_id),
            "data": encode_hex(self.data),
        }


def domain_separator() -> bytes:
    """EIP-712 domain separator for ``AssociatedAccounts`` v1."""
    return keccak(encode(["bytes32", "bytes32", "bytes32"], [DOMAIN_TYPEHASH, NAME_HASH, VERSION_HASH]))


def eip712_hash(record: AssociatedAccountRecord) -> bytes:
    """The digest signed by both parties; also the association id."""
    return keccak(b"\x19\x01" + domain_separator() + record.hash_struct())


def association_id(record: AssociatedAccountRecord) -> str:
    """``0x`` hex association id for *record*."""
    return encode_hex(eip712_hash(record))


@dataclass(frozen=True)
class SignedAssociationRecord:
    """A record plus key types, signatures and the revocation marker.

    An empty ``initiator_signature`` with a populated ``approver_signature``
    is a valid intermediate state: the initiator signs later, before the
    record is submitted on chain.
    """

    record: AssociatedAccountRecord
    initiator_key_type: KeyType = KeyType.K1
    approver_key_type: KeyType = KeyType.K1
    initiator_signature: bytes = b""
    approver_signature: bytes = b""
    revoked_at: int = 0

    @property
    def association_id(self) -> str:
        return association_id(self.record)

    @property
    def is_revoked(self) -> bool:
        return self.revoked_at != 0

    @property
    def awaiting_initiator(self) -> bool:
        """True when only the approver has signed."""
        return bool(self.approver_signature) and not self.initiator_signature

    def with_initiator_signature(
        self, signature: bytes, key_type: KeyType = KeyType.K1
    ) -> "SignedAssociationRecord":
        """Return a copy carrying the initiator's signature."""
        return dataclasses.replace(self, initiator_signature=bytes(signature), initiator_key_type=key_type)

    def with_approver_signature(
        self, signature: bytes, key_type: KeyType
    ) -> "SignedAssociationRecord":
        """Return a copy carrying a replacement approver signature."""
        return dataclasses.replace(self, approver_signature=bytes(signature), approver_key_type=key_type)

    def revoked(self, revoked_at: int) -> "SignedAssociationRecord":
        """Return a copy stamped with a revocation time (unix seconds, non-zero)."""
        if not 0 < revoked_at <= UINT40_MAX:
            raise ValueOutOfRangeError(f"revoked_at={revoked_at} must be in 1..2**40-1")
        return dataclasses.replace(self, revoked_at=revoked_at)

    def to_dict(self) -> dict[str, object]:
        """Serialize to the shape expected by ``storeAssociation(sar)``."""
        return {
            "revokedAt": self.revoked_at,
            "initiatorKeyType": self.initiator_key_type.value,
            "approverKeyType": self.approver_key_type.value,
            "initiatorSignature": encode_hex(self.initiator_signature),
            "approverSignature": encode_hex(self.approver_signature),
            "record": self.record.to_dict(),
        }


__all__ = [
    "AssociatedAccountRecord",
    "DELEGATION_INTERFACE_ID",
    "InteroperableAddress",
    "KeyType",
    "NO_EXPIRY",
    "SignedAssociationRecord",
    "UINT40_MAX",
    "association_id",
    "clamp_uint40",
    "domain_separator",
    "eip712_hash",
    "format_evm_v1",
    "try_parse_evm_v1",
]
