"""SC-DELEGATION proofs — approver signatures of key type ``0x8004``.

When the approver is a smart account acting through a delegated session key,
the ``approverSignature`` of the SAR is not a plain signature but the ABI
encoding of::

    tuple(address delegate, bytes delegateSignature, bytes delegations)

where ``delegateSignature`` is an ECDSA signature over the raw association
digest and ``delegations`` is the ABI-encoded delegation chain understood by
the store's delegation manager.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Union

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError
from eth_utils import decode_hex, to_checksum_address

from agentic_trust.did.identifiers import checksum_account

logger = logging.getLogger(__name__)

SC_DELEGATION_PROOF_TYPE = "(address,bytes,bytes)"


@dataclass(frozen=True)
class ScDelegationProof:
    """Decoded SC-DELEGATION proof."""

    delegate: str
    delegate_signature: bytes
    delegations: bytes


def encode_sc_delegation_proof(proof: ScDelegationProof) -> bytes:
    """ABI-encode *proof* as the approver signature bytes."""
    return encode(
        [SC_DELEGATION_PROOF_TYPE],
        [(checksum_account(proof.delegate), proof.delegate_signature, proof.delegations)],
    )


def decode_sc_delegation_proof(data: Union[bytes, str, None]) -> Optional[ScDelegationProof]:
    """Decode an SC-DELEGATION proof, returning ``None`` if *data* is not one."""
    if not data:
        return None
    try:
        raw = decode_hex(data) if isinstance(data, str) else bytes(data)
        ((delegate, delegate_signature, delegations),) = decode([SC_DELEGATION_PROOF_TYPE], raw)
    except (DecodingError, ValueError, TypeError, OverflowError) as exc:
        logger.debug("Not an SC-DELEGATION proof: %s", exc)
        return None
    if not delegate_signature or not delegations:
        return None
    return ScDelegationProof(
        delegate=to_checksum_address(delegate),
        delegate_signature=delegate_signature,
        delegations=delegations,
    )


__all__ = [
    "ScDelegationProof",
    "decode_sc_delegation_proof",
    "encode_sc_delegation_proof",
]
