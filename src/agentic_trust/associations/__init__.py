"""agentic_trust.associations — ERC-8092 association records.

Submodules
----------
codec
    ``(uint8 assocType, string description)`` data encoding.
records
    Record/SAR value objects, ERC-7930 addresses and the EIP-712 digest.
sc_delegation
    SC-DELEGATION approver proofs.
delegation
    :class:`DelegationAssociationBuilder`.
proxy
    AssociationsStore proxy discovery.
"""
from __future__ import annotations

from agentic_trust.associations.codec import (
    AssocType,
    AssociationData,
    assoc_type_label,
    decode_association_data,
    encode_association_data,
    encode_association_data_hex,
)
from agentic_trust.associations.delegation import (
    DelegationAssociation,
    DelegationAssociationBuilder,
    DelegationPayloadRef,
)
from agentic_trust.associations.proxy import AssociationsStoreLocator, pick_associations_store_proxy
from agentic_trust.associations.records import (
    DELEGATION_INTERFACE_ID,
    NO_EXPIRY,
    UINT40_MAX,
    AssociatedAccountRecord,
    InteroperableAddress,
    KeyType,
    SignedAssociationRecord,
    association_id,
    clamp_uint40,
    eip712_hash,
    format_evm_v1,
    try_parse_evm_v1,
)
from agentic_trust.associations.sc_delegation import (
    ScDelegationProof,
    decode_sc_delegation_proof,
    encode_sc_delegation_proof,
)

__all__ = [
    "AssocType",
    "AssociationsStoreLocator",
    "AssociatedAccountRecord",
    "AssociationData",
    "DELEGATION_INTERFACE_ID",
    "DelegationAssociation",
    "DelegationAssociationBuilder",
    "DelegationPayloadRef",
    "InteroperableAddress",
    "KeyType",
    "NO_EXPIRY",
    "ScDelegationProof",
    "SignedAssociationRecord",
    "UINT40_MAX",
    "assoc_type_label",
    "association_id",
    "clamp_uint40",
    "decode_association_data",
    "decode_sc_delegation_proof",
    "eip712_hash",
    "encode_association_data",
    "encode_association_data_hex",
    "encode_sc_delegation_proof",
    "format_evm_v1",
    "pick_associations_store_proxy",
    "try_parse_evm_v1",
]
