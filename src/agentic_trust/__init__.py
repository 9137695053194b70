"""agentic-trust — Agent identifiers, UAIDs and ERC-8092 trust associations.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> import agentic_trust
>>> agentic_trust.__version__
'0.1.0'

Quick start
-----------
::

    from agentic_trust import (
        # Identifiers
        parse_did, build_did_8004, build_ens_did, build_ethr_did,
        generate_hcs14_uaid_did_target, parse_hcs14_uaid_did_target,
        # Associations
        encode_association_data, decode_association_data,
        DelegationAssociationBuilder, pick_associations_store_proxy,
        # Validation
        match_by_address, match_by_name, ValidatorMatcher,
        # Configuration
        Settings,
    )
"""
from __future__ import annotations

__version__: str = "0.1.0"

# ------------------------------------------------------------------
# Errors and configuration
# ------------------------------------------------------------------
from agentic_trust.config import DEFAULT_CHAIN_ID, Settings
from agentic_trust.errors import (
    AgenticTrustError,
    ChainReadFailure,
    CollaboratorError,
    ContractCallReverted,
    IdentifierDecodingError,
    InvalidUaidError,
    MalformedIdentifierError,
    NoCompatibleEndpointError,
    SigningFailure,
    StorageFailure,
    ValueOutOfRangeError,
    http_status_for,
)

# ------------------------------------------------------------------
# Identifiers
# ------------------------------------------------------------------
from agentic_trust.did import (
    DecentralizedIdentifier,
    Did8004,
    EnsDid,
    EthrDid,
    UniversalAgentIdentifier,
    build_did_8004,
    build_ens_did,
    build_ens_did_from_agent_and_org,
    build_ethr_did,
    generate_hcs14_uaid_did_target,
    parse_did,
    parse_did_8004,
    parse_ens_did,
    parse_ethr_did,
    parse_hcs14_uaid_did_target,
)

# ------------------------------------------------------------------
# Associations
# ------------------------------------------------------------------
from agentic_trust.associations import (
    AssocType,
    AssociationsStoreLocator,
    AssociatedAccountRecord,
    AssociationData,
    DelegationAssociation,
    DelegationAssociationBuilder,
    KeyType,
    SignedAssociationRecord,
    association_id,
    decode_association_data,
    eip712_hash,
    encode_association_data,
    pick_associations_store_proxy,
)

# ------------------------------------------------------------------
# Collaborators
# ------------------------------------------------------------------
from agentic_trust.collaborators import (
    AddressDeriver,
    ChainReader,
    ContentStore,
    InMemoryContentStore,
    SignatureResult,
    Signer,
    StoredContent,
    TTLCache,
)

# ------------------------------------------------------------------
# Validation and endpoints
# ------------------------------------------------------------------
from agentic_trust.endpoints import select_a2a_endpoint
from agentic_trust.validation import (
    AuthorizationRequestSummary,
    ValidationRequest,
    ValidatorMatcher,
    count_by_address,
    match_by_address,
    match_by_name,
)

__all__ = [
    "__version__",
    # Errors and configuration
    "AgenticTrustError",
    "ChainReadFailure",
    "CollaboratorError",
    "ContractCallReverted",
    "DEFAULT_CHAIN_ID",
    "IdentifierDecodingError",
    "InvalidUaidError",
    "MalformedIdentifierError",
    "NoCompatibleEndpointError",
    "Settings",
    "SigningFailure",
    "StorageFailure",
    "ValueOutOfRangeError",
    "http_status_for",
    # Identifiers
    "DecentralizedIdentifier",
    "Did8004",
    "EnsDid",
    "EthrDid",
    "UniversalAgentIdentifier",
    "build_did_8004",
    "build_ens_did",
    "build_ens_did_from_agent_and_org",
    "build_ethr_did",
    "generate_hcs14_uaid_did_target",
    "parse_did",
    "parse_did_8004",
    "parse_ens_did",
    "parse_ethr_did",
    "parse_hcs14_uaid_did_target",
    # Associations
    "AssocType",
    "AssociationsStoreLocator",
    "AssociatedAccountRecord",
    "AssociationData",
    "DelegationAssociation",
    "DelegationAssociationBuilder",
    "KeyType",
    "SignedAssociationRecord",
    "association_id",
    "decode_association_data",
    "eip712_hash",
    "encode_association_data",
    "pick_associations_store_proxy",
    # Collaborators
    "AddressDeriver",
    "ChainReader",
    "ContentStore",
    "InMemoryContentStore",
    "SignatureResult",
    "Signer",
    "StoredContent",
    "TTLCache",
    # Validation and endpoints
    "AuthorizationRequestSummary",
    "ValidationRequest",
    "ValidatorMatcher",
    "count_by_address",
    "match_by_address",
    "match_by_name",
    "select_a2a_endpoint",
]
