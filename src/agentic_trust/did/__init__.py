"""agentic_trust.did — DID parsing/building and HCS-14 UAIDs.

Submodules
----------
identifiers
    ``did:8004``, ``did:ens`` and ``did:ethr`` value objects, parsers and builders.
uaid
    ``uaid:did:`` generation and parsing.

Quick start
-----------
::

    from agentic_trust.did import parse_did, build_did_8004, generate_hcs14_uaid_did_target

    did = build_did_8004(11155111, 724)          # "did:8004:11155111:724"
    parse_did(did).agent_id                      # "724"
    generate_hcs14_uaid_did_target(did, {"proto": "a2a"})
"""
from __future__ import annotations

from agentic_trust.did.identifiers import (
    DecentralizedIdentifier,
    Did8004,
    EnsDid,
    EthrDid,
    build_did_8004,
    build_ens_did,
    build_ens_did_from_agent_and_org,
    build_ethr_did,
    did_method,
    parse_did,
    parse_did_8004,
    parse_ens_did,
    parse_ethr_did,
)
from agentic_trust.did.uaid import (
    UniversalAgentIdentifier,
    generate_hcs14_uaid_did_target,
    parse_hcs14_uaid_did_target,
)

__all__ = [
    "DecentralizedIdentifier",
    "Did8004",
    "EnsDid",
    "EthrDid",
    "UniversalAgentIdentifier",
    "build_did_8004",
    "build_ens_did",
    "build_ens_did_from_agent_and_org",
    "build_ethr_did",
    "did_method",
    "generate_hcs14_uaid_did_target",
    "parse_did",
    "parse_did_8004",
    "parse_ens_did",
    "parse_ethr_did",
    "parse_hcs14_uaid_did_target",
]
