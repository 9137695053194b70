"""DelegationAssociationBuilder — approver-signed ERC-8092 delegation records.

Build steps, in order (later steps sign over earlier outputs):

1. Upload ``{**payload, type, createdAt}`` to the content store.
2. Encode ``(AssocType.DELEGATION, <json reference to the upload>)``.
3. Assemble the record: interoperable initiator/approver, ``validAt = now``,
   ``validUntil = 0``, the delegation interface id and the encoded data.
4. Have the approver sign the record's EIP-712 digest.
5. Return the SAR with the approver signature and an empty initiator
   signature; the initiator adds theirs later, before submission.

All inputs are validated before the first collaborator call, so malformed
input never leaves an orphaned upload behind.
"""
from __future__ import annotations

import datetime
import json
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Optional

from agentic_trust.associations.codec import AssocType, encode_association_data
from agentic_trust.associations.records import (
    DELEGATION_INTERFACE_ID,
    NO_EXPIRY,
    AssociatedAccountRecord,
    KeyType,
    SignedAssociationRecord,
    clamp_uint40,
    eip712_hash,
    format_evm_v1,
)
from agentic_trust.collaborators import ContentStore, SignatureResult, Signer, StoredContent
from agentic_trust.did.identifiers import checksum_account
from agentic_trust.errors import SigningFailure, StorageFailure, ValueOutOfRangeError

logger = logging.getLogger(__name__)


def _utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def _iso_millis(moment: datetime.datetime) -> str:
    return moment.astimezone(datetime.timezone.utc).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


@dataclass(frozen=True)
class DelegationPayloadRef:
    """Where the full delegation payload lives and when it was created."""

    type: str
    payload_uri: Optional[str]
    payload_cid: Optional[str]
    created_at: str
    payload: dict[str, Any] = field(default_factory=dict)

    def reference(self) -> dict[str, Any]:
        """The compact reference embedded in the record's description."""
        return {
            "type": self.type,
            "payloadUri": self.payload_uri,
            "payloadCid": self.payload_cid,
            "createdAt": self.created_at,
        }


@dataclass(frozen=True)
class DelegationAssociation:
    """An approver-signed delegation association ready for the initiator."""

    association_id: str
    initiator_address: str
    approver_address: str
    sar: SignedAssociationRecord
    delegation: DelegationPayloadRef
    assoc_type: int = int(AssocType.DELEGATION)

    @property
    def valid_at(self) -> int:
        return self.sar.record.valid_at

    @property
    def valid_until(self) -> int:
        return self.sar.record.valid_until

    @property
    def approver_signature(self) -> bytes:
        return self.sar.approver_signature

    def to_dict(self) -> dict[str, object]:
        """Serialize for a JSON response."""
        return {
            "associationId": self.association_id,
            "initiatorAddress": self.initiator_address,
            "approverAddress": self.approver_address,
            "assocType": self.assoc_type,
            "validAt": self.valid_at,
            "validUntil": self.valid_until,
            "data": self.sar.record.to_dict()["data"],
            "approverSignature": self.sar.to_dict()["approverSignature"],
            "sar": self.sar.to_dict(),
            "delegation": {**self.delegation.reference(), "payload": self.delegation.payload},
        }


class DelegationAssociationBuilder:
    """Assembles approver-signed delegation associations.

    Parameters
    ----------
    content_store:
        Where the full payload is uploaded.
    signer:
        The approver's signer.
    clock:
        Returns the current UTC datetime; injectable for tests.
    """

    def __init__(
        self,
        content_store: ContentStore,
        signer: Signer,
        clock: Optional[Callable[[], datetime.datetime]] = None,
    ) -> None:
        self._content_store = content_store
        self._signer = signer
        self._clock = clock or _utc_now

    async def build(
        self,
        chain_id: int,
        initiator_address: str,
        approver_address: str,
        payload_type: str,
        payload: Optional[dict[str, Any]] = None,
    ) -> DelegationAssociation:
        """Upload the payload, build the record and collect the approver signature.

        Raises
        ------
        ValueOutOfRangeError
            If *chain_id* is not a positive integer.
        MalformedIdentifierError
            If either address is not a valid account.
        ValueError
            If *payload_type* is empty.
        StorageFailure
            If the upload fails. Nothing is signed.
        SigningFailure
            If the signer fails or returns an empty signature.
        """
        if isinstance(chain_id, bool) or not isinstance(chain_id, int) or chain_id <= 0:
            raise ValueOutOfRangeError(f"Invalid chainId for delegation association: {chain_id!r}")
        initiator = checksum_account(initiator_address)
        approver = checksum_account(approver_address)
        payload_type = (payload_type or "").strip()
        if not payload_type:
            raise ValueError("payload_type is required for a delegation association")

        now = self._clock()
        created_at = _iso_millis(now)
        full_payload: dict[str, Any] = {**(payload or {}), "type": payload_type, "createdAt": created_at}

        stored = await self._upload(full_payload)
        delegation = DelegationPayloadRef(
            type=payload_type,
            payload_uri=stored.uri,
            payload_cid=stored.cid,
            created_at=created_at,
            payload=full_payload,
        )

        data = encode_association_data(
            int(AssocType.DELEGATION),
            json.dumps(delegation.reference(), separators=(",", ":"), ensure_ascii=False),
        )
        record = AssociatedAccountRecord(
            initiator=format_evm_v1(chain_id, initiator),
            approver=format_evm_v1(chain_id, approver),
            valid_at=clamp_uint40(now.timestamp()),
            valid_until=NO_EXPIRY,
            interface_id=DELEGATION_INTERFACE_ID,
            data=data,
        )

        digest = eip712_hash(record)
        signed = await self._sign(digest)

        sar = SignedAssociationRecord(
            record=record,
            initiator_key_type=KeyType.K1,
            approver_key_type=signed.key_type,
            initiator_signature=b"",
            approver_signature=signed.signature,
        )
        association = DelegationAssociation(
            association_id="0x" + digest.hex(),
            initiator_address=initiator,
            approver_address=approver,
            sar=sar,
            delegation=delegation,
        )
        logger.info(
            "Built delegation association %s (initiator=%s approver=%s keyType=%s)",
            association.association_id,
            initiator,
            approver,
            signed.key_type.value,
        )
        return association

    # ------------------------------------------------------------------
    # Collaborator calls
    # ------------------------------------------------------------------

    async def _upload(self, payload: dict[str, Any]) -> StoredContent:
        try:
            stored = await self._content_store.put(payload)
        except StorageFailure:
            raise
        except Exception as exc:
            raise StorageFailure(f"Failed to upload delegation payload: {exc}") from exc
        if not stored.cid or not stored.uri:
            raise StorageFailure("Content store returned an empty cid or uri")
        return stored

    async def _sign(self, digest: bytes) -> SignatureResult:
        try:
            result = await self._signer.sign(digest)
        except SigningFailure:
            raise
        except Exception as exc:
            raise SigningFailure(
                f"Approver failed to sign association digest 0x{digest.hex()}: {exc}"
            ) from exc
        if not result.signature:
            raise SigningFailure("Signer returned an empty approver signature")
        return result


__all__ = [
    "DelegationAssociation",
    "DelegationAssociationBuilder",
    "DelegationPayloadRef",
]
