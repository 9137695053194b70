"""PinataContentStore — :class:`~agentic_trust.collaborators.ContentStore` on Pinata.

Objects are pinned with ``POST /pinning/pinJSONToIPFS``; the returned
``IpfsHash`` becomes the CID and ``ipfs://<cid>`` the URI.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from agentic_trust.collaborators import StoredContent
from agentic_trust.config import Settings
from agentic_trust.errors import StorageFailure

logger = logging.getLogger(__name__)

PINATA_API_URL = "https://api.pinata.cloud"


class PinataContentStore:
    """Uploads JSON objects to Pinata.

    Parameters
    ----------
    jwt:
        Pinata API JWT.
    gateway_url:
        Gateway used by :meth:`gateway_url_for`.
    api_url:
        Pinata API base URL.
    timeout:
        Request timeout in seconds.
    transport:
        Optional ``httpx`` transport, for tests.
    """

    def __init__(
        self,
        jwt: str,
        gateway_url: str = "https://gateway.pinata.cloud/ipfs",
        api_url: str = PINATA_API_URL,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not jwt:
            raise ValueError("A Pinata JWT is required")
        self._jwt = jwt
        self._gateway_url = gateway_url.rstrip("/")
        self._api_url = api_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> "PinataContentStore":
        if settings.pinata_jwt is None:
            raise ValueError("PINATA_JWT is not configured")
        return cls(
            jwt=settings.pinata_jwt.get_secret_value(),
            gateway_url=settings.ipfs_gateway_url,
            **kwargs,
        )

    def gateway_url_for(self, cid: str) -> str:
        return f"{self._gateway_url}/{cid.removeprefix('ipfs://')}"

    async def put(self, obj: dict[str, Any], name: Optional[str] = None) -> StoredContent:
        body = {
            "pinataContent": obj,
            "pinataMetadata": {"name": name or f"{obj.get('type', 'object')}.json"},
            "pinataOptions": {"cidVersion": 0},
        }
        try:
            async with httpx.AsyncClient(
                base_url=self._api_url, timeout=self._timeout, transport=self._transport
            ) as client:
                resp = await client.post(
                    "/pinning/pinJSONToIPFS",
                    json=body,
                    headers={"Authorization": f"Bearer {self._jwt}"},
                )
                resp.raise_for_status()
                result = resp.json()
        except httpx.HTTPStatusError as exc:
            raise StorageFailure(
                f"Pinata upload failed with status {exc.response.status_code}"
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise StorageFailure(f"Pinata upload failed: {exc}") from exc

        if not isinstance(result, dict):
            raise StorageFailure("Pinata response was not a JSON object")
        cid = result.get("IpfsHash") or result.get("cid")
        if not cid:
            raise StorageFailure("Pinata response did not include a CID")
        logger.info("Pinned %s to IPFS", cid)
        return StoredContent(cid=cid, uri=f"ipfs://{cid}")


__all__ = ["PINATA_API_URL", "PinataContentStore"]
