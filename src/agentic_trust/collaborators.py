"""Collaborator interfaces consumed by the core, plus in-memory implementations.

The core never talks to IPFS, a wallet or an RPC node directly. It receives
objects satisfying these protocols:

==================  ===========================================================
Protocol            Operation
==================  ===========================================================
``ContentStore``    ``await put(obj) -> StoredContent(cid, uri)``
``Signer``          ``await sign(digest) -> SignatureResult(signature, key_type)``
``ChainReader``     ``await get_code(address) -> bytes``;
                    ``await call(address, signature, args) -> bytes``
``AddressDeriver``  ``derive(name, key, chain_id) -> address``
``ProxyCache``      ``get(key)`` / ``put(key, value)`` / ``ttl``
==================  ===========================================================

Each call is single-shot: nothing here retries, and deadlines belong to the
caller. Implementations signal failure by raising; the core wraps those
exceptions in the matching :mod:`agentic_trust.errors` type.

Extension points
----------------
:class:`InMemoryContentStore` and :class:`TTLCache` are the commodity
implementations. Production backends live in :mod:`agentic_trust.adapters`
and can be swapped in at the call site without changing consumers.
"""
from __future__ import annotations

import hashlib
import json
import threading
import time
from collections.abc import Callable, Hashable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from agentic_trust.associations.records import KeyType


@dataclass(frozen=True)
class StoredContent:
    """Location of an uploaded object in content-addressed storage."""

    cid: str
    uri: str


@dataclass(frozen=True)
class SignatureResult:
    """A signature plus the key type telling the verifier how to check it."""

    signature: bytes
    key_type: KeyType


@runtime_checkable
class ContentStore(Protocol):
    async def put(self, obj: dict[str, Any]) -> StoredContent: ...


@runtime_checkable
class Signer(Protocol):
    async def sign(self, digest: bytes) -> SignatureResult: ...


@runtime_checkable
class ChainReader(Protocol):
    async def get_code(self, address: str) -> bytes: ...

    async def call(self, address: str, signature: str, args: Sequence[Any] = ()) -> bytes:
        """Execute a read-only call; raise ``ContractCallReverted`` on revert."""
        ...


@runtime_checkable
class AddressDeriver(Protocol):
    def derive(self, name: str, key: str, chain_id: int) -> str: ...


@runtime_checkable
class ProxyCache(Protocol):
    ttl: float

    def get(self, key: Hashable) -> Optional[str]: ...

    def put(self, key: Hashable, value: str) -> None: ...


# ------------------------------------------------------------------
# In-memory implementations
# ------------------------------------------------------------------


def canonical_json(obj: object) -> bytes:
    """Deterministic JSON bytes used for content addressing."""
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), default=str).encode("utf-8")


class InMemoryContentStore:
    """Content store that keeps uploads in a dict keyed by a sha256 pseudo-CID.

    Uploading the same object twice yields the same CID.
    """

    def __init__(self) -> None:
        self._objects: dict[str, dict[str, Any]] = {}
        self._lock = threading.Lock()

    async def put(self, obj: dict[str, Any]) -> StoredContent:
        body = canonical_json(obj)
        cid = "sha256-" + hashlib.sha256(body).hexdigest()
        with self._lock:
            self._objects[cid] = json.loads(body)
        return StoredContent(cid=cid, uri=f"ipfs://{cid}")

    def get(self, cid: str) -> Optional[dict[str, Any]]:
        """Return a stored object by CID, or ``None``."""
        with self._lock:
            return self._objects.get(cid)

    def __len__(self) -> int:
        return len(self._objects)

    def __contains__(self, cid: object) -> bool:
        return cid in self._objects


class TTLCache:
    """Thread-safe map whose entries expire ``ttl`` seconds after insertion.

    Parameters
    ----------
    ttl:
        Entry lifetime in seconds. ``0`` disables caching.
    clock:
        Monotonic time source, injectable for tests.
    """

    def __init__(self, ttl: float = 300.0, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[Hashable, tuple[float, str]] = {}
        self._lock = threading.Lock()

    def get(self, key: Hashable) -> Optional[str]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    def put(self, key: Hashable, value: str) -> None:
        if self.ttl <= 0:
            return
        with self._lock:
            self._entries[key] = (self._clock() + self.ttl, value)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


__all__ = [
    "AddressDeriver",
    "ChainReader",
    "ContentStore",
    "InMemoryContentStore",
    "ProxyCache",
    "SignatureResult",
    "Signer",
    "StoredContent",
    "TTLCache",
    "canonical_json",
]
