"""Proxy discovery — pick the live AssociationsStore among historical addresses.

Deployments migrate the store to new proxy addresses while environments keep
old candidate lists around. :func:`pick_associations_store_proxy` walks the
candidates in order and returns the first one that:

1. is a valid account address,
2. has deployed bytecode,
3. answers ``getAssociationsForAccount(bytes)``,
4. when ``require_delegation_config`` is set, also answers
   ``delegationManager()``, ``scDelegationEnforcer()`` and
   ``scDelegationVerifier()``.

Candidates are probed one at a time so the result is deterministic. A failed
probe call disqualifies only that candidate. A failing ``get_code`` means the
node itself is unreachable and is raised as :class:`ChainReadFailure`.
"""
from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Optional

from agentic_trust.collaborators import ChainReader, ProxyCache, TTLCache
from agentic_trust.config import Settings
from agentic_trust.did.identifiers import checksum_account
from agentic_trust.errors import (
    ChainReadFailure,
    MalformedIdentifierError,
    NoCompatibleEndpointError,
)

logger = logging.getLogger(__name__)

BASE_PROBE_SIGNATURE = "getAssociationsForAccount(bytes)"
DELEGATION_CONFIG_SIGNATURES: tuple[str, ...] = (
    "delegationManager()",
    "scDelegationEnforcer()",
    "scDelegationVerifier()",
)


async def _probe(reader: ChainReader, address: str, signature: str, args: tuple = ()) -> bool:
    try:
        result = await reader.call(address, signature, args)
    except Exception as exc:
        logger.debug("Candidate %s rejected: %s failed (%s)", address, signature, exc)
        return False
    if not result:
        logger.debug("Candidate %s rejected: %s returned no data", address, signature)
        return False
    return True


async def _is_compatible(
    reader: ChainReader, address: str, require_delegation_config: bool
) -> bool:
    try:
        code = await reader.get_code(address)
    except ChainReadFailure:
        raise
    except Exception as exc:
        raise ChainReadFailure(f"get_code failed for {address}: {exc}") from exc
    if not code:
        logger.debug("Candidate %s rejected: no deployed code", address)
        return False

    if not await _probe(reader, address, BASE_PROBE_SIGNATURE, (b"",)):
        return False

    if require_delegation_config:
        for signature in DELEGATION_CONFIG_SIGNATURES:
            if not await _probe(reader, address, signature):
                return False
    return True


def _cache_key(candidates: Sequence[str], require_delegation_config: bool) -> tuple:
    return (
        "associations-store",
        tuple((c or "").strip().lower() for c in candidates),
        require_delegation_config,
    )


async def pick_associations_store_proxy(
    reader: ChainReader,
    candidates: Sequence[str],
    require_delegation_config: bool = False,
    cache: Optional[ProxyCache] = None,
    label: str = "AssociationsStore",
) -> str:
    """Return the first compatible candidate, as a checksummed address.

    Parameters
    ----------
    reader:
        Chain read collaborator.
    candidates:
        Addresses in priority order. Blank entries are ignored.
    require_delegation_config:
        Also require the three SC-delegation accessors.
    cache:
        Optional cache; a hit skips probing entirely.
    label:
        Contract name used in the error message.

    Raises
    ------
    NoCompatibleEndpointError
        If no candidate qualifies. ``attempted`` lists every non-blank
        candidate in order.
    ChainReadFailure
        If the node cannot be queried for bytecode.
    """
    key = _cache_key(candidates, require_delegation_config)
    if cache is not None:
        hit = cache.get(key)
        if hit is not None:
            logger.debug("Using cached %s proxy %s", label, hit)
            return hit

    attempted: list[str] = []
    for raw in candidates:
        raw = (raw or "").strip()
        if not raw:
            continue
        try:
            address = checksum_account(raw)
        except MalformedIdentifierError:
            attempted.append(raw)
            logger.debug("Candidate %r rejected: not a valid address", raw)
            continue
        attempted.append(address)

        if await _is_compatible(reader, address, require_delegation_config):
            logger.info("Selected %s proxy %s", label, address)
            if cache is not None:
                cache.put(key, address)
            return address

    raise NoCompatibleEndpointError(label, attempted)


# ------------------------------------------------------------------
# Settings-bound locator
# ------------------------------------------------------------------


class AssociationsStoreLocator:
    """Resolves the AssociationsStore proxy using configured defaults.

    The locator owns a :class:`~agentic_trust.collaborators.TTLCache` sized
    from ``settings.proxy_cache_ttl_seconds``, so repeated lookups through one
    locator probe the chain once per TTL window.

    Parameters
    ----------
    reader:
        Chain read collaborator.
    settings:
        Supplies the candidate list, ``require_delegation_config`` and the
        cache TTL.
    cache:
        Overrides the settings-sized cache.
    """

    def __init__(
        self,
        reader: ChainReader,
        settings: Settings,
        cache: Optional[ProxyCache] = None,
    ) -> None:
        self._reader = reader
        self._settings = settings
        self.cache: ProxyCache = cache if cache is not None else TTLCache(
            ttl=settings.proxy_cache_ttl_seconds
        )

    async def pick(
        self,
        candidates: Optional[Sequence[str]] = None,
        require_delegation_config: Optional[bool] = None,
    ) -> str:
        """Like :func:`pick_associations_store_proxy`, with settings as defaults."""
        addresses = list(candidates) if candidates else self._settings.associations_store_candidates
        require = (
            self._settings.require_delegation_config
            if require_delegation_config is None
            else require_delegation_config
        )
        return await pick_associations_store_proxy(
            self._reader,
            addresses,
            require_delegation_config=require,
            cache=self.cache,
        )


__all__ = [
    "AssociationsStoreLocator",
    "BASE_PROBE_SIGNATURE",
    "DELEGATION_CONFIG_SIGNATURES",
    "pick_associations_store_proxy",
]
