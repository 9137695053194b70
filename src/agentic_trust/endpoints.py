"""A2A endpoint selection for agent registrations.

An agent's A2A endpoint can come from two places: an explicit entry in the
registration's ``endpoints``/``services`` list, or a URL derived from the
agent's base URL (``<agentUrl>/.well-known/agent-card.json``). An explicit
entry always wins; the derived URL is only a fallback.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any, Optional

logger = logging.getLogger(__name__)

AGENT_CARD_PATH = "/.well-known/agent-card.json"
A2A = "a2a"


def derive_agent_card_url(agent_url: str) -> Optional[str]:
    """Return ``<agent_url>/.well-known/agent-card.json``, or ``None`` if blank."""
    base = (agent_url or "").strip().rstrip("/")
    if not base:
        return None
    return base + AGENT_CARD_PATH


def _is_a2a(entry: Mapping[str, Any]) -> bool:
    for key in ("name", "type"):
        value = entry.get(key)
        if isinstance(value, str) and value.strip().lower() == A2A:
            return True
    return False


def select_a2a_endpoint(
    endpoints: Optional[Iterable[Mapping[str, Any]]],
    agent_url: Optional[str] = None,
) -> Optional[str]:
    """Pick the A2A endpoint for an agent.

    Parameters
    ----------
    endpoints:
        Registration entries with ``name``/``type`` and ``endpoint`` keys.
        The first entry named or typed ``A2A`` (case-insensitive) with a
        non-empty endpoint wins.
    agent_url:
        Base URL used for the derived fallback.

    Returns
    -------
    str | None
        The selected endpoint, or ``None`` if neither source yields one.
    """
    derived = derive_agent_card_url(agent_url) if agent_url else None
    for entry in endpoints or ():
        if not _is_a2a(entry):
            continue
        explicit = entry.get("endpoint")
        if isinstance(explicit, str) and explicit.strip():
            explicit = explicit.strip()
            if derived and explicit != derived:
                logger.debug(
                    "Explicit A2A endpoint %s takes precedence over derived %s",
                    explicit,
                    derived,
                )
            return explicit
    return derived


__all__ = ["AGENT_CARD_PATH", "derive_agent_card_url", "select_a2a_endpoint"]
