"""HCS-14 Universal Agent Identifiers in DID-target form.

Grammar
-------
::

    uaid:did:<method>:<method-specific-id>[;<key>=<value>]*

The ``did:`` literal of the target DID is dropped and re-attached under the
``uaid:did:`` prefix, so the original method token survives as data. Routing
parameters follow in caller-supplied order. Only the characters that would
break parsing are escaped, in this order: ``%`` then ``;`` then ``=``.

A UAID can be generated from an account DID (``did:ethr``) before the agent
has an ERC-8004 identity, which is what makes it portable across registries.
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Optional

from agentic_trust.did.identifiers import percent_decode
from agentic_trust.errors import InvalidUaidError, MalformedIdentifierError

UAID_DID_PREFIX = "uaid:did:"

_ESCAPES: tuple[tuple[str, str], ...] = (("%", "%25"), (";", "%3B"), ("=", "%3D"))


def encode_param_value(value: str) -> str:
    """Escape ``%``, ``;`` and ``=`` (in that order) in a routing value."""
    for char, escaped in _ESCAPES:
        value = value.replace(char, escaped)
    return value


def decode_param_value(value: str) -> str:
    """Reverse :func:`encode_param_value`."""
    for char, escaped in reversed(_ESCAPES):
        value = value.replace(escaped, char).replace(escaped.lower(), char)
    return value


def _method_specific_part(target_did: object) -> str:
    """Return ``<method>:<msid...>`` for a generic ``did:<method>:<msid>`` string."""
    try:
        decoded = percent_decode(target_did, "target DID")
    except MalformedIdentifierError as exc:
        raise InvalidUaidError(str(exc)) from exc
    parts = decoded.split(":")
    if len(parts) < 3 or parts[0] != "did" or not parts[1] or not ":".join(parts[2:]):
        raise InvalidUaidError(f"Invalid DID: {decoded}")
    if ";" in decoded or "=" in decoded:
        raise InvalidUaidError(f"Invalid DID {decoded!r}: ';' and '=' are reserved for routing parameters")
    return ":".join(parts[1:])


@dataclass(frozen=True)
class UniversalAgentIdentifier:
    """A parsed UAID.

    Parameters
    ----------
    uaid:
        The full UAID string as parsed.
    target_did:
        The wrapped DID, reconstructed with its ``did:`` prefix.
    routing:
        Routing parameters in the order they appear.
    """

    uaid: str
    target_did: str
    routing: dict[str, str] = field(default_factory=dict)

    @property
    def target_method(self) -> str:
        """Method token of the target DID (``ethr``, ``8004``, ...)."""
        return self.target_did.split(":")[1]

    def __str__(self) -> str:
        return self.uaid


def generate_hcs14_uaid_did_target(
    target_did: str,
    routing: Optional[Mapping[str, object]] = None,
) -> str:
    """Wrap *target_did* and *routing* into a ``uaid:did:`` string.

    Routing entries whose value is ``None`` or blank after trimming are
    omitted entirely.

    Raises
    ------
    InvalidUaidError
        If *target_did* is empty or not of the form ``did:<method>:<id>``,
        or contains ``;`` or ``=``.

    Example
    -------
    >>> generate_hcs14_uaid_did_target(
    ...     "did:ethr:11155111:0x00000000000000000000000000000000000000aa",
    ...     {"registry": "8004", "proto": "a2a"},
    ... )
    'uaid:did:ethr:11155111:0x00000000000000000000000000000000000000aa;registry=8004;proto=a2a'
    """
    id_part = _method_specific_part(target_did)
    pairs: list[str] = []
    for key, value in (routing or {}).items():
        if value is None:
            continue
        trimmed = str(value).strip()
        if not trimmed:
            continue
        pairs.append(f"{key}={encode_param_value(trimmed)}")
    suffix = ";" + ";".join(pairs) if pairs else ""
    return f"{UAID_DID_PREFIX}{id_part}{suffix}"


def parse_hcs14_uaid_did_target(uaid: object) -> UniversalAgentIdentifier:
    """Split a ``uaid:did:`` string into its target DID and routing parameters.

    Raises
    ------
    InvalidUaidError
        If the prefix is wrong, a routing pair is malformed, or the target is
        not a valid DID.
    """
    text = "" if uaid is None else str(uaid).strip()
    if not text:
        raise InvalidUaidError("Missing UAID")
    if not text.startswith(UAID_DID_PREFIX):
        raise InvalidUaidError(f"Invalid UAID {text!r}: expected prefix {UAID_DID_PREFIX!r}")

    id_part, *raw_pairs = text[len(UAID_DID_PREFIX) :].split(";")
    target_did = f"did:{id_part}"
    # Validates the reconstructed target; raises InvalidUaidError on failure.
    _method_specific_part(target_did)

    routing: dict[str, str] = {}
    for raw_pair in raw_pairs:
        if not raw_pair:
            continue
        key, sep, value = raw_pair.partition("=")
        if not sep or not key:
            raise InvalidUaidError(f"Malformed UAID routing parameter {raw_pair!r} in {text!r}")
        routing[key] = decode_param_value(value)

    return UniversalAgentIdentifier(uaid=text, target_did=target_did, routing=routing)


__all__ = [
    "UAID_DID_PREFIX",
    "UniversalAgentIdentifier",
    "decode_param_value",
    "encode_param_value",
    "generate_hcs14_uaid_did_target",
    "parse_hcs14_uaid_did_target",
]
