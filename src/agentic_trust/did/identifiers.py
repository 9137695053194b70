"""Multi-method DID parsing and construction.

Supported methods
-----------------
::

    did:8004:<chainId>:<agentId>             ERC-8004 agent identity
    did:8004:<namespace>:<chainId>:<agentId> same, with a namespace (e.g. eip155)
    did:ens:<chainId>:<name>.eth             ENS name on a chain
    did:ethr:[<...>:]<chainId>:<0x-account>  Ethereum account

Every parser accepts percent-encoded input (as found in URL path segments).
Decoding happens before the grammar check, and a decoding failure raises
:class:`~agentic_trust.errors.IdentifierDecodingError` rather than the plain
:class:`~agentic_trust.errors.MalformedIdentifierError`.

The identifier value objects are frozen dataclasses whose ``str()`` is the
canonical (decoded) DID, so ``parse_did(str(x)) == x`` for every valid ``x``.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import ClassVar, Optional, Union
from urllib.parse import quote, unquote

from eth_utils import to_checksum_address

from agentic_trust.config import DEFAULT_CHAIN_ID
from agentic_trust.errors import IdentifierDecodingError, MalformedIdentifierError

DID_8004_PREFIX = "did:8004:"
ENS_DID_PREFIX = "did:ens:"
ETHR_DID_PREFIX = "did:ethr:"

_ACCOUNT_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")
_BAD_ESCAPE_PATTERN = re.compile(r"%(?![0-9A-Fa-f]{2})")
_DIGITS_PATTERN = re.compile(r"^[0-9]+$")
# Characters encodeURIComponent leaves untouched besides alphanumerics.
_URI_COMPONENT_SAFE = "-_.!~*'()"


# ------------------------------------------------------------------
# Shared helpers
# ------------------------------------------------------------------


def percent_decode(raw: object, label: str = "DID") -> str:
    """Trim and percent-decode *raw*.

    Raises
    ------
    MalformedIdentifierError
        If the input is empty.
    IdentifierDecodingError
        If the input contains a malformed escape or invalid UTF-8.
    """
    text = "" if raw is None else str(raw).strip()
    if not text:
        raise MalformedIdentifierError(f"Missing {label}")
    if _BAD_ESCAPE_PATTERN.search(text):
        raise IdentifierDecodingError(f"Invalid percent-encoding in {label}: {text!r}")
    try:
        return unquote(text, errors="strict")
    except UnicodeDecodeError as exc:
        raise IdentifierDecodingError(
            f"Invalid percent-encoding in {label}: {exc}"
        ) from exc


def percent_encode(value: str) -> str:
    """Percent-encode *value* the way a URL path component is encoded."""
    return quote(value, safe=_URI_COMPONENT_SAFE)


def _positive_chain_id(value: object, did: str) -> int:
    text = str(value).strip() if value is not None else ""
    if isinstance(value, bool) or not _DIGITS_PATTERN.match(text) or int(text) <= 0:
        raise MalformedIdentifierError(
            f"Invalid chain id {value!r} in {did!r}: must be a positive integer"
        )
    return int(text)


def checksum_account(account: object) -> str:
    """Return the EIP-55 checksum form of *account*.

    Raises
    ------
    MalformedIdentifierError
        If *account* is not a ``0x``-prefixed 40-hex-digit address.
    """
    text = str(account or "").strip()
    if not _ACCOUNT_PATTERN.match(text):
        raise MalformedIdentifierError(
            f"Invalid account address {text!r}: expected 0x followed by 40 hex digits"
        )
    return to_checksum_address(text)


# ------------------------------------------------------------------
# Value objects
# ------------------------------------------------------------------


@dataclass(frozen=True)
class Did8004:
    """An ERC-8004 agent identity: ``did:8004:[<namespace>:]<chainId>:<agentId>``."""

    chain_id: int
    agent_id: str
    namespace: Optional[str] = None
    fragment: Optional[str] = None

    method: ClassVar[str] = "8004"

    def __post_init__(self) -> None:
        object.__setattr__(self, "chain_id", _positive_chain_id(self.chain_id, "did:8004"))
        agent_id = str(self.agent_id if self.agent_id is not None else "").strip()
        if not agent_id:
            raise MalformedIdentifierError("Agent id is required to build a did:8004 identifier")
        if ":" in agent_id or "#" in agent_id:
            raise MalformedIdentifierError(f"Invalid did:8004 agent id {agent_id!r}")
        object.__setattr__(self, "agent_id", agent_id)
        if self.namespace is not None:
            namespace = self.namespace.strip()
            if not namespace or ":" in namespace:
                raise MalformedIdentifierError(f"Invalid did:8004 namespace {self.namespace!r}")
            object.__setattr__(self, "namespace", namespace)
        if self.fragment is not None:
            object.__setattr__(self, "fragment", self.fragment.lstrip("#").strip() or None)

    @property
    def base_did(self) -> str:
        """The DID without its fragment."""
        segments = ["did", self.method]
        if self.namespace:
            segments.append(self.namespace)
        segments.extend([str(self.chain_id), self.agent_id])
        return ":".join(segments)

    def __str__(self) -> str:
        return f"{self.base_did}#{self.fragment}" if self.fragment else self.base_did


@dataclass(frozen=True)
class EnsDid:
    """An ENS name anchored on a chain: ``did:ens:<chainId>:<name>.eth``."""

    chain_id: int
    ens_name: str

    method: ClassVar[str] = "ens"

    def __post_init__(self) -> None:
        object.__setattr__(self, "chain_id", _positive_chain_id(self.chain_id, "did:ens"))
        name = str(self.ens_name or "").strip()
        if not name:
            raise MalformedIdentifierError("ENS name is required to build a did:ens identifier")
        if not name.lower().endswith(".eth"):
            raise MalformedIdentifierError(
                f"Invalid ENS name {name!r}: must end with .eth to be a valid did:ens"
            )
        object.__setattr__(self, "ens_name", name)

    def __str__(self) -> str:
        return f"{ENS_DID_PREFIX}{self.chain_id}:{self.ens_name}"


@dataclass(frozen=True)
class EthrDid:
    """An Ethereum account DID: ``did:ethr:<chainId>:<account>``.

    The account is held in EIP-55 checksum form.
    """

    chain_id: int
    account: str

    method: ClassVar[str] = "ethr"

    def __post_init__(self) -> None:
        object.__setattr__(self, "chain_id", _positive_chain_id(self.chain_id, "did:ethr"))
        object.__setattr__(self, "account", checksum_account(self.account))

    def __str__(self) -> str:
        return f"{ETHR_DID_PREFIX}{self.chain_id}:{self.account}"


DecentralizedIdentifier = Union[Did8004, EnsDid, EthrDid]


# ------------------------------------------------------------------
# Builders
# ------------------------------------------------------------------


def build_did_8004(
    chain_id: Union[int, str],
    agent_id: Union[int, str],
    namespace: Optional[str] = None,
    fragment: Optional[str] = None,
    encode: bool = False,
) -> str:
    """Build a ``did:8004`` identifier.

    Parameters
    ----------
    chain_id:
        Positive chain id.
    agent_id:
        Agent token id (non-empty).
    namespace:
        Optional segment between the method and the chain id.
    fragment:
        Optional fragment, with or without the leading ``#``.
    encode:
        Percent-encode the result for use inside a URL path.

    Raises
    ------
    MalformedIdentifierError
        If a component is missing or invalid.
    """
    did = str(Did8004(chain_id=chain_id, agent_id=agent_id, namespace=namespace, fragment=fragment))  # type: ignore[arg-type]
    return percent_encode(did) if encode else did


def build_ens_did(chain_id: Union[int, str], ens_name: str, encode: bool = False) -> str:
    """Build a ``did:ens`` identifier. The name's case is preserved."""
    did = str(EnsDid(chain_id=chain_id, ens_name=ens_name))  # type: ignore[arg-type]
    return percent_encode(did) if encode else did


def build_ens_did_from_agent_and_org(
    chain_id: Union[int, str],
    agent_name: str,
    org_name: str,
    encode: bool = False,
) -> str:
    """Build ``did:ens:<chainId>:<agent>.<org>.eth`` from an agent and org name.

    The agent label is lower-cased with whitespace runs replaced by hyphens;
    the org name is lower-cased and loses a trailing ``.eth``.
    """
    agent_label = re.sub(r"\s+", "-", (agent_name or "").strip().lower())
    if not agent_label:
        raise MalformedIdentifierError("Agent name cannot be empty")
    org_label = re.sub(r"\.eth$", "", (org_name or "").strip().lower())
    if not org_label:
        raise MalformedIdentifierError("Organization name cannot be empty")
    return build_ens_did(chain_id, f"{agent_label}.{org_label}.eth", encode=encode)


def build_ethr_did(chain_id: Union[int, str], account: str, encode: bool = False) -> str:
    """Build a ``did:ethr`` identifier with a checksummed account."""
    did = str(EthrDid(chain_id=chain_id, account=account))  # type: ignore[arg-type]
    return percent_encode(did) if encode else did


# ------------------------------------------------------------------
# Parsers
# ------------------------------------------------------------------


def parse_did_8004(raw: object) -> Did8004:
    """Parse a ``did:8004`` identifier (encoded or decoded).

    Five or more segments are read as ``did:8004:<namespace>:<chainId>:<agentId>``.
    """
    decoded = percent_decode(raw, "did:8004 identifier")
    base, _, fragment = decoded.partition("#")
    if not base.startswith(DID_8004_PREFIX):
        raise MalformedIdentifierError(f"Invalid did:8004 identifier: {decoded}")
    parts = base.split(":")
    if len(parts) < 4:
        raise MalformedIdentifierError(f"Malformed did:8004 identifier: {decoded}")
    namespace: Optional[str] = None
    chain_index = 2
    if len(parts) >= 5:
        namespace = parts[2]
        chain_index = 3
    chain_component = parts[chain_index]
    agent_component = ":".join(parts[chain_index + 1 :]).strip()
    if not agent_component:
        raise MalformedIdentifierError(f"Agent id missing in did:8004 identifier: {decoded}")
    return Did8004(
        chain_id=_positive_chain_id(chain_component, decoded),
        agent_id=agent_component,
        namespace=namespace,
        fragment=fragment.strip() or None,
    )


def parse_ens_did(raw: object) -> EnsDid:
    """Parse a ``did:ens:<chainId>:<name>.eth`` identifier."""
    decoded = percent_decode(raw, "ENS DID")
    if not decoded.startswith(ENS_DID_PREFIX):
        raise MalformedIdentifierError(
            f"Invalid ENS DID format: {decoded}. Expected format: did:ens:chainId:ensname"
        )
    parts = decoded.split(":")
    if len(parts) < 4:
        raise MalformedIdentifierError(
            f"ENS DID missing components: {decoded}. Expected format: did:ens:chainId:ensname"
        )
    return EnsDid(
        chain_id=_positive_chain_id(parts[2], decoded),
        ens_name=":".join(parts[3:]).strip(),
    )


def parse_ethr_did(raw: object, default_chain_id: Optional[int] = None) -> EthrDid:
    """Parse a ``did:ethr`` identifier.

    The account is always the last colon-delimited token. Tokens between the
    method and the account are scanned right to left; the first positive
    all-digit token is the chain id. When there is none, *default_chain_id*
    (or :data:`~agentic_trust.config.DEFAULT_CHAIN_ID`) is used, so both
    ``did:ethr:11155111:0x..`` and ``did:ethr:0x..`` are accepted.
    """
    decoded = percent_decode(raw, "ETHR DID")
    if not decoded.startswith(ETHR_DID_PREFIX):
        raise MalformedIdentifierError(
            f"Invalid ETHR DID format: {decoded}. "
            "Expected format: did:ethr:chainId:account or did:ethr:account"
        )
    segments = decoded.split(":")
    if len(segments) < 3:
        raise MalformedIdentifierError(f"ETHR DID missing components: {decoded}")
    account = segments[-1]
    if not account.startswith("0x"):
        raise MalformedIdentifierError(f"ETHR DID is missing account component: {decoded}")

    chain_id = 0
    for token in reversed(segments[2:-1]):
        if _DIGITS_PATTERN.match(token) and int(token) > 0:
            chain_id = int(token)
            break
    if not chain_id:
        chain_id = default_chain_id if default_chain_id is not None else DEFAULT_CHAIN_ID

    return EthrDid(chain_id=chain_id, account=account)


_PARSERS = {
    "8004": parse_did_8004,
    "ens": parse_ens_did,
    "ethr": parse_ethr_did,
}


def did_method(raw: object) -> str:
    """Return the method token of a DID string after decoding it."""
    decoded = percent_decode(raw)
    parts = decoded.split(":")
    if parts[0] != "did":
        raise MalformedIdentifierError(f"Not a DID (missing 'did:' prefix): {decoded}")
    if len(parts) < 3 or not parts[1]:
        raise MalformedIdentifierError(f"Malformed DID (too few segments): {decoded}")
    return parts[1]


def parse_did(raw: object) -> DecentralizedIdentifier:
    """Parse any supported DID into its value object.

    Raises
    ------
    MalformedIdentifierError
        If the prefix, segment count, method, or method grammar is wrong.
    IdentifierDecodingError
        If the input cannot be percent-decoded.
    """
    method = did_method(raw)
    parser = _PARSERS.get(method)
    if parser is None:
        raise MalformedIdentifierError(
            f"Unsupported DID method {method!r}. Supported: {sorted(_PARSERS)}"
        )
    return parser(raw)


__all__ = [
    "DID_8004_PREFIX",
    "DecentralizedIdentifier",
    "Did8004",
    "ENS_DID_PREFIX",
    "ETHR_DID_PREFIX",
    "EnsDid",
    "EthrDid",
    "build_did_8004",
    "build_ens_did",
    "build_ens_did_from_agent_and_org",
    "build_ethr_did",
    "checksum_account",
    "did_method",
    "parse_did",
    "parse_did_8004",
    "parse_ens_did",
    "parse_ethr_did",
    "percent_decode",
    "percent_encode",
]
