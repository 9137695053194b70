"""Exception hierarchy for agentic-trust.

Errors fall into two families:

* **Local validation**: raised by pure parsing/encoding functions before any
  collaborator is touched. These subclass :class:`ValueError` as well so that
  callers who only care about "bad input" can catch the builtin.
* **Collaborator failures**: raised when content storage, signing, or chain
  reads fail. The original exception is always chained via ``__cause__``.

:func:`http_status_for` maps an exception onto the status code a route layer
should answer with.
"""
from __future__ import annotations


class AgenticTrustError(Exception):
    """Base class for every error raised by this package."""


# ------------------------------------------------------------------
# Local validation
# ------------------------------------------------------------------


class MalformedIdentifierError(AgenticTrustError, ValueError):
    """Raised when a DID string or its components violate the method grammar."""


class IdentifierDecodingError(MalformedIdentifierError):
    """Raised when a DID cannot be percent-decoded."""


class InvalidUaidError(AgenticTrustError, ValueError):
    """Raised when a UAID has the wrong prefix or wraps an invalid DID."""


class ValueOutOfRangeError(AgenticTrustError, ValueError):
    """Raised when a numeric field does not fit its on-chain type."""


# ------------------------------------------------------------------
# Collaborator failures
# ------------------------------------------------------------------


class CollaboratorError(AgenticTrustError):
    """Base class for failures of an external collaborator."""


class StorageFailure(CollaboratorError):
    """Raised when the content store rejects or fails an upload."""


class SigningFailure(CollaboratorError):
    """Raised when the signer cannot produce a signature."""


class ChainReadFailure(CollaboratorError):
    """Raised when a chain read fails for transport reasons."""


class ContractCallReverted(ChainReadFailure):
    """Raised by a chain reader when an ``eth_call`` reverts."""


class NoCompatibleEndpointError(AgenticTrustError):
    """Raised when no candidate contract address passes the compatibility probe.

    Parameters
    ----------
    label:
        Human-readable name of the contract being looked up.
    attempted:
        Every address that was probed, in probe order.
    """

    def __init__(self, label: str, attempted: list[str]) -> None:
        self.label = label
        self.attempted = list(attempted)
        tried = ", ".join(self.attempted) if self.attempted else "(none)"
        super().__init__(f"No compatible {label} proxy found. Tried: {tried}")


def http_status_for(exc: BaseException) -> int:
    """Return the HTTP status a route layer should use for *exc*.

    Malformed input maps to 400, collaborator and discovery failures to 502,
    anything else to 500.
    """
    if isinstance(
        exc,
        (MalformedIdentifierError, InvalidUaidError, ValueOutOfRangeError),
    ):
        return 400
    if isinstance(exc, (CollaboratorError, NoCompatibleEndpointError)):
        return 502
    return 500


__all__ = [
    "AgenticTrustError",
    "ChainReadFailure",
    "CollaboratorError",
    "ContractCallReverted",
    "IdentifierDecodingError",
    "InvalidUaidError",
    "MalformedIdentifierError",
    "NoCompatibleEndpointError",
    "SigningFailure",
    "StorageFailure",
    "ValueOutOfRangeError",
    "http_status_for",
]
