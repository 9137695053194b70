"""Authorization request matcher — find a validator's most recent request.

A validation summary for an agent holds ``pending`` and ``completed``
requests. Given a validator (by address, or by name through an
:class:`~agentic_trust.collaborators.AddressDeriver`), the matcher returns the
request with the greatest ``last_update`` among that validator's requests.

Field-name variants (``validatorAddress`` / ``validator_address``, ...) and
mixed numeric representations of ``last_update`` are normalised by the
pydantic models below, once, before anything is compared.
"""
from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any, Optional, Union

from pydantic import AliasChoices, BaseModel, Field, field_validator

from agentic_trust.collaborators import AddressDeriver
from agentic_trust.config import Settings

logger = logging.getLogger(__name__)


Timestamp = Union[int, float]


def _to_number(value: object) -> Timestamp:
    """Coerce int, float, decimal string or ``0x`` hex string to a number.

    Ints stay ints and fractional values stay floats; Python compares the two
    exactly, so no precision is lost on either side.
    """
    if value is None:
        return 0
    if isinstance(value, bool):
        raise ValueError("lastUpdate must be numeric, not a boolean")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError(f"lastUpdate must be finite, got {value}")
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0
        if text.lower().startswith("0x"):
            return int(text, 16)
        try:
            return int(text)
        except ValueError:
            return _to_number(float(text))
    raise ValueError(f"Unsupported lastUpdate value: {value!r}")


class ValidationRequest(BaseModel):
    """One validation request as reported by the registry indexer."""

    model_config = {"extra": "ignore", "frozen": True}

    validator_address: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("validator_address", "validatorAddress")
    )
    validator_name: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("validator_name", "validatorName")
    )
    last_update: Timestamp = Field(
        default=0, validation_alias=AliasChoices("last_update", "lastUpdate")
    )
    agent_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("agent_id", "agentId")
    )
    response: Optional[int] = None
    response_hash: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("response_hash", "responseHash")
    )
    tag: Optional[str] = None
    request_hash: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("request_hash", "requestHash")
    )

    @field_validator("last_update", mode="before")
    @classmethod
    def normalise_last_update(cls, value: object) -> Timestamp:
        """Turn every numeric representation into a comparable number."""
        return _to_number(value)

    @field_validator("agent_id", mode="before")
    @classmethod
    def stringify_agent_id(cls, value: object) -> Optional[str]:
        """Agent ids can exceed 2**53, so they are carried as decimal strings."""
        if value is None or isinstance(value, str):
            return value
        return str(value)

    def matches_address(self, address: str) -> bool:
        return bool(self.validator_address) and self.validator_address.lower() == address.lower()


class AuthorizationRequestSummary(BaseModel):
    """``pending`` and ``completed`` requests for one agent."""

    model_config = {"frozen": True}

    pending: list[ValidationRequest] = Field(default_factory=list)
    completed: list[ValidationRequest] = Field(default_factory=list)

    @field_validator("pending", "completed", mode="before")
    @classmethod
    def none_as_empty(cls, value: object) -> object:
        return [] if value is None else value

    @classmethod
    def from_raw(cls, raw: Union[Mapping[str, Any], "AuthorizationRequestSummary"]) -> "AuthorizationRequestSummary":
        """Normalise an indexer/SDK payload into a summary.

        Raises
        ------
        pydantic.ValidationError
            If a request carries a non-numeric ``lastUpdate``.
        """
        if isinstance(raw, AuthorizationRequestSummary):
            return raw
        return cls.model_validate(dict(raw))

    def all_requests(self) -> Iterator[ValidationRequest]:
        """Pending requests first, then completed ones."""
        yield from self.pending
        yield from self.completed


SummaryLike = Union[AuthorizationRequestSummary, Mapping[str, Any]]


def _matching(summary: SummaryLike, validator_address: str) -> Iterable[ValidationRequest]:
    if not validator_address or not validator_address.strip():
        raise ValueError("validator_address is required")
    address = validator_address.strip()
    normalised = AuthorizationRequestSummary.from_raw(summary)
    return (req for req in normalised.all_requests() if req.matches_address(address))


def match_by_address(summary: SummaryLike, validator_address: str) -> Optional[ValidationRequest]:
    """Return the validator's request with the greatest ``last_update``.

    Comparison is case-insensitive on the address. On equal ``last_update``
    the request seen first (pending before completed) wins. Returns ``None``
    when the validator has no requests.
    """
    latest: Optional[ValidationRequest] = None
    for request in _matching(summary, validator_address):
        if latest is None or request.last_update > latest.last_update:
            latest = request
    return latest


def count_by_address(summary: SummaryLike, validator_address: str) -> int:
    """Number of requests (pending and completed) addressed to the validator."""
    return sum(1 for _ in _matching(summary, validator_address))


def match_by_name(
    summary: SummaryLike,
    validator_name: str,
    deriver: AddressDeriver,
    signing_key: str,
    chain_id: int,
) -> Optional[ValidationRequest]:
    """Derive the validator's address from its name, then :func:`match_by_address`."""
    if not validator_name or not validator_name.strip():
        raise ValueError("validator_name is required")
    address = deriver.derive(validator_name.strip(), signing_key, chain_id)
    return match_by_address(summary, address)


# ------------------------------------------------------------------
# Settings-bound matcher
# ------------------------------------------------------------------


@dataclass(frozen=True)
class ValidatorMatch:
    """Result of :meth:`ValidatorMatcher.resolve`."""

    validator_name: str
    validator_address: str
    request: Optional[ValidationRequest]
    total_requests: int

    def to_dict(self) -> dict[str, object]:
        return {
            "validatorAddress": self.validator_address,
            "validatorName": self.validator_name,
            "request": self.request.model_dump(by_alias=False) if self.request else None,
            "totalRequests": self.total_requests,
        }


class ValidatorMatcher:
    """Matches requests by validator name using the configured signing key.

    Parameters
    ----------
    deriver:
        Address derivation collaborator.
    settings:
        Supplies ``validator_private_key`` and ``default_chain_id``.
    """

    def __init__(self, deriver: AddressDeriver, settings: Settings) -> None:
        self._deriver = deriver
        self._settings = settings

    def derive_address(self, validator_name: str, chain_id: Optional[int] = None) -> str:
        """Return the validator's deterministic account address.

        Raises
        ------
        ValueError
            If the name is empty or no validator key is configured.
        """
        if not validator_name or not validator_name.strip():
            raise ValueError("validator_name is required")
        chain = chain_id if chain_id is not None else self._settings.default_chain_id
        return self._deriver.derive(validator_name.strip(), self._settings.validator_key(), chain)

    def resolve(
        self, summary: SummaryLike, validator_name: str, chain_id: Optional[int] = None
    ) -> ValidatorMatch:
        """Latest request and total request count for *validator_name*."""
        address = self.derive_address(validator_name, chain_id)
        normalised = AuthorizationRequestSummary.from_raw(summary)
        latest = match_by_address(normalised, address)
        total = count_by_address(normalised, address)
        logger.debug(
            "Validator %s (%s): %d matching request(s)", validator_name, address, total
        )
        return ValidatorMatch(
            validator_name=validator_name.strip(),
            validator_address=address,
            request=latest,
            total_requests=total,
        )

    def match(
        self, summary: SummaryLike, validator_name: str, chain_id: Optional[int] = None
    ) -> Optional[ValidationRequest]:
        """Shortcut for ``resolve(...).request``."""
        return self.resolve(summary, validator_name, chain_id).request


__all__ = [
    "AuthorizationRequestSummary",
    "ValidationRequest",
    "ValidatorMatch",
    "ValidatorMatcher",
    "count_by_address",
    "match_by_address",
    "match_by_name",
]
