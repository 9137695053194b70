"""agentic_trust.validation — validator request matching."""
from __future__ import annotations

from agentic_trust.validation.matcher import (
    AuthorizationRequestSummary,
    ValidationRequest,
    ValidatorMatch,
    ValidatorMatcher,
    count_by_address,
    match_by_address,
    match_by_name,
)

__all__ = [
    "AuthorizationRequestSummary",
    "ValidationRequest",
    "ValidatorMatch",
    "ValidatorMatcher",
    "count_by_address",
    "match_by_address",
    "match_by_name",
]
