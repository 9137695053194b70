"""Settings — runtime configuration for agentic-trust.

Values come from keyword arguments or from ``AGENTIC_TRUST_*`` environment
variables via :meth:`Settings.from_env`:

=====================================================  =========================
Variable                                               Field
=====================================================  =========================
``AGENTIC_TRUST_DEFAULT_CHAIN_ID``                     ``default_chain_id``
``AGENTIC_TRUST_RPC_URL``                              ``rpc_url``
``AGENTIC_TRUST_ASSOCIATIONS_PROXY_CANDIDATES``        ``associations_store_candidates`` (comma separated)
``AGENTIC_TRUST_REQUIRE_DELEGATION_CONFIG``            ``require_delegation_config``
``AGENTIC_TRUST_VALIDATOR_PRIVATE_KEY``                ``validator_private_key``
``AGENTIC_TRUST_IPFS_GATEWAY_URL``                     ``ipfs_gateway_url``
``PINATA_JWT``                                         ``pinata_jwt``
``AGENTIC_TRUST_PROXY_CACHE_TTL_SECONDS``              ``proxy_cache_ttl_seconds``
=====================================================  =========================
"""
from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Optional

from pydantic import BaseModel, Field, SecretStr, field_validator

DEFAULT_CHAIN_ID: int = 11155111  # Ethereum Sepolia

_ENV_FIELDS: dict[str, str] = {
    "AGENTIC_TRUST_DEFAULT_CHAIN_ID": "default_chain_id",
    "AGENTIC_TRUST_RPC_URL": "rpc_url",
    "AGENTIC_TRUST_ASSOCIATIONS_PROXY_CANDIDATES": "associations_store_candidates",
    "AGENTIC_TRUST_REQUIRE_DELEGATION_CONFIG": "require_delegation_config",
    "AGENTIC_TRUST_VALIDATOR_PRIVATE_KEY": "validator_private_key",
    "AGENTIC_TRUST_IPFS_GATEWAY_URL": "ipfs_gateway_url",
    "PINATA_JWT": "pinata_jwt",
    "AGENTIC_TRUST_PROXY_CACHE_TTL_SECONDS": "proxy_cache_ttl_seconds",
}


class Settings(BaseModel):
    """Validated configuration shared by the CLI and the adapters.

    Secrets are held as :class:`pydantic.SecretStr` so they never appear in
    ``repr()`` or log output.
    """

    default_chain_id: int = Field(default=DEFAULT_CHAIN_ID, gt=0)
    rpc_url: Optional[str] = None
    associations_store_candidates: list[str] = Field(default_factory=list)
    require_delegation_config: bool = False
    validator_private_key: Optional[SecretStr] = None
    ipfs_gateway_url: str = "https://gateway.pinata.cloud/ipfs"
    pinata_jwt: Optional[SecretStr] = None
    proxy_cache_ttl_seconds: float = Field(default=300.0, ge=0)

    @field_validator("associations_store_candidates", mode="before")
    @classmethod
    def _split_candidates(cls, value: object) -> object:
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        return value

    @field_validator("ipfs_gateway_url")
    @classmethod
    def _strip_gateway_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides: object) -> "Settings":
        """Build settings from environment variables.

        Parameters
        ----------
        environ:
            Mapping to read from. Defaults to :data:`os.environ`.
        **overrides:
            Field values that take precedence over the environment.

        Raises
        ------
        pydantic.ValidationError
            If a variable cannot be coerced to its field type.
        """
        source = os.environ if environ is None else environ
        values: dict[str, object] = {}
        for env_name, field_name in _ENV_FIELDS.items():
            raw = source.get(env_name)
            if raw is not None and raw.strip():
                values[field_name] = raw.strip()
        values.update(overrides)
        return cls(**values)

    def validator_key(self) -> str:
        """Return the validator signing key, raising if it is not configured."""
        if self.validator_private_key is None:
            raise ValueError(
                "Validator signing key is not configured. "
                "Set AGENTIC_TRUST_VALIDATOR_PRIVATE_KEY."
            )
        return self.validator_private_key.get_secret_value()


__all__ = ["DEFAULT_CHAIN_ID", "Settings"]
