"""CLI entry point for agentic-trust.

Invoked as::

    agentic-trust [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m agentic_trust.cli.main

Commands
--------
did parse             Parse a did:8004 / did:ens / did:ethr identifier
did build-8004        Build a did:8004 identifier
did build-ens         Build a did:ens identifier
did build-ethr        Build a did:ethr identifier
uaid generate         Wrap a DID in an HCS-14 UAID
uaid parse            Unwrap an HCS-14 UAID
assoc encode          ABI-encode association data
assoc decode          Decode association data
proxy pick            Find the compatible AssociationsStore proxy
validation match      Latest validation request for a validator
"""
from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from agentic_trust.errors import AgenticTrustError

console = Console()


def _emit(value: str) -> None:
    """Print a machine-readable value without wrapping or markup."""
    console.print(value, soft_wrap=True, markup=False, highlight=False)


def _fail(exc: BaseException) -> None:
    console.print(f"[red]Error:[/red] {escape(str(exc))}")
    sys.exit(1)


# ------------------------------------------------------------------
# Root group
# ------------------------------------------------------------------


@click.group()
@click.version_option(package_name="agentic-trust")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Logging verbosity.",
)
def cli(log_level: str) -> None:
    """Agent identifiers, UAIDs and ERC-8092 trust associations"""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command(name="version")
def version_command() -> None:
    """Show version information."""
    from agentic_trust import __version__

    console.print(f"[bold]agentic-trust[/bold] v{__version__}")


# ------------------------------------------------------------------
# did command group
# ------------------------------------------------------------------


@cli.group(name="did")
def did_group() -> None:
    """Parse and build decentralized identifiers."""


@did_group.command(name="parse")
@click.argument("raw")
@click.option("--json", "as_json", is_flag=True, help="Print the parsed fields as JSON.")
def did_parse_command(raw: str, as_json: bool) -> None:
    """Parse RAW and show its fields."""
    from dataclasses import asdict

    from agentic_trust.did import parse_did

    try:
        did = parse_did(raw)
    except AgenticTrustError as exc:
        _fail(exc)
        return

    fields = {"method": did.method, **asdict(did)}
    if as_json:
        _emit(json.dumps(fields))
        return

    table = Table(title=str(did), show_header=True)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    for key, value in fields.items():
        if value is not None:
            table.add_row(key, escape(str(value)))
    console.print(table)


@did_group.command(name="build-8004")
@click.argument("chain_id", type=int)
@click.argument("agent_id")
@click.option("--namespace", default=None, help="Optional namespace segment (e.g. eip155).")
@click.option("--fragment", default=None, help="Optional #fragment.")
@click.option("--encode", is_flag=True, help="Percent-encode the result.")
def build_8004_command(
    chain_id: int,
    agent_id: str,
    namespace: Optional[str],
    fragment: Optional[str],
    encode: bool,
) -> None:
    """Build did:8004:CHAIN_ID:AGENT_ID."""
    from agentic_trust.did import build_did_8004

    try:
        _emit(build_did_8004(chain_id, agent_id, namespace=namespace, fragment=fragment, encode=encode))
    except AgenticTrustError as exc:
        _fail(exc)


@did_group.command(name="build-ens")
@click.argument("chain_id", type=int)
@click.argument("ens_name")
def build_ens_command(chain_id: int, ens_name: str) -> None:
    """Build did:ens:CHAIN_ID:ENS_NAME."""
    from agentic_trust.did import build_ens_did

    try:
        _emit(build_ens_did(chain_id, ens_name))
    except AgenticTrustError as exc:
        _fail(exc)


@did_group.command(name="build-ethr")
@click.argument("chain_id", type=int)
@click.argument("account")
def build_ethr_command(chain_id: int, account: str) -> None:
    """Build did:ethr:CHAIN_ID:ACCOUNT (account checksummed)."""
    from agentic_trust.did import build_ethr_did

    try:
        _emit(build_ethr_did(chain_id, account))
    except AgenticTrustError as exc:
        _fail(exc)


# ------------------------------------------------------------------
# uaid command group
# ------------------------------------------------------------------


@cli.group(name="uaid")
def uaid_group() -> None:
    """Generate and parse HCS-14 UAIDs."""


def _parse_routing(pairs: tuple[str, ...]) -> dict[str, str]:
    routing: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise click.BadParameter(f"expected key=value, got {pair!r}", param_hint="--route")
        routing[key.strip()] = value
    return routing


@uaid_group.command(name="generate")
@click.argument("target_did")
@click.option(
    "--route",
    "-r",
    "routes",
    multiple=True,
    help="Routing parameter as key=value (repeatable, order preserved).",
)
def uaid_generate_command(target_did: str, routes: tuple[str, ...]) -> None:
    """Wrap TARGET_DID in a uaid:did: identifier."""
    from agentic_trust.did import generate_hcs14_uaid_did_target

    routing = _parse_routing(routes)
    try:
        _emit(generate_hcs14_uaid_did_target(target_did, routing))
    except AgenticTrustError as exc:
        _fail(exc)


@uaid_group.command(name="parse")
@click.argument("uaid")
def uaid_parse_command(uaid: str) -> None:
    """Show the target DID and routing parameters of UAID."""
    from agentic_trust.did import parse_hcs14_uaid_did_target

    try:
        parsed = parse_hcs14_uaid_did_target(uaid)
    except AgenticTrustError as exc:
        _fail(exc)
        return

    _emit(json.dumps({"targetDid": parsed.target_did, "routing": parsed.routing}))


# ------------------------------------------------------------------
# assoc command group
# ------------------------------------------------------------------


@cli.group(name="assoc")
def assoc_group() -> None:
    """Encode and decode ERC-8092 association data."""


@assoc_group.command(name="encode")
@click.argument("assoc_type", type=int)
@click.argument("description")
def assoc_encode_command(assoc_type: int, description: str) -> None:
    """ABI-encode (ASSOC_TYPE, DESCRIPTION) as 0x hex."""
    from agentic_trust.associations import encode_association_data_hex

    try:
        _emit(encode_association_data_hex(assoc_type, description))
    except AgenticTrustError as exc:
        _fail(exc)


@assoc_group.command(name="decode")
@click.argument("data")
def assoc_decode_command(data: str) -> None:
    """Decode 0x-hex association DATA."""
    from agentic_trust.associations import assoc_type_label, decode_association_data

    decoded = decode_association_data(data)
    if decoded is None:
        console.print("[red]Error:[/red] not valid (uint8,string) association data")
        sys.exit(1)
    _emit(json.dumps({**decoded.to_dict(), "label": assoc_type_label(decoded.assoc_type)}))


# ------------------------------------------------------------------
# proxy command group
# ------------------------------------------------------------------


@cli.group(name="proxy")
def proxy_group() -> None:
    """Contract proxy discovery."""


@proxy_group.command(name="pick")
@click.argument("candidates", nargs=-1)
@click.option("--rpc-url", default=None, help="JSON-RPC endpoint (default: AGENTIC_TRUST_RPC_URL).")
@click.option(
    "--require-delegation-config",
    is_flag=True,
    help="Also require the SC-delegation accessors.",
)
def proxy_pick_command(
    candidates: tuple[str, ...],
    rpc_url: Optional[str],
    require_delegation_config: bool,
) -> None:
    """Print the first compatible AssociationsStore among CANDIDATES.

    Candidates default to AGENTIC_TRUST_ASSOCIATIONS_PROXY_CANDIDATES.
    """
    from agentic_trust.adapters import Web3ChainReader
    from agentic_trust.associations import AssociationsStoreLocator
    from agentic_trust.config import Settings

    try:
        settings = Settings.from_env()
    except ValidationError as exc:
        _fail(exc)
        return

    url = rpc_url or settings.rpc_url
    if not url:
        console.print("[red]Error:[/red] --rpc-url or AGENTIC_TRUST_RPC_URL is required")
        sys.exit(1)
    locator = AssociationsStoreLocator(Web3ChainReader(url), settings)

    try:
        picked = asyncio.run(
            locator.pick(
                list(candidates) or None,
                require_delegation_config=True if require_delegation_config else None,
            )
        )
    except AgenticTrustError as exc:
        _fail(exc)
        return
    _emit(picked)


# ------------------------------------------------------------------
# validation command group
# ------------------------------------------------------------------


@cli.group(name="validation")
def validation_group() -> None:
    """Validation request lookups."""


@validation_group.command(name="match")
@click.argument("summary_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--validator-address", "-a", required=True, help="Validator account address.")
def validation_match_command(summary_file: Path, validator_address: str) -> None:
    """Show the latest request for a validator in SUMMARY_FILE (JSON)."""
    from agentic_trust.validation import (
        AuthorizationRequestSummary,
        count_by_address,
        match_by_address,
    )

    try:
        raw = json.loads(summary_file.read_text(encoding="utf-8"))
        summary = AuthorizationRequestSummary.from_raw(raw)
        latest = match_by_address(summary, validator_address)
        total = count_by_address(summary, validator_address)
    except (json.JSONDecodeError, ValidationError, ValueError, TypeError) as exc:
        _fail(exc)
        return

    _emit(
        json.dumps(
            {
                "validatorAddress": validator_address,
                "request": latest.model_dump() if latest else None,
                "totalRequests": total,
            }
        )
    )


if __name__ == "__main__":
    cli()
