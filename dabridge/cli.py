"""
dabridge CLI.

  dabridge post [--file PATH]        submit a blob, print where it landed
  dabridge prove HEIGHT              assemble verification data for a height
  dabridge run --state-root ... --rollup-block-hash ... --block-number N [--file PATH]
                                     post -> prove -> pack -> settle

Settings come from DABRIDGE_* environment variables (see dabridge.config);
flags override them. `--json` switches every command to machine-readable
output.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, Optional

import typer

from .chain import Web3ChainClient, connect
from .config import BridgeConfig, load_config_from_env
from .errors import ConfigError, DABridgeError
from .orchestrator import run_pipeline
from .poster import BlobPoster
from .prover import ProofAssembler
from .rpc.celestia import CelestiaRpcClient
from .submitter import SettlementSubmitter, SubmissionResult
from .utils.bytes import from_hex
from .version import __version__
from .wallet import signing_account

app = typer.Typer(help="Post rollup data to a DA layer and settle its inclusion proof on L1.")


class _Ctx:
    json_output: bool = False
    overrides: Dict[str, Any] = {}


_ctx = _Ctx()


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _config(**overrides: Any) -> BridgeConfig:
    merged = dict(_ctx.overrides)
    merged.update({k: v for k, v in overrides.items() if v is not None})
    cfg = load_config_from_env(overrides=merged)
    _configure_logging(cfg.log_level)
    return cfg


def _da_client(cfg: BridgeConfig) -> CelestiaRpcClient:
    token = cfg.da_auth_token.reveal() if cfg.da_auth_token else None
    return CelestiaRpcClient(cfg.da_url, auth_token=token, timeout=cfg.http_timeout)


def _emit(payload: Dict[str, Any], human: str) -> None:
    if _ctx.json_output:
        typer.echo(json.dumps(payload, indent=2, sort_keys=True))
    else:
        typer.echo(human)


def _fail(e: Exception) -> None:
    if _ctx.json_output and isinstance(e, DABridgeError):
        typer.echo(json.dumps(e.to_problem(), indent=2), err=True)
    else:
        typer.echo(f"Error: {e}", err=True)
    raise typer.Exit(1)


def _read_payload(input_file: Optional[Path]) -> bytes:
    if input_file:
        return input_file.read_bytes()
    return sys.stdin.buffer.read()


def _bytes32_option(name: str, value: str) -> bytes:
    try:
        raw = from_hex(value)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint=name) from e
    if len(raw) != 32:
        raise typer.BadParameter(f"must be 32 bytes, got {len(raw)}", param_hint=name)
    return raw


def _submission_json(result: SubmissionResult) -> Dict[str, Any]:
    return {
        "success": result.success,
        "stage": result.stage.value,
        "tx_hash": result.tx_hash,
        "gas_limit": result.gas_limit,
        "funds_at_risk": result.funds_at_risk,
        "error": result.error.to_problem() if result.error else None,
    }


@app.callback()
def main_callback(
    json_output: bool = typer.Option(False, "--json", help="Output JSON instead of human-readable text"),
    namespace: Optional[str] = typer.Option(None, "--namespace", help="Namespace (hex v0 id or 29-byte hex)"),
    da_url: Optional[str] = typer.Option(None, "--da-url", help="DA node JSON-RPC URL"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="DEBUG, INFO, WARNING, ..."),
) -> None:
    """
    dabridge: DA blob -> inclusion proof -> L1 settlement.
    """
    _ctx.json_output = json_output
    _ctx.overrides = {"namespace": namespace, "da_url": da_url, "log_level": log_level}


@app.command()
def version() -> None:
    """Print the dabridge version."""
    typer.echo(__version__)


@app.command()
def post(
    input_file: Optional[Path] = typer.Option(None, "--file", "-f", help="Input file (default: read from stdin)"),
) -> None:
    """Submit a blob under the configured namespace and print its span."""

    async def _run(cfg: BridgeConfig, data: bytes):
        async with _da_client(cfg) as da:
            return await BlobPoster(da, cfg.require_namespace()).submit(data)

    try:
        cfg = _config()
        data = _read_payload(input_file)
        if not data:
            typer.echo("Error: no data provided", err=True)
            raise typer.Exit(1)
        span = asyncio.run(_run(cfg, data))
    except typer.Exit:
        raise
    except (DABridgeError, ValueError, OSError) as e:
        _fail(e)
        return

    _emit(
        asdict(span),
        f"height={span.height} start_index={span.start_index} data_len={span.data_len}",
    )


@app.command()
def prove(
    height: int = typer.Argument(..., help="DA block height"),
    merkle_source: Optional[str] = typer.Option(None, "--merkle-source", help="commitment or row"),
) -> None:
    """Assemble the verification data for the namespace at HEIGHT."""

    async def _run(cfg: BridgeConfig):
        async with _da_client(cfg) as da:
            assembler = ProofAssembler(da, cfg.require_namespace(), merkle_source=cfg.merkle_source)
            return await assembler.assemble(height)

    try:
        cfg = _config(merkle_source=merkle_source)
        vd = asyncio.run(_run(cfg))
    except DABridgeError as e:
        _fail(e)
        return

    _emit(
        vd.to_json(),
        "\n".join(
            [
                f"height:        {vd.data_root_tuple.height}",
                f"data root:     0x{vd.data_root_tuple.data_root.hex()}",
                f"share range:   start={vd.start_index} len={vd.data_len}",
                f"row proofs:    {len(vd.shares_proof.row_proofs)}",
                f"siblings:      {len(vd.binary_proof.siblings)}",
            ]
        ),
    )


@app.command()
def run(
    state_root: str = typer.Option(..., "--state-root", help="Rollup state root (32-byte hex)"),
    rollup_block_hash: str = typer.Option(..., "--rollup-block-hash", help="Rollup block hash (32-byte hex)"),
    block_number: int = typer.Option(..., "--block-number", help="Rollup block number"),
    nonce: Optional[int] = typer.Option(None, "--nonce", help="Attestation nonce (default: block number)"),
    input_file: Optional[Path] = typer.Option(None, "--file", "-f", help="Input file (default: read from stdin)"),
    zk_proof_file: Optional[Path] = typer.Option(None, "--zk-proof", help="File holding the opaque ZK proof"),
    contract: Optional[str] = typer.Option(None, "--contract", help="Settlement contract address"),
    eth_rpc_url: Optional[str] = typer.Option(None, "--eth-rpc-url", help="Settlement chain RPC URL"),
) -> None:
    """Post a blob, prove its inclusion and submit the proof to the settlement contract."""
    sr = _bytes32_option("--state-root", state_root)
    rbh = _bytes32_option("--rollup-block-hash", rollup_block_hash)

    try:
        cfg = _config(contract_address=contract, eth_rpc_url=eth_rpc_url)
        cfg.require_settlement()
        namespace = cfg.require_namespace()
        payload = _read_payload(input_file)
        if not payload:
            typer.echo("Error: no data provided", err=True)
            raise typer.Exit(1)
        zk_proof = zk_proof_file.read_bytes() if zk_proof_file else b""

        chain = Web3ChainClient(connect(cfg.eth_rpc_url, timeout=cfg.http_timeout))
        remote_chain_id = chain.chain_id()
        if remote_chain_id != cfg.chain_id:
            raise ConfigError(f"settlement RPC reports chain id {remote_chain_id}, expected {cfg.chain_id}")

        with signing_account(cfg) as account:
            submitter = SettlementSubmitter(
                chain,
                account,
                cfg.contract_address,
                chain_id=cfg.chain_id,
                gas_headroom=cfg.gas_headroom,
                max_fee_per_gas=cfg.max_fee_per_gas,
                max_priority_fee_per_gas=cfg.max_priority_fee_per_gas,
                receipt_timeout=cfg.receipt_timeout,
            )

            async def _run():
                async with _da_client(cfg) as da:
                    return await run_pipeline(
                        da,
                        submitter,
                        namespace,
                        payload,
                        state_root=sr,
                        rollup_block_hash=rbh,
                        block_number=block_number,
                        nonce=nonce,
                        zk_proof=zk_proof,
                        settle_delay=cfg.settle_delay,
                        merkle_source=cfg.merkle_source,
                    )

            result = asyncio.run(_run())
    except typer.Exit:
        raise
    except (DABridgeError, ValueError, OSError) as e:
        _fail(e)
        return

    sub = result.submission
    _emit(
        {
            "span": asdict(result.span),
            "verification": result.verification.to_json(),
            "submission": _submission_json(sub),
        },
        "\n".join(
            [
                f"posted:    height={result.span.height} start_index={result.span.start_index} data_len={result.span.data_len}",
                f"settled:   {'yes' if sub.success else 'no'} (stage={sub.stage.value})",
                f"tx hash:   {sub.tx_hash or '-'}",
            ]
            + ([f"error:     {sub.error}"] if sub.error else [])
            + (["warning:   transaction was broadcast; check its status before retrying"] if not sub.success and sub.funds_at_risk else [])
        ),
    )
    if not sub.success:
        raise typer.Exit(1)


def main() -> None:
    """Entry point for the dabridge CLI."""
    app()


if __name__ == "__main__":
    main()
