"""
dabridge configuration.

Everything that used to be hardcoded (DA endpoint and token, namespace,
settlement RPC, contract address, signing key, gas policy) is injected here
from the environment, with optional keyword overrides (CLI flags). No
endpoint credentials or keys have defaults.

Environment variables (all optional unless the command needs them):

  # DA node
  DABRIDGE_DA_URL=http://127.0.0.1:26658
  DABRIDGE_DA_AUTH_TOKEN=<jwt>                 # secret
  DABRIDGE_NAMESPACE=deafbeef                  # hex: v0 id (<=10 bytes) or full 29 bytes
  DABRIDGE_HTTP_TIMEOUT=30
  DABRIDGE_MERKLE_SOURCE=commitment            # commitment | row
  DABRIDGE_SETTLE_DELAY=2                      # seconds between blob submit and proving

  # Settlement chain
  DABRIDGE_ETH_RPC_URL=http://127.0.0.1:8545
  DABRIDGE_CHAIN_ID=11155111
  DABRIDGE_CONTRACT_ADDRESS=0x...
  DABRIDGE_PRIVATE_KEY=0x...                   # secret; or keystore below
  DABRIDGE_KEYSTORE_PATH=./key.json
  DABRIDGE_KEYSTORE_PASSWORD=...               # secret
  DABRIDGE_GAS_HEADROOM=1.2
  DABRIDGE_MAX_FEE_GWEI=30
  DABRIDGE_PRIORITY_FEE_GWEI=2
  DABRIDGE_RECEIPT_TIMEOUT=120

  DABRIDGE_LOG_LEVEL=INFO
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

from eth_utils import to_checksum_address

from .errors import ConfigError
from .prover import MERKLE_SOURCES
from .types import Namespace

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")
GWEI = 10**9


class Secret:
    """
    String holder that never shows its value in repr/str/logs.

    Call `.reveal()` at the point of use.
    """

    __slots__ = ("_value",)

    def __init__(self, value: str) -> None:
        self._value = value

    def reveal(self) -> str:
        return self._value

    def __repr__(self) -> str:
        return "Secret('***')"

    __str__ = __repr__

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Secret) and other._value == self._value

    def __hash__(self) -> int:
        return hash(self._value)


@dataclass
class BridgeConfig:
    """
    Configuration for the DA -> settlement bridge.
    """

    da_url: str = "http://127.0.0.1:26658"
    da_auth_token: Optional[Secret] = None
    namespace: Optional[Namespace] = None
    http_timeout: float = 30.0
    merkle_source: str = "commitment"
    settle_delay: float = 2.0

    eth_rpc_url: str = "http://127.0.0.1:8545"
    chain_id: int = 11155111
    contract_address: str = ""
    private_key: Optional[Secret] = None
    keystore_path: Optional[str] = None
    keystore_password: Optional[Secret] = None
    gas_headroom: float = 1.2
    max_fee_gwei: float = 30.0
    priority_fee_gwei: float = 2.0
    receipt_timeout: float = 120.0

    log_level: str = "INFO"

    @property
    def max_fee_per_gas(self) -> int:
        return int(self.max_fee_gwei * GWEI)

    @property
    def max_priority_fee_per_gas(self) -> int:
        return int(self.priority_fee_gwei * GWEI)

    def require_namespace(self) -> Namespace:
        if self.namespace is None:
            raise ConfigError("namespace is not configured (DABRIDGE_NAMESPACE)")
        return self.namespace

    def require_settlement(self) -> None:
        if not self.contract_address:
            raise ConfigError("contract address is not configured (DABRIDGE_CONTRACT_ADDRESS)")
        if self.private_key is None and not self.keystore_path:
            raise ConfigError("no signing key configured (DABRIDGE_PRIVATE_KEY or DABRIDGE_KEYSTORE_PATH)")

    def to_dict(self) -> Dict[str, Any]:
        """Redacted view, safe to log."""
        return {
            "da_url": self.da_url,
            "da_auth_token": repr(self.da_auth_token) if self.da_auth_token else None,
            "namespace": str(self.namespace) if self.namespace else None,
            "http_timeout": self.http_timeout,
            "merkle_source": self.merkle_source,
            "settle_delay": self.settle_delay,
            "eth_rpc_url": self.eth_rpc_url,
            "chain_id": self.chain_id,
            "contract_address": self.contract_address,
            "private_key": repr(self.private_key) if self.private_key else None,
            "keystore_path": self.keystore_path,
            "gas_headroom": self.gas_headroom,
            "max_fee_gwei": self.max_fee_gwei,
            "priority_fee_gwei": self.priority_fee_gwei,
            "receipt_timeout": self.receipt_timeout,
            "log_level": self.log_level,
        }


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    val = os.getenv(name)
    if val is None or val == "":
        return default
    return val


def _parse_int(name: str, value: Any) -> int:
    s = str(value).strip().lower()
    try:
        return int(s, 16) if s.startswith("0x") else int(s, 10)
    except ValueError as e:
        raise ConfigError(f"invalid int for {name}: {value!r}") from e


def _parse_float(name: str, value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"invalid number for {name}: {value!r}") from e


def _secret(value: Any) -> Optional[Secret]:
    if value is None or value == "":
        return None
    return value if isinstance(value, Secret) else Secret(str(value))


def load_config_from_env(*, overrides: Optional[dict] = None) -> BridgeConfig:
    """
    Build a BridgeConfig from environment variables with optional overrides.
    """

    overrides = {k: v for k, v in (overrides or {}).items() if v is not None}

    def pick(key: str, env: str, default: Optional[str] = None) -> Any:
        return overrides[key] if key in overrides else _env(env, default)

    ns_raw = pick("namespace", "DABRIDGE_NAMESPACE")
    namespace: Optional[Namespace] = None
    if isinstance(ns_raw, Namespace):
        namespace = ns_raw
    elif ns_raw:
        try:
            namespace = Namespace.parse(str(ns_raw))
        except ValueError as e:
            raise ConfigError(f"invalid namespace {ns_raw!r}: {e}") from e

    merkle_source = str(pick("merkle_source", "DABRIDGE_MERKLE_SOURCE", "commitment")).lower()
    if merkle_source not in MERKLE_SOURCES:
        raise ConfigError(f"merkle source must be one of {MERKLE_SOURCES}, got {merkle_source!r}")

    contract_address = str(pick("contract_address", "DABRIDGE_CONTRACT_ADDRESS", "") or "")
    if contract_address:
        if not _ADDRESS_RE.match(contract_address):
            raise ConfigError(f"invalid contract address {contract_address!r}")
        # signers and web3 only accept EIP-55 checksummed addresses
        contract_address = to_checksum_address(contract_address)

    cfg = BridgeConfig(
        da_url=str(pick("da_url", "DABRIDGE_DA_URL", "http://127.0.0.1:26658")),
        da_auth_token=_secret(pick("da_auth_token", "DABRIDGE_DA_AUTH_TOKEN")),
        namespace=namespace,
        http_timeout=_parse_float("http_timeout", pick("http_timeout", "DABRIDGE_HTTP_TIMEOUT", "30")),
        merkle_source=merkle_source,
        settle_delay=_parse_float("settle_delay", pick("settle_delay", "DABRIDGE_SETTLE_DELAY", "2")),
        eth_rpc_url=str(pick("eth_rpc_url", "DABRIDGE_ETH_RPC_URL", "http://127.0.0.1:8545")),
        chain_id=_parse_int("chain_id", pick("chain_id", "DABRIDGE_CHAIN_ID", "11155111")),
        contract_address=contract_address,
        private_key=_secret(pick("private_key", "DABRIDGE_PRIVATE_KEY")),
        keystore_path=pick("keystore_path", "DABRIDGE_KEYSTORE_PATH"),
        keystore_password=_secret(pick("keystore_password", "DABRIDGE_KEYSTORE_PASSWORD")),
        gas_headroom=_parse_float("gas_headroom", pick("gas_headroom", "DABRIDGE_GAS_HEADROOM", "1.2")),
        max_fee_gwei=_parse_float("max_fee_gwei", pick("max_fee_gwei", "DABRIDGE_MAX_FEE_GWEI", "30")),
        priority_fee_gwei=_parse_float("priority_fee_gwei", pick("priority_fee_gwei", "DABRIDGE_PRIORITY_FEE_GWEI", "2")),
        receipt_timeout=_parse_float("receipt_timeout", pick("receipt_timeout", "DABRIDGE_RECEIPT_TIMEOUT", "120")),
        log_level=str(pick("log_level", "DABRIDGE_LOG_LEVEL", "INFO")).upper(),
    )

    if cfg.gas_headroom < 1.0:
        raise ConfigError("gas_headroom must be >= 1.0")
    if cfg.priority_fee_gwei > cfg.max_fee_gwei:
        raise ConfigError("priority fee must not exceed max fee")
    if cfg.settle_delay < 0 or cfg.http_timeout <= 0 or cfg.receipt_timeout <= 0:
        raise ConfigError("delays and timeouts must be positive")
    return cfg


__all__ = ["BridgeConfig", "Secret", "load_config_from_env", "GWEI"]
