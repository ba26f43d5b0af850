"""
Scoped access to the settlement signing key.

    with signing_account(config) as account:
        submitter = SettlementSubmitter(chain, account, ...)
        submitter.submit(request)

The key is read from `DABRIDGE_PRIVATE_KEY` or decrypted from an Ethereum
V3 keystore file (`DABRIDGE_KEYSTORE_PATH` + `DABRIDGE_KEYSTORE_PASSWORD`)
only when the block is entered. Our copy of the raw key bytes is zeroed and
the account reference dropped when the block exits, error or not. The key
never appears in logs or reprs.
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from eth_account import Account
from eth_account.signers.local import LocalAccount

from .config import BridgeConfig
from .errors import ConfigError
from .utils.bytes import from_hex

log = logging.getLogger("dabridge.wallet")


def _load_key_bytes(config: BridgeConfig) -> bytearray:
    if config.private_key is not None:
        try:
            raw = from_hex(config.private_key.reveal().strip())
        except ValueError:
            # do not chain: the message could echo key material
            raise ConfigError("private key is not valid hex") from None
        if len(raw) != 32:
            raise ConfigError("private key must be 32 bytes")
        return bytearray(raw)

    if config.keystore_path:
        path = Path(config.keystore_path)
        if config.keystore_password is None:
            raise ConfigError("keystore password is not configured (DABRIDGE_KEYSTORE_PASSWORD)")
        try:
            keyfile = json.loads(path.read_text())
        except (OSError, ValueError) as e:
            raise ConfigError(f"cannot read keystore {path}: {e}") from e
        try:
            return bytearray(Account.decrypt(keyfile, config.keystore_password.reveal()))
        except ValueError:
            raise ConfigError(f"cannot decrypt keystore {path}") from None

    raise ConfigError("no signing key configured (DABRIDGE_PRIVATE_KEY or DABRIDGE_KEYSTORE_PATH)")


@contextmanager
def signing_account(config: BridgeConfig) -> Iterator[LocalAccount]:
    key = _load_key_bytes(config)
    account = None
    try:
        account = Account.from_key(bytes(key))
        log.info("signing key loaded", extra={"address": account.address})
        yield account
    finally:
        for i in range(len(key)):
            key[i] = 0
        del account


__all__ = ["signing_account"]
