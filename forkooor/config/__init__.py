"""
Static configuration shipped with the package.

- chains.yaml:  per chain address book and token list
- bundles.yaml: automation bundle ids keyed by (protocol, chain id, operation)

Both files are read once at import time; the helpers below are the only
way the rest of the code looks them up, so a missing entry always surfaces
as a LookupNotFoundError instead of a KeyError deep inside a handler.
"""

from pathlib import Path
from typing import Any, Dict

import yaml
from eth_utils import to_checksum_address

from forkooor.errors import LookupNotFoundError

CONFIG_DIR = Path(__file__).resolve().parent


def _load_yaml(name: str) -> Dict[str, Any]:
    path = CONFIG_DIR / name
    with path.open("r") as f:
        return yaml.safe_load(f) or {}


CHAIN_CFG = _load_yaml("chains.yaml")
CHAINS = CHAIN_CFG.get("chains", {})
BUNDLES = _load_yaml("bundles.yaml")

NULL_ADDRESS = "0x0000000000000000000000000000000000000000"


def chain_config(chain_id: int) -> Dict[str, Any]:
    cfg = CHAINS.get(int(chain_id))
    if cfg is None:
        raise LookupNotFoundError(f"Unknown chain id: {chain_id}")
    return cfg


def get_address(chain_id: int, key: str) -> str:
    """Address-book entry (e.g. 'REGISTRY_ADDR') for a chain."""
    addresses = chain_config(chain_id).get("addresses") or {}
    addr = addresses.get(key)
    if not addr:
        raise LookupNotFoundError(f"{key} is not configured for chain {chain_id}")
    return to_checksum_address(addr)


def get_asset_info(symbol: str, chain_id: int) -> Dict[str, Any]:
    """
    Token lookup by symbol (case-insensitive). ETH resolves to WETH.

    Returns:
        {'symbol': ..., 'address': ..., 'decimals': ...}
    """
    if symbol is None:
        raise LookupNotFoundError("Token symbol is required")
    wanted = "WETH" if symbol.upper() == "ETH" else symbol
    tokens = chain_config(chain_id).get("tokens") or {}

    for sym, info in tokens.items():
        if sym.lower() == wanted.lower():
            return {"symbol": sym, "address": to_checksum_address(info["address"]), "decimals": int(info["decimals"])}

    raise LookupNotFoundError(f"Unknown token {symbol} on chain {chain_id}")


def resolve_bundle_id(protocol: str, chain_id: int, operation: str) -> int:
    """Bundle id for (protocol, chain id, operation) from bundles.yaml."""
    bundle_id = (
        (BUNDLES.get(protocol) or {})
        .get(int(chain_id), {})
        .get(operation)
    )
    if bundle_id is None:
        raise LookupNotFoundError(
            f"No bundle id for {protocol} {operation} on chain {chain_id}"
        )
    return int(bundle_id)
