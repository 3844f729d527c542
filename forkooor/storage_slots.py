"""
Balances-mapping storage slots per (chain id, token address).

The table is static data (config/storage_slots.json), loaded once at import.
Addresses are keyed lowercase so lookups are case-insensitive.
"""

import json
from dataclasses import dataclass
from typing import Dict, Tuple

from forkooor.config import CONFIG_DIR
from forkooor.errors import StorageSlotNotFoundError

SLOTS_FILE = CONFIG_DIR / "storage_slots.json"


@dataclass(frozen=True)
class TokenSlotEntry:
    slot_index: int
    is_vyper: bool


def _load_table(path=SLOTS_FILE) -> Dict[Tuple[int, str], TokenSlotEntry]:
    with open(path, "r") as f:
        raw = json.load(f)

    table = {}
    for chain_id, tokens in raw.items():
        for addr, entry in tokens.items():
            key = (int(chain_id), addr.lower())
            if key in table:
                raise ValueError(f"Duplicate storage slot entry for {addr} on chain {chain_id}")
            table[key] = TokenSlotEntry(slot_index=int(entry["num"]), is_vyper=bool(entry["isVyper"]))
    return table


STORAGE_SLOTS = _load_table()


def lookup_slot(chain_id: int, token_address: str, table=None) -> TokenSlotEntry:
    """Slot entry for a token, or StorageSlotNotFoundError."""
    table = STORAGE_SLOTS if table is None else table
    entry = table.get((int(chain_id), token_address.lower()))
    if entry is None:
        raise StorageSlotNotFoundError(token_address, chain_id)
    return entry
