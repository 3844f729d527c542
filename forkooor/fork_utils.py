"""
Test-fork setup helpers: ETH/token top ups, bot auth, time travel, Safe thresholds.
"""

import logging
import secrets
from typing import Dict, List, Sequence

from eth_account import Account
from eth_utils import to_checksum_address

from forkooor.abis import BOT_AUTH_ABI
from forkooor.balances import encode_value, set_token_balance, top_up_account
from forkooor.config import get_address
from forkooor.wallets import get_addr_from_registry

logger = logging.getLogger(__name__)

BOT_TOP_UP_ETH = 100

# Safe: slot 4 holds `threshold`
SAFE_THRESHOLD_SLOT = "0x" + "00" * 31 + "04"

__all__ = [
    "top_up_account",
    "set_token_balance",
    "top_up_owner",
    "add_bot_caller",
    "set_up_bot_accounts",
    "time_travel",
    "set_time",
    "new_address",
    "lower_safes_threshold",
]


def top_up_owner(session) -> int:
    owner = get_address(session.chain_id, "OWNER_ACC")
    return top_up_account(session, owner, BOT_TOP_UP_ETH)


def add_bot_caller(session, bot: str) -> None:
    """BotAuth.addCaller(bot), sent by the DFS owner."""
    owner = get_address(session.chain_id, "OWNER_ACC")
    bot_auth = session.contract(get_addr_from_registry(session, "BotAuth"), BOT_AUTH_ABI)
    session.transact(bot_auth.functions.addCaller(to_checksum_address(bot)), owner,
                     description=f"BotAuth.addCaller {bot}")


def set_up_bot_accounts(session, bots: Sequence[str]) -> None:
    top_up_owner(session)
    for bot in bots:
        top_up_account(session, bot, BOT_TOP_UP_ETH)
        add_bot_caller(session, bot)
    logger.info("bot auth set for %s", list(bots))


def time_travel(session, seconds: int) -> Dict[str, int]:
    old = session.latest_timestamp()
    session.rpc("evm_increaseTime", [int(seconds)])
    session.mine()
    return {"oldTimestamp": old, "newTimestamp": session.latest_timestamp()}


def set_time(session, timestamp: int) -> Dict[str, int]:
    old = session.latest_timestamp()
    session.rpc("evm_setNextBlockTimestamp", [int(timestamp)])
    session.mine()
    return {"oldTimestamp": old, "newTimestamp": session.latest_timestamp()}


def new_address() -> str:
    """Address of a freshly generated (and discarded) private key."""
    return Account.create(secrets.token_hex(32)).address


def lower_safes_threshold(session, safes: List[str], thresholds: List[int]) -> None:
    if len(safes) != len(thresholds):
        raise ValueError("safes and thresholds must have the same length")

    for safe, threshold in zip(safes, thresholds):
        session.rpc("tenderly_setStorageAt", [safe, SAFE_THRESHOLD_SLOT, encode_value(int(threshold))])
        logger.info("threshold of Safe %s set to %s", safe, threshold)
    session.mine()
