import pytest
from eth_utils import is_checksum_address

from forkooor.config import get_address
from forkooor.fork_utils import (
    BOT_TOP_UP_ETH,
    SAFE_THRESHOLD_SLOT,
    add_bot_caller,
    lower_safes_threshold,
    new_address,
    set_time,
    set_up_bot_accounts,
    time_travel,
)

from conftest import BOT, SAFE


def test_set_up_bot_accounts(session, registry):
    set_up_bot_accounts(session, [BOT])

    owner = get_address(1, "OWNER_ACC")
    wei = BOT_TOP_UP_ETH * 10 ** 18
    assert session.get_balance(owner) == wei
    assert session.get_balance(BOT) == wei

    tx = session.sent[0]
    assert tx["name"] == "addCaller"
    assert tx["to"].lower() == registry["BotAuth"].lower()
    assert tx["args"] == (BOT,)
    assert tx["from"] == owner


def test_add_bot_caller_needs_bot_auth(session):
    from forkooor.errors import LookupNotFoundError

    session.handle(get_address(1, "REGISTRY_ADDR"), "getAddr", "0x" + "00" * 20)
    with pytest.raises(LookupNotFoundError):
        add_bot_caller(session, BOT)


def test_time_travel_mines(session):
    result = time_travel(session, 3600)

    assert result == {"oldTimestamp": 1_700_000_000, "newTimestamp": 1_700_003_600}
    assert [m for m, _ in session.rpc_calls] == ["evm_increaseTime", "evm_mine"]


def test_set_time(session):
    result = set_time(session, 1_800_000_000)
    assert result["newTimestamp"] == 1_800_000_000
    assert session.rpc_calls[0] == ("evm_setNextBlockTimestamp", [1_800_000_000])


def test_new_address_is_fresh():
    first, second = new_address(), new_address()
    assert is_checksum_address(first)
    assert first != second


def test_lower_safes_threshold(session):
    other_safe = "0x3333333333333333333333333333333333333334"
    lower_safes_threshold(session, [SAFE, other_safe], [1, 2])

    assert int(session.storage[(SAFE.lower(), SAFE_THRESHOLD_SLOT)], 16) == 1
    assert int(session.storage[(other_safe.lower(), SAFE_THRESHOLD_SLOT)], 16) == 2
    assert session.blocks_mined == 1


def test_lower_safes_threshold_length_mismatch(session):
    with pytest.raises(ValueError):
        lower_safes_threshold(session, [SAFE], [1, 1])
    assert session.rpc_calls == []
