import pytest
from eth_utils import keccak

from forkooor.config import get_address
from forkooor.errors import LookupNotFoundError, TransactionFailedError
from forkooor.wallets import (
    MAX_UINT256,
    DSProxyWallet,
    SafeWallet,
    approve,
    get_addr_from_registry,
    get_name_id,
    get_sender,
    is_contract,
)

from conftest import OWNER, PROXY, SAFE, USDC


def test_name_id():
    assert get_name_id("RecipeExecutor") == keccak(text="RecipeExecutor")[:4]
    assert len(get_name_id("SubStorage")) == 4


def test_registry_lookup(session, registry):
    assert get_addr_from_registry(session, "RecipeExecutor") == registry["RecipeExecutor"]
    with pytest.raises(LookupNotFoundError):
        get_addr_from_registry(session, "NotRegistered")


def test_existing_dsproxy_is_reused(session, dsproxy):
    wallet = get_sender(session, OWNER)
    assert isinstance(wallet, DSProxyWallet)
    assert wallet.address == PROXY
    assert session.sent == []


def test_dsproxy_is_built_when_missing(session):
    registry = get_address(1, "PROXY_REGISTRY")
    proxies = {}
    session.handle(registry, "proxies", lambda owner: proxies.get(owner, "0x" + "00" * 20))
    session.on_transact[(registry.lower(), "build")] = lambda owner: proxies.update({owner: PROXY})

    wallet = DSProxyWallet.get_or_build(session, OWNER)

    assert wallet.address == PROXY
    assert session.sent[0]["name"] == "build"
    assert session.sent[0]["from"] == OWNER


def test_dsproxy_execute(session):
    wallet = DSProxyWallet(session, PROXY, OWNER)
    wallet.execute(USDC, b"\x12\x34")

    tx = session.sent[0]
    assert tx["to"] == PROXY
    assert tx["name"] == "execute"
    assert tx["args"] == (USDC, b"\x12\x34")
    assert tx["from"] == OWNER


def test_safe_execute_is_delegatecall_with_owner_signature(session):
    wallet = SafeWallet(session, SAFE, OWNER)
    wallet.execute(USDC, b"\xab")

    tx = session.sent[0]
    assert tx["name"] == "execTransaction"
    to, value, data, operation = tx["args"][:4]
    assert (to, value, data, operation) == (USDC, 0, b"\xab", 1)

    signature = tx["args"][-1]
    assert len(signature) == 65
    assert signature[:32] == bytes(12) + bytes.fromhex(OWNER[2:])
    assert signature[32:64] == bytes(32)
    assert signature[64] == 1


def test_get_sender_with_address(session):
    assert isinstance(get_sender(session, OWNER, SAFE, use_safe=True), SafeWallet)
    assert isinstance(get_sender(session, OWNER, PROXY), DSProxyWallet)


def test_get_sender_safe_needs_address(session):
    with pytest.raises(ValueError):
        get_sender(session, OWNER, use_safe=True)


def test_is_contract(session, dsproxy):
    assert is_contract(session, PROXY)
    assert not is_contract(session, OWNER)


def test_approve_only_when_allowance_is_zero(session):
    allowance = {"value": 0}
    session.handle(USDC, "allowance", lambda owner, spender: allowance["value"])

    approve(session, USDC, PROXY, OWNER)
    assert session.sent[0]["name"] == "approve"
    assert session.sent[0]["args"] == (PROXY, MAX_UINT256)

    allowance["value"] = 1
    approve(session, USDC, PROXY, OWNER)
    assert len(session.sent) == 1


def test_reverted_transaction_raises(session):
    session.revert_transactions = True
    with pytest.raises(TransactionFailedError):
        DSProxyWallet(session, PROXY, OWNER).execute(USDC, b"")
