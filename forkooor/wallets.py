"""
Smart wallets (DSProxy / Safe) and the DFS contract registry.

Transactions are sent from the wallet owner, which the virtual testnet
lets us impersonate; the wallet then delegatecalls into the target.
"""

import logging
from typing import Optional

from eth_utils import keccak, to_checksum_address

from forkooor.abis import (
    DFS_REGISTRY_ABI,
    DS_PROXY_ABI,
    ERC20_ABI,
    PROXY_REGISTRY_ABI,
    SAFE_ABI,
)
from forkooor.config import NULL_ADDRESS, get_address
from forkooor.errors import LookupNotFoundError

logger = logging.getLogger(__name__)

MAX_UINT256 = 2 ** 256 - 1

SAFE_OPERATION_DELEGATECALL = 1


def get_name_id(name: str) -> bytes:
    """DFS registry id: first 4 bytes of keccak(name)."""
    return keccak(text=name)[:4]


def get_addr_from_registry(session, name: str) -> str:
    registry = session.contract(get_address(session.chain_id, "REGISTRY_ADDR"), DFS_REGISTRY_ABI)
    addr = registry.functions.getAddr(get_name_id(name)).call()
    if not addr or int(addr, 16) == 0:
        raise LookupNotFoundError(f"{name} is not registered on chain {session.chain_id}")
    return addr


def is_contract(session, address: str) -> bool:
    return len(session.get_code(address)) > 0


class DSProxyWallet:
    """DSProxy owned by an EOA."""

    kind = "dsproxy"

    def __init__(self, session, address: str, owner: str):
        self.session = session
        self.address = to_checksum_address(address)
        self.owner = to_checksum_address(owner)

    @classmethod
    def get_or_build(cls, session, owner: str) -> "DSProxyWallet":
        registry = session.contract(get_address(session.chain_id, "PROXY_REGISTRY"), PROXY_REGISTRY_ABI)
        proxy = registry.functions.proxies(owner).call()

        if int(proxy, 16) == 0:
            logger.info("building DSProxy for %s", owner)
            session.transact(registry.functions.build(owner), owner, description="DSProxy build")
            proxy = registry.functions.proxies(owner).call()

        return cls(session, proxy, owner)

    def execute(self, target: str, data: bytes, gas: int = 5_000_000):
        proxy = self.session.contract(self.address, DS_PROXY_ABI)
        fn = proxy.functions.execute(to_checksum_address(target), data)
        return self.session.transact(fn, self.owner, gas=gas, description=f"DSProxy.execute -> {target}")


class SafeWallet:
    """
    Existing Safe with the owner able to execute alone.

    The signature is the pre-validated form (r = owner, s = 0, v = 1),
    accepted because the owner itself sends execTransaction. Threshold must
    be 1 (see fork_utils.lower_safes_threshold).
    """

    kind = "safe"

    def __init__(self, session, address: str, owner: str):
        self.session = session
        self.address = to_checksum_address(address)
        self.owner = to_checksum_address(owner)

    def signature(self) -> bytes:
        owner_word = bytes(12) + bytes.fromhex(self.owner[2:])
        return owner_word + bytes(32) + b"\x01"

    def execute(self, target: str, data: bytes, gas: int = 5_000_000):
        safe = self.session.contract(self.address, SAFE_ABI)
        fn = safe.functions.execTransaction(
            to_checksum_address(target),
            0,
            data,
            SAFE_OPERATION_DELEGATECALL,
            0,
            0,
            0,
            NULL_ADDRESS,
            NULL_ADDRESS,
            self.signature(),
        )
        return self.session.transact(fn, self.owner, gas=gas, description=f"Safe.execTransaction -> {target}")


def get_sender(session, owner: str, wallet_address: Optional[str] = None, use_safe: bool = False):
    """
    Wallet used to act for ``owner``.

    Without an explicit wallet the owner's DSProxy is used (built if
    missing). Safes are never deployed here, so ``use_safe`` needs the Safe's
    address.
    """
    if wallet_address:
        if use_safe:
            return SafeWallet(session, wallet_address, owner)
        return DSProxyWallet(session, wallet_address, owner)

    if use_safe:
        raise ValueError("Safe deployment is not supported, pass the address of an existing Safe")

    return DSProxyWallet.get_or_build(session, owner)


def approve(session, token: str, spender: str, owner: str) -> None:
    """Unlimited approval of ``spender`` when the current allowance is zero."""
    erc20 = session.contract(token, ERC20_ABI)
    if erc20.functions.allowance(owner, spender).call() == 0:
        session.transact(erc20.functions.approve(to_checksum_address(spender), MAX_UINT256), owner,
                         description=f"approve {token}")
