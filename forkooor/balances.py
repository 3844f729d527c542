"""
ERC-20 / ETH balance overrides on a fork.

Token balances are minted by writing the holder's entry of the token's
balances mapping directly:

1. Resolve Synthetix style proxy tokens to the contract holding the mapping
   (``target()`` then ``tokenState()``), falling back to the token itself
2. Look up the mapping's slot index and layout in the storage slot table
3. Derive the storage key (Solidity and Vyper hash the pair in opposite order)
4. ``tenderly_setStorageAt`` + ``evm_mine``
5. Read ``balanceOf(holder)`` back; a mismatch is an error
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from eth_abi import encode
from eth_utils import is_address, keccak, to_checksum_address

from forkooor.abis import ERC20_ABI, PROXY_ERC20_ABI
from forkooor.errors import BalanceOverrideError
from forkooor.storage_slots import lookup_slot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProxyResolution:
    original_address: str
    resolved_address: str
    was_proxy: bool

    @classmethod
    def direct(cls, token: str) -> "ProxyResolution":
        return cls(token, token, False)

    @classmethod
    def proxied(cls, token: str, state: str) -> "ProxyResolution":
        return cls(token, state, True)


@dataclass(frozen=True)
class StorageWriteRequest:
    token_address: str
    holder_address: str
    storage_key: str
    value: str


def resolve_proxy_token(session, token: str) -> ProxyResolution:
    """Contract holding the balances mapping of ``token``. Read-only."""
    try:
        target = session.contract(token, PROXY_ERC20_ABI).functions.target().call()
        state = session.contract(target, PROXY_ERC20_ABI).functions.tokenState().call()
    except Exception as e:
        logger.debug("%s is not a proxy token: %s", token, e)
        return ProxyResolution.direct(token)

    if not state or not is_address(state):
        return ProxyResolution.direct(token)

    logger.debug("proxy token %s keeps balances in %s", token, state)
    return ProxyResolution.proxied(token, state)


def trim_leading_zero_nibbles(key: str) -> str:
    # "0x00ab.." -> "0xab..", one nibble per pass
    while key.startswith("0x0"):
        key = "0x" + key[3:]
    return key


def compute_storage_key(holder: str, slot_index: int, is_vyper: bool) -> str:
    """
    Storage key of ``balances[holder]`` for a mapping declared at ``slot_index``.

    Solidity: keccak(holder . slot), Vyper: keccak(slot . holder), both as
    uint256 words. Leading zero nibbles are trimmed from the hex result.
    """
    if not isinstance(holder, str) or not is_address(holder):
        raise ValueError(f"Invalid holder address: {holder!r}")
    if isinstance(slot_index, bool) or not isinstance(slot_index, int) or not 0 <= slot_index < 2 ** 256:
        raise ValueError(f"Invalid storage slot index: {slot_index!r}")

    holder_int = int(holder, 16)
    words = [slot_index, holder_int] if is_vyper else [holder_int, slot_index]
    digest = keccak(encode(["uint256", "uint256"], words))

    return trim_leading_zero_nibbles("0x" + digest.hex())


def encode_value(amount: int) -> str:
    """32-byte big-endian hex word."""
    return "0x" + encode(["uint256"], [amount]).hex()


def to_base_units(amount, decimals: int) -> int:
    """
    Scale a human readable amount (e.g. ``"1000.5"``) to token base units.

    Decimal arithmetic, so ``1000`` USDC is exactly ``1_000_000_000``.
    """
    try:
        value = Decimal(str(amount)) * (Decimal(10) ** int(decimals))
    except InvalidOperation:
        raise ValueError(f"Invalid amount: {amount!r}")

    if value < 0:
        raise ValueError(f"Amount must not be negative: {amount}")
    if value != value.to_integral_value():
        raise ValueError(f"Amount {amount} has more than {decimals} decimals")
    return int(value)


def write_storage(session, request: StorageWriteRequest) -> None:
    session.rpc("tenderly_setStorageAt", [request.token_address, request.storage_key, request.value])
    session.mine()


def set_token_balance(session, token: str, holder: str, amount) -> int:
    """
    Set ``token.balanceOf(holder)`` to ``amount`` (human units).

    Returns:
        New balance in base units

    Raises:
        StorageSlotNotFoundError: no slot entry for the token on this chain
        BalanceOverrideError: balanceOf does not match after the write
    """
    token = to_checksum_address(token)
    holder = to_checksum_address(holder)

    erc20 = session.contract(token, ERC20_ABI)
    value = to_base_units(amount, erc20.functions.decimals().call())

    resolution = resolve_proxy_token(session, token)
    entry = lookup_slot(session.chain_id, resolution.resolved_address)

    request = StorageWriteRequest(
        token_address=resolution.resolved_address,
        holder_address=holder,
        storage_key=compute_storage_key(holder, entry.slot_index, entry.is_vyper),
        value=encode_value(value),
    )
    write_storage(session, request)

    balance = erc20.functions.balanceOf(holder).call()
    if balance != value:
        raise BalanceOverrideError(
            f"Balance of {holder} for {token} is {balance} after override, expected {value}"
        )

    logger.info("set %s balance of %s to %s", token, holder, value)
    return value


def top_up_account(session, address: str, amount_eth) -> int:
    """Set the ETH balance of ``address``; returns the new balance in wei."""
    address = to_checksum_address(address)
    wei = to_base_units(amount_eth, 18)
    session.rpc("tenderly_setBalance", [[address], hex(wei)])

    balance = session.get_balance(address)
    if balance != wei:
        raise BalanceOverrideError(f"ETH balance of {address} is {balance} after top up, expected {wei}")

    logger.info("set ETH balance of %s to %s wei", address, wei)
    return wei
