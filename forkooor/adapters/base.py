# adapters/base.py
from abc import ABC
from typing import Any, Dict, Optional

from eth_utils import to_checksum_address

from forkooor.abis import ERC20_ABI
from forkooor.config import get_address, get_asset_info
from forkooor.wallets import DSProxyWallet, get_sender, is_contract


def to_json(value: Any) -> Any:
    """Integers as decimal strings, bytes as hex; lists/tuples/dicts recursively."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    if isinstance(value, dict):
        return {k: to_json(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json(v) for v in value]
    return value


class PositionAdapter(ABC):
    """
    Base class for protocol position adapters.
    Bound to one ForkSession; chain specifics come from the chain address book.
    """
    protocol: str = ""
    version: str = ""

    def __init__(self, session):
        self.session = session

    @property
    def chain_id(self) -> int:
        return self.session.chain_id

    def address(self, key: str) -> str:
        return get_address(self.chain_id, key)

    def asset(self, symbol: str) -> Dict[str, Any]:
        return get_asset_info(symbol, self.chain_id)

    def view(self, key: str, abi):
        return self.session.contract(self.address(key), abi)

    def token_decimals(self, token: str) -> int:
        return int(self.session.contract(token, ERC20_ABI).functions.decimals().call())

    def wallet(self, owner: str, wallet_address: Optional[str] = None, use_safe: bool = False):
        return get_sender(self.session, owner, wallet_address, use_safe)

    def resolve_position_owner(self, user: str) -> str:
        """
        Positions live on the smart wallet. A contract address is used as is,
        an EOA is mapped to its DSProxy.
        """
        if is_contract(self.session, user):
            return to_checksum_address(user)
        return DSProxyWallet.get_or_build(self.session, user).address
