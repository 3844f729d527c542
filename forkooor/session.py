"""
Per-request handle on a fork / virtual testnet.

Every operation that touches a chain takes a ForkSession explicitly.
``bind`` builds a fresh web3 client for each call, so two requests bound
to different networks never share a provider.
"""

import logging
from typing import Any, List, Optional

from web3 import HTTPProvider, Web3

from forkooor.config.rpc_config import get_rpc_url
from forkooor.config.settings import settings
from forkooor.errors import RpcError, TransactionFailedError

logger = logging.getLogger(__name__)

DEFAULT_GAS = 5_000_000


class ForkSession:
    """web3 client bound to one fork RPC endpoint."""

    def __init__(self, rpc_url: str, w3: Optional[Web3] = None, timeout: Optional[int] = None):
        self.rpc_url = rpc_url
        if w3 is None:
            w3 = Web3(HTTPProvider(
                rpc_url,
                request_kwargs={"timeout": timeout or settings.rpc_timeout},
            ))
        self.w3 = w3
        self._chain_id = None

    def __repr__(self):
        return f"ForkSession({self.rpc_url!r})"

    @property
    def chain_id(self) -> int:
        if self._chain_id is None:
            self._chain_id = int(self.w3.eth.chain_id)
        return self._chain_id

    def contract(self, address: str, abi: List[dict]):
        return self.w3.eth.contract(address=Web3.to_checksum_address(address), abi=abi)

    def rpc(self, method: str, params: List[Any]) -> Any:
        """Raw JSON-RPC request; an error object in the response raises RpcError."""
        logger.debug("%s %s %s", self.rpc_url, method, params)
        response = self.w3.provider.make_request(method, params)
        error = response.get("error")
        if error:
            raise RpcError(method, error)
        return response.get("result")

    def mine(self) -> None:
        self.rpc("evm_mine", [])

    def latest_timestamp(self) -> int:
        return int(self.w3.eth.get_block("latest")["timestamp"])

    def get_balance(self, address: str) -> int:
        return int(self.w3.eth.get_balance(Web3.to_checksum_address(address)))

    def get_code(self, address: str) -> bytes:
        return bytes(self.w3.eth.get_code(Web3.to_checksum_address(address)))

    def call(self, to: str, data: bytes) -> bytes:
        """eth_call with raw calldata."""
        return bytes(self.w3.eth.call({"to": Web3.to_checksum_address(to), "data": data}))

    def transact(self, fn, sender: str, gas: int = DEFAULT_GAS, value: int = 0, description: str = ""):
        """
        Send a contract function call from an unlocked account and wait for it.

        Raises:
            TransactionFailedError: the transaction was mined with status 0
        """
        tx_hash = fn.transact({
            "from": Web3.to_checksum_address(sender),
            "gas": gas,
            "value": value,
        })
        receipt = self.w3.eth.wait_for_transaction_receipt(tx_hash)
        if receipt["status"] == 0:
            raise TransactionFailedError(Web3.to_hex(tx_hash), description)

        logger.info("tx %s mined in block %s %s", Web3.to_hex(tx_hash), receipt["blockNumber"], description)
        return receipt


def bind(network: str) -> ForkSession:
    """New session for a vnet RPC URL or a legacy fork id."""
    return ForkSession(get_rpc_url(network))
