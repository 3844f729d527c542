"""
Exception taxonomy.

Route handlers catch everything at the HTTP boundary and answer with
``{"error": "..."}``; the classes below only exist so callers (and tests)
can tell the failure kinds apart.
"""


class ForkooorError(Exception):
    """Base class for errors raised by this package."""


class LookupNotFoundError(ForkooorError, LookupError):
    """Unknown chain id, token symbol, market, bundle or similar static lookup."""


class StorageSlotNotFoundError(LookupNotFoundError):
    """No balances-mapping slot is known for a token on a chain."""

    def __init__(self, token: str, chain_id: int):
        self.token = token
        self.chain_id = chain_id
        super().__init__(f"Token balance not changeable : {token} - {chain_id}")


class RpcError(ForkooorError):
    """The node answered a JSON-RPC request with an error object."""

    def __init__(self, method: str, error):
        self.method = method
        self.error = error
        message = error.get("message") if isinstance(error, dict) else error
        super().__init__(f"{method} failed: {message}")


class BalanceOverrideError(ForkooorError):
    """A balance write did not produce the requested balance."""


class TransactionFailedError(ForkooorError):
    """A transaction was mined but reverted."""

    def __init__(self, tx_hash: str, description: str = ""):
        self.tx_hash = tx_hash
        suffix = f" ({description})" if description else ""
        super().__init__(f"Transaction {tx_hash} reverted{suffix}")


class TenderlyApiError(ForkooorError):
    """Unexpected response from the Tenderly management API."""
