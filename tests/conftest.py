"""
In-memory stand-in for ForkSession.

Contract reads are answered by handlers registered per (address, function
name); anything unregistered reverts. RPC calls, transactions and storage
writes are recorded so tests can assert on them.
"""

import pytest
from eth_utils import to_checksum_address

from forkooor.balances import compute_storage_key
from forkooor.errors import RpcError, TransactionFailedError

OWNER = "0x1111111111111111111111111111111111111111"
PROXY = "0x2222222222222222222222222222222222222222"
SAFE = "0x3333333333333333333333333333333333333333"
BOT = "0x4444444444444444444444444444444444444444"
HOLDER = "0x5555555555555555555555555555555555555555"

USDC = to_checksum_address("0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48")
CRVUSD = to_checksum_address("0xf939e0a03fb07f59a73314e73794be0e57ac1b4e")


class ContractReverted(Exception):
    pass


class FakeFunction:
    def __init__(self, session, address, name, args):
        self.session = session
        self.address = address
        self.name = name
        self.args = args

    def call(self):
        handler = self.session.handlers.get((self.address.lower(), self.name))
        if handler is None:
            raise ContractReverted(f"execution reverted: {self.name} on {self.address}")
        return handler(*self.args) if callable(handler) else handler


class FakeFunctions:
    def __init__(self, session, address):
        self._session = session
        self._address = address

    def __getattr__(self, name):
        return lambda *args: FakeFunction(self._session, self._address, name, args)


class FakeContract:
    def __init__(self, session, address):
        self.address = to_checksum_address(address)
        self.functions = FakeFunctions(session, self.address)


class FakeSession:
    def __init__(self, chain_id=1, rpc_url="https://virtual.mainnet.rpc.tenderly.co/test"):
        self.chain_id = chain_id
        self.rpc_url = rpc_url
        self.handlers = {}
        self.on_transact = {}
        self.storage = {}
        self.eth_balances = {}
        self.code = {}
        self.raw_calls = {}
        self.rpc_calls = []
        self.sent = []
        self.timestamp = 1_700_000_000
        self.next_timestamp = None
        self.blocks_mined = 0
        self.rpc_errors = {}
        self.revert_transactions = False

    # -- wiring helpers used by tests --

    def handle(self, address, name, handler):
        self.handlers[(address.lower(), name)] = handler

    def add_token(self, address, decimals, slot_index, is_vyper=False, state_address=None):
        """ERC-20 whose balanceOf reads the storage a balance override writes."""
        state = (state_address or address).lower()

        def balance_of(holder):
            key = compute_storage_key(holder, slot_index, is_vyper)
            return int(self.storage.get((state, key), "0x0"), 16)

        self.handle(address, "decimals", decimals)
        self.handle(address, "balanceOf", balance_of)

    # -- ForkSession surface --

    def contract(self, address, abi):
        return FakeContract(self, address)

    def rpc(self, method, params):
        self.rpc_calls.append((method, params))
        if method in self.rpc_errors:
            raise RpcError(method, self.rpc_errors[method])

        if method == "tenderly_setStorageAt":
            address, key, value = params
            self.storage[(address.lower(), key)] = value
        elif method == "tenderly_setBalance":
            addresses, value = params
            for address in addresses:
                self.eth_balances[address.lower()] = int(value, 16)
        elif method == "evm_increaseTime":
            self.next_timestamp = self.timestamp + params[0]
        elif method == "evm_setNextBlockTimestamp":
            self.next_timestamp = params[0]
        elif method == "evm_mine":
            self.blocks_mined += 1
            self.timestamp = self.next_timestamp or self.timestamp + 12
            self.next_timestamp = None
        return None

    def mine(self):
        self.rpc("evm_mine", [])

    def latest_timestamp(self):
        return self.timestamp

    def get_balance(self, address):
        return self.eth_balances.get(address.lower(), 0)

    def get_code(self, address):
        return self.code.get(address.lower(), b"")

    def call(self, to, data):
        return self.raw_calls[(to.lower(), bytes(data[:4]))]

    def transact(self, fn, sender, gas=5_000_000, value=0, description=""):
        self.sent.append({"to": fn.address, "name": fn.name, "args": fn.args, "from": sender, "gas": gas})
        if self.revert_transactions:
            raise TransactionFailedError("0x" + "ab" * 32, description)
        hook = self.on_transact.get((fn.address.lower(), fn.name))
        if hook is not None:
            hook(*fn.args)
        return {"status": 1, "blockNumber": 1}


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def registry(session):
    """
    DFS registry answering getAddr(id) from a name -> address map,
    plus a SubStorage whose count grows with every wallet execute.
    """
    from forkooor.config import get_address
    from forkooor.wallets import get_name_id

    contracts = {
        "RecipeExecutor": "0x6666666666666666666666666666666666666666",
        "SubStorage": "0x7777777777777777777777777777777777777777",
        "BotAuth": "0x8888888888888888888888888888888888888888",
    }
    by_id = {get_name_id(name): addr for name, addr in contracts.items()}
    session.handle(get_address(1, "REGISTRY_ADDR"), "getAddr",
                   lambda id_: by_id.get(bytes(id_), "0x" + "00" * 20))

    subs = {"count": 10}
    session.handle(contracts["SubStorage"], "getSubsCount", lambda: subs["count"])

    def bump(*args):
        subs["count"] += 1

    session.on_transact[(PROXY.lower(), "execute")] = bump
    session.on_transact[(SAFE.lower(), "execTransaction")] = bump
    contracts["subs"] = subs
    return contracts


@pytest.fixture
def dsproxy(session):
    """OWNER already has PROXY registered in the ProxyRegistry."""
    from forkooor.config import get_address

    session.handle(get_address(1, "PROXY_REGISTRY"), "proxies", lambda owner: PROXY)
    session.code[PROXY.lower()] = b"\x60\x80"
    return PROXY
