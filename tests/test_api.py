import pytest
from fastapi.testclient import TestClient

from forkooor.adapters.positions.aave_v3 import AaveV3Adapter
from forkooor.adapters.positions.fluid import FluidAdapter
from forkooor.adapters.positions.liquity_v2 import LiquityV2Adapter
from forkooor.adapters.positions.maker import MakerAdapter
from forkooor.adapters.strategies import aave_v3 as aave_strategies
from forkooor.adapters.strategies import liquity as liquity_strategies
from forkooor.adapters.strategies import maker as maker_strategies
from forkooor.adapters.strategies import spark as spark_strategies
from forkooor.api import common
from forkooor.api.app import app
from forkooor.api.routers import utils as utils_router

from conftest import BOT, HOLDER, OWNER, PROXY, SAFE, USDC, FakeSession

VNET = "https://virtual.mainnet.rpc.tenderly.co/test"


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def bound(monkeypatch):
    """Every request binds to its own FakeSession, kept here for assertions."""
    sessions = []

    def fake_bind(network):
        session = FakeSession(rpc_url=network)
        session.add_token(USDC, 6, 9)
        sessions.append(session)
        return session

    monkeypatch.setattr(common, "bind", fake_bind)
    return sessions


def test_validation_error_is_400(client):
    r = client.post("/utils/general/set-token-balance", json={"forkId": VNET, "token": "USDC"})
    assert r.status_code == 400
    assert isinstance(r.json()["error"], list)


def test_bad_address_is_400(client):
    r = client.post("/utils/general/set-eth-balance", json={"forkId": VNET, "account": "0x12", "amount": 1})
    assert r.status_code == 400


def test_set_token_balance(client, bound):
    r = client.post("/utils/general/set-token-balance",
                    json={"forkId": VNET, "token": "USDC", "account": HOLDER, "amount": 1000})

    assert r.status_code == 200
    assert r.json() == {"token": USDC, "account": HOLDER, "balance": "1000000000"}
    assert bound[0].rpc_url == VNET


def test_set_token_balance_unknown_token(client, monkeypatch):
    unknown = "0x000000000000000000000000000000000000dEaD"

    def fake_bind(network):
        session = FakeSession(rpc_url=network)
        session.handle(unknown, "decimals", 18)
        return session

    monkeypatch.setattr(common, "bind", fake_bind)
    r = client.post("/utils/general/set-token-balance",
                    json={"forkId": VNET, "token": unknown, "account": HOLDER, "amount": 1})

    assert r.status_code == 500
    error = r.json()["error"]
    assert error.startswith("Failed to set token balance with error : ")
    assert "Token balance not changeable" in error


def test_requests_get_their_own_sessions(client, bound):
    for vnet in ("https://vnet-a", "https://vnet-b"):
        client.post("/utils/general/set-token-balance",
                    json={"forkId": vnet, "token": USDC, "account": HOLDER, "amount": 1})

    assert [s.rpc_url for s in bound] == ["https://vnet-a", "https://vnet-b"]
    assert all(len([m for m, _ in s.rpc_calls if m == "tenderly_setStorageAt"]) == 1 for s in bound)


def test_set_eth_balance(client, bound):
    r = client.post("/utils/general/set-eth-balance", json={"forkId": VNET, "account": HOLDER, "amount": "1.5"})
    assert r.json() == {"account": HOLDER, "balance": str(15 * 10 ** 17)}


def test_time_travel(client, bound):
    r = client.post("/utils/general/time-travel", json={"forkId": VNET, "amount": 60})
    assert r.json() == {"oldTimestamp": 1700000000, "newTimestamp": 1700000060}


def test_set_time_returns_numbers(client, bound):
    r = client.post("/utils/general/set-time", json={"forkId": VNET, "timestamp": 1800000000})
    assert r.json() == {"oldTimestamp": 1700000000, "newTimestamp": 1800000000}


def test_new_address(client):
    r = client.post("/utils/general/new-address")
    assert r.status_code == 200
    assert r.json()["address"].startswith("0x")


def test_lower_safes_threshold_length_mismatch(client, bound):
    r = client.post("/utils/general/lower-safes-threshold",
                    json={"forkId": VNET, "safes": [SAFE], "thresholds": [1, 2]})
    assert r.status_code == 400
    assert "same length" in r.json()["error"][0]["msg"]
    assert bound == []


def test_new_vnet_sets_up_bots(client, monkeypatch, bound):
    calls = []
    monkeypatch.setattr(utils_router.tenderly, "create_vnet",
                        lambda project, key, chain_id, start_block: {"vnetId": VNET, "blockNumber": 1,
                                                                     "newAccount": OWNER})
    monkeypatch.setattr(utils_router.fork_utils, "set_up_bot_accounts",
                        lambda session, bots: calls.append((session.rpc_url, bots)))

    r = client.post("/utils/general/new-vnet", json={"chainId": 1, "botAccounts": [BOT]})

    assert r.status_code == 200
    assert r.json() == {"vnetId": VNET, "blockNumber": "1", "newAccount": OWNER}
    assert calls == [(VNET, [BOT])]


def test_aave_get_position(client, bound, monkeypatch):
    seen = {}

    def get_loan_data(self, market, user):
        seen["user"] = user
        return {"user": user, "ratio": "0"}

    monkeypatch.setattr(AaveV3Adapter, "resolve_position_owner", lambda self, user: PROXY)
    monkeypatch.setattr(AaveV3Adapter, "get_loan_data", get_loan_data)

    r = client.post("/aave/v3/general/get-position", json={"forkId": VNET, "owner": OWNER})

    assert r.status_code == 200
    assert r.json() == {"user": PROXY, "ratio": "0"}
    assert seen["user"] == PROXY


def test_aave_get_position_failure(client, bound, monkeypatch):
    def boom(self, market, user):
        raise RuntimeError("execution reverted")

    monkeypatch.setattr(AaveV3Adapter, "resolve_position_owner", lambda self, user: user)
    monkeypatch.setattr(AaveV3Adapter, "get_loan_data", boom)

    r = client.post("/aave/v3/general/get-position", json={"forkId": VNET, "owner": OWNER})
    assert r.status_code == 500
    assert r.json() == {"error": "Failed to fetch position info with error : execution reverted"}


def test_spark_create_passes_wallet_options(client, bound, monkeypatch):
    seen = {}

    def create_position(self, market, coll, debt, coll_amount, debt_amount, owner, rate_mode,
                        wallet_address, use_safe):
        seen.update(coll=coll, wallet_address=wallet_address, use_safe=use_safe, prefix=self.action_prefix)
        return {"user": wallet_address}

    monkeypatch.setattr(AaveV3Adapter, "create_position", create_position)
    r = client.post("/spark/general/create", json={
        "forkId": VNET, "owner": OWNER, "collSymbol": "WETH", "debtSymbol": "DAI", "collAmount": 10,
        "debtAmount": 1000, "walletAddress": SAFE, "walletType": "safe",
    })

    assert r.status_code == 200
    assert seen == {"coll": "WETH", "wallet_address": SAFE, "use_safe": True, "prefix": "Spark"}


def test_bad_wallet_type_is_400(client):
    r = client.post("/aave/v3/general/supply", json={
        "forkId": VNET, "owner": OWNER, "symbol": "WETH", "amount": 1, "walletType": "argent",
    })
    assert r.status_code == 400


def test_spark_dfs_automation(client, bound, monkeypatch):
    monkeypatch.setattr(spark_strategies, "subscribe_spark_leverage_management",
                        lambda *args: {"subId": "5", "boostSubId": "5", "repaySubId": "4"})
    r = client.post("/spark/strategies/dfs-automation", json={
        "forkId": VNET, "owner": OWNER, "minRatio": 150, "maxRatio": 250, "targetRepayRatio": 180,
        "targetBoostRatio": 200, "boostEnabled": True,
    })
    assert r.json() == {"subId": "5", "boostSubId": "5", "repaySubId": "4"}


def test_aave_close_on_price_rejects_bad_state(client):
    r = client.post("/aave/v3/strategies/close-on-price", json={
        "forkId": VNET, "owner": OWNER, "baseToken": "WETH", "quoteToken": "USDC", "price": 3000,
        "ratioState": "SIDEWAYS", "collSymbol": "WETH", "debtSymbol": "USDC",
    })
    assert r.status_code == 400


def test_aave_close_on_price(client, bound, monkeypatch):
    seen = {}

    def subscribe(*args):
        seen["args"] = args
        return {"subId": 11, "strategySub": [9, True, [], []]}

    monkeypatch.setattr(aave_strategies, "subscribe_close_on_price", subscribe)
    r = client.post("/aave/v3/strategies/close-on-price", json={
        "forkId": VNET, "owner": OWNER, "baseToken": "WETH", "quoteToken": "USDC", "price": 3000,
        "ratioState": "UNDER", "collSymbol": "WETH", "debtSymbol": "USDC", "closeType": "collateral",
    })

    assert r.json() == {"subId": "11", "strategySub": ["9", True, [], []]}
    assert seen["args"][5] == "UNDER"
    assert seen["args"][8] == "collateral"


def test_comp_v3_is_eoa_alias(client, bound, monkeypatch):
    from forkooor.adapters.strategies import compound_v3 as comp_strategies

    seen = {}

    def subscribe(session, owner, market, base_token, *rest):
        seen["is_eoa"] = rest[5]
        return {"subId": "1"}

    monkeypatch.setattr(comp_strategies, "subscribe_leverage_management", subscribe)
    r = client.post("/compound/v3/strategies/dfs-automation", json={
        "forkId": VNET, "owner": OWNER, "market": "0xc3d688b66703497daa19211eedff47f25384cdc3",
        "baseToken": USDC, "minRatio": 150, "maxRatio": 250, "targetRepayRatio": 180,
        "targetBoostRatio": 200, "boostEnabled": False, "isEOA": True,
    })
    assert r.status_code == 200
    assert seen["is_eoa"] is True


def test_morpho_market_id_route(client):
    r = client.post("/morpho-blue/general/get-market-id", json={
        "loanToken": USDC, "collateralToken": OWNER, "oracle": PROXY, "irm": SAFE, "lltv": 860000000000000000,
    })
    assert r.status_code == 200
    assert len(r.json()["marketId"]) == 66


def test_maker_get_vault(client, bound, monkeypatch):
    monkeypatch.setattr(MakerAdapter, "get_vault_info",
                        lambda self, vault_id: {"vaultId": vault_id, "ilkLabel": "ETH-A", "coll": "1", "debt": "2"})
    r = client.post("/maker/general/get-vault", json={"forkId": VNET, "vaultId": 7})
    assert r.json() == {"vaultId": "7", "ilkLabel": "ETH-A", "coll": "1", "debt": "2"}


def test_missing_fork_id_is_400(client):
    r = client.post("/maker/general/get-vault", json={"vaultId": 7})
    assert r.status_code == 400


def test_routes_dispatch_through_adapter_registry(client, bound, monkeypatch):
    looked_up = []

    class Recorder:
        def __init__(self, session):
            self.session = session

        def resolve_position_owner(self, user):
            return user

        def get_loan_data(self, market, user):
            return {"user": user}

        def get_vault_info(self, vault_id):
            return {"vaultId": vault_id}

    def fake_get_adapter(protocol, version, session):
        looked_up.append((protocol, version))
        return Recorder(session)

    monkeypatch.setattr(common, "get_adapter", fake_get_adapter)
    client.post("/spark/general/get-position", json={"forkId": VNET, "owner": OWNER})
    client.post("/aave/v3/general/get-position", json={"forkId": VNET, "owner": OWNER})
    r = client.post("/maker/general/get-vault", json={"forkId": VNET, "vaultId": 3})

    assert r.json() == {"vaultId": "3"}
    assert looked_up == [("spark", ""), ("aave", "v3"), ("maker", "")]


def test_liquity_v2_get_trove(client, bound, monkeypatch):
    seen = {}

    def get_trove_info(self, market, trove_id, view_address):
        seen.update(market=market, trove_id=trove_id, view_address=view_address)
        return {"troveId": str(trove_id), "status": 1}

    monkeypatch.setattr(LiquityV2Adapter, "get_trove_info", get_trove_info)
    r = client.post("/liquity-v2/general/get-trove", json={
        "forkId": VNET, "market": "wstETH", "troveId": 99, "viewAddress": SAFE,
    })

    assert r.json() == {"troveId": "99", "status": 1}
    assert seen == {"market": "wstETH", "trove_id": 99, "view_address": SAFE}


def test_fluid_get_position_by_nft(client, bound, monkeypatch):
    monkeypatch.setattr(FluidAdapter, "get_position_by_nft",
                        lambda self, nft_id, view_address: {"position": {"nftId": str(nft_id)}, "vaultData": {}})
    r = client.post("/fluid/general/get-position-by-nft", json={"forkId": VNET, "nftId": 1234})
    assert r.json() == {"position": {"nftId": "1234"}, "vaultData": {}}


def test_fluid_missing_view_is_500(client, bound):
    r = client.post("/fluid/general/get-position-by-nft", json={"forkId": VNET, "nftId": 1})
    assert r.status_code == 500
    assert "FLUID_VIEW is not configured" in r.json()["error"]


def test_maker_payback_whole_debt(client, bound, monkeypatch):
    seen = {}

    def payback(self, vault_id, amount, owner, wallet_address, use_safe):
        seen.update(vault_id=vault_id, amount=amount)
        return {"vaultId": vault_id, "debt": "0"}

    monkeypatch.setattr(MakerAdapter, "payback", payback)
    r = client.post("/maker/general/payback", json={"forkId": VNET, "owner": OWNER, "vaultId": 7, "amount": -1})

    assert r.json() == {"vaultId": "7", "debt": "0"}
    assert seen == {"vault_id": 7, "amount": -1}


@pytest.mark.parametrize("amount", [0, -2])
def test_maker_withdraw_rejects_bad_amount(client, amount):
    r = client.post("/maker/general/withdraw", json={"forkId": VNET, "owner": OWNER, "vaultId": 7, "amount": amount})
    assert r.status_code == 400


def test_maker_close_to_coll(client, bound, monkeypatch):
    seen = {}

    def subscribe(session, owner, vault_id, price, state, close_to, *rest):
        seen.update(vault_id=vault_id, state=state, close_to=close_to)
        return {"subId": "10", "strategySub": [9, False, [], []]}

    monkeypatch.setattr(maker_strategies, "subscribe_close_on_price", subscribe)
    r = client.post("/maker/strategies/mcd-close-to-coll", json={
        "forkId": VNET, "owner": OWNER, "vaultId": 31, "triggerPrice": 1500, "triggerState": "UNDER",
    })

    assert r.json() == {"subId": "10", "strategySub": ["9", False, [], []]}
    assert seen == {"vault_id": 31, "state": "UNDER", "close_to": "collateral"}


def test_liquity_leverage_management_route(client, bound, monkeypatch):
    seen = {}

    def subscribe(session, owner, min_ratio, max_ratio, target_repay, target_boost, boost_enabled, *rest):
        seen.update(target_repay=target_repay, target_boost=target_boost)
        return {"subId": "11", "repaySubId": "10", "boostSubId": "11"}

    monkeypatch.setattr(liquity_strategies, "subscribe_leverage_management", subscribe)
    r = client.post("/liquity/strategies/leverage-management", json={
        "forkId": VNET, "owner": OWNER, "minRatio": 150, "maxRatio": 250, "targetRatioRepay": 180,
        "targetRatioBoost": 220, "boostEnabled": True,
    })

    assert r.json()["repaySubId"] == "10"
    assert (seen["target_repay"], seen["target_boost"]) == (180, 220)


def test_close_on_price_generic_needs_a_price(client, bound):
    r = client.post("/aave/v3/strategies/close-on-price-generic", json={
        "forkId": VNET, "owner": OWNER, "collSymbol": "WETH", "debtSymbol": "USDC",
    })
    assert r.status_code == 400
    assert bound == []


def test_curveusd_create_default_bands(client, bound, monkeypatch):
    from forkooor.adapters.positions.curveusd import CurveUsdAdapter

    seen = {}

    def create_position(self, controller, coll_amount, debt_amount, owner, n_bands, wallet_address, use_safe):
        seen["n_bands"] = n_bands
        return {"loanExists": True}

    monkeypatch.setattr(CurveUsdAdapter, "create_position", create_position)
    r = client.post("/curveusd/general/create", json={
        "forkId": VNET, "owner": OWNER, "controller": SAFE, "collAmount": 1, "debtAmount": 1000,
    })

    assert r.json() == {"loanExists": True}
    assert seen["n_bands"] == 10
