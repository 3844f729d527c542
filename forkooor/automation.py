"""
Strategy subscriptions (DFS automation).

A subscription is a StrategySub ``(uint64 id, bool isBundle, bytes[] triggerData,
bytes32[] subData)`` sent to SubProxy through the user's wallet. Leverage
management on Aave V3 / Spark / Compound V3 / Maker / Liquity goes through
the protocol's own sub proxy instead.

Ratios are percentages scaled by 1e16 (200% -> 2e18), prices are scaled by 1e8.
"""

import logging
from decimal import Decimal
from typing import List, Sequence

from eth_abi import encode
from eth_utils import to_bytes

from forkooor.abis import STRATEGY_SUB_COMPONENTS, SUB_STORAGE_ABI, encode_call
from forkooor.config import get_address
from forkooor.wallets import get_addr_from_registry

logger = logging.getLogger(__name__)

RATIO_STATE_OVER = 0
RATIO_STATE_UNDER = 1

RATIO_SCALE = Decimal(10) ** 16
PRICE_SCALE = Decimal(10) ** 8

STRATEGY_SUB_TUPLE = "(" + ",".join(c["type"] for c in STRATEGY_SUB_COMPONENTS) + ")"
CDP_SUB_DATA_TUPLE = "(uint32,uint128,uint128,uint128,uint128,bool)"
LIQUITY_SUB_DATA_TUPLE = "(uint128,uint128,uint128,uint128,bool)"

# Close-on-price: what to close into when the stop loss / take profit hits
CLOSE_TO_DEBT = 0
CLOSE_TO_COLLATERAL = 1

# (take profit type, stop loss type) -> close strategy type; None = price not set
CLOSE_STRATEGY_TYPES = {
    (CLOSE_TO_COLLATERAL, None): 0,
    (None, CLOSE_TO_COLLATERAL): 1,
    (CLOSE_TO_DEBT, None): 2,
    (None, CLOSE_TO_DEBT): 3,
    (CLOSE_TO_COLLATERAL, CLOSE_TO_COLLATERAL): 4,
    (CLOSE_TO_COLLATERAL, CLOSE_TO_DEBT): 5,
    (CLOSE_TO_DEBT, CLOSE_TO_DEBT): 6,
    (CLOSE_TO_DEBT, CLOSE_TO_COLLATERAL): 7,
}


def scale_ratio(ratio) -> int:
    return int(Decimal(str(ratio)) * RATIO_SCALE)


def scale_price(price) -> int:
    return int(Decimal(str(price)) * PRICE_SCALE)


def ratio_state(value) -> int:
    """Accepts 0/1 or 'OVER'/'UNDER'."""
    if isinstance(value, str) and not value.isdigit():
        states = {"OVER": RATIO_STATE_OVER, "UNDER": RATIO_STATE_UNDER}
        if value.upper() not in states:
            raise ValueError(f"Unknown ratio state: {value}")
        return states[value.upper()]
    state = int(value)
    if state not in (RATIO_STATE_OVER, RATIO_STATE_UNDER):
        raise ValueError(f"Unknown ratio state: {value}")
    return state


def _word(type_str, value) -> bytes:
    return encode([type_str], [value])


def _to_bytes(value) -> bytes:
    return value if isinstance(value, (bytes, bytearray)) else to_bytes(hexstr=value)


class StrategySub:
    def __init__(self, strategy_or_bundle_id: int, is_bundle: bool,
                 trigger_data: Sequence[bytes], sub_data: Sequence[bytes]):
        self.strategy_or_bundle_id = int(strategy_or_bundle_id)
        self.is_bundle = bool(is_bundle)
        self.trigger_data = [_to_bytes(t) for t in trigger_data]
        self.sub_data = [_to_bytes(s) for s in sub_data]
        for word in self.sub_data:
            if len(word) != 32:
                raise ValueError(f"Sub data entries must be 32 bytes, got {len(word)}")

    def to_tuple(self):
        return (self.strategy_or_bundle_id, self.is_bundle, self.trigger_data, self.sub_data)

    def to_json(self) -> List:
        return [
            self.strategy_or_bundle_id,
            self.is_bundle,
            ["0x" + t.hex() for t in self.trigger_data],
            ["0x" + s.hex() for s in self.sub_data],
        ]


def get_latest_sub_id(session) -> int:
    sub_storage = session.contract(get_addr_from_registry(session, "SubStorage"), SUB_STORAGE_ABI)
    return sub_storage.functions.getSubsCount().call() - 1


def subscribe(session, wallet, sub: StrategySub) -> int:
    """SubProxy.subscribeToStrategy through the wallet; returns the new sub id."""
    sub_proxy = get_address(session.chain_id, "SUB_PROXY")
    data = encode_call("subscribeToStrategy", [STRATEGY_SUB_TUPLE], [sub.to_tuple()])
    wallet.execute(sub_proxy, data)

    sub_id = get_latest_sub_id(session)
    logger.info("subscribed %s to bundle/strategy %s, sub id %s", wallet.address,
                sub.strategy_or_bundle_id, sub_id)
    return sub_id


def subscribe_packed(session, wallet, sub_proxy_key: str, function_name: str, packed: bytes) -> int:
    """Protocol sub proxy taking one packed ``bytes`` argument."""
    sub_proxy = get_address(session.chain_id, sub_proxy_key)
    wallet.execute(sub_proxy, encode_call(function_name, ["bytes"], [packed]))
    sub_id = get_latest_sub_id(session)
    logger.info("subscribed %s via %s.%s, sub id %s", wallet.address, sub_proxy_key, function_name, sub_id)
    return sub_id


def subscribe_mcd(session, wallet, cdp_sub_data) -> int:
    sub_proxy = get_address(session.chain_id, "MCD_SUB_PROXY")
    data = encode_call("subToMcdAutomation", [CDP_SUB_DATA_TUPLE, "bool"], [cdp_sub_data, False])
    wallet.execute(sub_proxy, data)
    sub_id = get_latest_sub_id(session)
    logger.info("subscribed %s to maker automation, sub id %s", wallet.address, sub_id)
    return sub_id


def subscribe_liquity(session, wallet, liquity_sub_data) -> int:
    """Repay and (if enabled) boost for the wallet's trove; returns the last sub id."""
    sub_proxy = get_address(session.chain_id, "LIQUITY_LEVERAGE_MANAGEMENT_SUB_PROXY")
    wallet.execute(sub_proxy, encode_call("subToLiquityAutomation", [LIQUITY_SUB_DATA_TUPLE], [liquity_sub_data]))
    sub_id = get_latest_sub_id(session)
    logger.info("subscribed %s to liquity automation, sub id %s", wallet.address, sub_id)
    return sub_id


# --------- Encoders ----------

def _uint128(value: int) -> bytes:
    return int(value).to_bytes(16, "big")


def leverage_management_input(min_ratio, max_ratio, target_boost, target_repay, boost_enabled) -> bytes:
    """Aave V3 / Spark sub proxy input."""
    return (
        _uint128(scale_ratio(min_ratio))
        + _uint128(scale_ratio(max_ratio))
        + _uint128(scale_ratio(target_boost))
        + _uint128(scale_ratio(target_repay))
        + (b"\x01" if boost_enabled else b"\x00")
    )


def comp_v3_leverage_management_input(market, base_token, min_ratio, max_ratio, target_boost,
                                      target_repay, boost_enabled, is_eoa) -> bytes:
    return (
        to_bytes(hexstr=market)
        + to_bytes(hexstr=base_token)
        + leverage_management_input(min_ratio, max_ratio, target_boost, target_repay, boost_enabled)
        + (b"\x01" if is_eoa else b"\x00")
    )


def mcd_sub_data(vault_id, min_ratio, max_ratio, target_boost, target_repay, boost_enabled):
    return (
        int(vault_id),
        scale_ratio(min_ratio),
        scale_ratio(max_ratio),
        scale_ratio(target_boost),
        scale_ratio(target_repay),
        bool(boost_enabled),
    )


def liquity_sub_data(min_ratio, max_ratio, target_boost, target_repay, boost_enabled):
    return (
        scale_ratio(min_ratio),
        scale_ratio(max_ratio),
        scale_ratio(target_boost),
        scale_ratio(target_repay),
        bool(boost_enabled),
    )


def close_strategy_type(stop_loss_price, stop_loss_type, take_profit_price, take_profit_type) -> int:
    """
    Close strategy type for a stop loss / take profit pair. A price of 0 turns
    that side off; types are CLOSE_TO_DEBT (0) or CLOSE_TO_COLLATERAL (1).
    """
    def side(price, type_):
        if Decimal(str(price)) == 0:
            return None
        if int(type_) not in (CLOSE_TO_DEBT, CLOSE_TO_COLLATERAL):
            raise ValueError(f"Unknown close type: {type_}")
        return int(type_)

    key = (side(take_profit_price, take_profit_type), side(stop_loss_price, stop_loss_type))
    if key == (None, None):
        raise ValueError("Stop loss price or take profit price must be set")
    return CLOSE_STRATEGY_TYPES[key]


def maker_close_on_price_sub(strategy_id, vault_id, price, state, close_to_asset, coll_asset,
                             mcd_manager) -> StrategySub:
    """Single strategy (not a bundle) closing vault ``vault_id`` into ``close_to_asset``."""
    trigger = encode(["address", "uint256", "uint8"], [coll_asset, scale_price(price), ratio_state(state)])
    sub_data = [
        _word("uint256", int(vault_id)),
        _word("address", close_to_asset),
        _word("address", mcd_manager),
    ]
    return StrategySub(strategy_id, False, [trigger], sub_data)


def aave_v3_close_on_price_sub(bundle_id, base_token, quote_token, price, state,
                               coll_asset, coll_asset_id, debt_asset, debt_asset_id) -> StrategySub:
    trigger = encode(
        ["address", "address", "uint256", "uint8"],
        [base_token, quote_token, scale_price(price), ratio_state(state)],
    )
    sub_data = [
        _word("address", coll_asset),
        _word("uint16", int(coll_asset_id)),
        _word("address", debt_asset),
        _word("uint16", int(debt_asset_id)),
    ]
    return StrategySub(bundle_id, True, [trigger], sub_data)


def morpho_blue_leverage_sub(bundle_id, market_params, market_id, trigger_ratio, target_ratio,
                             state, user) -> StrategySub:
    """
    Repay (state UNDER) or boost (state OVER) bundle for a Morpho Blue position.

    ``market_params`` is ``(loanToken, collateralToken, oracle, irm, lltv)``.
    """
    loan_token, collateral_token, oracle, irm, lltv = market_params
    state = ratio_state(state)
    trigger = encode(
        ["bytes32", "address", "uint256", "uint8"],
        [_to_bytes(market_id), user, scale_ratio(trigger_ratio), state],
    )
    sub_data = [
        _word("address", loan_token),
        _word("address", collateral_token),
        _word("address", oracle),
        _word("address", irm),
        _word("uint256", int(lltv)),
        _word("uint8", state),
        _word("uint256", scale_ratio(target_ratio)),
        _word("address", user),
    ]
    return StrategySub(bundle_id, True, [trigger], sub_data)


def curveusd_leverage_sub(bundle_id, owner, controller, state, target_ratio, trigger_ratio,
                          collateral_token, crvusd) -> StrategySub:
    state = ratio_state(state)
    trigger = encode(
        ["address", "address", "uint256", "uint8"],
        [owner, controller, scale_ratio(trigger_ratio), state],
    )
    sub_data = [
        _word("address", controller),
        _word("uint8", state),
        _word("uint256", scale_ratio(target_ratio)),
        _word("address", collateral_token),
        _word("address", crvusd),
    ]
    return StrategySub(bundle_id, True, [trigger], sub_data)


def _price_trigger(coll_asset, debt_asset, price, state) -> bytes:
    return encode(
        ["address", "address", "uint256", "uint8"],
        [coll_asset, debt_asset, scale_price(price), ratio_state(state)],
    )


def aave_v3_repay_on_price_sub(bundle_id, coll_asset, coll_asset_id, debt_asset, debt_asset_id, market,
                               price, state, target_ratio) -> StrategySub:
    sub_data = [
        _word("address", coll_asset),
        _word("uint16", int(coll_asset_id)),
        _word("address", debt_asset),
        _word("uint16", int(debt_asset_id)),
        _word("address", market),
        _word("uint256", scale_ratio(target_ratio)),
        _word("bool", False),
    ]
    return StrategySub(bundle_id, True, [_price_trigger(coll_asset, debt_asset, price, state)], sub_data)


def aave_v3_leverage_on_price_sub(bundle_id, coll_asset, coll_asset_id, debt_asset, debt_asset_id, market,
                                  price, state, target_ratio, user) -> StrategySub:
    """Repay or boost to ``target_ratio`` once coll/debt price crosses ``price``."""
    sub_data = [
        _word("address", coll_asset),
        _word("uint16", int(coll_asset_id)),
        _word("address", debt_asset),
        _word("uint16", int(debt_asset_id)),
        _word("address", market),
        _word("uint256", scale_ratio(target_ratio)),
        _word("address", user),
    ]
    return StrategySub(bundle_id, True, [_price_trigger(coll_asset, debt_asset, price, state)], sub_data)


def close_on_price_generic_sub(bundle_id, coll_asset, coll_asset_id, debt_asset, debt_asset_id, market, user,
                               stop_loss_price, stop_loss_type, take_profit_price,
                               take_profit_type) -> StrategySub:
    """
    Aave V3 style close with a price range trigger: below ``stop_loss_price`` or
    above ``take_profit_price`` (either may be 0).
    """
    close_type = close_strategy_type(stop_loss_price, stop_loss_type, take_profit_price, take_profit_type)
    trigger = encode(
        ["address", "address", "uint256", "uint256"],
        [coll_asset, debt_asset, scale_price(stop_loss_price), scale_price(take_profit_price)],
    )
    sub_data = [
        _word("address", coll_asset),
        _word("uint16", int(coll_asset_id)),
        _word("address", debt_asset),
        _word("uint16", int(debt_asset_id)),
        _word("address", market),
        _word("address", user),
        _word("uint8", close_type),
    ]
    return StrategySub(bundle_id, True, [trigger], sub_data)


def repay_boost_sub_ids(latest_sub_id: int, boost_enabled: bool) -> dict:
    """Sub proxies subscribe repay first and boost (if enabled) right after it."""
    latest = int(latest_sub_id)
    if boost_enabled:
        return {"repaySubId": str(latest - 1), "boostSubId": str(latest)}
    return {"repaySubId": str(latest), "boostSubId": "0"}
