"""
Aave V3 automation subscriptions (Spark leverage management shares the packed input).
"""

from typing import Any, Dict, Optional, Sequence

from eth_utils import to_checksum_address

from forkooor.adapters.positions.aave_v3 import AaveV3Adapter
from forkooor.automation import (
    CLOSE_TO_COLLATERAL,
    CLOSE_TO_DEBT,
    StrategySub,
    aave_v3_close_on_price_sub,
    aave_v3_leverage_on_price_sub,
    aave_v3_repay_on_price_sub,
    close_on_price_generic_sub,
    leverage_management_input,
    subscribe,
    subscribe_packed,
)
from forkooor.config import resolve_bundle_id
from forkooor.wallets import get_sender

CLOSE_TYPES = {
    "debt": "close_to_debt",
    "collateral": "close_to_collateral",
}

CLOSE_TO = {
    "debt": CLOSE_TO_DEBT,
    "collateral": CLOSE_TO_COLLATERAL,
}


def subscribe_leverage_management(session, owner: str, min_ratio, max_ratio, target_repay_ratio,
                                  target_boost_ratio, boost_enabled: bool,
                                  wallet_address: Optional[str] = None, use_safe: bool = False,
                                  sub_proxy_key: str = "AAVE_V3_SUB_PROXY",
                                  function_name: str = "subToAaveAutomation") -> Dict[str, Any]:
    wallet = get_sender(session, owner, wallet_address, use_safe)
    packed = leverage_management_input(min_ratio, max_ratio, target_boost_ratio, target_repay_ratio,
                                       boost_enabled)
    sub_id = subscribe_packed(session, wallet, sub_proxy_key, function_name, packed)
    return {"subId": str(sub_id), "strategySub": "0x" + packed.hex()}


def subscribe_close_on_price(session, owner: str, base_symbol: str, quote_symbol: str, price,
                             ratio_state, coll_symbol: str, debt_symbol: str,
                             close_type: str = "debt", bundle_id: Optional[int] = None,
                             market: Optional[str] = None, wallet_address: Optional[str] = None,
                             use_safe: bool = False) -> Dict[str, Any]:
    """
    Close the position (to debt or to collateral asset) when base/quote price crosses ``price``.
    """
    if bundle_id is None:
        if close_type not in CLOSE_TYPES:
            raise ValueError(f"closeType must be one of {sorted(CLOSE_TYPES)}")
        bundle_id = resolve_bundle_id("aave_v3", session.chain_id, CLOSE_TYPES[close_type])

    aave = AaveV3Adapter(session)
    base = aave.asset(base_symbol)
    quote = aave.asset(quote_symbol)
    coll = aave.asset(coll_symbol)
    debt = aave.asset(debt_symbol)
    coll_info, debt_info = aave.get_full_tokens_info(market, [coll["address"], debt["address"]])

    sub = aave_v3_close_on_price_sub(
        bundle_id, base["address"], quote["address"], price, ratio_state,
        coll["address"], coll_info["assetId"], debt["address"], debt_info["assetId"],
    )
    wallet = get_sender(session, owner, wallet_address, use_safe)
    sub_id = subscribe(session, wallet, sub)
    return {"subId": str(sub_id), "strategySub": sub.to_json()}


def subscribe_generic(session, owner: str, strategy_or_bundle_id: int, is_bundle: bool,
                      trigger_data: Sequence[str], sub_data: Sequence[str],
                      wallet_address: Optional[str] = None, use_safe: bool = False) -> Dict[str, Any]:
    """Caller-encoded trigger and sub data, passed through unchanged."""
    sub = StrategySub(strategy_or_bundle_id, is_bundle, trigger_data, sub_data)
    wallet = get_sender(session, owner, wallet_address, use_safe)
    sub_id = subscribe(session, wallet, sub)
    return {"subId": str(sub_id), "strategySub": sub.to_json()}


def _position_assets(aave, market: Optional[str], coll_symbol: str, debt_symbol: str):
    """(coll address, coll asset id, debt address, debt asset id, market address)"""
    coll = aave.asset(coll_symbol)
    debt = aave.asset(debt_symbol)
    coll_info, debt_info = aave.get_full_tokens_info(market, [coll["address"], debt["address"]])
    return coll["address"], coll_info["assetId"], debt["address"], debt_info["assetId"], aave.market(market)


def subscribe_repay_on_price(session, owner: str, coll_symbol: str, debt_symbol: str, price, ratio_state,
                             target_ratio, bundle_id: Optional[int] = None, market: Optional[str] = None,
                             wallet_address: Optional[str] = None, use_safe: bool = False) -> Dict[str, Any]:
    """Repay down to ``target_ratio`` once coll/debt price crosses ``price``."""
    if bundle_id is None:
        bundle_id = resolve_bundle_id("aave_v3", session.chain_id, "repay_on_price")

    assets = _position_assets(AaveV3Adapter(session), market, coll_symbol, debt_symbol)
    sub = aave_v3_repay_on_price_sub(bundle_id, *assets, price, ratio_state, target_ratio)
    wallet = get_sender(session, owner, wallet_address, use_safe)
    sub_id = subscribe(session, wallet, sub)
    return {"subId": str(sub_id), "strategySub": sub.to_json()}


def subscribe_leverage_management_on_price(session, owner: str, bundle_id: int, coll_symbol: str,
                                           debt_symbol: str, price, price_state, target_ratio,
                                           is_eoa: bool = False, market: Optional[str] = None,
                                           wallet_address: Optional[str] = None,
                                           use_safe: bool = False) -> Dict[str, Any]:
    wallet = get_sender(session, owner, wallet_address, use_safe)
    user = to_checksum_address(owner) if is_eoa else wallet.address

    assets = _position_assets(AaveV3Adapter(session), market, coll_symbol, debt_symbol)
    sub = aave_v3_leverage_on_price_sub(bundle_id, *assets, price, price_state, target_ratio, user)
    sub_id = subscribe(session, wallet, sub)
    return {"subId": str(sub_id), "strategySub": sub.to_json()}


def subscribe_close_on_price_generic(session, owner: str, coll_symbol: str, debt_symbol: str,
                                     stop_loss_price, stop_loss_type: str, take_profit_price,
                                     take_profit_type: str, bundle_id: Optional[int] = None,
                                     market: Optional[str] = None, wallet_address: Optional[str] = None,
                                     use_safe: bool = False, adapter_cls=AaveV3Adapter,
                                     bundle_protocol: str = "aave_v3") -> Dict[str, Any]:
    """
    Stop loss / take profit on the coll/debt price. Either price may be 0 (off);
    each side closes to "debt" or "collateral".
    """
    for close_type in (stop_loss_type, take_profit_type):
        if close_type not in CLOSE_TO:
            raise ValueError(f"close type must be one of {sorted(CLOSE_TO)}")
    if bundle_id is None:
        bundle_id = resolve_bundle_id(bundle_protocol, session.chain_id, "close_on_price")

    wallet = get_sender(session, owner, wallet_address, use_safe)
    assets = _position_assets(adapter_cls(session), market, coll_symbol, debt_symbol)
    sub = close_on_price_generic_sub(
        bundle_id, *assets, wallet.address,
        stop_loss_price, CLOSE_TO[stop_loss_type], take_profit_price, CLOSE_TO[take_profit_type],
    )
    sub_id = subscribe(session, wallet, sub)
    return {"subId": str(sub_id), "strategySub": sub.to_json()}
