from typing import Any, Dict, Optional

from forkooor.adapters.base import to_json
from forkooor.adapters.positions.maker import MakerAdapter
from forkooor.automation import maker_close_on_price_sub, mcd_sub_data, subscribe, subscribe_mcd
from forkooor.config import resolve_bundle_id
from forkooor.wallets import get_sender

CLOSE_TO = {
    "dai": "close_to_dai",
    "collateral": "close_to_collateral",
}


def subscribe_leverage_management(session, owner: str, vault_id: int, min_ratio, max_ratio,
                                  target_repay_ratio, target_boost_ratio, boost_enabled: bool,
                                  wallet_address: Optional[str] = None,
                                  use_safe: bool = False) -> Dict[str, Any]:
    wallet = get_sender(session, owner, wallet_address, use_safe)
    sub_data = mcd_sub_data(vault_id, min_ratio, max_ratio, target_boost_ratio, target_repay_ratio,
                            boost_enabled)
    sub_id = subscribe_mcd(session, wallet, sub_data)
    return {"subId": str(sub_id), "strategySub": to_json(list(sub_data))}


def subscribe_close_on_price(session, owner: str, vault_id: int, price, ratio_state, close_to: str,
                             strategy_id: Optional[int] = None, wallet_address: Optional[str] = None,
                             use_safe: bool = False) -> Dict[str, Any]:
    """
    Close vault ``vault_id`` to DAI or to its collateral once the collateral
    price crosses ``price``.
    """
    if close_to not in CLOSE_TO:
        raise ValueError(f"closeTo must be one of {sorted(CLOSE_TO)}")
    if strategy_id is None:
        strategy_id = resolve_bundle_id("maker", session.chain_id, CLOSE_TO[close_to])

    maker = MakerAdapter(session)
    manager = maker.mcd_manager()
    coll = maker.collateral(maker.get_vault_info(vault_id, manager)["ilkLabel"])
    close_to_asset = maker.asset("DAI")["address"] if close_to == "dai" else coll["address"]

    sub = maker_close_on_price_sub(strategy_id, vault_id, price, ratio_state, close_to_asset, coll["address"],
                                   manager)
    wallet = get_sender(session, owner, wallet_address, use_safe)
    sub_id = subscribe(session, wallet, sub)
    return {"subId": str(sub_id), "strategySub": sub.to_json()}
