from typing import Any, Dict, Optional

from eth_utils import to_checksum_address

from forkooor.adapters.positions.curveusd import CurveUsdAdapter
from forkooor.automation import RATIO_STATE_OVER, RATIO_STATE_UNDER, curveusd_leverage_sub, subscribe
from forkooor.config import get_address
from forkooor.wallets import get_sender


def _subscribe(session, owner, bundle_id, controller, state, trigger_ratio, target_ratio,
               wallet_address, use_safe) -> Dict[str, Any]:
    wallet = get_sender(session, owner, wallet_address, use_safe)
    controller = to_checksum_address(controller)
    collateral_token = CurveUsdAdapter(session).collateral_token(controller)

    sub = curveusd_leverage_sub(
        bundle_id, wallet.address, controller, state, target_ratio, trigger_ratio,
        collateral_token, get_address(session.chain_id, "CRVUSD"),
    )
    sub_id = subscribe(session, wallet, sub)
    return {"subId": str(sub_id), "strategySub": sub.to_json()}


def subscribe_repay_bundle(session, owner: str, bundle_id: int, controller: str, min_ratio, target_ratio,
                           wallet_address: Optional[str] = None, use_safe: bool = False) -> Dict[str, Any]:
    return _subscribe(session, owner, bundle_id, controller, RATIO_STATE_UNDER, min_ratio, target_ratio,
                      wallet_address, use_safe)


def subscribe_boost_bundle(session, owner: str, bundle_id: int, controller: str, max_ratio, target_ratio,
                           wallet_address: Optional[str] = None, use_safe: bool = False) -> Dict[str, Any]:
    return _subscribe(session, owner, bundle_id, controller, RATIO_STATE_OVER, max_ratio, target_ratio,
                      wallet_address, use_safe)
