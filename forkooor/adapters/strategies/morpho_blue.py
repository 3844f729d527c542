"""
Morpho Blue repay / boost bundles.

A zero-address ``user`` means the position lives on the wallet itself.
"""

from typing import Any, Dict, Optional, Sequence

from eth_utils import to_checksum_address

from forkooor.adapters.positions.morpho_blue import get_market_id, normalize_market_params
from forkooor.automation import RATIO_STATE_OVER, RATIO_STATE_UNDER, morpho_blue_leverage_sub, subscribe
from forkooor.config import NULL_ADDRESS
from forkooor.wallets import get_sender


def _subscribe(session, owner, bundle_id, market_params, trigger_ratio, target_ratio, state, user,
               wallet_address, use_safe) -> Dict[str, Any]:
    wallet = get_sender(session, owner, wallet_address, use_safe)
    market_params = normalize_market_params(market_params)

    if not user or int(user, 16) == 0:
        user = wallet.address

    sub = morpho_blue_leverage_sub(
        bundle_id, market_params, get_market_id(market_params), trigger_ratio, target_ratio,
        state, to_checksum_address(user),
    )
    sub_id = subscribe(session, wallet, sub)
    return {"subId": str(sub_id), "strategySub": sub.to_json()}


def subscribe_repay_bundle(session, owner: str, bundle_id: int, market_params: Sequence, min_ratio,
                           target_ratio, user: str = NULL_ADDRESS, wallet_address: Optional[str] = None,
                           use_safe: bool = False) -> Dict[str, Any]:
    return _subscribe(session, owner, bundle_id, market_params, min_ratio, target_ratio,
                      RATIO_STATE_UNDER, user, wallet_address, use_safe)


def subscribe_boost_bundle(session, owner: str, bundle_id: int, market_params: Sequence, max_ratio,
                           target_ratio, user: str = NULL_ADDRESS, wallet_address: Optional[str] = None,
                           use_safe: bool = False) -> Dict[str, Any]:
    return _subscribe(session, owner, bundle_id, market_params, max_ratio, target_ratio,
                      RATIO_STATE_OVER, user, wallet_address, use_safe)
