"""
Liquity leverage management through the Liquity sub proxy.
"""

from typing import Any, Dict, Optional

from forkooor.adapters.base import to_json
from forkooor.automation import liquity_sub_data, repay_boost_sub_ids, subscribe_liquity
from forkooor.wallets import get_sender


def subscribe_leverage_management(session, owner: str, min_ratio, max_ratio, target_repay_ratio,
                                  target_boost_ratio, boost_enabled: bool,
                                  wallet_address: Optional[str] = None,
                                  use_safe: bool = False) -> Dict[str, Any]:
    wallet = get_sender(session, owner, wallet_address, use_safe)
    sub_data = liquity_sub_data(min_ratio, max_ratio, target_boost_ratio, target_repay_ratio, boost_enabled)
    sub_id = subscribe_liquity(session, wallet, sub_data)

    result = {"subId": str(sub_id), "strategySub": to_json(list(sub_data))}
    result.update(repay_boost_sub_ids(sub_id, boost_enabled))
    return result
