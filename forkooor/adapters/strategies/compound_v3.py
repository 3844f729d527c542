from typing import Any, Dict, Optional

from eth_utils import to_checksum_address

from forkooor.automation import comp_v3_leverage_management_input, subscribe_packed
from forkooor.wallets import get_sender


def subscribe_leverage_management(session, owner: str, market: str, base_token: str, min_ratio, max_ratio,
                                  target_repay_ratio, target_boost_ratio, boost_enabled: bool,
                                  is_eoa: bool = False, wallet_address: Optional[str] = None,
                                  use_safe: bool = False) -> Dict[str, Any]:
    wallet = get_sender(session, owner, wallet_address, use_safe)
    packed = comp_v3_leverage_management_input(
        to_checksum_address(market), to_checksum_address(base_token),
        min_ratio, max_ratio, target_boost_ratio, target_repay_ratio, boost_enabled, is_eoa,
    )
    sub_id = subscribe_packed(session, wallet, "COMP_V3_SUB_PROXY", "subToCompV3Automation", packed)
    return {"subId": str(sub_id), "strategySub": "0x" + packed.hex()}
