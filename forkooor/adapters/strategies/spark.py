"""
Spark leverage management: one call subscribes repay and (optionally) boost.
"""

from typing import Any, Dict, Optional

from forkooor.adapters.positions.spark import SparkAdapter
from forkooor.adapters.strategies.aave_v3 import subscribe_close_on_price_generic, subscribe_leverage_management
from forkooor.automation import repay_boost_sub_ids


def subscribe_spark_leverage_management(session, owner: str, min_ratio, max_ratio, target_repay_ratio,
                                        target_boost_ratio, boost_enabled: bool,
                                        wallet_address: Optional[str] = None,
                                        use_safe: bool = False) -> Dict[str, Any]:
    result = subscribe_leverage_management(
        session, owner, min_ratio, max_ratio, target_repay_ratio, target_boost_ratio, boost_enabled,
        wallet_address, use_safe,
        sub_proxy_key="SPARK_SUB_PROXY",
        function_name="subToSparkAutomation",
    )
    result.update(repay_boost_sub_ids(result["subId"], boost_enabled))
    return result


def subscribe_spark_close_on_price(session, owner: str, coll_symbol: str, debt_symbol: str,
                                   stop_loss_price, stop_loss_type: str, take_profit_price,
                                   take_profit_type: str, bundle_id: Optional[int] = None,
                                   market: Optional[str] = None, wallet_address: Optional[str] = None,
                                   use_safe: bool = False) -> Dict[str, Any]:
    return subscribe_close_on_price_generic(
        session, owner, coll_symbol, debt_symbol, stop_loss_price, stop_loss_type, take_profit_price,
        take_profit_type, bundle_id, market, wallet_address, use_safe,
        adapter_cls=SparkAdapter, bundle_protocol="spark",
    )
