from fastapi import APIRouter

from forkooor.adapters.strategies import spark as spark_strategies
from forkooor.api.common import LeverageManagementRequest, open_session, respond
from forkooor.api.routers.aave_v3 import CloseOnPriceGenericRequest, add_general_routes

router = APIRouter(prefix="/spark", tags=["spark"])

add_general_routes(router, "spark", "", "Spark")


@router.post("/strategies/dfs-automation")
def dfs_automation(req: LeverageManagementRequest):
    def run():
        return spark_strategies.subscribe_spark_leverage_management(
            open_session(req.fork_id), req.owner, req.min_ratio, req.max_ratio, req.target_repay_ratio,
            req.target_boost_ratio, req.boost_enabled, req.wallet_address, req.use_safe,
        )

    return respond("subscribe to Spark DFS Automation", run)


@router.post("/strategies/close-on-price-generic")
def close_on_price(req: CloseOnPriceGenericRequest):
    def run():
        return spark_strategies.subscribe_spark_close_on_price(
            open_session(req.fork_id), req.owner, req.coll_symbol, req.debt_symbol, req.stop_loss_price,
            req.stop_loss_type, req.take_profit_price, req.take_profit_type, req.bundle_id, req.market,
            req.wallet_address, req.use_safe,
        )

    return respond("subscribe to Spark Close On Price strategy", run)
