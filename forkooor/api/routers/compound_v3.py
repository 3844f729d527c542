from decimal import Decimal

from fastapi import APIRouter
from pydantic import Field

from forkooor.adapters.strategies import compound_v3 as comp_strategies
from forkooor.api.common import (
    Address,
    ForkRequest,
    LeverageManagementRequest,
    WalletRequest,
    adapter_for,
    open_session,
    respond,
)

router = APIRouter(prefix="/compound/v3", tags=["compound-v3"])


class GetPositionRequest(ForkRequest):
    market: Address = Field(..., description="Comet address")
    owner: Address


class CreatePositionRequest(WalletRequest):
    market: Address
    coll_symbol: str
    coll_amount: Decimal = Field(..., gt=0)
    borrow_symbol: str
    borrow_amount: Decimal = Field(..., ge=0)


class CompLeverageManagementRequest(LeverageManagementRequest):
    market: Address
    base_token: Address
    is_eoa: bool = Field(False, alias="isEOA")


@router.post("/general/get-position")
def get_position(req: GetPositionRequest):
    def run():
        adapter = adapter_for("compound", "v3", req.fork_id)
        return adapter.get_loan_data(req.market, adapter.resolve_position_owner(req.owner))

    return respond("fetch position info", run)


@router.post("/general/create")
def create(req: CreatePositionRequest):
    def run():
        adapter = adapter_for("compound", "v3", req.fork_id)
        return adapter.create_position(req.market, req.coll_symbol, req.coll_amount, req.borrow_symbol,
                                       req.borrow_amount, req.owner, req.wallet_address, req.use_safe)

    return respond("create Compound V3 position", run)


@router.post("/strategies/dfs-automation")
def dfs_automation(req: CompLeverageManagementRequest):
    def run():
        return comp_strategies.subscribe_leverage_management(
            open_session(req.fork_id), req.owner, req.market, req.base_token, req.min_ratio, req.max_ratio,
            req.target_repay_ratio, req.target_boost_ratio, req.boost_enabled, req.is_eoa,
            req.wallet_address, req.use_safe,
        )

    return respond("subscribe to Compound V3 DFS Automation", run)
