from decimal import Decimal
from typing import Literal

from fastapi import APIRouter
from pydantic import Field

from forkooor.adapters.strategies import liquity as liquity_strategies
from forkooor.api.common import Address, ForkRequest, WalletRequest, adapter_for, open_session, respond

router = APIRouter(prefix="/liquity", tags=["liquity"])


class GetTroveRequest(ForkRequest):
    sender: Address = Field(..., description="Trove owner, an EOA is mapped to its DSProxy")


class InsertPositionRequest(ForkRequest):
    coll_amount: int = Field(..., ge=0, description="Collateral in wei")
    debt_amount: int = Field(..., ge=0, description="LUSD debt in wei")


class OpenTroveRequest(WalletRequest):
    coll_amount: Decimal = Field(..., gt=0, description="WETH")
    debt_amount: Decimal = Field(..., gt=0, description="LUSD")


class AdjustTroveRequest(WalletRequest):
    coll_action: Literal["supply", "withdraw"]
    coll_amount: Decimal = Field(..., ge=0)
    debt_action: Literal["payback", "borrow"]
    debt_amount: Decimal = Field(..., ge=0)


class LiquityLeverageManagementRequest(WalletRequest):
    min_ratio: Decimal = Field(..., gt=0)
    max_ratio: Decimal = Field(..., gt=0)
    target_ratio_repay: Decimal = Field(..., gt=0)
    target_ratio_boost: Decimal = Field(..., gt=0)
    boost_enabled: bool


def liquity_adapter(fork_id: str):
    return adapter_for("liquity", "v1", fork_id)


@router.post("/general/get-trove")
def get_trove(req: GetTroveRequest):
    def run():
        adapter = liquity_adapter(req.fork_id)
        return adapter.get_trove_info(adapter.resolve_position_owner(req.sender))

    return respond("fetch trove info", run)


@router.post("/general/get-insert-position")
def get_insert_position(req: InsertPositionRequest):
    def run():
        return liquity_adapter(req.fork_id).get_insert_position(req.coll_amount, req.debt_amount)

    return respond("fetch trove insert position", run)


@router.post("/general/open-trove")
def open_trove(req: OpenTroveRequest):
    def run():
        return liquity_adapter(req.fork_id).open_trove(req.coll_amount, req.debt_amount, req.owner,
                                                       req.wallet_address, req.use_safe)

    return respond("open Liquity trove", run)


@router.post("/general/adjust-trove")
def adjust_trove(req: AdjustTroveRequest):
    def run():
        return liquity_adapter(req.fork_id).adjust_trove(req.coll_action, req.coll_amount, req.debt_action,
                                                         req.debt_amount, req.owner, req.wallet_address,
                                                         req.use_safe)

    return respond("adjust Liquity trove", run)


@router.post("/strategies/leverage-management")
def leverage_management(req: LiquityLeverageManagementRequest):
    def run():
        return liquity_strategies.subscribe_leverage_management(
            open_session(req.fork_id), req.owner, req.min_ratio, req.max_ratio, req.target_ratio_repay,
            req.target_ratio_boost, req.boost_enabled, req.wallet_address, req.use_safe,
        )

    return respond("subscribe to Liquity Leverage Management strategies", run)
