from decimal import Decimal
from typing import Optional

from fastapi import APIRouter
from pydantic import Field

from forkooor.adapters.positions.morpho_blue import get_market_id
from forkooor.adapters.strategies import morpho_blue as morpho_strategies
from forkooor.api.common import (
    Address,
    CamelModel,
    ForkRequest,
    WalletRequest,
    adapter_for,
    open_session,
    respond,
)
from forkooor.config import NULL_ADDRESS

router = APIRouter(prefix="/morpho-blue", tags=["morpho-blue"])


class MarketParamsModel(CamelModel):
    loan_token: Address
    collateral_token: Address
    oracle: Address
    irm: Address
    lltv: int = Field(..., ge=0)

    def to_tuple(self):
        return (self.loan_token, self.collateral_token, self.oracle, self.irm, self.lltv)


class GetPositionRequest(ForkRequest, MarketParamsModel):
    owner: Address


class CreatePositionRequest(WalletRequest, MarketParamsModel):
    coll_amount: Decimal = Field(..., gt=0)
    debt_amount: Decimal = Field(..., ge=0)


class BundleRequest(WalletRequest, MarketParamsModel):
    bundle_id: int = Field(..., ge=0)
    target_ratio: Decimal = Field(..., gt=0)
    user: Optional[Address] = Field(None, description="Position owner, defaults to the wallet")


class RepayBundleRequest(BundleRequest):
    min_ratio: Decimal = Field(..., gt=0)


class BoostBundleRequest(BundleRequest):
    max_ratio: Decimal = Field(..., gt=0)


@router.post("/general/get-market-id")
def market_id(req: MarketParamsModel):
    return respond("compute market id", lambda: {"marketId": get_market_id(req.to_tuple())})


@router.post("/general/get-position")
def get_position(req: GetPositionRequest):
    def run():
        adapter = adapter_for("morpho-blue", "", req.fork_id)
        return adapter.get_user_data(req.to_tuple(), adapter.resolve_position_owner(req.owner))

    return respond("fetch position info", run)


@router.post("/general/create")
def create(req: CreatePositionRequest):
    def run():
        return adapter_for("morpho-blue", "", req.fork_id).create_position(
            req.to_tuple(), req.coll_amount, req.debt_amount, req.owner, req.wallet_address, req.use_safe,
        )

    return respond("create MorphoBlue position", run)


@router.post("/strategies/repay-bundle")
def repay_bundle(req: RepayBundleRequest):
    def run():
        return morpho_strategies.subscribe_repay_bundle(
            open_session(req.fork_id), req.owner, req.bundle_id, req.to_tuple(), req.min_ratio,
            req.target_ratio, req.user or NULL_ADDRESS, req.wallet_address, req.use_safe,
        )

    return respond("subscribe to MorphoBlue Repay strategy", run)


@router.post("/strategies/boost-bundle")
def boost_bundle(req: BoostBundleRequest):
    def run():
        return morpho_strategies.subscribe_boost_bundle(
            open_session(req.fork_id), req.owner, req.bundle_id, req.to_tuple(), req.max_ratio,
            req.target_ratio, req.user or NULL_ADDRESS, req.wallet_address, req.use_safe,
        )

    return respond("subscribe to MorphoBlue Boost strategy", run)
