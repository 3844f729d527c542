from decimal import Decimal

from fastapi import APIRouter
from pydantic import Field

from forkooor.adapters.strategies import curveusd as curveusd_strategies
from forkooor.api.common import Address, ForkRequest, WalletRequest, adapter_for, open_session, respond

router = APIRouter(prefix="/curveusd", tags=["curveusd"])


class GetPositionRequest(ForkRequest):
    controller: Address
    owner: Address


class CreatePositionRequest(WalletRequest):
    controller: Address
    coll_amount: Decimal = Field(..., gt=0)
    debt_amount: Decimal = Field(..., gt=0)
    number_of_bands: int = Field(10, ge=4, le=50)


class BundleRequest(WalletRequest):
    bundle_id: int = Field(..., ge=0)
    controller: Address
    target_ratio: Decimal = Field(..., gt=0)


class RepayBundleRequest(BundleRequest):
    min_ratio: Decimal = Field(..., gt=0)


class BoostBundleRequest(BundleRequest):
    max_ratio: Decimal = Field(..., gt=0)


@router.post("/general/get-position")
def get_position(req: GetPositionRequest):
    def run():
        adapter = adapter_for("curveusd", "", req.fork_id)
        return adapter.get_user_data(req.controller, adapter.resolve_position_owner(req.owner))

    return respond("fetch position info", run)


@router.post("/general/create")
def create(req: CreatePositionRequest):
    def run():
        return adapter_for("curveusd", "", req.fork_id).create_position(
            req.controller, req.coll_amount, req.debt_amount, req.owner, req.number_of_bands,
            req.wallet_address, req.use_safe,
        )

    return respond("create CurveUsd position", run)


@router.post("/strategies/repay-bundle")
def repay_bundle(req: RepayBundleRequest):
    def run():
        return curveusd_strategies.subscribe_repay_bundle(
            open_session(req.fork_id), req.owner, req.bundle_id, req.controller, req.min_ratio,
            req.target_ratio, req.wallet_address, req.use_safe,
        )

    return respond("subscribe to CurveUsd Repay strategy", run)


@router.post("/strategies/boost-bundle")
def boost_bundle(req: BoostBundleRequest):
    def run():
        return curveusd_strategies.subscribe_boost_bundle(
            open_session(req.fork_id), req.owner, req.bundle_id, req.controller, req.max_ratio,
            req.target_ratio, req.wallet_address, req.use_safe,
        )

    return respond("subscribe to CurveUsd Boost strategy", run)
