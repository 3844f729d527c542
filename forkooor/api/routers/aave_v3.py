"""
Aave V3 routes. The general (position) routes are shared with Spark.
"""

import logging
from decimal import Decimal
from typing import List, Literal, Optional

from fastapi import APIRouter
from pydantic import Field, model_validator

from forkooor.adapters.strategies import aave_v3 as aave_strategies
from forkooor.api.common import (
    Address,
    ForkRequest,
    LeverageManagementRequest,
    WalletRequest,
    adapter_for,
    open_session,
    respond,
)
from forkooor.recipes import VARIABLE_RATE

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/aave/v3", tags=["aave-v3"])


class GetPositionRequest(ForkRequest):
    owner: Address = Field(..., description="Smart wallet address, or an EOA (its DSProxy is used)")
    market: Optional[Address] = None


class CreatePositionRequest(WalletRequest):
    market: Optional[Address] = None
    coll_symbol: str
    debt_symbol: str
    coll_amount: Decimal = Field(..., gt=0)
    debt_amount: Decimal = Field(..., ge=0)
    rate_mode: int = VARIABLE_RATE


class AmountRequest(WalletRequest):
    market: Optional[Address] = None
    symbol: str
    amount: Decimal = Field(..., gt=0)


class RateAmountRequest(AmountRequest):
    rate_mode: int = VARIABLE_RATE


class CloseOnPriceRequest(WalletRequest):
    market: Optional[Address] = None
    base_token: str = Field(..., description="Symbol of the priced token")
    quote_token: str = Field(..., description="Symbol the price is quoted in")
    price: Decimal = Field(..., gt=0)
    ratio_state: Literal["OVER", "UNDER"]
    coll_symbol: str
    debt_symbol: str
    close_type: Literal["debt", "collateral"] = "debt"
    bundle_id: Optional[int] = Field(None, ge=0)


class RepayOnPriceRequest(WalletRequest):
    market: Optional[Address] = None
    coll_symbol: str
    debt_symbol: str
    price: Decimal = Field(..., gt=0)
    ratio_state: Literal["OVER", "UNDER"]
    target_ratio: Decimal = Field(..., gt=0)
    bundle_id: Optional[int] = Field(None, ge=0)


class LeverageOnPriceRequest(WalletRequest):
    bundle_id: int = Field(..., ge=0)
    market: Optional[Address] = None
    is_eoa: bool = Field(False, alias="isEOA")
    coll_asset_symbol: str
    debt_asset_symbol: str
    trigger_price: Decimal = Field(..., gt=0)
    price_state: Literal["OVER", "UNDER"]
    target_ratio: Decimal = Field(..., gt=0)


class CloseOnPriceGenericRequest(WalletRequest):
    """A price of 0 turns that side of the range off."""
    market: Optional[Address] = None
    coll_symbol: str
    debt_symbol: str
    stop_loss_price: Decimal = Field(0, ge=0)
    stop_loss_type: Literal["debt", "collateral"] = "debt"
    take_profit_price: Decimal = Field(0, ge=0)
    take_profit_type: Literal["debt", "collateral"] = "collateral"
    bundle_id: Optional[int] = Field(None, ge=0)

    @model_validator(mode="after")
    def price_set(self):
        if self.stop_loss_price == 0 and self.take_profit_price == 0:
            raise ValueError("stopLossPrice or takeProfitPrice must be set")
        return self


class GenericSubRequest(WalletRequest):
    strategy_or_bundle_id: int = Field(..., ge=0)
    is_bundle: bool = True
    trigger_data: List[str]
    sub_data: List[str]


def add_general_routes(router: APIRouter, protocol: str, version: str, label: str) -> None:
    """Position routes (get-position, create, supply, withdraw, borrow, payback) for an Aave V3 style market."""

    @router.post("/general/get-position")
    def get_position(req: GetPositionRequest):
        def run():
            adapter = adapter_for(protocol, version, req.fork_id)
            return adapter.get_loan_data(req.market, adapter.resolve_position_owner(req.owner))

        return respond("fetch position info", run)

    @router.post("/general/create")
    def create(req: CreatePositionRequest):
        def run():
            adapter = adapter_for(protocol, version, req.fork_id)
            return adapter.create_position(req.market, req.coll_symbol, req.debt_symbol, req.coll_amount,
                                           req.debt_amount, req.owner, req.rate_mode, req.wallet_address,
                                           req.use_safe)

        return respond(f"create {label} position", run)

    @router.post("/general/supply")
    def supply(req: AmountRequest):
        def run():
            adapter = adapter_for(protocol, version, req.fork_id)
            return adapter.supply(req.market, req.symbol, req.amount, req.owner, req.wallet_address,
                                  req.use_safe)

        return respond(f"supply to {label} position", run)

    @router.post("/general/withdraw")
    def withdraw(req: AmountRequest):
        def run():
            adapter = adapter_for(protocol, version, req.fork_id)
            return adapter.withdraw(req.market, req.symbol, req.amount, req.owner, req.wallet_address,
                                    req.use_safe)

        return respond(f"withdraw from {label} position", run)

    @router.post("/general/borrow")
    def borrow(req: RateAmountRequest):
        def run():
            adapter = adapter_for(protocol, version, req.fork_id)
            return adapter.borrow(req.market, req.symbol, req.amount, req.owner, req.rate_mode,
                                  req.wallet_address, req.use_safe)

        return respond(f"borrow from {label} position", run)

    @router.post("/general/payback")
    def payback(req: RateAmountRequest):
        def run():
            adapter = adapter_for(protocol, version, req.fork_id)
            return adapter.payback(req.market, req.symbol, req.amount, req.owner, req.rate_mode,
                                   req.wallet_address, req.use_safe)

        return respond(f"payback {label} position", run)


add_general_routes(router, "aave", "v3", "Aave V3")


@router.post("/strategies/dfs-automation")
def dfs_automation(req: LeverageManagementRequest):
    def run():
        return aave_strategies.subscribe_leverage_management(
            open_session(req.fork_id), req.owner, req.min_ratio, req.max_ratio, req.target_repay_ratio,
            req.target_boost_ratio, req.boost_enabled, req.wallet_address, req.use_safe,
        )

    return respond("subscribe to Aave V3 DFS Automation", run)


@router.post("/strategies/close-on-price")
def close_on_price(req: CloseOnPriceRequest):
    def run():
        return aave_strategies.subscribe_close_on_price(
            open_session(req.fork_id), req.owner, req.base_token, req.quote_token, req.price,
            req.ratio_state, req.coll_symbol, req.debt_symbol, req.close_type, req.bundle_id,
            req.market, req.wallet_address, req.use_safe,
        )

    return respond("subscribe to Aave V3 Close On Price strategy", run)


@router.post("/strategies/generic")
def generic(req: GenericSubRequest):
    def run():
        return aave_strategies.subscribe_generic(
            open_session(req.fork_id), req.owner, req.strategy_or_bundle_id, req.is_bundle,
            req.trigger_data, req.sub_data, req.wallet_address, req.use_safe,
        )

    return respond("subscribe to Aave V3 Generic strategy", run)


@router.post("/strategies/repay-on-price")
def repay_on_price(req: RepayOnPriceRequest):
    def run():
        return aave_strategies.subscribe_repay_on_price(
            open_session(req.fork_id), req.owner, req.coll_symbol, req.debt_symbol, req.price,
            req.ratio_state, req.target_ratio, req.bundle_id, req.market, req.wallet_address, req.use_safe,
        )

    return respond("subscribe to Aave V3 repay on price strategy", run)


@router.post("/strategies/leverage-management-on-price-generic")
def leverage_management_on_price(req: LeverageOnPriceRequest):
    def run():
        return aave_strategies.subscribe_leverage_management_on_price(
            open_session(req.fork_id), req.owner, req.bundle_id, req.coll_asset_symbol, req.debt_asset_symbol,
            req.trigger_price, req.price_state, req.target_ratio, req.is_eoa, req.market,
            req.wallet_address, req.use_safe,
        )

    return respond("subscribe to Aave V3 Leverage Management On Price strategy", run)


@router.post("/strategies/close-on-price-generic")
def close_on_price_generic(req: CloseOnPriceGenericRequest):
    def run():
        return aave_strategies.subscribe_close_on_price_generic(
            open_session(req.fork_id), req.owner, req.coll_symbol, req.debt_symbol, req.stop_loss_price,
            req.stop_loss_type, req.take_profit_price, req.take_profit_type, req.bundle_id, req.market,
            req.wallet_address, req.use_safe,
        )

    return respond("subscribe to Aave V3 Close On Price strategy", run)
