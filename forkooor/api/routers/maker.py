from decimal import Decimal
from typing import Literal, Optional

from fastapi import APIRouter
from pydantic import Field, field_validator

from forkooor.adapters.strategies import maker as maker_strategies
from forkooor.api.common import (
    Address,
    ForkRequest,
    LeverageManagementRequest,
    WalletRequest,
    adapter_for,
    open_session,
    respond,
)

router = APIRouter(prefix="/maker", tags=["maker"])


class GetVaultRequest(ForkRequest):
    vault_id: int = Field(..., ge=0)


class GetVaultsRequest(ForkRequest):
    owner: Address = Field(..., description="Vault owner, an EOA is mapped to its DSProxy")


class DsrBalanceRequest(ForkRequest):
    owner: Address


class CreateVaultRequest(WalletRequest):
    ilk: str = Field(..., description="Collateral type, e.g. ETH-A")
    coll_amount: Decimal = Field(..., gt=0)
    debt_amount: Decimal = Field(..., ge=0)


class OpenEmptyVaultRequest(WalletRequest):
    ilk: str


class VaultAmountRequest(WalletRequest):
    vault_id: int = Field(..., ge=0)
    amount: Decimal = Field(..., gt=0)


class VaultMaxAmountRequest(WalletRequest):
    """``amount`` of -1 means everything (whole collateral / whole debt)."""
    vault_id: int = Field(..., ge=0)
    amount: Decimal

    @field_validator("amount")
    @classmethod
    def positive_or_max(cls, value):
        if value <= 0 and value != -1:
            raise ValueError("amount must be positive, or -1 for the whole amount")
        return value


class McdLeverageManagementRequest(LeverageManagementRequest):
    vault_id: int = Field(..., ge=0)


class McdCloseRequest(WalletRequest):
    vault_id: int = Field(..., ge=0)
    trigger_price: Decimal = Field(..., gt=0)
    trigger_state: Literal["OVER", "UNDER"]
    strategy_id: Optional[int] = Field(None, ge=0)


def maker_adapter(fork_id: str):
    return adapter_for("maker", "", fork_id)


@router.post("/general/get-vault")
def get_vault(req: GetVaultRequest):
    return respond("fetch vault info", lambda: maker_adapter(req.fork_id).get_vault_info(req.vault_id))


@router.post("/general/get-vaults")
def get_vaults(req: GetVaultsRequest):
    def run():
        adapter = maker_adapter(req.fork_id)
        return adapter.get_vaults_for_user(adapter.resolve_position_owner(req.owner))

    return respond("fetch vaults", run)


@router.post("/general/get-dsr-balance")
def get_dsr_balance(req: DsrBalanceRequest):
    def run():
        adapter = maker_adapter(req.fork_id)
        return {"owner": req.owner, "balance": adapter.get_dsr_balance(req.owner)}

    return respond("fetch DSR balance", run)


@router.post("/general/create-vault")
def create_vault(req: CreateVaultRequest):
    def run():
        return maker_adapter(req.fork_id).create_vault(req.ilk, req.coll_amount, req.debt_amount, req.owner,
                                                       req.wallet_address, req.use_safe)

    return respond("create Maker vault", run)


@router.post("/general/open-empty-vault")
def open_empty_vault(req: OpenEmptyVaultRequest):
    def run():
        return maker_adapter(req.fork_id).open_empty_vault(req.ilk, req.owner, req.wallet_address, req.use_safe)

    return respond("open empty Maker vault", run)


@router.post("/general/supply")
def supply(req: VaultAmountRequest):
    def run():
        return maker_adapter(req.fork_id).supply(req.vault_id, req.amount, req.owner, req.wallet_address,
                                                 req.use_safe)

    return respond("supply to Maker vault", run)


@router.post("/general/withdraw")
def withdraw(req: VaultMaxAmountRequest):
    def run():
        return maker_adapter(req.fork_id).withdraw(req.vault_id, req.amount, req.owner, req.wallet_address,
                                                   req.use_safe)

    return respond("withdraw from Maker vault", run)


@router.post("/general/borrow")
def borrow(req: VaultAmountRequest):
    def run():
        return maker_adapter(req.fork_id).borrow(req.vault_id, req.amount, req.owner, req.wallet_address,
                                                 req.use_safe)

    return respond("borrow from Maker vault", run)


@router.post("/general/payback")
def payback(req: VaultMaxAmountRequest):
    def run():
        return maker_adapter(req.fork_id).payback(req.vault_id, req.amount, req.owner, req.wallet_address,
                                                  req.use_safe)

    return respond("payback Maker vault", run)


@router.post("/strategies/dfs-automation")
def dfs_automation(req: McdLeverageManagementRequest):
    def run():
        return maker_strategies.subscribe_leverage_management(
            open_session(req.fork_id), req.owner, req.vault_id, req.min_ratio, req.max_ratio,
            req.target_repay_ratio, req.target_boost_ratio, req.boost_enabled, req.wallet_address,
            req.use_safe,
        )

    return respond("subscribe to Maker DFS Automation", run)


def _close_route(path: str, close_to: str, label: str):
    @router.post(path)
    def close(req: McdCloseRequest):
        def run():
            return maker_strategies.subscribe_close_on_price(
                open_session(req.fork_id), req.owner, req.vault_id, req.trigger_price, req.trigger_state,
                close_to, req.strategy_id, req.wallet_address, req.use_safe,
            )

        return respond(f"subscribe to Maker Close To {label} strategy", run)

    return close


close_to_dai = _close_route("/strategies/mcd-close-to-dai", "dai", "Dai")
close_to_coll = _close_route("/strategies/mcd-close-to-coll", "collateral", "Coll")
