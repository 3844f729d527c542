import logging
from decimal import Decimal
from typing import List, Optional

from eth_utils import is_address
from fastapi import APIRouter
from pydantic import Field, model_validator

from forkooor import fork_utils, tenderly
from forkooor.api.common import Address, CamelModel, ForkRequest, open_session, respond
from forkooor.config import get_asset_info

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/utils/general", tags=["utils"])


class TenderlyRequest(CamelModel):
    tenderly_project: Optional[str] = None
    tenderly_access_key: Optional[str] = None
    bot_accounts: List[Address] = []


class NewVnetRequest(TenderlyRequest):
    chain_id: int = 1
    start_block: Optional[int] = Field(None, ge=0)


class CloneVnetRequest(TenderlyRequest):
    vnet_id: str = Field(..., min_length=1)


class BotAuthRequest(ForkRequest):
    bot_accounts: List[Address] = Field(..., min_length=1)


class EthBalanceRequest(ForkRequest):
    account: Address
    amount: Decimal = Field(..., ge=0)


class TokenBalanceRequest(ForkRequest):
    token: str = Field(..., description="Token address or symbol")
    account: Address
    amount: Decimal = Field(..., ge=0)


class TimeTravelRequest(ForkRequest):
    amount: int = Field(..., ge=0, description="Seconds to move forward")


class SetTimeRequest(ForkRequest):
    timestamp: int = Field(..., ge=0)


class SafesThresholdRequest(ForkRequest):
    safes: List[Address] = Field(..., min_length=1)
    thresholds: List[int] = Field(..., min_length=1)

    @model_validator(mode="after")
    def same_length(self):
        if len(self.safes) != len(self.thresholds):
            raise ValueError("safes and thresholds must have the same length")
        return self


@router.post("/new-vnet")
def new_vnet(req: NewVnetRequest):
    """Create a virtual testnet; bot accounts (if any) get ETH and BotAuth access."""
    def run():
        vnet = tenderly.create_vnet(req.tenderly_project, req.tenderly_access_key, req.chain_id,
                                    req.start_block)
        if req.bot_accounts:
            fork_utils.set_up_bot_accounts(open_session(vnet["vnetId"]), req.bot_accounts)
        return vnet

    return respond("create vnet", run)


@router.post("/clone-vnet")
def clone_vnet(req: CloneVnetRequest):
    def run():
        rpc = tenderly.clone_vnet(req.vnet_id, req.tenderly_project, req.tenderly_access_key)
        if req.bot_accounts:
            fork_utils.set_up_bot_accounts(open_session(rpc), req.bot_accounts)
        return {"vnetId": rpc}

    return respond("clone vnet", run)


@router.post("/set-bot-auth")
def set_bot_auth(req: BotAuthRequest):
    def run():
        fork_utils.set_up_bot_accounts(open_session(req.fork_id), req.bot_accounts)
        return {"botAccounts": req.bot_accounts}

    return respond("set bot auth", run)


@router.post("/set-eth-balance")
def set_eth_balance(req: EthBalanceRequest):
    def run():
        wei = fork_utils.top_up_account(open_session(req.fork_id), req.account, req.amount)
        return {"account": req.account, "balance": wei}

    return respond("set eth balance", run)


@router.post("/set-token-balance")
def set_token_balance(req: TokenBalanceRequest):
    def run():
        session = open_session(req.fork_id)
        token = req.token if is_address(req.token) else get_asset_info(req.token, session.chain_id)["address"]
        balance = fork_utils.set_token_balance(session, token, req.account, req.amount)
        return {"token": token, "account": req.account, "balance": balance}

    return respond("set token balance", run)


@router.post("/time-travel")
def time_travel(req: TimeTravelRequest):
    return respond("time travel", lambda: fork_utils.time_travel(open_session(req.fork_id), req.amount),
                   serialize=False)


@router.post("/set-time")
def set_time(req: SetTimeRequest):
    return respond("set time", lambda: fork_utils.set_time(open_session(req.fork_id), req.timestamp),
                   serialize=False)


@router.post("/new-address")
def new_address():
    return respond("generate address", lambda: {"address": fork_utils.new_address()})


@router.post("/lower-safes-threshold")
def lower_safes_threshold(req: SafesThresholdRequest):
    def run():
        fork_utils.lower_safes_threshold(open_session(req.fork_id), req.safes, req.thresholds)
        return {"safes": req.safes, "thresholds": req.thresholds}

    return respond("lower safes threshold", run)
