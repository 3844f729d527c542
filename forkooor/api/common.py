"""
Request plumbing shared by the routers.

Each handler binds its own ForkSession from the request's ``forkId`` and
runs the operation through ``respond``, which turns any failure into
``500 {"error": "Failed to <what> with error : <message>"}``.
"""

import logging
from decimal import Decimal
from typing import Annotated, Any, Callable, Literal, Optional

from eth_utils import is_address, to_checksum_address
from fastapi.responses import JSONResponse
from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from forkooor.adapters.base import to_json
from forkooor.adapters.positions import get_adapter
from forkooor.session import bind

logger = logging.getLogger(__name__)


def _checksum(value: str) -> str:
    if not is_address(value):
        raise ValueError(f"not a valid address: {value}")
    return to_checksum_address(value)


Address = Annotated[str, AfterValidator(_checksum)]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ForkRequest(CamelModel):
    fork_id: str = Field(..., min_length=1, description="Virtual testnet RPC URL or legacy fork id")


class WalletRequest(ForkRequest):
    """Acting on behalf of ``owner`` through a smart wallet (DSProxy by default)."""
    owner: Address
    wallet_address: Optional[Address] = None
    wallet_type: Literal["dsproxy", "safe"] = "dsproxy"

    @property
    def use_safe(self) -> bool:
        return self.wallet_type == "safe"


class LeverageManagementRequest(WalletRequest):
    min_ratio: Decimal = Field(..., gt=0)
    max_ratio: Decimal = Field(..., gt=0)
    target_repay_ratio: Decimal = Field(..., gt=0)
    target_boost_ratio: Decimal = Field(..., gt=0)
    boost_enabled: bool


def open_session(fork_id: str):
    return bind(fork_id)


def adapter_for(protocol: str, version: str, fork_id: str):
    return get_adapter(protocol, version, open_session(fork_id))


def respond(description: str, fn: Callable[[], Any], serialize: bool = True):
    """``serialize=False`` returns the result as is (integers stay JSON numbers)."""
    try:
        result = fn()
        return to_json(result) if serialize else result
    except Exception as e:
        logger.error("Failed to %s: %s", description, e)
        return JSONResponse(status_code=500, content={"error": f"Failed to {description} with error : {e}"})