from typing import Optional

from fastapi import APIRouter
from pydantic import Field

from forkooor.api.common import Address, ForkRequest, adapter_for, respond

router = APIRouter(prefix="/liquity-v2", tags=["liquity-v2"])


class GetTroveRequest(ForkRequest):
    market: str = Field(..., description="Collateral symbol of the market: WETH, wstETH or rETH")
    trove_id: int = Field(..., ge=0)
    view_address: Optional[Address] = Field(None, description="Overrides the LIQUITY_V2_VIEW address book entry")


@router.post("/general/get-trove")
def get_trove(req: GetTroveRequest):
    def run():
        adapter = adapter_for("liquity", "v2", req.fork_id)
        return adapter.get_trove_info(req.market, req.trove_id, req.view_address)

    return respond("fetch trove info", run)
