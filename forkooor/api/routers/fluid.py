from typing import Optional

from fastapi import APIRouter
from pydantic import Field

from forkooor.api.common import Address, ForkRequest, adapter_for, respond

router = APIRouter(prefix="/fluid", tags=["fluid"])


class GetPositionRequest(ForkRequest):
    nft_id: int = Field(..., ge=0)
    view_address: Optional[Address] = Field(None, description="Overrides the FLUID_VIEW address book entry")


@router.post("/general/get-position-by-nft")
def get_position_by_nft(req: GetPositionRequest):
    def run():
        return adapter_for("fluid", "", req.fork_id).get_position_by_nft(req.nft_id, req.view_address)

    return respond("fetch Fluid position", run)
