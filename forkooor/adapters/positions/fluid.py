"""
Fluid vault positions through the DFS FluidView.

A position is an NFT; ``getPositionByNftId`` returns the position and the
data of the vault it lives in.
"""

from typing import Any, Dict, Optional

from forkooor.abis import field_names, fields
from forkooor.adapters.base import PositionAdapter, to_json

USER_POSITION_FIELDS = (
    "nftId:uint256 owner:address isLiquidated:bool isSupplyPosition:bool supply:uint256 "
    "borrow:uint256 ratio:uint256 tick:int256 tickId:uint256"
)

VAULT_DATA_FIELDS = (
    "vault:address vaultId:uint256 vaultType:uint256 isSmartColl:bool isSmartDebt:bool "
    "supplyToken0:address supplyToken1:address borrowToken0:address borrowToken1:address "
    "supplyToken0Decimals:uint256 supplyToken1Decimals:uint256 borrowToken0Decimals:uint256 "
    "borrowToken1Decimals:uint256 collateralFactor:uint16 liquidationThreshold:uint16 "
    "liquidationMaxLimit:uint16 withdrawalGap:uint16 liquidationPenalty:uint16 borrowFee:uint16 "
    "oracle:address oraclePriceOperate:uint256 oraclePriceLiquidate:uint256 "
    "priceOfSupplyToken0InUSD:uint256 priceOfSupplyToken1InUSD:uint256 "
    "priceOfBorrowToken0InUSD:uint256 priceOfBorrowToken1InUSD:uint256 "
    "vaultSupplyExchangePrice:uint256 vaultBorrowExchangePrice:uint256 supplyRateVault:int256 "
    "borrowRateVault:int256 rewardsOrFeeRateSupply:int256 rewardsOrFeeRateBorrow:int256 "
    "totalPositions:uint256 totalSupplyVault:uint256 totalBorrowVault:uint256 withdrawalLimit:uint256 "
    "withdrawableUntilLimit:uint256 withdrawable:uint256 baseWithdrawalLimit:uint256 "
    "withdrawExpandPercent:uint256 withdrawExpandDuration:uint256 borrowLimit:uint256 "
    "borrowableUntilLimit:uint256 borrowable:uint256 borrowLimitUtilization:uint256 "
    "maxBorrowLimit:uint256 borrowExpandPercent:uint256 borrowExpandDuration:uint256 "
    "baseBorrowLimit:uint256 minimumBorrowing:uint256"
)

FLUID_VIEW_ABI = [
    {
        "inputs": fields("_nftId:uint256"),
        "name": "getPositionByNftId",
        "outputs": [
            {"name": "position", "type": "tuple", "components": fields(USER_POSITION_FIELDS)},
            {"name": "vault", "type": "tuple", "components": fields(VAULT_DATA_FIELDS)},
        ],
        "stateMutability": "view",
        "type": "function",
    }
]


class FluidAdapter(PositionAdapter):
    protocol = "fluid"
    version = ""

    def get_position_by_nft(self, nft_id: int, view_address: Optional[str] = None) -> Dict[str, Any]:
        view = self.session.contract(view_address or self.address("FLUID_VIEW"), FLUID_VIEW_ABI)
        position, vault = view.functions.getPositionByNftId(int(nft_id)).call()

        position = dict(zip(field_names(USER_POSITION_FIELDS), position))
        position.pop("ratio", None)
        return {
            "position": to_json(position),
            "vaultData": to_json(dict(zip(field_names(VAULT_DATA_FIELDS), vault))),
        }
