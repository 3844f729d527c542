"""
Liquity V2 trove reads through the DFS LiquityV2View.

Each collateral has its own market (an AddressRegistry), looked up in the
address book as LIQUITY_V2_MARKET_<SYMBOL>. A trove is addressed by its id
within a market, not by its owner.
"""

from typing import Any, Dict, Optional

from forkooor.abis import field_names, fields
from forkooor.adapters.base import PositionAdapter, to_json

TROVE_DATA_FIELDS = (
    "troveId:uint256 owner:address collToken:address status:uint8 collAmount:uint256 "
    "debtAmount:uint256 collPrice:uint256 TCRatio:uint256 annualInterestRate:uint256 "
    "interestBatchManager:address batchDebtShares:uint256"
)

LIQUITY_V2_VIEW_ABI = [
    {
        "inputs": fields("_market:address _troveId:uint256"),
        "name": "getTroveInfo",
        "outputs": [{"name": "trove", "type": "tuple", "components": fields(TROVE_DATA_FIELDS)}],
        "stateMutability": "view",
        "type": "function",
    }
]


class LiquityV2Adapter(PositionAdapter):
    protocol = "liquity"
    version = "v2"

    def market(self, symbol: str) -> str:
        """Market of a collateral symbol (WETH, wstETH, rETH); ETH means WETH."""
        symbol = "WETH" if symbol.upper() == "ETH" else symbol
        return self.address("LIQUITY_V2_MARKET_" + symbol.upper())

    def get_trove_info(self, market_symbol: str, trove_id: int,
                       view_address: Optional[str] = None) -> Dict[str, Any]:
        view = self.session.contract(view_address or self.address("LIQUITY_V2_VIEW"), LIQUITY_V2_VIEW_ABI)
        data = view.functions.getTroveInfo(self.market(market_symbol), int(trove_id)).call()
        info = to_json(dict(zip(field_names(TROVE_DATA_FIELDS), data)))
        # status is an enum, kept numeric
        info["status"] = int(data[3])
        return info
