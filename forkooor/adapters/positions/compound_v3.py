"""
Compound V3 position adapter

Architecture:
- Market: Comet contract (this IS the market, one per base asset)
- View: DFS CompV3View getLoanData(market, user)
- Actions: DFS CompV3Supply / CompV3Borrow on behalf of the wallet
"""

import logging
from typing import Any, Dict

from eth_utils import to_checksum_address

from forkooor.abis import field_names, fields
from forkooor.adapters.base import PositionAdapter, to_json
from forkooor.balances import set_token_balance, to_base_units
from forkooor.recipes import Recipe, comp_v3_borrow, comp_v3_supply, execute_recipe
from forkooor.wallets import approve

logger = logging.getLogger(__name__)

LOAN_DATA_FIELDS = (
    "user:address collAddr:address[] collAmounts:uint256[] depositAmount:uint256 "
    "depositValue:uint256 borrowAmount:uint256 borrowValue:uint256 collValue:uint256"
)

COMP_V3_VIEW_ABI = [
    {
        "inputs": fields("_market:address _user:address"),
        "name": "getLoanData",
        "outputs": [{"name": "data", "type": "tuple", "components": fields(LOAN_DATA_FIELDS)}],
        "stateMutability": "view",
        "type": "function",
    }
]


class CompoundV3Adapter(PositionAdapter):
    protocol = "compound"
    version = "v3"

    def get_loan_data(self, market: str, user: str) -> Dict[str, Any]:
        view = self.view("COMP_V3_VIEW", COMP_V3_VIEW_ABI)
        data = view.functions.getLoanData(to_checksum_address(market), to_checksum_address(user)).call()
        return to_json(dict(zip(field_names(LOAN_DATA_FIELDS), data)))

    def create_position(self, market: str, coll_symbol: str, coll_amount, borrow_symbol: str,
                        borrow_amount, owner: str, wallet_address=None, use_safe=False):
        market = to_checksum_address(market)
        wallet = self.wallet(owner, wallet_address, use_safe)
        coll = self.asset(coll_symbol)
        borrow = self.asset(borrow_symbol)

        set_token_balance(self.session, coll["address"], owner, coll_amount)
        approve(self.session, coll["address"], wallet.address, owner)

        recipe = Recipe("CreateCompoundV3PositionRecipe", [
            comp_v3_supply(market, coll["address"], to_base_units(coll_amount, coll["decimals"]),
                           owner, wallet.address),
            comp_v3_borrow(market, to_base_units(borrow_amount, borrow["decimals"]), owner, wallet.address),
        ])
        execute_recipe(self.session, wallet, recipe)

        logger.info("Compound V3 position created for %s on %s", owner, wallet.address)
        return self.get_loan_data(market, wallet.address)
