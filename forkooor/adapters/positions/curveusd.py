"""
CurveUSD (crvUSD LLAMMA) positions: reads through the DFS CurveUsdView, loans
opened with the DFS CurveUsdCreate action. crvUSD has 18 decimals.
"""

import logging
from typing import Any, Dict

from eth_utils import to_checksum_address

from forkooor.abis import field_names, fields
from forkooor.adapters.base import PositionAdapter, to_json
from forkooor.balances import set_token_balance, to_base_units
from forkooor.recipes import Recipe, curveusd_create, execute_recipe
from forkooor.wallets import approve

logger = logging.getLogger(__name__)

USER_DATA_FIELDS = (
    "loanExists:bool collateralPrice:uint256 marketCollateralAmount:uint256 "
    "curveUsdCollateralAmount:uint256 debtAmount:uint256 N:uint256 priceLow:uint256 "
    "priceHigh:uint256 liquidationDiscount:uint256 health:uint256 bandRange:int256[2] "
    "usersBands:uint256[][2] collRatio:uint256 isInSoftLiquidation:bool"
)

CURVEUSD_VIEW_ABI = [
    {
        "inputs": fields("market:address user:address"),
        "name": "userData",
        "outputs": [{"name": "", "type": "tuple", "components": fields(USER_DATA_FIELDS)}],
        "stateMutability": "view",
        "type": "function",
    }
]

CURVEUSD_CONTROLLER_ABI = [
    {
        "inputs": [],
        "name": "collateral_token",
        "outputs": [{"name": "", "type": "address"}],
        "stateMutability": "view",
        "type": "function",
    }
]


class CurveUsdAdapter(PositionAdapter):
    protocol = "curveusd"
    version = ""

    def get_user_data(self, controller: str, user: str) -> Dict[str, Any]:
        view = self.view("CURVEUSD_VIEW", CURVEUSD_VIEW_ABI)
        data = view.functions.userData(to_checksum_address(controller), to_checksum_address(user)).call()
        return to_json(dict(zip(field_names(USER_DATA_FIELDS), data)))

    def collateral_token(self, controller: str) -> str:
        return self.session.contract(controller, CURVEUSD_CONTROLLER_ABI).functions.collateral_token().call()

    def create_position(self, controller: str, coll_amount, debt_amount, owner: str, n_bands: int,
                        wallet_address=None, use_safe=False) -> Dict[str, Any]:
        controller = to_checksum_address(controller)
        wallet = self.wallet(owner, wallet_address, use_safe)
        coll_token = self.collateral_token(controller)

        set_token_balance(self.session, coll_token, owner, coll_amount)
        approve(self.session, coll_token, wallet.address, owner)

        action = curveusd_create(controller, owner, owner,
                                 to_base_units(coll_amount, self.token_decimals(coll_token)),
                                 to_base_units(debt_amount, 18), int(n_bands))
        execute_recipe(self.session, wallet, Recipe("CreateCurveUsdPosition", [action]))

        logger.info("CurveUSD position created for %s on %s", owner, wallet.address)
        return self.get_user_data(controller, wallet.address)
