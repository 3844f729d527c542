"""
Morpho Blue position adapter

A market is identified by its params (loanToken, collateralToken, oracle, irm, lltv);
the market id is keccak256(abi.encode(params)), computed locally.
"""

import logging
from typing import Any, Dict, Sequence

from eth_abi import encode
from eth_utils import keccak, to_checksum_address

from forkooor.abis import field_names, fields
from forkooor.adapters.base import PositionAdapter, to_json
from forkooor.balances import set_token_balance, to_base_units
from forkooor.recipes import Recipe, execute_recipe, morpho_blue_borrow, morpho_blue_supply_collateral
from forkooor.wallets import approve

logger = logging.getLogger(__name__)

MARKET_PARAMS_FIELDS = "loanToken:address collateralToken:address oracle:address irm:address lltv:uint256"
MARKET_PARAMS_TYPES = ["address", "address", "address", "address", "uint256"]

USER_INFO_FIELDS = (
    "supplyShares:uint256 suppliedInAssets:uint256 borrowShares:uint256 "
    "borrowedInAssets:uint256 collateral:uint256"
)

MORPHO_BLUE_VIEW_ABI = [
    {
        "inputs": [
            {"name": "_market", "type": "tuple", "components": fields(MARKET_PARAMS_FIELDS)},
            {"name": "_user", "type": "address"},
        ],
        "name": "getUserInfo",
        "outputs": [{"name": "", "type": "tuple", "components": fields(USER_INFO_FIELDS)}],
        "stateMutability": "nonpayable",
        "type": "function",
    }
]


def normalize_market_params(market_params: Sequence) -> tuple:
    if len(market_params) != 5:
        raise ValueError("marketParams must be [loanToken, collateralToken, oracle, irm, lltv]")
    loan, coll, oracle, irm, lltv = market_params
    return (
        to_checksum_address(loan),
        to_checksum_address(coll),
        to_checksum_address(oracle),
        to_checksum_address(irm),
        int(lltv),
    )


def get_market_id(market_params: Sequence) -> str:
    return "0x" + keccak(encode(MARKET_PARAMS_TYPES, list(normalize_market_params(market_params)))).hex()


class MorphoBlueAdapter(PositionAdapter):
    protocol = "morpho-blue"
    version = ""

    def get_user_data(self, market_params: Sequence, user: str) -> Dict[str, Any]:
        view = self.view("MORPHO_BLUE_VIEW", MORPHO_BLUE_VIEW_ABI)
        data = view.functions.getUserInfo(normalize_market_params(market_params),
                                          to_checksum_address(user)).call()
        return to_json(dict(zip(field_names(USER_INFO_FIELDS), data)))

    def create_position(self, market_params: Sequence, coll_amount, debt_amount, owner: str,
                        wallet_address=None, use_safe=False) -> Dict[str, Any]:
        """Supply collateral from the owner and borrow the loan token back to them."""
        market_params = normalize_market_params(market_params)
        loan_token, coll_token = market_params[0], market_params[1]
        wallet = self.wallet(owner, wallet_address, use_safe)

        set_token_balance(self.session, coll_token, owner, coll_amount)
        approve(self.session, coll_token, wallet.address, owner)

        recipe = Recipe("CreateMorphoBluePosition", [
            morpho_blue_supply_collateral(market_params, to_base_units(coll_amount, self.token_decimals(coll_token)),
                                          owner, wallet.address),
            morpho_blue_borrow(market_params, to_base_units(debt_amount, self.token_decimals(loan_token)),
                               wallet.address, owner),
        ])
        execute_recipe(self.session, wallet, recipe)

        logger.info("Morpho Blue position created for %s on %s", owner, wallet.address)
        return self.get_user_data(market_params, wallet.address)
