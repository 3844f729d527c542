"""
Liquity (v1) troves through the DFS LiquityView.

Both trove assets have 18 decimals (WETH collateral, LUSD debt). Sorted
list hints are searched by the view with a fixed number of trials and seed.
"""

import logging
from typing import Any, Dict

from eth_utils import to_checksum_address

from forkooor.abis import field_names, fields
from forkooor.adapters.base import PositionAdapter, to_json
from forkooor.balances import set_token_balance, to_base_units
from forkooor.recipes import Recipe, execute_recipe, liquity_adjust, liquity_open
from forkooor.wallets import approve

logger = logging.getLogger(__name__)

TROVE_INFO_FIELDS = (
    "troveStatus:uint256 collAmount:uint256 debtAmount:uint256 collPrice:uint256 "
    "TCRatio:uint256 borrowingFeeWithDecay:uint256 recoveryMode:bool"
)

# Hint search parameters
NUM_OF_TRIALS = 20
RANDOM_SEED = 42

# 5% max borrowing fee
MAX_FEE_PERCENTAGE = 5 * 10 ** 16

COLL_ACTIONS = {"supply": 0, "withdraw": 1}
DEBT_ACTIONS = {"payback": 0, "borrow": 1}

LIQUITY_VIEW_ABI = [
    {
        "inputs": fields("_troveOwner:address"),
        "name": "getTroveInfo",
        "outputs": fields(TROVE_INFO_FIELDS),
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": fields("_collAmount:uint256 _debtAmount:uint256 _numTrials:uint256 _inputRandomSeed:uint256"),
        "name": "getInsertPosition",
        "outputs": fields("upperHint:address lowerHint:address"),
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": fields(
            "_troveOwner:address _collChangeAction:uint8 _lusdChangeAction:uint8 _from:address "
            "_collAmount:uint256 _lusdAmount:uint256"
        ),
        "name": "predictNICRForAdjust",
        "outputs": fields("NICR:uint256"),
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": fields("_CR:uint256 _numTrials:uint256 _inputRandomSeed:uint256"),
        "name": "getApproxHint",
        "outputs": fields("hintAddress:address diff:uint256 latestRandomSeed:uint256"),
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": fields("_ICR:uint256 _prevId:address _nextId:address"),
        "name": "findInsertPosition",
        "outputs": fields("upperHint:address lowerHint:address"),
        "stateMutability": "view",
        "type": "function",
    },
]


class LiquityAdapter(PositionAdapter):
    protocol = "liquity"
    version = "v1"

    def _view(self):
        return self.view("LIQUITY_VIEW", LIQUITY_VIEW_ABI)

    def get_trove_info(self, owner: str) -> Dict[str, Any]:
        data = self._view().functions.getTroveInfo(to_checksum_address(owner)).call()
        info = dict(zip(field_names(TROVE_INFO_FIELDS), data))
        info = to_json(info)
        # status is an enum, kept numeric
        info["troveStatus"] = int(data[0])
        return info

    def get_insert_position(self, coll_amount: int, debt_amount: int) -> Dict[str, str]:
        upper, lower = self._view().functions.getInsertPosition(
            int(coll_amount), int(debt_amount), NUM_OF_TRIALS, RANDOM_SEED
        ).call()
        return {"upperHint": upper, "lowerHint": lower}

    def get_hints_for_adjust(self, owner: str, coll_action: str, coll_amount: int, debt_action: str,
                             debt_amount: int) -> Dict[str, str]:
        """Hints for the trove's position after the adjustment (amounts in wei)."""
        view = self._view()
        owner = to_checksum_address(owner)
        nicr = view.functions.predictNICRForAdjust(
            owner, COLL_ACTIONS[coll_action], DEBT_ACTIONS[debt_action], owner, int(coll_amount), int(debt_amount)
        ).call()
        approx_hint = view.functions.getApproxHint(nicr, NUM_OF_TRIALS, RANDOM_SEED).call()[0]
        upper, lower = view.functions.findInsertPosition(nicr, approx_hint, approx_hint).call()
        return {"upperHint": upper, "lowerHint": lower}

    def _fund_and_approve(self, symbol: str, owner: str, amount, wallet) -> None:
        token = self.asset(symbol)
        set_token_balance(self.session, token["address"], owner, amount)
        approve(self.session, token["address"], wallet.address, owner)

    def open_trove(self, coll_amount, debt_amount, owner: str, wallet_address=None, use_safe=False):
        wallet = self.wallet(owner, wallet_address, use_safe)
        coll_wei = to_base_units(coll_amount, 18)
        debt_wei = to_base_units(debt_amount, 18)
        hints = self.get_insert_position(coll_wei, debt_wei)

        self._fund_and_approve("WETH", owner, coll_amount, wallet)

        action = liquity_open(MAX_FEE_PERCENTAGE, coll_wei, debt_wei, owner, owner,
                              hints["upperHint"], hints["lowerHint"])
        execute_recipe(self.session, wallet, Recipe("LiquityOpenRecipe", [action]))

        logger.info("trove opened for %s on %s", owner, wallet.address)
        return self.get_trove_info(wallet.address)

    def adjust_trove(self, coll_action: str, coll_amount, debt_action: str, debt_amount, owner: str,
                     wallet_address=None, use_safe=False):
        """
        ``coll_action`` is 'supply' or 'withdraw', ``debt_action`` is 'payback' or 'borrow'.
        Supplied collateral and paid back LUSD are minted to the owner first.
        """
        if coll_action not in COLL_ACTIONS:
            raise ValueError(f"collAction must be one of {sorted(COLL_ACTIONS)}")
        if debt_action not in DEBT_ACTIONS:
            raise ValueError(f"debtAction must be one of {sorted(DEBT_ACTIONS)}")

        wallet = self.wallet(owner, wallet_address, use_safe)
        coll_wei = to_base_units(coll_amount, 18)
        debt_wei = to_base_units(debt_amount, 18)
        hints = self.get_hints_for_adjust(wallet.address, coll_action, coll_wei, debt_action, debt_wei)

        if coll_action == "supply":
            self._fund_and_approve("WETH", owner, coll_amount, wallet)
        if debt_action == "payback":
            self._fund_and_approve("LUSD", owner, debt_amount, wallet)

        action = liquity_adjust(MAX_FEE_PERCENTAGE, coll_wei, debt_wei, COLL_ACTIONS[coll_action],
                                DEBT_ACTIONS[debt_action], owner, owner, hints["upperHint"], hints["lowerHint"])
        execute_recipe(self.session, wallet, Recipe("LiquityAdjustRecipe", [action]))
        return self.get_trove_info(wallet.address)
