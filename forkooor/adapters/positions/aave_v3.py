"""
Aave V3 position adapter (Spark reuses it, see spark.py)

Architecture:
- Market: PoolAddressesProvider address (default market from the chain address book)
- View: DFS AaveV3View, reads a user's whole position in one call
- Actions: DFS AaveV3Supply / Withdraw / Borrow / Payback, run as a recipe in the user's wallet

Write operations:
1. Mint the token to the owner by balance override (supply / payback only)
2. Approve the wallet to pull it
3. Execute the recipe through the wallet (DSProxy or Safe)
4. Read the position back from the view
"""

import logging
from typing import Any, Dict, List, Optional

from eth_utils import to_checksum_address

from forkooor.abis import field_names, fields
from forkooor.adapters.base import PositionAdapter, to_json
from forkooor.balances import set_token_balance, to_base_units
from forkooor.recipes import (
    VARIABLE_RATE,
    Recipe,
    execute_recipe,
    lending_borrow,
    lending_payback,
    lending_supply,
    lending_withdraw,
)
from forkooor.wallets import approve

logger = logging.getLogger(__name__)

LOAN_DATA_FIELDS = (
    "user:address ratio:uint128 eMode:uint256 collAddr:address[] enabledAsColl:bool[] "
    "borrowAddr:address[] collAmounts:uint256[] borrowStableAmounts:uint256[] "
    "borrowVariableAmounts:uint256[] ltv:uint16 liquidationThreshold:uint16 "
    "liquidationBonus:uint16 priceSource:address label:string"
)

TOKEN_INFO_FIELDS = (
    "aTokenAddress:address underlyingTokenAddress:address assetId:uint16 supplyRate:uint256 "
    "borrowRateVariable:uint256 borrowRateStable:uint256 totalSupply:uint256 "
    "availableLiquidity:uint256 totalBorrow:uint256 totalBorrowVar:uint256 totalBorrowStab:uint256 "
    "collateralFactor:uint256 liquidationRatio:uint256 price:uint256 supplyCap:uint256 "
    "borrowCap:uint256 emodeCategory:uint256 debtCeilingForIsolationMode:uint256 "
    "isolationModeTotalDebt:uint256 usageAsCollateralEnabled:bool borrowingEnabled:bool "
    "stableBorrowRateEnabled:bool isolationModeBorrowingEnabled:bool isSiloedForBorrowing:bool "
    "eModeCollateralFactor:uint256 isFlashLoanEnabled:bool ltv:uint16 liquidationThreshold:uint16 "
    "liquidationBonus:uint16 priceSource:address label:string isActive:bool isPaused:bool isFrozen:bool"
)

LENDING_VIEW_ABI = [
    {
        "inputs": fields("_market:address _user:address"),
        "name": "getLoanData",
        "outputs": [{"name": "data", "type": "tuple", "components": fields(LOAN_DATA_FIELDS)}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": fields("_market:address _tokenAddresses:address[]"),
        "name": "getFullTokensInfo",
        "outputs": [{"name": "tokens", "type": "tuple[]", "components": fields(TOKEN_INFO_FIELDS)}],
        "stateMutability": "view",
        "type": "function",
    },
]


class AaveV3Adapter(PositionAdapter):
    protocol = "aave"
    version = "v3"

    view_key = "AAVE_V3_VIEW"
    market_key = "AAVE_V3_MARKET"
    action_prefix = "AaveV3"

    def market(self, market: Optional[str] = None) -> str:
        return to_checksum_address(market) if market else self.address(self.market_key)

    def get_loan_data(self, market: Optional[str], user: str) -> Dict[str, Any]:
        view = self.view(self.view_key, LENDING_VIEW_ABI)
        data = view.functions.getLoanData(self.market(market), to_checksum_address(user)).call()
        return to_json(dict(zip(field_names(LOAN_DATA_FIELDS), data)))

    def get_full_tokens_info(self, market: Optional[str], assets: List[str]) -> List[Dict[str, Any]]:
        view = self.view(self.view_key, LENDING_VIEW_ABI)
        infos = view.functions.getFullTokensInfo(
            self.market(market), [to_checksum_address(a) for a in assets]
        ).call()
        return [dict(zip(field_names(TOKEN_INFO_FIELDS), info)) for info in infos]

    def asset_id(self, market: str, token_address: str) -> int:
        return int(self.get_full_tokens_info(market, [token_address])[0]["assetId"])

    def _fund_and_approve(self, token: Dict[str, Any], owner: str, amount, wallet) -> None:
        set_token_balance(self.session, token["address"], owner, amount)
        approve(self.session, token["address"], wallet.address, owner)

    def create_position(self, market, coll_symbol: str, debt_symbol: str, coll_amount, debt_amount,
                        owner: str, rate_mode: int = VARIABLE_RATE, wallet_address=None, use_safe=False):
        market = self.market(market)
        wallet = self.wallet(owner, wallet_address, use_safe)
        coll = self.asset(coll_symbol)
        debt = self.asset(debt_symbol)

        self._fund_and_approve(coll, owner, coll_amount, wallet)

        infos = self.get_full_tokens_info(market, [coll["address"], debt["address"]])
        recipe = Recipe(f"Create{self.action_prefix}PositionRecipe", [
            lending_supply(self.action_prefix, market, to_base_units(coll_amount, coll["decimals"]),
                           owner, infos[0]["assetId"]),
            lending_borrow(self.action_prefix, market, to_base_units(debt_amount, debt["decimals"]),
                           owner, infos[1]["assetId"], rate_mode),
        ])
        execute_recipe(self.session, wallet, recipe)

        logger.info("%s position created for %s on %s", self.action_prefix, owner, wallet.address)
        return self.get_loan_data(market, wallet.address)

    def supply(self, market, symbol: str, amount, owner: str, wallet_address=None, use_safe=False):
        market = self.market(market)
        wallet = self.wallet(owner, wallet_address, use_safe)
        token = self.asset(symbol)

        self._fund_and_approve(token, owner, amount, wallet)
        action = lending_supply(self.action_prefix, market, to_base_units(amount, token["decimals"]),
                                owner, self.asset_id(market, token["address"]))
        execute_recipe(self.session, wallet, Recipe(f"{self.action_prefix}SupplyRecipe", [action]))
        return self.get_loan_data(market, wallet.address)

    def withdraw(self, market, symbol: str, amount, owner: str, wallet_address=None, use_safe=False):
        market = self.market(market)
        wallet = self.wallet(owner, wallet_address, use_safe)
        token = self.asset(symbol)

        action = lending_withdraw(self.action_prefix, market, self.asset_id(market, token["address"]),
                                  to_base_units(amount, token["decimals"]), owner)
        execute_recipe(self.session, wallet, Recipe(f"{self.action_prefix}WithdrawRecipe", [action]))
        return self.get_loan_data(market, wallet.address)

    def borrow(self, market, symbol: str, amount, owner: str, rate_mode: int = VARIABLE_RATE,
               wallet_address=None, use_safe=False):
        market = self.market(market)
        wallet = self.wallet(owner, wallet_address, use_safe)
        token = self.asset(symbol)

        action = lending_borrow(self.action_prefix, market, to_base_units(amount, token["decimals"]),
                                owner, self.asset_id(market, token["address"]), rate_mode)
        execute_recipe(self.session, wallet, Recipe(f"{self.action_prefix}BorrowRecipe", [action]))
        return self.get_loan_data(market, wallet.address)

    def payback(self, market, symbol: str, amount, owner: str, rate_mode: int = VARIABLE_RATE,
                wallet_address=None, use_safe=False):
        market = self.market(market)
        wallet = self.wallet(owner, wallet_address, use_safe)
        token = self.asset(symbol)

        self._fund_and_approve(token, owner, amount, wallet)
        action = lending_payback(self.action_prefix, market, to_base_units(amount, token["decimals"]),
                                 owner, self.asset_id(market, token["address"]), rate_mode)
        execute_recipe(self.session, wallet, Recipe(f"{self.action_prefix}PaybackRecipe", [action]))
        return self.get_loan_data(market, wallet.address)
