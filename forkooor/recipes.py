"""
DFS recipes: a named list of actions run by RecipeExecutor inside the wallet.

Only the actions the position routes need are encoded here. A param mapping
entry of 0 uses the encoded value; n > 0 replaces it with the return value
of action n (1-based).
"""

import logging
from typing import List, Optional, Sequence

from eth_abi import encode

from forkooor.abis import encode_call
from forkooor.config import NULL_ADDRESS
from forkooor.wallets import get_addr_from_registry, get_name_id

logger = logging.getLogger(__name__)

RECIPE_TUPLE = "(string,bytes[],bytes32[],bytes4[],uint8[][])"

VARIABLE_RATE = 2

# Params structs of the lending actions (field order matters)
AAVE_V3_SUPPLY_TYPES = ["uint256", "address", "uint16", "bool", "bool", "bool", "address", "address"]
AAVE_V3_WITHDRAW_TYPES = ["uint16", "bool", "uint256", "address", "address"]
AAVE_V3_BORROW_TYPES = ["uint256", "address", "uint8", "uint16", "bool", "bool", "address", "address"]
AAVE_V3_PAYBACK_TYPES = ["uint256", "address", "uint8", "uint16", "bool", "bool", "address", "address"]
COMP_V3_SUPPLY_TYPES = ["address", "address", "uint256", "address", "address"]
COMP_V3_BORROW_TYPES = ["address", "uint256", "address", "address"]
MCD_OPEN_TYPES = ["address", "address"]
MCD_SUPPLY_TYPES = ["uint256", "uint256", "address", "address", "address"]
MCD_WITHDRAW_TYPES = ["uint256", "uint256", "address", "address", "address"]
MCD_GENERATE_TYPES = ["uint256", "uint256", "address", "address"]
MCD_PAYBACK_TYPES = ["uint256", "uint256", "address", "address"]
LIQUITY_OPEN_TYPES = ["uint256", "uint256", "uint256", "address", "address", "address", "address"]
LIQUITY_ADJUST_TYPES = [
    "uint256", "uint256", "uint256", "uint8", "uint8", "address", "address", "address", "address",
]
MORPHO_BLUE_MARKET_TYPE = "(address,address,address,address,uint256)"
MORPHO_BLUE_SUPPLY_COLL_TYPES = [MORPHO_BLUE_MARKET_TYPE, "uint256", "address", "address"]
MORPHO_BLUE_BORROW_TYPES = [MORPHO_BLUE_MARKET_TYPE, "uint256", "address", "address"]
CURVEUSD_CREATE_TYPES = ["address", "address", "address", "uint256", "uint256", "uint256"]

# Return value of the first action of a recipe
FROM_ACTION_1 = 1


class Action:
    def __init__(self, name: str, param_types: Sequence[str], values: Sequence,
                 param_mapping: Optional[Sequence[int]] = None):
        if len(param_types) != len(values):
            raise ValueError(f"{name}: expected {len(param_types)} params, got {len(values)}")
        if param_mapping is not None and len(param_mapping) != len(param_types):
            raise ValueError(f"{name}: param mapping needs {len(param_types)} entries")
        self.name = name
        self.param_types = list(param_types)
        self.values = list(values)
        self.param_mapping = list(param_mapping) if param_mapping is not None else [0] * len(param_types)

    def __repr__(self):
        return f"Action({self.name})"

    @property
    def action_id(self) -> bytes:
        return get_name_id(self.name)

    def encode(self) -> bytes:
        return encode([f"({','.join(self.param_types)})"], [tuple(self.values)])


class Recipe:
    def __init__(self, name: str, actions: List[Action]):
        self.name = name
        self.actions = list(actions)

    def to_tuple(self):
        return (
            self.name,
            [a.encode() for a in self.actions],
            [],
            [a.action_id for a in self.actions],
            [a.param_mapping for a in self.actions],
        )

    def encode(self) -> bytes:
        """executeRecipe calldata."""
        return encode_call("executeRecipe", [RECIPE_TUPLE], [self.to_tuple()])


def execute_recipe(session, wallet, recipe: Recipe):
    executor = get_addr_from_registry(session, "RecipeExecutor")
    logger.info("executing recipe %s %s through %s", recipe.name, recipe.actions, wallet.address)
    return wallet.execute(executor, recipe.encode())


# --------- Aave V3 style actions (Aave V3 and Spark share layouts) ----------

def lending_supply(prefix, market, amount, from_addr, asset_id, enable_as_coll=True):
    return Action(f"{prefix}Supply", AAVE_V3_SUPPLY_TYPES, [
        amount, from_addr, asset_id, enable_as_coll, False, False, market, NULL_ADDRESS,
    ])


def lending_withdraw(prefix, market, asset_id, amount, to):
    return Action(f"{prefix}Withdraw", AAVE_V3_WITHDRAW_TYPES, [
        asset_id, False, amount, to, market,
    ])


def lending_borrow(prefix, market, amount, to, asset_id, rate_mode=VARIABLE_RATE):
    return Action(f"{prefix}Borrow", AAVE_V3_BORROW_TYPES, [
        amount, to, rate_mode, asset_id, False, False, market, NULL_ADDRESS,
    ])


def lending_payback(prefix, market, amount, from_addr, asset_id, rate_mode=VARIABLE_RATE):
    return Action(f"{prefix}Payback", AAVE_V3_PAYBACK_TYPES, [
        amount, from_addr, rate_mode, asset_id, False, False, market, NULL_ADDRESS,
    ])


# --------- Compound V3 ----------

def comp_v3_supply(market, token, amount, from_addr, on_behalf=NULL_ADDRESS):
    return Action("CompV3Supply", COMP_V3_SUPPLY_TYPES, [market, token, amount, from_addr, on_behalf])


def comp_v3_borrow(market, amount, to, on_behalf=NULL_ADDRESS):
    return Action("CompV3Borrow", COMP_V3_BORROW_TYPES, [market, amount, to, on_behalf])


# --------- Maker ----------

def mcd_open(join, manager):
    return Action("McdOpen", MCD_OPEN_TYPES, [join, manager])


def mcd_supply(vault_id, amount, join, from_addr, manager, piped_vault=False):
    """``piped_vault`` takes the vault id from the first action (an McdOpen)."""
    mapping = [FROM_ACTION_1, 0, 0, 0, 0] if piped_vault else None
    return Action("McdSupply", MCD_SUPPLY_TYPES, [vault_id, amount, join, from_addr, manager], mapping)


def mcd_withdraw(vault_id, amount, join, to, manager):
    return Action("McdWithdraw", MCD_WITHDRAW_TYPES, [vault_id, amount, join, to, manager])


def mcd_generate(vault_id, amount, to, manager, piped_vault=False):
    mapping = [FROM_ACTION_1, 0, 0, 0] if piped_vault else None
    return Action("McdGenerate", MCD_GENERATE_TYPES, [vault_id, amount, to, manager], mapping)


def mcd_payback(vault_id, amount, from_addr, manager):
    return Action("McdPayback", MCD_PAYBACK_TYPES, [vault_id, amount, from_addr, manager])


# --------- Liquity ----------

def liquity_open(max_fee, coll_amount, lusd_amount, from_addr, to, upper_hint, lower_hint):
    return Action("LiquityOpen", LIQUITY_OPEN_TYPES, [
        max_fee, coll_amount, lusd_amount, from_addr, to, upper_hint, lower_hint,
    ])


def liquity_adjust(max_fee, coll_amount, lusd_amount, coll_action, debt_action, from_addr, to,
                   upper_hint, lower_hint):
    return Action("LiquityAdjust", LIQUITY_ADJUST_TYPES, [
        max_fee, coll_amount, lusd_amount, coll_action, debt_action, from_addr, to, upper_hint, lower_hint,
    ])


# --------- Morpho Blue / CurveUSD ----------

def morpho_blue_supply_collateral(market_params, amount, from_addr, on_behalf):
    return Action("MorphoBlueSupplyCollateral", MORPHO_BLUE_SUPPLY_COLL_TYPES, [
        tuple(market_params), amount, from_addr, on_behalf,
    ])


def morpho_blue_borrow(market_params, amount, on_behalf, to):
    return Action("MorphoBlueBorrow", MORPHO_BLUE_BORROW_TYPES, [tuple(market_params), amount, on_behalf, to])


def curveusd_create(controller, from_addr, to, coll_amount, debt_amount, n_bands):
    return Action("CurveUsdCreate", CURVEUSD_CREATE_TYPES, [
        controller, from_addr, to, coll_amount, debt_amount, n_bands,
    ])
