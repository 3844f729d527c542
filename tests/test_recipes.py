import pytest
from eth_abi import decode
from eth_utils import function_signature_to_4byte_selector, to_checksum_address

from forkooor.recipes import (
    AAVE_V3_SUPPLY_TYPES,
    RECIPE_TUPLE,
    Action,
    Recipe,
    comp_v3_borrow,
    comp_v3_supply,
    execute_recipe,
    lending_borrow,
    lending_supply,
    mcd_generate,
    mcd_open,
    mcd_supply,
    morpho_blue_supply_collateral,
)
from forkooor.wallets import DSProxyWallet, get_name_id

from conftest import OWNER, PROXY, USDC

MARKET = to_checksum_address("0x2f39d218133afab8f2b819b1066c7e434ad94e9e")


def test_action_param_count_is_checked():
    with pytest.raises(ValueError):
        Action("AaveV3Supply", AAVE_V3_SUPPLY_TYPES, [1, 2])


def test_action_encodes_params_tuple():
    action = lending_supply("AaveV3", MARKET, 10 ** 18, OWNER, 0)
    (params,) = decode([f"({','.join(AAVE_V3_SUPPLY_TYPES)})"], action.encode())

    assert params[0] == 10 ** 18
    assert params[1] == OWNER
    assert params[3] is True
    assert params[6].lower() == MARKET.lower()
    assert action.action_id == get_name_id("AaveV3Supply")


def test_spark_actions_use_spark_ids():
    assert lending_borrow("Spark", MARKET, 1, OWNER, 3).action_id == get_name_id("SparkBorrow")


def test_recipe_calldata():
    recipe = Recipe("CreatePositionRecipe", [
        lending_supply("AaveV3", MARKET, 1, OWNER, 0),
        lending_borrow("AaveV3", MARKET, 2, OWNER, 1),
    ])
    data = recipe.encode()

    assert data[:4] == function_signature_to_4byte_selector(f"executeRecipe({RECIPE_TUPLE})")
    ((name, call_data, sub_data, ids, mappings),) = decode([RECIPE_TUPLE], data[4:])
    assert name == "CreatePositionRecipe"
    assert len(call_data) == 2
    assert sub_data == ()
    assert list(ids) == [get_name_id("AaveV3Supply"), get_name_id("AaveV3Borrow")]
    assert [list(m) for m in mappings] == [[0] * 8, [0] * 8]


def test_comp_v3_actions():
    supply = comp_v3_supply(MARKET, USDC, 5, OWNER, PROXY)
    borrow = comp_v3_borrow(MARKET, 7, OWNER)
    assert supply.values == [MARKET, USDC, 5, OWNER, PROXY]
    assert borrow.action_id == get_name_id("CompV3Borrow")


def test_execute_recipe_goes_through_executor(session, registry):
    wallet = DSProxyWallet(session, PROXY, OWNER)
    recipe = Recipe("R", [comp_v3_borrow(MARKET, 1, OWNER)])

    execute_recipe(session, wallet, recipe)

    target, data = session.sent[0]["args"]
    assert target.lower() == registry["RecipeExecutor"].lower()
    assert data == recipe.encode()


def test_param_mapping_length_is_checked():
    with pytest.raises(ValueError):
        Action("McdOpen", ["address", "address"], [OWNER, PROXY], [1])


def test_create_vault_pipes_vault_id():
    join = "0x2f0b23f53734252bda2277357e97e1517d6b042a"
    recipe = Recipe("CreateVaultRecipe", [
        mcd_open(join, MARKET),
        mcd_supply(0, 10 ** 18, join, OWNER, MARKET, piped_vault=True),
        mcd_generate(0, 2000 * 10 ** 18, OWNER, MARKET, piped_vault=True),
    ])

    ((_, _, _, ids, mappings),) = decode([RECIPE_TUPLE], recipe.encode()[4:])
    assert list(ids) == [get_name_id("McdOpen"), get_name_id("McdSupply"), get_name_id("McdGenerate")]
    assert [list(m) for m in mappings] == [[0, 0], [1, 0, 0, 0, 0], [1, 0, 0, 0]]


def test_morpho_blue_market_params_tuple():
    params = (USDC, OWNER, PROXY, MARKET, 860000000000000000)
    action = morpho_blue_supply_collateral(params, 5, OWNER, PROXY)

    ((market, amount, from_addr, on_behalf),) = decode(
        ["((address,address,address,address,uint256),uint256,address,address)"], action.encode())
    assert market[4] == 860000000000000000
    assert to_checksum_address(market[0]) == USDC
    assert (amount, to_checksum_address(on_behalf)) == (5, PROXY)
