import pytest

from forkooor.config import chain_config, get_address, get_asset_info, resolve_bundle_id
from forkooor.config.rpc_config import get_rpc_url
from forkooor.errors import LookupNotFoundError


def test_asset_lookup_is_case_insensitive():
    assert get_asset_info("usdc", 1) == get_asset_info("USDC", 1)
    assert get_asset_info("USDC", 1)["decimals"] == 6


def test_eth_resolves_to_weth():
    assert get_asset_info("ETH", 1)["symbol"] == "WETH"
    assert get_asset_info("eth", 42161)["address"].lower() == "0x82af49447d8a07e3bd95bd0d56f35241523fbab1"


def test_unknown_asset_and_chain():
    with pytest.raises(LookupNotFoundError):
        get_asset_info("NOPE", 1)
    with pytest.raises(LookupNotFoundError):
        chain_config(999999)


def test_address_book():
    assert get_address(1, "REGISTRY_ADDR").lower() == "0x287778f121f134c66212fb16c9b53ec991d32f5b"
    with pytest.raises(LookupNotFoundError):
        get_address(10, "MCD_VIEW")


def test_bundle_ids():
    assert resolve_bundle_id("spark", 1, "close_on_price") == 57
    assert resolve_bundle_id("aave_v3", 1, "repay_on_price") == 36
    assert resolve_bundle_id("maker", 1, "close_to_dai") == 7
    assert resolve_bundle_id("aave_v3", 1, "close_to_collateral") == 9
    with pytest.raises(LookupNotFoundError):
        resolve_bundle_id("aave_v3", 10, "close_to_debt")
    with pytest.raises(LookupNotFoundError):
        resolve_bundle_id("morpho_blue", 1, "repay")


def test_rpc_url_from_selector():
    assert get_rpc_url("https://virtual.mainnet.rpc.tenderly.co/abc") == "https://virtual.mainnet.rpc.tenderly.co/abc"
    assert get_rpc_url(" 1234-abcd ") == "https://rpc.tenderly.co/fork/1234-abcd"
    with pytest.raises(ValueError):
        get_rpc_url("")


def test_sub_proxy_protocols_have_no_bundle_table():
    # leverage management for these goes through sub proxies
    for protocol in ("compound_v3", "liquity"):
        with pytest.raises(LookupNotFoundError):
            resolve_bundle_id(protocol, 1, "repay")


def test_maker_joins_and_liquity_v2_markets():
    assert get_address(1, "MCD_JOIN_ETH_A").lower() == "0x2f0b23f53734252bda2277357e97e1517d6b042a"
    assert get_address(1, "LIQUITY_V2_MARKET_WSTETH").lower() == "0x8d733f7ea7c23cbea7c613b6ebd845d46d3aac54"
