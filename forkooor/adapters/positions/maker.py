"""
Maker (MCD) vaults.

- McdView: manager address, urn/ilk and coll/debt of a vault
- GetCdps: a user's vaults in creation order
- Pot: DSR balance, read with raw selectors (pie * chi / RAY)
- Writes: DFS Mcd* actions run as a recipe in the wallet. The collateral join
  of an ilk comes from the address book (MCD_JOIN_<ILK>, e.g. MCD_JOIN_ETH_A)
"""

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from eth_abi import decode
from eth_utils import to_checksum_address

from forkooor.abis import encode_call
from forkooor.adapters.base import PositionAdapter
from forkooor.balances import set_token_balance, to_base_units
from forkooor.errors import LookupNotFoundError
from forkooor.recipes import (
    Recipe,
    execute_recipe,
    mcd_generate,
    mcd_open,
    mcd_payback,
    mcd_supply,
    mcd_withdraw,
)
from forkooor.wallets import MAX_UINT256, approve

logger = logging.getLogger(__name__)

RAY = 10 ** 27
WAD = Decimal(10) ** 18

MCD_VIEW_ABI = [
    {"inputs": [], "name": "MCD_MANAGER", "outputs": [{"name": "", "type": "address"}],
     "stateMutability": "view", "type": "function"},
    {"inputs": [{"name": "_manager", "type": "address"}, {"name": "_cdpId", "type": "uint256"}],
     "name": "getUrnAndIlk",
     "outputs": [{"name": "urn", "type": "address"}, {"name": "ilk", "type": "bytes32"}],
     "stateMutability": "view", "type": "function"},
    {"inputs": [{"name": "_manager", "type": "address"}, {"name": "_cdpId", "type": "uint256"},
                {"name": "_ilk", "type": "bytes32"}],
     "name": "getVaultInfo",
     "outputs": [{"name": "", "type": "uint256"}, {"name": "", "type": "uint256"}],
     "stateMutability": "view", "type": "function"},
]

GET_CDPS_ABI = [
    {"inputs": [{"name": "manager", "type": "address"}, {"name": "guy", "type": "address"}],
     "name": "getCdpsAsc",
     "outputs": [{"name": "ids", "type": "uint256[]"}, {"name": "urns", "type": "address[]"},
                 {"name": "ilks", "type": "bytes32[]"}],
     "stateMutability": "view", "type": "function"},
]


def ilk_label(ilk: bytes) -> str:
    """b'ETH-A\\x00...' -> 'ETH-A'"""
    return bytes(ilk).rstrip(b"\x00").decode("utf-8", errors="replace")


class MakerAdapter(PositionAdapter):
    protocol = "maker"
    version = ""

    def mcd_manager(self) -> str:
        return self.view("MCD_VIEW", MCD_VIEW_ABI).functions.MCD_MANAGER().call()

    def get_vaults_for_user(self, user: str, manager: Optional[str] = None) -> List[Dict[str, Any]]:
        manager = manager or self.mcd_manager()
        get_cdps = self.view("MCD_GET_CDPS", GET_CDPS_ABI)
        ids, urns, ilks = get_cdps.functions.getCdpsAsc(manager, to_checksum_address(user)).call()
        return [
            {"vaultId": str(vault_id), "urn": urn, "ilkLabel": ilk_label(ilk)}
            for vault_id, urn, ilk in zip(ids, urns, ilks)
        ]

    def get_vault_info(self, vault_id: int, manager: Optional[str] = None) -> Dict[str, Any]:
        manager = manager or self.mcd_manager()
        view = self.view("MCD_VIEW", MCD_VIEW_ABI)
        _, ilk = view.functions.getUrnAndIlk(manager, int(vault_id)).call()
        coll, debt = view.functions.getVaultInfo(manager, int(vault_id), ilk).call()
        return {
            "vaultId": int(vault_id),
            "ilkLabel": ilk_label(ilk),
            "coll": str(coll),
            "debt": str(debt),
        }

    def get_dsr_balance(self, owner: str) -> str:
        """DAI in the DSR, in whole units (decimal string)."""
        pot = self.address("MCD_POT")
        (chi,) = decode(["uint256"], self.session.call(pot, encode_call("drip", [], [])))
        (pie,) = decode(["uint256"], self.session.call(
            pot, encode_call("pie", ["address"], [to_checksum_address(owner)])))
        return str(Decimal(pie * chi // RAY) / WAD)

    # --------- writes ----------

    def join_address(self, ilk: str) -> str:
        return self.address("MCD_JOIN_" + ilk.upper().replace("-", "_"))

    def collateral(self, ilk: str) -> Dict[str, Any]:
        """Collateral token of an ilk label ('ETH-A' -> WETH, 'WSTETH-A' -> wstETH)."""
        return self.asset(ilk.rsplit("-", 1)[0])

    def _fund_and_approve(self, token: Dict[str, Any], owner: str, amount, wallet) -> None:
        set_token_balance(self.session, token["address"], owner, amount)
        approve(self.session, token["address"], wallet.address, owner)

    def _last_vault(self, wallet_address: str, manager: str) -> Dict[str, Any]:
        vaults = self.get_vaults_for_user(wallet_address, manager)
        if not vaults:
            raise LookupNotFoundError(f"No vault found for {wallet_address}")
        return self.get_vault_info(int(vaults[-1]["vaultId"]), manager)

    def create_vault(self, ilk: str, coll_amount, debt_amount, owner: str, wallet_address=None,
                     use_safe=False) -> Dict[str, Any]:
        """Open a vault, lock ``coll_amount`` and draw ``debt_amount`` DAI in one recipe."""
        manager = self.mcd_manager()
        join = self.join_address(ilk)
        coll = self.collateral(ilk)
        wallet = self.wallet(owner, wallet_address, use_safe)

        self._fund_and_approve(coll, owner, coll_amount, wallet)

        recipe = Recipe("CreateVaultRecipe", [
            mcd_open(join, manager),
            mcd_supply(0, to_base_units(coll_amount, coll["decimals"]), join, owner, manager, piped_vault=True),
            mcd_generate(0, to_base_units(debt_amount, 18), owner, manager, piped_vault=True),
        ])
        execute_recipe(self.session, wallet, recipe)

        logger.info("%s vault created for %s on %s", ilk, owner, wallet.address)
        return self._last_vault(wallet.address, manager)

    def open_empty_vault(self, ilk: str, owner: str, wallet_address=None, use_safe=False) -> Dict[str, Any]:
        manager = self.mcd_manager()
        wallet = self.wallet(owner, wallet_address, use_safe)

        execute_recipe(self.session, wallet, Recipe("McdOpenRecipe", [mcd_open(self.join_address(ilk), manager)]))
        return self._last_vault(wallet.address, manager)

    def supply(self, vault_id: int, amount, owner: str, wallet_address=None, use_safe=False):
        manager = self.mcd_manager()
        ilk = self.get_vault_info(vault_id, manager)["ilkLabel"]
        coll = self.collateral(ilk)
        wallet = self.wallet(owner, wallet_address, use_safe)

        self._fund_and_approve(coll, owner, amount, wallet)
        action = mcd_supply(int(vault_id), to_base_units(amount, coll["decimals"]), self.join_address(ilk),
                            owner, manager)
        execute_recipe(self.session, wallet, Recipe("McdSupplyRecipe", [action]))
        return self.get_vault_info(vault_id, manager)

    def withdraw(self, vault_id: int, amount, owner: str, wallet_address=None, use_safe=False):
        """``amount`` of -1 withdraws everything."""
        manager = self.mcd_manager()
        ilk = self.get_vault_info(vault_id, manager)["ilkLabel"]
        wallet = self.wallet(owner, wallet_address, use_safe)

        if Decimal(str(amount)) == -1:
            value = MAX_UINT256
        else:
            value = to_base_units(amount, self.collateral(ilk)["decimals"])

        action = mcd_withdraw(int(vault_id), value, self.join_address(ilk), owner, manager)
        execute_recipe(self.session, wallet, Recipe("McdWithdrawRecipe", [action]))
        return self.get_vault_info(vault_id, manager)

    def borrow(self, vault_id: int, amount, owner: str, wallet_address=None, use_safe=False):
        manager = self.mcd_manager()
        wallet = self.wallet(owner, wallet_address, use_safe)

        action = mcd_generate(int(vault_id), to_base_units(amount, 18), owner, manager)
        execute_recipe(self.session, wallet, Recipe("McdGenerateRecipe", [action]))
        return self.get_vault_info(vault_id, manager)

    def payback(self, vault_id: int, amount, owner: str, wallet_address=None, use_safe=False):
        """``amount`` of -1 repays the whole debt (plus 1 DAI for accrued fees)."""
        manager = self.mcd_manager()
        dai = self.asset("DAI")
        wallet = self.wallet(owner, wallet_address, use_safe)

        if Decimal(str(amount)) == -1:
            value = int(self.get_vault_info(vault_id, manager)["debt"]) + 10 ** 18
        else:
            value = to_base_units(amount, 18)

        self._fund_and_approve(dai, owner, Decimal(value).scaleb(-18), wallet)
        action = mcd_payback(int(vault_id), value, owner, manager)
        execute_recipe(self.session, wallet, Recipe("McdPaybackRecipe", [action]))
        return self.get_vault_info(vault_id, manager)
