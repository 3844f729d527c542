"""
Tenderly management API: create and clone virtual testnets.

A virtual testnet is addressed everywhere else by its admin RPC URL, so
that is what both calls hand back.
"""

import logging
import uuid
from typing import Any, Dict, Optional

import requests

from forkooor.config.rpc_config import TENDERLY_VNET_RPC
from forkooor.config.settings import settings
from forkooor.errors import TenderlyApiError

logger = logging.getLogger(__name__)

TENDERLY_API = "https://api.tenderly.co/api/v1/account/{account}/project/{project}"
REQUEST_TIMEOUT = 60


def _headers(access_key: Optional[str]) -> Dict[str, str]:
    key = access_key or settings.tenderly_access_key
    if not key:
        raise TenderlyApiError("Tenderly access key is not set")
    return {"Content-Type": "application/json", "X-Access-Key": key}


def _project_url(project: Optional[str]) -> str:
    return TENDERLY_API.format(
        account=settings.tenderly_account,
        project=project or settings.tenderly_project,
    )


def _post(url: str, body: Dict[str, Any], access_key: Optional[str]) -> Dict[str, Any]:
    r = requests.post(url, json=body, headers=_headers(access_key), timeout=REQUEST_TIMEOUT)
    r.raise_for_status()
    return r.json()


def create_vnet(project: Optional[str], access_key: Optional[str], chain_id: int,
                start_block: Optional[int] = None) -> Dict[str, Any]:
    """
    Create a virtual testnet forked from ``chain_id`` at ``start_block`` (latest by default).

    Returns:
        {'vnetId': admin RPC url, 'blockNumber': int, 'newAccount': funded account}
    """
    body = {
        "slug": str(uuid.uuid4()),
        "display_name": "DeFi Saver Simulation",
        "fork_config": {
            "network_id": int(chain_id),
            "block_number": start_block or "latest",
        },
        "virtual_network_config": {
            "chain_config": {"chain_id": int(chain_id)},
        },
        "sync_state_config": {"enabled": False},
        "explorer_page_config": {
            "enabled": True,
            "verification_visibility": "src",
        },
    }

    data = _post(f"{_project_url(project)}/vnets", body, access_key)

    # rpcs lists admin and public endpoints (HTTP and WS)
    admin = next((e for e in data.get("rpcs") or [] if e.get("name") == "Admin RPC"), None)
    if admin is None:
        raise TenderlyApiError("Error returning fork HTTP endpoint")

    try:
        new_account = data["virtual_network_config"]["accounts"][0]["address"]
        block_number = int(data["fork_config"]["block_number"], 16)
    except (KeyError, IndexError, TypeError, ValueError) as e:
        raise TenderlyApiError(f"Unexpected vnet response: {e}")

    logger.info("created vnet on chain %s at block %s", chain_id, block_number)
    return {"vnetId": admin["url"], "blockNumber": block_number, "newAccount": new_account}


def clone_vnet(vnet_id: str, project: Optional[str], access_key: Optional[str]) -> str:
    """Clone an existing virtual testnet; returns the clone's RPC URL."""
    body = {"srcContainerId": vnet_id, "dstContainerDisplayName": ""}
    data = _post(f"{_project_url(project)}/testnet/clone", body, access_key)

    try:
        endpoint_id = data["container"]["connectivityConfig"]["endpoints"][0]["id"]
    except (KeyError, IndexError, TypeError) as e:
        raise TenderlyApiError(f"Unexpected clone response: {e}")

    rpc = TENDERLY_VNET_RPC.format(vnet_id=endpoint_id)
    logger.info("cloned vnet %s -> %s", vnet_id, rpc)
    return rpc
