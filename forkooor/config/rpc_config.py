"""
RPC URL resolution for forks and virtual testnets.

A request names its network with a single selector (``forkId`` in the HTTP
API). Virtual testnets are addressed by their admin RPC URL, which is what
``create_vnet`` hands out; legacy Tenderly forks are addressed by their id.
"""

# Legacy Tenderly fork RPC pattern
TENDERLY_FORK_RPC = 'https://rpc.tenderly.co/fork/{fork_id}'

# Public RPC of a cloned virtual testnet
TENDERLY_VNET_RPC = 'https://virtual.mainnet.rpc.tenderly.co/{vnet_id}'


def get_rpc_url(network: str) -> str:
    """
    Get RPC URL for a fork / virtual testnet selector.

    Args:
        network: vnet admin RPC URL, or a legacy Tenderly fork id

    Returns:
        Complete RPC URL
    """
    if not network or not str(network).strip():
        raise ValueError("Network selector (vnet URL or fork id) is required")

    network = str(network).strip()

    if network.startswith(('http://', 'https://')):
        return network

    return TENDERLY_FORK_RPC.format(fork_id=network)
