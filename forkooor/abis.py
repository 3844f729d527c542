from eth_abi import encode
from eth_utils import function_signature_to_4byte_selector

# --------- ABIs shared across protocols ----------
# Protocol specific ABIs live next to their adapter.

ERC20_ABI = [
    {"constant":True,"inputs":[],"name":"symbol","outputs":[{"name":"","type":"string"}],"type":"function"},
    {"constant":True,"inputs":[],"name":"decimals","outputs":[{"name":"","type":"uint8"}],"type":"function"},
    {"constant":True,"inputs":[{"name":"owner","type":"address"}],"name":"balanceOf","outputs":[{"name":"","type":"uint256"}],"type":"function"},
    {"constant":True,"inputs":[{"name":"owner","type":"address"},{"name":"spender","type":"address"}],"name":"allowance","outputs":[{"name":"","type":"uint256"}],"type":"function"},
    {"constant":False,"inputs":[{"name":"spender","type":"address"},{"name":"amount","type":"uint256"}],"name":"approve","outputs":[{"name":"","type":"bool"}],"type":"function"},
]

# Synthetix style proxy tokens: Proxy.target() -> implementation, implementation.tokenState() -> balances
PROXY_ERC20_ABI = [
    {"inputs":[],"name":"target","outputs":[{"internalType":"address","name":"","type":"address"}],
     "stateMutability":"view","type":"function"},
    {"inputs":[],"name":"tokenState","outputs":[{"internalType":"address","name":"","type":"address"}],
     "stateMutability":"view","type":"function"},
]

DFS_REGISTRY_ABI = [
    {"inputs":[{"internalType":"bytes4","name":"_id","type":"bytes4"}],
     "name":"getAddr","outputs":[{"internalType":"address","name":"","type":"address"}],
     "stateMutability":"view","type":"function"},
]

BOT_AUTH_ABI = [
    {"inputs":[{"internalType":"address","name":"_caller","type":"address"}],
     "name":"addCaller","outputs":[],"stateMutability":"nonpayable","type":"function"},
]

PROXY_REGISTRY_ABI = [
    {"constant":True,"inputs":[{"name":"","type":"address"}],"name":"proxies",
     "outputs":[{"name":"","type":"address"}],"payable":False,"stateMutability":"view","type":"function"},
    {"constant":False,"inputs":[{"name":"owner","type":"address"}],"name":"build",
     "outputs":[{"name":"proxy","type":"address"}],"payable":False,"stateMutability":"nonpayable","type":"function"},
]

DS_PROXY_ABI = [
    {"constant":False,"inputs":[{"name":"_target","type":"address"},{"name":"_data","type":"bytes"}],
     "name":"execute","outputs":[{"name":"response","type":"bytes32"}],
     "payable":True,"stateMutability":"payable","type":"function"},
    {"constant":True,"inputs":[],"name":"owner","outputs":[{"name":"","type":"address"}],
     "payable":False,"stateMutability":"view","type":"function"},
]

SAFE_ABI = [
    {"inputs":[],"name":"nonce","outputs":[{"internalType":"uint256","name":"","type":"uint256"}],
     "stateMutability":"view","type":"function"},
    {"inputs":[],"name":"getThreshold","outputs":[{"internalType":"uint256","name":"","type":"uint256"}],
     "stateMutability":"view","type":"function"},
    {"inputs":[],"name":"getOwners","outputs":[{"internalType":"address[]","name":"","type":"address[]"}],
     "stateMutability":"view","type":"function"},
    {"inputs":[
        {"internalType":"address","name":"to","type":"address"},
        {"internalType":"uint256","name":"value","type":"uint256"},
        {"internalType":"bytes","name":"data","type":"bytes"},
        {"internalType":"enum Enum.Operation","name":"operation","type":"uint8"},
        {"internalType":"uint256","name":"safeTxGas","type":"uint256"},
        {"internalType":"uint256","name":"baseGas","type":"uint256"},
        {"internalType":"uint256","name":"gasPrice","type":"uint256"},
        {"internalType":"address","name":"gasToken","type":"address"},
        {"internalType":"address payable","name":"refundReceiver","type":"address"},
        {"internalType":"bytes","name":"signatures","type":"bytes"}],
     "name":"execTransaction","outputs":[{"internalType":"bool","name":"success","type":"bool"}],
     "stateMutability":"payable","type":"function"},
]

STRATEGY_SUB_COMPONENTS = [
    {"internalType":"uint64","name":"strategyOrBundleId","type":"uint64"},
    {"internalType":"bool","name":"isBundle","type":"bool"},
    {"internalType":"bytes[]","name":"triggerData","type":"bytes[]"},
    {"internalType":"bytes32[]","name":"subData","type":"bytes32[]"},
]

SUB_STORAGE_ABI = [
    {"inputs":[],"name":"getSubsCount","outputs":[{"internalType":"uint256","name":"","type":"uint256"}],
     "stateMutability":"view","type":"function"},
]


def encode_call(function_name, arg_types, args):
    """Calldata for ``function_name(arg_types...)`` without a contract object."""
    signature = f"{function_name}({','.join(arg_types)})"
    return function_signature_to_4byte_selector(signature) + encode(list(arg_types), list(args))


def fields(compact):
    """ABI parameter list from a compact ``"name:type name:type"`` string."""
    out = []
    for item in compact.split():
        name, type_ = item.split(":")
        out.append({"name": name, "type": type_})
    return out


def field_names(compact):
    return [item.split(":")[0] for item in compact.split()]
