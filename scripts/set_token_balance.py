#!/usr/bin/env python3
"""
Token Balance Override

Mints an ERC-20 balance on a fork / virtual testnet by writing the token's
balances mapping directly (same code path as /utils/general/set-token-balance).

Usage:
    python scripts/set_token_balance.py https://virtual.mainnet.rpc.tenderly.co/<id> USDC 0xHolder 1000
    python scripts/set_token_balance.py <fork-id> 0xA0b8...eB48 0xHolder 1000.5 --eth 10
"""
import argparse
import sys

from eth_utils import is_address

from forkooor.balances import set_token_balance, top_up_account
from forkooor.config import get_asset_info
from forkooor.errors import ForkooorError
from forkooor.logs import setup_logging
from forkooor.session import bind


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description='Set an ERC-20 balance on a fork')
    parser.add_argument('network', help='Virtual testnet RPC URL or legacy fork id')
    parser.add_argument('token', help='Token address or symbol (e.g. USDC)')
    parser.add_argument('holder', help='Address receiving the balance')
    parser.add_argument('amount', help='Amount in token units (e.g. 1000.5)')
    parser.add_argument('--eth', default=None,
                       help='Also set the holder ETH balance to this many ETH')
    parser.add_argument('--log-level', default=None, help='Logging level (default: from env)')

    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    session = bind(args.network)
    token = args.token if is_address(args.token) else get_asset_info(args.token, session.chain_id)['address']

    try:
        balance = set_token_balance(session, token, args.holder, args.amount)
        print(f"✅ {args.holder} now holds {balance} base units of {token}")

        if args.eth is not None:
            wei = top_up_account(session, args.holder, args.eth)
            print(f"✅ {args.holder} now holds {wei} wei")
    except (ForkooorError, ValueError) as e:
        print(f"❌ Error: {e}")
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
