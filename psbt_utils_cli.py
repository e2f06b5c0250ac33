#!/usr/bin/env python3
"""
PSBT Utils CLI - Command line interface for psbt-utils

Inspect, combine, edit, finalize, extract and broadcast Partially Signed
Bitcoin Transactions given as hex or base64 text.
"""

import argparse
import json
import logging
import sys

from psbtutils.setup import setup
from psbtutils.constants import DEFAULT_ADDRESS_NETWORKS, NETWORK_DEFAULT_PORTS
from psbtutils.codec import FORMS, BASE64, decode, encode
from psbtutils.summary import summarize
from psbtutils.mutations import combine_psbts, remove_psbt_input, edit_output_value
from psbtutils.finalizer import finalize, extract
from psbtutils.transactions import Transaction
from psbtutils.broadcast import broadcast_transaction
from psbtutils.proxy import NodeProxy, RPCError
from psbtutils.utils import b_to_h


def _print_json(result):
    print(json.dumps(result, indent=2))


def inspect_psbt(args):
    """Decode a PSBT and display its analysis"""
    try:
        _print_json(summarize(decode(args.psbt)).to_dict())
    except ValueError as e:
        print(f"Error inspecting PSBT: {str(e)}")
        return 1
    return 0


def combine(args):
    """Combine PSBTs of the same transaction"""
    try:
        _print_json({"psbt": combine_psbts(args.psbts, args.form)})
    except ValueError as e:
        print(f"Error combining PSBTs: {str(e)}")
        return 1
    return 0


def remove_input(args):
    """Remove an input from a PSBT"""
    try:
        _print_json({"psbt": remove_psbt_input(args.psbt, args.index, args.form)})
    except ValueError as e:
        print(f"Error removing input: {str(e)}")
        return 1
    return 0


def update_output(args):
    """Change the amount of a PSBT output"""
    try:
        psbt, stale_inputs = edit_output_value(args.psbt, args.index, args.value, args.form)
        _print_json({"psbt": psbt, "stale_inputs": stale_inputs})
    except ValueError as e:
        print(f"Error updating output: {str(e)}")
        return 1
    return 0


def finalize_psbt(args):
    """Finalize every input of a PSBT"""
    try:
        _print_json({"psbt": encode(finalize(decode(args.psbt)), args.form)})
    except ValueError as e:
        print(f"Error finalizing PSBT: {str(e)}")
        return 1
    return 0


def extract_transaction(args):
    """Extract the network transaction of a finalizable PSBT"""
    try:
        raw = extract(decode(args.psbt))
        tx = Transaction.from_bytes(raw)
        _print_json({"txid": tx.get_txid(), "hex": b_to_h(raw)})
    except ValueError as e:
        print(f"Error extracting transaction: {str(e)}")
        return 1
    return 0


def broadcast(args):
    """Broadcast a raw transaction"""
    try:
        proxy = None
        if args.rpcuser:
            proxy = NodeProxy(
                args.rpcuser,
                args.rpcpassword,
                host=args.host,
                port=args.port,
                network=args.network,
            )
        txid = broadcast_transaction(args.tx_hex, network=args.network, proxy=proxy)
        _print_json({"txid": txid})
    except (ValueError, RPCError) as e:
        print(f"Error broadcasting transaction: {str(e)}")
        return 1
    return 0


def build_parser():
    parser = argparse.ArgumentParser(
        description='PSBT Utils CLI - Analyze and manipulate Partially Signed Bitcoin Transactions'
    )

    parser.add_argument('--network', choices=sorted(NETWORK_DEFAULT_PORTS),
                        default='mainnet',
                        help='Network addresses are rendered for and transactions broadcast to')
    parser.add_argument('--form', choices=FORMS, default=BASE64,
                        help='Encoding of the PSBTs produced')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable debug logging')

    subparsers = parser.add_subparsers(dest='command', help='Command to execute')

    inspect_parser = subparsers.add_parser('inspect', help='Analyze a PSBT')
    inspect_parser.add_argument('psbt', help='PSBT in hex or base64')

    combine_parser = subparsers.add_parser('combine', help='Combine PSBTs')
    combine_parser.add_argument('psbts', nargs='+', help='Two or more PSBTs in hex or base64')

    remove_parser = subparsers.add_parser('remove-input', help='Remove an input')
    remove_parser.add_argument('psbt', help='PSBT in hex or base64')
    remove_parser.add_argument('index', type=int, help='Index of the input to remove')

    update_parser = subparsers.add_parser('update-output', help='Change an output amount')
    update_parser.add_argument('psbt', help='PSBT in hex or base64')
    update_parser.add_argument('index', type=int, help='Index of the output to change')
    update_parser.add_argument('value', type=int, help='New amount in satoshis')

    finalize_parser = subparsers.add_parser('finalize', help='Finalize all inputs')
    finalize_parser.add_argument('psbt', help='PSBT in hex or base64')

    extract_parser = subparsers.add_parser('extract', help='Extract the signed transaction')
    extract_parser.add_argument('psbt', help='PSBT in hex or base64')

    broadcast_parser = subparsers.add_parser('broadcast', help='Broadcast a raw transaction')
    broadcast_parser.add_argument('tx_hex', help='Raw transaction in hexadecimal format')
    broadcast_parser.add_argument('--rpcuser', help='Broadcast through a node with this RPC user')
    broadcast_parser.add_argument('--rpcpassword', help='RPC password of the node')
    broadcast_parser.add_argument('--host', help='Host of the node')
    broadcast_parser.add_argument('--port', type=int, help='RPC port of the node')

    return parser


COMMANDS = {
    'inspect': inspect_psbt,
    'combine': combine,
    'remove-input': remove_input,
    'update-output': update_output,
    'finalize': finalize_psbt,
    'extract': extract_transaction,
    'broadcast': broadcast,
}


def main(argv=None):
    """Main entry point for the CLI"""
    parser = build_parser()
    args = parser.parse_args(argv)

    # the chosen network is tried first when rendering addresses
    networks_order = (args.network,) + tuple(
        network for network in DEFAULT_ADDRESS_NETWORKS if network != args.network
    )
    setup(networks_order, log_level=logging.DEBUG if args.verbose else None)

    handler = COMMANDS.get(args.command)
    if handler is None:
        parser.print_help()
        return 1
    return handler(args)


if __name__ == "__main__":
    sys.exit(main())
