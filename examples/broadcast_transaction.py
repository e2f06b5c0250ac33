# Copyright (C) 2018-2025 The psbt-utils developers
#
# This file is part of psbt-utils
#
# It is subject to the license terms in the LICENSE file found in the top-level
# directory of this distribution.
#
# No part of psbt-utils, including this file, may be copied,
# modified, propagated, or distributed except according to the terms contained
# in the LICENSE file.

import sys

from psbtutils.setup import setup
from psbtutils.broadcast import broadcast_transaction
from psbtutils.proxy import NodeProxy


def main():
    # the node's RPC port follows the preferred network
    setup(("testnet", "mainnet"))

    tx_hex = sys.argv[1]

    # through mempool.space
    txid = broadcast_transaction(tx_hex, network="testnet")
    print(txid)

    # or through a local node, checking mempool acceptance first
    proxy = NodeProxy("rpcuser", "rpcpw")
    print(proxy.test_mempool_accept([tx_hex]))
    print(broadcast_transaction(tx_hex, proxy=proxy))


if __name__ == "__main__":
    main()
