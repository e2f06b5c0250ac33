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

import json
import sys

from psbtutils.setup import setup
from psbtutils.psbt import PSBT
from psbtutils.script import Script
from psbtutils.summary import analyze, summarize
from psbtutils.transactions import Transaction, TxInput, TxOutput


def example_psbt():
    # an unsigned transaction spending one P2WPKH output
    txin = TxInput("fb48f4e23bf6ddf606714141ac78c3e921c8c0bebeb7c8abb2c799e9ff96ce6c", 0)
    txout = TxOutput(
        90000, Script(["OP_0", "751e76e8199196d454941c45d1b3a323f1433bd6"])
    )
    psbt = PSBT(Transaction([txin], [txout]))

    # the previous output makes the value and address of the input known
    psbt.inputs[0].witness_utxo = TxOutput(
        100000, Script(["OP_0", "fb9ed9e9b8a6a9c0d6cb4d5d4d3a6b4a8dd1e5aa"])
    )
    return psbt


def main():
    # addresses are rendered for testnet first
    setup(("testnet", "mainnet", "regtest"))

    if len(sys.argv) > 1:
        # a PSBT given as hex or base64
        summary = analyze(sys.argv[1])
    else:
        summary = summarize(example_psbt())

    print(json.dumps(summary.to_dict(), indent=2))

    # the fee is only known when every input value is
    if summary.network_fee is None:
        print("\nFee unknown: some inputs lack UTXO information")
    else:
        print(f"\nFee: {summary.network_fee} satoshis")


if __name__ == "__main__":
    main()
