#!/usr/bin/env python3

# Example: Combining the PSBTs of several signers and extracting the transaction
#
# usage: combine_and_finalize.py PSBT PSBT [PSBT ...]

import sys

from psbtutils.codec import decode
from psbtutils.errors import PSBTError
from psbtutils.finalizer import can_finalize_input, extract_hex, finalize
from psbtutils.mutations import combine


def main():
    if len(sys.argv) < 3:
        print("usage: combine_and_finalize.py PSBT PSBT [PSBT ...]")
        return 1

    # Parse the PSBTs, hex or base64
    psbts = [decode(text) for text in sys.argv[1:]]

    for n, psbt in enumerate(psbts):
        print(f"PSBT {n}:")
        for i, psbt_input in enumerate(psbt.inputs):
            print(f"  Input {i} has {len(psbt_input.partial_sigs)} signature(s)")

    # Combine the PSBTs
    combined = combine(psbts)

    print("\nCombined PSBT:")
    for i, psbt_input in enumerate(combined.inputs):
        status = "ready" if can_finalize_input(combined, i) else "missing signatures"
        print(f"  Input {i} has {len(psbt_input.partial_sigs)} signature(s), {status}")
    print(combined.to_base64())

    try:
        final = finalize(combined)
    except PSBTError as e:
        print(f"\n{e}")
        return 1

    print("\nFinalized PSBT:")
    print(final.to_base64())

    print("\nRaw transaction, ready to broadcast:")
    print(extract_hex(final))
    return 0


if __name__ == "__main__":
    sys.exit(main())
