# Copyright (C) 2018-2025 The psbt-utils developers
#
# This file is part of psbt-utils
#
# It is subject to the license terms in the LICENSE file found in the top-level
# directory of this distribution.
#
# No part of psbt-utils, including this file, may be copied, modified,
# propagated, or distributed except according to the terms contained in the
# LICENSE file.

from typing import Optional

from psbtutils.constants import (
    SIGHASH_ANYONECANPAY,
    SIGHASH_BASE_MASK,
    SIGHASH_DEFAULT_LABEL,
    SIGHASH_NAMES,
    SIGHASH_SINGLE,
)
from psbtutils.psbt import PSBTInput


def sighash_label(flag: int) -> str:
    """Human readable name of a sighash flag

    The base type is the low five bits. ANYONECANPAY is only appended to
    known base types.

    >>> sighash_label(0x81)
    'SIGHASH_ALL|ANYONECANPAY'
    >>> sighash_label(0x05)
    'SIGHASH_UNKNOWN(5)'
    """
    base = flag & SIGHASH_BASE_MASK
    label = SIGHASH_NAMES.get(base, f"SIGHASH_UNKNOWN({flag:x})")
    if flag & SIGHASH_ANYONECANPAY and base <= SIGHASH_SINGLE:
        label += "|ANYONECANPAY"
    return label


def sighash_of(psbt_input: PSBTInput) -> Optional[str]:
    """Determines the sighash an input is (or is to be) signed with.

    Looks at, in order: the last byte of the first non-empty partial
    signature, the taproot key-path signature (a 64-byte signature implies
    SIGHASH_DEFAULT) and the explicit sighash type field.
    """
    for sig in psbt_input.partial_sigs.values():
        if sig:
            return sighash_label(sig[-1])

    tap_key_sig = psbt_input.tap_key_sig
    if tap_key_sig is not None:
        if len(tap_key_sig) == 65:
            return sighash_label(tap_key_sig[64])
        if len(tap_key_sig) == 64:
            return SIGHASH_DEFAULT_LABEL

    if psbt_input.sighash_type is not None:
        return sighash_label(psbt_input.sighash_type)

    return None
