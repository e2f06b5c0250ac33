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

import logging
import math
from decimal import Decimal
from typing import List, Sequence, Tuple, Union

from psbtutils.codec import BASE64, decode, encode
from psbtutils.constants import MAX_MONEY
from psbtutils.errors import (
    IncompatibleCombineError,
    IndexOutOfRangeError,
    InvalidValueError,
)
from psbtutils.psbt import PSBT, PSBTInput, PSBTOutput, Entry

logger = logging.getLogger(__name__)

Amount = Union[int, float, Decimal]


def _union(entry_lists: Sequence[List[Entry]]) -> List[Entry]:
    """Key-wise union of maps; on conflicting values the first map wins"""
    merged: List[Entry] = []
    seen = set()
    for entries in entry_lists:
        for key, value in entries:
            if key in seen:
                continue
            seen.add(key)
            merged.append((key, value))
    return merged


def combine(psbts: Sequence[PSBT]) -> PSBT:
    """Merges PSBTs of the same unsigned transaction into a new one.

    Every global, input and output map is the key-wise union of the
    corresponding maps. Partial signatures are keyed by public key, so the
    signatures of different signers all survive. When the same key carries
    different values the PSBT given first wins.

    Raises
    ------
    ValueError
        if fewer than two PSBTs are given
    IncompatibleCombineError
        if the unsigned transactions differ
    """
    if len(psbts) < 2:
        raise ValueError("At least two PSBTs are required to combine")

    first = psbts[0]
    unsigned_tx = first.tx.to_bytes(include_witness=False)
    for index, other in enumerate(psbts[1:], start=1):
        if other.tx.to_bytes(include_witness=False) != unsigned_tx:
            raise IncompatibleCombineError(
                f"PSBT {index} has a different unsigned transaction "
                f"({other.tx.get_txid()} != {first.tx.get_txid()})"
            )

    tx = PSBT.copy(first).tx
    unknown = _union([psbt.unknown for psbt in psbts])
    inputs = [
        PSBTInput.from_entries(_union([psbt.inputs[i].to_entries() for psbt in psbts]))
        for i in range(len(tx.inputs))
    ]
    outputs = [
        PSBTOutput.from_entries(_union([psbt.outputs[i].to_entries() for psbt in psbts]))
        for i in range(len(tx.outputs))
    ]
    logger.debug("Combined %d PSBTs of transaction %s", len(psbts), tx.get_txid())
    return PSBT(tx, inputs, outputs, unknown)


def remove_input(psbt: PSBT, index: int) -> PSBT:
    """Returns a copy of the PSBT without input `index` and its map

    Raises
    ------
    IndexOutOfRangeError
        unless 0 <= index < number of inputs
    """
    if isinstance(index, bool) or not 0 <= index < len(psbt.inputs):
        raise IndexOutOfRangeError("input", index, len(psbt.inputs))

    result = PSBT.copy(psbt)
    del result.tx.inputs[index]
    del result.inputs[index]
    return result


def _validate_value(value: Amount) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise InvalidValueError(f"Output value must be a number of satoshis, not {value!r}")
    if isinstance(value, (float, Decimal)):
        finite = value.is_finite() if isinstance(value, Decimal) else math.isfinite(value)
        if not finite:
            raise InvalidValueError(f"Output value must be finite: {value}")
        if value != int(value):
            raise InvalidValueError(f"Output value must be a whole number of satoshis: {value}")
        value = int(value)
    if value < 0:
        raise InvalidValueError(f"Output value cannot be negative: {value}")
    if value > MAX_MONEY:
        raise InvalidValueError(f"Output value {value} exceeds the maximum of {MAX_MONEY}")
    return value


def update_output_value(psbt: PSBT, index: int, value: Amount) -> PSBT:
    """Returns a copy of the PSBT with the amount of output `index` set to value

    Existing signatures are kept even though they no longer commit to the
    transaction; see signed_input_indexes().

    Raises
    ------
    IndexOutOfRangeError
        unless 0 <= index < number of outputs
    InvalidValueError
        if value is negative, not integral or above the maximum supply
    """
    if isinstance(index, bool) or not 0 <= index < len(psbt.outputs):
        raise IndexOutOfRangeError("output", index, len(psbt.outputs))
    amount = _validate_value(value)

    result = PSBT.copy(psbt)
    result.tx.outputs[index].amount = amount
    return result


def signed_input_indexes(psbt: PSBT) -> List[int]:
    """Indexes of the inputs carrying signatures or final scripts"""
    return [i for i, psbt_input in enumerate(psbt.inputs) if psbt_input.has_signing_material()]


#
# Text level helpers: decode, mutate and encode again
#
def combine_psbts(texts: Sequence[str], form: str = BASE64) -> str:
    return encode(combine([decode(text) for text in texts]), form)


def remove_psbt_input(text: str, index: int, form: str = BASE64) -> str:
    return encode(remove_input(decode(text), index), form)


def edit_output_value(
    text: str, index: int, value: Amount, form: str = BASE64
) -> Tuple[str, List[int]]:
    """Updates an output amount of PSBT text.

    Returns the new PSBT text and the inputs whose signatures the edit made
    stale.
    """
    psbt = update_output_value(decode(text), index, value)
    stale = signed_input_indexes(psbt)
    if stale:
        logger.warning(
            "Output %d changed; signatures of input(s) %s are no longer valid",
            index,
            ", ".join(str(i) for i in stale),
        )
    return encode(psbt, form), stale
