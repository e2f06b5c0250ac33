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
from dataclasses import asdict, dataclass, field
from typing import List, Optional

from psbtutils.address import address_of
from psbtutils.codec import decode
from psbtutils.finalizer import can_finalize_input
from psbtutils.psbt import PSBT
from psbtutils.script import classify, disassemble
from psbtutils.sighash import sighash_of
from psbtutils.utils import b_to_h

logger = logging.getLogger(__name__)


@dataclass
class InputDetail:
    index: int
    txid: str
    vout: int
    sequence: int
    value: Optional[int] = None
    address: Optional[str] = None
    # None when no previous output script is known
    address_type: Optional[str] = None
    script_asm: Optional[str] = None
    script_hex: Optional[str] = None
    sighash: Optional[str] = None
    is_finalizable: bool = False


@dataclass
class OutputDetail:
    index: int
    value: int
    address: Optional[str]
    address_type: str
    script_hex: str
    script_asm: str


@dataclass
class PSBTSummary:
    """Presentation view of a PSBT; derived on every call, never stored back"""

    input_count: int
    output_count: int
    network_fee: Optional[int]
    version: int
    locktime: int
    txid: str
    is_finalizable: bool
    base64: str
    hex: str
    inputs: List[InputDetail] = field(default_factory=list)
    outputs: List[OutputDetail] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


def _input_detail(psbt: PSBT, index: int) -> InputDetail:
    txin = psbt.tx.inputs[index]
    detail = InputDetail(
        index=index,
        txid=txin.txid,
        vout=txin.txout_index,
        sequence=txin.sequence,
        sighash=sighash_of(psbt.inputs[index]),
        is_finalizable=can_finalize_input(psbt, index),
    )

    prev_output = psbt.get_prev_output(index)
    if prev_output is None:
        logger.debug("Input %d has no UTXO information", index)
        return detail

    script_bytes = prev_output.script_pubkey.to_bytes()
    detail.value = prev_output.amount
    detail.address = address_of(script_bytes)
    detail.address_type = classify(script_bytes)
    detail.script_asm = disassemble(script_bytes)
    detail.script_hex = b_to_h(script_bytes)
    return detail


def _output_detail(psbt: PSBT, index: int) -> OutputDetail:
    txout = psbt.tx.outputs[index]
    script_bytes = txout.script_pubkey.to_bytes()
    return OutputDetail(
        index=index,
        value=txout.amount,
        address=address_of(script_bytes),
        address_type=classify(script_bytes),
        script_hex=b_to_h(script_bytes),
        script_asm=disassemble(script_bytes),
    )


def network_fee(inputs: List[InputDetail], outputs: List[OutputDetail]) -> Optional[int]:
    """Sum of input values minus sum of output values.

    Only known when every input value is known; may be negative for an
    invalid transaction.
    """
    if any(detail.value is None for detail in inputs):
        return None
    return sum(d.value for d in inputs) - sum(d.value for d in outputs)  # type: ignore


def summarize(psbt: PSBT) -> PSBTSummary:
    """Builds the presentation summary of a decoded PSBT without modifying it"""
    inputs = [_input_detail(psbt, i) for i in range(len(psbt.inputs))]
    outputs = [_output_detail(psbt, i) for i in range(len(psbt.outputs))]

    return PSBTSummary(
        input_count=len(inputs),
        output_count=len(outputs),
        network_fee=network_fee(inputs, outputs),
        version=psbt.tx.version,
        locktime=psbt.tx.locktime,
        txid=psbt.tx.get_txid(),
        is_finalizable=bool(inputs) and all(d.is_finalizable for d in inputs),
        base64=psbt.to_base64(),
        hex=psbt.to_hex(),
        inputs=inputs,
        outputs=outputs,
    )


def analyze(text: str) -> PSBTSummary:
    """Decodes PSBT text (hex or base64) and summarizes it"""
    return summarize(decode(text))
