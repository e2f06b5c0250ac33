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

__version__ = "0.1.0"

from psbtutils.setup import setup, get_networks

from psbtutils.errors import (
    PSBTError,
    EmptyInputError,
    MalformedContainerError,
    IncompatibleCombineError,
    IndexOutOfRangeError,
    InvalidValueError,
    NotFinalizableError,
    BroadcastError,
)

from psbtutils.script import Script, classify, disassemble

from psbtutils.address import (
    P2pkhAddress,
    P2shAddress,
    P2wpkhAddress,
    P2wshAddress,
    P2trAddress,
    address_of,
)

from psbtutils.transactions import (
    Transaction,
    TxInput,
    TxOutput,
    TxWitnessInput,
)

from psbtutils.psbt import PSBT, PSBTInput, PSBTOutput

from psbtutils.codec import decode, encode, detect_encoding

from psbtutils.sighash import sighash_of, sighash_label

from psbtutils.summary import InputDetail, OutputDetail, PSBTSummary, analyze, summarize

from psbtutils.mutations import (
    combine,
    remove_input,
    update_output_value,
    signed_input_indexes,
    combine_psbts,
    remove_psbt_input,
    edit_output_value,
)

from psbtutils.finalizer import can_finalize, can_finalize_input, finalize, extract, extract_hex

from psbtutils.broadcast import broadcast_transaction

from psbtutils import proxy

__all__ = [
    'setup',
    'get_networks',
    'PSBTError',
    'EmptyInputError',
    'MalformedContainerError',
    'IncompatibleCombineError',
    'IndexOutOfRangeError',
    'InvalidValueError',
    'NotFinalizableError',
    'BroadcastError',
    'Script',
    'classify',
    'disassemble',
    'P2pkhAddress',
    'P2shAddress',
    'P2wpkhAddress',
    'P2wshAddress',
    'P2trAddress',
    'address_of',
    'Transaction',
    'TxInput',
    'TxOutput',
    'TxWitnessInput',
    'PSBT',
    'PSBTInput',
    'PSBTOutput',
    'decode',
    'encode',
    'detect_encoding',
    'sighash_of',
    'sighash_label',
    'InputDetail',
    'OutputDetail',
    'PSBTSummary',
    'analyze',
    'summarize',
    'combine',
    'remove_input',
    'update_output_value',
    'signed_input_indexes',
    'combine_psbts',
    'remove_psbt_input',
    'edit_output_value',
    'can_finalize',
    'can_finalize_input',
    'finalize',
    'extract',
    'extract_hex',
    'broadcast_transaction',
    'proxy'
]
