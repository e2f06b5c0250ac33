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

import hashlib
import logging
from typing import List, Optional, Tuple

from psbtutils.constants import (
    P2PKH_ADDRESS,
    P2SH_ADDRESS,
    P2WPKH_ADDRESS,
    P2WSH_ADDRESS,
    P2TR_ADDRESS,
    PSBT_IN_FINALIZER_CLEARED_TYPES,
)
from psbtutils.errors import NotFinalizableError
from psbtutils.psbt import PSBT, PSBTInput, split_key
from psbtutils.script import Script
from psbtutils.transactions import Transaction, TxInput, TxWitnessInput
from psbtutils.utils import b_to_h, hash160, tapleaf_tagged_hash

logger = logging.getLogger(__name__)

# (final scriptSig, final scriptWitness); either may be None
FinalFields = Tuple[Optional[Script], Optional[List[bytes]]]


def _sig_for_key_hash(psbt_input: PSBTInput, key_hash: bytes) -> Optional[Tuple[bytes, bytes]]:
    """Returns (pubkey, sig) of the partial signature whose key hashes to key_hash"""
    for pubkey, sig in psbt_input.partial_sigs.items():
        if hash160(pubkey) == key_hash:
            return pubkey, sig
    return None


def _multisig_sigs(psbt_input: PSBTInput, script: Script) -> Optional[List[bytes]]:
    """Signatures for an m-of-n script, in the order the keys appear in it"""
    multisig = script.get_multisig()
    if multisig is None:
        return None
    m, pubkeys = multisig
    sigs = [psbt_input.partial_sigs[pk] for pk in pubkeys if pk in psbt_input.partial_sigs]
    if len(sigs) < m:
        return None
    return sigs[:m]


def _witness_script_stack(psbt_input: PSBTInput, witness_script: Script) -> Optional[List[bytes]]:
    """Witness stack satisfying a P2WSH witness script"""
    script_bytes = witness_script.to_bytes()

    sigs = _multisig_sigs(psbt_input, witness_script)
    if sigs is not None:
        # the extra empty item is consumed by OP_CHECKMULTISIG
        return [b""] + sigs + [script_bytes]

    pubkey = witness_script.get_checksig_pubkey()
    if pubkey is not None and pubkey in psbt_input.partial_sigs:
        return [psbt_input.partial_sigs[pubkey], script_bytes]

    return None


def _finalize_p2pkh(psbt_input: PSBTInput, script_pubkey: Script) -> Optional[FinalFields]:
    match = _sig_for_key_hash(psbt_input, script_pubkey.get_hash())
    if match is None:
        return None
    pubkey, sig = match
    return Script([sig, pubkey]), None


def _finalize_p2wpkh(psbt_input: PSBTInput, script_pubkey: Script) -> Optional[FinalFields]:
    match = _sig_for_key_hash(psbt_input, script_pubkey.get_hash())
    if match is None:
        return None
    pubkey, sig = match
    return None, [sig, pubkey]


def _finalize_p2wsh(psbt_input: PSBTInput, script_pubkey: Script) -> Optional[FinalFields]:
    witness_script = psbt_input.witness_script
    if witness_script is None:
        return None
    if hashlib.sha256(witness_script.to_bytes()).digest() != script_pubkey.get_hash():
        logger.debug("Witness script does not match the P2WSH program")
        return None
    stack = _witness_script_stack(psbt_input, witness_script)
    if stack is None:
        return None
    return None, stack


def _finalize_p2sh(psbt_input: PSBTInput, script_pubkey: Script) -> Optional[FinalFields]:
    """Finalize P2SH input with support for nested SegWit."""
    redeem_script = psbt_input.redeem_script
    if redeem_script is None:
        return None
    redeem_bytes = redeem_script.to_bytes()
    if hash160(redeem_bytes) != script_pubkey.get_hash():
        logger.debug("Redeem script does not match the P2SH hash")
        return None

    # P2SH-wrapped segwit: the scriptSig only pushes the redeem script
    if redeem_script.is_p2wpkh():
        fields = _finalize_p2wpkh(psbt_input, redeem_script)
    elif redeem_script.is_p2wsh():
        fields = _finalize_p2wsh(psbt_input, redeem_script)
    else:
        sigs = _multisig_sigs(psbt_input, redeem_script)
        if sigs is not None:
            return Script(["OP_0"] + sigs + [redeem_bytes]), None
        pubkey = redeem_script.get_checksig_pubkey()
        if pubkey is not None and pubkey in psbt_input.partial_sigs:
            return Script([psbt_input.partial_sigs[pubkey], redeem_bytes]), None
        return None

    if fields is None:
        return None
    return Script([redeem_bytes]), fields[1]


def _finalize_p2tr(psbt_input: PSBTInput, script_pubkey: Script) -> Optional[FinalFields]:
    """Finalize P2TR (Taproot) input, key path first."""
    if psbt_input.tap_key_sig is not None:
        return None, [psbt_input.tap_key_sig]

    for control_block, (leaf_script, leaf_version) in psbt_input.tap_leaf_scripts.items():
        xonly = Script.from_raw(leaf_script).get_checksig_pubkey()
        if xonly is None or len(xonly) != 32:
            continue
        leaf_hash = tapleaf_tagged_hash(leaf_script, leaf_version)
        sig = psbt_input.tap_script_sigs.get((xonly, leaf_hash))
        if sig is not None:
            return None, [sig, leaf_script, control_block]
    return None


FINALIZERS = {
    P2PKH_ADDRESS: _finalize_p2pkh,
    P2WPKH_ADDRESS: _finalize_p2wpkh,
    P2SH_ADDRESS: _finalize_p2sh,
    P2WSH_ADDRESS: _finalize_p2wsh,
    P2TR_ADDRESS: _finalize_p2tr,
}


def _final_fields(psbt: PSBT, index: int) -> Optional[FinalFields]:
    """Returns the final fields of an input or None if it cannot be finalized"""
    psbt_input = psbt.inputs[index]
    if psbt_input.is_final():
        return psbt_input.final_scriptsig, psbt_input.final_scriptwitness

    prev_output = psbt.get_prev_output(index)
    if prev_output is None:
        logger.debug("Input %d cannot be finalized without UTXO information", index)
        return None

    script_pubkey = prev_output.script_pubkey
    finalizer = FINALIZERS.get(script_pubkey.get_script_type())
    if finalizer is None:
        logger.debug("Input %d spends a non-standard script", index)
        return None
    return finalizer(psbt_input, script_pubkey)


def can_finalize_input(psbt: PSBT, index: int) -> bool:
    """True when input `index` is final or carries enough data to become final"""
    return _final_fields(psbt, index) is not None


def unfinalizable_inputs(psbt: PSBT) -> List[int]:
    return [i for i in range(len(psbt.inputs)) if not can_finalize_input(psbt, i)]


def can_finalize(psbt: PSBT) -> bool:
    """True when the PSBT has inputs and every one of them can be finalized"""
    return bool(psbt.inputs) and not unfinalizable_inputs(psbt)


def _check_finalizable(psbt: PSBT) -> None:
    if not psbt.inputs:
        raise NotFinalizableError([], "PSBT has no inputs to finalize")
    failing = unfinalizable_inputs(psbt)
    if failing:
        raise NotFinalizableError(failing)


def finalize(psbt: PSBT) -> PSBT:
    """Returns a copy of the PSBT with every input finalized.

    Final scriptSig and scriptWitness fields are set and the data only needed
    for signing is removed; UTXOs and unknown entries stay.

    Raises
    ------
    NotFinalizableError
        listing the inputs that lack signatures or scripts
    """
    _check_finalizable(psbt)

    finalized = PSBT.copy(psbt)
    for index, psbt_input in enumerate(finalized.inputs):
        if psbt_input.is_final():
            continue
        script_sig, witness = _final_fields(finalized, index)  # type: ignore

        psbt_input.final_scriptsig = script_sig
        psbt_input.final_scriptwitness = witness
        psbt_input.partial_sigs = {}
        psbt_input.sighash_type = None
        psbt_input.redeem_script = None
        psbt_input.witness_script = None
        psbt_input.tap_key_sig = None
        psbt_input.tap_script_sigs = {}
        psbt_input.tap_leaf_scripts = {}
        psbt_input.unknown = [
            (key, value)
            for key, value in psbt_input.unknown
            if split_key(key)[0] not in PSBT_IN_FINALIZER_CLEARED_TYPES
        ]
    return finalized


def extract(psbt: PSBT) -> bytes:
    """Assembles the network transaction of a finalizable PSBT.

    The segwit serialization is used when any input has a witness.

    Raises
    ------
    NotFinalizableError
        listing the inputs that cannot be finalized
    """
    _check_finalizable(psbt)

    inputs = []
    witnesses = []
    for index, txin in enumerate(psbt.tx.inputs):
        script_sig, witness = _final_fields(psbt, index)  # type: ignore
        inputs.append(
            TxInput(
                txin.txid,
                txin.txout_index,
                Script.copy(script_sig) if script_sig is not None else Script([]),
                txin.sequence,
            )
        )
        witnesses.append(TxWitnessInput(witness))

    tx = Transaction(
        inputs,
        [txout for txout in psbt.tx.outputs],
        psbt.tx.locktime,
        psbt.tx.version,
        has_segwit=any(witness.stack for witness in witnesses),
        witnesses=witnesses,
    )
    logger.debug("Extracted transaction %s", tx.get_txid())
    return tx.to_bytes()


def extract_hex(psbt: PSBT) -> str:
    """Like extract(), as a hex string ready to broadcast"""
    return b_to_h(extract(psbt))
