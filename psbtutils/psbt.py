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

import base64
import binascii
import logging
import struct
from io import BytesIO
from typing import Dict, List, Optional, Tuple

from psbtutils.constants import (
    PSBT_MAGIC,
    PSBT_SEPARATOR,
    PSBT_MAP_TERMINATOR,
    PSBT_GLOBAL_UNSIGNED_TX,
    PSBT_IN_NON_WITNESS_UTXO,
    PSBT_IN_WITNESS_UTXO,
    PSBT_IN_PARTIAL_SIG,
    PSBT_IN_SIGHASH_TYPE,
    PSBT_IN_REDEEM_SCRIPT,
    PSBT_IN_WITNESS_SCRIPT,
    PSBT_IN_FINAL_SCRIPTSIG,
    PSBT_IN_FINAL_SCRIPTWITNESS,
    PSBT_IN_TAP_KEY_SIG,
    PSBT_IN_TAP_SCRIPT_SIG,
    PSBT_IN_TAP_LEAF_SCRIPT,
    TAPROOT_KEY_SIG_SIZES,
)
from psbtutils.errors import MalformedContainerError
from psbtutils.script import Script
from psbtutils.transactions import Transaction, TxOutput, TxWitnessInput
from psbtutils.utils import (
    encode_varint,
    parse_compact_size,
    prepend_compact_size,
    read_compact_size,
    read_exact,
)

logger = logging.getLogger(__name__)

Entry = Tuple[bytes, bytes]


def make_key(key_type: int, key_data: bytes = b"") -> bytes:
    """Builds a map key: compact size key type followed by the key data"""
    return encode_varint(key_type) + key_data


def split_key(key: bytes) -> Tuple[int, bytes]:
    """Splits a map key into (key type, key data)"""
    try:
        key_type, size = parse_compact_size(key)
    except ValueError as e:
        raise MalformedContainerError(f"Invalid key {key.hex()}: {e}") from e
    return key_type, key[size:]


def _require_no_key_data(key_type: int, key_data: bytes) -> None:
    if key_data:
        raise MalformedContainerError(
            f"Key type 0x{key_type:02x} must not carry key data"
        )


class PSBTInput:
    """The per-input map of a PSBT

    Recognized fields are decoded into typed attributes; any other entry is
    kept verbatim in `unknown` so that it survives a round trip.

    Attributes
    ----------
    non_witness_utxo : Transaction
        the full previous transaction
    witness_utxo : TxOutput
        the previous output being spent
    partial_sigs : dict
        public key (bytes) -> ECDSA signature with sighash byte (bytes)
    sighash_type : int
        the sighash type the signer should use
    redeem_script : Script
    witness_script : Script
    final_scriptsig : Script
    final_scriptwitness : list (bytes)
    tap_key_sig : bytes
        taproot key-path schnorr signature (64 or 65 bytes)
    tap_script_sigs : dict
        (x-only key, leaf hash) -> schnorr signature
    tap_leaf_scripts : dict
        control block -> (script bytes, leaf version)
    unknown : list
        (key, value) pairs of every other entry, in the order read
    """

    def __init__(self) -> None:
        self.non_witness_utxo: Optional[Transaction] = None
        self.witness_utxo: Optional[TxOutput] = None
        self.partial_sigs: Dict[bytes, bytes] = {}
        self.sighash_type: Optional[int] = None
        self.redeem_script: Optional[Script] = None
        self.witness_script: Optional[Script] = None
        self.final_scriptsig: Optional[Script] = None
        self.final_scriptwitness: Optional[List[bytes]] = None
        self.tap_key_sig: Optional[bytes] = None
        self.tap_script_sigs: Dict[Tuple[bytes, bytes], bytes] = {}
        self.tap_leaf_scripts: Dict[bytes, Tuple[bytes, int]] = {}
        self.unknown: List[Entry] = []

    def is_final(self) -> bool:
        """True when a final scriptSig or scriptWitness is present"""
        return self.final_scriptsig is not None or self.final_scriptwitness is not None

    def has_signing_material(self) -> bool:
        """True when the input carries any signature or final script"""
        return bool(
            self.partial_sigs
            or self.tap_key_sig
            or self.tap_script_sigs
            or self.is_final()
        )

    def to_entries(self) -> List[Entry]:
        """Returns the map entries as (key, value) pairs"""
        entries: List[Entry] = []
        if self.non_witness_utxo is not None:
            entries.append(
                (make_key(PSBT_IN_NON_WITNESS_UTXO), self.non_witness_utxo.to_bytes())
            )
        if self.witness_utxo is not None:
            entries.append((make_key(PSBT_IN_WITNESS_UTXO), self.witness_utxo.to_bytes()))
        for pubkey, sig in self.partial_sigs.items():
            entries.append((make_key(PSBT_IN_PARTIAL_SIG, pubkey), sig))
        if self.sighash_type is not None:
            entries.append(
                (make_key(PSBT_IN_SIGHASH_TYPE), struct.pack("<I", self.sighash_type))
            )
        if self.redeem_script is not None:
            entries.append((make_key(PSBT_IN_REDEEM_SCRIPT), self.redeem_script.to_bytes()))
        if self.witness_script is not None:
            entries.append(
                (make_key(PSBT_IN_WITNESS_SCRIPT), self.witness_script.to_bytes())
            )
        if self.final_scriptsig is not None:
            entries.append(
                (make_key(PSBT_IN_FINAL_SCRIPTSIG), self.final_scriptsig.to_bytes())
            )
        if self.final_scriptwitness is not None:
            entries.append(
                (
                    make_key(PSBT_IN_FINAL_SCRIPTWITNESS),
                    TxWitnessInput(self.final_scriptwitness).to_bytes(),
                )
            )
        if self.tap_key_sig is not None:
            entries.append((make_key(PSBT_IN_TAP_KEY_SIG), self.tap_key_sig))
        for (xonly, leaf_hash), sig in self.tap_script_sigs.items():
            entries.append((make_key(PSBT_IN_TAP_SCRIPT_SIG, xonly + leaf_hash), sig))
        for control_block, (script, leaf_version) in self.tap_leaf_scripts.items():
            entries.append(
                (
                    make_key(PSBT_IN_TAP_LEAF_SCRIPT, control_block),
                    script + bytes([leaf_version]),
                )
            )
        entries.extend(self.unknown)
        return entries

    @classmethod
    def from_entries(cls, entries: List[Entry]) -> "PSBTInput":
        """Builds an input map from (key, value) pairs

        Raises
        ------
        MalformedContainerError
            if a recognized entry cannot be decoded
        """
        psbt_input = cls()
        for key, value in entries:
            key_type, key_data = split_key(key)
            try:
                psbt_input._set_entry(key, key_type, key_data, value)
            except MalformedContainerError:
                raise
            except (ValueError, struct.error) as e:
                raise MalformedContainerError(
                    f"Invalid input entry of type 0x{key_type:02x}: {e}"
                ) from e
        return psbt_input

    def _set_entry(self, key: bytes, key_type: int, key_data: bytes, value: bytes) -> None:
        if key_type == PSBT_IN_NON_WITNESS_UTXO:
            _require_no_key_data(key_type, key_data)
            self.non_witness_utxo = Transaction.from_bytes(value)
        elif key_type == PSBT_IN_WITNESS_UTXO:
            _require_no_key_data(key_type, key_data)
            self.witness_utxo = TxOutput.from_bytes(value)
        elif key_type == PSBT_IN_PARTIAL_SIG:
            if len(key_data) not in (33, 65):
                raise MalformedContainerError("Partial signature key is not a public key")
            self.partial_sigs[key_data] = value
        elif key_type == PSBT_IN_SIGHASH_TYPE:
            _require_no_key_data(key_type, key_data)
            if len(value) != 4:
                raise MalformedContainerError("Sighash type must be 4 bytes")
            (self.sighash_type,) = struct.unpack("<I", value)
        elif key_type == PSBT_IN_REDEEM_SCRIPT:
            _require_no_key_data(key_type, key_data)
            self.redeem_script = Script.from_raw(value)
        elif key_type == PSBT_IN_WITNESS_SCRIPT:
            _require_no_key_data(key_type, key_data)
            self.witness_script = Script.from_raw(value)
        elif key_type == PSBT_IN_FINAL_SCRIPTSIG:
            _require_no_key_data(key_type, key_data)
            self.final_scriptsig = Script.from_raw(value)
        elif key_type == PSBT_IN_FINAL_SCRIPTWITNESS:
            _require_no_key_data(key_type, key_data)
            stream = BytesIO(value)
            witness = TxWitnessInput.from_stream(stream)
            if stream.read(1):
                raise MalformedContainerError("Unexpected data after final scriptWitness")
            self.final_scriptwitness = witness.stack
        elif key_type == PSBT_IN_TAP_KEY_SIG:
            _require_no_key_data(key_type, key_data)
            if len(value) not in TAPROOT_KEY_SIG_SIZES:
                raise MalformedContainerError("Taproot key signature must be 64 or 65 bytes")
            self.tap_key_sig = value
        elif key_type == PSBT_IN_TAP_SCRIPT_SIG:
            if len(key_data) != 64:
                raise MalformedContainerError("Taproot script signature key must be 64 bytes")
            if len(value) not in TAPROOT_KEY_SIG_SIZES:
                raise MalformedContainerError(
                    "Taproot script signature must be 64 or 65 bytes"
                )
            self.tap_script_sigs[(key_data[:32], key_data[32:])] = value
        elif key_type == PSBT_IN_TAP_LEAF_SCRIPT:
            if len(key_data) < 33 or (len(key_data) - 33) % 32:
                raise MalformedContainerError("Invalid taproot control block")
            if not value:
                raise MalformedContainerError("Taproot leaf script is missing its version")
            self.tap_leaf_scripts[key_data] = (value[:-1], value[-1])
        else:
            self.unknown.append((key, value))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PSBTInput):
            return NotImplemented
        return sorted(self.to_entries()) == sorted(other.to_entries())

    def __repr__(self) -> str:
        return f"PSBTInput({self.to_entries()!r})"


class PSBTOutput:
    """The per-output map of a PSBT; every entry is kept verbatim"""

    def __init__(self) -> None:
        self.unknown: List[Entry] = []

    def to_entries(self) -> List[Entry]:
        return list(self.unknown)

    @classmethod
    def from_entries(cls, entries: List[Entry]) -> "PSBTOutput":
        psbt_output = cls()
        psbt_output.unknown = list(entries)
        return psbt_output

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PSBTOutput):
            return NotImplemented
        return sorted(self.to_entries()) == sorted(other.to_entries())

    def __repr__(self) -> str:
        return f"PSBTOutput({self.to_entries()!r})"


class PSBT:
    """A Partially Signed Bitcoin Transaction (BIP-174)

    Attributes
    ----------
    tx : Transaction
        the unsigned transaction
    inputs : list (PSBTInput)
        one map per transaction input
    outputs : list (PSBTOutput)
        one map per transaction output
    unknown : list
        (key, value) pairs of every global entry but the unsigned transaction

    Methods
    -------
    from_bytes(data)
        parses a binary PSBT (classmethod)
    to_bytes()
        canonical serialization, entries sorted by key within each map
    from_base64(text), to_base64()
    copy(psbt)
        deep copy (classmethod)
    get_prev_output(index)
        the previous output spent by an input, when the PSBT carries it
    """

    MAGIC = PSBT_MAGIC + PSBT_SEPARATOR

    def __init__(
        self,
        tx: Optional[Transaction] = None,
        inputs: Optional[List[PSBTInput]] = None,
        outputs: Optional[List[PSBTOutput]] = None,
        unknown: Optional[List[Entry]] = None,
    ) -> None:
        self.tx = tx if tx is not None else Transaction()
        self.inputs = inputs if inputs is not None else [PSBTInput() for _ in self.tx.inputs]
        self.outputs = (
            outputs if outputs is not None else [PSBTOutput() for _ in self.tx.outputs]
        )
        self.unknown: List[Entry] = unknown if unknown is not None else []

        if len(self.inputs) != len(self.tx.inputs) or len(self.outputs) != len(
            self.tx.outputs
        ):
            raise ValueError("PSBT maps do not match the transaction inputs and outputs")

    def global_entries(self) -> List[Entry]:
        """Returns the global map entries as (key, value) pairs"""
        return [
            (make_key(PSBT_GLOBAL_UNSIGNED_TX), self.tx.to_bytes(include_witness=False))
        ] + list(self.unknown)

    def get_prev_output(self, index: int) -> Optional[TxOutput]:
        """Returns the output spent by input `index`, or None if not known

        The witness UTXO is preferred; otherwise the output of the full
        previous transaction at the input's outpoint index is used.
        """
        psbt_input = self.inputs[index]
        if psbt_input.witness_utxo is not None:
            return psbt_input.witness_utxo
        if psbt_input.non_witness_utxo is not None:
            vout = self.tx.inputs[index].txout_index
            prev_outputs = psbt_input.non_witness_utxo.outputs
            if 0 <= vout < len(prev_outputs):
                return prev_outputs[vout]
            logger.debug("Input %d spends missing output %d of its UTXO", index, vout)
        return None

    @classmethod
    def copy(cls, psbt: "PSBT") -> "PSBT":
        """Deep copy of PSBT"""
        return cls.from_bytes(psbt.to_bytes())

    def to_bytes(self) -> bytes:
        result = BytesIO()

        result.write(self.MAGIC)
        _write_map(result, self.global_entries())
        for psbt_input in self.inputs:
            _write_map(result, psbt_input.to_entries())
        for psbt_output in self.outputs:
            _write_map(result, psbt_output.to_entries())

        return result.getvalue()

    def to_base64(self) -> str:
        return base64.b64encode(self.to_bytes()).decode("ascii")

    def to_hex(self) -> str:
        return self.to_bytes().hex()

    @classmethod
    def from_base64(cls, psbt_str: str) -> "PSBT":
        try:
            # line-wrapped text is accepted
            psbt_bytes = base64.b64decode("".join(psbt_str.split()), validate=True)
        except binascii.Error as e:
            raise MalformedContainerError(f"Invalid base64 encoding: {e}") from e
        return cls.from_bytes(psbt_bytes)

    @classmethod
    def from_bytes(cls, psbt_bytes: bytes) -> "PSBT":
        """Parses a binary PSBT

        Raises
        ------
        MalformedContainerError
            on bad magic, truncated or duplicate entries, a missing or signed
            unsigned transaction, or undecodable recognized values
        """
        stream = BytesIO(psbt_bytes)

        magic = stream.read(len(cls.MAGIC))
        if magic != cls.MAGIC:
            raise MalformedContainerError(f"Invalid PSBT magic: {magic.hex()}")

        global_entries = _read_map(stream, "global")
        tx = None
        unknown: List[Entry] = []
        for key, value in global_entries:
            key_type, key_data = split_key(key)
            if key_type == PSBT_GLOBAL_UNSIGNED_TX:
                _require_no_key_data(key_type, key_data)
                tx = _parse_unsigned_tx(value)
            else:
                unknown.append((key, value))
        if tx is None:
            raise MalformedContainerError("PSBT is missing the unsigned transaction")

        inputs = [
            PSBTInput.from_entries(_read_map(stream, f"input {i}"))
            for i in range(len(tx.inputs))
        ]
        outputs = [
            PSBTOutput.from_entries(_read_map(stream, f"output {i}"))
            for i in range(len(tx.outputs))
        ]

        trailing = stream.read()
        if trailing:
            logger.debug("Ignoring %d bytes after the PSBT maps", len(trailing))

        return cls(tx, inputs, outputs, unknown)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PSBT):
            return NotImplemented
        return (
            sorted(self.global_entries()) == sorted(other.global_entries())
            and self.inputs == other.inputs
            and self.outputs == other.outputs
        )

    def __repr__(self) -> str:
        return f"PSBT({self.to_base64()})"


def _parse_unsigned_tx(value: bytes) -> Transaction:
    # a transaction with no inputs starts like a segwit marker, so read the
    # legacy format first
    try:
        tx = Transaction.from_bytes(value, allow_witness=False)
    except (ValueError, struct.error) as legacy_error:
        try:
            Transaction.from_bytes(value, allow_witness=True)
        except (ValueError, struct.error):
            raise MalformedContainerError(
                f"Invalid unsigned transaction: {legacy_error}"
            ) from legacy_error
        raise MalformedContainerError("Unsigned transaction must not carry witnesses")

    for txin in tx.inputs:
        if len(txin.script_sig):
            raise MalformedContainerError("Unsigned transaction must not carry scriptSigs")
    return tx


def _read_map(stream: BytesIO, name: str) -> List[Entry]:
    """Reads key-value pairs up to the map terminator"""
    entries: List[Entry] = []
    seen = set()
    try:
        while True:
            key_len = read_compact_size(stream, f"{name} key length")
            if key_len == 0:
                break
            key = read_exact(stream, key_len, f"{name} key")
            value_len = read_compact_size(stream, f"{name} value length")
            value = read_exact(stream, value_len, f"{name} value")
            if key in seen:
                raise MalformedContainerError(f"Duplicate key {key.hex()} in {name} map")
            seen.add(key)
            entries.append((key, value))
    except MalformedContainerError:
        raise
    except ValueError as e:
        raise MalformedContainerError(f"Truncated {name} map: {e}") from e
    return entries


def _write_map(result: BytesIO, entries: List[Entry]) -> None:
    for key, value in sorted(entries):
        result.write(prepend_compact_size(key))
        result.write(prepend_compact_size(value))
    result.write(PSBT_MAP_TERMINATOR)
