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

import struct
from io import BytesIO
from typing import List, Optional

from psbtutils.constants import (
    DEFAULT_TX_SEQUENCE,
    DEFAULT_TX_LOCKTIME,
    DEFAULT_TX_VERSION,
    SEGWIT_MARKER_FLAG,
)
from psbtutils.script import Script
from psbtutils.utils import (
    encode_varint,
    hash256,
    prepend_compact_size,
    read_compact_size,
    read_exact,
    read_var_bytes,
    h_to_b,
    b_to_h,
)


class TxInput:
    """Represents a transaction input.

    A transaction input requires a transaction id of a UTXO and the index of
    that UTXO.

    Attributes
    ----------
    txid : str
        the transaction id as a hex string (little-endian as displayed by
        tools)
    txout_index : int
        the index of the UTXO that we want to spend
    script_sig : Script
        the script that satisfies the locking conditions (aka unlocking script)
    sequence : int
        the input sequence (for timelocks, RBF, etc.)

    Methods
    -------
    to_bytes()
        serializes TxInput to bytes
    copy()
        creates a copy of the object (classmethod)
    from_stream()
        instantiates object from a stream of raw transaction bytes (staticmethod)
    """

    def __init__(
        self,
        txid: str,
        txout_index: int,
        script_sig: Optional[Script] = None,
        sequence: int = DEFAULT_TX_SEQUENCE,
    ) -> None:
        """See TxInput description"""

        # expected in the format used for displaying Bitcoin hashes
        self.txid = txid
        self.txout_index = txout_index
        self.script_sig = script_sig if script_sig is not None else Script([])
        self.sequence = sequence

    def to_bytes(self) -> bytes:
        """Serializes to bytes"""

        # Hashes are displayed in reverse byte order; the wire carries the
        # internal order
        txid_bytes = h_to_b(self.txid)[::-1]
        return (
            txid_bytes
            + struct.pack("<I", self.txout_index)
            + prepend_compact_size(self.script_sig.to_bytes())
            + struct.pack("<I", self.sequence)
        )

    def __str__(self):
        return str(
            {
                "txid": self.txid,
                "txout_index": self.txout_index,
                "script_sig": self.script_sig.to_hex(),
                "sequence": self.sequence,
            }
        )

    def __repr__(self):
        return self.__str__()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TxInput):
            return NotImplemented
        return self.to_bytes() == other.to_bytes()

    @staticmethod
    def from_stream(stream: BytesIO) -> "TxInput":
        """Reads a TxInput from a stream positioned at its first byte"""
        txid = read_exact(stream, 32, "input txid")[::-1]
        (vout,) = struct.unpack("<I", read_exact(stream, 4, "input index"))
        script_sig = Script.from_raw(read_var_bytes(stream, "input scriptSig"))
        (sequence,) = struct.unpack("<I", read_exact(stream, 4, "input sequence"))
        return TxInput(b_to_h(txid), vout, script_sig, sequence)

    @classmethod
    def copy(cls, txin: "TxInput") -> "TxInput":
        """Deep copy of TxInput"""

        return cls(txin.txid, txin.txout_index, Script.copy(txin.script_sig), txin.sequence)


class TxWitnessInput:
    """A list of the witness items required to satisfy the locking conditions
       of a segwit input (aka witness stack).

    Attributes
    ----------
    stack : list
        the witness items (bytes) list
    """

    def __init__(self, stack: Optional[List[bytes]] = None) -> None:
        """See description"""

        self.stack = list(stack) if stack is not None else []

    def to_bytes(self) -> bytes:
        """Converts to bytes, item count included"""
        stack_bytes = encode_varint(len(self.stack))
        for item in self.stack:
            stack_bytes += prepend_compact_size(item)

        return stack_bytes

    @staticmethod
    def from_stream(stream: BytesIO) -> "TxWitnessInput":
        """Reads a witness stack (item count and items) from a stream"""
        count = read_compact_size(stream, "witness item count")
        return TxWitnessInput([read_var_bytes(stream, "witness item") for _ in range(count)])

    @classmethod
    def copy(cls, txwin: "TxWitnessInput") -> "TxWitnessInput":
        """Deep copy of TxWitnessInput"""

        return cls(list(txwin.stack))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TxWitnessInput):
            return NotImplemented
        return self.stack == other.stack

    def __str__(self) -> str:
        return str(
            {
                "witness_items": [b_to_h(item) for item in self.stack],
            }
        )

    def __repr__(self) -> str:
        return self.__str__()


class TxOutput:
    """Represents a transaction output

    Attributes
    ----------
    amount : int
        the value we want to send to this output in satoshis
    script_pubkey : Script
        the script that will lock this amount

    Methods
    -------
    to_bytes()
        serializes TxOutput to bytes
    from_bytes()
        instantiates a TxOutput from its serialization (staticmethod)
    copy()
        creates a copy of the object (classmethod)
    """

    def __init__(self, amount: int, script_pubkey: Script) -> None:
        """See TxOutput description"""

        if not isinstance(amount, int):
            raise TypeError("Amount needs to be in satoshis as an integer")

        self.amount = amount
        self.script_pubkey = script_pubkey

    def to_bytes(self) -> bytes:
        """Serializes to bytes"""

        # internally all little-endian except hashes
        amount_bytes = struct.pack("<q", self.amount)
        return amount_bytes + prepend_compact_size(self.script_pubkey.to_bytes())

    @staticmethod
    def from_stream(stream: BytesIO) -> "TxOutput":
        """Reads a TxOutput from a stream positioned at its first byte"""
        (amount,) = struct.unpack("<q", read_exact(stream, 8, "output amount"))
        script_pubkey = Script.from_raw(read_var_bytes(stream, "output script"))
        return TxOutput(amount, script_pubkey)

    @staticmethod
    def from_bytes(data: bytes) -> "TxOutput":
        """Parses a serialized output; raises ValueError on trailing bytes"""
        stream = BytesIO(data)
        output = TxOutput.from_stream(stream)
        if stream.read(1):
            raise ValueError("Unexpected data after transaction output")
        return output

    def __str__(self) -> str:
        return str({"amount": self.amount, "script_pubkey": self.script_pubkey.to_hex()})

    def __repr__(self) -> str:
        return self.__str__()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TxOutput):
            return NotImplemented
        return self.to_bytes() == other.to_bytes()

    @classmethod
    def copy(cls, txout: "TxOutput") -> "TxOutput":
        """Deep copy of TxOutput"""

        return cls(txout.amount, Script.copy(txout.script_pubkey))


class Transaction:
    """Represents a Bitcoin transaction

    Attributes
    ----------
    inputs : list (TxInput)
        A list of all the transaction inputs
    outputs : list (TxOutput)
        A list of all the transaction outputs
    locktime : int
        The transaction's locktime parameter
    version : int
        The transaction version
    has_segwit : bool
        Specifies a tx that includes segwit inputs
    witnesses : list (TxWitnessInput)
        The witness structure that corresponds to the inputs

    Methods
    -------
    to_bytes()
        Serializes Transaction to bytes
    to_hex()
        converts result of to_bytes to hexadecimal string
    from_bytes()
        Instantiates a Transaction from serialized bytes (staticmethod)
    from_raw()
        Instantiates a Transaction from serialized raw hexadecimal data (staticmethod)
    get_txid()
        Calculates txid and returns it
    get_wtxid()
        Calculates tx hash (wtxid) and returns it
    get_size()
        Calculates the tx size
    get_vsize()
        Calculates the tx segwit size
    copy()
        creates a copy of the object (classmethod)
    """

    def __init__(
        self,
        inputs: Optional[List[TxInput]] = None,
        outputs: Optional[List[TxOutput]] = None,
        locktime: int = DEFAULT_TX_LOCKTIME,
        version: int = DEFAULT_TX_VERSION,
        has_segwit: bool = False,
        witnesses: Optional[List[TxWitnessInput]] = None,
    ) -> None:
        """See Transaction description"""

        # make sure default argument for inputs, outputs and witnesses is an empty list
        self.inputs = inputs if inputs is not None else []
        self.outputs = outputs if outputs is not None else []
        self.witnesses = witnesses if witnesses is not None else []
        self.has_segwit = has_segwit
        self.locktime = locktime
        self.version = version

    def _has_witness_data(self) -> bool:
        return self.has_segwit and any(witness.stack for witness in self.witnesses)

    def to_bytes(self, include_witness: bool = True) -> bytes:
        """Serializes transaction to bytes following the Bitcoin protocol serialization

        Parameters
        ----------
        include_witness : bool
            Whether to include witness data in serialization; transactions
            without any witness item are always serialized in legacy format
        """
        inputs_ser = b"".join(txin.to_bytes() for txin in self.inputs)
        outputs_ser = b"".join(txout.to_bytes() for txout in self.outputs)
        body = (
            encode_varint(len(self.inputs))
            + inputs_ser
            + encode_varint(len(self.outputs))
            + outputs_ser
        )

        version = struct.pack("<i", self.version)
        locktime = struct.pack("<I", self.locktime)

        # non-segwit format
        if not include_witness or not self._has_witness_data():
            return version + body + locktime

        # one witness per input; missing ones are empty
        witness_ser = b""
        for index in range(len(self.inputs)):
            if index < len(self.witnesses):
                witness_ser += self.witnesses[index].to_bytes()
            else:
                witness_ser += b"\x00"

        return version + SEGWIT_MARKER_FLAG + body + witness_ser + locktime

    def to_hex(self) -> str:
        """Serializes transaction to hex string"""
        return b_to_h(self.to_bytes())

    def get_txid(self) -> str:
        """Calculates the transaction id (txid) and returns it"""
        # txid covers the pre-segwit serialization (no marker, flag or witness)
        return b_to_h(hash256(self.to_bytes(include_witness=False))[::-1])

    def get_wtxid(self) -> str:
        """Calculates the witness transaction id (wtxid) and returns it"""
        return b_to_h(hash256(self.to_bytes(include_witness=True))[::-1])

    def get_size(self) -> int:
        """Calculates the transaction size in bytes (including witness data if present)"""
        return len(self.to_bytes())

    def get_vsize(self) -> int:
        """Calculates the virtual transaction size (for fee calculations in segwit)

        vsize = ceil(weight / 4) where weight = 3 * non_witness_size + full_size
        """
        non_witness_size = len(self.to_bytes(include_witness=False))
        weight = 3 * non_witness_size + self.get_size()
        return (weight + 3) // 4

    @staticmethod
    def from_bytes(data: bytes, allow_witness: bool = True) -> "Transaction":
        """
        Imports a Transaction from its serialization.

        Attributes
        ----------
        data : bytes
            The raw transaction
        allow_witness : bool
            Whether the segwit marker and flag are recognized; an unsigned
            transaction with no inputs is otherwise mistaken for a segwit one

        Raises
        ------
        ValueError
            if the data is truncated, has an invalid segwit flag or trailing
            bytes
        """
        stream = BytesIO(data)
        (version,) = struct.unpack("<i", read_exact(stream, 4, "version"))

        has_segwit = False
        if allow_witness and data[4:6] == SEGWIT_MARKER_FLAG:
            has_segwit = True
            stream.seek(6)

        n_inputs = read_compact_size(stream, "input count")
        inputs = [TxInput.from_stream(stream) for _ in range(n_inputs)]

        n_outputs = read_compact_size(stream, "output count")
        outputs = [TxOutput.from_stream(stream) for _ in range(n_outputs)]

        witnesses = []
        if has_segwit:
            witnesses = [TxWitnessInput.from_stream(stream) for _ in range(n_inputs)]

        (locktime,) = struct.unpack("<I", read_exact(stream, 4, "locktime"))

        if stream.read(1):
            raise ValueError("Unexpected data after transaction")

        return Transaction(
            inputs=inputs,
            outputs=outputs,
            locktime=locktime,
            version=version,
            has_segwit=has_segwit,
            witnesses=witnesses,
        )

    @staticmethod
    def from_raw(rawtxhex: str) -> "Transaction":
        """Imports a Transaction from hexadecimal data."""
        return Transaction.from_bytes(h_to_b(rawtxhex))

    def __str__(self) -> str:
        return str(
            {
                "inputs": self.inputs,
                "outputs": self.outputs,
                "has_segwit": self.has_segwit,
                "witnesses": self.witnesses,
                "locktime": self.locktime,
                "version": self.version,
            }
        )

    def __repr__(self) -> str:
        return self.__str__()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Transaction):
            return NotImplemented
        return self.to_bytes() == other.to_bytes()

    @classmethod
    def copy(cls, tx: "Transaction") -> "Transaction":
        """Deep copy of Transaction"""

        ins = [TxInput.copy(txin) for txin in tx.inputs]
        outs = [TxOutput.copy(txout) for txout in tx.outputs]
        wits = [TxWitnessInput.copy(witness) for witness in tx.witnesses]
        return cls(ins, outs, tx.locktime, tx.version, tx.has_segwit, wits)
