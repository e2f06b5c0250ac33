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
from typing import Any, List, Optional, Tuple, Union

from psbtutils.constants import (
    P2PKH_ADDRESS,
    P2SH_ADDRESS,
    P2WPKH_ADDRESS,
    P2WSH_ADDRESS,
    P2TR_ADDRESS,
    UNKNOWN_ADDRESS,
)
from psbtutils.utils import b_to_h, h_to_b


# Bitcoin's op codes. Complete list at: https://en.bitcoin.it/wiki/Script
OP_CODES = {
    # constants
    "OP_0": 0x00,
    "OP_FALSE": 0x00,
    "OP_PUSHDATA1": 0x4C,
    "OP_PUSHDATA2": 0x4D,
    "OP_PUSHDATA4": 0x4E,
    "OP_1NEGATE": 0x4F,
    "OP_RESERVED": 0x50,
    "OP_1": 0x51,
    "OP_TRUE": 0x51,
    "OP_2": 0x52,
    "OP_3": 0x53,
    "OP_4": 0x54,
    "OP_5": 0x55,
    "OP_6": 0x56,
    "OP_7": 0x57,
    "OP_8": 0x58,
    "OP_9": 0x59,
    "OP_10": 0x5A,
    "OP_11": 0x5B,
    "OP_12": 0x5C,
    "OP_13": 0x5D,
    "OP_14": 0x5E,
    "OP_15": 0x5F,
    "OP_16": 0x60,
    # flow control
    "OP_NOP": 0x61,
    "OP_VER": 0x62,
    "OP_IF": 0x63,
    "OP_NOTIF": 0x64,
    "OP_VERIF": 0x65,
    "OP_VERNOTIF": 0x66,
    "OP_ELSE": 0x67,
    "OP_ENDIF": 0x68,
    "OP_VERIFY": 0x69,
    "OP_RETURN": 0x6A,
    # stack
    "OP_TOALTSTACK": 0x6B,
    "OP_FROMALTSTACK": 0x6C,
    "OP_2DROP": 0x6D,
    "OP_2DUP": 0x6E,
    "OP_3DUP": 0x6F,
    "OP_2OVER": 0x70,
    "OP_2ROT": 0x71,
    "OP_2SWAP": 0x72,
    "OP_IFDUP": 0x73,
    "OP_DEPTH": 0x74,
    "OP_DROP": 0x75,
    "OP_DUP": 0x76,
    "OP_NIP": 0x77,
    "OP_OVER": 0x78,
    "OP_PICK": 0x79,
    "OP_ROLL": 0x7A,
    "OP_ROT": 0x7B,
    "OP_SWAP": 0x7C,
    "OP_TUCK": 0x7D,
    # splice
    "OP_CAT": 0x7E,
    "OP_SUBSTR": 0x7F,
    "OP_LEFT": 0x80,
    "OP_RIGHT": 0x81,
    "OP_SIZE": 0x82,
    # bitwise logic
    "OP_INVERT": 0x83,
    "OP_AND": 0x84,
    "OP_OR": 0x85,
    "OP_XOR": 0x86,
    "OP_EQUAL": 0x87,
    "OP_EQUALVERIFY": 0x88,
    "OP_RESERVED1": 0x89,
    "OP_RESERVED2": 0x8A,
    # arithmetic
    "OP_1ADD": 0x8B,
    "OP_1SUB": 0x8C,
    "OP_2MUL": 0x8D,
    "OP_2DIV": 0x8E,
    "OP_NEGATE": 0x8F,
    "OP_ABS": 0x90,
    "OP_NOT": 0x91,
    "OP_0NOTEQUAL": 0x92,
    "OP_ADD": 0x93,
    "OP_SUB": 0x94,
    "OP_MUL": 0x95,
    "OP_DIV": 0x96,
    "OP_MOD": 0x97,
    "OP_LSHIFT": 0x98,
    "OP_RSHIFT": 0x99,
    "OP_BOOLAND": 0x9A,
    "OP_BOOLOR": 0x9B,
    "OP_NUMEQUAL": 0x9C,
    "OP_NUMEQUALVERIFY": 0x9D,
    "OP_NUMNOTEQUAL": 0x9E,
    "OP_LESSTHAN": 0x9F,
    "OP_GREATERTHAN": 0xA0,
    "OP_LESSTHANOREQUAL": 0xA1,
    "OP_GREATERTHANOREQUAL": 0xA2,
    "OP_MIN": 0xA3,
    "OP_MAX": 0xA4,
    "OP_WITHIN": 0xA5,
    # crypto
    "OP_RIPEMD160": 0xA6,
    "OP_SHA1": 0xA7,
    "OP_SHA256": 0xA8,
    "OP_HASH160": 0xA9,
    "OP_HASH256": 0xAA,
    "OP_CODESEPARATOR": 0xAB,
    "OP_CHECKSIG": 0xAC,
    "OP_CHECKSIGVERIFY": 0xAD,
    "OP_CHECKMULTISIG": 0xAE,
    "OP_CHECKMULTISIGVERIFY": 0xAF,
    # expansion
    "OP_NOP1": 0xB0,
    "OP_NOP2": 0xB1,
    "OP_CHECKLOCKTIMEVERIFY": 0xB1,
    "OP_NOP3": 0xB2,
    "OP_CHECKSEQUENCEVERIFY": 0xB2,
    "OP_NOP4": 0xB3,
    "OP_NOP5": 0xB4,
    "OP_NOP6": 0xB5,
    "OP_NOP7": 0xB6,
    "OP_NOP8": 0xB7,
    "OP_NOP9": 0xB8,
    "OP_NOP10": 0xB9,
    "OP_CHECKSIGADD": 0xBA,
    "OP_INVALIDOPCODE": 0xFF,
}

# reverse lookup; aliases above resolve to the name defined last for a code,
# so the preferred names are re-applied explicitly
CODE_OPS = {code: name for name, code in OP_CODES.items()}
CODE_OPS.update(
    {
        0x00: "OP_0",
        0x51: "OP_1",
        0xB1: "OP_CHECKLOCKTIMEVERIFY",
        0xB2: "OP_CHECKSEQUENCEVERIFY",
    }
)

OP_PUSHDATA1 = OP_CODES["OP_PUSHDATA1"]
OP_PUSHDATA2 = OP_CODES["OP_PUSHDATA2"]
OP_PUSHDATA4 = OP_CODES["OP_PUSHDATA4"]
OP_1 = OP_CODES["OP_1"]
OP_16 = OP_CODES["OP_16"]


def _small_int(opcode: int) -> Optional[int]:
    """Returns n for OP_0 and OP_1 .. OP_16"""
    if opcode == 0x00:
        return 0
    if OP_1 <= opcode <= OP_16:
        return opcode - OP_1 + 1
    return None


class Script:
    """Represents any script in Bitcoin

    A Script contains a list of OP_CODES and data (hex strings or bytes) and
    knows how to serialize into bytes. Scripts imported from raw bytes keep
    those bytes verbatim, so that non-standard or malformed scripts round-trip
    unchanged.

    Attributes
    ----------
    script : list
        the list with all the script OP_CODES and data

    Methods
    -------
    to_bytes()
        returns a serialized byte version of the script
    to_hex()
        returns a serialized version of the script in hex
    from_raw()
        instantiates a Script from raw bytes or hex (staticmethod)
    get_script()
        returns the list of tokens (op code names and hex data)
    to_asm()
        returns the disassembly; raw hex when the script is malformed
    is_p2pkh(), is_p2sh(), is_p2wpkh(), is_p2wsh(), is_p2tr()
        checks the script against the standard locking templates
    get_script_type()
        determines the address type tag of the script
    get_multisig()
        returns (m, pubkeys) for bare OP_CHECKMULTISIG scripts
    get_checksig_pubkey()
        returns the key of a `<pubkey> OP_CHECKSIG` script

    Raises
    ------
    ValueError
        If data is too large to push or integer is negative
    """

    def __init__(self, script: List[Any]):
        """See Script description"""
        self.script: List[Any] = script
        self._raw: Optional[bytes] = None

    @classmethod
    def copy(cls, script: "Script") -> "Script":
        """Copy of Script"""
        return Script.from_raw(script.to_bytes())

    def _op_push_data(self, data: Union[str, bytes]) -> bytes:
        """Converts data to appropriate OP_PUSHDATA OP code including length"""
        data_bytes = h_to_b(data) if isinstance(data, str) else data

        if len(data_bytes) < OP_PUSHDATA1:
            return bytes([len(data_bytes)]) + data_bytes
        elif len(data_bytes) <= 0xFF:
            return bytes([OP_PUSHDATA1, len(data_bytes)]) + data_bytes
        elif len(data_bytes) <= 0xFFFF:
            return bytes([OP_PUSHDATA2]) + struct.pack("<H", len(data_bytes)) + data_bytes
        elif len(data_bytes) <= 0xFFFFFFFF:
            return bytes([OP_PUSHDATA4]) + struct.pack("<I", len(data_bytes)) + data_bytes
        else:
            raise ValueError("Data too large. Cannot push into script")

    def _push_integer(self, integer: int) -> bytes:
        """Converts integer to bytes; as signed little-endian integer"""
        if integer < 0:
            raise ValueError("Integer is currently required to be positive.")

        number_of_bytes = (integer.bit_length() + 7) // 8
        integer_bytes = integer.to_bytes(number_of_bytes, byteorder="little")

        if integer & (1 << number_of_bytes * 8 - 1):
            integer_bytes += b"\x00"

        return self._op_push_data(integer_bytes)

    def to_bytes(self) -> bytes:
        """Converts the script to bytes"""
        if self._raw is not None:
            return self._raw

        script_bytes = b""
        for token in self.script:
            if isinstance(token, str) and token in OP_CODES:
                script_bytes += bytes([OP_CODES[token]])
            elif isinstance(token, int) and 0 <= token <= 16:
                script_bytes += bytes([OP_CODES["OP_" + str(token)]])
            elif isinstance(token, int):
                script_bytes += self._push_integer(token)
            else:
                script_bytes += self._op_push_data(token)
        return script_bytes

    def to_hex(self) -> str:
        """Converts the script to hexadecimal"""
        return b_to_h(self.to_bytes())

    @staticmethod
    def from_raw(scriptraw: Union[str, bytes]) -> "Script":
        """
        Imports a Script from raw hexadecimal data or bytes. Never fails on
        malformed content; the bytes are kept as they are.
        """
        if isinstance(scriptraw, str):
            raw = h_to_b(scriptraw)
        elif isinstance(scriptraw, (bytes, bytearray)):
            raw = bytes(scriptraw)
        else:
            raise TypeError("Input must be a hexadecimal string or bytes")

        script = Script([])
        script._raw = raw
        try:
            script.script = [
                CODE_OPS.get(op, _unknown_op(op)) if data is None else b_to_h(data)
                for op, data in parse_script(raw)
            ]
        except ValueError:
            script.script = []
        return script

    def get_script(self) -> List[Any]:
        """Returns script as array of strings"""
        return self.script

    def get_ops(self) -> List[Tuple[int, Optional[bytes]]]:
        """Returns (opcode, pushed data or None) pairs; raises ValueError if malformed"""
        return parse_script(self.to_bytes())

    def to_asm(self) -> str:
        """Disassembles the script; falls back to hex if it cannot be parsed"""
        return disassemble(self.to_bytes())

    def is_p2pkh(self) -> bool:
        """
        P2PKH format: OP_DUP OP_HASH160 <20-byte-key-hash> OP_EQUALVERIFY OP_CHECKSIG
        """
        b = self.to_bytes()
        return (
            len(b) == 25
            and b[0] == OP_CODES["OP_DUP"]
            and b[1] == OP_CODES["OP_HASH160"]
            and b[2] == 0x14
            and b[23] == OP_CODES["OP_EQUALVERIFY"]
            and b[24] == OP_CODES["OP_CHECKSIG"]
        )

    def is_p2sh(self) -> bool:
        """
        P2SH format: OP_HASH160 <20-byte-script-hash> OP_EQUAL
        """
        b = self.to_bytes()
        return (
            len(b) == 23
            and b[0] == OP_CODES["OP_HASH160"]
            and b[1] == 0x14
            and b[22] == OP_CODES["OP_EQUAL"]
        )

    def is_p2wpkh(self) -> bool:
        """
        P2WPKH format: OP_0 <20-byte-key-hash>
        """
        b = self.to_bytes()
        return len(b) == 22 and b[0] == 0x00 and b[1] == 0x14

    def is_p2wsh(self) -> bool:
        """
        P2WSH format: OP_0 <32-byte-script-hash>
        """
        b = self.to_bytes()
        return len(b) == 34 and b[0] == 0x00 and b[1] == 0x20

    def is_p2tr(self) -> bool:
        """
        P2TR format: OP_1 <32-byte-key>
        """
        b = self.to_bytes()
        return len(b) == 34 and b[0] == OP_1 and b[1] == 0x20

    def get_script_type(self) -> str:
        """
        Determine the address type tag of the script.

        Returns:
            str: 'P2PKH', 'P2SH', 'P2WPKH', 'P2WSH', 'P2TR' or 'Unknown'
        """
        if self.is_p2pkh():
            return P2PKH_ADDRESS
        elif self.is_p2sh():
            return P2SH_ADDRESS
        elif self.is_p2wpkh():
            return P2WPKH_ADDRESS
        elif self.is_p2wsh():
            return P2WSH_ADDRESS
        elif self.is_p2tr():
            return P2TR_ADDRESS
        else:
            return UNKNOWN_ADDRESS

    def get_hash(self) -> bytes:
        """Returns the hash or witness program committed to by a standard script"""
        b = self.to_bytes()
        script_type = self.get_script_type()
        if script_type == P2PKH_ADDRESS:
            return b[3:23]
        elif script_type == P2SH_ADDRESS:
            return b[2:22]
        elif script_type in (P2WPKH_ADDRESS, P2WSH_ADDRESS, P2TR_ADDRESS):
            return b[2:]
        raise ValueError("Script is not a standard locking script")

    def get_multisig(self) -> Optional[Tuple[int, List[bytes]]]:
        """
        Multisig format: OP_M <pubkey1> ... <pubkeyN> OP_N OP_CHECKMULTISIG

        Returns:
            tuple: (M, [pubkeys]) if multisig, None otherwise
        """
        try:
            ops = self.get_ops()
        except ValueError:
            return None

        if len(ops) < 4 or ops[-1][0] != OP_CODES["OP_CHECKMULTISIG"]:
            return None
        m = _small_int(ops[0][0]) if ops[0][1] is None else None
        n = _small_int(ops[-2][0]) if ops[-2][1] is None else None
        if not m or not n or m > n or len(ops) != n + 3:
            return None

        pubkeys = [data for _, data in ops[1:-2]]
        if any(data is None or len(data) not in (33, 65) for data in pubkeys):
            return None
        return m, pubkeys  # type: ignore

    def get_checksig_pubkey(self) -> Optional[bytes]:
        """Returns the key of a `<pubkey> OP_CHECKSIG` script, else None"""
        try:
            ops = self.get_ops()
        except ValueError:
            return None
        if (
            len(ops) == 2
            and ops[0][1] is not None
            and len(ops[0][1]) in (32, 33, 65)
            and ops[1][0] == OP_CODES["OP_CHECKSIG"]
        ):
            return ops[0][1]
        return None

    def __len__(self) -> int:
        return len(self.to_bytes())

    def __str__(self) -> str:
        return str(self.script)

    def __repr__(self) -> str:
        return self.__str__()

    def __eq__(self, _other: object) -> bool:
        if not isinstance(_other, Script):
            return False
        return self.to_bytes() == _other.to_bytes()

    def __hash__(self) -> int:
        return hash(self.to_bytes())


def _unknown_op(opcode: int) -> str:
    return f"OP_UNKNOWN_{opcode:02x}"


def parse_script(raw: bytes) -> List[Tuple[int, Optional[bytes]]]:
    """Splits raw script bytes into (opcode, pushed data or None) pairs

    Raises
    ------
    ValueError
        if a push runs past the end of the script
    """
    ops: List[Tuple[int, Optional[bytes]]] = []
    index = 0
    while index < len(raw):
        opcode = raw[index]
        index += 1

        if 0x01 <= opcode < OP_PUSHDATA1:
            size = opcode
        elif opcode in (OP_PUSHDATA1, OP_PUSHDATA2, OP_PUSHDATA4):
            width = {OP_PUSHDATA1: 1, OP_PUSHDATA2: 2, OP_PUSHDATA4: 4}[opcode]
            if index + width > len(raw):
                raise ValueError("Truncated push length in script")
            size = int.from_bytes(raw[index : index + width], "little")
            index += width
        else:
            ops.append((opcode, None))
            continue

        if index + size > len(raw):
            raise ValueError("Push past the end of script")
        ops.append((opcode, raw[index : index + size]))
        index += size
    return ops


def classify(script_bytes: bytes) -> str:
    """Returns the address type tag of a locking script"""
    return Script.from_raw(script_bytes).get_script_type()


def disassemble(script_bytes: bytes) -> str:
    """Renders a script as space separated op code names and hex data.

    Never raises: a malformed script is returned as its hex representation.
    """
    try:
        ops = parse_script(script_bytes)
    except ValueError:
        return b_to_h(script_bytes)

    tokens = []
    for opcode, data in ops:
        if data is not None:
            tokens.append(b_to_h(data))
        else:
            tokens.append(CODE_OPS.get(opcode, _unknown_op(opcode)))
    return " ".join(tokens)
