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

from __future__ import annotations

import hashlib
import re
import struct
from io import BytesIO
from typing import Tuple

from psbtutils.constants import LEAF_VERSION_TAPSCRIPT


HEX_RE = re.compile(r"^[0-9a-fA-F]+$")


def prepend_compact_size(data: bytes) -> bytes:
    """
    Counts bytes and returns them with their varint (or compact size) prepended.
    """
    varint_bytes = encode_varint(len(data))
    return varint_bytes + data


def encode_varint(i: int) -> bytes:
    """
    Encode a potentially very large integer into varint bytes. The length should be
    specified in little-endian.

    https://bitcoin.org/en/developer-reference#compactsize-unsigned-integers
    """
    if i < 0:
        raise ValueError("Integer cannot be negative: %d" % i)
    if i < 253:
        return bytes([i])
    elif i < 0x10000:
        return b"\xfd" + i.to_bytes(2, "little")
    elif i < 0x100000000:
        return b"\xfe" + i.to_bytes(4, "little")
    elif i < 0x10000000000000000:
        return b"\xff" + i.to_bytes(8, "little")
    else:
        raise ValueError("Integer is too large: %d" % i)


def parse_compact_size(data: bytes) -> Tuple[int, int]:
    """
    Parse variable integer. Returns (count, size)

    Raises
    ------
    ValueError
        if data ends before the integer does
    """
    if not data:
        raise ValueError("Unexpected end of data reading compact size")
    first_byte = data[0]
    if first_byte < 0xFD:
        return (first_byte, 1)

    if first_byte == 0xFD:
        fmt, size = "<H", 2
    elif first_byte == 0xFE:
        fmt, size = "<I", 4
    else:
        fmt, size = "<Q", 8
    if len(data) < 1 + size:
        raise ValueError("Unexpected end of data reading compact size")
    return (struct.unpack(fmt, data[1 : 1 + size])[0], 1 + size)


def read_exact(stream: BytesIO, size: int, what: str = "data") -> bytes:
    """Reads exactly size bytes from stream or raises ValueError"""
    data = stream.read(size)
    if len(data) != size:
        raise ValueError(f"Unexpected end of stream reading {what}")
    return data


def read_compact_size(stream: BytesIO, what: str = "compact size") -> int:
    """Reads a compact size unsigned integer from stream"""
    first = read_exact(stream, 1, what)
    if first[0] < 0xFD:
        return first[0]
    size = {0xFD: 2, 0xFE: 4, 0xFF: 8}[first[0]]
    return int.from_bytes(read_exact(stream, size, what), "little")


def read_var_bytes(stream: BytesIO, what: str = "data") -> bytes:
    """Reads a compact size length followed by that many bytes"""
    size = read_compact_size(stream, what)
    return read_exact(stream, size, what)


def is_hex(text: str) -> bool:
    """Returns True when every character of text is a hexadecimal digit"""
    return bool(HEX_RE.match(text))


def hash256(data: bytes) -> bytes:
    """Double SHA-256"""
    return hashlib.sha256(hashlib.sha256(data).digest()).digest()


def ripemd160(data: bytes) -> bytes:
    """Computes RIPEMD-160 hash of the given bytes."""
    ripemd = hashlib.new("ripemd160")
    ripemd.update(data)
    return ripemd.digest()


def hash160(data: bytes) -> bytes:
    """RIPEMD-160 of SHA-256, as used for public key and script hashes"""
    return ripemd160(hashlib.sha256(data).digest())


def tagged_hash(data: bytes, tag: str) -> bytes:
    """
    Tagged hashes ensure that hashes used in one context can not be used in another.
    It is used extensively in Taproot

    A tagged hash is: SHA256( SHA256("TapTweak") ||
                              SHA256("TapTweak") ||
                              data
                            )
    """

    tag_digest = hashlib.sha256(tag.encode()).digest()
    return hashlib.sha256(tag_digest + tag_digest + data).digest()


def tapleaf_tagged_hash(script: bytes, leaf_version: int = LEAF_VERSION_TAPSCRIPT) -> bytes:
    """Calculates the tagged hash for a tapleaf"""
    script_part = bytes([leaf_version]) + prepend_compact_size(script)
    return tagged_hash(script_part, "TapLeaf")


#
# Basic conversions between bytes (b), hexadecimal (h) and integer (i)
#
def b_to_h(b: bytes) -> str:
    """Converts bytes to hexadecimal string"""
    return b.hex()


def h_to_b(h: str) -> bytes:
    """Converts hexadecimal string to bytes"""
    return bytes.fromhex(h)
