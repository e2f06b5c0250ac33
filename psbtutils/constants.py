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

NETWORK_DEFAULT_PORTS = {
    "mainnet": 8332,
    "signet": 38332,
    "testnet": 18332,
    "regtest": 18443,
}

NETWORK_P2PKH_PREFIXES = {
    "mainnet": b"\x00",
    "signet": b"\x6f",
    "testnet": b"\x6f",
    "regtest": b"\x6f",
}

NETWORK_P2SH_PREFIXES = {
    "mainnet": b"\x05",
    "signet": b"\xc4",
    "testnet": b"\xc4",
    "regtest": b"\xc4",
}

NETWORK_SEGWIT_PREFIXES = {
    "mainnet": "bc",
    "signet": "tb",
    "testnet": "tb",
    "regtest": "bcrt",
}

# mempool.space REST endpoints used for broadcasting
NETWORK_MEMPOOL_API_URLS = {
    "mainnet": "https://mempool.space/api",
    "testnet": "https://mempool.space/testnet/api",
    "signet": "https://mempool.space/signet/api",
}

# order in which networks are tried when rendering an address
DEFAULT_ADDRESS_NETWORKS = ("mainnet", "testnet", "regtest")


# Address type tags as reported by the script classifier
P2PKH_ADDRESS = "P2PKH"
P2SH_ADDRESS = "P2SH"
P2WPKH_ADDRESS = "P2WPKH"
P2WSH_ADDRESS = "P2WSH"
P2TR_ADDRESS = "P2TR"
UNKNOWN_ADDRESS = "Unknown"


# Constants related to transaction signature types
SIGHASH_ALL = 0x01
SIGHASH_NONE = 0x02
SIGHASH_SINGLE = 0x03
SIGHASH_ANYONECANPAY = 0x80
SIGHASH_BASE_MASK = 0x1F

SIGHASH_NAMES = {
    SIGHASH_ALL: "SIGHASH_ALL",
    SIGHASH_NONE: "SIGHASH_NONE",
    SIGHASH_SINGLE: "SIGHASH_SINGLE",
}
SIGHASH_DEFAULT_LABEL = "SIGHASH_DEFAULT"


# TX version 2 was introduced in BIP-68 with relative locktime
DEFAULT_TX_VERSION = 2
DEFAULT_TX_LOCKTIME = 0
DEFAULT_TX_SEQUENCE = 0xFFFFFFFF

SEGWIT_MARKER_FLAG = b"\x00\x01"


# Monetary constants
SATOSHIS_PER_BITCOIN = 100000000
MAX_MONEY = 21000000 * SATOSHIS_PER_BITCOIN


# Constants related to taproot
LEAF_VERSION_TAPSCRIPT = 0xC0
TAPROOT_KEY_SIG_SIZES = (64, 65)


# PSBT framing (BIP-174)
PSBT_MAGIC = b"psbt"
PSBT_SEPARATOR = b"\xff"
PSBT_MAP_TERMINATOR = b"\x00"

PSBT_GLOBAL_UNSIGNED_TX = 0x00

PSBT_IN_NON_WITNESS_UTXO = 0x00
PSBT_IN_WITNESS_UTXO = 0x01
PSBT_IN_PARTIAL_SIG = 0x02
PSBT_IN_SIGHASH_TYPE = 0x03
PSBT_IN_REDEEM_SCRIPT = 0x04
PSBT_IN_WITNESS_SCRIPT = 0x05
PSBT_IN_FINAL_SCRIPTSIG = 0x07
PSBT_IN_FINAL_SCRIPTWITNESS = 0x08
# BIP-371 taproot fields
PSBT_IN_TAP_KEY_SIG = 0x13
PSBT_IN_TAP_SCRIPT_SIG = 0x14
PSBT_IN_TAP_LEAF_SCRIPT = 0x15

# input fields a finalizer removes along with the signatures
PSBT_IN_BIP32_DERIVATION = 0x06
PSBT_IN_RIPEMD160 = 0x0A
PSBT_IN_SHA256 = 0x0B
PSBT_IN_HASH160 = 0x0C
PSBT_IN_HASH256 = 0x0D
PSBT_IN_TAP_BIP32_DERIVATION = 0x16
PSBT_IN_TAP_INTERNAL_KEY = 0x17
PSBT_IN_TAP_MERKLE_ROOT = 0x18
PSBT_IN_FINALIZER_CLEARED_TYPES = (
    PSBT_IN_BIP32_DERIVATION,
    PSBT_IN_RIPEMD160,
    PSBT_IN_SHA256,
    PSBT_IN_HASH160,
    PSBT_IN_HASH256,
    PSBT_IN_TAP_BIP32_DERIVATION,
    PSBT_IN_TAP_INTERNAL_KEY,
    PSBT_IN_TAP_MERKLE_ROOT,
)
