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
from abc import ABC
from typing import Iterable, Optional

from base58check import b58encode  # type: ignore
from bip_utils import SegwitBech32Encoder  # type: ignore

from psbtutils.constants import (
    NETWORK_P2PKH_PREFIXES,
    NETWORK_P2SH_PREFIXES,
    NETWORK_SEGWIT_PREFIXES,
    P2PKH_ADDRESS,
    P2SH_ADDRESS,
    P2WPKH_ADDRESS,
    P2WSH_ADDRESS,
    P2TR_ADDRESS,
)
from psbtutils.script import Script
from psbtutils.setup import get_networks
from psbtutils.utils import hash256

logger = logging.getLogger(__name__)


class Address(ABC):
    """Represents a legacy (base58check) Bitcoin address

    Attributes
    ----------
    hash160 : bytes
        the 20-byte hash of a public key (P2PKH) or of a redeem script (P2SH)

    Methods
    -------
    from_script(script)
        instantiates an object from the locking script that pays to it
    to_string(network)
        returns the address's string encoding for the network
    get_type()
        returns the address type tag

    Raises
    ------
    ValueError
        If the hash is not 20 bytes long or the script does not match.
    """

    prefixes: dict = {}
    address_type = ""

    def __init__(self, hash160: bytes) -> None:
        if len(hash160) != 20:
            raise ValueError("Invalid value for parameter hash160.")
        self.hash160 = hash160

    @classmethod
    def from_script(cls, script: Script) -> "Address":
        """Creates an address object from the scriptPubKey paying to it"""
        if script.get_script_type() != cls.address_type:
            raise ValueError(f"Script is not a {cls.address_type} scriptPubKey")
        return cls(script.get_hash())

    def get_type(self) -> str:
        """Returns the type of address"""
        return self.address_type

    def to_string(self, network: str = "mainnet") -> str:
        """Returns as address string

        |  Pseudocode:
        |      network_prefix = (1 byte version number)
        |      data = network_prefix + hash160_bytes
        |      data_hash = SHA-256( SHA-256( data ) )
        |      checksum = (first 4 bytes of data_hash)
        |      address_bytes = Base58CheckEncode( data + checksum )
        """
        data = self.prefixes[network] + self.hash160
        checksum = hash256(data)[0:4]
        address_bytes = b58encode(data + checksum)

        return address_bytes.decode("utf-8")


class P2pkhAddress(Address):
    """Encapsulates a P2PKH address.

    Check Address class for details
    """

    prefixes = NETWORK_P2PKH_PREFIXES
    address_type = P2PKH_ADDRESS


class P2shAddress(Address):
    """Encapsulates a P2SH address.

    Check Address class for details
    """

    prefixes = NETWORK_P2SH_PREFIXES
    address_type = P2SH_ADDRESS


class SegwitAddress(ABC):
    """Represents a Bitcoin segwit address

    Encoded with bip_utils, which uses bech32 for witness version 0 and
    bech32m (BIP-350) for later versions.

    Attributes
    ----------
    witness_program : bytes
        for segwit v0 the hash of the public key (P2WPKH) or of the witness
        script (P2WSH); for segwit v1 (taproot) the x-only output key
    segwit_num_version : int
        the witness version
    """

    address_type = ""
    segwit_num_version = 0
    program_size = 0

    def __init__(self, witness_program: bytes) -> None:
        if len(witness_program) != self.program_size:
            raise ValueError("Invalid value for parameter witness_program.")
        self.witness_program = witness_program

    @classmethod
    def from_script(cls, script: Script) -> "SegwitAddress":
        """Creates an address object from the scriptPubKey paying to it"""
        if script.get_script_type() != cls.address_type:
            raise ValueError(f"Script is not a {cls.address_type} scriptPubKey")
        return cls(script.get_hash())

    def get_type(self) -> str:
        """Returns the type of address"""
        return self.address_type

    def to_string(self, network: str = "mainnet") -> str:
        """Returns as address string (Bech32 or Bech32m)"""
        return SegwitBech32Encoder.Encode(
            NETWORK_SEGWIT_PREFIXES[network],
            self.segwit_num_version,
            self.witness_program,
        )


class P2wpkhAddress(SegwitAddress):
    """Encapsulates a P2WPKH address."""

    address_type = P2WPKH_ADDRESS
    segwit_num_version = 0
    program_size = 20


class P2wshAddress(SegwitAddress):
    """Encapsulates a P2WSH address."""

    address_type = P2WSH_ADDRESS
    segwit_num_version = 0
    program_size = 32


class P2trAddress(SegwitAddress):
    """Encapsulates a P2TR (taproot) address."""

    address_type = P2TR_ADDRESS
    segwit_num_version = 1
    program_size = 32


ADDRESS_CLASSES = {
    P2PKH_ADDRESS: P2pkhAddress,
    P2SH_ADDRESS: P2shAddress,
    P2WPKH_ADDRESS: P2wpkhAddress,
    P2WSH_ADDRESS: P2wshAddress,
    P2TR_ADDRESS: P2trAddress,
}


def address_of(
    script_bytes: bytes, networks: Optional[Iterable[str]] = None
) -> Optional[str]:
    """Renders the address a locking script pays to.

    Networks are tried in preference order (see setup.get_networks()) and the
    first one that produces an address wins. Non-standard scripts have no
    address and yield None.
    """
    script = Script.from_raw(script_bytes)
    address_class = ADDRESS_CLASSES.get(script.get_script_type())
    if address_class is None:
        return None

    address = address_class.from_script(script)
    for network in networks if networks is not None else get_networks():
        try:
            return address.to_string(network)
        except (KeyError, ValueError) as e:
            logger.debug("No %s address on %s: %s", address.get_type(), network, e)
    return None
