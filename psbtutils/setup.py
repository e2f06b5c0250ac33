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
from typing import Iterable, Optional, Union

from psbtutils.constants import DEFAULT_ADDRESS_NETWORKS, NETWORK_SEGWIT_PREFIXES

NETWORKS = tuple(DEFAULT_ADDRESS_NETWORKS)
networks = set(NETWORK_SEGWIT_PREFIXES)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup(
    networks_order: Iterable[str] = DEFAULT_ADDRESS_NETWORKS,
    log_level: Optional[Union[int, str]] = None,
) -> tuple:
    """Setup psbt utils with the address networks to try and, optionally, logging.

    Args:
        networks_order: networks tried, in order, when rendering an address
                        (mainnet, testnet, signet, regtest)
        log_level: if given, configures the root logger with this level
    """
    global NETWORKS
    order = tuple(networks_order)
    if not order:
        raise ValueError("At least one network is required")
    for network in order:
        if network not in networks:
            raise ValueError(f"Unknown network: {network}")
    NETWORKS = order

    if log_level is not None:
        logging.basicConfig(level=log_level, format=LOG_FORMAT)

    return NETWORKS


def get_networks() -> tuple:
    global NETWORKS
    return NETWORKS


def get_primary_network() -> str:
    """Returns the first (preferred) network"""
    global NETWORKS
    return NETWORKS[0]
