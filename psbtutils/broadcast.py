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
from typing import Optional

import requests

from psbtutils.constants import NETWORK_MEMPOOL_API_URLS
from psbtutils.errors import BroadcastError
from psbtutils.proxy import NodeProxy, RPCError

logger = logging.getLogger(__name__)


def broadcast_transaction(
    tx_hex: str,
    network: str = "mainnet",
    proxy: Optional[NodeProxy] = None,
    timeout: int = 30,
) -> str:
    """
    Broadcast a raw transaction hex, via mempool.space or the given node.

    Returns the txid; raises BroadcastError with the service's error text
    when the transaction is rejected.
    """
    if proxy is not None:
        try:
            return proxy.send_raw_transaction(tx_hex)
        except RPCError as e:
            logger.warning("Node rejected transaction: %s", e)
            raise BroadcastError(e.message) from e

    try:
        url = NETWORK_MEMPOOL_API_URLS[network] + "/tx"
    except KeyError:
        raise ValueError(f"No broadcast service for network: {network}") from None

    try:
        resp = requests.post(url, data=tx_hex, timeout=timeout)
    except requests.RequestException as e:
        logger.warning("Broadcast to %s failed: %s", url, e)
        raise BroadcastError(str(e)) from e

    if not resp.ok:
        error_msg = resp.text or f"HTTP {resp.status_code}"
        logger.warning("Broadcast to %s rejected: %s", url, error_msg)
        raise BroadcastError(error_msg, resp.status_code)

    # mempool.space returns the txid as plain text.
    txid = resp.text.strip()
    logger.debug("Broadcast transaction %s on %s", txid, network)
    return txid
