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
from typing import Optional, Any, Dict, List, cast

from bitcoinrpc.authproxy import AuthServiceProxy, JSONRPCException  # type: ignore

from psbtutils.setup import get_primary_network
from psbtutils.constants import NETWORK_DEFAULT_PORTS


JSONDict = Dict[str, Any]


class RPCError(Exception):
    """Exception raised for errors when interfacing with the Bitcoin node.

    Attributes:
        message -- explanation of the error
        code -- error code returned by the node
    """

    def __init__(self, message: str, code: Optional[int] = None):
        self.message = message
        self.code = code
        super().__init__(f"RPC Error ({code}): {message}" if code else message)


class NodeProxy:
    """Bitcoin node proxy used to hand finished transactions to a node.

    Attributes
    ----------
    proxy : object
        an instance of bitcoinrpc.authproxy.AuthServiceProxy

    Methods
    -------
    call(method, *params)
        Calls any RPC method with provided parameters
    send_raw_transaction(hex_string, max_fee_rate=None)
        Submits a raw transaction, returns its txid
    test_mempool_accept(hex_strings)
        Checks whether raw transactions would be accepted by the mempool
    decode_psbt(psbt_base64)
        The node's own view of a PSBT
    """

    def __init__(
        self,
        rpcuser: str,
        rpcpassword: str,
        host: Optional[str] = None,
        port: Optional[int] = None,
        timeout: int = 30,
        use_https: bool = False,
        network: Optional[str] = None,
    ) -> None:
        """Connects to a Bitcoin node using provided credentials.

        Parameters
        ----------
        rpcuser : str
            RPC username as defined in bitcoin.conf
        rpcpassword : str
            RPC password as defined in bitcoin.conf
        host : str, optional
            Host where the Bitcoin node resides; defaults to 127.0.0.1
        port : int, optional
            Port to connect to; defaults to the network's RPC port
        timeout : int, optional
            Timeout for RPC calls in seconds; defaults to 30
        use_https : bool, optional
            Whether to use HTTPS for the connection; defaults to False
        network : str, optional
            Network of the node; defaults to the preferred network of setup()

        Raises
        ------
        ValueError
            If rpcuser and/or rpcpassword are not specified
        """
        if not rpcuser or not rpcpassword:
            raise ValueError("rpcuser or rpcpassword is missing")

        if not host:
            host = "127.0.0.1"
        if not port:
            port = NETWORK_DEFAULT_PORTS[network or get_primary_network()]

        protocol = "https" if use_https else "http"
        service_url = f"{protocol}://{rpcuser}:{rpcpassword}@{host}:{port}"

        self.proxy = AuthServiceProxy(service_url, timeout=timeout)

    def __call__(self, method: str, *params: Any) -> Any:
        """Directly call any Bitcoin Core RPC method."""
        return self.call(method, *params)

    def call(self, method: str, *params: Any) -> Any:
        """Call any Bitcoin Core RPC method.

        Raises
        ------
        RPCError
            If the node rejects the call or cannot be reached
        """
        try:
            rpc_method = getattr(self.proxy, method)
            return rpc_method(*params)
        except JSONRPCException as e:
            error = getattr(e, "error", None) or {}
            raise RPCError(error.get("message", str(e)), error.get("code")) from e
        except OSError as e:
            raise RPCError(f"Cannot reach node: {e}") from e

    def send_raw_transaction(self, hex_string: str, max_fee_rate: Optional[float] = None) -> str:
        """Submit a raw transaction to the network.

        Parameters
        ----------
        hex_string : str
            The hex-encoded raw transaction
        max_fee_rate : float, optional
            Reject transactions with a fee rate higher than this (in BTC/kvB)

        Returns
        -------
        str
            The transaction hash
        """
        if max_fee_rate is not None:
            result = self.call("sendrawtransaction", hex_string, max_fee_rate)
        else:
            result = self.call("sendrawtransaction", hex_string)
        return cast(str, result)

    def test_mempool_accept(self, hex_strings: List[str]) -> List[JSONDict]:
        """Returns the mempool acceptance result of each raw transaction"""
        return cast(List[JSONDict], self.call("testmempoolaccept", hex_strings))

    def decode_psbt(self, psbt_base64: str) -> JSONDict:
        """Returns the node's decoding of a base64 PSBT"""
        return cast(JSONDict, self.call("decodepsbt", psbt_base64))

    def get_proxy(self) -> Any:
        """Returns the underlying AuthServiceProxy"""
        return self.proxy
