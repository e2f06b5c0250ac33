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

import unittest
from unittest.mock import patch, MagicMock

import requests

from psbtutils.broadcast import broadcast_transaction
from psbtutils.errors import BroadcastError
from psbtutils.proxy import RPCError

TX_HEX = "0200000001" + "01" * 32 + "00000000" + "00" + "ffffffff" + "00" + "00000000"
TXID = "f4184fc596403b9d638783cf57adfe4c75c605f6356fbc91338530e9831e9e16"


def response(status_code, text):
    resp = MagicMock()
    resp.status_code = status_code
    resp.ok = status_code < 400
    resp.text = text
    return resp


class TestMempoolBroadcast(unittest.TestCase):
    def setUp(self):
        self.post_patcher = patch('psbtutils.broadcast.requests.post')
        self.mock_post = self.post_patcher.start()

    def tearDown(self):
        self.post_patcher.stop()

    def test_success(self):
        self.mock_post.return_value = response(200, TXID + "\n")
        self.assertEqual(broadcast_transaction(TX_HEX), TXID)
        self.mock_post.assert_called_once_with(
            "https://mempool.space/api/tx", data=TX_HEX, timeout=30
        )

    def test_networks(self):
        self.mock_post.return_value = response(200, TXID)
        broadcast_transaction(TX_HEX, network="testnet", timeout=5)
        self.mock_post.assert_called_with(
            "https://mempool.space/testnet/api/tx", data=TX_HEX, timeout=5
        )
        broadcast_transaction(TX_HEX, network="signet")
        self.mock_post.assert_called_with(
            "https://mempool.space/signet/api/tx", data=TX_HEX, timeout=30
        )

    def test_unsupported_network(self):
        with self.assertRaises(ValueError):
            broadcast_transaction(TX_HEX, network="regtest")
        self.mock_post.assert_not_called()

    def test_rejected(self):
        error = 'sendrawtransaction RPC error: {"code":-25,"message":"bad-txns-inputs-missingorspent"}'
        self.mock_post.return_value = response(400, error)
        with self.assertLogs("psbtutils.broadcast", level="WARNING"):
            with self.assertRaises(BroadcastError) as cm:
                broadcast_transaction(TX_HEX)
        self.assertEqual(cm.exception.status_code, 400)
        self.assertIn("bad-txns-inputs-missingorspent", str(cm.exception))

    def test_rejected_without_text(self):
        self.mock_post.return_value = response(503, "")
        with self.assertRaises(BroadcastError) as cm:
            broadcast_transaction(TX_HEX)
        self.assertEqual(str(cm.exception), "Broadcast failed: HTTP 503")

    def test_connection_error(self):
        self.mock_post.side_effect = requests.ConnectionError("connection refused")
        with self.assertRaises(BroadcastError) as cm:
            broadcast_transaction(TX_HEX)
        self.assertIn("connection refused", str(cm.exception))
        self.assertIsNone(cm.exception.status_code)


class TestNodeBroadcast(unittest.TestCase):
    def test_uses_node(self):
        proxy = MagicMock()
        proxy.send_raw_transaction.return_value = TXID
        with patch('psbtutils.broadcast.requests.post') as mock_post:
            # any network works when a node is given
            self.assertEqual(broadcast_transaction(TX_HEX, network="regtest", proxy=proxy), TXID)
            mock_post.assert_not_called()
        proxy.send_raw_transaction.assert_called_once_with(TX_HEX)

    def test_node_rejects(self):
        proxy = MagicMock()
        proxy.send_raw_transaction.side_effect = RPCError("txn-mempool-conflict", -26)
        with self.assertRaises(BroadcastError) as cm:
            broadcast_transaction(TX_HEX, proxy=proxy)
        self.assertEqual(str(cm.exception), "Broadcast failed: txn-mempool-conflict")
        self.assertIsNone(cm.exception.status_code)


if __name__ == "__main__":
    unittest.main()
