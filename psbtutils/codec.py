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

from psbtutils.errors import EmptyInputError, MalformedContainerError
from psbtutils.psbt import PSBT
from psbtutils.utils import is_hex

logger = logging.getLogger(__name__)

HEX = "hex"
BASE64 = "base64"
FORMS = (BASE64, HEX)


def detect_encoding(text: str) -> str:
    """Returns 'hex' when every character is a hex digit, 'base64' otherwise"""
    return HEX if is_hex(text.strip()) else BASE64


def decode(text: str) -> PSBT:
    """Decodes a hex or base64 PSBT

    Raises
    ------
    EmptyInputError
        if the text is blank
    MalformedContainerError
        if the text is not a valid PSBT in either encoding
    """
    if text is None or not text.strip():
        raise EmptyInputError("PSBT text is empty")
    text = text.strip()

    encoding = detect_encoding(text)
    logger.debug("Decoding %d characters of %s PSBT", len(text), encoding)

    if encoding == HEX:
        try:
            data = bytes.fromhex(text)
        except ValueError as e:
            raise MalformedContainerError(f"Invalid hex encoding: {e}") from e
        return PSBT.from_bytes(data)
    return PSBT.from_base64(text)


def encode(psbt: PSBT, form: str = BASE64) -> str:
    """Serializes a PSBT canonically as base64 (default) or hex"""
    if form == BASE64:
        return psbt.to_base64()
    elif form == HEX:
        return psbt.to_hex()
    raise ValueError(f"Unknown PSBT encoding: {form}")
