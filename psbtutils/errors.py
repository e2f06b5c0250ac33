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

from typing import Optional, Sequence


class PSBTError(ValueError):
    """Base class of all the errors raised while handling a PSBT.

    Attributes:
        message -- explanation of the error
    """

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class EmptyInputError(PSBTError):
    """The PSBT text was blank"""


class MalformedContainerError(PSBTError):
    """The text or binary data is not a valid PSBT container"""


class IncompatibleCombineError(PSBTError):
    """PSBTs to combine do not share the same unsigned transaction"""


class IndexOutOfRangeError(PSBTError, IndexError):
    """Input or output index is not valid for the transaction

    Attributes:
        index -- the requested index
        size -- the number of inputs or outputs available
    """

    def __init__(self, kind: str, index: int, size: int):
        self.index = index
        self.size = size
        super().__init__(
            f"{kind.capitalize()} index {index} out of range (transaction has {size} {kind}s)"
        )


class InvalidValueError(PSBTError):
    """Output value is negative, not integral or above the maximum supply"""


class NotFinalizableError(PSBTError):
    """One or more inputs lack the signing data needed to finalize

    Attributes:
        input_indexes -- the inputs that cannot be finalized
    """

    def __init__(self, input_indexes: Sequence[int], message: Optional[str] = None):
        self.input_indexes = list(input_indexes)
        if message is None:
            message = "Cannot finalize input(s): " + ", ".join(
                str(i) for i in self.input_indexes
            )
        super().__init__(message)


class BroadcastError(PSBTError):
    """The broadcasting service rejected the transaction

    Attributes:
        status_code -- HTTP status returned by the service, if any
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(f"Broadcast failed: {message}")
