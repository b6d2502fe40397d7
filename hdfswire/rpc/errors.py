"""Errors reported by the namenode in RPC response headers."""

from __future__ import annotations

import enum


class RpcErrorCode(enum.IntEnum):
    """Error detail codes carried in an RPC response header."""

    ERROR_APPLICATION = 1
    ERROR_NO_SUCH_METHOD = 2
    ERROR_NO_SUCH_PROTOCOL = 3
    ERROR_RPC_SERVER = 4
    ERROR_SERIALIZING_RESPONSE = 5
    ERROR_RPC_VERSION_MISMATCH = 6
    FATAL_UNKNOWN = 10
    FATAL_UNSUPPORTED_SERIALIZATION = 11
    FATAL_INVALID_RPC_HEADER = 12
    FATAL_DESERIALIZING_REQUEST = 13
    FATAL_VERSION_MISMATCH = 14
    FATAL_UNAUTHORIZED = 15


class NamenodeError(Exception):
    """A failed namenode call, with its error code and remote exception class."""

    def __init__(self, method: str, code: int, exception: str = "", message: str = "") -> None:
        super().__init__(method, code, exception, message)
        self.method = method
        self.code = code
        self.exception = exception
        self.message = message

    @property
    def desc(self) -> str:
        """The symbolic name of the error code, or an empty string if unknown."""
        try:
            return RpcErrorCode(self.code).name
        except ValueError:
            return ""

    def __str__(self) -> str:
        text = f"{self.method} call failed with {self.desc}"
        if self.exception:
            text += f" ({self.exception})"
        return text