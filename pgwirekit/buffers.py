"""Reading and writing the fields of frontend/backend protocol messages."""

from __future__ import annotations

import struct
from typing import Union

_INT32 = struct.Struct(">i")
_UINT32 = struct.Struct(">I")
_UINT16 = struct.Struct(">H")


class ProtocolError(Exception):
    """Raised when a protocol message is malformed or unexpected."""


def _byte_code(c: Union[int, bytes, str]) -> int:
    if isinstance(c, int):
        if not 0 <= c <= 0xFF:
            raise ValueError(f"byte value out of range: {c}")
        return c
    raw = c.encode("latin-1") if isinstance(c, str) else bytes(c)
    if len(raw) != 1:
        raise ValueError(f"expected a single byte, got {c!r}")
    return raw[0]


class ReadBuffer:
    """Consumes the fields of a received message from the front."""

    __slots__ = ("_data", "_pos")

    def __init__(self, data: Union[bytes, bytearray, memoryview] = b"") -> None:
        self._data = bytes(data)
        self._pos = 0

    def __len__(self) -> int:
        return len(self._data) - self._pos

    def __bytes__(self) -> bytes:
        return self._data[self._pos :]

    def _take(self, n: int) -> bytes:
        if n < 0 or self._pos + n > len(self._data):
            raise ProtocolError(
                f"invalid message format; wanted {n} bytes, {len(self)} left"
            )
        chunk = self._data[self._pos : self._pos + n]
        self._pos += n
        return chunk

    def int32(self) -> int:
        """Read a signed 32-bit big-endian integer."""
        return _INT32.unpack(self._take(4))[0]

    def oid(self) -> int:
        """Read an unsigned 32-bit object identifier."""
        return _UINT32.unpack(self._take(4))[0]

    def int16(self) -> int:
        """Read an unsigned 16-bit big-endian integer."""
        return _UINT16.unpack(self._take(2))[0]

    def string(self) -> str:
        """Read a NUL-terminated string."""
        end = self._data.find(b"\x00", self._pos)
        if end < 0:
            raise ProtocolError("invalid message format; expected string terminator")
        raw = self._data[self._pos : end]
        self._pos = end + 1
        return raw.decode("utf-8", "surrogateescape")

    def next(self, n: int) -> bytes:
        """Read the next ``n`` raw bytes."""
        return self._take(n)

    def byte(self) -> int:
        """Read a single byte."""
        return self._take(1)[0]


class WriteBuffer:
    """Builds one or more typed messages, filling in their lengths.

    Each message starts with a type byte and a length placeholder; ``next``
    closes the current message and starts another, ``wrap`` closes the last
    one and returns all the bytes.
    """

    __slots__ = ("_buf", "_pos")

    def __init__(self, message_type: Union[int, bytes, str]) -> None:
        self._buf = bytearray([_byte_code(message_type), 0, 0, 0, 0])
        self._pos = 1

    def _seal(self) -> None:
        length = len(self._buf) - self._pos
        _UINT32.pack_into(self._buf, self._pos, length & 0xFFFFFFFF)

    def int32(self, n: int) -> None:
        """Append a 32-bit big-endian integer; negatives wrap as in two's complement."""
        self._buf += _UINT32.pack(n & 0xFFFFFFFF)

    def int16(self, n: int) -> None:
        """Append a 16-bit big-endian integer, truncated to 16 bits."""
        self._buf += _UINT16.pack(n & 0xFFFF)

    def string(self, s: str) -> None:
        """Append a NUL-terminated string."""
        self._buf += s.encode("utf-8", "surrogateescape")
        self._buf.append(0)

    def byte(self, c: Union[int, bytes, str]) -> None:
        """Append a single byte."""
        self._buf.append(_byte_code(c))

    def bytes(self, v: Union[bytes, bytearray, memoryview]) -> None:
        """Append raw bytes."""
        self._buf += v

    def next(self, c: Union[int, bytes, str]) -> None:
        """Finish the current message and begin one of type ``c``."""
        self._seal()
        self._pos = len(self._buf) + 1
        self._buf.append(_byte_code(c))
        self._buf += b"\x00\x00\x00\x00"

    def wrap(self) -> bytes:
        """Finish the current message and return everything written."""
        self._seal()
        return bytes(self._buf)