"""Message-level pieces of the frontend/backend protocol."""

from __future__ import annotations

import enum
import hashlib
import re
import struct
from dataclasses import dataclass, field
from typing import Mapping, Optional, Sequence

from pgwirekit.buffers import ProtocolError, ReadBuffer, WriteBuffer

PROTOCOL_VERSION = 196608
SSL_REQUEST_CODE = 80877103
CANCEL_REQUEST_CODE = 80877102

_OID_BYTEA = 17
_OID_INT8 = 20
_OID_INT2 = 21
_OID_INT4 = 23
_OID_UUID = 2950
_BINARY_OIDS = frozenset({_OID_BYTEA, _OID_INT8, _OID_INT4, _OID_INT2, _OID_UUID})

COLUMN_FORMATS_ALL_BINARY = b"\x00\x01\x00\x01"
COLUMN_FORMATS_ALL_TEXT = b"\x00\x00"

_COMMANDS_WITH_ROWS = ("SELECT ", "UPDATE ", "DELETE ", "FETCH ", "MOVE ", "COPY ")
_INT_RE = re.compile(r"[+-]?[0-9]+")
_VERSION_RE = re.compile(r"\s*([+-]?[0-9]+)\.([+-]?[0-9]+)")

_DRIVER_SETTINGS = frozenset(
    {
        "host",
        "port",
        "password",
        "sslmode",
        "sslcert",
        "sslkey",
        "sslrootcert",
        "sslinline",
        "sslsni",
        "fallback_application_name",
        "connect_timeout",
        "disable_prepared_binary_result",
        "binary_parameters",
        "krbsrvname",
        "krbspn",
    }
)


class TransactionStatus(str, enum.Enum):
    """The transaction state reported in ReadyForQuery."""

    IDLE = "I"
    IN_TRANSACTION = "T"
    IN_FAILED_TRANSACTION = "E"

    @property
    def description(self) -> str:
        return {
            "I": "idle",
            "T": "idle in transaction",
            "E": "in a failed transaction",
        }[self.value]

    @property
    def in_transaction(self) -> bool:
        return self is not TransactionStatus.IDLE

    def __str__(self) -> str:
        return self.description


class Format(enum.IntEnum):
    """Format code of a parameter or result column."""

    TEXT = 0
    BINARY = 1


@dataclass(frozen=True)
class FieldDescription:
    """Type information for one result column."""

    oid: int
    length: int = 0
    modifier: int = 0


@dataclass
class RowsHeader:
    """Names, types and formats of the columns of a result."""

    column_names: list[str] = field(default_factory=list)
    column_types: list[FieldDescription] = field(default_factory=list)
    column_formats: list[Format] = field(default_factory=list)


def _parse_int64(text: str) -> int:
    if not _INT_RE.fullmatch(text):
        raise ProtocolError(f"could not parse commandTag: invalid syntax {text!r}")
    value = int(text)
    if not -(1 << 63) <= value < (1 << 63):
        raise ProtocolError(f"could not parse commandTag: value out of range {text!r}")
    return value


def parse_command_tag(command_tag: str) -> tuple[int, str]:
    """Split a CommandComplete tag into (rows affected, command name)."""
    affected: Optional[str] = None
    for prefix in _COMMANDS_WITH_ROWS:
        if command_tag.startswith(prefix):
            affected = command_tag[len(prefix) :]
            command_tag = prefix[:-1]
            break
    if affected is None and command_tag.startswith("INSERT "):
        parts = command_tag.split(" ")
        if len(parts) != 3:
            raise ProtocolError(f"unexpected INSERT command tag {command_tag}")
        affected = parts[-1]
        command_tag = "INSERT"
    if affected is None:
        return 0, command_tag
    return _parse_int64(affected), command_tag


def decide_column_formats(
    column_types: Sequence[FieldDescription], force_text: bool
) -> tuple[list[Format], bytes]:
    """Choose result formats for a prepared statement's columns.

    Returns the per-column formats and the encoded format codes to send in Bind.
    """
    if not column_types:
        return [], COLUMN_FORMATS_ALL_TEXT
    if force_text:
        return [Format.TEXT] * len(column_types), COLUMN_FORMATS_ALL_TEXT

    formats = [
        Format.BINARY if desc.oid in _BINARY_OIDS else Format.TEXT
        for desc in column_types
    ]
    if all(f is Format.BINARY for f in formats):
        return formats, COLUMN_FORMATS_ALL_BINARY
    if all(f is Format.TEXT for f in formats):
        return formats, COLUMN_FORMATS_ALL_TEXT
    data = struct.pack(f">H{len(formats)}H", len(formats), *formats)
    return formats, data


def _read_column(buffer: ReadBuffer) -> tuple[str, FieldDescription, int]:
    name = buffer.string()
    buffer.next(6)
    oid = buffer.oid()
    length = buffer.int16()
    modifier = buffer.int32()
    fmt = buffer.int16()
    return name, FieldDescription(oid, length, modifier), fmt


def parse_statement_row_description(
    buffer: ReadBuffer,
) -> tuple[list[str], list[FieldDescription]]:
    """Read a RowDescription answering a statement Describe."""
    count = buffer.int16()
    names: list[str] = []
    types: list[FieldDescription] = []
    for _ in range(count):
        # The format code is not yet known when describing a statement.
        name, desc, _fmt = _read_column(buffer)
        names.append(name)
        types.append(desc)
    return names, types


def parse_portal_row_description(buffer: ReadBuffer) -> RowsHeader:
    """Read a RowDescription answering a portal Describe."""
    count = buffer.int16()
    header = RowsHeader()
    for _ in range(count):
        name, desc, fmt = _read_column(buffer)
        header.column_names.append(name)
        header.column_types.append(desc)
        header.column_formats.append(Format(fmt) if fmt in (0, 1) else fmt)
    return header


def is_driver_setting(key: str) -> bool:
    """Whether ``key`` configures the client and is not sent to the server."""
    return key in _DRIVER_SETTINGS


def md5_password(user: str, password: str, salt: bytes) -> str:
    """The response to an MD5 password challenge."""
    inner = hashlib.md5((password + user).encode("utf-8")).hexdigest()
    outer = hashlib.md5(inner.encode("ascii") + bytes(salt)).hexdigest()
    return "md5" + outer


def startup_message(options: Mapping[str, str]) -> bytes:
    """Build the StartupMessage carrying the run-time parameters in ``options``."""
    w = WriteBuffer(0)
    w.int32(PROTOCOL_VERSION)
    for key, value in options.items():
        if is_driver_setting(key):
            continue
        w.string("database" if key == "dbname" else key)
        w.string(value)
    w.string("")
    return w.wrap()[1:]


def parse_server_version(version: str) -> Optional[int]:
    """Turn a server_version value into the server_version_num form, or None."""
    match = _VERSION_RE.match(version)
    if match is None:
        return None
    major, minor = (int(g) for g in match.groups())
    return major * 10000 + minor * 100