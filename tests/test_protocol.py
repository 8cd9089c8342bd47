import struct

import pytest

from pgwirekit.buffers import ProtocolError, ReadBuffer
from pgwirekit.protocol import (
    FieldDescription,
    Format,
    RowsHeader,
    TransactionStatus,
    decide_column_formats,
    is_driver_setting,
    md5_password,
    parse_command_tag,
    parse_portal_row_description,
    parse_server_version,
    parse_statement_row_description,
    startup_message,
)


def _column(name, oid, length, modifier, fmt):
    return (
        name.encode() + b"\x00"
        + struct.pack(">IH", 0, 0)
        + struct.pack(">IHiH", oid, length, modifier, fmt)
    )


def _row_description(columns):
    return struct.pack(">H", len(columns)) + b"".join(_column(*c) for c in columns)


@pytest.mark.parametrize(
    "tag, expected",
    [
        ("SELECT 5", (5, "SELECT")),
        ("UPDATE 12", (12, "UPDATE")),
        ("DELETE 0", (0, "DELETE")),
        ("COPY 7", (7, "COPY")),
        ("INSERT 0 9", (9, "INSERT")),
        ("CREATE TABLE", (0, "CREATE TABLE")),
        ("BEGIN", (0, "BEGIN")),
    ],
)
def test_parse_command_tag(tag, expected):
    assert parse_command_tag(tag) == expected


@pytest.mark.parametrize("tag", ["INSERT 5", "UPDATE x", "SELECT "])
def test_parse_command_tag_errors(tag):
    with pytest.raises(ProtocolError):
        parse_command_tag(tag)


def test_decide_formats_empty():
    assert decide_column_formats([], False) == ([], b"\x00\x00")


def test_decide_formats_all_binary():
    types = [FieldDescription(20), FieldDescription(17)]
    formats, data = decide_column_formats(types, False)
    assert formats == [Format.BINARY, Format.BINARY]
    assert data == bytes([0, 1, 0, 1])


def test_decide_formats_all_text_and_forced():
    text_types = [FieldDescription(25)]
    assert decide_column_formats(text_types, False) == ([Format.TEXT], b"\x00\x00")
    binary_types = [FieldDescription(23), FieldDescription(21)]
    formats, data = decide_column_formats(binary_types, True)
    assert formats == [Format.TEXT, Format.TEXT]
    assert data == b"\x00\x00"


def test_decide_formats_mixed():
    types = [FieldDescription(23), FieldDescription(25), FieldDescription(2950)]
    formats, data = decide_column_formats(types, False)
    assert formats == [Format.BINARY, Format.TEXT, Format.BINARY]
    count, *codes = struct.unpack(">4H", data)
    assert count == len(types)
    assert codes == [int(f) for f in formats]


def test_parse_statement_row_description():
    payload = _row_description([("id", 23, 4, -1, 0), ("name", 25, 65535, -1, 0)])
    names, types = parse_statement_row_description(ReadBuffer(payload))
    assert names == ["id", "name"]
    assert types == [FieldDescription(23, 4, -1), FieldDescription(25, 65535, -1)]


def test_parse_portal_row_description():
    payload = _row_description([("a", 20, 8, -1, 1), ("b", 25, 65535, -1, 0)])
    header = parse_portal_row_description(ReadBuffer(payload))
    assert header == RowsHeader(
        column_names=["a", "b"],
        column_types=[FieldDescription(20, 8, -1), FieldDescription(25, 65535, -1)],
        column_formats=[Format.BINARY, Format.TEXT],
    )


def test_parse_row_description_truncated():
    payload = _row_description([("a", 20, 8, -1, 1)])[:-3]
    with pytest.raises(ProtocolError):
        parse_portal_row_description(ReadBuffer(payload))


@pytest.mark.parametrize(
    "key, expected",
    [
        ("host", True),
        ("password", True),
        ("sslmode", True),
        ("connect_timeout", True),
        ("binary_parameters", True),
        ("krbspn", True),
        ("user", False),
        ("dbname", False),
        ("application_name", False),
    ],
)
def test_is_driver_setting(key, expected):
    assert is_driver_setting(key) is expected


def test_md5_password_shape_and_dependence():
    password = "password"
    first = md5_password("alice", password, b"\x01\x02\x03\x04")
    assert first.startswith("md5")
    assert len(first) == 35
    assert first == md5_password("alice", password, b"\x01\x02\x03\x04")
    assert first != md5_password("alice", password, b"\x04\x03\x02\x01")
    assert first != md5_password("bob", password, b"\x01\x02\x03\x04")


def test_startup_message_layout():
    password = "password"
    msg = startup_message(
        {"user": "alice", "dbname": "shop", "password": password, "host": "localhost"}
    )
    buf = ReadBuffer(msg)
    assert buf.int32() == len(msg)
    assert buf.int32() == 196608
    params = {}
    while True:
        key = buf.string()
        if not key:
            break
        params[key] = buf.string()
    assert params == {"user": "alice", "database": "shop"}
    assert len(buf) == 0


def test_parse_server_version():
    assert parse_server_version("14.2") == 140200
    assert parse_server_version("9.6.3") == 90600
    assert parse_server_version("14.2 (Debian)") == parse_server_version("14.2")
    assert parse_server_version("10") is None
    assert parse_server_version("devel") is None


def test_transaction_status():
    assert TransactionStatus("I") is TransactionStatus.IDLE
    assert str(TransactionStatus("T")) == "idle in transaction"
    assert str(TransactionStatus("E")) == "in a failed transaction"
    assert not TransactionStatus.IDLE.in_transaction
    assert TransactionStatus.IN_FAILED_TRANSACTION.in_transaction
    with pytest.raises(ValueError):
        TransactionStatus("X")