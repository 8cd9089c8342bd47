import struct

import pytest

from pgwirekit.buffers import ProtocolError, ReadBuffer, WriteBuffer


def test_read_int32_is_signed():
    buf = ReadBuffer(b"\xff\xff\xff\xff")
    assert buf.int32() == -1
    assert len(buf) == 0


def test_read_int16_is_unsigned():
    buf = ReadBuffer(b"\xff\xff")
    assert buf.int16() == 65535


def test_read_oid_is_unsigned():
    buf = ReadBuffer(struct.pack(">I", 0xFFFFFFFF))
    assert buf.oid() == 0xFFFFFFFF


def test_read_string_and_rest():
    buf = ReadBuffer(b"abc\x00def\x00Z")
    assert buf.string() == "abc"
    assert buf.string() == "def"
    assert buf.byte() == ord("Z")
    assert len(buf) == 0


def test_read_string_without_terminator():
    buf = ReadBuffer(b"abc")
    with pytest.raises(ProtocolError, match="expected string terminator"):
        buf.string()


def test_read_next_too_far():
    buf = ReadBuffer(b"ab")
    with pytest.raises(ProtocolError):
        buf.next(3)


def test_read_next_returns_bytes_and_advances():
    buf = ReadBuffer(b"hello!")
    assert buf.next(5) == b"hello"
    assert bytes(buf) == b"!"


def test_write_int32_negative_wraps():
    w = WriteBuffer(b"Q")
    w.int32(-1)
    assert w.wrap()[5:] == b"\xff\xff\xff\xff"


def test_write_wrap_sets_length():
    w = WriteBuffer("Q")
    w.string("SELECT 1")
    out = w.wrap()
    assert out[0:1] == b"Q"
    (length,) = struct.unpack(">I", out[1:5])
    assert length == len(out) - 1
    assert out[5:] == b"SELECT 1\x00"


def test_write_round_trip():
    w = WriteBuffer(0)
    w.int32(123456)
    w.int16(42)
    w.string("name")
    w.byte("x")
    w.bytes(b"\x01\x02")
    out = w.wrap()
    r = ReadBuffer(out[5:])
    assert r.int32() == 123456
    assert r.int16() == 42
    assert r.string() == "name"
    assert r.byte() == ord("x")
    assert r.next(2) == b"\x01\x02"
    assert len(r) == 0


def test_write_next_chains_messages():
    w = WriteBuffer("P")
    w.string("stmt")
    w.next("S")
    out = w.wrap()
    (first_len,) = struct.unpack(">I", out[1:5])
    second = out[1 + first_len :]
    assert out[0:1] == b"P"
    assert second[0:1] == b"S"
    (second_len,) = struct.unpack(">I", second[1:5])
    assert second_len == 4
    assert len(second) == 5


def test_write_rejects_multi_byte_type():
    with pytest.raises(ValueError):
        WriteBuffer(b"QQ")