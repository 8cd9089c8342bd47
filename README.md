# pgwirekit

Building blocks for talking to PostgreSQL. It is pure Python and has no
runtime dependencies.

## What it covers

- **Message buffers** (`pgwirekit.buffers`): `ReadBuffer` reads the fields of
  a received message (`int32`, `oid`, `int16`, `string`, `next`, `byte`).
  `WriteBuffer` builds one or more typed messages and fills in their lengths
  (`int32`, `int16`, `string`, `byte`, `bytes`, `next`, `wrap`).
- **Protocol helpers** (`pgwirekit.protocol`):
  - `parse_command_tag` for CommandComplete tags.
  - `decide_column_formats` picks the result formats for a prepared statement.
  - `parse_statement_row_description` and `parse_portal_row_description` read
    RowDescription messages.
  - `startup_message` builds the StartupMessage.
  - `md5_password` answers an MD5 password challenge.
  - `parse_server_version` converts a `server_version` value.
  - `is_driver_setting` tells whether an option stays on the client.
  - Types: `TransactionStatus`, `Format`, `FieldDescription` and `RowsHeader`.
  - Constants: `PROTOCOL_VERSION`, `SSL_REQUEST_CODE` and
    `CANCEL_REQUEST_CODE`.
- **Connection options** (`pgwirekit.options`):
  - `parse_options` reads libpq-style `key=value` strings.
  - `parse_environ` reads `PG*` environment variables.
  - `driver_settings` reads the `disable_prepared_binary_result` and
    `binary_parameters` yes/no settings.
  - `network_address` resolves the socket to connect to.
- **Quoting** (`pgwirekit.quoting`): `quote_identifier`, `quote_literal` and
  `is_utf8`.

## Install

```
pip install pgwirekit
```

## Examples

```python
from pgwirekit.buffers import ReadBuffer, WriteBuffer
from pgwirekit.options import network_address, parse_environ, parse_options
from pgwirekit.protocol import (
    FieldDescription,
    TransactionStatus,
    decide_column_formats,
    parse_command_tag,
    parse_server_version,
    startup_message,
)
from pgwirekit.quoting import is_utf8, quote_identifier, quote_literal

w = WriteBuffer("Q")
w.string("SELECT 1")
w.wrap()                                # b'Q\x00\x00\x00\rSELECT 1\x00'

r = ReadBuffer(b"\x00\x00\x00\x07abc\x00")
r.int32(), r.string()                   # (7, 'abc')

parse_command_tag("INSERT 0 5")         # (5, 'INSERT')
parse_command_tag("CREATE TABLE")       # (0, 'CREATE TABLE')
parse_server_version("14.5")            # 140500
str(TransactionStatus("T"))             # 'idle in transaction'

decide_column_formats([FieldDescription(23), FieldDescription(25)], False)
# ([Format.BINARY, Format.TEXT], b'\x00\x02\x00\x01\x00\x00')

# "host" is a client-side setting and is left out; "dbname" is sent as "database".
startup_message({"user": "alice", "dbname": "app", "host": "localhost"})

parse_options("host=localhost port=5432 dbname='my db'")
# {'host': 'localhost', 'port': '5432', 'dbname': 'my db'}
parse_environ(["PGHOST=db.example.com", "PGPORT=5432"])
# {'host': 'db.example.com', 'port': '5432'}
network_address({"host": "/var/run/postgresql", "port": "5432"})
# ('unix', '/var/run/postgresql/.s.PGSQL.5432')
network_address({"host": "::1", "port": "5432"})
# ('tcp', '[::1]:5432')

quote_identifier('my"table')            # '"my""table"'
quote_literal("it's")                   # "'it''s'"
quote_literal("a\\b")                   # " E'a\\\\b'"
is_utf8("UTF-8")                        # True
```

## Errors

Problems are raised as exceptions:

- `ProtocolError` for malformed or unexpected messages, and for command tags
  that cannot be parsed.
- `OptionsError`, a subclass of `ValueError`, for bad connection strings,
  unsupported `PG*` variables and bad yes/no settings.

## What it does not do

pgwirekit is not a driver:

- It opens no sockets, runs no queries and performs no authentication exchange
  beyond computing the MD5 password response.
- It does not convert values to or from the PostgreSQL array text format.
- It does not read `.pgpass` password files.

## Running the tests

```
pip install -e .[test]
pytest
```