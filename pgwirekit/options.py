"""Connection option strings, environment defaults and driver-side settings."""

from __future__ import annotations

import os
from typing import Iterable, Mapping, Optional, Union

_ENVIRON_KEYS = {
    "PGHOST": "host",
    "PGPORT": "port",
    "PGDATABASE": "dbname",
    "PGUSER": "user",
    "PGPASSWORD": "password",
    "PGPASSFILE": "passfile",
    "PGOPTIONS": "options",
    "PGAPPNAME": "application_name",
    "PGSSLMODE": "sslmode",
    "PGSSLCERT": "sslcert",
    "PGSSLKEY": "sslkey",
    "PGSSLROOTCERT": "sslrootcert",
    "PGSSLSNI": "sslsni",
    "PGCONNECT_TIMEOUT": "connect_timeout",
    "PGCLIENTENCODING": "client_encoding",
    "PGDATESTYLE": "datestyle",
    "PGTZ": "timezone",
    "PGGEQO": "geqo",
}

_UNSUPPORTED_ENVIRON = frozenset(
    {
        "PGHOSTADDR",
        "PGSERVICE",
        "PGSERVICEFILE",
        "PGREALM",
        "PGREQUIRESSL",
        "PGSSLCRL",
        "PGREQUIREPEER",
        "PGKRBSRVNAME",
        "PGGSSLIB",
        "PGSYSCONFDIR",
        "PGLOCALEDIR",
    }
)

_BOOLEAN_SETTINGS = ("disable_prepared_binary_result", "binary_parameters")


class OptionsError(ValueError):
    """Raised when connection options are malformed or unsupported."""


class _Scanner:
    """Yields the characters of an option string one at a time."""

    def __init__(self, text: str) -> None:
        self._chars = iter(text)

    def next(self) -> Optional[str]:
        return next(self._chars, None)

    def skip_spaces(self) -> Optional[str]:
        r = self.next()
        while r is not None and r.isspace():
            r = self.next()
        return r


def parse_options(dsn: str) -> dict[str, str]:
    """Parse a ``key=value`` connection string into a dictionary.

    Values may be single-quoted; a backslash escapes the next character.
    """
    options: dict[str, str] = {}
    s = _Scanner(dsn)

    while True:
        r = s.skip_spaces()
        if r is None:
            break

        key_chars = []
        while r is not None and not r.isspace() and r != "=":
            key_chars.append(r)
            r = s.next()
        key = "".join(key_chars)

        if r != "=":
            r = s.skip_spaces()
        if r != "=":
            raise OptionsError(
                f'missing "=" after "{key}" in connection info string"'
            )

        r = s.skip_spaces()
        if r is None:
            # A trailing "key=" means an empty value.
            options[key] = ""
            break

        value_chars = []
        if r != "'":
            while r is not None and not r.isspace():
                if r == "\\":
                    r = s.next()
                    if r is None:
                        raise OptionsError("missing character after backslash")
                value_chars.append(r)
                r = s.next()
        else:
            while True:
                r = s.next()
                if r is None:
                    raise OptionsError(
                        "unterminated quoted string literal in connection string"
                    )
                if r == "'":
                    break
                if r == "\\":
                    r = s.next()
                    if r is None:
                        raise OptionsError(
                            "unterminated quoted string literal in connection string"
                        )
                value_chars.append(r)

        options[key] = "".join(value_chars)

    return options


def parse_environ(
    environ: Union[Mapping[str, str], Iterable[str]],
) -> dict[str, str]:
    """Collect connection defaults from PG* environment variables.

    ``environ`` is a mapping such as ``os.environ`` or an iterable of
    ``NAME=value`` strings. Well-known variables that are not supported
    raise OptionsError.
    """
    if isinstance(environ, Mapping):
        entries = [(name, value) for name, value in environ.items()]
    else:
        entries = []
        for item in environ:
            name, sep, value = item.partition("=")
            entries.append((name, value if sep else None))

    out: dict[str, str] = {}
    for name, value in entries:
        if name in _UNSUPPORTED_ENVIRON:
            raise OptionsError(f"setting {name} not supported")
        key = _ENVIRON_KEYS.get(name)
        if key is None:
            continue
        if value is None:
            raise OptionsError(f"setting {name} has no value")
        out[key] = value
    return out


def driver_settings(options: Mapping[str, str]) -> dict[str, bool]:
    """Read the boolean driver-side settings, which accept only yes or no."""
    settings: dict[str, bool] = {}
    for key in _BOOLEAN_SETTINGS:
        value = options.get(key)
        if value is None:
            settings[key] = False
        elif value == "yes":
            settings[key] = True
        elif value == "no":
            settings[key] = False
        else:
            raise OptionsError(f'unrecognized value "{value}" for {key}')
    return settings


def _join_host_port(host: str, port: str) -> str:
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


def network_address(options: Mapping[str, str]) -> tuple[str, str]:
    """Return the network kind and address to connect to.

    An absolute path or a name starting with ``@`` selects a UNIX socket.
    """
    host = options.get("host", "")
    port = options.get("port", "")
    if os.path.isabs(host) or host.startswith("@"):
        path = os.path.normpath(os.path.join(host, ".s.PGSQL." + port))
        return "unix", path
    return "tcp", _join_host_port(host, port)