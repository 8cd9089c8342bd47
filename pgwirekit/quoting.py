"""Quoting identifiers and literals for inclusion in SQL text."""

from __future__ import annotations


def quote_identifier(name: str) -> str:
    """Quote an identifier such as a table or column name.

    Double quotes are doubled, and the result is case sensitive. Anything
    from the first NUL character on is dropped.
    """
    name = name.split("\x00", 1)[0]
    return '"' + name.replace('"', '""') + '"'


def quote_literal(literal: str) -> str:
    """Quote a string literal for statements that take no parameters.

    Single quotes are doubled. If the text holds a backslash, backslashes are
    doubled and the literal is written in the escape-string form ``E'...'``,
    preceded by a space.
    """
    literal = literal.replace("'", "''")
    if "\\" in literal:
        return " E'" + literal.replace("\\", "\\\\") + "'"
    return "'" + literal + "'"


def is_utf8(name: str) -> bool:
    """Whether ``name`` is a loose spelling of UTF-8, as the server accepts."""
    folded = "".join(
        ch.lower() for ch in name if ch.isascii() and ch.isalnum()
    )
    return folded in ("utf8", "unicode")