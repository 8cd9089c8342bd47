"""PostgreSQL wire-protocol helpers: message buffers, protocol messages, connection options and quoting."""

__version__ = "0.1.0"

__all__ = ["buffers", "protocol", "options", "quoting"]