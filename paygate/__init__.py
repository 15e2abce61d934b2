"""Payment gateway and in-memory payment ledger served over Unix domain sockets."""

__version__ = "0.1.0"