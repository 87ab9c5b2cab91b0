"""
Ledger Kernel Storage Backends
"""
from .base import LedgerStore
from .memory import MemoryLedgerStore
from .postgres import PostgresLedgerStore, compile_posting_filter
from .schema import create_schema, drop_schema

__all__ = [
    "LedgerStore",
    "MemoryLedgerStore",
    "PostgresLedgerStore",
    "compile_posting_filter",
    "create_schema",
    "drop_schema",
]
