"""
Ledger Kernel Validators
"""
from .double_entry_validator import DoubleEntryValidator

__all__ = ["DoubleEntryValidator"]
