"""
Ledger Kernel Integration
"""
from .facade import LedgerFacade

__all__ = ["LedgerFacade"]
