"""
Ledger Kernel Exceptions
========================

Exception Hierarchy:
    LedgerError (base)
    ├── ValidationError - input rejected before any write
    ├── NotFoundError - lookup failures
    │   ├── AccountNotFound
    │   ├── PostingNotFound
    │   └── ClosingBookNotFound
    ├── ConfigurationError - a well-known account is missing for a company
    │   ├── InventoryAccountNotFound
    │   ├── StockOpnameAccountNotFound
    │   └── CogsClosingAccountNotFound
    ├── ConsistencyError - derived totals fail a sanity check
    ├── UnhandledAccountType - no balance rule for an account type
    └── ClosingBookError - a closing-book generation step failed

Usage:
    from ledger_kernel.exceptions import LedgerError

    try:
        await closing.generate(company_id, closing_book_id, closing_settings)
    except LedgerError as e:
        logger.error(f"Closing failed: {e}")
        return e.to_dict()
"""
from typing import Any, Dict, List, Optional


class LedgerError(Exception):
    """
    Base exception for all ledger kernel operations.

    Carries a machine-readable error code and a details dict so callers
    can serialize failures without parsing the message.
    """

    default_error_code: str = "LEDGER_ERROR"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(LedgerError):
    """
    Raised when input is rejected before any write.

    Example:
        raise ValidationError(
            "Journal is not balanced",
            errors=["Total Debit=100.00, Total Credit=90.00"]
        )
    """

    default_error_code: str = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str,
        errors: Optional[List[str]] = None,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.errors = list(errors or [])
        full_details = {"errors": self.errors} if self.errors else {}
        if details:
            full_details.update(details)
        super().__init__(message, error_code=error_code, details=full_details)


class NotFoundError(LedgerError):
    """Raised when an account, posting or closing book does not exist."""

    default_error_code: str = "NOT_FOUND"


class AccountNotFound(NotFoundError):
    default_error_code: str = "ACCOUNT_NOT_FOUND"


class PostingNotFound(NotFoundError):
    default_error_code: str = "POSTING_NOT_FOUND"


class ClosingBookNotFound(NotFoundError):
    default_error_code: str = "CLOSING_BOOK_NOT_FOUND"


class ConfigurationError(LedgerError):
    """
    Raised when a well-known account required by a report or closing is
    not configured for the company. Never fall back to a default account.
    """

    default_error_code: str = "CONFIGURATION_ERROR"


class InventoryAccountNotFound(ConfigurationError):
    default_error_code: str = "INVENTORY_ACCOUNT_NOT_FOUND"


class StockOpnameAccountNotFound(ConfigurationError):
    default_error_code: str = "STOCK_OPNAME_ACCOUNT_NOT_FOUND"


class CogsClosingAccountNotFound(ConfigurationError):
    default_error_code: str = "COGS_CLOSING_ACCOUNT_NOT_FOUND"


class ConsistencyError(LedgerError):
    """
    Raised (or logged) when derived totals fail a sanity check, e.g. a
    negative ending inventory or an unbalanced balance sheet.
    """

    default_error_code: str = "CONSISTENCY_ERROR"


class UnhandledAccountType(LedgerError):
    """Raised when no balance rule exists for an account type."""

    default_error_code: str = "UNHANDLED_ACCOUNT_TYPE"

    def __init__(self, account_type: Any):
        self.account_type = account_type
        value = getattr(account_type, "value", account_type)
        super().__init__(
            f"No balance rule for account type {value}",
            details={"account_type": str(value)},
        )


class ClosingBookError(LedgerError):
    """
    Raised when a closing-book generation step fails. The unit of work is
    rolled back; `step` names the step that failed and the original error
    is chained as `__cause__`.
    """

    default_error_code: str = "CLOSING_BOOK_ERROR"

    def __init__(self, closing_book_id: Any, step: str, cause: Exception):
        self.closing_book_id = closing_book_id
        self.step = step
        details = {"closing_book_id": str(closing_book_id), "step": step}
        if isinstance(cause, LedgerError):
            details["cause"] = cause.to_dict()
        else:
            details["cause"] = {"error": type(cause).__name__, "message": str(cause)}
        super().__init__(
            f"Closing book {closing_book_id} failed at step '{step}': {cause}",
            details=details,
        )
