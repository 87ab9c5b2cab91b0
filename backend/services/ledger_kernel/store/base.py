"""
Ledger Store Contract
=====================

Persistence for accounts, ledger postings and closing books. Report
generators and services only talk to this interface, so the same code runs
against PostgreSQL (asyncpg) or the in-process memory store.
"""
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import AsyncContextManager, List, Optional, Sequence, Tuple
from uuid import UUID

from ..constants import ClosingBookStatus
from ..models.account import Account, AccountFilter
from ..models.closing_book import ClosingBook
from ..models.posting import Posting, PostingFilter, Reference


class LedgerStore(ABC):
    """Abstract ledger persistence"""

    # Accounts

    @abstractmethod
    async def add_account(self, account: Account) -> Account:
        ...

    @abstractmethod
    async def get_account(self, account_id: UUID) -> Optional[Account]:
        ...

    @abstractmethod
    async def find_accounts(self, criteria: AccountFilter) -> List[Account]:
        """Accounts matching criteria, ordered by code"""

    # Postings

    @abstractmethod
    async def insert_postings(self, postings: Sequence[Posting]) -> None:
        ...

    @abstractmethod
    async def get_posting(self, posting_id: UUID) -> Optional[Posting]:
        ...

    @abstractmethod
    async def get_postings(self, posting_ids: Sequence[UUID]) -> List[Posting]:
        ...

    @abstractmethod
    async def get_postings_by_code(self, code: str) -> List[Posting]:
        ...

    @abstractmethod
    async def query_postings(self, criteria: PostingFilter) -> List[Posting]:
        """Postings matching criteria, ordered by date then insertion"""

    @abstractmethod
    async def sum_postings(self, criteria: PostingFilter) -> Tuple[Decimal, Decimal]:
        """Aggregate (total_debit, total_credit) of matching postings"""

    @abstractmethod
    async def update_posting(self, posting: Posting) -> None:
        ...

    @abstractmethod
    async def delete_postings_by_code(self, code: str) -> int:
        """Returns number of deleted postings"""

    @abstractmethod
    async def delete_postings_by_secondary_ref(self, ref: Reference) -> int:
        """Returns number of deleted postings"""

    # Closing books

    @abstractmethod
    async def save_closing_book(self, closing_book: ClosingBook) -> None:
        """Insert or replace"""

    @abstractmethod
    async def get_closing_book(
        self, closing_book_id: UUID, for_update: bool = False
    ) -> Optional[ClosingBook]:
        """
        Load a closing book. With for_update=True inside a transaction the
        row stays locked until the transaction ends.
        """

    @abstractmethod
    async def list_closing_books(
        self, company_id: str, status: Optional[ClosingBookStatus] = None
    ) -> List[ClosingBook]:
        ...

    @abstractmethod
    async def delete_closing_book(self, closing_book_id: UUID) -> bool:
        ...

    # Unit of work

    @abstractmethod
    def transaction(self) -> AsyncContextManager["LedgerStore"]:
        """
        Atomic unit of work. Yields a store whose writes are committed when
        the block exits normally and rolled back when it raises.

        Usage:
            async with store.transaction() as tx:
                await tx.delete_postings_by_secondary_ref(ref)
                await tx.insert_postings(postings)
        """
