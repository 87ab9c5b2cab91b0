"""
In-process Ledger Store

Same contract as the PostgreSQL store, kept in dicts. Used for tests and
for embedding the kernel in a single process.
"""
import asyncio
import copy
import logging
from contextlib import asynccontextmanager
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple
from uuid import UUID

from ..constants import ClosingBookStatus
from ..models.account import Account, AccountFilter
from ..models.closing_book import ClosingBook
from ..models.posting import Posting, PostingFilter, Reference
from .base import LedgerStore

logger = logging.getLogger(__name__)


class MemoryLedgerStore(LedgerStore):
    """
    Dict-backed store.

    `transaction()` snapshots all state and restores it if the block
    raises. Writers are serialized with an asyncio.Lock; the store handed
    out inside the block shares state with the outer one.
    """

    def __init__(self):
        self._accounts: Dict[UUID, Account] = {}
        self._postings: Dict[UUID, Posting] = {}
        self._closing_books: Dict[UUID, ClosingBook] = {}
        self._lock = asyncio.Lock()

    # Accounts

    async def add_account(self, account: Account) -> Account:
        self._accounts[account.id] = copy.deepcopy(account)
        return account

    async def get_account(self, account_id: UUID) -> Optional[Account]:
        account = self._accounts.get(account_id)
        return copy.deepcopy(account) if account else None

    async def find_accounts(self, criteria: AccountFilter) -> List[Account]:
        found = [a for a in self._accounts.values() if criteria.matches(a)]
        return [copy.deepcopy(a) for a in sorted(found, key=lambda a: a.code)]

    # Postings

    def _joined(self, posting: Posting) -> Posting:
        result = copy.deepcopy(posting)
        account = self._accounts.get(posting.account_id)
        if account:
            result.account_code = account.code
            result.account_name = account.name
        return result

    async def insert_postings(self, postings: Sequence[Posting]) -> None:
        for posting in postings:
            self._postings[posting.id] = copy.deepcopy(posting)

    async def get_posting(self, posting_id: UUID) -> Optional[Posting]:
        posting = self._postings.get(posting_id)
        return self._joined(posting) if posting else None

    async def get_postings(self, posting_ids: Sequence[UUID]) -> List[Posting]:
        return [
            self._joined(self._postings[pid])
            for pid in posting_ids
            if pid in self._postings
        ]

    async def get_postings_by_code(self, code: str) -> List[Posting]:
        return [self._joined(p) for p in self._postings.values() if p.code == code]

    async def query_postings(self, criteria: PostingFilter) -> List[Posting]:
        # dicts keep insertion order, so a stable sort on date keeps it as tiebreak
        found = [p for p in self._postings.values() if criteria.matches(p)]
        return [self._joined(p) for p in sorted(found, key=lambda p: p.date)]

    async def sum_postings(self, criteria: PostingFilter) -> Tuple[Decimal, Decimal]:
        debit = Decimal("0")
        credit = Decimal("0")
        for posting in self._postings.values():
            if criteria.matches(posting):
                debit += posting.debit
                credit += posting.credit
        return debit, credit

    async def update_posting(self, posting: Posting) -> None:
        if posting.id not in self._postings:
            return
        self._postings[posting.id] = copy.deepcopy(posting)

    async def delete_postings_by_code(self, code: str) -> int:
        ids = [pid for pid, p in self._postings.items() if p.code == code]
        for pid in ids:
            del self._postings[pid]
        return len(ids)

    async def delete_postings_by_secondary_ref(self, ref: Reference) -> int:
        ids = [pid for pid, p in self._postings.items() if p.secondary_ref == ref]
        for pid in ids:
            del self._postings[pid]
        return len(ids)

    # Closing books

    async def save_closing_book(self, closing_book: ClosingBook) -> None:
        self._closing_books[closing_book.id] = copy.deepcopy(closing_book)

    async def get_closing_book(
        self, closing_book_id: UUID, for_update: bool = False
    ) -> Optional[ClosingBook]:
        closing_book = self._closing_books.get(closing_book_id)
        return copy.deepcopy(closing_book) if closing_book else None

    async def list_closing_books(
        self, company_id: str, status: Optional[ClosingBookStatus] = None
    ) -> List[ClosingBook]:
        books = [
            b for b in self._closing_books.values()
            if b.company_id == company_id and (status is None or b.status == status)
        ]
        return [copy.deepcopy(b) for b in sorted(books, key=lambda b: b.start_date)]

    async def delete_closing_book(self, closing_book_id: UUID) -> bool:
        return self._closing_books.pop(closing_book_id, None) is not None

    # Unit of work

    @asynccontextmanager
    async def transaction(self):
        async with self._lock:
            snapshot = (
                copy.deepcopy(self._accounts),
                copy.deepcopy(self._postings),
                copy.deepcopy(self._closing_books),
            )
            try:
                yield self
            except BaseException:
                self._accounts, self._postings, self._closing_books = snapshot
                logger.debug("Memory store transaction rolled back")
                raise
