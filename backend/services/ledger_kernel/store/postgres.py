"""
PostgreSQL Ledger Store
=======================

asyncpg-backed implementation. Outside a transaction every call acquires a
pooled connection; `transaction()` yields a store bound to one connection
so all reads and writes in the block share the same database transaction.
"""
import json
import logging
from contextlib import asynccontextmanager
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple
from uuid import UUID

import asyncpg

from ..config import settings
from ..constants import AccountType, ClosingBookStatus, RefType
from ..models.account import Account, AccountFilter
from ..models.closing_book import ClosingBook, ClosingSummary, CashflowSetting
from ..models.posting import Posting, PostingFilter, Reference
from .base import LedgerStore

logger = logging.getLogger(__name__)

ACCOUNT_COLUMNS = (
    "id, company_id, code, name, type, cashflow_group, cashflow_sub_group, "
    "is_inventory_account, is_cogs_closing_account, is_stock_opname_account, "
    "is_return_account, is_net_surplus_account, is_active, created_at"
)

POSTING_COLUMN_FLAGS = (
    "is_income",
    "is_expense",
    "is_equity",
    "is_account_payable",
    "is_account_receivable",
    "is_purchase",
    "is_purchase_cost",
    "is_return",
    "is_discount",
    "is_opening_balance",
    "is_tax",
)

POSTING_SELECT = """
    SELECT p.*, a.code AS account_code, a.name AS account_name
    FROM ledger_postings p
    JOIN ledger_accounts a ON a.id = p.account_id
"""

CLOSING_BOOK_JSON_FIELDS = (
    "profit_loss",
    "balance_sheet",
    "trial_balance",
    "capital_change",
    "cash_flow",
    "postings",
)


def compile_posting_filter(criteria: PostingFilter) -> Tuple[str, list]:
    """
    Compile a PostingFilter into a WHERE clause over alias `p`.

    Returns:
        Tuple of (sql, args) with $n placeholders numbered from 1
    """
    clauses = []
    args = []

    def add(template: str, value) -> None:
        args.append(value)
        clauses.append(template.format(f"${len(args)}"))

    if criteria.company_id is not None:
        add("p.company_id = {}", criteria.company_id)
    if criteria.account_ids is not None:
        add("p.account_id = ANY({}::uuid[])", list(criteria.account_ids))
    if criteria.date_from is not None:
        add("p.posting_date >= {}", criteria.date_from)
    if criteria.date_to is not None:
        add("p.posting_date <= {}", criteria.date_to)
    if criteria.date_before is not None:
        add("p.posting_date < {}", criteria.date_before)
    for flag in PostingFilter.FLAGS:
        wanted = getattr(criteria, flag)
        if wanted is not None:
            add(f"p.{flag} = {{}}", wanted)
    if criteria.is_closing_entry is True:
        add("p.secondary_ref_type = {}", RefType.CLOSING_BOOK.value)
    elif criteria.is_closing_entry is False:
        add("p.secondary_ref_type IS DISTINCT FROM {}", RefType.CLOSING_BOOK.value)
    if criteria.secondary_ref is not None:
        add("p.secondary_ref_type = {}", criteria.secondary_ref.kind.value)
        add("p.secondary_ref_id = {}", criteria.secondary_ref.id)
    if criteria.positive_debit:
        clauses.append("p.debit > 0")

    return (" AND ".join(clauses) or "TRUE"), args


def _reference(kind: Optional[str], ref_id: Optional[UUID]) -> Optional[Reference]:
    if not kind or not ref_id:
        return None
    return Reference(RefType(kind), ref_id)


def _load_json(value):
    if value is None:
        return None
    return json.loads(value) if isinstance(value, str) else value


class PostgresLedgerStore(LedgerStore):
    """
    Ledger store over asyncpg.

    Usage:
        store = await PostgresLedgerStore.connect()
        await create_schema(store.pool)
    """

    def __init__(self, pool: asyncpg.Pool, conn: Optional[asyncpg.Connection] = None):
        self.pool = pool
        self._conn = conn

    @classmethod
    async def connect(cls, dsn: Optional[str] = None) -> "PostgresLedgerStore":
        """Create a pool from settings.db (or an explicit DSN)"""
        pool = await asyncpg.create_pool(
            dsn or settings.db.url,
            min_size=settings.db.min_pool_size,
            max_size=settings.db.max_pool_size,
            command_timeout=settings.db.command_timeout,
        )
        logger.info("Ledger store connected")
        return cls(pool)

    async def close(self) -> None:
        await self.pool.close()

    @asynccontextmanager
    async def _acquire(self):
        if self._conn is not None:
            yield self._conn
        else:
            async with self.pool.acquire() as conn:
                yield conn

    @staticmethod
    async def _set_company(conn: asyncpg.Connection, company_id: Optional[str]) -> None:
        if company_id is not None:
            await conn.execute(
                "SELECT set_config('app.tenant_id', $1, true)",
                str(company_id)
            )

    # Accounts

    async def add_account(self, account: Account) -> Account:
        async with self._acquire() as conn:
            await conn.execute(
                f"""
                INSERT INTO ledger_accounts ({ACCOUNT_COLUMNS})
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13,
                        COALESCE($14, NOW()))
                """,
                account.id,
                account.company_id,
                account.code,
                account.name,
                account.type.value,
                account.cashflow_group,
                account.cashflow_sub_group,
                account.is_inventory_account,
                account.is_cogs_closing_account,
                account.is_stock_opname_account,
                account.is_return_account,
                account.is_net_surplus_account,
                account.is_active,
                account.created_at,
            )
        return account

    async def get_account(self, account_id: UUID) -> Optional[Account]:
        async with self._acquire() as conn:
            row = await conn.fetchrow(
                f"SELECT {ACCOUNT_COLUMNS} FROM ledger_accounts WHERE id = $1",
                account_id
            )
        return self._row_to_account(row) if row else None

    async def find_accounts(self, criteria: AccountFilter) -> List[Account]:
        clauses = []
        args = []

        def add(template: str, value) -> None:
            args.append(value)
            clauses.append(template.format(f"${len(args)}"))

        if criteria.company_id is not None:
            add("company_id = {}", criteria.company_id)
        if criteria.types is not None:
            add("type = ANY({}::text[])", [t.value for t in criteria.types])
        if criteria.cashflow_group is not None:
            add("cashflow_group = {}", criteria.cashflow_group)
        if criteria.cashflow_sub_group is not None:
            add("cashflow_sub_group = {}", criteria.cashflow_sub_group)
        for flag in AccountFilter.FLAGS:
            wanted = getattr(criteria, flag)
            if wanted is not None:
                add(f"{flag} = {{}}", wanted)

        where = " AND ".join(clauses) or "TRUE"
        async with self._acquire() as conn:
            await self._set_company(conn, criteria.company_id)
            rows = await conn.fetch(
                f"SELECT {ACCOUNT_COLUMNS} FROM ledger_accounts WHERE {where} ORDER BY code",
                *args
            )
        return [self._row_to_account(row) for row in rows]

    # Postings

    async def insert_postings(self, postings: Sequence[Posting]) -> None:
        if not postings:
            return
        flag_columns = ", ".join(POSTING_COLUMN_FLAGS)
        flag_params = ", ".join(f"${i}" for i in range(16, 16 + len(POSTING_COLUMN_FLAGS)))
        query = f"""
            INSERT INTO ledger_postings (
                id, code, posting_date, account_id, company_id,
                debit, credit, amount, description, notes, user_id,
                ref_type, ref_id, secondary_ref_type, secondary_ref_id,
                {flag_columns}
            ) VALUES (
                $1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13, $14, $15,
                {flag_params}
            )
        """
        async with self._acquire() as conn:
            await conn.executemany(query, [self._posting_args(p) for p in postings])

    async def get_posting(self, posting_id: UUID) -> Optional[Posting]:
        async with self._acquire() as conn:
            row = await conn.fetchrow(f"{POSTING_SELECT} WHERE p.id = $1", posting_id)
        return self._row_to_posting(row) if row else None

    async def get_postings(self, posting_ids: Sequence[UUID]) -> List[Posting]:
        if not posting_ids:
            return []
        async with self._acquire() as conn:
            rows = await conn.fetch(
                f"{POSTING_SELECT} WHERE p.id = ANY($1::uuid[]) ORDER BY p.posting_date, p.seq",
                list(posting_ids)
            )
        return [self._row_to_posting(row) for row in rows]

    async def get_postings_by_code(self, code: str) -> List[Posting]:
        async with self._acquire() as conn:
            rows = await conn.fetch(
                f"{POSTING_SELECT} WHERE p.code = $1 ORDER BY p.seq",
                code
            )
        return [self._row_to_posting(row) for row in rows]

    async def query_postings(self, criteria: PostingFilter) -> List[Posting]:
        where, args = compile_posting_filter(criteria)
        async with self._acquire() as conn:
            await self._set_company(conn, criteria.company_id)
            rows = await conn.fetch(
                f"{POSTING_SELECT} WHERE {where} ORDER BY p.posting_date, p.seq",
                *args
            )
        return [self._row_to_posting(row) for row in rows]

    async def sum_postings(self, criteria: PostingFilter) -> Tuple[Decimal, Decimal]:
        where, args = compile_posting_filter(criteria)
        async with self._acquire() as conn:
            await self._set_company(conn, criteria.company_id)
            row = await conn.fetchrow(
                f"""
                SELECT COALESCE(SUM(p.debit), 0) AS total_debit,
                       COALESCE(SUM(p.credit), 0) AS total_credit
                FROM ledger_postings p
                WHERE {where}
                """,
                *args
            )
        return Decimal(str(row['total_debit'])), Decimal(str(row['total_credit']))

    async def update_posting(self, posting: Posting) -> None:
        async with self._acquire() as conn:
            await conn.execute(
                """
                UPDATE ledger_postings
                SET posting_date = $2,
                    debit = $3,
                    credit = $4,
                    amount = $5,
                    description = $6,
                    notes = $7
                WHERE id = $1
                """,
                posting.id,
                posting.date,
                posting.debit,
                posting.credit,
                posting.amount,
                posting.description,
                posting.notes,
            )

    async def delete_postings_by_code(self, code: str) -> int:
        async with self._acquire() as conn:
            result = await conn.execute("DELETE FROM ledger_postings WHERE code = $1", code)
        return int(result.split()[-1])

    async def delete_postings_by_secondary_ref(self, ref: Reference) -> int:
        async with self._acquire() as conn:
            result = await conn.execute(
                """
                DELETE FROM ledger_postings
                WHERE secondary_ref_type = $1 AND secondary_ref_id = $2
                """,
                ref.kind.value,
                ref.id
            )
        return int(result.split()[-1])

    # Closing books

    async def save_closing_book(self, closing_book: ClosingBook) -> None:
        def dump(value):
            return json.dumps(value) if value is not None else None

        async with self._acquire() as conn:
            await conn.execute(
                """
                INSERT INTO closing_books (
                    id, company_id, start_date, end_date, status, description,
                    user_id, summary, cashflow_setting, profit_loss, balance_sheet,
                    trial_balance, capital_change, cash_flow, postings, released_at
                ) VALUES (
                    $1, $2, $3, $4, $5, $6, $7, $8::jsonb, $9::jsonb, $10::jsonb,
                    $11::jsonb, $12::jsonb, $13::jsonb, $14::jsonb, $15::jsonb, $16
                )
                ON CONFLICT (id) DO UPDATE SET
                    start_date = EXCLUDED.start_date,
                    end_date = EXCLUDED.end_date,
                    status = EXCLUDED.status,
                    description = EXCLUDED.description,
                    user_id = EXCLUDED.user_id,
                    summary = EXCLUDED.summary,
                    cashflow_setting = EXCLUDED.cashflow_setting,
                    profit_loss = EXCLUDED.profit_loss,
                    balance_sheet = EXCLUDED.balance_sheet,
                    trial_balance = EXCLUDED.trial_balance,
                    capital_change = EXCLUDED.capital_change,
                    cash_flow = EXCLUDED.cash_flow,
                    postings = EXCLUDED.postings,
                    released_at = EXCLUDED.released_at,
                    updated_at = NOW()
                """,
                closing_book.id,
                closing_book.company_id,
                closing_book.start_date,
                closing_book.end_date,
                closing_book.status.value,
                closing_book.description,
                closing_book.user_id,
                dump(closing_book.summary.to_dict() if closing_book.summary else None),
                dump(
                    closing_book.cashflow_setting.to_dict()
                    if closing_book.cashflow_setting else None
                ),
                *[dump(getattr(closing_book, name)) for name in CLOSING_BOOK_JSON_FIELDS],
                closing_book.released_at,
            )

    async def get_closing_book(
        self, closing_book_id: UUID, for_update: bool = False
    ) -> Optional[ClosingBook]:
        query = "SELECT * FROM closing_books WHERE id = $1"
        if for_update and self._conn is not None:
            query += " FOR UPDATE"
        async with self._acquire() as conn:
            row = await conn.fetchrow(query, closing_book_id)
        return self._row_to_closing_book(row) if row else None

    async def list_closing_books(
        self, company_id: str, status: Optional[ClosingBookStatus] = None
    ) -> List[ClosingBook]:
        async with self._acquire() as conn:
            await self._set_company(conn, company_id)
            rows = await conn.fetch(
                """
                SELECT * FROM closing_books
                WHERE company_id = $1
                  AND ($2::text IS NULL OR status = $2)
                ORDER BY start_date
                """,
                company_id,
                status.value if status else None
            )
        return [self._row_to_closing_book(row) for row in rows]

    async def delete_closing_book(self, closing_book_id: UUID) -> bool:
        async with self._acquire() as conn:
            result = await conn.execute(
                "DELETE FROM closing_books WHERE id = $1", closing_book_id
            )
        return result.split()[-1] != "0"

    # Unit of work

    @asynccontextmanager
    async def transaction(self):
        if self._conn is not None:
            # Nested block becomes a savepoint on the bound connection
            async with self._conn.transaction():
                yield self
            return
        async with self.pool.acquire() as conn:
            async with conn.transaction():
                yield PostgresLedgerStore(self.pool, conn)

    # Row mapping

    @staticmethod
    def _posting_args(p: Posting) -> tuple:
        return (
            p.id,
            p.code,
            p.date,
            p.account_id,
            p.company_id,
            p.debit,
            p.credit,
            p.amount,
            p.description,
            p.notes,
            p.user_id,
            p.ref.kind.value if p.ref else None,
            p.ref.id if p.ref else None,
            p.secondary_ref.kind.value if p.secondary_ref else None,
            p.secondary_ref.id if p.secondary_ref else None,
            *[getattr(p, flag) for flag in POSTING_COLUMN_FLAGS],
        )

    @staticmethod
    def _row_to_account(row) -> Account:
        return Account(
            id=row['id'],
            company_id=row['company_id'],
            code=row['code'],
            name=row['name'],
            type=AccountType(row['type']),
            cashflow_group=row['cashflow_group'],
            cashflow_sub_group=row['cashflow_sub_group'],
            is_inventory_account=row['is_inventory_account'],
            is_cogs_closing_account=row['is_cogs_closing_account'],
            is_stock_opname_account=row['is_stock_opname_account'],
            is_return_account=row['is_return_account'],
            is_net_surplus_account=row['is_net_surplus_account'],
            is_active=row['is_active'],
            created_at=row['created_at'],
        )

    @staticmethod
    def _row_to_posting(row) -> Posting:
        return Posting(
            id=row['id'],
            code=row['code'],
            date=row['posting_date'],
            account_id=row['account_id'],
            company_id=row['company_id'],
            debit=Decimal(str(row['debit'])),
            credit=Decimal(str(row['credit'])),
            amount=Decimal(str(row['amount'])),
            description=row['description'],
            notes=row['notes'],
            user_id=row['user_id'],
            ref=_reference(row['ref_type'], row['ref_id']),
            secondary_ref=_reference(row['secondary_ref_type'], row['secondary_ref_id']),
            created_at=row['created_at'],
            account_code=row['account_code'],
            account_name=row['account_name'],
            **{flag: row[flag] for flag in POSTING_COLUMN_FLAGS},
        )

    @staticmethod
    def _row_to_closing_book(row) -> ClosingBook:
        summary = _load_json(row['summary'])
        cashflow_setting = _load_json(row['cashflow_setting'])
        return ClosingBook(
            id=row['id'],
            company_id=row['company_id'],
            start_date=row['start_date'],
            end_date=row['end_date'],
            status=ClosingBookStatus(row['status']),
            description=row['description'],
            user_id=row['user_id'],
            summary=ClosingSummary.from_dict(summary) if summary else None,
            cashflow_setting=(
                CashflowSetting.from_dict(cashflow_setting) if cashflow_setting else None
            ),
            released_at=row['released_at'],
            created_at=row['created_at'],
            updated_at=row['updated_at'],
            **{name: _load_json(row[name]) for name in CLOSING_BOOK_JSON_FIELDS},
        )
