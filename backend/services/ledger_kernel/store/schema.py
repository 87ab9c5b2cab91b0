"""
PostgreSQL schema for the ledger store
"""
import asyncpg

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS ledger_accounts (
    id UUID PRIMARY KEY,
    company_id TEXT NOT NULL,
    code TEXT NOT NULL,
    name TEXT NOT NULL,
    type TEXT NOT NULL,
    cashflow_group TEXT,
    cashflow_sub_group TEXT,
    is_inventory_account BOOLEAN NOT NULL DEFAULT false,
    is_cogs_closing_account BOOLEAN NOT NULL DEFAULT false,
    is_stock_opname_account BOOLEAN NOT NULL DEFAULT false,
    is_return_account BOOLEAN NOT NULL DEFAULT false,
    is_net_surplus_account BOOLEAN NOT NULL DEFAULT false,
    is_active BOOLEAN NOT NULL DEFAULT true,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    UNIQUE (company_id, code)
);

CREATE TABLE IF NOT EXISTS ledger_postings (
    id UUID PRIMARY KEY,
    seq BIGSERIAL,
    code TEXT NOT NULL,
    posting_date DATE NOT NULL,
    account_id UUID NOT NULL REFERENCES ledger_accounts (id),
    company_id TEXT NOT NULL,
    debit NUMERIC(20, 6) NOT NULL DEFAULT 0 CHECK (debit >= 0),
    credit NUMERIC(20, 6) NOT NULL DEFAULT 0 CHECK (credit >= 0),
    amount NUMERIC(20, 6) NOT NULL DEFAULT 0,
    description TEXT,
    notes TEXT,
    user_id TEXT,
    ref_type TEXT,
    ref_id UUID,
    secondary_ref_type TEXT,
    secondary_ref_id UUID,
    is_income BOOLEAN NOT NULL DEFAULT false,
    is_expense BOOLEAN NOT NULL DEFAULT false,
    is_equity BOOLEAN NOT NULL DEFAULT false,
    is_account_payable BOOLEAN NOT NULL DEFAULT false,
    is_account_receivable BOOLEAN NOT NULL DEFAULT false,
    is_purchase BOOLEAN NOT NULL DEFAULT false,
    is_purchase_cost BOOLEAN NOT NULL DEFAULT false,
    is_return BOOLEAN NOT NULL DEFAULT false,
    is_discount BOOLEAN NOT NULL DEFAULT false,
    is_opening_balance BOOLEAN NOT NULL DEFAULT false,
    is_tax BOOLEAN NOT NULL DEFAULT false,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    CHECK (NOT (debit > 0 AND credit > 0))
);

CREATE INDEX IF NOT EXISTS idx_ledger_postings_account_date
    ON ledger_postings (company_id, account_id, posting_date);
CREATE INDEX IF NOT EXISTS idx_ledger_postings_code
    ON ledger_postings (code);
CREATE INDEX IF NOT EXISTS idx_ledger_postings_secondary_ref
    ON ledger_postings (secondary_ref_type, secondary_ref_id);

CREATE TABLE IF NOT EXISTS closing_books (
    id UUID PRIMARY KEY,
    company_id TEXT NOT NULL,
    start_date DATE NOT NULL,
    end_date DATE NOT NULL,
    status TEXT NOT NULL DEFAULT 'DRAFT',
    description TEXT,
    user_id TEXT,
    summary JSONB,
    cashflow_setting JSONB,
    profit_loss JSONB,
    balance_sheet JSONB,
    trial_balance JSONB,
    capital_change JSONB,
    cash_flow JSONB,
    postings JSONB,
    released_at TIMESTAMPTZ,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_closing_books_company
    ON closing_books (company_id, start_date);
"""

DROP_SQL = """
DROP TABLE IF EXISTS closing_books;
DROP TABLE IF EXISTS ledger_postings;
DROP TABLE IF EXISTS ledger_accounts;
"""


async def create_schema(pool: asyncpg.Pool) -> None:
    """Create ledger tables if they do not exist"""
    async with pool.acquire() as conn:
        await conn.execute(SCHEMA_SQL)


async def drop_schema(pool: asyncpg.Pool) -> None:
    async with pool.acquire() as conn:
        await conn.execute(DROP_SQL)
