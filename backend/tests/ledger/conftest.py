"""
Fixtures for Ledger Kernel Tests
================================

Provides pytest fixtures for:
- In-process ledger store
- Test company chart of accounts
- Ledger, closing book and facade services
"""

import pytest
import pytest_asyncio
from decimal import Decimal
from datetime import date
from uuid import uuid4

from ledger_kernel.constants import AccountType, RefType
from ledger_kernel.models import Account, CashflowSetting, ClosingSettings, Reference
from ledger_kernel.store import MemoryLedgerStore
from ledger_kernel.services import AccountRegistry, LedgerService
from ledger_kernel.services.closing_book_service import ClosingBookService
from ledger_kernel.integration import LedgerFacade

TEST_COMPANY_ID = "test-company-ledger"

JAN_1 = date(2026, 1, 1)
JAN_31 = date(2026, 1, 31)
FEB_1 = date(2026, 2, 1)
FEB_28 = date(2026, 2, 28)

# (code, name, type, extra fields)
CHART_OF_ACCOUNTS = [
    # Assets
    ("1-10100", "Kas", AccountType.ASSET,
     dict(cashflow_group="current_asset", cashflow_sub_group="cash_bank")),
    ("1-10200", "Bank", AccountType.ASSET,
     dict(cashflow_group="current_asset", cashflow_sub_group="cash_bank")),
    ("1-10400", "Piutang Usaha", AccountType.RECEIVABLE,
     dict(cashflow_group="current_asset", cashflow_sub_group="receivable")),
    ("1-10600", "Persediaan Barang", AccountType.ASSET,
     dict(cashflow_group="current_asset", is_inventory_account=True)),
    ("1-20100", "Peralatan", AccountType.ASSET,
     dict(cashflow_group="fixed_asset", cashflow_sub_group="equipment")),
    ("1-20200", "Akumulasi Penyusutan", AccountType.CONTRA_ASSET,
     dict(cashflow_group="fixed_asset")),
    # Liabilities
    ("2-10100", "Hutang Usaha", AccountType.LIABILITY,
     dict(cashflow_sub_group="payable")),
    ("2-10400", "Hutang Pajak", AccountType.LIABILITY, {}),
    # Equity
    ("3-10000", "Modal Pemilik", AccountType.EQUITY,
     dict(cashflow_sub_group="capital")),
    ("3-20000", "Laba Ditahan", AccountType.EQUITY, {}),
    ("3-30000", "Ikhtisar Laba Rugi", AccountType.EQUITY, {}),
    # Revenue
    ("4-10100", "Penjualan", AccountType.REVENUE,
     dict(cashflow_sub_group="sales")),
    ("4-10300", "Retur Penjualan", AccountType.CONTRA_REVENUE,
     dict(is_return_account=True, cashflow_sub_group="sales")),
    # Costs and expenses
    ("5-10100", "Harga Pokok Penjualan", AccountType.COST,
     dict(is_cogs_closing_account=True)),
    ("5-20100", "Beban Gaji", AccountType.EXPENSE,
     dict(cashflow_sub_group="operational")),
    ("5-20200", "Beban Sewa", AccountType.EXPENSE,
     dict(cashflow_sub_group="operational")),
    ("5-80100", "Beban Pajak Penghasilan", AccountType.EXPENSE, {}),
    ("5-90100", "Selisih Stock Opname", AccountType.EXPENSE,
     dict(is_stock_opname_account=True)),
]


@pytest.fixture
def company_id():
    """Get test company ID."""
    return TEST_COMPANY_ID


@pytest_asyncio.fixture
async def store():
    """Fresh in-process ledger store per test."""
    return MemoryLedgerStore()


@pytest_asyncio.fixture
async def setup_coa(store, company_id):
    """
    Set up Chart of Accounts for the test company.
    Returns dict of account codes to Account.
    """
    accounts = {}
    for code, name, account_type, extra in CHART_OF_ACCOUNTS:
        account = Account(
            id=uuid4(),
            company_id=company_id,
            code=code,
            name=name,
            type=account_type,
            **extra
        )
        await store.add_account(account)
        accounts[code] = account
    return accounts


@pytest.fixture
def registry(store):
    """Get AccountRegistry instance."""
    return AccountRegistry(store)


@pytest.fixture
def ledger(store, registry):
    """Get LedgerService instance."""
    return LedgerService(store, registry)


@pytest.fixture
def closing(store, registry):
    """Get ClosingBookService instance."""
    return ClosingBookService(store, registry)


@pytest.fixture
def facade(store):
    """Get LedgerFacade instance."""
    return LedgerFacade(store)


@pytest.fixture
def cashflow_setting():
    return CashflowSetting(
        operating=["sales", "operational"],
        investing=["equipment"],
        financing=["capital"],
    )


@pytest.fixture
def closing_settings(setup_coa, cashflow_setting):
    """Closing settings without tax."""
    return ClosingSettings(
        income_summary_account_id=setup_coa["3-30000"].id,
        retained_earnings_account_id=setup_coa["3-20000"].id,
        cashflow=cashflow_setting,
        user_id="tester",
        description="Tutup buku Januari",
    )


# Helper functions for tests
async def post(
    ledger: LedgerService,
    accounts: dict,
    debit_code: str,
    credit_code: str,
    amount,
    posting_date: date = date(2026, 1, 15),
    **kwargs
):
    """Post a pair between two account codes. Returns the PostingPair."""
    return await ledger.post_pair(
        TEST_COMPANY_ID,
        posting_date,
        debit_account_id=accounts[debit_code].id,
        credit_account_id=accounts[credit_code].id,
        amount=Decimal(str(amount)),
        **kwargs
    )


async def record_sale_example(ledger: LedgerService, accounts: dict):
    """
    Revenue 1,000,000 on credit and its cost 600,000, both in January.
    """
    await post(ledger, accounts, "1-10400", "4-10100", 1_000_000, date(2026, 1, 10))
    await post(ledger, accounts, "5-10100", "1-10600", 600_000, date(2026, 1, 10))


async def record_trading_month(ledger: LedgerService, accounts: dict):
    """
    A January with capital, stock purchase, cash sales, salary and rent.

    Capital 10,000,000 cash; purchase 4,000,000 stock on credit (+100,000
    freight in cash); sale 5,000,000 cash costing 3,000,000; salary
    1,000,000 and rent 500,000 paid from bank.
    """
    await post(ledger, accounts, "1-10100", "3-10000", 10_000_000, JAN_1,
               is_opening_balance=True)
    await post(ledger, accounts, "1-10200", "1-10100", 5_000_000, date(2026, 1, 2))
    await post(ledger, accounts, "1-10600", "2-10100", 4_000_000, date(2026, 1, 3),
               is_purchase=True)
    await post(ledger, accounts, "1-10600", "1-10100", 100_000, date(2026, 1, 3),
               is_purchase=True, is_purchase_cost=True)
    await post(ledger, accounts, "1-10100", "4-10100", 5_000_000, date(2026, 1, 12))
    await post(ledger, accounts, "5-10100", "1-10600", 3_000_000, date(2026, 1, 12))
    await post(ledger, accounts, "5-20100", "1-10200", 1_000_000, date(2026, 1, 25))
    await post(ledger, accounts, "5-20200", "1-10200", 500_000, date(2026, 1, 25))


def closing_ref(closing_book_id) -> Reference:
    return Reference(RefType.CLOSING_BOOK, closing_book_id)
