"""
Account Registry
================

Chart-of-accounts lookups, including the per-company well-known accounts
(inventory, stock opname, COGS closing) located by role flag.
"""
import logging
from typing import Dict, List
from uuid import UUID

from ..models.account import Account, AccountFilter, WellKnownAccounts
from ..exceptions import (
    AccountNotFound,
    InventoryAccountNotFound,
    StockOpnameAccountNotFound,
)
from ..store.base import LedgerStore

logger = logging.getLogger(__name__)


class AccountRegistry:
    """Read access to accounts"""

    def __init__(self, store: LedgerStore):
        self.store = store

    async def add_account(self, account: Account) -> Account:
        """Register an account (administration tooling / fixtures)"""
        return await self.store.add_account(account)

    async def get_account_by_id(self, account_id: UUID) -> Account:
        """
        Get account by id.

        Raises:
            AccountNotFound: no such account
        """
        account = await self.store.get_account(account_id)
        if account is None:
            raise AccountNotFound(
                f"Account {account_id} not found",
                details={"account_id": str(account_id)}
            )
        return account

    async def find_accounts(self, criteria: AccountFilter) -> List[Account]:
        return await self.store.find_accounts(criteria)

    async def accounts_by_id(self, company_id: str) -> Dict[UUID, Account]:
        accounts = await self.store.find_accounts(
            AccountFilter(company_id=company_id, is_active=None)
        )
        return {a.id: a for a in accounts}

    async def resolve_well_known(self, company_id: str) -> WellKnownAccounts:
        """
        Locate the flagged accounts reports and closing depend on.

        Args:
            company_id: Company (tenant) id

        Returns:
            WellKnownAccounts for the company

        Raises:
            InventoryAccountNotFound: no account flagged as inventory
            StockOpnameAccountNotFound: no account flagged as stock opname
        """
        inventory = await self.store.find_accounts(
            AccountFilter(company_id=company_id, is_inventory_account=True)
        )
        if not inventory:
            raise InventoryAccountNotFound(
                f"Inventory account not found for company {company_id}",
                details={"company_id": company_id}
            )
        if len(inventory) > 1:
            logger.warning(
                f"Company {company_id} has {len(inventory)} inventory accounts, "
                f"using {inventory[0].code}"
            )

        stock_opname = await self.store.find_accounts(
            AccountFilter(company_id=company_id, is_stock_opname_account=True)
        )
        if not stock_opname:
            raise StockOpnameAccountNotFound(
                f"Stock opname account not found for company {company_id}",
                details={"company_id": company_id}
            )

        cogs_closing = await self.store.find_accounts(
            AccountFilter(company_id=company_id, is_cogs_closing_account=True)
        )

        return WellKnownAccounts(
            company_id=company_id,
            inventory_account=inventory[0],
            stock_opname_accounts=stock_opname,
            cogs_closing_account=cogs_closing[0] if cogs_closing else None,
        )
