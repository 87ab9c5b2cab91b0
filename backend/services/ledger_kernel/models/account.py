"""
Chart of Accounts Models
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, List, Sequence
from uuid import UUID

from ..constants import AccountType, CashflowGroup


@dataclass
class Account:
    """Chart of Accounts entity with role flags"""
    id: UUID
    company_id: str
    code: str
    name: str
    type: AccountType

    # Cash-flow tagging: group is fixed_asset/current_asset/cash_bank,
    # sub_group is the configured cash-flow line the account feeds
    cashflow_group: Optional[str] = None
    cashflow_sub_group: Optional[str] = None

    # Role flags used to locate well-known accounts
    is_inventory_account: bool = False
    is_cogs_closing_account: bool = False
    is_stock_opname_account: bool = False
    is_return_account: bool = False
    is_net_surplus_account: bool = False

    is_active: bool = True
    created_at: Optional[datetime] = None

    @property
    def is_cash_bank(self) -> bool:
        return self.cashflow_sub_group == CashflowGroup.CASH_BANK.value

    @property
    def is_fixed_asset(self) -> bool:
        return self.cashflow_group == CashflowGroup.FIXED_ASSET.value

    def to_dict(self) -> dict:
        """Convert to dictionary"""
        return {
            "id": str(self.id),
            "company_id": self.company_id,
            "code": self.code,
            "name": self.name,
            "type": self.type.value,
            "cashflow_group": self.cashflow_group,
            "cashflow_sub_group": self.cashflow_sub_group,
            "is_inventory_account": self.is_inventory_account,
            "is_cogs_closing_account": self.is_cogs_closing_account,
            "is_stock_opname_account": self.is_stock_opname_account,
            "is_return_account": self.is_return_account,
            "is_net_surplus_account": self.is_net_surplus_account,
            "is_active": self.is_active,
        }


@dataclass
class AccountFilter:
    """
    Account lookup criteria. Every field left as None is ignored.
    """
    company_id: Optional[str] = None
    types: Optional[Sequence[AccountType]] = None
    cashflow_group: Optional[str] = None
    cashflow_sub_group: Optional[str] = None
    is_inventory_account: Optional[bool] = None
    is_cogs_closing_account: Optional[bool] = None
    is_stock_opname_account: Optional[bool] = None
    is_net_surplus_account: Optional[bool] = None
    is_active: Optional[bool] = True

    FLAGS = (
        "is_inventory_account",
        "is_cogs_closing_account",
        "is_stock_opname_account",
        "is_net_surplus_account",
        "is_active",
    )

    def matches(self, account: Account) -> bool:
        if self.company_id is not None and account.company_id != self.company_id:
            return False
        if self.types is not None and account.type not in self.types:
            return False
        if self.cashflow_group is not None and account.cashflow_group != self.cashflow_group:
            return False
        if (
            self.cashflow_sub_group is not None
            and account.cashflow_sub_group != self.cashflow_sub_group
        ):
            return False
        for flag in self.FLAGS:
            wanted = getattr(self, flag)
            if wanted is not None and getattr(account, flag) != wanted:
                return False
        return True


@dataclass
class WellKnownAccounts:
    """
    Per-company special-purpose accounts, resolved once per report or
    closing call and passed through instead of re-queried.
    """
    company_id: str
    inventory_account: Account
    stock_opname_accounts: List[Account] = field(default_factory=list)
    cogs_closing_account: Optional[Account] = None

    @property
    def stock_opname_account_ids(self) -> List[UUID]:
        return [a.id for a in self.stock_opname_accounts]
