"""
Cost of Goods Sold (Harga Pokok Penjualan) Report Generator
===========================================================

Derives COGS from inventory-account postings tagged at posting time:

    Beginning inventory
  + Purchases + Freight                  = Total purchases
  - (Purchase returns + Purchase discounts)
                                          = Net purchases
    Beginning inventory + Net purchases  = Goods available
  - Ending inventory
  - Stock opname adjustment
                                          = COGS
"""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional

from ..exceptions import ConsistencyError
from ..models.account import WellKnownAccounts
from ..models.posting import PostingFilter
from ..services.account_registry import AccountRegistry
from ..services.balance_calculator import signed_balance
from ..store.base import LedgerStore
from .common import ZERO, iso

logger = logging.getLogger(__name__)


@dataclass
class CogsReport:
    """COGS statement for a period; start_date None means from the beginning"""
    company_id: str
    start_date: Optional[date]
    end_date: date
    inventory_account_id: Optional[str] = None
    inventory_account_code: str = ""
    inventory_account_name: str = ""

    beginning_inventory: Decimal = ZERO
    purchases: Decimal = ZERO
    freight: Decimal = ZERO
    total_purchases: Decimal = ZERO
    purchase_returns: Decimal = ZERO
    purchase_discounts: Decimal = ZERO
    total_purchase_discounts: Decimal = ZERO
    net_purchases: Decimal = ZERO
    goods_available: Decimal = ZERO
    ending_inventory: Decimal = ZERO
    stock_opname_adjustment: Decimal = ZERO
    cogs: Decimal = ZERO

    # ConsistencyError dicts; reported, never auto-corrected
    warnings: List[Dict] = field(default_factory=list)

    generated_at: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization"""
        return {
            "company_id": self.company_id,
            "start_date": iso(self.start_date),
            "end_date": self.end_date.isoformat(),
            "inventory_account": {
                "id": self.inventory_account_id,
                "code": self.inventory_account_code,
                "name": self.inventory_account_name,
            },
            "beginning_inventory": float(self.beginning_inventory),
            "purchases": float(self.purchases),
            "freight": float(self.freight),
            "total_purchases": float(self.total_purchases),
            "purchase_returns": float(self.purchase_returns),
            "purchase_discounts": float(self.purchase_discounts),
            "total_purchase_discounts": float(self.total_purchase_discounts),
            "net_purchases": float(self.net_purchases),
            "goods_available": float(self.goods_available),
            "ending_inventory": float(self.ending_inventory),
            "stock_opname_adjustment": float(self.stock_opname_adjustment),
            "cogs": float(self.cogs),
            "warnings": self.warnings,
            "generated_at": self.generated_at.isoformat(),
        }


class CogsGenerator:
    """
    Generates the COGS statement.

    Fails with InventoryAccountNotFound / StockOpnameAccountNotFound when the
    company has no flagged accounts; no partial COGS is ever returned.
    """

    def __init__(self, store: LedgerStore, registry: AccountRegistry = None):
        self.store = store
        self.registry = registry or AccountRegistry(store)

    async def generate(
        self,
        company_id: str,
        start_date: Optional[date],
        end_date: date,
        accounts: Optional[WellKnownAccounts] = None,
    ) -> CogsReport:
        """
        Generate COGS report for the specified period.

        Args:
            company_id: Company (tenant) id
            start_date: First day of the period, None for all history
            end_date: Last day of the period (inclusive)
            accounts: Pre-resolved well-known accounts

        Returns:
            CogsReport with every component populated
        """
        if accounts is None:
            accounts = await self.registry.resolve_well_known(company_id)
        inventory = accounts.inventory_account

        report = CogsReport(
            company_id=company_id,
            start_date=start_date,
            end_date=end_date,
            inventory_account_id=str(inventory.id),
            inventory_account_code=inventory.code,
            inventory_account_name=inventory.name,
        )

        async def inventory_sum(**criteria):
            return await self.store.sum_postings(PostingFilter(
                company_id=company_id,
                account_ids=[inventory.id],
                **criteria,
            ))

        # 1. Beginning inventory
        if start_date is not None:
            debit, credit = await inventory_sum(date_before=start_date)
            report.beginning_inventory = signed_balance(inventory.type, debit, credit)

        period = dict(date_from=start_date, date_to=end_date)

        # 2-4. Purchases and freight
        debit, credit = await inventory_sum(
            is_purchase=True, is_purchase_cost=False, positive_debit=True, **period
        )
        report.purchases = debit - credit
        debit, credit = await inventory_sum(is_purchase_cost=True, positive_debit=True, **period)
        report.freight = debit - credit
        report.total_purchases = report.purchases + report.freight

        # 5. Returns and discounts reduce purchases
        debit, credit = await inventory_sum(is_return=True, **period)
        report.purchase_returns = credit - debit
        debit, credit = await inventory_sum(is_discount=True, **period)
        report.purchase_discounts = credit - debit
        report.total_purchase_discounts = report.purchase_returns + report.purchase_discounts

        # 6. Net purchases
        report.net_purchases = report.total_purchases - report.total_purchase_discounts

        # 7. Ending inventory (through the end day)
        debit, credit = await inventory_sum(date_to=end_date)
        report.ending_inventory = signed_balance(inventory.type, debit, credit)

        # 8. Goods available
        report.goods_available = report.beginning_inventory + report.net_purchases

        # 9. Stock opname adjustment across every flagged account. Only
        # closings of earlier periods count; this period's own closing
        # lands on the end day and would zero the adjustment.
        for account in accounts.stock_opname_accounts:
            debit, credit = await self.store.sum_postings(PostingFilter(
                company_id=company_id,
                account_ids=[account.id],
                date_to=end_date,
                is_closing_entry=False,
            ))
            if start_date is not None:
                closed_debit, closed_credit = await self.store.sum_postings(PostingFilter(
                    company_id=company_id,
                    account_ids=[account.id],
                    date_before=start_date,
                    is_closing_entry=True,
                ))
                debit += closed_debit
                credit += closed_credit
            report.stock_opname_adjustment += signed_balance(account.type, debit, credit)

        # 10. COGS
        report.cogs = (
            report.goods_available
            - report.ending_inventory
            - report.stock_opname_adjustment
        )

        if report.ending_inventory < 0:
            error = ConsistencyError(
                f"Negative ending inventory {report.ending_inventory} "
                f"for company {company_id} at {end_date}",
                details={"ending_inventory": str(report.ending_inventory)},
            )
            logger.warning(error.message)
            report.warnings.append(error.to_dict())

        return report
