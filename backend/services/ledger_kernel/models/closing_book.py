"""
Closing Book Models

Status flow:
- DRAFT:    created, no closing postings yet
- RELEASED: closing postings generated; regeneration keeps it RELEASED
"""
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Dict, List, Tuple
from uuid import UUID, uuid4

from ..constants import ClosingBookStatus, CashflowCategory


@dataclass
class CashflowSetting:
    """Cash-flow sub-group names listed under each statement section"""
    operating: List[str] = field(default_factory=list)
    investing: List[str] = field(default_factory=list)
    financing: List[str] = field(default_factory=list)

    def categories(self) -> List[Tuple[CashflowCategory, List[str]]]:
        return [
            (CashflowCategory.OPERATING, self.operating),
            (CashflowCategory.INVESTING, self.investing),
            (CashflowCategory.FINANCING, self.financing),
        ]

    def to_dict(self) -> dict:
        return {
            "operating": list(self.operating),
            "investing": list(self.investing),
            "financing": list(self.financing),
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "CashflowSetting":
        return cls(
            operating=list(data.get("operating", [])),
            investing=list(data.get("investing", [])),
            financing=list(data.get("financing", [])),
        )


@dataclass
class ClosingSettings:
    """Input for generating a closing book"""
    income_summary_account_id: Optional[UUID]
    retained_earnings_account_id: Optional[UUID]
    cashflow: Optional[CashflowSetting] = None
    tax_expense_account_id: Optional[UUID] = None
    tax_payable_account_id: Optional[UUID] = None
    tax_percentage: Decimal = Decimal("0")
    user_id: Optional[str] = None
    description: Optional[str] = None

    @property
    def has_tax(self) -> bool:
        return self.tax_percentage > 0


@dataclass
class ClosingSummary:
    """Totals stored on a released closing book"""
    total_income: Decimal = Decimal("0")
    total_expense: Decimal = Decimal("0")
    income_tax: Decimal = Decimal("0")
    tax_percentage: Decimal = Decimal("0")
    net_income: Decimal = Decimal("0")
    income_summary_account_id: Optional[UUID] = None
    retained_earnings_account_id: Optional[UUID] = None
    tax_expense_account_id: Optional[UUID] = None
    tax_payable_account_id: Optional[UUID] = None

    def to_dict(self) -> dict:
        def _id(value):
            return str(value) if value else None

        return {
            "total_income": str(self.total_income),
            "total_expense": str(self.total_expense),
            "income_tax": str(self.income_tax),
            "tax_percentage": str(self.tax_percentage),
            "net_income": str(self.net_income),
            "income_summary_account_id": _id(self.income_summary_account_id),
            "retained_earnings_account_id": _id(self.retained_earnings_account_id),
            "tax_expense_account_id": _id(self.tax_expense_account_id),
            "tax_payable_account_id": _id(self.tax_payable_account_id),
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "ClosingSummary":
        def _id(value):
            return UUID(value) if value else None

        return cls(
            total_income=Decimal(data.get("total_income", "0")),
            total_expense=Decimal(data.get("total_expense", "0")),
            income_tax=Decimal(data.get("income_tax", "0")),
            tax_percentage=Decimal(data.get("tax_percentage", "0")),
            net_income=Decimal(data.get("net_income", "0")),
            income_summary_account_id=_id(data.get("income_summary_account_id")),
            retained_earnings_account_id=_id(data.get("retained_earnings_account_id")),
            tax_expense_account_id=_id(data.get("tax_expense_account_id")),
            tax_payable_account_id=_id(data.get("tax_payable_account_id")),
        )


@dataclass
class ClosingBook:
    """One closing period for a company"""
    company_id: str
    start_date: date
    end_date: date
    id: UUID = field(default_factory=uuid4)
    status: ClosingBookStatus = ClosingBookStatus.DRAFT
    description: Optional[str] = None
    user_id: Optional[str] = None

    summary: Optional[ClosingSummary] = None
    cashflow_setting: Optional[CashflowSetting] = None

    # Frozen report snapshots (report.to_dict() output)
    profit_loss: Optional[Dict] = None
    balance_sheet: Optional[Dict] = None
    trial_balance: Optional[Dict] = None
    capital_change: Optional[Dict] = None
    cash_flow: Optional[Dict] = None
    postings: Optional[List[Dict]] = None

    released_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_released(self) -> bool:
        return self.status == ClosingBookStatus.RELEASED

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "company_id": self.company_id,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "status": self.status.value,
            "description": self.description,
            "user_id": self.user_id,
            "summary": self.summary.to_dict() if self.summary else None,
            "cashflow_setting": self.cashflow_setting.to_dict() if self.cashflow_setting else None,
            "profit_loss": self.profit_loss,
            "balance_sheet": self.balance_sheet,
            "trial_balance": self.trial_balance,
            "capital_change": self.capital_change,
            "cash_flow": self.cash_flow,
            "postings": self.postings,
            "released_at": self.released_at.isoformat() if self.released_at else None,
        }
