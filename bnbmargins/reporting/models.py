"""Report request and aggregated context types."""
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

PLACEHOLDER_OCCUPANCY = 75.0
PLACEHOLDER_RATING = 4.5
PLACEHOLDER_REVIEWS = 0


class ReportType(str, Enum):
    FINANCIAL = "financial"
    PERFORMANCE = "performance"
    TAX = "tax"
    CUSTOM = "custom"


class ReportFormat(str, Enum):
    PDF = "pdf"
    EXCEL = "excel"
    CSV = "csv"


FORMAT_EXTENSIONS = {
    ReportFormat.PDF: "pdf",
    ReportFormat.EXCEL: "xlsx",
    ReportFormat.CSV: "csv",
}

FORMAT_MEDIA_TYPES = {
    ReportFormat.PDF: "application/pdf",
    ReportFormat.EXCEL: "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ReportFormat.CSV: "text/csv; charset=utf-8",
}


class ReportDescriptor(BaseModel):
    """What to report on and how to render it. Never persisted."""
    type: ReportType = ReportType.FINANCIAL
    format: ReportFormat = ReportFormat.PDF
    title: str = Field(..., min_length=1, max_length=200)
    date_from: Optional[dt.date] = None
    date_to: Optional[dt.date] = None
    properties: List[str] = Field(default_factory=list)
    include_charts: bool = False
    include_transactions: bool = False
    include_comparisons: bool = False

    @property
    def has_period(self) -> bool:
        return self.date_from is not None or self.date_to is not None


@dataclass
class TransactionRow:
    date: str
    property_name: str
    type: str
    category: str
    amount: float
    description: str = ""
    id: Optional[str] = None

    @property
    def is_income(self) -> bool:
        return self.type == "income"


@dataclass
class PropertyRow:
    name: str
    revenue: float = 0.0
    expenses: float = 0.0
    occupancy_rate: float = PLACEHOLDER_OCCUPANCY
    avg_rating: float = PLACEHOLDER_RATING
    total_reviews: int = PLACEHOLDER_REVIEWS
    id: Optional[str] = None

    @property
    def net_profit(self) -> float:
        return self.revenue - self.expenses

    @property
    def profit_margin(self) -> float:
        if not self.revenue:
            return 0.0
        return round(self.net_profit / self.revenue * 100, 2)

    @property
    def performance_score(self) -> float:
        """Weighted blend of occupancy, rating and margin."""
        return round(
            self.occupancy_rate * 0.4 + self.avg_rating * 20 * 0.3 + self.profit_margin * 0.3, 1
        )


@dataclass
class MonthlyBucket:
    month: str
    property_name: str
    income: float = 0.0
    expenses: float = 0.0

    @property
    def profit(self) -> float:
        return self.income - self.expenses


@dataclass
class Summary:
    total_income: float = 0.0
    total_expenses: float = 0.0
    net_profit: float = 0.0
    profit_margin: float = 0.0


@dataclass
class TaxCategory:
    name: str
    amount: float
    deductible: bool
    description: str = ""


@dataclass
class ComparisonMetric:
    metric: str
    current: float
    previous: float
    change: float

    @property
    def favorable(self) -> bool:
        """Expense decreases count as favorable; everything else must grow."""
        if self.metric.lower() == "expenses":
            return self.change <= 0
        return self.change >= 0


@dataclass
class ReportContext:
    descriptor: ReportDescriptor
    summary: Summary
    transactions: List[TransactionRow] = field(default_factory=list)
    properties: List[PropertyRow] = field(default_factory=list)
    monthly: List[MonthlyBucket] = field(default_factory=list)
    tax_categories: List[TaxCategory] = field(default_factory=list)
    comparison: List[ComparisonMetric] = field(default_factory=list)
    no_data: bool = False
    used_sample_data: bool = False
    generated_at: dt.datetime = field(default_factory=dt.datetime.now)

    @property
    def deductible_total(self) -> float:
        return sum(item.amount for item in self.tax_categories if item.deductible)
