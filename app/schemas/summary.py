from typing import Dict, Optional

from pydantic import BaseModel, Field


class SpendingData(BaseModel):
    totalSpend: float
    categoryBreakdown: Dict[str, float]
    currency: str
    period: str


class SpendingSummary(BaseModel):
    """
    Result of aggregating a user's expenses over one period window.
    """
    total_spend: float = 0.0
    category_breakdown: Dict[str, float] = Field(default_factory=dict)
    currency: str
    period: str
    narrative: str
    expense_count: int = 0

    def to_spending_data(self) -> SpendingData:
        return SpendingData(
            totalSpend=self.total_spend,
            categoryBreakdown=self.category_breakdown,
            currency=self.currency,
            period=self.period,
        )


class SummaryResponse(BaseModel):
    success: bool = True
    summary: str
    spendingData: SpendingData
    messageSid: Optional[str] = None
