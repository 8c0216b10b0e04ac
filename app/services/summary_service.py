"""
app/services/summary_service.py

Purpose: Spending summaries

- Selects a user's expenses inside the period window (week, month, ytd)
- Computes per-category totals and the grand total
- Renders a WhatsApp-friendly digest of the top categories
- Asks OpenAI for a one-line insight to close the digest
"""

from datetime import datetime
from decimal import Decimal, ROUND_DOWN, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Optional, Tuple

from openai import AsyncOpenAI, OpenAIError

from app.core.config import settings
from app.core.exceptions import SummaryGenerationError
from app.core.logging import get_logger, LogContext
from app.models.expense import UNCATEGORIZED
from app.schemas.summary import SpendingSummary
from app.services.expense_service import get_expenses_by_user
from utils.constants import (
    DEFAULT_INSIGHT,
    NO_EXPENSES_MESSAGE,
    SUMMARY_CLOSING,
    TOP_CATEGORY_COUNT,
)
from utils.time_utils import PERIOD_LABELS, get_period_start

logger = get_logger(__name__)

CENT = Decimal("0.01")
TENTH = Decimal("0.1")

INSIGHT_PROMPT = """You are a friendly financial assistant. Here is the user's spending breakdown for the {period_label}:
Total spend: {total} {currency}
Category breakdown: {breakdown}

Write ONE short, friendly insight or recommendation (max 2 sentences) about this spending.
Plain text, no greeting, no table."""


def aggregate_by_category(expenses: Iterable[Dict[str, Any]]) -> Tuple[Dict[str, float], float]:
    """
    Sums expense amounts per category.

    Missing categories fold into "Uncategorized". Each category total is
    rounded to cents and the grand total is the sum of those rounded
    totals, so the breakdown always adds up to the total.

    Returns:
        (category_breakdown, total_spend)
    """
    totals: Dict[str, Decimal] = {}
    for expense in expenses:
        category = expense.get("category") or UNCATEGORIZED
        amount = Decimal(str(expense.get("amount") or 0))
        totals[category] = totals.get(category, Decimal("0")) + amount

    rounded = {
        category: amount.quantize(CENT, rounding=ROUND_HALF_UP)
        for category, amount in totals.items()
    }
    total = sum(rounded.values(), Decimal("0"))
    return {category: float(amount) for category, amount in rounded.items()}, float(total)


def rank_categories(breakdown: Dict[str, float]) -> List[Tuple[str, float]]:
    return sorted(breakdown.items(), key=lambda item: item[1], reverse=True)


def percentage_of_total(amount: float, total: float) -> float:
    """
    Share of the total in percent, truncated to one decimal place so the
    listed shares never add up to more than 100.
    """
    if total <= 0:
        return 0.0
    share = Decimal(str(amount)) / Decimal(str(total)) * 100
    return float(share.quantize(TENTH, rounding=ROUND_DOWN))


def format_summary_table(
    breakdown: Dict[str, float],
    total: float,
    period: str,
    insight: str,
) -> str:
    """Renders the WhatsApp digest for a non-empty breakdown."""
    period_label = PERIOD_LABELS[period]
    rows = []
    for category, amount in rank_categories(breakdown)[:TOP_CATEGORY_COUNT]:
        pct = percentage_of_total(amount, total)
        rows.append(f"{category[:14]:<14} {amount:>10.2f} {pct:>5.1f}%")

    table = "\n".join(
        [
            f"{'Category':<14} {'Amount':>10} {'%':>6}",
            "-" * 33,
            *rows,
            "-" * 33,
            f"{'Total':<14} {total:>10.2f}  100%",
        ]
    )

    return (
        "*Hey there! 🌟*\n\n"
        f"*Your {period_label} spending summary:*\n"
        f"```\n{table}\n```\n\n"
        f"{insight}\n\n"
        f"{SUMMARY_CLOSING}"
    )


class SummaryGenerator:
    """Builds period spending summaries for a user."""

    def __init__(self, client: Optional[AsyncOpenAI] = None, model: Optional[str] = None):
        self._client = client
        self.model = model or settings.OPENAI_SUMMARY_MODEL

    @property
    def insights_enabled(self) -> bool:
        return self._client is not None or bool(settings.OPENAI_API_KEY)

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=settings.OPENAI_API_KEY,
                timeout=settings.OPENAI_TIMEOUT,
            )
        return self._client

    async def generate_insight(
        self,
        breakdown: Dict[str, float],
        total: float,
        currency: str,
        period: str,
    ) -> str:
        """
        Asks the language model for a short insight on the breakdown.

        Raises:
            SummaryGenerationError: If the model call fails
        """
        if not self.insights_enabled:
            return DEFAULT_INSIGHT

        prompt = INSIGHT_PROMPT.format(
            period_label=PERIOD_LABELS[period],
            total=f"{total:.2f}",
            currency=currency,
            breakdown=", ".join(f"{c}: {a:.2f}" for c, a in rank_categories(breakdown)),
        )

        try:
            completion = await self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=120,
                temperature=0.7,
            )
        except OpenAIError as e:
            logger.error(f"Insight generation failed: {e}")
            raise SummaryGenerationError("Could not generate summary insight", details=str(e)) from e

        insight = (completion.choices[0].message.content or "").strip()
        return insight or DEFAULT_INSIGHT

    async def summarize(
        self,
        user_id: str,
        period: str,
        now: Optional[datetime] = None,
    ) -> SpendingSummary:
        """
        Summarizes a user's spending for a period.

        Args:
            user_id: User id
            period: week, month or ytd
            now: Reference time (defaults to utcnow)

        Returns:
            SpendingSummary; zero-valued with a canned narrative when the
            user has no expenses in the window
        """
        with LogContext(user_id=user_id, period=period):
            window_start = get_period_start(period, now)
            expenses = await get_expenses_by_user(user_id, since=window_start)
            currency = settings.DEFAULT_CURRENCY

            if not expenses:
                logger.info("No expenses in period")
                return SpendingSummary(
                    total_spend=0.0,
                    category_breakdown={},
                    currency=currency,
                    period=period,
                    narrative=NO_EXPENSES_MESSAGE.format(period_label=PERIOD_LABELS[period]),
                )

            breakdown, total = aggregate_by_category(expenses)
            insight = await self.generate_insight(breakdown, total, currency, period)
            narrative = format_summary_table(breakdown, total, period, insight)

            logger.info(f"Summary built: {len(expenses)} expenses, total {total:.2f} {currency}")
            return SpendingSummary(
                total_spend=total,
                category_breakdown=breakdown,
                currency=currency,
                period=period,
                narrative=narrative,
                expense_count=len(expenses),
            )

    async def close(self):
        if self._client is not None:
            await self._client.close()
            self._client = None


_summary_generator: Optional[SummaryGenerator] = None


def get_summary_generator() -> SummaryGenerator:
    global _summary_generator
    if _summary_generator is None:
        _summary_generator = SummaryGenerator()
    return _summary_generator


async def close_summary_generator():
    if _summary_generator is not None:
        await _summary_generator.close()
