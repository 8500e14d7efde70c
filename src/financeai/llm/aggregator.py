"""Transaction aggregation module."""
from collections import defaultdict
from datetime import date
from decimal import Decimal, ROUND_HALF_UP, localcontext
from typing import Dict, List, Optional, Sequence

from .models import BudgetLine, FinancialSummary
from financeai.records.models import Transaction, TransactionType
from financeai.utils.logger import get_logger

logger = get_logger()

CENTS = Decimal("0.01")
RECENT_LIMIT = 10


def format_amount(amount: Decimal) -> str:
    """Render an amount with two decimals, rounding half up."""
    amount = Decimal(amount)
    with localcontext() as ctx:
        # quantize needs room for every integer digit plus the cents
        ctx.prec = max(ctx.prec, amount.adjusted() + 3)
        return str(amount.quantize(CENTS, rounding=ROUND_HALF_UP))


def describe(transaction: Transaction) -> str:
    """One-line rendering used in summaries and prompts."""
    return (
        f"{transaction.type.value}: ${format_amount(transaction.amount)} - "
        f"{transaction.description} ({transaction.category.value})"
    )


class Aggregator:
    """Aggregates transactions into totals and category breakdowns."""

    def __init__(self, recent_limit: int = RECENT_LIMIT, budget_limits: Optional[Dict[str, float]] = None,
                 top_categories: int = 5):
        self.recent_limit = recent_limit
        self.budget_limits = {
            category: Decimal(str(limit)) for category, limit in (budget_limits or {}).items()
        }
        self.top_categories = top_categories

    def summarize(self, transactions: Sequence[Transaction]) -> FinancialSummary:
        """
        Summarize transactions for display and prompting.

        Args:
            transactions: Transactions, most recent first

        Returns:
            FinancialSummary object
        """
        total_income = Decimal("0")
        total_expenses = Decimal("0")
        totals = defaultdict(Decimal)

        for txn in transactions:
            if txn.type == TransactionType.INCOME:
                total_income += txn.amount
            else:
                total_expenses += txn.amount
                totals[txn.category.value] += txn.amount

        recent = [describe(txn) for txn in list(transactions)[:self.recent_limit]]

        logger.debug(
            f"Summarized {len(transactions)} transactions into {len(totals)} expense categories"
        )

        return FinancialSummary(
            total_income=total_income,
            total_expenses=total_expenses,
            net_balance=total_income - total_expenses,
            transaction_count=len(transactions),
            category_totals=dict(totals),
            recent=recent
        )

    def budget_overview(self, transactions: Sequence[Transaction], today: Optional[date] = None) -> List[BudgetLine]:
        """
        Compare this month's spending per category with its budget.

        Categories without a configured limit get one 20% above their
        spending. Only the biggest categories are returned.

        Args:
            transactions: Transactions to consider
            today: Reference date for the current month

        Returns:
            BudgetLine list, highest spending first
        """
        today = today or date.today()

        spending = defaultdict(Decimal)
        for txn in transactions:
            if (txn.type == TransactionType.EXPENSE
                    and txn.date.year == today.year
                    and txn.date.month == today.month):
                spending[txn.category.value] += txn.amount

        ranked = sorted(spending.items(), key=lambda item: item[1], reverse=True)

        lines = []
        for category, spent in ranked[:self.top_categories]:
            limit = self.budget_limits.get(category, spent * Decimal("1.2"))
            percentage = min(float(spent / limit * 100), 100.0) if limit else 100.0
            lines.append(BudgetLine(
                category=category,
                spent=spent,
                limit=limit,
                percentage=percentage,
                over_budget=spent > limit
            ))

        return lines
