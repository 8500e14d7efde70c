"""Prompt construction for the finance assistant."""
from typing import Optional

from .aggregator import format_amount
from .models import FinancialSummary
from financeai.records.models import CATEGORY_NAMES

TRANSACTION_MARKER = "TRANSACTION_DATA:"

INSIGHTS_SYSTEM_PROMPT = (
    "You are a helpful financial advisor AI. Provide clear, actionable advice based on the "
    "financial data provided. Be encouraging but honest about areas that need improvement. "
    "Format your response in a clear, easy-to-read manner with bullet points and sections "
    "where appropriate."
)


def _quoted_categories() -> str:
    return ", ".join(f'"{name}"' for name in CATEGORY_NAMES)


CHAT_SYSTEM_PROMPT = f"""You are a helpful finance assistant that helps users add transactions to their finance tracker.

Your job is to:
1. Parse user messages to extract transaction information
2. Ask clarifying questions if information is missing
3. Provide a friendly response
4. If you can extract a complete transaction, format it as JSON

For a complete transaction, you need:
- amount (number)
- description (string)
- category (one of: {_quoted_categories()})
- type ("income" or "expense")
- date (YYYY-MM-DD format, default to today if not specified)

If you can extract a complete transaction, end your response with:
{TRANSACTION_MARKER} {{json object}}

Examples:
- "I spent $25 on lunch" → expense, amount: 25, category: "Food & Dining"
- "Got paid $500 for freelance work" → income, amount: 500, category: "Freelance"
- "Paid electricity bill $120" → expense, amount: 120, category: "Bills & Utilities"

Be conversational and helpful. If information is missing, ask for it naturally."""


class PromptBuilder:
    """Renders financial summaries into model prompts."""

    def render_summary(self, summary: FinancialSummary) -> str:
        """Render the summary block shared by every insight prompt."""
        breakdown = "\n".join(
            f"- {category}: ${format_amount(amount)}"
            for category, amount in summary.category_totals.items()
        )
        recent = "\n".join(summary.recent)

        return f"""
Financial Summary:
- Total Income: ${format_amount(summary.total_income)}
- Total Expenses: ${format_amount(summary.total_expenses)}
- Net Balance: ${format_amount(summary.net_balance)}
- Number of Transactions: {summary.transaction_count}

Expense Breakdown by Category:
{breakdown}

Recent Transactions:
{recent}
"""

    def build(self, summary: FinancialSummary, question: Optional[str] = None) -> str:
        """
        Build the insight prompt.

        Args:
            summary: Aggregated financial data
            question: Optional user question; blank questions count as none

        Returns:
            Prompt text
        """
        financial_summary = self.render_summary(summary)

        if question and question.strip():
            return (
                f'Based on this financial data, please answer the following question: '
                f'"{question.strip()}"\n\n{financial_summary}'
            )

        return (
            "Please analyze this financial data and provide insights, recommendations, and "
            "observations about spending patterns, financial health, and areas for improvement:"
            f"\n\n{financial_summary}"
        )
