"""LLM processing module."""
from .models import FinancialSummary, BudgetLine, Extraction, ExtractionState, ChatReply
from .aggregator import Aggregator
from .prompts import PromptBuilder, TRANSACTION_MARKER
from .extractor import ResponseExtractor
from .streaming import InsightStream
from .assistant import FinanceAssistant

__all__ = [
    "FinancialSummary",
    "BudgetLine",
    "Extraction",
    "ExtractionState",
    "ChatReply",
    "Aggregator",
    "PromptBuilder",
    "TRANSACTION_MARKER",
    "ResponseExtractor",
    "InsightStream",
    "FinanceAssistant",
]
