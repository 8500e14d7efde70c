"""FinanceAI: personal finance tracking with an LLM assistant."""

__version__ = "0.1.0"
