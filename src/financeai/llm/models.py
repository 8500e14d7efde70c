"""Data models for summaries and model responses."""
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional

from financeai.records.models import NewTransaction


@dataclass
class FinancialSummary:
    """Aggregated view of a transaction collection."""
    total_income: Decimal
    total_expenses: Decimal
    net_balance: Decimal
    transaction_count: int
    category_totals: Dict[str, Decimal] = field(default_factory=dict)  # expense category -> amount
    recent: List[str] = field(default_factory=list)


@dataclass
class BudgetLine:
    """Current-month spending for one category against its limit."""
    category: str
    spent: Decimal
    limit: Decimal
    percentage: float
    over_budget: bool


class ExtractionState(str, Enum):
    """Outcome of scanning a model response for a transaction payload."""
    NO_MARKER = "no_marker"
    PAYLOAD_VALID = "payload_valid"
    PAYLOAD_INVALID = "payload_invalid"


@dataclass
class Extraction:
    """Narrative text plus the transaction found in a model response."""
    narrative: str
    state: ExtractionState
    transaction: Optional[NewTransaction] = None
    error: Optional[str] = None


@dataclass
class ChatReply:
    """Assistant answer to a chat message."""
    response: str
    transaction: Optional[NewTransaction] = None
