"""Request and response models for the HTTP API."""
import datetime
import uuid
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from financeai.llm.models import BudgetLine, FinancialSummary
from financeai.records.models import MAX_AMOUNT, Category, NewTransaction, Transaction, TransactionType


class TransactionIn(BaseModel):
    """Transaction submitted by the transaction form."""
    model_config = ConfigDict(str_strip_whitespace=True)

    amount: Decimal = Field(gt=0, le=MAX_AMOUNT)
    description: str = Field(min_length=1)
    category: Category
    type: TransactionType = TransactionType.EXPENSE
    date: datetime.date = Field(default_factory=datetime.date.today)

    def to_candidate(self) -> NewTransaction:
        return NewTransaction(
            amount=self.amount,
            description=self.description,
            category=self.category,
            type=self.type,
            date=self.date
        )


class ClientTransaction(TransactionIn):
    """Transaction as held by a client, sent along with insight requests."""
    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    id: Optional[str] = None
    owner: Optional[str] = Field(default=None, alias="userId")

    def to_transaction(self) -> Transaction:
        return Transaction(
            id=self.id or uuid.uuid4().hex,
            amount=self.amount,
            description=self.description,
            category=self.category,
            type=self.type,
            date=self.date,
            owner=self.owner or "anonymous"
        )


class TransactionOut(BaseModel):
    amount: float
    description: str
    category: str
    type: str
    date: str
    id: Optional[str] = None
    owner: Optional[str] = None

    @classmethod
    def from_record(cls, record) -> "TransactionOut":
        """Build from a stored Transaction or an extracted NewTransaction."""
        return cls(
            amount=float(record.amount),
            description=record.description,
            category=record.category.value,
            type=record.type.value,
            date=record.date.isoformat(),
            id=getattr(record, "id", None),
            owner=getattr(record, "owner", None)
        )


class InsightsRequest(BaseModel):
    transactions: List[ClientTransaction] = Field(default_factory=list)
    question: Optional[str] = None


class QuestionRequest(BaseModel):
    question: Optional[str] = None


class ChatRequest(BaseModel):
    message: str = Field(min_length=1)


class ChatResponse(BaseModel):
    response: str
    transaction: Optional[TransactionOut] = None


class DeleteResponse(BaseModel):
    deleted: bool


class SummaryOut(BaseModel):
    total_income: float
    total_expenses: float
    net_balance: float
    transaction_count: int
    category_totals: Dict[str, float]
    recent: List[str]

    @classmethod
    def from_summary(cls, summary: FinancialSummary) -> "SummaryOut":
        return cls(
            total_income=float(summary.total_income),
            total_expenses=float(summary.total_expenses),
            net_balance=float(summary.net_balance),
            transaction_count=summary.transaction_count,
            category_totals={k: float(v) for k, v in summary.category_totals.items()},
            recent=summary.recent
        )


class BudgetLineOut(BaseModel):
    category: str
    spent: float
    limit: float
    percentage: float
    over_budget: bool

    @classmethod
    def from_line(cls, line: BudgetLine) -> "BudgetLineOut":
        return cls(
            category=line.category,
            spent=float(line.spent),
            limit=float(line.limit),
            percentage=line.percentage,
            over_budget=line.over_budget
        )
