"""Data models for transaction records."""
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Dict


class Category(str, Enum):
    """Fixed set of transaction categories."""
    FOOD_AND_DINING = "Food & Dining"
    TRANSPORTATION = "Transportation"
    SHOPPING = "Shopping"
    ENTERTAINMENT = "Entertainment"
    BILLS_AND_UTILITIES = "Bills & Utilities"
    HEALTHCARE = "Healthcare"
    EDUCATION = "Education"
    TRAVEL = "Travel"
    SALARY = "Salary"
    FREELANCE = "Freelance"
    INVESTMENT = "Investment"
    OTHER = "Other"


class TransactionType(str, Enum):
    """Direction of a transaction."""
    INCOME = "income"
    EXPENSE = "expense"


CATEGORY_NAMES = [category.value for category in Category]

# Largest amount accepted from forms or the assistant
MAX_AMOUNT = Decimal("1000000000000")


@dataclass(frozen=True)
class NewTransaction:
    """Transaction candidate before it is stored."""
    amount: Decimal
    description: str
    category: Category
    type: TransactionType
    date: date = field(default_factory=date.today)


@dataclass(frozen=True)
class Transaction:
    """Stored transaction owned by one user."""
    id: str
    amount: Decimal
    description: str
    category: Category
    type: TransactionType
    date: date
    owner: str

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for persistence."""
        return {
            "id": self.id,
            "amount": str(self.amount),
            "description": self.description,
            "category": self.category.value,
            "type": self.type.value,
            "date": self.date.isoformat(),
            "owner": self.owner,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Transaction":
        """Deserialize a persisted record."""
        return cls(
            id=str(data["id"]),
            amount=Decimal(str(data["amount"])),
            description=data["description"],
            category=Category(data["category"]),
            type=TransactionType(data["type"]),
            date=date.fromisoformat(data["date"]),
            owner=data["owner"],
        )
