"""Extraction of structured transactions from assistant responses."""
import datetime
import json
import re
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .models import Extraction, ExtractionState
from .prompts import TRANSACTION_MARKER
from financeai.records.models import MAX_AMOUNT, Category, NewTransaction, TransactionType
from financeai.utils.logger import get_logger
from financeai.utils.exceptions import ExtractionError

logger = get_logger()


class TransactionSchema(BaseModel):
    """Pydantic schema for the transaction payload."""
    model_config = ConfigDict(str_strip_whitespace=True)

    amount: Decimal = Field(gt=0, le=MAX_AMOUNT, description="Positive transaction amount")
    description: str = Field(min_length=1, description="Transaction description")
    category: Category = Field(description="Transaction category")
    type: TransactionType = Field(description="income or expense")
    date: Optional[datetime.date] = Field(default=None, description="YYYY-MM-DD, today when missing")


class ResponseExtractor:
    """Splits model output into narrative text and a validated transaction."""

    def __init__(self, marker: str = TRANSACTION_MARKER):
        self.marker = marker

    def extract(self, raw_text: str, today: Optional[datetime.date] = None) -> Extraction:
        """
        Separate narrative from an embedded transaction payload.

        Args:
            raw_text: Full model response
            today: Date used when the payload has none

        Returns:
            Extraction; the transaction is None unless the payload validated
        """
        if self.marker not in raw_text:
            return Extraction(narrative=raw_text.strip(), state=ExtractionState.NO_MARKER)

        narrative, payload = raw_text.split(self.marker, 1)
        narrative = narrative.strip()

        try:
            transaction = self.parse_payload(payload, today)
        except ExtractionError as e:
            logger.warning(f"Dropped transaction from assistant response: {e}")
            logger.debug(f"Payload text: {payload[:500]}")
            return Extraction(
                narrative=narrative,
                state=ExtractionState.PAYLOAD_INVALID,
                error=str(e)
            )

        return Extraction(
            narrative=narrative,
            state=ExtractionState.PAYLOAD_VALID,
            transaction=transaction
        )

    def parse_payload(self, payload: str, today: Optional[datetime.date] = None) -> NewTransaction:
        """Parse and validate the text following the marker."""
        try:
            data = json.loads(self._clean_payload(payload))
        except json.JSONDecodeError as e:
            raise ExtractionError(f"Invalid JSON payload: {e}")

        if not isinstance(data, dict):
            raise ExtractionError(f"Payload must be a JSON object, got {type(data).__name__}")

        try:
            validated = TransactionSchema(**data)
        except ValidationError as e:
            raise ExtractionError(f"Payload does not match transaction schema: {e}")

        return NewTransaction(
            amount=validated.amount,
            description=validated.description,
            category=validated.category,
            type=validated.type,
            date=validated.date or today or datetime.date.today()
        )

    @staticmethod
    def _clean_payload(payload: str) -> str:
        """Undo the usual ways models decorate JSON."""
        cleaned = payload.strip()

        # Remove markdown code fences
        if cleaned.startswith("```"):
            cleaned = re.sub(r"^```(?:json)?", "", cleaned).strip()
        if cleaned.endswith("```"):
            cleaned = cleaned[:-3].strip()

        # Normalize smart quotes to standard double-quote
        cleaned = cleaned.replace("“", '"').replace("”", '"')

        # Remove trailing commas before closing brackets/braces
        cleaned = re.sub(r",\s*([\]}])", r"\1", cleaned)

        # Keep only the JSON object if the model kept talking after it
        json_match = re.search(r"\{.*\}", cleaned, re.DOTALL)
        if json_match:
            cleaned = json_match.group(0)

        return cleaned
