"""Finance assistant backed by Gemini through the native Google AI SDK."""
from typing import AsyncIterator, Callable, Optional, Sequence

from google import genai
from google.genai import types

from .aggregator import Aggregator
from .extractor import ResponseExtractor
from .models import ChatReply, ExtractionState
from .prompts import CHAT_SYSTEM_PROMPT, INSIGHTS_SYSTEM_PROMPT, PromptBuilder
from .streaming import InsightStream
from financeai.config.settings import get_settings
from financeai.records.models import Transaction
from financeai.utils.logger import get_logger
from financeai.utils.exceptions import LLMError, ValidationError

logger = get_logger()

TRANSACTION_ADDED_NOTE = "\n\n✅ Transaction added successfully!"
TRANSACTION_DROPPED_NOTE = (
    "\n\nI understood your message but couldn't extract complete transaction details."
)


class FinanceAssistant:
    """Answers finance questions and turns chat messages into transactions."""

    def __init__(self, api_key: Optional[str] = None, model_name: Optional[str] = None,
                 client=None, aggregator: Optional[Aggregator] = None,
                 notify_dropped_transaction: Optional[bool] = None):
        """
        Initialize the assistant.

        Args:
            api_key: Google AI API key, used when no client is given
            model_name: Gemini model; defaults to the configured one
            client: Pre-built genai client (tests pass a fake)
            aggregator: Aggregator used to summarize transactions for prompts
            notify_dropped_transaction: Tell the user when a payload was unusable
        """
        settings = get_settings()
        self.client = client or genai.Client(api_key=api_key)
        self.model_name = model_name or settings.llm_model_name
        self.aggregator = aggregator or Aggregator(recent_limit=settings.llm_recent_transactions)
        self.prompt_builder = PromptBuilder()
        self.extractor = ResponseExtractor()
        if notify_dropped_transaction is None:
            notify_dropped_transaction = settings.llm_notify_dropped_transaction
        self.notify_dropped_transaction = notify_dropped_transaction

        logger.info(f"Finance assistant initialized with {self.model_name}")

    async def chat(self, message: str) -> ChatReply:
        """
        Ask the model to read a transaction out of a chat message.

        Args:
            message: Free-form user text

        Returns:
            ChatReply with the narrative and, when extracted, the transaction
        """
        if not message or not message.strip():
            raise ValidationError("Message is empty")

        try:
            response = await self.client.aio.models.generate_content(
                model=self.model_name,
                contents=message.strip(),
                config=types.GenerateContentConfig(system_instruction=CHAT_SYSTEM_PROMPT)
            )
        except Exception as e:
            logger.error(f"Chat request failed: {e}")
            raise LLMError(f"Failed to get chat response: {e}")

        if not response.text:
            raise LLMError("Model returned empty response")

        extraction = self.extractor.extract(response.text)
        reply = extraction.narrative

        if extraction.state == ExtractionState.PAYLOAD_VALID:
            reply += TRANSACTION_ADDED_NOTE
        elif extraction.state == ExtractionState.PAYLOAD_INVALID and self.notify_dropped_transaction:
            reply += TRANSACTION_DROPPED_NOTE

        return ChatReply(response=reply, transaction=extraction.transaction)

    async def stream_insights(self, transactions: Sequence[Transaction], question: Optional[str] = None,
                              on_close: Optional[Callable[[], None]] = None) -> InsightStream:
        """
        Start streaming an analysis of the given transactions.

        Args:
            transactions: Transactions to analyze, most recent first
            question: Optional specific question to answer
            on_close: Called once when the stream ends or is cancelled

        Returns:
            InsightStream of text increments
        """
        summary = self.aggregator.summarize(transactions)
        prompt = self.prompt_builder.build(summary, question)

        try:
            source = await self.client.aio.models.generate_content_stream(
                model=self.model_name,
                contents=prompt,
                config=types.GenerateContentConfig(system_instruction=INSIGHTS_SYSTEM_PROMPT)
            )
        except Exception as e:
            logger.error(f"Insight request failed: {e}")
            raise LLMError(f"Failed to start insight stream: {e}")

        logger.info(
            f"Streaming insights for {summary.transaction_count} transactions"
            f"{' with question' if question and question.strip() else ''}"
        )
        return InsightStream(self._texts(source), on_close=on_close)

    @staticmethod
    async def _texts(source) -> AsyncIterator[str]:
        async for chunk in source:
            if chunk.text:
                yield chunk.text
