"""Interactive finance session for a single user."""
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date
from typing import Callable, Dict, List, Optional, Set, Tuple

from financeai.llm.aggregator import Aggregator
from financeai.llm.assistant import FinanceAssistant
from financeai.llm.models import BudgetLine, ChatReply, FinancialSummary
from financeai.llm.streaming import InsightStream
from financeai.records.models import NewTransaction, Transaction
from financeai.records.store import RecordStore
from financeai.utils.logger import get_logger, set_user_context
from financeai.utils.exceptions import FinanceAIError, RequestInFlightError, ValidationError

logger = get_logger()

CHAT_FAILURE_MESSAGE = "Sorry, I couldn't process your message. Please try again."
NO_TRANSACTIONS_MESSAGE = "Add some transactions first to get AI insights about your finances."


@dataclass
class ChatOutcome:
    """Chat reply plus the transaction it stored, if any."""
    reply: ChatReply
    stored: Optional[Transaction] = None


class FinanceSession:
    """Mediates one user's actions between the store and the assistant.

    Each action ("chat", "insights") may have one request in flight; a second
    submission while the first is pending raises RequestInFlightError.
    """

    def __init__(self, user_id: str, store: RecordStore, assistant: FinanceAssistant,
                 aggregator: Optional[Aggregator] = None,
                 on_idle: Optional[Callable[["FinanceSession"], None]] = None):
        self.user_id = user_id
        self.store = store
        self.assistant = assistant
        self.aggregator = aggregator or Aggregator()
        self.on_idle = on_idle
        self.closed = False
        self._in_flight: Set[str] = set()
        self._streams: List[InsightStream] = []
        self._summary: Optional[FinancialSummary] = None
        self._unsubscribe = store.subscribe(self._on_records_changed)

    def transactions(self) -> Tuple[Transaction, ...]:
        return self.store.list(self.user_id)

    def add_transaction(self, candidate: NewTransaction) -> Transaction:
        set_user_context(self.user_id)
        return self.store.insert(self.user_id, candidate)

    def delete_transaction(self, transaction_id: str) -> bool:
        set_user_context(self.user_id)
        return self.store.delete(self.user_id, transaction_id)

    def summary(self) -> FinancialSummary:
        """Summary of the user's records, recomputed only after changes."""
        if self._summary is None:
            self._summary = self.aggregator.summarize(self.transactions())
        return self._summary

    def budget_overview(self, today: Optional[date] = None) -> List[BudgetLine]:
        return self.aggregator.budget_overview(self.transactions(), today)

    def is_busy(self, action: str) -> bool:
        return action in self._in_flight

    def is_idle(self) -> bool:
        """True when no action is pending and no insight stream is open."""
        return not self._in_flight and not self._streams

    async def chat(self, message: str) -> ChatOutcome:
        """
        Send a chat message and store the transaction it describes.

        Model failures degrade to an apology reply with nothing stored.
        """
        set_user_context(self.user_id)
        with self._action("chat"):
            try:
                reply = await self.assistant.chat(message)
            except ValidationError:
                raise
            except FinanceAIError as e:
                logger.error(f"Error sending message: {e}")
                return ChatOutcome(reply=ChatReply(response=CHAT_FAILURE_MESSAGE))

            stored = None
            if reply.transaction is not None:
                stored = self.store.insert(self.user_id, reply.transaction)

            return ChatOutcome(reply=reply, stored=stored)

    async def insights(self, question: Optional[str] = None) -> InsightStream:
        """
        Start an insight stream over the user's records.

        The "insights" action stays busy until the stream ends or is cancelled.
        """
        set_user_context(self.user_id)
        transactions = self.transactions()
        if not transactions:
            raise ValidationError(NO_TRANSACTIONS_MESSAGE)

        self._begin("insights")
        stream: Optional[InsightStream] = None

        def release():
            if stream in self._streams:
                self._streams.remove(stream)
            self._end("insights")

        try:
            stream = await self.assistant.stream_insights(transactions, question, on_close=release)
        except BaseException:
            self._end("insights")
            raise

        self._streams.append(stream)
        return stream

    def close(self) -> None:
        """Tear the session down; open streams stop delivering text."""
        if self.closed:
            return
        self.closed = True
        for stream in list(self._streams):
            stream.cancel()
        self._streams.clear()
        self._unsubscribe()

    @contextmanager
    def _action(self, action: str):
        self._begin(action)
        try:
            yield
        finally:
            self._end(action)

    def _begin(self, action: str) -> None:
        if action in self._in_flight:
            logger.warning(f"Rejected duplicate '{action}' request")
            raise RequestInFlightError(action)
        self._in_flight.add(action)

    def _end(self, action: str) -> None:
        self._in_flight.discard(action)
        if self.on_idle and not self.closed and self.is_idle():
            self.on_idle(self)

    def _on_records_changed(self, user_id: str, records: Tuple[Transaction, ...]) -> None:
        if user_id == self.user_id:
            self._summary = None


class SessionRegistry:
    """Keeps one FinanceSession per active user.

    Requests hold a session between acquire() and release(). A session with
    no holder, no pending action and no open stream is ended, and the
    user's records are dropped from the store's memory.
    """

    def __init__(self, store: RecordStore, assistant: FinanceAssistant, aggregator: Optional[Aggregator] = None):
        self.store = store
        self.assistant = assistant
        self.aggregator = aggregator
        self._sessions: Dict[str, FinanceSession] = {}
        self._holders: Dict[str, int] = {}

    def __contains__(self, user_id: str) -> bool:
        return user_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, user_id: str) -> FinanceSession:
        if user_id not in self._sessions:
            self._sessions[user_id] = FinanceSession(
                user_id, self.store, self.assistant, self.aggregator, on_idle=self._on_idle
            )
        return self._sessions[user_id]

    def acquire(self, user_id: str) -> FinanceSession:
        """Get the user's session and hold it until release()."""
        session = self.get(user_id)
        self._holders[user_id] = self._holders.get(user_id, 0) + 1
        return session

    def release(self, user_id: str) -> None:
        holders = self._holders.get(user_id, 0) - 1
        if holders > 0:
            self._holders[user_id] = holders
            return
        self._holders.pop(user_id, None)
        session = self._sessions.get(user_id)
        if session and session.is_idle():
            self.end(user_id)

    def end(self, user_id: str) -> None:
        session = self._sessions.pop(user_id, None)
        self._holders.pop(user_id, None)
        if session:
            session.close()
            self.store.evict(user_id)
            logger.debug(f"Ended session for {user_id}")

    def close_all(self) -> None:
        for user_id in list(self._sessions):
            self.end(user_id)

    def _on_idle(self, session: FinanceSession) -> None:
        user_id = session.user_id
        if self._sessions.get(user_id) is session and not self._holders.get(user_id):
            self.end(user_id)
