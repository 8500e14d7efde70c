"""HTTP API exposing the finance assistant and per-user records."""
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, PlainTextResponse, StreamingResponse

from .schemas import (
    BudgetLineOut,
    ChatRequest,
    ChatResponse,
    DeleteResponse,
    InsightsRequest,
    QuestionRequest,
    SummaryOut,
    TransactionIn,
    TransactionOut,
)
from financeai.config.settings import get_settings
from financeai.llm.aggregator import Aggregator
from financeai.llm.assistant import FinanceAssistant
from financeai.llm.streaming import InsightStream
from financeai.records.store import RecordStore
from financeai.session import FinanceSession, SessionRegistry
from financeai.utils.logger import get_logger, set_user_context
from financeai.utils.exceptions import FinanceAIError, RequestInFlightError, StorageError, ValidationError

logger = get_logger()

CHAT_ERROR_MESSAGE = "Sorry, I'm having trouble processing your request. Please try again."
INSIGHTS_ERROR_MESSAGE = "Error processing request"


def _stream_body(stream: InsightStream):
    """Relay increments to the client; a disconnect cancels the stream."""
    async def body():
        try:
            async for chunk in stream:
                yield chunk
        finally:
            await stream.aclose()

    return body()


def create_app(store: RecordStore, assistant: FinanceAssistant, aggregator: Optional[Aggregator] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        store: Record store shared by all sessions
        assistant: Finance assistant used for chat and insights
        aggregator: Aggregator for summaries and budgets; built from settings when omitted
    """
    settings = get_settings()
    if aggregator is None:
        aggregator = Aggregator(
            recent_limit=settings.llm_recent_transactions,
            budget_limits=settings.budget_limits,
            top_categories=settings.budget_top_categories
        )

    sessions = SessionRegistry(store, assistant, aggregator)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        sessions.close_all()

    app = FastAPI(title=settings.app_name, version=settings.app_version, lifespan=lifespan)
    app.state.sessions = sessions
    app.state.assistant = assistant

    async def get_session(user_id: str, request: Request) -> AsyncIterator[FinanceSession]:
        set_user_context(user_id)
        registry: SessionRegistry = request.app.state.sessions
        session = registry.acquire(user_id)
        try:
            yield session
        finally:
            # Idle sessions are ended here; streaming ones end when their stream closes
            registry.release(user_id)

    @app.post("/api/ai-insights")
    async def ai_insights(req: InsightsRequest):
        set_user_context(None)
        try:
            transactions = [t.to_transaction() for t in req.transactions]
            stream = await assistant.stream_insights(transactions, req.question)
        except FinanceAIError as e:
            logger.error(f"Error in AI insights: {e}")
            return PlainTextResponse(INSIGHTS_ERROR_MESSAGE, status_code=500)

        return StreamingResponse(_stream_body(stream), media_type="text/plain; charset=utf-8")

    @app.post("/api/chat-finance", response_model=ChatResponse)
    async def chat_finance(req: ChatRequest):
        set_user_context(None)
        try:
            reply = await assistant.chat(req.message)
        except FinanceAIError as e:
            logger.error(f"Error in chat finance: {e}")
            return JSONResponse({"response": CHAT_ERROR_MESSAGE}, status_code=500)

        transaction = TransactionOut.from_record(reply.transaction) if reply.transaction else None
        return ChatResponse(response=reply.response, transaction=transaction)

    @app.get("/api/users/{user_id}/transactions", response_model=List[TransactionOut])
    async def list_transactions(session: FinanceSession = Depends(get_session)):
        return [TransactionOut.from_record(t) for t in session.transactions()]

    @app.post("/api/users/{user_id}/transactions", response_model=TransactionOut, status_code=201)
    async def add_transaction(req: TransactionIn, session: FinanceSession = Depends(get_session)):
        try:
            record = session.add_transaction(req.to_candidate())
        except StorageError as e:
            logger.error(f"Failed to save transaction: {e}")
            raise HTTPException(status_code=500, detail="Could not save transaction")
        return TransactionOut.from_record(record)

    @app.delete("/api/users/{user_id}/transactions/{transaction_id}", response_model=DeleteResponse)
    async def delete_transaction(transaction_id: str, session: FinanceSession = Depends(get_session)):
        try:
            deleted = session.delete_transaction(transaction_id)
        except StorageError as e:
            logger.error(f"Failed to delete transaction: {e}")
            raise HTTPException(status_code=500, detail="Could not delete transaction")
        return DeleteResponse(deleted=deleted)

    @app.get("/api/users/{user_id}/summary", response_model=SummaryOut)
    async def summary(session: FinanceSession = Depends(get_session)):
        return SummaryOut.from_summary(session.summary())

    @app.get("/api/users/{user_id}/budget", response_model=List[BudgetLineOut])
    async def budget(session: FinanceSession = Depends(get_session)):
        return [BudgetLineOut.from_line(line) for line in session.budget_overview()]

    @app.post("/api/users/{user_id}/chat", response_model=ChatResponse)
    async def session_chat(req: ChatRequest, session: FinanceSession = Depends(get_session)):
        try:
            outcome = await session.chat(req.message)
        except RequestInFlightError as e:
            raise HTTPException(status_code=409, detail=str(e))
        except ValidationError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except StorageError as e:
            logger.error(f"Failed to save chat transaction: {e}")
            return JSONResponse({"response": CHAT_ERROR_MESSAGE}, status_code=500)

        record = outcome.stored or outcome.reply.transaction
        transaction = TransactionOut.from_record(record) if record else None
        return ChatResponse(response=outcome.reply.response, transaction=transaction)

    @app.post("/api/users/{user_id}/insights")
    async def session_insights(req: QuestionRequest, session: FinanceSession = Depends(get_session)):
        try:
            stream = await session.insights(req.question)
        except RequestInFlightError as e:
            raise HTTPException(status_code=409, detail=str(e))
        except ValidationError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except FinanceAIError as e:
            logger.error(f"Error in AI insights: {e}")
            return PlainTextResponse(INSIGHTS_ERROR_MESSAGE, status_code=500)

        return StreamingResponse(_stream_body(stream), media_type="text/plain; charset=utf-8")

    return app
