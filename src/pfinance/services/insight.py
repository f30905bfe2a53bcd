"""LLM-generated spending insights and the finance chat.

The provider is best-effort: configured models are tried in order and the
first usable answer wins. When every model fails the caller gets a single
"service unavailable" error.
"""

import json
import logging
import re
from typing import Any, Callable, TypeVar

from openai import AsyncOpenAI
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pfinance.config import settings
from pfinance.core.exceptions import ExternalServiceError, PersistenceError, ValidationError
from pfinance.models.chat import ChatMessage
from pfinance.repositories.chat import ChatRepository
from pfinance.repositories.transaction import TransactionRepository
from pfinance.schemas.insight import (
    ChatHistoryResult,
    ChatMessageResponse,
    ChatReply,
    Insight,
    InsightsResult,
)

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a personal finance assistant. Analyze the spending summary and "
    "answer ONLY with JSON of the form "
    '{"insights": [{"type": "saving|warning|trend|tip", "title": "...", '
    '"description": "...", "category": "..."}]}.'
)

CHAT_SYSTEM_PROMPT = (
    "You are a professional personal finance advisor. Answer in the language "
    "of the user, in Markdown, with practical advice grounded in the figures "
    "below. Quote amounts and percentages from the data where possible and say "
    "so plainly when the data does not answer the question."
)

JSON_BLOCK = re.compile(r"\{.*\}", re.DOTALL)

T = TypeVar("T")


def parse_insights(text: str | None) -> list[Insight]:
    """Parse a model answer into insights.

    Accepts bare JSON, fenced JSON or JSON embedded in prose.

    Raises:
        ValueError: If no usable insight list can be extracted
    """
    if not text or not text.strip():
        raise ValueError("empty response")

    text = text.strip()
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        match = JSON_BLOCK.search(text)
        if match is None:
            raise ValueError("no JSON object in response")
        try:
            data = json.loads(match.group(0))
        except json.JSONDecodeError as e:
            raise ValueError(f"malformed JSON: {e}") from e

    items = data.get("insights") if isinstance(data, dict) else None
    if not isinstance(items, list) or not items:
        raise ValueError("response has no insights")

    insights = []
    for item in items:
        if isinstance(item, dict) and item.get("title") and item.get("description"):
            insights.append(
                Insight(
                    type=str(item.get("type") or "tip"),
                    title=str(item["title"]),
                    description=str(item["description"]),
                    category=item.get("category"),
                )
            )
    if not insights:
        raise ValueError("response has no valid insights")
    return insights


def parse_chat_reply(text: str | None) -> str:
    """Return the trimmed answer text.

    Raises:
        ValueError: If the model answered with nothing
    """
    if not text or not text.strip():
        raise ValueError("empty response")
    return text.strip()


def format_minor(amount: int) -> str:
    return f"{amount / 10**settings.currency_minor_unit:.{settings.currency_minor_unit}f}"


class InsightService:
    """Service for LLM insights and the finance chat over stored transactions."""

    def __init__(self, db: AsyncSession, client: AsyncOpenAI | None = None):
        """Initialize the service.

        Args:
            db: Database session
            client: OpenAI-compatible client (built from settings when omitted)
        """
        self.db = db
        self.txn_repo = TransactionRepository(db)
        self.chat_repo = ChatRepository(db)
        self.models = list(settings.ai_models)
        self._client = client

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            if not settings.openrouter_api_key:
                raise ExternalServiceError("AI_002")
            self._client = AsyncOpenAI(
                api_key=settings.openrouter_api_key,
                base_url=settings.openrouter_base_url,
                timeout=settings.ai_timeout_seconds,
            )
        return self._client

    async def build_financial_summary(self, require_data: bool = True) -> dict[str, Any]:
        """Aggregate the figures sent to the model (no raw descriptions).

        Raises:
            ValidationError: If ``require_data`` and there are no transactions
        """
        totals = await self.txn_repo.get_totals()
        if require_data and totals["count"] == 0:
            raise ValidationError("AI_003")
        breakdown = await self.txn_repo.get_expense_by_category(settings.fallback_category)

        top = sorted(breakdown.items(), key=lambda kv: kv[1], reverse=True)[:10]
        return {
            "currency": settings.currency,
            "transactions": totals["count"],
            "total_income": format_minor(totals["income"]),
            "total_expenses": format_minor(totals["expense"]),
            "net": format_minor(totals["income"] - totals["expense"]),
            "top_expense_categories": {name: format_minor(total) for name, total in top},
        }

    async def _complete(
        self, messages: list[dict[str, str]], parse: Callable[[str | None], T]
    ) -> tuple[str, T]:
        """Try each configured model in order until one gives a usable answer.

        Args:
            messages: Chat messages sent to the model
            parse: Turns the raw answer into a result; raises ValueError if unusable

        Returns:
            (model name, parsed answer)

        Raises:
            ExternalServiceError: If no key is configured or every model failed
        """
        client = self._get_client()

        for model in self.models:
            try:
                response = await client.chat.completions.create(
                    model=model,
                    messages=messages,
                    temperature=settings.ai_temperature,
                    max_tokens=settings.ai_max_tokens,
                )
                content = response.choices[0].message.content if response.choices else None
                return model, parse(content)
            except Exception as e:
                logger.warning(
                    "LLM model failed, trying next",
                    extra={"model": model, "error_type": type(e).__name__},
                )

        logger.error("All LLM models failed", extra={"models": len(self.models)})
        raise ExternalServiceError("AI_001", {"models": self.models})

    async def generate(self, question: str | None = None) -> InsightsResult:
        """Ask the configured models for insights, first success wins.

        Raises:
            ValidationError: If there are no transactions to analyze
            ExternalServiceError: If no key is configured or every model failed
        """
        summary = await self.build_financial_summary()

        prompt = f"Financial summary:\n{json.dumps(summary, ensure_ascii=False)}"
        if question:
            prompt += f"\n\nFocus on: {question}"

        model, insights = await self._complete(
            [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            parse_insights,
        )
        logger.info("Insights generated", extra={"model": model, "count": len(insights)})
        return InsightsResult(insights=insights, model=model)

    async def chat(self, session_id: str, message: str) -> ChatReply:
        """Answer a chat message using the session history as context.

        The user message and the reply are stored together, only once a model
        has answered.

        Raises:
            ExternalServiceError: If no key is configured or every model failed
            PersistenceError: If the exchange cannot be stored
        """
        summary = await self.build_financial_summary(require_data=False)
        history = await self.chat_repo.get_history(session_id, settings.ai_chat_history_limit)

        messages = [
            {
                "role": "system",
                "content": CHAT_SYSTEM_PROMPT
                + "\n\nFinancial summary:\n"
                + json.dumps(summary, ensure_ascii=False),
            }
        ]
        messages.extend({"role": m.role, "content": m.content} for m in history)
        messages.append({"role": "user", "content": message})

        model, answer = await self._complete(messages, parse_chat_reply)

        try:
            await self.chat_repo.add(ChatMessage(session_id=session_id, role="user", content=message))
            reply = await self.chat_repo.add(
                ChatMessage(session_id=session_id, role="assistant", content=answer, model=model)
            )
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Chat exchange not stored", extra={"error_type": type(e).__name__})
            raise PersistenceError("DB_001", {"operation": "chat"}) from e

        logger.info(
            "Chat reply generated",
            extra={"model": model, "session_id": session_id, "history": len(history)},
        )
        return ChatReply(
            session_id=session_id,
            reply=ChatMessageResponse.model_validate(reply),
            model=model,
        )

    async def get_chat_history(self, session_id: str, limit: int = 50) -> ChatHistoryResult:
        limit = max(1, min(limit, 200))
        messages = await self.chat_repo.get_history(session_id, limit)
        return ChatHistoryResult(
            session_id=session_id,
            messages=[ChatMessageResponse.model_validate(m) for m in messages],
            count=len(messages),
        )

    async def clear_chat_history(self, session_id: str) -> int:
        """Delete every message of a session.

        Raises:
            PersistenceError: If the delete fails
        """
        try:
            deleted = await self.chat_repo.clear(session_id)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceError("DB_001", {"operation": "clear_chat_history"}) from e
        logger.info("Chat history cleared", extra={"session_id": session_id, "deleted": deleted})
        return deleted
