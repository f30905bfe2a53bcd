"""LLM endpoints: one-shot insights and the finance chat."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from pfinance.api.deps import SessionKey, enforce_insight_rate_limit, get_insight_service
from pfinance.schemas.insight import (
    ChatHistoryResult,
    ChatReply,
    ChatRequest,
    InsightRequest,
    InsightsResult,
)
from pfinance.schemas.transaction import DeleteResult
from pfinance.services.insight import InsightService

router = APIRouter(prefix="/insights", tags=["insights"])


@router.post(
    "",
    response_model=InsightsResult,
    summary="Generate spending insights",
    description="""
    Sends an aggregated spending summary (no raw descriptions) to the
    configured LLM models, trying each in order.

    Limited per caller (`X-Session-ID` header) to a fixed number of requests
    per window; extra requests get 429.
    """,
    dependencies=[Depends(enforce_insight_rate_limit)],
)
async def generate_insights(
    payload: InsightRequest | None = None,
    service: InsightService = Depends(get_insight_service),
) -> InsightsResult:
    return await service.generate(payload.question if payload else None)


@router.post(
    "/chat",
    response_model=ChatReply,
    summary="Send a chat message",
    description="""
    Answers a message with the caller's recent conversation (keyed by the
    `X-Session-ID` header) and the aggregated spending summary as context.
    The message and the reply are stored once a model has answered.

    Shares the insight rate limit.
    """,
)
async def send_chat_message(
    payload: ChatRequest,
    session_id: Annotated[str, Depends(enforce_insight_rate_limit)],
    service: InsightService = Depends(get_insight_service),
) -> ChatReply:
    return await service.chat(session_id, payload.message)


@router.get(
    "/chat",
    response_model=ChatHistoryResult,
    summary="Get the chat history",
)
async def get_chat_history(
    session_id: SessionKey,
    limit: Annotated[int, Query(ge=1, le=200, description="Latest messages to return")] = 50,
    service: InsightService = Depends(get_insight_service),
) -> ChatHistoryResult:
    return await service.get_chat_history(session_id, limit)


@router.delete(
    "/chat",
    response_model=DeleteResult,
    summary="Clear the chat history",
)
async def clear_chat_history(
    session_id: SessionKey,
    service: InsightService = Depends(get_insight_service),
) -> DeleteResult:
    return DeleteResult(deleted=await service.clear_chat_history(session_id))
