"""LLM insight schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Insight(BaseModel):
    type: str = Field(description="e.g. saving, warning, trend")
    title: str
    description: str
    category: str | None = None


class InsightRequest(BaseModel):
    question: str | None = Field(None, max_length=1000, description="Optional focus question")


class InsightsResult(BaseModel):
    insights: list[Insight]
    model: str = Field(description="Model that produced the answer")


class ChatRequest(BaseModel):
    message: str = Field(min_length=1, max_length=2000, description="User message")

    @field_validator("message")
    @classmethod
    def message_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("message must not be blank")
        return v


class ChatMessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    role: str
    content: str
    model: str | None = None
    created_at: datetime


class ChatReply(BaseModel):
    session_id: str
    reply: ChatMessageResponse
    model: str = Field(description="Model that produced the answer")


class ChatHistoryResult(BaseModel):
    session_id: str
    messages: list[ChatMessageResponse]
    count: int
