"""Chat history repository."""
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from pfinance.models.chat import ChatMessage
from pfinance.repositories.base import BaseRepository


class ChatRepository(BaseRepository[ChatMessage]):
    """Repository for ChatMessage model. None of these methods commit."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, ChatMessage)

    async def get_history(self, session_id: str, limit: int) -> list[ChatMessage]:
        """Get the latest ``limit`` messages of a session, oldest first."""
        result = await self.db.execute(
            select(ChatMessage)
            .where(ChatMessage.session_id == session_id)
            .order_by(ChatMessage.id.desc())
            .limit(limit)
        )
        return list(reversed(result.scalars().all()))

    async def clear(self, session_id: str) -> int:
        result = await self.db.execute(
            delete(ChatMessage).where(ChatMessage.session_id == session_id)
        )
        return int(result.rowcount or 0)
