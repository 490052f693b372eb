"""Append-only chat history per course, stored in Supabase."""

from datetime import UTC, datetime

from supabase import Client

from src.utils.logging import get_logger

from .errors import UpstreamFailure
from .schemas import ChatMessage, ChatRole

logger = get_logger(__name__)

CHAT_HISTORY_TABLE = "chat_history"


class ChatHistoryStore:
    """Conversation log keyed by course id. Messages are never edited or deleted."""

    def __init__(self, client: Client):
        self.client = client

    async def append(self, course_id: str, role: ChatRole, content: str) -> ChatMessage:
        """Append one message to a course's conversation.

        Args:
            course_id: Course the conversation belongs to.
            role: Author of the message (human or ai).
            content: Message text.

        Returns:
            The stored message.

        Raises:
            UpstreamFailure: If the insert fails.
        """
        message = ChatMessage(
            course_id=course_id,
            role=role,
            content=content,
            timestamp=datetime.now(UTC),
        )

        try:
            response = (
                self.client.table(CHAT_HISTORY_TABLE)
                .insert(message.model_dump(mode="json", exclude={"id"}))
                .execute()
            )
        except Exception as e:
            logger.exception(
                "chat_message_store_failed",
                course_id=course_id,
                role=role.value,
                error_type=type(e).__name__,
            )
            raise UpstreamFailure(f"Failed to store chat message: {e}") from e

        logger.info(
            "chat_message_stored",
            course_id=course_id,
            role=role.value,
            content_length=len(content),
        )
        if response.data:
            return ChatMessage.model_validate(response.data[0])
        return message

    async def list_messages(self, course_id: str) -> list[ChatMessage]:
        """Return a course's conversation, oldest message first.

        Raises:
            UpstreamFailure: If the query fails.
        """
        try:
            response = (
                self.client.table(CHAT_HISTORY_TABLE)
                .select("*")
                .eq("course_id", course_id)
                .order("timestamp")
                .order("id")
                .execute()
            )
        except Exception as e:
            logger.exception(
                "chat_history_fetch_failed",
                course_id=course_id,
                error_type=type(e).__name__,
            )
            raise UpstreamFailure(f"Failed to fetch chat history: {e}") from e

        return [ChatMessage.model_validate(row) for row in response.data or []]
