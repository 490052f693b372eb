"""Retrieval-augmented query engine.

Answers a student question about one course: greetings are answered directly,
everything else is grounded in the course's most similar transcript chunks.
"""

import asyncio

from pydantic_ai import Agent

from src.rag_pipeline.chat_history_store import ChatHistoryStore
from src.rag_pipeline.course_store import CourseStore
from src.rag_pipeline.errors import (
    CourseNotFoundError,
    CourseNotReadyError,
    QueryTimeoutError,
    UpstreamFailure,
)
from src.rag_pipeline.schemas import ChatRole, ProcessingStatus, RetrievedChunk
from src.rag_pipeline.vector_index import VectorIndex
from src.utils.logging import get_logger

from .config import QueryStrategy
from .prompts import (
    build_context,
    build_grounding_prompt,
    is_greeting,
    out_of_scope_response,
    strip_role_labels,
)

logger = get_logger(__name__)


class QueryEngine:
    """Answers questions about a course from its indexed transcript.

    The engine keeps no per-call state. Every user turn and every reply is
    appended to the course's chat history as it happens; nothing is rolled
    back when a later step fails.
    """

    def __init__(
        self,
        strategy: QueryStrategy,
        course_store: CourseStore,
        vector_index: VectorIndex,
        chat_history: ChatHistoryStore,
        agent: Agent,
    ):
        """Initialize query engine.

        Args:
            strategy: Retrieval, gating and prompt settings.
            course_store: Store used to check that a course is ready.
            vector_index: Index searched for relevant chunks.
            chat_history: Log receiving questions and answers.
            agent: Agent generating grounded answers.
        """
        self.strategy = strategy
        self.course_store = course_store
        self.vector_index = vector_index
        self.chat_history = chat_history
        self.agent = agent

        logger.info(
            "query_engine_initialized",
            top_k=strategy.top_k,
            relevance_threshold=strategy.relevance_threshold,
        )

    async def answer(self, question: str, course_id: str) -> str:
        """Answer a question about a course.

        Args:
            question: Raw user question.
            course_id: Course the question is about.

        Returns:
            Answer text, a greeting, or the out-of-scope refusal.

        Raises:
            CourseNotFoundError: If the course does not exist.
            CourseNotReadyError: If the course has not finished processing.
            QueryTimeoutError: If the model does not answer in time.
            UpstreamFailure: If the index, store or model fails.
        """
        logger.info(
            "query_started",
            course_id=course_id,
            question_length=len(question),
        )

        if is_greeting(question, self.strategy.greeting_phrases):
            response = self.strategy.greeting_response
            await self.chat_history.append(course_id, ChatRole.AI, response)
            logger.info("query_greeting_short_circuit", course_id=course_id)
            return response

        try:
            return await self._answer_from_course(question, course_id)
        except Exception as e:
            logger.exception(
                "query_failed",
                course_id=course_id,
                error_type=type(e).__name__,
            )
            raise

    async def _answer_from_course(self, question: str, course_id: str) -> str:
        course = await self.course_store.get(course_id)
        if course is None:
            raise CourseNotFoundError(course_id)
        if course.processing_status != ProcessingStatus.COMPLETED:
            raise CourseNotReadyError(course_id, course.processing_status.value)

        chunks = await self.vector_index.query(
            question,
            top_k=self.strategy.top_k,
            filter_metadata={"courseId": course_id},
        )

        await self.chat_history.append(course_id, ChatRole.HUMAN, question)

        if not self._is_relevant(chunks):
            response = out_of_scope_response(
                self.strategy.out_of_scope_template, course.topic
            )
            await self.chat_history.append(course_id, ChatRole.AI, response)
            logger.info(
                "query_out_of_scope",
                course_id=course_id,
                results=len(chunks),
                best_distance=chunks[0].distance if chunks else None,
            )
            return response

        prompt = build_grounding_prompt(
            template=self.strategy.prompt_template,
            refusal_template=self.strategy.out_of_scope_template,
            topic=course.topic,
            context=build_context(chunks),
            question=question,
        )

        response = strip_role_labels(await self._generate(prompt))
        if not response:
            raise UpstreamFailure("Language model returned an empty answer")

        await self.chat_history.append(course_id, ChatRole.AI, response)

        logger.info(
            "query_completed",
            course_id=course_id,
            chunks_used=len(chunks),
            response_length=len(response),
        )
        return response

    def _is_relevant(self, chunks: list[RetrievedChunk]) -> bool:
        """Relevance gate: the best match must exist and be close enough."""
        if not chunks:
            return False
        threshold = self.strategy.relevance_threshold
        return threshold is None or chunks[0].distance <= threshold

    async def _generate(self, prompt: str) -> str:
        """Run the model once on the prompt, bounded by the configured timeout."""
        try:
            result = await asyncio.wait_for(
                self.agent.run(prompt),
                timeout=self.strategy.llm_timeout_seconds,
            )
        except TimeoutError as e:
            raise QueryTimeoutError(
                f"Language model did not answer within "
                f"{self.strategy.llm_timeout_seconds} seconds"
            ) from e
        except Exception as e:
            raise UpstreamFailure(f"Language model request failed: {e}") from e

        return str(result.output)
