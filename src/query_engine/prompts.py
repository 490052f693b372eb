"""Prompt texts and text helpers for the query engine."""

import re

from src.rag_pipeline.schemas import RetrievedChunk

# ==============================================================================
# Canned Responses
# ==============================================================================

DEFAULT_TOPIC = "the course material"

GREETING_PHRASES = [
    "hello",
    "hi",
    "hey",
    "hii",
    "hiii",
    "greetings",
    "good morning",
    "good afternoon",
    "good evening",
]

GREETING_RESPONSE = (
    "Hello! I'm your course assistant. "
    "How can I help you with the course material today?"
)

OUT_OF_SCOPE_TEMPLATE = (
    "I apologize, but I can only answer questions about {topic}, which is the "
    "topic of this course. Your question seems to be about a different topic. "
    "Could you please ask a question related to {topic}?"
)

# ==============================================================================
# Grounding Prompt
# ==============================================================================

GROUNDING_PROMPT_TEMPLATE = """You are a teaching assistant for a course about {topic}.
Only answer questions related to {topic}.
If the question is not about {topic}, respond with: "{refusal}"

Based on the following course content, please provide a clear, concise, and comprehensive answer to the question.
Focus on the most relevant information and present it in a well-structured way.
Use only the course content below; do not rely on outside knowledge.

Course Content:
{context}

Question: {question}

Please provide a detailed answer that:
1. Directly addresses the question
2. Includes key concepts and definitions
3. Explains important processes or relationships
4. Uses clear, academic language
5. Is well-structured and easy to understand"""

# Role labels models sometimes echo before the answer, e.g. "Answer:" or "**AI:**"
ROLE_LABEL_PATTERN = re.compile(
    r"^\s*(?:\**\s*(?:response|answer|ai)\s*:\s*\**\s*)+",
    re.IGNORECASE,
)


def is_greeting(question: str, greeting_phrases: list[str]) -> bool:
    """Check whether a question contains any greeting phrase.

    Args:
        question: Raw user question.
        greeting_phrases: Lowercase phrases matched as substrings.

    Returns:
        True if the normalized question contains a greeting phrase.

    Examples:
        >>> is_greeting("  Hi there ", GREETING_PHRASES)
        True
    """
    normalized = question.lower().strip()
    return any(phrase in normalized for phrase in greeting_phrases)


def out_of_scope_response(template: str, topic: str | None) -> str:
    """Render the refusal used when no course content matches a question."""
    return template.format(topic=topic or DEFAULT_TOPIC)


def build_context(chunks: list[RetrievedChunk]) -> str:
    """Join retrieved chunk texts, in rank order, separated by blank lines."""
    return "\n\n".join(chunk.text for chunk in chunks)


def build_grounding_prompt(
    template: str,
    refusal_template: str,
    topic: str | None,
    context: str,
    question: str,
) -> str:
    """Assemble the instruction prompt sent to the language model.

    Args:
        template: Prompt template with {topic}, {refusal}, {context} and
            {question} fields.
        refusal_template: Out-of-scope template embedded in the prompt.
        topic: Course topic, or None to use a generic phrase.
        context: Retrieved course content.
        question: Raw user question.

    Returns:
        Prompt text ready for the model.
    """
    topic = topic or DEFAULT_TOPIC
    return template.format(
        topic=topic,
        refusal=out_of_scope_response(refusal_template, topic),
        context=context,
        question=question,
    )


def strip_role_labels(text: str) -> str:
    """Remove leading role labels and surrounding whitespace from a reply.

    Examples:
        >>> strip_role_labels("Answer: A tree.")
        'A tree.'
        >>> strip_role_labels("  AI: Response: ok  ")
        'ok'
    """
    return ROLE_LABEL_PATTERN.sub("", text).strip()
