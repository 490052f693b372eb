"""Query engine configuration.

Provides the retrieval/prompt strategy and the language model factory, both
loaded from environment variables.
"""

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field
from pydantic_ai import Agent
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.openai import OpenAIProvider
from pydantic_ai.settings import ModelSettings

from .prompts import (
    GREETING_PHRASES,
    GREETING_RESPONSE,
    GROUNDING_PROMPT_TEMPLATE,
    OUT_OF_SCOPE_TEMPLATE,
)

# Check if we're in production
is_production = os.getenv("ENVIRONMENT") == "production"

if not is_production:
    # Development: prioritize .env file
    project_root = Path(__file__).resolve().parent.parent.parent
    dotenv_path = project_root / ".env"
    load_dotenv(dotenv_path, override=True)
else:
    # Production: use cloud platform env vars only
    load_dotenv()


def _relevance_threshold_from_env() -> float | None:
    raw = os.getenv("RELEVANCE_THRESHOLD", "0.8").strip()
    return float(raw) if raw else None


class QueryStrategy(BaseModel):
    """Retrieval and prompting strategy for the query engine.

    Attributes:
        top_k: Number of chunks retrieved per question.
        relevance_threshold: Largest distance the best chunk may have before
            the question is treated as off-topic. None disables the test, so
            only an empty retrieval counts as off-topic.
        prompt_template: Grounding prompt with {topic}, {refusal}, {context}
            and {question} fields.
        greeting_phrases: Phrases that short-circuit to the greeting response.
        greeting_response: Canned reply to greetings.
        out_of_scope_template: Canned refusal with a {topic} field.
        llm_timeout_seconds: Time allowed for one model call.
    """

    top_k: int = Field(
        default_factory=lambda: int(os.getenv("RETRIEVAL_TOP_K", "5")), gt=0
    )
    relevance_threshold: float | None = Field(
        default_factory=_relevance_threshold_from_env
    )
    prompt_template: str = GROUNDING_PROMPT_TEMPLATE
    greeting_phrases: list[str] = Field(default_factory=lambda: list(GREETING_PHRASES))
    greeting_response: str = GREETING_RESPONSE
    out_of_scope_template: str = OUT_OF_SCOPE_TEMPLATE
    llm_timeout_seconds: float = Field(
        default_factory=lambda: float(os.getenv("LLM_TIMEOUT_SECONDS", "60")), gt=0
    )


def get_strategy() -> QueryStrategy:
    """Get the query strategy configured from the environment.

    Returns:
        QueryStrategy with environment overrides applied.

    Examples:
        >>> strategy = get_strategy()
        >>> # top_k=5, relevance_threshold=0.8 by default
    """
    return QueryStrategy()


def get_model() -> OpenAIChatModel:
    """Get the configured chat model.

    Reads configuration from environment variables:
    - LLM_CHOICE: Model name (default: gpt-3.5-turbo)
    - LLM_BASE_URL: API base URL (default: https://api.openai.com/v1)
    - LLM_API_KEY: API key (default: ollama for local testing)

    Returns:
        OpenAIChatModel configured with environment settings.
    """
    llm = os.getenv("LLM_CHOICE") or "gpt-3.5-turbo"
    base_url = os.getenv("LLM_BASE_URL") or "https://api.openai.com/v1"
    api_key = os.getenv("LLM_API_KEY") or "ollama"

    return OpenAIChatModel(
        llm, provider=OpenAIProvider(base_url=base_url, api_key=api_key)
    )


def get_temperature() -> float:
    """Get the sampling temperature from LLM_TEMPERATURE (default: 0.6)."""
    return float(os.getenv("LLM_TEMPERATURE", "0.6"))


def build_answer_agent() -> Agent:
    """Build the agent used to generate grounded answers.

    The agent has no tools and no system prompt; every instruction travels in
    the grounding prompt assembled per question.

    Returns:
        Agent returning plain text.
    """
    return Agent(
        get_model(),
        model_settings=ModelSettings(temperature=get_temperature()),
    )
