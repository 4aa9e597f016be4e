"""
LLM configuration for the Personalized Storybook Generator.

One inference LM serves every text stage of the pipeline (story writing,
character extraction, character profiling). The LM is built from an explicit
TextOptions value and handed to each module; nothing configures DSPy globally.

Includes:
- 120s timeout per LLM call to fail fast on hanging connections
- Retry with exponential backoff for transient network errors
"""

import os
import logging
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv
import dspy
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
)

# Load environment variables from .env file
load_dotenv()

# Logging for retry attempts
logger = logging.getLogger(__name__)

# Timeout for LLM calls (seconds)
LLM_TIMEOUT = 120

# Network errors that should trigger retry
RETRYABLE_EXCEPTIONS = (
    ConnectionError,
    TimeoutError,
    BrokenPipeError,
    OSError,  # Catches [Errno 32] Broken pipe
)

# Default model per provider, in priority order
PROVIDER_MODELS = [
    ("GOOGLE_API_KEY", "gemini/gemini-3-pro-preview"),
    ("ANTHROPIC_API_KEY", "anthropic/claude-opus-4-5-20251101"),
    ("OPENAI_API_KEY", "openai/gpt-5.2"),
]


@dataclass(frozen=True)
class TextOptions:
    """Knobs for the text generation capability."""

    model: Optional[str] = None  # None = pick by available API key
    api_key: Optional[str] = None
    max_tokens: int = 4096
    temperature: float = 1.0
    timeout: int = LLM_TIMEOUT
    reasoning_effort: Optional[str] = None  # "low" / "medium" / "high" for reasoning models

    @classmethod
    def from_env(cls) -> "TextOptions":
        """Build options from STORYBOOK_TEXT_MODEL / STORYBOOK_REASONING_EFFORT."""
        return cls(
            model=os.getenv("STORYBOOK_TEXT_MODEL") or None,
            reasoning_effort=os.getenv("STORYBOOK_REASONING_EFFORT") or None,
        )


def _resolve_model(options: TextOptions) -> tuple[str, Optional[str]]:
    """Pick (model, api_key) from options, falling back to the first configured provider."""
    if options.model:
        return options.model, options.api_key

    for env_key, model in PROVIDER_MODELS:
        if os.getenv(env_key):
            return model, options.api_key or os.getenv(env_key)

    raise ValueError(
        "No API key found. Set GOOGLE_API_KEY, ANTHROPIC_API_KEY, or OPENAI_API_KEY in .env"
    )


def get_inference_lm(options: Optional[TextOptions] = None) -> dspy.LM:
    """
    Get the inference LM for every text stage of the pipeline.

    Priority order when options.model is not set:
    1. Gemini 3 Pro (GOOGLE_API_KEY) - Best for creative writing
    2. Claude Opus 4.5 (ANTHROPIC_API_KEY)
    3. GPT 5.2 (OPENAI_API_KEY)

    Includes 120s timeout per call.
    """
    options = options or TextOptions()
    model, api_key = _resolve_model(options)

    max_tokens = options.max_tokens
    if "gpt-5" in model:
        max_tokens = max(max_tokens, 16000)  # GPT-5 reasoning models require >= 16000

    kwargs = {}
    if options.reasoning_effort:
        kwargs["reasoning_effort"] = options.reasoning_effort

    return dspy.LM(
        model,
        api_key=api_key,
        max_tokens=max_tokens,
        temperature=options.temperature,
        timeout=options.timeout,
        **kwargs,
    )


# Retry decorator for LLM calls with network errors
llm_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=2, min=2, max=10),
    retry=retry_if_exception_type(RETRYABLE_EXCEPTIONS),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)
