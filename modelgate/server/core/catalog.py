"""Known-model hints used to fill in descriptor fields vendors do not return.

Vendor metadata always wins; these tables only fill gaps. Lookups match the
longest known prefix of a model id, so dated snapshots such as
``gpt-4o-2024-08-06`` resolve to the ``gpt-4o`` entry.
"""

from __future__ import annotations

# Context windows in tokens
# Sources: vendor model pages (OpenAI, Anthropic, Google AI, xAI)
CONTEXT_LENGTHS: dict[str, int] = {
    # xAI
    "grok-4": 256_000,
    "grok-3": 131_072,
    "grok-2-vision": 32_768,
    "grok-2": 131_072,
    "grok-beta": 131_072,
    "grok-code-fast": 256_000,
    # OpenAI
    "gpt-4o": 128_000,
    "gpt-4-turbo": 128_000,
    "gpt-4": 8_192,
    "gpt-3.5-turbo": 16_385,
    "o1": 200_000,
    "o3": 200_000,
    # Anthropic
    "claude-3": 200_000,
    "claude-opus-4": 200_000,
    "claude-sonnet-4": 200_000,
    "claude-haiku-4": 200_000,
    # Google
    "gemini-1.5-pro": 2_097_152,
    "gemini-1.5-flash": 1_048_576,
    "gemini-2.0-flash": 1_048_576,
}

# Prompt pricing in USD per 1M tokens
# Sources:
# - OpenAI: https://openai.com/api/pricing/
# - Anthropic: https://www.anthropic.com/pricing
# - Google: https://ai.google.dev/pricing
# - xAI: https://docs.x.ai/docs/models
PROMPT_PRICING_PER_1M: dict[str, float] = {
    # xAI
    "grok-4": 3.00,
    "grok-3-mini": 0.30,
    "grok-3": 3.00,
    "grok-2": 2.00,
    "grok-beta": 5.00,
    # OpenAI
    "gpt-4o-mini": 0.15,
    "gpt-4o": 2.50,
    "gpt-4-turbo": 10.00,
    "gpt-4": 30.00,
    "gpt-3.5-turbo": 0.50,
    # Anthropic
    "claude-3-5-sonnet": 3.00,
    "claude-3-5-haiku": 0.80,
    "claude-3-opus": 15.00,
    "claude-3-sonnet": 3.00,
    "claude-3-haiku": 0.25,
    # Google
    "gemini-1.5-pro": 1.25,
    "gemini-1.5-flash": 0.075,
}

# Families that accept image input alongside text
_IMAGE_INPUT_PREFIXES = (
    "gpt-4o",
    "gpt-4-turbo",
    "gpt-4.1",
    "claude-3",
    "claude-opus-4",
    "claude-sonnet-4",
    "gemini",
    "grok-4",
    "grok-2-vision",
)

# OpenAI families that are not chat models
NON_CHAT_PATTERNS = (
    "davinci",
    "curie",
    "babbage",
    "ada",
    "whisper",
    "tts",
    "dall-e",
    "text-embedding",
    "text-moderation",
)

# Anthropic publishes no model listing endpoint; this list is pinned to
# dated snapshots and must be updated by hand when new models ship.
ANTHROPIC_MODELS: tuple[str, ...] = (
    "claude-3-5-sonnet-20241022",
    "claude-3-5-haiku-20241022",
    "claude-3-opus-20240229",
    "claude-3-sonnet-20240229",
    "claude-3-haiku-20240307",
)


def _longest_prefix(model_id: str, table: dict[str, object]) -> str | None:
    matches = [key for key in table if model_id.startswith(key)]
    return max(matches, key=len) if matches else None


def format_model_name(model_id: str) -> str:
    """Turn ``grok-2-latest`` into ``Grok 2 Latest``."""
    return " ".join(word[:1].upper() + word[1:] for word in model_id.split("-") if word)


def estimate_context_length(model_id: str) -> int | None:
    key = _longest_prefix(model_id, CONTEXT_LENGTHS)
    return CONTEXT_LENGTHS[key] if key else None


def estimate_cost_per_1k(model_id: str) -> float | None:
    """Prompt price in USD per 1k tokens, if the model family is known."""
    key = _longest_prefix(model_id, PROMPT_PRICING_PER_1M)
    return PROMPT_PRICING_PER_1M[key] / 1000 if key else None


def infer_modalities(model_id: str) -> frozenset[str]:
    if "vision" in model_id or model_id.startswith(_IMAGE_INPUT_PREFIXES):
        return frozenset({"text", "image"})
    return frozenset({"text"})


def is_chat_model(model_id: str) -> bool:
    """False for legacy completion, audio, image and embedding models."""
    return not any(pattern in model_id for pattern in NON_CHAT_PATTERNS)
