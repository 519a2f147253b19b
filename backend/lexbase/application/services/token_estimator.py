"""Approximate token counting for context-budget decisions.

The estimate is ``ceil(words × 1.3)`` — a budget heuristic, not a real
tokenizer. Integer arithmetic keeps it exact: ``ceil(w × 13 / 10)``.
"""

import json
import logging
from typing import Any

logger = logging.getLogger(__name__)

# tokens-per-word ratio expressed as a fraction (1.3 == 13 / 10)
_RATIO_NUM = 13
_RATIO_DEN = 10


def _words(text: str) -> list[str]:
    return text.split()


def estimate_tokens(text: str) -> int:
    """Estimate the token count of *text* as ``ceil(word_count × 1.3)``."""
    word_count = len(_words(text))
    return (word_count * _RATIO_NUM + _RATIO_DEN - 1) // _RATIO_DEN


def truncate_to_token_limit(text: str, max_tokens: int) -> str:
    """Cut *text* to at most ``floor(max_tokens / 1.3)`` words.

    Returns *text* unchanged when it already fits, so
    ``estimate_tokens(truncate_to_token_limit(t, n)) <= n`` for every ``n >= 0``.
    """
    words = _words(text)
    max_words = max(0, (max_tokens * _RATIO_DEN) // _RATIO_NUM)
    if len(words) <= max_words:
        return text
    return " ".join(words[:max_words])


def estimate_tokens_in_json(obj: Any) -> int:
    """Estimate tokens of an object's JSON serialisation (0 if it cannot be serialised)."""
    try:
        serialized = json.dumps(obj, ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        logger.error("Could not estimate tokens for JSON payload: %s", exc)
        return 0
    return estimate_tokens(serialized)
