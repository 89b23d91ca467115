# src/promptpacker/utils/tokenizer.py
import logging
import math
from typing import Any, Dict

import tiktoken

logger = logging.getLogger(__name__)

CHARS_PER_TOKEN = 4

# Encoding used as the counting baseline for each supported model
MODEL_ENCODINGS = {
    "gpt-4o": "o200k_base",
    "o3": "o200k_base",
    "o3-mini": "o200k_base",
    "claude-3.7-sonnet": "cl100k_base",
    "claude-4": "cl100k_base",
    "gemini-2.5-pro": "cl100k_base",
    "deepseek-r1": "cl100k_base",
}

# Multiplicative correction from the baseline count to the model's own tokenizer
MODEL_CORRECTIONS = {
    "claude-3.7-sonnet": 1.16,
    "claude-4": 1.16,
    "gemini-2.5-pro": 0.9,
    "deepseek-r1": 1.05,
}

TOKEN_MODELS = ("estimate",) + tuple(MODEL_ENCODINGS)


class Tokenizer:
    _encodings: Dict[str, Any] = {}

    @classmethod
    def get_encoding(cls, name: str):
        if name not in cls._encodings:
            cls._encodings[name] = tiktoken.get_encoding(name)
        return cls._encodings[name]

    @staticmethod
    def estimate(text: str) -> int:
        """Character-based estimate, ~4 characters per token."""
        return math.ceil(len(text) / CHARS_PER_TOKEN)

    @classmethod
    def count(cls, text: str, model: str = "estimate") -> int:
        """Counts tokens for `model`, or estimates them when no tokenizer applies."""
        encoding_name = MODEL_ENCODINGS.get(model)
        if encoding_name is None:
            return cls.estimate(text)
        try:
            encoding = cls.get_encoding(encoding_name)
            base = len(encoding.encode(text, disallowed_special=()))
        except Exception as e:
            # tiktoken downloads its BPE files on first use and can fail offline
            logger.warning("tiktoken unavailable for %s (%s); using character estimate", model, e)
            return cls.estimate(text)
        return math.ceil(base * MODEL_CORRECTIONS.get(model, 1.0))
