# src/multicopy/utils/tokenizer.py
import logging

import tiktoken

logger = logging.getLogger(__name__)


class Tokenizer:
    _encoding = None

    @classmethod
    def get_encoding(cls):
        if cls._encoding is None:
            try:
                cls._encoding = tiktoken.get_encoding("cl100k_base")
            except Exception:
                # Fallback
                cls._encoding = tiktoken.get_encoding("p50k_base")
        return cls._encoding

    @staticmethod
    def count(text: str) -> int:
        """Estimates the token count of a bundle block."""
        try:
            encoding = Tokenizer.get_encoding()
            return len(encoding.encode(text))
        except Exception as e:
            logger.debug("Token encoding unavailable (%s), estimating from length", e)
            return len(text) // 4
