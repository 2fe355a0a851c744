#!/usr/bin/env python3
"""
Token estimates for LLM-backed providers.

Uses tiktoken to size the completion budget of a chat request from the text
being translated.
"""

from typing import Optional

import tiktoken


class TokenEstimator:
    """
    Estimates how many output tokens a translation needs.

    Translations are usually somewhat longer than their source, so the raw
    token count is scaled and padded.
    """

    # Expansion factor: translations are typically longer than source
    EXPANSION_FACTOR = 1.2

    # Overhead per request (role tokens, trailing newline, etc.)
    ENTRY_OVERHEAD = 10

    def __init__(self, encoding: str = "cl100k_base", minimum: int = 64):
        """
        Initialize token estimator.

        Args:
            encoding: Tiktoken encoding name (default: cl100k_base)
            minimum: Smallest budget handed out (default: 64)
        """
        self.minimum = minimum
        try:
            self.encoder = tiktoken.get_encoding(encoding)
        except Exception:
            # Encoding files are fetched on first use and may be unreachable
            self.encoder = None

    def count_tokens(self, text: str) -> int:
        if self.encoder:
            return len(self.encoder.encode(text))
        # Fallback: ~4 chars per token (rough estimate)
        return len(text) // 4

    def estimate_tokens(self, text: str) -> int:
        """
        Estimate output token count for a translation of text.

        Args:
            text: Source text

        Returns:
            Estimated token count
        """
        return int(self.count_tokens(text) * self.EXPANSION_FACTOR) + self.ENTRY_OVERHEAD

    def max_tokens_for(self, text: str, configured: Optional[int] = None) -> int:
        """Completion budget: the configured value, else the estimate (at least minimum)."""
        if configured:
            return configured
        return max(self.minimum, self.estimate_tokens(text))
