"""
Heuristic token-count estimates.

None of these is a real tokenizer; each divides the character count of the
document by a fixed characters-per-token ratio and floors the result.
"""

from __future__ import annotations

from dataclasses import dataclass
from fractions import Fraction
from typing import List


@dataclass(frozen=True)
class TokenStrategy:
    name: str
    chars_per_token: Fraction


# Word-based assumes five characters per word, separator included.
STRATEGIES = (
    TokenStrategy("Conservative", Fraction(3)),
    TokenStrategy("Claude-style", Fraction(7, 2)),
    TokenStrategy("GPT-style", Fraction(4)),
    TokenStrategy("Word-based", Fraction(5)),
)


@dataclass(frozen=True)
class TokenEstimate:
    name: str
    tokens: int


def estimate(char_count: int, strategy: TokenStrategy) -> int:
    """Exact ``floor(char_count / chars_per_token)``."""
    return int(char_count // strategy.chars_per_token)


def estimate_tokens(char_count: int) -> List[TokenEstimate]:
    return [TokenEstimate(s.name, estimate(char_count, s)) for s in STRATEGIES]


def format_report(char_count: int, word_count: int) -> str:
    """Render the estimate block printed after a run."""
    lines = [
        "=== Token Count Estimates ===",
        f"Characters: {char_count}",
        f"Words: {word_count}",
    ]
    for est in estimate_tokens(char_count):
        lines.append(f"{est.name}: ~{est.tokens} tokens")
    lines.append("(heuristic estimates, not exact tokenizer counts)")
    return "\n".join(lines)
