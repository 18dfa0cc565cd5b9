from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from tokhuff.errors import UsageError


def check_group_size(n: int) -> int:
    if isinstance(n, bool) or not isinstance(n, int):
        raise UsageError(f"N must be an integer, got {n!r}")
    if n <= 0:
        raise UsageError(f"N must be > 0 (got {n})")
    return n


def tokenize(text: str, n: int) -> list[str]:
    """
    Split text into tokens of n code points.

    The last token keeps the remainder (1..n code points).
    An empty text yields a single empty token, so a tree can still be built.
    """
    check_group_size(n)
    tokens = [text[i:i + n] for i in range(0, len(text), n)]
    if not tokens:
        tokens.append("")
    return tokens


def join_tokens(tokens: list[str], target: int) -> str:
    """Concatenate tokens and cut the result to exactly target code points."""
    if target <= 0:
        return ""
    text = "".join(tokens)
    if len(text) > target:
        text = text[:target]
    return text


@dataclass(frozen=True)
class LayerTokens:
    """
    Layer: text -> fixed-size token groups.
    - symbols: list[str] (each token is 1..N code points)
    - layer_meta: {"n": N, "n_codepoints": len(text)}

    Python str indexes by code point, so surrogate pairs never split.
    """

    n: int
    id: str = "tokens"

    def encode(self, text: str) -> tuple[list[str], dict[str, Any]]:
        return tokenize(text, self.n), {"n": self.n, "n_codepoints": len(text)}

    def decode(self, symbols: list[str], layer_meta: dict[str, Any]) -> str:
        return join_tokens(symbols, int(layer_meta.get("n_codepoints", 0)))
