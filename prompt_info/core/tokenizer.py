"""Token counting through tiktoken."""

from __future__ import annotations

import math
from dataclasses import dataclass
from functools import lru_cache
from typing import Protocol

from prompt_info.core.config import settings

SLICE_COUNT = 10


class Tokenizer(Protocol):
    def encode(self, text: str) -> list[int]: ...

    def decode(self, tokens: list[int]) -> str: ...


@dataclass(frozen=True)
class TokenPiece:
    id: int
    text: str


@lru_cache(maxsize=4)
def get_tokenizer(encoding_name: str | None = None) -> Tokenizer:
    """Load (once per process) the configured tiktoken encoding."""
    import tiktoken

    return tiktoken.get_encoding(encoding_name or settings.tokenizer_encoding)


def count_tokens(tokenizer: Tokenizer, text: str) -> int:
    if not text:
        return 0
    return len(tokenizer.encode(text))


def token_pieces(tokenizer: Tokenizer, tokens: list[int]) -> list[TokenPiece]:
    """Decode each token on its own so it can be shown next to its id."""
    return [TokenPiece(id=t, text=tokenizer.decode([t])) for t in tokens]


def token_slices(tokens: list[int], slice_count: int = SLICE_COUNT) -> list[list[int]]:
    """Split tokens for the overview bar.

    Up to ``slice_count`` tokens get one slice each; longer sequences are cut
    into ``slice_count`` slices of ``ceil(n / slice_count)`` tokens, so the
    trailing slices can be short or empty.
    """
    if len(tokens) <= slice_count:
        return [[t] for t in tokens]
    size = math.ceil(len(tokens) / slice_count)
    return [tokens[i * size:(i + 1) * size] for i in range(slice_count)]


def default_tokenizer() -> Tokenizer:
    """FastAPI dependency for the configured encoding."""
    return get_tokenizer(settings.tokenizer_encoding)
