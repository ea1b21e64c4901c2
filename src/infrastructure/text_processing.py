# src/infrastructure/text_processing.py

import re
from typing import List

from src.domain.errors import ConfigurationError


# Most small encoders cap out well before this; keeps a single call bounded
MAX_INPUT_CHARS = 4000

DEFAULT_CHUNK_SIZE = 500
DEFAULT_CHUNK_OVERLAP = 50

_WHITESPACE_RUN = re.compile(r"\s+")
# \w is Unicode-aware on purpose: accented letters survive ("café" stays "café")
_DISALLOWED_CHARS = re.compile(r"[^\w\s.,!?-]")
# Runs of one mark collapse to a single mark, so "..." becomes "." and "--" becomes "-"
_REPEATED_PUNCTUATION = re.compile(r"([.,!?-])\1+")


def preprocess_text(text: str, max_chars: int = MAX_INPUT_CHARS) -> str:
    """
    Normalize text before it reaches the encoder:
    collapse whitespace, drop special characters, collapse repeated
    punctuation, trim, then truncate to `max_chars`.

    Whitespace is collapsed before characters are dropped, so a dropped
    character between two spaces leaves both ("price @ 5" -> "price  5").
    """
    text = _WHITESPACE_RUN.sub(" ", text)
    text = _DISALLOWED_CHARS.sub("", text)
    text = _REPEATED_PUNCTUATION.sub(r"\1", text)
    return text.strip()[:max_chars]


def chunk_text(
    text: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    overlap: int = DEFAULT_CHUNK_OVERLAP,
) -> List[str]:
    """
    Split text into overlapping word windows.

    Chunk i starts at word i * (chunk_size - overlap) and holds up to
    chunk_size words. The last chunk may be shorter.
    """
    if chunk_size <= 0:
        raise ConfigurationError(f"chunk_size must be positive, got {chunk_size}.")
    if overlap < 0:
        raise ConfigurationError(f"overlap cannot be negative, got {overlap}.")
    if overlap >= chunk_size:
        raise ConfigurationError(
            f"overlap ({overlap}) must be smaller than chunk_size ({chunk_size})."
        )

    words = text.split()
    step = chunk_size - overlap

    return [
        " ".join(words[start:start + chunk_size])
        for start in range(0, len(words), step)
    ]


def count_words(text: str) -> int:
    return len(text.split())
