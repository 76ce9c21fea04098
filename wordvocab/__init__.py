from .config import DEFAULT_FILTERS, TokenizerConfig
from .tokenizer import (
    FormatError,
    Tokenizer,
    TokenizerState,
    pad_sequences,
    tokenizer_from_json,
)

__all__ = [
    "DEFAULT_FILTERS",
    "TokenizerConfig",
    "FormatError",
    "Tokenizer",
    "TokenizerState",
    "pad_sequences",
    "tokenizer_from_json",
]
