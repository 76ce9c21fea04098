"""wordvocab/config.py
──────────────────────────────────────────────────────────────────
Tokenizer configuration plus the env-driven service settings.

`TokenizerConfig` is immutable once built; it is never part of a
serialized snapshot, so a restored tokenizer gets its config passed in
separately.
"""
from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

# Reference punctuation set. The apostrophe is kept so "don't" stays one word.
DEFAULT_FILTERS = "\\.,/#!$%^&*;:{}=-_`~()"


class TokenizerConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    filters: str = Field(DEFAULT_FILTERS, description="Characters stripped from every text.")
    num_words: int | None = Field(
        None, ge=0, description="Only indices strictly below this are kept. 0/None = unlimited."
    )
    oov_token: str = Field("", description="Reserved as index 1 when non-empty.")
    lower: bool = True

    @property
    def max_index(self) -> int | None:
        return self.num_words or None


# ────────────────────────────────────────────────────────────────
# Service settings (WORDVOCAB_* environment variables)
# ────────────────────────────────────────────────────────────────
def snapshot_path() -> Path:
    return Path(os.getenv("WORDVOCAB_SNAPSHOT", "data/tokenizer.json"))


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def config_from_env() -> TokenizerConfig:
    """Build the service's tokenizer config from WORDVOCAB_* variables."""
    opts: dict[str, object] = {}
    if num_words := os.getenv("WORDVOCAB_NUM_WORDS"):
        opts["num_words"] = num_words
    if oov := os.getenv("WORDVOCAB_OOV_TOKEN"):
        opts["oov_token"] = oov
    opts["lower"] = _env_flag("WORDVOCAB_LOWER", True)
    return TokenizerConfig(**opts)
