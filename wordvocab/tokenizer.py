"""wordvocab/tokenizer.py
──────────────────────────────────────────────────────────────────
Frequency-ranked word tokenizer:

  • `clean`      – lowercase, strip filter chars, collapse spaces, split.
  • `fit`        – count words over a corpus and rank them into indices.
  • `encode`     – texts → integer sequences (OOV substitution + cap).
  • `decode`     – integer sequences → texts.
  • `serialize` / `deserialize` – JSON snapshot of the learned vocabulary.

Index 0 is never assigned; it stays free for padding.
"""
from __future__ import annotations

import json
import logging
import re
from collections import Counter
from pathlib import Path
from typing import Annotated, Dict, Iterable, List, Sequence

from pydantic import BaseModel, Field, ValidationError

from .config import TokenizerConfig

log = logging.getLogger(__name__)

MULTI_SPACE = re.compile(r"\s{2,}")
OOV_INDEX = 1
CANONICAL_INDEX = re.compile(r"[1-9][0-9]*")
PAD_INDEX = 0


class FormatError(ValueError):
    """Snapshot blob is not a well-formed tokenizer snapshot."""


# ────────────────────────────────────────────────────────────────
# Learned state
# ────────────────────────────────────────────────────────────────
class TokenizerState(BaseModel):
    """The three learned mappings. Also the wire schema of a snapshot."""

    word_index: Dict[str, Annotated[int, Field(ge=1, strict=True)]] = {}
    # JSON object keys are strings; CANONICAL_INDEX gates them before coercion
    index_word: Dict[Annotated[int, Field(ge=1)], str] = {}
    word_counts: Dict[str, Annotated[int, Field(ge=0, strict=True)]] = {}


def _inverse(mapping: dict) -> dict:
    return {v: k for k, v in mapping.items()}


# ────────────────────────────────────────────────────────────────
# Tokenizer
# ────────────────────────────────────────────────────────────────
class Tokenizer:
    def __init__(self, config: TokenizerConfig | None = None, **options):
        if config is not None and options:
            raise TypeError("pass either a TokenizerConfig or keyword options, not both")
        self.config = config or TokenizerConfig(**options)
        filters = self.config.filters
        self._filter_re = re.compile(f"[{re.escape(filters)}]") if filters else None
        # replaced wholesale by fit/deserialize, never edited in place
        self.state = TokenizerState()

    # read-only views ------------------------------------------------
    @property
    def word_index(self) -> dict[str, int]:
        return self.state.word_index

    @property
    def index_word(self) -> dict[int, str]:
        return self.state.index_word

    @property
    def word_counts(self) -> dict[str, int]:
        return self.state.word_counts

    @property
    def vocab_size(self) -> int:
        """Rows an embedding table needs: every index plus the padding slot."""
        return len(self.state.word_index) + 1

    # normaliser -----------------------------------------------------
    def clean(self, text: str) -> list[str]:
        if self.config.lower:
            text = text.lower()
        if self._filter_re is not None:
            text = self._filter_re.sub("", text)
        text = MULTI_SPACE.sub(" ", text)
        # empty pieces (empty text, leading/trailing space) are not words
        return [w for w in text.split(" ") if w]

    # vocabulary builder ---------------------------------------------
    def fit(self, texts: Iterable[str]) -> None:
        """Add the corpus to the running counts and rebuild both indices."""
        _reject_bare_str(texts)
        counts = Counter(self.state.word_counts)
        n_texts = 0
        for text in texts:
            counts.update(self.clean(text))
            n_texts += 1

        oov = self.config.oov_token
        # sorted() is stable, so equal counts keep first-seen order
        ranked = sorted((w for w in counts if w != oov), key=lambda w: -counts[w])
        if oov:
            ranked.insert(0, oov)

        word_index = {w: i for i, w in enumerate(ranked, start=1)}
        self.state = TokenizerState.model_construct(
            word_index=word_index,
            index_word=_inverse(word_index),
            word_counts=dict(counts),
        )
        log.debug("fit on %d texts → %d words", n_texts, len(word_index))

    # sequence encoder -----------------------------------------------
    def encode(self, texts: Iterable[str]) -> list[list[int]]:
        _reject_bare_str(texts)
        word_index = self.state.word_index
        cap = self.config.max_index
        oov = [OOV_INDEX] if self.config.oov_token else []

        out: list[list[int]] = []
        for text in texts:
            seq: list[int] = []
            for word in self.clean(text):
                idx = word_index.get(word)
                if idx is None or (cap is not None and idx >= cap):
                    seq.extend(oov)
                else:
                    seq.append(idx)
            out.append(seq)
        return out

    def decode(self, sequences: Iterable[Sequence[int]]) -> list[str]:
        """Map index sequences back to space-joined words; unknown ids vanish."""
        index_word = self.state.index_word
        return [
            " ".join(index_word[i] for i in seq if i in index_word)
            for seq in sequences
        ]

    # state codec ----------------------------------------------------
    def serialize(self) -> str:
        return self.state.model_dump_json()

    @classmethod
    def deserialize(cls, blob: str | bytes, config: TokenizerConfig | None = None) -> "Tokenizer":
        tok = cls(config)
        tok.state = parse_snapshot(blob)
        return tok

    def save(self, path: str | Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.serialize(), encoding="utf-8")
        return path

    @classmethod
    def load(cls, path: str | Path, config: TokenizerConfig | None = None) -> "Tokenizer":
        return cls.deserialize(Path(path).read_text(encoding="utf-8"), config)


def parse_snapshot(blob: str | bytes) -> TokenizerState:
    """Validate a snapshot blob.

    Missing fields come back empty. If only one of word_index/index_word is
    present the other is rebuilt from it; if both are present they must be
    exact inverses of each other.
    """
    try:
        raw = json.loads(blob)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise FormatError(f"snapshot is not valid JSON: {exc}") from exc
    if not isinstance(raw, dict):
        raise FormatError(f"snapshot must be a JSON object, got {type(raw).__name__}")
    index_word = raw.get("index_word")
    if isinstance(index_word, dict):
        bad = [k for k in index_word if not CANONICAL_INDEX.fullmatch(k)]
        if bad:
            raise FormatError(f"index_word keys must be positive integers, got {bad!r}")

    try:
        state = TokenizerState.model_validate(raw)
    except ValidationError as exc:
        raise FormatError(f"malformed snapshot: {exc}") from exc

    given = state.model_fields_set
    if "index_word" not in given:
        state.index_word = _inverse(state.word_index)
    elif "word_index" not in given:
        state.word_index = _inverse(state.index_word)

    inv = _inverse(state.word_index)
    if len(inv) != len(state.word_index) or inv != state.index_word:
        raise FormatError("word_index and index_word are not inverse mappings")
    return state


def tokenizer_from_json(blob: str | bytes, config: TokenizerConfig | None = None) -> Tokenizer:
    return Tokenizer.deserialize(blob, config)


def pad_sequences(sequences: Iterable[Sequence[int]], maxlen: int, value: int = PAD_INDEX) -> List[List[int]]:
    """Right-pad / right-truncate every sequence to exactly `maxlen` ids."""
    if maxlen < 0:
        raise ValueError("maxlen must be non-negative")
    return [list(seq[:maxlen]) + [value] * (maxlen - min(len(seq), maxlen)) for seq in sequences]


def _reject_bare_str(texts) -> None:
    if isinstance(texts, (str, bytes)):
        raise TypeError("expected a collection of texts, got a single string")
