"""wordvocab/dataset.py
• Encodes a corpus with a fitted `Tokenizer` once, up front
• Right-pads / truncates every sample to `seq_len` with the pad id (0)
"""
from __future__ import annotations

from pathlib import Path
from typing import Sequence

import pandas as pd
import torch
from torch.utils.data import Dataset

from .tokenizer import PAD_INDEX, Tokenizer, pad_sequences


def read_corpus(parquet_path: str | Path, column: str = "text") -> list[str]:
    """Non-null rows of one text column of a parquet file."""
    df = pd.read_parquet(parquet_path, columns=[column])
    return df[column].dropna().astype(str).tolist()


class SequenceDataset(Dataset):
    """Pre-encoded, padded word-index dataset.

    Each item returns (input_ids, target_ids) where target == input, the
    same protocol the language-model trainer expects.
    """

    def __init__(self, texts: Sequence[str], tokenizer: Tokenizer, seq_len: int):
        if seq_len < 1:
            raise ValueError("seq_len must be >= 1")
        self.tokenizer = tokenizer
        self.seq_len = seq_len

        padded = pad_sequences(tokenizer.encode(texts), seq_len, value=PAD_INDEX)
        self.samples: list[torch.Tensor] = [torch.tensor(ids, dtype=torch.long) for ids in padded]

    @classmethod
    def from_parquet(cls, parquet_path: str | Path, tokenizer: Tokenizer, seq_len: int,
                     column: str = "text") -> "SequenceDataset":
        return cls(read_corpus(parquet_path, column), tokenizer, seq_len)

    # dataset protocol ---------------------------------------------------
    def __len__(self) -> int:
        return len(self.samples)

    def __getitem__(self, idx: int):
        ids = self.samples[idx]
        return ids, ids  # (input, target)
