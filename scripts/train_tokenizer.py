#!/usr/bin/env python3
"""
Fit a word tokenizer on a parquet corpus and write its snapshot.

Examples
========
# vanilla run
scripts/train_tokenizer.py --corpus data/snapshot.parquet --out data/tokenizer.json

# capped vocabulary with an OOV token
scripts/train_tokenizer.py --num-words 20000 --oov-token "<OOV>"
"""
import argparse
import json
from pathlib import Path

from wordvocab.config import TokenizerConfig
from wordvocab.dataset import read_corpus
from wordvocab.tokenizer import Tokenizer

DEFAULTS: dict[str, object] = dict(
    corpus    = "data/snapshot.parquet",
    column    = "text",
    out       = "data/tokenizer.json",
    num_words = 0,          # 0 → unlimited
    oov_token = "",
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(formatter_class=argparse.ArgumentDefaultsHelpFormatter)
    for k, v in DEFAULTS.items():
        parser.add_argument(f"--{k.replace('_', '-')}", type=type(v), default=v)
    parser.add_argument("--keep-case", action="store_true", help="Do not lowercase texts")
    parser.add_argument("--cfg-json", type=str, help="Path to JSON file of overrides")
    return parser


def main(argv: list[str] | None = None) -> Path:
    parser = build_parser()
    args = vars(parser.parse_args(argv))
    cfg_json = args.pop("cfg_json")
    if cfg_json:
        overrides = json.loads(Path(cfg_json).read_text())
        unknown = sorted(set(overrides) - set(args))
        if unknown:
            parser.error(f"unknown keys in {cfg_json}: {', '.join(unknown)}")
        args.update(overrides)

    corpus = Path(args["corpus"])
    if not corpus.is_file():
        raise FileNotFoundError(f"Missing {corpus}")

    # 1) Load corpus
    texts = read_corpus(corpus, args["column"])
    print(f"⇢  {len(texts)} texts from {corpus}")

    # 2) Fit
    cfg = TokenizerConfig(
        num_words=args["num_words"] or None,
        oov_token=args["oov_token"],
        lower=not args["keep_case"],
    )
    tokenizer = Tokenizer(cfg)
    tokenizer.fit(texts)

    # 3) Save snapshot
    out = tokenizer.save(args["out"])
    n_words = len(tokenizer.word_index)
    cap = cfg.max_index
    kept = n_words if cap is None else min(n_words, cap - 1)
    print(f"✔ {n_words} words indexed ({kept} under the cap), snapshot saved to {out}")
    return out


if __name__ == "__main__":
    main()
