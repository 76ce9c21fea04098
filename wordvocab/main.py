"""wordvocab/main.py
──────────────────────────────────────────────────────────────────
FastAPI entrypoint exposing one shared tokenizer:

  • `POST /fit`       – add texts to the vocabulary, persist the snapshot.
  • `POST /encode`    – texts → integer sequences.
  • `POST /decode`    – integer sequences → texts.
  • `GET  /snapshot`  – current learned state as JSON.
  • `PUT  /snapshot`  – replace learned state from a JSON snapshot, persist it.

Writers (`/fit`, `PUT /snapshot`) take `_write_lock`. Readers take no lock once
the singleton exists: writers swap in a whole new state record in a single
assignment.
"""
from __future__ import annotations

import logging
import threading
from typing import List

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel, Field
from starlette.concurrency import run_in_threadpool
from starlette.responses import Response

from .config import config_from_env, snapshot_path
from .tokenizer import FormatError, Tokenizer, TokenizerState, parse_snapshot

log = logging.getLogger(__name__)

# ────────────────────────────────────────────────────────────────
# Lazy singleton
# ────────────────────────────────────────────────────────────────
_tokenizer: Tokenizer | None = None
_write_lock = threading.Lock()


def tokenizer() -> Tokenizer:
    global _tokenizer
    if _tokenizer is not None:
        return _tokenizer
    with _write_lock:
        if _tokenizer is None:
            cfg = config_from_env()
            path = snapshot_path()
            if path.is_file():
                _tokenizer = Tokenizer.load(path, cfg)
                log.info("loaded snapshot %s (%d words)", path, len(_tokenizer.word_index))
            else:
                _tokenizer = Tokenizer(cfg)
                log.info("no snapshot at %s; starting with an empty vocabulary", path)
    return _tokenizer


# ────────────────────────────────────────────────────────────────
# FastAPI application & schemas
# ────────────────────────────────────────────────────────────────
app = FastAPI(title="wordvocab", version="0.1.0")


class TextsReq(BaseModel):
    texts: List[str] = Field(..., description="Raw texts, in order.")


class FitResp(BaseModel):
    vocab_size: int
    words: int


class EncodeResp(BaseModel):
    sequences: List[List[int]]


class DecodeReq(BaseModel):
    sequences: List[List[int]]


class DecodeResp(BaseModel):
    texts: List[str]


@app.post("/fit", response_model=FitResp)
def fit(req: TextsReq):
    tok = tokenizer()
    try:
        with _write_lock:
            tok.fit(req.texts)
            path = tok.save(snapshot_path())
    except OSError as exc:
        raise HTTPException(status_code=500, detail=f"could not persist snapshot: {exc}")
    log.info("fit on %d texts, snapshot written to %s", len(req.texts), path)
    return FitResp(vocab_size=tok.vocab_size, words=len(tok.word_counts))


@app.post("/encode", response_model=EncodeResp)
def encode(req: TextsReq):
    return EncodeResp(sequences=tokenizer().encode(req.texts))


@app.post("/decode", response_model=DecodeResp)
def decode(req: DecodeReq):
    return DecodeResp(texts=tokenizer().decode(req.sequences))


@app.get("/snapshot")
def get_snapshot():
    return Response(content=tokenizer().serialize(), media_type="application/json")


@app.put("/snapshot", response_model=FitResp)
async def put_snapshot(request: Request):
    blob = await request.body()
    try:
        state = parse_snapshot(blob)
    except FormatError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    # lock and disk I/O stay off the event loop
    return await run_in_threadpool(_replace_state, state)


def _replace_state(state: TokenizerState) -> FitResp:
    tok = tokenizer()
    try:
        with _write_lock:
            tok.state = state
            tok.save(snapshot_path())
    except OSError as exc:
        raise HTTPException(status_code=500, detail=f"could not persist snapshot: {exc}")
    return FitResp(vocab_size=tok.vocab_size, words=len(tok.word_counts))
