import json

import pytest
from pydantic import ValidationError

from wordvocab import FormatError, Tokenizer, TokenizerConfig, pad_sequences, tokenizer_from_json

CORPUS = ["the cat sat", "the dog sat"]


def fitted(**opts) -> Tokenizer:
    tok = Tokenizer(**opts)
    tok.fit(CORPUS)
    return tok


# ── normaliser ──────────────────────────────────────────────────
def test_clean_strips_filters_and_lowercases():
    tok = Tokenizer()
    assert tok.clean("Hello, World!  Foo") == ["hello", "world", "foo"]


def test_clean_keeps_apostrophe_and_unfiltered_punctuation():
    tok = Tokenizer()
    assert tok.clean("Don't stop? (now)") == ["don't", "stop?", "now"]


def test_clean_collapses_whitespace_runs():
    assert Tokenizer().clean("a \t b   c") == ["a", "b", "c"]


def test_clean_empty_text_yields_no_tokens():
    tok = Tokenizer()
    assert tok.clean("") == []
    assert tok.clean("!!!") == []


def test_clean_respects_lower_and_custom_filters():
    tok = Tokenizer(lower=False, filters="x")
    assert tok.clean("Axe, Box") == ["Ae,", "Bo"]
    assert Tokenizer(filters="").clean("a.b") == ["a.b"]


# ── vocabulary builder ──────────────────────────────────────────
def test_fit_counts_and_ranks_with_first_seen_tiebreak():
    tok = fitted()
    assert tok.word_counts == {"the": 2, "cat": 1, "sat": 2, "dog": 1}
    assert tok.word_index == {"the": 1, "sat": 2, "cat": 3, "dog": 4}
    assert tok.index_word == {1: "the", 2: "sat", 3: "cat", 4: "dog"}
    assert tok.vocab_size == 5


def test_fit_with_oov_reserves_index_one():
    tok = fitted(oov_token="<OOV>")
    assert tok.word_index == {"<OOV>": 1, "the": 2, "sat": 3, "cat": 4, "dog": 5}
    assert tok.index_word[1] == "<OOV>"
    assert "<OOV>" not in tok.word_counts


def test_oov_token_in_corpus_keeps_index_one():
    tok = Tokenizer(oov_token="unk")
    tok.fit(["unk unk unk a"])
    assert tok.word_index == {"unk": 1, "a": 2}
    assert tok.index_word == {1: "unk", 2: "a"}


def test_fit_is_deterministic():
    a, b = fitted(), fitted()
    assert a.word_index == b.word_index
    assert a.index_word == b.index_word
    assert a.word_counts == b.word_counts


def test_refit_accumulates_counts_and_rebuilds_index():
    tok = fitted()
    tok.fit(["dog dog dog"])
    assert tok.word_counts["dog"] == 4
    assert tok.word_index == {"dog": 1, "the": 2, "sat": 3, "cat": 4}
    assert tok.index_word == {i: w for w, i in tok.word_index.items()}


def test_higher_count_means_lower_index():
    tok = Tokenizer(oov_token="<OOV>")
    tok.fit(["a b b c c c d d d d", "e a d"])
    counts, index = tok.word_counts, tok.word_index
    for a in counts:
        for b in counts:
            if counts[a] > counts[b]:
                assert index[a] < index[b]


def test_fit_rejects_bare_string():
    with pytest.raises(TypeError):
        Tokenizer().fit("the cat sat")


# ── sequence encoder ────────────────────────────────────────────
def test_encode_known_words():
    assert fitted().encode(["the dog"]) == [[1, 4]]


def test_encode_substitutes_oov():
    assert fitted(oov_token="<OOV>").encode(["the fox"]) == [[2, 1]]


def test_unknown_words_without_oov_are_dropped():
    tok = fitted()
    assert tok.encode(["fox jumps", "the fox"]) == [[], [1]]


def test_only_unknown_words_with_oov_gives_all_ones():
    assert fitted(oov_token="<OOV>").encode(["fox jumps high"]) == [[1, 1, 1]]


def test_cap_excludes_indices_at_or_above_num_words():
    assert fitted(num_words=3).encode(["the cat dog sat"]) == [[1, 2]]
    assert fitted(num_words=3, oov_token="<OOV>").encode(["the sat cat"]) == [[2, 1, 1]]


def test_zero_cap_means_unlimited():
    assert fitted(num_words=0).encode(["dog"]) == [[4]]


def test_encode_preserves_order_and_does_not_mutate():
    tok = fitted()
    before = tok.serialize()
    assert tok.encode(["sat", "", "cat the"]) == [[2], [], [3, 1]]
    assert tok.serialize() == before


def test_decode():
    tok = fitted(oov_token="<OOV>")
    assert tok.decode([[2, 5], [2, 1, 99]]) == ["the dog", "the <OOV>"]


def test_pad_sequences():
    assert pad_sequences([[1, 2], [3, 4, 5, 6], []], 3) == [[1, 2, 0], [3, 4, 5], [0, 0, 0]]
    with pytest.raises(ValueError):
        pad_sequences([[1]], -1)


# ── config ──────────────────────────────────────────────────────
def test_config_rejects_invalid_values():
    with pytest.raises(ValidationError):
        TokenizerConfig(num_words="lots")
    with pytest.raises(ValidationError):
        TokenizerConfig(num_words=-1)
    with pytest.raises(ValidationError):
        TokenizerConfig(bogus=True)


def test_config_is_frozen():
    cfg = TokenizerConfig(oov_token="<OOV>")
    with pytest.raises(ValidationError):
        cfg.oov_token = "x"


def test_config_and_options_are_exclusive():
    with pytest.raises(TypeError):
        Tokenizer(TokenizerConfig(), lower=False)


# ── state codec ─────────────────────────────────────────────────
def test_serialize_shape():
    blob = json.loads(fitted().serialize())
    assert set(blob) == {"word_index", "index_word", "word_counts"}
    assert blob["index_word"] == {"1": "the", "2": "sat", "3": "cat", "4": "dog"}


def test_round_trip():
    tok = fitted(oov_token="<OOV>")
    back = tokenizer_from_json(tok.serialize(), tok.config)
    assert back.word_index == tok.word_index
    assert back.index_word == tok.index_word
    assert back.word_counts == tok.word_counts
    assert back.encode(["the fox"]) == [[2, 1]]


def test_round_trip_then_refit_accumulates():
    back = Tokenizer.deserialize(fitted().serialize())
    back.fit(["cat cat"])
    assert back.word_counts["cat"] == 3
    assert back.word_index["cat"] == 1


def test_snapshot_carries_no_config():
    tok = fitted(oov_token="<OOV>", num_words=3)
    back = Tokenizer.deserialize(tok.serialize())
    assert back.config == TokenizerConfig()
    assert back.encode(["dog fox"]) == [[5]]


@pytest.mark.parametrize("blob", [
    "not json",
    "[1, 2, 3]",
    '"word_index"',
    '{"word_index": [1, 2]}',
    '{"word_index": {"a": "x"}}',
    '{"word_counts": {"a": -1}}',
    '{"word_index": {"a": 1}, "index_word": {"1": "b"}}',
    '{"word_index": {"a": 1, "b": 1}}',
    '{"word_index": {"a": true}}',
    '{"word_index": {"a": 2.0}}',
    '{"word_counts": {"a": 2.0}}',
    '{"index_word": {"01": "a"}}',
    '{"index_word": {"0": "a"}}',
    '{"index_word": {"x": "a"}}',
])
def test_deserialize_rejects_malformed(blob):
    with pytest.raises(FormatError):
        Tokenizer.deserialize(blob)


def test_deserialize_missing_fields_are_empty():
    tok = Tokenizer.deserialize("{}")
    assert tok.word_index == {} and tok.index_word == {} and tok.word_counts == {}
    assert tok.encode(["anything"]) == [[]]


def test_deserialize_derives_missing_inverse():
    tok = Tokenizer.deserialize('{"word_index": {"a": 1, "b": 2}}')
    assert tok.index_word == {1: "a", 2: "b"}
    tok = Tokenizer.deserialize('{"index_word": {"1": "a", "2": "b"}}')
    assert tok.word_index == {"a": 1, "b": 2}


def test_save_and_load(tmp_path):
    tok = fitted()
    path = tok.save(tmp_path / "nested" / "tok.json")
    assert Tokenizer.load(path).word_index == tok.word_index
