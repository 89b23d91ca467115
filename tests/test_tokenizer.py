# tests/test_tokenizer.py
import pytest

from promptpacker.utils import tokenizer
from promptpacker.utils.tokenizer import Tokenizer


class FakeEncoding:
    def encode(self, text, disallowed_special=()):
        return list(range(10))


@pytest.fixture
def fake_tiktoken(monkeypatch):
    requested = []

    def get_encoding(name):
        requested.append(name)
        return FakeEncoding()

    monkeypatch.setattr(Tokenizer, "_encodings", {})
    monkeypatch.setattr(tokenizer.tiktoken, "get_encoding", get_encoding)
    return requested


def test_character_estimate():
    assert Tokenizer.estimate("") == 0
    assert Tokenizer.estimate("abcd") == 1
    assert Tokenizer.estimate("abcde") == 2

def test_estimate_model_does_not_touch_tiktoken(monkeypatch):
    def boom(name):
        raise AssertionError("tiktoken should not be used")

    monkeypatch.setattr(tokenizer.tiktoken, "get_encoding", boom)
    assert Tokenizer.count("x" * 40) == 10
    assert Tokenizer.count("x" * 40, "estimate") == 10

def test_openai_models_use_exact_count(fake_tiktoken):
    assert Tokenizer.count("anything", "gpt-4o") == 10
    assert fake_tiktoken == ["o200k_base"]

def test_model_corrections(fake_tiktoken):
    assert Tokenizer.count("anything", "claude-4") == 12  # ceil(10 * 1.16)
    assert Tokenizer.count("anything", "gemini-2.5-pro") == 9
    assert Tokenizer.count("anything", "deepseek-r1") == 11

def test_encodings_are_cached(fake_tiktoken):
    Tokenizer.count("a", "claude-4")
    Tokenizer.count("b", "deepseek-r1")
    assert fake_tiktoken == ["cl100k_base"]

def test_falls_back_when_encoding_unavailable(monkeypatch):
    def offline(name):
        raise OSError("no network")

    monkeypatch.setattr(Tokenizer, "_encodings", {})
    monkeypatch.setattr(tokenizer.tiktoken, "get_encoding", offline)
    assert Tokenizer.count("x" * 41, "gpt-4o") == 11
