from unittest.mock import Mock, patch

import pytest
import requests

from papernotes import config
from papernotes.embeddings import OllamaEmbeddings, get_embeddings, tokenize_with_tiktoken
from papernotes.errors import EmbeddingError


class FakeEncoding:
    """Character-level stand-in for a tiktoken encoding"""

    def encode(self, text, disallowed_special="all"):
        return list(text)

    def decode(self, tokens):
        return "".join(tokens)


@pytest.fixture
def embeddings():
    with patch("papernotes.embeddings.tokenize_with_tiktoken", side_effect=lambda text, max_tokens: text):
        yield OllamaEmbeddings(model_name="nomic-embed-text", base_url="http://ollama:11434")


def _embed_response(vectors, status_code=200):
    response = Mock(status_code=status_code, text="")
    response.json.return_value = {"embeddings": vectors}
    return response


class TestTokenize:

    def test_short_text_unchanged(self):
        with patch("papernotes.embeddings.tiktoken.get_encoding", return_value=FakeEncoding()):
            assert tokenize_with_tiktoken("abc", max_tokens=5) == "abc"

    def test_long_text_truncated(self):
        with patch("papernotes.embeddings.tiktoken.get_encoding", return_value=FakeEncoding()):
            assert tokenize_with_tiktoken("abcdefgh", max_tokens=3) == "abc"


class TestOllamaEmbeddings:

    def test_batch_request(self, embeddings):
        with patch("papernotes.embeddings.requests.post",
                   return_value=_embed_response([[0.1, 0.2], [0.3, 0.4]])) as mock_post:
            vectors = embeddings.embed_documents(["first", "second"])

        assert vectors == [[0.1, 0.2], [0.3, 0.4]]
        assert mock_post.call_args.args[0] == "http://ollama:11434/api/embed"
        assert mock_post.call_args.kwargs["json"] == {"model": "nomic-embed-text", "input": ["first", "second"]}

    def test_embed_query(self, embeddings):
        with patch("papernotes.embeddings.requests.post", return_value=_embed_response([[1.0, 0.0]])):
            assert embeddings.embed_query("question") == [1.0, 0.0]

    def test_empty_batch_skips_request(self, embeddings):
        with patch("papernotes.embeddings.requests.post") as mock_post:
            assert embeddings.embed_documents([]) == []
        mock_post.assert_not_called()

    def test_error_status(self, embeddings):
        with patch("papernotes.embeddings.requests.post", return_value=_embed_response([], status_code=404)):
            with pytest.raises(EmbeddingError):
                embeddings.embed_documents(["text"])

    def test_connection_error(self, embeddings):
        with patch("papernotes.embeddings.requests.post", side_effect=requests.ConnectionError("refused")):
            with pytest.raises(EmbeddingError):
                embeddings.embed_documents(["text"])

    def test_count_mismatch(self, embeddings):
        with patch("papernotes.embeddings.requests.post", return_value=_embed_response([[0.1]])):
            with pytest.raises(EmbeddingError):
                embeddings.embed_documents(["one", "two"])


def test_unknown_provider(monkeypatch):
    monkeypatch.setattr(config, "EMBEDDING_PROVIDER", "word2vec")
    with pytest.raises(ValueError):
        get_embeddings()


def test_default_provider_is_ollama(monkeypatch):
    monkeypatch.setattr(config, "EMBEDDING_PROVIDER", "ollama")
    assert isinstance(get_embeddings(), OllamaEmbeddings)


class StrictEncoding(FakeEncoding):
    """Rejects special-token text unless told otherwise, like tiktoken's default"""

    def encode(self, text, disallowed_special="all"):
        if disallowed_special == "all" and "<|endoftext|>" in text:
            raise ValueError("Encountered text corresponding to disallowed special token '<|endoftext|>'")
        return list(text)


def test_special_token_text_is_encoded_as_plain_text():
    text = "GPT-2 separates documents with <|endoftext|> markers."
    with patch("papernotes.embeddings.tiktoken.get_encoding", return_value=StrictEncoding()):
        assert tokenize_with_tiktoken(text, max_tokens=1000) == text


def test_invalid_json_body(embeddings):
    response = Mock(status_code=200, text="<html>")
    response.json.side_effect = requests.JSONDecodeError("Expecting value", "<html>", 0)
    with patch("papernotes.embeddings.requests.post", return_value=response):
        with pytest.raises(EmbeddingError):
            embeddings.embed_documents(["text"])
