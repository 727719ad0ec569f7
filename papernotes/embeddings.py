import logging
from typing import List

import requests
import tiktoken

from . import config
from .errors import EmbeddingError

logger = logging.getLogger(__name__)


def tokenize_with_tiktoken(text: str, max_tokens: int = 8192) -> str:
    """
    Truncate text to a token budget using tiktoken.

    Args:
        text: Text to tokenize
        max_tokens: Maximum number of tokens to keep

    Returns:
        The text, cut down to at most max_tokens tokens
    """
    # cl100k_base is close enough to the local models' tokenizers for budgeting
    encoding = tiktoken.get_encoding("cl100k_base")
    # Literal special tokens such as <|endoftext|> in a paper are plain text here
    tokens = encoding.encode(text, disallowed_special=())

    if len(tokens) > max_tokens:
        logger.info(f"Truncating text from {len(tokens)} to {max_tokens} tokens")
        tokens = tokens[:max_tokens]
        return encoding.decode(tokens)

    return text


class OllamaEmbeddings:
    """Embeddings computed by a model served through the Ollama API"""

    def __init__(self, model_name: str = None, base_url: str = None, max_tokens: int = None):
        self.model_name = model_name or config.EMBEDDING_MODEL_NAME
        self.embed_url = f"{(base_url or config.OLLAMA_BASE_URL).rstrip('/')}/api/embed"
        self.max_tokens = max_tokens or config.EMBEDDING_MAX_TOKENS
        logger.info(f"Ollama embeddings initialized with model: {self.model_name}")

    def embed_documents(self, texts: List[str]) -> List[List[float]]:
        """
        Embed a batch of texts.

        Args:
            texts: Texts to embed

        Returns:
            One vector per text, in the same order
        """
        if not texts:
            return []

        processed = [tokenize_with_tiktoken(text, self.max_tokens) for text in texts]

        try:
            response = requests.post(
                self.embed_url,
                json={"model": self.model_name, "input": processed},
                timeout=config.LLM_TIMEOUT,
            )
        except requests.RequestException as e:
            logger.error(f"Error connecting to Ollama embeddings API: {e}")
            raise EmbeddingError("Embedding service unavailable") from e

        if response.status_code != 200:
            logger.error(f"Error from Ollama API: {response.status_code}, {response.text}")
            raise EmbeddingError(f"Embedding request failed with status {response.status_code}")

        try:
            embeddings = response.json().get("embeddings", [])
        except ValueError as e:
            logger.error(f"Invalid JSON from Ollama embeddings API: {e}")
            raise EmbeddingError("Embedding service returned invalid JSON") from e

        if len(embeddings) != len(texts):
            raise EmbeddingError(
                f"Expected {len(texts)} embeddings, got {len(embeddings)}"
            )

        logger.info(f"Generated {len(embeddings)} embeddings with dimension: {len(embeddings[0])}")
        return embeddings

    def embed_query(self, text: str) -> List[float]:
        return self.embed_documents([text])[0]


class SentenceTransformerEmbeddings:
    """Embeddings computed locally with a sentence-transformers model"""

    def __init__(self, model_name: str = "all-MiniLM-L6-v2"):
        from sentence_transformers import SentenceTransformer

        self.model_name = model_name
        try:
            self.model = SentenceTransformer(model_name)
            logger.info(f"Embedding model {model_name} loaded successfully")
        except Exception as e:
            logger.error(f"Failed to load embedding model: {e}")
            raise EmbeddingError(f"Failed to load embedding model {model_name}") from e

    def embed_documents(self, texts: List[str]) -> List[List[float]]:
        if not texts:
            return []
        try:
            return self.model.encode(texts).tolist()
        except Exception as e:
            logger.error(f"Error generating embeddings: {e}")
            raise EmbeddingError("Embedding generation failed") from e

    def embed_query(self, text: str) -> List[float]:
        return self.embed_documents([text])[0]


def get_embeddings():
    """Build the embedding model selected by EMBEDDING_PROVIDER"""
    provider = config.EMBEDDING_PROVIDER.lower()
    if provider == "ollama":
        return OllamaEmbeddings()
    if provider == "sentence-transformers":
        return SentenceTransformerEmbeddings(config.SENTENCE_TRANSFORMER_MODEL)
    raise ValueError(f"Unknown EMBEDDING_PROVIDER: {config.EMBEDDING_PROVIDER}")
