import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Ollama API settings
OLLAMA_BASE_URL = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")
LLM_MODEL_NAME = os.getenv("LLM_MODEL_NAME", "llama3.2")
LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0.0"))
LLM_TIMEOUT = int(os.getenv("LLM_TIMEOUT", "300"))
# Paper text sent to the notes prompt is cut to this many tokens
LLM_MAX_PAPER_TOKENS = int(os.getenv("LLM_MAX_PAPER_TOKENS", "100000"))

# Embedding settings
EMBEDDING_PROVIDER = os.getenv("EMBEDDING_PROVIDER", "ollama")  # "ollama" or "sentence-transformers"
EMBEDDING_MODEL_NAME = os.getenv("EMBEDDING_MODEL_NAME", "nomic-embed-text")
EMBEDDING_MAX_TOKENS = int(os.getenv("EMBEDDING_MAX_TOKENS", "8192"))
SENTENCE_TRANSFORMER_MODEL = os.getenv("SENTENCE_TRANSFORMER_MODEL", "all-MiniLM-L6-v2")

# Vector store settings
VECTOR_BACKEND = os.getenv("VECTOR_BACKEND", "local")  # "local" or "milvus"
STORAGE_DIR = os.getenv("STORAGE_DIR", "local_storage")

# Zilliz Cloud settings
ZILLIZ_CLOUD_URI = os.getenv("ZILLIZ_CLOUD_URI", "")  # From .env file
ZILLIZ_CLOUD_TOKEN = os.getenv("ZILLIZ_CLOUD_TOKEN", "")  # From .env file

# Text splitting and retrieval
CHUNK_SIZE = int(os.getenv("CHUNK_SIZE", "1000"))
CHUNK_OVERLAP = int(os.getenv("CHUNK_OVERLAP", "200"))
RETRIEVER_K = int(os.getenv("RETRIEVER_K", "4"))

PDF_FETCH_TIMEOUT = int(os.getenv("PDF_FETCH_TIMEOUT", "60"))

# API server
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8080"))
