import json
import logging
from typing import Any, Dict, List, Optional

from langchain_core.documents import Document
from pymilvus import DataType, MilvusClient

from .. import config
from ..errors import StorageError
from ..models import PaperRecord, QARecord
from .base import PaperStore

logger = logging.getLogger(__name__)

PAPERS_COLLECTION = "arxiv_papers"
EMBEDDINGS_COLLECTION = "arxiv_embeddings"
QA_COLLECTION = "arxiv_question_answering"

URL_MAX_LENGTH = 2048
TEXT_MAX_LENGTH = 65535
# Milvus caps a JSON field at 64KB of UTF-8; the serialized paper record must stay below it
JSON_FIELD_MAX_BYTES = 65536

SEARCH_PARAMS = {
    "metric_type": "COSINE",  # Match the index metric type
    "params": {"ef": 64}
}


def _quote(value: str) -> str:
    """Quote a string literal for a Milvus filter expression"""
    return json.dumps(value)


def _json_size(value: Dict[str, Any]) -> int:
    return len(json.dumps(value, ensure_ascii=False).encode("utf-8"))


def fit_paper_record(raw_record: Dict[str, Any]) -> Dict[str, Any]:
    """
    Trim the paper text so the serialized record fits in a Milvus JSON field.

    Args:
        raw_record: Paper record dumped with aliases

    Returns:
        The record, with "paper" shortened if needed
    """
    size = _json_size(raw_record)
    if size < JSON_FIELD_MAX_BYTES:
        return raw_record

    paper = raw_record["paper"]
    original_length = len(paper)
    while size >= JSON_FIELD_MAX_BYTES and paper:
        # Every dropped character frees at least one byte
        paper = paper[:max(len(paper) - (size - JSON_FIELD_MAX_BYTES + 1), 0)]
        raw_record["paper"] = paper
        size = _json_size(raw_record)

    if size >= JSON_FIELD_MAX_BYTES:
        raise StorageError(f"Paper record is {size} bytes without its text, over the {JSON_FIELD_MAX_BYTES} byte limit")

    logger.warning(f"Truncated paper text from {original_length} to {len(paper)} characters to fit the JSON field")
    return raw_record


class MilvusPaperStore(PaperStore):
    """Paper store backed by Milvus / Zilliz Cloud."""

    def __init__(self, embeddings, client: Optional[MilvusClient] = None,
                 uri: str = None, token: str = None):
        super().__init__(embeddings)
        self.client = client or self.connect_to_zilliz(uri or config.ZILLIZ_CLOUD_URI,
                                                       token or config.ZILLIZ_CLOUD_TOKEN)

    @staticmethod
    def connect_to_zilliz(uri: str, token: str) -> MilvusClient:
        """Connect to Zilliz Cloud cluster."""
        if not uri or not token:
            raise StorageError("ZILLIZ_CLOUD_URI and ZILLIZ_CLOUD_TOKEN must be set in .env file")

        try:
            logger.info(f"Connecting to Zilliz Cloud at {uri}")
            client = MilvusClient(uri=uri, token=token)
            collections = client.list_collections()
            logger.info(f"Connected to Zilliz Cloud. Available collections: {collections}")
            return client
        except Exception as e:
            logger.error(f"Failed to connect to Zilliz Cloud: {e}")
            raise StorageError("Failed to connect to Zilliz Cloud") from e

    # Collections

    def _build_schema(self, collection_name: str, dim: int):
        if collection_name == PAPERS_COLLECTION:
            schema = self.client.create_schema()
            schema.add_field("url", DataType.VARCHAR, is_primary=True, max_length=URL_MAX_LENGTH, description="Paper URL")
            schema.add_field("name", DataType.VARCHAR, max_length=2000, description="Paper name")
            schema.add_field("embedding", DataType.FLOAT_VECTOR, dim=dim, description="Paper name embedding")
            schema.add_field("json_data", DataType.JSON, description="Paper record")
        elif collection_name == EMBEDDINGS_COLLECTION:
            schema = self.client.create_schema(auto_id=True)
            schema.add_field("id", DataType.INT64, is_primary=True)
            schema.add_field("url", DataType.VARCHAR, max_length=URL_MAX_LENGTH, description="Source paper URL")
            schema.add_field("page", DataType.INT64, description="Page the chunk comes from")
            schema.add_field("text", DataType.VARCHAR, max_length=TEXT_MAX_LENGTH, description="Chunk text")
            schema.add_field("embedding", DataType.FLOAT_VECTOR, dim=dim, description="Chunk embedding")
        else:
            schema = self.client.create_schema(auto_id=True)
            schema.add_field("id", DataType.INT64, is_primary=True)
            schema.add_field("url", DataType.VARCHAR, max_length=URL_MAX_LENGTH, description="Paper URL")
            schema.add_field("question", DataType.VARCHAR, max_length=TEXT_MAX_LENGTH, description="Question text")
            schema.add_field("embedding", DataType.FLOAT_VECTOR, dim=dim, description="Question embedding")
            schema.add_field("json_data", DataType.JSON, description="Question and answer record")
        return schema

    def ensure_collection(self, collection_name: str, dim: int) -> None:
        """Create a collection with an HNSW index if it does not exist yet"""
        if self.client.has_collection(collection_name):
            return

        try:
            logger.info(f"Creating collection: {collection_name}")
            index_params = self.client.prepare_index_params()
            index_params.add_index("embedding", metric_type="COSINE", index_type="HNSW",
                                   params={"M": 8, "efConstruction": 64})
            self.client.create_collection(
                collection_name=collection_name,
                schema=self._build_schema(collection_name, dim),
                index_params=index_params
            )
        except Exception as e:
            logger.error(f"Error setting up Milvus collection {collection_name}: {e}")
            raise StorageError(f"Could not create collection {collection_name}") from e

    def _query_one(self, collection_name: str, expr: str, output_fields: List[str]) -> Optional[Dict[str, Any]]:
        if not self.client.has_collection(collection_name):
            return None
        try:
            rows = self.client.query(
                collection_name=collection_name,
                filter=expr,
                output_fields=output_fields,
                limit=1
            )
        except Exception as e:
            logger.error(f"Error querying {collection_name}: {e}")
            raise StorageError(f"Could not query {collection_name}") from e
        return rows[0] if rows else None

    # Papers

    def get_paper(self, url: str) -> Optional[PaperRecord]:
        row = self._query_one(PAPERS_COLLECTION, f"url == {_quote(url)}", ["json_data"])
        if row is None:
            return None
        record = PaperRecord.model_validate(row["json_data"])
        logger.info(f"Retrieved paper from database: {record.name}")
        return record

    def add_paper(self, record: PaperRecord, documents: List[Document]) -> None:
        raw_record = fit_paper_record(record.model_dump(by_alias=True))

        if not self.has_index(record.url):
            self._add_documents(record.url, documents)

        if self.get_paper(record.url) is not None:
            logger.info(f"Paper already saved in database: {record.url}")
            return

        embedding = self.embeddings.embed_query(record.name)
        self.ensure_collection(PAPERS_COLLECTION, len(embedding))
        try:
            self.client.insert(
                collection_name=PAPERS_COLLECTION,
                data=[{
                    "url": record.url,
                    "name": record.name[:2000],
                    "embedding": embedding,
                    "json_data": raw_record,
                }]
            )
            self.client.flush(PAPERS_COLLECTION)
        except Exception as e:
            logger.error(f"Error adding paper to database: {e}")
            raise StorageError("Error adding paper to database") from e
        logger.info(f"Successfully saved paper '{record.name}' to database")

    # Vector index

    def _add_documents(self, url: str, documents: List[Document]) -> None:
        if not documents:
            raise StorageError("No documents to index")

        vectors = self.embeddings.embed_documents([doc.page_content for doc in documents])
        self.ensure_collection(EMBEDDINGS_COLLECTION, len(vectors[0]))

        entries = [
            {
                "url": url,
                "page": int(doc.metadata.get("page", 0)),
                "text": doc.page_content,
                "embedding": vector,
            }
            for doc, vector in zip(documents, vectors)
        ]
        try:
            self.client.insert(collection_name=EMBEDDINGS_COLLECTION, data=entries)
            self.client.flush(EMBEDDINGS_COLLECTION)
        except Exception as e:
            logger.error(f"Error adding documents to vector store: {e}")
            raise StorageError("Error adding documents to vector store") from e
        logger.info(f"Inserted {len(entries)} chunks for {url} into Milvus")

    def has_index(self, url: str) -> bool:
        return self._query_one(EMBEDDINGS_COLLECTION, f"url == {_quote(url)}", ["id"]) is not None

    def similarity_search(self, url: str, query: str, k: int = 4) -> List[Document]:
        if not self.client.has_collection(EMBEDDINGS_COLLECTION):
            return []

        query_embedding = self.embeddings.embed_query(query)
        try:
            results = self.client.search(
                collection_name=EMBEDDINGS_COLLECTION,
                data=[query_embedding],
                anns_field="embedding",
                filter=f"url == {_quote(url)}",
                search_params=SEARCH_PARAMS,
                limit=k,
                output_fields=["url", "page", "text"]
            )
        except Exception as e:
            logger.error(f"Error during search: {e}")
            raise StorageError("Vector search failed") from e

        documents = []
        for hits in results:
            for hit in hits:
                entity = hit["entity"]
                documents.append(Document(
                    page_content=entity["text"],
                    metadata={
                        "url": entity["url"],
                        "page": entity["page"],
                        "score": hit.get("distance", 0.0),
                    }
                ))

        logger.info(f"Fetched {len(documents)} relevant documents for {url}")
        return documents

    # Questions and answers

    def find_qa(self, url: str, question: str) -> Optional[QARecord]:
        row = self._query_one(
            QA_COLLECTION,
            f"url == {_quote(url)} and question == {_quote(question)}",
            ["json_data"]
        )
        if row is None:
            return None
        return QARecord.model_validate(row["json_data"])

    def save_qa(self, url: str, record: QARecord) -> None:
        embedding = self.embeddings.embed_query(record.question)
        self.ensure_collection(QA_COLLECTION, len(embedding))
        try:
            self.client.insert(
                collection_name=QA_COLLECTION,
                data=[{
                    "url": url,
                    "question": record.question,
                    "embedding": embedding,
                    "json_data": record.model_dump(by_alias=True),
                }]
            )
            self.client.flush(QA_COLLECTION)
        except Exception as e:
            logger.error(f"Error saving QA to database: {e}")
            raise StorageError("Error saving QA to database") from e
        logger.info(f"Saved question and answer to database for {url}")
