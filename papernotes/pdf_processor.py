import io
import os
import re
import logging
from typing import List, Optional
from urllib.parse import urlparse

import requests
from pypdf import PdfReader, PdfWriter
from langchain_core.documents import Document
from langchain_text_splitters import RecursiveCharacterTextSplitter

from . import config
from .errors import InvalidPaperSourceError, InvalidPagesError, PdfProcessingError

logger = logging.getLogger(__name__)

PDF_URL_PATTERN = re.compile(r"^https?://.+\.pdf$", re.IGNORECASE)
LOCAL_HOSTS = {"localhost", "127.0.0.1"}


def validate_paper_source(paper_url: str) -> str:
    """
    Check that the paper points at a PDF we are allowed to load.

    Args:
        paper_url: Remote URL or local file path of the paper

    Returns:
        "url" for a remote PDF, "local" for a PDF on disk
    """
    if paper_url and paper_url.lower().endswith(".pdf"):
        if PDF_URL_PATTERN.match(paper_url):
            host = urlparse(paper_url).hostname or ""
            if host not in LOCAL_HOSTS:
                return "url"
        elif os.path.isfile(paper_url):
            return "local"

    raise InvalidPaperSourceError("Invalid PDF or file path.")


def parse_pages_to_delete(pages_to_delete: Optional[str]) -> List[int]:
    """Turn a comma-separated string such as "1, 2,3" into a list of page numbers"""
    if not pages_to_delete or not pages_to_delete.strip():
        return []

    pages = []
    for token in pages_to_delete.split(","):
        token = token.strip()
        if not token:
            continue
        try:
            page = int(token)
        except ValueError:
            raise InvalidPagesError(f"Invalid page number: '{token}'")
        if page < 1:
            raise InvalidPagesError(f"Page numbers start at 1, got {page}")
        pages.append(page)
    return pages


def load_pdf_from_url(url: str) -> bytes:
    """Download a PDF and return its raw bytes"""
    try:
        logger.info(f"Loading PDF from URL: {url}")
        response = requests.get(url, timeout=config.PDF_FETCH_TIMEOUT)
        response.raise_for_status()
        logger.info(f"PDF loaded successfully ({len(response.content)} bytes)")
        return response.content
    except requests.RequestException as e:
        logger.error(f"Error fetching PDF from {url}: {e}")
        raise PdfProcessingError("PDF fetching failed") from e


def load_pdf_from_path(path: str) -> bytes:
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as e:
        logger.error(f"Error reading PDF from {path}: {e}")
        raise PdfProcessingError(f"File not found: {path}") from e


def load_pdf(paper_url: str) -> bytes:
    """Load a paper from a remote URL or a local path, whichever it is"""
    source = validate_paper_source(paper_url)
    if source == "url":
        return load_pdf_from_url(paper_url)
    return load_pdf_from_path(paper_url)


def delete_pages(pdf: bytes, pages_to_delete: List[int]) -> bytes:
    """
    Remove pages from a PDF.

    Args:
        pdf: The original PDF bytes
        pages_to_delete: 1-based page numbers; duplicates and order do not matter

    Returns:
        The PDF bytes without those pages
    """
    try:
        reader = PdfReader(io.BytesIO(pdf))
        total_pages = len(reader.pages)
    except Exception as e:
        logger.error(f"Error reading PDF for page deletion: {e}")
        raise PdfProcessingError("Failed to delete pages") from e

    to_delete = set(pages_to_delete)

    out_of_range = sorted(page for page in to_delete if page < 1 or page > total_pages)
    if out_of_range:
        raise InvalidPagesError(
            f"Pages {out_of_range} do not exist, the PDF has {total_pages} pages"
        )
    if len(to_delete) >= total_pages:
        raise InvalidPagesError("Cannot delete every page of the PDF")

    writer = PdfWriter()
    for page_number, page in enumerate(reader.pages, 1):
        if page_number not in to_delete:
            writer.add_page(page)

    buffer = io.BytesIO()
    writer.write(buffer)
    logger.info(f"Deleted pages {sorted(to_delete)}, {total_pages - len(to_delete)} pages left")
    return buffer.getvalue()


def get_text_splitter() -> RecursiveCharacterTextSplitter:
    return RecursiveCharacterTextSplitter(
        chunk_size=config.CHUNK_SIZE,
        chunk_overlap=config.CHUNK_OVERLAP,
    )


def convert_pdf_to_documents(pdf: bytes) -> List[Document]:
    """
    Convert PDF bytes into chunked documents.

    Each page becomes a document carrying its 1-based page number, and the
    pages are then split into overlapping chunks.

    Args:
        pdf: PDF bytes

    Returns:
        List of chunk documents
    """
    try:
        reader = PdfReader(io.BytesIO(pdf))
        pages = []
        for page_number, page in enumerate(reader.pages, 1):
            text = page.extract_text() or ""
            if not text.strip():
                continue
            pages.append(Document(page_content=text, metadata={"page": page_number}))
    except Exception as e:
        logger.error(f"Error extracting text from PDF: {e}")
        raise PdfProcessingError("PDF to Document conversion failed") from e

    if not pages:
        raise PdfProcessingError("PDF to Document conversion failed: no text found")

    docs = get_text_splitter().split_documents(pages)
    logger.info(f"PDF converted successfully: {len(pages)} pages, {len(docs)} chunks")
    return docs


def format_documents_as_string(documents: List[Document]) -> str:
    return "\n\n".join(doc.page_content for doc in documents)
