"""
Shared fixtures for paper notes tests
"""

import hashlib
import io
import re

import numpy as np
import pytest
from langchain_core.documents import Document
from pypdf import PdfWriter

from papernotes.models import Note
from papernotes.storage import LocalPaperStore

PAPER_URL = "https://arxiv.org/pdf/1706.03762.pdf"


class FakeEmbeddings:
    """Deterministic bag-of-words embeddings: each word is hashed into a bucket"""

    def __init__(self, dim: int = 256):
        self.dim = dim
        self.model_name = f"fake-{dim}"

    def _embed(self, text):
        vector = np.zeros(self.dim, dtype="float32")
        for word in re.findall(r"\w+", text.lower()):
            bucket = int(hashlib.md5(word.encode("utf-8")).hexdigest(), 16) % self.dim
            vector[bucket] += 1.0
        return vector.tolist()

    def embed_documents(self, texts):
        return [self._embed(text) for text in texts]

    def embed_query(self, text):
        return self._embed(text)


def make_pdf(num_pages: int) -> bytes:
    """Build a PDF with blank pages"""
    writer = PdfWriter()
    for _ in range(num_pages):
        writer.add_blank_page(width=200, height=200)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


def make_text_pdf(page_texts) -> bytes:
    """
    Build a PDF with one line of Helvetica text per page.

    Texts must not contain parentheses or backslashes.
    """
    objects = [
        "<< /Type /Catalog /Pages 2 0 R >>",
        None,
        "<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    kids = []
    for text in page_texts:
        content = f"BT /F1 12 Tf 72 720 Td ({text}) Tj ET"
        objects.append(f"<< /Length {len(content.encode('latin-1'))} >>\nstream\n{content}\nendstream")
        content_ref = len(objects)
        objects.append(
            "<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
            f"/Resources << /Font << /F1 3 0 R >> >> /Contents {content_ref} 0 R >>"
        )
        kids.append(f"{len(objects)} 0 R")
    objects[1] = f"<< /Type /Pages /Kids [{' '.join(kids)}] /Count {len(kids)} >>"

    buffer = io.BytesIO()
    buffer.write(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, 1):
        offsets.append(buffer.tell())
        buffer.write(f"{number} 0 obj\n{body}\nendobj\n".encode("latin-1"))

    xref_offset = buffer.tell()
    buffer.write(f"xref\n0 {len(objects) + 1}\n0000000000 65535 f \n".encode("latin-1"))
    for offset in offsets:
        buffer.write(f"{offset:010d} 00000 n \n".encode("latin-1"))
    buffer.write(
        f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\nstartxref\n{xref_offset}\n%%EOF\n".encode("latin-1")
    )
    return buffer.getvalue()


@pytest.fixture
def fake_embeddings():
    return FakeEmbeddings()


@pytest.fixture
def local_store(tmp_path, fake_embeddings):
    return LocalPaperStore(fake_embeddings, root_dir=str(tmp_path / "storage"))


@pytest.fixture
def paper_documents():
    """Chunks of a small paper, as produced by the PDF processor"""
    return [
        Document(page_content="Transformer models rely on multi-head attention over tokens.",
                 metadata={"page": 1, "url": PAPER_URL, "source": PAPER_URL}),
        Document(page_content="Protein folding predicts three dimensional structure from sequence.",
                 metadata={"page": 2, "url": PAPER_URL, "source": PAPER_URL}),
        Document(page_content="Galaxy rotation curves suggest the presence of dark matter.",
                 metadata={"page": 3, "url": PAPER_URL, "source": PAPER_URL}),
    ]


@pytest.fixture
def paper_notes():
    return [
        Note(note="Attention lets every token attend to every other token.", page_numbers=[1]),
        Note(note="Rotation curves stay flat far from the galactic center.", page_numbers=[3]),
    ]
