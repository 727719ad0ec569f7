import json
import logging
import re
from typing import Any, Dict, List, Optional

import requests
from langchain_core.documents import Document
from pydantic import ValidationError

from . import config
from .embeddings import tokenize_with_tiktoken
from .errors import LLMError
from .models import Note, QAResponse
from .pdf_processor import format_documents_as_string

logger = logging.getLogger(__name__)

NOTES_SCHEMA = {
    "type": "object",
    "properties": {
        "notes": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "note": {"type": "string"},
                    "pageNumbers": {"type": "array", "items": {"type": "integer"}},
                },
                "required": ["note", "pageNumbers"],
            },
        },
    },
    "required": ["notes"],
}

ANSWER_SCHEMA = {
    "type": "object",
    "properties": {
        "answer": {"type": "string"},
        "followupQuestions": {"type": "array", "items": {"type": "string"}},
    },
    "required": ["answer", "followupQuestions"],
}

NOTES_SYSTEM_PROMPT = """You are a research assistant taking notes on an academic paper.

TASK:
Summarize the major sections and themes of the text into detailed, insightful notes.
After reading all of the notes, a reader should have a comprehensive understanding of the text.

RULES:
- Include specific quotes and details inside your notes.
- Respond with as many notes as it takes to cover the entire text.
- Go into as much detail as you can, while keeping each note on one specific part of the paper.
- DO NOT write notes like "The text discusses XYZ", "the text emphasizes XYZ" or "the text introduces XYZ".
  Instead explain what XYZ is and how it works.
- The text is split into pages marked [PAGE n]. For each note, list the page number or numbers it is derived from.

RESPONSE FORMAT:
A JSON object with a "notes" array. Each element has two keys:
"note" - the note itself, and "pageNumbers" - an array of page numbers."""

QA_SYSTEM_PROMPT = """Use the following pieces of context to answer the question at the end.
If you don't know the answer, just say that you don't know, don't try to make up an answer.
----------------
CONTEXT: Notes on the text: {notes}. Relevant parts of the text relating to the question: {relevant_documents}
----------------
QUESTION: {question}
----------------

RESPONSE FORMAT:
A JSON object with two keys: "answer" - the answer to the question, and
"followupQuestions" - an array of follow up questions the student should also ask."""


def format_documents_with_pages(documents: List[Document]) -> str:
    """Join chunks into one text, marking where each page starts"""
    parts = []
    current_page = None
    for doc in documents:
        page = doc.metadata.get("page")
        if page is not None and page != current_page:
            parts.append(f"[PAGE {page}]")
            current_page = page
        parts.append(doc.page_content)
    return "\n\n".join(parts)


def extract_json(llm_response: str) -> Any:
    """
    Pull the JSON payload out of a model reply.

    Structured output usually gives bare JSON, but some models still wrap it
    in a ```json fenced block or add prose around it.
    """
    try:
        return json.loads(llm_response)
    except json.JSONDecodeError:
        pass

    json_match = re.search(r'```(?:json)?\s*([\{\[][\s\S]*?[\}\]])\s*```', llm_response)
    if not json_match:
        json_match = re.search(r'([\{\[][\s\S]*[\}\]])', llm_response)
    if not json_match:
        raise LLMError("No JSON content found in LLM response")

    try:
        return json.loads(json_match.group(1))
    except json.JSONDecodeError as e:
        logger.error(f"Error decoding JSON from LLM response: {e}")
        raise LLMError("LLM response is not valid JSON") from e


class LLMProcessor:
    """
    Class for taking notes on papers and answering questions about them with an LLM
    """

    def __init__(self, model_name: str = None, ollama_url: str = None,
                 temperature: float = None):
        """Initialize the LLM processor with model settings"""
        self.model_name = model_name or config.LLM_MODEL_NAME
        self.ollama_url = f"{(ollama_url or config.OLLAMA_BASE_URL).rstrip('/')}/api/generate"
        self.temperature = config.LLM_TEMPERATURE if temperature is None else temperature
        logger.info(f"LLM Processor initialized with model: {self.model_name}")

    def call_llm(self, prompt: str, system: Optional[str] = None,
                 schema: Optional[Dict[str, Any]] = None) -> str:
        """
        Call the Ollama API with a given prompt and return the response

        Args:
            prompt: The prompt to send to the LLM
            system: Optional system message
            schema: Optional JSON schema the output must follow

        Returns:
            LLM response text
        """
        payload = {
            "model": self.model_name,
            "prompt": prompt,
            "stream": False,
            "options": {"temperature": self.temperature},
        }
        if system:
            payload["system"] = system
        if schema:
            payload["format"] = schema

        try:
            response = requests.post(self.ollama_url, json=payload, timeout=config.LLM_TIMEOUT)
        except requests.RequestException as e:
            logger.error(f"Error calling LLM: {e}")
            raise LLMError("Error connecting to language model service") from e

        if response.status_code != 200:
            logger.error(f"Error from Ollama API: {response.status_code}, {response.text}")
            raise LLMError(f"Language model returned status {response.status_code}")

        try:
            return response.json().get("response", "")
        except ValueError as e:
            logger.error(f"Invalid JSON from Ollama API: {e}")
            raise LLMError("Language model returned invalid JSON") from e

    def generate_notes(self, documents: List[Document]) -> List[Note]:
        """
        Generate notes on a paper.

        Args:
            documents: The paper's chunks, in page order

        Returns:
            List of notes with the pages they come from
        """
        paper_text = tokenize_with_tiktoken(
            format_documents_with_pages(documents), config.LLM_MAX_PAPER_TOKENS
        )

        logger.info(f"Sending notes prompt to LLM (length: {len(paper_text)})")
        llm_response = self.call_llm(f"Paper: {paper_text}", system=NOTES_SYSTEM_PROMPT,
                                     schema=NOTES_SCHEMA)

        parsed = extract_json(llm_response)
        if isinstance(parsed, dict):
            parsed = parsed.get("notes")
        if not isinstance(parsed, list):
            raise LLMError("Missing 'notes' in LLM output")

        try:
            notes = [Note.model_validate(item) for item in parsed]
        except ValidationError as e:
            logger.error(f"Invalid notes returned by LLM: {e}")
            raise LLMError("Notes generation failed") from e

        logger.info(f"Generated {len(notes)} notes")
        return notes

    def answer_question(self, question: str, documents: List[Document],
                        notes: List[Note]) -> List[QAResponse]:
        """
        Answer a question about a paper using its notes and the retrieved passages

        Args:
            question: The student's question
            documents: Chunks relevant to the question
            notes: Notes previously taken on the paper

        Returns:
            Answers with suggested follow up questions
        """
        if not documents:
            raise LLMError("No documents found")

        system = QA_SYSTEM_PROMPT.format(
            notes="\n".join(note.note for note in notes),
            relevant_documents=format_documents_as_string(documents),
            question=question,
        )

        llm_response = self.call_llm(f"Question: {question}", system=system, schema=ANSWER_SCHEMA)
        parsed = extract_json(llm_response)
        if isinstance(parsed, dict):
            parsed = [parsed]
        if not isinstance(parsed, list) or not parsed:
            raise LLMError("Missing answer in LLM output")

        try:
            return [QAResponse.model_validate(item) for item in parsed]
        except ValidationError as e:
            logger.error(f"Invalid answer returned by LLM: {e}")
            raise LLMError("QA failed") from e
