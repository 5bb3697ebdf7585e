import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, NamedTuple, Optional, Protocol, Union

import google.genai as genai
from google.genai import types
from loguru import logger
from pydantic import ValidationError

from ..config import settings
from ..errors import DocumentProcessingError, ExtractionError
from ..models.document_models import (
    ExtractedContractData,
    ExtractedInvoiceData,
    PositionedToken,
)
from ..utils.text_normalizer import normalize_description
from .constants import (
    CONTRACT_EXTRACTION_PROMPT,
    INVOICE_EXTRACTION_PROMPT,
    SUPPORTED_DOCUMENT_FILE_TYPES,
)
from .text_index import extract_positioned_tokens


class StructuredExtractor(Protocol):
    def extract_contract(self, text: str) -> ExtractedContractData:
        ...

    def extract_invoice(self, text: str) -> ExtractedInvoiceData:
        ...


def _parse_gemini_json_response(response_text: str) -> Optional[Any]:
    """Parse JSON from a model response, tolerating markdown code fences."""
    text = (response_text or "").strip()

    if text.startswith("```json"):
        text = text[len("```json"):].strip()
    elif text.startswith("```"):
        text = text[len("```"):].strip()
    if text.endswith("```"):
        text = text[:-len("```")].strip()

    if not text:
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        logger.warning(f"Failed to parse JSON from response: {e}. Content: '{text[:500]}'")
        return None


def _normalize_descriptions(items: Any) -> List[Dict[str, Any]]:
    if not isinstance(items, list):
        return []
    normalized = []
    for item in items:
        if isinstance(item, dict):
            if isinstance(item.get("description"), str):
                item["description"] = normalize_description(item["description"])
            normalized.append(item)
    return normalized


class GeminiExtractor:
    """Structured extraction of contracts and invoices from document text."""

    def __init__(self, client: Optional[genai.Client] = None, model_name: Optional[str] = None):
        self.client = client or genai.Client(api_key=settings.GEMINI_API_KEY)
        self.model = model_name or settings.GEMINI_MODEL
        self.generate_content_config = types.GenerateContentConfig(
            temperature=settings.GEMINI_TEMPERATURE,
            response_mime_type="application/json",
        )
        logger.info(f"GeminiExtractor initialized with model {self.model}")

    def _generate(self, prompt: str, text: str, kind: str) -> Dict[str, Any]:
        if len(text) > settings.MAX_EXTRACTION_CHARS:
            logger.warning(
                f"{kind} text truncated from {len(text)} to {settings.MAX_EXTRACTION_CHARS} chars"
            )
            text = text[:settings.MAX_EXTRACTION_CHARS]

        contents = [
            types.Content(
                role="user",
                parts=[types.Part.from_text(text=prompt + text)],
            ),
        ]
        try:
            response = self.client.models.generate_content(
                model=self.model,
                contents=contents,
                config=self.generate_content_config,
            )
        except Exception as e:
            logger.error(f"Gemini {kind} extraction call failed: {str(e)}")
            raise ExtractionError(f"Failed to extract {kind}: {str(e)}") from e

        raw_data = _parse_gemini_json_response(response.text)
        if not isinstance(raw_data, dict):
            logger.warning(f"Could not parse valid dict for {kind} from Gemini. Raw: {(response.text or '')[:500]}")
            raise ExtractionError(f"Failed to extract {kind}: model returned no JSON object")
        if raw_data.get("error"):
            raise ExtractionError(f"Failed to extract {kind}: AI error: {raw_data['error']}")
        return raw_data

    def extract_contract(self, text: str) -> ExtractedContractData:
        raw_data = self._generate(CONTRACT_EXTRACTION_PROMPT, text, "contract")
        if not raw_data.get("contract_id"):
            raw_data["contract_id"] = f"CONTRACT-{datetime.now().strftime('%Y%m%d%H%M%S')}"
        raw_data["billable_items"] = _normalize_descriptions(raw_data.get("billable_items"))
        try:
            return ExtractedContractData.model_validate(raw_data)
        except ValidationError as ve:
            logger.error(f"Pydantic validation error for contract: {ve}")
            raise ExtractionError(f"Extracted contract has an invalid shape: {ve}") from ve

    def extract_invoice(self, text: str) -> ExtractedInvoiceData:
        raw_data = self._generate(INVOICE_EXTRACTION_PROMPT, text, "invoice")
        if not raw_data.get("invoice_number"):
            raw_data["invoice_number"] = f"INV-{datetime.now().strftime('%Y%m%d%H%M%S')}"
        raw_data.setdefault("invoice_id", raw_data["invoice_number"])
        raw_data["line_items"] = _normalize_descriptions(raw_data.get("line_items"))
        try:
            return ExtractedInvoiceData.model_validate(raw_data)
        except ValidationError as ve:
            logger.error(f"Pydantic validation error for invoice: {ve}")
            raise ExtractionError(f"Extracted invoice has an invalid shape: {ve}") from ve


class ProcessedDocument(NamedTuple):
    data: Union[ExtractedContractData, ExtractedInvoiceData]
    tokens: List[PositionedToken]
    full_text: str


class DocumentProcessor:
    """Process contract and invoice PDFs into structured data plus their token stream."""

    def __init__(self, extractor: StructuredExtractor):
        self.extractor = extractor

    def _index(self, file_content: bytes, file_name: str, kind: str):
        logger.info(f"Processing {kind} document: {file_name}")
        file_ext = Path(file_name).suffix.lower().lstrip('.')
        if file_ext not in SUPPORTED_DOCUMENT_FILE_TYPES:
            raise DocumentProcessingError(
                f"Unsupported {kind} file format: {file_name}. Supported: {sorted(SUPPORTED_DOCUMENT_FILE_TYPES)}"
            )
        indexed = extract_positioned_tokens(file_content)
        if not indexed.tokens:
            raise DocumentProcessingError(f"No text layer found in {kind} document {file_name}")
        return indexed

    def process_contract(self, file_content: bytes, file_name: str) -> ProcessedDocument:
        indexed = self._index(file_content, file_name, "contract")
        data = self.extractor.extract_contract(indexed.full_text)
        logger.info(f"Extracted {len(data.billable_items)} billable items from {file_name}")
        return ProcessedDocument(data=data, tokens=indexed.tokens, full_text=indexed.full_text)

    def process_invoice(self, file_content: bytes, file_name: str) -> ProcessedDocument:
        indexed = self._index(file_content, file_name, "invoice")
        data = self.extractor.extract_invoice(indexed.full_text)
        logger.info(f"Extracted {len(data.line_items)} line items from {file_name}")
        return ProcessedDocument(data=data, tokens=indexed.tokens, full_text=indexed.full_text)
