import io
from typing import List, NamedTuple

import pdfplumber
from loguru import logger

from ..config import settings
from ..errors import DocumentProcessingError
from ..models.document_models import PositionedToken


class IndexedDocument(NamedTuple):
    full_text: str
    tokens: List[PositionedToken]
    page_count: int


def extract_positioned_tokens(pdf_bytes: bytes) -> IndexedDocument:
    """Read the text layer of a PDF as page-numbered positioned words.

    Token origin is the word's top-left corner in PDF points.
    """
    if not pdf_bytes:
        raise DocumentProcessingError("Empty PDF content")

    tokens: List[PositionedToken] = []
    page_texts: List[str] = []
    try:
        with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
            page_count = len(pdf.pages)
            for page_number, page in enumerate(pdf.pages, start=1):
                words = page.extract_words() or []
                for word in words:
                    tokens.append(
                        PositionedToken(
                            text=word["text"],
                            page=page_number,
                            x=float(word["x0"]),
                            y=float(word["top"]),
                            width=float(word["x1"]) - float(word["x0"]),
                            height=float(word["bottom"]) - float(word["top"]),
                        )
                    )
                page_texts.append(f"--- Page {page_number} ---\n" + " ".join(word["text"] for word in words))
    except DocumentProcessingError:
        raise
    except Exception as e:
        logger.error(f"PDF text extraction error: {str(e)}")
        raise DocumentProcessingError(f"Could not read PDF: {str(e)}") from e

    full_text = "\n".join(page_texts)
    text_chars = sum(len(token.text) for token in tokens)
    if text_chars < settings.SPARSE_TEXT_THRESHOLD:
        logger.warning(
            f"Sparse text layer ({text_chars} chars over {page_count} page(s)); "
            "document may be scanned"
        )
    logger.debug(f"Indexed {len(tokens)} tokens over {page_count} page(s)")
    return IndexedDocument(full_text=full_text, tokens=tokens, page_count=page_count)
