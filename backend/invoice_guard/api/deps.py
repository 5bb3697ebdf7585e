from functools import lru_cache

from ..config import settings
from ..models.comparison import ComparisonSettings
from ..services.document_processor import DocumentProcessor, GeminiExtractor


@lru_cache
def get_document_processor() -> DocumentProcessor:
    return DocumentProcessor(GeminiExtractor())


def get_comparison_settings() -> ComparisonSettings:
    return settings.comparison_settings()
