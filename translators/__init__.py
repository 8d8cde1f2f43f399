"""Translation service modules."""

from .base import BaseTranslator, TranslationResponse
from .gemini import GeminiTranslatorService

__all__ = [
    'BaseTranslator',
    'TranslationResponse',
    'GeminiTranslatorService',
]
