"""
Speech Recognition Service Factory

Uses OpenAI Whisper API (+ GPT analysis) for imported conversations
"""
import logging

from .asr_base import SpeechRecognitionService
from .asr_openai_adapter import openai_whisper_service

logger = logging.getLogger(__name__)


def get_speech_service() -> SpeechRecognitionService:
    """
    Get speech recognition service

    Returns:
    - SpeechRecognitionService: OpenAI Whisper API service instance

    Note:
    - Need to configure OPENAI_API_KEY in .env
    """
    if not openai_whisper_service.is_available():
        raise RuntimeError(
            "OpenAI Whisper API not available. Please configure OPENAI_API_KEY in .env"
        )

    logger.info("[ASR] Using %s", openai_whisper_service.name)
    return openai_whisper_service
