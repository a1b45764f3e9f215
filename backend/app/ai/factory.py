"""
Grading provider factory.
Used as a FastAPI dependency so tests can swap in a fake provider.
"""
import logging
from app.ai.base import GradingProvider
from app.ai.openai_provider import OpenAIGradingProvider

logger = logging.getLogger(__name__)


def get_grading_provider() -> GradingProvider:
    """
    Get the configured grading provider.

    Returns:
        GradingProvider instance

    Raises:
        ValueError: If the provider is not configured
    """
    provider = OpenAIGradingProvider()
    if not provider.is_configured():
        logger.warning("OpenAI grading provider selected but API key not configured")
        raise ValueError("OpenAI API key not configured. Set OPENAI_API_KEY environment variable.")
    return provider
