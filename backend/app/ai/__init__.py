"""
AI provider abstraction module.
Provides a unified interface for grading providers.
"""
from app.ai.factory import get_grading_provider
from app.ai.base import GradingProvider

__all__ = ["get_grading_provider", "GradingProvider"]
