"""
Base class for grading providers.
The analysis endpoint talks to this interface, so any LLM backend can be plugged in.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict


class GradingProvider(ABC):
    """
    Abstract base class for assignment grading providers.

    All providers must implement:
    - analyze(): Grade a submission and return structured feedback
    - is_configured(): Report whether the provider can be used
    """

    @abstractmethod
    def analyze(self, content: str, assignment_name: str) -> Dict[str, Any]:
        """
        Grade a student submission.

        Args:
            content: Submission text
            assignment_name: Name of the assignment being graded

        Returns:
            Dict with at least "score" and "feedback"

        Raises:
            ValueError: If provider is not configured
            Exception: If the provider call fails
        """
        pass

    @abstractmethod
    def is_configured(self) -> bool:
        """
        Check if provider is properly configured (API key present, etc.).

        Returns:
            True if provider can be used, False otherwise
        """
        pass
