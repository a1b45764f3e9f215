"""
OpenAI grading provider.
Uses OpenAI chat completions in JSON mode to grade submissions.
"""
from typing import Any, Dict
import json
import logging
from openai import OpenAI
from app.ai.base import GradingProvider
from app.config import settings

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a teaching assistant grading student homework. "
    "Respond with a JSON object containing: "
    "\"score\" (integer 0-100), \"feedback\" (string), "
    "\"strengths\" (list of strings) and \"improvements\" (list of strings)."
)


class OpenAIGradingProvider(GradingProvider):
    """
    OpenAI grading provider implementation.

    API keys are stored in environment variables and never exposed to clients.
    """

    def __init__(self):
        """Initialize OpenAI provider with API key from settings."""
        self.api_key = settings.openai_api_key
        self.chat_model = settings.openai_chat_model

        if self.api_key:
            self.client = OpenAI(api_key=self.api_key)
        else:
            self.client = None

    def is_configured(self) -> bool:
        """Check if OpenAI API key is configured."""
        return bool(self.api_key)

    def analyze(self, content: str, assignment_name: str) -> Dict[str, Any]:
        """
        Grade a submission with a single chat completion.

        Raises:
            ValueError: If API key not configured
            Exception: If API call fails or returns invalid JSON
        """
        if not self.is_configured() or not self.client:
            raise ValueError("OpenAI API key not configured")

        try:
            response = self.client.chat.completions.create(
                model=self.chat_model,
                response_format={"type": "json_object"},
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {
                        "role": "user",
                        "content": f"Assignment: {assignment_name}\n\nSubmission:\n{content}",
                    },
                ],
                temperature=0.2,
            )
            raw = response.choices[0].message.content or "{}"
            result = json.loads(raw)
            logger.debug(f"Graded submission for '{assignment_name}' (length: {len(content)})")
            return result

        except json.JSONDecodeError as e:
            logger.error(f"OpenAI returned invalid JSON for '{assignment_name}': {e}")
            raise Exception(f"Failed to parse grading response: {str(e)}")
        except Exception as e:
            logger.error(f"OpenAI grading API error: {e}")
            raise Exception(f"Failed to grade submission: {str(e)}")
