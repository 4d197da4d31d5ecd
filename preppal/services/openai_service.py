import logging
from typing import Any, Dict, Optional

from openai import OpenAI, OpenAIError

from preppal.core.config import settings
from preppal.core.errors import RemoteGenerationError

logger = logging.getLogger(__name__)


class OpenAIService:
    """The remote generation function: a prompt in, a string out.

    One request per call, no retries, bounded by the configured timeout.
    Every failure surfaces as RemoteGenerationError.
    """

    def __init__(self, client: Optional[OpenAI] = None):
        self.client = client
        if self.client is None and settings.openai_api_key:
            self.client = OpenAI(
                api_key=settings.openai_api_key,
                timeout=settings.coaching_timeout_seconds,
                max_retries=0,
            )

    def generate(self, prompt: str, response_schema: Optional[Dict[str, Any]] = None) -> str:
        if self.client is None:
            raise RemoteGenerationError("OPENAI_API_KEY is not configured.")

        messages = [{"role": "user", "content": prompt}]
        options: Dict[str, Any] = {}
        if response_schema is not None:
            messages.insert(0, {"role": "system", "content": "You return valid JSON only."})
            options["response_format"] = {
                "type": "json_schema",
                "json_schema": {"name": "interview_turn", "schema": response_schema, "strict": True},
            }

        try:
            response = self.client.chat.completions.create(
                model=settings.openai_model,
                temperature=settings.coaching_temperature,
                messages=messages,
                **options,
            )
        except OpenAIError as exc:
            raise RemoteGenerationError(f"OpenAI request failed: {exc}") from exc

        if not response.choices:
            raise RemoteGenerationError("OpenAI returned no choices.")
        return (response.choices[0].message.content or "").strip()

    @staticmethod
    def strip_json_fences(text: str) -> str:
        stripped = text.strip()
        if stripped.startswith("```"):
            lines = stripped.splitlines()
            if len(lines) >= 3 and lines[-1].strip() == "```":
                return "\n".join(lines[1:-1]).strip()
        return stripped
