import json
import logging
from typing import Any, List, Mapping, Protocol

from pydantic import ValidationError

from preppal.schemas.coaching import INTERVIEW_TURN_SCHEMA, CoachingTurnPayload, CoachingTurnResult
from preppal.schemas.session import Feedback, Message, MessageRole, Preferences
from preppal.services.openai_service import OpenAIService

logger = logging.getLogger(__name__)

EMPTY_OPENING_FALLBACK = "Hello! Let's get started. Tell me a little about yourself."
OPENING_FALLBACK = "I'm having trouble connecting to the interview server. Let's try again. Tell me about yourself."


class GenerationBackend(Protocol):
    def generate(self, prompt: str, response_schema: Mapping[str, Any] | None = None) -> Any: ...


def fallback_feedback() -> Feedback:
    return Feedback(
        praise="Good effort!",
        critique="Let's try to be more specific.",
        improvement_tip="Use the STAR method.",
        example_answer="A better answer would focus on specific metrics and outcomes.",
        score=70,
    )


def fallback_turn(preferences: Preferences, reason: str) -> CoachingTurnResult:
    return CoachingTurnResult(
        feedback=fallback_feedback(),
        next_question=f"Could you elaborate on your experience relevant to the {preferences.job_role} position?",
        used_fallback=True,
        fallback_reason=reason,
    )


class CoachingService:
    """Turns conversation state into prompts and remote replies into turns.

    Nothing here raises: remote failures and malformed replies are replaced
    with fixed fallback responses so the interview can always continue.
    """

    def __init__(self, backend: GenerationBackend | None = None):
        self.backend = backend if backend is not None else OpenAIService()

    @staticmethod
    def build_opening_prompt(preferences: Preferences) -> str:
        return (
            "You are a friendly, encouraging, and professional interview coach.\n"
            f"The user is preparing for a {preferences.job_role} role.\n"
            f"Their experience level is: {preferences.experience_level}.\n\n"
            "Start the session by welcoming them warmly (keep it brief) and asking the FIRST interview question.\n"
            f"CRITICAL: The question MUST be strictly relevant to the job role: {preferences.job_role}.\n"
            "Do not ask a generic question if it doesn't fit the role "
            "(e.g., don't ask a teacher about system design unless it's relevant).\n\n"
            "Return ONLY the welcome message combined with the question as a plain string."
        )

    @staticmethod
    def build_conversation_context(history: List[Message]) -> str:
        lines = []
        for message in history:
            speaker = "Candidate" if message.role == MessageRole.USER else "Interviewer"
            lines.append(f"{speaker}: {message.context_text}")
        return "\n".join(lines)

    @classmethod
    def build_feedback_prompt(cls, preferences: Preferences, history: List[Message], latest_answer: str) -> str:
        role = preferences.job_role
        return (
            "You are a supportive interview coach.\n"
            "Context:\n"
            f"Role: {role}\n"
            f"Experience: {preferences.experience_level}\n\n"
            "Conversation History:\n"
            f"{cls.build_conversation_context(history)}\n\n"
            "Candidate's Latest Answer:\n"
            f"\"{latest_answer}\"\n\n"
            "Task:\n"
            f"1. Analyze the answer based on the role ({role}) and experience level.\n"
            "2. Provide a Score (0-100). Be fair but encouraging.\n"
            "3. Provide friendly, constructive feedback (Praise, Critique, Tip).\n"
            "4. Provide an 'exampleAnswer' - a corrected or \"ideal\" version of how they could have answered.\n"
            "5. Generate the NEXT question based on the context.\n\n"
            f"CRITICAL: The NEXT question must be highly relevant to the role of {role}.\n"
            "If the user is a Teacher, ask about classroom management, curriculum, or students.\n"
            "If the user is a Developer, ask about code, systems, or projects.\n"
            "Do not drift into irrelevant topics.\n\n"
            "Tone: Casual, motivating, professional. Like a helpful mentor.\n"
            "Format: JSON."
        )

    def request_opening_question(self, preferences: Preferences) -> str:
        try:
            reply = self.backend.generate(self.build_opening_prompt(preferences))
        except Exception as exc:
            logger.warning("[coaching] Opening question fell back: %s", exc)
            return OPENING_FALLBACK

        text = str(reply or "").strip()
        if not text:
            logger.warning("[coaching] Opening question came back empty")
            return EMPTY_OPENING_FALLBACK
        return text

    def request_feedback_and_next_question(
        self,
        preferences: Preferences,
        history: List[Message],
        latest_answer: str,
    ) -> CoachingTurnResult:
        prompt = self.build_feedback_prompt(preferences, history, latest_answer)
        try:
            reply = self.backend.generate(prompt, response_schema=INTERVIEW_TURN_SCHEMA)
        except Exception as exc:
            logger.warning("[coaching] Feedback request fell back: %s", exc)
            return fallback_turn(preferences, f"remote error: {exc}")

        return self.parse_turn(reply, preferences)

    @staticmethod
    def parse_turn(reply: Any, preferences: Preferences) -> CoachingTurnResult:
        """Validate a remote reply, or substitute the fallback turn."""
        data = reply
        if isinstance(reply, str):
            cleaned = OpenAIService.strip_json_fences(reply)
            if not cleaned:
                logger.warning("[coaching] Feedback reply was empty")
                return fallback_turn(preferences, "empty reply")
            try:
                data = json.loads(cleaned)
            except ValueError as exc:
                logger.warning("[coaching] Feedback reply is not JSON: %s", exc)
                return fallback_turn(preferences, "invalid JSON")

        if not isinstance(data, Mapping):
            logger.warning("[coaching] Feedback reply is not an object: %r", type(data).__name__)
            return fallback_turn(preferences, "unexpected shape")

        try:
            payload = CoachingTurnPayload.model_validate(dict(data))
        except ValidationError as exc:
            logger.warning("[coaching] Feedback reply failed validation: %s", exc.errors()[:1])
            return fallback_turn(preferences, "schema mismatch")

        return CoachingTurnResult(feedback=payload.feedback, next_question=payload.next_question)
