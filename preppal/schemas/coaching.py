from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from preppal.schemas.base import CamelModel
from preppal.schemas.session import Feedback

INTERVIEW_TURN_SCHEMA = {
    "type": "object",
    "properties": {
        "feedback": {
            "type": "object",
            "properties": {
                "praise": {"type": "string", "description": "A short, encouraging sentence highlighting what was good."},
                "critique": {"type": "string", "description": "A gentle, constructive observation on what could be improved."},
                "improvementTip": {"type": "string", "description": "Actionable advice for the next answer."},
                "exampleAnswer": {
                    "type": "string",
                    "description": "A concrete example of how a strong candidate would answer the previous question, incorporating the improvement tip.",
                },
                "score": {"type": "integer", "description": "A score from 0 to 100 rating the quality of the answer."},
            },
            "required": ["praise", "critique", "improvementTip", "exampleAnswer", "score"],
            "additionalProperties": False,
        },
        "nextQuestion": {"type": "string", "description": "The next interview question to ask the user."},
    },
    "required": ["feedback", "nextQuestion"],
    "additionalProperties": False,
}


class CoachingTurnPayload(CamelModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    feedback: Feedback
    next_question: str = Field(min_length=1)


class CoachingTurnResult(BaseModel):
    feedback: Feedback
    next_question: str
    used_fallback: bool = False
    fallback_reason: Optional[str] = None
