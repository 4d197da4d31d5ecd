from datetime import datetime
from enum import Enum
from typing import List, Optional
from uuid import uuid4

from pydantic import Field, StrictInt, field_validator, model_validator

from preppal.schemas.base import CamelModel, utc_now

EXPERIENCE_LEVELS = [
    "Intern / Entry Level",
    "Junior (1-2 years)",
    "Mid-Level (3-5 years)",
    "Senior (5-8 years)",
    "Lead / Manager (8+ years)",
    "Executive",
]

FOCUS_AREAS = [
    "General Practice (Mix of all)",
    "Behavioral Questions",
    "Technical Skills",
    "Leadership & Management",
    "Culture Fit",
    "Problem Solving",
    "System Design",
]


def new_id() -> str:
    return str(uuid4())


def validate_experience_level(level: str) -> str:
    if level not in EXPERIENCE_LEVELS:
        raise ValueError(f"experience level must be one of: {', '.join(EXPERIENCE_LEVELS)}")
    return level


class MessageRole(str, Enum):
    USER = "user"
    AI = "ai"


class SessionStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


class Preferences(CamelModel):
    job_role: str = Field(min_length=1)
    company: Optional[str] = None
    experience_level: str = Field(min_length=1)
    focus_areas: Optional[str] = None


class Feedback(CamelModel):
    praise: str
    critique: str
    improvement_tip: str
    example_answer: str
    score: StrictInt = Field(ge=0, le=100)


class MessageData(CamelModel):
    feedback: Optional[Feedback] = None
    next_question: Optional[str] = None


class Message(CamelModel):
    id: str = Field(default_factory=new_id)
    role: MessageRole
    text: Optional[str] = None
    data: Optional[MessageData] = None
    timestamp: datetime = Field(default_factory=utc_now)

    @model_validator(mode="after")
    def check_payload(self) -> "Message":
        if (self.text is None) == (self.data is None):
            raise ValueError("a message carries either text or structured data, not both or neither")
        if self.role == MessageRole.USER and self.text is None:
            raise ValueError("user messages carry text")
        return self

    @property
    def context_text(self) -> str:
        """What this turn contributes to the conversation transcript."""
        if self.text:
            return self.text
        if self.data and self.data.next_question:
            return self.data.next_question
        return ""

    @property
    def score(self) -> Optional[int]:
        if self.data and self.data.feedback:
            return self.data.feedback.score
        return None


class Session(CamelModel):
    id: str = Field(default_factory=new_id)
    user_id: str
    preferences: Preferences
    messages: List[Message] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)
    last_updated: datetime = Field(default_factory=utc_now)
    status: SessionStatus = SessionStatus.ACTIVE

    @property
    def is_completed(self) -> bool:
        return self.status == SessionStatus.COMPLETED


class SessionCreateRequest(CamelModel):
    user_id: str = Field(min_length=1)
    preferences: Preferences

    @field_validator("preferences")
    @classmethod
    def check_experience_level(cls, value: Preferences) -> Preferences:
        validate_experience_level(value.experience_level)
        return value


class AnswerRequest(CamelModel):
    answer: str
    user_id: Optional[str] = None


class EndSessionRequest(CamelModel):
    confirm: bool = False
    user_id: Optional[str] = None


class SetupOptionsResponse(CamelModel):
    experience_levels: List[str]
    focus_areas: List[str]
