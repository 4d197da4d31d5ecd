from datetime import datetime
from typing import List, Optional

from preppal.schemas.base import CamelModel
from preppal.schemas.session import SessionStatus


class ScorePoint(CamelModel):
    label: str
    score: int
    role: str


class SessionSummary(CamelModel):
    id: str
    job_role: str
    company: str
    question_count: int
    last_updated: datetime
    status: SessionStatus


class DashboardResponse(CamelModel):
    user_id: Optional[str] = None
    total_sessions: int
    questions_answered: int
    average_score: int
    score_history: List[ScorePoint]
    sessions: List[SessionSummary]
