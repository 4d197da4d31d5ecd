from typing import List

from preppal.schemas.dashboard import DashboardResponse, ScorePoint, SessionSummary
from preppal.schemas.session import Session

SCORE_HISTORY_LIMIT = 10


def session_scores(session: Session) -> List[int]:
    return [message.score for message in session.messages if message.score is not None]


def rounded_mean(values: List[int]) -> int:
    if not values:
        return 0
    # half rounds up
    return int(sum(values) / len(values) + 0.5)


def format_label(session: Session) -> str:
    updated = session.last_updated
    return f"{updated.strftime('%b')} {updated.day}"


def build_dashboard(sessions: List[Session], user_id: str | None = None) -> DashboardResponse:
    """Summarize sessions given most recent first, as the store keeps them."""
    all_scores = [score for session in sessions for score in session_scores(session)]
    total_messages = sum(len(session.messages) for session in sessions)

    scored_sessions = [session for session in sessions if session_scores(session)][:SCORE_HISTORY_LIMIT]
    history = [
        ScorePoint(
            label=format_label(session),
            score=rounded_mean(session_scores(session)),
            role=session.preferences.job_role,
        )
        for session in reversed(scored_sessions)
    ]

    summaries = [
        SessionSummary(
            id=session.id,
            job_role=session.preferences.job_role,
            company=session.preferences.company or "General",
            question_count=len(session.messages) // 2,
            last_updated=session.last_updated,
            status=session.status,
        )
        for session in sessions
    ]

    return DashboardResponse(
        user_id=user_id,
        total_sessions=len(sessions),
        questions_answered=total_messages // 2,
        average_score=rounded_mean(all_scores),
        score_history=history,
        sessions=summaries,
    )
