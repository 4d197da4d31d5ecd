from fastapi import Depends
from sqlalchemy.orm import Session

from preppal.core.session_runtime import session_runtime
from preppal.db.session import get_db
from preppal.repositories.session_repository import SessionRepository
from preppal.repositories.user_repository import UserRepository
from preppal.services.coaching_service import CoachingService
from preppal.services.interview_session_service import InterviewSessionService


def get_user_repository(db: Session = Depends(get_db)) -> UserRepository:
    return UserRepository(db)


def get_session_repository(db: Session = Depends(get_db)) -> SessionRepository:
    return SessionRepository(db)


def get_coaching_service() -> CoachingService:
    return CoachingService()


def get_interview_service(
    sessions: SessionRepository = Depends(get_session_repository),
    coaching: CoachingService = Depends(get_coaching_service),
) -> InterviewSessionService:
    return InterviewSessionService(sessions, coaching, session_runtime)
