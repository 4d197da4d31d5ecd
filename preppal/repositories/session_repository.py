import logging
from typing import List, Optional

from sqlalchemy.orm import Session as DbSession

from preppal.core.errors import InvalidPreferencesError, SessionNotFoundError
from preppal.repositories.kv_repository import SESSIONS_KEY, CollectionStore, KeyValueRepository
from preppal.schemas.session import Preferences, Session, validate_experience_level

logger = logging.getLogger(__name__)


class SessionRepository:
    def __init__(self, db: DbSession):
        self.sessions = CollectionStore(KeyValueRepository(db), SESSIONS_KEY, Session)

    def list_all(self, user_id: str | None = None) -> List[Session]:
        sessions = self.sessions.load()
        if user_id:
            return [session for session in sessions if session.user_id == user_id]
        return sessions

    def get(self, session_id: str, user_id: str | None = None) -> Optional[Session]:
        session = self.sessions.find(lambda item: item.id == session_id)
        if not session:
            return None
        if user_id and session.user_id != user_id:
            return None
        return session

    def require(self, session_id: str, user_id: str | None = None) -> Session:
        session = self.get(session_id, user_id=user_id)
        if not session:
            raise SessionNotFoundError(session_id)
        return session

    def save(self, session: Session) -> bool:
        """Replace the stored session in place, or insert it as the most recent one."""
        sessions = self.sessions.load()
        for idx, existing in enumerate(sessions):
            if existing.id == session.id:
                sessions[idx] = session
                break
        else:
            sessions.insert(0, session)
        return self.sessions.save(sessions)

    def create(self, preferences: Preferences, user_id: str) -> Session:
        try:
            validate_experience_level(preferences.experience_level)
        except ValueError as exc:
            raise InvalidPreferencesError(str(exc)) from exc

        session = Session(user_id=user_id, preferences=preferences)
        session.last_updated = session.created_at
        self.save(session)
        logger.info("[store] Created session %s for user %s", session.id, user_id)
        return session
