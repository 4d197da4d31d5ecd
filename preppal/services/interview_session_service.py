import logging
from enum import Enum

from preppal.core.errors import EmptyAnswerError, EndNotConfirmedError, SessionBusyError, SessionCompletedError
from preppal.core.session_runtime import SessionRuntimeRegistry, session_runtime
from preppal.repositories.session_repository import SessionRepository
from preppal.schemas.base import utc_now
from preppal.schemas.session import Message, MessageData, MessageRole, Session, SessionStatus
from preppal.services.coaching_service import CoachingService

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    AWAITING_ANSWER = "awaiting_answer"
    PROCESSING = "processing"
    COMPLETED = "completed"


class InterviewSessionService:
    """The ask, answer, score, ask-again loop for one practice session.

    Mutating operations take the session's runtime slot, then re-read the
    stored session and apply the change to that copy, so a stale caller copy
    never overwrites newer turns or a completed status. The updated copy is
    written back through the repository and returned.
    """

    def __init__(
        self,
        sessions: SessionRepository,
        coaching: CoachingService,
        runtime: SessionRuntimeRegistry = session_runtime,
    ):
        self.sessions = sessions
        self.coaching = coaching
        self.runtime = runtime

    def state_of(self, session: Session) -> SessionState:
        if session.is_completed:
            return SessionState.COMPLETED
        if self.runtime.is_processing(session.id):
            return SessionState.PROCESSING
        if not session.messages:
            return SessionState.UNINITIALIZED
        return SessionState.AWAITING_ANSWER

    def _touch_and_save(self, session: Session):
        session.last_updated = utc_now()
        self.sessions.save(session)

    def _current(self, session: Session) -> Session:
        """The stored copy of ``session``; call only while holding its runtime slot."""
        stored = self.sessions.get(session.id)
        if stored is None:
            return session.model_copy(deep=True)
        return stored

    def ensure_opening_question(self, session: Session) -> Session:
        if session.messages or session.is_completed:
            self.runtime.mark_initialized(session.id)
            return session
        if self.runtime.is_initialized(session.id):
            return self.sessions.get(session.id) or session
        if not self.runtime.try_begin(session.id):
            logger.info("[session] Opening question for %s already in flight", session.id)
            return session

        try:
            updated = self._current(session)
            if updated.messages or updated.is_completed:
                self.runtime.mark_initialized(session.id)
                return updated

            question = self.coaching.request_opening_question(updated.preferences)
            updated.messages.append(Message(role=MessageRole.AI, text=question))
            self._touch_and_save(updated)
            self.runtime.mark_initialized(session.id)
        finally:
            self.runtime.finish(session.id)

        logger.info("[session] Opening question added to %s", session.id)
        return updated

    def submit_answer(self, session: Session, answer: str) -> Session:
        if session.is_completed:
            logger.info("[session] Rejected answer for completed session %s", session.id)
            raise SessionCompletedError(session.id)
        if not answer or not answer.strip():
            raise EmptyAnswerError()
        if not self.runtime.try_begin(session.id):
            logger.info("[session] Rejected answer for busy session %s", session.id)
            raise SessionBusyError(session.id)

        try:
            updated = self._current(session)
            if updated.is_completed:
                logger.info("[session] Rejected answer for completed session %s", session.id)
                raise SessionCompletedError(session.id)

            updated.messages.append(Message(role=MessageRole.USER, text=answer))
            self._touch_and_save(updated)

            result = self.coaching.request_feedback_and_next_question(
                updated.preferences,
                updated.messages,
                answer,
            )
            updated.messages.append(
                Message(
                    role=MessageRole.AI,
                    data=MessageData(feedback=result.feedback, next_question=result.next_question),
                )
            )
            self._touch_and_save(updated)
            self.runtime.mark_initialized(session.id)
        finally:
            self.runtime.finish(session.id)

        logger.info(
            "[session] Turn added to %s (score=%s, fallback=%s)",
            session.id,
            result.feedback.score,
            result.used_fallback,
        )
        return updated

    def end_session(self, session: Session, confirmed: bool) -> Session:
        if not confirmed:
            raise EndNotConfirmedError()
        if session.is_completed:
            return session
        if not self.runtime.try_begin(session.id):
            raise SessionBusyError(session.id)

        try:
            updated = self._current(session)
            if updated.is_completed:
                return updated
            updated.status = SessionStatus.COMPLETED
            self._touch_and_save(updated)
        finally:
            self.runtime.finish(session.id)

        logger.info("[session] Completed session %s", session.id)
        return updated
