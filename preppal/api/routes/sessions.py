from fastapi import APIRouter, Depends, HTTPException

from preppal.api.deps import get_interview_service, get_session_repository, get_user_repository
from preppal.core.errors import (
    EmptyAnswerError,
    EndNotConfirmedError,
    InvalidPreferencesError,
    SessionBusyError,
    SessionCompletedError,
    SessionNotFoundError,
)
from preppal.repositories.session_repository import SessionRepository
from preppal.repositories.user_repository import UserRepository
from preppal.schemas.session import (
    EXPERIENCE_LEVELS,
    FOCUS_AREAS,
    AnswerRequest,
    EndSessionRequest,
    Session,
    SessionCreateRequest,
    SetupOptionsResponse,
)
from preppal.services.interview_session_service import InterviewSessionService

router = APIRouter(prefix="/sessions", tags=["sessions"])


def load_session(sessions: SessionRepository, session_id: str, user_id: str | None = None) -> Session:
    try:
        return sessions.require(session_id, user_id=user_id)
    except SessionNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))


@router.get("/options", response_model=SetupOptionsResponse)
def get_setup_options():
    return SetupOptionsResponse(experience_levels=EXPERIENCE_LEVELS, focus_areas=FOCUS_AREAS)


@router.get("", response_model=list[Session])
def list_sessions(user_id: str | None = None, sessions: SessionRepository = Depends(get_session_repository)):
    return sessions.list_all(user_id=user_id)


@router.post("", response_model=Session)
def create_session(
    body: SessionCreateRequest,
    users: UserRepository = Depends(get_user_repository),
    sessions: SessionRepository = Depends(get_session_repository),
):
    if not users.get(body.user_id):
        raise HTTPException(status_code=404, detail="User not found")
    try:
        return sessions.create(body.preferences, body.user_id)
    except InvalidPreferencesError as exc:
        raise HTTPException(status_code=422, detail=str(exc))


@router.get("/{session_id}", response_model=Session)
def get_session(session_id: str, user_id: str | None = None, sessions: SessionRepository = Depends(get_session_repository)):
    return load_session(sessions, session_id, user_id=user_id)


@router.post("/{session_id}/open", response_model=Session)
def open_session(
    session_id: str,
    user_id: str | None = None,
    sessions: SessionRepository = Depends(get_session_repository),
    interviews: InterviewSessionService = Depends(get_interview_service),
):
    session = load_session(sessions, session_id, user_id=user_id)
    return interviews.ensure_opening_question(session)


@router.post("/{session_id}/answers", response_model=Session)
def submit_answer(
    session_id: str,
    body: AnswerRequest,
    sessions: SessionRepository = Depends(get_session_repository),
    interviews: InterviewSessionService = Depends(get_interview_service),
):
    session = load_session(sessions, session_id, user_id=body.user_id)
    try:
        return interviews.submit_answer(session, body.answer)
    except (SessionCompletedError, EmptyAnswerError) as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except SessionBusyError as exc:
        raise HTTPException(status_code=409, detail=str(exc))


@router.post("/{session_id}/end", response_model=Session)
def end_session(
    session_id: str,
    body: EndSessionRequest,
    sessions: SessionRepository = Depends(get_session_repository),
    interviews: InterviewSessionService = Depends(get_interview_service),
):
    session = load_session(sessions, session_id, user_id=body.user_id)
    try:
        return interviews.end_session(session, confirmed=body.confirm)
    except EndNotConfirmedError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except SessionBusyError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
