from fastapi import APIRouter, Depends, HTTPException

from preppal.api.deps import get_session_repository, get_user_repository
from preppal.repositories.session_repository import SessionRepository
from preppal.repositories.user_repository import UserRepository
from preppal.schemas.dashboard import DashboardResponse
from preppal.services.dashboard_service import build_dashboard

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("", response_model=DashboardResponse)
def get_dashboard(
    user_id: str,
    users: UserRepository = Depends(get_user_repository),
    sessions: SessionRepository = Depends(get_session_repository),
):
    if not users.get(user_id):
        raise HTTPException(status_code=404, detail="User not found")
    return build_dashboard(sessions.list_all(user_id=user_id), user_id=user_id)
