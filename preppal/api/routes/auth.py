from fastapi import APIRouter, Depends, HTTPException

from preppal.api.deps import get_user_repository
from preppal.core.errors import DuplicateUserError
from preppal.repositories.user_repository import UserRepository
from preppal.schemas.user import LoginRequest, RegisterRequest, UserResponse

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=UserResponse)
def register(body: RegisterRequest, users: UserRepository = Depends(get_user_repository)):
    try:
        user = users.create(body.name, body.email, body.password)
    except DuplicateUserError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return UserResponse.from_user(user)


@router.post("/login", response_model=UserResponse)
def login(body: LoginRequest, users: UserRepository = Depends(get_user_repository)):
    user = users.authenticate(body.email, body.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid email or password.")
    return UserResponse.from_user(user)
