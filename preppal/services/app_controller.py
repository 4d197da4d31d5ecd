import logging
from enum import Enum
from typing import Optional

from preppal.core.errors import InvalidCredentialsError
from preppal.repositories.session_repository import SessionRepository
from preppal.repositories.user_repository import UserRepository
from preppal.schemas.session import Preferences, Session
from preppal.schemas.user import LoginRequest, RegisterRequest, User
from preppal.services.interview_session_service import InterviewSessionService

logger = logging.getLogger(__name__)


class AppView(str, Enum):
    LANDING = "landing"
    AUTH = "auth"
    SETUP = "setup"
    INTERVIEW = "interview"
    DASHBOARD = "dashboard"


class AppController:
    """Navigation state for one client: who is signed in and what they see."""

    def __init__(self, users: UserRepository, sessions: SessionRepository, interviews: InterviewSessionService):
        self.users = users
        self.sessions = sessions
        self.interviews = interviews
        self.current_user: Optional[User] = None
        self.active_session: Optional[Session] = None
        self.view = AppView.LANDING

    def start(self) -> AppView:
        self.view = AppView.SETUP if self.current_user else AppView.AUTH
        return self.view

    def _sign_in(self, user: User) -> User:
        self.current_user = user
        self.users.set_current_user(user.id)
        logger.info("[app] Signed in %s", user.id)
        self.view = AppView.DASHBOARD
        return user

    def login(self, email: str, password: str) -> User:
        form = LoginRequest(email=email, password=password)
        user = self.users.authenticate(form.email, form.password)
        if not user:
            raise InvalidCredentialsError()
        return self._sign_in(user)

    def register(self, name: str, email: str, password: str) -> User:
        form = RegisterRequest(name=name, email=email, password=password)
        return self._sign_in(self.users.create(form.name, form.email, form.password))

    def restore(self) -> Optional[User]:
        user = self.users.get_current_user()
        if user:
            self.current_user = user
        return user

    def logout(self):
        if self.current_user:
            logger.info("[app] Signed out %s", self.current_user.id)
        self.users.set_current_user(None)
        self.current_user = None
        self.active_session = None
        self.view = AppView.LANDING

    def complete_setup(self, preferences: Preferences) -> Optional[Session]:
        if not self.current_user:
            return None
        self.active_session = self.sessions.create(preferences, self.current_user.id)
        self.view = AppView.INTERVIEW
        return self.active_session

    def resume_session(self, session: Session) -> Session:
        self.active_session = session
        self.view = AppView.INTERVIEW
        return session

    def open_active_session(self) -> Optional[Session]:
        if self.active_session:
            self.active_session = self.interviews.ensure_opening_question(self.active_session)
        return self.active_session

    def submit_answer(self, answer: str) -> Optional[Session]:
        if self.active_session:
            self.active_session = self.interviews.submit_answer(self.active_session, answer)
        return self.active_session

    def end_session(self, confirmed: bool) -> Optional[Session]:
        if not self.active_session:
            return None
        self.active_session = self.interviews.end_session(self.active_session, confirmed)
        self.navigate(AppView.DASHBOARD)
        return self.active_session

    def navigate(self, view: AppView) -> AppView:
        if view == AppView.DASHBOARD and not self.current_user:
            self.view = AppView.AUTH
        elif view == AppView.INTERVIEW and not self.active_session:
            self.view = AppView.SETUP
        else:
            self.view = view
        return self.view
