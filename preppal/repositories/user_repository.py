import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from preppal.core.errors import DuplicateUserError, PersistenceWriteError
from preppal.repositories.kv_repository import CURRENT_USER_KEY, USERS_KEY, CollectionStore, KeyValueRepository
from preppal.schemas.user import User

logger = logging.getLogger(__name__)


class UserRepository:
    def __init__(self, db: Session):
        self.kv = KeyValueRepository(db)
        self.users = CollectionStore(self.kv, USERS_KEY, User)

    def list_all(self) -> List[User]:
        return self.users.load()

    def find_by_email(self, email: str) -> Optional[User]:
        wanted = email.strip().lower()
        return self.users.find(lambda user: user.email.lower() == wanted)

    def get(self, user_id: str) -> Optional[User]:
        return self.users.find(lambda user: user.id == user_id)

    def create(self, name: str, email: str, password: Optional[str] = None) -> User:
        users = self.users.load()
        wanted = email.strip().lower()
        if any(user.email.lower() == wanted for user in users):
            raise DuplicateUserError(email)

        user = User(name=name, email=email.strip(), password=password or None)
        users.append(user)
        self.users.save(users)
        logger.info("[store] Registered user %s", user.id)
        return user

    def authenticate(self, email: str, password: str) -> Optional[User]:
        user = self.find_by_email(email)
        if not user:
            return None
        # accounts created without a secret accept any secret
        if user.password and user.password != password:
            return None
        return user

    def set_current_user(self, user_id: Optional[str]):
        try:
            if user_id is None:
                self.kv.remove(CURRENT_USER_KEY)
            else:
                self.kv.set(CURRENT_USER_KEY, user_id)
        except PersistenceWriteError as exc:
            logger.error("[store] Failed to remember current user: %s", exc)

    def get_current_user(self) -> Optional[User]:
        try:
            user_id = self.kv.get(CURRENT_USER_KEY)
        except SQLAlchemyError as exc:
            logger.error("[store] Failed to read current user: %s", exc)
            return None
        if not user_id:
            return None
        return self.get(user_id)
