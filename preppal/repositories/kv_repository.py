import json
import logging
from typing import Any, Callable, List, Optional, TypeVar

from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from preppal.core.config import settings
from preppal.core.errors import PersistenceWriteError
from preppal.models.kv_entry import KeyValueEntry

logger = logging.getLogger(__name__)

BLOB_VERSION = 1

ModelT = TypeVar("ModelT", bound=BaseModel)


def storage_key(name: str) -> str:
    return f"{settings.storage_prefix}_{name}"


USERS_KEY = storage_key("users")
SESSIONS_KEY = storage_key("sessions")
CURRENT_USER_KEY = storage_key("current_user")


class KeyValueRepository:
    """String-keyed blob storage, one row per key."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, key: str) -> Optional[str]:
        entry = self.db.get(KeyValueEntry, key)
        if not entry:
            return None
        return entry.value

    def set(self, key: str, value: str):
        try:
            entry = self.db.get(KeyValueEntry, key)
            if entry:
                entry.value = value
            else:
                self.db.add(KeyValueEntry(key=key, value=value))
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise PersistenceWriteError(f"Failed to write {key}: {exc}") from exc

    def remove(self, key: str):
        try:
            entry = self.db.get(KeyValueEntry, key)
            if entry:
                self.db.delete(entry)
                self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise PersistenceWriteError(f"Failed to remove {key}: {exc}") from exc


def decode_items(raw: Optional[str], key: str) -> List[Any]:
    if raw is None:
        return []
    try:
        data = json.loads(raw)
    except ValueError:
        logger.warning("[store] %s is not valid JSON, reading as empty", key)
        return []

    # unversioned blobs are bare arrays
    if isinstance(data, list):
        return data
    if isinstance(data, dict) and data.get("version") == BLOB_VERSION and isinstance(data.get("items"), list):
        return data["items"]

    logger.warning("[store] %s has an unknown format, reading as empty", key)
    return []


def encode_items(items: List[dict]) -> str:
    return json.dumps({"version": BLOB_VERSION, "items": items})


class CollectionStore:
    """A whole collection of entities serialized as one blob under one key.

    Reads never raise: absent or corrupt blobs read as empty. Writes replace
    the entire blob; failures are logged and the write is dropped.
    """

    def __init__(self, kv: KeyValueRepository, key: str, model: type[ModelT]):
        self.kv = kv
        self.key = key
        self.model = model

    def load(self) -> List[ModelT]:
        try:
            raw = self.kv.get(self.key)
        except SQLAlchemyError as exc:
            logger.error("[store] Failed to read %s: %s", self.key, exc)
            return []

        items = []
        for item in decode_items(raw, self.key):
            try:
                items.append(self.model.model_validate(item))
            except ValidationError as exc:
                logger.warning("[store] Skipping invalid entry in %s: %s", self.key, exc.errors()[:1])
        return items

    def save(self, items: List[ModelT]) -> bool:
        try:
            blob = encode_items([item.model_dump(mode="json", by_alias=True) for item in items])
            self.kv.set(self.key, blob)
        except (PersistenceWriteError, TypeError, ValueError) as exc:
            logger.error("[store] Failed to save %s: %s", self.key, exc)
            return False
        return True

    def find(self, predicate: Callable[[ModelT], bool]) -> Optional[ModelT]:
        return next((item for item in self.load() if predicate(item)), None)
