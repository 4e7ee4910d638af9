"""Document-store implementation of UserRepository."""

from __future__ import annotations

from pydantic import ValidationError as PydanticValidationError

from taskshare.adapters.document.store import DocumentStore
from taskshare.exceptions import StorageError
from taskshare.models import User
from taskshare.models.core import utcnow
from taskshare.repositories import UserRepository

USERS = "users"


def _to_user(doc: dict) -> User:
    try:
        return User.model_validate(doc)
    except PydanticValidationError as e:
        raise StorageError(f"Corrupt user document {doc.get('id')}: {e}") from e


class DocumentUserRepository(UserRepository):
    """Identity repository over a JSON DocumentStore."""

    def __init__(self, store: DocumentStore):
        self.store = store

    async def upsert(self, user: User) -> User:
        async with self.store.lock:
            clash = self.store.find(
                USERS, lambda d: d.get("email") == user.email and d.get("id") != user.id
            )
            if clash:
                raise StorageError(f"Email {user.email} is already registered")
            existing = self.store.get(USERS, user.id)
            doc = user.model_dump(mode="json")
            if existing is not None:
                doc["created_at"] = existing["created_at"]
            self.store.put(USERS, user.id, doc)
        return _to_user(doc)

    async def get(self, user_id: str) -> User | None:
        doc = self.store.get(USERS, user_id)
        return _to_user(doc) if doc else None

    async def find_by_email(self, email: str) -> User | None:
        key = email.strip().lower()
        matches = self.store.find(USERS, lambda d: d.get("email") == key)
        return _to_user(matches[0]) if matches else None

    async def list_all(self) -> list[User]:
        users = [_to_user(doc) for doc in self.store.find(USERS, lambda d: True)]
        return sorted(users, key=lambda u: u.email)

    async def find_by_query(
        self, query: str, exclude_id: str | None = None, limit: int = 10
    ) -> list[User]:
        needle = query.strip().lower()

        def matches(doc: dict) -> bool:
            return (
                doc.get("is_active", True)
                and doc.get("id") != exclude_id
                and (needle in doc.get("name", "").lower() or needle in doc.get("email", ""))
            )

        users = [_to_user(doc) for doc in self.store.find(USERS, matches)]
        return sorted(users, key=lambda u: u.email)[:limit]

    async def set_active(self, user_id: str, active: bool) -> User | None:
        async with self.store.lock:
            doc = self.store.get(USERS, user_id)
            if doc is None:
                return None
            doc["is_active"] = active
            doc["updated_at"] = utcnow().isoformat()
            self.store.put(USERS, user_id, doc)
        return _to_user(doc)
