"""User service - identity registration and lookup.

Stands in for the identity provider's post-authentication callback: a
successful login registers (or re-activates) the identity by email.
"""

from __future__ import annotations

from pydantic import ValidationError as PydanticValidationError

from taskshare.exceptions import ConflictError, NotFound, ValidationError
from taskshare.models import EventType, User
from taskshare.models.core import utcnow
from taskshare.repositories import TaskRepository, UserRepository
from taskshare.services.notifier import ChangeNotifier
from taskshare.utils.logger import get_logger
from taskshare.utils.uuid_utils import generate_uuid

logger = get_logger().getChild("users")

SEARCH_MIN_LENGTH = 2
SEARCH_MAX_LENGTH = 50
SEARCH_LIMIT = 10


class UserService:
    """Service for identity business logic."""

    def __init__(
        self,
        user_repository: UserRepository,
        task_repository: TaskRepository | None = None,
        notifier: ChangeNotifier | None = None,
    ):
        """Initialize the user service.

        Args:
            user_repository: UserRepository implementation for data access
            task_repository: Needed to revoke a deactivated identity's grants
            notifier: Announces grants revoked by deactivation
        """
        self.repository = user_repository
        self.tasks = task_repository
        self.notifier = notifier or ChangeNotifier()

    async def __aenter__(self) -> UserService:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.notifier.close()

    async def register(self, email: str, name: str = "") -> User:
        """Register an identity, or refresh and re-activate an existing one.

        Args:
            email: Sharing key, matched case-insensitively
            name: Display name; an empty name keeps the stored one

        Returns:
            The stored User

        Raises:
            ValidationError: If the email is malformed
        """
        existing = await self.repository.find_by_email(email)
        now = utcnow()
        try:
            if existing is None:
                user = User(
                    id=generate_uuid(),
                    email=email,
                    name=name.strip(),
                    created_at=now,
                    updated_at=now,
                )
            else:
                user = existing.model_copy(
                    update={
                        "name": name.strip() or existing.name,
                        "is_active": True,
                        "updated_at": now,
                    }
                )
            user = User.model_validate(user.model_dump())
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e) from e

        stored = await self.repository.upsert(user)
        logger.info("registered user %s (%s)", stored.id, stored.email)
        return stored

    async def get(self, user_id: str) -> User:
        user = await self.repository.get(user_id)
        if user is None:
            raise NotFound(f"User {user_id} not found")
        return user

    async def find(self, id_or_email: str) -> User:
        """Look up by email when the key contains "@", otherwise by id."""
        key = id_or_email.strip()
        if "@" in key:
            user = await self.repository.find_by_email(key)
        else:
            user = await self.repository.get(key)
        if user is None:
            raise NotFound(f"User {id_or_email} not found")
        return user

    async def search(self, query: str, exclude_id: str | None = None) -> list[User]:
        """Active identities whose name or email contains ``query``.

        Feeds share-target pickers, so the caller is left out of the results.

        Raises:
            ValidationError: If the trimmed query is not 2-50 characters
        """
        needle = query.strip()
        if not SEARCH_MIN_LENGTH <= len(needle) <= SEARCH_MAX_LENGTH:
            raise ValidationError(
                ["query"],
                f"Search query must be between {SEARCH_MIN_LENGTH} and "
                f"{SEARCH_MAX_LENGTH} characters",
            )
        return await self.repository.find_by_query(
            needle, exclude_id=exclude_id, limit=SEARCH_LIMIT
        )

    async def deactivate(self, user_id: str) -> User:
        """Soft-deactivate an identity and revoke every grant it holds.

        Tasks the identity owns stay in place for their collaborators.
        """
        user = await self.find(user_id)
        updated = await self.repository.set_active(user.id, False)
        if updated is None:
            raise NotFound(f"User {user_id} not found")
        revoked = await self._revoke_grants(updated.id)
        logger.info("deactivated user %s (%d grants revoked)", updated.id, revoked)
        return updated

    async def _revoke_grants(self, user_id: str) -> int:
        if self.tasks is None:
            return 0
        revoked = 0
        for task in await self.tasks.find_by_owner_or_shared_with(user_id):
            while task is not None and task.share_entry(user_id) is not None:
                share_list = [e for e in task.share_list if e.user_id != user_id]
                try:
                    updated = await self.tasks.update(
                        task.id, {"share_list": share_list}, expected_version=task.version
                    )
                except ConflictError:
                    task = await self.tasks.find_by_id(task.id)
                    continue
                if updated is not None:
                    revoked += 1
                    await self.notifier.notify(
                        EventType.UPDATED, updated, user_id, extra_recipients=[user_id]
                    )
                break
        return revoked

    async def list_users(self) -> list[User]:
        return await self.repository.list_all()
