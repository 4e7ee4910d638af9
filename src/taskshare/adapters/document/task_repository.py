"""Document-store implementation of TaskRepository."""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError as PydanticValidationError

from taskshare.adapters.document.store import Document, DocumentStore
from taskshare.exceptions import ConflictError, StorageError
from taskshare.models import Task
from taskshare.models.core import utcnow
from taskshare.repositories import UPDATABLE_TASK_FIELDS, TaskRepository

TASKS = "tasks"


def task_to_document(task: Task, is_deleted: bool = False) -> Document:
    doc = task.model_dump(mode="json", exclude={"completed"})
    doc["is_deleted"] = is_deleted
    return doc


def document_to_task(doc: Document) -> Task:
    try:
        return Task.model_validate({k: v for k, v in doc.items() if k != "is_deleted"})
    except PydanticValidationError as e:
        raise StorageError(f"Corrupt task document {doc.get('id')}: {e}") from e


class DocumentTaskRepository(TaskRepository):
    """Task repository over a JSON DocumentStore."""

    def __init__(self, store: DocumentStore):
        self.store = store

    async def insert(self, task: Task) -> Task:
        async with self.store.lock:
            if self.store.get(TASKS, task.id) is not None:
                raise StorageError(f"Task {task.id} already exists")
            self.store.put(TASKS, task.id, task_to_document(task))
        return task.model_copy(deep=True)

    async def find_by_id(self, task_id: str) -> Task | None:
        doc = self.store.get(TASKS, task_id)
        if doc is None or doc.get("is_deleted"):
            return None
        return document_to_task(doc)

    async def find_by_owner_or_shared_with(self, user_id: str) -> list[Task]:
        def visible(doc: Document) -> bool:
            if doc.get("is_deleted"):
                return False
            if doc.get("owner_id") == user_id:
                return True
            return any(e.get("user_id") == user_id for e in doc.get("share_list", []))

        return [document_to_task(doc) for doc in self.store.find(TASKS, visible)]

    async def update(
        self,
        task_id: str,
        changes: dict[str, Any],
        expected_version: int | None = None,
    ) -> Task | None:
        unknown = set(changes) - UPDATABLE_TASK_FIELDS
        if unknown:
            raise ValueError(f"Unsupported task fields: {', '.join(sorted(unknown))}")

        async with self.store.lock:
            current = await self.find_by_id(task_id)
            if current is None:
                return None
            if expected_version is not None and current.version != expected_version:
                raise ConflictError(task_id, expected_version, current.version)

            data = current.model_dump(exclude={"completed"})
            data.update(changes)
            data["updated_at"] = utcnow()
            data["version"] = current.version + 1
            try:
                updated = Task.model_validate(data)
            except PydanticValidationError as e:
                raise StorageError(f"Invalid update for task {task_id}: {e}") from e
            self.store.put(TASKS, task_id, task_to_document(updated))
        return updated

    async def delete(self, task_id: str) -> bool:
        async with self.store.lock:
            doc = self.store.get(TASKS, task_id)
            if doc is None or doc.get("is_deleted"):
                return False
            doc["is_deleted"] = True
            doc["version"] = doc.get("version", 1) + 1
            self.store.put(TASKS, task_id, doc)
        return True
