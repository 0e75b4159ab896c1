"""
Repository Interface Definitions

Defines the abstract interface for job store operations.
This enables swapping the backing store (MongoDB, an in-memory fake in
tests) without changing consumer code.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


class StoreError(Exception):
    """A read or write against the job store failed."""


@dataclass
class WriteResult:
    """
    Result of a write operation.

    Attributes:
        matched_count: Number of documents that matched the filter
        modified_count: Number of documents actually modified
        inserted_ids: Store-assigned ids of inserted documents
    """
    matched_count: int
    modified_count: int
    inserted_ids: List[int] = field(default_factory=list)


class JobRepositoryInterface(ABC):
    """
    Abstract interface for the jobs collection.

    Records are plain dicts with the store's camelCase keys. `id` and
    `postedDate` are assigned by the repository on create and never
    changed afterwards.

    All methods follow fail-fast semantics: driver errors propagate to the
    caller.
    """

    @abstractmethod
    def list_jobs(self) -> List[Dict[str, Any]]:
        """All job documents, newest postedDate first."""
        pass

    @abstractmethod
    def create_job(self, record: Dict[str, Any]) -> WriteResult:
        """Insert a single job; assigns id and postedDate."""
        pass

    @abstractmethod
    def create_jobs(self, records: List[Dict[str, Any]]) -> WriteResult:
        """Insert several jobs in one call; assigns ids and postedDate."""
        pass

    @abstractmethod
    def update_job(self, job_id: int, fields: Dict[str, Any]) -> WriteResult:
        """Overwrite the given fields of one job (id and postedDate are ignored)."""
        pass

    @abstractmethod
    def delete_job(self, job_id: int) -> WriteResult:
        """Delete one job."""
        pass

    def find_job(self, job_id: int) -> Optional[Dict[str, Any]]:
        """Single job lookup; defaults to scanning list_jobs()."""
        for job in self.list_jobs():
            if job.get("id") == job_id:
                return job
        return None

    def ping(self) -> bool:
        """Connectivity check used by the health endpoint."""
        self.list_jobs()
        return True

    def ensure_indexes(self) -> None:
        """Create backing-store indexes (no-op unless the store has any)."""
        pass
