"""
Repository Pattern for the jobs collection.

Public API:
- get_job_repository(): Factory to get job repository instance
- JobRepositoryInterface: Abstract interface for jobs collection
- WriteResult: Result dataclass for write operations
- StoreError: Raised by services when a store call fails
"""

from .base import JobRepositoryInterface, StoreError, WriteResult
from .config import (
    get_job_repository,
    reset_repository,
    RepositoryConfig,
)

__all__ = [
    "get_job_repository",
    "reset_repository",
    "JobRepositoryInterface",
    "WriteResult",
    "StoreError",
    "RepositoryConfig",
]
