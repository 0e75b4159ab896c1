"""
Job Board Service

Owns the in-memory cache of the jobs collection and every mutation of it:

- refresh(): full refetch ordered by postedDate (newest first)
- create_job / update_job / add_jobs / delete_job: derive companyLogoUrl,
  write through the repository, then refetch

Read failures are logged and leave the previous cache in place. Write
failures are logged and raised as StoreError without touching the cache.
"""

import threading
from typing import List, Optional, Sequence

from pydantic import ValidationError

from jobboard.common.job_types import JobDraft, JobPosting, company_logo_url
from jobboard.common.logger import get_logger
from jobboard.common.repositories import (
    JobRepositoryInterface,
    StoreError,
    get_job_repository,
)

logger = get_logger(__name__, operation="store")


class JobBoardService:
    """
    Cache plus write-through operations for job postings.

    Each refresh() takes a generation number when it starts; a result is
    only applied if no later-started refresh has already been applied, so
    a slow stale fetch cannot overwrite fresher data.
    """

    def __init__(
        self,
        repository: Optional[JobRepositoryInterface] = None,
        logo_url_template: Optional[str] = None,
    ):
        self._repository = repository
        self._logo_url_template = logo_url_template
        self._jobs: List[JobPosting] = []
        self._loaded = False
        self._lock = threading.Lock()
        self._started_generation = 0
        self._applied_generation = 0

    @property
    def repository(self) -> JobRepositoryInterface:
        if self._repository is None:
            self._repository = get_job_repository()
        return self._repository

    @property
    def jobs(self) -> List[JobPosting]:
        """Snapshot of the cached collection."""
        with self._lock:
            return list(self._jobs)

    @property
    def loaded(self) -> bool:
        """True once a fetch has succeeded; a failed first fetch leaves it False."""
        with self._lock:
            return self._loaded

    @property
    def generation(self) -> int:
        """Generation of the fetch whose result is in the cache (0 before any)."""
        with self._lock:
            return self._applied_generation

    def find_cached(self, job_id: int) -> Optional[JobPosting]:
        with self._lock:
            return next((job for job in self._jobs if job.id == job_id), None)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def begin_fetch(self) -> int:
        """Reserve a fetch generation."""
        with self._lock:
            self._started_generation += 1
            return self._started_generation

    def refresh(self) -> List[JobPosting]:
        """
        Refetch the whole collection.

        Returns:
            The cache after the fetch (unchanged if the fetch failed or
            was superseded)
        """
        generation = self.begin_fetch()

        try:
            documents = self.repository.list_jobs()
        except Exception as e:
            logger.error(f"Error fetching jobs: {e}")
            with self._lock:
                return list(self._jobs)

        jobs = self._parse_documents(documents)

        with self._lock:
            if generation > self._applied_generation:
                self._jobs = jobs
                self._applied_generation = generation
            else:
                logger.debug(
                    f"Dropping stale fetch {generation} (already applied {self._applied_generation})"
                )
            self._loaded = True
            return list(self._jobs)

    @staticmethod
    def _parse_documents(documents: Sequence[dict]) -> List[JobPosting]:
        jobs = []
        for document in documents:
            try:
                jobs.append(JobPosting.from_document(document))
            except ValidationError as e:
                logger.warning(f"Skipping malformed job document id={document.get('id')}: {e}")
        return jobs

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _build_record(self, draft: JobDraft) -> dict:
        record = draft.to_record()
        record["companyLogoUrl"] = company_logo_url(draft.company, self._logo_url_template)
        return record

    def create_job(self, draft: JobDraft) -> Optional[int]:
        """
        Insert a new posting.

        Returns:
            The store-assigned id

        Raises:
            StoreError: If the insert fails
        """
        try:
            result = self.repository.create_job(self._build_record(draft))
        except Exception as e:
            logger.error(f"Error creating job: {e}")
            raise StoreError("Could not save the job posting. Please try again.") from e

        self.refresh()
        return result.inserted_ids[0] if result.inserted_ids else None

    def update_job(self, job_id: int, draft: JobDraft) -> None:
        """
        Overwrite a posting with the edited draft (postedDate is kept).

        Raises:
            StoreError: If the update fails or the job no longer exists
        """
        try:
            result = self.repository.update_job(job_id, self._build_record(draft))
        except Exception as e:
            logger.error(f"Error updating job {job_id}: {e}")
            raise StoreError("Could not update the job posting. Please try again.") from e

        if result.matched_count == 0:
            logger.warning(f"Update matched no job with id={job_id}")
            raise StoreError("This job posting no longer exists.")

        self.refresh()

    def add_jobs(self, drafts: Sequence[JobDraft]) -> List[int]:
        """
        Bulk insert postings (AI scout accept path).

        Raises:
            StoreError: If the insert fails
        """
        if not drafts:
            return []

        records = [self._build_record(draft) for draft in drafts]
        try:
            result = self.repository.create_jobs(records)
        except Exception as e:
            logger.error(f"Error bulk adding jobs: {e}")
            raise StoreError("Could not add the generated jobs. Please try again.") from e

        self.refresh()
        return list(result.inserted_ids)

    def delete_job(self, job_id: int, confirmed: bool) -> bool:
        """
        Delete a posting once the admin has confirmed.

        Returns:
            False if not confirmed (nothing is deleted), True otherwise

        Raises:
            StoreError: If the delete fails
        """
        if not confirmed:
            logger.info(f"Delete of job {job_id} not confirmed; skipping")
            return False

        try:
            self.repository.delete_job(job_id)
        except Exception as e:
            logger.error(f"Error deleting job {job_id}: {e}")
            raise StoreError("Could not delete the job posting. Please try again.") from e

        self.refresh()
        return True


# Process-wide board (shared cache across requests)
_board_instance: Optional[JobBoardService] = None


def get_job_board() -> JobBoardService:
    global _board_instance
    if _board_instance is None:
        _board_instance = JobBoardService()
    return _board_instance


def reset_job_board() -> None:
    global _board_instance
    _board_instance = None
