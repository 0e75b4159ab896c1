"""
Repository Configuration and Factory

Provides factory function to get the repository implementation based on
environment configuration.
"""

import os
import logging
from dataclasses import dataclass
from typing import Optional

from .base import JobRepositoryInterface

logger = logging.getLogger(__name__)


@dataclass
class RepositoryConfig:
    """
    Configuration for repository initialization.

    Loaded from environment variables with sensible defaults.
    """
    mongodb_uri: str

    # Database/collection names
    database: str = "jobofficer"
    collection: str = "jobs"
    counters_collection: str = "counters"

    @classmethod
    def from_env(cls) -> "RepositoryConfig":
        """
        Load configuration from environment variables.

        Environment variables:
        - MONGODB_URI (required): MongoDB connection string
        - MONGO_DB_NAME: Database name (default: jobofficer)
        - JOBS_COLLECTION: Jobs collection name (default: jobs)
        """
        mongodb_uri = os.getenv("MONGODB_URI")
        if not mongodb_uri:
            raise ValueError("MONGODB_URI environment variable is required")

        return cls(
            mongodb_uri=mongodb_uri,
            database=os.getenv("MONGO_DB_NAME", "jobofficer"),
            collection=os.getenv("JOBS_COLLECTION", "jobs"),
        )


# Singleton repository instance
_repository_instance: Optional[JobRepositoryInterface] = None


def get_job_repository() -> JobRepositoryInterface:
    """
    Get the job repository instance.

    Uses singleton pattern for connection pooling.
    """
    global _repository_instance

    if _repository_instance is None:
        config = RepositoryConfig.from_env()

        from .atlas_repository import AtlasJobRepository
        _repository_instance = AtlasJobRepository(
            mongodb_uri=config.mongodb_uri,
            database=config.database,
            collection=config.collection,
            counters_collection=config.counters_collection,
        )
        logger.info("Initialized MongoDB job repository")

    return _repository_instance


def reset_repository() -> None:
    """Reset the repository singleton."""
    global _repository_instance

    if _repository_instance is not None:
        from .atlas_repository import AtlasJobRepository
        if isinstance(_repository_instance, AtlasJobRepository):
            AtlasJobRepository.reset_connection()

    _repository_instance = None
    logger.info("Repository singleton reset")
