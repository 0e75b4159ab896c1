"""
MongoDB Job Repository

Stores postings in a single collection keyed by an integer `id`. Ids come
from a `counters` collection so they stay small, unique and monotonic
across processes.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pymongo import DESCENDING, MongoClient, ReturnDocument
from pymongo.collection import Collection
from pymongo.database import Database

from .base import JobRepositoryInterface, WriteResult

logger = logging.getLogger(__name__)

# Fields the store owns; updates never touch them
IMMUTABLE_FIELDS = ("id", "postedDate", "_id")


class AtlasJobRepository(JobRepositoryInterface):
    """
    MongoDB-backed job repository.

    Connection Management:
    - Uses singleton MongoClient for connection pooling
    - Client is created once and reused across requests
    - PyMongo handles connection pool internally

    Error Handling:
    - Fail-fast: All errors propagate to caller
    """

    _client: Optional[MongoClient] = None
    _db: Optional[Database] = None

    def __init__(
        self,
        mongodb_uri: str,
        database: str = "jobofficer",
        collection: str = "jobs",
        counters_collection: str = "counters",
    ):
        """
        Initialize repository with connection parameters.

        Args:
            mongodb_uri: MongoDB connection string
            database: Database name
            collection: Jobs collection name
            counters_collection: Collection holding the id sequence
        """
        self._mongodb_uri = mongodb_uri
        self._database_name = database
        self._collection_name = collection
        self._counters_name = counters_collection

    def _get_db(self) -> Database:
        """Get the database, creating the client on first use."""
        if AtlasJobRepository._db is None:
            AtlasJobRepository._client = MongoClient(
                self._mongodb_uri,
                serverSelectionTimeoutMS=5000,
                connectTimeoutMS=5000,
            )
            AtlasJobRepository._db = AtlasJobRepository._client[self._database_name]
            logger.info(f"Job repository connected: {self._database_name}.{self._collection_name}")
        return AtlasJobRepository._db

    def _get_collection(self) -> Collection:
        return self._get_db()[self._collection_name]

    def _allocate_ids(self, count: int) -> List[int]:
        """Reserve `count` consecutive ids from the sequence."""
        counter = self._get_db()[self._counters_name].find_one_and_update(
            {"_id": self._collection_name},
            {"$inc": {"seq": count}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        last = counter["seq"]
        return list(range(last - count + 1, last + 1))

    @staticmethod
    def _strip_owned_fields(record: Dict[str, Any]) -> Dict[str, Any]:
        return {k: v for k, v in record.items() if k not in IMMUTABLE_FIELDS}

    def list_jobs(self) -> List[Dict[str, Any]]:
        collection = self._get_collection()
        cursor = collection.find({}, {"_id": 0}).sort("postedDate", DESCENDING)
        return list(cursor)

    def find_job(self, job_id: int) -> Optional[Dict[str, Any]]:
        return self._get_collection().find_one({"id": job_id}, {"_id": 0})

    def create_job(self, record: Dict[str, Any]) -> WriteResult:
        return self.create_jobs([record])

    def create_jobs(self, records: List[Dict[str, Any]]) -> WriteResult:
        """
        Insert jobs with freshly allocated ids and a shared postedDate.

        Fail-fast behavior: exceptions propagate to caller.
        """
        if not records:
            return WriteResult(matched_count=0, modified_count=0)

        ids = self._allocate_ids(len(records))
        posted_date = datetime.now(timezone.utc)
        documents = [
            {**self._strip_owned_fields(record), "id": job_id, "postedDate": posted_date}
            for record, job_id in zip(records, ids)
        ]

        self._get_collection().insert_many(documents)
        logger.info(f"Inserted {len(documents)} job(s): ids={ids}")

        return WriteResult(matched_count=0, modified_count=0, inserted_ids=ids)

    def update_job(self, job_id: int, fields: Dict[str, Any]) -> WriteResult:
        """
        Overwrite a job's editable fields.

        Fail-fast behavior: exceptions propagate to caller.
        """
        update_data = self._strip_owned_fields(fields)
        if not update_data:
            return WriteResult(matched_count=0, modified_count=0)

        result = self._get_collection().update_one({"id": job_id}, {"$set": update_data})
        return WriteResult(
            matched_count=result.matched_count,
            modified_count=result.modified_count,
        )

    def delete_job(self, job_id: int) -> WriteResult:
        result = self._get_collection().delete_one({"id": job_id})
        return WriteResult(
            matched_count=result.deleted_count,
            modified_count=result.deleted_count,
        )

    def ping(self) -> bool:
        self._get_db().command("ping")
        return True

    def ensure_indexes(self) -> None:
        """Create the unique id index and the postedDate sort index."""
        collection = self._get_collection()
        collection.create_index("id", unique=True)
        collection.create_index([("postedDate", DESCENDING)])

    @classmethod
    def reset_connection(cls) -> None:
        """
        Reset the connection pool.

        Used for testing or connection recovery.
        """
        if cls._client:
            cls._client.close()
        cls._client = None
        cls._db = None
        logger.info("Job repository connection reset")
