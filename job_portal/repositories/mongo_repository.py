"""
MongoDB Repositories

pymongo-backed implementations of the portal's repository interfaces.
All repositories share one Database handle (and so one MongoClient
connection pool).

Error Handling:
- Fail-fast: driver errors propagate to the caller
- The only translated error is the unique-index violation on
  users.email, which becomes DuplicateEmailError
"""

import logging
import re
from typing import Any, Dict, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from ..errors import DuplicateEmailError
from ..models import Application, Job, User
from .base import (
    ApplicationRepositoryInterface,
    JobFilters,
    JobRepositoryInterface,
    SessionRecord,
    SessionRepositoryInterface,
    UserRepositoryInterface,
)

logger = logging.getLogger(__name__)


def _to_object_id(value: str) -> Optional[ObjectId]:
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


class MongoUserRepository(UserRepositoryInterface):
    """Users collection with a unique index on email."""

    def __init__(self, db: Database, collection: str = "users"):
        self._collection: Collection = db[collection]

    def ensure_indexes(self) -> None:
        self._collection.create_index([("email", ASCENDING)], unique=True)

    def find_by_email(self, email: str) -> Optional[User]:
        doc = self._collection.find_one({"email": email})
        return User.from_document(doc) if doc else None

    def find_by_id(self, user_id: str) -> Optional[User]:
        object_id = _to_object_id(user_id)
        if object_id is None:
            return None
        doc = self._collection.find_one({"_id": object_id})
        return User.from_document(doc) if doc else None

    def insert(self, user: User) -> User:
        try:
            self._collection.insert_one(user.to_document())
        except DuplicateKeyError:
            raise DuplicateEmailError(user.email)
        return user

    def count(self) -> int:
        return self._collection.count_documents({})


class MongoSessionRepository(SessionRepositoryInterface):
    """
    Sessions collection.

    A TTL index on expires_at lets MongoDB purge expired records; the
    session manager still checks expiry itself because TTL deletion
    runs only about once a minute.
    """

    def __init__(self, db: Database, collection: str = "sessions"):
        self._collection: Collection = db[collection]

    def ensure_indexes(self) -> None:
        self._collection.create_index([("expires_at", ASCENDING)], expireAfterSeconds=0)

    def create(self, record: SessionRecord) -> None:
        self._collection.insert_one({
            "_id": record.id,
            "user_id": record.user_id,
            "created_at": record.created_at,
            "expires_at": record.expires_at,
        })

    def get(self, session_id: str) -> Optional[SessionRecord]:
        doc = self._collection.find_one({"_id": session_id})
        if not doc:
            return None
        return SessionRecord(
            id=doc["_id"],
            user_id=doc["user_id"],
            created_at=doc["created_at"],
            expires_at=doc["expires_at"],
        )

    def delete(self, session_id: str) -> bool:
        result = self._collection.delete_one({"_id": session_id})
        return result.deleted_count > 0


def build_job_query(filters: Optional[JobFilters]) -> Dict[str, Any]:
    """
    Build a MongoDB query from job filters.

    Search terms are escaped so they match as literal substrings.
    """
    if filters is None:
        return {}

    and_conditions: List[Dict[str, Any]] = []

    if filters.search:
        pattern = re.escape(filters.search)
        and_conditions.append({"$or": [
            {"title": {"$regex": pattern, "$options": "i"}},
            {"description": {"$regex": pattern, "$options": "i"}},
        ]})

    if filters.location:
        and_conditions.append(
            {"location": {"$regex": re.escape(filters.location), "$options": "i"}}
        )

    if filters.user_id:
        and_conditions.append({"userId": filters.user_id})

    if len(and_conditions) > 1:
        return {"$and": and_conditions}
    elif len(and_conditions) == 1:
        return and_conditions[0]
    return {}


class MongoJobRepository(JobRepositoryInterface):
    """Jobs collection, returned in insertion order."""

    def __init__(self, db: Database, collection: str = "jobs"):
        self._collection: Collection = db[collection]

    def ensure_indexes(self) -> None:
        self._collection.create_index([("createdAt", ASCENDING)])

    def insert(self, job: Job) -> Job:
        self._collection.insert_one(job.to_document())
        return job

    def find(self, filters: JobFilters, skip: int = 0, limit: int = 0) -> List[Job]:
        cursor = self._collection.find(build_job_query(filters))
        cursor = cursor.sort([("createdAt", ASCENDING), ("_id", ASCENDING)])
        if skip > 0:
            cursor = cursor.skip(skip)
        if limit > 0:
            cursor = cursor.limit(limit)
        return [Job.from_document(doc) for doc in cursor]

    def count(self, filters: Optional[JobFilters] = None) -> int:
        return self._collection.count_documents(build_job_query(filters))


class MongoApplicationRepository(ApplicationRepositoryInterface):

    def __init__(self, db: Database, collection: str = "applications"):
        self._collection: Collection = db[collection]

    def insert(self, application: Application) -> Application:
        self._collection.insert_one(application.to_document())
        return application

    def count(self) -> int:
        return self._collection.count_documents({})
