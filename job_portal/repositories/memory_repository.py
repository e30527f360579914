"""
In-Memory Repositories

Process-lifetime implementations of the repository interfaces. Used for
jobs and applications when JOB_STORE=memory, and for users and sessions
in tests. Contents are lost on restart.

Each repository guards its storage with a lock because Flask may serve
requests on several threads.
"""

import threading
from typing import Dict, List, Optional

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


class InMemoryUserRepository(UserRepositoryInterface):

    def __init__(self):
        self._lock = threading.Lock()
        self._by_id: Dict[str, User] = {}
        self._id_by_email: Dict[str, str] = {}

    def find_by_email(self, email: str) -> Optional[User]:
        with self._lock:
            user_id = self._id_by_email.get(email)
            return self._by_id.get(user_id) if user_id else None

    def find_by_id(self, user_id: str) -> Optional[User]:
        with self._lock:
            return self._by_id.get(user_id)

    def insert(self, user: User) -> User:
        with self._lock:
            if user.email in self._id_by_email:
                raise DuplicateEmailError(user.email)
            self._by_id[user.id] = user
            self._id_by_email[user.email] = user.id
        return user

    def delete(self, user_id: str) -> bool:
        """Remove a user. Only used to simulate deletions in tests and scripts."""
        with self._lock:
            user = self._by_id.pop(user_id, None)
            if user is None:
                return False
            self._id_by_email.pop(user.email, None)
            return True

    def count(self) -> int:
        with self._lock:
            return len(self._by_id)


class InMemorySessionRepository(SessionRepositoryInterface):

    def __init__(self):
        self._lock = threading.Lock()
        self._records: Dict[str, SessionRecord] = {}

    def create(self, record: SessionRecord) -> None:
        with self._lock:
            self._records[record.id] = record

    def get(self, session_id: str) -> Optional[SessionRecord]:
        with self._lock:
            return self._records.get(session_id)

    def delete(self, session_id: str) -> bool:
        with self._lock:
            return self._records.pop(session_id, None) is not None


def job_matches(job: Job, filters: Optional[JobFilters]) -> bool:
    """Apply job filters: substring matches are case-insensitive, combined with AND."""
    if filters is None:
        return True
    if filters.search:
        term = filters.search.lower()
        if term not in job.title.lower() and term not in job.description.lower():
            return False
    if filters.location:
        if filters.location.lower() not in (job.location or "").lower():
            return False
    if filters.user_id and job.user_id != filters.user_id:
        return False
    return True


class InMemoryJobRepository(JobRepositoryInterface):
    """Append-only job list."""

    def __init__(self):
        self._lock = threading.Lock()
        self._jobs: List[Job] = []

    def insert(self, job: Job) -> Job:
        with self._lock:
            self._jobs.append(job)
        return job

    def find(self, filters: JobFilters, skip: int = 0, limit: int = 0) -> List[Job]:
        with self._lock:
            matched = [job for job in self._jobs if job_matches(job, filters)]
        end = skip + limit if limit > 0 else None
        return matched[skip:end]

    def count(self, filters: Optional[JobFilters] = None) -> int:
        with self._lock:
            return sum(1 for job in self._jobs if job_matches(job, filters))


class InMemoryApplicationRepository(ApplicationRepositoryInterface):

    def __init__(self):
        self._lock = threading.Lock()
        self._applications: List[Application] = []

    def insert(self, application: Application) -> Application:
        with self._lock:
            self._applications.append(application)
        return application

    def count(self) -> int:
        with self._lock:
            return len(self._applications)
