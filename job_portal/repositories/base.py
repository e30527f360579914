"""
Repository Interface Definitions

Defines the abstract interfaces for the portal's stores: users, sessions,
jobs and applications. This enables swapping implementations (MongoDB,
in-memory) without changing consumer code.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from ..models import Application, Job, User


@dataclass
class SessionRecord:
    """
    Server-side half of a login session.

    Attributes:
        id: Opaque session id, also held by the client cookie
        user_id: Id of the user the session authenticates
        created_at: Issue time (UTC)
        expires_at: End of the validity window (UTC)
    """
    id: str
    user_id: str
    created_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


@dataclass
class JobFilters:
    """
    Job search filters. Unset fields do not filter.

    Attributes:
        search: Case-insensitive substring of title OR description
        location: Case-insensitive substring of location
        user_id: Exact owner match
    """
    search: Optional[str] = None
    location: Optional[str] = None
    user_id: Optional[str] = None


class UserRepositoryInterface(ABC):
    """
    Abstract interface for the users collection.

    Email uniqueness is enforced here, not by callers.
    """

    @abstractmethod
    def find_by_email(self, email: str) -> Optional[User]:
        """Find a user by normalized (lowercase) email."""
        pass

    @abstractmethod
    def find_by_id(self, user_id: str) -> Optional[User]:
        """Find a user by id. Malformed ids return None."""
        pass

    @abstractmethod
    def insert(self, user: User) -> User:
        """
        Insert a new user.

        Raises:
            DuplicateEmailError: If the email is already registered
        """
        pass

    @abstractmethod
    def count(self) -> int:
        """Count all users."""
        pass


class SessionRepositoryInterface(ABC):
    """Abstract interface for server-side session records."""

    @abstractmethod
    def create(self, record: SessionRecord) -> None:
        """Persist a new session record."""
        pass

    @abstractmethod
    def get(self, session_id: str) -> Optional[SessionRecord]:
        """Get a session record by id."""
        pass

    @abstractmethod
    def delete(self, session_id: str) -> bool:
        """
        Delete a session record.

        Returns:
            True if deleted, False if not found
        """
        pass


class JobRepositoryInterface(ABC):
    """
    Abstract interface for job postings.

    Results are returned in insertion order.
    """

    @abstractmethod
    def insert(self, job: Job) -> Job:
        """Insert a single job."""
        pass

    @abstractmethod
    def find(self, filters: JobFilters, skip: int = 0, limit: int = 0) -> List[Job]:
        """Find jobs matching the filters. limit=0 means no limit."""
        pass

    @abstractmethod
    def count(self, filters: Optional[JobFilters] = None) -> int:
        """Count jobs matching the filters (all jobs if None)."""
        pass


class ApplicationRepositoryInterface(ABC):
    """Abstract interface for job applications."""

    @abstractmethod
    def insert(self, application: Application) -> Application:
        """Insert a single application."""
        pass

    @abstractmethod
    def count(self) -> int:
        """Count all applications."""
        pass
