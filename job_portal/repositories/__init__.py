"""
Repository Pattern for the Job Portal's Stores

Provides an abstraction layer over MongoDB so that jobs and applications
can run in memory or in the same database as users.

Public API:
- build_repositories(): Factory for the repository bundle
- Repositories: Bundle of user/session/job/application repositories
- *RepositoryInterface: Abstract interfaces per store
"""

from .base import (
    ApplicationRepositoryInterface,
    JobFilters,
    JobRepositoryInterface,
    SessionRecord,
    SessionRepositoryInterface,
    UserRepositoryInterface,
)
from .config import Repositories, build_repositories, connect_database, reset_connection
from .memory_repository import (
    InMemoryApplicationRepository,
    InMemoryJobRepository,
    InMemorySessionRepository,
    InMemoryUserRepository,
)

__all__ = [
    "build_repositories",
    "connect_database",
    "reset_connection",
    "Repositories",
    "JobFilters",
    "SessionRecord",
    "UserRepositoryInterface",
    "SessionRepositoryInterface",
    "JobRepositoryInterface",
    "ApplicationRepositoryInterface",
    "InMemoryUserRepository",
    "InMemorySessionRepository",
    "InMemoryJobRepository",
    "InMemoryApplicationRepository",
]
