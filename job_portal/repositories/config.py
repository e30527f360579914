"""
Repository Configuration and Factory

Builds the repository bundle the application runs on, based on
PortalConfig. Users and sessions always live in MongoDB; jobs and
applications live in memory or in MongoDB depending on JOB_STORE.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from pymongo import MongoClient
from pymongo.database import Database

from ..config import JobStore, PortalConfig
from .base import (
    ApplicationRepositoryInterface,
    JobRepositoryInterface,
    SessionRepositoryInterface,
    UserRepositoryInterface,
)

logger = logging.getLogger(__name__)


@dataclass
class Repositories:
    """The set of stores handed to the application."""
    users: UserRepositoryInterface
    sessions: SessionRepositoryInterface
    jobs: JobRepositoryInterface
    applications: ApplicationRepositoryInterface


# Singleton client for connection pooling
_client: Optional[MongoClient] = None


def connect_database(config: PortalConfig) -> Database:
    """
    Connect to MongoDB and verify the connection with a ping.

    No retry: callers treat a failure at startup as fatal.

    Raises:
        pymongo.errors.PyMongoError: If the server cannot be reached
    """
    global _client

    if _client is None:
        _client = MongoClient(
            config.mongodb_uri,
            serverSelectionTimeoutMS=5000,
            connectTimeoutMS=5000,
            tz_aware=True,
        )
    _client.admin.command("ping")
    logger.info(f"Connected to MongoDB database '{config.database}'")
    return _client[config.database]


def build_repositories(config: PortalConfig, db: Optional[Database] = None) -> Repositories:
    """
    Build the repository bundle for the given configuration.

    Args:
        config: Portal configuration
        db: Already-connected database (connects from config if None)
    """
    from .memory_repository import InMemoryApplicationRepository, InMemoryJobRepository
    from .mongo_repository import (
        MongoApplicationRepository,
        MongoJobRepository,
        MongoSessionRepository,
        MongoUserRepository,
    )

    if db is None:
        db = connect_database(config)

    users = MongoUserRepository(db)
    sessions = MongoSessionRepository(db)
    users.ensure_indexes()
    sessions.ensure_indexes()

    if config.job_store == JobStore.MONGO:
        jobs = MongoJobRepository(db)
        jobs.ensure_indexes()
        applications = MongoApplicationRepository(db)
        logger.info("Jobs and applications stored in MongoDB")
    else:
        jobs = InMemoryJobRepository()
        applications = InMemoryApplicationRepository()
        logger.info("Jobs and applications stored in process memory (lost on restart)")

    return Repositories(users=users, sessions=sessions, jobs=jobs, applications=applications)


def reset_connection() -> None:
    """Close the shared MongoClient."""
    global _client

    if _client is not None:
        _client.close()
    _client = None
    logger.info("MongoDB connection reset")
