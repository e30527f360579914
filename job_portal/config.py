"""
Configuration for the job portal.

All values are loaded from environment variables (.env file supported).
Unset values fall back to development defaults, which are NOT safe for
production: the MongoDB URI points at localhost and the session secret
is random per process.
"""

import logging
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

PACKAGE_DIR = Path(__file__).resolve().parent

DEFAULT_MONGODB_URI = "mongodb://localhost:27017/job_portal"


class AppEnv(str, Enum):
    """Deployment environment. Controls cookie security and error verbosity."""
    DEVELOPMENT = "development"
    PRODUCTION = "production"


class JobStore(str, Enum):
    """Backend for jobs and applications."""
    MEMORY = "memory"  # Process lifetime only
    MONGO = "mongo"    # Same database as users


@dataclass
class PortalConfig:
    """
    Runtime configuration for the portal.

    Loaded from environment variables with development defaults.
    """
    mongodb_uri: str = DEFAULT_MONGODB_URI
    database: str = "job_portal"
    session_secret: str = ""
    port: int = 3000
    env: AppEnv = AppEnv.DEVELOPMENT
    upload_root: Path = PACKAGE_DIR / "static" / "uploads"
    job_store: JobStore = JobStore.MEMORY
    log_level: str = "INFO"
    bcrypt_rounds: int = 10

    @property
    def is_production(self) -> bool:
        return self.env == AppEnv.PRODUCTION

    @classmethod
    def from_env(cls) -> "PortalConfig":
        """
        Load configuration from environment variables.

        Environment variables:
        - MONGODB_URI: MongoDB connection string
        - MONGODB_DATABASE: Database name (default: job_portal)
        - SESSION_SECRET: Session signing secret (required in production)
        - PORT: Listening port (default: 3000)
        - APP_ENV: development/production (default: development)
        - UPLOAD_ROOT: Directory for uploaded avatars and resumes
        - JOB_STORE: memory/mongo (default: memory)
        - LOG_LEVEL: Logging level (default: INFO)
        - BCRYPT_ROUNDS: bcrypt cost factor (default: 10)
        """
        load_dotenv()

        env_str = os.getenv("APP_ENV", "development").lower()
        try:
            env = AppEnv(env_str)
        except ValueError:
            logger.warning(f"Invalid APP_ENV '{env_str}', defaulting to development")
            env = AppEnv.DEVELOPMENT

        mongodb_uri = os.getenv("MONGODB_URI")
        if not mongodb_uri:
            logger.warning("MONGODB_URI not set, using local development database")
            mongodb_uri = DEFAULT_MONGODB_URI

        session_secret = os.getenv("SESSION_SECRET")
        if not session_secret:
            if env == AppEnv.PRODUCTION:
                raise RuntimeError(
                    "CRITICAL: SESSION_SECRET not set in production. "
                    "Session cookies cannot be signed securely."
                )
            logger.warning(
                "SESSION_SECRET not set. Generating random key "
                "(sessions will not persist between restarts)"
            )
            session_secret = os.urandom(24).hex()

        store_str = os.getenv("JOB_STORE", "memory").lower()
        try:
            job_store = JobStore(store_str)
        except ValueError:
            logger.warning(f"Invalid JOB_STORE '{store_str}', defaulting to memory")
            job_store = JobStore.MEMORY

        upload_root = os.getenv("UPLOAD_ROOT")

        return cls(
            mongodb_uri=mongodb_uri,
            database=os.getenv("MONGODB_DATABASE", "job_portal"),
            session_secret=session_secret,
            port=int(os.getenv("PORT", 3000)),
            env=env,
            upload_root=Path(upload_root) if upload_root else cls.upload_root,
            job_store=job_store,
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            bcrypt_rounds=int(os.getenv("BCRYPT_ROUNDS", 10)),
        )
