"""
Credential verification and registration.

Passwords are hashed with bcrypt; the stored hash embeds its own random
salt. Login failures use one generic message whether the email is
unknown or the password is wrong, so responses do not reveal which
accounts exist.
"""

import logging
from typing import Optional

import bcrypt

from .errors import AuthenticationError, DuplicateEmailError, RegistrationError
from .models import DEFAULT_AVATAR, Role, User, normalize_email
from .repositories import UserRepositoryInterface

logger = logging.getLogger(__name__)

DEFAULT_BCRYPT_ROUNDS = 10


def hash_password(password: str, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> str:
    """Hash a password with a fresh per-password salt."""
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def check_password(password: str, password_hash: str) -> bool:
    """Compare a plaintext password with a stored hash. Malformed hashes never match."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is not a valid bcrypt hash")
        return False


def verify_credentials(users: UserRepositoryInterface, email: str, password: str) -> User:
    """
    Look up a user by email and check the password.

    Args:
        users: User store
        email: Submitted email (normalized to lowercase before lookup)
        password: Submitted plaintext password

    Returns:
        The matching user

    Raises:
        AuthenticationError: If no user matches or the password is wrong
    """
    user = users.find_by_email(normalize_email(email))
    if user is None:
        raise AuthenticationError()

    if not check_password(password or "", user.password):
        raise AuthenticationError()

    return user


def register_user(
    users: UserRepositoryInterface,
    name: str,
    email: str,
    password: str,
    confirm_password: str,
    role: Optional[str] = None,
    avatar: Optional[str] = None,
    rounds: int = DEFAULT_BCRYPT_ROUNDS,
) -> User:
    """
    Create a user account.

    Raises:
        RegistrationError: On password mismatch, missing fields, or an
            email that is already registered
    """
    if password != confirm_password:
        raise RegistrationError("Passwords do not match")

    email = normalize_email(email)
    name = (name or "").strip()
    if not name or not email or not password:
        raise RegistrationError("Name, email and password are required")

    if users.find_by_email(email) is not None:
        raise RegistrationError("Email already registered")

    user = User(
        name=name,
        email=email,
        password=hash_password(password, rounds=rounds),
        role=Role.parse(role),
        avatar=avatar or DEFAULT_AVATAR,
    )

    try:
        users.insert(user)
    except DuplicateEmailError:
        # Lost a race with a concurrent registration for the same email
        raise RegistrationError("Email already registered")

    logger.info(f"Registered user {user.id} ({user.role.value})")
    return user
