"""
User document helpers.

Users live in the ``users`` container, partitioned by their own id, with
``email`` and ``username`` reserved as container-wide unique keys. All
mutations go through a compare-and-swap replace so concurrent writers do
not silently overwrite each other.
"""

import asyncio
import logging
from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

import bcrypt

from learnpath.config import get_settings
from learnpath.db import containers
from learnpath.db.store import (
    CONTAINER_SCOPE,
    DocumentConflict,
    DocumentStore,
    PreconditionFailed,
    read_modify_replace,
)
from learnpath.exceptions import AuthError, ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)
settings = get_settings()

# Keys a personality response may set on learningPreferences
PREFERENCE_KEYS = frozenset(
    {
        "style",
        "language",
        "difficulty",
        "sessionDurationMin",
        "notifications",
        "theme",
        "timeOfDay",
    }
)

# bcrypt only looks at the first 72 bytes
_BCRYPT_MAX_BYTES = 72


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(_password_bytes(password), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def split_name(name: str) -> tuple[str, str]:
    """First word is the first name; everything after it is the last name."""
    parts = name.split()
    if not parts:
        return "", ""
    return parts[0], " ".join(parts[1:])


def public_user(user: Mapping[str, Any]) -> dict[str, Any]:
    """The identity fields safe to hand back to clients."""
    return {"id": user["id"], "email": user["email"], "username": user["username"]}


async def create_user(
    store: DocumentStore,
    *,
    name: str,
    username: str,
    email: str,
    password: str,
) -> dict[str, Any]:
    """
    Create a user document with a bcrypt password hash.

    Raises:
        ValidationError: email or username already registered
    """
    email = email.lower()
    password_hash = await asyncio.to_thread(hash_password, password)
    first_name, last_name = split_name(name)
    now = utc_now_iso()
    user_id = str(uuid4())

    body = {
        "id": user_id,
        "type": containers.USER_TYPE,
        "email": email,
        "username": username,
        "passwordHash": password_hash,
        "profile": {"firstName": first_name, "lastName": last_name, "createdAt": now},
        "learningPreferences": {},
        "surveyCompleted": False,
        "createdAt": now,
        "updatedAt": now,
    }
    try:
        user = await store.create(
            containers.USERS,
            body,
            partition_key=user_id,
            unique_keys={"email": email, "username": username.lower()},
            unique_scope=CONTAINER_SCOPE,
        )
    except DocumentConflict as e:
        raise ValidationError("Email or username already exists") from e

    logger.info("Created user %s (%s)", user_id, username)
    return user


async def get_user(store: DocumentStore, user_id: str) -> dict[str, Any] | None:
    return await store.read(containers.USERS, user_id, partition_key=user_id)


async def get_user_or_404(store: DocumentStore, user_id: str) -> dict[str, Any]:
    user = await get_user(store, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


async def find_user_by_email(store: DocumentStore, email: str) -> dict[str, Any] | None:
    users = await store.query(containers.USERS, doc_type=containers.USER_TYPE, email=email.lower(), limit=1)
    return users[0] if users else None


async def authenticate(store: DocumentStore, email: str, password: str) -> dict[str, Any]:
    """
    Check credentials.

    Unknown email and wrong password raise the same error so callers
    cannot tell which accounts exist.

    Raises:
        AuthError: invalid credentials
    """
    user = await find_user_by_email(store, email)
    if user is None:
        raise AuthError("Invalid credentials")
    matches = await asyncio.to_thread(verify_password, password, user.get("passwordHash", ""))
    if not matches:
        raise AuthError("Invalid credentials")
    return user


async def update_user(
    store: DocumentStore,
    user_id: str,
    mutate: Callable[[dict[str, Any]], None],
) -> dict[str, Any]:
    """
    Read-modify-write a user with an etag check, re-reading on conflict.

    Raises:
        NotFoundError: the user does not exist
        ConflictError: every attempt lost to a concurrent writer
    """

    def apply(user: dict[str, Any]) -> None:
        mutate(user)
        user["updatedAt"] = utc_now_iso()

    try:
        user = await read_modify_replace(
            store,
            containers.USERS,
            user_id,
            partition_key=user_id,
            mutate=apply,
            attempts=settings.max_replace_attempts,
        )
    except PreconditionFailed as e:
        raise ConflictError("User was modified concurrently, please retry") from e
    if user is None:
        raise NotFoundError("User not found")
    return user


def known_preferences(responses: Mapping[str, Any]) -> dict[str, Any]:
    """Keep whitelisted preference keys; log and drop the rest."""
    known = {}
    for key, value in responses.items():
        if key in PREFERENCE_KEYS:
            known[key] = value
        else:
            logger.warning("Unknown personality key: %s", key)
    return known


async def save_learning_preferences(
    store: DocumentStore,
    user_id: str,
    responses: Mapping[str, Any],
) -> dict[str, Any]:
    """Merge personality responses into the user's learningPreferences."""
    updates = known_preferences(responses)

    def apply(user: dict[str, Any]) -> None:
        user["learningPreferences"] = {**(user.get("learningPreferences") or {}), **updates}

    user = await update_user(store, user_id, apply)
    return user["learningPreferences"]


async def mark_survey_completed(store: DocumentStore, user_id: str) -> dict[str, Any]:
    def apply(user: dict[str, Any]) -> None:
        user["surveyCompleted"] = True
        user["surveyCompletedAt"] = utc_now_iso()

    return await update_user(store, user_id, apply)
