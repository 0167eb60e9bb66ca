"""Server-side session documents referenced by the session cookie."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping
from uuid import uuid4

from learnpath.config import get_settings
from learnpath.db import containers
from learnpath.db.store import DocumentStore

logger = logging.getLogger(__name__)
settings = get_settings()


async def create_session(store: DocumentStore, user: Mapping[str, Any]) -> dict[str, Any]:
    """Open a session for an authenticated user; expires after session_expire_minutes."""
    now = datetime.now(timezone.utc)
    session_id = uuid4().hex
    body = {
        "id": session_id,
        "type": containers.SESSION_TYPE,
        "userId": user["id"],
        "email": user["email"],
        "username": user["username"],
        "createdAt": now.isoformat(),
        "expiresAt": (now + timedelta(minutes=settings.session_expire_minutes)).isoformat(),
    }
    return await store.create(containers.SESSIONS, body, partition_key=session_id)


async def load_session(store: DocumentStore, session_id: str) -> dict[str, Any] | None:
    """Return the session if it exists and has not expired; expired ones are removed."""
    session = await store.read(containers.SESSIONS, session_id, partition_key=session_id)
    if session is None:
        return None
    expires_at = datetime.fromisoformat(session["expiresAt"])
    if expires_at <= datetime.now(timezone.utc):
        logger.info("Session %s expired", session_id)
        await store.delete(containers.SESSIONS, session_id, partition_key=session_id)
        return None
    return session


async def destroy_session(store: DocumentStore, session_id: str) -> bool:
    return await store.delete(containers.SESSIONS, session_id, partition_key=session_id)
