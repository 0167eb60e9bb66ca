"""
FastAPI Dependencies for Authentication and Service Wiring.

Key patterns:
1. get_current_user: Resolves the session cookie to a live session and user
2. User-scoped queries: every store helper takes the user id explicitly
3. No global "current user" state - always pass user explicitly

Security model:
- The cookie holds a signed JWT whose only claim besides exp is the
  server-side session id (sid); identity lives in the session document
- Logout deletes the session document, so a copied cookie stops working
- Topics and surveys are partitioned by user id in the document store
"""

from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Annotated

from fastapi import Cookie, Depends, Response
from jose import JWTError, jwt

from learnpath.config import get_settings
from learnpath.db.session import get_store
from learnpath.db.store import DocumentStore
from learnpath.exceptions import AuthError
from learnpath.schemas.user import SessionUser
from learnpath.services.llm import LLMClient
from learnpath.services.question_generator import QuestionGenerator
from learnpath.services.sessions import load_session
from learnpath.services.subtopic_recommender import SubtopicRecommender
from learnpath.services.users import get_user

settings = get_settings()


# =============================================================================
# SESSION COOKIE
# =============================================================================


def create_session_token(session_id: str) -> str:
    """
    Sign a session id for the cookie.

    Token payload contains:
    - sid: server-side session document id
    - exp: expiration timestamp, matching the session document
    """
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.session_expire_minutes)
    payload = {"sid": session_id, "exp": expire}
    return jwt.encode(payload, settings.session_secret_key, algorithm=settings.session_algorithm)


def decode_session_token(token: str) -> str | None:
    """Return the session id if the token is valid, None if invalid/expired."""
    try:
        payload = jwt.decode(
            token,
            settings.session_secret_key,
            algorithms=[settings.session_algorithm],
        )
    except JWTError:
        return None
    session_id = payload.get("sid")
    return session_id if isinstance(session_id, str) else None


def _cookie_options() -> dict:
    return {
        "httponly": True,
        "secure": settings.cookie_cross_domain or settings.environment != "development",
        "samesite": "none" if settings.cookie_cross_domain else "lax",
    }


def set_session_cookie(response: Response, session_id: str) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=create_session_token(session_id),
        max_age=settings.session_expire_minutes * 60,
        **_cookie_options(),
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(key=settings.session_cookie_name, **_cookie_options())


# =============================================================================
# AUTHENTICATION DEPENDENCIES
# =============================================================================


Store = Annotated[DocumentStore, Depends(get_store)]


async def get_session_id(
    learnpath_sid: Annotated[str | None, Cookie(alias=settings.session_cookie_name)] = None,
) -> str | None:
    """Session id from the cookie, or None when absent or tampered with."""
    if not learnpath_sid:
        return None
    return decode_session_token(learnpath_sid)


async def get_optional_user(
    session_id: Annotated[str | None, Depends(get_session_id)],
    store: Store,
) -> SessionUser | None:
    """The signed-in user, or None. Used by public endpoints that report session state."""
    if session_id is None:
        return None
    session = await load_session(store, session_id)
    if session is None:
        return None
    # The session must still point at an existing user
    user = await get_user(store, session["userId"])
    if user is None:
        return None
    return SessionUser(id=user["id"], email=user["email"], username=user["username"])


async def get_current_user(
    user: Annotated[SessionUser | None, Depends(get_optional_user)],
) -> SessionUser:
    """
    Require a live session.

    Raises 401 if:
    - the cookie is missing, invalid, or expired
    - the session document is gone (logged out / expired)
    - the user no longer exists
    """
    if user is None:
        raise AuthError("Not authenticated")
    return user


# Type aliases for dependency injection
CurrentUser = Annotated[SessionUser, Depends(get_current_user)]
OptionalUser = Annotated[SessionUser | None, Depends(get_optional_user)]
SessionId = Annotated[str | None, Depends(get_session_id)]


# =============================================================================
# LANGUAGE MODEL SERVICES
# =============================================================================


@lru_cache
def get_llm_client() -> LLMClient:
    """Shared language model client, created on first use."""
    return LLMClient()


def get_question_generator(llm: Annotated[LLMClient, Depends(get_llm_client)]) -> QuestionGenerator:
    return QuestionGenerator(llm)


def get_subtopic_recommender(llm: Annotated[LLMClient, Depends(get_llm_client)]) -> SubtopicRecommender:
    return SubtopicRecommender(llm)


Generator = Annotated[QuestionGenerator, Depends(get_question_generator)]
Recommender = Annotated[SubtopicRecommender, Depends(get_subtopic_recommender)]
