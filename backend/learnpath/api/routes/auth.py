"""
Authentication Routes

Endpoints:
- POST /api/signup - Create an account
- POST /api/login - Check credentials and open a session
- POST /api/logout - Destroy the session and clear the cookie
- GET /api/protected - Auth probe returning the session user

Auth Flow:
1. Frontend POSTs email/password to /api/login
2. Backend verifies the bcrypt hash
3. Backend stores a session document (8 hour lifetime)
4. Backend sets an HttpOnly cookie referencing that session
5. Every protected request resolves the cookie back to the session

Wrong password and unknown email both return 401 "Invalid credentials".
"""

import logging

from fastapi import APIRouter, Response, status

from learnpath.api.deps import CurrentUser, SessionId, Store, clear_session_cookie, set_session_cookie
from learnpath.schemas.auth import AuthResponse, LoginRequest, SignupRequest
from learnpath.schemas.base import SuccessResponse
from learnpath.schemas.user import SessionUser
from learnpath.services.sessions import create_session, destroy_session
from learnpath.services.users import authenticate, create_user, public_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["auth"])


@router.post("/login", response_model=AuthResponse)
async def login(
    request: LoginRequest,
    response: Response,
    store: Store,
) -> AuthResponse:
    """Exchange email/password for a session cookie."""
    user = await authenticate(store, request.email, request.password)
    session = await create_session(store, user)
    set_session_cookie(response, session["id"])

    logger.info("User %s logged in", user["id"])
    return AuthResponse(user=SessionUser(**public_user(user)))


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def signup(request: SignupRequest, store: Store) -> AuthResponse:
    """
    Create an account.

    Email and username must both be unused; either collision is a 400.
    Signing up does not log the user in.
    """
    user = await create_user(
        store,
        name=request.name,
        username=request.username,
        email=request.email,
        password=request.password,
    )
    return AuthResponse(
        message="Account created successfully",
        user=SessionUser(**public_user(user)),
    )


@router.post("/logout", response_model=SuccessResponse)
async def logout(response: Response, store: Store, session_id: SessionId) -> SuccessResponse:
    """Delete the server-side session (if any) and clear the cookie."""
    if session_id is not None:
        await destroy_session(store, session_id)
    clear_session_cookie(response)
    return SuccessResponse()


@router.get("/protected", response_model=AuthResponse)
async def protected(current_user: CurrentUser) -> AuthResponse:
    """
    Verify authentication status.

    Useful for the frontend after a page reload to check the session is
    still valid.
    """
    return AuthResponse(message="Protected data", user=current_user)
