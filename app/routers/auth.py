"""
Sign-in / sign-up / sign-out endpoints.

Form-encoded, cookie-session based, matching the web client's sign-in form.
"""

import logging

from fastapi import APIRouter, Form, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, EmailStr, ValidationError

from auth.middleware import (
    clear_session_cookie,
    get_session_id,
    set_session_cookie,
)
from auth.service import (
    InvalidCredentialsError,
    UserExistsError,
    WeakPasswordError,
    authenticate_user,
    create_session,
    create_user,
    invalidate_session,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["auth"])


# =============================================================================
# Request Schemas
# =============================================================================

class Credentials(BaseModel):
    email: EmailStr
    password: str


def _session_metadata(request: Request) -> dict:
    return {
        "ip_address": request.client.host if request.client else None,
        "user_agent": request.headers.get("user-agent"),
    }


# =============================================================================
# Routes
# =============================================================================

@router.post("", status_code=status.HTTP_201_CREATED)
async def sign_up(request: Request, email: str = Form(...), password: str = Form(...)):
    """Register a new account and sign it in."""
    try:
        credentials = Credentials(email=email, password=password)
    except ValidationError:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"error": "Email is invalid"},
        )

    try:
        user = create_user(credentials.email, credentials.password)
    except WeakPasswordError as e:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"error": str(e)},
        )
    except UserExistsError:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"error": "Email has already been taken"},
        )

    session = create_session(user.id, **_session_metadata(request))
    response = JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content={"success": True, "user": user.to_dict()},
    )
    set_session_cookie(response, session.id)
    return response


@router.post("/sign_in")
async def sign_in(request: Request, email: str = Form(...), password: str = Form(...)):
    """Sign in with email/password."""
    try:
        user = authenticate_user(email, password)
    except InvalidCredentialsError as e:
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"error": str(e)},
        )

    session = create_session(user.id, **_session_metadata(request))
    response = JSONResponse(content={"success": True, "user": user.to_dict()})
    set_session_cookie(response, session.id)
    return response


@router.delete("/sign_out")
async def sign_out(request: Request):
    """Sign out: drop the server-side session and clear the cookie."""
    session_id = get_session_id(request)
    if session_id:
        invalidate_session(session_id)

    response = JSONResponse(content={"success": True})
    clear_session_cookie(response)
    return response
