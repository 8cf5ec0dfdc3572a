"""Authentication dependencies for FastAPI routes."""

from dataclasses import dataclass

from fastapi import Request, Response

from app.errors import Unauthorized
from app.services.identity import get_token_service

AUTH_COOKIE_NAME = "vj_auth_token"
COOKIE_MAX_AGE = 8 * 60 * 60  # 8 hours


@dataclass
class CurrentUser:
    """Verified identity of the caller. Writes always use this user_id."""

    user_id: int
    email: str
    display_name: str


def _extract_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header[7:]
    return request.cookies.get(AUTH_COOKIE_NAME)


def get_current_user(request: Request) -> CurrentUser:
    """Resolve the caller from a Bearer token or the auth cookie. Raises 401 if invalid."""
    token = _extract_token(request)
    if not token:
        raise Unauthorized("Not authenticated")

    payload = get_token_service().decode_token(token)
    if not payload:
        raise Unauthorized("Invalid or expired token")

    return CurrentUser(
        user_id=int(payload["sub"]),
        email=payload["email"],
        display_name=payload.get("displayName", ""),
    )


def set_auth_cookie(response: Response, token: str) -> None:
    """Set the authentication cookie."""
    response.set_cookie(
        key=AUTH_COOKIE_NAME,
        value=token,
        httponly=True,
        samesite="lax",
        secure=False,
        max_age=COOKIE_MAX_AGE,
    )


def clear_auth_cookie(response: Response) -> None:
    """Clear the authentication cookie."""
    response.delete_cookie(key=AUTH_COOKIE_NAME)
