"""Authentication API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import CurrentUser, clear_auth_cookie, get_current_user, set_auth_cookie
from app.rate_limit import limiter
from app.schemas.auth import LoginRequest, RegisterRequest, TokenResponse
from app.services.identity import get_account_service, get_token_service

router = APIRouter(prefix="/api/v1/auth", tags=["Authentication"])


@router.post("/register", response_model=TokenResponse)
@limiter.limit("5/minute")
def register(request: Request, response: Response, body: RegisterRequest, db: Session = Depends(get_db)) -> TokenResponse:
    """Create an account and start a session."""
    result = get_account_service().register(db, body.email, body.password, body.display_name)
    if not result.success:
        raise HTTPException(status_code=400, detail=result.error)

    token = get_token_service().create_token_for(result)
    set_auth_cookie(response, token)
    return TokenResponse(token=token, email=result.email, display_name=result.display_name)  # type: ignore[arg-type]


@router.post("/login", response_model=TokenResponse)
@limiter.limit("10/minute")
def login(request: Request, response: Response, body: LoginRequest, db: Session = Depends(get_db)) -> TokenResponse:
    """Authenticate and receive a session token."""
    result = get_account_service().authenticate(db, body.email, body.password)
    if not result.success:
        raise HTTPException(status_code=401, detail=result.error)

    token = get_token_service().create_token_for(result)
    set_auth_cookie(response, token)
    return TokenResponse(token=token, email=result.email, display_name=result.display_name)  # type: ignore[arg-type]


@router.post("/logout")
def logout(response: Response) -> dict:
    clear_auth_cookie(response)
    return {"detail": "Logged out"}


@router.get("/verify")
def verify_token(user: CurrentUser = Depends(get_current_user)) -> dict:
    """Return the identity behind the presented token."""
    return {
        "valid": True,
        "user_id": user.user_id,
        "email": user.email,
        "display_name": user.display_name,
    }
