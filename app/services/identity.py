"""Bundled identity provider: email/password accounts and JWT session tokens.

The rest of the application only sees the verified ``user_id`` produced by
``TokenService.decode_token``; nothing downstream accepts a client-supplied
user id.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

import bcrypt
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from app.config import get_settings
from app.models.user import User


@dataclass
class AuthResult:
    """Result of a registration or login attempt."""

    success: bool
    error: str | None = None
    user_id: int | None = None
    email: str | None = None
    display_name: str | None = None

    @classmethod
    def for_user(cls, user: User) -> "AuthResult":
        return cls(success=True, user_id=user.id, email=user.email, display_name=user.display_name)


def _hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


class AccountService:
    """Handles account registration and password authentication."""

    def register(self, db: Session, email: str, password: str, display_name: str) -> AuthResult:
        """Register a new account. Emails are unique regardless of case."""
        normalized = email.lower().strip()
        if db.query(User).filter(User.email.ilike(normalized)).first():
            return AuthResult(success=False, error="Email already registered")

        user = User(
            email=normalized,
            password_hash=_hash_password(password),
            display_name=display_name.strip(),
            is_active=True,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return AuthResult.for_user(user)

    def authenticate(self, db: Session, email: str, password: str) -> AuthResult:
        """Check credentials and stamp the login time."""
        user = db.query(User).filter(User.email.ilike(email.strip())).first()
        if not user or not bcrypt.checkpw(password.encode("utf-8"), user.password_hash.encode("utf-8")):
            return AuthResult(success=False, error="Invalid email or password")

        if not user.is_active:
            return AuthResult(success=False, error="Account is deactivated")

        user.last_login_at = datetime.utcnow()
        db.commit()
        return AuthResult.for_user(user)


class TokenService:
    """Issues and verifies session tokens."""

    def __init__(self) -> None:
        settings = get_settings()
        self.secret_key = settings.JWT_SECRET_KEY
        self.algorithm = settings.JWT_ALGORITHM
        self.expire_minutes = settings.JWT_EXPIRE_MINUTES

    def create_token(self, user_id: int, email: str, display_name: str) -> str:
        expire = datetime.utcnow() + timedelta(minutes=self.expire_minutes)
        payload = {
            "sub": str(user_id),
            "email": email,
            "displayName": display_name,
            "exp": expire,
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def create_token_for(self, result: AuthResult) -> str:
        return self.create_token(result.user_id, result.email, result.display_name)  # type: ignore[arg-type]

    def decode_token(self, token: str) -> dict[str, Any] | None:
        """Decode and validate a token. Returns None if invalid or expired."""
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError:
            return None
        if not payload.get("sub") or "email" not in payload:
            return None
        return payload


_account_service: AccountService | None = None
_token_service: TokenService | None = None


def get_account_service() -> AccountService:
    """Get singleton account service instance."""
    global _account_service
    if _account_service is None:
        _account_service = AccountService()
    return _account_service


def get_token_service() -> TokenService:
    """Get singleton token service instance."""
    global _token_service
    if _token_service is None:
        _token_service = TokenService()
    return _token_service
