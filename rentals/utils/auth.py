"""
Authentication utilities for JWT token management.
Provides access and refresh token generation and validation with role claims.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from rentals.config import settings
from rentals.models.user import UserRole
import uuid


class TokenPayload:
    """JWT token payload structure."""
    
    def __init__(self, user_id: str, email: str, role: Optional[str], exp: datetime, token_type: str):
        self.user_id = user_id
        self.email = email
        self.role = role
        self.exp = exp
        self.token_type = token_type
    
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenPayload":
        return cls(
            user_id=data["sub"],
            email=data["email"],
            role=data.get("role"),  # Refresh tokens carry no role
            exp=datetime.fromtimestamp(data["exp"], tz=timezone.utc),
            token_type=data["type"],
        )


def _encode(claims: Dict[str, Any], expires_delta: timedelta) -> str:
    now = datetime.now(timezone.utc)
    to_encode = {**claims, "exp": now + expires_delta, "iat": now}
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def create_access_token(
    user_id: uuid.UUID,
    email: str,
    role: UserRole,
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create JWT access token with user claims.
    
    Args:
        user_id: User's UUID
        email: User's email address
        role: User's role (guest/host/admin)
        expires_delta: Optional custom expiration time
        
    Returns:
        Encoded JWT token string
    """
    claims = {
        "sub": str(user_id),
        "email": email,
        "role": role.value,
        "type": "access",
    }
    return _encode(claims, expires_delta or timedelta(minutes=settings.access_token_expire_minutes))


def create_refresh_token(
    user_id: uuid.UUID,
    email: str,
    expires_delta: Optional[timedelta] = None
) -> str:
    """Create JWT refresh token."""
    claims = {
        "sub": str(user_id),
        "email": email,
        "type": "refresh",
    }
    return _encode(claims, expires_delta or timedelta(days=settings.jwt_refresh_token_expire_days))


def verify_token(token: str, token_type: str = "access") -> TokenPayload:
    """
    Verify and decode JWT token.
    
    Args:
        token: JWT token string
        token_type: Expected token type ("access" or "refresh")
        
    Returns:
        TokenPayload for a valid token
        
    Raises:
        JWTError: If the token is malformed, expired, or of the wrong type
    """
    # jose validates the exp claim and raises ExpiredSignatureError (a JWTError)
    payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    
    if payload.get("type") != token_type:
        raise JWTError(f"Invalid token type. Expected {token_type}")
    
    if not payload.get("sub") or not payload.get("email"):
        raise JWTError("Invalid token payload")
    
    return TokenPayload.from_dict(payload)
