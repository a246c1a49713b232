import logging
import os
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from passlib.context import CryptContext
from pydantic import BaseModel

from src.api.core.settings import Settings

ACCESS_TOKEN_ISSUER = "chirpy-access"
REFRESH_TOKEN_ISSUER = "chirpy-refresh"

logger = logging.getLogger(__name__)

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=int(os.getenv("BCRYPT_ROUNDS", "12")),
)
bearer_scheme = HTTPBearer(auto_error=False)


class TokenData(BaseModel):
    """Decoded JWT token payload."""
    sub: str
    iss: str


# PUBLIC_INTERFACE
def hash_password(password: str) -> str:
    """Hash a plaintext password with a per-password salt."""
    return pwd_context.hash(password)


# PUBLIC_INTERFACE
def verify_password(password: str, password_hash: str) -> bool:
    """Verify a plaintext password against a hash."""
    return pwd_context.verify(password, password_hash)


# PUBLIC_INTERFACE
def create_token(subject: str, secret: str, issuer: str, expires_seconds: int) -> str:
    """Create a signed JWT for a subject (user id)."""
    now = datetime.now(timezone.utc)
    payload = {
        "iss": issuer,
        "sub": subject,
        "jti": uuid.uuid4().hex,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(seconds=expires_seconds)).timestamp()),
    }
    return jwt.encode(payload, secret, algorithm="HS256")


# PUBLIC_INTERFACE
def decode_token(token: str, secret: str, issuer: str) -> TokenData:
    """Verify signature, expiry and issuer of a token and return its claims."""
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=["HS256"],
            issuer=issuer,
            options={"require": ["exp", "iss", "sub"]},
        )
    except jwt.InvalidIssuerError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Wrong issuer")
    except jwt.PyJWTError as e:
        logger.info(f"Rejected token: {e}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")
    return TokenData(sub=str(payload["sub"]), iss=payload["iss"])


def _settings(request: Request) -> Settings:
    return request.app.state.settings


# PUBLIC_INTERFACE
def get_bearer_token(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    """FastAPI dependency returning the raw token from Authorization: Bearer."""
    if creds is None or not creds.credentials:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return creds.credentials


# PUBLIC_INTERFACE
def get_current_user_id(request: Request, token: str = Depends(get_bearer_token)) -> int:
    """FastAPI dependency that extracts the user id from an access token."""
    token_data = decode_token(token, _settings(request).jwt_secret, ACCESS_TOKEN_ISSUER)
    try:
        return int(token_data.sub)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Token subject is not an id")
